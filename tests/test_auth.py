import pytest
from models import User

def test_register_creates_user_and_logs_in(client, db):
    response = client.post('/api/auth/register', json={
        "username": "newbie",
        "email": "Newbie@Example.com",
        "password": "password123",
        "full_name": "New Bie",
    })
    assert response.status_code == 201
    user_data = response.get_json()["user"]
    assert user_data["username"] == "newbie"
    assert user_data["email"] == "newbie@example.com"
    assert "password_hash" not in user_data

    stored = User.query.filter_by(username="newbie").first()
    assert stored is not None
    assert stored.check_password("password123")

    me = client.get('/api/auth/user')
    assert me.status_code == 200
    assert me.get_json()["user"]["username"] == "newbie"

def test_register_invalid_input(client, db):
    response = client.post('/api/auth/register', json={"username": "ab", "email": "nope", "password": "1"})
    assert response.status_code == 400
    data = response.get_json()
    assert data["message"] == "Invalid input"
    assert set(data["errors"]) == {"username", "email", "password"}

@pytest.mark.parametrize("payload, message", [
    ({"username": "tester", "email": "other@example.com", "password": "password123"}, "Username already taken"),
    ({"username": "someoneelse", "email": "tester@example.com", "password": "password123"}, "Email already registered"),
])
def test_register_duplicates(client, user, payload, message):
    response = client.post('/api/auth/register', json=payload)
    assert response.status_code == 400
    assert response.get_json()["message"] == message

def test_login_and_logout(client, user):
    response = client.post('/api/auth/login', json={"username": "tester", "password": "secret123"})
    assert response.status_code == 200
    assert response.get_json()["user"]["id"] == user.id

    assert client.get('/api/auth/user').status_code == 200

    response = client.post('/api/auth/logout')
    assert response.status_code == 200
    assert response.get_json() == {"success": True}

    response = client.get('/api/auth/user')
    assert response.status_code == 401
    assert response.get_json()["message"] == "Not authenticated"

@pytest.mark.parametrize("username, password", [
    ("tester", "wrong-password"),
    ("nobody", "secret123"),
])
def test_login_rejects_bad_credentials(client, user, username, password):
    response = client.post('/api/auth/login', json={"username": username, "password": password})
    assert response.status_code == 401
    assert response.get_json()["message"] == "Invalid username or password"

def test_login_missing_fields(client, db):
    response = client.post('/api/auth/login', json={"username": "tester"})
    assert response.status_code == 400
    assert "password" in response.get_json()["errors"]

@pytest.mark.parametrize("method, url", [
    ("get", "/api/campaigns"),
    ("post", "/api/campaigns"),
    ("get", "/api/ads"),
    ("post", "/api/generate/audio"),
    ("get", "/api/platform-connections"),
    ("get", "/api/integrations/status"),
    ("get", "/api/dashboard/stats"),
])
def test_protected_endpoints_require_login(client, db, method, url):
    response = getattr(client, method)(url)
    assert response.status_code == 401
    assert response.get_json() == {"message": "Unauthorized"}

def test_seed_demo_command(app, db):
    runner = app.test_cli_runner()

    result = runner.invoke(args=['seed-demo'])
    assert result.exit_code == 0
    assert "Demo user created." in result.output
    demo = User.query.filter_by(username='demo').one()
    assert demo.check_password('demo123')

    result = runner.invoke(args=['seed-demo'])
    assert "Demo user already exists." in result.output
    assert User.query.filter_by(username='demo').count() == 1
