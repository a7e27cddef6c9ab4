import pytest
from models import PlatformConnection

def test_create_and_list_connections(auth_client, user):
    response = auth_client.post('/api/platform-connections', json={"platform": "spotify", "connected": True})
    assert response.status_code == 201
    connection = response.get_json()["connection"]
    assert connection["platform"] == "spotify"
    assert connection["connected"] is True
    assert connection["credentials"] == {}
    assert connection["user_id"] == user.id

    response = auth_client.get('/api/platform-connections')
    assert [c["id"] for c in response.get_json()["connections"]] == [connection["id"]]

def test_create_connection_updates_existing_platform(auth_client, user, db):
    first = auth_client.post('/api/platform-connections', json={"platform": "google", "connected": False})
    assert first.status_code == 201

    response = auth_client.post('/api/platform-connections',
                                json={"platform": "google", "connected": True, "credentials": {"id_token": "abc"}})
    assert response.status_code == 200
    connection = response.get_json()["connection"]
    assert connection["id"] == first.get_json()["connection"]["id"]
    assert connection["connected"] is True
    assert connection["credentials"] == {"id_token": "abc"}
    assert PlatformConnection.query.filter_by(user_id=user.id, platform='google').count() == 1

@pytest.mark.parametrize("payload, field", [
    ({}, "platform"),
    ({"platform": "myspace"}, "platform"),
    ({"platform": "google", "connected": "yes"}, "connected"),
    ({"platform": "google", "credentials": ["token"]}, "credentials"),
])
def test_create_connection_invalid(auth_client, payload, field):
    response = auth_client.post('/api/platform-connections', json=payload)
    assert response.status_code == 400
    assert field in response.get_json()["errors"]

def test_update_connection(auth_client, user, db):
    connection = PlatformConnection(user_id=user.id, platform='facebook', connected=False)
    db.session.add(connection)
    db.session.commit()

    response = auth_client.put(f'/api/platform-connections/{connection.id}',
                               json={"connected": True, "credentials": {"account_id": "act_123"}})
    assert response.status_code == 200
    data = response.get_json()["connection"]
    assert data["connected"] is True
    assert data["credentials"] == {"account_id": "act_123"}

def test_update_connection_of_other_user(auth_client, create_user, db):
    other = create_user(username='other')
    connection = PlatformConnection(user_id=other.id, platform='google', connected=True)
    db.session.add(connection)
    db.session.commit()

    response = auth_client.put(f'/api/platform-connections/{connection.id}', json={"connected": False})
    assert response.status_code == 404
    assert response.get_json()["message"] == "Platform connection not found"
    assert connection.connected is True
