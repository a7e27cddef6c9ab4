import pytest
from datetime import datetime, timedelta
from cryptography.fernet import Fernet
from app import create_app
from config import Config
from extensions import db as _db # Alias to avoid fixture name conflict
from models import User, Campaign, OAuthToken, PlatformNameEnum

class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:' # Use in-memory SQLite for tests
    WTF_CSRF_ENABLED = False
    SECRET_KEY = 'test-secret-key' # Flask-Login and the OAuth state need a signed session
    FERNET_KEY = Fernet.generate_key() # A valid URL-safe base64-encoded 32-byte key
    GOOGLE_ADS_CLIENT_ID = 'test-google-client-id'
    GOOGLE_ADS_CLIENT_SECRET = 'test-google-client-secret'
    GOOGLE_ADS_REDIRECT_URI = None
    FACEBOOK_APP_ID = 'test-facebook-app-id'
    FACEBOOK_APP_SECRET = 'test-facebook-app-secret'
    FACEBOOK_REDIRECT_URI = None
    OPENAI_API_KEY = 'test-openai-key'
    OPENAI_IMAGE_RENDERING_ENABLED = True
    LOG_LEVEL = 'DEBUG'

@pytest.fixture(scope='session')
def app():
    """
    Session-wide test Flask application.
    Ensures the app is created once per test session with TestConfig.
    """
    app_instance = create_app(config_class=TestConfig)
    return app_instance

@pytest.fixture(scope='function')
def app_context(app):
    """
    Function-scoped application context.
    Requests made by the test client while it is pushed reuse it, so objects
    created in a test and objects loaded by a view share one session.
    """
    with app.app_context():
        yield

@pytest.fixture(scope='function')
def db(app_context):
    """
    Function-scoped database fixture.
    Creates all database tables before each test and drops them afterwards.
    """
    _db.create_all()
    yield _db
    _db.session.remove()
    _db.drop_all()

@pytest.fixture(scope='function')
def client(app):
    """
    Test client fixture. Function-scoped so the session cookie (and with it the
    logged-in user) never leaks from one test into the next.
    """
    return app.test_client()

@pytest.fixture
def create_user(db):
    """Factory for users with a known password."""
    def _create_user(username='tester', email=None, password='secret123', full_name='Test User'):
        user = User(username=username, email=email or f'{username}@example.com', full_name=full_name)
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        return user
    return _create_user

@pytest.fixture
def login(client):
    """Logs the test client in through the API."""
    def _login(username='tester', password='secret123'):
        response = client.post('/api/auth/login', json={'username': username, 'password': password})
        assert response.status_code == 200, response.get_json()
        return response
    return _login

@pytest.fixture
def user(create_user):
    return create_user()

@pytest.fixture
def auth_client(client, user, login):
    """A test client logged in as `user`."""
    login(user.username)
    return client

@pytest.fixture
def create_campaign(db):
    """Factory for campaigns owned by a given user."""
    def _create_campaign(owner, name='Summer Launch', type='visual', status='scheduled', platforms=None, performance=None):
        campaign = Campaign(
            user_id=owner.id, name=name, type=type, status=status,
            platforms=['google', 'facebook'] if platforms is None else platforms,
            performance=performance,
        )
        db.session.add(campaign)
        db.session.commit()
        return campaign
    return _create_campaign

@pytest.fixture
def store_token(db):
    """Stores an OAuth token for a user; `expires_in` is in seconds and may be negative."""
    def _store_token(owner, platform, access_token='access-token', refresh_token=None, expires_in=3600):
        token = OAuthToken(user_id=owner.id, platform=PlatformNameEnum(platform), token_type='bearer')
        token.access_token = access_token
        token.refresh_token = refresh_token
        token.expires_at = datetime.utcnow() + timedelta(seconds=expires_in) if expires_in is not None else None
        db.session.add(token)
        db.session.commit()
        return token
    return _store_token
