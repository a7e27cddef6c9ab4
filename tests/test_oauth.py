import pytest
import requests
from datetime import datetime, timedelta
from authlib.integrations.base_client.errors import OAuthError

from models import OAuthToken, PlatformConnection, PlatformNameEnum
from services.exceptions import TokenNotFoundError, TokenExpiredError, OAuthExchangeError
from services.oauth import (
    save_oauth_token, get_valid_oauth_token, refresh_google_token, exchange_google_code,
    exchange_facebook_code, mark_platform_connected, disconnect_platform, get_integration_status,
)

def _response(mocker, payload, status_code=200):
    response = mocker.Mock(status_code=status_code)
    response.json.return_value = payload
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(f"{status_code} Error")
    return response

# --- save_oauth_token ---

def test_save_oauth_token_creates_row(db, user):
    token = save_oauth_token(user.id, 'google', {
        'access_token': 'ya29.first',
        'refresh_token': '1//refresh',
        'expires_in': 3600,
        'scope': ['adwords', 'email'],
    })

    assert token.access_token == 'ya29.first'
    assert token.refresh_token == '1//refresh'
    assert token.token_type == 'bearer'
    assert token.scope == 'adwords email'
    assert token.expires_at > datetime.utcnow() + timedelta(minutes=59)

def test_save_oauth_token_upserts_and_keeps_refresh_token(db, user):
    save_oauth_token(user.id, PlatformNameEnum.GOOGLE, {'access_token': 'old', 'refresh_token': 'keep-me', 'scope': 'adwords'})
    save_oauth_token(user.id, PlatformNameEnum.GOOGLE, {'access_token': 'new', 'token_type': 'Bearer', 'expires_in': 60})

    tokens = OAuthToken.query.filter_by(user_id=user.id).all()
    assert len(tokens) == 1
    assert tokens[0].access_token == 'new'
    assert tokens[0].refresh_token == 'keep-me'
    assert tokens[0].token_type == 'Bearer'
    assert tokens[0].scope == 'adwords'

def test_save_oauth_token_prefers_absolute_expiry(db, user):
    expires_at = datetime(2030, 1, 1, 12, 0)
    timestamp = (expires_at - datetime(1970, 1, 1)).total_seconds()
    token = save_oauth_token(user.id, 'facebook', {'access_token': 'fb', 'expires_at': timestamp, 'expires_in': 10})
    assert token.expires_at == expires_at

def test_save_oauth_token_without_lifetime_never_expires(db, user):
    token = save_oauth_token(user.id, 'facebook', {'access_token': 'fb'})
    assert token.expires_at is None
    assert token.is_expired() is False

# --- get_valid_oauth_token ---

def test_get_valid_oauth_token_returns_stored_token(db, user, store_token):
    store_token(user, 'facebook', access_token='fb-valid')
    assert get_valid_oauth_token(user.id, 'facebook') == {'access_token': 'fb-valid', 'token_type': 'bearer'}

def test_get_valid_oauth_token_missing(db, user):
    with pytest.raises(TokenNotFoundError):
        get_valid_oauth_token(user.id, 'google')

def test_get_valid_oauth_token_refreshes_expired_google_token(mocker, app, db, user, store_token):
    store_token(user, 'google', access_token='expired', refresh_token='1//refresh', expires_in=-60)
    mock_post = mocker.patch('services.oauth.requests.post',
                             return_value=_response(mocker, {'access_token': 'fresh', 'expires_in': 3599, 'token_type': 'Bearer'}))

    result = get_valid_oauth_token(user.id, 'google')

    assert result == {'access_token': 'fresh', 'token_type': 'Bearer'}
    args, kwargs = mock_post.call_args
    assert args[0] == app.config['GOOGLE_TOKEN_URL']
    assert kwargs['data']['grant_type'] == 'refresh_token'
    assert kwargs['data']['refresh_token'] == '1//refresh'

    stored = OAuthToken.query.filter_by(user_id=user.id).one()
    assert stored.access_token == 'fresh'
    assert stored.refresh_token == '1//refresh'
    assert not stored.is_expired()

def test_get_valid_oauth_token_expired_google_without_refresh_token(mocker, db, user, store_token):
    store_token(user, 'google', expires_in=-60)
    mock_post = mocker.patch('services.oauth.requests.post')
    with pytest.raises(TokenExpiredError):
        get_valid_oauth_token(user.id, 'google')
    mock_post.assert_not_called()

def test_get_valid_oauth_token_expired_facebook(db, user, store_token):
    store_token(user, 'facebook', expires_in=-1)
    with pytest.raises(TokenExpiredError) as exc_info:
        get_valid_oauth_token(user.id, 'facebook')
    assert "Facebook token has expired" in str(exc_info.value)

def test_refresh_google_token_failure(mocker, app_context):
    mocker.patch('services.oauth.requests.post', return_value=_response(mocker, {'error': 'invalid_grant'}, 400))
    with pytest.raises(OAuthExchangeError):
        refresh_google_token('revoked')

def test_refresh_google_token_without_access_token(mocker, app_context):
    mocker.patch('services.oauth.requests.post', return_value=_response(mocker, {'expires_in': 3599}))
    with pytest.raises(OAuthExchangeError):
        refresh_google_token('1//refresh')

# --- Code exchange ---

def test_exchange_google_code_wraps_oauth_error(mocker, app_context):
    mocker.patch('services.oauth.oauth.google_ads.authorize_access_token',
                 side_effect=OAuthError(error='invalid_grant', description='Bad code'))
    with pytest.raises(OAuthExchangeError) as exc_info:
        exchange_google_code()
    assert 'invalid_grant' in str(exc_info.value)

def test_exchange_facebook_code_gets_long_lived_token(mocker, app, app_context):
    mocker.patch('services.oauth.oauth.facebook_ads.authorize_access_token',
                 return_value={'access_token': 'short-lived', 'expires_in': 3600})
    mock_get = mocker.patch('services.oauth.requests.get',
                            return_value=_response(mocker, {'access_token': 'long-lived', 'expires_in': 5183944}))

    tokens = exchange_facebook_code()

    assert tokens == {'access_token': 'long-lived', 'token_type': 'bearer', 'expires_in': 5183944}
    args, kwargs = mock_get.call_args
    assert args[0] == f"https://graph.facebook.com/{app.config['FACEBOOK_GRAPH_API_VERSION']}/oauth/access_token"
    assert kwargs['params']['grant_type'] == 'fb_exchange_token'
    assert kwargs['params']['fb_exchange_token'] == 'short-lived'
    assert kwargs['params']['client_id'] == 'test-facebook-app-id'

def test_exchange_facebook_code_long_lived_failure(mocker, app_context):
    mocker.patch('services.oauth.oauth.facebook_ads.authorize_access_token', return_value={'access_token': 'short-lived'})
    mocker.patch('services.oauth.requests.get', return_value=_response(mocker, {'error': {'message': 'bad'}}, 400))
    with pytest.raises(OAuthExchangeError):
        exchange_facebook_code()

# --- Connections and status ---

def test_mark_connected_and_disconnect(db, user, store_token):
    store_token(user, 'google')
    connection = mark_platform_connected(user.id, 'google', {'token_id': 'id-token'})
    assert connection.connected is True
    assert connection.credentials == {'token_id': 'id-token'}

    # Reconnecting updates the same row.
    mark_platform_connected(user.id, 'google')
    assert PlatformConnection.query.filter_by(user_id=user.id).count() == 1

    assert disconnect_platform(user.id, 'google') is True
    assert OAuthToken.query.filter_by(user_id=user.id).count() == 0
    connection = PlatformConnection.query.filter_by(user_id=user.id, platform='google').one()
    assert connection.connected is False
    assert connection.credentials == {}

    assert disconnect_platform(user.id, 'facebook') is False

def test_get_integration_status(db, user, store_token):
    assert get_integration_status(user.id) == {
        'google': {'connected': False, 'token_expired': False},
        'facebook': {'connected': False, 'token_expired': False},
    }

    store_token(user, 'google')
    store_token(user, 'facebook', expires_in=-10)

    assert get_integration_status(user.id) == {
        'google': {'connected': True, 'token_expired': False},
        'facebook': {'connected': True, 'token_expired': True},
    }
