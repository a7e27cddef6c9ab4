"""
OAuth token lifecycle for the ad platform integrations.

Covers acquiring tokens through the Google and Facebook authorization-code flows,
storing them (encrypted, see OAuthToken), handing out a valid access token to the
platform adapters and refreshing expired Google tokens on the way.
"""
import requests
from datetime import datetime, timedelta
from flask import current_app
from authlib.integrations.base_client.errors import OAuthError
from sqlalchemy.exc import SQLAlchemyError

from extensions import db, oauth
from models import OAuthToken, PlatformConnection, PlatformNameEnum, OAUTH_PLATFORMS
from services.exceptions import TokenNotFoundError, TokenExpiredError, OAuthExchangeError

# Scopes requested from Google: the Ads API plus basic profile info of the account owner.
GOOGLE_ADS_SCOPES = [
    'https://www.googleapis.com/auth/adwords',
    'https://www.googleapis.com/auth/userinfo.email',
    'https://www.googleapis.com/auth/userinfo.profile',
]

# Scopes requested from Facebook for the Marketing API.
FACEBOOK_ADS_SCOPES = [
    'public_profile',
    'email',
    'ads_management',
    'ads_read',
]

# Timeout (seconds) for direct calls to token endpoints.
TOKEN_REQUEST_TIMEOUT = 30

def as_platform(platform):
    """Coerces a platform id ('google') or PlatformNameEnum member to PlatformNameEnum. Raises ValueError for unknown ids."""
    if isinstance(platform, PlatformNameEnum):
        return platform
    return PlatformNameEnum(platform)

# --- Authorization URLs ---

def _authorization_url(client, redirect_uri):
    # Same steps as authorize_redirect(), but the URL is returned to the frontend
    # instead of redirecting. The state is kept in the session for the callback.
    rv = client.create_authorization_url(redirect_uri)
    client.save_authorize_data(redirect_uri=redirect_uri, **rv)
    return rv['url']

def get_google_auth_url(redirect_uri):
    """
    Builds the Google consent URL for Ads API access.
    `access_type=offline` and `prompt=consent` are set on the registered client, so
    Google always returns a refresh token, even when the user connected before.
    """
    return _authorization_url(oauth.google_ads, redirect_uri)

def get_facebook_auth_url(redirect_uri):
    """Builds the Facebook login dialog URL for Marketing API access."""
    return _authorization_url(oauth.facebook_ads, redirect_uri)

# --- Code exchange ---

def exchange_google_code():
    """
    Exchanges the authorization code of the current callback request for Google tokens.

    Returns:
        dict: The token set (access_token, refresh_token, expires_in/expires_at, scope, id_token, ...).

    Raises:
        OAuthExchangeError: If Google rejects the code or the state does not match.
    """
    try:
        return oauth.google_ads.authorize_access_token()
    except OAuthError as e:
        raise OAuthExchangeError(f"Failed to exchange Google code: {e.error} - {e.description}") from e

def exchange_facebook_code():
    """
    Exchanges the authorization code of the current callback request for a long-lived Facebook token.

    Facebook first returns a short-lived token (about an hour); it is immediately traded in
    for a long-lived one (about 60 days) through the `fb_exchange_token` grant. Facebook
    issues no refresh token, so the user has to reconnect once the long-lived token expires.

    Returns:
        dict: {'access_token', 'token_type': 'bearer', 'expires_in'}

    Raises:
        OAuthExchangeError: If either exchange fails.
    """
    try:
        short_lived = oauth.facebook_ads.authorize_access_token()
    except OAuthError as e:
        raise OAuthExchangeError(f"Failed to exchange Facebook code: {e.error} - {e.description}") from e

    api_version = current_app.config['FACEBOOK_GRAPH_API_VERSION']
    exchange_url = f"https://graph.facebook.com/{api_version}/oauth/access_token"
    params = {
        'grant_type': 'fb_exchange_token',
        'client_id': current_app.config['FACEBOOK_APP_ID'],
        'client_secret': current_app.config['FACEBOOK_APP_SECRET'],
        'fb_exchange_token': short_lived.get('access_token'),
    }
    try:
        response = requests.get(exchange_url, params=params, timeout=TOKEN_REQUEST_TIMEOUT)
        response.raise_for_status()
        token_data = response.json()
    except requests.exceptions.RequestException as e:
        raise OAuthExchangeError(f"Failed to get long-lived token: {e}") from e

    if not token_data.get('access_token'):
        raise OAuthExchangeError(f"Failed to get long-lived token: response did not contain 'access_token'.")

    return {
        'access_token': token_data['access_token'],
        'token_type': 'bearer',
        'expires_in': token_data.get('expires_in'),
    }

def refresh_google_token(refresh_token):
    """
    Trades a Google refresh token for a new access token.

    Google's refresh response carries no new refresh token; save_oauth_token keeps the stored one.

    Raises:
        OAuthExchangeError: If the token endpoint rejects the refresh token or is unreachable.
    """
    data = {
        'grant_type': 'refresh_token',
        'refresh_token': refresh_token,
        'client_id': current_app.config['GOOGLE_ADS_CLIENT_ID'],
        'client_secret': current_app.config['GOOGLE_ADS_CLIENT_SECRET'],
    }
    try:
        response = requests.post(current_app.config['GOOGLE_TOKEN_URL'], data=data, timeout=TOKEN_REQUEST_TIMEOUT)
        response.raise_for_status()
        credentials = response.json()
    except requests.exceptions.RequestException as e:
        raise OAuthExchangeError(f"Failed to refresh Google access token: {e}") from e

    if not credentials.get('access_token'):
        raise OAuthExchangeError("Failed to refresh Google access token: response did not contain 'access_token'.")
    return credentials

# --- Storage ---

def _token_expiry(tokens):
    # Authlib token sets carry an absolute 'expires_at' (epoch seconds); raw
    # token endpoint responses only carry a relative 'expires_in'.
    if tokens.get('expires_at'):
        return datetime.utcfromtimestamp(int(tokens['expires_at']))
    if tokens.get('expires_in'):
        return datetime.utcnow() + timedelta(seconds=int(tokens['expires_in']))
    return None

def save_oauth_token(user_id, platform, tokens):
    """
    Creates or updates the OAuthToken row of a user for a platform.

    Args:
        user_id (int): Owner of the token.
        platform (str or PlatformNameEnum): The platform the token belongs to.
        tokens (dict): A token set with at least 'access_token'. 'refresh_token',
                       'token_type', 'expires_at'/'expires_in' and 'scope' are optional.

    Returns:
        OAuthToken: The saved row.
    """
    platform = as_platform(platform)
    token = OAuthToken.query.filter_by(user_id=user_id, platform=platform).first()
    if token is None:
        token = OAuthToken(user_id=user_id, platform=platform)
        db.session.add(token)

    token.access_token = tokens['access_token'] # Setter handles encryption.
    if tokens.get('refresh_token'): # Keep the stored refresh token when none was issued this time.
        token.refresh_token = tokens['refresh_token']
    token.token_type = tokens.get('token_type') or 'bearer'
    token.expires_at = _token_expiry(tokens)

    scope = tokens.get('scope')
    if isinstance(scope, (list, tuple)):
        scope = ' '.join(scope)
    if scope:
        token.scope = scope
    token.updated_at = datetime.utcnow()

    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.error(f"Error saving {platform.value} OAuth token for user {user_id}.", exc_info=True)
        raise

    current_app.logger.info(f"Saved {platform.value} OAuth token for user {user_id} (expires at {token.expires_at}).")
    return token

def get_valid_oauth_token(user_id, platform):
    """
    Returns a usable access token for a user and platform, refreshing it if needed.

    An expired Google token is refreshed with the stored refresh token and saved.
    An expired Facebook token cannot be refreshed; the user has to reconnect.

    Returns:
        dict: {'access_token': str, 'token_type': str}

    Raises:
        TokenNotFoundError: If the user never connected the platform.
        TokenExpiredError: If the token expired and cannot be refreshed.
        OAuthExchangeError: If the refresh request fails.
    """
    platform = as_platform(platform)
    token = OAuthToken.query.filter_by(user_id=user_id, platform=platform).first()
    if token is None:
        raise TokenNotFoundError(user_id, platform.value)

    if token.is_expired():
        refresh_token = token.refresh_token
        if platform == PlatformNameEnum.GOOGLE and refresh_token:
            current_app.logger.info(f"Google access token for user {user_id} expired at {token.expires_at}; refreshing.")
            credentials = refresh_google_token(refresh_token)
            save_oauth_token(user_id, platform, credentials)
            return {
                'access_token': credentials['access_token'],
                'token_type': credentials.get('token_type') or 'bearer',
            }
        current_app.logger.warning(f"{platform.value} access token for user {user_id} expired at {token.expires_at} and cannot be refreshed.")
        raise TokenExpiredError(platform.value)

    return {
        'access_token': token.access_token,
        'token_type': token.token_type,
    }

# --- Connections ---

def mark_platform_connected(user_id, platform, credentials=None):
    """Creates or updates the user's PlatformConnection for a platform as connected."""
    platform = as_platform(platform)
    connection = PlatformConnection.query.filter_by(user_id=user_id, platform=platform.value).first()
    if connection is None:
        connection = PlatformConnection(user_id=user_id, platform=platform.value)
        db.session.add(connection)
    connection.connected = True
    connection.credentials = credentials or {}
    db.session.commit()
    return connection

def disconnect_platform(user_id, platform):
    """
    Forgets the user's tokens for a platform and marks the connection as disconnected.

    Returns:
        bool: True if a token or connection existed.
    """
    platform = as_platform(platform)
    found = False
    token = OAuthToken.query.filter_by(user_id=user_id, platform=platform).first()
    if token is not None:
        db.session.delete(token)
        found = True
    connection = PlatformConnection.query.filter_by(user_id=user_id, platform=platform.value).first()
    if connection is not None:
        connection.connected = False
        connection.credentials = {}
        found = True
    db.session.commit()
    if found:
        current_app.logger.info(f"User {user_id} disconnected {platform.value}.")
    return found

def get_integration_status(user_id):
    """
    Reports, per OAuth platform, whether the user has a token and whether it has expired.

    Returns:
        dict: {'google': {'connected': bool, 'token_expired': bool}, 'facebook': {...}}
    """
    status = {p.value: {'connected': False, 'token_expired': False} for p in OAUTH_PLATFORMS}
    now = datetime.utcnow()
    for token in OAuthToken.query.filter_by(user_id=user_id).all():
        if token.platform.value not in status:
            continue
        status[token.platform.value]['connected'] = True
        status[token.platform.value]['token_expired'] = token.is_expired(now)
    return status
