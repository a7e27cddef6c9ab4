import enum
from datetime import datetime
from extensions import db
from utils.security import encrypt_token, decrypt_token # For encrypting/decrypting tokens.

class PlatformNameEnum(enum.Enum):
    """
    Enumeration of advertising platform ids.
    The values are the ids used in Campaign.platforms and in the API URLs.
    """
    GOOGLE = 'google'     # Google Ads.
    FACEBOOK = 'facebook' # Facebook (Meta) Ads.
    SPOTIFY = 'spotify'   # Spotify Ad Studio. Targetable, but has no OAuth integration or publish adapter.

# Platforms with an OAuth integration and a publish adapter.
OAUTH_PLATFORMS = (PlatformNameEnum.GOOGLE, PlatformNameEnum.FACEBOOK)

class OAuthToken(db.Model):
    """
    OAuth credentials a user granted for one ad platform.

    There is at most one row per (user, platform); reconnecting a platform updates it.
    Both tokens are encrypted at rest with the application's Fernet key. The
    `access_token` and `refresh_token` properties hide the encryption from callers.
    """
    __tablename__ = 'oauth_tokens'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    platform = db.Column(db.Enum(PlatformNameEnum), nullable=False, index=True)

    # --- Token Management (Encrypted) ---
    access_token_encrypted = db.Column(db.Text, nullable=False)
    # Only Google issues refresh tokens; Facebook long-lived tokens must be re-authorized on expiry.
    refresh_token_encrypted = db.Column(db.Text, nullable=True)
    token_type = db.Column(db.String(40), nullable=True, default='bearer')
    # Absolute expiry of the access token (naive UTC). Null when the provider gave no lifetime.
    expires_at = db.Column(db.DateTime, nullable=True)
    # Granted scopes, space separated.
    scope = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint('user_id', 'platform', name='uq_oauth_token_user_platform'),
    )

    @property
    def access_token(self):
        """Decrypted access token, or None if none is stored."""
        if self.access_token_encrypted:
            return decrypt_token(self.access_token_encrypted)
        return None

    @access_token.setter
    def access_token(self, value):
        if value:
            self.access_token_encrypted = encrypt_token(value)
        else:
            self.access_token_encrypted = None

    @property
    def refresh_token(self):
        """Decrypted refresh token, or None if none is stored."""
        if self.refresh_token_encrypted:
            return decrypt_token(self.refresh_token_encrypted)
        return None

    @refresh_token.setter
    def refresh_token(self, value):
        self.refresh_token_encrypted = encrypt_token(value)

    def is_expired(self, now=None):
        """
        True when the access token has a known expiry that lies in the past.
        Tokens without an expiry never count as expired.
        """
        if self.expires_at is None:
            return False
        return (now or datetime.utcnow()) > self.expires_at

    def __repr__(self):
        return f'<OAuthToken UserID:{self.user_id} - Platform:{self.platform.value} - Expires:{self.expires_at}>'
