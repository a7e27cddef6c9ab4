from cryptography.fernet import Fernet # Symmetric encryption for OAuth tokens at rest.
from flask import current_app

def get_fernet():
    """
    Returns the cipher for OAuth tokens, built from the FERNET_KEY setting.

    FERNET_KEY is a URL-safe base64-encoded 32-byte key, given as bytes or text.
    Losing or changing it makes every stored token unreadable, so users would have
    to reconnect their ad platforms.

    Raises:
        ValueError: If FERNET_KEY is not set.
    """
    key = current_app.config.get('FERNET_KEY')
    if not key:
        current_app.logger.critical("FERNET_KEY is not configured. OAuth tokens cannot be stored or read.")
        raise ValueError("FERNET_KEY is not configured. Set it in the environment before connecting ad platforms.")
    if isinstance(key, str):
        key = key.encode('utf-8')
    return Fernet(key)

def encrypt_token(token):
    """Encrypts an OAuth token for storage in a Text column. None stays None."""
    if token is None:
        return None
    return get_fernet().encrypt(token.encode('utf-8')).decode('utf-8')

def decrypt_token(encrypted_token):
    """
    Reverses encrypt_token. None stays None.

    Raises:
        cryptography.fernet.InvalidToken: If the value was not encrypted with the current key.
    """
    if encrypted_token is None:
        return None
    return get_fernet().decrypt(encrypted_token.encode('utf-8')).decode('utf-8')
