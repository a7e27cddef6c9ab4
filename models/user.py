from datetime import datetime
from extensions import db
import bcrypt
from flask_login import UserMixin # For Flask-Login integration (e.g., current_user).

class User(db.Model, UserMixin):
    """
    Represents a dashboard user.

    Users log in with a username and password; the password is stored as a bcrypt hash.
    A user owns campaigns, ads, platform connections and OAuth tokens. UserMixin provides
    the methods Flask-Login needs (is_authenticated, get_id, ...).
    """
    __tablename__ = 'users'

    # --- Basic User Information ---
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False, index=True) # Login name.
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(128), nullable=False)
    full_name = db.Column(db.String(100), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # --- Relationships ---
    # 'lazy=dynamic' keeps these as queries, so listing a user's campaigns can still be filtered/ordered.
    campaigns = db.relationship('Campaign', backref='user', lazy='dynamic', cascade='all, delete-orphan')
    platform_connections = db.relationship('PlatformConnection', backref='user', lazy='dynamic', cascade='all, delete-orphan')
    oauth_tokens = db.relationship('OAuthToken', backref='user', lazy='dynamic', cascade='all, delete-orphan')

    def set_password(self, password):
        """
        Hashes the provided password and stores it in `password_hash`.

        Args:
            password (str): The plain-text password to hash.
        """
        # bcrypt generates the salt itself; the hash is stored as text.
        self.password_hash = bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt()).decode('utf-8')

    def check_password(self, password):
        """
        Verifies a plain-text password against the stored hash.

        Returns:
            bool: True if the password matches, False otherwise (including when no hash is set).
        """
        if self.password_hash:
            return bcrypt.checkpw(password.encode('utf-8'), self.password_hash.encode('utf-8'))
        return False

    def to_dict(self):
        """Public representation of the user. Never includes the password hash."""
        return {
            'id': self.id,
            'username': self.username,
            'email': self.email,
            'full_name': self.full_name,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<User {self.username}>'
