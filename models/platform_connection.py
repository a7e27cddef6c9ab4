from datetime import datetime
from extensions import db

class PlatformConnection(db.Model):
    """
    Per-user flag recording whether an ad platform is linked.

    `platform` holds a PlatformNameEnum value as a plain string, since connections can
    also be created by hand for platforms without an OAuth integration (e.g. 'spotify').
    `credentials` keeps non-secret connection details such as the Google id token.
    """
    __tablename__ = 'platform_connections'
    __table_args__ = (
        db.UniqueConstraint('user_id', 'platform', name='uq_platform_connection_user_platform'),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    platform = db.Column(db.String(50), nullable=False, index=True)
    connected = db.Column(db.Boolean, nullable=False, default=False)
    credentials = db.Column(db.JSON, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'platform': self.platform,
            'connected': bool(self.connected),
            'credentials': self.credentials,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<PlatformConnection UserID:{self.user_id} - Platform:{self.platform} - Connected:{self.connected}>'
