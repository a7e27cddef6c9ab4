import enum
from datetime import datetime
from extensions import db

class CampaignTypeEnum(enum.Enum):
    """Creative format of a campaign."""
    AUDIO = 'audio'
    VISUAL = 'visual'
    TEXT = 'text'
    MULTI_FORMAT = 'multi-format'

class CampaignStatusEnum(enum.Enum):
    """Lifecycle status of a campaign."""
    ACTIVE = 'active'
    PAUSED = 'paused'
    SCHEDULED = 'scheduled'
    COMPLETED = 'completed'

class AdTypeEnum(enum.Enum):
    """Format of a single ad creative. Ads are never 'multi-format'."""
    AUDIO = 'audio'
    VISUAL = 'visual'
    TEXT = 'text'

class Campaign(db.Model):
    """
    A named advertising effort owned by a user.

    `type` and `status` hold the string values of CampaignTypeEnum and CampaignStatusEnum.
    `platforms` is a JSON list of platform ids (see PlatformNameEnum) the campaign targets;
    publishing iterates over it.
    """
    __tablename__ = 'campaigns'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    type = db.Column(db.String(20), nullable=False)
    status = db.Column(db.String(20), nullable=False, index=True)
    # Target platform ids, e.g. ["google", "facebook"]. JSON keeps it portable across PostgreSQL and SQLite.
    platforms = db.Column(db.JSON, nullable=False, default=list)
    performance = db.Column(db.Integer, nullable=True) # Score, percentage 0-100.
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # --- Relationships ---
    # Everything hanging off a campaign goes with it when the campaign is deleted.
    ads = db.relationship('Ad', backref='campaign', lazy='dynamic', cascade='all, delete-orphan')
    analytics = db.relationship('Analytics', backref='campaign', lazy='dynamic', cascade='all, delete-orphan')
    platform_campaigns = db.relationship('PlatformCampaign', backref='campaign', lazy='dynamic', cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'name': self.name,
            'type': self.type,
            'status': self.status,
            'platforms': list(self.platforms or []),
            'performance': self.performance,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<Campaign {self.id} "{self.name}" ({self.type}, {self.status})>'

class Ad(db.Model):
    """
    One ad creative of a campaign.

    `content` is a free-form JSON payload whose shape depends on the ad type
    (an audio script, a headline/url/body triple, an image prompt and URL, ...).
    """
    __tablename__ = 'ads'

    id = db.Column(db.Integer, primary_key=True)
    campaign_id = db.Column(db.Integer, db.ForeignKey('campaigns.id'), nullable=False, index=True)
    # Denormalized owner, so a user's ads can be listed without joining campaigns.
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    type = db.Column(db.String(20), nullable=False)
    content = db.Column(db.JSON, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'campaign_id': self.campaign_id,
            'user_id': self.user_id,
            'type': self.type,
            'content': self.content,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<Ad {self.id} campaign={self.campaign_id} ({self.type})>'

class Analytics(db.Model):
    """Campaign-level engagement counters recorded for a point in time."""
    __tablename__ = 'analytics'

    id = db.Column(db.Integer, primary_key=True)
    campaign_id = db.Column(db.Integer, db.ForeignKey('campaigns.id'), nullable=False, index=True)
    impressions = db.Column(db.Integer, default=0)
    clicks = db.Column(db.Integer, default=0)
    conversions = db.Column(db.Integer, default=0)
    date = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    def to_dict(self):
        return {
            'id': self.id,
            'campaign_id': self.campaign_id,
            'impressions': self.impressions or 0,
            'clicks': self.clicks or 0,
            'conversions': self.conversions or 0,
            'date': self.date.isoformat() if self.date else None,
        }

    def __repr__(self):
        return f'<Analytics campaign={self.campaign_id} date={self.date}>'
