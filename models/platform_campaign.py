from datetime import datetime
from extensions import db
from .oauth_token import PlatformNameEnum # Platform ids shared with OAuth tokens.

class PlatformCampaign(db.Model):
    """
    The counterpart of a local Campaign on an external ad platform.

    Created when a campaign is published to a platform. `platform_campaign_id` is the id
    the platform assigned; `platform_data` keeps the settings that were pushed (name, type,
    target audience, creative details, start/end dates and the mapped API payload).
    """
    __tablename__ = 'platform_campaigns'
    __table_args__ = (
        db.UniqueConstraint('platform', 'platform_campaign_id', name='uq_platform_campaign_external_id'),
    )

    id = db.Column(db.Integer, primary_key=True)
    campaign_id = db.Column(db.Integer, db.ForeignKey('campaigns.id'), nullable=False, index=True)
    platform = db.Column(db.Enum(PlatformNameEnum), nullable=False, index=True)
    platform_campaign_id = db.Column(db.String(255), nullable=False, index=True) # External id, e.g. "gads-123456".
    status = db.Column(db.String(20), nullable=False)
    published_at = db.Column(db.DateTime, nullable=True)
    budget = db.Column(db.Integer, nullable=True) # Daily budget in cents.
    platform_data = db.Column(db.JSON, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # --- Relationships ---
    # Performance rows are a time series per platform campaign.
    performance_data = db.relationship('PerformanceData', backref='platform_campaign', lazy='dynamic',
                                       cascade='all, delete-orphan', order_by='PerformanceData.date')

    def to_dict(self):
        return {
            'id': self.id,
            'campaign_id': self.campaign_id,
            'platform': self.platform.value,
            'platform_campaign_id': self.platform_campaign_id,
            'status': self.status,
            'published_at': self.published_at.isoformat() if self.published_at else None,
            'budget': self.budget,
            'platform_data': self.platform_data,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f'<PlatformCampaign {self.platform.value}:{self.platform_campaign_id} (Campaign {self.campaign_id})>'

class PerformanceData(db.Model):
    """
    One snapshot of metrics pulled from an ad platform for a PlatformCampaign.

    `spend` is in cents. `ctr` and `cpc` are stored pre-formatted for display
    (e.g. "2.41%" and "$0.87"), exactly as reported by the platform adapter.
    """
    __tablename__ = 'performance_data'

    id = db.Column(db.Integer, primary_key=True)
    # References PlatformCampaign.id (our row), not the external platform id.
    platform_campaign_id = db.Column(db.Integer, db.ForeignKey('platform_campaigns.id'), nullable=False, index=True)
    date = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    # --- Core Performance Metrics ---
    impressions = db.Column(db.Integer, default=0)
    clicks = db.Column(db.Integer, default=0)
    conversions = db.Column(db.Integer, default=0)
    ctr = db.Column(db.String(20), nullable=True)
    cpc = db.Column(db.String(20), nullable=True)
    spend = db.Column(db.Integer, default=0)
    # Platform-specific extras (reach, frequency, view rate, ...).
    other_metrics = db.Column(db.JSON, nullable=True)

    def to_dict(self):
        return {
            'id': self.id,
            'platform_campaign_id': self.platform_campaign_id,
            'date': self.date.isoformat() if self.date else None,
            'impressions': self.impressions or 0,
            'clicks': self.clicks or 0,
            'conversions': self.conversions or 0,
            'ctr': self.ctr,
            'cpc': self.cpc,
            'spend': self.spend or 0,
            'other_metrics': self.other_metrics,
        }

    def __repr__(self):
        return f'<PerformanceData PlatformCampaign:{self.platform_campaign_id} - Date:{self.date}>'
