import random
from abc import ABC, abstractmethod
from datetime import date, datetime
from flask import current_app

from extensions import db
from models import Campaign, PlatformCampaign, PerformanceData
from services.exceptions import PlatformCampaignNotFoundError
from services.oauth import get_valid_oauth_token

# Settings kept in PlatformCampaign.platform_data. `creative_assets` is stored as `creative_details`.
PLATFORM_DATA_KEYS = ('name', 'type', 'target_audience', 'creative_assets', 'start_date', 'end_date')

def to_date(value):
    """Accepts a date, datetime or ISO-8601 string (as stored in platform_data) and returns a date, or None."""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.fromisoformat(str(value).replace('Z', '+00:00')).date()

def _storable(value):
    # platform_data is a JSON column.
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value

class PlatformAdapter(ABC):
    """
    Publishes campaigns to one ad platform and pulls their metrics back.

    Subclasses set `platform` and `id_prefix` and provide the settings mapping and
    the metrics source. The platform API calls themselves are mocked: external ids
    and metrics are generated locally, but every call still requires a valid OAuth
    token for the user, exactly as a real call would.
    """
    platform = None # PlatformNameEnum member
    id_prefix = None # Prefix of the generated external campaign ids, e.g. "gads"

    @abstractmethod
    def map_settings(self, settings):
        """Maps campaign settings to the platform's campaign API payload."""

    @abstractmethod
    def generate_metrics(self):
        """Returns (metrics, other_metrics) for one performance snapshot."""

    def _submit_campaign(self, access_token, payload):
        # Stand-in for the platform's "create campaign" call.
        return self._new_campaign_id()

    def _new_campaign_id(self):
        # External ids are unique per platform.
        while True:
            external_id = f"{self.id_prefix}-{random.randrange(1000000)}"
            taken = PlatformCampaign.query.filter_by(platform=self.platform, platform_campaign_id=external_id).first()
            if taken is None:
                return external_id
            current_app.logger.debug(f"{self.platform.value} campaign id {external_id} already in use; generating another.")

    def _get_platform_campaign(self, user_id, platform_campaign_id):
        platform_campaign = (
            PlatformCampaign.query
            .join(Campaign, PlatformCampaign.campaign_id == Campaign.id)
            .filter(
                PlatformCampaign.platform == self.platform,
                PlatformCampaign.platform_campaign_id == platform_campaign_id,
                Campaign.user_id == user_id,
            )
            .first()
        )
        if platform_campaign is None:
            raise PlatformCampaignNotFoundError(platform_campaign_id)
        return platform_campaign

    def create_campaign(self, user_id, campaign_id, settings):
        """
        Creates the campaign on the platform and records it as a PlatformCampaign.

        Args:
            user_id (int): Owner of the campaign and of the OAuth token used.
            campaign_id (int): The local Campaign id.
            settings (dict): name, type, status, budget (cents), target_audience,
                             creative_assets, start_date, end_date.

        Returns:
            str: The platform's campaign id.
        """
        token = get_valid_oauth_token(user_id, self.platform)
        payload = self.map_settings(settings)
        external_id = self._submit_campaign(token['access_token'], payload)

        platform_campaign = PlatformCampaign(
            campaign_id=campaign_id,
            platform=self.platform,
            platform_campaign_id=external_id,
            status=settings.get('status'),
            budget=settings.get('budget'),
            published_at=datetime.utcnow(),
            platform_data={
                'name': settings.get('name'),
                'type': settings.get('type'),
                'target_audience': settings.get('target_audience'),
                'creative_details': settings.get('creative_assets'),
                'start_date': _storable(settings.get('start_date')),
                'end_date': _storable(settings.get('end_date')),
                'api_payload': payload,
            },
        )
        db.session.add(platform_campaign)
        db.session.commit()
        current_app.logger.info(f"Created {self.platform.value} campaign {external_id} for campaign {campaign_id} (user {user_id}).")
        return external_id

    def update_campaign(self, user_id, platform_campaign_id, settings):
        """Pushes changed settings to the platform. Settings left out (or empty) keep their stored value."""
        token = get_valid_oauth_token(user_id, self.platform)
        platform_campaign = self._get_platform_campaign(user_id, platform_campaign_id)

        platform_data = dict(platform_campaign.platform_data or {})
        for key in PLATFORM_DATA_KEYS:
            value = settings.get(key)
            if value is None or value == '':
                continue
            stored_key = 'creative_details' if key == 'creative_assets' else key
            platform_data[stored_key] = _storable(value)

        status = settings.get('status') or platform_campaign.status
        budget = settings.get('budget') or platform_campaign.budget
        payload = self.map_settings({
            'name': platform_data.get('name'),
            'type': platform_data.get('type'),
            'status': status,
            'budget': budget,
            'start_date': platform_data.get('start_date'),
            'end_date': platform_data.get('end_date'),
        })
        self._submit_update(token['access_token'], platform_campaign_id, payload)
        platform_data['api_payload'] = payload

        # Reassign so SQLAlchemy sees the JSON column change.
        platform_campaign.platform_data = platform_data
        platform_campaign.status = status
        platform_campaign.budget = budget
        platform_campaign.updated_at = datetime.utcnow()
        db.session.commit()
        current_app.logger.info(f"Updated {self.platform.value} campaign {platform_campaign_id} (user {user_id}).")

    def _submit_update(self, access_token, platform_campaign_id, payload):
        # Stand-in for the platform's "update campaign" call.
        pass

    def fetch_performance(self, user_id, platform_campaign_id):
        """
        Pulls the current metrics of a platform campaign and stores them as a PerformanceData row.

        Returns:
            dict: impressions, clicks, conversions, ctr ("x.xx%"), cpc ("$x.xx"), spend (cents).
        """
        get_valid_oauth_token(user_id, self.platform)
        platform_campaign = self._get_platform_campaign(user_id, platform_campaign_id)

        metrics, other_metrics = self.generate_metrics()
        db.session.add(PerformanceData(
            platform_campaign_id=platform_campaign.id,
            date=datetime.utcnow(),
            impressions=metrics['impressions'],
            clicks=metrics['clicks'],
            conversions=metrics['conversions'],
            ctr=metrics['ctr'],
            cpc=metrics['cpc'],
            spend=metrics['spend'],
            other_metrics=other_metrics,
        ))
        db.session.commit()
        current_app.logger.debug(f"Stored {self.platform.value} performance snapshot for {platform_campaign_id}: {metrics}")
        return metrics

    def _random_metrics(self, max_impressions, max_clicks, max_conversions, max_ctr, max_cpc, max_spend):
        return {
            'impressions': random.randrange(max_impressions),
            'clicks': random.randrange(max_clicks),
            'conversions': random.randrange(max_conversions),
            'ctr': f"{random.random() * max_ctr:.2f}%",
            'cpc': f"${random.random() * max_cpc:.2f}",
            'spend': random.randrange(max_spend), # Cents
        }
