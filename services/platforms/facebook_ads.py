import random
from datetime import datetime, time

from models import PlatformNameEnum
from .base import PlatformAdapter, to_date

# Campaign type -> Facebook campaign objective.
OBJECTIVES = {
    'audio': 'BRAND_AWARENESS',
    'visual': 'CONVERSIONS',
    'text': 'TRAFFIC',
    'multi-format': 'REACH',
}

def format_facebook_time(value):
    """Facebook takes ISO-8601 start/end times; dates start at midnight UTC."""
    value = to_date(value)
    if value is None:
        return None
    return datetime.combine(value, time.min).isoformat() + 'Z'

def map_to_facebook_ads_format(settings):
    """Maps campaign settings (budget in cents) to a Facebook Marketing API campaign payload."""
    return {
        'name': settings.get('name'),
        'status': 'ACTIVE' if settings.get('status') == 'active' else 'PAUSED',
        'objective': OBJECTIVES.get(settings.get('type'), 'REACH'),
        'special_ad_categories': [],
        'daily_budget': (settings.get('budget') or 0) / 100, # Dollars
        'start_time': format_facebook_time(settings.get('start_date')),
        'end_time': format_facebook_time(settings.get('end_date')),
    }

class FacebookAdsAdapter(PlatformAdapter):
    platform = PlatformNameEnum.FACEBOOK
    id_prefix = 'fbads'

    def map_settings(self, settings):
        return map_to_facebook_ads_format(settings)

    def generate_metrics(self):
        metrics = self._random_metrics(
            max_impressions=15000, max_clicks=800, max_conversions=75,
            max_ctr=6, max_cpc=1.5, max_spend=12000,
        )
        other_metrics = {
            'frequency': f"{random.random() * 5:.1f}",
            'social_impressions': random.randrange(5000),
            'reach': random.randrange(20000),
        }
        return metrics, other_metrics
