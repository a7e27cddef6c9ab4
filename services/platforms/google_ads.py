import random

from models import PlatformNameEnum
from .base import PlatformAdapter, to_date

# Campaign type -> Google Ads advertising channel type.
CHANNEL_TYPES = {
    'audio': 'AUDIO',
    'visual': 'DISPLAY',
    'text': 'SEARCH',
    'multi-format': 'MULTI_CHANNEL',
}

def format_google_ads_date(value):
    """Google Ads dates are YYYYMMDD strings."""
    value = to_date(value)
    return value.strftime('%Y%m%d') if value else None

def map_to_google_ads_format(settings):
    """Maps campaign settings (budget in cents) to a Google Ads campaign payload."""
    name = settings.get('name')
    amount_micros = (settings.get('budget') or 0) * 10000 # 1 cent = 10,000 micros
    return {
        'name': name,
        'status': 'ENABLED' if settings.get('status') == 'active' else 'PAUSED',
        'campaign_budget': {
            'name': f"{name} Budget",
            'amount_micros': amount_micros,
            'delivery_method': 'STANDARD',
        },
        'advertising_channel_type': CHANNEL_TYPES.get(settings.get('type'), 'DISPLAY'),
        'start_date': format_google_ads_date(settings.get('start_date')),
        'end_date': format_google_ads_date(settings.get('end_date')),
    }

class GoogleAdsAdapter(PlatformAdapter):
    platform = PlatformNameEnum.GOOGLE
    id_prefix = 'gads'

    def map_settings(self, settings):
        return map_to_google_ads_format(settings)

    def generate_metrics(self):
        metrics = self._random_metrics(
            max_impressions=10000, max_clicks=500, max_conversions=50,
            max_ctr=5, max_cpc=2, max_spend=10000,
        )
        other_metrics = {
            'view_rate': f"{random.random() * 80:.2f}%",
            'avg_position_top': f"{random.random() * 10:.1f}",
        }
        return metrics, other_metrics
