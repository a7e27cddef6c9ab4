from models import PlatformNameEnum
from .base import PlatformAdapter
from .google_ads import GoogleAdsAdapter
from .facebook_ads import FacebookAdsAdapter

ADAPTERS = {
    PlatformNameEnum.GOOGLE: GoogleAdsAdapter(),
    PlatformNameEnum.FACEBOOK: FacebookAdsAdapter(),
}

def get_adapter(platform):
    """Returns the adapter for a platform id or PlatformNameEnum member, or None if the platform has no integration."""
    if not isinstance(platform, PlatformNameEnum):
        try:
            platform = PlatformNameEnum(platform)
        except ValueError:
            return None
    return ADAPTERS.get(platform)
