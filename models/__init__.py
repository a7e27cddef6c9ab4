from .user import User
from .campaign import Campaign, Ad, Analytics, CampaignTypeEnum, CampaignStatusEnum, AdTypeEnum
from .platform_connection import PlatformConnection
from .oauth_token import OAuthToken, PlatformNameEnum, OAUTH_PLATFORMS
from .platform_campaign import PlatformCampaign, PerformanceData
