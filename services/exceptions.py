class IntegrationError(Exception):
    """
    Base class for errors raised by the integration services.

    `status_code` is the HTTP status a route answers with when the error reaches it.
    """
    status_code = 500

class CampaignNotFoundError(IntegrationError):
    status_code = 404

    def __init__(self, campaign_id):
        super().__init__(f"Campaign not found: {campaign_id}")
        self.campaign_id = campaign_id

class CampaignAccessError(IntegrationError):
    status_code = 403

    def __init__(self, campaign_id):
        super().__init__("Unauthorized access to campaign")
        self.campaign_id = campaign_id

class PlatformCampaignNotFoundError(IntegrationError):
    status_code = 404

    def __init__(self, platform_campaign_id):
        super().__init__(f"Platform campaign not found: {platform_campaign_id}")
        self.platform_campaign_id = platform_campaign_id

class TokenNotFoundError(IntegrationError):
    """The user never connected the platform (or disconnected it)."""
    status_code = 400

    def __init__(self, user_id, platform):
        super().__init__(f"No {platform} OAuth token found for user {user_id}")
        self.user_id = user_id
        self.platform = platform

class TokenExpiredError(IntegrationError):
    """The access token expired and cannot be refreshed; the user must reauthorize."""
    status_code = 400

    def __init__(self, platform):
        super().__init__(f"{platform.capitalize()} token has expired. User must reauthorize.")
        self.platform = platform

class OAuthExchangeError(IntegrationError):
    """A token endpoint rejected a code exchange or refresh."""
    status_code = 502

class ContentGenerationError(Exception):
    """The generative content API call failed or returned something unusable."""
    status_code = 502
