"""
Publishes local campaigns to the connected ad platforms and collects their results.

Platforms are handled one after another through their adapter (see services.platforms).
There is no compensation: if one platform fails, campaigns already created on the
platforms before it stay in place and the error propagates to the caller.
"""
import copy
from datetime import datetime, timedelta
from flask import current_app

from extensions import db
from models import Ad, Campaign, CampaignStatusEnum, PerformanceData, PlatformCampaign
from services.exceptions import CampaignNotFoundError, CampaignAccessError
from services.platforms import get_adapter
from utils.helpers import format_ctr, format_cpc, rollup_daily_metrics

# Audience used for every published campaign until targeting is configurable per campaign.
DEFAULT_TARGET_AUDIENCE = {
    'age': [25, 45],
    'gender': ['male', 'female'],
    'interests': ['digital marketing', 'advertising'],
    'locations': ['United States'],
}

# Creative used for anything the campaign's ads do not provide.
PLACEHOLDER_CREATIVE = {
    'headline': 'Experience the Future of Advertising',
    'description': 'AI-powered ad creatives that drive engagement and conversions.',
    'image_url': 'https://example.com/ad-image.jpg',
}

# Campaign columns that an update may change locally.
CAMPAIGN_FIELDS = ('name', 'type', 'status', 'platforms', 'performance')

def get_owned_campaign(user_id, campaign_id):
    """Loads a campaign and checks that `user_id` owns it. Raises CampaignNotFoundError / CampaignAccessError."""
    campaign = db.session.get(Campaign, campaign_id)
    if campaign is None:
        raise CampaignNotFoundError(campaign_id)
    if campaign.user_id != user_id:
        raise CampaignAccessError(campaign_id)
    return campaign

def _creative_assets(campaign):
    creative = dict(PLACEHOLDER_CREATIVE)
    ad = campaign.ads.order_by(Ad.created_at.desc(), Ad.id.desc()).first()
    if ad is None or not isinstance(ad.content, dict):
        return creative

    content = ad.content
    ad_copy = content.get('ad_copy') if isinstance(content.get('ad_copy'), dict) else content
    found = {
        'headline': ad_copy.get('headline'),
        'description': ad_copy.get('body') or content.get('description') or content.get('script'),
        'image_url': content.get('image_url'),
    }
    creative.update({key: value for key, value in found.items() if value})
    return creative

def build_campaign_settings(campaign, budget=None):
    """
    Settings pushed to every platform when a campaign is published.

    Args:
        campaign (Campaign): The campaign being published.
        budget (int, optional): Daily budget in cents. Defaults to DEFAULT_CAMPAIGN_BUDGET_CENTS.
    """
    config = current_app.config
    start_date = datetime.utcnow().date()
    return {
        'name': campaign.name,
        'type': campaign.type,
        'status': campaign.status,
        'budget': budget if budget is not None else config['DEFAULT_CAMPAIGN_BUDGET_CENTS'],
        'target_audience': copy.deepcopy(DEFAULT_TARGET_AUDIENCE),
        'creative_assets': _creative_assets(campaign),
        'start_date': start_date,
        'end_date': start_date + timedelta(days=config['DEFAULT_CAMPAIGN_DURATION_DAYS']),
    }

def publish_campaign(user_id, campaign_id, platforms=None, budget=None):
    """
    Creates the campaign on each target platform.

    Args:
        user_id (int): The acting user; must own the campaign.
        campaign_id (int): The campaign to publish.
        platforms (list, optional): Platform ids to publish to. Defaults to the campaign's platforms.
        budget (int, optional): Daily budget in cents.

    Returns:
        dict: {platform_id: external campaign id} for every platform published to.
    """
    campaign = get_owned_campaign(user_id, campaign_id)
    settings = build_campaign_settings(campaign, budget)
    targets = platforms if platforms else (campaign.platforms or [])

    platform_ids = {}
    for platform in targets:
        adapter = get_adapter(platform)
        if adapter is None:
            current_app.logger.warning(f"Unsupported platform '{platform}' while publishing campaign {campaign_id}; skipped.")
            continue
        platform_ids[adapter.platform.value] = adapter.create_campaign(user_id, campaign.id, settings)

    if platform_ids and campaign.status != CampaignStatusEnum.ACTIVE.value:
        campaign.status = CampaignStatusEnum.ACTIVE.value
        db.session.commit()

    current_app.logger.info(f"User {user_id} published campaign {campaign_id} to {list(platform_ids) or 'no platforms'}.")
    return platform_ids

def update_campaign(user_id, campaign_id, settings):
    """
    Pushes new settings to every platform the campaign was published to, then updates
    the local campaign with the fields it has (name, type, status, platforms, performance).
    """
    campaign = get_owned_campaign(user_id, campaign_id)

    for platform_campaign in campaign.platform_campaigns.all():
        adapter = get_adapter(platform_campaign.platform)
        if adapter is None:
            current_app.logger.warning(f"Unsupported platform '{platform_campaign.platform.value}' while updating campaign {campaign_id}; skipped.")
            continue
        adapter.update_campaign(user_id, platform_campaign.platform_campaign_id, settings)

    for field in CAMPAIGN_FIELDS:
        if field in settings:
            setattr(campaign, field, settings[field])
    db.session.commit()
    current_app.logger.info(f"User {user_id} updated campaign {campaign_id}.")

def fetch_campaign_performance(user_id, campaign_id):
    """
    Pulls fresh metrics from every platform the campaign runs on.

    Returns:
        dict: {'aggregated': {impressions, clicks, conversions, spend, ctr, cpc},
               'platforms': {platform_id: metrics}}
              When a campaign runs twice on one platform, 'platforms' keeps the last one.
    """
    campaign = get_owned_campaign(user_id, campaign_id)
    aggregated = {'impressions': 0, 'clicks': 0, 'conversions': 0, 'spend': 0}
    per_platform = {}

    for platform_campaign in campaign.platform_campaigns.all():
        adapter = get_adapter(platform_campaign.platform)
        if adapter is None:
            current_app.logger.warning(f"Unsupported platform '{platform_campaign.platform.value}' while fetching performance of campaign {campaign_id}; skipped.")
            continue
        metrics = adapter.fetch_performance(user_id, platform_campaign.platform_campaign_id)
        per_platform[platform_campaign.platform.value] = metrics
        for key in aggregated:
            aggregated[key] += metrics.get(key) or 0

    aggregated['ctr'] = format_ctr(aggregated['clicks'], aggregated['impressions'])
    aggregated['cpc'] = format_cpc(aggregated['spend'], aggregated['clicks'])
    return {'aggregated': aggregated, 'platforms': per_platform}

def get_historical_performance(user_id, campaign_id, days=30):
    """
    Daily metrics of a campaign over the last `days` days, summed over all its platforms.

    Returns:
        list: See utils.helpers.rollup_daily_metrics. Empty when the campaign was never published.
    """
    campaign = get_owned_campaign(user_id, campaign_id)
    platform_campaign_ids = [pc.id for pc in campaign.platform_campaigns.all()]
    if not platform_campaign_ids:
        return []

    since = datetime.utcnow() - timedelta(days=days)
    rows = PerformanceData.query.filter(
        PerformanceData.platform_campaign_id.in_(platform_campaign_ids),
        PerformanceData.date >= since,
    ).order_by(PerformanceData.date).all()
    return rollup_daily_metrics(rows)

def get_platform_campaign(user_id, campaign_id, platform):
    """The campaign's most recent PlatformCampaign on `platform`, or None."""
    campaign = get_owned_campaign(user_id, campaign_id)
    return campaign.platform_campaigns.filter(PlatformCampaign.platform == platform).order_by(
        PlatformCampaign.created_at.desc(), PlatformCampaign.id.desc()
    ).first()
