from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required, current_user
from datetime import datetime, timedelta
from sqlalchemy import func

from extensions import db
from models import Campaign, CampaignStatusEnum, PlatformCampaign, PerformanceData
from services.campaign_integration import get_owned_campaign
from services.exceptions import IntegrationError
from utils.helpers import parse_date_range, parse_days_arg, day_bounds, format_ctr, format_cpc, percent_change, rollup_daily_metrics

# Blueprint for dashboard widgets: headline stats and cross-campaign rollups of
# the performance data pulled from the ad platforms.
dashboard_bp = Blueprint('dashboard', __name__, url_prefix='/api')

def _user_performance_query(*columns):
    """Query over PerformanceData rows belonging to the current user's campaigns."""
    return db.session.query(*columns).select_from(PerformanceData).join(
        PlatformCampaign, PerformanceData.platform_campaign_id == PlatformCampaign.id
    ).join(
        Campaign, PlatformCampaign.campaign_id == Campaign.id
    ).filter(Campaign.user_id == current_user.id)

def _period_totals(start_date, end_date):
    start, end = day_bounds(start_date, end_date)
    results = _user_performance_query(
        func.sum(PerformanceData.impressions).label('impressions'),
        func.sum(PerformanceData.clicks).label('clicks'),
        func.sum(PerformanceData.conversions).label('conversions'),
    ).filter(PerformanceData.date >= start, PerformanceData.date < end).one()

    impressions = results.impressions or 0
    clicks = results.clicks or 0
    conversions = results.conversions or 0
    return {
        'impressions': impressions,
        'click_rate': round(clicks / impressions * 100, 2) if impressions else 0.0,
        'conversion_rate': round(conversions / clicks * 100, 2) if clicks else 0.0,
    }

def _bad_request(error_response):
    error_message, status_code = error_response
    current_app.logger.warning(f"Bad request to {request.path}: {error_message.get('message')} (Params: {dict(request.args)})")
    return jsonify(error_message), status_code

@dashboard_bp.route('/dashboard/stats', methods=['GET'])
@login_required
def stats():
    """
    Headline numbers of the dashboard for a date range, with the change in percent
    against the preceding period of the same length.

    Query Parameters:
        date_range (str, optional): 'last_7_days' (default), 'last_30_days' or 'custom'.
        start_date, end_date (str, optional): YYYY-MM-DD, required for 'custom'.
    """
    start_date, end_date, error_response = parse_date_range(request.args, default_range_str='last_7_days')
    if error_response:
        return _bad_request(error_response)
    prev_start_date, prev_end_date, error_response = parse_date_range(request.args, default_range_str='last_7_days', get_previous_period=True)
    if error_response:
        return _bad_request(error_response)

    current = _period_totals(start_date, end_date)
    previous = _period_totals(prev_start_date, prev_end_date)
    active_campaigns = current_user.campaigns.filter(Campaign.status == CampaignStatusEnum.ACTIVE.value).count()

    return jsonify({
        'start_date': start_date.isoformat(),
        'end_date': end_date.isoformat(),
        'active_campaigns': active_campaigns,
        'impressions': current['impressions'],
        'click_rate': current['click_rate'],
        'conversion_rate': current['conversion_rate'],
        'impressions_change': percent_change(current['impressions'], previous['impressions']),
        'click_rate_change': percent_change(current['click_rate'], previous['click_rate']),
        'conversion_rate_change': percent_change(current['conversion_rate'], previous['conversion_rate']),
    })

@dashboard_bp.route('/analytics/performance', methods=['GET'])
@login_required
def performance_over_time():
    """
    Daily metrics over the last `days` days across all of the user's campaigns,
    or one campaign when `campaign_id` is given.
    """
    days, error_response = parse_days_arg(request.args)
    if error_response:
        return _bad_request(error_response)

    query = _user_performance_query(PerformanceData).filter(
        PerformanceData.date >= datetime.utcnow() - timedelta(days=days)
    )
    campaign_id = request.args.get('campaign_id')
    if campaign_id:
        try:
            campaign = get_owned_campaign(current_user.id, int(campaign_id))
        except ValueError:
            return _bad_request(({"message": "'campaign_id' must be an integer."}, 400))
        except IntegrationError as e:
            return jsonify({"message": str(e)}), e.status_code
        query = query.filter(Campaign.id == campaign.id)

    return jsonify({"data": rollup_daily_metrics(query.order_by(PerformanceData.date).all())})

@dashboard_bp.route('/analytics/platforms', methods=['GET'])
@login_required
def performance_by_platform():
    """Totals per platform over the last `days` days."""
    days, error_response = parse_days_arg(request.args)
    if error_response:
        return _bad_request(error_response)

    rows = _user_performance_query(
        PlatformCampaign.platform,
        func.sum(PerformanceData.impressions).label('impressions'),
        func.sum(PerformanceData.clicks).label('clicks'),
        func.sum(PerformanceData.conversions).label('conversions'),
        func.sum(PerformanceData.spend).label('spend'),
    ).filter(
        PerformanceData.date >= datetime.utcnow() - timedelta(days=days)
    ).group_by(PlatformCampaign.platform).all()

    platforms = {}
    for row in rows:
        impressions, clicks = row.impressions or 0, row.clicks or 0
        spend = row.spend or 0
        platforms[row.platform.value] = {
            'impressions': impressions,
            'clicks': clicks,
            'conversions': row.conversions or 0,
            'spend': spend,
            'ctr': format_ctr(clicks, impressions),
            'cpc': format_cpc(spend, clicks),
        }
    return jsonify({"platforms": platforms})
