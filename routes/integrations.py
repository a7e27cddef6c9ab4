from urllib.parse import urlencode
from flask import Blueprint, jsonify, redirect, request, url_for, current_app
from flask_login import login_required, current_user

from extensions import db
from forms import validate_campaign_fields
from models import PlatformNameEnum, OAUTH_PLATFORMS
from services.exceptions import IntegrationError
from services.platforms.base import to_date
from services.oauth import (
    get_google_auth_url, exchange_google_code,
    get_facebook_auth_url, exchange_facebook_code,
    save_oauth_token, mark_platform_connected, disconnect_platform, get_integration_status,
)
from services.campaign_integration import (
    get_owned_campaign, publish_campaign, update_campaign, fetch_campaign_performance,
    get_historical_performance, get_platform_campaign, CAMPAIGN_FIELDS,
)
from utils.helpers import parse_days_arg

# Blueprint for the ad platform integrations: OAuth connection flows and
# publishing campaigns to / pulling metrics from the connected platforms.
integrations_bp = Blueprint('integrations', __name__, url_prefix='/api/integrations')

OAUTH_PLATFORM_IDS = [p.value for p in OAUTH_PLATFORMS]

def _error_response(e, action):
    """Known integration errors answer with their own status; anything else is a 500."""
    if isinstance(e, IntegrationError):
        current_app.logger.warning(f"{action} failed for user {current_user.id}: {e}")
        return jsonify({"message": str(e), "error": type(e).__name__}), e.status_code
    db.session.rollback()
    current_app.logger.error(f"Unexpected error while {action.lower()} for user {current_user.id}: {e}", exc_info=True)
    return jsonify({"message": f"Error while {action.lower()}", "error": str(e)}), 500

def _json_body():
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}

def _frontend_redirect(path_key, platform):
    return redirect(f"{current_app.config[path_key]}?{urlencode({'platform': platform})}")

def _callback_uri(config_key, endpoint):
    # A fixed callback URL must match the one registered with the provider; fall back to this app's own URL.
    return current_app.config.get(config_key) or url_for(endpoint, _external=True)

# --- Connection status and OAuth flows ---

@integrations_bp.route('/status', methods=['GET'])
@login_required
def status():
    return jsonify({"platforms": get_integration_status(current_user.id)})

@integrations_bp.route('/auth/google', methods=['GET'])
@login_required
def google_auth():
    """Returns the Google consent URL; the frontend sends the browser there."""
    try:
        auth_url = get_google_auth_url(_callback_uri('GOOGLE_ADS_REDIRECT_URI', 'integrations.google_callback'))
    except Exception as e:
        current_app.logger.error(f"Failed to generate Google auth URL for user {current_user.id}: {e}", exc_info=True)
        return jsonify({"message": "Failed to generate Google authorization URL", "error": str(e)}), 500
    return jsonify({"auth_url": auth_url})

@integrations_bp.route('/auth/google/callback', methods=['GET'])
@login_required
def google_callback():
    """
    Completes the Google OAuth flow: stores the tokens, marks Google as connected and
    sends the browser back to the frontend's success or error page.
    """
    if not request.args.get('code'):
        return jsonify({"message": "Missing authorization code"}), 400
    try:
        tokens = exchange_google_code()
        save_oauth_token(current_user.id, PlatformNameEnum.GOOGLE, tokens)
        mark_platform_connected(current_user.id, PlatformNameEnum.GOOGLE, {'token_id': tokens.get('id_token')})
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Google OAuth callback failed for user {current_user.id}: {e}", exc_info=True)
        return _frontend_redirect('INTEGRATION_ERROR_PATH', 'google')

    current_app.logger.info(f"User {current_user.id} connected Google Ads.")
    return _frontend_redirect('INTEGRATION_SUCCESS_PATH', 'google')

@integrations_bp.route('/auth/facebook', methods=['GET'])
@login_required
def facebook_auth():
    try:
        auth_url = get_facebook_auth_url(_callback_uri('FACEBOOK_REDIRECT_URI', 'integrations.facebook_callback'))
    except Exception as e:
        current_app.logger.error(f"Failed to generate Facebook auth URL for user {current_user.id}: {e}", exc_info=True)
        return jsonify({"message": "Failed to generate Facebook authorization URL", "error": str(e)}), 500
    return jsonify({"auth_url": auth_url})

@integrations_bp.route('/auth/facebook/callback', methods=['GET'])
@login_required
def facebook_callback():
    """Completes the Facebook OAuth flow with a long-lived token (see exchange_facebook_code)."""
    if not request.args.get('code'):
        return jsonify({"message": "Missing authorization code"}), 400
    try:
        tokens = exchange_facebook_code()
        save_oauth_token(current_user.id, PlatformNameEnum.FACEBOOK, tokens)
        mark_platform_connected(current_user.id, PlatformNameEnum.FACEBOOK, {})
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Facebook OAuth callback failed for user {current_user.id}: {e}", exc_info=True)
        return _frontend_redirect('INTEGRATION_ERROR_PATH', 'facebook')

    current_app.logger.info(f"User {current_user.id} connected Facebook Ads.")
    return _frontend_redirect('INTEGRATION_SUCCESS_PATH', 'facebook')

@integrations_bp.route('/<platform>', methods=['DELETE'])
@login_required
def disconnect(platform):
    """Forgets the user's tokens for a platform. Campaigns already published stay on the platform."""
    if platform not in OAUTH_PLATFORM_IDS:
        return jsonify({"message": f"Unknown platform: {platform}"}), 404
    try:
        disconnect_platform(current_user.id, platform)
    except Exception as e:
        return _error_response(e, f"Disconnecting {platform}")
    return jsonify({"success": True})

# --- Campaign publishing and metrics ---

@integrations_bp.route('/campaigns/<int:campaign_id>/publish', methods=['POST'])
@login_required
def publish(campaign_id):
    """
    Publishes a campaign. Body (all optional): {platforms: [ids], budget: daily budget in cents}.
    """
    body = _json_body()
    platforms = body.get('platforms')
    budget = body.get('budget')
    errors = {}
    if platforms is not None and (not isinstance(platforms, list) or not all(isinstance(p, str) for p in platforms)):
        errors['platforms'] = ["Platforms must be a list of platform ids."]
    if budget is not None and (not isinstance(budget, int) or isinstance(budget, bool) or budget <= 0):
        errors['budget'] = ["Budget must be a positive integer (cents)."]
    if errors:
        return jsonify({"message": "Invalid input", "errors": errors}), 400

    try:
        platform_ids = publish_campaign(current_user.id, campaign_id, platforms=platforms, budget=budget)
    except Exception as e:
        return _error_response(e, "Publishing campaign")
    return jsonify({"success": True, "platform_ids": platform_ids})

@integrations_bp.route('/campaigns/<int:campaign_id>', methods=['PUT'])
@login_required
def update(campaign_id):
    """
    Pushes changed settings to every platform the campaign is published on and updates it locally.
    Campaign fields are validated like a campaign update; `budget` is a daily budget in cents,
    `start_date`/`end_date` are ISO-8601 dates and `target_audience`/`creative_assets` are objects.
    """
    body = _json_body()
    try:
        campaign = get_owned_campaign(current_user.id, campaign_id)
    except Exception as e:
        return _error_response(e, "Updating campaign")

    fields = {field: getattr(campaign, field) for field in CAMPAIGN_FIELDS}
    fields.update({field: body[field] for field in CAMPAIGN_FIELDS if field in body})
    data, errors = validate_campaign_fields(fields)
    errors = dict(errors or {})
    budget = body.get('budget')
    if budget is not None and (not isinstance(budget, int) or isinstance(budget, bool) or budget <= 0):
        errors['budget'] = ["Budget must be a positive integer (cents)."]
    dates = {}
    for field in ('start_date', 'end_date'):
        try:
            dates[field] = to_date(body.get(field))
        except ValueError:
            errors[field] = ["Invalid date. Please use ISO-8601 (YYYY-MM-DD)."]
    if dates.get('start_date') and dates.get('end_date') and dates['end_date'] < dates['start_date']:
        errors['end_date'] = ["End date must not be before the start date."]
    for field in ('target_audience', 'creative_assets'):
        if body.get(field) is not None and not isinstance(body[field], dict):
            errors[field] = [f"{field.replace('_', ' ').capitalize()} must be an object."]
    if errors:
        return jsonify({"message": "Invalid input", "errors": errors}), 400

    settings = dict(body)
    settings.update({field: data[field] for field in CAMPAIGN_FIELDS if field in body})
    settings.update({field: value for field, value in dates.items() if value is not None})
    try:
        update_campaign(current_user.id, campaign_id, settings)
    except Exception as e:
        return _error_response(e, "Updating campaign")
    return jsonify({"success": True})

@integrations_bp.route('/campaigns/<int:campaign_id>/performance', methods=['GET'])
@login_required
def performance(campaign_id):
    try:
        results = fetch_campaign_performance(current_user.id, campaign_id)
    except Exception as e:
        return _error_response(e, "Fetching campaign performance")
    return jsonify(results)

@integrations_bp.route('/campaigns/<int:campaign_id>/analytics', methods=['GET'])
@login_required
def analytics(campaign_id):
    """Daily metrics over the last `days` days (default 30)."""
    days, error = parse_days_arg(request.args)
    if error:
        return jsonify(error[0]), error[1]
    try:
        data = get_historical_performance(current_user.id, campaign_id, days)
    except Exception as e:
        return _error_response(e, "Fetching campaign analytics")
    return jsonify({"data": data})

@integrations_bp.route('/campaigns/<int:campaign_id>/platform/<platform>', methods=['GET'])
@login_required
def platform_campaign(campaign_id, platform):
    """The campaign's counterpart on one platform."""
    if platform not in OAUTH_PLATFORM_IDS:
        return jsonify({"message": "Platform campaign not found"}), 404
    try:
        result = get_platform_campaign(current_user.id, campaign_id, PlatformNameEnum(platform))
    except Exception as e:
        return _error_response(e, "Fetching platform campaign")
    if result is None:
        return jsonify({"message": "Platform campaign not found"}), 404
    return jsonify(result.to_dict())
