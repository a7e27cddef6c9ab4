from datetime import datetime
from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required, current_user

from extensions import db
from forms import validate_campaign_fields
from models import Campaign, Ad, Analytics, AdTypeEnum, PlatformCampaign
from services.campaign_integration import CAMPAIGN_FIELDS
from utils.decorators import campaign_owner_required

# Blueprint for campaign, ad and per-campaign analytics CRUD, plus the publishing state of a campaign.
campaigns_bp = Blueprint('campaigns', __name__, url_prefix='/api')

ANALYTICS_METRICS = ('impressions', 'clicks', 'conversions')

def _json_body():
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}

# --- Campaigns ---

@campaigns_bp.route('/campaigns', methods=['GET'])
@login_required
def list_campaigns():
    campaigns = current_user.campaigns.order_by(Campaign.created_at.desc(), Campaign.id.desc()).all()
    return jsonify({"campaigns": [c.to_dict() for c in campaigns]})

@campaigns_bp.route('/campaigns/<int:campaign_id>', methods=['GET'])
@login_required
@campaign_owner_required
def get_campaign(campaign):
    return jsonify({"campaign": campaign.to_dict()})

@campaigns_bp.route('/campaigns', methods=['POST'])
@login_required
def create_campaign():
    """Creates a campaign from {name, type, status, platforms, performance?}."""
    body = _json_body()
    data, errors = validate_campaign_fields({field: body.get(field) for field in CAMPAIGN_FIELDS})
    if errors:
        current_app.logger.warning(f"Campaign creation by user {current_user.id} rejected: {errors}")
        return jsonify({"message": "Invalid input", "errors": errors}), 400

    campaign = Campaign(user_id=current_user.id, **data)
    try:
        db.session.add(campaign)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error creating campaign for user {current_user.id}: {e}", exc_info=True)
        return jsonify({"message": "Error creating campaign", "error": str(e)}), 500

    current_app.logger.info(f"User {current_user.id} created campaign {campaign.id} ('{campaign.name}').")
    return jsonify({"campaign": campaign.to_dict()}), 201

@campaigns_bp.route('/campaigns/<int:campaign_id>', methods=['PUT'])
@login_required
@campaign_owner_required
def update_campaign(campaign):
    """
    Partially updates a campaign. Only the keys present in the body change; unknown keys are ignored.
    The result is validated as a whole, so an update cannot leave the campaign invalid.
    """
    body = _json_body()
    fields = {field: getattr(campaign, field) for field in CAMPAIGN_FIELDS}
    fields.update({field: body[field] for field in CAMPAIGN_FIELDS if field in body})
    data, errors = validate_campaign_fields(fields)
    if errors:
        return jsonify({"message": "Invalid input", "errors": errors}), 400

    for field in CAMPAIGN_FIELDS:
        if field in body:
            setattr(campaign, field, data[field])
    try:
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error updating campaign {campaign.id}: {e}", exc_info=True)
        return jsonify({"message": "Error updating campaign", "error": str(e)}), 500

    return jsonify({"campaign": campaign.to_dict()})

@campaigns_bp.route('/campaigns/<int:campaign_id>', methods=['DELETE'])
@login_required
@campaign_owner_required
def delete_campaign(campaign):
    """Deletes a campaign together with its ads, analytics and platform campaigns."""
    campaign_id = campaign.id
    try:
        db.session.delete(campaign)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error deleting campaign {campaign_id}: {e}", exc_info=True)
        return jsonify({"message": "Error deleting campaign", "error": str(e)}), 500

    current_app.logger.info(f"User {current_user.id} deleted campaign {campaign_id}.")
    return jsonify({"success": True})

# --- Ads ---

@campaigns_bp.route('/ads', methods=['GET'])
@login_required
def list_ads():
    ads = Ad.query.filter_by(user_id=current_user.id).order_by(Ad.created_at.desc(), Ad.id.desc()).all()
    return jsonify({"ads": [ad.to_dict() for ad in ads]})

@campaigns_bp.route('/campaigns/<int:campaign_id>/ads', methods=['GET'])
@login_required
@campaign_owner_required
def list_campaign_ads(campaign):
    ads = campaign.ads.order_by(Ad.created_at.desc(), Ad.id.desc()).all()
    return jsonify({"ads": [ad.to_dict() for ad in ads]})

@campaigns_bp.route('/ads', methods=['POST'])
@login_required
def create_ad():
    """Stores a generated creative {campaign_id, type, content} under one of the user's campaigns."""
    body = _json_body()
    campaign_id = body.get('campaign_id')
    ad_type = body.get('type')
    content = body.get('content')

    errors = {}
    if not isinstance(campaign_id, int) or isinstance(campaign_id, bool):
        errors['campaign_id'] = ["Campaign id must be an integer."]
    if ad_type not in [t.value for t in AdTypeEnum]:
        errors['type'] = [f"Type must be one of: {', '.join(t.value for t in AdTypeEnum)}."]
    if not isinstance(content, dict):
        errors['content'] = ["Content must be an object."]
    if errors:
        return jsonify({"message": "Invalid input", "errors": errors}), 400

    campaign = db.session.get(Campaign, campaign_id)
    if campaign is None or campaign.user_id != current_user.id:
        current_app.logger.warning(f"User {current_user.id} tried to add an ad to campaign {campaign_id}, which is missing or not theirs.")
        return jsonify({"message": "Invalid campaign"}), 403

    ad = Ad(campaign_id=campaign.id, user_id=current_user.id, type=ad_type, content=content)
    try:
        db.session.add(ad)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error creating ad for campaign {campaign.id}: {e}", exc_info=True)
        return jsonify({"message": "Error creating ad", "error": str(e)}), 500

    return jsonify({"ad": ad.to_dict()}), 201

# --- Analytics ---

@campaigns_bp.route('/campaigns/<int:campaign_id>/analytics', methods=['GET'])
@login_required
@campaign_owner_required
def list_campaign_analytics(campaign):
    analytics = campaign.analytics.order_by(Analytics.date).all()
    return jsonify({"analytics": [row.to_dict() for row in analytics]})

@campaigns_bp.route('/campaigns/<int:campaign_id>/analytics', methods=['POST'])
@login_required
@campaign_owner_required
def record_campaign_analytics(campaign):
    """Records a manual analytics row {impressions?, clicks?, conversions?, date? (ISO-8601)}."""
    body = _json_body()
    errors = {}
    metrics = {}
    for metric in ANALYTICS_METRICS:
        value = body.get(metric, 0)
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            errors[metric] = [f"{metric.capitalize()} must be a non-negative integer."]
        else:
            metrics[metric] = value

    recorded_at = datetime.utcnow()
    if body.get('date'):
        try:
            recorded_at = datetime.fromisoformat(str(body['date']))
        except ValueError:
            errors['date'] = ["Invalid date. Please use ISO-8601 (YYYY-MM-DD or YYYY-MM-DDTHH:MM:SS)."]
    if errors:
        return jsonify({"message": "Invalid input", "errors": errors}), 400

    row = Analytics(campaign_id=campaign.id, date=recorded_at, **metrics)
    try:
        db.session.add(row)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error recording analytics for campaign {campaign.id}: {e}", exc_info=True)
        return jsonify({"message": "Error recording analytics", "error": str(e)}), 500

    return jsonify({"analytics": row.to_dict()}), 201

# --- Publishing state ---

@campaigns_bp.route('/campaigns/<int:campaign_id>/platforms', methods=['GET'])
@login_required
@campaign_owner_required
def list_campaign_platforms(campaign):
    """Lists the platforms a campaign was published to and their platform campaigns."""
    platform_campaigns = campaign.platform_campaigns.order_by(PlatformCampaign.created_at, PlatformCampaign.id).all()
    platforms = []
    for platform_campaign in platform_campaigns:
        if platform_campaign.platform.value not in platforms:
            platforms.append(platform_campaign.platform.value)
    return jsonify({
        "platforms": platforms,
        "platform_campaigns": [pc.to_dict() for pc in platform_campaigns],
    })
