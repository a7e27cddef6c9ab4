from functools import wraps
from flask import jsonify, current_app
from flask_login import current_user
from extensions import db
from models import Campaign

def campaign_owner_required(f):
    """
    Decorator for routes taking a `campaign_id` URL parameter.
    Loads the campaign and passes it to the view as `campaign` instead of the id,
    answering 404 if it does not exist and 403 if the current user does not own it.
    Must be applied after @login_required.
    """
    @wraps(f)
    def decorated_function(campaign_id, *args, **kwargs):
        campaign = db.session.get(Campaign, campaign_id)
        if campaign is None:
            return jsonify({"message": "Campaign not found"}), 404
        if campaign.user_id != current_user.id:
            current_app.logger.warning(f"User {current_user.id} tried to access campaign {campaign_id} of user {campaign.user_id}.")
            return jsonify({"message": "Forbidden"}), 403
        return f(*args, campaign=campaign, **kwargs)
    return decorated_function
