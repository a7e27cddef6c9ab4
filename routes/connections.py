from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required, current_user

from extensions import db
from models import PlatformConnection, PlatformNameEnum

# Blueprint for the per-user platform connection flags shown on the dashboard.
connections_bp = Blueprint('connections', __name__, url_prefix='/api/platform-connections')

PLATFORM_IDS = [p.value for p in PlatformNameEnum]

def _validate_connection_body(body, require_platform):
    errors = {}
    if require_platform and body.get('platform') not in PLATFORM_IDS:
        errors['platform'] = [f"Platform must be one of: {', '.join(PLATFORM_IDS)}."]
    if 'connected' in body and not isinstance(body['connected'], bool):
        errors['connected'] = ["Connected must be a boolean."]
    if body.get('credentials') is not None and not isinstance(body['credentials'], dict):
        errors['credentials'] = ["Credentials must be an object."]
    return errors

@connections_bp.route('', methods=['GET'])
@login_required
def list_connections():
    connections = current_user.platform_connections.order_by(PlatformConnection.id).all()
    return jsonify({"connections": [c.to_dict() for c in connections]})

@connections_bp.route('', methods=['POST'])
@login_required
def create_connection():
    """Creates the user's connection for a platform, or updates it when one already exists."""
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        body = {}
    errors = _validate_connection_body(body, require_platform=True)
    if errors:
        return jsonify({"message": "Invalid input", "errors": errors}), 400

    # One connection per (user, platform).
    connection = PlatformConnection.query.filter_by(user_id=current_user.id, platform=body['platform']).first()
    created = connection is None
    if created:
        connection = PlatformConnection(
            user_id=current_user.id,
            platform=body['platform'],
            connected=body.get('connected', False),
            credentials=body.get('credentials') or {},
        )
        db.session.add(connection)
    else:
        if 'connected' in body:
            connection.connected = body['connected']
        if 'credentials' in body:
            connection.credentials = body['credentials'] or {}
    try:
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error saving {body['platform']} connection for user {current_user.id}: {e}", exc_info=True)
        return jsonify({"message": "Error creating platform connection", "error": str(e)}), 500

    return jsonify({"connection": connection.to_dict()}), 201 if created else 200

@connections_bp.route('/<int:connection_id>', methods=['PUT'])
@login_required
def update_connection(connection_id):
    """Updates `connected` and/or `credentials` of one of the user's connections."""
    connection = PlatformConnection.query.filter_by(id=connection_id, user_id=current_user.id).first()
    if connection is None:
        return jsonify({"message": "Platform connection not found"}), 404

    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        body = {}
    errors = _validate_connection_body(body, require_platform=False)
    if errors:
        return jsonify({"message": "Invalid input", "errors": errors}), 400

    if 'connected' in body:
        connection.connected = body['connected']
    if 'credentials' in body:
        connection.credentials = body['credentials'] or {}
    try:
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error updating platform connection {connection_id}: {e}", exc_info=True)
        return jsonify({"message": "Error updating platform connection", "error": str(e)}), 500

    return jsonify({"connection": connection.to_dict()})
