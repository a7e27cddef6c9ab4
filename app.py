import logging
import click
from flask import Flask, jsonify # The main Flask class.
from config import Config # Import the application's configuration class.
from extensions import db, login_manager, migrate, oauth # Import initialized extensions.
from models import User # Primarily for the user_loader and the seed command.
from services.oauth import GOOGLE_ADS_SCOPES, FACEBOOK_ADS_SCOPES

# Application Factory Function
def create_app(config_class=Config):
    """
    Application factory for creating and configuring the Flask app.
    Tests pass their own config class; everything else uses Config.
    """
    app = Flask(__name__, instance_relative_config=True)

    # Load configuration from the given config object (defined in config.py by default).
    app.config.from_object(config_class)
    app.logger.setLevel(getattr(logging, app.config.get('LOG_LEVEL', 'INFO'), logging.INFO))

    # --- Initialize Flask Extensions ---
    db.init_app(app)
    # Links the Flask app and SQLAlchemy DB instance to the migration engine (`flask db ...`).
    migrate.init_app(app, db)
    login_manager.init_app(app)
    oauth.init_app(app)

    # The API is consumed by a single-page frontend: unauthenticated requests get JSON, not a redirect to a login page.
    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({"message": "Unauthorized"}), 401

    # --- OAuth Client Registrations with Authlib ---
    # Google Ads API OAuth Integration.
    oauth.register(
        name='google_ads',
        client_id=app.config['GOOGLE_ADS_CLIENT_ID'],
        client_secret=app.config['GOOGLE_ADS_CLIENT_SECRET'],
        authorize_url=app.config['GOOGLE_AUTHORIZE_URL'],
        # 'offline' + 'consent' make Google issue a refresh token on every connection.
        authorize_params={'access_type': 'offline', 'prompt': 'consent'},
        access_token_url=app.config['GOOGLE_TOKEN_URL'],
        client_kwargs={'scope': ' '.join(GOOGLE_ADS_SCOPES)},
    )

    # Facebook Marketing API OAuth Integration.
    # Uses a specific Graph API version in URLs for stability.
    fb_api_version = app.config['FACEBOOK_GRAPH_API_VERSION']
    oauth.register(
        name='facebook_ads',
        client_id=app.config['FACEBOOK_APP_ID'],
        client_secret=app.config['FACEBOOK_APP_SECRET'],
        authorize_url=f'https://www.facebook.com/{fb_api_version}/dialog/oauth',
        access_token_url=f'https://graph.facebook.com/{fb_api_version}/oauth/access_token',
        # Facebook only accepts the client credentials as request parameters.
        client_kwargs={'scope': ','.join(FACEBOOK_ADS_SCOPES), 'token_endpoint_auth_method': 'client_secret_post'},
    )

    # --- Import and Register Blueprints ---
    from routes.auth import auth_bp
    from routes.campaigns import campaigns_bp
    from routes.generate import generate_bp
    from routes.connections import connections_bp
    from routes.integrations import integrations_bp
    from routes.dashboard import dashboard_bp

    app.register_blueprint(auth_bp)         # /api/auth/...
    app.register_blueprint(campaigns_bp)    # /api/campaigns, /api/ads
    app.register_blueprint(generate_bp)     # /api/generate/...
    app.register_blueprint(connections_bp)  # /api/platform-connections
    app.register_blueprint(integrations_bp) # /api/integrations/...
    app.register_blueprint(dashboard_bp)    # /api/dashboard/..., /api/analytics/...

    # --- Flask-Login User Loader ---
    # Reloads the user object from the user ID stored in the session on each request.
    @login_manager.user_loader
    def load_user(user_id):
        """Loads a user from the database given their ID."""
        return db.session.get(User, int(user_id))

    # --- CLI ---
    @app.cli.command('seed-demo')
    def seed_demo():
        """Creates the demo user (demo / demo123) if it does not exist yet."""
        if User.query.filter_by(username='demo').first():
            click.echo("Demo user already exists.")
            return
        user = User(username='demo', email='demo@example.com', full_name='Alex Johnson')
        user.set_password('demo123')
        db.session.add(user)
        db.session.commit()
        app.logger.info("Demo user created.")
        click.echo("Demo user created.")

    return app

# Allows running the Flask development server directly using `python app.py`.
if __name__ == '__main__':
    app = create_app()
    app.run(debug=True)
