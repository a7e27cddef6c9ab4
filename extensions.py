from flask_sqlalchemy import SQLAlchemy # ORM for database interactions.
from flask_login import LoginManager    # Manages user sessions for login and logout functionality.
from flask_migrate import Migrate       # Alembic-backed schema migrations.
from authlib.integrations.flask_client import OAuth # OAuth client library for the ad platform integrations.

# Initialize SQLAlchemy.
# This instance is bound to the Flask app in the application factory (create_app in app.py)
# using db.init_app(app).
db = SQLAlchemy()

# Initialize Flask-Login's LoginManager.
# Handles logging users in and out and reloading them from the session cookie.
# The API answers unauthenticated requests with JSON; see the unauthorized handler in create_app.
login_manager = LoginManager()

# Flask-Migrate, bound to the app and db in create_app.
migrate = Migrate()

# Initialize Authlib's OAuth client registry.
# The Google Ads and Facebook Ads clients are registered with this object in create_app.
oauth = OAuth()
