from flask import Blueprint, jsonify, current_app
from flask_login import login_user, logout_user, current_user
from sqlalchemy.exc import IntegrityError

from forms import LoginForm, RegistrationForm
from models import User
from extensions import db

# Blueprint for authentication-related routes (session cookie based).
auth_bp = Blueprint('auth', __name__, url_prefix='/api/auth')

@auth_bp.route('/register', methods=['POST'])
def register():
    """
    Creates an account and logs the new user in.
    Answers 400 with the validation errors, or with a specific message when the
    username or email is already in use.
    """
    form = RegistrationForm()
    if not form.validate():
        current_app.logger.warning(f"Registration rejected: {form.errors}")
        return jsonify({"message": "Invalid input", "errors": form.errors}), 400

    username = form.username.data.strip()
    email = form.email.data.strip().lower()
    if User.query.filter_by(username=username).first():
        return jsonify({"message": "Username already taken"}), 400
    if User.query.filter_by(email=email).first():
        return jsonify({"message": "Email already registered"}), 400

    new_user = User(username=username, email=email, full_name=form.full_name.data or None)
    new_user.set_password(form.password.data) # Hash the password for secure storage.
    try:
        db.session.add(new_user)
        db.session.commit()
    except IntegrityError: # Lost a race against a concurrent registration with the same username/email.
        db.session.rollback()
        current_app.logger.warning(f"Registration failed for {username}: username or email already exists (IntegrityError).")
        return jsonify({"message": "Username or email already in use"}), 400
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error during registration for {username}: {e}", exc_info=True)
        return jsonify({"message": "Error creating user", "error": str(e)}), 500

    login_user(new_user)
    current_app.logger.info(f"New user registered: {new_user.username} (ID: {new_user.id})")
    return jsonify({"user": new_user.to_dict()}), 201

@auth_bp.route('/login', methods=['POST'])
def login():
    """Checks username and password and starts a session."""
    form = LoginForm()
    if not form.validate():
        return jsonify({"message": "Invalid input", "errors": form.errors}), 400

    user = User.query.filter_by(username=form.username.data.strip()).first()
    if user is None or not user.check_password(form.password.data):
        current_app.logger.warning(f"Failed login attempt for username: {form.username.data}")
        return jsonify({"message": "Invalid username or password"}), 401

    login_user(user, remember=form.remember.data)
    current_app.logger.info(f"User {user.username} (ID: {user.id}) logged in.")
    return jsonify({"user": user.to_dict()})

@auth_bp.route('/logout', methods=['POST'])
def logout():
    if current_user.is_authenticated:
        current_app.logger.info(f"User {current_user.id} logged out.")
    logout_user()
    return jsonify({"success": True})

@auth_bp.route('/user', methods=['GET'])
def get_current_user():
    """Returns the logged-in user. Unlike other endpoints, answers 'Not authenticated' instead of 'Unauthorized'."""
    if not current_user.is_authenticated:
        return jsonify({"message": "Not authenticated"}), 401
    return jsonify({"user": current_user.to_dict()})
