from flask import Blueprint, jsonify, request, current_app
from flask_login import login_user, logout_user, current_user
from sqlalchemy.exc import SQLAlchemyError

from extensions import db
from models import User, Profile, AppRole
from utils import validate_email, validate_phone, login_required_json
import logging


logger = logging.getLogger(__name__)
#==================================================================================================================

bp = Blueprint("auth", __name__, url_prefix="")

MIN_PASSWORD_LENGTH = 6


def _create_account(data, roles):
    full_name = (data.get("fullName") or "").strip()
    email = (data.get("email") or "").strip().lower()
    phone = (data.get("phone") or "").strip()
    password = data.get("password") or ""

    # -----------------------------------------
    #  BASIC VALIDATION
    # -----------------------------------------
    if not full_name or not email or not password:
        return None, (jsonify({"error": "Full name, email and password are required"}), 400)

    if not validate_email(email):
        return None, (jsonify({"error": "Invalid email address"}), 400)

    if phone and not validate_phone(phone):
        return None, (jsonify({"error": "Invalid phone number"}), 400)

    if len(password) < MIN_PASSWORD_LENGTH:
        return None, (jsonify({"error": f"Password must be at least {MIN_PASSWORD_LENGTH} characters"}), 400)

    if User.query.filter_by(email=email).first():
        return None, (jsonify({"error": "Email already registered"}), 400)

    user = User(email=email)
    user.set_password(password)
    user.profile = Profile(email=email, full_name=full_name, phone=phone or None)
    for role in roles:
        user.grant_role(role)

    db.session.add(user)
    return user, None


def _signup(roles):
    data = request.get_json(silent=True)
    if not data:
        return jsonify({"error": "Invalid or missing JSON body"}), 400

    try:
        user, error = _create_account(data, roles)
        if error:
            return error
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Signup failed for {data.get('email')}: {e}")
        return jsonify({"error": str(e)}), 500

    login_user(user)
    current_app.logger.info(f"New account {user.id} with roles {user.role_names}")
    return jsonify({"message": "Account created successfully", "user": user.to_dict()}), 201


#===========================================================================
#      SIGN UP ROUTES
#==============================================================================
@bp.route("/api/signup", methods=["POST"])
def signup():
    """Investor signup. Every account starts with the client role."""
    return _signup([AppRole.CLIENT])


@bp.route("/api/farmer/signup", methods=["POST"])
def farmer_signup():
    return _signup([AppRole.CLIENT, AppRole.FARMER])


#===========================================================================
#      LOGIN / LOGOUT
#==============================================================================
def _login(required_role=None):
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""

    if not email or not password:
        return jsonify({"error": "Email and password are required"}), 400

    user = User.query.filter_by(email=email).first()
    if not user or not user.check_password(password):
        logger.warning(f"Failed login for {email}")
        return jsonify({"error": "Invalid email or password"}), 401

    if not user.is_active:
        return jsonify({"error": "Account is inactive"}), 403

    if required_role and not user.has_role(required_role):
        logger.warning(f"User {user.id} refused at {required_role.value} login")
        return jsonify({"error": f"Access denied. {required_role.value.capitalize()} privileges required."}), 403

    login_user(user, remember=bool(data.get("remember")))
    return jsonify({"message": "Login successful", "user": user.to_dict()}), 200


@bp.route("/api/login", methods=["POST"])
def login():
    return _login()


@bp.route("/api/admin/login", methods=["POST"])
def admin_login():
    return _login(AppRole.ADMIN)


@bp.route("/api/farmer/login", methods=["POST"])
def farmer_login():
    return _login(AppRole.FARMER)


@bp.route("/api/logout", methods=["POST"])
def logout():
    logout_user()
    return jsonify({"message": "Logged out"}), 200


@bp.route("/api/me", methods=["GET"])
@login_required_json
def me():
    return jsonify({"user": current_user.to_dict()}), 200
