#===========================================================================
#      ONBOARDING & PROFILE
#===========================================================================
from flask import Blueprint, jsonify, request
from flask_login import current_user
from sqlalchemy.exc import SQLAlchemyError

from extensions import db
from utils import login_required_json
from workflows.onboarding import complete_investor_onboarding, complete_farmer_onboarding
import logging

logger = logging.getLogger(__name__)

onboarding_bp = Blueprint("onboarding", __name__, url_prefix="/api")


@onboarding_bp.route("/profile", methods=["GET"])
@login_required_json
def get_profile():
    profile = current_user.profile
    if not profile:
        return jsonify({"error": "Profile not found"}), 404
    return jsonify({"profile": profile.to_dict(), "roles": current_user.role_names}), 200


@onboarding_bp.route("/onboarding", methods=["POST"])
@login_required_json
def investor_onboarding():
    data = request.get_json(silent=True)
    if not data:
        return jsonify({"error": "Invalid or missing JSON body"}), 400

    profile = complete_investor_onboarding(current_user, data)
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Onboarding failed for user {current_user.id}: {e}")
        return jsonify({"error": str(e)}), 500

    return jsonify({
        "message": "Your investor profile has been set up successfully.",
        "profile": profile.to_dict(),
    }), 200


@onboarding_bp.route("/farmer/onboarding", methods=["POST"])
@login_required_json
def farmer_onboarding():
    """Creates the farmer application: profile update, Farmer, first Farm and the farmer role."""
    data = request.get_json(silent=True)
    if not data:
        return jsonify({"error": "Invalid or missing JSON body"}), 400

    farmer, farm = complete_farmer_onboarding(current_user, data)
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Farmer onboarding failed for user {current_user.id}: {e}")
        return jsonify({"error": str(e)}), 500

    return jsonify({
        "message": "Your farmer application is pending verification. We'll notify you once approved.",
        "farmer": farmer.to_dict(),
        "farm": farm.to_dict(),
    }), 201
