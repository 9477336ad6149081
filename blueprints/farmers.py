#===========================================================================
#      FARMER DASHBOARD
#===========================================================================
from flask import Blueprint, jsonify
from flask_login import current_user

from models import FarmMedia, Farm
from utils import role_required
from workflows.analytics import farmer_summary

farmers_bp = Blueprint("farmers", __name__, url_prefix="/api/farmer")


@farmers_bp.route("/dashboard", methods=["GET"])
@role_required("farmer")
def farmer_dashboard():
    summary = farmer_summary(current_user)
    if summary is None:
        return jsonify({"error": "No farmer application found", "onboardingRequired": True}), 404
    return jsonify(summary), 200


@farmers_bp.route("/media", methods=["GET"])
@role_required("farmer")
def farmer_media():
    farmer = current_user.farmer
    if farmer is None:
        return jsonify({"media": []}), 200
    media = (
        FarmMedia.query.join(Farm)
        .filter(Farm.farmer_id == farmer.id)
        .order_by(FarmMedia.created_at.desc())
        .all()
    )
    return jsonify({"media": [m.to_dict() for m in media]}), 200
