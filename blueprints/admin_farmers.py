#======================================================================================
#
# ADMIN: farmer verification & certification
#
#=======================================================================================
from flask import jsonify, request, Blueprint
from flask_login import current_user
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError

from extensions import db
from models import Farm, Farmer, Profile
from utils import admin_required
from workflows.errors import NotFoundError
from workflows.verification import (
    get_farmer_or_404, issue_certification, reject_farmer, set_farm_flags, update_verification_step,
)
import logging

logger = logging.getLogger(__name__)

farmers_admin_bp = Blueprint('admin_farmers', __name__, url_prefix='/api/admin')

PENDING_STATUSES = ("pending", "unverified", "partially_verified")


def _commit_farmer(farmer):
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Farmer {farmer.id} update failed: {e}")
        return jsonify({"error": str(e)}), 500
    return jsonify({"farmer": farmer.to_dict(include_farms=True)}), 200


@farmers_admin_bp.route("/farmers", methods=["GET"])
@admin_required
def list_farmers():
    """``view=pending`` or ``view=verified`` mirror the two admin tabs; ``q`` searches names."""
    view = request.args.get("view", "").strip()
    status = request.args.get("status", "").strip()
    q = request.args.get("q", "").strip()

    query = Farmer.query.join(Profile, Profile.user_id == Farmer.user_id)
    if view == "pending":
        query = query.filter(Farmer.verification_status.in_(PENDING_STATUSES))
    elif view == "verified":
        query = query.filter(Farmer.verification_status == "fully_verified")
    if status:
        query = query.filter(Farmer.verification_status == status)
    if q:
        like = f"%{q}%"
        query = query.filter(or_(
            Farmer.business_name.ilike(like),
            Profile.full_name.ilike(like),
            Profile.email.ilike(like),
        ))

    farmers = query.order_by(Farmer.created_at.desc()).all()
    return jsonify({
        "farmers": [f.to_dict(include_farms=True) for f in farmers],
        "total": len(farmers),
    }), 200


@farmers_admin_bp.route("/farmers/<int:farmer_id>", methods=["GET"])
@admin_required
def get_farmer(farmer_id):
    farmer = get_farmer_or_404(farmer_id)
    return jsonify({"farmer": farmer.to_dict(include_farms=True)}), 200


@farmers_admin_bp.route("/farmers/<int:farmer_id>/verification", methods=["POST"])
@admin_required
def update_verification(farmer_id):
    """Body: ``{"field": "identity_verified", "value": true, "notes": "..."}``"""
    farmer = get_farmer_or_404(farmer_id)
    data = request.get_json(silent=True) or {}
    update_verification_step(
        farmer, data.get("field"), data.get("value"),
        notes=data.get("notes"), reviewer_id=current_user.id,
    )
    return _commit_farmer(farmer)


@farmers_admin_bp.route("/farmers/<int:farmer_id>/certify", methods=["POST"])
@admin_required
def certify(farmer_id):
    farmer = get_farmer_or_404(farmer_id)
    data = request.get_json(silent=True) or {}
    issue_certification(farmer, reviewer_id=current_user.id, notes=data.get("notes"))
    return _commit_farmer(farmer)


@farmers_admin_bp.route("/farmers/<int:farmer_id>/reject", methods=["POST"])
@admin_required
def reject(farmer_id):
    farmer = get_farmer_or_404(farmer_id)
    data = request.get_json(silent=True) or {}
    reject_farmer(farmer, data.get("reason"), reviewer_id=current_user.id)
    return _commit_farmer(farmer)


@farmers_admin_bp.route("/farms/<int:farm_id>/flags", methods=["POST"])
@admin_required
def update_farm_flags(farm_id):
    farm = db.session.get(Farm, farm_id)
    if not farm:
        raise NotFoundError("Farm not found")

    set_farm_flags(farm, request.get_json(silent=True) or {}, reviewer_id=current_user.id)
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 500
    return jsonify({"farm": farm.to_dict()}), 200


@farmers_admin_bp.route("/farms", methods=["GET"])
@admin_required
def list_farms():
    farms = Farm.query.order_by(Farm.farm_name.asc()).all()
    return jsonify({"farms": [f.to_dict() for f in farms]}), 200
