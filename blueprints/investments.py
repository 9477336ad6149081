#===========================================================================
#      PACKAGES, INVESTMENTS & INVESTOR DASHBOARD
#===========================================================================
from flask import Blueprint, jsonify, request
from flask_login import current_user
from sqlalchemy.exc import SQLAlchemyError

from extensions import db
from models import Asset, Investment
from utils import role_required
from workflows.analytics import investor_summary
from workflows.investments import active_packages, create_investment, get_package_or_404
import logging

logger = logging.getLogger(__name__)

investments_bp = Blueprint("investments", __name__, url_prefix="/api")


@investments_bp.route("/packages", methods=["GET"])
def list_packages():
    """Public catalogue: active packages, cheapest first."""
    return jsonify({"packages": [p.to_dict() for p in active_packages()]}), 200


@investments_bp.route("/packages/<int:package_id>", methods=["GET"])
def get_package(package_id):
    package = get_package_or_404(package_id, active_only=True)
    return jsonify({"package": package.to_dict()}), 200


@investments_bp.route("/investments", methods=["GET"])
@role_required("client")
def my_investments():
    investments = (
        Investment.query.filter_by(investor_id=current_user.id)
        .order_by(Investment.created_at.desc())
        .all()
    )
    return jsonify({"investments": [i.to_dict() for i in investments]}), 200


@investments_bp.route("/investments", methods=["POST"])
@role_required("client")
def create_investment_route():
    data = request.get_json(silent=True) or {}
    package = get_package_or_404(data.get("packageId"), active_only=True)
    investment = create_investment(current_user, package, data.get("amount"))

    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Investment creation failed for user {current_user.id}: {e}")
        return jsonify({"error": str(e)}), 500

    logger.info(f"User {current_user.id} invested {investment.amount} in package {package.id}")
    return jsonify({"message": "Investment created", "investment": investment.to_dict()}), 201


@investments_bp.route("/assets", methods=["GET"])
@role_required("client")
def my_assets():
    assets = Asset.query.filter_by(investor_id=current_user.id).order_by(Asset.created_at.desc()).all()
    return jsonify({"assets": [a.to_dict() for a in assets]}), 200


@investments_bp.route("/dashboard/summary", methods=["GET"])
@role_required("client")
def dashboard_summary():
    return jsonify(investor_summary(current_user)), 200
