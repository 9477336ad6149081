#===========================================================================
#      FARM VISIT BOOKING
#===========================================================================
from flask import Blueprint, jsonify, request, current_app
from flask_login import current_user
from sqlalchemy.exc import SQLAlchemyError

from extensions import db
from models import FarmVisit
from utils import role_required
from workflows.visits import TIME_SLOTS, MAX_GUESTS, build_visit, earliest_visit_date
import logging

logger = logging.getLogger(__name__)

visits_bp = Blueprint("visits", __name__, url_prefix="/api")


@visits_bp.route("/visits/options", methods=["GET"])
def visit_options():
    return jsonify({
        "timeSlots": list(TIME_SLOTS),
        "earliestDate": earliest_visit_date().isoformat(),
        "maxGuests": MAX_GUESTS,
        "defaultLocation": current_app.config["DEFAULT_VISIT_LOCATION"],
    }), 200


@visits_bp.route("/visits", methods=["POST"])
@role_required("client")
def book_visit():
    data = request.get_json(silent=True)
    if not data:
        return jsonify({"error": "Invalid or missing JSON body"}), 400

    visit = build_visit(current_user, data)
    try:
        db.session.add(visit)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Visit booking failed for user {current_user.id}: {e}")
        return jsonify({"error": str(e)}), 500

    return jsonify({"message": "Farm visit requested", "visit": visit.to_dict()}), 201


@visits_bp.route("/visits", methods=["GET"])
@role_required("client")
def my_visits():
    visits = (
        FarmVisit.query.filter_by(investor_id=current_user.id)
        .order_by(FarmVisit.visit_date.desc())
        .all()
    )
    return jsonify({"visits": [v.to_dict() for v in visits]}), 200
