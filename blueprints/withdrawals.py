#===========================================================================
#      WITHDRAWAL REQUESTS
#===========================================================================
from flask import Blueprint, jsonify, request
from flask_login import current_user
from sqlalchemy.exc import SQLAlchemyError

from extensions import db
from models import WithdrawalRequest
from utils import role_required
from workflows.withdrawals import build_withdrawal
import logging

logger = logging.getLogger(__name__)

withdrawals_bp = Blueprint("withdrawals", __name__, url_prefix="/api")


@withdrawals_bp.route("/withdrawals", methods=["POST"])
@role_required("client")
def request_withdrawal():
    data = request.get_json(silent=True)
    if not data:
        return jsonify({"error": "Invalid or missing JSON body"}), 400

    withdrawal = build_withdrawal(current_user, data)
    try:
        db.session.add(withdrawal)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Withdrawal request failed for user {current_user.id}: {e}")
        return jsonify({"error": str(e)}), 500

    logger.info(f"Withdrawal {withdrawal.id} of {withdrawal.amount} requested by user {current_user.id}")
    return jsonify({"message": "Withdrawal request submitted", "withdrawal": withdrawal.to_dict()}), 201


@withdrawals_bp.route("/withdrawals", methods=["GET"])
@role_required("client")
def my_withdrawals():
    withdrawals = (
        WithdrawalRequest.query.filter_by(user_id=current_user.id)
        .order_by(WithdrawalRequest.created_at.desc())
        .all()
    )
    return jsonify({"withdrawals": [w.to_dict() for w in withdrawals]}), 200
