#===========================================================================
#      PAYMENT SUBMISSION
#===========================================================================
from flask import Blueprint, jsonify, request
from flask_login import current_user
from sqlalchemy.exc import SQLAlchemyError

from extensions import db
from models import Payment
from utils import role_required
from workflows.investments import get_package_or_404
from workflows.payments import build_payment
import logging

logger = logging.getLogger(__name__)

payments_bp = Blueprint("payments", __name__, url_prefix="/api")


@payments_bp.route("/payments", methods=["POST"])
@role_required("client")
def submit_payment():
    """
    Record a manual payment (momo, bank or in person) for admin verification.
    Nothing is charged here; the reference is what the admin reconciles against.
    """
    data = request.get_json(silent=True)
    if not data:
        return jsonify({"error": "Invalid or missing JSON body"}), 400

    package = get_package_or_404(data.get("packageId"), active_only=True)
    payment = build_payment(current_user, package, data)

    try:
        db.session.add(payment)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Payment submission failed for user {current_user.id}: {e}")
        return jsonify({"error": str(e)}), 500

    logger.info(f"Payment {payment.id} ({payment.method}) submitted by user {current_user.id}")
    return jsonify({
        "message": "Payment submitted for verification",
        "transactionReference": payment.transaction_reference,
        "payment": payment.to_dict(),
    }), 201


@payments_bp.route("/payments", methods=["GET"])
@role_required("client")
def my_payments():
    payments = (
        Payment.query.filter_by(investor_id=current_user.id)
        .order_by(Payment.created_at.desc())
        .all()
    )
    return jsonify({"payments": [p.to_dict() for p in payments]}), 200
