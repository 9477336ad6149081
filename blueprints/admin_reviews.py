#======================================================================================
#
# ADMIN REVIEW QUEUES: payments, withdrawals and farm visits
#
#=======================================================================================
from flask import jsonify, request, Blueprint
from flask_login import current_user
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError

from extensions import db
from models import FarmVisit, InvestmentPackage, Payment, Profile, User, VisitStatus, WithdrawalRequest
from utils import admin_required
from workflows.errors import NotFoundError
from workflows.payments import notify_payment_reviewed, review_payment
from workflows.visits import review_visit, send_visit_confirmation
from workflows.withdrawals import review_withdrawal
import logging

logger = logging.getLogger(__name__)

reviews_bp = Blueprint('admin_reviews', __name__, url_prefix='/api/admin')


def _commit():
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Review commit failed: {e}")
        return jsonify({"error": str(e)}), 500
    return None


#============================================================================================================
#     PAYMENTS
#============================================================================================================

@reviews_bp.route("/payments", methods=["GET"])
@admin_required
def list_payments():
    """Filter by ``status`` and ``method``; ``q`` matches name, email, reference or package."""
    q = request.args.get("q", "").strip()
    status = request.args.get("status", "").strip()
    method = request.args.get("method", "").strip()

    query = (
        Payment.query
        .outerjoin(User, Payment.investor_id == User.id)
        .outerjoin(Profile, Profile.user_id == User.id)
        .outerjoin(InvestmentPackage, Payment.package_id == InvestmentPackage.id)
    )
    if status and status != "all":
        query = query.filter(Payment.status == status)
    if method and method != "all":
        query = query.filter(Payment.method == method)
    if q:
        like = f"%{q}%"
        query = query.filter(or_(
            Profile.full_name.ilike(like),
            Profile.email.ilike(like),
            Payment.transaction_reference.ilike(like),
            InvestmentPackage.name.ilike(like),
        ))

    payments = query.order_by(Payment.created_at.desc()).all()
    return jsonify({"payments": [p.to_dict() for p in payments], "total": len(payments)}), 200


@reviews_bp.route("/payments/<int:payment_id>/review", methods=["POST"])
@admin_required
def review_payment_route(payment_id):
    payment = db.session.get(Payment, payment_id)
    if not payment:
        raise NotFoundError("Payment not found")

    data = request.get_json(silent=True) or {}
    review_payment(payment, data.get("status"), current_user.id, notes=data.get("adminNotes"))
    failed = _commit()
    if failed:
        return failed

    reason = data.get("rejectionReason") or data.get("adminNotes")
    _, email_error = notify_payment_reviewed(payment, rejection_reason=reason)
    return jsonify({
        "message": f"Payment {payment.status}",
        "payment": payment.to_dict(),
        "notificationSent": email_error is None,
    }), 200


#============================================================================================================
#     WITHDRAWALS
#============================================================================================================

@reviews_bp.route("/withdrawals", methods=["GET"])
@admin_required
def list_withdrawals():
    status = request.args.get("status", "").strip()
    query = WithdrawalRequest.query
    if status and status != "all":
        query = query.filter(WithdrawalRequest.status == status)
    withdrawals = query.order_by(WithdrawalRequest.created_at.desc()).all()
    return jsonify({"withdrawals": [w.to_dict() for w in withdrawals], "total": len(withdrawals)}), 200


@reviews_bp.route("/withdrawals/<int:withdrawal_id>/review", methods=["POST"])
@admin_required
def review_withdrawal_route(withdrawal_id):
    withdrawal = db.session.get(WithdrawalRequest, withdrawal_id)
    if not withdrawal:
        raise NotFoundError("Withdrawal not found")

    data = request.get_json(silent=True) or {}
    review_withdrawal(
        withdrawal,
        data.get("status"),
        current_user.id,
        notes=data.get("adminNotes"),
        transaction_reference=data.get("transactionReference"),
    )
    failed = _commit()
    if failed:
        return failed

    return jsonify({
        "message": f"Withdrawal marked as {withdrawal.status}",
        "withdrawal": withdrawal.to_dict(),
    }), 200


#============================================================================================================
#     FARM VISITS
#============================================================================================================

@reviews_bp.route("/visits", methods=["GET"])
@admin_required
def list_visits():
    status = request.args.get("status", "").strip()
    query = FarmVisit.query
    if status and status != "all":
        query = query.filter(FarmVisit.status == status)
    visits = query.order_by(FarmVisit.visit_date.asc()).all()
    return jsonify({"visits": [v.to_dict() for v in visits], "total": len(visits)}), 200


@reviews_bp.route("/visits/<int:visit_id>/review", methods=["POST"])
@admin_required
def review_visit_route(visit_id):
    visit = db.session.get(FarmVisit, visit_id)
    if not visit:
        raise NotFoundError("Visit not found")

    data = request.get_json(silent=True) or {}
    review_visit(visit, data.get("status"), current_user.id)
    failed = _commit()
    if failed:
        return failed

    if visit.status == VisitStatus.APPROVED.value:
        _, email_error = send_visit_confirmation(visit)
        if email_error is None:
            failed = _commit()
            if failed:
                return failed

    return jsonify({
        "message": f"Visit {visit.status}",
        "visit": visit.to_dict(),
        "notificationSent": visit.confirmation_sent,
    }), 200
