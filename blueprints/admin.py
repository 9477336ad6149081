#======================================================================================
#
# ADMIN: overview, analytics, users and investments
#
#=======================================================================================
from flask import jsonify, request, Blueprint
from flask_login import current_user
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError

from extensions import db
from models import Investment, InvestmentPackage, Payment, Profile, User
from utils import admin_required
from workflows.analytics import admin_analytics, admin_overview
from workflows.errors import NotFoundError
from workflows.investments import set_investment_status
from workflows.verification import set_profile_kyc
import logging

logger = logging.getLogger(__name__)

admin_bp = Blueprint('admin', __name__, url_prefix='/api/admin')


@admin_bp.route("/overview", methods=["GET"])
@admin_required
def overview():
    return jsonify(admin_overview()), 200


@admin_bp.route("/analytics", methods=["GET"])
@admin_required
def analytics():
    return jsonify(admin_analytics()), 200


#============================================================================================================
#     USERS & KYC
#============================================================================================================

@admin_bp.route("/users", methods=["GET"])
@admin_required
def list_users():
    """Users with their profile, optionally filtered by search text and KYC status."""
    q = request.args.get("q", "").strip()
    status = request.args.get("status", "").strip()

    query = User.query.outerjoin(Profile)
    if q:
        like = f"%{q}%"
        query = query.filter(or_(
            User.email.ilike(like),
            Profile.full_name.ilike(like),
            Profile.phone.ilike(like),
            Profile.id_number.ilike(like),
        ))
    if status:
        query = query.filter(Profile.verification_status == status)

    users = query.order_by(User.created_at.desc()).all()
    return jsonify({
        "users": [
            {**u.to_dict(), "profile": u.profile.to_dict() if u.profile else None}
            for u in users
        ],
        "total": len(users),
    }), 200


@admin_bp.route("/users/<int:user_id>/kyc", methods=["POST"])
@admin_required
def update_kyc(user_id):
    user = db.session.get(User, user_id)
    if not user or not user.profile:
        raise NotFoundError("User not found")

    data = request.get_json(silent=True) or {}
    set_profile_kyc(user.profile, data.get("status"), reviewer_id=current_user.id)
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 500

    return jsonify({"message": "KYC status updated", "profile": user.profile.to_dict()}), 200


#============================================================================================================
#     INVESTMENTS
#============================================================================================================

@admin_bp.route("/investments", methods=["GET"])
@admin_required
def list_investments():
    status = request.args.get("status", "").strip()
    query = Investment.query
    if status:
        query = query.filter(Investment.status == status)
    investments = query.order_by(Investment.created_at.desc()).all()
    return jsonify({"investments": [i.to_dict() for i in investments]}), 200


@admin_bp.route("/investments/<int:investment_id>/status", methods=["POST"])
@admin_required
def update_investment_status(investment_id):
    investment = db.session.get(Investment, investment_id)
    if not investment:
        raise NotFoundError("Investment not found")

    data = request.get_json(silent=True) or {}
    set_investment_status(investment, data.get("status"), current_user.id, data.get("actualRoi"))
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 500

    return jsonify({"message": "Investment updated", "investment": investment.to_dict()}), 200


#============================================================================================================
#
#     ----------------------------ADMIN SEARCH FUNCTIONALITY-------------------------------------------
#
#============================================================================================================

@admin_bp.route('/search', methods=['GET'])
@admin_required
def admin_search():
    """Admin search across users and payments"""
    query = request.args.get('q', '').strip()
    if not query:
        return jsonify({
            'users': [],
            'payments': [],
            'message': 'Please provide a search query'
        }), 400

    users = search_users(query)
    payments = search_payments(query)
    return jsonify({
        'users': users,
        'payments': payments,
        'total_results': len(users) + len(payments)
    }), 200


def search_users(query):
    """Search users by email, name, phone, or ID"""
    like = f"%{query}%"
    filters = [User.email.ilike(like), Profile.full_name.ilike(like), Profile.phone.ilike(like)]
    if query.isdigit():
        filters.append(User.id == int(query))
    users = User.query.outerjoin(Profile).filter(or_(*filters)).limit(50).all()
    return [u.to_dict() for u in users]


def search_payments(query):
    """Search payments by reference, investor name/email or package name"""
    like = f"%{query}%"
    payments = (
        Payment.query
        .outerjoin(User, Payment.investor_id == User.id)
        .outerjoin(Profile, Profile.user_id == User.id)
        .outerjoin(InvestmentPackage, Payment.package_id == InvestmentPackage.id)
        .filter(or_(
            Payment.transaction_reference.ilike(like),
            User.email.ilike(like),
            Profile.full_name.ilike(like),
            InvestmentPackage.name.ilike(like),
        ))
        .order_by(Payment.created_at.desc())
        .limit(50)
        .all()
    )
    return [p.to_dict() for p in payments]
