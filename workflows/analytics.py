# workflows/analytics.py
from collections import OrderedDict
from decimal import Decimal

from sqlalchemy import func

from extensions import db
from models import (
    Asset, AssetStatus, FarmVisit, Farmer, Investment, InvestmentPackage,
    InvestmentStatus, Payment, PaymentStatus, Profile, User, VisitStatus,
    WithdrawalRequest, WithdrawalStatus,
)
from utils import to_float

PROJECTED_RETURN_RATE = Decimal("0.15")


def _sum(column, *criteria):
    value = db.session.query(func.coalesce(func.sum(column), 0)).filter(*criteria).scalar()
    return Decimal(str(value or 0))


def _count(model, *criteria):
    return db.session.query(func.count(model.id)).filter(*criteria).scalar() or 0


def _month_label(value):
    return value.strftime("%b %y")


def _bucket_by_month(rows):
    """Group ``(created_at, amount)`` rows into chronologically ordered month buckets."""
    buckets = OrderedDict()
    for created_at, amount in sorted((r for r in rows if r[0] is not None), key=lambda r: r[0]):
        label = _month_label(created_at)
        buckets[label] = buckets.get(label, Decimal("0")) + Decimal(str(amount))
    return buckets

# ===========================================================
# ADMIN OVERVIEW
# ===========================================================

def admin_overview():
    """Counters for the admin landing page."""
    return {
        "totalUsers": _count(User),
        "totalFarmers": _count(Farmer),
        "pendingFarmers": _count(Farmer, Farmer.verification_status.in_(["pending", "unverified", "partially_verified"])),
        "certifiedFarmers": _count(Farmer, Farmer.is_certified.is_(True)),
        "pendingPayments": _count(Payment, Payment.status == PaymentStatus.PENDING.value),
        "pendingWithdrawals": _count(WithdrawalRequest, WithdrawalRequest.status == WithdrawalStatus.PENDING.value),
        "pendingVisits": _count(FarmVisit, FarmVisit.status == VisitStatus.PENDING.value),
        "activeInvestments": _count(Investment, Investment.status == InvestmentStatus.ACTIVE.value),
        "activeAssets": _count(Asset, Asset.status == AssetStatus.ACTIVE.value),
        "totalInvested": to_float(_sum(Investment.amount)),
    }

# ===========================================================
# ADMIN ANALYTICS
# ===========================================================

def admin_analytics():
    investment_rows = db.session.query(Investment.created_at, Investment.amount).all()
    monthly = _bucket_by_month(investment_rows)

    by_package = (
        db.session.query(InvestmentPackage.name, func.sum(Investment.amount))
        .join(InvestmentPackage, Investment.package_id == InvestmentPackage.id)
        .group_by(InvestmentPackage.name)
        .order_by(InvestmentPackage.name)
        .all()
    )

    growth = _bucket_by_month(
        (created_at, 1) for (created_at,) in db.session.query(Profile.created_at).all()
    )

    return {
        "totalInvestments": to_float(_sum(Investment.amount)),
        "totalWithdrawals": to_float(_sum(WithdrawalRequest.amount, WithdrawalRequest.status == WithdrawalStatus.PAID.value)),
        "pendingWithdrawals": to_float(_sum(WithdrawalRequest.amount, WithdrawalRequest.status == WithdrawalStatus.PENDING.value)),
        "totalUsers": _count(Profile),
        "totalFarmers": _count(Farmer),
        "certifiedFarmers": _count(Farmer, Farmer.is_certified.is_(True)),
        "totalAssets": _count(Asset),
        "activeAssets": _count(Asset, Asset.status == AssetStatus.ACTIVE.value),
        "monthlyInvestments": [{"month": m, "amount": to_float(a)} for m, a in monthly.items()],
        "investmentsByPackage": [{"name": name, "value": to_float(total)} for name, total in by_package],
        "userGrowth": [{"month": m, "users": int(n)} for m, n in growth.items()],
    }

# ===========================================================
# DASHBOARDS
# ===========================================================

def investor_summary(user):
    investments = Investment.query.filter_by(investor_id=user.id).order_by(Investment.created_at.desc()).all()
    assets = Asset.query.filter_by(investor_id=user.id).order_by(Asset.created_at.desc()).all()
    payments = Payment.query.filter_by(investor_id=user.id).order_by(Payment.created_at.desc()).all()
    withdrawals = (
        WithdrawalRequest.query.filter_by(user_id=user.id)
        .order_by(WithdrawalRequest.created_at.desc()).all()
    )
    visits = FarmVisit.query.filter_by(investor_id=user.id).order_by(FarmVisit.visit_date.desc()).all()

    active = [inv for inv in investments if inv.status == InvestmentStatus.ACTIVE.value]
    total_invested = sum((Decimal(str(inv.amount)) for inv in investments), Decimal("0"))
    projected = sum((Decimal(str(inv.amount)) * PROJECTED_RETURN_RATE for inv in active), Decimal("0"))

    return {
        "stats": {
            "totalInvested": to_float(total_invested),
            "activeInvestments": len(active),
            "activeAssets": sum(1 for a in assets if a.status == AssetStatus.ACTIVE.value),
            "projectedReturns": to_float(projected.quantize(Decimal("0.01"))),
        },
        "profile": user.profile.to_dict() if user.profile else None,
        "investments": [inv.to_dict() for inv in investments],
        "assets": [a.to_dict() for a in assets],
        "payments": [p.to_dict() for p in payments],
        "withdrawals": [w.to_dict() for w in withdrawals],
        "visits": [v.to_dict() for v in visits],
    }


def farmer_summary(user):
    farmer = user.farmer
    if farmer is None:
        return None
    farms = list(farmer.farms)
    return {
        "farmer": farmer.to_dict(),
        "farms": [farm.to_dict() for farm in farms],
        "stats": {
            "totalFarms": len(farms),
            "verifiedFarms": sum(1 for farm in farms if farm.is_verified),
            "isCertified": farmer.is_certified,
            "verificationStatus": farmer.verification_status,
        },
    }
