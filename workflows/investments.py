# workflows/investments.py
from datetime import datetime, timezone
from decimal import Decimal

from dateutil.relativedelta import relativedelta

from extensions import db
from logger import review_logger
from models import Investment, InvestmentPackage, InvestmentStatus
from utils import parse_decimal
from workflows.errors import ValidationError, NotFoundError

# ==========================================================
#                  PACKAGES
# ==========================================================
def get_package_or_404(package_id, active_only=False) -> InvestmentPackage:
    package = db.session.get(InvestmentPackage, package_id) if package_id is not None else None
    if not package or (active_only and not package.is_active):
        raise NotFoundError("Package not found")
    return package


def active_packages():
    return (
        InvestmentPackage.query
        .filter_by(is_active=True)
        .order_by(InvestmentPackage.min_investment.asc())
        .all()
    )

# ==========================================================
#                  AMOUNT VALIDATION
# ==========================================================
def validate_investment_amount(package, amount) -> Decimal:
    """Parse ``amount`` and enforce the package minimum. Returns the 2dp Decimal."""
    amount_dec = parse_decimal(amount)
    if amount_dec is None:
        raise ValidationError("Invalid amount format")
    if amount_dec <= 0:
        raise ValidationError("Amount must be greater than zero")

    minimum = Decimal(str(package.min_investment))
    if amount_dec < minimum:
        raise ValidationError(f"Minimum investment for this package is GHS {minimum:,.2f}")
    return amount_dec

# ==========================================================
#                  INVESTMENTS
# ==========================================================
def create_investment(investor, package, amount, now=None) -> Investment:
    amount_dec = validate_investment_amount(package, amount)
    start = now or datetime.now(timezone.utc)

    investment = Investment(
        investor_id=investor.id,
        package_id=package.id,
        amount=amount_dec,
        start_date=start,
        maturity_date=start + relativedelta(months=package.duration_months),
        status=InvestmentStatus.ACTIVE.value,
    )
    db.session.add(investment)
    return investment


def set_investment_status(investment, status, reviewer_id=None, actual_roi=None) -> Investment:
    allowed = {s.value for s in InvestmentStatus}
    if status not in allowed:
        raise ValidationError(f"Invalid status. Must be one of: {', '.join(sorted(allowed))}")

    if actual_roi is not None:
        roi = parse_decimal(actual_roi)
        if roi is None:
            raise ValidationError("actualRoi must be a number")
        investment.actual_roi = roi

    previous = investment.status
    investment.status = status
    review_logger.info(f"Investment {investment.id}: {previous} -> {status} (by {reviewer_id})")
    return investment
