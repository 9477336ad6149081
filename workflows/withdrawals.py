# workflows/withdrawals.py
from datetime import datetime, timezone

from flask import current_app

from extensions import db
from logger import review_logger
from models import Asset, Investment, PayoutMethod, WithdrawalRequest, WithdrawalStatus
from utils import parse_decimal
from workflows.errors import ValidationError, NotFoundError, InvalidTransitionError

# ==========================================================
#                  STATE MACHINE
# ==========================================================
WITHDRAWAL_TRANSITIONS = {
    WithdrawalStatus.PENDING.value: {
        WithdrawalStatus.APPROVED.value,
        WithdrawalStatus.REJECTED.value,
        WithdrawalStatus.CANCELLED.value,
    },
    WithdrawalStatus.APPROVED.value: {
        WithdrawalStatus.PAID.value,
        WithdrawalStatus.FAILED.value,
    },
}


class WithdrawalValidator:
    @staticmethod
    def validate_amount(amount):
        amount_dec = parse_decimal(amount)
        if amount_dec is None:
            raise ValidationError("Invalid amount format")
        if amount_dec <= 0:
            raise ValidationError("Amount must be greater than zero")
        return amount_dec

    @staticmethod
    def resolve_payout(data, profile):
        """Merge request payout fields over the profile's saved payout details."""
        method = (data.get("payoutMethod") or "").strip().lower()
        if not method and profile is not None:
            method = profile.alternate_payout_method or (
                PayoutMethod.MOMO.value if profile.mobile_money_number else ""
            )
        if method not in {m.value for m in PayoutMethod}:
            raise ValidationError("Payout method must be momo or bank")

        def pick(key, profile_attr):
            value = data.get(key)
            if isinstance(value, str):
                value = value.strip()
            if not value and profile is not None:
                value = getattr(profile, profile_attr)
            return value or None

        if method == PayoutMethod.MOMO.value:
            payout = {
                "momo_provider": pick("momoProvider", "mobile_money_provider"),
                "momo_number": pick("momoNumber", "mobile_money_number"),
            }
            if not payout["momo_provider"] or not payout["momo_number"]:
                raise ValidationError("Mobile money provider and number are required")
        else:
            payout = {
                "bank_name": pick("bankName", "bank_name"),
                "bank_account_number": pick("bankAccountNumber", "bank_account_number"),
                "bank_account_name": pick("bankAccountName", "bank_account_name"),
            }
            if not payout["bank_name"] or not payout["bank_account_number"]:
                raise ValidationError("Bank name and account number are required")

        return method, payout


def _owned(model, record_id, user_id, label):
    if record_id in (None, ""):
        return None
    record = db.session.get(model, record_id)
    if not record or record.investor_id != user_id:
        raise NotFoundError(f"{label} not found")
    return record


def build_withdrawal(user, data) -> WithdrawalRequest:
    amount = WithdrawalValidator.validate_amount(data.get("amount"))
    method, payout = WithdrawalValidator.resolve_payout(data, user.profile)

    investment = _owned(Investment, data.get("investmentId"), user.id, "Investment")
    asset = _owned(Asset, data.get("assetId"), user.id, "Asset")

    return WithdrawalRequest(
        user_id=user.id,
        investment_id=investment.id if investment else None,
        asset_id=asset.id if asset else None,
        amount=amount,
        currency=current_app.config.get("DEFAULT_CURRENCY", "GHS"),
        payout_method=method,
        status=WithdrawalStatus.PENDING.value,
        **payout,
    )

# ==========================================================
#                  ADMIN REVIEW
# ==========================================================
def review_withdrawal(withdrawal, new_status, reviewer_id, notes=None, transaction_reference=None, now=None):
    allowed = {s.value for s in WithdrawalStatus}
    if new_status not in allowed:
        raise ValidationError(f"Invalid status. Must be one of: {', '.join(sorted(allowed))}")
    if new_status not in WITHDRAWAL_TRANSITIONS.get(withdrawal.status, set()):
        raise InvalidTransitionError(f"Cannot move withdrawal from {withdrawal.status} to {new_status}")

    now = now or datetime.now(timezone.utc)
    previous = withdrawal.status
    withdrawal.status = new_status
    withdrawal.reviewed_at = now
    withdrawal.reviewed_by = reviewer_id
    if notes:
        withdrawal.admin_notes = notes
    if transaction_reference:
        withdrawal.transaction_reference = transaction_reference
    if new_status == WithdrawalStatus.PAID.value:
        withdrawal.paid_at = now

    review_logger.info(f"Withdrawal {withdrawal.id}: {previous} -> {new_status} (by {reviewer_id})")
    return withdrawal
