# workflows/payments.py
from datetime import datetime, timezone

from flask import current_app

from logger import review_logger
from models import Payment, PaymentMethod, PaymentStatus
from utils import generate_transaction_reference
from workflows.errors import ValidationError, InvalidTransitionError
from workflows.investments import validate_investment_amount
from workflows.notifications import NotificationType, notify

# Required request fields per payment method
METHOD_REQUIRED_FIELDS = {
    PaymentMethod.MOMO.value: ("momoProvider", "momoNumber", "transactionReference"),
    PaymentMethod.BANK.value: ("bankName", "bankAccountNumber", "transactionReference"),
    PaymentMethod.IN_PERSON.value: ("paymentLocation",),
}

PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING.value: {PaymentStatus.VERIFIED.value, PaymentStatus.REJECTED.value},
    PaymentStatus.VERIFIED.value: set(),
    PaymentStatus.REJECTED.value: set(),
}


def _clean(data, key):
    value = data.get(key)
    if isinstance(value, str):
        value = value.strip()
    return value or None

# =========================
# SUBMISSION
# =========================
def build_payment(investor, package, data) -> Payment:
    """Validate a payment submission and return an unsaved ``Payment``."""
    method = (data.get("method") or "").strip().lower()
    if method not in METHOD_REQUIRED_FIELDS:
        raise ValidationError("Payment method must be one of: momo, bank, in_person")

    amount = validate_investment_amount(package, data.get("amount"))

    missing = [field for field in METHOD_REQUIRED_FIELDS[method] if not _clean(data, field)]
    if missing:
        raise ValidationError("Please fill in all required fields: " + ", ".join(missing))

    payment = Payment(
        investor_id=investor.id,
        package_id=package.id,
        amount=amount,
        currency=current_app.config.get("DEFAULT_CURRENCY", "GHS"),
        method=method,
        status=PaymentStatus.PENDING.value,
    )

    if method == PaymentMethod.MOMO.value:
        payment.momo_provider = _clean(data, "momoProvider")
        payment.momo_number = _clean(data, "momoNumber")
        payment.transaction_reference = _clean(data, "transactionReference")
    elif method == PaymentMethod.BANK.value:
        payment.bank_name = _clean(data, "bankName")
        payment.bank_account_number = _clean(data, "bankAccountNumber")
        payment.bank_account_name = _clean(data, "bankAccountName")
        payment.transaction_reference = _clean(data, "transactionReference")
    else:
        notes = f"Payment Location: {_clean(data, 'paymentLocation')}"
        receipt = _clean(data, "receiptFileName")
        if receipt:
            notes += f" | Receipt uploaded: {receipt}"
        payment.admin_notes = notes

    if not payment.transaction_reference:
        payment.transaction_reference = generate_transaction_reference()

    return payment

# =========================
# ADMIN REVIEW
# =========================
def review_payment(payment, new_status, reviewer_id, notes=None) -> Payment:
    """Move a pending payment to verified or rejected. Both are terminal."""
    if new_status not in PAYMENT_TRANSITIONS:
        raise ValidationError("Status must be one of: pending, verified, rejected")
    if new_status not in PAYMENT_TRANSITIONS.get(payment.status, set()):
        raise InvalidTransitionError(f"Cannot move payment from {payment.status} to {new_status}")

    payment.status = new_status
    if notes:
        payment.admin_notes = notes
    if new_status == PaymentStatus.VERIFIED.value:
        payment.verified_at = datetime.now(timezone.utc)
        payment.verified_by = reviewer_id

    review_logger.info(f"Payment {payment.id} marked {new_status} by {reviewer_id}")
    return payment


def notify_payment_reviewed(payment, rejection_reason=None):
    """
    Email the investor about a committed review. Failures are logged only.

    ``rejection_reason`` is the reviewer's text, not the stored admin notes.
    """
    investor = payment.investor
    if not investor:
        return None, None
    profile = investor.profile

    if payment.status == PaymentStatus.VERIFIED.value:
        notification_type = NotificationType.PAYMENT_APPROVED
    elif payment.status == PaymentStatus.REJECTED.value:
        notification_type = NotificationType.PAYMENT_REJECTED
    else:
        return None, None

    details = {
        "amount": payment.amount,
        "packageName": payment.package.name if payment.package else None,
        "transactionReference": payment.transaction_reference,
        "rejectionReason": rejection_reason if notification_type == NotificationType.PAYMENT_REJECTED else None,
    }
    return notify(
        notification_type,
        profile.email if profile else investor.email,
        profile.full_name if profile and profile.full_name else "Investor",
        details,
    )
