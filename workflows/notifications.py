# workflows/notifications.py
from decimal import Decimal
from enum import Enum

import requests
from flask import current_app, render_template

from logger import notifications_logger as logger
from utils import resend_headers


class NotificationType(Enum):
    PAYMENT_APPROVED = "payment_approved"
    PAYMENT_REJECTED = "payment_rejected"
    FARM_VISIT_CONFIRMED = "farm_visit_confirmed"


class NotificationError(Exception):
    pass


SUBJECTS = {
    NotificationType.PAYMENT_APPROVED: "Payment Approved - CES Agritech",
    NotificationType.PAYMENT_REJECTED: "Payment Update - CES Agritech",
    NotificationType.FARM_VISIT_CONFIRMED: "Farm Visit Confirmed - CES Agritech",
}

DETAIL_FIELDS = (
    "amount",
    "packageName",
    "transactionReference",
    "visitDate",
    "visitTime",
    "location",
    "rejectionReason",
)


def format_amount(amount):
    if amount is None or amount == "":
        return None
    try:
        value = Decimal(str(amount))
    except ArithmeticError:
        return str(amount)
    if value == value.to_integral_value():
        return f"{value:,.0f}"
    return f"{value:,.2f}"


def parse_notification_type(value) -> NotificationType:
    try:
        return NotificationType(value)
    except ValueError:
        raise NotificationError(f"Unknown notification type: {value}")


def render_email(notification_type, recipient_name, details=None):
    """Return ``(subject, html)`` for one notification."""
    notification_type = (
        notification_type if isinstance(notification_type, NotificationType)
        else parse_notification_type(notification_type)
    )
    details = {key: (details or {}).get(key) for key in DETAIL_FIELDS}
    details["amount"] = format_amount(details["amount"])
    if not details["location"]:
        details["location"] = current_app.config.get("DEFAULT_VISIT_LOCATION")

    html = render_template(
        f"emails/{notification_type.value}.html",
        recipient_name=recipient_name or "Investor",
        details=details,
        currency=current_app.config.get("DEFAULT_CURRENCY", "GHS"),
        base_url=current_app.config.get("APP_BASE_URL", "").rstrip("/"),
    )
    return SUBJECTS[notification_type], html


# =========================
# SEND THROUGH RESEND
# =========================
def send_email(to, subject, html):
    """Post one email to Resend and return the provider's JSON response."""
    payload = {
        "from": current_app.config["NOTIFICATION_SENDER"],
        "to": [to],
        "subject": subject,
        "html": html,
    }
    base_url = current_app.config["RESEND_BASE_URL"].rstrip("/")
    timeout = current_app.config.get("REQUEST_TIMEOUT_SECONDS", 30)

    try:
        resp = requests.post(f"{base_url}/emails", json=payload, headers=resend_headers(), timeout=timeout)
        resp.raise_for_status()
        data = resp.json()
    except requests.HTTPError as e:
        body = e.response.text if e.response is not None else str(e)
        logger.error(f"Resend rejected email to {to}: {body}")
        raise NotificationError(f"Failed to send email: {body}") from e
    except ValueError as e:
        logger.error(f"Resend answered {to} with a non-JSON body: {e}")
        raise NotificationError(f"Invalid response from email provider: {e}") from e
    except requests.RequestException as e:
        logger.error(f"Resend request failed for {to}: {e}")
        raise NotificationError(f"Failed to send email: {e}") from e
    except RuntimeError as e:
        raise NotificationError(str(e)) from e

    logger.info(f"Email '{subject}' sent to {to}: {data}")
    return data


def send_notification(notification_type, recipient_email, recipient_name, details=None):
    if not recipient_email:
        raise NotificationError("recipientEmail is required")
    subject, html = render_email(notification_type, recipient_name, details)
    return send_email(recipient_email, subject, html)


def notify(notification_type, recipient_email, recipient_name, details=None):
    """
    Fire-and-log variant used after admin reviews.

    Returns ``(response, None)`` on success or ``(None, error)`` so the caller
    can keep its already-committed status change.
    """
    try:
        return send_notification(notification_type, recipient_email, recipient_name, details), None
    except NotificationError as e:
        logger.warning(f"{getattr(notification_type, 'value', notification_type)} email to {recipient_email} not sent: {e}")
        return None, e
