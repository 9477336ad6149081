import re
import secrets
import string
import logging
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from functools import wraps

from flask import current_app, jsonify
from flask_login import current_user

logger = logging.getLogger(__name__)

BASE36_ALPHABET = string.digits + string.ascii_lowercase
REFERENCE_ALPHABET = string.ascii_uppercase + string.digits


def resend_headers():
    """
    Returns HTTP headers required to call the Resend email API.
    Pulls the API key from the app config and sets the JSON content type.
    """
    api_key = current_app.config.get("RESEND_API_KEY")
    if not api_key:
        logger.error("RESEND_API_KEY not set")
        raise RuntimeError("RESEND_API_KEY not configured")
    return {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json"
    }


def validate_email(email):
    return re.match(r'^[\w\.\+-]+@[\w\.-]+\.\w+$', email or "")


def validate_phone(phone):
    return re.match(r'^\+?\d{9,15}$', (phone or "").replace(" ", ""))


def to_base36(number: int) -> str:
    if number < 0:
        raise ValueError("number must be non-negative")
    if number == 0:
        return "0"
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(BASE36_ALPHABET[rem])
    return "".join(reversed(digits))


def _epoch_millis(now=None):
    now = now or datetime.now(timezone.utc)
    return int(now.timestamp() * 1000)


def _random_chars(length):
    return "".join(secrets.choice(REFERENCE_ALPHABET) for _ in range(length))


def generate_transaction_reference(now=None) -> str:
    """CES-<base36 epoch millis>-<6 random chars>, upper-cased."""
    return f"CES-{to_base36(_epoch_millis(now)).upper()}-{_random_chars(6)}"


def generate_certification_number(now=None) -> str:
    return f"CES-F-{to_base36(_epoch_millis(now)).upper()}-{_random_chars(4)}"


def generate_tag_id(year=None) -> str:
    year = year or datetime.now(timezone.utc).year
    return f"CES-{year}-{100000 + secrets.randbelow(900000)}"


def parse_decimal(value):
    """Parse a money amount into a 2dp Decimal, or None when it is not a number."""
    if value is None or value == "":
        return None
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite():
        return None
    return amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def parse_iso_date(value):
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    if not value:
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def to_float(value, default=0.0):
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def isoformat_or_none(value):
    if value is None:
        return None
    return value.isoformat()


def role_required(*roles):
    """Answer 401 for anonymous callers and 403 when none of the roles is held."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_user.is_authenticated:
                return jsonify({"error": "Authentication required"}), 401
            if not any(current_user.has_role(role) for role in roles):
                logger.warning(f"User {current_user.id} denied access to {f.__name__}")
                return jsonify({"error": "Forbidden"}), 403
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def admin_required(f):
    return role_required("admin")(f)


def login_required_json(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            return jsonify({"error": "Authentication required"}), 401
        return f(*args, **kwargs)
    return decorated_function
