# workflows/verification.py
from datetime import datetime, timezone, timedelta

from extensions import db
from logger import review_logger as logger
from models import Farmer, KycStatus, VerificationStatus
from utils import generate_certification_number
from workflows.errors import ValidationError, NotFoundError, InvalidTransitionError

VERIFICATION_FLAGS = (
    "identity_verified",
    "farm_verified",
    "compliance_verified",
    "admin_approved",
)

CERTIFICATION_PREREQUISITES = VERIFICATION_FLAGS[:3]
CERTIFICATION_VALIDITY = timedelta(days=365)


def get_farmer_or_404(farmer_id) -> Farmer:
    farmer = db.session.get(Farmer, farmer_id)
    if not farmer:
        raise NotFoundError("Farmer not found")
    return farmer

def compute_verification_status(farmer) -> str:
    """Derive the aggregate status from the four verification flags."""
    flags = [bool(getattr(farmer, flag)) for flag in VERIFICATION_FLAGS]
    if all(flags):
        return VerificationStatus.FULLY_VERIFIED.value
    if any(flags):
        return VerificationStatus.PARTIALLY_VERIFIED.value
    return VerificationStatus.PENDING.value

def update_verification_step(farmer, field, value, notes=None, reviewer_id=None) -> Farmer:
    """
    Write one verification flag and recompute ``verification_status``.

    A rejected farmer re-enters the normal flow as soon as an admin sets a flag.
    The caller owns the commit.
    """
    if field not in VERIFICATION_FLAGS:
        raise ValidationError(f"Unknown verification step '{field}'")
    if not isinstance(value, bool):
        raise ValidationError("Verification value must be true or false")

    setattr(farmer, field, value)
    if notes:
        farmer.verification_notes = notes

    farmer.verification_status = compute_verification_status(farmer)
    if farmer.verification_status == VerificationStatus.FULLY_VERIFIED.value:
        farmer.verified_at = datetime.now(timezone.utc)
        farmer.verified_by = reviewer_id

    logger.info(
        f"Farmer {farmer.id}: {field}={value} -> {farmer.verification_status} (by {reviewer_id})"
    )
    return farmer

def issue_certification(farmer, reviewer_id=None, notes=None, now=None) -> Farmer:
    """Certify a farmer whose identity, farm and compliance checks have all passed."""
    if farmer.is_certified:
        raise ValidationError("Farmer is already certified")

    missing = [flag for flag in CERTIFICATION_PREREQUISITES if not getattr(farmer, flag)]
    if missing:
        raise ValidationError(
            "Farmer cannot be certified until these checks pass: " + ", ".join(missing)
        )

    now = now or datetime.now(timezone.utc)
    farmer.admin_approved = True
    farmer.certification_number = generate_certification_number(now)
    farmer.certification_issued_at = now
    farmer.certification_expires_at = now + CERTIFICATION_VALIDITY
    farmer.is_certified = True
    farmer.verification_status = VerificationStatus.FULLY_VERIFIED.value
    farmer.verified_at = now
    farmer.verified_by = reviewer_id
    if notes:
        farmer.verification_notes = notes

    logger.info(f"Farmer {farmer.id} certified as {farmer.certification_number} (by {reviewer_id})")
    return farmer

def reject_farmer(farmer, reason, reviewer_id=None) -> Farmer:
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("A rejection reason is required")
    if farmer.is_certified:
        raise InvalidTransitionError("Certified farmers cannot be rejected")

    farmer.verification_status = VerificationStatus.REJECTED.value
    farmer.verification_notes = reason
    logger.info(f"Farmer {farmer.id} rejected by {reviewer_id}: {reason}")
    return farmer


def set_farm_flags(farm, data, reviewer_id=None):
    """Apply the admin farm checks. ``isVerified`` also moves the farm status."""
    changed = False
    if "isVerified" in data:
        if not isinstance(data["isVerified"], bool):
            raise ValidationError("isVerified must be true or false")
        farm.is_verified = data["isVerified"]
        farm.status = "verified" if farm.is_verified else "pending_verification"
        changed = True
    if "isCertified" in data:
        if not isinstance(data["isCertified"], bool):
            raise ValidationError("isCertified must be true or false")
        farm.is_certified = data["isCertified"]
        if farm.is_certified and not farm.certification_number:
            farm.certification_number = farm.farmer.certification_number if farm.farmer else None
        changed = True
    if not changed:
        raise ValidationError("Nothing to update")

    logger.info(f"Farm {farm.id}: verified={farm.is_verified} certified={farm.is_certified} (by {reviewer_id})")
    return farm


def set_profile_kyc(profile, status, reviewer_id=None):
    allowed = {s.value for s in KycStatus}
    if status not in allowed:
        raise ValidationError(f"Invalid status. Must be one of: {', '.join(sorted(allowed))}")
    profile.verification_status = status
    logger.info(f"Profile {profile.id} KYC -> {status} (by {reviewer_id})")
    return profile
