# workflows/onboarding.py
import logging

from extensions import db
from models import AppRole, Farm, Farmer, VerificationStatus
from utils import parse_decimal, parse_iso_date, to_float
from workflows.errors import ValidationError

logger = logging.getLogger(__name__)

FARM_TYPES = ("crops", "livestock", "mixed", "poultry", "aquaculture")
FARM_SIZE_UNITS = ("acres", "hectares")

# (request key, minimum length, message)
INVESTOR_REQUIRED = (
    ("firstName", 2, "First name is required"),
    ("lastName", 2, "Last name is required"),
    ("dateOfBirth", 1, "Date of birth is required"),
    ("primaryPhone", 10, "Valid phone number required (e.g., +233...)"),
    ("residentialAddress", 10, "Full address required"),
    ("city", 2, "City is required"),
    ("region", 2, "Region is required"),
    ("idType", 1, "ID type is required"),
    ("idNumber", 5, "ID number is required"),
    ("mobileMoneyProvider", 1, "MoMo provider is required"),
    ("mobileMoneyNumber", 10, "MoMo number is required"),
)

FARMER_REQUIRED = (
    ("businessName", 2, "Business name is required"),
    ("firstName", 2, "First name is required"),
    ("lastName", 2, "Last name is required"),
    ("primaryPhone", 10, "Valid phone number required"),
    ("dateOfBirth", 1, "Date of birth is required"),
    ("idType", 1, "ID type is required"),
    ("idNumber", 5, "ID number is required"),
    ("farmName", 2, "Farm name is required"),
    ("farmType", 1, "Farm type is required"),
    ("locationAddress", 10, "Address is required"),
    ("locationCity", 2, "City is required"),
    ("locationRegion", 2, "Region is required"),
)

# request key -> Profile attribute
INVESTOR_PROFILE_FIELDS = {
    "firstName": "first_name",
    "middleName": "middle_name",
    "lastName": "last_name",
    "gender": "gender",
    "primaryPhone": "primary_phone",
    "preferredContactMethod": "preferred_contact_method",
    "residentialAddress": "residential_address",
    "city": "city",
    "region": "region",
    "postalCode": "postal_code",
    "idType": "id_type",
    "idNumber": "id_number",
    "mobileMoneyProvider": "mobile_money_provider",
    "mobileMoneyNumber": "mobile_money_number",
    "alternatePayoutMethod": "alternate_payout_method",
    "bankName": "bank_name",
    "bankAccountNumber": "bank_account_number",
    "bankAccountName": "bank_account_name",
    "emergencyContactName": "emergency_contact_name",
    "emergencyContactPhone": "emergency_contact_phone",
}

FARMER_PROFILE_FIELDS = {
    "firstName": "first_name",
    "lastName": "last_name",
    "primaryPhone": "primary_phone",
    "idType": "id_type",
    "idNumber": "id_number",
}


def _text(data, key):
    value = data.get(key)
    if value is None:
        return ""
    return str(value).strip()


def _check_required(data, rules):
    errors = {}
    for key, min_length, message in rules:
        if len(_text(data, key)) < min_length:
            errors[key] = message
    if data.get("termsAccepted") is not True:
        errors["termsAccepted"] = "You must accept the terms"
    return errors


def _raise_if(errors):
    if errors:
        first = next(iter(errors.values()))
        raise ValidationError(first, errors=errors)


def _split_list(value):
    if isinstance(value, list):
        return [str(v).strip() for v in value if str(v).strip()]
    if not value:
        return []
    return [part.strip() for part in str(value).split(",") if part.strip()]


def _full_name(profile):
    parts = [profile.first_name, profile.middle_name, profile.last_name]
    return " ".join(p for p in parts if p) or profile.full_name

# ==========================================================
#                  INVESTOR
# ==========================================================
def complete_investor_onboarding(user, data):
    errors = _check_required(data, INVESTOR_REQUIRED)
    date_of_birth = parse_iso_date(data.get("dateOfBirth"))
    if "dateOfBirth" not in errors and date_of_birth is None:
        errors["dateOfBirth"] = "Date of birth must be YYYY-MM-DD"
    _raise_if(errors)

    profile = user.profile
    for key, attr in INVESTOR_PROFILE_FIELDS.items():
        value = _text(data, key)
        setattr(profile, attr, value or None)

    profile.date_of_birth = date_of_birth
    profile.phone = profile.primary_phone
    profile.full_name = _full_name(profile)
    profile.marketing_consent = bool(data.get("marketingConsent"))
    profile.onboarding_completed = True

    logger.info(f"Investor onboarding completed for user {user.id}")
    return profile

# ==========================================================
#                  FARMER
# ==========================================================
def complete_farmer_onboarding(user, data):
    """Update the profile, create the Farmer and its first Farm, grant the farmer role."""
    if user.farmer is not None:
        raise ValidationError("You have already submitted a farmer application")

    errors = _check_required(data, FARMER_REQUIRED)

    date_of_birth = parse_iso_date(data.get("dateOfBirth"))
    if "dateOfBirth" not in errors and date_of_birth is None:
        errors["dateOfBirth"] = "Date of birth must be YYYY-MM-DD"

    farm_type = _text(data, "farmType").lower()
    if "farmType" not in errors and farm_type not in FARM_TYPES:
        errors["farmType"] = f"Farm type must be one of: {', '.join(FARM_TYPES)}"

    farm_size = parse_decimal(data.get("farmSize"))
    if farm_size is None or farm_size < parse_decimal("0.1"):
        errors["farmSize"] = "Farm size is required"

    farm_size_unit = _text(data, "farmSizeUnit").lower() or "acres"
    if farm_size_unit not in FARM_SIZE_UNITS:
        errors["farmSizeUnit"] = "Farm size unit must be acres or hectares"

    years = data.get("yearsOfExperience")
    if years not in (None, ""):
        try:
            years = int(years)
        except (TypeError, ValueError):
            years = -1
        if years < 0:
            errors["yearsOfExperience"] = "Years of experience must be zero or more"
    else:
        years = None

    _raise_if(errors)

    profile = user.profile
    for key, attr in FARMER_PROFILE_FIELDS.items():
        setattr(profile, attr, _text(data, key) or None)
    profile.date_of_birth = date_of_birth
    profile.phone = profile.primary_phone
    profile.full_name = _full_name(profile)
    profile.onboarding_completed = True

    farmer = Farmer(
        user=user,
        business_name=_text(data, "businessName"),
        business_registration_number=_text(data, "businessRegistrationNumber") or None,
        years_of_experience=years,
        verification_status=VerificationStatus.PENDING.value,
    )
    db.session.add(farmer)
    db.session.flush()

    farm = Farm(
        farmer_id=farmer.id,
        farm_name=_text(data, "farmName"),
        farm_type=farm_type,
        farm_size=farm_size,
        farm_size_unit=farm_size_unit,
        location_address=_text(data, "locationAddress"),
        location_city=_text(data, "locationCity"),
        location_region=_text(data, "locationRegion"),
        gps_latitude=to_float(data.get("gpsLatitude"), None),
        gps_longitude=to_float(data.get("gpsLongitude"), None),
        main_crops=_split_list(data.get("mainCrops")),
        livestock_types=_split_list(data.get("livestockTypes")),
        irrigation_type=_text(data, "irrigationType") or None,
        soil_type=_text(data, "soilType") or None,
        status="pending_verification",
    )
    db.session.add(farm)

    user.grant_role(AppRole.FARMER)

    logger.info(f"Farmer application submitted by user {user.id} (farmer {farmer.id})")
    return farmer, farm
