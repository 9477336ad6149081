# workflows/catalog.py
import os
import logging
from datetime import datetime, timezone

from flask import current_app, url_for
from werkzeug.utils import secure_filename

from extensions import db
from models import (
    Asset, AssetPhase, AssetStatus, Farm, FarmMedia, Investment, InvestmentPackage,
    Payment, User,
)
from utils import generate_tag_id, parse_decimal, parse_iso_date
from workflows.errors import ValidationError, NotFoundError

logger = logging.getLogger(__name__)

ALLOWED_MEDIA_EXTENSIONS = {
    "image": {"jpg", "jpeg", "png", "gif", "webp"},
    "video": {"mp4", "mov", "webm"},
}
TAG_ID_ATTEMPTS = 5

# ==========================================================
#                  PACKAGES
# ==========================================================
PACKAGE_FIELDS = {
    "name": "name",
    "description": "description",
    "businessType": "business_type",
    "minInvestment": "min_investment",
    "expectedRoiMin": "expected_roi_min",
    "expectedRoiMax": "expected_roi_max",
    "durationMonths": "duration_months",
    "imageUrl": "image_url",
    "isActive": "is_active",
}


def _package_values(data, partial=False):
    values = {}
    errors = {}

    for key, attr in PACKAGE_FIELDS.items():
        if key not in data:
            continue
        values[attr] = data[key]

    for attr in ("name", "business_type"):
        if attr in values:
            values[attr] = (values[attr] or "").strip()
            if not values[attr]:
                errors[attr] = f"{attr} is required"
    if "description" in values:
        values["description"] = (values["description"] or "").strip()

    for attr in ("min_investment", "expected_roi_min", "expected_roi_max"):
        if attr in values:
            amount = parse_decimal(values[attr])
            if amount is None or amount < 0:
                errors[attr] = f"{attr} must be a non-negative number"
            values[attr] = amount

    if "duration_months" in values:
        try:
            values["duration_months"] = int(values["duration_months"])
        except (TypeError, ValueError):
            values["duration_months"] = 0
        if values["duration_months"] < 1:
            errors["duration_months"] = "duration_months must be at least 1"

    if "is_active" in values:
        values["is_active"] = bool(values["is_active"])

    if not partial:
        for attr in ("name", "business_type", "min_investment", "expected_roi_min",
                     "expected_roi_max", "duration_months"):
            if attr not in values:
                errors.setdefault(attr, f"{attr} is required")

    if errors:
        raise ValidationError(next(iter(errors.values())), errors=errors)
    return values


def _check_roi_range(package):
    if (package.expected_roi_min is not None and package.expected_roi_max is not None
            and package.expected_roi_min > package.expected_roi_max):
        raise ValidationError("expectedRoiMin cannot exceed expectedRoiMax")


def create_package(data) -> InvestmentPackage:
    values = _package_values(data)
    values.setdefault("description", "")
    if InvestmentPackage.query.filter_by(name=values["name"]).first():
        raise ValidationError("A package with this name already exists")

    package = InvestmentPackage(**values)
    _check_roi_range(package)
    db.session.add(package)
    return package


def update_package(package, data) -> InvestmentPackage:
    values = _package_values(data, partial=True)
    if "name" in values and values["name"] != package.name:
        if InvestmentPackage.query.filter_by(name=values["name"]).first():
            raise ValidationError("A package with this name already exists")
    for attr, value in values.items():
        setattr(package, attr, value)
    _check_roi_range(package)
    return package

# ==========================================================
#                  ASSETS
# ==========================================================
def _asset_values(data, partial=False):
    values = {}
    errors = {}

    if "investorId" in data or not partial:
        investor = db.session.get(User, data.get("investorId")) if data.get("investorId") else None
        if not investor:
            errors["investorId"] = "Investor not found"
        else:
            values["investor_id"] = investor.id

    if "packageId" in data or not partial:
        package = db.session.get(InvestmentPackage, data.get("packageId")) if data.get("packageId") else None
        if not package:
            errors["packageId"] = "Package not found"
        else:
            values["package_id"] = package.id

    for key, attr in (("assetName", "asset_name"), ("assetType", "asset_type")):
        if key in data or not partial:
            text = (data.get(key) or "").strip()
            if not text:
                errors[key] = f"{key} is required"
            values[attr] = text

    if "purchaseAmount" in data or not partial:
        amount = parse_decimal(data.get("purchaseAmount"))
        if amount is None or amount <= 0:
            errors["purchaseAmount"] = "purchaseAmount must be greater than zero"
        values["purchase_amount"] = amount

    if "expectedEndDate" in data or not partial:
        end_date = parse_iso_date(data.get("expectedEndDate"))
        if end_date is None:
            errors["expectedEndDate"] = "expectedEndDate must be YYYY-MM-DD"
        values["expected_end_date"] = end_date

    for key, attr in (("purchaseDate", "purchase_date"), ("startDate", "start_date")):
        if key in data:
            values[attr] = parse_iso_date(data.get(key))

    if "currentPhase" in data:
        phase = data.get("currentPhase")
        if phase not in {p.value for p in AssetPhase}:
            errors["currentPhase"] = "Invalid phase"
        values["current_phase"] = phase

    if "status" in data:
        status = data.get("status")
        if status not in {s.value for s in AssetStatus}:
            errors["status"] = "Invalid status"
        values["status"] = status

    for key, attr in (("farmLocation", "farm_location"), ("thumbnailUrl", "thumbnail_url")):
        if key in data:
            values[attr] = (data.get(key) or "").strip() or None

    if errors:
        raise ValidationError(next(iter(errors.values())), errors=errors)
    return values


def create_asset(data) -> Asset:
    values = _asset_values(data)
    values.setdefault("purchase_date", datetime.now(timezone.utc).date())

    for _ in range(TAG_ID_ATTEMPTS):
        tag_id = generate_tag_id()
        if not Asset.query.filter_by(unique_tag_id=tag_id).first():
            break
    else:
        raise ValidationError("Could not allocate a unique tag id, please retry")

    asset = Asset(unique_tag_id=tag_id, **values)
    db.session.add(asset)
    return asset


def update_asset(asset, data) -> Asset:
    for attr, value in _asset_values(data, partial=True).items():
        setattr(asset, attr, value)
    return asset

# ==========================================================
#                  FARM MEDIA
# ==========================================================
def _media_type_for(filename):
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    for media_type, extensions in ALLOWED_MEDIA_EXTENSIONS.items():
        if ext in extensions:
            return media_type, ext
    raise ValidationError("Unsupported file type")


def save_farm_media(farm_id, upload, form, uploader_id=None) -> FarmMedia:
    """Store an uploaded file under ``UPLOAD_FOLDER`` and record it against the farm."""
    farm = db.session.get(Farm, farm_id) if farm_id else None
    if not farm:
        raise NotFoundError("Farm not found")
    if upload is None or not upload.filename:
        raise ValidationError("Please select a farm and file")

    media_type, ext = _media_type_for(secure_filename(upload.filename))
    stamp = int(datetime.now(timezone.utc).timestamp() * 1000)
    stored_name = f"farm-{farm.id}-{stamp}.{ext}"

    folder = current_app.config["UPLOAD_FOLDER"]
    os.makedirs(folder, exist_ok=True)
    upload.save(os.path.join(folder, stored_name))

    media = FarmMedia(
        farm_id=farm.id,
        media_type=form.get("mediaType") or media_type,
        media_url=url_for("admin_catalog.serve_media", filename=stored_name),
        file_name=stored_name,
        title=(form.get("title") or "").strip() or None,
        description=(form.get("description") or "").strip() or None,
        is_progress_update=True,
        release_date=parse_iso_date(form.get("releaseDate")),
        uploaded_by=uploader_id,
    )
    db.session.add(media)
    logger.info(f"Stored {media_type} {stored_name} for farm {farm.id}")
    return media


def delete_farm_media(media):
    """Delete the record. Call ``remove_media_file`` once the delete is committed."""
    db.session.delete(media)
    return media.file_name


def remove_media_file(file_name):
    if not file_name:
        return
    path = os.path.join(current_app.config["UPLOAD_FOLDER"], file_name)
    if os.path.exists(path):
        os.remove(path)
        logger.info(f"Removed media file {file_name}")


def delete_package(package):
    in_use = (
        Investment.query.filter_by(package_id=package.id).first()
        or Payment.query.filter_by(package_id=package.id).first()
        or Asset.query.filter_by(package_id=package.id).first()
    )
    if in_use:
        raise ValidationError("Package is referenced by investments, payments or assets; deactivate it instead")
    db.session.delete(package)
