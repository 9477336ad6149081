# workflows/visits.py
from datetime import date, timedelta

from flask import current_app

from extensions import db
from logger import review_logger
from models import Asset, FarmVisit, VisitStatus
from utils import parse_iso_date
from workflows.errors import ValidationError, NotFoundError, InvalidTransitionError
from workflows.notifications import NotificationType, notify

TIME_SLOTS = tuple(f"{hour:02d}:00" for hour in range(8, 17))
MIN_DAYS_AHEAD = 2
MIN_GUESTS = 1
MAX_GUESTS = 10

VISIT_TRANSITIONS = {
    VisitStatus.PENDING.value: {VisitStatus.APPROVED.value, VisitStatus.REJECTED.value},
    VisitStatus.APPROVED.value: {VisitStatus.COMPLETED.value},
}


def earliest_visit_date(today=None):
    return (today or date.today()) + timedelta(days=MIN_DAYS_AHEAD)


def build_visit(investor, data, today=None) -> FarmVisit:
    visit_date = parse_iso_date(data.get("visitDate"))
    if not visit_date:
        raise ValidationError("Please select both a date and time for your visit")
    if visit_date < earliest_visit_date(today):
        raise ValidationError(f"Visits must be booked at least {MIN_DAYS_AHEAD} days in advance")

    visit_time = (data.get("visitTime") or "").strip()
    if visit_time not in TIME_SLOTS:
        raise ValidationError(f"Visit time must be one of: {', '.join(TIME_SLOTS)}")

    try:
        guests = int(data.get("numberOfGuests", 1))
    except (TypeError, ValueError):
        raise ValidationError("numberOfGuests must be a whole number")
    if not MIN_GUESTS <= guests <= MAX_GUESTS:
        raise ValidationError(f"numberOfGuests must be between {MIN_GUESTS} and {MAX_GUESTS}")

    asset = None
    asset_id = data.get("assetId")
    if asset_id not in (None, ""):
        asset = db.session.get(Asset, asset_id)
        if not asset or asset.investor_id != investor.id:
            raise NotFoundError("Asset not found")

    location = (data.get("location") or "").strip()
    if not location:
        location = (asset.farm_location if asset else None) or current_app.config["DEFAULT_VISIT_LOCATION"]

    return FarmVisit(
        investor_id=investor.id,
        asset_id=asset.id if asset else None,
        visit_date=visit_date,
        visit_time=visit_time,
        number_of_guests=guests,
        special_requests=(data.get("specialRequests") or "").strip() or None,
        location=location,
        status=VisitStatus.PENDING.value,
        confirmation_sent=False,
    )


def review_visit(visit, new_status, reviewer_id=None) -> FarmVisit:
    allowed = {s.value for s in VisitStatus}
    if new_status not in allowed:
        raise ValidationError(f"Invalid status. Must be one of: {', '.join(sorted(allowed))}")
    if new_status not in VISIT_TRANSITIONS.get(visit.status, set()):
        raise InvalidTransitionError(f"Cannot move visit from {visit.status} to {new_status}")

    previous = visit.status
    visit.status = new_status
    review_logger.info(f"Farm visit {visit.id}: {previous} -> {new_status} (by {reviewer_id})")
    return visit


def send_visit_confirmation(visit):
    """Email the confirmation and flag ``confirmation_sent`` when it goes out."""
    investor = visit.investor
    profile = investor.profile if investor else None
    email = profile.email if profile else (investor.email if investor else None)

    data, error = notify(
        NotificationType.FARM_VISIT_CONFIRMED,
        email,
        profile.full_name if profile and profile.full_name else "Investor",
        {
            "visitDate": visit.visit_date.strftime("%A, %B %d, %Y"),
            "visitTime": visit.visit_time,
            "location": visit.location,
        },
    )
    if error is None:
        visit.confirmation_sent = True
    return data, error
