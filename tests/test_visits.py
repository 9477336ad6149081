"""
Tests for farm visit booking, review and confirmation emails
"""
from datetime import date, timedelta
from unittest.mock import Mock, patch

import pytest
import requests

from extensions import db
from models import FarmVisit, User
from workflows.errors import InvalidTransitionError, NotFoundError, ValidationError
from workflows.visits import TIME_SLOTS, build_visit, earliest_visit_date, review_visit

TODAY = date(2026, 6, 10)


def _booking(**overrides):
    data = {"visitDate": "2026-06-12", "visitTime": "10:00", "numberOfGuests": 2}
    data.update(overrides)
    return data


@pytest.fixture
def investor_obj(ctx, investor):
    return ctx.get(User, investor)


class TestBookingRules:
    """Date, slot and guest validation"""

    def test_time_slots(self):
        assert TIME_SLOTS[0] == "08:00"
        assert TIME_SLOTS[-1] == "16:00"
        assert len(TIME_SLOTS) == 9

    def test_earliest_date_is_two_days_out(self):
        assert earliest_visit_date(TODAY) == date(2026, 6, 12)

    def test_too_soon(self, investor_obj):
        with pytest.raises(ValidationError, match="at least 2 days"):
            build_visit(investor_obj, _booking(visitDate="2026-06-11"), today=TODAY)

    def test_missing_date(self, investor_obj):
        with pytest.raises(ValidationError, match="date and time"):
            build_visit(investor_obj, _booking(visitDate=""), today=TODAY)

    @pytest.mark.parametrize("slot", ["07:00", "17:00", "10:30", ""])
    def test_slot_outside_hours(self, investor_obj, slot):
        with pytest.raises(ValidationError):
            build_visit(investor_obj, _booking(visitTime=slot), today=TODAY)

    @pytest.mark.parametrize("guests", [0, 11, "many"])
    def test_guest_bounds(self, investor_obj, guests):
        with pytest.raises(ValidationError, match="numberOfGuests"):
            build_visit(investor_obj, _booking(numberOfGuests=guests), today=TODAY)

    def test_defaults_to_farm_location(self, app, investor_obj):
        visit = build_visit(investor_obj, _booking(specialRequests="  "), today=TODAY)

        assert visit.location == app.config["DEFAULT_VISIT_LOCATION"]
        assert visit.status == "pending"
        assert visit.confirmation_sent is False
        assert visit.special_requests is None

    def test_asset_location_used(self, make_asset, package, investor, ctx):
        asset_id = make_asset(investor, package, farm_location="Akim Oda Goat Ranch")

        visit = build_visit(ctx.get(User, investor), _booking(assetId=asset_id), today=TODAY)
        assert visit.location == "Akim Oda Goat Ranch"
        assert visit.asset_id == asset_id

    def test_foreign_asset_rejected(self, make_user, make_asset, package, investor, ctx):
        other = make_user("other.investor@example.com")
        asset_id = make_asset(other, package)

        with pytest.raises(NotFoundError):
            build_visit(ctx.get(User, investor), _booking(assetId=asset_id), today=TODAY)


class TestReviewVisit:
    """Visit state machine"""

    def test_pending_cannot_complete(self, investor_obj):
        visit = build_visit(investor_obj, _booking(), today=TODAY)
        with pytest.raises(InvalidTransitionError):
            review_visit(visit, "completed")

    def test_approved_then_completed(self, investor_obj):
        visit = build_visit(investor_obj, _booking(), today=TODAY)
        review_visit(visit, "approved")
        review_visit(visit, "completed")
        assert visit.status == "completed"

    def test_unknown_status(self, investor_obj):
        visit = build_visit(investor_obj, _booking(), today=TODAY)
        with pytest.raises(ValidationError):
            review_visit(visit, "confirmed")


class TestVisitEndpoints:
    """Booking and admin approval over HTTP"""

    def _book(self, client):
        visit_date = (date.today() + timedelta(days=5)).isoformat()
        resp = client.post("/api/visits", json={"visitDate": visit_date, "visitTime": "09:00", "numberOfGuests": 3})
        assert resp.status_code == 201, resp.get_json()
        return resp.get_json()["visit"]["id"]

    def test_options_are_public(self, client):
        body = client.get("/api/visits/options").get_json()
        assert body["timeSlots"] == list(TIME_SLOTS)
        assert body["maxGuests"] == 10
        assert body["earliestDate"] == earliest_visit_date().isoformat()

    def test_booking_too_soon(self, investor_client):
        resp = investor_client.post("/api/visits", json={
            "visitDate": date.today().isoformat(), "visitTime": "09:00",
        })
        assert resp.status_code == 400

    def test_approval_sends_confirmation(self, app, investor_client, admin_client):
        visit_id = self._book(investor_client)
        provider = Mock()
        provider.raise_for_status.return_value = None
        provider.json.return_value = {"id": "email_456"}

        with patch("workflows.notifications.requests.post", return_value=provider) as post:
            resp = admin_client.post(f"/api/admin/visits/{visit_id}/review", json={"status": "approved"})

        assert resp.status_code == 200
        assert resp.get_json()["notificationSent"] is True
        html = post.call_args.kwargs["json"]["html"]
        assert "What to bring" in html
        assert app.config["DEFAULT_VISIT_LOCATION"] in html

        with app.app_context():
            visit = db.session.get(FarmVisit, visit_id)
            assert visit.status == "approved"
            assert visit.confirmation_sent is True

    def test_approval_survives_email_failure(self, app, investor_client, admin_client):
        visit_id = self._book(investor_client)

        with patch("workflows.notifications.requests.post", side_effect=requests.Timeout("slow")):
            resp = admin_client.post(f"/api/admin/visits/{visit_id}/review", json={"status": "approved"})

        assert resp.status_code == 200
        assert resp.get_json()["notificationSent"] is False
        with app.app_context():
            visit = db.session.get(FarmVisit, visit_id)
            assert visit.status == "approved"
            assert visit.confirmation_sent is False

    def test_rejection_sends_nothing(self, investor_client, admin_client):
        visit_id = self._book(investor_client)

        with patch("workflows.notifications.requests.post") as post:
            resp = admin_client.post(f"/api/admin/visits/{visit_id}/review", json={"status": "rejected"})

        assert resp.get_json()["visit"]["status"] == "rejected"
        post.assert_not_called()
