"""
Tests for the admin console API: analytics, users/KYC, investments and the catalog
"""
import io
import os
import re
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import patch

import pytest
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from extensions import db
from models import FarmMedia, InvestmentPackage, Payment, User, WithdrawalRequest
from workflows.analytics import admin_analytics, investor_summary
from workflows.investments import create_investment

NEW_PACKAGE = {
    "name": "Poultry Layers",
    "description": "Egg production cycle",
    "businessType": "poultry",
    "minInvestment": 2500,
    "expectedRoiMin": 10,
    "expectedRoiMax": 15,
    "durationMonths": 6,
}


class TestAnalytics:
    """Aggregations behind the admin charts and investor dashboard"""

    def test_monthly_and_package_breakdown(self, app, investor, package, make_investment):
        make_investment(investor, package, "10000", created_at=datetime(2026, 1, 15, tzinfo=timezone.utc))
        make_investment(investor, package, "5000", created_at=datetime(2026, 3, 2, tzinfo=timezone.utc))
        make_investment(investor, package, "2500", created_at=datetime(2026, 1, 20, tzinfo=timezone.utc))

        with app.app_context():
            db.session.add(WithdrawalRequest(user_id=investor, amount=Decimal("700"), payout_method="momo", status="paid"))
            db.session.add(WithdrawalRequest(user_id=investor, amount=Decimal("300"), payout_method="momo"))
            db.session.commit()

            stats = admin_analytics()

        assert stats["totalInvestments"] == 17500.0
        assert stats["totalWithdrawals"] == 700.0
        assert stats["pendingWithdrawals"] == 300.0
        assert stats["monthlyInvestments"] == [
            {"month": "Jan 26", "amount": 12500.0},
            {"month": "Mar 26", "amount": 5000.0},
        ]
        assert stats["investmentsByPackage"] == [{"name": "Goat Rearing", "value": 17500.0}]
        assert sum(point["users"] for point in stats["userGrowth"]) == stats["totalUsers"] == 1

    def test_projected_returns_only_count_active(self, app, investor, package, make_investment):
        make_investment(investor, package, "10000")
        make_investment(investor, package, "5000", status="cancelled")

        with app.app_context():
            summary = investor_summary(db.session.get(User, investor))

        assert summary["stats"]["totalInvested"] == 15000.0
        assert summary["stats"]["activeInvestments"] == 1
        assert summary["stats"]["projectedReturns"] == 1500.0

    def test_overview_endpoint(self, admin_client, farmer_record):
        body = admin_client.get("/api/admin/overview").get_json()
        assert body["totalFarmers"] == 1
        assert body["pendingFarmers"] == 1
        assert body["certifiedFarmers"] == 0


class TestUsersAndInvestments:
    """User listing, KYC review and investment status"""

    def test_search_and_kyc(self, admin_client, investor):
        users = admin_client.get("/api/admin/users?q=Owusu").get_json()["users"]
        assert [u["email"] for u in users] == ["ama@example.com"]

        resp = admin_client.post(f"/api/admin/users/{investor}/kyc", json={"status": "approved"})
        assert resp.status_code == 400

        resp = admin_client.post(f"/api/admin/users/{investor}/kyc", json={"status": "verified"})
        assert resp.get_json()["profile"]["verificationStatus"] == "verified"
        assert admin_client.get("/api/admin/users?status=verified").get_json()["total"] == 1

    def test_investor_creates_investment(self, investor_client, package):
        resp = investor_client.post("/api/investments", json={"packageId": package, "amount": 4000})
        assert resp.status_code == 400

        resp = investor_client.post("/api/investments", json={"packageId": package, "amount": 6000})
        assert resp.status_code == 201
        investment = resp.get_json()["investment"]
        start = datetime.fromisoformat(investment["startDate"])
        maturity = datetime.fromisoformat(investment["maturityDate"])
        assert (maturity.year - start.year) * 12 + maturity.month - start.month == 12

    def test_mark_investment_matured(self, admin_client, investor, package, make_investment):
        investment_id = make_investment(investor, package)

        resp = admin_client.post(f"/api/admin/investments/{investment_id}/status",
                                 json={"status": "matured", "actualRoi": "16.5"})
        assert resp.status_code == 200
        assert resp.get_json()["investment"]["status"] == "matured"
        assert resp.get_json()["investment"]["actualRoi"] == 16.5

        assert admin_client.post(f"/api/admin/investments/{investment_id}/status",
                                 json={"status": "lost"}).status_code == 400

    def test_search_requires_query(self, admin_client):
        assert admin_client.get("/api/admin/search").status_code == 400


class TestMaturityDate:
    """Maturity is the start date shifted by the package duration"""

    @pytest.fixture
    def investor_obj(self, ctx, investor):
        return ctx.get(User, investor)

    @pytest.fixture
    def package_obj(self, ctx, package):
        return ctx.get(InvestmentPackage, package)

    @pytest.mark.parametrize("start, months, maturity", [
        (datetime(2026, 1, 15, 9, 0, tzinfo=timezone.utc), 12, datetime(2027, 1, 15, 9, 0, tzinfo=timezone.utc)),
        (datetime(2026, 1, 31, 9, 0, tzinfo=timezone.utc), 1, datetime(2026, 2, 28, 9, 0, tzinfo=timezone.utc)),
        (datetime(2027, 12, 31, 9, 0, tzinfo=timezone.utc), 2, datetime(2028, 2, 29, 9, 0, tzinfo=timezone.utc)),
        (datetime(2026, 8, 31, 13, 45, tzinfo=timezone.utc), 6, datetime(2027, 2, 28, 13, 45, tzinfo=timezone.utc)),
    ])
    def test_clamps_to_end_of_month(self, investor_obj, package_obj, start, months, maturity):
        package_obj.duration_months = months
        investment = create_investment(investor_obj, package_obj, "5000", now=start)

        assert investment.start_date == start
        assert investment.maturity_date == maturity
        assert investment.status == "active"


class TestPackageCatalog:
    """Package CRUD"""

    def test_create_and_duplicate(self, admin_client):
        resp = admin_client.post("/api/admin/packages", json=NEW_PACKAGE)
        assert resp.status_code == 201
        assert resp.get_json()["package"]["minInvestment"] == 2500.0

        resp = admin_client.post("/api/admin/packages", json=NEW_PACKAGE)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "A package with this name already exists"

    def test_roi_range_checked(self, admin_client):
        resp = admin_client.post("/api/admin/packages", json={**NEW_PACKAGE, "expectedRoiMin": 20})
        assert resp.status_code == 400

    def test_missing_fields(self, admin_client):
        resp = admin_client.post("/api/admin/packages", json={"name": "Snails"})
        assert resp.status_code == 400
        assert "business_type" in resp.get_json()["errors"]

    def test_toggle_hides_from_public_catalogue(self, client, admin_client, package):
        resp = admin_client.post(f"/api/admin/packages/{package}/toggle")
        assert resp.get_json()["package"]["isActive"] is False
        assert client.get("/api/packages").get_json()["packages"] == []

    def test_update(self, admin_client, package):
        resp = admin_client.patch(f"/api/admin/packages/{package}", json={"durationMonths": 9})
        assert resp.get_json()["package"]["durationMonths"] == 9

    def test_delete_refused_when_referenced(self, app, admin_client, investor, package):
        with app.app_context():
            db.session.add(Payment(investor_id=investor, package_id=package, amount=Decimal("5000"), method="momo"))
            db.session.commit()

        assert admin_client.delete(f"/api/admin/packages/{package}").status_code == 400

    def test_delete_unused(self, app, admin_client, package):
        assert admin_client.delete(f"/api/admin/packages/{package}").status_code == 200
        with app.app_context():
            assert db.session.get(InvestmentPackage, package) is None


class TestAssetsAndMedia:
    """Asset registry and farm media uploads"""

    def test_create_asset_assigns_tag(self, admin_client, investor, package):
        resp = admin_client.post("/api/admin/assets", json={
            "investorId": investor,
            "packageId": package,
            "assetName": "Boer Goat",
            "assetType": "goat",
            "purchaseAmount": 5000,
            "expectedEndDate": "2027-06-30",
            "farmLocation": "Kade",
        })

        assert resp.status_code == 201
        asset = resp.get_json()["asset"]
        assert re.fullmatch(rf"CES-{datetime.now(timezone.utc).year}-\d{{6}}", asset["uniqueTagId"])
        assert asset["currentPhase"] == "initial"
        assert asset["status"] == "active"

    def test_create_asset_validation(self, admin_client):
        resp = admin_client.post("/api/admin/assets", json={"assetName": "Goat"})
        assert resp.status_code == 400
        assert {"investorId", "packageId", "purchaseAmount"} <= set(resp.get_json()["errors"])

    def test_update_asset_phase(self, admin_client, investor, package, make_asset):
        asset_id = make_asset(investor, package)
        resp = admin_client.patch(f"/api/admin/assets/{asset_id}", json={"currentPhase": "growing"})
        assert resp.get_json()["asset"]["currentPhase"] == "growing"

        assert admin_client.patch(f"/api/admin/assets/{asset_id}", json={"currentPhase": "eaten"}).status_code == 400

    def test_upload_serve_and_delete_media(self, app, admin_client, farmer_record):
        _, farm_id = farmer_record
        resp = admin_client.post("/api/admin/media", data={
            "farmId": str(farm_id),
            "title": "Week 4 growth",
            "file": (io.BytesIO(b"fake image bytes"), "field photo.JPG"),
        }, content_type="multipart/form-data")

        assert resp.status_code == 201
        media = resp.get_json()["media"]
        assert media["mediaType"] == "image"
        assert media["mediaUrl"].startswith(f"/media/farm-{farm_id}-")
        assert media["farmName"] == "Boateng Maize Farm"

        with app.app_context():
            stored = db.session.get(FarmMedia, media["id"]).file_name
        path = os.path.join(app.config["UPLOAD_FOLDER"], stored)
        assert os.path.exists(path)
        assert admin_client.get(media["mediaUrl"]).data == b"fake image bytes"

        assert admin_client.delete(f"/api/admin/media/{media['id']}").status_code == 200
        assert not os.path.exists(path)

    def test_upload_rejects_unknown_type(self, admin_client, farmer_record):
        _, farm_id = farmer_record
        resp = admin_client.post("/api/admin/media", data={
            "farmId": str(farm_id),
            "file": (io.BytesIO(b"plain text"), "notes.txt"),
        }, content_type="multipart/form-data")
        assert resp.status_code == 400

    def test_farmer_sees_own_media(self, admin_client, farmer_client, farmer_record):
        _, farm_id = farmer_record
        admin_client.post("/api/admin/media", data={
            "farmId": str(farm_id),
            "file": (io.BytesIO(b"video"), "tour.mp4"),
        }, content_type="multipart/form-data")

        media = farmer_client.get("/api/farmer/media").get_json()["media"]
        assert [m["mediaType"] for m in media] == ["video"]

    def test_failed_upload_commit_leaves_no_file(self, app, admin_client, farmer_record):
        _, farm_id = farmer_record
        with patch.object(Session, "commit", side_effect=SQLAlchemyError("database is locked")):
            resp = admin_client.post("/api/admin/media", data={
                "farmId": str(farm_id),
                "file": (io.BytesIO(b"fake image bytes"), "field.png"),
            }, content_type="multipart/form-data")

        assert resp.status_code == 500
        assert os.listdir(app.config["UPLOAD_FOLDER"]) == []
        with app.app_context():
            assert FarmMedia.query.count() == 0

    def test_failed_delete_commit_keeps_file(self, app, admin_client, farmer_record):
        _, farm_id = farmer_record
        media = admin_client.post("/api/admin/media", data={
            "farmId": str(farm_id),
            "file": (io.BytesIO(b"fake image bytes"), "field.png"),
        }, content_type="multipart/form-data").get_json()["media"]

        with patch.object(Session, "commit", side_effect=SQLAlchemyError("database is locked")):
            resp = admin_client.delete(f"/api/admin/media/{media['id']}")

        assert resp.status_code == 500
        with app.app_context():
            stored = db.session.get(FarmMedia, media["id"]).file_name
        assert os.path.exists(os.path.join(app.config["UPLOAD_FOLDER"], stored))
        assert admin_client.get(media["mediaUrl"]).data == b"fake image bytes"
