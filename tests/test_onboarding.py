"""
Tests for investor and farmer onboarding
"""
import pytest

from extensions import db
from models import Farmer, User
from tests.conftest import INVESTOR_EMAIL, login

INVESTOR_PROFILE = {
    "firstName": "Kwame",
    "middleName": "Yaw",
    "lastName": "Mensah",
    "dateOfBirth": "1990-04-21",
    "gender": "male",
    "primaryPhone": "+233241234567",
    "residentialAddress": "14 Independence Avenue, Osu",
    "city": "Accra",
    "region": "Greater Accra",
    "idType": "ghana_card",
    "idNumber": "GHA-123456789-0",
    "mobileMoneyProvider": "MTN",
    "mobileMoneyNumber": "0241234567",
    "marketingConsent": True,
    "termsAccepted": True,
}

FARMER_APPLICATION = {
    "businessName": "Mensah Agro Ventures",
    "firstName": "Kwame",
    "lastName": "Mensah",
    "primaryPhone": "+233241234567",
    "dateOfBirth": "1985-09-02",
    "idType": "ghana_card",
    "idNumber": "GHA-987654321-0",
    "yearsOfExperience": "8",
    "farmName": "Mensah Family Farm",
    "farmType": "Mixed",
    "farmSize": "12.5",
    "farmSizeUnit": "hectares",
    "locationAddress": "Off the Kade-Akwatia road",
    "locationCity": "Kade",
    "locationRegion": "Eastern",
    "mainCrops": "maize, cassava , ",
    "livestockTypes": ["goats"],
    "termsAccepted": True,
}


@pytest.fixture
def newcomer_client(app, make_user):
    make_user("kwame@example.com", full_name="Kwame")
    return login(app.test_client(), "kwame@example.com")


class TestInvestorOnboarding:
    """POST /api/onboarding"""

    def test_completes_profile(self, newcomer_client):
        resp = newcomer_client.post("/api/onboarding", json=INVESTOR_PROFILE)

        assert resp.status_code == 200
        profile = resp.get_json()["profile"]
        assert profile["fullName"] == "Kwame Yaw Mensah"
        assert profile["onboardingCompleted"] is True
        assert profile["phone"] == "+233241234567"
        assert profile["dateOfBirth"] == "1990-04-21"
        assert profile["marketingConsent"] is True

    def test_reports_every_missing_field(self, newcomer_client):
        resp = newcomer_client.post("/api/onboarding", json={"firstName": "K", "termsAccepted": "yes"})

        assert resp.status_code == 400
        errors = resp.get_json()["errors"]
        assert errors["firstName"] == "First name is required"
        assert errors["termsAccepted"] == "You must accept the terms"
        assert "mobileMoneyNumber" in errors
        assert resp.get_json()["error"] == "First name is required"

    def test_bad_birth_date(self, newcomer_client):
        resp = newcomer_client.post("/api/onboarding", json={**INVESTOR_PROFILE, "dateOfBirth": "21/04/1990"})
        assert resp.status_code == 400
        assert "dateOfBirth" in resp.get_json()["errors"]

    def test_requires_login(self, client):
        assert client.post("/api/onboarding", json=INVESTOR_PROFILE).status_code == 401

    def test_dashboard_page_redirects_until_onboarded(self, newcomer_client):
        resp = newcomer_client.get("/dashboard")
        assert resp.status_code == 302
        assert resp.headers["Location"].endswith("/onboarding")

        newcomer_client.post("/api/onboarding", json=INVESTOR_PROFILE)
        assert newcomer_client.get("/dashboard").status_code == 200


class TestFarmerOnboarding:
    """POST /api/farmer/onboarding"""

    def test_creates_farmer_farm_and_role(self, app, newcomer_client):
        resp = newcomer_client.post("/api/farmer/onboarding", json=FARMER_APPLICATION)

        assert resp.status_code == 201
        body = resp.get_json()
        assert body["farmer"]["verificationStatus"] == "pending"
        assert body["farmer"]["yearsOfExperience"] == 8
        assert body["farm"]["farmType"] == "mixed"
        assert body["farm"]["farmSize"] == 12.5
        assert body["farm"]["mainCrops"] == ["maize", "cassava"]
        assert body["farm"]["livestockTypes"] == ["goats"]
        assert body["farm"]["status"] == "pending_verification"

        with app.app_context():
            user = User.query.filter_by(email="kwame@example.com").first()
            assert user.role_names == ["client", "farmer"]
            assert db.session.get(Farmer, body["farmer"]["id"]).user_id == user.id

        dashboard = newcomer_client.get("/api/farmer/dashboard")
        assert dashboard.status_code == 200
        assert dashboard.get_json()["stats"]["totalFarms"] == 1

    def test_second_application_refused(self, newcomer_client):
        assert newcomer_client.post("/api/farmer/onboarding", json=FARMER_APPLICATION).status_code == 201

        resp = newcomer_client.post("/api/farmer/onboarding", json=FARMER_APPLICATION)
        assert resp.status_code == 400
        assert "already submitted" in resp.get_json()["error"]

    @pytest.mark.parametrize("field, value", [
        ("farmSize", "0.05"),
        ("farmType", "forestry"),
        ("farmSizeUnit", "plots"),
        ("yearsOfExperience", "-2"),
        ("termsAccepted", False),
    ])
    def test_invalid_application(self, newcomer_client, field, value):
        resp = newcomer_client.post("/api/farmer/onboarding", json={**FARMER_APPLICATION, field: value})
        assert resp.status_code == 400
        assert field in resp.get_json()["errors"]

    def test_farmer_without_application_gets_onboarding_hint(self, farmer_client):
        resp = farmer_client.get("/api/farmer/dashboard")
        assert resp.status_code == 404
        assert resp.get_json()["onboardingRequired"] is True


class TestProfileEndpoint:
    def test_profile_and_roles(self, investor_client):
        body = investor_client.get("/api/profile").get_json()
        assert body["profile"]["email"] == INVESTOR_EMAIL
        assert body["roles"] == ["client"]
