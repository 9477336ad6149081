"""
Shared fixtures for the CES Agritech test suite.

Factories return primary keys rather than model instances: each one commits
inside its own app context, and request-level tests must not hold an app
context open while the test client runs (Flask-Login caches the current user
on ``g``).
"""
import os
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("FLASK_ENV", "testing")

import pytest  # noqa: E402

from app import create_app  # noqa: E402
from config import TestingConfig  # noqa: E402
from extensions import db  # noqa: E402
from models import (  # noqa: E402
    Asset, Farm, Farmer, Investment, InvestmentPackage, Profile, User,
)

PASSWORD = "secret123"
INVESTOR_EMAIL = "ama@example.com"
FARMER_EMAIL = "kofi.farms@example.com"
ADMIN_EMAIL = "admin@cesagritech.com"


@pytest.fixture
def app(tmp_path):
    app = create_app(TestingConfig)
    app.config["UPLOAD_FOLDER"] = str(tmp_path / "media")
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def ctx(app):
    """App context for workflow-level tests that never go through the test client."""
    with app.app_context():
        yield db.session


@pytest.fixture
def client(app):
    return app.test_client()


def login(client, email, password=PASSWORD, path="/api/login"):
    resp = client.post(path, json={"email": email, "password": password})
    assert resp.status_code == 200, resp.get_json()
    return client


@pytest.fixture
def make_user(app):
    def _make_user(email, roles=("client",), password=PASSWORD, full_name="Test User", **profile_fields):
        with app.app_context():
            user = User(email=email)
            user.set_password(password)
            user.profile = Profile(email=email, full_name=full_name, **profile_fields)
            for role in roles:
                user.grant_role(role)
            db.session.add(user)
            db.session.commit()
            return user.id
    return _make_user


@pytest.fixture
def investor(make_user):
    return make_user(
        INVESTOR_EMAIL,
        full_name="Ama Owusu",
        mobile_money_provider="MTN",
        mobile_money_number="0241234567",
        onboarding_completed=True,
    )


@pytest.fixture
def farmer_user(make_user):
    return make_user(FARMER_EMAIL, roles=("client", "farmer"), full_name="Kofi Boateng")


@pytest.fixture
def admin(make_user):
    return make_user(ADMIN_EMAIL, roles=("client", "admin"), full_name="CES Administrator")


@pytest.fixture
def investor_client(app, investor):
    return login(app.test_client(), INVESTOR_EMAIL)


@pytest.fixture
def admin_client(app, admin):
    return login(app.test_client(), ADMIN_EMAIL)


@pytest.fixture
def farmer_client(app, farmer_user):
    return login(app.test_client(), FARMER_EMAIL)


@pytest.fixture
def package(app):
    with app.app_context():
        pkg = InvestmentPackage(
            name="Goat Rearing",
            description="Twelve-month goat fattening cycle",
            business_type="livestock",
            min_investment=Decimal("5000.00"),
            expected_roi_min=Decimal("12.00"),
            expected_roi_max=Decimal("18.00"),
            duration_months=12,
            is_active=True,
        )
        db.session.add(pkg)
        db.session.commit()
        return pkg.id


@pytest.fixture
def farmer_record(app, farmer_user):
    """A pending Farmer with one Farm; returns ``(farmer_id, farm_id)``."""
    with app.app_context():
        farmer = Farmer(user_id=farmer_user, business_name="Boateng Farms", verification_status="pending")
        db.session.add(farmer)
        db.session.flush()
        farm = Farm(
            farmer_id=farmer.id,
            farm_name="Boateng Maize Farm",
            farm_type="crops",
            farm_size=Decimal("4.50"),
            location_address="Plot 12, Kade Road",
            location_city="Kade",
            location_region="Eastern",
            main_crops=["maize"],
        )
        db.session.add(farm)
        db.session.commit()
        return farmer.id, farm.id


@pytest.fixture
def make_investment(app):
    def _make_investment(investor_id, package_id, amount="10000", status="active", created_at=None):
        with app.app_context():
            start = created_at or datetime.now(timezone.utc)
            investment = Investment(
                investor_id=investor_id,
                package_id=package_id,
                amount=Decimal(amount),
                start_date=start,
                maturity_date=start + timedelta(days=365),
                status=status,
            )
            if created_at is not None:
                investment.created_at = created_at
            db.session.add(investment)
            db.session.commit()
            return investment.id
    return _make_investment


@pytest.fixture
def make_asset(app):
    def _make_asset(investor_id, package_id, farm_location=None, tag="CES-2026-123456"):
        with app.app_context():
            asset = Asset(
                investor_id=investor_id,
                package_id=package_id,
                asset_name="Goat #1",
                asset_type="goat",
                unique_tag_id=tag,
                purchase_amount=Decimal("5000.00"),
                expected_end_date=date.today() + timedelta(days=365),
                farm_location=farm_location,
            )
            db.session.add(asset)
            db.session.commit()
            return asset.id
    return _make_asset
