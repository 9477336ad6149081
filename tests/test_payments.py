"""
Tests for manual payment submission and admin payment review

Covers per-method field rules, the package minimum, the pending -> verified /
rejected state machine and the post-review email, which must never undo an
already committed status change.
"""
import re
from decimal import Decimal
from unittest.mock import Mock, patch

import pytest
import requests

from extensions import db
from models import InvestmentPackage, Payment, User
from workflows.errors import InvalidTransitionError, ValidationError
from workflows.payments import build_payment, review_payment


def _provider_ok():
    resp = Mock()
    resp.raise_for_status.return_value = None
    resp.json.return_value = {"id": "email_123"}
    return resp


@pytest.fixture
def investor_obj(ctx, investor):
    return ctx.get(User, investor)


@pytest.fixture
def package_obj(ctx, package):
    return ctx.get(InvestmentPackage, package)


MOMO_PAYMENT = {
    "method": "momo",
    "amount": 5000,
    "momoProvider": "MTN",
    "momoNumber": "0241234567",
    "transactionReference": "MP240101.1234.A00001",
}


class TestBuildPayment:
    """Validation of payment submissions"""

    def test_below_package_minimum(self, investor_obj, package_obj):
        with pytest.raises(ValidationError, match=r"Minimum investment for this package is GHS 5,000.00"):
            build_payment(investor_obj, package_obj, {**MOMO_PAYMENT, "amount": 4999.99})

    def test_non_numeric_amount(self, investor_obj, package_obj):
        with pytest.raises(ValidationError, match="Invalid amount format"):
            build_payment(investor_obj, package_obj, {**MOMO_PAYMENT, "amount": "five thousand"})

    def test_unknown_method(self, investor_obj, package_obj):
        with pytest.raises(ValidationError, match="Payment method"):
            build_payment(investor_obj, package_obj, {**MOMO_PAYMENT, "method": "card"})

    def test_momo_requires_number(self, investor_obj, package_obj):
        data = {**MOMO_PAYMENT, "momoNumber": "  "}
        with pytest.raises(ValidationError, match="momoNumber"):
            build_payment(investor_obj, package_obj, data)

    def test_bank_requires_account_and_reference(self, investor_obj, package_obj):
        data = {"method": "bank", "amount": 6000, "bankName": "GCB"}
        with pytest.raises(ValidationError) as exc:
            build_payment(investor_obj, package_obj, data)
        assert "bankAccountNumber" in exc.value.message
        assert "transactionReference" in exc.value.message

    def test_momo_payment_fields(self, investor_obj, package_obj):
        payment = build_payment(investor_obj, package_obj, MOMO_PAYMENT)

        assert payment.status == "pending"
        assert payment.amount == Decimal("5000.00")
        assert payment.currency == "GHS"
        assert payment.momo_provider == "MTN"
        assert payment.transaction_reference == "MP240101.1234.A00001"

    def test_in_person_notes_and_generated_reference(self, investor_obj, package_obj):
        payment = build_payment(investor_obj, package_obj, {
            "method": "in_person",
            "amount": "7500",
            "paymentLocation": "Accra Office",
            "receiptFileName": "receipt.jpg",
        })

        assert payment.admin_notes == "Payment Location: Accra Office | Receipt uploaded: receipt.jpg"
        assert re.fullmatch(r"CES-[0-9A-Z]+-[A-Z0-9]{6}", payment.transaction_reference)


class TestReviewPayment:
    """Payment state machine"""

    def test_verify_stamps_reviewer(self, admin, investor_obj, package_obj):
        payment = build_payment(investor_obj, package_obj, MOMO_PAYMENT)
        review_payment(payment, "verified", admin, notes="Matched MoMo statement")

        assert payment.status == "verified"
        assert payment.verified_by == admin
        assert payment.verified_at is not None
        assert payment.admin_notes == "Matched MoMo statement"

    def test_terminal_states_cannot_change(self, investor_obj, package_obj):
        payment = build_payment(investor_obj, package_obj, MOMO_PAYMENT)
        review_payment(payment, "rejected", reviewer_id=None)

        with pytest.raises(InvalidTransitionError):
            review_payment(payment, "verified", reviewer_id=None)

    def test_unknown_status(self, investor_obj, package_obj):
        payment = build_payment(investor_obj, package_obj, MOMO_PAYMENT)
        with pytest.raises(ValidationError):
            review_payment(payment, "approved", reviewer_id=None)


class TestPaymentEndpoints:
    """Investor submission and admin review over HTTP"""

    def _submit(self, client, package_id, **overrides):
        return client.post("/api/payments", json={**MOMO_PAYMENT, "packageId": package_id, **overrides})

    def test_submit_requires_client_login(self, client, package):
        assert self._submit(client, package).status_code == 401

    def test_submit_and_list(self, investor_client, package):
        resp = self._submit(investor_client, package)

        assert resp.status_code == 201
        body = resp.get_json()
        assert body["transactionReference"] == "MP240101.1234.A00001"
        assert body["payment"]["status"] == "pending"
        assert body["payment"]["packageName"] == "Goat Rearing"

        listed = investor_client.get("/api/payments").get_json()["payments"]
        assert len(listed) == 1

    def test_submit_below_minimum(self, investor_client, package):
        resp = self._submit(investor_client, package, amount=100)
        assert resp.status_code == 400
        assert resp.get_json()["error"].startswith("Minimum investment")

    def test_submit_to_inactive_package(self, app, investor_client, package):
        with app.app_context():
            db.session.get(InvestmentPackage, package).is_active = False
            db.session.commit()
        assert self._submit(investor_client, package).status_code == 404

    def test_admin_approves_and_email_sent(self, app, investor_client, admin_client, package, admin):
        payment_id = self._submit(investor_client, package).get_json()["payment"]["id"]

        with patch("workflows.notifications.requests.post", return_value=_provider_ok()) as post:
            resp = admin_client.post(f"/api/admin/payments/{payment_id}/review", json={"status": "verified"})

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["notificationSent"] is True
        assert body["payment"]["status"] == "verified"

        sent = post.call_args.kwargs["json"]
        assert sent["to"] == ["ama@example.com"]
        assert sent["subject"] == "Payment Approved - CES Agritech"
        assert "5,000" in sent["html"]

        with app.app_context():
            payment = db.session.get(Payment, payment_id)
            assert payment.verified_by == admin

    def test_email_failure_keeps_review(self, app, investor_client, admin_client, package):
        payment_id = self._submit(investor_client, package).get_json()["payment"]["id"]

        with patch("workflows.notifications.requests.post", side_effect=requests.ConnectionError("down")):
            resp = admin_client.post(
                f"/api/admin/payments/{payment_id}/review",
                json={"status": "rejected", "adminNotes": "Reference not found"},
            )

        assert resp.status_code == 200
        assert resp.get_json()["notificationSent"] is False
        with app.app_context():
            assert db.session.get(Payment, payment_id).status == "rejected"

    def test_in_person_rejection_mails_only_reviewer_reason(self, investor_client, admin_client, package):
        silent_id = self._submit(investor_client, package, method="in_person",
                                 paymentLocation="Accra head office").get_json()["payment"]["id"]
        noted_id = self._submit(investor_client, package, method="in_person",
                                paymentLocation="Accra head office").get_json()["payment"]["id"]

        with patch("workflows.notifications.requests.post", return_value=_provider_ok()) as post:
            admin_client.post(f"/api/admin/payments/{silent_id}/review", json={"status": "rejected"})
            silent_html = post.call_args.kwargs["json"]["html"]

            admin_client.post(f"/api/admin/payments/{noted_id}/review",
                              json={"status": "rejected", "rejectionReason": "No cash received at the office"})
            noted_html = post.call_args.kwargs["json"]["html"]

        assert "Accra head office" not in silent_html
        assert "Reason:" not in silent_html
        assert "Reason: No cash received at the office" in noted_html
        assert "Accra head office" not in noted_html

    def test_non_json_provider_reply_keeps_review(self, app, investor_client, admin_client, package):
        payment_id = self._submit(investor_client, package).get_json()["payment"]["id"]
        provider = _provider_ok()
        provider.json.side_effect = requests.exceptions.JSONDecodeError("Expecting value", "<html>OK</html>", 0)

        with patch("workflows.notifications.requests.post", return_value=provider):
            resp = admin_client.post(f"/api/admin/payments/{payment_id}/review", json={"status": "verified"})

        assert resp.status_code == 200
        assert resp.get_json()["notificationSent"] is False
        with app.app_context():
            assert db.session.get(Payment, payment_id).status == "verified"

    def test_second_review_conflicts(self, investor_client, admin_client, package):
        payment_id = self._submit(investor_client, package).get_json()["payment"]["id"]

        with patch("workflows.notifications.requests.post", return_value=_provider_ok()):
            admin_client.post(f"/api/admin/payments/{payment_id}/review", json={"status": "verified"})
            resp = admin_client.post(f"/api/admin/payments/{payment_id}/review", json={"status": "rejected"})

        assert resp.status_code == 409

    def test_investor_cannot_review(self, investor_client, package):
        payment_id = self._submit(investor_client, package).get_json()["payment"]["id"]
        resp = investor_client.post(f"/api/admin/payments/{payment_id}/review", json={"status": "verified"})
        assert resp.status_code == 403

    def test_admin_filters(self, investor_client, admin_client, package):
        self._submit(investor_client, package)
        self._submit(investor_client, package, method="in_person", paymentLocation="Kumasi Office")

        assert admin_client.get("/api/admin/payments?method=in_person").get_json()["total"] == 1
        assert admin_client.get("/api/admin/payments?status=pending").get_json()["total"] == 2
        assert admin_client.get("/api/admin/payments?q=MP240101").get_json()["total"] == 1
        assert admin_client.get("/api/admin/payments?q=Ama").get_json()["total"] == 2
