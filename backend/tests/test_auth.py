"""
Authentication and authorization tests.

Verifies:
- bcrypt hashing and credential checks
- session tokens: creation, validation, expiry, revocation
- unauthenticated requests return 401, cashiers are denied admin reports
"""

from datetime import timedelta

import pytest

from backoffice.errors import InvalidCredentials, PasswordValidationError
from backoffice.models import Employee, SessionToken
from backoffice.services import auth_service, session_service

from conftest import TEST_PASSWORD, auth_headers, login


class TestPasswords:
    def test_hash_and_verify(self):
        hashed = auth_service.hash_password("hunter22", rounds=4)
        assert hashed != "hunter22"
        assert auth_service.verify_password("hunter22", hashed)
        assert not auth_service.verify_password("hunter23", hashed)

    def test_short_password_rejected(self):
        with pytest.raises(PasswordValidationError):
            auth_service.hash_password("abc", rounds=4)

    def test_malformed_hash(self):
        assert not auth_service.verify_password("whatever", "not-a-bcrypt-hash")


class TestAuthenticate:
    def test_success(self, cashier):
        principal = auth_service.authenticate(cashier.id, TEST_PASSWORD)
        assert principal.id == cashier.id
        assert principal.role == Employee.CASHIER
        assert not principal.is_admin

    def test_admin_principal(self, admin):
        assert auth_service.authenticate(str(admin.id), TEST_PASSWORD).is_admin

    @pytest.mark.parametrize("employee_id,password", [(7, "wrong-password"), (404, TEST_PASSWORD), ("abc", TEST_PASSWORD)])
    def test_invalid(self, cashier, employee_id, password):
        with pytest.raises(InvalidCredentials):
            auth_service.authenticate(employee_id, password)

    def test_inactive_employee(self, cashier, db_session):
        cashier.is_active = False
        db_session.commit()
        with pytest.raises(InvalidCredentials):
            auth_service.authenticate(cashier.id, TEST_PASSWORD)


class TestSessions:
    def test_token_stored_hashed(self, cashier, db_session):
        session, token = session_service.create_session(cashier.id)
        assert session.token_hash == session_service.hash_token(token)
        assert db_session.query(SessionToken).filter_by(token_hash=token).first() is None

    def test_validate(self, cashier):
        _, token = session_service.create_session(cashier.id)
        context = session_service.validate_session(token)
        assert context.employee.id == cashier.id

    def test_expired(self, cashier, db_session):
        session, token = session_service.create_session(cashier.id)
        session.expires_at = session.created_at - timedelta(seconds=1)
        db_session.commit()
        assert session_service.validate_session(token) is None

    def test_revoked(self, cashier):
        _, token = session_service.create_session(cashier.id)
        assert session_service.revoke_session(token)
        assert session_service.validate_session(token) is None
        assert not session_service.revoke_session(token)

    def test_deactivated_employee(self, cashier, db_session):
        _, token = session_service.create_session(cashier.id)
        cashier.is_active = False
        db_session.commit()
        assert session_service.validate_session(token) is None

    def test_unknown_token(self, db_session):
        assert session_service.validate_session("nope") is None
        assert session_service.validate_session("") is None


# =============================================================================
# API
# =============================================================================

class TestLoginApi:
    def test_login_me_logout(self, client, cashier):
        token = login(client, cashier.id)
        assert token

        me = client.get("/api/auth/me", headers=auth_headers(token))
        assert me.status_code == 200
        assert me.json["employee"]["role"] == "Cashier"
        assert "password_hash" not in me.json["employee"]

        assert client.post("/api/auth/logout", headers=auth_headers(token)).status_code == 200
        assert client.get("/api/auth/me", headers=auth_headers(token)).status_code == 401

    def test_bad_password(self, client, cashier):
        resp = client.post("/api/auth/login", json={"employee_id": cashier.id, "password": "nope-nope"})
        assert resp.status_code == 401
        assert resp.json["kind"] == "InvalidCredentials"

    def test_missing_fields(self, client, db_session):
        assert client.post("/api/auth/login", json={}).status_code == 400


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("POST", "/api/sales/"),
            ("GET", "/api/sales/"),
            ("GET", "/api/sales/1"),
            ("POST", "/api/sales/1/returns"),
            ("GET", "/api/coupons/active"),
            ("POST", "/api/coupons/validate"),
            ("POST", "/api/rentals/checkout"),
            ("POST", "/api/rentals/return"),
            ("GET", "/api/rentals/outstanding"),
            ("GET", "/api/reports/sales"),
            ("GET", "/api/reports/inventory"),
            ("GET", "/api/auth/me"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_garbage_token(self, client, db_session):
        resp = client.get("/api/auth/me", headers=auth_headers("garbage"))
        assert resp.status_code == 401


class TestRoles:
    @pytest.mark.parametrize(
        "path",
        ["/api/reports/sales", "/api/reports/top-selling", "/api/reports/employee-performance", "/api/reports/rentals"],
    )
    def test_cashier_denied_admin_reports(self, client, cashier_headers, path):
        resp = client.get(path, headers=cashier_headers)
        assert resp.status_code == 403

    def test_cashier_may_view_inventory(self, client, cashier_headers):
        assert client.get("/api/reports/inventory", headers=cashier_headers).status_code == 200

    def test_admin_reports(self, client, admin_headers):
        for path in ["/api/reports/sales", "/api/reports/top-selling", "/api/reports/employee-performance", "/api/reports/rentals"]:
            assert client.get(path, headers=admin_headers).status_code == 200, path
