"""
Tests for the authentication endpoints.
"""

from conftest import TEST_PASSWORD, bearer, make_user, table_headers
from shared.config.constants import Roles


class TestLogin:
    """Tests for POST /api/auth/login."""

    def test_login_admin(self, client, seed_admin, seed_branch):
        """Should return a token, the user and the admin dashboard."""
        response = client.post(
            "/api/auth/login",
            json={"email": seed_admin.email, "password": TEST_PASSWORD},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["token"]
        assert data["token_type"] == "bearer"
        assert data["user"]["role"] == "ADMIN"
        assert data["user"]["branch_id"] == seed_branch.id
        assert data["landing_path"] == "/dashboard/admin"

    def test_login_superadmin(self, client, seed_superadmin):
        """Should land the owner on the superadmin dashboard."""
        response = client.post(
            "/api/auth/login",
            json={"email": seed_superadmin.email, "password": TEST_PASSWORD},
        )

        assert response.status_code == 200
        assert response.json()["user"]["branch_id"] is None
        assert response.json()["landing_path"] == "/dashboard/superadmin"

    def test_login_kitchen(self, client, seed_kitchen):
        """Should sign kitchen staff in; they land on the login route."""
        response = client.post(
            "/api/auth/login",
            json={"email": seed_kitchen.email, "password": TEST_PASSWORD},
        )

        assert response.status_code == 200
        assert response.json()["landing_path"] == "/login"

    def test_login_waiter_denied(self, client, seed_waiter):
        """Should refuse waiters an interactive login even with valid credentials."""
        response = client.post(
            "/api/auth/login",
            json={"email": seed_waiter.email, "password": TEST_PASSWORD},
        )

        assert response.status_code == 403
        assert response.json()["detail"]["code"] == "LoginRoleDenied"
        assert "token" not in response.json()

    def test_login_wrong_password(self, client, seed_admin):
        """Should return 401 for a wrong password."""
        response = client.post(
            "/api/auth/login",
            json={"email": seed_admin.email, "password": "wrongpassword"},
        )

        assert response.status_code == 401
        assert response.json()["detail"]["code"] == "Unauthorized"

    def test_login_unknown_user(self, client, seed_restaurant):
        """Should return 401 for an unknown email."""
        response = client.post(
            "/api/auth/login",
            json={"email": "nobody@tableflow.io", "password": TEST_PASSWORD},
        )

        assert response.status_code == 401

    def test_login_invalid_email(self, client):
        """Should reject a malformed email."""
        response = client.post(
            "/api/auth/login",
            json={"email": "not-an-email", "password": TEST_PASSWORD},
        )

        assert response.status_code == 422

    def test_login_wrong_content_type(self, client):
        """Should reject non-JSON bodies with 415."""
        response = client.post(
            "/api/auth/login",
            content="email=a&password=b",
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )

        assert response.status_code == 415
        assert response.json()["detail"]["code"] == "UnsupportedMediaType"


class TestMe:
    """Tests for GET /api/auth/me."""

    def test_me_staff(self, client, seed_admin, seed_branch, seed_restaurant):
        """Should return the resolved principal."""
        response = client.get("/api/auth/me", headers=bearer(seed_admin))

        assert response.status_code == 200
        data = response.json()
        assert data["principal"]["id"] == str(seed_admin.id)
        assert data["principal"]["role"] == "ADMIN"
        assert data["principal"]["restaurant_id"] == seed_restaurant.id
        assert data["principal"]["branch_id"] == seed_branch.id
        assert data["landing_path"] == "/dashboard/admin"
        assert data["order_poll_interval_seconds"] > 0

    def test_me_customer(self, client, active_session):
        """Should resolve a table token into a session-bound customer."""
        response = client.get("/api/auth/me", headers=table_headers(active_session))

        assert response.status_code == 200
        principal = response.json()["principal"]
        assert principal["role"] == "CUSTOMER"
        assert principal["session_id"] == active_session.id
        assert principal["table_id"] == active_session.table_id

    def test_me_anonymous(self, client):
        """Should return 401 without credentials."""
        response = client.get("/api/auth/me")
        assert response.status_code == 401

    def test_me_garbage_token(self, client):
        """Should return 401 for a token that does not verify."""
        response = client.get("/api/auth/me", headers={"Authorization": "Bearer a.b.c"})
        assert response.status_code == 401

    def test_me_table_token_as_bearer(self, client, active_session):
        """Should not accept a table token in the Authorization header."""
        token = table_headers(active_session)["X-Table-Token"]
        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401


class TestLogout:
    """Tests for POST /api/auth/logout."""

    def test_logout(self, client, seed_admin):
        """Should acknowledge the logout."""
        response = client.post("/api/auth/logout", headers=bearer(seed_admin))

        assert response.status_code == 200
        assert response.json()["success"] is True

    def test_logout_without_token(self, client):
        """Should require a token."""
        response = client.post("/api/auth/logout")
        assert response.status_code == 401


class TestDeviceToken:
    """Tests for POST /api/auth/device-token."""

    def test_admin_provisions_waiter(self, client, seed_admin, seed_waiter):
        """Should issue a device token that authenticates the waiter."""
        response = client.post(
            "/api/auth/device-token",
            json={"user_id": seed_waiter.id},
            headers=bearer(seed_admin),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "device"
        assert data["expires_in"] > 0
        assert data["user"]["id"] == seed_waiter.id

        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {data['token']}"})
        assert me.status_code == 200
        assert me.json()["principal"]["role"] == "WAITER"

    def test_admin_other_branch_denied(self, client, db_session, seed_admin, seed_restaurant, seed_other_branch):
        """Should refuse provisioning staff of another branch."""
        waiter = make_user(db_session, seed_restaurant, Roles.WAITER, "far@tableflow.io", seed_other_branch)
        response = client.post(
            "/api/auth/device-token",
            json={"user_id": waiter.id},
            headers=bearer(seed_admin),
        )

        assert response.status_code == 403
        assert response.json()["detail"]["reason"] == "branch scope mismatch"

    def test_management_accounts_rejected(self, client, seed_superadmin, seed_admin):
        """Should only issue device tokens to kitchen and waiter staff."""
        response = client.post(
            "/api/auth/device-token",
            json={"user_id": seed_admin.id},
            headers=bearer(seed_superadmin),
        )

        assert response.status_code == 400

    def test_kitchen_cannot_provision(self, client, seed_kitchen, seed_waiter):
        """Should refuse line staff issuing tokens."""
        response = client.post(
            "/api/auth/device-token",
            json={"user_id": seed_waiter.id},
            headers=bearer(seed_kitchen),
        )

        assert response.status_code == 403
        assert response.json()["detail"]["code"] == "AuthorizationDenied"


class TestLiveAccountCheck:
    """Tests for re-checking staff tokens against the account."""

    def _device_token(self, client, admin, user):
        response = client.post("/api/auth/device-token", json={"user_id": user.id}, headers=bearer(admin))
        assert response.status_code == 200
        return {"Authorization": f"Bearer {response.json()['token']}"}

    def test_offboarded_waiter_token_refused(self, client, seed_admin, seed_waiter):
        """Should refuse a device token once its waiter has been off-boarded."""
        headers = self._device_token(client, seed_admin, seed_waiter)

        removed = client.delete(f"/api/admin/staff/{seed_waiter.id}", headers=bearer(seed_admin))
        assert removed.status_code == 204

        me = client.get("/api/auth/me", headers=headers)
        assert me.status_code == 401
        assert me.json()["detail"]["code"] == "Unauthorized"

    def test_role_change_reflected(self, client, db_session, seed_admin, seed_waiter):
        """Should resolve the account's current role, not the one in the token."""
        headers = self._device_token(client, seed_admin, seed_waiter)

        seed_waiter.role = Roles.KITCHEN
        db_session.commit()

        me = client.get("/api/auth/me", headers=headers)
        assert me.status_code == 200
        assert me.json()["principal"]["role"] == "KITCHEN"

    def test_branch_move_reflected(
        self, client, db_session, seed_admin, seed_waiter, seed_branch, seed_other_branch
    ):
        """Should scope a moved waiter to its new branch and refuse the old one."""
        headers = self._device_token(client, seed_admin, seed_waiter)

        seed_waiter.branch_id = seed_other_branch.id
        db_session.commit()

        me = client.get("/api/auth/me", headers=headers)
        assert me.json()["principal"]["branch_id"] == seed_other_branch.id

        old_queue = client.get(f"/api/orders/branch/{seed_branch.id}", headers=headers)
        assert old_queue.status_code == 403
        assert old_queue.json()["detail"]["reason"] == "branch scope mismatch"
