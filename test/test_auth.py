"""
Tests for password hashing, tokens, the admin gate and the auth endpoints
"""

from datetime import timedelta

import pytest

from sitecms.auth import (
    GateDecision,
    create_access_token,
    evaluate_admin_gate,
    hash_password,
    verify_password,
    verify_token,
)
from sitecms.exceptions import DuplicateResourceError, InvalidCredentialsError, ValidationError
from sitecms.models.user import UserRole
from sitecms.schemas.content import ContentCreate
from sitecms.services import auth_service, content_service

SITE_ID = "site-a"
OTHER_SITE_ID = "site-b"


class TestPasswordHashing:
    def test_hash_is_not_plaintext(self):
        hashed = hash_password("hunter2hunter2")
        assert hashed != "hunter2hunter2"
        assert verify_password("hunter2hunter2", hashed)

    def test_wrong_password(self):
        assert not verify_password("wrong", hash_password("hunter2hunter2"))


class TestTokens:
    def test_round_trip_claims(self):
        claims = verify_token(create_access_token("user_1", SITE_ID))
        assert claims["sub"] == "user_1"
        assert claims["site_id"] == SITE_ID
        assert "exp" in claims

    def test_expired_token(self):
        token = create_access_token("user_1", SITE_ID, expires_delta=timedelta(seconds=-1))
        assert verify_token(token) is None

    @pytest.mark.parametrize("token", [None, "", "garbage", "a.b.c"])
    def test_malformed_tokens(self, token):
        assert verify_token(token) is None

    def test_tampered_token(self):
        token = create_access_token("user_1", SITE_ID)
        assert verify_token(token[:-2] + ("aa" if not token.endswith("aa") else "bb")) is None

    def test_site_is_required(self):
        with pytest.raises(ValueError):
            create_access_token("user_1", "")


class TestAdminGate:
    def test_public_paths_pass(self):
        assert evaluate_admin_gate("/api/cms/site-a/content/team", None) == GateDecision.ALLOW

    def test_login_page_passes(self):
        assert evaluate_admin_gate("/admin/login", None) == GateDecision.ALLOW

    def test_missing_cookie_redirects(self):
        assert evaluate_admin_gate("/admin/dashboard", None) == GateDecision.REDIRECT

    def test_invalid_cookie_redirects_and_clears(self):
        assert evaluate_admin_gate("/admin/dashboard", "expired-or-bogus") == GateDecision.REDIRECT_AND_CLEAR

    def test_valid_cookie_passes(self):
        token = create_access_token("user_1", SITE_ID)
        assert evaluate_admin_gate("/admin", token) == GateDecision.ALLOW

    def test_lookalike_path_is_not_admin(self):
        assert evaluate_admin_gate("/administrator", None) == GateDecision.ALLOW


class TestAuthService:
    async def test_login_success(self, db, admin_user):
        token, user = await auth_service.login(db, SITE_ID, "Admin@Example.com", "adminpassword")
        assert user.user_id == admin_user.user_id
        assert verify_token(token)["sub"] == admin_user.user_id
        assert user.last_login_at is not None

    async def test_failures_are_indistinguishable(self, db, admin_user):
        inactive = await auth_service.register_user(db, SITE_ID, "gone@example.com", "gonepassword")
        inactive.active = False
        await db.commit()

        attempts = [
            (SITE_ID, "nobody@example.com", "adminpassword"),
            (SITE_ID, "admin@example.com", "wrongpassword"),
            (SITE_ID, "gone@example.com", "gonepassword"),
            (OTHER_SITE_ID, "admin@example.com", "adminpassword"),
        ]
        messages = set()
        for site_id, email, password in attempts:
            with pytest.raises(InvalidCredentialsError) as exc_info:
                await auth_service.login(db, site_id, email, password)
            messages.add((exc_info.value.status_code, exc_info.value.message))

        assert messages == {(401, "Invalid email or password")}

    async def test_register_defaults_to_editor(self, db):
        user = await auth_service.register_user(db, SITE_ID, " New@Example.com ", "longenough")
        assert user.role == UserRole.EDITOR
        assert user.email == "new@example.com"
        assert user.hashed_password != "longenough"

    async def test_register_short_password(self, db):
        with pytest.raises(ValidationError):
            await auth_service.register_user(db, SITE_ID, "new@example.com", "short")

    async def test_register_duplicate_email(self, db, admin_user):
        with pytest.raises(DuplicateResourceError):
            await auth_service.register_user(db, SITE_ID, "ADMIN@example.com", "anotherpassword")

    async def test_same_email_on_another_site(self, db, admin_user):
        user = await auth_service.register_user(db, OTHER_SITE_ID, "admin@example.com", "anotherpassword")
        assert user.site_id == OTHER_SITE_ID


class TestAuthRoutes:
    async def test_login_sets_cookie(self, client, admin_user):
        response = await client.post(
            "/api/auth/login",
            json={"email": "admin@example.com", "password": "adminpassword", "siteId": SITE_ID},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["role"] == "admin"
        assert response.cookies.get("authToken") == body["data"]["token"]

    async def test_login_failures_share_one_body(self, client, admin_user):
        wrong_password = await client.post(
            "/api/auth/login",
            json={"email": "admin@example.com", "password": "nope", "siteId": SITE_ID},
        )
        unknown_user = await client.post(
            "/api/auth/login",
            json={"email": "who@example.com", "password": "nope", "siteId": SITE_ID},
        )

        assert wrong_password.status_code == unknown_user.status_code == 401
        assert wrong_password.json() == unknown_user.json()
        assert wrong_password.json()["error"] == "Invalid email or password"

    async def test_signup(self, client):
        response = await client.post(
            "/api/auth/signup",
            json={"email": "new@example.com", "password": "longenough", "siteId": SITE_ID},
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["role"] == "editor"
        assert data["active"] is False
        assert "token" not in data
        assert "set-cookie" not in response.headers

    async def test_signup_invalid_email(self, client):
        response = await client.post(
            "/api/auth/signup",
            json={"email": "not-an-email", "password": "longenough", "siteId": SITE_ID},
        )
        assert response.status_code == 400
        assert response.json()["errorCode"] == "VALIDATION_FAILED"

    async def test_logout_clears_cookie(self, client):
        response = await client.post("/api/auth/logout")
        assert response.status_code == 200
        assert "authToken=" in response.headers["set-cookie"]


class TestSiteAccess:
    async def test_missing_token(self, client, db):
        response = await client.get("/api/cms/site-a/form-submissions")
        assert response.status_code == 401
        assert response.json()["success"] is False

    async def test_token_for_another_site(self, client, other_site_admin):
        token = create_access_token(other_site_admin.user_id, OTHER_SITE_ID)
        response = await client.get(
            f"/api/cms/{SITE_ID}/form-submissions", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 403

    async def test_editor_cannot_manage_webhooks(self, client, editor_headers):
        response = await client.get(f"/api/cms/{SITE_ID}/webhooks", headers=editor_headers)
        assert response.status_code == 403
        assert response.json()["errorCode"] == "AUTH_PERMISSION_DENIED"

    async def test_deactivated_user_is_rejected(self, client, db, editor_user, editor_headers):
        editor_user.active = False
        await db.commit()

        response = await client.get(f"/api/cms/{SITE_ID}/form-submissions", headers=editor_headers)
        assert response.status_code == 401

    async def test_cookie_token_is_accepted(self, client, admin_user):
        client.cookies.set("authToken", create_access_token(admin_user.user_id, SITE_ID))
        response = await client.get(f"/api/cms/{SITE_ID}/form-submissions")
        assert response.status_code == 200


class TestAdminPages:
    async def test_dashboard_without_cookie_redirects(self, client):
        response = await client.get("/admin/dashboard")
        assert response.status_code == 307
        assert response.headers["location"] == "/admin/login"

    async def test_dashboard_with_bad_cookie_clears_it(self, client):
        client.cookies.set("authToken", "bogus")
        response = await client.get("/admin/dashboard")

        assert response.status_code == 307
        assert 'authToken=""' in response.headers["set-cookie"] or "authToken=;" in response.headers["set-cookie"]

    async def test_dashboard_with_valid_cookie(self, client, admin_user, default_types):
        client.cookies.set("authToken", create_access_token(admin_user.user_id, SITE_ID))
        response = await client.get("/admin/dashboard")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["siteId"] == SITE_ID
        assert data["siteName"] == "Site A"
        assert data["contentTypes"] == 4

    async def test_login_page_is_open(self, client):
        response = await client.get("/admin/login")
        assert response.status_code == 200
        assert response.json()["data"]["authenticated"] is False


class TestSignupApproval:
    SIGNUP = {"email": "stranger@example.com", "password": "password123", "siteId": SITE_ID}
    LOGIN = {"email": "stranger@example.com", "password": "password123", "siteId": SITE_ID}

    async def _draft(self, db):
        await content_service.create_content(
            db, SITE_ID, "team", ContentCreate(title="Secret", data={"name": "Sam", "role": "Engineer"})
        )

    async def test_pending_signup_cannot_sign_in(self, client):
        await client.post("/api/auth/signup", json=self.SIGNUP)

        response = await client.post("/api/auth/login", json=self.LOGIN)
        assert response.status_code == 401
        assert response.json()["error"] == "Invalid email or password"

    async def test_pending_signup_does_not_see_drafts(self, client, db, default_types):
        await self._draft(db)
        created = (await client.post("/api/auth/signup", json=self.SIGNUP)).json()["data"]
        token = create_access_token(created["userId"], SITE_ID)

        response = await client.get(
            f"/api/cms/{SITE_ID}/content/team", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 200
        assert response.json()["data"] == []

    async def test_admin_approval_grants_access(self, client, db, default_types, admin_headers):
        await self._draft(db)
        created = (await client.post("/api/auth/signup", json=self.SIGNUP)).json()["data"]

        pending = (await client.get(f"/api/cms/{SITE_ID}/users?active=false", headers=admin_headers)).json()["data"]
        assert [u["userId"] for u in pending] == [created["userId"]]

        approved = await client.post(f"/api/cms/{SITE_ID}/users/{created['userId']}/activate", headers=admin_headers)
        assert approved.status_code == 200
        assert approved.json()["data"]["active"] is True

        token = (await client.post("/api/auth/login", json=self.LOGIN)).json()["data"]["token"]
        listing = await client.get(f"/api/cms/{SITE_ID}/content/team", headers={"Authorization": f"Bearer {token}"})
        assert [c["title"] for c in listing.json()["data"]] == ["Secret"]

    async def test_editors_cannot_approve(self, client, editor_headers):
        created = (await client.post("/api/auth/signup", json=self.SIGNUP)).json()["data"]

        response = await client.post(f"/api/cms/{SITE_ID}/users/{created['userId']}/activate", headers=editor_headers)
        assert response.status_code == 403

    async def test_admin_cannot_deactivate_self(self, client, admin_user, admin_headers):
        response = await client.post(f"/api/cms/{SITE_ID}/users/{admin_user.user_id}/deactivate", headers=admin_headers)
        assert response.status_code == 400

    async def test_unknown_user(self, client, admin_headers):
        response = await client.post(f"/api/cms/{SITE_ID}/users/user_missing/activate", headers=admin_headers)
        assert response.status_code == 404
