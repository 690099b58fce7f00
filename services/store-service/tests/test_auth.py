"""
Tests for signup, login and the bearer-token guard on account routes.
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from conftest import JWT_SECRET, ROOT_PASS, ROOT_USER, bearer
from main import create_app
from models import UserAccount
from tokens import issue_token

UNAUTHORIZED = {"error": "Unauthorized"}


class TestSignupAndLogin:

    def test_signup_returns_profile_without_secrets(self, client):
        response = client.post("/user/signup", json={"user": "alice", "password": "pw1"})

        assert response.status_code == 200
        body = response.json()
        assert body["username"] == "alice"
        assert body["items"] == []
        assert body["orders"] == []
        assert "password" not in body
        assert "hashed_password" not in body
        assert "auth_token" not in body

    def test_duplicate_username_rejected(self, client):
        client.post("/user/signup", json={"user": "alice", "password": "pw1"})

        response = client.post("/user/signup", json={"user": "alice", "password": "other"})

        assert response.status_code == 400
        assert response.json() == {"error": "Username alice already exists"}

    def test_empty_password_rejected(self, client):
        response = client.post("/user/signup", json={"user": "alice", "password": ""})

        assert response.status_code == 400
        assert "error" in response.json()

    def test_unknown_fields_rejected(self, client):
        response = client.post(
            "/user/signup",
            json={"user": "alice", "password": "pw1", "is_admin": True}
        )

        assert response.status_code == 400

    def test_malformed_json_rejected(self, client):
        response = client.post(
            "/user/signup",
            content="{not json",
            headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert "error" in response.json()

    def test_login_wrong_password(self, client):
        client.post("/user/signup", json={"user": "alice", "password": "pw1"})

        response = client.post("/user/login", json={"user": "alice", "password": "nope"})

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid username or password"}

    def test_login_unknown_user(self, client):
        response = client.post("/user/login", json={"user": "ghost", "password": "pw1"})

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid username or password"}

    def test_login_caches_token_on_account(self, client, db, signup_and_login):
        user, headers = signup_and_login()

        account = db.get(UserAccount, user["id"])
        assert headers["Authorization"] == f"Bearer {account.auth_token}"

    def test_login_uses_same_username_cleanup_as_signup(self, client):
        response = client.post("/user/signup", json={"user": " alice ", "password": "pw1"})
        assert response.json()["username"] == "alice"

        for username in (" alice ", "alice"):
            response = client.post("/user/login", json={"user": username, "password": "pw1"})
            assert response.status_code == 200

    def test_root_admin_seeded(self, client):
        response = client.post("/admin/login", json={"user": ROOT_USER, "password": ROOT_PASS})

        assert response.status_code == 200
        assert response.json()["auth_token"]


class TestAccountGuard:
    """The guard runs extraction, verification, subject match, lookup, corroboration."""

    def test_valid_token(self, client, signup_and_login):
        user, headers = signup_and_login()

        response = client.get(f"/user/{user['id']}", headers=headers)

        assert response.status_code == 200
        assert response.json()["username"] == "alice"

    def test_missing_header(self, client, signup_and_login):
        user, _ = signup_and_login()

        response = client.get(f"/user/{user['id']}")

        assert response.status_code == 401
        assert response.json() == UNAUTHORIZED

    @pytest.mark.parametrize("header", ["Token abc", "Bearer", "Bearer a b", "bearer-abc"])
    def test_malformed_header(self, client, signup_and_login, header):
        user, _ = signup_and_login()

        response = client.get(f"/user/{user['id']}", headers={"Authorization": header})

        assert response.status_code == 401
        assert response.json() == UNAUTHORIZED

    def test_garbage_token(self, client, signup_and_login):
        user, _ = signup_and_login()

        response = client.get(f"/user/{user['id']}", headers=bearer("garbage"))

        assert response.status_code == 401
        assert response.json() == UNAUTHORIZED

    def test_token_for_another_account(self, client, signup_and_login):
        alice, alice_headers = signup_and_login("alice", "pw1")
        bob, _ = signup_and_login("bob", "pw2")

        response = client.get(f"/user/{bob['id']}", headers=alice_headers)

        assert response.status_code == 401
        assert response.json() == UNAUTHORIZED

    def test_non_numeric_path_id(self, client, signup_and_login):
        _, headers = signup_and_login()

        response = client.get("/user/abc", headers=headers)

        assert response.status_code == 400
        assert "error" in response.json()

    @pytest.mark.parametrize("raw_id", ["0", "-3", "99999999999999999999"])
    def test_out_of_range_path_id(self, client, signup_and_login, raw_id):
        _, headers = signup_and_login()

        response = client.get(f"/user/{raw_id}", headers=headers)

        assert response.status_code == 400
        assert response.json() == {"error": f'Invalid id: "{raw_id}"'}

    def test_expired_token(self, client, signup_and_login):
        user, _ = signup_and_login()
        issued = datetime.now(timezone.utc) - timedelta(hours=25)
        token = issue_token(user["id"], "alice", JWT_SECRET, now=issued, audience="user")

        response = client.get(f"/user/{user['id']}", headers=bearer(token))

        assert response.status_code == 401
        assert response.json() == UNAUTHORIZED

    def test_token_signed_with_other_secret(self, client, signup_and_login):
        user, _ = signup_and_login()
        token = issue_token(user["id"], "alice", "some-other-secret-of-adequate-length", audience="user")

        response = client.get(f"/user/{user['id']}", headers=bearer(token))

        assert response.status_code == 401

    def test_rename_invalidates_old_token(self, client, signup_and_login):
        user, headers = signup_and_login()

        response = client.put(f"/user/{user['id']}", json={"user": "alice2"}, headers=headers)
        assert response.status_code == 200
        assert response.json() == {"updated_account": user["id"]}

        response = client.get(f"/user/{user['id']}", headers=headers)
        assert response.status_code == 401

        response = client.post("/user/login", json={"user": "alice2", "password": "pw1"})
        assert response.status_code == 200

    def test_deleted_account(self, client, signup_and_login, admin_headers):
        user, headers = signup_and_login()

        response = client.request(
            "DELETE", "/admin/1/users", json={"id": user["id"]}, headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json() == {"deleted_account": user["id"]}

        response = client.get(f"/user/{user['id']}", headers=headers)
        assert response.status_code == 401
        assert response.json() == UNAUTHORIZED

    def test_user_token_on_admin_route(self, client, signup_and_login):
        user, headers = signup_and_login()

        response = client.get(f"/admin/{user['id']}", headers=headers)

        assert response.status_code == 401

    def test_user_token_rejected_even_with_matching_admin_identity(self, client):
        # A user account named like the root admin, sharing its id
        client.post("/user/signup", json={"user": ROOT_USER, "password": "pw1"})
        response = client.post("/user/login", json={"user": ROOT_USER, "password": "pw1"})
        headers = bearer(response.json()["auth_token"])

        response = client.get("/admin/1", headers=headers)

        assert response.status_code == 401

    def test_admin_token_on_user_route(self, client, signup_and_login, admin_headers):
        user, _ = signup_and_login()

        response = client.get(f"/user/{user['id']}", headers=admin_headers)

        assert response.status_code == 401

    def test_no_bypass_token(self, client, signup_and_login):
        user, _ = signup_and_login()

        for token in ("admin-token-456", "user-token-123"):
            response = client.get(f"/user/{user['id']}", headers=bearer(token))
            assert response.status_code == 401


class TestMissingSigningSecret:
    """Without a signing secret, logins fail inside the error envelope."""

    @pytest.fixture
    def unsigned_client(self, settings):
        app = create_app(settings.model_copy(update={"jwt_secret": ""}))
        with TestClient(app) as client:
            yield client

    def test_user_login(self, unsigned_client):
        unsigned_client.post("/user/signup", json={"user": "alice", "password": "pw1"})

        response = unsigned_client.post("/user/login", json={"user": "alice", "password": "pw1"})

        assert response.status_code == 500
        assert response.headers["content-type"].startswith("application/json")
        assert response.json() == {"error": "Authentication is not configured"}

    def test_admin_login(self, unsigned_client):
        response = unsigned_client.post("/admin/login", json={"user": ROOT_USER, "password": ROOT_PASS})

        assert response.status_code == 500
        assert response.json() == {"error": "Authentication is not configured"}

    def test_wrong_password_still_unauthorized(self, unsigned_client):
        unsigned_client.post("/user/signup", json={"user": "alice", "password": "pw1"})

        response = unsigned_client.post("/user/login", json={"user": "alice", "password": "nope"})

        assert response.status_code == 401

    def test_guarded_routes_reject_everything(self, unsigned_client):
        user = unsigned_client.post("/user/signup", json={"user": "alice", "password": "pw1"}).json()
        token = issue_token(user["id"], "alice", JWT_SECRET, audience="user")

        response = unsigned_client.get(f"/user/{user['id']}", headers=bearer(token))

        assert response.status_code == 401
        assert response.json() == UNAUTHORIZED
