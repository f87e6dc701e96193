"""
ABOUTME: Integration tests for protected routes through the full application
ABOUTME: Tests OIDC redirects, form login round trips, API key access and logout

File: tests/integration/test_protected_routes.py

Author: Emfour Solutions
Created: 2026-10-17
"""

from urllib.parse import parse_qs, urlparse

import pytest

from services.security import PROFILE_SESSION_KEY, REQUESTED_URL_KEY, require_role


@pytest.mark.integration
class TestBrowserLogin:
    """Test anonymous browsers hitting protected pages"""

    def test_public_index(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert b"Sign in with keycloak" in response.data
        assert b"Sign in with form" in response.data
        assert b"Sign in with api" not in response.data

    def test_dashboard_redirects_to_identity_provider(self, client, mock_provider):
        response = client.get("/dashboard")

        assert response.status_code == 302
        location = urlparse(response.headers["Location"])
        params = parse_qs(location.query)
        assert location.netloc == "idp.example.com"
        assert params["redirect_uri"] == ["http://localhost/auth/callback?client_name=keycloak"]

        with client.session_transaction() as sess:
            assert sess[REQUESTED_URL_KEY]["url"] == "http://localhost/dashboard"
            assert sess["keycloak$state"] == params["state"][0]

    def test_ajax_request_gets_401(self, client, mock_provider):
        response = client.get("/dashboard", headers={"X-Requested-With": "XMLHttpRequest"})

        assert response.status_code == 401
        assert response.headers["Location"].startswith("https://idp.example.com/")

        with client.session_transaction() as sess:
            assert REQUESTED_URL_KEY not in sess

    def test_login_for_unknown_client(self, client):
        assert client.get("/auth/login/saml").status_code == 404

    def test_form_page_only_for_form_clients(self, client):
        assert client.get("/auth/form?client_name=keycloak").status_code == 404


@pytest.mark.integration
class TestFormLoginFlow:
    """Test the form client end to end"""

    def test_successful_login_returns_to_saved_url(self, client, form_password):
        with client.session_transaction() as sess:
            sess[REQUESTED_URL_KEY] = {"method": "GET", "url": "http://localhost/dashboard"}

        response = client.post(
            "/auth/callback?client_name=form",
            data={"username": "alice", "password": form_password},
        )

        assert response.status_code == 302
        assert response.headers["Location"] == "http://localhost/dashboard"

        dashboard = client.get("/dashboard")
        assert dashboard.status_code == 200
        assert b"Welcome Alice Example" in dashboard.data

    def test_login_start_shows_form(self, client):
        response = client.get("/auth/login/form")

        assert response.status_code == 302
        assert response.headers["Location"] == "/auth/form?client_name=form"

        form = client.get(response.headers["Location"])
        assert form.status_code == 200
        assert b'action="/auth/callback?client_name=form"' in form.data
        assert b"Invalid username or password" not in form.data

    def test_failed_login_returns_to_form_with_error(self, client):
        response = client.post(
            "/auth/callback?client_name=form",
            data={"username": "alice", "password": "wrong"},
        )

        assert response.status_code == 303
        assert response.headers["Location"] == "/auth/form?client_name=form&error=1"

        form = client.get(response.headers["Location"])
        assert b"Invalid username or password" in form.data

        with client.session_transaction() as sess:
            assert PROFILE_SESSION_KEY not in sess

    def test_over_long_password_returns_to_form_with_error(self, client):
        response = client.post(
            "/auth/callback?client_name=form",
            data={"username": "alice", "password": "x" * 100},
        )

        assert response.status_code == 303
        assert response.headers["Location"] == "/auth/form?client_name=form&error=1"

    def test_session_check_and_logout(self, client, form_password):
        assert client.get("/auth/api/session/check").status_code == 401

        client.post(
            "/auth/callback?client_name=form",
            data={"username": "alice", "password": form_password},
        )

        check = client.get("/auth/api/session/check")
        assert check.status_code == 200
        assert check.get_json()["user"]["username"] == "alice"

        logout = client.post("/auth/logout", json={})
        assert logout.get_json() == {"success": True, "message": "Logged out successfully"}
        assert client.get("/auth/api/session/check").status_code == 401

    def test_logged_in_user_skips_login(self, client, form_password):
        client.post(
            "/auth/callback?client_name=form",
            data={"username": "alice", "password": form_password},
        )

        response = client.get("/auth/login/keycloak")

        assert response.status_code == 302
        assert response.headers["Location"].endswith("/dashboard")


@pytest.mark.integration
class TestApiKeyAccess:
    """Test direct client authentication on API routes"""

    def test_valid_key(self, client, api_key):
        response = client.get("/api/whoami", headers={"X-API-Key": api_key})

        assert response.status_code == 200
        assert response.get_json()["user"]["id"] == "api_key:automation"

    def test_missing_key_gets_challenge(self, client):
        response = client.get("/api/whoami", headers={"Accept": "application/json"})

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == 'ApiKey realm="gatehouse", header="X-API-Key"'
        assert response.get_json()["error"] == "Authentication required"

    def test_wrong_key(self, client):
        response = client.get("/api/whoami", headers={"X-API-Key": "nope"})

        assert response.status_code == 401

    def test_api_key_does_not_create_session(self, client, api_key):
        client.get("/api/whoami", headers={"X-API-Key": api_key})

        with client.session_transaction() as sess:
            assert PROFILE_SESSION_KEY not in sess


@pytest.mark.integration
class TestRoleChecks:
    """Test role protected views"""

    @pytest.fixture
    def role_app(self, app):
        @app.route("/admin-only")
        @require_role("admin", client_name="api")
        def admin_only():
            return "ok"

        return app

    def test_missing_role_is_forbidden(self, role_app, api_key):
        response = role_app.test_client().get("/admin-only", headers={"X-API-Key": api_key})

        assert response.status_code == 403

    def test_role_granted_through_form_login(self, role_app, form_password):
        client = role_app.test_client()
        client.post(
            "/auth/callback?client_name=form",
            data={"username": "alice", "password": form_password},
        )

        response = client.get("/admin-only")

        assert response.status_code == 200
        assert response.data == b"ok"
