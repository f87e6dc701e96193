"""
ABOUTME: Unit tests for the callback logic finishing indirect logins
ABOUTME: Tests profile storage, saved URL restoration and failure handling

File: tests/unit/test_callback.py

Author: Emfour Solutions
Created: 2026-10-17
"""

from unittest.mock import Mock

import pytest
from flask import request, session

from models.profile import UserProfile
from services.exceptions import CredentialsException, SecurityConfigurationException
from services.security import (
    PROFILE_SESSION_KEY,
    REQUESTED_URL_KEY,
    CallbackLogic,
    Clients,
    FoundAction,
    SecurityConfig,
    UnauthorizedAction,
    WebContext,
)


@pytest.fixture
def stub_client(make_indirect_client):
    client = make_indirect_client("sso", callback_url="http://localhost/auth/callback")
    client.profile = UserProfile(id="u-1", client_name="sso", username="jdoe", roles=["admin"])
    return client


@pytest.fixture
def config(stub_client, make_direct_client):
    return SecurityConfig(clients=Clients([stub_client, make_direct_client("api")]))


@pytest.fixture
def logic():
    return CallbackLogic()


class TestCallbackLogic:
    """Test the callback flow"""

    def test_success_restores_saved_url(self, flask_app, config, logic):
        with flask_app.test_request_context("/auth/callback?client_name=sso&token=abc"):
            session[REQUESTED_URL_KEY] = {"method": "GET", "url": "http://localhost/reports"}

            action = logic.perform(WebContext(request), config, "/dashboard")

            assert action == FoundAction("http://localhost/reports")
            assert session[PROFILE_SESSION_KEY]["username"] == "jdoe"
            assert REQUESTED_URL_KEY not in session

    def test_success_without_saved_url_uses_default(self, flask_app, config, logic):
        with flask_app.test_request_context("/auth/callback?token=abc"):
            action = logic.perform(WebContext(request), config, "/dashboard", client_name="sso")

        assert action == FoundAction("/dashboard")

    @pytest.mark.parametrize("url", ["//evil.example.com/", "/\\evil.example.com"])
    def test_scheme_relative_saved_url_discarded(self, flask_app, config, logic, url):
        with flask_app.test_request_context("/auth/callback?client_name=sso&token=abc"):
            session[REQUESTED_URL_KEY] = {"method": "GET", "url": url}

            action = logic.perform(WebContext(request), config, "/dashboard")

        assert action == FoundAction("/dashboard")

    def test_foreign_saved_url_discarded(self, flask_app, config, logic):
        with flask_app.test_request_context("/auth/callback?client_name=sso&token=abc"):
            session[REQUESTED_URL_KEY] = {"method": "GET", "url": "https://evil.example.com/"}

            action = logic.perform(WebContext(request), config, "/dashboard")

        assert action == FoundAction("/dashboard")

    def test_saved_post_is_replayed_through_form(self, flask_app, config, logic):
        with flask_app.test_request_context("/auth/callback?client_name=sso&token=abc"):
            session[REQUESTED_URL_KEY] = {
                "method": "POST",
                "url": "http://localhost/orders",
                "params": {"item": "42"},
            }

            action = logic.perform(WebContext(request), config, "/dashboard")

        assert action.code == 200
        assert 'action="http://localhost/orders"' in action.content
        assert 'name="item"' in action.content

    def test_missing_credentials_answers_401(self, flask_app, config, logic):
        with flask_app.test_request_context("/auth/callback?client_name=sso"):
            action = logic.perform(WebContext(request), config, "/dashboard")

            assert action == UnauthorizedAction()
            assert PROFILE_SESSION_KEY not in session
            assert "sso$attemptedAuthentication" not in session

    def test_credentials_error_answers_401(self, flask_app, config, logic, stub_client):
        stub_client.get_user_profile = Mock(side_effect=CredentialsException("Token exchange failed"))

        with flask_app.test_request_context("/auth/callback?client_name=sso&token=abc"):
            action = logic.perform(WebContext(request), config, "/dashboard")

        assert action == UnauthorizedAction()

    def test_unknown_client(self, flask_app, config, logic):
        with flask_app.test_request_context("/auth/callback?client_name=nope"):
            with pytest.raises(SecurityConfigurationException) as exc_info:
                logic.perform(WebContext(request), config, "/dashboard")

        assert "Cannot find client_name: nope" in str(exc_info.value)

    def test_direct_client_rejected(self, flask_app, config, logic):
        with flask_app.test_request_context("/auth/callback?client_name=api"):
            with pytest.raises(SecurityConfigurationException):
                logic.perform(WebContext(request), config, "/dashboard")
