"""
ABOUTME: Pytest configuration and shared fixtures for Gatehouse security tests
ABOUTME: Provides the Flask app, security configuration, stub clients and an OIDC test provider

File: tests/conftest.py

Description:
    Central pytest configuration file providing shared fixtures for the Gatehouse
    test suite. Includes the application built through the real app factory with a
    test security configuration, bare Flask request contexts for unit tests, stub
    indirect/direct clients and an RSA signed OIDC provider double.

Author: Emfour Solutions
Created: 2026-10-17
Last Modified: 2026-10-17
Version: 1.0.0
"""

import json
import os
import time
from unittest.mock import Mock, patch

import bcrypt
import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from flask import Flask

from services.security import (
    DirectClient,
    IndirectClient,
    build_security_config,
)

TEST_DISCOVERY_URL = "https://idp.example.com/realms/test/.well-known/openid-configuration"
TEST_API_KEY = "test-api-key-0123456789"
TEST_PASSWORD = "correct-horse-battery"


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=4)).decode("utf-8")


class StubIndirectClient(IndirectClient):
    """Indirect client redirecting to a fixed identity provider URL"""

    client_type = "stub_indirect"

    def __init__(self, name="stub", login_url="https://idp.example.com/login", **kwargs):
        self.login_url = login_url
        self.profile = None
        super().__init__(name, {}, **kwargs)

    def validate_configuration(self):
        return []

    def build_redirection_url(self, context):
        return self.login_url

    def get_credentials(self, context):
        return context.get_request_parameter("token") and {"token": "ok"}

    def get_user_profile(self, credentials, context):
        return self.profile


class StubDirectClient(DirectClient):
    """Direct client that never finds credentials"""

    client_type = "stub_direct"

    def __init__(self, name="direct"):
        super().__init__(name, {})

    def validate_configuration(self):
        return []

    def get_credentials(self, context):
        return None

    def get_user_profile(self, credentials, context):
        return None


@pytest.fixture
def make_indirect_client():
    """Factory for stub indirect clients"""
    return StubIndirectClient


@pytest.fixture
def make_direct_client():
    """Factory for stub direct clients"""
    return StubDirectClient


@pytest.fixture
def flask_app():
    """Bare Flask app for request context based unit tests"""
    app = Flask(__name__)
    app.config["SECRET_KEY"] = "unit-test-secret"
    app.config["TESTING"] = True
    return app


@pytest.fixture(scope="session")
def password_hash():
    return hash_password(TEST_PASSWORD)


@pytest.fixture
def security_settings(password_hash):
    """Security settings as returned by config.load_security_config"""
    return {
        "callback_url": "/auth/callback",
        "default_client": "keycloak",
        "use_modern_http_codes": True,
        "always_use_401": True,
        "ajax": {"add_redirection_url_as_header": True},
        "http_timeout": 5,
        "clients": {
            "keycloak": {
                "type": "oidc",
                "enabled": True,
                "provider": "keycloak",
                "discovery_url": TEST_DISCOVERY_URL,
                "client_id": "gatehouse",
                "client_secret": "test-client-secret",
            },
            "form": {
                "type": "form",
                "enabled": True,
                "users": {
                    "alice": {
                        "password_hash": password_hash,
                        "display_name": "Alice Example",
                        "roles": ["admin"],
                    }
                },
            },
            "api": {
                "type": "api_key",
                "enabled": True,
                "keys": [{"name": "automation", "key": TEST_API_KEY, "roles": ["api"]}],
            },
            "ldap": {"type": "api_key", "enabled": False},
        },
    }


@pytest.fixture
def security_config(security_settings):
    return build_security_config(security_settings, application_url="http://localhost")


@pytest.fixture
def app(security_config):
    """Create test Flask application using the actual app factory"""
    from app import create_app

    original_env = os.environ.get("FLASK_ENV")
    os.environ["FLASK_ENV"] = "testing"

    try:
        app = create_app("testing", security_config=security_config)
        yield app
    finally:
        if original_env is None:
            os.environ.pop("FLASK_ENV", None)
        else:
            os.environ["FLASK_ENV"] = original_env


@pytest.fixture
def client(app):
    """Create test client"""
    return app.test_client()


@pytest.fixture(scope="session")
def rsa_private_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def jwks(rsa_private_key):
    jwk = json.loads(jwt.algorithms.RSAAlgorithm.to_jwk(rsa_private_key.public_key()))
    jwk.update({"kid": "test-key", "alg": "RS256", "use": "sig"})
    return {"keys": [jwk]}


@pytest.fixture
def discovery_document():
    return {
        "issuer": "https://idp.example.com/realms/test",
        "authorization_endpoint": "https://idp.example.com/realms/test/protocol/openid-connect/auth",
        "token_endpoint": "https://idp.example.com/realms/test/protocol/openid-connect/token",
        "jwks_uri": "https://idp.example.com/realms/test/protocol/openid-connect/certs",
    }


@pytest.fixture
def make_id_token(rsa_private_key):
    """Factory for RS256 signed ID tokens"""

    def _make(nonce, audience="gatehouse", expires_in=300, **claims):
        now = int(time.time())
        payload = {
            "iss": "https://idp.example.com/realms/test",
            "sub": "user-123",
            "aud": audience,
            "iat": now,
            "exp": now + expires_in,
            "nonce": nonce,
            "preferred_username": "jdoe",
            "email": "jdoe@example.com",
            "name": "Jane Doe",
        }
        payload.update(claims)
        # Claims passed as None are left out of the token
        payload = {name: value for name, value in payload.items() if value is not None}
        return jwt.encode(payload, rsa_private_key, algorithm="RS256", headers={"kid": "test-key"})

    return _make


def json_response(payload, status_code=200):
    response = Mock()
    response.status_code = status_code
    response.json.return_value = payload
    response.text = json.dumps(payload)
    response.raise_for_status.return_value = None
    return response


@pytest.fixture
def mock_provider(discovery_document, jwks):
    """Patch requests in the OIDC client with discovery and JWKS answers"""

    def fake_get(url, timeout=None):
        if url == TEST_DISCOVERY_URL:
            return json_response(discovery_document)
        if url == discovery_document["jwks_uri"]:
            return json_response(jwks)
        raise AssertionError(f"Unexpected GET {url}")

    with patch("services.security.clients.oidc_client.requests") as mock_requests:
        import requests

        mock_requests.RequestException = requests.RequestException
        mock_requests.get.side_effect = fake_get
        yield mock_requests


@pytest.fixture
def provider_response():
    """Factory for mocked requests responses"""
    return json_response


@pytest.fixture
def form_password():
    """Plain text password of the form client's test user"""
    return TEST_PASSWORD


@pytest.fixture
def api_key():
    """Valid key of the API key client"""
    return TEST_API_KEY
