"""
ABOUTME: OIDC/OAuth2 indirect client for SSO login through an identity provider
ABOUTME: Supports Azure AD, Okta, Auth0, Google, Keycloak and other OIDC providers

File: services/security/clients/oidc_client.py

Description:
    OpenID Connect client implementing the authorization code flow. The entry point
    asks it for the authorization URL (state and nonce are kept in the session); the
    callback hands it the returned code, which is exchanged at the token endpoint.
    The ID token is verified against the provider's JWKS and its claims become the
    user profile.

Key features:
    - Discovery document support for dynamic endpoint configuration
    - Discovery and JWKS caching with a configurable TTL
    - State (CSRF) and nonce (replay) protection
    - JWT signature, audience, expiry and nonce verification
    - Provider specific group/role claim extraction
    - Configurable HTTP timeout for all provider calls

Author: Emfour Solutions
Created: 2026-10-17
Last Modified: 2026-10-17
Version: 1.0.0
"""

# Standard library imports
import json
import secrets
import threading
import time
import urllib.parse
from typing import TYPE_CHECKING, Any, Dict, List, Optional

# Third-party imports
import jwt
import requests
from jwt.exceptions import ExpiredSignatureError, InvalidSignatureError, InvalidTokenError

# Local application imports
from models.profile import UserProfile
from services.exceptions import CredentialsException, ProviderConnectionException
from services.logging_service import get_module_logger
from utils.config_helpers import ConfigHelper

from .base_client import IndirectClient

if TYPE_CHECKING:
    from ..web_context import WebContext

# Module-level logger
logger = get_module_logger(__name__)


class OIDCClient(IndirectClient):
    """
    OpenID Connect client using the authorization code flow
    """

    client_type = "oidc"

    def __init__(self, name: str, config: Dict[str, Any] = None, **kwargs):
        config = config or {}
        helper = ConfigHelper(config)

        self.discovery_url = helper.get_str("discovery_url")
        self.client_id = helper.get_str("client_id")
        self.client_secret = helper.get_str("client_secret")
        self.scope = helper.get_str("scope", "openid profile email")
        self.provider = helper.get_str("provider", "generic")
        self.response_mode = helper.get("response_mode")
        self.extra_params = dict(helper.get_section("extra_params"))
        self.use_nonce = helper.get_bool("use_nonce", True)
        self.timeout = helper.get_int("http_timeout", 30)
        self.cache_ttl = helper.get_int("cache_ttl", 3600)
        self.algorithms = helper.get_list("algorithms") or ["RS256"]

        super().__init__(name, config, **kwargs)

        # Discovery and JWKS caching
        self._cache_lock = threading.Lock()
        self._discovery_cache: Optional[Dict[str, Any]] = None
        self._discovery_fetched_at = 0.0
        self._jwks_cache: Optional[Dict[str, Any]] = None
        self._jwks_fetched_at = 0.0

        logger.info(f"OIDC client '{self.name}' initialized (provider: {self.provider})")

    @property
    def state_session_key(self) -> str:
        return f"{self.name}$state"

    @property
    def nonce_session_key(self) -> str:
        return f"{self.name}$nonce"

    def validate_configuration(self) -> List[str]:
        issues = []

        if not self.client_id:
            issues.append(f"Client ID is required for {self.name}")

        if not self.client_secret:
            issues.append(f"Client secret is required for {self.name}")

        if not self.discovery_url:
            issues.append(f"Discovery URL is required for {self.name}")
        elif not self.discovery_url.startswith(("http://", "https://")):
            issues.append("Discovery URL must be a valid HTTP/HTTPS URL")

        return issues

    def build_redirection_url(self, context: "WebContext") -> str:
        """
        Get authorization URL for OIDC login

        Raises:
            ProviderConnectionException: When the discovery document is unavailable
        """
        discovery = self._get_discovery_document()
        auth_endpoint = discovery.get("authorization_endpoint")
        if not auth_endpoint:
            raise ProviderConnectionException(
                "No authorization endpoint in discovery document",
                details={"client": self.name, "discovery_url": self.discovery_url},
            )

        state = secrets.token_urlsafe(32)
        context.session_set(self.state_session_key, state)

        params = {
            "client_id": self.client_id,
            "response_type": "code",
            "scope": self.scope,
            "redirect_uri": self.get_callback_url(),
            "state": state,
        }

        if self.use_nonce:
            nonce = secrets.token_urlsafe(32)
            context.session_set(self.nonce_session_key, nonce)
            params["nonce"] = nonce

        if self.response_mode:
            params["response_mode"] = self.response_mode
        elif self.provider == "azure_ad":
            params["response_mode"] = "form_post"

        params.update(self.extra_params)

        separator = "&" if "?" in auth_endpoint else "?"
        auth_url = f"{auth_endpoint}{separator}{urllib.parse.urlencode(params)}"

        logger.debug(f"Generated OIDC authorization URL for client: {self.name}")
        return auth_url

    def get_credentials(self, context: "WebContext") -> Optional[Dict[str, Any]]:
        error = context.get_request_parameter("error")
        if error:
            description = context.get_request_parameter("error_description") or "Unknown error"
            logger.warning(f"OIDC callback error for {self.name}: {error} - {description}")
            return None

        code = context.get_request_parameter("code")
        state = context.get_request_parameter("state")
        expected_state = context.session_pop(self.state_session_key)

        if not state or state != expected_state:
            logger.warning("OIDC callback state mismatch - possible CSRF attack")
            return None

        if not code:
            logger.warning(f"OIDC callback for {self.name} without authorization code")
            return None

        return {"code": code, "state": state}

    def get_user_profile(
        self, credentials: Dict[str, Any], context: "WebContext"
    ) -> Optional[UserProfile]:
        tokens = self._exchange_code_for_tokens(credentials["code"])

        id_token = tokens.get("id_token")
        if not id_token:
            raise CredentialsException(
                "No ID token received from provider", details={"client": self.name}
            )

        expected_nonce = context.session_pop(self.nonce_session_key) if self.use_nonce else None
        claims = self._validate_and_decode_token(id_token, expected_nonce)
        if not claims:
            return None

        return self._build_profile(claims, tokens)

    def _get_discovery_document(self) -> Dict[str, Any]:
        """Get OIDC discovery document with caching"""
        with self._cache_lock:
            now = time.time()
            if self._discovery_cache and now - self._discovery_fetched_at < self.cache_ttl:
                return self._discovery_cache

            try:
                response = requests.get(self.discovery_url, timeout=self.timeout)
                response.raise_for_status()
                discovery = response.json()
            except (requests.RequestException, ValueError) as e:
                logger.error(f"Failed to fetch OIDC discovery document: {e}")
                raise ProviderConnectionException(
                    "Failed to load OIDC discovery document",
                    details={"client": self.name, "error": str(e)},
                ) from e

            self._discovery_cache = discovery
            self._discovery_fetched_at = now
            logger.debug(f"Fetched OIDC discovery document for {self.name}")
            return discovery

    def _get_jwks(self) -> Dict[str, Any]:
        """Get JWKS (JSON Web Key Set) with caching"""
        jwks_uri = self._get_discovery_document().get("jwks_uri")
        if not jwks_uri:
            raise ProviderConnectionException(
                "No jwks_uri in discovery document", details={"client": self.name}
            )

        with self._cache_lock:
            now = time.time()
            if self._jwks_cache and now - self._jwks_fetched_at < self.cache_ttl:
                return self._jwks_cache

            try:
                response = requests.get(jwks_uri, timeout=self.timeout)
                response.raise_for_status()
                jwks = response.json()
            except (requests.RequestException, ValueError) as e:
                logger.error(f"Failed to fetch JWKS: {e}")
                raise ProviderConnectionException(
                    "Failed to load JWKS", details={"client": self.name, "error": str(e)}
                ) from e

            self._jwks_cache = jwks
            self._jwks_fetched_at = now
            logger.debug(f"Fetched JWKS for {self.name}")
            return jwks

    def _exchange_code_for_tokens(self, code: str) -> Dict[str, Any]:
        """Exchange authorization code for tokens"""
        token_endpoint = self._get_discovery_document().get("token_endpoint")
        if not token_endpoint:
            raise ProviderConnectionException(
                "No token endpoint in discovery document", details={"client": self.name}
            )

        data = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self.get_callback_url(),
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        }
        headers = {
            "Content-Type": "application/x-www-form-urlencoded",
            "Accept": "application/json",
        }

        try:
            response = requests.post(
                token_endpoint, data=data, headers=headers, timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.error(f"Token exchange error: {e}")
            raise ProviderConnectionException(
                "Token endpoint unreachable", details={"client": self.name, "error": str(e)}
            ) from e

        if response.status_code != 200:
            logger.error(f"Token exchange failed: {response.status_code} - {response.text}")
            raise CredentialsException(
                "Failed to exchange authorization code for tokens",
                details={"client": self.name, "status": response.status_code},
            )

        return response.json()

    def _validate_and_decode_token(
        self, token: str, expected_nonce: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        """
        Validate and decode the ID token

        Returns:
            Token claims or None if invalid
        """
        jwks = self._get_jwks()

        try:
            kid = jwt.get_unverified_header(token).get("kid")
        except InvalidTokenError as e:
            logger.warning(f"Malformed ID token: {e}")
            return None

        public_key = None
        for key in jwks.get("keys", []):
            if key.get("kid") == kid:
                public_key = jwt.algorithms.RSAAlgorithm.from_jwk(json.dumps(key))
                break

        if public_key is None:
            logger.error(f"No matching key found for kid: {kid}")
            return None

        try:
            claims = jwt.decode(
                token,
                public_key,
                algorithms=self.algorithms,
                audience=self.client_id,
                options={"verify_exp": True, "require": ["sub", "exp"]},
            )
        except ExpiredSignatureError:
            logger.warning("ID token has expired")
            return None
        except InvalidSignatureError:
            logger.warning("ID token has invalid signature")
            return None
        except InvalidTokenError as e:
            logger.warning(f"ID token validation failed: {e}")
            return None

        if self.use_nonce and claims.get("nonce") != expected_nonce:
            logger.warning("ID token nonce mismatch - possible replay")
            return None

        return claims

    def _build_profile(self, claims: Dict[str, Any], tokens: Dict[str, Any]) -> UserProfile:
        """Map ID token claims to a user profile"""
        username = claims.get("preferred_username") or claims.get("email")
        groups: List[str] = []
        roles: List[str] = []

        if self.provider == "azure_ad":
            groups = claims.get("groups", [])
            roles = claims.get("roles", [])
            username = username or claims.get("upn") or claims.get("unique_name")
        elif self.provider == "keycloak":
            roles = claims.get("resource_access", {}).get(self.client_id, {}).get("roles", [])
            groups = claims.get("realm_access", {}).get("roles", [])
        else:
            groups = claims.get("groups", [])
            roles = claims.get("roles", [])

        return UserProfile(
            id=str(claims["sub"]),
            client_name=self.name,
            username=username,
            email=claims.get("email"),
            display_name=claims.get("name"),
            roles=sorted(set(roles) | set(groups)),
            attributes={
                "issuer": claims.get("iss"),
                "given_name": claims.get("given_name"),
                "family_name": claims.get("family_name"),
                "expires_at": time.time() + int(tokens.get("expires_in", 3600)),
            },
        )

    def supports_feature(self, feature: str) -> bool:
        return feature in ("token_validation", "claims_mapping") or super().supports_feature(feature)

    def get_client_info(self) -> Dict[str, Any]:
        info = super().get_client_info()
        info.update({"provider": self.provider, "discovery_url": self.discovery_url})
        return info
