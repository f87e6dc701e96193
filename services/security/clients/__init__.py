"""
ABOUTME: Security clients package exposing the client classes and registry
ABOUTME: Indirect clients redirect to an identity provider, direct clients read request credentials

File: services/security/clients/__init__.py

Author: Emfour Solutions
Created: 2026-10-17
"""

from .api_key_client import ApiKeyClient
from .base_client import (
    CLIENT_NAME_PARAMETER,
    BaseClient,
    DirectClient,
    IndirectClient,
    add_query_parameter,
)
from .form_client import FormClient
from .oidc_client import OIDCClient
from .registry import CLIENT_TYPES, Clients, build_clients

__all__ = [
    "ApiKeyClient",
    "BaseClient",
    "CLIENT_NAME_PARAMETER",
    "CLIENT_TYPES",
    "Clients",
    "DirectClient",
    "FormClient",
    "IndirectClient",
    "OIDCClient",
    "add_query_parameter",
    "build_clients",
]
