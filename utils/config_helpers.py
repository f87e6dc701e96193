"""
ABOUTME: Centralized configuration access utilities for security settings
ABOUTME: Provides dotted-path lookups and typed accessors over plain config dicts

File: utils/config_helpers.py

Description:
    Small helpers used by the security loader and the client builders to read the
    nested YAML configuration without repeating chains of .get() calls.

Author: Emfour Solutions
Created: 2026-10-17
Last Modified: 2026-10-17
Version: 1.0.0
"""

from typing import Any, Dict, List, Optional

from services.logging_service import get_module_logger

logger = get_module_logger(__name__)


def nested_config_get(
    config: Dict[str, Any], key_path: str, default: Any = None
) -> Any:
    """
    Get nested configuration value using dot notation.

    Args:
        config: Configuration dictionary
        key_path: Dot-separated key path (e.g., "security.clients.oidc.enabled")
        default: Default value if path not found

    Returns:
        Configuration value or default
    """
    current = config

    for key in key_path.split("."):
        if not isinstance(current, dict) or key not in current:
            return default
        current = current[key]

    return current


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge two dictionaries, values from override win, nested dicts are merged."""
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


class ConfigHelper:
    """
    Configuration helper class for easier config management.

    Usage:
        helper = ConfigHelper(client_config)
        scope = helper.get_str("scope", "openid profile email")
        timeout = helper.get_int("timeout", 30)
    """

    def __init__(self, config: Optional[Dict[str, Any]]):
        self.config = config or {}

    def get(self, key: str, default: Any = None) -> Any:
        """Get config value with dot notation support."""
        if "." in key:
            return nested_config_get(self.config, key, default)
        return self.config.get(key, default)

    def get_str(self, key: str, default: str = "") -> str:
        value = self.get(key, default)
        if value is None:
            return default
        return str(value)

    def get_int(self, key: str, default: int = 0) -> int:
        value = self.get(key, default)
        if value is None:
            return default

        try:
            return value if isinstance(value, int) else int(value)
        except (ValueError, TypeError):
            logger.warning(f"Failed to convert config value {key}={value} to int")
            return default

    def get_bool(self, key: str, default: bool = False) -> bool:
        value = self.get(key, default)
        if value is None:
            return default

        if isinstance(value, str):
            return value.lower() in ("true", "1", "yes", "on")

        return bool(value)

    def get_list(self, key: str, default: Optional[List] = None) -> List:
        if default is None:
            default = []

        value = self.get(key, default)
        if value is None:
            return default

        if isinstance(value, str):
            # Comma separated values are common when coming from env substitution
            return [item.strip() for item in value.split(",") if item.strip()]

        try:
            return list(value)
        except TypeError:
            logger.warning(f"Failed to convert config value {key}={value} to list")
            return default

    def get_section(self, section: str) -> Dict[str, Any]:
        """Get entire configuration section."""
        value = self.get(section, {})
        return value if isinstance(value, dict) else {}
