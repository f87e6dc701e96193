"""
Utils package for Gatehouse.

This package provides configuration helpers shared by the config loaders and
the security clients.
"""

from .config_helpers import ConfigHelper, deep_merge, nested_config_get

__all__ = ["ConfigHelper", "deep_merge", "nested_config_get"]
