"""
File: config/__init__.py

Description:
    Package initialisation for the configuration system

Author: Emfour Solutions
Created: 2026-10-17
"""

from .environments import get_config
from .security_loader import load_security_config

__all__ = ["get_config", "load_security_config"]
