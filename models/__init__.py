"""
File: models/__init__.py

Description:
    Package initialisation for the models

Author: Emfour Solutions
Created: 2026-10-17
"""

from .profile import UserProfile

__all__ = ["UserProfile"]
