"""
File: routes/__init__.py

Description:
    Package initialisation for the Flask blueprints

Author: Emfour Solutions
Created: 2026-10-17
"""
