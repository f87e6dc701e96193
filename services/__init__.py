"""
File: services/__init__.py

Description:
    Service layer package for Gatehouse. The security package holds the
    authentication entry point, clients and callback logic; exceptions and
    logging_service are shared by the whole application.

Author: Emfour Solutions
Created: 2026-10-17
"""
