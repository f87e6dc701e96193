"""
File: services/logging_service.py

Description:
    Logging service that provides module loggers to the application and configures
    the log file and console handlers at startup.

Author: Emfour Solutions
Created: 2026-10-17
Last Modified: 2026-10-17
"""

# Standard library imports
import logging
import os
from typing import Optional

logger = logging.getLogger(__name__)


def get_module_logger(module_name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger for a module.

    Args:
        module_name: Module name (__name__). If None, attempts auto-detection

    Returns:
        Logger instance

    Usage:
        logger = get_module_logger(__name__)
    """
    if module_name is None:
        # Auto-detect calling module for convenience
        import inspect

        frame = inspect.currentframe()
        if frame and frame.f_back:
            module_name = frame.f_back.f_globals.get("__name__", "unknown")
        else:
            module_name = "unknown"

    return logging.getLogger(module_name)


def setup_logging(app):
    """Set up application logging."""

    log_level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)

    detailed_formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] Gatehouse %(name)s: %(message)s"
    )

    handlers = []

    # File logging is optional so tests and read-only containers can skip it
    log_dir = app.config.get("LOG_DIR")
    if log_dir:
        if not os.path.exists(log_dir):
            os.makedirs(log_dir)
        file_handler = logging.FileHandler(os.path.join(log_dir, "gatehouse.log"))
        file_handler.setFormatter(detailed_formatter)
        file_handler.setLevel(log_level)
        handlers.append(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(detailed_formatter)
    console_handler.setLevel(log_level)
    handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    for handler in handlers:
        root_logger.addHandler(handler)

    # Outbound identity provider calls are noisy at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    app.logger.info(
        f"Logging Service Started - level: {logging.getLevelName(log_level)}, "
        f"log dir: {log_dir or 'console only'}"
    )
