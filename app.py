"""
Gatehouse - Main Application Entry Point

Main Flask application factory wiring the security layer (clients, entry point,
callback) into a Flask application protected by @require_auth.

Features: Application factory pattern, YAML/secret based configuration,
authentication entry point error handler, reverse proxy support and JSON error
responses for API callers.

Author: Emfour Solutions
Created: 2026-10-17
"""

# Standard library imports
import logging
import os
from typing import Optional

# Third-party imports
from dotenv import load_dotenv
from flask import Flask, jsonify, request

# Local application imports
from config.environments import get_config
from services.exceptions import SecurityConfigurationException, SecurityException
from services.logging_service import setup_logging
from services.security import (
    SecurityConfig,
    build_security_config,
    register_entry_points,
)

# Load environment variables
load_dotenv()

# Set up logger
logger = logging.getLogger("main")


def create_app(config_name: Optional[str] = None, security_config: Optional[SecurityConfig] = None):
    """
    Create the Flask application

    Args:
        config_name: Environment name (development, production, testing)
        security_config: Prebuilt security configuration, built from the
            security YAML when omitted

    Raises:
        SecurityConfigurationException: When the security wiring is invalid
    """
    app = Flask(__name__)

    # Configure reverse proxy support for Apache, Nginx, etc.
    # Absolute callback URLs depend on the forwarded scheme and host
    from werkzeug.middleware.proxy_fix import ProxyFix

    app.wsgi_app = ProxyFix(
        app.wsgi_app,
        x_for=1,  # Trust one proxy for X-Forwarded-For
        x_proto=1,  # Trust one proxy for X-Forwarded-Proto
        x_host=1,  # Trust one proxy for X-Forwarded-Host
        x_port=1,  # Trust one proxy for X-Forwarded-Port
        x_prefix=1,  # Trust one proxy for X-Forwarded-Prefix
    )

    # Determine environment and get configuration
    flask_env = config_name or os.environ.get("FLASK_ENV", "development")
    config_instance = get_config(flask_env)

    configure_flask_app(app, config_instance)
    setup_logging(app)

    if security_config is None:
        security_config = build_security_config(
            config_instance.get_security_config(),
            application_url=config_instance.APPLICATION_URL,
        )

    register_entry_points(app, security_config)
    register_error_handlers(app)
    register_blueprints(app)

    logger.info(f"Gatehouse started for environment: {config_instance.environment}")
    return app


def configure_flask_app(app, config_instance):
    """Configure Flask app with the configuration system."""

    # Core Flask settings
    app.config["SECRET_KEY"] = config_instance.SECRET_KEY
    app.config["DEBUG"] = config_instance.DEBUG
    app.config["TESTING"] = config_instance.TESTING

    # Session cookie settings
    app.config["SESSION_COOKIE_HTTPONLY"] = True
    app.config["SESSION_COOKIE_SECURE"] = config_instance.SESSION_COOKIE_SECURE
    app.config["SESSION_COOKIE_SAMESITE"] = config_instance.SESSION_COOKIE_SAMESITE
    app.config["PERMANENT_SESSION_LIFETIME"] = config_instance.PERMANENT_SESSION_LIFETIME

    # Application-specific settings
    app.config["APPLICATION_URL"] = config_instance.APPLICATION_URL
    app.config["HTTP_TIMEOUT"] = config_instance.HTTP_TIMEOUT

    # Logging settings
    app.config["LOG_LEVEL"] = config_instance.LOG_LEVEL
    app.config["LOG_DIR"] = config_instance.LOG_DIR

    # Store the config instance for later use
    app.config_instance = config_instance

    logger.info(f"Configured Flask app for environment: {config_instance.environment}")

    issues = config_instance.validate_config()
    if issues:
        logger.warning(f"Configuration issues found: {issues}")
        if config_instance.environment == "production":
            raise ValueError(f"Configuration validation failed: {issues}")


def _wants_json() -> bool:
    return request.is_json or request.path.startswith(("/api/", "/auth/api/"))


def register_error_handlers(app):
    """Register error handlers for the security exception hierarchy."""

    @app.errorhandler(SecurityConfigurationException)
    def handle_security_configuration_error(error):
        """Wiring mistakes: unknown client, missing configuration"""
        logger.error(f"Security configuration error: {error.message} {error.details}")

        if _wants_json():
            return jsonify({"error": "Security configuration error", "status": 500}), 500
        return "Authentication is not configured correctly", 500

    @app.errorhandler(SecurityException)
    def handle_security_error(error):
        """Identity provider and credential failures outside the callback"""
        logger.error(f"Security error: {error.message}")

        if _wants_json():
            return jsonify({"error": "Authentication service unavailable", "status": 502}), 502
        return "Authentication service unavailable", 502

    @app.errorhandler(404)
    def not_found_error(error):
        if _wants_json():
            return jsonify({"error": "Not found", "status": 404}), 404
        return "Not found", 404


def register_blueprints(app):
    """Register application blueprints."""
    from routes.auth import bp as auth_bp
    from routes.main import bp as main_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(auth_bp)


if __name__ == "__main__":
    app = create_app()
    app.run(host="127.0.0.1", port=5000)
