"""
File: routes/main.py

Description:
    Main blueprint with the public landing page and the protected pages used to
    exercise the authentication entry point: a browser dashboard (indirect clients,
    redirect to the identity provider) and a JSON endpoint for API key callers
    (direct client, 401 challenge).

Author: Emfour Solutions
Created: 2026-10-17
"""

# Third-party imports
from flask import Blueprint, current_app, jsonify, render_template_string

from services.logging_service import get_module_logger
# Authentication imports
from services.security import get_current_profile, require_auth

logger = get_module_logger(__name__)

bp = Blueprint("main", __name__)

INDEX_TEMPLATE = """<!doctype html>
<html>
<head><title>Gatehouse</title></head>
<body>
  <h1>Gatehouse</h1>
  {% if profile %}
  <p>Signed in as {{ profile.display_name or profile.username }}</p>
  <a href="{{ url_for('auth.logout') }}">Sign out</a>
  {% else %}
  <ul>
  {% for name in clients %}
    <li><a href="{{ url_for('auth.login', client_name=name) }}">Sign in with {{ name }}</a></li>
  {% endfor %}
  </ul>
  {% endif %}
</body>
</html>
"""


@bp.route("/")
def index():
    """Public landing page"""
    config = getattr(current_app, "security_config", None)
    clients = [c.name for c in config.clients if c.is_indirect] if config else []

    return render_template_string(INDEX_TEMPLATE, profile=get_current_profile(), clients=clients)


@bp.route("/dashboard")
@require_auth
def dashboard():
    """Protected page, anonymous browsers are sent to the default client's login"""
    profile = get_current_profile()
    return render_template_string(
        "<h1>Dashboard</h1><p>Welcome {{ profile.display_name or profile.username }}</p>",
        profile=profile,
    )


@bp.route("/api/whoami")
@require_auth(client_name="api")
def whoami():
    """Protected API endpoint authenticated by the API key client"""
    profile = get_current_profile()
    return jsonify({"authenticated": True, "user": profile.to_dict()})
