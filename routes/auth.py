"""
ABOUTME: Authentication routes for login start, identity provider callback and logout
ABOUTME: Provides the web interface around the Gatehouse entry point and callback logic

File: routes/auth.py

Description:
    Authentication routes blueprint. /auth/login/<client_name> starts a login for
    an explicitly chosen client through its entry point, /auth/callback finishes
    indirect logins (OIDC code flow and the local login form), /auth/form renders
    the login form used by form clients, and logout/session check endpoints serve
    browsers and API callers.

Key features:
    - Explicit login start per configured client
    - Single callback URL for every indirect client (client_name parameter)
    - Login form page for form clients
    - Secure logout with session destruction
    - JSON session check for single page apps

Author: Emfour Solutions
Created: 2026-10-17
Last Modified: 2026-10-17
Version: 1.0.0
"""

# Third-party imports
from flask import (
    Blueprint,
    abort,
    current_app,
    jsonify,
    redirect,
    render_template_string,
    request,
    url_for,
)

# Local application imports
from services.logging_service import get_module_logger
from services.security import (
    CallbackLogic,
    EntryPoint,
    FlaskHttpActionAdapter,
    FlaskSessionStore,
    FormClient,
    WebContext,
    find_best_http_action_adapter,
    find_best_session_store,
    get_current_profile,
    logout_user,
)

# Module-level logger
logger = get_module_logger(__name__)

# Create blueprint
bp = Blueprint("auth", __name__, url_prefix="/auth")

LOGIN_FORM_TEMPLATE = """<!doctype html>
<html>
<head><title>Sign in</title></head>
<body>
  <h1>Sign in</h1>
  {% if failed %}<p class="error">Invalid username or password</p>{% endif %}
  <form method="post" action="{{ action }}">
    <label>Username <input type="text" name="{{ client.username_parameter }}" autofocus></label>
    <label>Password <input type="password" name="{{ client.password_parameter }}"></label>
    <button type="submit">Sign in</button>
  </form>
</body>
</html>
"""


def get_security_config():
    """Get security configuration from app context"""
    return getattr(current_app, "security_config", None)


def _build_context() -> WebContext:
    config = get_security_config()
    return WebContext(request, None, find_best_session_store(config, FlaskSessionStore()))


@bp.route("/login/<client_name>")
def login(client_name: str):
    """
    Start a login with the named client
    """
    if get_current_profile():
        return redirect(url_for("main.dashboard"))

    config = get_security_config()
    if config is None or config.clients.find_client(client_name) is None:
        logger.warning(f"Login requested for unknown client: {client_name}")
        abort(404)

    entry_point = current_app.entry_points.get(client_name.lower())
    if entry_point is None:
        entry_point = EntryPoint.create(config, client_name)

    return entry_point.commence(request)


@bp.route("/callback", methods=["GET", "POST"])
def callback():
    """
    Handle the return from the identity provider (or the login form post)
    """
    config = get_security_config()
    context = _build_context()
    adapter = find_best_http_action_adapter(config, FlaskHttpActionAdapter())

    action = CallbackLogic().perform(context, config, default_url=url_for("main.dashboard"))
    return adapter.adapt(action, context)


@bp.route("/form")
def login_form():
    """
    Login form for form clients
    """
    config = get_security_config()
    client_name = request.args.get("client_name")
    client = config.clients.find_client(client_name) if config and client_name else None

    if not isinstance(client, FormClient):
        abort(404)

    failed = request.args.get("error") == "1"
    return render_template_string(
        LOGIN_FORM_TEMPLATE,
        client=client,
        failed=failed,
        action=url_for("auth.callback", client_name=client.name),
    )


@bp.route("/logout", methods=["GET", "POST"])
def logout():
    """
    Logout current user
    """
    profile = logout_user()

    if request.is_json:
        return jsonify({"success": True, "message": "Logged out successfully"})

    logger.debug(f"Logout completed for {profile.username if profile else 'anonymous session'}")
    return redirect(url_for("main.index"))


@bp.route("/api/session/check")
def check_session():
    """
    API endpoint to check session validity
    """
    profile = get_current_profile()

    if profile:
        return jsonify({"authenticated": True, "user": profile.to_dict()})
    else:
        return jsonify({"authenticated": False}), 401
