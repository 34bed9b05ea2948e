"""
Application factory and global configuration.

Creates the Flask app, validates production settings, configures rate
limiting, initializes Supabase and the moderation gate, registers the JSON
error handlers, blueprints and CLI commands. Keeps startup/config concerns
together and avoids domain logic here.
"""

from __future__ import annotations
import os
from flask import Flask, Response
from dotenv import load_dotenv
from .extensions import limiter
from .routes.posts import posts_bp
from .routes.moderation import moderation_bp
from .services import supabase_client
from .services.moderation import init_moderation
from .utils.errors import register_error_handlers
from .cli import register_cli


def _validate_production_config(app: Flask, cfg_path: str) -> None:
    """
    Validate critical settings in production environments.

    Raises RuntimeError if production requirements are not met, so the app
    never starts half-configured.

    Checks:
    - SECRET_KEY must be set and strong (>= 32 characters)
    - DEBUG must be False
    - SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set (content tables)

    Args:
        app: Flask application instance
        cfg_path: Config path being used (e.g., "socialhub.config.ProdConfig")
    """
    is_production = "ProdConfig" in cfg_path
    is_test = app.config.get("TESTING", False)

    if not is_production or is_test:
        return

    errors = []

    secret_key = app.config.get("SECRET_KEY", "")
    if not secret_key:
        errors.append("SECRET_KEY is not set. Set FLASK_SECRET_KEY environment variable.")
    elif len(secret_key) < 32:
        errors.append(f"SECRET_KEY is too weak ({len(secret_key)} chars). Must be at least 32 characters.")

    if app.config.get("DEBUG", False):
        errors.append("DEBUG must be False in production.")

    if not app.config.get("SUPABASE_URL") or not app.config.get("SUPABASE_SERVICE_ROLE_KEY"):
        errors.append("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY are required in production.")

    if errors:
        error_msg = "\n\n[ERROR] PRODUCTION CONFIG VALIDATION FAILED:\n\n" + "\n\n".join(f"  * {err}" for err in errors)
        raise RuntimeError(error_msg)

    app.logger.info("[OK] Production config validation passed")


def create_app() -> Flask:
    # Load .env early (for local dev)
    load_dotenv(override=True)

    app = Flask(__name__)

    # Allow SOCIALHUB_CONFIG to override (e.g., socialhub.config.DevConfig)
    cfg_path = os.getenv("SOCIALHUB_CONFIG", "socialhub.config.ProdConfig")
    try:
        app.config.from_object(cfg_path)
    except (ImportError, AttributeError) as e:
        app.logger.warning(f"Could not load config object {cfg_path}: {e}")

    _validate_production_config(app, cfg_path)

    limiter.init_app(app)
    if not app.config.get("RATELIMIT_ENABLED", True):
        limiter.enabled = False

    supabase_client.init_supabase(app)
    init_moderation(app)

    @app.after_request
    def apply_security_headers(resp: Response) -> Response:
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        resp.headers["X-Frame-Options"] = "DENY"
        return resp

    register_error_handlers(app)

    app.register_blueprint(posts_bp)
    app.register_blueprint(moderation_bp)

    register_cli(app)

    return app
