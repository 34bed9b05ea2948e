"""
Error types and logging helpers shared by services and routes.

Services raise the exceptions below; routes let them propagate and the JSON
error handlers registered in create_app() turn them into responses. Each
exception carries the HTTP status it maps to.

The log_* helpers route messages to current_app.logger when an app context
exists (so they show up with the app's handlers) and fall back to a module
logger otherwise, which keeps services callable from tests and CLI code.
"""

from __future__ import annotations
import logging
from typing import Optional, Dict, Any
from flask import Flask, jsonify, current_app, has_app_context
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)

GENERIC_MESSAGES = {
    "store": "Something went wrong. Please try again later.",
    "server": "Internal server error",
}


def _logger() -> logging.Logger:
    if has_app_context():
        return current_app.logger
    return logger


def log_info(message: str) -> None:
    _logger().info(message)


def log_warning(message: str) -> None:
    _logger().warning(message)


def log_error(message: str) -> None:
    _logger().error(message)


class SocialHubError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500

    def __init__(self, message: str = "Server error"):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message}


class ConfigurationError(SocialHubError):
    """A moderation rule could not be compiled. Recovered where it occurs."""


class ScorerUnavailable(SocialHubError):
    """The toxicity scorer failed. Never leaves the scorer; it fails open."""

    status_code = 503


class NotFoundError(SocialHubError):
    status_code = 404


class AuthorizationError(SocialHubError):
    status_code = 403


class StoreError(SocialHubError):
    """The document store failed. No retries are attempted here."""

    status_code = 500


class ModerationRejected(SocialHubError):
    """Content was flagged by the moderation gate."""

    status_code = 403

    def __init__(self, message: str, category: Optional[str] = None, reason: Optional[str] = None):
        super().__init__(message)
        self.category = category
        self.reason = reason

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"message": self.message}
        if self.category == "scorer":
            payload["reason"] = self.reason or "AI flagged the content"
        if self.category:
            payload["category"] = self.category
        return payload


def register_error_handlers(app: Flask) -> None:
    """Render SocialHubError (and anything unexpected) as JSON."""

    @app.errorhandler(SocialHubError)
    def handle_socialhub_error(err: SocialHubError):
        if isinstance(err, StoreError):
            # Store detail stays in the logs
            app.logger.error(f"Store error: {err.message}")
            return jsonify({"message": GENERIC_MESSAGES["store"]}), err.status_code
        return jsonify(err.to_dict()), err.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(err: HTTPException):
        return jsonify({"message": err.description}), err.code

    @app.errorhandler(Exception)
    def handle_unexpected(err: Exception):
        app.logger.exception(f"Unhandled error: {err}")
        return jsonify({"message": GENERIC_MESSAGES["server"]}), 500
