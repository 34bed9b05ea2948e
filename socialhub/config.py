"""
Centralized configuration for all environments.

Select a config by setting:
  SOCIALHUB_CONFIG=socialhub.config.DevConfig      # local dev
  SOCIALHUB_CONFIG=socialhub.config.ProdConfig     # production (default if unset)
  SOCIALHUB_CONFIG=socialhub.config.TestConfig     # pytest

Notes:
- SECRET_KEY is read from FLASK_SECRET_KEY
- Rate limiting uses Flask-Limiter v3 keys (RATELIMIT_*).
- Moderation keys are read once by the app factory into ModerationSettings;
  services never look them up from the environment themselves.
"""

from __future__ import annotations
import os
from pathlib import Path

_DEFAULT_RULES_PATH = str(Path(__file__).with_name("moderation_rules.json"))


class BaseConfig:
    # Secrets & basics
    SECRET_KEY = os.getenv("FLASK_SECRET_KEY", "")
    DEBUG = False
    TESTING = False

    # Supabase (Database + Auth + Storage)
    SUPABASE_URL = os.getenv("SUPABASE_URL", "")
    SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY", "")
    SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")
    USER_FILES_BUCKET = os.getenv("USER_FILES_BUCKET", "user-files")

    # Rule-based moderation
    MODERATION_RULES_PATH = os.getenv("MODERATION_RULES_PATH", _DEFAULT_RULES_PATH)

    # Perspective API (toxicity scoring). Both the flag and the key are required.
    USE_PERSPECTIVE_API = os.getenv("USE_PERSPECTIVE_API", "false").lower() == "true"
    PERSPECTIVE_API_KEY = os.getenv("PERSPECTIVE_API_KEY", "")
    PERSPECTIVE_API_URL = os.getenv(
        "PERSPECTIVE_API_URL",
        "https://commentanalyzer.googleapis.com/v1alpha1/comments:analyze",
    )
    PERSPECTIVE_LANGUAGES = os.getenv("PERSPECTIVE_LANGUAGES", "en")
    # Per-attribute overrides, e.g. "TOXICITY=0.8,THREAT=0.6"
    PERSPECTIVE_THRESHOLDS = os.getenv("PERSPECTIVE_THRESHOLDS", "")
    CATEGORY_FILTERING_REQUEST_TIMEOUT = int(os.getenv("CATEGORY_FILTERING_REQUEST_TIMEOUT", "5000"))  # ms

    # Pending posts older than this are removed by the expiry sweep
    PENDING_POST_TTL_MINUTES = int(os.getenv("PENDING_POST_TTL_MINUTES", "60"))

    # Flask-Limiter v3
    RATELIMIT_ENABLED = os.getenv("RATELIMIT_ENABLED", "true").lower() == "true"
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    RATELIMIT_DEFAULT = os.getenv("RATELIMIT_DEFAULT", "120 per minute; 5000 per day")
    POST_RATE_LIMIT = os.getenv("POST_RATE_LIMIT", "30 per minute; 500 per day")

    # Misc
    JSON_SORT_KEYS = False


class ProdConfig(BaseConfig):
    """Production settings (selected by default if SOCIALHUB_CONFIG is unset)."""
    pass


class DevConfig(BaseConfig):
    """Developer-friendly settings."""
    ENV = "development"
    DEBUG = True
    # Relaxed rate limits for local testing
    POST_RATE_LIMIT = "500 per minute"


class TestConfig(BaseConfig):
    """CI/pytest settings."""
    TESTING = True
    DEBUG = True
    SECRET_KEY = "test-secret-key-for-testing-only"
    # Usually disable the limiter in tests to avoid flakiness
    RATELIMIT_ENABLED = False
    # Never call the real scorer from tests
    USE_PERSPECTIVE_API = False
    PERSPECTIVE_API_KEY = ""
    MODERATION_RULES_PATH = _DEFAULT_RULES_PATH
