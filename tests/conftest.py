# tests/conftest.py
"""
Test configuration and shared fixtures.

Provides the Flask app, test client, CLI runner, an in-memory Supabase double
and sample actors/rows for pytest.
"""

import os
import sys
import pytest

# Add the project root to sys.path
PROJECT_ROOT = os.path.dirname(os.path.dirname(__file__))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from tests.fakes import FakeSupabase  # noqa: E402


@pytest.fixture(autouse=True)
def rules_gate(monkeypatch):
    """Rules-only moderation gate built from the packaged rule file."""
    from socialhub.config import TestConfig
    from socialhub.services import moderation

    settings = moderation.ModerationSettings(rules_path=TestConfig.MODERATION_RULES_PATH)
    gate = moderation.build_gate(settings)
    monkeypatch.setattr(moderation, "_settings", settings)
    monkeypatch.setattr(moderation, "_gate", gate)
    return gate


@pytest.fixture
def fake_db(monkeypatch):
    """In-memory Supabase installed as both the user and the admin client."""
    from socialhub.services import supabase_client

    db = FakeSupabase(
        profiles=[],
        communities=[{"id": "community-1", "name": "Gardeners", "members": ["user-1", "user-2"]}],
        posts=[],
        comments=[],
        pending_posts=[],
    )
    monkeypatch.setattr(supabase_client, "_supabase_client", db)
    monkeypatch.setattr(supabase_client, "_supabase_admin", db)
    return db


@pytest.fixture
def app(monkeypatch, fake_db):
    """Create and configure a Flask app instance for testing."""
    monkeypatch.setenv("SOCIALHUB_CONFIG", "socialhub.config.TestConfig")

    from socialhub import create_app
    from socialhub.services import supabase_client

    app = create_app()
    app.config.update({
        "TESTING": True,
        "RATELIMIT_ENABLED": False,  # Disable rate limiting for tests
    })

    # create_app() initializes real clients from config; swap the double back in
    monkeypatch.setattr(supabase_client, "_supabase_client", fake_db)
    monkeypatch.setattr(supabase_client, "_supabase_admin", fake_db)

    yield app


@pytest.fixture
def client(app):
    """Create a test client for the Flask app."""
    return app.test_client()


@pytest.fixture
def runner(app):
    """Create a test CLI runner for the Flask app."""
    return app.test_cli_runner()


@pytest.fixture
def auth_headers():
    """Return headers for an authenticated request."""
    return {"Authorization": "Bearer test-token"}


@pytest.fixture
def login_as(monkeypatch):
    """Make "Bearer test-token" resolve to the given actor."""
    from socialhub.services import supabase_client

    def _login(actor):
        monkeypatch.setattr(supabase_client, "verify_access_token", lambda token: {"id": actor.id})
        monkeypatch.setattr(supabase_client, "get_user_profile", lambda user_id: {"id": user_id, "role": actor.role})
        return actor

    return _login


@pytest.fixture
def member():
    from socialhub.utils.auth import Actor
    return Actor(id="user-1")


@pytest.fixture
def other_member():
    from socialhub.utils.auth import Actor
    return Actor(id="user-2")


@pytest.fixture
def moderator():
    from socialhub.utils.auth import Actor, ROLE_MODERATOR
    return Actor(id="mod-1", role=ROLE_MODERATOR)


@pytest.fixture
def admin():
    from socialhub.utils.auth import Actor, ROLE_ADMIN
    return Actor(id="admin-1", role=ROLE_ADMIN)


@pytest.fixture
def sample_post(fake_db):
    """A live post in community-1 by user-1."""
    post = {
        "id": "post-1",
        "user": "user-1",
        "community": "community-1",
        "content": "First harvest of the season",
        "file_url": None,
        "file_type": None,
        "comments": [],
        "created_at": "2025-01-01T00:00:00+00:00",
    }
    fake_db.tables["posts"].append(post)
    return post


@pytest.fixture
def sample_pending_post(fake_db):
    """A pending post by user-1 with a known confirmation token."""
    from datetime import datetime, timezone

    pending = {
        "id": "pending-1",
        "user": "user-1",
        "community": "community-1",
        "content": "Tomatoes are finally ripe",
        "file_url": None,
        "file_type": None,
        "file_path": None,
        "status": "pending",
        "confirmation_token": "token-abc",
        "created_at": datetime.now(timezone.utc).isoformat(),
    }
    fake_db.tables["pending_posts"].append(pending)
    return pending
