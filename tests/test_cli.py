"""
Tests for the Flask CLI maintenance commands (socialhub/cli.py).
"""

import json
import pytest
from datetime import datetime, timedelta, timezone


@pytest.fixture
def comments(fake_db, sample_post):
    fake_db.tables["comments"].extend([
        {"id": "c-1", "user": "user-2", "post": "post-1", "content": "spam link"},
        {"id": "c-2", "user": "user-2", "post": "post-1", "content": "so pretty"},
    ])
    sample_post["comments"].extend(["c-1", "c-2"])
    return fake_db


class TestCleanupCommentsCommand:
    def test_dry_run_deletes_nothing(self, runner, comments):
        result = runner.invoke(args=["cleanup-comments"])

        assert result.exit_code == 0
        assert "Found 1 comment(s)" in result.output
        assert "Dry run" in result.output
        assert len(comments.rows("comments")) == 2

    def test_confirm_deletes(self, runner, comments):
        result = runner.invoke(args=["cleanup-comments", "--confirm"])

        assert result.exit_code == 0
        assert "Cleanup complete. Removed 1 offensive comments." in result.output
        assert [c["id"] for c in comments.rows("comments")] == ["c-2"]

    def test_store_failure_exits_non_zero(self, runner, fake_db):
        fake_db.failing_tables.add("comments")
        result = runner.invoke(args=["cleanup-comments", "--confirm"])

        assert result.exit_code == 1
        assert "Error" in result.output


class TestClearPendingPostsCommand:
    def test_uses_older_than(self, runner, fake_db):
        created = datetime.now(timezone.utc) - timedelta(minutes=30)
        fake_db.tables["pending_posts"].append({
            "id": "p-1", "user": "user-1", "status": "pending",
            "confirmation_token": "t-1", "created_at": created.isoformat(),
        })

        result = runner.invoke(args=["clear-pending-posts"])
        assert "Pending posts cleared: 0" in result.output

        result = runner.invoke(args=["clear-pending-posts", "--older-than", "15"])
        assert "Pending posts cleared: 1" in result.output
        assert fake_db.rows("pending_posts") == []

    def test_negative_age_is_refused(self, runner, fake_db, sample_pending_post):
        result = runner.invoke(args=["clear-pending-posts", "--older-than", "-5"])

        assert result.exit_code == 2
        assert len(fake_db.rows("pending_posts")) == 1


class TestCheckCommands:
    def test_check_text_flagged(self, runner):
        result = runner.invoke(args=["check-text", "This is SPAM content"])

        assert result.exit_code == 0
        verdict = json.loads(result.stdout)
        assert verdict["flagged"] is True
        assert verdict["category"] == "rule"

    def test_check_text_clean(self, runner):
        result = runner.invoke(args=["check-text", "Sunflowers"])
        assert json.loads(result.stdout)["flagged"] is False

    def test_check_rules_packaged_file(self, runner):
        result = runner.invoke(args=["check-rules"])
        assert result.exit_code == 0
        assert "usable" in result.output

    def test_check_rules_reports_bad_rules(self, runner, app, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text(json.dumps({"rules": ["spam", "/[bad/"]}))
        app.config["MODERATION_RULES_PATH"] = str(path)

        result = runner.invoke(args=["check-rules"])

        assert result.exit_code == 1
        assert "1 of 2 rule(s) usable" in result.output
