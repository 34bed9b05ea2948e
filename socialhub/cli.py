"""
Flask CLI commands for moderation maintenance.

Usage:
    flask cleanup-comments                     # Dry run (count matching comments)
    flask cleanup-comments --confirm           # Remove them
    flask clear-pending-posts                  # Expire pending posts past the TTL
    flask clear-pending-posts --older-than 15  # Custom age in minutes
    flask check-text "some text"               # Print the gate verdict
    flask check-rules                          # Validate the rule file
"""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import click
from flask import Flask
from flask.cli import with_appcontext


@click.command("cleanup-comments")
@click.option("--confirm", is_flag=True, default=False,
              help="Actually delete comments. Without this flag, only counts them (dry run).")
@with_appcontext
def cleanup_comments_command(confirm: bool) -> None:
    """Remove stored comments that match the moderation rules."""
    from socialhub.services import cleanup
    from socialhub.utils.auth import SYSTEM_ADMIN
    from socialhub.utils.errors import StoreError

    try:
        if not confirm:
            matches = cleanup.find_offensive_comments()
            click.echo(f"Found {len(matches)} comment(s) matching moderation rules.")
            click.echo("\nDry run, nothing deleted. Use --confirm to remove them.")
            return

        deleted = cleanup.sweep(SYSTEM_ADMIN)
    except StoreError as e:
        click.echo(f"Error: {e.message}")
        raise SystemExit(1)

    click.echo(f"Cleanup complete. Removed {deleted} offensive comments.")


@click.command("clear-pending-posts")
@click.option("--older-than", "older_than", type=click.IntRange(min=0), default=None,
              help="Age in minutes; defaults to PENDING_POST_TTL_MINUTES.")
@with_appcontext
def clear_pending_posts_command(older_than: int | None) -> None:
    """Delete pending posts that were never confirmed."""
    from socialhub.services import pending_posts
    from socialhub.utils.auth import SYSTEM_MODERATOR
    from socialhub.utils.errors import StoreError

    cutoff = None
    if older_than is not None:
        cutoff = datetime.now(timezone.utc) - timedelta(minutes=older_than)

    try:
        deleted = pending_posts.expire(SYSTEM_MODERATOR, cutoff)
    except StoreError as e:
        click.echo(f"Error: {e.message}")
        raise SystemExit(1)

    click.echo(f"Pending posts cleared: {deleted}")


@click.command("check-text")
@click.argument("text")
@with_appcontext
def check_text_command(text: str) -> None:
    """Print the moderation verdict for TEXT."""
    from socialhub.services.moderation import evaluate

    verdict = evaluate(text)
    click.echo(json.dumps(verdict.to_dict(), indent=2, default=str))


@click.command("check-rules")
@with_appcontext
def check_rules_command() -> None:
    """Validate the moderation rule file and report how many rules are usable."""
    from flask import current_app
    from socialhub.services.rules import RuleMatcher, load_rules

    path = current_app.config.get("MODERATION_RULES_PATH", "")
    raw = load_rules(path)
    usable = len(RuleMatcher(raw))
    click.echo(f"{path}: {usable} of {len(raw)} rule(s) usable.")
    if usable < len(raw):
        raise SystemExit(1)


def register_cli(app: Flask) -> None:
    app.cli.add_command(cleanup_comments_command)
    app.cli.add_command(clear_pending_posts_command)
    app.cli.add_command(check_text_command)
    app.cli.add_command(check_rules_command)
