"""
Pending posts: content waiting for its author to confirm it.

A pending post is created by submit() and resolved exactly once:
- confirm(): the pending row is deleted and a live post is created from it
- reject():  the pending row is deleted and its staged upload removed
- expire():  moderators purge rows older than the TTL, whoever owns them,
  removing their staged uploads too

confirm() and reject() use a single conditional delete (token + status +
owner) as their only read. The owner filter is the ownership check, so a
token belonging to someone else resolves to NotFoundError. The store applies
the delete atomically: when two calls race for one token only one of them
gets the row back and the other sees NotFoundError.

confirm() deletes first and inserts second. If the insert fails after the
delete, the content is lost (logged at error level). Reversing the order
would instead allow the same post to go live twice.
"""

from __future__ import annotations
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from flask import current_app, has_app_context
from socialhub.services.supabase_client import require_admin_client
from socialhub.services.posts import StagedMedia, ensure_member, insert_post, rollback_staged_file, screen_content
from socialhub.utils.auth import Actor, ROLE_MODERATOR, require_capability
from socialhub.utils.errors import NotFoundError, StoreError, log_error, log_info

STATUS_PENDING = "pending"
DEFAULT_TTL_MINUTES = 60


def new_confirmation_token() -> str:
    return secrets.token_urlsafe(32)


def _ttl_minutes() -> int:
    if has_app_context():
        return int(current_app.config.get("PENDING_POST_TTL_MINUTES", DEFAULT_TTL_MINUTES))
    return DEFAULT_TTL_MINUTES


def default_cutoff(now: Optional[datetime] = None) -> datetime:
    now = now or datetime.now(timezone.utc)
    return now - timedelta(minutes=_ttl_minutes())


def submit(
    actor: Actor,
    community_id: str,
    content: Optional[str],
    media: Optional[StagedMedia] = None,
) -> Dict[str, Any]:
    """
    Stage a post for confirmation by its author.

    The same membership and moderation checks as a direct post apply; flagged
    content never reaches the pending state.

    Returns:
        The pending row, including its confirmation_token
    """
    media = media.for_owner(actor.id) if media else None
    ensure_member(actor, community_id, media)
    screen_content("Post", content, media)

    supabase = require_admin_client()
    try:
        response = supabase.table("pending_posts").insert({
            "user": actor.id,
            "community": community_id,
            "content": content,
            "file_url": media.file_url if media else None,
            "file_type": media.file_type if media else None,
            "file_path": media.file_path if media and media.owns_path() else None,
            "status": STATUS_PENDING,
            "confirmation_token": new_confirmation_token(),
        }).execute()
    except Exception as e:
        raise StoreError(f"Error creating pending post: {e}") from e

    if not response.data:
        raise StoreError("Error creating pending post")
    return response.data[0]


def release_media(row: Dict[str, Any]) -> None:
    """Delete the staged upload of a pending row that will never be published."""
    if row.get("file_path"):
        rollback_staged_file(StagedMedia(file_path=row["file_path"], owner_id=row.get("user")))


def _take_pending(token: str, actor: Actor) -> Dict[str, Any]:
    """Atomically delete and return the actor's pending row for `token`."""
    supabase = require_admin_client()
    try:
        response = supabase.table("pending_posts") \
            .delete() \
            .eq("confirmation_token", token) \
            .eq("status", STATUS_PENDING) \
            .eq("user", actor.id) \
            .execute()
    except Exception as e:
        raise StoreError(f"Error resolving pending post: {e}") from e

    if not response.data:
        raise NotFoundError("Post not found")
    return response.data[0]


def confirm(token: str, actor: Actor) -> Dict[str, Any]:
    """
    Publish the actor's pending post.

    Raises:
        NotFoundError: token unknown, not pending, owned by someone else, or
            already resolved by a concurrent call
        StoreError: the store failed
    """
    pending = _take_pending(token, actor)

    try:
        return insert_post(
            pending["user"],
            pending["community"],
            pending.get("content"),
            file_url=pending.get("file_url"),
            file_type=pending.get("file_type"),
        )
    except StoreError:
        log_error(f"Pending post {pending.get('id')} was consumed but could not be published; content lost")
        raise


def reject(token: str, actor: Actor) -> None:
    """
    Discard the actor's pending post.

    Raises:
        NotFoundError: token unknown, not pending, or owned by someone else
    """
    pending = _take_pending(token, actor)
    release_media(pending)


def expire(actor: Actor, cutoff: Optional[datetime] = None) -> int:
    """
    Delete every pending post created at or before `cutoff`.

    Moderators only. Defaults to now minus PENDING_POST_TTL_MINUTES.
    Running it again with the same cutoff deletes nothing more.

    Returns:
        Number of pending posts deleted
    """
    require_capability(actor, roles=[ROLE_MODERATOR])
    cutoff = cutoff or default_cutoff()

    supabase = require_admin_client()
    try:
        response = supabase.table("pending_posts") \
            .delete() \
            .eq("status", STATUS_PENDING) \
            .lte("created_at", cutoff.isoformat()) \
            .execute()
    except Exception as e:
        raise StoreError(f"Error clearing pending posts: {e}") from e

    rows = response.data or []
    for row in rows:
        release_media(row)

    deleted = len(rows)
    log_info(f"Cleared {deleted} pending post(s) created before {cutoff.isoformat()}")
    return deleted
