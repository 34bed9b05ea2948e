"""
Cleanup of offensive comments already in the database.

sweep() re-checks every stored comment against the current moderation rules
(rules only; the external scorer is not called here) and removes each match
from its post's comment list and from the comments table.

The sweep is not one transaction. Each comment is removed on its own, so an
interrupted sweep can simply be run again.
"""

from __future__ import annotations
from typing import Dict, Any, Iterator, List, Optional
from socialhub.services.moderation import get_gate
from socialhub.services.posts import unlink_and_delete_comment
from socialhub.services.rules import RuleMatcher
from socialhub.services.supabase_client import require_admin_client
from socialhub.utils.auth import Actor, ROLE_ADMIN, require_capability
from socialhub.utils.errors import StoreError, log_info

PAGE_SIZE = 500


def iter_comments(page_size: int = PAGE_SIZE) -> Iterator[Dict[str, Any]]:
    """Yield every comment (id, post, content), one page at a time."""
    supabase = require_admin_client()
    offset = 0
    while True:
        try:
            response = supabase.table("comments") \
                .select("id, post, content") \
                .order("id") \
                .range(offset, offset + page_size - 1) \
                .execute()
        except Exception as e:
            raise StoreError(f"Error reading comments: {e}") from e

        rows = response.data or []
        yield from rows
        if len(rows) < page_size:
            return
        offset += page_size


def find_offensive_comments(matcher: Optional[RuleMatcher] = None) -> List[Dict[str, Any]]:
    """All stored comments that match a moderation rule."""
    matcher = matcher or get_gate().matcher
    # Read everything first; deleting while paging would shift the offsets
    return [c for c in iter_comments() if matcher.matches(c.get("content"))]


def sweep(actor: Actor) -> int:
    """
    Remove every stored comment that matches a moderation rule. Admins only.

    Returns:
        Number of comments removed
    """
    require_capability(actor, roles=[ROLE_ADMIN], message="Admin access required")

    deleted = 0
    for comment in find_offensive_comments():
        if unlink_and_delete_comment(comment):
            deleted += 1

    log_info(f"Cleanup complete. Removed {deleted} offensive comments.")
    return deleted
