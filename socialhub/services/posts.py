"""
Post and comment service.

Handles creating posts and comments behind the moderation gate, and deleting
comments while keeping the parent post's comment list in sync.

Every piece of user text passes ModerationGate.evaluate() before anything is
written. When the gate flags a post, media that was already uploaded for it
is deleted again (a failed delete is logged, not raised). Only paths under the
uploader's own "<user id>/" prefix are ever deleted.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Optional, Dict, Any
from socialhub.services import supabase_client
from socialhub.services.supabase_client import require_admin_client
from socialhub.services.moderation import get_gate
from socialhub.services.verdict import ModerationVerdict, CATEGORY_RULE
from socialhub.utils.auth import Actor, PRIVILEGED_ROLES, require_capability
from socialhub.utils.errors import (
    AuthorizationError,
    ModerationRejected,
    NotFoundError,
    StoreError,
    log_warning,
)


@dataclass(frozen=True)
class StagedMedia:
    """An uploaded file that is already in storage before moderation runs."""

    file_url: Optional[str] = None
    file_type: Optional[str] = None
    file_path: Optional[str] = None
    owner_id: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Dict[str, Any], owner_id: str) -> Optional["StagedMedia"]:
        """
        Read fileUrl/fileType/filePath from a request body.

        A filePath outside the owner's prefix is dropped, so it can never be
        stored or rolled back.
        """
        if not payload.get("fileUrl") and not payload.get("filePath"):
            return None
        media = cls(
            file_url=payload.get("fileUrl"),
            file_type=payload.get("fileType"),
            file_path=payload.get("filePath"),
            owner_id=owner_id,
        )
        if media.file_path and not media.owns_path():
            log_warning(f"Ignoring staged file path {media.file_path} outside the prefix of user {owner_id}")
            media = replace(media, file_path=None)
        return media

    def for_owner(self, owner_id: str) -> "StagedMedia":
        return replace(self, owner_id=owner_id)

    def owns_path(self) -> bool:
        """True when file_path sits under "<owner_id>/"."""
        if not self.file_path or not self.owner_id:
            return False
        prefix = f"{self.owner_id}/"
        return self.file_path.startswith(prefix) and ".." not in self.file_path.split("/")


def rollback_staged_file(media: Optional[StagedMedia]) -> None:
    """Delete a staged upload owned by its uploader. Failures are logged by the storage helper."""
    if not media or not media.file_path:
        return
    if not media.owns_path():
        log_warning(f"Refusing to remove {media.file_path}: not owned by user {media.owner_id}")
        return
    if not supabase_client.delete_user_file(media.file_path):
        log_warning(f"Rollback of staged file {media.file_path} did not complete")


def rejection_message(kind: str, verdict: ModerationVerdict) -> str:
    source = "rule match" if verdict.category == CATEGORY_RULE else "AI"
    return f"{kind} blocked by moderation ({source})"


def screen_content(kind: str, content: Optional[str], media: Optional[StagedMedia] = None) -> ModerationVerdict:
    """
    Run the gate on `content`; raise ModerationRejected if it is flagged.

    Args:
        kind: "Post" or "Comment", used in the rejection message
        content: Text to check
        media: Staged upload to roll back on rejection
    """
    verdict = get_gate().evaluate(content or "")
    if verdict.flagged:
        rollback_staged_file(media)
        raise ModerationRejected(
            rejection_message(kind, verdict),
            category=verdict.category,
            reason=verdict.reason,
        )
    return verdict


def is_community_member(community_id: str, user_id: str) -> bool:
    supabase = require_admin_client()
    try:
        response = supabase.table("communities") \
            .select("id") \
            .eq("id", community_id) \
            .contains("members", [user_id]) \
            .limit(1) \
            .execute()
    except Exception as e:
        raise StoreError(f"Error checking community membership: {e}") from e
    return bool(response.data)


def ensure_member(actor: Actor, community_id: str, media: Optional[StagedMedia] = None) -> None:
    """Raise AuthorizationError (after rolling back media) for non-members."""
    if not is_community_member(community_id, actor.id):
        rollback_staged_file(media)
        raise AuthorizationError("Unauthorized to post in this community")


def insert_post(
    user_id: str,
    community_id: str,
    content: Optional[str],
    file_url: Optional[str] = None,
    file_type: Optional[str] = None,
) -> Dict[str, Any]:
    supabase = require_admin_client()
    try:
        response = supabase.table("posts").insert({
            "user": user_id,
            "community": community_id,
            "content": content,
            "file_url": file_url or None,
            "file_type": file_type or None,
            "comments": [],
        }).execute()
    except Exception as e:
        raise StoreError(f"Error creating post: {e}") from e

    if not response.data:
        raise StoreError("Error creating post")
    return response.data[0]


def create_post(
    actor: Actor,
    community_id: str,
    content: Optional[str],
    media: Optional[StagedMedia] = None,
) -> Dict[str, Any]:
    """
    Create a post after the membership check and moderation.

    Raises:
        AuthorizationError: actor is not a member of the community
        ModerationRejected: the gate flagged the content
        StoreError: the insert failed
    """
    media = media.for_owner(actor.id) if media else None
    ensure_member(actor, community_id, media)
    screen_content("Post", content, media)
    return insert_post(
        actor.id,
        community_id,
        content,
        file_url=media.file_url if media else None,
        file_type=media.file_type if media else None,
    )


def add_comment(actor: Actor, post_id: str, content: Optional[str]) -> Dict[str, Any]:
    """
    Create a comment after moderation and link it to its post.

    Raises:
        ModerationRejected: the gate flagged the content
        NotFoundError: the post does not exist
        StoreError: a write failed
    """
    screen_content("Comment", content)

    supabase = require_admin_client()
    try:
        post = supabase.table("posts").select("id").eq("id", post_id).limit(1).execute()
    except Exception as e:
        raise StoreError(f"Error adding comment: {e}") from e
    if not post.data:
        raise NotFoundError("Post not found")

    try:
        response = supabase.table("comments").insert({
            "user": actor.id,
            "post": post_id,
            "content": content,
        }).execute()
        if not response.data:
            raise StoreError("Error adding comment")
        comment = response.data[0]

        supabase.rpc("append_post_comment", {"post_id": post_id, "comment_id": comment["id"]}).execute()
    except StoreError:
        raise
    except Exception as e:
        raise StoreError(f"Error adding comment: {e}") from e

    return comment


def unlink_and_delete_comment(comment: Dict[str, Any]) -> bool:
    """
    Remove the comment id from its post's list, then delete the comment.

    Returns:
        True if this call deleted the comment, False if it was already gone
    """
    supabase = require_admin_client()
    try:
        if comment.get("post"):
            supabase.rpc(
                "remove_post_comment",
                {"post_id": comment["post"], "comment_id": comment["id"]},
            ).execute()
        response = supabase.table("comments").delete().eq("id", comment["id"]).execute()
    except Exception as e:
        raise StoreError(f"Error deleting comment: {e}") from e
    return bool(response.data)


def delete_comment(actor: Actor, comment_id: str) -> None:
    """
    Delete a comment. Allowed for its author and for admins/moderators.

    Raises:
        NotFoundError: no such comment
        AuthorizationError: actor is neither the author nor staff
        StoreError: a write failed
    """
    supabase = require_admin_client()
    try:
        response = supabase.table("comments").select("id, user, post").eq("id", comment_id).limit(1).execute()
    except Exception as e:
        raise StoreError(f"Error deleting comment: {e}") from e

    if not response.data:
        raise NotFoundError("Comment not found. It may have been deleted already")
    comment = response.data[0]

    require_capability(
        actor,
        roles=PRIVILEGED_ROLES,
        owner_id=comment.get("user"),
        message="Unauthorized to delete this comment",
    )
    unlink_and_delete_comment(comment)
