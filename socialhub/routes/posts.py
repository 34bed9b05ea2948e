"""
Post, pending-post and comment routes.

Endpoints:
- POST   /posts                      create a post (moderated)
- POST   /posts/pending              stage a post for confirmation (moderated)
- POST   /posts/confirm/<token>      publish a pending post
- POST   /posts/reject/<token>       discard a pending post
- DELETE /posts/pending              clear expired pending posts (moderators)
- POST   /posts/comments             add a comment (moderated)
- DELETE /posts/comments/<id>        delete a comment (author or staff)

Service errors (moderation rejections, not-found, forbidden, store failures)
propagate to the JSON error handlers registered in create_app().
"""

from __future__ import annotations
from flask import Blueprint, request, jsonify, current_app
from socialhub.services import posts as post_service
from socialhub.services import pending_posts
from socialhub.services.posts import StagedMedia
from socialhub.utils.auth import require_auth, require_role, get_current_actor, ROLE_MODERATOR
from socialhub.extensions import limiter

posts_bp = Blueprint("posts", __name__, url_prefix="/posts")


def _json_body() -> dict:
    return request.get_json(silent=True) or {}


def _missing(data: dict, field: str):
    """400 response when a required field is absent, else None."""
    if not data.get(field):
        return jsonify({"message": f"{field} is required"}), 400
    return None


@posts_bp.route("", methods=["POST"])
@require_auth
@limiter.limit(lambda: current_app.config["POST_RATE_LIMIT"])
def create_post():
    """Create a post after membership and moderation checks."""
    data = _json_body()
    missing = _missing(data, "communityId")
    if missing:
        return missing
    actor = get_current_actor()
    post = post_service.create_post(
        actor,
        data.get("communityId"),
        data.get("content"),
        media=StagedMedia.from_payload(data, actor.id),
    )
    return jsonify(post), 200


@posts_bp.route("/pending", methods=["POST"])
@require_auth
@limiter.limit(lambda: current_app.config["POST_RATE_LIMIT"])
def submit_pending_post():
    """Stage a post; the author publishes it later with its confirmation token."""
    data = _json_body()
    missing = _missing(data, "communityId")
    if missing:
        return missing
    actor = get_current_actor()
    pending = pending_posts.submit(
        actor,
        data.get("communityId"),
        data.get("content"),
        media=StagedMedia.from_payload(data, actor.id),
    )
    return jsonify({
        "message": "Post pending confirmation",
        "confirmationToken": pending["confirmation_token"],
        "pendingPost": pending,
    }), 201


@posts_bp.route("/confirm/<confirmation_token>", methods=["POST"])
@require_auth
def confirm_post(confirmation_token):
    post = pending_posts.confirm(confirmation_token, get_current_actor())
    return jsonify(post), 200


@posts_bp.route("/reject/<confirmation_token>", methods=["POST"])
@require_auth
def reject_post(confirmation_token):
    pending_posts.reject(confirmation_token, get_current_actor())
    return jsonify({"message": "Post rejected"}), 201


@posts_bp.route("/pending", methods=["DELETE"])
@require_role(ROLE_MODERATOR)
def clear_pending_posts():
    deleted = pending_posts.expire(get_current_actor())
    return jsonify({"message": "Pending posts cleared", "deletedCount": deleted}), 200


@posts_bp.route("/comments", methods=["POST"])
@require_auth
@limiter.limit(lambda: current_app.config["POST_RATE_LIMIT"])
def add_comment():
    data = _json_body()
    missing = _missing(data, "postId") or _missing(data, "content")
    if missing:
        return missing
    post_service.add_comment(get_current_actor(), data.get("postId"), data.get("content"))
    return jsonify({"message": "Comment added successfully"}), 200


@posts_bp.route("/comments/<comment_id>", methods=["DELETE"])
@require_auth
def delete_comment(comment_id):
    post_service.delete_comment(get_current_actor(), comment_id)
    return jsonify({"message": "Comment deleted successfully"}), 200
