"""
Identity and authorization helpers.

Provides:
- Actor: the requesting user (id + role) handed to services
- require_capability(): the single role/ownership check used by every
  moderation and lifecycle operation
- @require_auth / @require_role: route decorators (JSON 401/403 responses)

Identity comes from a Supabase access token sent as "Authorization: Bearer
<token>"; the role is read from the user's profile.
"""

from __future__ import annotations
from dataclasses import dataclass
from functools import wraps
from typing import Optional, Iterable
from flask import request, g, jsonify
from socialhub.services import supabase_client
from socialhub.utils.errors import AuthorizationError

ROLE_GENERAL = "general"
ROLE_MODERATOR = "moderator"
ROLE_ADMIN = "admin"

PRIVILEGED_ROLES = (ROLE_ADMIN, ROLE_MODERATOR)


@dataclass(frozen=True)
class Actor:
    id: str
    role: str = ROLE_GENERAL

    def owns(self, owner_id: Optional[str]) -> bool:
        return owner_id is not None and str(owner_id) == str(self.id)


# Used by CLI commands, which run without a request
SYSTEM_ADMIN = Actor(id="system", role=ROLE_ADMIN)
SYSTEM_MODERATOR = Actor(id="system", role=ROLE_MODERATOR)


def require_capability(
    actor: Optional[Actor],
    *,
    roles: Iterable[str] = (),
    owner_id: Optional[str] = None,
    message: str = "Unauthorized",
) -> Actor:
    """
    Allow the actor when it holds one of `roles`, or owns the resource
    identified by `owner_id`. Raises AuthorizationError otherwise.

    Call this before any state change so a refusal never leaves partial work.

    Examples:
        require_capability(actor, roles=[ROLE_ADMIN])                 # admin only
        require_capability(actor, roles=PRIVILEGED_ROLES,
                           owner_id=comment["user"])                  # owner or staff
    """
    if actor is None:
        raise AuthorizationError(message)
    if actor.role in set(roles):
        return actor
    if owner_id is not None and actor.owns(owner_id):
        return actor
    raise AuthorizationError(message)


# ============================================================================
# Request identity
# ============================================================================

def _bearer_token() -> Optional[str]:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_current_actor() -> Optional[Actor]:
    """
    Resolve the requesting user.

    Returns:
        Actor or None if the request carries no valid token
    """
    # Check if actor already loaded in request context
    if hasattr(g, "actor"):
        return g.actor

    token = _bearer_token()
    user = supabase_client.verify_access_token(token) if token else None
    if not user or not user.get("id"):
        g.actor = None
        return None

    profile = supabase_client.get_user_profile(user["id"]) or {}
    g.actor = Actor(id=user["id"], role=profile.get("role") or ROLE_GENERAL)
    return g.actor


# ============================================================================
# Decorators
# ============================================================================

def require_auth(f):
    """
    Decorator to require an authenticated actor for a route.

    Usage:
        @posts_bp.route("/posts", methods=["POST"])
        @require_auth
        def create():
            actor = get_current_actor()
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if get_current_actor() is None:
            return jsonify({"message": "Authentication required"}), 401
        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles: str):
    """
    Decorator to require one of `roles` for a route.

    Usage:
        @moderation_bp.route("/cleanup-comments", methods=["POST"])
        @require_role(ROLE_ADMIN)
        def cleanup():
            ...
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            actor = get_current_actor()
            if actor is None:
                return jsonify({"message": "Authentication required"}), 401
            require_capability(actor, roles=roles, message="Insufficient role")
            return f(*args, **kwargs)

        return decorated_function

    return decorator
