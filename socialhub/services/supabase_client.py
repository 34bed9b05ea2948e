"""
Supabase client initialization and helper functions.

Provides centralized access to Supabase for:
- Authentication (bearer access tokens issued by Supabase Auth)
- Database queries (profiles; content tables are queried by the services)
- Storage (rollback of uploaded user files)
"""

from __future__ import annotations
from typing import Optional, Dict, Any
from flask import current_app, has_app_context
from supabase import create_client, Client
from socialhub.utils.errors import StoreError, log_error, log_warning


# Global client instances (initialized once per app)
_supabase_client: Optional[Client] = None  # User client (anon key)
_supabase_admin: Optional[Client] = None   # Admin client (service role key)

_DEFAULT_BUCKET = "user-files"


def init_supabase(app) -> None:
    """
    Initialize Supabase clients with app config.
    Creates two clients:
    - Regular client with anon key (for verifying user tokens)
    - Admin client with service role key (for content tables, bypasses RLS)

    Call this from the Flask app factory.
    """
    global _supabase_client, _supabase_admin

    url = app.config.get("SUPABASE_URL", "")
    anon_key = app.config.get("SUPABASE_ANON_KEY", "")
    service_key = app.config.get("SUPABASE_SERVICE_ROLE_KEY", "")

    if not url or not anon_key:
        app.logger.warning("Supabase URL or ANON_KEY not configured. Supabase features will be disabled.")
        _supabase_client = None
        _supabase_admin = None
        return

    try:
        _supabase_client = create_client(url, anon_key)
        app.logger.info("Supabase client initialized successfully")

        if service_key:
            _supabase_admin = create_client(url, service_key)
            app.logger.info("Supabase admin client initialized successfully")
        else:
            app.logger.warning("SUPABASE_SERVICE_ROLE_KEY not configured. Content operations will be unavailable.")

    except Exception as e:
        app.logger.error(f"Failed to initialize Supabase client: {e}")
        _supabase_client = None
        _supabase_admin = None


def get_client() -> Optional[Client]:
    """Get the global Supabase client instance (user client with anon key)."""
    return _supabase_client


def get_admin_client() -> Optional[Client]:
    """Get the admin Supabase client instance (admin client with service role key)."""
    return _supabase_admin


def is_configured() -> bool:
    """Check if Supabase is properly configured."""
    return _supabase_client is not None


def require_admin_client() -> Client:
    """Admin client for content tables; raises StoreError when unavailable."""
    if not _supabase_admin:
        raise StoreError("Database not configured")
    return _supabase_admin


# ============================================================================
# Authentication Helpers
# ============================================================================

def verify_access_token(access_token: str) -> Optional[Dict[str, Any]]:
    """
    Resolve a Supabase access token to the user it was issued for.

    Returns:
        User dict with id, email, etc. or None if invalid
    """
    if not _supabase_client or not access_token:
        return None

    try:
        response = _supabase_client.auth.get_user(access_token)
        if response and response.user:
            return response.user.model_dump()
        return None
    except Exception as e:
        log_warning(f"Error verifying access token: {e}")
        return None


def get_user_profile(user_id: str) -> Optional[Dict[str, Any]]:
    """
    Get user profile (including role) by user ID.

    Returns:
        Profile dict or None if not found
    """
    client = _supabase_admin or _supabase_client
    if not client:
        return None

    try:
        # maybe_single() handles 0 rows gracefully
        response = client.table("profiles").select("id, role").eq("id", user_id).maybe_single().execute()
        return response.data if response else None
    except Exception as e:
        log_error(f"Error fetching user profile: {e}")
        return None


# ============================================================================
# Storage Helpers
# ============================================================================

def delete_user_file(file_path: Optional[str]) -> bool:
    """
    Delete an uploaded user file from Supabase Storage.

    Used to roll back media staged before a moderation decision. Failures are
    logged and reported through the return value, never raised.

    Args:
        file_path: Object path inside the user files bucket

    Returns:
        True if deleted successfully, False otherwise
    """
    if not file_path:
        return False

    client = _supabase_admin or _supabase_client
    if not client:
        log_warning(f"Failed to remove file {file_path}: storage not configured")
        return False

    bucket = _DEFAULT_BUCKET
    if has_app_context():
        bucket = current_app.config.get("USER_FILES_BUCKET", _DEFAULT_BUCKET)

    try:
        client.storage.from_(bucket).remove([file_path])
        return True
    except Exception as e:
        log_warning(f"Failed to remove file {file_path}: {e}")
        return False
