# =============================================================================
# lib/supabase_client.py - Supabase Client Wrapper
# =============================================================================
# This module provides a typed wrapper for Supabase database operations.
# It implements the singleton pattern to reuse a single client connection
# and provides the lookups shared by several services:
# - Active subscription and pricing plan for a user
# - Admin role checks (has_role RPC)
# - User notifications
#
# Table-specific queries (generations, credit packs, ...) live in the
# service that owns that table; this module only holds what is shared.
#
# Usage:
#   from lib.supabase_client import SupabaseClient
#   subscription = SupabaseClient.fetch_current_subscription(user_id)
# =============================================================================

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from supabase import create_client, Client

from app.config import settings

# Set up logging for this module
logger = logging.getLogger(__name__)

# PostgREST code returned by .single() when no rows match
NO_ROWS_CODE = "PGRST116"

# Subscription statuses that still carry the user's plan and credits
CURRENT_SUBSCRIPTION_STATUSES = ("active", "canceled")


class SupabaseClientError(Exception):
    """
    Error during Supabase operations.

    Errors should tell HOW to fix, not just WHAT failed.
    """

    def __init__(
        self,
        message: str,
        code: str = "SUPABASE_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f" Suggestion: {self.suggestion}"
        return result


def is_no_rows_error(error: Exception) -> bool:
    """True when a .single() query failed only because nothing matched."""
    return NO_ROWS_CODE in str(error)


class SupabaseClient:
    """
    Typed wrapper for Supabase database operations.

    Implements singleton pattern - one client instance is shared across
    the application. All methods are class methods for easy access without
    instantiation.

    Example:
        subscription = SupabaseClient.fetch_current_subscription("550e8400-...")
        credits = subscription["credits_remaining"] if subscription else 0
    """

    _instance: Client | None = None

    @classmethod
    def get_client(cls) -> Client:
        """
        Get or create the singleton Supabase client.

        Uses service_role key which bypasses Row Level Security (RLS).
        Ownership checks are therefore done explicitly by the services.

        Raises:
            SupabaseClientError: If client creation fails
        """
        if cls._instance is None:
            try:
                cls._instance = create_client(
                    settings.SUPABASE_URL,
                    settings.SUPABASE_SERVICE_KEY
                )
                logger.info("Supabase client initialized successfully")
            except Exception as e:
                raise SupabaseClientError(
                    message=f"Failed to create Supabase client: {e}",
                    code="CLIENT_INIT_FAILED",
                    suggestion="Check SUPABASE_URL and SUPABASE_SERVICE_KEY in your .env file"
                )
        return cls._instance

    @classmethod
    def _normalize_uuid(cls, uuid_value: str | UUID) -> str:
        """Convert UUID to string for queries."""
        return str(uuid_value) if isinstance(uuid_value, UUID) else uuid_value

    # -------------------------------------------------------------------------
    # Roles
    # -------------------------------------------------------------------------

    @classmethod
    def has_role(cls, user_id: str | UUID, role: str = "admin") -> bool:
        """
        Check a user's role through the has_role() database function.

        Returns:
            True if the user holds the role

        Raises:
            SupabaseClientError: If the RPC call fails
        """
        client = cls.get_client()
        user_id_str = cls._normalize_uuid(user_id)

        try:
            response = client.rpc(
                "has_role",
                {"_user_id": user_id_str, "_role": role},
            ).execute()
            return bool(response.data)

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to check role: {e}",
                code="ROLE_CHECK_FAILED",
                details={"user_id": user_id_str, "role": role}
            )

    # -------------------------------------------------------------------------
    # Subscriptions & Plans
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_current_subscription(cls, user_id: str | UUID) -> dict[str, Any] | None:
        """
        Fetch the subscription the user's credits live on.

        A canceled subscription stays current until it expires, so both
        active and canceled rows qualify.

        Returns:
            Subscription dict, or None if the user has no current subscription

        Raises:
            SupabaseClientError: If query fails
        """
        client = cls.get_client()
        user_id_str = cls._normalize_uuid(user_id)

        try:
            response = (
                client.table("subscriptions")
                .select("*")
                .eq("user_id", user_id_str)
                .in_("status", list(CURRENT_SUBSCRIPTION_STATUSES))
                .single()
                .execute()
            )
            return response.data

        except Exception as e:
            if is_no_rows_error(e):
                return None
            raise SupabaseClientError(
                message=f"Failed to fetch subscription: {e}",
                code="FETCH_SUBSCRIPTION_FAILED",
                details={"user_id": user_id_str}
            )

    @classmethod
    def fetch_plan(cls, plan_name: str) -> dict[str, Any] | None:
        """
        Fetch a pricing plan by its plan_name.

        Returns:
            pricing_config row, or None if no such plan

        Raises:
            SupabaseClientError: If query fails
        """
        client = cls.get_client()

        try:
            response = (
                client.table("pricing_config")
                .select("*")
                .eq("plan_name", plan_name)
                .single()
                .execute()
            )
            return response.data

        except Exception as e:
            if is_no_rows_error(e):
                return None
            raise SupabaseClientError(
                message=f"Failed to fetch plan: {e}",
                code="FETCH_PLAN_FAILED",
                details={"plan_name": plan_name}
            )

    # -------------------------------------------------------------------------
    # Notifications
    # -------------------------------------------------------------------------

    @classmethod
    def insert_notification(
        cls,
        user_id: str | UUID,
        title: str,
        message: str,
        notification_type: str = "info",
        action_url: str | None = None,
    ) -> bool:
        """
        Insert an in-app notification for a user.

        Notifications are informational, so a failure is logged and
        reported through the return value instead of raised.

        Returns:
            True if the notification was stored
        """
        client = cls.get_client()
        user_id_str = cls._normalize_uuid(user_id)

        row = {
            "user_id": user_id_str,
            "title": title,
            "message": message,
            "type": notification_type,
        }
        if action_url:
            row["action_url"] = action_url

        try:
            client.table("notifications").insert(row).execute()
            return True

        except Exception as e:
            logger.error(f"Failed to insert notification for user {user_id_str}: {e}")
            return False

    # -------------------------------------------------------------------------
    # Auth Users
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_user_contact(cls, user_id: str | UUID) -> dict[str, str | None] | None:
        """
        Email address and display name of an auth user, for user emails.

        Returns:
            {"email": ..., "full_name": ...}, or None if the user cannot be
            read or has no email
        """
        client = cls.get_client()
        user_id_str = cls._normalize_uuid(user_id)

        try:
            response = client.auth.admin.get_user_by_id(user_id_str)
        except Exception as e:
            logger.error(f"Failed to fetch auth user {user_id_str}: {e}")
            return None

        user = getattr(response, "user", None)
        if user is None or not user.email:
            return None

        metadata = user.user_metadata or {}
        return {"email": user.email, "full_name": metadata.get("full_name")}
