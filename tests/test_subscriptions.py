# =============================================================================
# tests/test_subscriptions.py - Subscription Management Tests
# =============================================================================

from datetime import datetime, timezone

import pytest

from app.exceptions import BadRequestError, NotFoundError, SubscriptionUpdateError
from core.models.subscription import ManageSubscriptionRequest
from core.services.subscription_service import (
    FALLBACK_PLAN_CONFIG,
    SubscriptionExpiryError,
    SubscriptionService,
    format_access_date,
)
from tests.conftest import ADMIN_ID, USER_ID, no_rows_error, set_auth_user

PRO = {"credits": 100, "price_cents": 1900, "is_unlimited": False}

PENDING = {
    "id": "sub-2",
    "user_id": USER_ID,
    "plan": "pro",
    "status": "pending",
    "requested_credits": None,
    "requested_price_cents": None,
}


def _subscribe(**fields):
    return ManageSubscriptionRequest(action="subscribe", **fields)


def _notifications(fake_db):
    return [q.call("insert").args[0] for q in fake_db.queries("notifications", "insert")]


class TestPlanConfig:
    """Tests for SubscriptionService.plan_config."""

    def test_reads_pricing_config(self, fake_db):
        fake_db.queue("pricing_config", {"credits": 250, "price_cents": 2900, "is_unlimited": False})

        config = SubscriptionService.plan_config("pro")

        assert (config.credits, config.price_cents, config.unlimited) == (250, 2900, False)
        query = fake_db.queries("pricing_config")[0]
        assert query.call("eq").args == ("plan_name", "pro")

    def test_missing_plan_uses_fallback(self, fake_db):
        fake_db.queue("pricing_config", no_rows_error())

        assert SubscriptionService.plan_config("enterprise") == FALLBACK_PLAN_CONFIG["enterprise"]

    def test_lookup_error_uses_fallback(self, fake_db):
        fake_db.queue("pricing_config", Exception("timeout"))

        config = SubscriptionService.plan_config("unlimited")

        assert config.unlimited is True
        assert config.price_cents == 9900

    def test_unknown_plan_falls_back_to_free(self, fake_db):
        fake_db.queue("pricing_config", no_rows_error())

        assert SubscriptionService.plan_config("gold") == FALLBACK_PLAN_CONFIG["free"]


class TestSubscribe:
    """Tests for SubscriptionService.request_subscription."""

    def test_creates_pending_request(self, fake_db):
        fake_db.queue("pricing_config", {"plan_name": "pro"})
        fake_db.queue("subscriptions", [], no_rows_error(), [{"id": "sub-2", "status": "pending"}])

        result = SubscriptionService.request_subscription(USER_ID, _subscribe(plan="pro"))

        assert result["success"] is True
        assert result["subscription"] == {"id": "sub-2", "status": "pending"}
        assert result["message"] == "Subscription request submitted. Awaiting approval."

        row = fake_db.queries("subscriptions", "insert")[0].call("insert").args[0]
        assert row["plan"] == "pro"
        assert row["status"] == "pending"
        assert row["user_id"] == USER_ID
        assert "requested_credits" not in row
        assert "expires_at" in row

        notification = _notifications(fake_db)[0]
        assert notification["title"] == "Subscription Request Submitted"
        assert "Pro plan" in notification["message"]

    def test_upgrade_keeps_requested_tier(self, fake_db):
        fake_db.queue("pricing_config", {"plan_name": "pro"})
        fake_db.queue(
            "subscriptions",
            [],
            {"id": "sub-1", "plan": "free", "status": "active"},
            [{"id": "sub-2"}],
        )

        SubscriptionService.request_subscription(
            USER_ID, _subscribe(plan="pro", requestedCredits=300, requestedPriceCents=4500),
        )

        row = fake_db.queries("subscriptions", "insert")[0].call("insert").args[0]
        assert row["requested_credits"] == 300
        assert row["requested_price_cents"] == 4500

        notification = _notifications(fake_db)[0]
        assert notification["title"] == "Upgrade Request Submitted"
        assert "(300 credits at $45/mo)" in notification["message"]
        assert "replace your current subscription" in notification["message"]

    def test_plan_required(self, fake_db):
        with pytest.raises(BadRequestError) as exc_info:
            SubscriptionService.request_subscription(USER_ID, _subscribe())

        assert exc_info.value.code == "PLAN_REQUIRED"

    def test_invalid_plan_is_400(self, fake_db):
        fake_db.queue("pricing_config", no_rows_error())

        with pytest.raises(BadRequestError) as exc_info:
            SubscriptionService.request_subscription(USER_ID, _subscribe(plan="gold"))

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "Invalid plan"
        assert fake_db.queries("subscriptions") == []

    def test_only_one_pending_request(self, fake_db):
        fake_db.queue("pricing_config", {"plan_name": "pro"})
        fake_db.queue("subscriptions", [{"id": "sub-pending"}])

        with pytest.raises(BadRequestError) as exc_info:
            SubscriptionService.request_subscription(USER_ID, _subscribe(plan="pro"))

        assert "pending subscription request" in exc_info.value.message
        assert fake_db.queries("subscriptions", "insert") == []
        assert _notifications(fake_db) == []

    def test_insert_failure(self, fake_db):
        fake_db.queue("pricing_config", {"plan_name": "pro"})
        fake_db.queue("subscriptions", [], no_rows_error(), Exception("insert failed"))

        with pytest.raises(SubscriptionUpdateError) as exc_info:
            SubscriptionService.request_subscription(USER_ID, _subscribe(plan="pro"))

        assert exc_info.value.message == "Failed to create subscription request"


class TestCancel:
    """Tests for SubscriptionService.cancel."""

    def test_cancels_active_subscription(self, fake_db):
        fake_db.queue(
            "subscriptions",
            {"id": "sub-1", "plan": "pro", "status": "active", "expires_at": "2026-11-05T00:00:00+00:00"},
            [],
        )

        result = SubscriptionService.cancel(USER_ID)

        assert result["message"] == "Subscription canceled. Access continues until November 5, 2026."
        update = fake_db.queries("subscriptions", "update")[0]
        assert update.call("update").args[0]["status"] == "canceled"
        assert update.call("eq").args == ("id", "sub-1")

        notification = _notifications(fake_db)[0]
        assert notification["title"] == "Subscription Canceled"
        assert notification["type"] == "warning"

    def test_no_subscription(self, fake_db):
        fake_db.queue("subscriptions", no_rows_error())

        with pytest.raises(BadRequestError) as exc_info:
            SubscriptionService.cancel(USER_ID)

        assert exc_info.value.message == "No active subscription to cancel"

    def test_already_canceled(self, fake_db):
        fake_db.queue("subscriptions", {"id": "sub-1", "plan": "pro", "status": "canceled"})

        with pytest.raises(BadRequestError):
            SubscriptionService.cancel(USER_ID)

        assert fake_db.queries("subscriptions", "update") == []

    def test_free_plan_cannot_be_canceled(self, fake_db):
        fake_db.queue("subscriptions", {"id": "sub-1", "plan": "free", "status": "active"})

        with pytest.raises(BadRequestError) as exc_info:
            SubscriptionService.cancel(USER_ID)

        assert exc_info.value.code == "FREE_PLAN_NOT_CANCELABLE"

    def test_update_failure(self, fake_db):
        fake_db.queue(
            "subscriptions",
            {"id": "sub-1", "plan": "pro", "status": "active"},
            Exception("write failed"),
        )

        with pytest.raises(SubscriptionUpdateError):
            SubscriptionService.cancel(USER_ID)

        assert _notifications(fake_db) == []

    def test_access_date_fallback(self):
        assert format_access_date(None) == "the end of your billing period"


class TestApprove:
    """Tests for SubscriptionService.approve."""

    def test_activates_with_plan_defaults(self, fake_db, mailer):
        set_auth_user(fake_db, email="ana@example.com")
        fake_db.queue("subscriptions", PENDING)
        fake_db.queue("pricing_config", PRO)

        result = SubscriptionService.approve(ADMIN_ID, "sub-2", mailer)

        assert result == {"success": True, "message": "Subscription approved"}

        activate, expire_others = fake_db.queries("subscriptions", "update")
        values = activate.call("update").args[0]
        assert values["status"] == "active"
        assert values["credits_remaining"] == 100
        assert values["credits_total"] == 100
        assert activate.call("eq").args == ("id", "sub-2")

        assert expire_others.call("update").args[0]["status"] == "expired"
        assert expire_others.call("eq").args == ("user_id", USER_ID)
        assert expire_others.call("in_").args == ("status", ["active", "canceled"])
        assert expire_others.call("neq").args == ("id", "sub-2")

        transaction = fake_db.queries("transactions", "insert")[0].call("insert").args[0]
        assert transaction["amount"] == 1900
        assert transaction["type"] == "subscription"

        notification = _notifications(fake_db)[0]
        assert notification["title"] == "Subscription Approved! 🎉"
        assert "You have 100 credits available." in notification["message"]

        email = mailer.send_email.call_args.kwargs
        assert email["to_email"] == "ana@example.com"
        assert email["subject"] == "Your Pro Plan is Now Active!"

    def test_requested_tier_wins(self, fake_db, mailer):
        fake_db.queue("subscriptions", {**PENDING, "requested_credits": 300, "requested_price_cents": 4500})
        fake_db.queue("pricing_config", PRO)

        SubscriptionService.approve(ADMIN_ID, "sub-2", mailer)

        values = fake_db.queries("subscriptions", "update")[0].call("update").args[0]
        assert values["credits_remaining"] == 300
        transaction = fake_db.queries("transactions", "insert")[0].call("insert").args[0]
        assert transaction["amount"] == 4500

    def test_unlimited_plan_from_fallback(self, fake_db, mailer):
        set_auth_user(fake_db)
        fake_db.queue("subscriptions", {**PENDING, "plan": "unlimited"})
        fake_db.queue("pricing_config", Exception("timeout"))

        SubscriptionService.approve(ADMIN_ID, "sub-2", mailer)

        values = fake_db.queries("subscriptions", "update")[0].call("update").args[0]
        assert values["credits_remaining"] == 0
        assert "unlimited credits" in _notifications(fake_db)[0]["message"]
        assert "Unlimited" in mailer.send_email.call_args.kwargs["html_content"]

    def test_requires_subscription_id(self, fake_db):
        with pytest.raises(BadRequestError):
            SubscriptionService.approve(ADMIN_ID, None)

    def test_not_pending_is_404(self, fake_db):
        fake_db.queue("subscriptions", no_rows_error())

        with pytest.raises(NotFoundError) as exc_info:
            SubscriptionService.approve(ADMIN_ID, "sub-9")

        assert exc_info.value.code == "SUBSCRIPTION_NOT_FOUND"
        assert fake_db.queries("subscriptions", "update") == []

    def test_transaction_failure_is_logged(self, fake_db, mailer):
        fake_db.queue("subscriptions", PENDING)
        fake_db.queue("pricing_config", PRO)
        fake_db.queue("transactions", Exception("insert failed"))

        result = SubscriptionService.approve(ADMIN_ID, "sub-2", mailer)

        assert result["success"] is True
        assert len(_notifications(fake_db)) == 1


class TestReject:
    """Tests for SubscriptionService.reject."""

    def test_deletes_request_and_notifies(self, fake_db, mailer):
        set_auth_user(fake_db, email="ana@example.com")
        fake_db.queue("subscriptions", PENDING)

        result = SubscriptionService.reject(ADMIN_ID, "sub-2", "Payment <missing>", mailer)

        assert result == {"success": True, "message": "Subscription rejected"}
        delete = fake_db.queries("subscriptions", "delete")[0]
        assert delete.call("eq").args == ("id", "sub-2")

        notification = _notifications(fake_db)[0]
        assert notification["title"] == "Subscription Request Declined"
        assert notification["type"] == "error"

        email = mailer.send_email.call_args.kwargs
        assert email["subject"].startswith("Update on Your Upgrade Request")
        assert "Payment &lt;missing&gt;" in email["html_content"]

    def test_not_pending_is_404(self, fake_db):
        fake_db.queue("subscriptions", [])

        with pytest.raises(NotFoundError):
            SubscriptionService.reject(ADMIN_ID, "sub-9")

        assert fake_db.queries("subscriptions", "delete") == []


class TestExpireLapsed:
    """Tests for SubscriptionService.expire_lapsed."""

    NOW = datetime(2026, 10, 18, 1, 0, tzinfo=timezone.utc)

    def test_moves_users_to_free_plan(self, fake_db):
        fake_db.queue("subscriptions", [
            {"id": "sub-1", "user_id": USER_ID, "plan": "pro"},
            {"id": "sub-3", "user_id": ADMIN_ID, "plan": "enterprise"},
        ])
        fake_db.queue("pricing_config", {"credits": 10, "price_cents": 0, "is_unlimited": False})

        result = SubscriptionService.expire_lapsed(now=self.NOW)

        assert result == {"success": True, "processed": 2}

        lookup = fake_db.queries("subscriptions", "select")[0]
        assert lookup.call("in_").args == ("status", ["active", "canceled"])
        assert lookup.call("lt").args == ("expires_at", self.NOW.isoformat())

        expired = fake_db.queries("subscriptions", "update")
        assert [q.call("eq").args[1] for q in expired] == ["sub-1", "sub-3"]

        free_rows = [q.call("insert").args[0] for q in fake_db.queries("subscriptions", "insert")]
        assert [row["plan"] for row in free_rows] == ["free", "free"]
        assert free_rows[0]["credits_remaining"] == 10

        notifications = _notifications(fake_db)
        assert notifications[0]["title"] == "Subscription Expired"
        assert "Free plan with 10 credits" in notifications[0]["message"]

    def test_nothing_to_expire(self, fake_db):
        result = SubscriptionService.expire_lapsed(now=self.NOW)

        assert result == {"success": True, "processed": 0}
        assert fake_db.queries("pricing_config") == []

    def test_failed_update_is_skipped(self, fake_db):
        fake_db.queue(
            "subscriptions",
            [{"id": "sub-1", "user_id": USER_ID, "plan": "pro"},
             {"id": "sub-3", "user_id": ADMIN_ID, "plan": "pro"}],
            Exception("write failed"),
        )
        fake_db.queue("pricing_config", no_rows_error())

        result = SubscriptionService.expire_lapsed(now=self.NOW)

        assert result["processed"] == 1
        free_rows = [q.call("insert").args[0] for q in fake_db.queries("subscriptions", "insert")]
        assert [row["user_id"] for row in free_rows] == [ADMIN_ID]
        assert free_rows[0]["credits_remaining"] == FALLBACK_PLAN_CONFIG["free"].credits

    def test_fetch_failure_raises(self, fake_db):
        fake_db.queue("subscriptions", Exception("connection reset"))

        with pytest.raises(SubscriptionExpiryError) as exc_info:
            SubscriptionService.expire_lapsed(now=self.NOW)

        assert "connection reset" not in str(exc_info.value.to_dict())
