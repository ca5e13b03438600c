# =============================================================================
# tests/test_api.py - API Endpoint Tests
# =============================================================================
# Exercises the FastAPI app through TestClient: auth, CORS, error shapes,
# the tool endpoints, the functions endpoints, and the presence WebSocket.
# Services and the AI gateway are mocked at the router boundary.
# =============================================================================

from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from app.dependencies import get_ai_gateway, get_mailer
from app.exceptions import InsufficientCreditsError
from app.main import app
from lib.media import ProcessedMedia
from lib.supabase_client import SupabaseClient
from tests.conftest import ADMIN_ID, USER_ID

CRON_HEADERS = {"X-Cron-Secret": "test-cron-secret"}


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def not_admin():
    with patch.object(SupabaseClient, "has_role", return_value=False) as has_role:
        yield has_role


@pytest.fixture
def as_admin():
    with patch.object(SupabaseClient, "has_role", return_value=True) as has_role:
        yield has_role


# =============================================================================
# Root, Health, Auth
# =============================================================================

class TestBasics:
    """Tests for root, health and auth endpoints."""

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["health"] == "/api/v1/health"

    def test_health(self, client):
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_liveness(self, client):
        body = client.get("/api/v1/health/live").json()

        assert body["status"] == "alive"
        assert body["presence_connections"] >= 0

    def test_readiness_degraded_on_db_error(self, client, fake_db):
        fake_db.queue("subscriptions", Exception("connection refused"))

        body = client.get("/api/v1/health/ready").json()

        assert body["status"] == "degraded"
        assert body["checks"]["database"].startswith("unhealthy")
        assert body["checks"]["storage"] == "healthy"
        assert body["checks"]["ai_gateway"] == "configured"
        fake_db.storage.get_bucket.assert_called_once_with("generation-images")

    def test_missing_token_is_401(self, client):
        response = client.get("/api/v1/credits")

        assert response.status_code == 401
        body = response.json()
        assert body["error"] == "Unauthorized"
        assert body["code"] == "UNAUTHORIZED"
        assert body["suggestion"] == "Sign in again to refresh your session"

    def test_invalid_token_is_401(self, client):
        response = client.get("/api/v1/credits", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401

    def test_verify_reports_admin_flag(self, client, auth_headers, not_admin):
        response = client.get("/api/v1/auth/verify", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {
            "valid": True,
            "user_id": USER_ID,
            "email": "user@example.com",
            "is_admin": False,
        }

    def test_cors_preflight_allows_any_origin(self, client):
        response = client.options(
            "/api/v1/tools/generate-metadata",
            headers={
                "Origin": "https://dashboard.example.com",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "authorization, content-type",
            },
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"


# =============================================================================
# Error Shapes
# =============================================================================

class TestErrorHandling:
    """Tests for the JSON error shapes."""

    def test_validation_error_shape(self, client):
        response = client.post("/api/v1/tools/seo-filenames", json={"marketplaces": []})

        assert response.status_code == 422
        body = response.json()
        assert body["code"] == "VALIDATION_ERROR"
        assert body["error"] == "Validation error"
        assert any(e["field"].endswith("originalExtension") for e in body["details"]["errors"])

    def test_unexpected_error_is_generic_500(self, auth_headers):
        with patch("app.routers.billing.CreditService.get_credit_status", side_effect=RuntimeError("db gone")):
            with TestClient(app, raise_server_exceptions=False) as client:
                response = client.get("/api/v1/credits", headers=auth_headers)

        assert response.status_code == 500
        assert response.json() == {"error": "An unexpected error occurred", "code": "INTERNAL_ERROR"}


# =============================================================================
# Tools
# =============================================================================

class TestPreprocess:
    """Tests for POST /api/v1/tools/preprocess."""

    def test_converted_headers(self, client, auth_headers):
        processed = ProcessedMedia(data=b"png-bytes", content_type="image/png",
                                   was_converted=True, original_type="svg")

        with patch("app.routers.tools.process_file_for_analysis", return_value=processed):
            response = client.post(
                "/api/v1/tools/preprocess",
                files={"file": ("icon.svg", b"<svg/>", "image/svg+xml")},
                headers=auth_headers,
            )

        assert response.status_code == 200
        assert response.content == b"png-bytes"
        assert response.headers["content-type"] == "image/png"
        assert response.headers["x-was-converted"] == "true"
        assert response.headers["x-original-type"] == "svg"

    def test_raster_passes_through(self, client, auth_headers):
        response = client.post(
            "/api/v1/tools/preprocess",
            files={"file": ("photo.jpg", b"\xff\xd8jpeg", "image/jpeg")},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.content == b"\xff\xd8jpeg"
        assert response.headers["x-was-converted"] == "false"
        assert response.headers["x-original-type"] == "image/jpeg"

    def test_eps_is_415(self, client, auth_headers):
        response = client.post(
            "/api/v1/tools/preprocess",
            files={"file": ("logo.eps", b"%!PS", "application/postscript")},
            headers=auth_headers,
        )

        assert response.status_code == 415
        body = response.json()
        assert body["code"] == "UNSUPPORTED_MEDIA_FORMAT"
        assert body["error"] == "EPS files cannot be analyzed directly. Please convert to PNG/JPG first."

    def test_too_large_is_413(self, client, auth_headers):
        with patch("app.routers.tools.settings") as settings:
            settings.max_upload_size_bytes = 4
            settings.MAX_UPLOAD_SIZE_MB = 1
            response = client.post(
                "/api/v1/tools/preprocess",
                files={"file": ("photo.jpg", b"0123456789", "image/jpeg")},
                headers=auth_headers,
            )

        assert response.status_code == 413
        assert response.json()["code"] == "FILE_TOO_LARGE"

    def test_requires_auth(self, client):
        response = client.post(
            "/api/v1/tools/preprocess",
            files={"file": ("photo.jpg", b"data", "image/jpeg")},
        )

        assert response.status_code == 401


class TestUtilities:
    """Tests for the non-AI tool endpoints."""

    def test_prompt_options(self, client):
        body = client.get("/api/v1/tools/prompt-options").json()

        assert "midjourney" in [s["value"] for s in body["styles"]]
        assert "expert" in [d["value"] for d in body["detailLevels"]]

    def test_seo_filenames(self, client):
        with patch("lib.seo_filename.time.time", return_value=1700000000.123):
            response = client.post(
                "/api/v1/tools/seo-filenames",
                json={
                    "marketplaces": [
                        {"name": "Adobe Stock", "title": "Red Fox in Snow", "keywords": ["fox"]},
                    ],
                    "originalExtension": "JPG",
                },
            )

        assert response.status_code == 200
        filenames = response.json()["filenames"]
        assert filenames[0]["marketplace"] == "Adobe Stock"
        assert filenames[0]["filename"].endswith(".jpg")


class TestGenerateMetadata:
    """Tests for POST /api/v1/tools/generate-metadata."""

    @pytest.fixture
    def gateway(self, sample_metadata_results):
        gateway = MagicMock()
        gateway.call_tool.return_value = sample_metadata_results
        app.dependency_overrides[get_ai_gateway] = lambda: gateway
        return gateway

    def test_generates_saves_and_charges(self, client, auth_headers, gateway):
        with patch("app.routers.tools.CreditService") as credits, \
                patch("app.routers.tools.GenerationService") as generations:
            generations.create_generation.return_value = "gen-1"
            response = client.post(
                "/api/v1/tools/generate-metadata",
                json={
                    "imageUrl": "https://cdn.example.com/uploads/photo.png",
                    "marketplaces": ["Adobe Stock", "Shutterstock"],
                },
                headers=auth_headers,
            )

        assert response.status_code == 200
        body = response.json()
        assert body["generationId"] == "gen-1"
        assert [r["marketplace"] for r in body["results"]] == ["Adobe Stock", "Shutterstock"]
        assert all(f["filename"].endswith(".png") for f in body["filenames"])

        status = credits.get_credit_status.return_value
        credits.ensure_credits.assert_called_once_with(status, 2)
        credits.deduct_credits.assert_called_once_with(status, 2)
        assert str(generations.create_generation.call_args.args[0]) == USER_ID

    def test_missing_fields_is_400_before_credit_check(self, client, auth_headers, gateway):
        with patch("app.routers.tools.CreditService") as credits:
            response = client.post(
                "/api/v1/tools/generate-metadata",
                json={"imageUrl": "https://cdn.example.com/photo.jpg"},
                headers=auth_headers,
            )

        assert response.status_code == 400
        assert response.json()["error"] == "Missing required fields: imageUrl and marketplaces array"
        credits.get_credit_status.assert_not_called()

    def test_insufficient_credits_is_402(self, client, auth_headers, gateway):
        with patch("app.routers.tools.CreditService") as credits:
            credits.ensure_credits.side_effect = InsufficientCreditsError(needed=2, remaining=1)
            response = client.post(
                "/api/v1/tools/generate-metadata",
                json={
                    "imageUrl": "https://cdn.example.com/photo.jpg",
                    "marketplaces": ["Adobe Stock", "Freepik"],
                },
                headers=auth_headers,
            )

        assert response.status_code == 402
        assert response.json()["code"] == "INSUFFICIENT_CREDITS"
        gateway.call_tool.assert_not_called()
        credits.deduct_credits.assert_not_called()

    def test_ai_failure_does_not_charge(self, client, auth_headers, gateway):
        from agents.gateway import RATE_LIMITED, GatewayError

        gateway.call_tool.side_effect = GatewayError("slow down", RATE_LIMITED)
        with patch("app.routers.tools.CreditService") as credits, \
                patch("app.routers.tools.GenerationService") as generations:
            response = client.post(
                "/api/v1/tools/generate-metadata",
                json={"imageUrl": "https://cdn.example.com/photo.jpg", "marketplaces": ["Freepik"]},
                headers=auth_headers,
            )

        assert response.status_code == 429
        assert response.json()["code"] == "AI_RATE_LIMITED"
        credits.deduct_credits.assert_not_called()
        generations.create_generation.assert_not_called()


class TestImageToPromptAndReview:
    """Tests for the single-credit AI endpoints."""

    def test_image_to_prompt(self, client, auth_headers):
        gateway = MagicMock()
        gateway.call_tool.return_value = {"prompt": "a red fox", "dominantColors": ["orange"]}
        app.dependency_overrides[get_ai_gateway] = lambda: gateway

        with patch("app.routers.tools.CreditService") as credits:
            response = client.post(
                "/api/v1/tools/image-to-prompt",
                json={"imageUrl": "https://cdn.example.com/fox.jpg", "style": "dalle"},
                headers=auth_headers,
            )

        assert response.status_code == 200
        assert response.json()["prompt"] == "a red fox"
        assert response.json()["dominantColors"] == ["orange"]
        credits.deduct_credits.assert_called_once_with(credits.get_credit_status.return_value)

    def test_review_file(self, client, auth_headers):
        gateway = MagicMock()
        gateway.complete_text.return_value = '{"overallScore": 55, "verdict": "warning", "issues": []}'
        app.dependency_overrides[get_ai_gateway] = lambda: gateway

        with patch("app.routers.tools.CreditService"), \
                patch("agents.file_reviewer.load_config", return_value=None):
            response = client.post(
                "/api/v1/tools/review-file",
                json={"imageUrl": "https://cdn.example.com/a.jpg", "fileType": "jpg", "fileName": "a.jpg"},
                headers=auth_headers,
            )

        assert response.status_code == 200
        assert response.json()["verdict"] == "warning"
        assert response.json()["overallScore"] == 55

    def test_review_file_missing_fields(self, client, auth_headers):
        response = client.post(
            "/api/v1/tools/review-file",
            json={"imageUrl": "https://cdn.example.com/a.jpg"},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Missing required fields: imageUrl, fileType, fileName"


# =============================================================================
# Functions
# =============================================================================

class TestScheduledFunctions:
    """Tests for the cron-triggered function endpoints."""

    def test_cleanup_with_cron_secret(self, client):
        summary = {"message": "Cleanup completed", "deleted": 3, "filesRemoved": 2}

        with patch("app.routers.functions.CleanupService.cleanup_old_generations",
                   return_value=summary):
            response = client.post("/functions/v1/cleanup-old-generations", headers=CRON_HEADERS)

        assert response.status_code == 200
        assert response.json() == summary

    def test_wrong_secret_without_token_is_401(self, client):
        response = client.post("/functions/v1/daily-credit-reset", headers={"X-Cron-Secret": "nope"})

        assert response.status_code == 401

    def test_non_admin_token_is_403(self, client, auth_headers, not_admin):
        response = client.post("/functions/v1/cleanup-old-generations", headers=auth_headers)

        assert response.status_code == 403
        assert response.json()["code"] == "ADMIN_REQUIRED"

    def test_admin_token_runs_reset(self, client, admin_headers, as_admin):
        result = {"message": "Daily credit reset completed", "updated": 4}

        with patch("app.routers.functions.CreditResetService.reset_daily_credits", return_value=result):
            response = client.post("/functions/v1/daily-credit-reset", headers=admin_headers)

        assert response.status_code == 200
        assert response.json() == result


class TestContactFunction:
    """Tests for POST /functions/v1/send-contact-email."""

    @pytest.fixture
    def mailer(self):
        mailer = MagicMock()
        mailer.is_configured = True
        mailer.send_email.return_value = True
        app.dependency_overrides[get_mailer] = lambda: mailer
        return mailer

    def test_sends(self, client, mailer):
        with patch("core.services.contact_service.ContactService.save_submission", return_value=True):
            response = client.post(
                "/functions/v1/send-contact-email",
                json={"name": "Ada", "email": "ada@example.com", "subject": "Hi", "message": "Hello"},
            )

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Email sent successfully"}
        assert mailer.send_email.call_args.kwargs["reply_to"] == "ada@example.com"

    def test_missing_fields_is_400(self, client, mailer):
        response = client.post("/functions/v1/send-contact-email", json={"name": "Ada"})

        assert response.status_code == 400
        assert response.json()["error"] == (
            "Missing required fields: name, email, subject, and message are required"
        )
        mailer.send_email.assert_not_called()

    def test_empty_body_is_400(self, client, mailer):
        response = client.post("/functions/v1/send-contact-email")

        assert response.status_code == 400


class TestPurchaseFunction:
    """Tests for POST /functions/v1/purchase-credits."""

    def test_user_purchase(self, client, auth_headers):
        with patch("app.routers.functions.CreditPackService.request_purchase",
                   return_value={"success": True, "purchaseId": "p1"}) as request_purchase:
            response = client.post(
                "/functions/v1/purchase-credits",
                json={"packId": "pack-1", "transactionId": "TX1"},
                headers=auth_headers,
            )

        assert response.status_code == 200
        assert response.json()["purchaseId"] == "p1"
        assert request_purchase.call_args.args[1].pack_id == "pack-1"

    def test_review_requires_admin(self, client, auth_headers, not_admin):
        response = client.post(
            "/functions/v1/purchase-credits",
            json={"action": "approve", "purchaseId": "p1"},
            headers=auth_headers,
        )

        assert response.status_code == 403

    def test_admin_review(self, client, admin_headers, as_admin):
        with patch("app.routers.functions.CreditPackService.review_purchase",
                   return_value={"success": True}) as review:
            response = client.post(
                "/functions/v1/purchase-credits",
                json={"action": "reject", "purchaseId": "p1"},
                headers=admin_headers,
            )

        assert response.status_code == 200
        assert review.call_args.args[1:] == ("p1", "reject")

    def test_admin_review_passes_notes(self, client, admin_headers, as_admin):
        with patch("app.routers.functions.CreditPackService.review_purchase",
                   return_value={"success": True}) as review:
            client.post(
                "/functions/v1/purchase-credits",
                json={"action": "reject", "purchaseId": "p1", "adminNotes": "No payment"},
                headers=admin_headers,
            )

        assert review.call_args.kwargs["admin_notes"] == "No payment"
        assert review.call_args.kwargs["mailer"] is not None


class TestManageSubscriptionFunction:
    """Tests for POST /functions/v1/manage-subscription."""

    URL = "/functions/v1/manage-subscription"

    def test_subscribe_requires_token(self, client):
        response = client.post(self.URL, json={"action": "subscribe", "plan": "pro"})

        assert response.status_code == 401

    def test_subscribe(self, client, auth_headers):
        with patch("app.routers.functions.SubscriptionService.request_subscription",
                   return_value={"success": True}) as subscribe:
            response = client.post(
                self.URL,
                json={"action": "subscribe", "plan": "pro", "requestedCredits": 250},
                headers=auth_headers,
            )

        assert response.status_code == 200
        assert str(subscribe.call_args.args[0]) == USER_ID
        assert subscribe.call_args.args[1].requested_credits == 250

    def test_cancel(self, client, auth_headers):
        with patch("app.routers.functions.SubscriptionService.cancel",
                   return_value={"success": True}) as cancel:
            response = client.post(self.URL, json={"action": "cancel"}, headers=auth_headers)

        assert response.status_code == 200
        assert str(cancel.call_args.args[0]) == USER_ID

    def test_approve_requires_admin(self, client, auth_headers, not_admin):
        with patch("app.routers.functions.SubscriptionService.approve") as approve:
            response = client.post(
                self.URL,
                json={"action": "approve", "subscriptionId": "s1"},
                headers=auth_headers,
            )

        assert response.status_code == 403
        approve.assert_not_called()

    def test_admin_approve(self, client, admin_headers, as_admin):
        with patch("app.routers.functions.SubscriptionService.approve",
                   return_value={"success": True}) as approve:
            response = client.post(
                self.URL,
                json={"action": "approve", "subscriptionId": "s1"},
                headers=admin_headers,
            )

        assert response.status_code == 200
        assert str(approve.call_args.args[0]) == ADMIN_ID
        assert approve.call_args.args[1] == "s1"

    def test_admin_reject_passes_notes(self, client, admin_headers, as_admin):
        with patch("app.routers.functions.SubscriptionService.reject",
                   return_value={"success": True}) as reject:
            response = client.post(
                self.URL,
                json={"action": "reject", "subscriptionId": "s1", "adminNotes": "Unpaid"},
                headers=admin_headers,
            )

        assert response.status_code == 200
        assert reject.call_args.args[1:3] == ("s1", "Unpaid")

    def test_check_expiration_with_cron_secret(self, client):
        with patch("app.routers.functions.SubscriptionService.expire_lapsed",
                   return_value={"success": True, "processed": 2}):
            response = client.post(self.URL, json={"action": "check-expiration"}, headers=CRON_HEADERS)

        assert response.status_code == 200
        assert response.json()["processed"] == 2

    def test_check_expiration_rejects_regular_user(self, client, auth_headers, not_admin):
        with patch("app.routers.functions.SubscriptionService.expire_lapsed") as expire:
            response = client.post(self.URL, json={"action": "check-expiration"}, headers=auth_headers)

        assert response.status_code == 403
        expire.assert_not_called()

    def test_unknown_action_is_422(self, client, auth_headers):
        response = client.post(self.URL, json={"action": "upgrade"}, headers=auth_headers)

        assert response.status_code == 422


class TestUserEmailFunction:
    """Tests for POST /functions/v1/send-user-email."""

    @pytest.fixture
    def mailer(self):
        mailer = MagicMock()
        mailer.is_configured = True
        mailer.send_email.return_value = True
        app.dependency_overrides[get_mailer] = lambda: mailer
        return mailer

    def test_requires_cron_or_admin(self, client, auth_headers, not_admin, mailer):
        response = client.post(
            "/functions/v1/send-user-email",
            json={"type": "welcome", "userEmail": "ana@example.com"},
            headers=auth_headers,
        )

        assert response.status_code == 403
        mailer.send_email.assert_not_called()

    def test_sends_with_cron_secret(self, client, mailer):
        response = client.post(
            "/functions/v1/send-user-email",
            json={"type": "credit_pack_approved", "userEmail": "ana@example.com", "credits": 50},
            headers=CRON_HEADERS,
        )

        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert mailer.send_email.call_args.kwargs["subject"] == "Your Credits Have Been Added!"

    def test_missing_recipient_is_400(self, client, mailer):
        response = client.post(
            "/functions/v1/send-user-email",
            json={"type": "welcome"},
            headers=CRON_HEADERS,
        )

        assert response.status_code == 400
        assert response.json()["code"] == "USER_EMAIL_REQUIRED"


class TestReferralFunction:
    """Tests for POST /functions/v1/process-referral."""

    def test_requires_token(self, client):
        response = client.post("/functions/v1/process-referral", json={"referralCode": "ANA1"})

        assert response.status_code == 401

    def test_caller_is_referee(self, client, auth_headers):
        with patch("app.routers.functions.ReferralService.process_referral",
                   return_value={"success": True, "status": "completed"}) as process:
            response = client.post(
                "/functions/v1/process-referral",
                json={"referralCode": "ana1"},
                headers=auth_headers,
            )

        assert response.status_code == 200
        assert str(process.call_args.args[0]) == USER_ID
        assert process.call_args.args[1] == "ana1"


# =============================================================================
# Billing and History
# =============================================================================

class TestBillingAndHistory:
    """Tests for credits, credit packs and generation history."""

    def test_credit_packs_are_public(self, client):
        packs = [{"id": "pack-1", "name": "Starter", "credits": 100, "price_cents": 500}]

        with patch("app.routers.billing.CreditPackService.list_active_packs", return_value=packs):
            response = client.get("/api/v1/credit-packs")

        assert response.status_code == 200
        assert response.json()[0]["id"] == "pack-1"

    def test_delete_generation(self, client, auth_headers):
        with patch("app.routers.generations.GenerationService.delete_generation") as delete:
            response = client.delete("/api/v1/generations/gen-9", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"success": True, "generation_id": "gen-9"}
        assert delete.call_args.args[1] == "gen-9"


# =============================================================================
# Presence
# =============================================================================

class TestPresence:
    """Tests for the live-users endpoint and WebSocket."""

    def test_live_users_requires_admin(self, client, auth_headers, not_admin):
        response = client.get("/api/v1/presence/live-users", headers=auth_headers)

        assert response.status_code == 403

    def test_live_users_for_admin(self, client, admin_headers, as_admin):
        response = client.get("/api/v1/presence/live-users", headers=admin_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["online_count"] == len(body["live_users"])
        assert "last_refresh" in body

    def test_websocket_invalid_token_closes_4001(self, client):
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with client.websocket_connect("/ws/presence?token=garbage") as websocket:
                websocket.receive_text()

        assert exc_info.value.code == 4001

    def test_websocket_track_and_ping(self, client, user_token):
        with client.websocket_connect(f"/ws/presence?token={user_token}") as websocket:
            assert websocket.receive_json()["event"] == "sync"

            websocket.send_json({"event": "track", "payload": {"id": "spoofed", "current_page": "/tools"}})
            state = websocket.receive_json()["state"]
            entry = state[USER_ID][0]
            assert entry["id"] == USER_ID
            assert entry["full_name"] == "Test User"
            assert entry["current_page"] == "/tools"

            websocket.send_text("ping")
            assert websocket.receive_text() == "pong"

    def test_websocket_survives_malformed_track(self, client, user_token):
        with client.websocket_connect(f"/ws/presence?token={user_token}") as websocket:
            websocket.receive_json()

            websocket.send_json({"event": "track", "payload": "dashboard"})
            websocket.send_text("ping")
            assert websocket.receive_text() == "pong"

            websocket.send_json({"event": "track", "payload": {"online_at": 12345}})
            websocket.send_text("ping")
            assert websocket.receive_text() == "pong"

            websocket.send_json({"event": "track", "payload": {"current_page": "/history"}})
            state = websocket.receive_json()["state"]
            assert state[USER_ID][0]["current_page"] == "/history"

    def test_websocket_admin_listener_hidden(self, client, admin_token, as_admin):
        with client.websocket_connect(f"/ws/presence?token={admin_token}&listener=true") as websocket:
            websocket.receive_json()
            state = websocket.receive_json()["state"]

            assert f"admin-listener-{ADMIN_ID}" in state
            from app.realtime.presence import presence_manager
            assert ADMIN_ID not in [u.id for u in presence_manager.live_users()]
