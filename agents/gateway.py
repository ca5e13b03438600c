# =============================================================================
# agents/gateway.py - AI Gateway Client
# =============================================================================
# One place for talking to the OpenAI-compatible chat completions gateway
# used by every AI tool. Adds nothing on top of a single call: no retries,
# no backoff. Gateway failures are classified so each tool can answer with
# its own user-facing message:
#
#   429                      -> GatewayError(kind="rate_limited")
#   402                      -> GatewayError(kind="payment_required")
#   "Unsupported image..."   -> GatewayError(kind="unsupported_image")
#   anything else            -> GatewayError(kind="failed")
#
# Usage:
#   gateway = AIGateway()
#   args = gateway.call_tool(system_prompt, user_content, tool)
# =============================================================================

from __future__ import annotations

import json
import logging
import re
from typing import Any

from openai import APIConnectionError, APIStatusError, OpenAI, OpenAIError

from app.config import settings
from app.exceptions import (
    AICreditsExhaustedError,
    AIRateLimitedError,
    AIServiceError,
    BadRequestError,
    StockMetaException,
)
from lib.utils import ApplicationError

logger = logging.getLogger(__name__)

RATE_LIMITED = "rate_limited"
PAYMENT_REQUIRED = "payment_required"
UNSUPPORTED_IMAGE = "unsupported_image"
NOT_CONFIGURED = "not_configured"
BAD_RESPONSE = "bad_response"
FAILED = "failed"

_JSON_OBJECT_PATTERN = re.compile(r"\{[\s\S]*\}")


class GatewayError(ApplicationError):
    """
    A failed AI gateway call.

    Attributes:
        kind: One of the module-level kind constants
        status_code: Gateway HTTP status, if there was a response
    """

    def __init__(
        self,
        message: str,
        kind: str = FAILED,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code=f"AI_GATEWAY_{kind.upper()}", details=details)
        self.kind = kind
        self.status_code = status_code


def to_http_error(
    error: GatewayError,
    rate_limited: str,
    credits_exhausted: str,
    failed: str,
    unsupported_image: str | None = None,
) -> StockMetaException:
    """
    Turn a GatewayError into the API error a tool answers with.

    Each tool passes its own wording; provider details never reach the
    caller.
    """
    if error.kind == RATE_LIMITED:
        return AIRateLimitedError(rate_limited)
    if error.kind == PAYMENT_REQUIRED:
        return AICreditsExhaustedError(credits_exhausted)
    if error.kind == UNSUPPORTED_IMAGE and unsupported_image:
        return BadRequestError(unsupported_image, code="UNSUPPORTED_IMAGE_FORMAT")
    if error.kind == NOT_CONFIGURED:
        return AIServiceError("AI service not configured")
    return AIServiceError(failed)


def _provider_message(error: APIStatusError) -> str:
    body = error.body
    if isinstance(body, dict):
        inner = body.get("error", body)
        if isinstance(inner, dict):
            return str(inner.get("message", ""))
    return str(error.message or "")


def classify_status_error(error: APIStatusError) -> GatewayError:
    """Map an HTTP error from the gateway to a GatewayError."""
    status = error.status_code
    provider_message = _provider_message(error)
    logger.error(f"AI gateway error {status}: {provider_message[:300]}")

    if status == 429:
        return GatewayError("AI gateway rate limited", RATE_LIMITED, status)
    if status == 402:
        return GatewayError("AI gateway credits exhausted", PAYMENT_REQUIRED, status)
    if "Unsupported image format" in provider_message:
        return GatewayError("Unsupported image format", UNSUPPORTED_IMAGE, status)
    return GatewayError(f"AI gateway returned {status}", FAILED, status)


def extract_json_object(text: str) -> dict[str, Any]:
    """
    Parse the first {...} block of a model reply.

    Models often wrap JSON in prose or code fences; everything from the first
    "{" to the last "}" is taken.

    Raises:
        GatewayError: If there is no parseable object
    """
    match = _JSON_OBJECT_PATTERN.search(text or "")
    if not match:
        raise GatewayError("Could not parse AI response as JSON", BAD_RESPONSE)
    try:
        return json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise GatewayError(f"Could not parse AI response as JSON: {e}", BAD_RESPONSE)


def image_message(text: str, image_url: str) -> dict[str, Any]:
    """A user message carrying an instruction and one image."""
    return {
        "role": "user",
        "content": [
            {"type": "text", "text": text},
            {"type": "image_url", "image_url": {"url": image_url}},
        ],
    }


class AIGateway:
    """
    Chat completions against the configured gateway.

    Example:
        gateway = AIGateway()
        reply = gateway.complete_text(system_prompt, image_message(text, url))
    """

    def __init__(
        self,
        client: OpenAI | None = None,
        model: str | None = None,
        timeout: float | None = None,
    ):
        self.model = model or settings.AI_MODEL
        self._client = client
        self._timeout = timeout or settings.AI_TIMEOUT_SECONDS

    @property
    def client(self) -> OpenAI:
        """Lazily created so a missing key only fails the AI endpoints."""
        if self._client is None:
            if not settings.AI_GATEWAY_API_KEY:
                logger.error("AI_GATEWAY_API_KEY is not configured")
                raise GatewayError("AI service not configured", NOT_CONFIGURED)
            self._client = OpenAI(
                base_url=settings.AI_GATEWAY_URL,
                api_key=settings.AI_GATEWAY_API_KEY,
                timeout=self._timeout,
                max_retries=0,
            )
        return self._client

    def _create(self, **kwargs):
        try:
            return self.client.chat.completions.create(model=self.model, **kwargs)
        except APIStatusError as e:
            raise classify_status_error(e)
        except APIConnectionError as e:
            logger.error(f"AI gateway unreachable: {e}")
            raise GatewayError(f"AI gateway unreachable: {e}", FAILED)
        except OpenAIError as e:
            logger.error(f"AI gateway call failed: {e}")
            raise GatewayError(f"AI gateway call failed: {e}", FAILED)

    # -------------------------------------------------------------------------
    # Calls
    # -------------------------------------------------------------------------

    def call_tool(
        self,
        system_prompt: str,
        user_message: dict[str, Any],
        tool: dict[str, Any],
    ) -> dict[str, Any]:
        """
        Force a single function call and return its parsed arguments.

        Raises:
            GatewayError: On gateway failure or when the model did not call
                the tool
        """
        tool_name = tool["function"]["name"]
        response = self._create(
            messages=[{"role": "system", "content": system_prompt}, user_message],
            tools=[tool],
            tool_choice={"type": "function", "function": {"name": tool_name}},
        )

        message = response.choices[0].message if response.choices else None
        tool_calls = getattr(message, "tool_calls", None) or []
        if not tool_calls or tool_calls[0].function.name != tool_name:
            logger.error(f"Unexpected AI response format, expected {tool_name} call")
            raise GatewayError(f"Model did not call {tool_name}", BAD_RESPONSE)

        try:
            return json.loads(tool_calls[0].function.arguments)
        except json.JSONDecodeError as e:
            raise GatewayError(f"Invalid {tool_name} arguments: {e}", BAD_RESPONSE)

    def complete_text(
        self,
        system_prompt: str,
        user_message: dict[str, Any],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        """
        Plain completion; returns the reply text.

        Raises:
            GatewayError: On gateway failure or an empty reply
        """
        kwargs: dict[str, Any] = {}
        if temperature is not None:
            kwargs["temperature"] = temperature
        if max_tokens is not None:
            kwargs["max_tokens"] = max_tokens

        response = self._create(
            messages=[{"role": "system", "content": system_prompt}, user_message],
            **kwargs,
        )

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise GatewayError("Empty response from AI", BAD_RESPONSE)
        return content
