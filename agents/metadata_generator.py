# =============================================================================
# agents/metadata_generator.py - Marketplace Metadata Generator
# =============================================================================
# Analyzes an image and produces a title, description and keywords tuned for
# each selected stock marketplace, in one forced tool call.
#
# Usage:
#   generator = MetadataGenerator()
#   results = generator.generate(request)  # list[MarketplaceMetadata]
# =============================================================================

from __future__ import annotations

import logging
import math
from typing import Any

from pydantic import ValidationError

from agents.gateway import AIGateway, GatewayError, image_message, to_http_error
from agents.prompts.metadata_system import (
    build_metadata_system_prompt,
    build_metadata_tool,
    build_metadata_user_prompt,
)
from app.exceptions import AIServiceError, BadRequestError
from core.models.generation import MarketplaceMetadata
from core.models.tools import GenerateMetadataRequest

logger = logging.getLogger(__name__)

KEYWORD_COUNT_RANGE = (1, 50, 30)
TITLE_MAX_CHARS_RANGE = (10, 200, 200)
DESCRIPTION_MAX_CHARS_RANGE = (50, 500, 500)


def clamp_setting(value: Any, low: int, high: int, default: int) -> int:
    """
    Coerce a client-supplied limit into [low, high].

    Missing, zero, or non-numeric values use the default.

    Example:
        clamp_setting(80, 1, 50, 30)     # 50
        clamp_setting("abc", 1, 50, 30)  # 30
    """
    try:
        number = float(value)
    except (TypeError, ValueError):
        number = 0.0
    if not number or math.isnan(number):
        number = float(default)
    return int(max(low, min(high, number)))


class MetadataGenerator:
    """
    Generates stock metadata for one image across marketplaces.

    Attributes:
        gateway: AI gateway used for the tool call
    """

    def __init__(self, gateway: AIGateway | None = None):
        self.gateway = gateway or AIGateway()

    @staticmethod
    def validate(request: GenerateMetadataRequest) -> None:
        """
        Raises:
            BadRequestError: If imageUrl or a non-empty marketplaces list is missing
        """
        if not request.image_url or not request.marketplaces:
            raise BadRequestError("Missing required fields: imageUrl and marketplaces array")

    def generate(self, request: GenerateMetadataRequest) -> list[MarketplaceMetadata]:
        """
        Generate metadata for every requested marketplace.

        Returns:
            One MarketplaceMetadata per result the model produced

        Raises:
            BadRequestError: Missing inputs
            AIRateLimitedError / AICreditsExhaustedError / AIServiceError:
                Gateway failures
        """
        self.validate(request)

        keyword_count = clamp_setting(request.keyword_count, *KEYWORD_COUNT_RANGE)
        title_max_chars = clamp_setting(request.title_max_chars, *TITLE_MAX_CHARS_RANGE)
        description_max_chars = clamp_setting(request.description_max_chars, *DESCRIPTION_MAX_CHARS_RANGE)

        logger.info(
            f"Generating metadata for {len(request.marketplaces)} marketplaces "
            f"({keyword_count} keywords, title<={title_max_chars}, description<={description_max_chars})"
        )

        system_prompt = build_metadata_system_prompt(
            request.marketplaces, keyword_count, title_max_chars, description_max_chars
        )
        user_prompt = build_metadata_user_prompt(
            request.image_url, request.marketplaces, keyword_count, title_max_chars, description_max_chars
        )

        try:
            arguments = self.gateway.call_tool(
                system_prompt,
                image_message(user_prompt, request.image_url),
                build_metadata_tool(keyword_count, title_max_chars, description_max_chars),
            )
        except GatewayError as e:
            raise to_http_error(
                e,
                rate_limited="Too many requests. Please wait a moment and try again.",
                credits_exhausted="AI credits exhausted. Please add funds to continue.",
                failed="Failed to analyze image. Please try again.",
            )

        try:
            results = [MarketplaceMetadata.model_validate(r) for r in arguments.get("results") or []]
        except ValidationError as e:
            logger.error(f"Malformed metadata results: {e}")
            raise AIServiceError("Could not analyze image. Please try a different image.")

        logger.info(f"Generated metadata for {len(results)} marketplaces")
        return results
