# =============================================================================
# agents/prompt_generator.py - Image-to-Prompt Generator
# =============================================================================
# Produces a text prompt that recreates an image in a chosen generator style
# (Midjourney, DALL-E, Stable Diffusion, general), optionally steered by the
# user's training context.
# =============================================================================

from __future__ import annotations

import logging

from agents.gateway import AIGateway, GatewayError, image_message, to_http_error
from agents.prompts.image_prompt_system import (
    IMAGE_PROMPT_USER_TEXT,
    PROMPT_TOOL,
    build_image_prompt_system_prompt,
)
from app.exceptions import AIServiceError, BadRequestError
from core.models.tools import ImageToPromptRequest, PromptResult

logger = logging.getLogger(__name__)


class PromptGenerator:
    """Image-to-prompt via a forced generate_prompt tool call."""

    def __init__(self, gateway: AIGateway | None = None):
        self.gateway = gateway or AIGateway()

    @staticmethod
    def validate(request: ImageToPromptRequest) -> None:
        if not request.image_url:
            raise BadRequestError("Image URL is required")

    def generate(self, request: ImageToPromptRequest) -> PromptResult:
        """
        Raises:
            BadRequestError: No image URL, or an image format the model rejects
            AIRateLimitedError / AICreditsExhaustedError / AIServiceError:
                Gateway failures
        """
        self.validate(request)

        training = request.training_context
        logger.info(
            f"Generating prompt for image, style: {request.style.value}, "
            f"detail: {request.detail_level.value}, trained: {bool(training and training.has_training())}"
        )

        system_prompt = build_image_prompt_system_prompt(request.style, request.detail_level, training)

        try:
            arguments = self.gateway.call_tool(
                system_prompt,
                image_message(IMAGE_PROMPT_USER_TEXT, request.image_url),
                PROMPT_TOOL,
            )
        except GatewayError as e:
            raise to_http_error(
                e,
                rate_limited="Rate limit exceeded. Please try again later.",
                credits_exhausted="AI credits exhausted. Please add more credits.",
                failed="Failed to generate prompt. Please try again.",
                unsupported_image="Unsupported image format. Please upload PNG, JPEG, WebP, or GIF.",
            )

        if not arguments.get("prompt"):
            logger.error("generate_prompt call returned no prompt")
            raise AIServiceError("Failed to generate prompt")

        return PromptResult(
            prompt=arguments["prompt"],
            negative_prompt=arguments.get("negativePrompt") or None,
            suggested_aspect_ratio=arguments.get("suggestedAspectRatio") or None,
            dominant_colors=arguments.get("dominantColors") or [],
            art_style=arguments.get("artStyle") or None,
        )
