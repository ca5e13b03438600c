# =============================================================================
# agents/file_reviewer.py - Stock File Reviewer
# =============================================================================
# Reviews a file (or a preview frame of it) for likely marketplace rejection
# reasons. The rejection catalog, marketplace rules and scoring config come
# from the active file_reviewer_config row when there is one, otherwise from
# the defaults below.
# =============================================================================

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from agents.gateway import (
    AIGateway,
    GatewayError,
    extract_json_object,
    image_message,
    to_http_error,
)
from agents.prompts.reviewer_system import (
    REVIEW_USER_TEXT,
    build_reviewer_system_prompt,
    format_marketplace_rules,
)
from app.config import settings
from app.exceptions import AIServiceError, BadRequestError
from core.models.tools import ReviewFileRequest, ReviewResult
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

REVIEW_MAX_TOKENS = 2000

DEFAULT_SCORING_WEIGHTS = {"visual_quality": 25, "technical": 30, "content": 25, "commercial": 20}
DEFAULT_PASS_THRESHOLD = 70
DEFAULT_WARNING_THRESHOLD = 50


def _reason(message: str, severity: str, category: str) -> dict[str, Any]:
    return {"message": message, "severity": severity, "category": category, "enabled": True}


DEFAULT_REJECTION_CATALOG: dict[str, dict[str, dict[str, Any]]] = {
    "raster": {
        "VISUALLY_POOR": _reason("Image is visually unappealing", "high", "visual_quality"),
        "NOT_REALISTIC": _reason("Image does not look realistic", "high", "visual_quality"),
        "HUMAN_ANATOMY_ISSUES": _reason("Human anatomy issues detected (hands, feet, face)", "high", "content"),
        "IMAGE_QUALITY_POOR": _reason("Poor image quality (noise, pixels, broken details)", "high", "technical"),
        "BLUR_DETECTED": _reason("Image appears blurry or out of focus", "high", "technical"),
        "LOW_RESOLUTION": _reason("Resolution is below 4MP", "medium", "technical"),
        "WATERMARK_DETECTED": _reason("Logo or watermark detected", "high", "content"),
        "SUBJECT_ISSUES": _reason("Subject is damaged, half-cut, or unclear", "high", "content"),
        "OVER_EDITED": _reason("Image is over-edited or over-detailed", "medium", "visual_quality"),
        "NOT_STOCK_USABLE": _reason("Not suitable for stock usage", "high", "commercial"),
    },
    "svg": {
        "SHAPE_BROKEN": _reason("Shapes are broken or distorted", "high", "technical"),
        "MESSY_PATHS": _reason("Anchor points or paths are messy", "medium", "technical"),
        "UNNECESSARY_DETAIL": _reason("Too many unnecessary details", "low", "visual_quality"),
        "INCONSISTENT_STROKES": _reason("Stroke or fill is inconsistent", "medium", "technical"),
        "ZOOM_QUALITY_POOR": _reason("Design is not clean when zoomed", "medium", "technical"),
        "TEXT_NOT_OUTLINED": _reason("Text is not converted to outlines", "high", "technical"),
        "ICON_NOT_CLEAR": _reason("Icon or illustration is unclear", "medium", "visual_quality"),
        "NOT_COMMERCIAL_FRIENDLY": _reason("Not suitable for commercial use", "high", "commercial"),
    },
    "eps": {
        "FILE_ERROR": _reason("File opens with errors", "high", "technical"),
        "CLIPPED_ARTWORK": _reason("Artwork is clipped or broken", "high", "technical"),
        "EXCESSIVE_ANCHORS": _reason("Too many anchor points", "medium", "technical"),
        "STROKE_NOT_EXPANDED": _reason("Strokes are not expanded", "medium", "technical"),
        "RASTER_EMBEDDED": _reason("Raster elements are embedded", "high", "technical"),
        "HIDDEN_OBJECTS": _reason("Unnecessary hidden objects detected", "low", "technical"),
        "OVER_COMPLEX": _reason("Design is overly complex", "medium", "visual_quality"),
        "NOT_PRINT_READY": _reason("Not clean or print-ready", "high", "commercial"),
    },
    "ai": {
        "FILE_CORRUPTED": _reason("File is corrupted or won't open", "high", "technical"),
        "LINKED_IMAGE_MISSING": _reason("Linked images are missing", "high", "technical"),
        "HIDDEN_LAYERS": _reason("Hidden layers or junk objects present", "low", "technical"),
        "TEXT_NOT_OUTLINED": _reason("Text is not outlined", "high", "technical"),
        "ARTBOARD_MESSY": _reason("Artboard is messy", "medium", "technical"),
        "UNNECESSARY_EFFECTS": _reason("Unnecessary effects applied", "low", "visual_quality"),
        "NOT_CLEAN_VECTOR": _reason("Not a clean vector", "medium", "technical"),
        "NOT_STOCK_USABLE": _reason("Not suitable for stock usage", "high", "commercial"),
    },
    "video": {
        "VIDEO_QUALITY_POOR": _reason("Video quality is poor", "high", "technical"),
        "SHAKY_FOOTAGE": _reason("Footage is shaky or unstable", "high", "technical"),
        "BLUR_NOISE": _reason("Too much blur or noise", "medium", "technical"),
        "INCONSISTENT_LIGHTING": _reason("Lighting is inconsistent", "medium", "visual_quality"),
        "SUBJECT_NOT_CLEAR": _reason("Subject is not clear", "high", "content"),
        "UNREALISTIC_MOTION": _reason("Motion appears unrealistic or fake", "high", "visual_quality"),
        "WATERMARK_DETECTED": _reason("Logo or watermark detected", "high", "content"),
        "NOT_STOCK_USABLE": _reason("Not suitable for stock use", "high", "commercial"),
    },
}

_CATEGORY_BY_TYPE = {
    **{t: "raster" for t in ("jpg", "jpeg", "png", "webp", "gif", "avif", "heic", "tiff")},
    "svg": "svg",
    "eps": "eps",
    "ai": "ai",
    **{t: "video" for t in ("mp4", "mov", "webm", "avi", "wmv")},
}


def get_file_category(file_type: str) -> str:
    """Rejection catalog category for a file type; unknown types are raster."""
    return _CATEGORY_BY_TYPE.get((file_type or "").lower(), "raster")


def load_config() -> dict[str, Any] | None:
    """
    The active reviewer config row, or None to use the defaults.

    Any lookup failure (including no active row) falls back to defaults.
    """
    try:
        client = SupabaseClient.get_client()
        result = (
            client.table("file_reviewer_config")
            .select("*")
            .eq("is_active", True)
            .limit(1)
            .single()
            .execute()
        )
    except Exception as e:
        logger.warning(f"Could not load reviewer config, using defaults: {e}")
        return None

    logger.info("Loaded reviewer config from database")
    return result.data


def build_system_prompt(file_type: str, marketplaces: list[str], config: dict[str, Any] | None) -> str:
    config = config or {}
    category = get_file_category(file_type)
    catalog = config.get("rejection_reasons") or DEFAULT_REJECTION_CATALOG

    return build_reviewer_system_prompt(
        file_type=file_type,
        category=category,
        marketplaces=marketplaces,
        reasons=catalog.get(category) or {},
        marketplace_rules_text=format_marketplace_rules(marketplaces, config.get("marketplace_rules")),
        weights=config.get("scoring_weights") or DEFAULT_SCORING_WEIGHTS,
        pass_threshold=config.get("pass_threshold") or DEFAULT_PASS_THRESHOLD,
        warning_threshold=config.get("warning_threshold") or DEFAULT_WARNING_THRESHOLD,
    )


class FileReviewer:
    """
    Marketplace rejection review for a single file.

    Example:
        review = FileReviewer().review(ReviewFileRequest(
            imageUrl="https://.../frame.jpg", fileType="mp4", fileName="clip.mp4",
        ))
        review.verdict  # "pass" | "warning" | "fail"
    """

    def __init__(self, gateway: AIGateway | None = None):
        self.gateway = gateway or AIGateway()

    @staticmethod
    def validate(request: ReviewFileRequest) -> None:
        if not request.image_url or not request.file_type or not request.file_name:
            raise BadRequestError("Missing required fields: imageUrl, fileType, fileName")

    def review(self, request: ReviewFileRequest, config: dict[str, Any] | None = None) -> ReviewResult:
        """
        Args:
            request: File to review
            config: Reviewer config; loaded from the database when omitted

        Raises:
            BadRequestError: Missing inputs
            AIRateLimitedError / AICreditsExhaustedError / AIServiceError:
                Gateway failures or an unparseable reply
        """
        self.validate(request)
        logger.info(f"Reviewing file: {request.file_name} ({request.file_type})")

        if config is None:
            config = load_config()
        marketplaces = request.marketplaces or []
        system_prompt = build_system_prompt(request.file_type, marketplaces, config)

        try:
            reply = self.gateway.complete_text(
                system_prompt,
                image_message(REVIEW_USER_TEXT, request.image_url),
                temperature=settings.AI_TEMPERATURE,
                max_tokens=REVIEW_MAX_TOKENS,
            )
            analysis = extract_json_object(reply)
        except GatewayError as e:
            raise to_http_error(
                e,
                rate_limited="Rate limit exceeded. Please try again later.",
                credits_exhausted="AI credits exhausted. Please add credits to continue.",
                failed="AI analysis failed",
            )

        try:
            result = ReviewResult.model_validate(analysis)
        except ValidationError as e:
            logger.error(f"Malformed review reply: {e}")
            raise AIServiceError("AI analysis failed")

        logger.info(f"Analysis complete: {result.verdict} (score: {result.overall_score})")
        return result
