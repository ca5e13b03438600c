# =============================================================================
# core/models/tools.py - AI Tool Schemas
# =============================================================================
# Request/response contracts for the AI tools:
# - Metadata generator: titles, descriptions, keywords per marketplace
# - Image-to-prompt: a text prompt that recreates the image
# - File reviewer: rejection risk review before marketplace submission
# - SEO filenames: filenames derived from generated metadata
#
# Required fields are Optional here so the routes can answer with the
# dashboard's own 400 messages instead of a generic 422.
# =============================================================================

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from core.models.generation import MarketplaceMetadata
from lib.prompt_options import DetailLevel, PromptStyle, TrainingContext

DEFAULT_REVIEW_MARKETPLACES = ["Adobe Stock", "Freepik", "Shutterstock"]


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# =============================================================================
# Metadata Generator
# =============================================================================

class GenerateMetadataRequest(_CamelModel):
    """
    Inputs for metadata generation.

    Numeric limits are clamped, never rejected:
    keyword_count 1..50, title_max_chars 10..200, description_max_chars 50..500.
    """
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    marketplaces: Optional[list[str]] = None
    keyword_count: Optional[Any] = Field(default=30, alias="keywordCount")
    title_max_chars: Optional[Any] = Field(default=200, alias="titleMaxChars")
    description_max_chars: Optional[Any] = Field(default=500, alias="descriptionMaxChars")
    file_name: Optional[str] = Field(default=None, alias="fileName")
    display_name: Optional[str] = Field(default=None, alias="displayName")
    batch_id: Optional[str] = Field(default=None, alias="batchId")


class SeoFilename(BaseModel):
    marketplace: str
    filename: str


class GenerateMetadataResponse(_CamelModel):
    results: list[MarketplaceMetadata]
    generation_id: Optional[str] = Field(default=None, alias="generationId")
    filenames: list[SeoFilename] = Field(default_factory=list)


# =============================================================================
# Image to Prompt
# =============================================================================

class ImageToPromptRequest(_CamelModel):
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    style: PromptStyle = PromptStyle.GENERAL
    detail_level: DetailLevel = Field(default=DetailLevel.DETAILED, alias="detailLevel")
    training_context: Optional[TrainingContext] = Field(default=None, alias="trainingContext")


class PromptResult(_CamelModel):
    prompt: str
    negative_prompt: Optional[str] = Field(default=None, alias="negativePrompt")
    suggested_aspect_ratio: Optional[str] = Field(default=None, alias="suggestedAspectRatio")
    dominant_colors: list[str] = Field(default_factory=list, alias="dominantColors")
    art_style: Optional[str] = Field(default=None, alias="artStyle")


# =============================================================================
# File Reviewer
# =============================================================================

class ReviewFileRequest(_CamelModel):
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    file_type: Optional[str] = Field(default=None, alias="fileType")
    file_name: Optional[str] = Field(default=None, alias="fileName")
    marketplaces: list[str] = Field(default_factory=lambda: list(DEFAULT_REVIEW_MARKETPLACES))


class ReviewIssue(BaseModel):
    model_config = ConfigDict(extra="allow")

    code: str
    severity: str
    category: Optional[str] = None
    message: str
    details: Optional[str] = None


class ReviewResult(_CamelModel):
    """
    Parsed reviewer reply. Unknown keys from the model are kept.
    """
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    overall_score: Optional[float] = Field(default=None, alias="overallScore")
    verdict: Optional[str] = None
    issues: list[ReviewIssue] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    marketplace_notes: dict[str, str] = Field(default_factory=dict, alias="marketplaceNotes")


# =============================================================================
# SEO Filenames
# =============================================================================

class SeoFilenameMarketplace(BaseModel):
    name: str
    title: str = ""
    keywords: list[str] = Field(default_factory=list)


class SeoFilenamesRequest(_CamelModel):
    marketplaces: list[SeoFilenameMarketplace]
    original_extension: str = Field(alias="originalExtension")


class SeoFilenamesResponse(BaseModel):
    filenames: list[SeoFilename]
