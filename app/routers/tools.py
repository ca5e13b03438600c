# =============================================================================
# app/routers/tools.py - Tool Endpoints
# =============================================================================
# The dashboard's tools:
# - POST /preprocess: SVG/video -> raster image ready for analysis
# - GET  /prompt-options: styles and detail levels for image-to-prompt
# - POST /seo-filenames: filenames from generated metadata
# - POST /generate-metadata: AI titles/descriptions/keywords (credits)
# - POST /image-to-prompt: AI prompt for an image (1 credit)
# - POST /review-file: AI rejection review (1 credit)
#
# AI endpoints check credits before calling the model and deduct only after
# a successful result. Admins and unlimited plans are never charged.
# =============================================================================

import logging
from urllib.parse import urlparse

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import Response

from agents.file_reviewer import FileReviewer
from agents.metadata_generator import MetadataGenerator
from agents.prompt_generator import PromptGenerator
from app.auth import AuthUser, get_current_user
from app.config import settings
from app.dependencies import GatewayDep
from app.exceptions import FileTooLargeError, MediaConversionError, UnsupportedMediaTypeError
from core.models.tools import (
    GenerateMetadataRequest,
    GenerateMetadataResponse,
    ImageToPromptRequest,
    PromptResult,
    ReviewFileRequest,
    ReviewResult,
    SeoFilenamesRequest,
    SeoFilenamesResponse,
)
from core.services.credit_service import CreditService
from core.services.generation_service import GenerationService
from lib.media import (
    MediaProcessingError,
    UnsupportedMediaError,
    get_file_extension,
    process_file_for_analysis,
)
from lib.prompt_options import get_prompt_options
from lib.seo_filename import generate_all_seo_filenames

logger = logging.getLogger(__name__)

router = APIRouter()

DEFAULT_IMAGE_EXTENSION = "jpg"


def _source_extension(file_name: str | None, image_url: str | None) -> str:
    """Extension of the analyzed file, from its name or else its URL path."""
    extension = get_file_extension(file_name or "")
    if not extension and image_url:
        extension = get_file_extension(urlparse(image_url).path.rsplit("/", 1)[-1])
    return extension or DEFAULT_IMAGE_EXTENSION


# =============================================================================
# Media
# =============================================================================

@router.post("/preprocess")
def preprocess_file(
    file: UploadFile = File(..., description="Image, SVG or video to prepare for analysis"),
    user: AuthUser = Depends(get_current_user),
):
    """
    Convert an upload into an image the AI tools can analyze.

    Raster images come back unchanged; SVGs are rasterized to PNG and
    videos are reduced to one JPEG frame. EPS/AI files are rejected with
    415 and must be converted by the user.

    Response headers:
        X-Was-Converted: "true" or "false"
        X-Original-Type: input content type, "svg" or "video"
    """
    data = file.file.read()

    if len(data) > settings.max_upload_size_bytes:
        raise FileTooLargeError(len(data) / (1024 * 1024), settings.MAX_UPLOAD_SIZE_MB)

    filename = file.filename or ""
    logger.info(f"Preprocessing {filename} ({file.content_type}, {len(data)} bytes) for user {user.id}")

    try:
        processed = process_file_for_analysis(
            data,
            filename,
            file.content_type,
            frame_time_seconds=settings.VIDEO_FRAME_TIME_SECONDS,
            timeout=settings.FFMPEG_TIMEOUT_SECONDS,
        )
    except UnsupportedMediaError as e:
        raise UnsupportedMediaTypeError(e.message, suggestion=e.suggestion, details=e.details)
    except MediaProcessingError as e:
        logger.warning(f"Could not convert {filename}: {e.message}")
        raise MediaConversionError(e.message)

    return Response(
        content=processed.data,
        media_type=processed.content_type,
        headers={
            "X-Was-Converted": "true" if processed.was_converted else "false",
            "X-Original-Type": processed.original_type,
        },
    )


# =============================================================================
# Utilities
# =============================================================================

@router.get("/prompt-options")
async def prompt_options():
    """Available prompt styles and detail levels."""
    return get_prompt_options()


@router.post("/seo-filenames", response_model=SeoFilenamesResponse)
async def seo_filenames(request: SeoFilenamesRequest):
    """SEO-friendly filenames for each marketplace's generated metadata."""
    filenames = generate_all_seo_filenames(
        [m.model_dump() for m in request.marketplaces],
        request.original_extension,
    )
    return SeoFilenamesResponse(filenames=filenames)


# =============================================================================
# AI Tools
# =============================================================================

@router.post("/generate-metadata", response_model=GenerateMetadataResponse, response_model_by_alias=True)
def generate_metadata(
    request: GenerateMetadataRequest,
    gateway: GatewayDep,
    user: AuthUser = Depends(get_current_user),
):
    """
    Generate titles, descriptions and keywords for each marketplace.

    Costs one credit per marketplace. The result is saved to the user's
    generation history.
    """
    generator = MetadataGenerator(gateway)
    generator.validate(request)

    needed = len(request.marketplaces)
    status = CreditService.get_credit_status(user.id)
    CreditService.ensure_credits(status, needed)

    results = generator.generate(request)

    generation_id = GenerationService.create_generation(
        user.id,
        request.image_url,
        results,
        file_name=request.file_name,
        display_name=request.display_name,
        batch_id=request.batch_id,
    )
    CreditService.deduct_credits(status, needed)

    filenames = generate_all_seo_filenames(
        [{"name": r.marketplace, "title": r.title, "keywords": r.keywords} for r in results],
        _source_extension(request.file_name, request.image_url),
    )

    return GenerateMetadataResponse(
        results=results,
        generation_id=generation_id,
        filenames=filenames,
    )


@router.post("/image-to-prompt", response_model=PromptResult, response_model_by_alias=True)
def image_to_prompt(
    request: ImageToPromptRequest,
    gateway: GatewayDep,
    user: AuthUser = Depends(get_current_user),
):
    """Generate a prompt that recreates the image. Costs one credit."""
    generator = PromptGenerator(gateway)
    generator.validate(request)

    status = CreditService.get_credit_status(user.id)
    CreditService.ensure_credits(status)

    result = generator.generate(request)
    CreditService.deduct_credits(status)
    return result


@router.post("/review-file", response_model=ReviewResult, response_model_by_alias=True)
def review_file(
    request: ReviewFileRequest,
    gateway: GatewayDep,
    user: AuthUser = Depends(get_current_user),
):
    """Review a file for marketplace rejection risks. Costs one credit."""
    reviewer = FileReviewer(gateway)
    reviewer.validate(request)

    status = CreditService.get_credit_status(user.id)
    CreditService.ensure_credits(status)

    result = reviewer.review(request)
    CreditService.deduct_credits(status)
    return result
