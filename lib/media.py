# =============================================================================
# lib/media.py - Media Pre-Processor
# =============================================================================
# Turns an arbitrary upload into a raster image the AI gateway can analyze:
# - Raster images (JPEG/PNG/WebP/GIF) pass through untouched
# - SVG is rasterized at its intrinsic size over a white background (PNG)
# - Video yields one JPEG frame, seeking to min(requested, 10% of duration)
# - EPS/AI are rejected with an instruction to convert them first
#
# Video decoding shells out to ffmpeg/ffprobe; SVG rendering uses CairoSVG
# and compositing/encoding uses Pillow.
#
# Usage:
#   from lib.media import process_file_for_analysis
#   media = process_file_for_analysis(content, "clip.mp4", "video/mp4")
#   media.data, media.content_type, media.was_converted
# =============================================================================

from __future__ import annotations

import io
import logging
import os
import re
import subprocess
import tempfile
from dataclasses import dataclass
from xml.etree import ElementTree

from PIL import Image

from lib.utils import ApplicationError

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

ANALYZABLE_CONTENT_TYPES = ("image/jpeg", "image/png", "image/webp", "image/gif")

RASTER_EXTENSIONS = ("jpg", "jpeg", "png", "webp", "gif", "avif", "heic", "tiff")
VIDEO_EXTENSIONS = ("mp4", "webm", "mov", "avi", "wmv")
UNSUPPORTED_VECTOR_EXTENSIONS = ("eps", "ai")

# Extensions the file reviewer accepts at all
SUPPORTED_REVIEW_EXTENSIONS = RASTER_EXTENSIONS + ("svg", "mp4", "mov", "webm")

DEFAULT_SVG_SIZE = 1024
DEFAULT_FRAME_TIME_SECONDS = 1.0
FRAME_DURATION_FRACTION = 0.1
JPEG_QUALITY = 90

# Unitless or px lengths only; anything else falls back to the default size
_SVG_LENGTH_PATTERN = re.compile(r"^\s*(\d*\.?\d+)\s*(px)?\s*$")


# =============================================================================
# Errors
# =============================================================================

class MediaProcessingError(ApplicationError):
    """A file could not be decoded or converted."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("code", "MEDIA_PROCESSING_FAILED")
        super().__init__(message, **kwargs)


class UnsupportedMediaError(MediaProcessingError):
    """The format cannot be converted here and must be converted by the user."""

    def __init__(self, extension: str):
        super().__init__(
            f"{extension.upper()} files cannot be analyzed directly. "
            "Please convert to PNG/JPG first.",
            code="UNSUPPORTED_MEDIA_FORMAT",
            suggestion="Export the file as PNG or JPG from your design tool and upload that instead",
            details={"extension": extension},
        )


# =============================================================================
# Result
# =============================================================================

@dataclass
class ProcessedMedia:
    """Bytes ready for AI analysis plus what happened to them."""

    data: bytes
    content_type: str
    was_converted: bool
    original_type: str


# =============================================================================
# File Type Helpers
# =============================================================================

def get_file_extension(filename: str) -> str:
    """Lower-cased extension without the dot, or "" when there is none."""
    if "." not in filename:
        return ""
    return filename.rsplit(".", 1)[-1].lower()


def is_supported_file_type(filename: str) -> bool:
    """Whether the file reviewer accepts this file at all."""
    return get_file_extension(filename) in SUPPORTED_REVIEW_EXTENSIONS


def requires_conversion(filename: str) -> bool:
    """SVG and video need to be turned into a raster image first."""
    return get_file_extension(filename) in ("svg",) + VIDEO_EXTENSIONS


def is_unsupported_for_analysis(filename: str) -> bool:
    return get_file_extension(filename) in UNSUPPORTED_VECTOR_EXTENSIONS


def format_file_size(size_bytes: int) -> str:
    """
    Human readable size.

    Example:
        format_file_size(1536)  # "1.5 KB"
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    if size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    return f"{size_bytes / (1024 * 1024):.1f} MB"


# =============================================================================
# Video Frame Extraction
# =============================================================================

def frame_seek_time(duration: float, requested: float = DEFAULT_FRAME_TIME_SECONDS) -> float:
    """
    Seek target for frame capture: the requested time, or 10% into the
    video when that is earlier (short clips).

    Example:
        frame_seek_time(5.0, 1.0)   # 0.5
        frame_seek_time(60.0, 1.0)  # 1.0
    """
    return min(requested, duration * FRAME_DURATION_FRACTION)


def probe_duration(path: str, timeout: float = 30.0) -> float:
    """
    Read a video's duration in seconds with ffprobe.

    Raises:
        MediaProcessingError: If ffprobe is missing or cannot read the file
    """
    cmd = [
        "ffprobe",
        "-v", "error",
        "-show_entries", "format=duration",
        "-of", "default=noprint_wrappers=1:nokey=1",
        path,
    ]

    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
    except FileNotFoundError:
        raise MediaProcessingError(
            "Could not load video file",
            suggestion="Install FFmpeg (ffprobe must be on PATH)",
        )
    except subprocess.TimeoutExpired:
        raise MediaProcessingError(
            "Could not load video file",
            details={"error": f"ffprobe timed out after {timeout} seconds"},
        )

    if result.returncode != 0:
        logger.warning(f"ffprobe failed: {result.stderr.strip()[:200]}")
        raise MediaProcessingError("Could not load video file")

    try:
        return float(result.stdout.strip())
    except ValueError:
        raise MediaProcessingError(
            "Could not load video file",
            details={"error": f"Unreadable duration: {result.stdout.strip()[:50]}"},
        )


def _decode_frame(path: str, seek_seconds: float, timeout: float) -> bytes:
    """Decode a single frame at seek_seconds as PNG bytes via ffmpeg."""
    cmd = [
        "ffmpeg",
        "-v", "error",
        "-ss", f"{seek_seconds:.3f}",
        "-i", path,
        "-frames:v", "1",
        "-f", "image2pipe",
        "-vcodec", "png",
        "pipe:1",
    ]

    try:
        result = subprocess.run(cmd, capture_output=True, timeout=timeout)
    except FileNotFoundError:
        raise MediaProcessingError(
            "Could not load video file",
            suggestion="Install FFmpeg (ffmpeg must be on PATH)",
        )
    except subprocess.TimeoutExpired:
        raise MediaProcessingError(
            "Could not extract video frame",
            details={"error": f"ffmpeg timed out after {timeout} seconds"},
        )

    if result.returncode != 0 or not result.stdout:
        logger.warning(f"ffmpeg frame decode failed: {result.stderr[:200]!r}")
        raise MediaProcessingError("Could not extract video frame")

    return result.stdout


def extract_video_frame(
    data: bytes,
    time_seconds: float = DEFAULT_FRAME_TIME_SECONDS,
    extension: str = "mp4",
    timeout: float = 30.0,
) -> bytes:
    """
    Extract one frame from a video and encode it as JPEG (quality 90).

    Args:
        data: Raw video bytes
        time_seconds: Requested capture time
        extension: Container extension, used as the temp file suffix
        timeout: Per-subprocess timeout

    Returns:
        JPEG bytes

    Raises:
        MediaProcessingError: If the video cannot be loaded or decoded
    """
    fd, path = tempfile.mkstemp(suffix=f".{extension or 'mp4'}")
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)

        duration = probe_duration(path, timeout=timeout)
        seek = frame_seek_time(duration, time_seconds)
        logger.debug(f"Video duration {duration:.2f}s, capturing frame at {seek:.2f}s")

        frame_png = _decode_frame(path, seek, timeout)
    finally:
        os.unlink(path)

    try:
        frame = Image.open(io.BytesIO(frame_png)).convert("RGB")
    except Exception as e:
        raise MediaProcessingError("Could not extract video frame", details={"error": str(e)})

    buffer = io.BytesIO()
    frame.save(buffer, format="JPEG", quality=JPEG_QUALITY)
    return buffer.getvalue()


# =============================================================================
# SVG Rasterization
# =============================================================================

def _parse_svg_length(value: str | None) -> int | None:
    if not value:
        return None
    match = _SVG_LENGTH_PATTERN.match(value)
    if not match:
        return None
    size = round(float(match.group(1)))
    return size if size > 0 else None


def svg_dimensions(svg_text: str) -> tuple[int, int]:
    """
    Intrinsic (width, height) of an SVG document.

    Each missing or non-pixel dimension defaults to 1024 independently.

    Raises:
        MediaProcessingError: If the document is not valid XML
    """
    try:
        root = ElementTree.fromstring(svg_text)
    except ElementTree.ParseError as e:
        raise MediaProcessingError("Could not load SVG file", details={"error": str(e)})

    width = _parse_svg_length(root.get("width")) or DEFAULT_SVG_SIZE
    height = _parse_svg_length(root.get("height")) or DEFAULT_SVG_SIZE
    return width, height


def _rasterize_svg(svg_bytes: bytes, width: int, height: int) -> bytes:
    """Render SVG to an RGBA PNG at exactly width x height."""
    # cairosvg loads the native cairo library on import
    import cairosvg

    return cairosvg.svg2png(
        bytestring=svg_bytes,
        output_width=width,
        output_height=height,
    )


def convert_svg_to_png(data: bytes) -> bytes:
    """
    Rasterize an SVG and flatten it onto a white background.

    Transparent regions become opaque white so the AI sees the same thing a
    marketplace preview would.

    Raises:
        MediaProcessingError: If the SVG cannot be read or rendered
    """
    try:
        svg_text = data.decode("utf-8")
    except UnicodeDecodeError:
        raise MediaProcessingError("Could not read SVG file")

    width, height = svg_dimensions(svg_text)

    try:
        rendered = _rasterize_svg(svg_text.encode("utf-8"), width, height)
        overlay = Image.open(io.BytesIO(rendered)).convert("RGBA")
    except MediaProcessingError:
        raise
    except Exception as e:
        raise MediaProcessingError("Could not load SVG file", details={"error": str(e)})

    if overlay.size != (width, height):
        overlay = overlay.resize((width, height))

    canvas = Image.new("RGB", (width, height), "white")
    canvas.paste(overlay, (0, 0), mask=overlay)

    buffer = io.BytesIO()
    canvas.save(buffer, format="PNG")
    return buffer.getvalue()


# =============================================================================
# Entry Point
# =============================================================================

def process_file_for_analysis(
    data: bytes,
    filename: str,
    content_type: str | None = None,
    frame_time_seconds: float = DEFAULT_FRAME_TIME_SECONDS,
    timeout: float = 30.0,
) -> ProcessedMedia:
    """
    Prepare an upload for AI analysis.

    Args:
        data: Raw file bytes
        filename: Original filename (extension is used as a fallback signal)
        content_type: MIME type reported by the client, if any
        frame_time_seconds: Requested capture time for videos
        timeout: Per-subprocess timeout for ffmpeg/ffprobe

    Returns:
        ProcessedMedia with the bytes to send

    Raises:
        UnsupportedMediaError: For EPS/AI files
        MediaProcessingError: If a conversion fails
    """
    content_type = (content_type or "").lower()
    extension = get_file_extension(filename)

    if content_type in ANALYZABLE_CONTENT_TYPES:
        return ProcessedMedia(
            data=data,
            content_type=content_type,
            was_converted=False,
            original_type=content_type,
        )

    if content_type == "image/svg+xml" or extension == "svg":
        logger.info(f"Rasterizing SVG {filename}")
        return ProcessedMedia(
            data=convert_svg_to_png(data),
            content_type="image/png",
            was_converted=True,
            original_type="svg",
        )

    if content_type.startswith("video/") or extension in VIDEO_EXTENSIONS:
        logger.info(f"Extracting frame from video {filename}")
        return ProcessedMedia(
            data=extract_video_frame(data, frame_time_seconds, extension, timeout),
            content_type="image/jpeg",
            was_converted=True,
            original_type="video",
        )

    if extension in UNSUPPORTED_VECTOR_EXTENSIONS:
        raise UnsupportedMediaError(extension)

    # Unknown type - let the gateway decide
    return ProcessedMedia(
        data=data,
        content_type=content_type,
        was_converted=False,
        original_type=content_type,
    )
