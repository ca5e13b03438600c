# =============================================================================
# lib/seo_filename.py - SEO Filename Generator
# =============================================================================
# Builds marketplace-friendly filenames from generated metadata: the first
# words of the title followed by the shortest distinct keywords, title-cased
# and space separated.
#
# Example:
#   generate_seo_filename("Sunset over calm ocean waves", ["sea", "dusk"], "JPG")
#   # "Sunset Over Calm Sea Dusk.jpg"
# =============================================================================

import re
import time
from typing import Any

MAX_KEYWORD_LENGTH = 25
DEFAULT_MAX_KEYWORDS = 5
DEFAULT_MAX_LENGTH = 100
TITLE_WORD_COUNT = 3


def _capitalize_word(word: str) -> str:
    if not word:
        return ""
    return word[0].upper() + word[1:].lower()


def sanitize_for_filename(text: str) -> str:
    """
    Reduce text to capitalized alphanumeric words separated by single spaces.

    Example:
        sanitize_for_filename("hello_world--TEST!")  # "Hello World Test"
    """
    text = re.sub(r"[_-]+", " ", text)
    text = re.sub(r"[^a-zA-Z0-9\s]", "", text)
    text = re.sub(r"\s+", " ", text).strip()
    return " ".join(_capitalize_word(word) for word in text.split(" ") if word)


def extract_top_keywords(keywords: list[str], max_count: int = DEFAULT_MAX_KEYWORDS) -> list[str]:
    """
    Pick the shortest usable keywords (shorter terms search better).

    Keywords over 25 characters are skipped; ties keep their input order.
    """
    candidates = sorted(
        (k for k in keywords if len(k) <= MAX_KEYWORD_LENGTH),
        key=len,
    )

    seen: set[str] = set()
    result: list[str] = []
    for keyword in candidates:
        sanitized = sanitize_for_filename(keyword)
        if sanitized and sanitized not in seen:
            seen.add(sanitized)
            result.append(sanitized)
            if len(result) >= max_count:
                break
    return result


def generate_seo_filename(
    title: str,
    keywords: list[str],
    original_extension: str,
    max_length: int = DEFAULT_MAX_LENGTH,
) -> str:
    """
    Generate an SEO-optimized filename for one marketplace.

    Args:
        title: Generated title
        keywords: Generated keywords
        original_extension: Extension of the uploaded file, with or without dot
        max_length: Maximum length of the name part (extension excluded)

    Returns:
        Filename such as "Sunset Over Calm Sea Dusk.jpg"
    """
    title_words = sanitize_for_filename(title).split(" ")[:TITLE_WORD_COUNT]
    parts = title_words + extract_top_keywords(keywords, DEFAULT_MAX_KEYWORDS)

    unique_parts: list[str] = []
    seen: set[str] = set()
    for part in parts:
        lowered = part.lower()
        if part and lowered not in seen:
            seen.add(lowered)
            unique_parts.append(part)

    filename = ""
    for part in unique_parts:
        candidate = f"{filename} {part}" if filename else part
        if len(candidate) > max_length:
            break
        filename = candidate

    if not filename:
        filename = f"Image {int(time.time() * 1000)}"

    extension = original_extension.lower()
    if extension.startswith("."):
        extension = extension[1:]
    return f"{filename}.{extension}"


def generate_all_seo_filenames(
    marketplaces: list[dict[str, Any]],
    original_extension: str,
) -> list[dict[str, str]]:
    """
    Generate filenames for every marketplace result at once.

    Args:
        marketplaces: Dicts with "name", "title" and "keywords"
        original_extension: Extension of the uploaded file

    Returns:
        [{"marketplace": name, "filename": filename}, ...] in input order
    """
    return [
        {
            "marketplace": mp["name"],
            "filename": generate_seo_filename(
                title=mp.get("title", ""),
                keywords=mp.get("keywords") or [],
                original_extension=original_extension,
            ),
        }
        for mp in marketplaces
    ]
