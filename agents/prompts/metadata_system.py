# =============================================================================
# agents/prompts/metadata_system.py - Metadata Generator Prompts
# =============================================================================
# System/user prompts and the forced tool definition for generating
# marketplace metadata (title, description, keywords) from an image.
#
# Each marketplace gets its own style guidelines; unknown marketplaces fall
# back to a generic set.
#
# Usage:
#   system = build_metadata_system_prompt(["Adobe Stock"], 30, 200, 500)
#   user = build_metadata_user_prompt(image_url, ["Adobe Stock"], 30, 200, 500)
#   tool = build_metadata_tool(30, 200, 500)
# =============================================================================

from __future__ import annotations

from typing import Any

METADATA_TOOL_NAME = "generate_metadata"

MARKETPLACE_GUIDELINES: dict[str, dict[str, str]] = {
    "Adobe Stock": {
        "title_style": "Professional, editorial-style. Focus on clarity and licensing appeal.",
        "keyword_focus": (
            "Premium, licensing-friendly terms. Include technical photography terms, "
            "professional contexts, and editorial concepts."
        ),
        "description_style": (
            "Professional, licensing-focused. Describe the image content, mood, and potential "
            "commercial uses. Include subject details, atmosphere, and business applications."
        ),
    },
    "Shutterstock": {
        "title_style": "SEO-optimized, highly descriptive. Front-load important keywords.",
        "keyword_focus": (
            "High-volume search terms. Include popular variations, trending topics, "
            "and broad commercial appeal terms."
        ),
        "description_style": (
            "SEO-rich description. Focus on searchable content, visual elements, and diverse "
            "use cases. Include style, mood, and context."
        ),
    },
    "Freepik": {
        "title_style": "Creative, resource-focused. Emphasize design utility and versatility.",
        "keyword_focus": (
            "Design and graphic terms. Include resource types, design styles, "
            "and creative application contexts."
        ),
        "description_style": (
            "Design-focused description. Highlight graphic design applications, versatility, "
            "and creative possibilities. Mention suitable projects and formats."
        ),
    },
}

DEFAULT_GUIDELINES = {
    "title_style": "Descriptive and professional",
    "keyword_focus": "Relevant search terms",
    "description_style": "Detailed description of image content and use cases",
}


def marketplace_guidelines(marketplace: str) -> dict[str, str]:
    return MARKETPLACE_GUIDELINES.get(marketplace, DEFAULT_GUIDELINES)


def _marketplace_section(marketplace: str) -> str:
    guidelines = marketplace_guidelines(marketplace)
    return f"""
### {marketplace}
- Title style: {guidelines["title_style"]}
- Keyword focus: {guidelines["keyword_focus"]}
- Description style: {guidelines["description_style"]}"""


def build_metadata_system_prompt(
    marketplaces: list[str],
    keyword_count: int,
    title_max_chars: int,
    description_max_chars: int,
) -> str:
    marketplace_instructions = "\n".join(_marketplace_section(mp) for mp in marketplaces)

    return f"""You are an expert stock photography metadata specialist with deep knowledge of Adobe Stock, Shutterstock, and Freepik marketplaces. Your job is to analyze images and generate optimized titles, descriptions, and keywords that maximize discoverability and sales.

## Guidelines for Analysis
1. Carefully examine the image for: main subjects, colors, mood, composition, style, setting, and potential use cases
2. Consider both literal content and conceptual/emotional themes
3. Generate marketplace-specific metadata optimized for each platform's search algorithms

## Marketplace-Specific Guidelines
{marketplace_instructions}

## Output Requirements
- Titles: 1-{title_max_chars} characters, descriptive, no generic filler words. MUST generate a title.
- Descriptions: 1-{description_max_chars} characters, detailed description of image content, style, mood, and potential use cases. MUST generate a description.
- Keywords: Exactly {keyword_count} unique, relevant terms per marketplace. Include:
  - Main subjects and objects
  - Colors and visual elements
  - Mood and atmosphere
  - Style and composition terms
  - Potential use cases and contexts
  - Related concepts and themes
  - Technical photography terms where relevant

IMPORTANT: You MUST provide all three fields (title, description, keywords) for each marketplace. Never leave any field empty."""


def build_metadata_user_prompt(
    image_url: str,
    marketplaces: list[str],
    keyword_count: int,
    title_max_chars: int,
    description_max_chars: int,
) -> str:
    return f"""Analyze this image and generate optimized metadata for the following marketplaces: {", ".join(marketplaces)}.

Image URL: {image_url}

For each marketplace, you MUST generate:
1. A title (1-{title_max_chars} characters)
2. A description (1-{description_max_chars} characters)
3. Exactly {keyword_count} keywords

Follow the platform-specific guidelines for each marketplace."""


def build_metadata_tool(
    keyword_count: int,
    title_max_chars: int,
    description_max_chars: int,
) -> dict[str, Any]:
    """Function-calling schema the model is forced to answer with."""
    return {
        "type": "function",
        "function": {
            "name": METADATA_TOOL_NAME,
            "description": "Generate marketplace-optimized titles, descriptions, and keywords for a stock image",
            "parameters": {
                "type": "object",
                "properties": {
                    "results": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "marketplace": {
                                    "type": "string",
                                    "description": "The marketplace name (Adobe Stock, Shutterstock, or Freepik)",
                                },
                                "title": {
                                    "type": "string",
                                    "description": f"SEO-optimized title, 1-{title_max_chars} characters. Required field.",
                                },
                                "description": {
                                    "type": "string",
                                    "description": (
                                        "Detailed description of image content, style, and use cases, "
                                        f"1-{description_max_chars} characters. Required field."
                                    ),
                                },
                                "keywords": {
                                    "type": "array",
                                    "items": {"type": "string"},
                                    "description": f"Array of exactly {keyword_count} relevant keywords",
                                },
                            },
                            "required": ["marketplace", "title", "description", "keywords"],
                            "additionalProperties": False,
                        },
                    },
                },
                "required": ["results"],
                "additionalProperties": False,
            },
        },
    }
