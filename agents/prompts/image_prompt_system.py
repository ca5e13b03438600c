# =============================================================================
# agents/prompts/image_prompt_system.py - Image-to-Prompt Prompts
# =============================================================================
# System prompt and forced tool definition for turning an image into a text
# prompt for an AI image generator. Style, detail level and the user's
# training context come from lib/prompt_options.py.
# =============================================================================

from __future__ import annotations

from typing import Any

from lib.prompt_options import (
    DETAIL_INSTRUCTIONS,
    STYLE_INSTRUCTIONS,
    DetailLevel,
    PromptStyle,
    TrainingContext,
    render_training_context,
)

PROMPT_TOOL_NAME = "generate_prompt"

IMAGE_PROMPT_USER_TEXT = "Analyze this image and generate a detailed prompt that could recreate it."


def build_image_prompt_system_prompt(
    style: PromptStyle,
    detail_level: DetailLevel,
    training: TrainingContext | None = None,
) -> str:
    return f"""You are an expert AI image prompt engineer. Analyze the provided image and generate a text prompt that could be used to recreate a similar image using AI image generators.

{STYLE_INSTRUCTIONS[style]}

{DETAIL_INSTRUCTIONS[detail_level]}

Focus on:
1. Main subject and its characteristics
2. Background and environment
3. Lighting conditions and shadows
4. Color palette and tones
5. Art style and medium
6. Composition and framing
7. Mood and atmosphere
8. Any unique or distinctive elements

Be specific and descriptive. The goal is to create a prompt that would generate an image as close to the original as possible.{render_training_context(training)}"""


PROMPT_TOOL: dict[str, Any] = {
    "type": "function",
    "function": {
        "name": PROMPT_TOOL_NAME,
        "description": "Generate an AI image prompt based on the analyzed image",
        "parameters": {
            "type": "object",
            "properties": {
                "prompt": {
                    "type": "string",
                    "description": "The generated prompt text",
                },
                "negativePrompt": {
                    "type": "string",
                    "description": "Optional negative prompt for Stable Diffusion style (things to avoid)",
                },
                "suggestedAspectRatio": {
                    "type": "string",
                    "description": "Suggested aspect ratio based on the image (e.g., 16:9, 1:1, 4:3)",
                },
                "dominantColors": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "List of dominant colors in the image",
                },
                "artStyle": {
                    "type": "string",
                    "description": "Detected or suggested art style",
                },
            },
            "required": ["prompt"],
            "additionalProperties": False,
        },
    },
}
