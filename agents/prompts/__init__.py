# =============================================================================
# agents/prompts/ - System Prompts for the AI Tools
# =============================================================================
# This package contains the prompts for each tool:
# - metadata_system.py: Marketplace metadata generator (forced tool call)
# - image_prompt_system.py: Image-to-prompt (forced tool call)
# - reviewer_system.py: File reviewer (JSON reply)
# =============================================================================

from agents.prompts.image_prompt_system import (
    IMAGE_PROMPT_USER_TEXT,
    PROMPT_TOOL,
    build_image_prompt_system_prompt,
)
from agents.prompts.metadata_system import (
    MARKETPLACE_GUIDELINES,
    build_metadata_system_prompt,
    build_metadata_tool,
    build_metadata_user_prompt,
)
from agents.prompts.reviewer_system import (
    REVIEW_USER_TEXT,
    build_reviewer_system_prompt,
    format_marketplace_rules,
)

__all__ = [
    "IMAGE_PROMPT_USER_TEXT",
    "PROMPT_TOOL",
    "build_image_prompt_system_prompt",
    "MARKETPLACE_GUIDELINES",
    "build_metadata_system_prompt",
    "build_metadata_tool",
    "build_metadata_user_prompt",
    "REVIEW_USER_TEXT",
    "build_reviewer_system_prompt",
    "format_marketplace_rules",
]
