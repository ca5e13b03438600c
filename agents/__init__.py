# =============================================================================
# agents/ - AI Tools
# =============================================================================
# This package contains the AI-backed tools of the dashboard:
# - metadata_generator.py: Titles, descriptions and keywords per marketplace
# - prompt_generator.py: Image-to-prompt for image generators
# - file_reviewer.py: Marketplace rejection review
#
# All of them talk to the model through gateway.py (one call, no retries).
#
# Prompts:
# - prompts/: System prompts and tool schemas for each tool
# =============================================================================

from agents.file_reviewer import FileReviewer, get_file_category
from agents.gateway import AIGateway, GatewayError
from agents.metadata_generator import MetadataGenerator, clamp_setting
from agents.prompt_generator import PromptGenerator

__all__ = [
    # Gateway
    "AIGateway",
    "GatewayError",
    # Tools
    "FileReviewer",
    "MetadataGenerator",
    "PromptGenerator",
    # Helpers
    "clamp_setting",
    "get_file_category",
]
