# =============================================================================
# lib/prompt_options.py - Image-to-Prompt Options
# =============================================================================
# Prompt styles and detail levels offered by the image-to-prompt tool, the
# instruction text each one contributes to the system prompt, and rendering
# of the user's training context (preferences, examples, feedback).
#
# Everything here is pure: no I/O, no settings.
# =============================================================================

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class PromptStyle(str, Enum):
    """Target image generator for the produced prompt."""
    MIDJOURNEY = "midjourney"
    DALLE = "dalle"
    STABLE_DIFFUSION = "stable-diffusion"
    GENERAL = "general"


class DetailLevel(str, Enum):
    """How long and technical the produced prompt should be."""
    BASIC = "basic"
    DETAILED = "detailed"
    EXPERT = "expert"


PROMPT_STYLES = [
    {"value": "midjourney", "label": "Midjourney", "description": "Optimized for MJ v6 with parameters"},
    {"value": "dalle", "label": "DALL-E", "description": "Natural language for OpenAI models"},
    {"value": "stable-diffusion", "label": "Stable Diffusion", "description": "Tag-based with weights"},
    {"value": "general", "label": "General", "description": "Universal prompt format"},
]

DETAIL_LEVELS = [
    {"value": "basic", "label": "Basic", "description": "50-100 words, essential elements"},
    {"value": "detailed", "label": "Detailed", "description": "150-250 words, comprehensive"},
    {"value": "expert", "label": "Expert", "description": "300+ words, full technical breakdown"},
]


# =============================================================================
# Instruction Text
# =============================================================================

STYLE_INSTRUCTIONS = {
    PromptStyle.MIDJOURNEY: """Generate a prompt optimized for Midjourney v6. Include:
- Natural language description of the scene
- Style references (photography, illustration, 3D render, etc.)
- Lighting and atmosphere details
- Optional parameters at the end like --ar 16:9, --stylize 500, --chaos 20
- Use :: for weight emphasis where appropriate""",
    PromptStyle.DALLE: """Generate a prompt optimized for DALL-E 3. Include:
- Clear, descriptive natural language
- Specific art style or medium references
- Mood and atmosphere descriptions
- Composition and framing details
- Avoid technical parameters, focus on vivid descriptions""",
    PromptStyle.STABLE_DIFFUSION: """Generate a prompt optimized for Stable Diffusion. Include:
- Comma-separated tags and descriptors
- Quality boosters like "masterpiece, best quality, highly detailed"
- Style tags (photorealistic, anime, oil painting, etc.)
- Emphasis using (parentheses) for important elements
- Optionally suggest a negative prompt for common issues""",
    PromptStyle.GENERAL: """Generate a universal prompt that works across AI image generators. Include:
- Clear subject description
- Art style and medium
- Lighting and color palette
- Composition and perspective
- Mood and atmosphere""",
}

DETAIL_INSTRUCTIONS = {
    DetailLevel.BASIC: "Keep the prompt concise, around 50-100 words. Focus on the essential elements only.",
    DetailLevel.DETAILED: "Provide a comprehensive prompt of 150-250 words. Include style, lighting, composition, and mood.",
    DetailLevel.EXPERT: (
        "Generate an extensive prompt of 300+ words. Include technical details about lighting, "
        "camera angles, color grading, artistic influences, and detailed composition analysis."
    ),
}

LENGTH_INSTRUCTIONS = {
    "short": "Keep the prompt concise and brief.",
    "medium": "Use a moderate length for the prompt.",
    "long": "Be thorough and extensive in your prompt.",
}

DEFAULT_TRAINING_STRENGTH = 0.75
FEEDBACK_PROMPT_LIMIT = 2
FEEDBACK_PROMPT_CHARS = 100


# =============================================================================
# Training Context
# =============================================================================

class PromptPreferences(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    tone: str | None = None
    length: str | None = None
    include_keywords: list[str] = Field(default_factory=list, alias="includeKeywords")
    exclude_keywords: list[str] = Field(default_factory=list, alias="excludeKeywords")
    custom_instructions: str | None = Field(default=None, alias="customInstructions")


class PromptExample(BaseModel):
    prompt: str
    style: str = "general"
    notes: str | None = None


class TrainingContext(BaseModel):
    """
    Per-user tuning for the image-to-prompt tool.

    Sent by the client as camelCase JSON; every part is optional.
    """

    model_config = ConfigDict(populate_by_name=True)

    training_strength: float | None = Field(default=None, ge=0.0, le=1.0, alias="trainingStrength")
    preferences: PromptPreferences | None = None
    positive_examples: list[PromptExample] = Field(default_factory=list, alias="positiveExamples")
    negative_examples: list[PromptExample] = Field(default_factory=list, alias="negativeExamples")
    liked_prompts: list[str] = Field(default_factory=list, alias="likedPrompts")
    disliked_prompts: list[str] = Field(default_factory=list, alias="dislikedPrompts")

    def has_training(self) -> bool:
        """True when the context carries anything beyond strength/tone/length."""
        prefs = self.preferences
        return bool(
            self.positive_examples
            or self.negative_examples
            or self.liked_prompts
            or self.disliked_prompts
            or (prefs and (prefs.custom_instructions or prefs.include_keywords or prefs.exclude_keywords))
        )


def training_strength_instruction(strength: float) -> str:
    if strength < 0.25:
        return "TRAINING INFLUENCE: Minimal. Focus on creative analysis with light consideration of user preferences."
    if strength < 0.5:
        return "TRAINING INFLUENCE: Moderate. Balance your analysis with user preferences."
    if strength < 0.75:
        return "TRAINING INFLUENCE: Strong. Closely follow user preferences and examples."
    return "TRAINING INFLUENCE: Maximum. Strictly adhere to user preferences and examples."


def _quote_feedback(prompts: list[str]) -> str:
    return ", ".join(
        f'"{p[:FEEDBACK_PROMPT_CHARS]}..."' for p in prompts[:FEEDBACK_PROMPT_LIMIT]
    )


def render_training_context(training: TrainingContext | None) -> str:
    """
    Render the training context as a block appended to the system prompt.

    Returns "" when there is no context.
    """
    if training is None:
        return ""

    strength = training.training_strength
    if strength is None:
        strength = DEFAULT_TRAINING_STRENGTH
    parts = [training_strength_instruction(strength)]

    prefs = training.preferences
    if prefs:
        if prefs.tone and prefs.tone != "neutral":
            parts.append(f"Use a {prefs.tone} tone in your descriptions.")
        if prefs.length in LENGTH_INSTRUCTIONS:
            parts.append(LENGTH_INSTRUCTIONS[prefs.length])
        if prefs.include_keywords:
            parts.append(
                "Try to incorporate these keywords/phrases when appropriate: "
                + ", ".join(prefs.include_keywords)
            )
        if prefs.exclude_keywords:
            parts.append("Avoid using these words/phrases: " + ", ".join(prefs.exclude_keywords))
        if prefs.custom_instructions:
            parts.append(f"Additional instructions: {prefs.custom_instructions}")

    if training.positive_examples:
        parts.append("\n--- GOOD EXAMPLES (emulate this style) ---")
        for i, example in enumerate(training.positive_examples, start=1):
            note = f" (Note: {example.notes})" if example.notes else ""
            parts.append(f'Example {i}: "{example.prompt}"{note}')

    if training.negative_examples:
        parts.append("\n--- BAD EXAMPLES (avoid this style) ---")
        for example in training.negative_examples:
            note = f" (Note: {example.notes})" if example.notes else ""
            parts.append(f'Avoid: "{example.prompt}"{note}')

    if training.liked_prompts:
        parts.append(f"\nThe user previously liked prompts similar to: {_quote_feedback(training.liked_prompts)}")

    if training.disliked_prompts:
        parts.append(f"The user previously disliked prompts similar to: {_quote_feedback(training.disliked_prompts)}")

    return "\n\n--- USER PREFERENCES & TRAINING DATA ---\n" + "\n".join(parts)


def get_prompt_options() -> dict:
    """Styles and detail levels for the options endpoint."""
    return {"styles": PROMPT_STYLES, "detailLevels": DETAIL_LEVELS}
