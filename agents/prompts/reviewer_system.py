# =============================================================================
# agents/prompts/reviewer_system.py - File Reviewer System Prompt
# =============================================================================
# Builds the reviewer prompt from the rejection reasons for the file's
# category, the marketplace rules and the scoring configuration. The model
# answers with a JSON object (no tool call).
# =============================================================================

from __future__ import annotations

from typing import Any

REVIEW_USER_TEXT = (
    "Analyze this file for stock marketplace submission. Check for all potential "
    "rejection reasons and provide a detailed review."
)

DEFAULT_NOTE_MARKETPLACES = ["Adobe Stock", "Freepik", "Shutterstock"]


def format_enabled_reasons(reasons: dict[str, dict[str, Any]]) -> str:
    """One "- CODE: message" line per reason not explicitly disabled."""
    return "\n".join(
        f"- {code}: {info.get('message', '')}"
        for code, info in reasons.items()
        if info.get("enabled") is not False
    )


def format_marketplace_rules(
    marketplaces: list[str],
    marketplace_rules: dict[str, dict[str, Any]] | None,
) -> str:
    """
    Requirements text for the selected marketplaces that have rules.

    Example line:
        "Adobe Stock: Min 4MP, min dimension 800px. No logos."
    """
    if not marketplace_rules:
        return ""

    lines = []
    for marketplace in marketplaces:
        rule = marketplace_rules.get(marketplace)
        if rule:
            megapixels = (rule.get("min_resolution") or 0) / 1_000_000
            lines.append(
                f"{marketplace}: Min {megapixels:g}MP, min dimension "
                f"{rule.get('min_dimension')}px. {rule.get('notes', '')}"
            )
    return "\n".join(lines)


def build_reviewer_system_prompt(
    file_type: str,
    category: str,
    marketplaces: list[str],
    reasons: dict[str, dict[str, Any]],
    marketplace_rules_text: str,
    weights: dict[str, Any],
    pass_threshold: int,
    warning_threshold: int,
) -> str:
    marketplace_list = ", ".join(marketplaces)
    requirements = (
        f"MARKETPLACE REQUIREMENTS:\n{marketplace_rules_text}\n" if marketplace_rules_text else ""
    )
    note_names = [
        marketplaces[i] if i < len(marketplaces) else default
        for i, default in enumerate(DEFAULT_NOTE_MARKETPLACES)
    ]

    return f"""You are an expert stock marketplace file reviewer. Your job is to analyze files for potential rejection reasons before submission to stock marketplaces like {marketplace_list}.

FILE TYPE: {file_type.upper()} ({category} file)

REJECTION REASONS TO CHECK FOR:
{format_enabled_reasons(reasons)}

{requirements}

SCORING WEIGHTS (use these to calculate overall score):
- Visual Quality: {weights.get("visual_quality")}%
- Technical: {weights.get("technical")}%
- Content: {weights.get("content")}%
- Commercial Viability: {weights.get("commercial")}%

ANALYSIS INSTRUCTIONS:
1. Carefully examine the image/frame for ALL potential issues listed above
2. Be thorough but fair - only flag genuine issues that would cause rejection
3. Consider marketplace-specific requirements for: {marketplace_list}
4. Provide actionable suggestions for improvement

RESPONSE FORMAT (JSON):
{{
  "overallScore": <0-100 quality score>,
  "verdict": "<pass|warning|fail>",
  "issues": [
    {{
      "code": "<ISSUE_CODE from list above>",
      "severity": "<high|medium|low>",
      "category": "<category>",
      "message": "<English message>",
      "details": "<specific details about this issue in the file>"
    }}
  ],
  "suggestions": [
    "<actionable improvement suggestion 1>",
    "<actionable improvement suggestion 2>"
  ],
  "marketplaceNotes": {{
    "{note_names[0]}": "<specific note for this marketplace>",
    "{note_names[1]}": "<specific note for this marketplace>",
    "{note_names[2]}": "<specific note for this marketplace>"
  }}
}}

SCORING GUIDE:
- 90-100: Excellent, likely to be accepted on all marketplaces
- 70-89: Good, may need minor improvements
- 50-69: Fair, needs attention on some issues
- 30-49: Poor, significant issues need fixing
- 0-29: Very poor, major rework needed

VERDICT GUIDE:
- pass: Score >= {pass_threshold} and no high-severity issues
- warning: Score {warning_threshold}-{pass_threshold - 1} OR has medium-severity issues
- fail: Score < {warning_threshold} OR has any high-severity issues

Be specific in your details field - mention exactly what you see that causes the issue."""
