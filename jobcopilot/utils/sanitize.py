"""
Content sanitization utilities.

Two independent guards:
- display: neutralizes spreadsheet formula injection in table cells
- prompt: strips delimiters and role markers from user-supplied profile text
  before it is embedded in an LLM instruction
"""

import logging
import re

logger = logging.getLogger(__name__)

EMPTY_CELL = "—"

# Maximum profile context embedded in a prompt
MAX_PROMPT_CONTEXT_LENGTH = 4000

# Leading characters a spreadsheet evaluates as a formula
_FORMULA_TRIGGER = re.compile(r"^[=+\-@]")

_CODE_FENCE = re.compile(r"```")
_TEMPLATE_MARKERS = re.compile(r"\$\{|\{\{")
_HTML_TAG = re.compile(r"</?[a-z][^>]*>", re.IGNORECASE)
_ROLE_MARKERS = re.compile(r"SYSTEM:|USER:|ASSISTANT:", re.IGNORECASE)


def sanitize_for_display(value) -> str:
    """
    Make a value safe to write into a table cell.

    Args:
        value: Cell content (any type)

    Returns:
        EMPTY_CELL for empty or non-string input, the value prefixed with a
        quote when it would be read as a formula, the value itself otherwise.
    """
    if not isinstance(value, str) or not value.strip():
        return EMPTY_CELL
    if _FORMULA_TRIGGER.match(value.strip()):
        return "'" + value
    return value


def sanitize_for_prompt(text: str) -> str:
    """
    Sanitize pasted profile text (resume, LinkedIn) for prompt embedding.

    Args:
        text: Raw profile text

    Returns:
        Text without code fences, template markers, HTML tags or role
        markers, truncated to MAX_PROMPT_CONTEXT_LENGTH characters.
    """
    if not text or not isinstance(text, str):
        return ""

    text = _CODE_FENCE.sub("", text)
    text = _TEMPLATE_MARKERS.sub("", text)
    text = _HTML_TAG.sub("", text)

    text, role_hits = _ROLE_MARKERS.subn("", text)
    if role_hits:
        logger.warning(f"Neutralized {role_hits} role marker(s) in profile context")

    return text[:MAX_PROMPT_CONTEXT_LENGTH]
