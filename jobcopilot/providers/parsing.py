"""
Tolerant JSON extraction from free-text LLM replies.

Models wrap the requested array in prose or code fences often enough that a
strict json.loads on the whole message is useless. Everything that depends
on this leniency goes through extract_json_array, so a structured-output API
can replace it in one place.
"""

import json
import re
from typing import List, Optional

# Greedy on purpose: from the first '[' to the last ']'
_OUTERMOST_ARRAY = re.compile(r"\[[\s\S]*\]")


def extract_json_array(text: str) -> Optional[List]:
    """
    Return the outermost [...] block of text parsed as a JSON list.

    Returns:
        The list, or None when no block exists or it does not parse.
    """
    if not text:
        return None
    match = _OUTERMOST_ARRAY.search(text)
    if not match:
        return None
    try:
        value = json.loads(match.group(0))
    except json.JSONDecodeError:
        return None
    return value if isinstance(value, list) else None
