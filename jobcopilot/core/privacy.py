"""
Privacy module - PII redaction before text is cached, logged or sent to an LLM.

Email addresses and North-American phone numbers are replaced with fixed
tokens. The tokens contain neither '@' nor digits, so redaction is idempotent.
"""

import re

EMAIL_TOKEN = "[email]"
PHONE_TOKEN = "[phone]"

EMAIL_PATTERN = re.compile(r"[\w.-]+@[\w.-]+\.\w+")
PHONE_PATTERN = re.compile(r"\b\d{3}[-.]?\d{3}[-.]?\d{4}\b")


def redact(text: str) -> str:
    """
    Strip PII (emails, phone numbers) from text.

    Args:
        text: Raw text, may be None

    Returns:
        Redacted text, or an empty string for empty input
    """
    if not text:
        return ""
    text = EMAIL_PATTERN.sub(EMAIL_TOKEN, text)
    return PHONE_PATTERN.sub(PHONE_TOKEN, text)


def redact_snippet(text: str, limit: int) -> str:
    """
    Redact a message body, then truncate it to `limit` characters.

    Redacting first keeps an address or number that straddles the cut from
    leaking its head past the patterns.

    Data minimization: only the head of the latest message ever leaves the
    mail source.
    """
    if not text:
        return ""
    return redact(text)[:limit]
