"""
Candidate profile parsing (LinkedIn page text, resume text).

Pasted profiles are noisy: navigation chrome, page footers, markup. This
module reduces them to a few labelled sections that fit in a prompt, and
scores the result so near-empty pastes can be rejected at setup time.
"""

import logging
import re
from typing import Dict, Optional

from ..utils.sanitize import sanitize_for_prompt

logger = logging.getLogger(__name__)

MIN_RAW_LENGTH = 50
MAX_RAW_LENGTH = 20000
MAX_STORED_LENGTH = 5000
MIN_ACCEPTED_SCORE = 30

NO_PROFILE_CONTEXT = "No candidate profile provided."

_LINKEDIN_NOISE = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"Skip to main content", r"LinkedIn", r"Search", r"Messaging",
        r"Notifications", r"Premium", r"Show all \d+ skills",
        r"Show all \d+ experiences", r"\d+ followers", r"\d+ connections",
        r"Contact info", r"Following", r"Influencers", r"Companies", r"Groups",
        r"Newsletters", r"Activity", r"Posts", r"Comments", r"See all \d+",
        r"Learn more", r"Report this profile", r"More actions", r"Open to work",
        r"Promoted",
    )
] + [re.compile(r"\bMe\b"), re.compile(r"\bWork\b")]

_RESUME_NOISE = [
    re.compile(p, re.IGNORECASE)
    for p in (r"Page \d+ of \d+", r"Resume", r"Curriculum Vitae", r"References available")
]

_SECTION_FLAGS = re.IGNORECASE | re.DOTALL


def _search(pattern: str, text: str, limit: int) -> Optional[str]:
    match = re.search(pattern, text, _SECTION_FLAGS)
    return match.group(1).strip()[:limit] if match else None


def _format(sections: Dict[str, Optional[str]]) -> str:
    return "\n\n".join(f"{k.upper()}: {v}" for k, v in sections.items() if v)


def clean(raw: str, kind: str) -> Optional[str]:
    """
    Reduce a pasted profile to labelled sections.

    Args:
        raw: Pasted text (may contain HTML)
        kind: 'linkedin' or 'resume'

    Returns:
        Sectioned text, or None when too little usable content remains.
    """
    if not raw or not isinstance(raw, str):
        return None

    text = re.sub(r"<[^>]+>", " ", raw)
    # Collapse runs of spaces but keep line structure for the LinkedIn header
    text = re.sub(r"[ \t\r\f\v]+", " ", text)
    text = re.sub(r"[^\x20-\x7E\n]", "", text).strip()

    if len(text) < MIN_RAW_LENGTH:
        return None
    text = text[:MAX_RAW_LENGTH]

    if kind == "linkedin":
        return _parse_linkedin(text)
    return _parse_resume(text)


def _parse_linkedin(text: str) -> Optional[str]:
    for pattern in _LINKEDIN_NOISE:
        text = pattern.sub("", text)

    lines = [line.strip() for line in text.split("\n") if len(line.strip()) > 2]
    sections: Dict[str, Optional[str]] = {}
    if lines:
        sections["name"] = lines[0][:100]
    if len(lines) > 1 and not re.search(r"experience|education|skills", lines[1], re.IGNORECASE):
        sections["headline"] = lines[1][:200]

    flat = " ".join(text.split())
    sections["experience"] = _search(r"Experience\s+(.{50,2000}?)(?=Education|Skills|Licenses|$)", flat, 1500)
    sections["education"] = _search(r"Education\s+(.{20,800}?)(?=Skills|Experience|Licenses|$)", flat, 500)
    sections["skills"] = _search(r"Skills\s+(.{10,500}?)(?=Experience|Education|Interests|$)", flat, 300)

    if not sections.get("name") and not sections.get("experience"):
        return None
    return _format(sections)


def _parse_resume(text: str) -> Optional[str]:
    for pattern in _RESUME_NOISE:
        text = pattern.sub("", text)
    flat = " ".join(text.split())

    sections: Dict[str, Optional[str]] = {
        "contact": _search(r"^(.{10,300}?)(?=EXPERIENCE|EDUCATION|SUMMARY|OBJECTIVE|SKILLS)", flat, 200),
        "experience": _search(r"EXPERIENCE\s*(.{50,3000}?)(?=EDUCATION|SKILLS|PROJECTS|$)", flat, 2000),
        "education": _search(r"EDUCATION\s*(.{20,800}?)(?=EXPERIENCE|SKILLS|PROJECTS|$)", flat, 500),
        "skills": _search(r"SKILLS\s*(.{10,500}?)(?=EXPERIENCE|EDUCATION|PROJECTS|$)", flat, 300),
    }

    if not sections["experience"] and not sections["education"]:
        return None
    return _format(sections)


def score(parsed: Optional[str]) -> int:
    """Completeness score 0-100 of a cleaned profile."""
    if not parsed:
        return 0
    total = 0
    if len(parsed) > 200:
        total += 20
    if len(parsed) > 500:
        total += 20
    if len(parsed) > 1000:
        total += 10
    if re.search(r"EXPERIENCE:", parsed, re.IGNORECASE):
        total += 20
    if re.search(r"EDUCATION:", parsed, re.IGNORECASE):
        total += 10
    if re.search(r"SKILLS:", parsed, re.IGNORECASE):
        total += 10
    if re.search(r"NAME:|CONTACT:", parsed, re.IGNORECASE):
        total += 10
    return min(total, 100)


def prepare_profile(raw: str, kind: str) -> Optional[str]:
    """Clean, score and cap a profile for storage; None when it scores too low."""
    parsed = clean(raw, kind)
    points = score(parsed)
    if parsed is None or points < MIN_ACCEPTED_SCORE:
        logger.warning(f"{kind} profile rejected (score {points})")
        return None
    logger.info(f"{kind} profile accepted (score {points})")
    return parsed[:MAX_STORED_LENGTH]


def build_candidate_context(linkedin: str = "", resume: str = "") -> str:
    """Prompt-safe candidate context from the saved profiles."""
    if not linkedin and not resume:
        return NO_PROFILE_CONTEXT
    context = ""
    if linkedin:
        context += f"LINKEDIN:\n{linkedin}\n\n"
    if resume:
        context += f"RESUME:\n{resume}"
    return sanitize_for_prompt(context)
