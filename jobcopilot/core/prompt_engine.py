"""
Prompt templates for the LLM stages.

Templates use `${name}` placeholders rendered with string.Template in a
single pass, so `${...}` appearing inside substituted thread text is never
expanded a second time.
"""

from string import Template
from typing import Dict, List, Sequence

from .models import ThreadHeader

PREFILTER_SUBJECT_CHARS = 80

PROMPTS: Dict[str, str] = {
    "prefilter": """You screen a job seeker's sent email for job-search outreach
(recruiters, hiring managers, referrals, networking about roles, interviews).

Each line is: index | recipient domain | subject

${threads}

Return a JSON array containing only the indices of job-search threads,
for example [0, 3]. Return [] if none qualify. JSON array only.""",

    "classify": """You are a job search strategist helping a candidate manage their outreach.

CANDIDATE CONTEXT:
${candidate_context}

For each thread, return:
{
  "category": "JOB" | "NETWORKING" | "OTHER",
  "isJob": boolean,
  "play": "One specific sentence. What should the candidate do next?",
  "draft": "Ready-to-send reply (250-280 chars). Address the RECIPIENT by name. Write in the candidate's voice."
}

RULES:
- The candidate is SENDING. Drafts are TO the contact, not to the candidate.
- Start draft with "Hi [Contact]" using the contact's name from the thread data.
- Be SPECIFIC. Reference actual email content.
- Match the candidate's tone and background from the context above.
- Never use: "just following up", "circling back", "touching base"
- Reply Needed: Address what they asked
- Follow Up (${followup_days}+ days): Add a hook, don't just bump
- Waiting (<${followup_days} days): play = "Wait for reply", draft = ""

THREADS:
${threads}

Return JSON array only, one object per thread, in the same order.
[{...},{...},...]""",

    "digest_observation": """You are a sharp, no-fluff career strategist. Given this week's job search stats, write ONE punchy sentence (under 20 words) observing the most important signal. Be specific, not generic. No transitions, no fluff.

Stats:
- Sent: ${sent} threads
- New (last 7d): ${new_count}
- Reply needed: ${reply_needed}
- Follow up: ${follow_up}
- Waiting: ${waiting}
- Final stage: ${final_stage}
- Top companies: ${top_companies}

Return only the sentence, nothing else.""",
}


def render(name: str, **values) -> str:
    """Render a named template. Missing placeholders are left untouched."""
    return Template(PROMPTS[name]).safe_substitute(**{k: str(v) for k, v in values.items()})


def build_prefilter_prompt(headers: Sequence[ThreadHeader]) -> str:
    """
    Pre-filter prompt. Carries only domain and truncated subject per thread,
    never message bodies.
    """
    lines = []
    for index, header in enumerate(headers):
        subject = " ".join((header.subject or "").split())[:PREFILTER_SUBJECT_CHARS]
        lines.append(f"{index} | {header.domain or 'unknown'} | {subject}")
    return render("prefilter", threads="\n".join(lines))


def build_classify_prompt(rows: Sequence, candidate_context: str, followup_days: int) -> str:
    """Full classification prompt for one batch of rows."""
    thread_data = "\n---\n".join(
        f"Co: {r.company} | Contact: {r.contact} | Status: {r.status.label} | Last: {r.body}"
        for r in rows
    )
    return render(
        "classify",
        candidate_context=candidate_context,
        followup_days=followup_days,
        threads=thread_data,
    )


def build_observation_prompt(stats: Dict) -> str:
    return render(
        "digest_observation",
        sent=stats.get("sent", 0),
        new_count=stats.get("new_count", 0),
        reply_needed=stats.get("reply_needed", 0),
        follow_up=stats.get("follow_up", 0),
        waiting=stats.get("waiting", 0),
        final_stage=stats.get("final_stage", 0),
        top_companies=stats.get("top_companies", "") or "none",
    )


def parse_prefilter_indices(value, count: int) -> List[int]:
    """Keep the in-range integer indices of a pre-filter reply, deduplicated."""
    indices = []
    for item in value:
        if isinstance(item, bool):
            continue
        if isinstance(item, str) and item.strip().isdigit():
            item = int(item.strip())
        if isinstance(item, int) and 0 <= item < count and item not in indices:
            indices.append(item)
    return indices
