"""
Daily digest composition.

Builds a plain-text email from a snapshot of the job threads: the reply-needed
rows first, then follow-ups, then a short "watching" line and counters. The
opening sentence is a one-line observation generated by the LLM when a key is
available.
"""

import logging
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Sequence

from ..providers import ProviderGateway
from .models import Row
from .prompt_engine import build_observation_prompt
from .status import FOLLOW_UP, REPLY_NEEDED, WAITING

logger = logging.getLogger(__name__)

DEFAULT_OBSERVATION = "Your weekly job search snapshot."
THREAD_URL = "https://mail.google.com/mail/u/0/#inbox/{thread_id}"
SETTINGS_FOOTER = "jobcopilot.com/settings"
NEW_WINDOW_DAYS = 7
WATCHING_LIMIT = 3
TOP_COMPANIES = 3


@dataclass
class Digest:
    subject: str
    body: str
    stats: Dict


def _first_name(contact: str) -> str:
    return (contact or "").split(".")[0].capitalize()


def _full_name(contact: str) -> str:
    return " ".join(part.capitalize() for part in (contact or "").split("."))


class DigestComposer:
    """
    Usage:
        composer = DigestComposer(gateway, config)
        digest = composer.compose(orchestrator.snapshot())
        if digest:
            notifier.send(owner, digest.subject, digest.body)
    """

    def __init__(
        self,
        gateway: Optional[ProviderGateway],
        config: Optional[Dict] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.gateway = gateway
        self.config = config or {}
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def compute_stats(self, rows: Sequence[Row]) -> Dict:
        now = self.clock()
        cutoff = (now - timedelta(days=NEW_WINDOW_DAYS)).timestamp()
        final_categories = set(self.config.get("final_categories") or [])
        companies = Counter(r.company for r in rows)

        return {
            "sent": len(rows),
            "new_count": sum(1 for r in rows if (r.first_seen or 0) > cutoff),
            "reply_needed": sum(1 for r in rows if r.status == REPLY_NEEDED),
            "follow_up": sum(1 for r in rows if r.status == FOLLOW_UP),
            "waiting": sum(1 for r in rows if r.status == WAITING),
            "final_stage": sum(1 for r in rows if r.category in final_categories),
            "top_companies": ", ".join(name for name, _ in companies.most_common(TOP_COMPANIES)),
        }

    def generate_observation(self, stats: Dict) -> str:
        """One sentence from the LLM, or the default when unavailable."""
        if self.gateway is None or not self.config.get("use_llm", True):
            return DEFAULT_OBSERVATION
        if not self.gateway.has_credentials:
            return DEFAULT_OBSERVATION

        result = self.gateway.call_with_failover(build_observation_prompt(stats))
        if not result.success or not str(result.value or "").strip():
            logger.info(f"Observation unavailable ({result.reason}), using default")
            return DEFAULT_OBSERVATION
        return str(result.value).strip().strip("\"'")

    def compose(self, rows: Sequence[Row]) -> Optional[Digest]:
        """Digest for the given rows, or None when nothing needs action."""
        reply_needed = [r for r in rows if r.status == REPLY_NEEDED]
        follow_up = [r for r in rows if r.status == FOLLOW_UP]
        waiting = [r for r in rows if r.status == WAITING]

        if not reply_needed and not follow_up:
            logger.info("No action items, skipping digest")
            return None

        stats = self.compute_stats(rows)
        observation = self.generate_observation(stats)
        weekday = self.clock().strftime("%A")

        first = (reply_needed or follow_up)[0]
        first_name = _first_name(first.contact)
        more = len(reply_needed) + len(follow_up) - 1
        subject = f"Reply to {first_name} @ {first.company}"
        if more > 0:
            subject += f" — and {more} more"

        parts: List[str] = [f"{first_name},\n\n{weekday}. {observation}\n\n"]
        parts.extend(self._format_row(r) for r in reply_needed)
        if follow_up:
            parts.append("---\n\n**Follow up this week**\n\n")
            parts.extend(self._format_row(r) for r in follow_up)
        parts.append("—\n\n")

        if waiting:
            watching = ", ".join(
                f"{_first_name(r.contact)} at {r.company}" for r in waiting[:WATCHING_LIMIT]
            )
            parts.append(f"{watching} — watching.\n\n")

        parts.append(
            f"{stats['sent']} sent · {stats['new_count']} new · "
            f"{stats['final_stage']} at final stage\n"
        )
        parts.append(SETTINGS_FOOTER)
        return Digest(subject=subject, body="".join(parts), stats=stats)

    @staticmethod
    def _format_row(row: Row) -> str:
        link = THREAD_URL.format(thread_id=row.thread_id)
        return (
            f"**{_full_name(row.contact)}, {row.company}** · {row.days}d\n"
            f"{row.play}\n\n{row.draft}\n\n{link}\n\n"
        )


def send_daily_digest(orchestrator, notifier, owner_email: str, composer: Optional[DigestComposer] = None) -> bool:
    """
    Snapshot, compose and send the digest.

    Failures are logged and reported to telemetry, never raised.

    Returns:
        True when a digest was sent.
    """
    logger.info("Starting daily digest")
    try:
        if composer is None:
            gateway = orchestrator.gateway or ProviderGateway(
                orchestrator.credentials, providers_config=orchestrator.config.get("providers")
            )
            composer = DigestComposer(gateway, orchestrator.config, clock=orchestrator.clock)

        digest = composer.compose(orchestrator.snapshot())
        if digest is None:
            return False

        notifier.send(owner_email, digest.subject, digest.body)
        logger.info(
            f"Sent digest: {digest.stats['reply_needed']} reply, {digest.stats['follow_up']} follow up"
        )
        return True
    except Exception as e:
        logger.error(f"Digest failed: {e}", exc_info=True)
        if orchestrator.telemetry is not None:
            orchestrator.telemetry.error("digest", str(e))
        return False
