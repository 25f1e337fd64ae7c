"""
Domain model for the triage pipeline.

Threads come from the mail source, TriageRecords live in the cache, and Rows
are the per-sync view model that merges the two with a computed Status.
"""

from collections import Counter
from dataclasses import asdict, dataclass, field, fields
from datetime import datetime
from email.utils import getaddresses, parseaddr
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional


class Category(str, Enum):
    JOB = "JOB"
    NETWORKING = "NETWORKING"
    OTHER = "OTHER"


def coerce_category(value: Any) -> str:
    """Known category name for an LLM value, JOB for anything else."""
    name = str(value or "").strip().upper()
    if name in Category.__members__:
        return Category[name].value
    return Category.JOB.value


class FilterSource(str, Enum):
    """Which stage decided whether a thread is job-related."""
    RULES = "rules"
    LLM = "llm"
    FALLBACK = "fallback"


class FilterAction(str, Enum):
    INCLUDE = "include"
    EXCLUDE = "exclude"
    UNCERTAIN = "uncertain"


class FilterReason(str, Enum):
    SELF_SEND = "self_send"
    PERSONAL_DOMAIN = "personal_domain"
    TRANSACTIONAL = "transactional"
    JOB_SIGNAL = "job_signal"
    NEEDS_LLM = "needs_llm"


@dataclass(frozen=True)
class FilterDecision:
    """Transient Rule Filter output. Never persisted as-is."""
    action: FilterAction
    reason: FilterReason


@dataclass
class Message:
    """A single message as exposed by the mail source."""
    sender: str
    to: str
    subject: str
    date: datetime
    body: str = ""


@dataclass
class Thread:
    """
    A conversation of one or more messages, oldest first.

    Attributes:
        id: Stable thread identifier
        messages: Ordered message list
    """
    id: str
    messages: List[Message]

    @property
    def message_count(self) -> int:
        return len(self.messages)

    @property
    def first(self) -> Message:
        return self.messages[0]

    @property
    def last(self) -> Message:
        return self.messages[-1]

    @property
    def recipient(self) -> str:
        """First address on the opening message's To line, lower-cased."""
        addresses = [addr for _, addr in getaddresses([self.first.to or ""]) if addr]
        if addresses:
            return addresses[0].lower()
        return (self.first.to or "").strip().lower()

    @property
    def subject(self) -> str:
        return self.first.subject or ""

    @property
    def last_date(self) -> datetime:
        return self.last.date

    def last_from(self, owner_email: str) -> bool:
        """Whether the most recent message was authored by the owner."""
        if not owner_email:
            return False
        return owner_email.lower() in (self.last.sender or "").lower()


def most_frequent_sender(threads: Iterable[Thread]) -> str:
    """
    Address that authored the most messages across the threads.

    In a mailbox export the owner writes into nearly every thread, while each
    contact shows up in only a few. Ties go to the sender seen first.
    """
    counts: Counter = Counter()
    for thread in threads:
        for message in thread.messages:
            address = parseaddr(message.sender or "")[1].lower()
            if address:
                counts[address] += 1
    if not counts:
        return ""
    return counts.most_common(1)[0][0]


@dataclass(frozen=True)
class ThreadHeader:
    """Lightweight view used by the filter stages (no bodies)."""
    thread_id: str
    recipient: str
    domain: str
    subject: str


@dataclass
class TriageRecord:
    """
    Cache entry keyed by thread id.

    `message_count` is the change-detection fingerprint: a record is stale
    whenever the live thread has a different number of messages.
    """
    is_job_thread: Optional[bool] = None
    filter_source: Optional[str] = None
    message_count: Optional[int] = None
    category: Optional[str] = None
    is_job: Optional[bool] = None
    play: Optional[str] = None
    draft: Optional[str] = None
    first_seen: Optional[float] = None

    @classmethod
    def field_names(cls) -> List[str]:
        return [f.name for f in fields(cls)]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TriageRecord":
        known = set(cls.field_names())
        return cls(**{k: v for k, v in data.items() if k in known})

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ClassificationResult:
    """One slot of the LLM classification output."""
    category: str = Category.JOB.value
    is_job: bool = True
    play: str = "—"
    draft: str = ""

    @classmethod
    def from_llm(cls, item: Dict[str, Any]) -> "ClassificationResult":
        # Same leniency as the prompt implies: anything not explicitly
        # non-job is treated as job-related.
        return cls(
            category=coerce_category(item.get("category")),
            is_job=item.get("isJob") is not False,
            play=str(item.get("play") or "—"),
            draft=str(item.get("draft") or ""),
        )


@dataclass(frozen=True)
class Status:
    label: str
    priority: int


@dataclass
class Row:
    """Render-time view model. Only its cache subset is ever persisted."""
    id: str
    message_count: int
    company: str
    contact: str
    subject: str
    days: int
    from_me: bool
    body: str
    status: Status
    is_dirty: bool
    first_seen: float
    cached: Optional[TriageRecord] = None
    category: str = Category.JOB.value
    is_job: bool = True
    play: str = ""
    draft: str = ""
    classified_by: str = field(default="cache")

    @property
    def thread_id(self) -> str:
        return self.id

    def apply(self, result: ClassificationResult, source: str) -> None:
        self.category = result.category
        self.is_job = result.is_job
        self.play = result.play
        self.draft = result.draft
        self.classified_by = source

    def hydrate(self, record: TriageRecord) -> None:
        """Fill classification fields from a clean cache record."""
        if record.category is not None:
            self.category = coerce_category(record.category)
        if record.is_job is not None:
            self.is_job = bool(record.is_job)
        self.play = record.play or ""
        self.draft = record.draft or ""
        self.classified_by = "cache"

    def cache_fields(self) -> Dict[str, Any]:
        return {
            "message_count": self.message_count,
            "category": self.category,
            "is_job": self.is_job,
            "play": self.play,
            "draft": self.draft,
            "first_seen": self.first_seen,
        }
