"""
Mail source backed by a local mbox export.

Messages are grouped into threads through their References / In-Reply-To
headers: the first referenced Message-ID is the thread root. Only threads
containing at least one message from the owner count as sent threads. Without
a configured owner address, the most frequent sender in the mailbox is taken
as the owner.
"""

import hashlib
import logging
import mailbox
import os
from datetime import datetime, timezone
from email import policy
from email.parser import BytesParser
from email.utils import parseaddr, parsedate_to_datetime
from typing import Dict, List, Optional

from ..core.models import Message, Thread, most_frequent_sender
from ..exceptions import MailSourceError
from .base import MailSource

logger = logging.getLogger(__name__)

_EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)


def _parse_message(fp):
    return BytesParser(policy=policy.default).parse(fp)


def _message_date(msg) -> datetime:
    raw = msg.get("Date")
    if not raw:
        return _EPOCH
    try:
        parsed = parsedate_to_datetime(str(raw))
    except (TypeError, ValueError):
        return _EPOCH
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _plain_body(msg) -> str:
    body = msg.get_body(preferencelist=("plain",))
    if body is None:
        return ""
    try:
        return body.get_content()
    except (LookupError, UnicodeDecodeError) as e:
        logger.debug(f"Undecodable body part skipped: {e}")
        return ""


def _thread_key(msg) -> str:
    references = str(msg.get("References") or "").split()
    if references:
        return references[0].strip("<>")
    in_reply_to = str(msg.get("In-Reply-To") or "").strip()
    if in_reply_to:
        return in_reply_to.split()[0].strip("<>")
    message_id = str(msg.get("Message-ID") or "").strip()
    if message_id:
        return message_id.strip("<>")
    fingerprint = f"{msg.get('Subject', '')}|{msg.get('Date', '')}|{msg.get('From', '')}"
    return hashlib.sha256(fingerprint.encode("utf-8")).hexdigest()[:16]


class MboxMailSource(MailSource):
    """
    Usage:
        source = MboxMailSource("~/Mail/all.mbox", owner_email="me@example.com")
        threads = source.search_sent(50)
    """

    def __init__(self, path: str, owner_email: Optional[str] = None):
        self.path = os.path.abspath(os.path.expanduser(path))
        self.owner_email = (owner_email or "").lower()

    def search_sent(self, limit: int) -> List[Thread]:
        if not os.path.exists(self.path):
            raise MailSourceError(f"Mailbox not found: {self.path}")

        try:
            box = mailbox.mbox(self.path, factory=_parse_message, create=False)
            grouped: Dict[str, List[Message]] = {}
            for msg in box:
                if msg is None:
                    continue
                grouped.setdefault(_thread_key(msg), []).append(
                    Message(
                        sender=str(msg.get("From") or ""),
                        to=str(msg.get("To") or ""),
                        subject=str(msg.get("Subject") or ""),
                        date=_message_date(msg),
                        body=_plain_body(msg),
                    )
                )
        except (OSError, mailbox.Error) as e:
            raise MailSourceError(f"Cannot read mailbox {self.path}: {e}") from e

        candidates = []
        for key, messages in grouped.items():
            messages.sort(key=lambda m: m.date)
            candidates.append(Thread(id=key, messages=messages))

        owner = self.owner_email or most_frequent_sender(candidates)
        threads = [t for t in candidates if any(self._from(owner, m) for m in t.messages)]

        threads.sort(key=lambda t: t.last_date, reverse=True)
        logger.info(f"Read {len(grouped)} threads from mbox, {len(threads)} sent")
        return threads[:limit]

    @staticmethod
    def _from(owner: str, message: Message) -> bool:
        return bool(owner) and parseaddr(message.sender)[1].lower() == owner
