"""Workflow status of a thread: who owes the next message."""

from .models import Status

DEFAULT_FOLLOWUP_DAYS = 5

REPLY_NEEDED = Status(label="Reply Needed", priority=0)
FOLLOW_UP = Status(label="Follow Up", priority=1)
WAITING = Status(label="Waiting", priority=2)


def compute_status(from_me: bool, days: int, followup_days: int = DEFAULT_FOLLOWUP_DAYS) -> Status:
    """
    Resolve a thread's status from direction and age.

    Someone else wrote last -> Reply Needed, whatever the age. Otherwise the
    owner is waiting; at or beyond `followup_days` it is time to follow up.
    """
    if not from_me:
        return REPLY_NEEDED
    if days >= followup_days:
        return FOLLOW_UP
    return WAITING
