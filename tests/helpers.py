"""Shared fakes for the test suite."""

from datetime import datetime, timedelta, timezone
from typing import List, Optional

from jobcopilot.core.models import Message, Thread
from jobcopilot.providers.base import FailureReason, LLMProvider, ProviderResponse

OWNER = "me@example.com"
NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


def make_thread(
    thread_id: str,
    to: str,
    subject: str,
    days_ago: float = 1,
    replies: int = 0,
    body: str = "Thanks for your time.",
    owner: str = OWNER,
) -> Thread:
    """
    A sent thread: one message from the owner, then `replies` alternating
    messages (recipient first). The last message is `days_ago` old.
    """
    count = replies + 1
    last = NOW - timedelta(days=days_ago)
    messages = []
    for i in range(count):
        from_owner = i % 2 == 0
        messages.append(
            Message(
                sender=owner if from_owner else to,
                to=to if from_owner else owner,
                subject=subject if i == 0 else f"Re: {subject}",
                date=last - timedelta(hours=count - 1 - i),
                body=body,
            )
        )
    return Thread(id=thread_id, messages=messages)


class FakeMailSource:
    def __init__(self, threads: List[Thread], error: Optional[Exception] = None):
        self.threads = threads
        self.error = error
        self.calls = 0

    def search_sent(self, limit: int) -> List[Thread]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.threads[:limit]


class ScriptedProvider(LLMProvider):
    """Returns queued responses in order and records every prompt."""

    def __init__(self, name: str, responses: Optional[List[ProviderResponse]] = None):
        self.name = name
        self.responses = list(responses or [])
        self.prompts: List[str] = []

    def call(self, prompt: str, api_key: str) -> ProviderResponse:
        self.prompts.append(prompt)
        if not self.responses:
            return ProviderResponse.fail(FailureReason.HTTP_ERROR, status_code=500)
        return self.responses.pop(0)

    def get_name(self) -> str:
        return self.name
