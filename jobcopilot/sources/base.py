"""Mail source interface."""

from abc import ABC, abstractmethod
from typing import List

from ..core.models import Thread


class MailSource(ABC):
    """Read-only access to the owner's sent threads."""

    @abstractmethod
    def search_sent(self, limit: int) -> List[Thread]:
        """
        Return up to `limit` threads the owner has sent into, newest first.

        Raises:
            MailSourceError: when the thread list cannot be fetched at all
        """
        pass
