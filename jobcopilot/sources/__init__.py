"""
Mail source collaborators.

The orchestrator only needs `search_sent(limit)`; anything that can list the
owner's sent threads newest-first can drive a sync.
"""

from .base import MailSource
from .mbox_source import MboxMailSource

__all__ = ["MailSource", "MboxMailSource"]
