"""
Core modules for the job search co-pilot.

This package contains the triage pipeline:
- orchestrator: Sync coordinator (filter, parse, classify, persist, render)
- rules: Deterministic include/exclude filter
- privacy: PII redaction of snippets
- triage_cache: Per-thread classification cache
- prompt_engine: Prompt templates for the LLM stages
- status: Reply Needed / Follow Up / Waiting resolution
- digest: Daily digest composition
- context_parser: Candidate profile cleaning and scoring
- render: Dashboard table output
"""

from .digest import Digest, DigestComposer, send_daily_digest
from .orchestrator import SyncContext, SyncResult, TriageOrchestrator
from .render import CsvTableRenderer, build_table
from .rules import RuleFilter, extract_header
from .status import compute_status
from .triage_cache import JsonFileCacheStore, MemoryCacheStore, TriageCache

__all__ = [
    "orchestrator",
    "privacy",
    "prompt_engine",
    "context_parser",
    "Digest",
    "DigestComposer",
    "send_daily_digest",
    "SyncContext",
    "SyncResult",
    "TriageOrchestrator",
    "CsvTableRenderer",
    "build_table",
    "RuleFilter",
    "extract_header",
    "compute_status",
    "JsonFileCacheStore",
    "MemoryCacheStore",
    "TriageCache",
]
