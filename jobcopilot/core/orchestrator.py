"""
Triage orchestrator.

Runs one sync end to end:

    fetch sent threads
      -> cached filter decisions / rule filter / LLM pre-filter
      -> parse survivors into Rows (redacted snippet, Status)
      -> hydrate clean rows from cache, classify dirty rows in batches
      -> merge everything into the cache, persist once, render

Every stage receives the same SyncContext, built fresh for each sync.
"""

import logging
import math
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Set

from ..exceptions import MailSourceError
from ..providers import FailureReason, ProviderGateway, extract_json_array
from ..utils.logger import mask_email
from .context_parser import NO_PROFILE_CONTEXT
from .models import (
    Category,
    ClassificationResult,
    FilterAction,
    FilterSource,
    Row,
    Thread,
    ThreadHeader,
    TriageRecord,
    most_frequent_sender,
)
from .privacy import redact_snippet
from .prompt_engine import build_classify_prompt, build_prefilter_prompt, parse_prefilter_indices
from .rules import RuleFilter, extract_header
from .status import FOLLOW_UP, REPLY_NEEDED, WAITING, compute_status
from .triage_cache import TriageCache

logger = logging.getLogger(__name__)

DISABLED_REASON = "disabled"
ERROR_REASON = "error"

FALLBACK_PLAYS = {
    FailureReason.NO_KEY.value: "⚠️ Add API key in Setup",
    FailureReason.AUTH.value: "⚠️ Invalid API key",
    FailureReason.RATE_LIMIT.value: "⚠️ Rate limited - try later",
    FailureReason.NETWORK.value: "⚠️ Network error",
    FailureReason.ALL_FAILED.value: "⚠️ All providers failed - try later",
    DISABLED_REASON: "⚠️ AI classification disabled",
}
DEFAULT_FALLBACK_PLAY = "⚠️ Sync again to classify"

SECONDS_PER_DAY = 86400


def fallback_result(reason: Optional[str]) -> ClassificationResult:
    """Placeholder classification used when no LLM output is available."""
    return ClassificationResult(
        category=Category.JOB.value,
        is_job=True,
        play=FALLBACK_PLAYS.get(reason or "", DEFAULT_FALLBACK_PLAY),
        draft="",
    )


def fallback(row: Row, reason: Optional[str]) -> None:
    row.apply(fallback_result(reason), FilterSource.FALLBACK.value)


@dataclass
class SyncContext:
    """State shared by the stages of one sync."""
    config: Dict
    cache: TriageCache
    gateway: ProviderGateway
    rules: RuleFilter
    now: datetime
    candidate_context: str = NO_PROFILE_CONTEXT
    owner_email: Optional[str] = None
    counters: Dict[str, int] = field(default_factory=lambda: {
        "excluded": 0,
        "prefiltered": 0,
        "classified": 0,
        "fallbacks": 0,
    })

    @property
    def use_llm(self) -> bool:
        return bool(self.config.get("use_llm", True))

    @property
    def followup_days(self) -> int:
        return int(self.config.get("followup_days", 5))


@dataclass
class SyncResult:
    rows: List[Row]
    stats: Dict


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class TriageOrchestrator:
    """
    Usage:
        orchestrator = TriageOrchestrator(
            MboxMailSource(path), TriageCache(JsonFileCacheStore(cache_path)),
            credentials=load_credentials(config["providers"]), config=config,
        )
        result = orchestrator.sync()
        print(result.stats)
    """

    def __init__(
        self,
        mail_source,
        cache: TriageCache,
        credentials: Optional[Mapping[str, str]] = None,
        config: Optional[Dict] = None,
        gateway: Optional[ProviderGateway] = None,
        telemetry=None,
        renderer=None,
        clock: Optional[Callable[[], datetime]] = None,
        candidate_context: str = NO_PROFILE_CONTEXT,
    ):
        """
        Args:
            mail_source: Object with search_sent(limit) -> List[Thread]
            cache: Classification cache
            credentials: provider name -> API key
            config: Loaded configuration (see utils.config.DEFAULT_CONFIG)
            gateway: Pre-built gateway; otherwise one is built per sync
            telemetry: Optional Telemetry client
            renderer: Optional object with render(rows)
            clock: Returns the current time (aware datetime)
            candidate_context: Prompt-ready candidate profile text
        """
        self.mail_source = mail_source
        self.cache = cache
        self.credentials = dict(credentials or {})
        self.config = config or {}
        self.gateway = gateway
        self.telemetry = telemetry
        self.renderer = renderer
        self.clock = clock or _utcnow
        self.candidate_context = candidate_context or NO_PROFILE_CONTEXT

    def _new_context(self) -> SyncContext:
        gateway = self.gateway or ProviderGateway(
            self.credentials, providers_config=self.config.get("providers")
        )
        return SyncContext(
            config=self.config,
            cache=self.cache,
            gateway=gateway,
            rules=RuleFilter(self.config),
            now=_aware(self.clock()),
            candidate_context=self.candidate_context,
            owner_email=(self.config.get("owner_email") or "").lower() or None,
        )

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def sync(self, fresh: bool = False) -> SyncResult:
        """
        Run one full triage pass.

        Raises:
            MailSourceError: when the sent-thread list cannot be fetched
        """
        start_time = time.time()
        logger.info("Starting sync" + (" (fresh)" if fresh else ""))

        try:
            ctx = self._new_context()
            if fresh:
                ctx.cache.clear()
            ctx.cache.load()
            calls_before = ctx.gateway.calls

            threads = self._fetch_threads(ctx)
            kept = self._filter_threads(ctx, threads)
            rows = [self._parse_thread(ctx, thread) for thread in kept]

            for row in rows:
                if not row.is_dirty and row.cached is not None:
                    row.hydrate(row.cached)

            dirty = [r for r in rows if r.is_dirty]
            cache_hits = len(rows) - len(dirty)
            logger.info(f"Cache hits: {cache_hits}, Need LLM: {len(dirty)}")

            if dirty:
                try:
                    self._classify(ctx, dirty)
                except Exception as e:
                    logger.error(f"Classification failed: {e}", exc_info=True)
                    self._report_error("llm", str(e))
                    for row in dirty:
                        fallback(row, ERROR_REASON)

            for row in rows:
                ctx.cache.merge(row.id, **row.cache_fields())
            ctx.cache.persist_all()

            if self.renderer is not None:
                self.renderer.render(rows)

            runtime_ms = int((time.time() - start_time) * 1000)
            stats = self._stats(rows)
            stats.update({
                "llm_calls": ctx.gateway.calls - calls_before,
                "cache_hits": cache_hits,
                "excluded": ctx.counters["excluded"],
                "runtime_ms": runtime_ms,
            })
            logger.info(f"Sync complete in {runtime_ms}ms: {stats}")
            if self.telemetry is not None:
                self.telemetry.sync(stats)
            return SyncResult(rows=rows, stats=stats)

        except Exception as e:
            logger.error(f"Sync failed: {e}", exc_info=True)
            self._report_error("sync", str(e))
            raise

    def sync_fresh(self) -> SyncResult:
        """Clear the cache, then sync."""
        return self.sync(fresh=True)

    def snapshot(self) -> List[Row]:
        """
        Read-only view of the job threads known to the cache.

        No rule or LLM work and no cache writes; threads without a cached
        positive filter decision are skipped.
        """
        ctx = self._new_context()
        ctx.cache.load()
        threads = self._fetch_threads(ctx)

        rows = []
        for thread in threads:
            record = ctx.cache.get(thread.id)
            if record is None or record.is_job_thread is not True:
                continue
            row = self._parse_thread(ctx, thread, record)
            if record.message_count is not None:
                row.hydrate(record)
            rows.append(row)
        logger.info(f"Snapshot: {len(rows)} job threads")
        return rows

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def _fetch_threads(self, ctx: SyncContext) -> List[Thread]:
        limit = int(ctx.config.get("lookback", 50))
        try:
            threads = list(self.mail_source.search_sent(limit))
        except MailSourceError:
            raise
        except Exception as e:
            raise MailSourceError(f"Failed to fetch sent threads: {e}") from e

        threads = [t for t in threads if t.messages][:limit]
        if ctx.owner_email is None:
            ctx.owner_email = self._derive_owner(threads)
        logger.info(f"Found {len(threads)} sent threads for {mask_email(ctx.owner_email or '')}")
        return threads

    @staticmethod
    def _derive_owner(threads: Sequence[Thread]) -> str:
        """The most frequent sender across the fetched threads."""
        return most_frequent_sender(threads)

    def _filter_threads(self, ctx: SyncContext, threads: Sequence[Thread]) -> List[Thread]:
        """Keep the job-related threads, in their original order."""
        keep: Set[str] = set()
        uncertain: List[ThreadHeader] = []

        for thread in threads:
            record = ctx.cache.get(thread.id)
            if record is not None and record.is_job_thread is not None:
                if record.is_job_thread:
                    keep.add(thread.id)
                else:
                    ctx.counters["excluded"] += 1
                continue

            header = extract_header(thread)
            decision = ctx.rules.classify(header, ctx.owner_email or "")
            if decision.action == FilterAction.EXCLUDE:
                ctx.cache.merge(
                    thread.id, is_job_thread=False, filter_source=FilterSource.RULES.value
                )
                ctx.counters["excluded"] += 1
            elif decision.action == FilterAction.INCLUDE:
                ctx.cache.merge(
                    thread.id, is_job_thread=True, filter_source=FilterSource.RULES.value
                )
                keep.add(thread.id)
            else:
                uncertain.append(header)

        if uncertain:
            keep.update(self._prefilter(ctx, uncertain))

        logger.info(
            f"Filter: {len(keep)} job threads, {ctx.counters['excluded']} excluded, "
            f"{len(uncertain)} sent to pre-filter"
        )
        return [t for t in threads if t.id in keep]

    def _prefilter(self, ctx: SyncContext, headers: List[ThreadHeader]) -> Set[str]:
        """
        Ask the LLM which uncertain threads are job-related.

        Any failure includes every uncertain thread; the decision is cached
        with filter_source=fallback.
        """
        ctx.counters["prefiltered"] += len(headers)

        if not ctx.use_llm:
            return self._include_all(ctx, headers, DISABLED_REASON)
        if not ctx.gateway.has_credentials:
            return self._include_all(ctx, headers, FailureReason.NO_KEY.value)

        result = ctx.gateway.call_with_failover(
            build_prefilter_prompt(headers), parse=extract_json_array
        )
        if not result.success:
            return self._include_all(ctx, headers, result.reason)

        included = set(parse_prefilter_indices(result.value, len(headers)))
        keep = set()
        for index, header in enumerate(headers):
            is_job = index in included
            ctx.cache.merge(
                header.thread_id, is_job_thread=is_job, filter_source=FilterSource.LLM.value
            )
            if is_job:
                keep.add(header.thread_id)
            else:
                ctx.counters["excluded"] += 1
        logger.info(f"Pre-filter via {result.provider}: {len(keep)}/{len(headers)} kept")
        return keep

    @staticmethod
    def _include_all(ctx: SyncContext, headers: List[ThreadHeader], reason: Optional[str]) -> Set[str]:
        logger.warning(f"Pre-filter unavailable ({reason}), including {len(headers)} threads")
        for header in headers:
            ctx.cache.merge(
                header.thread_id, is_job_thread=True, filter_source=FilterSource.FALLBACK.value
            )
        return {h.thread_id for h in headers}

    def _parse_thread(
        self, ctx: SyncContext, thread: Thread, record: Optional[TriageRecord] = None
    ) -> Row:
        if record is None:
            record = ctx.cache.get(thread.id)

        header = extract_header(thread)
        elapsed = (ctx.now - _aware(thread.last_date)).total_seconds()
        days = max(0, math.floor(elapsed / SECONDS_PER_DAY))
        from_me = thread.last_from(ctx.owner_email or "")
        first_seen = record.first_seen if record and record.first_seen else ctx.now.timestamp()

        return Row(
            id=thread.id,
            message_count=thread.message_count,
            company=header.domain.split(".")[0] if header.domain else "Unknown",
            contact=header.recipient.split("@")[0],
            subject=thread.subject,
            days=days,
            from_me=from_me,
            body=redact_snippet(thread.last.body or "", int(ctx.config.get("snippet_chars", 300))),
            status=compute_status(from_me, days, ctx.followup_days),
            is_dirty=TriageCache.is_dirty(record, thread.message_count),
            first_seen=first_seen,
            cached=record,
        )

    def _classify(self, ctx: SyncContext, dirty: List[Row]) -> None:
        """Classify dirty rows batch by batch, keeping the last working provider."""
        if not ctx.use_llm:
            self._fallback_all(ctx, dirty, DISABLED_REASON)
            return

        provider = ctx.gateway.select_provider()
        if provider is None:
            self._fallback_all(ctx, dirty, FailureReason.NO_KEY.value)
            return

        batch_size = max(1, int(ctx.config.get("batch_size", 10)))
        for start in range(0, len(dirty), batch_size):
            batch = dirty[start:start + batch_size]
            prompt = build_classify_prompt(batch, ctx.candidate_context, ctx.followup_days)
            result = ctx.gateway.call_with_failover(prompt, start=provider, parse=extract_json_array)

            if not result.success:
                logger.warning(f"Batch {start // batch_size + 1} unclassified: {result.reason}")
                self._fallback_all(ctx, batch, result.reason)
                continue

            provider = result.provider
            applied = self._apply_batch(ctx, batch, result.value, result.provider)
            logger.info(f"Batch {start // batch_size + 1}: {applied}/{len(batch)} classified via {provider}")

    @staticmethod
    def _apply_batch(ctx: SyncContext, batch: List[Row], items: list, provider: str) -> int:
        """Positional match of response items to rows; missing slots fall back."""
        applied = 0
        for index, row in enumerate(batch):
            item = items[index] if index < len(items) else None
            if isinstance(item, dict):
                row.apply(ClassificationResult.from_llm(item), provider)
                applied += 1
            else:
                fallback(row, ERROR_REASON)
                ctx.counters["fallbacks"] += 1
        ctx.counters["classified"] += applied
        return applied

    @staticmethod
    def _fallback_all(ctx: SyncContext, rows: List[Row], reason: Optional[str]) -> None:
        for row in rows:
            fallback(row, reason)
        ctx.counters["fallbacks"] += len(rows)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _stats(rows: Sequence[Row]) -> Dict[str, int]:
        return {
            "total": len(rows),
            "reply_needed": sum(1 for r in rows if r.status == REPLY_NEEDED),
            "follow_up": sum(1 for r in rows if r.status == FOLLOW_UP),
            "waiting": sum(1 for r in rows if r.status == WAITING),
        }

    def _report_error(self, stage: str, message: str) -> None:
        if self.telemetry is not None:
            self.telemetry.error(stage, message)

