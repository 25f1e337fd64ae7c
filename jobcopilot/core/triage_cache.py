"""
Classification cache - persisted triage records keyed by thread id.

Avoids recomputation by:
- Remembering filter decisions (rules / LLM pre-filter) per thread
- Remembering the last classification (category, play, draft) per thread
- Detecting change only through the thread's message count

The on-disk document carries an explicit schema version. Any mismatch wipes
the store: records are never migrated, only recomputed.
"""

import json
import logging
import os
import tempfile
import threading
import time
from typing import Any, Dict, Optional, Tuple

from .models import TriageRecord

logger = logging.getLogger(__name__)

CACHE_VERSION = 1


class MemoryCacheStore:
    """Volatile store, used for tests and dry runs."""

    def __init__(self, version: int = CACHE_VERSION, records: Optional[Dict[str, Dict]] = None):
        self.version = version
        self.records: Dict[str, Dict[str, Any]] = dict(records or {})
        self.writes = 0

    def read(self) -> Tuple[int, Dict[str, Dict[str, Any]]]:
        return self.version, dict(self.records)

    def write(self, version: int, records: Dict[str, Dict[str, Any]]) -> None:
        self.version = version
        self.records = dict(records)
        self.writes += 1


class JsonFileCacheStore:
    """
    Single JSON document on disk:

        {"schema_version": 1, "updated_at": 1718000000.0, "records": {...}}

    Writes go to a temp file in the same directory and are moved into place,
    so a crash mid-write leaves the previous document intact.
    """

    def __init__(self, path: str):
        self.path = os.path.abspath(os.path.expanduser(path))

    def read(self) -> Tuple[int, Dict[str, Dict[str, Any]]]:
        if not os.path.exists(self.path):
            return CACHE_VERSION, {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                document = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            # Unreadable cache is equivalent to an outdated one
            logger.warning(f"Cache file {self.path} unreadable ({e}), treating as outdated")
            return 0, {}
        if not isinstance(document, dict):
            return 0, {}
        version = document.get("schema_version")
        records = document.get("records")
        if not isinstance(version, int) or not isinstance(records, dict):
            return 0, {}
        return version, records

    def write(self, version: int, records: Dict[str, Dict[str, Any]]) -> None:
        directory = os.path.dirname(self.path)
        os.makedirs(directory, exist_ok=True)
        document = {"schema_version": version, "updated_at": time.time(), "records": records}
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".cache-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(document, f, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise


class TriageCache:
    """
    In-memory view of the persisted triage records.

    The filter stage and the classification stage contribute fields to the
    same record independently through merge(); the whole map is written back
    once per sync with persist_all().

    Usage:
        cache = TriageCache(JsonFileCacheStore("~/.jobcopilot/cache.json"))
        records = cache.load()

        record = cache.get(thread_id)
        if TriageCache.is_dirty(record, live_count):
            ...  # reclassify
        cache.merge(thread_id, message_count=live_count, play="...")

        cache.persist_all()
    """

    def __init__(self, store, version: int = CACHE_VERSION):
        self.store = store
        self.version = version
        self._data: Dict[str, TriageRecord] = {}
        self._lock = threading.Lock()
        self._stats = {"hits": 0, "misses": 0, "merges": 0}

    def load(self) -> Dict[str, TriageRecord]:
        """
        Read persisted records into memory.

        Returns an empty map, after clearing the store, when the persisted
        schema version is not the current one.
        """
        stored_version, raw = self.store.read()

        with self._lock:
            self._data = {}
            if stored_version != self.version:
                logger.info(f"Outdated cache v{stored_version}, clearing.")
                self.store.write(self.version, {})
                return self._data

            for thread_id, fields in raw.items():
                if thread_id and isinstance(fields, dict):
                    self._data[thread_id] = TriageRecord.from_dict(fields)

        logger.info(f"Loaded {len(self._data)} cached triage records")
        return self._data

    def get(self, thread_id: str) -> Optional[TriageRecord]:
        with self._lock:
            record = self._data.get(thread_id)
            self._stats["hits" if record else "misses"] += 1
            return record

    def merge(self, thread_id: str, **fields: Any) -> TriageRecord:
        """
        Shallow-merge fields into the record for thread_id, creating it if absent.

        Fields passed as None are ignored, so a stage never erases what
        another stage wrote.
        """
        unknown = set(fields) - set(TriageRecord.field_names())
        if unknown:
            raise ValueError(f"Unknown triage record fields: {sorted(unknown)}")

        with self._lock:
            record = self._data.get(thread_id)
            if record is None:
                record = TriageRecord()
                self._data[thread_id] = record
            for name, value in fields.items():
                if value is not None:
                    setattr(record, name, value)
            self._stats["merges"] += 1
            return record

    def persist_all(self, records: Optional[Dict[str, TriageRecord]] = None) -> None:
        """Rewrite the whole store from the in-memory map (or the given one)."""
        with self._lock:
            if records is not None:
                self._data = dict(records)
            payload = {tid: rec.to_dict() for tid, rec in self._data.items()}
        self.store.write(self.version, payload)
        logger.info(f"Persisted {len(payload)} triage records")

    def clear(self) -> int:
        """Drop every record, in memory and on disk. Returns the count removed."""
        with self._lock:
            removed = len(self._data)
            self._data = {}
        _, raw = self.store.read()
        removed = max(removed, len(raw))
        self.store.write(self.version, {})
        logger.info(f"Triage cache cleared ({removed} entries)")
        return removed

    @staticmethod
    def is_dirty(record: Optional[TriageRecord], message_count: int) -> bool:
        """A thread needs (re)classification when unseen or its message count moved."""
        return record is None or record.message_count != message_count

    def __len__(self) -> int:
        return len(self._data)

    def get_stats(self) -> Dict:
        with self._lock:
            lookups = self._stats["hits"] + self._stats["misses"]
            hit_rate = self._stats["hits"] / lookups if lookups else 0.0
            return {
                **self._stats,
                "size": len(self._data),
                "hit_rate": round(hit_rate, 3),
                "version": self.version,
            }
