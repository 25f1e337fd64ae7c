"""
Anonymous usage telemetry.

Events are small JSON posts `{ts, uid, v, event, ...}`. The uid is derived
from the local install id and cannot be mapped back to an account. Nothing is
sent unless telemetry is enabled and an endpoint is configured, and a failed
post never affects the caller.
"""

import hashlib
import logging
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

import requests

from ..__version__ import __version__

logger = logging.getLogger(__name__)

UID_SALT = "copilot"
ERROR_MESSAGE_CHARS = 100


def make_uid(install_id: str) -> str:
    """First 12 hex chars of md5(install_id + salt)."""
    return hashlib.md5((install_id + UID_SALT).encode("utf-8")).hexdigest()[:12]


class Telemetry:
    def __init__(
        self,
        endpoint: Optional[str] = None,
        install_id: str = "",
        enabled: bool = True,
        timeout: int = 10,
        install_id_loader: Optional[Callable[[], str]] = None,
    ):
        self.endpoint = endpoint or ""
        self.enabled = bool(enabled and self.endpoint)
        self.timeout = timeout
        self._install_id = install_id
        self._install_id_loader = install_id_loader
        self._uid: Optional[str] = None

    @classmethod
    def from_config(cls, telemetry_config: Optional[Dict], install_id_loader=None) -> "Telemetry":
        cfg = telemetry_config or {}
        return cls(
            endpoint=cfg.get("endpoint"),
            enabled=cfg.get("enabled", False),
            install_id_loader=install_id_loader,
        )

    @property
    def uid(self) -> str:
        if self._uid is None:
            install_id = self._install_id
            if not install_id and self._install_id_loader is not None:
                install_id = self._install_id_loader() or ""
            self._uid = make_uid(install_id)
        return self._uid

    def _send(self, data: Dict) -> bool:
        if not self.enabled:
            return False
        try:
            payload = {
                "ts": datetime.now(timezone.utc).isoformat(),
                "uid": self.uid,
                "v": __version__,
                **data,
            }
            requests.post(self.endpoint, json=payload, timeout=self.timeout)
            return True
        except Exception as e:
            logger.debug(f"Telemetry failed: {e}")
            return False

    def install(self, stats: Optional[Dict] = None) -> bool:
        stats = stats or {}
        logger.info("Sending install event")
        return self._send({
            "event": "install",
            "threads": stats.get("total", 0),
            "reply": stats.get("reply_needed", 0),
            "follow": stats.get("follow_up", 0),
            "wait": stats.get("waiting", 0),
        })

    def sync(self, stats: Dict) -> bool:
        return self._send({
            "event": "sync",
            "threads": stats.get("total", 0),
            "reply": stats.get("reply_needed", 0),
            "follow": stats.get("follow_up", 0),
            "wait": stats.get("waiting", 0),
            "runtime": stats.get("runtime_ms", 0),
            "llm_calls": stats.get("llm_calls", 0),
            "cache_hits": stats.get("cache_hits", 0),
        })

    def error(self, stage: Optional[str], message: Optional[str]) -> bool:
        return self._send({
            "event": "error",
            "error_stage": stage or "unknown",
            "error_msg": (message or "unknown error")[:ERROR_MESSAGE_CHARS],
        })
