import atexit
import faulthandler
import os
import sys
import tempfile
import threading
from typing import Dict, Optional

# File logging must not touch the real home directory during tests
os.environ.setdefault("JOBCOPILOT_LOG_DIR", tempfile.mkdtemp(prefix="jobcopilot-logs-"))

import pytest

from tests.helpers import NOW, OWNER


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _start_watchdog(timeout_seconds: int) -> Optional[threading.Timer]:
    if timeout_seconds <= 0:
        return None

    def _kill() -> None:
        try:
            faulthandler.dump_traceback(file=sys.stderr, all_threads=True)
        except Exception:
            pass
        # Hard exit: guarantees CI can't hang forever.
        os._exit(2)

    timer = threading.Timer(timeout_seconds, _kill)
    timer.daemon = True
    timer.start()
    return timer


def pytest_sessionstart(session) -> None:  # noqa: ANN001
    try:
        faulthandler.enable(all_threads=True)
    except Exception:
        pass

    # Upper bound for the whole run; the suite makes no network calls
    watchdog_seconds = _env_int("PYTEST_WATCHDOG_TIMEOUT_SECONDS", 10 * 60)
    timer = _start_watchdog(watchdog_seconds)
    if timer is not None:
        atexit.register(timer.cancel)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def base_config() -> Dict:
    return {
        "lookback": 50,
        "followup_days": 5,
        "batch_size": 10,
        "snippet_chars": 300,
        "use_llm": True,
        "final_categories": ["Offer", "Final Round", "Contract"],
        "blocked_domains": [],
        "owner_email": OWNER,
    }
