"""
Dashboard table rendering.

The table is a display artefact only; the cache is the source of truth. Every
text cell goes through sanitize_for_display, since subjects and addresses come
from other people and play, draft and category come from the LLM.
"""

import csv
import logging
import os
import tempfile
from typing import List, Sequence

from ..utils.sanitize import sanitize_for_display
from .models import Row

logger = logging.getLogger(__name__)

HEADERS = ["Done", "Status", "Company", "The Play", "Draft", "Days", "Contact", "Subject", "Type"]
SUBJECT_CHARS = 50


def build_table(rows: Sequence[Row]) -> List[List]:
    """Header row followed by one row per thread, in input order."""
    table: List[List] = [list(HEADERS)]
    for r in rows:
        table.append([
            False,
            r.status.label,
            sanitize_for_display(r.company),
            sanitize_for_display(r.play),
            sanitize_for_display(r.draft),
            r.days,
            sanitize_for_display(r.contact),
            sanitize_for_display((r.subject or "")[:SUBJECT_CHARS]),
            sanitize_for_display(r.category),
        ])
    return table


class CsvTableRenderer:
    """Writes the dashboard to a CSV file, replacing the previous one."""

    def __init__(self, path: str):
        self.path = os.path.abspath(os.path.expanduser(path))

    def render(self, rows: Sequence[Row]) -> None:
        directory = os.path.dirname(self.path)
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".dashboard-", suffix=".csv")
        try:
            with os.fdopen(fd, "w", newline="", encoding="utf-8") as f:
                csv.writer(f).writerows(build_table(rows))
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
        logger.info(f"Dashboard written: {len(rows)} rows -> {self.path}")
