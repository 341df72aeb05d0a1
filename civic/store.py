"""Complaint store sinks the scheduler appends approved records to."""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterator

from civic.db import insert_complaint
from civic.models import ComplaintRecord

logger = logging.getLogger(__name__)


class MemoryStore:
    """Append-only in-process complaint list."""

    def __init__(self):
        self._records: list[ComplaintRecord] = []

    def append(self, record: ComplaintRecord) -> None:
        self._records.append(record)

    @property
    def records(self) -> list[ComplaintRecord]:
        return list(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[ComplaintRecord]:
        return iter(list(self._records))


class SQLiteStore:
    """Writes each appended record to the complaints table."""

    def __init__(self, conn: sqlite3.Connection, run_id: int | None = None):
        self.conn = conn
        self.run_id = run_id
        self.appended = 0

    def append(self, record: ComplaintRecord) -> None:
        insert_complaint(self.conn, record, self.run_id)
        self.appended += 1
        logger.debug("Stored %s (run #%s)", record.display_code, self.run_id)
