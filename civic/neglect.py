"""Flag complaints left unresolved past an age threshold."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime, timedelta, timezone
from typing import Any

from civic.config import DEFAULT_NEGLECT_DAYS

JUST_CREATED = "Just now"
MS_PER_DAY = 24 * 60 * 60 * 1000
_ONE_MS = timedelta(milliseconds=1)


def _field(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def _created_at(record: Any) -> datetime | None:
    # Older stores keep the creation time under "timestamp"
    raw = _field(record, "created_at") or _field(record, "timestamp")
    if isinstance(raw, datetime):
        created = raw
    elif isinstance(raw, str) and raw and raw != JUST_CREATED:
        try:
            created = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    return created


def is_neglected(
    record: Any,
    now: datetime | None = None,
    threshold_days: int = DEFAULT_NEGLECT_DAYS,
) -> bool:
    """True if the record is unresolved and at least threshold_days old.

    Age is counted in whole days by flooring the millisecond difference,
    so 29 days 23 hours is not yet 30 days.
    """
    if _field(record, "status") == "resolved":
        return False

    created = _created_at(record)
    if created is None:
        return False

    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    elapsed_ms = (now - created) // _ONE_MS
    return elapsed_ms // MS_PER_DAY >= threshold_days


def count_neglected(
    records: Iterable[Any],
    now: datetime | None = None,
    threshold_days: int = DEFAULT_NEGLECT_DAYS,
) -> int:
    now = now or datetime.now(timezone.utc)
    return sum(1 for r in records if is_neglected(r, now, threshold_days))
