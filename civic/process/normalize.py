"""Build store-ready complaint records from approved posts.

Coordinates are a display approximation only: a random pick from a small
set of known city locations, jittered so markers do not stack. No real
geocoding happens here.
"""

from __future__ import annotations

import random
import re
from collections.abc import Callable
from datetime import datetime, timezone

from civic.config import DEFAULT_DEPARTMENT
from civic.models import EMAIL, ComplaintRecord, Classification, RawPost

TITLE_LIMIT = 60
ELLIPSIS = "..."
AUTO_LOCATION = "Auto-detected from post"
MAX_JITTER = 0.005

_HASHTAG_RE = re.compile(r"#\w+")
_SUBJECT_RE = re.compile(r"^\s*subject:\s*(.+)$", re.IGNORECASE | re.MULTILINE)

# Delhi neighbourhoods spread across the city for the heat map
CITY_SPOTS: tuple[tuple[float, float], ...] = (
    (28.6315, 77.2167), (28.5677, 77.2433), (28.7298, 77.1116), (28.6517, 77.1906),
    (28.5823, 77.0500), (28.6289, 77.0836), (28.6692, 77.2887), (28.7006, 77.1318),
    (28.5488, 77.2519), (28.6780, 77.2223), (28.7147, 77.1902), (28.5756, 77.1935),
)


def strip_hashtags(text: str) -> str:
    return _HASHTAG_RE.sub("", text or "").strip()


def make_title(post: RawPost) -> str:
    """Hashtag-free, single-line excerpt capped at TITLE_LIMIT characters."""
    source_text = post.text or ""
    if post.source == EMAIL:
        match = _SUBJECT_RE.search(source_text)
        if match:
            source_text = match.group(1)

    title = " ".join(strip_hashtags(source_text).split())
    if len(title) > TITLE_LIMIT:
        return title[:TITLE_LIMIT].rstrip() + ELLIPSIS
    return title


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Normalizer:
    """Turns a RawPost plus its Classification into a ComplaintRecord.

    All randomness (record ids, display codes, coordinates, upvote seed)
    is drawn from one ``random.Random`` so a fixed seed gives repeatable
    output.
    """

    def __init__(
        self,
        rng: random.Random | None = None,
        seed: int | None = None,
        clock: Callable[[], datetime] | None = None,
        default_department: str = DEFAULT_DEPARTMENT,
        spots: tuple[tuple[float, float], ...] = CITY_SPOTS,
    ):
        self.rng = rng or random.Random(seed)
        self.clock = clock or _utcnow
        self.default_department = default_department
        self.spots = spots

    def locate(self) -> tuple[float, float]:
        lat, lng = self.rng.choice(self.spots)
        lat += (self.rng.random() - 0.5) * 2 * MAX_JITTER
        lng += (self.rng.random() - 0.5) * 2 * MAX_JITTER
        return lat, lng

    def new_id(self, created: datetime) -> str:
        millis = int(created.timestamp() * 1000)
        return f"{millis:x}-{self.rng.getrandbits(64):016x}"

    def display_code(self, created: datetime) -> str:
        return f"CMR-{created.year}-{2000 + self.rng.randrange(999)}"

    def normalize(self, post: RawPost, classification: Classification) -> ComplaintRecord:
        created = self.clock()
        lat, lng = self.locate()
        return ComplaintRecord(
            id=self.new_id(created),
            display_code=self.display_code(created),
            title=make_title(post),
            description=strip_hashtags(post.text),
            location=post.location or AUTO_LOCATION,
            urgency=classification.urgency or "medium",
            department=classification.department or self.default_department,
            status="open",
            upvotes=self.rng.randrange(20),
            created_at=created.isoformat(),
            source=post.source,
            source_handle=post.origin_handle,
            lat=lat,
            lng=lng,
        )


_default_normalizer: Normalizer | None = None


def normalize(post: RawPost, classification: Classification) -> ComplaintRecord:
    """Normalize with a process-wide, unseeded Normalizer."""
    global _default_normalizer
    if _default_normalizer is None:
        _default_normalizer = Normalizer()
    return _default_normalizer.normalize(post, classification)
