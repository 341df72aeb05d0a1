"""Core data models for the civic ingestion pipeline."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone

SOCIAL = "social-short-form"
GROUP = "group-message"
EMAIL = "email"

# Connector platform labels -> source kind
SOURCE_ALIASES = {
    "social-short-form": SOCIAL,
    "social": SOCIAL,
    "twitter": SOCIAL,
    "x": SOCIAL,
    "bluesky": SOCIAL,
    "group-message": GROUP,
    "group": GROUP,
    "whatsapp": GROUP,
    "telegram": GROUP,
    "email": EMAIL,
    "mail": EMAIL,
}

QUEUED = "queued"
SCANNING = "scanning"
FAKE = "fake"
APPROVED = "approved"


def source_kind(label: str) -> str:
    """Map a platform label onto one of the three source kinds."""
    kind = SOURCE_ALIASES.get(label.strip().lower()) if isinstance(label, str) else None
    if kind is None:
        raise ValueError(f"Unknown source label: {label!r}")
    return kind


@dataclass(frozen=True)
class RawPost:
    """A single unprocessed submission from any source."""

    id: str
    source: str  # social-short-form, group-message, email
    origin_handle: str
    text: str
    received_label: str = ""
    location: str | None = None


@dataclass(frozen=True)
class Verdict:
    """Fake/spam detector outcome."""

    reasons: tuple[str, ...] = ()

    @property
    def is_fake(self) -> bool:
        return bool(self.reasons)


@dataclass(frozen=True)
class Classification:
    """Inferred urgency and department for a genuine post."""

    urgency: str  # low, medium, high
    department: str | None
    confidence: int


@dataclass(frozen=True)
class ComplaintRecord:
    """Normalized complaint, ready for the complaint store."""

    id: str
    display_code: str
    title: str
    description: str
    location: str
    urgency: str
    department: str
    created_at: str
    source: str
    source_handle: str
    lat: float
    lng: float
    status: str = "open"  # open, in-progress, resolved
    upvotes: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class PipelineStats:
    """Running counters for one ingestion run."""

    scanned: int = 0
    imported: int = 0
    rejected: int = 0

    @property
    def approval_rate(self) -> int | None:
        """Share of scanned posts that were imported, as a rounded percentage."""
        if not self.scanned:
            return None
        return round(self.imported / self.scanned * 100)


@dataclass(frozen=True)
class PostView:
    """A dequeued post with its current status and resolution result."""

    post: RawPost
    status: str
    verdict: Verdict | None = None
    classification: Classification | None = None


@dataclass(frozen=True)
class PipelineSnapshot:
    """Read-only copy of scheduler state for the presentation layer."""

    run_id: int
    running: bool
    cursor: int
    total: int
    stats: PipelineStats
    posts: tuple[PostView, ...] = ()
    pending_ids: frozenset[str] = frozenset()

    def filter(self, status: str | None = None) -> list[PostView]:
        if status in (None, "all"):
            return list(self.posts)
        return [view for view in self.posts if view.status == status]

    def status_of(self, post_id: str) -> str | None:
        for view in self.posts:
            if view.post.id == post_id:
                return view.status
        if post_id in self.pending_ids:
            return QUEUED
        return None


@dataclass
class IngestionRun:
    """Record of a single ingestion run."""

    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: datetime | None = None
    status: str = "running"  # running, completed, failed
    posts_fetched: int = 0
    scanned: int = 0
    imported: int = 0
    rejected: int = 0
    id: int | None = None

    @property
    def stats(self) -> PipelineStats:
        return PipelineStats(scanned=self.scanned, imported=self.imported, rejected=self.rejected)
