"""Timer-driven ingestion state machine.

One repeating tick task dequeues posts in order; every dequeued post gets
its own one-shot resolution task that fires ``resolve_delay`` seconds
later. Everything runs on a single asyncio event loop.

Post states:  queued -> scanning -> fake | approved
Run states:   idle -> running -> idle
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field, replace
from typing import Protocol

from civic.config import DEFAULT_RESOLVE_DELAY, DEFAULT_TICK_INTERVAL, validate_timing
from civic.models import (
    APPROVED,
    FAKE,
    SCANNING,
    Classification,
    ComplaintRecord,
    PipelineSnapshot,
    PipelineStats,
    PostView,
    RawPost,
    Verdict,
)
from civic.process.classifier import classify
from civic.process.normalize import Normalizer
from civic.process.spam import detect

logger = logging.getLogger(__name__)


class ComplaintSink(Protocol):
    def append(self, record: ComplaintRecord) -> None: ...


@dataclass
class PipelineState:
    """Mutable state of one run, owned by a single scheduler."""

    run_id: int = 0
    posts: tuple[RawPost, ...] = ()
    cursor: int = 0
    statuses: dict[str, str] = field(default_factory=dict)
    verdicts: dict[str, Verdict] = field(default_factory=dict)
    classifications: dict[str, Classification] = field(default_factory=dict)
    stats: PipelineStats = field(default_factory=PipelineStats)

    @property
    def exhausted(self) -> bool:
        return self.cursor >= len(self.posts)


class IngestionScheduler:
    """Drive a batch of RawPosts through detect -> classify -> normalize."""

    def __init__(
        self,
        sink: ComplaintSink,
        *,
        tick_interval: float = DEFAULT_TICK_INTERVAL,
        resolve_delay: float = DEFAULT_RESOLVE_DELAY,
        normalizer: Normalizer | None = None,
        hint: str = "",
    ):
        validate_timing(tick_interval, resolve_delay)
        self.sink = sink
        self.tick_interval = tick_interval
        self.resolve_delay = resolve_delay
        self.normalizer = normalizer or Normalizer()
        self.hint = hint

        self.state = PipelineState()
        self._running = False
        self._live_run: int | None = None
        self._tick_task: asyncio.Task | None = None
        self._pending: set[asyncio.Task] = set()
        self._listeners: list[Callable[[PipelineSnapshot], None]] = []

    @property
    def running(self) -> bool:
        return self._running

    @property
    def run_id(self) -> int:
        return self.state.run_id

    def add_listener(self, listener: Callable[[PipelineSnapshot], None]) -> None:
        """Call ``listener(snapshot)`` after every state change."""
        self._listeners.append(listener)

    def start(self, posts: Sequence[RawPost]) -> bool:
        """Begin a run over ``posts``. Returns False if one is already active.

        Must be called from within a running event loop.
        """
        if self._running:
            logger.warning("Run #%d already in progress, ignoring start", self.state.run_id)
            return False

        loop = asyncio.get_running_loop()  # RuntimeError here leaves the scheduler idle
        self.state = PipelineState(run_id=self.state.run_id + 1, posts=tuple(posts))
        self._running = True
        self._live_run = self.state.run_id
        self._tick_task = loop.create_task(self._tick_loop(self.state.run_id))
        logger.info("Ingestion run #%d started with %d posts", self.state.run_id, len(posts))
        self._notify()
        return True

    def cancel(self) -> None:
        """Stop the active run; in-flight resolutions are dropped."""
        if not self._running:
            return
        if self._tick_task is not None:
            self._tick_task.cancel()
        for task in list(self._pending):
            task.cancel()
        self._pending.clear()
        self._running = False
        self._live_run = None
        logger.info(
            "Ingestion run #%d cancelled after %d/%d posts",
            self.state.run_id, self.state.cursor, len(self.state.posts),
        )
        self._notify()

    async def wait(self) -> None:
        """Wait for the current run and all its pending resolutions to finish."""
        if self._tick_task is not None:
            try:
                await self._tick_task
            except asyncio.CancelledError:
                if not self._tick_task.cancelled():
                    raise
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def snapshot(self) -> PipelineSnapshot:
        s = self.state
        views = tuple(
            PostView(
                post=post,
                status=s.statuses[post.id],
                verdict=s.verdicts.get(post.id),
                classification=s.classifications.get(post.id),
            )
            for post in reversed(s.posts[: s.cursor])
        )
        return PipelineSnapshot(
            run_id=s.run_id,
            running=self._running,
            cursor=s.cursor,
            total=len(s.posts),
            stats=replace(s.stats),
            posts=views,
            pending_ids=frozenset(p.id for p in s.posts[s.cursor:]),
        )

    # --- state transitions ---

    async def _tick_loop(self, run_id: int) -> None:
        while True:
            await asyncio.sleep(self.tick_interval)
            if not self._tick(run_id):
                return

    def _tick(self, run_id: int) -> bool:
        """Dequeue the next post. Returns False once the run has ended."""
        s = self.state
        if run_id != s.run_id or not self._running:
            return False

        if s.exhausted:
            self._running = False
            logger.info(
                "Ingestion run #%d finished: scanned=%d imported=%d rejected=%d",
                run_id, s.stats.scanned, s.stats.imported, s.stats.rejected,
            )
            self._notify()
            return False

        post = s.posts[s.cursor]
        s.cursor += 1
        s.statuses[post.id] = SCANNING
        s.stats.scanned += 1
        logger.debug("Scanning post %s from %s", post.id, post.source)

        task = asyncio.get_running_loop().create_task(self._resolve_later(run_id, post))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        self._notify()
        return True

    async def _resolve_later(self, run_id: int, post: RawPost) -> None:
        await asyncio.sleep(self.resolve_delay)
        self._resolve(run_id, post)

    def _resolve(self, run_id: int, post: RawPost) -> None:
        s = self.state
        if run_id != self._live_run:
            logger.debug("Discarding stale resolution of %s from run #%d", post.id, run_id)
            return

        verdict = detect(post.text)
        if verdict.is_fake:
            s.statuses[post.id] = FAKE
            s.verdicts[post.id] = verdict
            s.stats.rejected += 1
            logger.info("Rejected post %s: %s", post.id, "; ".join(verdict.reasons))
            self._notify()
            return

        classification = classify(post.text, self.hint)
        record = self.normalizer.normalize(post, classification)
        s.statuses[post.id] = APPROVED
        s.verdicts[post.id] = verdict
        s.classifications[post.id] = classification
        s.stats.imported += 1
        logger.info(
            "Imported post %s as %s (%s, %s, %d%%)",
            post.id, record.display_code, record.department,
            record.urgency, classification.confidence,
        )
        try:
            self.sink.append(record)
        except Exception:
            logger.exception("Complaint store rejected %s", record.display_code)
        self._notify()

    def _notify(self) -> None:
        if not self._listeners:
            return
        snap = self.snapshot()
        for listener in self._listeners:
            try:
                listener(snap)
            except Exception:
                logger.exception("Snapshot listener failed")
