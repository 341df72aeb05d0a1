"""Pipeline orchestrator: fetch feeds, run the scheduler, persist results."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timezone

from civic.config import (
    get_active_sources,
    get_db_path,
    get_default_department,
    get_random_seed,
    get_scheduler_settings,
)
from civic.db import finish_run, get_connection, insert_run
from civic.ingest import SOURCES
from civic.models import IngestionRun, PipelineSnapshot, RawPost
from civic.process.normalize import Normalizer
from civic.scheduler import IngestionScheduler
from civic.store import SQLiteStore

logger = logging.getLogger(__name__)


async def fetch_posts(config: dict) -> list[RawPost]:
    """Fetch all active sources concurrently, in configured order."""
    active_sources = get_active_sources(config)

    async def _fetch(source_name: str) -> list[RawPost]:
        try:
            return await SOURCES[source_name](config).fetch()
        except Exception:
            logger.exception("Source '%s' failed", source_name)
            return []

    valid_sources = [s for s in active_sources if s in SOURCES]
    for s in active_sources:
        if s not in SOURCES:
            logger.warning("Source '%s' enabled but not registered", s)

    results = await asyncio.gather(*[_fetch(name) for name in valid_sources])

    seen: set[str] = set()
    posts = []
    for batch in results:
        for post in batch:
            if post.id in seen:
                logger.debug("Dropping duplicate post id %s", post.id)
                continue
            seen.add(post.id)
            posts.append(post)

    logger.info("Fetched %d posts from %d sources", len(posts), len(valid_sources))
    return posts


def build_scheduler(config: dict, sink) -> IngestionScheduler:
    settings = get_scheduler_settings(config)
    normalizer = Normalizer(
        seed=get_random_seed(config),
        default_department=get_default_department(config),
    )
    return IngestionScheduler(
        sink,
        tick_interval=settings["tick_interval"],
        resolve_delay=settings["resolve_delay"],
        normalizer=normalizer,
        hint=settings["hint"],
    )


async def run_ingestion(
    config: dict,
    listener: Callable[[PipelineSnapshot], None] | None = None,
) -> IngestionRun:
    """Execute one full ingestion run and record it in the database."""
    conn = get_connection(get_db_path(config))
    run = IngestionRun()
    run_id = insert_run(conn, run)
    logger.info("Ingestion run #%d started", run_id)

    try:
        posts = await fetch_posts(config)
        run.posts_fetched = len(posts)

        if not posts:
            logger.warning("No posts fetched, nothing to ingest")
        else:
            scheduler = build_scheduler(config, SQLiteStore(conn, run_id))
            if listener is not None:
                scheduler.add_listener(listener)
            scheduler.start(posts)
            await scheduler.wait()

            stats = scheduler.snapshot().stats
            run.scanned = stats.scanned
            run.imported = stats.imported
            run.rejected = stats.rejected

        run.status = "completed"
        run.finished_at = datetime.now(timezone.utc)
        finish_run(conn, run_id, run)
        logger.info(
            "Ingestion run #%d completed: %d fetched, %d imported, %d rejected",
            run_id, run.posts_fetched, run.imported, run.rejected,
        )
        run.id = run_id
        return run

    except Exception:
        logger.exception("Ingestion run #%d failed", run_id)
        run.status = "failed"
        run.finished_at = datetime.now(timezone.utc)
        finish_run(conn, run_id, run)
        raise
    finally:
        conn.close()
