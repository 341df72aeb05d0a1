"""CLI entrypoint: python -m civic {run|ingest|check|neglected|init-db|stats}."""

from __future__ import annotations

import asyncio
import inspect
import logging
import logging.handlers
import os
import sys
from pathlib import Path

from civic.config import (
    get_active_sources,
    get_db_path,
    get_log_level,
    get_neglect_threshold,
    load_config,
)
from civic.db import get_complaints, get_connection, get_recent_runs, init_db


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_FILE_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUPS = 3


def setup_logging(config: dict) -> None:
    """Send log records to stderr and to civic.log beside the database."""
    formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    log_file = Path(get_db_path(config)).parent / "civic.log"
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handlers = [
        logging.StreamHandler(),
        logging.handlers.RotatingFileHandler(
            str(log_file), maxBytes=LOG_FILE_BYTES, backupCount=LOG_FILE_BACKUPS,
        ),
    ]

    root = logging.getLogger()
    root.setLevel(get_log_level(config))
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)

    # Connector request lines are noise at INFO
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def cmd_init_db(config: dict) -> None:
    """Create the complaint and run tables if they are missing."""
    db_path = get_db_path(config)
    init_db(db_path)
    print(f"Complaint store ready at {db_path}")


async def cmd_run(config: dict) -> None:
    """Run one ingestion pass over every active source."""
    from civic.pipeline import run_ingestion

    init_db(get_db_path(config))
    run = await run_ingestion(config)
    rate = run.stats.approval_rate
    shown = f"{rate}%" if rate is not None else "-"
    print(
        f"Run #{run.id}: scanned {run.scanned}, imported {run.imported}, "
        f"rejected {run.rejected} (approval {shown})"
    )


async def cmd_ingest(config: dict) -> None:
    """Fetch posts without scheduling them (for testing sources)."""
    from civic.ingest import SOURCES

    total = 0
    for source_name in get_active_sources(config):
        if source_name not in SOURCES:
            print(f"Warning: source '{source_name}' not registered")
            continue
        posts = await SOURCES[source_name](config).fetch()
        print(f"  {source_name}: {len(posts)} posts")
        total += len(posts)

    print(f"\nTotal: {total} posts fetched")


def cmd_check(config: dict) -> None:
    """Print the verdict and classification for text given on the command line."""
    from civic.process import classify, detect

    text = " ".join(sys.argv[2:])
    if not text:
        print("Usage: python -m civic check <text>")
        sys.exit(1)

    verdict = detect(text)
    if verdict.is_fake:
        print("FAKE")
        for reason in verdict.reasons:
            print(f"  - {reason}")
        return

    result = classify(text)
    print("GENUINE")
    print(f"  department: {result.department or '-'}")
    print(f"  urgency:    {result.urgency}")
    print(f"  confidence: {result.confidence}%")


def cmd_neglected(config: dict) -> None:
    """List stored complaints that have been left unresolved too long."""
    from civic.neglect import is_neglected

    threshold = get_neglect_threshold(config)
    init_db(get_db_path(config))
    conn = get_connection(get_db_path(config))
    complaints = get_complaints(conn)
    conn.close()

    neglected = [c for c in complaints if is_neglected(c, threshold_days=threshold)]
    if not neglected:
        print(f"No complaints older than {threshold} days are unresolved.")
        return

    for c in neglected:
        print(f"{c.display_code:<14} {c.urgency:<7} {c.department:<22} {c.created_at[:10]}  {c.title}")
    print(f"\n{len(neglected)} of {len(complaints)} complaints neglected")


def cmd_stats(config: dict) -> None:
    """Show recent ingestion run stats."""
    conn = get_connection(get_db_path(config))
    runs = get_recent_runs(conn, limit=10)
    conn.close()

    if not runs:
        print("No ingestion runs yet.")
        return

    header = (
        f"{'Run':>4} {'Status':<10} {'Fetched':<8} {'Scanned':<8} "
        f"{'Imported':<9} {'Rejected':<9} {'Started'}"
    )
    print(header)
    print("-" * 75)
    for r in runs:
        print(
            f"{r['id']:>4} {r['status']:<10} {r['posts_fetched']:<8} "
            f"{r['scanned']:<8} {r['imported']:<9} {r['rejected']:<9} "
            f"{r['started_at']}"
        )


COMMANDS = {
    "run": cmd_run,
    "ingest": cmd_ingest,
    "check": cmd_check,
    "neglected": cmd_neglected,
    "init-db": cmd_init_db,
    "stats": cmd_stats,
}


def main() -> None:
    if len(sys.argv) < 2 or sys.argv[1] not in COMMANDS:
        available = ", ".join(COMMANDS)
        print(f"Usage: python -m civic {{{available}}}")
        sys.exit(1)

    command = sys.argv[1]
    config = load_config(os.environ.get("CONFIG_PATH", "config.yaml"))
    setup_logging(config)
    handler = COMMANDS[command]

    if inspect.iscoroutinefunction(handler):
        asyncio.run(handler(config))
    else:
        handler(config)


if __name__ == "__main__":
    main()
