#!/usr/bin/env python3
"""Watch an ingestion run live in the terminal.

Runs the configured sources through the scheduler against an in-memory
store and prints every status change as it happens:

    python scripts/watch_feed.py
    python scripts/watch_feed.py --fast
    python scripts/watch_feed.py --status fake
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from civic.config import load_config
from civic.models import PipelineSnapshot
from civic.pipeline import build_scheduler, fetch_posts
from civic.store import MemoryStore

MARKS = {"scanning": "..", "fake": "XX", "approved": "OK"}


def _printer(status_filter: str):
    seen: dict[str, str] = {}

    def on_change(snap: PipelineSnapshot) -> None:
        for view in reversed(snap.filter(status_filter)):
            post = view.post
            if seen.get(post.id) == view.status:
                continue
            seen[post.id] = view.status
            line = f"[{MARKS.get(view.status, '  ')}] {post.origin_handle:<24} {post.text[:50]!r}"
            if view.verdict and view.verdict.is_fake:
                line += f"\n       rejected: {'; '.join(view.verdict.reasons)}"
            if view.classification:
                c = view.classification
                line += f"\n       {c.department or '-'} / {c.urgency} / {c.confidence}%"
            print(line)

    return on_change


async def main() -> None:
    parser = argparse.ArgumentParser(description="Watch a live ingestion run")
    parser.add_argument(
        "--config", default=None,
        help="Config file path (default: config.yaml or CONFIG_PATH env)",
    )
    parser.add_argument(
        "--fast", action="store_true",
        help="Use 0.3s ticks instead of the configured timing",
    )
    parser.add_argument(
        "--status", choices=["all", "scanning", "fake", "approved"], default="all",
        help="Only print posts in this status (default: all)",
    )
    args = parser.parse_args()

    config = load_config(args.config or os.environ.get("CONFIG_PATH", "config.yaml"))
    if args.fast:
        config["scheduler"] = {**(config.get("scheduler") or {}), "tick_interval": 0.3, "resolve_delay": 0.2}

    posts = await fetch_posts(config)
    store = MemoryStore()
    scheduler = build_scheduler(config, store)
    scheduler.add_listener(_printer(args.status))
    scheduler.start(posts)
    await scheduler.wait()

    stats = scheduler.snapshot().stats
    rate = f"{stats.approval_rate}%" if stats.approval_rate is not None else "-"
    print(
        f"\nScanned {stats.scanned}, imported {stats.imported}, "
        f"rejected {stats.rejected}, approval {rate}"
    )


if __name__ == "__main__":
    asyncio.run(main())
