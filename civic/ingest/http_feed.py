"""Multi-source connector that pulls JSON post batches over HTTP."""

from __future__ import annotations

import logging

import httpx

from civic.ingest import register_source
from civic.ingest.base import BaseSource
from civic.models import RawPost, source_kind
from civic.retry import retry_async

logger = logging.getLogger(__name__)


def parse_post(item: dict) -> RawPost:
    """Build a RawPost from one feed item.

    Raises ValueError (or KeyError) for items missing an id or body, or
    with an unknown platform label.
    """
    post_id = str(item["id"]).strip()
    text = item.get("text") or item.get("raw") or ""
    if not isinstance(text, str):
        raise ValueError(f"Feed item {item.get('id')!r} text is {type(text).__name__}, not str")
    if not post_id or not text.strip():
        raise ValueError(f"Feed item {item.get('id')!r} has no id or text")

    return RawPost(
        id=post_id,
        source=source_kind(item.get("source") or item.get("platform") or ""),
        origin_handle=item.get("handle") or item.get("origin_handle") or "",
        received_label=item.get("time") or item.get("received_label") or "",
        text=text,
        location=item.get("location") or None,
    )


@register_source("http_feed")
class HTTPFeedSource(BaseSource):
    """Fetch posts from configured JSON endpoints.

    Each endpoint returns either a list of items or ``{"posts": [...]}``.
    """

    @property
    def name(self) -> str:
        return "http_feed"

    async def fetch(self) -> list[RawPost]:
        cfg = self.settings
        if not cfg.get("enabled", False):
            return []

        timeout = cfg.get("timeout", 30)
        max_retries = cfg.get("max_retries", 3)

        posts = []
        for url in cfg.get("urls", []):
            try:
                data = await retry_async(
                    self._fetch_json, url, timeout, max_retries=max_retries,
                )
            except Exception:
                logger.exception("Feed request failed: %s", url)
                continue
            posts.extend(self._parse_items(url, data))

        logger.info("HTTP feed fetched %d posts from %d URLs", len(posts), len(cfg.get("urls", [])))
        return posts

    @staticmethod
    def _parse_items(url: str, data) -> list[RawPost]:
        items = data.get("posts", []) if isinstance(data, dict) else data
        if not isinstance(items, list):
            logger.warning("Unexpected payload from %s: %s", url, type(data).__name__)
            return []

        posts = []
        for item in items:
            try:
                posts.append(parse_post(item))
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping malformed item from %s: %s", url, exc)
        return posts

    @staticmethod
    async def _fetch_json(url: str, timeout: float):
        async with httpx.AsyncClient(timeout=timeout) as client:
            resp = await client.get(url)
            resp.raise_for_status()
            return resp.json()
