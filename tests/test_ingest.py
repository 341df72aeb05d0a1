"""Tests for feed sources."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from civic.ingest import SOURCES
from civic.ingest.demo import DEMO_POSTS, DemoSource
from civic.ingest.http_feed import HTTPFeedSource, parse_post
from civic.models import EMAIL, GROUP, SOCIAL

FEED_URL = "https://feeds.example.org/posts.json"


def _feed_config(**overrides) -> dict:
    settings = {"enabled": True, "urls": [FEED_URL], "max_retries": 0}
    settings.update(overrides)
    return {"sources": {"http_feed": settings}}


def test_sources_registered():
    assert SOURCES["demo"] is DemoSource
    assert SOURCES["http_feed"] is HTTPFeedSource


@pytest.mark.asyncio
async def test_demo_source_serves_full_batch():
    posts = await DemoSource({}).fetch()
    assert len(posts) == 12
    assert posts[0].id == "t1"
    assert {p.source for p in posts} == {SOCIAL, GROUP, EMAIL}
    assert len({p.id for p in posts}) == len(DEMO_POSTS)


@pytest.mark.asyncio
async def test_demo_source_limit():
    posts = await DemoSource({"sources": {"demo": {"enabled": True, "limit": 3}}}).fetch()
    assert [p.id for p in posts] == ["t1", "w1", "t2"]


def test_parse_post_platform_aliases():
    post = parse_post({
        "id": 17, "platform": "WhatsApp", "handle": "Colony Group",
        "raw": "Garbage not collected in our lane for three days now", "time": "4m ago",
    })
    assert post.id == "17"
    assert post.source == GROUP
    assert post.origin_handle == "Colony Group"
    assert post.received_label == "4m ago"
    assert post.location is None


@pytest.mark.parametrize("item", [
    {"text": "missing id"},
    {"id": "x1", "source": "email", "text": "   "},
    {"id": "x2", "source": "carrier-pigeon", "text": "Broken streetlight near the market"},
    {"id": "x3", "source": "social", "text": ["not", "a", "string"]},
    {"id": "x4", "source": 7, "text": "Garbage piling up outside the school gate"},
])
def test_parse_post_rejects_malformed(item):
    with pytest.raises((KeyError, ValueError)):
        parse_post(item)


@pytest.mark.asyncio
async def test_http_feed_disabled_returns_empty():
    source = HTTPFeedSource({"sources": {"http_feed": {"enabled": False, "urls": [FEED_URL]}}})
    assert await source.fetch() == []


@pytest.mark.asyncio
async def test_http_feed_parses_and_skips_malformed():
    payload = {"posts": [
        {"id": "a1", "source": "twitter", "handle": "@resident",
         "text": "Pothole on Ring Road near the flyover is getting bigger every day"},
        {"id": "a2", "source": "fax", "text": "Unknown platform"},
        {"id": "a2b", "source": "twitter", "text": 12345},
        {"id": "a3", "source": "email", "handle": "someone@example.com",
         "text": "Subject: Drain blocked\n\nThe drain outside house 12 is blocked."},
    ]}
    with patch(
        "civic.ingest.http_feed.HTTPFeedSource._fetch_json",
        new_callable=AsyncMock, return_value=payload,
    ):
        posts = await HTTPFeedSource(_feed_config()).fetch()

    assert [p.id for p in posts] == ["a1", "a3"]
    assert posts[0].source == SOCIAL
    assert posts[1].source == EMAIL


@pytest.mark.asyncio
async def test_http_feed_accepts_bare_list():
    payload = [{"id": "b1", "source": "group", "text": "Water tanker did not come to our block today"}]
    with patch(
        "civic.ingest.http_feed.HTTPFeedSource._fetch_json",
        new_callable=AsyncMock, return_value=payload,
    ):
        posts = await HTTPFeedSource(_feed_config()).fetch()
    assert len(posts) == 1
    assert posts[0].source == GROUP


@pytest.mark.asyncio
async def test_http_feed_failed_url_is_skipped():
    good = [{"id": "c1", "source": "social", "text": "Streetlight outage on our road since Monday"}]
    mock_fetch = AsyncMock(side_effect=[ConnectionError("down"), good])
    with patch("civic.ingest.http_feed.HTTPFeedSource._fetch_json", mock_fetch):
        posts = await HTTPFeedSource(
            _feed_config(urls=["https://a.example.org/feed", "https://b.example.org/feed"]),
        ).fetch()

    assert [p.id for p in posts] == ["c1"]
    assert mock_fetch.call_count == 2
