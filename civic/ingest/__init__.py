"""Input feed registry."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from civic.ingest.base import BaseSource

SOURCES: dict[str, type[BaseSource]] = {}


def register_source(name: str):
    """Decorator to register a feed source."""

    def decorator(cls):
        SOURCES[name] = cls
        return cls

    return decorator


# Import implementations to trigger registration
from civic.ingest.demo import DemoSource  # noqa: E402, F401
from civic.ingest.http_feed import HTTPFeedSource  # noqa: E402, F401
