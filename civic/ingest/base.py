"""Abstract base class for all feed sources."""

from __future__ import annotations

from abc import ABC, abstractmethod

from civic.models import RawPost


class BaseSource(ABC):
    """Base class for raw post feeds."""

    def __init__(self, config: dict):
        self.config = config

    @property
    def settings(self) -> dict:
        return (self.config.get("sources") or {}).get(self.name) or {}

    @abstractmethod
    async def fetch(self) -> list[RawPost]:
        """Fetch the current batch of posts, oldest first."""
        ...

    @property
    @abstractmethod
    def name(self) -> str:
        """Registry name of the source."""
        ...
