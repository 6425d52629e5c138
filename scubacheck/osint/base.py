from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, List, Optional, Set

from scubacheck.cache import ReputationCache
from scubacheck.http_client import HttpClient, SourceUnavailable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LookupResult:
    source: str
    key: str
    ok: bool
    data: Any = None
    error: Optional[str] = None
    cached: bool = False


@dataclass
class Verdict:
    """What one successful lookup adds to a URL's reputation."""
    points: int = 0
    reasons: List[str] = field(default_factory=list)
    categories: Set[str] = field(default_factory=set)


class OsintProvider(ABC):
    name: str
    label: str

    def __init__(self, config: dict, http: HttpClient, cache: ReputationCache):
        self.config = config
        self.http = http
        self.cache = cache

    def available(self) -> bool:
        return True

    @abstractmethod
    def fetch(self, key: str) -> Any:
        """Query the source. Raises SourceUnavailable when it has no answer."""

    def check(self, key: str) -> LookupResult:
        cached = self.cache.get(self.name, key)
        if cached is not None:
            return LookupResult(self.name, key, ok=True, data=cached, cached=True)

        try:
            data = self.fetch(key)
        except SourceUnavailable as e:
            if e.rate_limited:
                logger.info("%s rate limit reached, skipping check for %s", self.label, key)
            else:
                logger.warning("%s unavailable for %s: %s", self.label, key, e)
            return LookupResult(self.name, key, ok=False, error=str(e))

        self.cache.set(self.name, key, data)
        return LookupResult(self.name, key, ok=True, data=data)


class ReputationProvider(OsintProvider):
    """A source consulted for every extracted URL."""

    @abstractmethod
    def key_for(self, record) -> str:
        """Lookup key for a URLRecord (its domain or full URL)."""

    @abstractmethod
    def evaluate(self, data: Any) -> Verdict:
        pass
