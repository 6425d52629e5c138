# -*- coding: utf-8 -*-
"""
Reputation Cache Module.
In-memory, per-session cache of external lookup results, keyed by (source, key).
Nothing is written to disk and nothing outlives the owning session.
"""
from __future__ import annotations

import threading
from typing import Any, Dict, Optional, Tuple


class ReputationCache:
    def __init__(self) -> None:
        self._entries: Dict[Tuple[str, str], Any] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _key(source: str, key: str) -> Tuple[str, str]:
        return source, key.strip()

    def get(self, source: str, key: str) -> Optional[Any]:
        """Cached result, or None if this source was never resolved for key."""
        with self._lock:
            return self._entries.get(self._key(source, key))

    def set(self, source: str, key: str, result: Any) -> None:
        with self._lock:
            self._entries[self._key(source, key)] = result

    def clear(self) -> int:
        """Clear all cached entries. Returns number of entries deleted."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
