"""
Analysis Result Cache

In-memory TTL cache for remote analysis envelopes.
Key = SHA-256(text + locale + mode). Identical uploads within the TTL
reuse the previous answer instead of calling the remote classifier again.

Guarded by an asyncio lock.

Usage:
    from lieanalyzer.cache import analysis_cache
    cached = await analysis_cache.get(text, locale, mode)
    if cached:
        return cached
    result = await analyze_remote(...)
    await analysis_cache.put(text, locale, mode, result)
"""

from __future__ import annotations

import asyncio
import hashlib
import time
from typing import Optional

from lieanalyzer.config import settings


class AnalysisCache:
    """In-memory cache with TTL expiry and oldest-first eviction."""

    def __init__(self, ttl_seconds: int = 3600, max_entries: int = 500):
        self._entries: dict[str, tuple[float, dict]] = {}
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._lock = asyncio.Lock()
        self._hits = 0
        self._misses = 0

    @staticmethod
    def _make_key(text: str, locale: str, mode: str) -> str:
        raw = f"{text}||{locale}||{mode}"
        return hashlib.sha256(raw.encode()).hexdigest()

    async def get(self, text: str, locale: str, mode: str) -> Optional[dict]:
        """Return a copy of the cached envelope, or None if absent or expired."""
        key = self._make_key(text, locale, mode)
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None

            stored_at, envelope = entry
            if time.monotonic() - stored_at > self._ttl:
                del self._entries[key]
                self._misses += 1
                return None

            self._hits += 1
            return {**envelope, "cached": True}

    async def put(self, text: str, locale: str, mode: str, envelope: dict) -> None:
        key = self._make_key(text, locale, mode)
        async with self._lock:
            if key not in self._entries and len(self._entries) >= self._max_entries:
                oldest = min(self._entries, key=lambda k: self._entries[k][0])
                del self._entries[oldest]
            self._entries[key] = (time.monotonic(), envelope)

    async def clear(self) -> None:
        async with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0

    @property
    def stats(self) -> dict:
        total = self._hits + self._misses
        return {
            "entries": len(self._entries),
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self._hits / total, 3) if total > 0 else 0.0,
        }


analysis_cache = AnalysisCache(ttl_seconds=settings.CACHE_TTL_SECONDS)
