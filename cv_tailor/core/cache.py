"""In-memory TTL cache for pipeline results

Entries are replaced wholesale on refresh and never mutated in place. The
periodic cleanup only reclaims memory: expired entries are also rejected on
read, so correctness never depends on it running.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

from ..utils.config import get_settings
from ..utils.helpers import generate_hash
from ..utils.logger import pipeline_logger

T = TypeVar("T")


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    value: T
    expires_at: float


class TTLCache(Generic[T]):
    """Map with per-entry expiry"""

    def __init__(self, default_ttl: float, clock: Callable[[], float] = time.monotonic, name: str = "cache"):
        self.default_ttl = default_ttl
        self.name = name
        self._clock = clock
        self._entries: Dict[str, CacheEntry[T]] = {}

    def set(self, key: str, value: T, ttl: Optional[float] = None):
        expires_at = self._clock() + (ttl if ttl is not None else self.default_ttl)
        self._entries[key] = CacheEntry(value, expires_at)

    def get(self, key: str) -> Optional[T]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() >= entry.expires_at:
            self._entries.pop(key, None)
            return None
        return entry.value

    def has(self, key: str) -> bool:
        return self.get(key) is not None

    def delete(self, key: str):
        self._entries.pop(key, None)

    def clear(self):
        self._entries.clear()

    def cleanup(self) -> int:
        """Remove expired entries, returning how many were dropped"""
        now = self._clock()
        expired = [key for key, entry in list(self._entries.items()) if now >= entry.expires_at]
        for key in expired:
            self._entries.pop(key, None)
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)


def job_requirements_cache_key(job_description: str) -> str:
    return f"job-requirements-{generate_hash(job_description)}"


def relevant_experience_cache_key(profile_id: str, job_description: str) -> str:
    return f"relevant-experience-{generate_hash(f'{profile_id}-{job_description}')}"


class PipelineCaches:
    """Caches owned by one orchestrator, with their cleanup loop"""

    def __init__(self, clock: Callable[[], float] = time.monotonic,
                 requirements_ttl: Optional[float] = None,
                 relevant_experience_ttl: Optional[float] = None,
                 cleanup_interval: Optional[float] = None):
        config = get_settings().pipeline
        self.requirements: TTLCache = TTLCache(
            requirements_ttl if requirements_ttl is not None else config.requirements_ttl,
            clock, "job-requirements"
        )
        self.relevant_experience: TTLCache = TTLCache(
            relevant_experience_ttl if relevant_experience_ttl is not None else config.relevant_experience_ttl,
            clock, "relevant-experience"
        )
        self.cleanup_interval = cleanup_interval if cleanup_interval is not None else config.cache_cleanup_interval
        self._cleanup_task: Optional[asyncio.Task] = None

    def cleanup(self) -> int:
        removed = self.requirements.cleanup() + self.relevant_experience.cleanup()
        if removed:
            pipeline_logger.debug(f"Cache cleanup removed {removed} expired entries")
        return removed

    def clear(self):
        self.requirements.clear()
        self.relevant_experience.clear()

    async def _cleanup_loop(self):
        while True:
            await asyncio.sleep(self.cleanup_interval)
            self.cleanup()

    def start_cleanup(self):
        """Start the periodic cleanup on the running loop"""
        if self._cleanup_task is None or self._cleanup_task.done():
            self._cleanup_task = asyncio.get_running_loop().create_task(self._cleanup_loop())

    async def stop_cleanup(self):
        if self._cleanup_task is None:
            return
        self._cleanup_task.cancel()
        try:
            await self._cleanup_task
        except asyncio.CancelledError:
            pass
        self._cleanup_task = None
