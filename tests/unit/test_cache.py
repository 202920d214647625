"""
Unit tests for the TTL caches.
"""

import asyncio

import pytest

from cv_tailor.core.cache import (
    PipelineCaches, TTLCache, job_requirements_cache_key, relevant_experience_cache_key
)


@pytest.mark.unit
def test_entry_expires_after_ttl(clock):
    cache = TTLCache(default_ttl=60, clock=clock)
    cache.set("a", 1)

    clock.advance(59)
    assert cache.get("a") == 1

    clock.advance(1)
    assert cache.get("a") is None
    assert len(cache) == 0


@pytest.mark.unit
def test_per_entry_ttl_overrides_default(clock):
    cache = TTLCache(default_ttl=3600, clock=clock)
    cache.set("short", "x", ttl=10)
    cache.set("long", "y")

    clock.advance(11)
    assert not cache.has("short")
    assert cache.has("long")


@pytest.mark.unit
def test_refresh_replaces_value_and_expiry(clock):
    cache = TTLCache(default_ttl=60, clock=clock)
    cache.set("a", "old")
    clock.advance(50)
    cache.set("a", "new")
    clock.advance(50)

    assert cache.get("a") == "new"


@pytest.mark.unit
def test_cleanup_removes_only_expired(clock):
    cache = TTLCache(default_ttl=60, clock=clock)
    cache.set("a", 1, ttl=5)
    cache.set("b", 2, ttl=500)
    clock.advance(10)

    assert cache.cleanup() == 1
    assert len(cache) == 1
    assert cache.get("b") == 2


@pytest.mark.unit
def test_cache_keys_depend_on_content():
    assert job_requirements_cache_key("jd one") == job_requirements_cache_key("jd one")
    assert job_requirements_cache_key("jd one") != job_requirements_cache_key("jd two")
    assert relevant_experience_cache_key("u1", "jd") != relevant_experience_cache_key("u2", "jd")
    assert job_requirements_cache_key("jd").startswith("job-requirements-")


@pytest.mark.unit
def test_pipeline_caches_are_independent_instances(clock):
    first = PipelineCaches(clock=clock)
    second = PipelineCaches(clock=clock)
    first.requirements.set("k", "v")

    assert second.requirements.get("k") is None


@pytest.mark.unit
def test_cleanup_loop_starts_and_stops(clock):
    caches = PipelineCaches(clock=clock, cleanup_interval=0.01)
    caches.requirements.set("k", "v", ttl=1)
    clock.advance(2)

    async def scenario():
        caches.start_cleanup()
        await asyncio.sleep(0.05)
        await caches.stop_cleanup()

    asyncio.run(scenario())

    # Removed by the loop, not by a read
    assert len(caches.requirements) == 0
    assert caches._cleanup_task is None
