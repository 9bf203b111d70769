from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from trainspotter.engine.cache import CacheEntry, ExpiringCache, InflightRequests

T0 = datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc)


class TestExpiringCache:
    def test_put_and_get_live(self):
        cache: ExpiringCache[str] = ExpiringCache(timedelta(minutes=15))
        entry = cache.put("k", "v", T0)
        assert entry.created_at == T0
        assert entry.expires_at == T0 + timedelta(minutes=15)
        assert cache.get_live("k", T0 + timedelta(minutes=14)) is entry

    def test_expired_entry_still_readable(self):
        cache: ExpiringCache[str] = ExpiringCache(timedelta(minutes=15))
        cache.put("k", "v", T0)
        later = T0 + timedelta(minutes=15)
        assert cache.get_live("k", later) is None
        assert cache.get("k").value == "v"

    def test_put_replaces_entry(self):
        cache: ExpiringCache[str] = ExpiringCache(timedelta(minutes=15))
        first = cache.put("k", "old", T0)
        second = cache.put("k", "new", T0 + timedelta(minutes=1))
        assert first.value == "old"
        assert cache.get("k") is second
        assert len(cache) == 1

    def test_prune_removes_only_expired(self):
        cache: ExpiringCache[int] = ExpiringCache(timedelta(minutes=15))
        cache.put("old", 1, T0)
        cache.put("new", 2, T0 + timedelta(minutes=10))
        removed = cache.prune(T0 + timedelta(minutes=20))
        assert removed == 1
        assert cache.get("old") is None
        assert cache.get("new") is not None

    def test_entry_immutable(self):
        entry = CacheEntry("v", T0, T0 + timedelta(minutes=1))
        with pytest.raises(AttributeError):
            entry.value = "other"


class TestInflightRequests:
    def test_concurrent_callers_share_one_call(self):
        calls = 0

        async def work() -> int:
            nonlocal calls
            calls += 1
            await asyncio.sleep(0.01)
            return 42

        async def main():
            inflight: InflightRequests[int] = InflightRequests()
            results = await asyncio.gather(*(inflight.run("k", work) for _ in range(5)))
            return results, "k" in inflight

        results, still_running = asyncio.run(main())
        assert results == [42] * 5
        assert calls == 1
        assert not still_running

    def test_failure_propagates_to_all(self):
        async def boom() -> int:
            await asyncio.sleep(0)
            raise RuntimeError("upstream down")

        async def main():
            inflight: InflightRequests[int] = InflightRequests()
            return await asyncio.gather(
                inflight.run("k", boom), inflight.run("k", boom), return_exceptions=True
            )

        results = asyncio.run(main())
        assert all(isinstance(r, RuntimeError) for r in results)

    def test_sequential_calls_rerun(self):
        calls = 0

        async def work() -> int:
            nonlocal calls
            calls += 1
            return calls

        async def main():
            inflight: InflightRequests[int] = InflightRequests()
            first = await inflight.run("k", work)
            await asyncio.sleep(0)
            second = await inflight.run("k", work)
            return first, second

        assert asyncio.run(main()) == (1, 2)
