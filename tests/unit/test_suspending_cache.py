from __future__ import annotations

import asyncio

import pytest

from envresolve.api.errors import FetchCancelled, NoRunningLoop
from envresolve.core.time import ManualClock
from envresolve.runtime.cache import SuspendingCache
from envresolve.runtime.resolution import (
    UNSTARTED,
    Failed,
    Pending,
    ResolutionState,
    Resolved,
)
from tests.helpers import RaisingFetcher

pytestmark = [pytest.mark.unit]

LOC = "https://app.example.com/env.json"


@pytest.mark.asyncio
async def test_first_request_issues_fetch_and_returns_pending(cache, fetcher):
    assert cache.peek(LOC) is UNSTARTED

    res = cache.request(LOC)

    assert isinstance(res, Pending)
    assert res.state is ResolutionState.pending
    assert fetcher.calls == [LOC]
    assert LOC in cache


@pytest.mark.asyncio
async def test_requests_while_pending_share_one_resolution(cache, fetcher):
    first = cache.request(LOC)
    others = [cache.request(LOC) for _ in range(5)]

    assert all(r is first for r in others)
    assert fetcher.count(LOC) == 1
    assert cache.stats().pending_hits == 5


@pytest.mark.asyncio
async def test_resolved_entry_is_terminal_and_shared(cache, fetcher):
    cache.request(LOC)
    fetcher.resolve(LOC, {"stage": "prod"})
    await asyncio.sleep(0)

    a = cache.request(LOC)
    b = cache.request(LOC)

    assert isinstance(a, Resolved)
    assert a is b
    assert a.value == {"stage": "prod"}
    assert fetcher.count(LOC) == 1


@pytest.mark.asyncio
async def test_failed_entry_is_never_retried(cache, fetcher):
    err = ConnectionError("reset by peer")
    cache.request(LOC)
    fetcher.fail(LOC, err)
    await asyncio.sleep(0)

    for _ in range(3):
        res = cache.request(LOC)
        assert isinstance(res, Failed)
        assert res.error is err
    assert fetcher.count(LOC) == 1
    assert cache.stats().fetches == 1


@pytest.mark.asyncio
async def test_state_advances_monotonically(cache, fetcher):
    seen = [cache.peek(LOC).state]
    cache.request(LOC)
    seen.append(cache.peek(LOC).state)
    fetcher.resolve(LOC, 1)
    await asyncio.sleep(0)
    seen.append(cache.peek(LOC).state)
    cache.request(LOC)
    seen.append(cache.peek(LOC).state)

    assert seen == [
        ResolutionState.unstarted,
        ResolutionState.pending,
        ResolutionState.resolved,
        ResolutionState.resolved,
    ]


@pytest.mark.asyncio
async def test_request_settles_before_done_callback_runs(cache, fetcher):
    cache.request(LOC)
    fetcher.resolve(LOC, "ready")

    # no loop iteration yet: the completion callback has not been delivered
    res = cache.request(LOC)

    assert isinstance(res, Resolved)
    assert res.value == "ready"
    await asyncio.sleep(0)
    assert cache.request(LOC) is res


@pytest.mark.asyncio
async def test_synchronous_fetch_failure_still_passes_through_pending():
    err = ValueError("bad location")
    fetch = RaisingFetcher(err)
    cache = SuspendingCache(fetch)

    first = cache.request(LOC)
    assert isinstance(first, Pending)

    await asyncio.sleep(0)
    res = cache.request(LOC)
    assert isinstance(res, Failed)
    assert res.error is err
    assert fetch.calls == [LOC]


@pytest.mark.asyncio
async def test_cancelled_fetch_settles_as_failed(cache, fetcher):
    pending = cache.request(LOC)
    pending.future.cancel()
    await asyncio.sleep(0)

    res = cache.request(LOC)
    assert isinstance(res, Failed)
    assert isinstance(res.error, FetchCancelled)
    assert res.error.location == LOC


@pytest.mark.asyncio
async def test_locations_are_independent(cache, fetcher):
    other = "https://app.example.com/flags.json"
    cache.request(LOC)
    cache.request(other)
    fetcher.resolve(LOC, "a")
    fetcher.fail(other, RuntimeError("boom"))
    await asyncio.sleep(0)

    assert isinstance(cache.peek(LOC), Resolved)
    assert isinstance(cache.peek(other), Failed)
    assert sorted(cache.locations()) == sorted([LOC, other])
    assert len(cache) == 2


@pytest.mark.asyncio
async def test_transitions_are_stamped_with_clock(fetcher):
    clock = ManualClock(start_ms=100)
    cache = SuspendingCache(fetcher, clock=clock)

    pending = cache.request(LOC)
    clock.advance(25)
    fetcher.resolve(LOC, {})
    await asyncio.sleep(0)

    res = cache.peek(LOC)
    assert pending.started_ms == 100
    assert isinstance(res, Resolved)
    assert (res.started_ms, res.settled_ms) == (100, 125)


@pytest.mark.asyncio
async def test_pending_wait_does_not_raise_fetch_error(cache, fetcher):
    pending = cache.request(LOC)
    fetcher.fail(LOC, TimeoutError("slow"))

    await pending.wait()

    assert isinstance(cache.request(LOC), Failed)


def test_request_without_running_loop_raises_and_stores_nothing(fetcher):
    cache = SuspendingCache(fetcher)

    with pytest.raises(NoRunningLoop):
        cache.request(LOC)

    assert LOC not in cache
    assert fetcher.calls == []


def test_peek_never_fetches(cache, fetcher):
    assert cache.peek(LOC) is UNSTARTED
    assert not cache.peek(LOC).settled
    assert fetcher.calls == []
    assert cache.stats().entries == 0


@pytest.mark.asyncio
async def test_fetch_primitive_may_request_dependent_locations(fetcher):
    dep = "https://app.example.com/base.json"

    class _Dependent:
        def __init__(self) -> None:
            self.cache: SuspendingCache | None = None

        def __call__(self, location: str):
            if location == LOC:
                self.cache.request(dep)
            return fetcher(location)

    fetch = _Dependent()
    cache = SuspendingCache(fetch)
    fetch.cache = cache

    assert isinstance(cache.request(LOC), Pending)
    assert isinstance(cache.peek(dep), Pending)
    assert sorted(fetcher.calls) == sorted([LOC, dep])
    assert cache.stats().fetches == 2


@pytest.mark.asyncio
async def test_stats_count_hits_by_state(cache, fetcher):
    cache.request(LOC)
    cache.request(LOC)
    fetcher.resolve(LOC, {})
    cache.request(LOC)
    await asyncio.sleep(0)
    cache.request(LOC)

    stats = cache.stats()
    assert (stats.fetches, stats.pending_hits, stats.settled_hits, stats.entries) == (1, 1, 2, 1)
