# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Suspending resource cache.

One fetch per Location for the lifetime of the cache object:
- the first `request()` issues the fetch and stores a shared `Pending`;
- later calls get that same `Pending` until the fetch settles;
- after settlement every call gets the same `Resolved` / `Failed` object.

Entries are never evicted and never retried. The consumption modes built on
top of `request()` live in `envresolve.runtime.environment`.
"""

import asyncio
import threading
from dataclasses import dataclass
from typing import Any

from ..api.errors import FetchCancelled, NoRunningLoop
from ..core.log import get_logger, warn_once
from ..core.time import Clock, SystemClock
from ..core.types import FetchFn, Location
from .resolution import UNSTARTED, Failed, Pending, Resolution, Resolved

__all__ = [
    "CacheStats",
    "SuspendingCache",
    "default_cache",
    "reset_default_cache",
]


@dataclass(frozen=True)
class CacheStats:
    """Counters for diagnostics and tests."""

    fetches: int
    pending_hits: int
    settled_hits: int
    entries: int


class SuspendingCache:
    """
    Location -> Resolution map driven by a single fetch primitive.

    Typical usage:

        cache = SuspendingCache(fetch=HttpFetcher())
        res = cache.request("https://cdn.example.com/env.json")
        if isinstance(res, Pending):
            await res.wait()
            res = cache.request(res.location)

    `request()` must run with an event loop running; fetches are scheduled as
    tasks on that loop.
    """

    def __init__(self, fetch: FetchFn, *, clock: Clock | None = None) -> None:
        self._fetch = fetch
        self._clock: Clock = clock or SystemClock()
        self._log = get_logger("cache")
        self._entries: dict[Location, Resolution] = {}
        # guards check-and-create, counters and the Pending -> terminal swap;
        # reentrant so a synchronous fetch primitive may request other Locations
        self._lock = threading.RLock()
        self._fetches = 0
        self._pending_hits = 0
        self._settled_hits = 0

    # ---- public API

    def request(self, location: Location) -> Resolution:
        """
        Return the Resolution for `location`, issuing the fetch on first use.

        Never blocks and never raises the fetch error: failures come back as
        a `Failed` resolution.
        """
        with self._lock:
            entry = self._entries.get(location)
            if entry is None:
                pending = self._start(location)
                self._entries[location] = pending
                return pending
            if isinstance(entry, Pending) and not entry.future.done():
                self._pending_hits += 1
                return entry
            self._settled_hits += 1

        if isinstance(entry, Pending):
            # completion callback not delivered yet; apply the transition now
            return self._settle(entry)
        return entry

    def peek(self, location: Location) -> Resolution:
        """Current state without issuing a fetch."""
        entry = self._entries.get(location, UNSTARTED)
        if isinstance(entry, Pending) and entry.future.done():
            return self._settle(entry)
        return entry

    def locations(self) -> list[Location]:
        return list(self._entries)

    def stats(self) -> CacheStats:
        return CacheStats(
            fetches=self._fetches,
            pending_hits=self._pending_hits,
            settled_hits=self._settled_hits,
            entries=len(self._entries),
        )

    def __contains__(self, location: object) -> bool:
        return location in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    # ---- transitions

    def _start(self, location: Location) -> Pending:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as e:
            raise NoRunningLoop(f"cannot fetch {location!r}: no running event loop") from e

        self._fetches += 1
        self._log.debug("cache.fetch.start", event="cache.fetch.start", location=location)

        future: asyncio.Future[Any]
        try:
            future = asyncio.ensure_future(self._fetch(location), loop=loop)
        except Exception as e:
            # a synchronous failure still goes through Pending
            future = loop.create_future()
            future.set_exception(e)

        pending = Pending(location=location, future=future, started_ms=self._clock.now_ms())
        future.add_done_callback(lambda _f: self._settle(pending))
        return pending

    def _settle(self, pending: Pending) -> Resolution:
        """Apply Pending -> Resolved | Failed once; later calls return the stored terminal entry."""
        with self._lock:
            # done callbacks are scheduled, never run inline, so the entry is always stored
            current = self._entries[pending.location]
            if current is not pending:
                return current

            fut = pending.future
            now = self._clock.now_ms()
            terminal: Resolution
            if fut.cancelled():
                terminal = Failed(
                    location=pending.location,
                    error=FetchCancelled(pending.location),
                    started_ms=pending.started_ms,
                    settled_ms=now,
                )
            elif fut.exception() is not None:
                terminal = Failed(
                    location=pending.location,
                    error=fut.exception(),
                    started_ms=pending.started_ms,
                    settled_ms=now,
                )
            else:
                terminal = Resolved(
                    location=pending.location,
                    value=fut.result(),
                    started_ms=pending.started_ms,
                    settled_ms=now,
                )
            self._entries[pending.location] = terminal

        if isinstance(terminal, Failed):
            self._log.warning(
                "cache.fetch.failed",
                event="cache.fetch.failed",
                location=pending.location,
                error_type=type(terminal.error).__name__,
                error_message=str(terminal.error),
            )
        else:
            self._log.debug("cache.fetch.resolved", event="cache.fetch.resolved", location=pending.location)
        return terminal


# ---- process-wide default ----------------------------------------------------

_default: SuspendingCache | None = None
_default_lock = threading.Lock()


def default_cache(fetch: FetchFn | None = None) -> SuspendingCache:
    """
    Lazily created process-wide cache. `fetch` is only used on first creation;
    the shipped HTTP fetcher is used when none is given. A different `fetch`
    passed once the cache exists is ignored (logged once).
    """
    global _default
    with _default_lock:
        if _default is None:
            if fetch is None:
                from .fetch import HttpFetcher

                fetch = HttpFetcher()
            _default = SuspendingCache(fetch)
        elif fetch is not None and fetch is not _default._fetch:
            warn_once(
                get_logger("cache"),
                "cache.default.fetch_ignored",
                "default cache already exists; fetch argument ignored",
            )
        return _default


def reset_default_cache() -> None:
    """Drop the process-wide cache (tests only; in-flight fetches keep running)."""
    global _default
    with _default_lock:
        _default = None
