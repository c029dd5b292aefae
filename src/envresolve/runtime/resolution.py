# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Per-Location resolution states.

A Location moves through `UNSTARTED -> Pending -> Resolved | Failed` exactly
once. Pending carries the shared future every caller awaits; the two terminal
states carry the value or the error the fetch produced.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Final

from ..core.types import Location, TimestampMs


class ResolutionState(str, Enum):
    unstarted = "unstarted"
    pending = "pending"
    resolved = "resolved"
    failed = "failed"


class Resolution:
    """Base of the tagged variant; inspect `state` or use isinstance."""

    __slots__ = ()

    state: ResolutionState

    @property
    def settled(self) -> bool:
        return self.state in (ResolutionState.resolved, ResolutionState.failed)


class _Unstarted(Resolution):
    __slots__ = ()

    state = ResolutionState.unstarted

    def __repr__(self) -> str:
        return "UNSTARTED"


UNSTARTED: Final[Resolution] = _Unstarted()


@dataclass(frozen=True, eq=False, slots=True)
class Pending(Resolution):
    location: Location
    future: asyncio.Future[Any]
    started_ms: TimestampMs

    state = ResolutionState.pending

    async def wait(self) -> None:
        """
        Wait for the fetch to settle without consuming its outcome.
        Shielded: cancelling the waiter never cancels the shared fetch.
        """
        try:
            await asyncio.shield(self.future)
        except asyncio.CancelledError:
            # only a cancelled fetch is an outcome; the caller's own cancellation propagates
            task = asyncio.current_task()
            if not self.future.cancelled() or (task is not None and task.cancelling()):
                raise
        except Exception:
            # outcome is read back from the cache entry
            pass


@dataclass(frozen=True, eq=False, slots=True)
class Resolved(Resolution):
    location: Location
    value: Any
    started_ms: TimestampMs
    settled_ms: TimestampMs

    state = ResolutionState.resolved


@dataclass(frozen=True, eq=False, slots=True)
class Failed(Resolution):
    location: Location
    error: BaseException
    started_ms: TimestampMs
    settled_ms: TimestampMs

    state = ResolutionState.failed
