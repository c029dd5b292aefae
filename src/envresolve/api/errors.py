# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Error taxonomy for envresolve.

Two families matter to callers:
- ResolutionError: a link key could not be turned into a Location. Raised
  synchronously and never cached.
- FetchError: produced by the shipped HTTP fetcher. Any exception a fetch
  primitive raises (FetchError or not) is cached verbatim for its Location.
"""

from typing import Any


class EnvResolveError(Exception):
    """Base class for all envresolve errors."""

    ...


class ResolutionError(EnvResolveError):
    """A link key could not be resolved to a Location."""

    ...


class LocationNotFound(ResolutionError):
    """No link is registered under the given key (or its href is empty)."""

    def __init__(self, key: str) -> None:
        super().__init__(f"no link registered for key {key!r}")
        self.key = key


class FetchError(EnvResolveError):
    """Base class for fetch failures raised by the built-in fetcher."""

    def __init__(self, location: str, message: str) -> None:
        super().__init__(message)
        self.location = location


class FetchHTTPError(FetchError):
    """The server answered with a non-2xx status."""

    def __init__(self, location: str, status_code: int, body: Any = None) -> None:
        super().__init__(location, f"GET {location} failed with HTTP {status_code}")
        self.status_code = status_code
        self.body = body


class FetchCancelled(FetchError):
    """The in-flight fetch task was cancelled before it settled."""

    def __init__(self, location: str) -> None:
        super().__init__(location, f"fetch of {location} was cancelled")


class NoRunningLoop(EnvResolveError):
    """A fetch had to be issued but no asyncio event loop is running."""

    ...


class InvalidOptions(EnvResolveError, ValueError):
    """Consumption options failed validation."""

    ...
