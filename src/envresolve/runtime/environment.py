# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Environment resolution for calling code.

`EnvironmentClient` ties a link resolver to a SuspendingCache and exposes the
two consumption modes:

- `await client.get(key)`: suspends while the fetch is in flight, returns the
  value, raises the cached error on failure.
- `client.poll(key)`: never suspends; returns a `TriState`.

`client.use(options)` picks the mode from `EnvironmentOptions.suspend`.
Key resolution errors are raised in both modes; they are not fetch errors.
"""

from collections.abc import Awaitable, Mapping
from typing import Any

from ..api.errors import EnvResolveError
from ..api.options import EnvironmentOptions, TriState
from ..core.config import ResolverConfig
from ..core.log import get_logger, log_context
from ..core.types import DEFAULT_LINK_KEY, FetchFn, KeyToLocationFn, LinkKey, Location
from .cache import SuspendingCache, default_cache
from .fetch import HttpFetcher
from .resolution import Failed, Pending, Resolution, Resolved
from .resolver import LinkRegistry, LocationResolver, as_resolver


def to_tristate(resolution: Resolution) -> TriState:
    if isinstance(resolution, Resolved):
        return TriState(resolution.value, False, None)
    if isinstance(resolution, Failed):
        return TriState(None, False, resolution.error)
    return TriState(None, True, None)


async def settle(cache: SuspendingCache, location: Location) -> Any:
    """
    Suspending read of `location`: wait out any Pending state, then return the
    value or raise the cached error.
    """
    resolution = cache.request(location)
    while isinstance(resolution, Pending):
        await resolution.wait()
        resolution = cache.request(location)
    if isinstance(resolution, Failed):
        # the error object is shared by every caller; drop earlier callers' frames
        raise resolution.error.with_traceback(None)
    if not isinstance(resolution, Resolved):
        raise EnvResolveError(f"unexpected resolution state for {location!r}: {resolution.state.value}")
    return resolution.value


class EnvironmentClient:
    """
    Resolves environment documents by link key.

        client = EnvironmentClient({"environment": "/env.json"}, cache=cache)
        env = await client.get()             # suspending mode
        value, pending, error = client.poll()  # tri-state mode
    """

    def __init__(
        self,
        resolver: LocationResolver | KeyToLocationFn | Mapping[LinkKey, str],
        *,
        cache: SuspendingCache | None = None,
        default_key: LinkKey = DEFAULT_LINK_KEY,
        suspend: bool = True,
    ) -> None:
        self._resolver = as_resolver(resolver)
        self._cache = cache if cache is not None else default_cache()
        self._defaults = EnvironmentOptions.coerce(None, key=default_key, suspend=suspend)
        self._log = get_logger("environment")

    @classmethod
    def from_config(
        cls,
        cfg: ResolverConfig,
        *,
        cache: SuspendingCache | None = None,
        fetch: FetchFn | None = None,
    ) -> EnvironmentClient:
        """Wire a LinkRegistry and (unless a cache is given) a fresh cache from config."""
        if cache is None:
            fetch = fetch or HttpFetcher(timeout_sec=cfg.fetch_timeout_sec, headers=cfg.headers)
            cache = SuspendingCache(fetch)
        registry = LinkRegistry(cfg.links, base_url=cfg.base_url)
        return cls(registry, cache=cache, default_key=cfg.default_key, suspend=cfg.suspend)

    @property
    def cache(self) -> SuspendingCache:
        return self._cache

    def _key(self, key: LinkKey | None) -> LinkKey:
        if key is None:
            return self._defaults.key
        return EnvironmentOptions.coerce({"key": key}).key

    def location(self, key: LinkKey | None = None) -> Location:
        """Resolve a link key (default key when None) to its Location."""
        return self._resolver.resolve(self._key(key))

    async def get(self, key: LinkKey | None = None) -> Any:
        key = self._key(key)
        location = self.location(key)
        with log_context(key=key, location=location):
            return await settle(self._cache, location)

    def poll(self, key: LinkKey | None = None) -> TriState:
        location = self.location(key)
        return to_tristate(self._cache.request(location))

    def use(self, options: EnvironmentOptions | Mapping[str, Any] | None = None) -> Awaitable[Any] | TriState:
        """
        Mode-selecting entry point. Returns an awaitable in suspending mode
        and a TriState otherwise. The key is resolved (and the fetch issued)
        before this returns in both modes.
        """
        opts = EnvironmentOptions.coerce(
            options, key=self._defaults.key, suspend=self._defaults.suspend
        )
        if not opts.suspend:
            return self.poll(opts.key)
        location = self.location(opts.key)
        self._cache.request(location)
        return self.get(opts.key)
