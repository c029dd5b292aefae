# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Link key -> Location resolvers.

The host environment owns the actual lookup (a page's `<link>` elements, a
service registry, a config file). These resolvers adapt that lookup to the
`resolve(key) -> Location` contract. Unknown keys fail fast with
`LocationNotFound`.
"""

from collections.abc import Mapping
from typing import Protocol, runtime_checkable
from urllib.parse import urljoin

from ..api.errors import LocationNotFound
from ..core.log import get_logger
from ..core.types import KeyToLocationFn, LinkKey, Location


@runtime_checkable
class LocationResolver(Protocol):
    def resolve(self, key: LinkKey) -> Location: ...


class LinkRegistry:
    """
    In-memory key -> href registry.

    Relative hrefs are joined against `base_url` when one is set, so
    `"/env.json"` under `https://app.example.com/` resolves to
    `https://app.example.com/env.json`.
    """

    def __init__(self, links: Mapping[LinkKey, str] | None = None, *, base_url: str | None = None) -> None:
        self._links: dict[LinkKey, str] = dict(links or {})
        self._base_url = base_url
        self._log = get_logger("resolver")

    def register(self, key: LinkKey, href: str) -> None:
        if not key:
            raise ValueError("link key must be a non-empty string")
        self._links[key] = href

    def unregister(self, key: LinkKey) -> None:
        self._links.pop(key, None)

    def keys(self) -> list[LinkKey]:
        return sorted(self._links)

    def resolve(self, key: LinkKey) -> Location:
        href = self._links.get(key)
        if not href:
            raise LocationNotFound(key)
        location = urljoin(self._base_url, href) if self._base_url else href
        self._log.debug("resolver.lookup", key=key, location=location)
        return location


class CallableResolver:
    """Wraps a host-supplied `key -> href` function."""

    def __init__(self, fn: KeyToLocationFn) -> None:
        self._fn = fn

    def resolve(self, key: LinkKey) -> Location:
        location = self._fn(key)
        if not location:
            raise LocationNotFound(key)
        return location


def as_resolver(source: LocationResolver | KeyToLocationFn | Mapping[LinkKey, str]) -> LocationResolver:
    """Normalize a resolver, a plain function or a mapping into a LocationResolver."""
    if isinstance(source, LocationResolver):
        return source
    if isinstance(source, Mapping):
        return LinkRegistry(source)
    if callable(source):
        return CallableResolver(source)
    raise TypeError(f"cannot build a resolver from {type(source).__name__}")
