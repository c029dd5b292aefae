from __future__ import annotations

try:
    from importlib.metadata import PackageNotFoundError, version as _pkg_version

    __version__ = _pkg_version("envresolve")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"

from .api.errors import (
    EnvResolveError,
    FetchCancelled,
    FetchError,
    FetchHTTPError,
    InvalidOptions,
    LocationNotFound,
    NoRunningLoop,
    ResolutionError,
)
from .api.options import EnvironmentOptions, TriState
from .core.config import ResolverConfig
from .runtime.cache import CacheStats, SuspendingCache, default_cache, reset_default_cache
from .runtime.environment import EnvironmentClient
from .runtime.fetch import HttpFetcher
from .runtime.resolution import UNSTARTED, Failed, Pending, Resolution, ResolutionState, Resolved
from .runtime.resolver import CallableResolver, LinkRegistry, LocationResolver

__all__ = [
    "UNSTARTED",
    "CacheStats",
    "CallableResolver",
    "EnvResolveError",
    "EnvironmentClient",
    "EnvironmentOptions",
    "Failed",
    "FetchCancelled",
    "FetchError",
    "FetchHTTPError",
    "HttpFetcher",
    "InvalidOptions",
    "LinkRegistry",
    "LocationNotFound",
    "LocationResolver",
    "NoRunningLoop",
    "Pending",
    "Resolution",
    "ResolutionError",
    "ResolutionState",
    "Resolved",
    "ResolverConfig",
    "SuspendingCache",
    "TriState",
    "__version__",
    "default_cache",
    "reset_default_cache",
]
