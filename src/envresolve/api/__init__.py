# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""Public contracts: error taxonomy and caller-facing option/result models."""

from .errors import (
    EnvResolveError,
    FetchCancelled,
    FetchError,
    FetchHTTPError,
    InvalidOptions,
    LocationNotFound,
    NoRunningLoop,
    ResolutionError,
)
from .options import EnvironmentOptions, TriState

__all__ = [
    "EnvResolveError",
    "EnvironmentOptions",
    "FetchCancelled",
    "FetchError",
    "FetchHTTPError",
    "InvalidOptions",
    "LocationNotFound",
    "NoRunningLoop",
    "ResolutionError",
    "TriState",
]
