from __future__ import annotations

"""
envresolve.core.types
=====================

Shared type aliases and constants. Dependency-free on purpose.
"""

from collections.abc import Awaitable, Callable
from typing import Any, Final

# ---- Addressing --------------------------------------------------------------

Location = str  # resolved href; the cache key
LinkKey = str  # logical name of a link reference, e.g. "environment"

# Outbound collaborator: Location -> awaitable of parsed structured data
FetchFn = Callable[[Location], Awaitable[Any]]
# Inbound collaborator: key -> Location
KeyToLocationFn = Callable[[LinkKey], Location]

# ---- Time --------------------------------------------------------------------

Millis = int
TimestampMs = int  # wall-clock epoch timestamp (ms)

# ---- Defaults ----------------------------------------------------------------

DEFAULT_LINK_KEY: Final[LinkKey] = "environment"
DEFAULT_FETCH_TIMEOUT_SEC: Final[float] = 10.0
