from __future__ import annotations

"""
envresolve.core.config
======================

Typed configuration for an EnvironmentClient.
- Optional JSON file, then env overrides, then explicit overrides.
- Derives `fetch_timeout_ms` from the seconds-based value.

Missing or unreadable config files fall back to defaults.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .types import DEFAULT_FETCH_TIMEOUT_SEC, DEFAULT_LINK_KEY


def _try_load_json(path: Path | None) -> dict[str, Any]:
    if not path:
        return {}
    try:
        if path.exists():
            data = json.loads(path.read_text(encoding="utf-8"))
            return data if isinstance(data, dict) else {}
    except (OSError, ValueError):
        pass
    return {}


def _parse_links_env(name: str) -> dict[str, str]:
    """Parse `key=href,key2=href2` into a dict; malformed pairs are ignored."""
    val = os.getenv(name)
    if not val:
        return {}
    out: dict[str, str] = {}
    for pair in val.split(","):
        key, sep, href = pair.partition("=")
        if sep and key.strip() and href.strip():
            out[key.strip()] = href.strip()
    return out


def _parse_bool(val: str) -> bool:
    return val.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class ResolverConfig:
    """Resolution settings: which link to read, how to consume it, how to fetch it."""

    # ---- Consumption
    default_key: str = DEFAULT_LINK_KEY
    suspend: bool = True

    # ---- Link registry
    base_url: str | None = None
    links: dict[str, str] = field(default_factory=dict)

    # ---- Fetch
    fetch_timeout_sec: float = DEFAULT_FETCH_TIMEOUT_SEC
    headers: dict[str, str] = field(default_factory=dict)

    # ---- Derived
    fetch_timeout_ms: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.default_key, str) or not self.default_key:
            raise ValueError("default_key must be a non-empty string")
        if not isinstance(self.links, dict) or not all(
            isinstance(k, str) and k and isinstance(v, str) for k, v in self.links.items()
        ):
            raise ValueError("links must map non-empty string keys to string hrefs")
        if self.fetch_timeout_sec <= 0:
            raise ValueError("fetch_timeout_sec must be positive")
        self.fetch_timeout_ms = int(self.fetch_timeout_sec * 1000)

    @classmethod
    def load(cls, path: Path | str | None = None, *, overrides: dict[str, Any] | None = None) -> ResolverConfig:
        """
        Load config from a JSON file (if provided), then apply env and overrides.

        Env overrides:
          - ENVRESOLVE_KEY
          - ENVRESOLVE_SUSPEND (1/true/yes/on)
          - ENVRESOLVE_BASE_URL
          - ENVRESOLVE_LINKS (comma-separated key=href, merged over file links)
          - ENVRESOLVE_FETCH_TIMEOUT_SEC
        """
        data: dict[str, Any] = {}
        data.update(_try_load_json(Path(path) if path else None))

        if os.getenv("ENVRESOLVE_KEY"):
            data["default_key"] = os.environ["ENVRESOLVE_KEY"]
        if os.getenv("ENVRESOLVE_SUSPEND"):
            data["suspend"] = _parse_bool(os.environ["ENVRESOLVE_SUSPEND"])
        if os.getenv("ENVRESOLVE_BASE_URL"):
            data["base_url"] = os.environ["ENVRESOLVE_BASE_URL"]
        env_links = _parse_links_env("ENVRESOLVE_LINKS")
        if env_links:
            data["links"] = {**dict(data.get("links") or {}), **env_links}
        if os.getenv("ENVRESOLVE_FETCH_TIMEOUT_SEC"):
            data["fetch_timeout_sec"] = float(os.environ["ENVRESOLVE_FETCH_TIMEOUT_SEC"])

        if overrides:
            data.update(overrides)

        data.pop("fetch_timeout_ms", None)
        return cls(**data)
