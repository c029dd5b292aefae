# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Caller-facing option and result models.

`EnvironmentOptions` mirrors the options object accepted by `use()`:
`key` picks the link, `suspend` picks the consumption mode.
"""

from collections.abc import Mapping
from typing import Any, NamedTuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..core.types import DEFAULT_LINK_KEY
from .errors import InvalidOptions


class EnvironmentOptions(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    key: str = Field(default=DEFAULT_LINK_KEY, min_length=1)
    suspend: bool = True

    @classmethod
    def coerce(cls, options: EnvironmentOptions | Mapping[str, Any] | None, **defaults: Any) -> EnvironmentOptions:
        """
        Build options from a model, a plain mapping or None.
        `defaults` fill in fields the caller did not set.
        """
        if isinstance(options, EnvironmentOptions):
            return options
        data = {**defaults, **dict(options or {})}
        try:
            return cls(**data)
        except ValidationError as e:
            raise InvalidOptions(str(e)) from e


class TriState(NamedTuple):
    """
    Polling result. Exactly one of `value`/`error` is meaningful once
    `pending` is False; both are None while pending.
    """

    value: Any
    pending: bool
    error: BaseException | None
