from __future__ import annotations

"""
envresolve.core.log
===================

Structured logging for the library:
- `get_logger()` returns adapters that accept keyword fields (`log.info("msg", location=...)`).
- Fields bound with `bind_context()` / `log_context()` travel with every record via contextvars.
- JSON formatter for containers, human formatter for local debugging.
- Silent by default; applications opt in with `enable_stdout_logging()` or `configure_from_env()`.
"""

import contextvars
import json
import logging
import os
import sys
import threading
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any, ClassVar, Final

__all__ = [
    "bind_context",
    "configure_from_env",
    "disable_stdout_logging",
    "enable_stdout_logging",
    "get_logger",
    "log_context",
    "set_level",
    "warn_once",
]

# ---------- Context ----------

_log_context: contextvars.ContextVar[dict[str, Any] | None] = contextvars.ContextVar(
    "envresolve_log_ctx", default=None
)


def _ctx_copy() -> dict[str, Any]:
    ctx = _log_context.get()
    return dict(ctx) if ctx else {}


def bind_context(**fields: Any) -> None:
    """Merge fields into the current structured log context (None values are dropped)."""
    ctx = _ctx_copy()
    ctx.update({k: v for k, v in fields.items() if v is not None})
    _log_context.set(ctx)


@contextmanager
def log_context(**fields: Any):
    """Temporarily add fields to the log context; the previous context is restored on exit."""
    token = _log_context.set({**_ctx_copy(), **{k: v for k, v in fields.items() if v is not None}})
    try:
        yield
    finally:
        _log_context.reset(token)


# ---------- Formatters ----------

_STD_ATTRS: Final[frozenset[str]] = frozenset(
    {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "asctime",
        "taskName",
    }
)


def _iso_utc_ms(ts: float) -> str:
    return datetime.fromtimestamp(ts, tz=UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class JsonFormatter(logging.Formatter):
    """
    One JSON object per record: ts, level, logger, message, context fields,
    keyword extras and a compact `error` block when exception info is attached.
    """

    def __init__(self, *, include_stack: bool = False) -> None:
        super().__init__()
        self.include_stack = include_stack

    def format(self, record: logging.LogRecord) -> str:
        out: dict[str, Any] = {
            "ts": _iso_utc_ms(record.created),
            "level": record.levelname,
            "logger": record.name,
        }
        msg = record.getMessage()
        if msg:
            out["message"] = msg

        ctx = _log_context.get()
        if ctx:
            out.update(ctx)

        for k, v in record.__dict__.items():
            if k not in _STD_ATTRS and k not in out:
                out[k] = v

        if record.exc_info:
            exc_type, exc, _ = record.exc_info
            err: dict[str, Any] = {
                "type": exc_type.__name__ if exc_type else "Exception",
                "message": str(exc) if exc else None,
            }
            if self.include_stack:
                err["stack"] = self.formatException(record.exc_info)
            out["error"] = err

        return json.dumps(out, ensure_ascii=False, separators=(",", ":"), default=str)


class HumanFormatter(logging.Formatter):
    """Compact single-line formatter for local debugging."""

    default_time_format = "%Y-%m-%d %H:%M:%S"
    default_msec_format = "%s.%03d"

    _shown_keys: ClassVar[tuple[str, ...]] = ("key", "location", "state")

    def format(self, record: logging.LogRecord) -> str:
        s = f"{self.formatTime(record)} {record.levelname:<5} {record.name}: {record.getMessage()}"
        fields = {**_ctx_copy(), **record.__dict__}
        compact = {k: fields[k] for k in self._shown_keys if fields.get(k) is not None}
        if compact:
            s += "  [" + ", ".join(f"{k}={v}" for k, v in compact.items()) + "]"
        if record.exc_info:
            s += "\n" + self.formatException(record.exc_info)
        return s


# ---------- Adapter ----------


class _KwExtraAdapter(logging.LoggerAdapter):
    """
    Moves unknown kwargs into `extra={...}` so call sites can write
    `log.debug("cache.fetch.start", location=loc)` without a TypeError.
    Keys colliding with LogRecord attributes are prefixed with `field_`.
    """

    _allowed_passthrough: ClassVar[frozenset[str]] = frozenset({"exc_info", "stack_info", "stacklevel", "extra"})

    def process(self, msg, kwargs):
        extra = kwargs.get("extra")
        if not isinstance(extra, dict):
            extra = {}
        for k in [k for k in kwargs if k not in self._allowed_passthrough]:
            v = kwargs.pop(k)
            key = f"field_{k}" if k in _STD_ATTRS else k
            extra.setdefault(key, v)
        kwargs["extra"] = extra
        return msg, kwargs


_WARN_ONCE_SEEN: set[str] = set()
_WARN_ONCE_LOCK = threading.Lock()


def warn_once(
    logger: logging.Logger | logging.LoggerAdapter,
    code: str,
    msg: str,
    *,
    level: int = logging.WARNING,
    **extra: Any,
) -> None:
    """Log only once per process for the given code."""
    with _WARN_ONCE_LOCK:
        if code in _WARN_ONCE_SEEN:
            return
        _WARN_ONCE_SEEN.add(code)
    adapter = logger if isinstance(logger, logging.LoggerAdapter) else _KwExtraAdapter(logger, {})
    adapter.log(level, msg, code=code, **extra)


# ---------- Public configuration API ----------

_ROOT_LOGGER_NAME = "envresolve"
_STREAM_HANDLER_NAME = "_envresolve_stream_handler"
_configured = False


def _bootstrap_minimal() -> None:
    global _configured
    if _configured:
        return
    lg = logging.getLogger(_ROOT_LOGGER_NAME)
    lg.setLevel(logging.INFO)
    if not any(isinstance(h, logging.NullHandler) for h in lg.handlers):
        lg.addHandler(logging.NullHandler())
    _configured = True


def _coerce_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Invalid level name: {level!r}")
    return resolved


def get_logger(name: str | None = None) -> logging.LoggerAdapter:
    """Return a namespaced logger adapter under the `envresolve` root."""
    _bootstrap_minimal()
    base = logging.getLogger(_ROOT_LOGGER_NAME)
    return _KwExtraAdapter(base.getChild(name) if name else base, {})


def set_level(level: int | str) -> None:
    logging.getLogger(_ROOT_LOGGER_NAME).setLevel(_coerce_level(level))


def enable_stdout_logging(
    *,
    level: int | str = logging.DEBUG,
    json_output: bool = True,
    include_stack: bool = False,
    pretty: bool = False,
) -> None:
    """
    Attach a stdout handler. `pretty=True` selects HumanFormatter, otherwise
    JSON (or the plain stdlib format when `json_output=False`).
    """
    lvl = _coerce_level(level)
    _bootstrap_minimal()
    lg = logging.getLogger(_ROOT_LOGGER_NAME)
    disable_stdout_logging()

    fmt: logging.Formatter
    if pretty:
        fmt = HumanFormatter()
    elif json_output:
        fmt = JsonFormatter(include_stack=include_stack)
    else:
        fmt = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")

    h = logging.StreamHandler(sys.stdout)
    h.set_name(_STREAM_HANDLER_NAME)
    h.setLevel(lvl)
    h.setFormatter(fmt)
    lg.addHandler(h)
    lg.setLevel(min(lg.level, lvl))


def disable_stdout_logging() -> None:
    lg = logging.getLogger(_ROOT_LOGGER_NAME)
    for h in list(lg.handlers):
        if h.get_name() == _STREAM_HANDLER_NAME:
            lg.removeHandler(h)


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").lower() in ("1", "true", "yes", "on")


def configure_from_env() -> None:
    """
    Configure library logging from the environment:
      - ENVRESOLVE_LOG_STDOUT=1 -> attach a stdout handler
      - ENVRESOLVE_LOG_LEVEL=DEBUG|INFO|...
      - ENVRESOLVE_LOG_PRETTY=1 -> human formatter instead of JSON
      - ENVRESOLVE_LOG_STACK=1 -> include stack traces in JSON logs
    """
    level = os.getenv("ENVRESOLVE_LOG_LEVEL", "INFO")
    _bootstrap_minimal()
    set_level(level)
    if _env_flag("ENVRESOLVE_LOG_STDOUT"):
        pretty = _env_flag("ENVRESOLVE_LOG_PRETTY")
        enable_stdout_logging(
            level=level,
            json_output=not pretty,
            include_stack=_env_flag("ENVRESOLVE_LOG_STACK"),
            pretty=pretty,
        )
    else:
        disable_stdout_logging()


_bootstrap_minimal()
