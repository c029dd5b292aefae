# conftest.py
from __future__ import annotations

import os
import uuid

import pytest

from envresolve.core.log import (
    bind_context,
    configure_from_env,
    enable_stdout_logging,
    get_logger,
    log_context,
)
from envresolve.core.time import ManualClock
from envresolve.runtime.cache import SuspendingCache, reset_default_cache
from tests.helpers import ControlledFetcher


def pytest_addoption(parser):
    parser.addoption(
        "--log-json",
        action="store_true",
        default=False,
        help="Emit envresolve logs in JSON format during tests",
    )


@pytest.fixture(scope="session", autouse=True)
def _configure_envresolve_logging(request):
    configure_from_env()
    prefer_json = request.config.getoption("--log-json")
    if os.getenv("ENVRESOLVE_LOG_STDOUT", "").lower() not in ("1", "true", "yes", "on"):
        enable_stdout_logging(level="DEBUG", json_output=prefer_json, pretty=not prefer_json)
    bind_context(role="pytest")


@pytest.fixture(scope="session")
def session_run_id():
    return uuid.uuid4().hex[:8]


@pytest.fixture(autouse=True)
def _test_log_context(request, session_run_id):
    log = get_logger("test")
    with log_context(pytest_nodeid=request.node.nodeid, test_run=session_run_id):
        log.debug("pytest.test.start", event="pytest.test.start")
        yield


@pytest.fixture(autouse=True)
def _isolated_default_cache():
    reset_default_cache()
    yield
    reset_default_cache()


@pytest.fixture
def clock():
    return ManualClock(start_ms=1_000)


@pytest.fixture
def fetcher():
    return ControlledFetcher()


@pytest.fixture
def cache(fetcher, clock):
    """Fresh cache per test; nothing leaks between cases."""
    return SuspendingCache(fetcher, clock=clock)
