"""Pytest configuration for test isolation.

Settings are read from ``SPENDING_INSIGHTS_*`` environment variables, and the
CLI loads a ``.env`` from the working directory. A developer's shell or
``.env`` could therefore change thresholds under the tests. An autouse
fixture strips those variables and runs each test from its own temporary
directory. Package logging is configured at most once per process, so the
same fixture also undoes any configuration a test performed.
"""

from __future__ import annotations

import logging
import os
import time
from pathlib import Path

import pytest

import spending_insights.logging_setup as logging_setup


@pytest.fixture(autouse=True)
def _isolate_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    for key in list(os.environ):
        if key.startswith("SPENDING_INSIGHTS_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)

    yield

    # ``load_dotenv`` writes straight into ``os.environ``.
    for key in list(os.environ):
        if key.startswith("SPENDING_INSIGHTS_"):
            del os.environ[key]

    pkg_logger = logging.getLogger("spending_insights")
    for handler in list(pkg_logger.handlers):
        pkg_logger.removeHandler(handler)
    pkg_logger.propagate = True
    pkg_logger.setLevel(logging.NOTSET)
    logging_setup._CONFIGURED = False


@pytest.fixture
def cet_time():
    """Run the test with the process local time zone set to Central European Time."""

    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")
    with pytest.MonkeyPatch.context() as mp:
        # POSIX rule for Central European Time, so no zoneinfo database is needed.
        mp.setenv("TZ", "CET-1CEST,M3.5.0,M10.5.0/3")
        time.tzset()
        yield
    time.tzset()
