"""Pytest configuration and shared fixtures for peat tests."""

import logging

import pytest

from peat.io import logging_setup
from tests.harness import FakeClient, make_controller, make_matrix


# ---------------------------------------------------------------------------
# Environment isolation
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Keep tests away from the real settings file, log dir and backend URL."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("PEAT_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.delenv("PEAT_LOG_FILE", raising=False)
    monkeypatch.delenv("PEAT_LOG_LEVEL", raising=False)
    monkeypatch.delenv("PEAT_PROMETHEUS_URL", raising=False)
    yield tmp_path


@pytest.fixture(autouse=True)
def reset_logging():
    """configure() is process-wide and idempotent; undo it after each test."""
    yield
    peat_logger = logging.getLogger("peat")
    for handler in list(peat_logger.handlers):
        peat_logger.removeHandler(handler)
        handler.close()
    peat_logger.propagate = True
    peat_logger.setLevel(logging.NOTSET)
    logging.captureWarnings(False)
    logging_setup._RUNTIME = None
    logging_setup._STREAM_HANDLER = None


# ---------------------------------------------------------------------------
# Controller fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def three_series():
    return make_matrix(metric_a=[1, 2, 3], metric_b=[10, 20, 15], metric_c=[100, 50, 75])


@pytest.fixture
def range_client(three_series):
    return FakeClient(query_range=lambda expr: (three_series, []))


@pytest.fixture
def controller():
    return make_controller()
