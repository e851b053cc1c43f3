"""Shared pytest fixtures for AIPomodoro tests."""

import os
import sys
import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PyQt6.QtWidgets import QApplication

from aipomodoro.database.db import configure_engine, init_db
from aipomodoro.timer.engine import TimerEngine, PhaseLengths


@pytest.fixture(scope="session")
def qapp():
    """A single QApplication instance shared across the entire test run."""
    app = QApplication.instance() or QApplication(sys.argv)
    yield app


@pytest.fixture(autouse=True)
def test_db():
    """Point every test at a fresh in-memory SQLite database."""
    configure_engine("sqlite:///:memory:")
    init_db()
    yield


@pytest.fixture(autouse=True)
def data_dir(tmp_path, monkeypatch):
    """Keep settings files out of the real home directory."""
    monkeypatch.setenv("AIPOMODORO_DATA_DIR", str(tmp_path))
    for key in (
        "REPLICATE_API_TOKEN", "REPLICATE_MODEL_ID",
        "REPLICATE_DEFAULT_ASPECT", "REPLICATE_DEFAULT_FORMAT",
        "REPLICATE_DEFAULT_QUALITY", "REPLICATE_DEFAULT_SAFETY",
    ):
        monkeypatch.delenv(key, raising=False)
    yield tmp_path


@pytest.fixture
def engine():
    """Fresh TimerEngine with default lengths and second timestamps."""
    return TimerEngine()


@pytest.fixture
def fast_engine():
    """Tiny phase lengths (seconds) for quick end-to-end runs."""
    return TimerEngine(PhaseLengths(focus=2, short=1, long=3))


@pytest.fixture
def ms_engine():
    """Engine fed with millisecond timestamps."""
    return TimerEngine(timestamp_unit=0.001)
