import os
from datetime import datetime, timezone

import pytest


@pytest.fixture
def fixed_now():
    """A deterministic review time for scheduling tests."""
    return datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config discovery
    monkeypatch.setenv("HOME", str(home))
    return home


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep STUDYFLOW_* variables from the developer's shell out of tests."""
    for key in list(os.environ):
        if key.startswith("STUDYFLOW_"):
            monkeypatch.delenv(key)
