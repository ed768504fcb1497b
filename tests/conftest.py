"""Shared fixtures for devstrip tests."""

import os
import time
from pathlib import Path

import pytest

DAY = 86_400


@pytest.fixture
def home(tmp_path, monkeypatch) -> Path:
    """Point HOME at an empty directory so real user caches are never scanned."""
    home_dir = tmp_path.resolve() / "home"
    home_dir.mkdir()
    monkeypatch.setenv("HOME", str(home_dir))
    return home_dir


@pytest.fixture
def workdir(tmp_path, monkeypatch) -> Path:
    """Run the test from an empty working directory."""
    cwd = tmp_path.resolve() / "cwd"
    cwd.mkdir()
    monkeypatch.chdir(cwd)
    return cwd


@pytest.fixture
def write_file():
    """Create a file of the given size, creating parents as needed."""

    def _write(path: Path, size: int) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"x" * size)
        return path

    return _write


@pytest.fixture
def set_age():
    """Set a path's modification time to ``days`` days ago."""

    def _set(path: Path, days: float) -> float:
        stamp = time.time() - days * DAY
        os.utime(path, (stamp, stamp))
        return stamp

    return _set
