"""Shared test fixtures."""
import sys

import pytest

from screenrec.capture import WorkerCommandSpec
from screenrec.session import SessionStore


# Exits 0 once it reads the quit command on stdin
QUIT_ON_Q = "import sys; sys.exit(0 if sys.stdin.read(1) == 'q' else 3)"


@pytest.fixture
def python_worker():
    """Factory for worker commands that run code with the current interpreter."""
    def make(code=QUIT_ON_Q):
        return WorkerCommandSpec(sys.executable, ("-c", code))
    return make


@pytest.fixture
def session_dir(tmp_path):
    d = tmp_path / "state"
    d.mkdir()
    return d


@pytest.fixture
def store(session_dir):
    return SessionStore(session_dir)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point the config file at a temp location and drop env overrides."""
    monkeypatch.setenv("SCREENREC_CONFIG", str(tmp_path / "config.json"))
    monkeypatch.delenv("SCREENREC_PATH", raising=False)
    monkeypatch.delenv("SCREENREC_FFMPEG", raising=False)
    monkeypatch.chdir(tmp_path)
