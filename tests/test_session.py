"""Tests for the session record and shutdown sentinel."""
import os
from unittest.mock import patch

import pytest

from screenrec.errors import SessionNotFoundError, SessionStoreError
from screenrec.session import KILL_FILE_NAME, PID_FILE_NAME, SessionStore, pid_is_alive


def test_register_and_lookup(store, session_dir):
    store.register(4321)
    assert (session_dir / PID_FILE_NAME).read_text() == "4321"
    assert store.lookup() == 4321


def test_register_overwrites_stale_record(store):
    store.register(1)
    store.register(2)
    assert store.lookup() == 2


def test_register_creates_directory(tmp_path):
    store = SessionStore(tmp_path / "nested" / "dir")
    store.register(10)
    assert store.lookup() == 10


def test_register_failure_raises_store_error(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("")
    store = SessionStore(blocker)
    with pytest.raises(SessionStoreError):
        store.register(10)


def test_lookup_missing_record(store):
    with pytest.raises(SessionNotFoundError, match="could not read PID file"):
        store.lookup()


def test_lookup_malformed_record(store, session_dir):
    (session_dir / PID_FILE_NAME).write_text("not-a-pid")
    with pytest.raises(SessionNotFoundError):
        store.lookup()


def test_clear_is_idempotent(store, session_dir):
    store.register(99)
    store.clear()
    store.clear()
    assert not (session_dir / PID_FILE_NAME).exists()


def test_request_shutdown_without_session_writes_nothing(store, session_dir):
    with pytest.raises(SessionNotFoundError):
        store.request_shutdown()
    assert list(session_dir.iterdir()) == []


def test_request_shutdown_creates_empty_sentinel(store, session_dir):
    store.register(123)
    store.request_shutdown()
    kill_file = session_dir / KILL_FILE_NAME
    assert kill_file.exists()
    assert kill_file.read_bytes() == b""


def test_poll_shutdown_consumes_once(store, session_dir):
    store.register(123)
    store.request_shutdown()
    assert store.poll_shutdown() is True
    assert store.poll_shutdown() is False
    assert not (session_dir / KILL_FILE_NAME).exists()


def test_poll_shutdown_without_request(store):
    assert store.poll_shutdown() is False


def test_repeated_stop_leaves_single_sentinel(store, session_dir):
    store.register(123)
    store.request_shutdown()
    store.request_shutdown()
    assert sorted(p.name for p in session_dir.iterdir()) == [KILL_FILE_NAME, PID_FILE_NAME]
    assert store.poll_shutdown() is True
    assert store.poll_shutdown() is False


def test_poll_shutdown_lost_race(store, session_dir):
    """Another poller removing the sentinel first is not an error."""
    store.register(123)
    store.request_shutdown()
    with patch("pathlib.Path.unlink", side_effect=FileNotFoundError):
        assert store.poll_shutdown() is False


def test_discard_shutdown_request(store, session_dir):
    (session_dir / KILL_FILE_NAME).write_bytes(b"")
    store.discard_shutdown_request()
    assert not (session_dir / KILL_FILE_NAME).exists()
    store.discard_shutdown_request()


def test_pid_is_alive_for_current_process():
    assert pid_is_alive(os.getpid()) is True


def test_pid_is_alive_rejects_invalid_pid():
    assert pid_is_alive(0) is False
    assert pid_is_alive(-5) is False


@pytest.mark.skipif(os.name == "nt", reason="POSIX process probing")
def test_pid_is_alive_missing_process():
    with patch("os.kill", side_effect=ProcessLookupError):
        assert pid_is_alive(424242) is False


@pytest.mark.skipif(os.name == "nt", reason="POSIX process probing")
def test_pid_is_alive_other_users_process():
    with patch("os.kill", side_effect=PermissionError):
        assert pid_is_alive(1) is True
