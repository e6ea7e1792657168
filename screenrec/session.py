"""Session store: the active session's PID record and the shutdown sentinel.

Both live as plain files in one directory so an unrelated invocation of the
CLI can find the running session and ask it to stop.
"""

import logging
import os
import sys
from pathlib import Path

from .errors import SessionNotFoundError, SessionStoreError

logger = logging.getLogger(__name__)

PID_FILE_NAME = "screenrec.pid"
KILL_FILE_NAME = "screenrec.kill"


def _remove(path):
    """Delete `path`. Returns True if this call removed it."""
    try:
        path.unlink()
        return True
    except FileNotFoundError:
        return False
    except OSError as e:
        logger.warning(f"Could not remove {path}: {e}")
        return False


def pid_is_alive(pid):
    """Best-effort check that a process with this PID exists."""
    if pid <= 0:
        return False
    if sys.platform == "win32":
        # os.kill would terminate the process here; assume alive
        return True
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        # Exists, owned by someone else
        return True
    except OSError:
        return False
    return True


class SessionStore:
    """Reads and writes the session record and shutdown sentinel in `directory`."""

    def __init__(self, directory):
        self.directory = Path(directory)

    @property
    def pid_file(self) -> Path:
        return self.directory / PID_FILE_NAME

    @property
    def kill_file(self) -> Path:
        return self.directory / KILL_FILE_NAME

    def register(self, pid: int) -> None:
        """Write the session record, replacing any stale one."""
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            self.pid_file.write_text(str(pid))
        except OSError as e:
            raise SessionStoreError(f"failed to write PID file {self.pid_file}: {e}") from e
        logger.debug(f"Registered session PID {pid} in {self.pid_file}")

    def lookup(self) -> int:
        """Return the recorded PID, or raise SessionNotFoundError."""
        try:
            content = self.pid_file.read_text().strip()
            return int(content)
        except (OSError, ValueError) as e:
            raise SessionNotFoundError(f"could not read PID file {self.pid_file}: {e}") from e

    def clear(self) -> None:
        """Remove the session record. A missing record is fine."""
        if _remove(self.pid_file):
            logger.debug(f"Cleared session record {self.pid_file}")

    def request_shutdown(self) -> None:
        """Create the shutdown sentinel for the active session.

        Refuses with SessionNotFoundError when no session record can be read,
        and writes nothing in that case.
        """
        self.lookup()
        try:
            self.kill_file.write_bytes(b"")
        except OSError as e:
            raise SessionStoreError(f"failed to create kill file {self.kill_file}: {e}") from e
        logger.debug(f"Created shutdown sentinel {self.kill_file}")

    def poll_shutdown(self) -> bool:
        """Consume a pending shutdown request. True only for the caller that removed it."""
        if not self.kill_file.exists():
            return False
        return _remove(self.kill_file)

    def discard_shutdown_request(self) -> None:
        """Drop a leftover sentinel so it cannot stop a session started after it."""
        if _remove(self.kill_file):
            logger.info(f"Discarded stale shutdown request {self.kill_file}")
