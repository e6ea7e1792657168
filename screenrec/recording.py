"""Recording session: one worker run from spawn to cleanup."""

import enum
import logging
import time
from pathlib import Path

from rich.console import Console

from .capture import WorkerCommandSpec, WorkerProcess
from .errors import SessionStoreError, SpawnError
from .session import SessionStore
from .shutdown import DEFAULT_POLL_INTERVAL, ShutdownSignaler

logger = logging.getLogger(__name__)

DEFAULT_SETTLE_DELAY = 2.0
# How long an unregistered worker gets to honour quit before it is killed
DEFAULT_STOP_TIMEOUT = 5.0


class SessionState(enum.Enum):
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"
    TERMINATED = "terminated"


class RecordingSession:
    """Runs the worker, registers it, and waits for it to finish.

    While the worker runs, Ctrl+C/SIGTERM or a kill file in `directory`
    sends it the quit command. When the worker exits the session waits
    `settle_delay` seconds for the output to be finalised, then clears its
    record. Errors from spawning or from the worker's exit propagate.
    """

    def __init__(
        self,
        spec: WorkerCommandSpec,
        directory,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        settle_delay: float = DEFAULT_SETTLE_DELAY,
        console: Console = None,
    ):
        self.spec = spec
        self.store = SessionStore(Path(directory))
        self.poll_interval = poll_interval
        self.settle_delay = settle_delay
        self.stop_timeout = DEFAULT_STOP_TIMEOUT
        self.console = console or Console()
        self.worker = WorkerProcess(spec)
        self.state = SessionState.STARTING

    def _set_state(self, state):
        logger.debug(f"Session {self.state.value} -> {state.value}")
        self.state = state

    def _send_quit(self, source):
        self._set_state(SessionState.STOPPING)
        self.console.print(f"\n[yellow]{source} received: sending 'q' to the recorder...[/yellow]")
        self.worker.request_stop()

    def run(self) -> int:
        """Run the session to completion and return the worker's exit status."""
        self.store.discard_shutdown_request()
        try:
            self.worker.spawn()
        except SpawnError:
            self._set_state(SessionState.TERMINATED)
            raise

        try:
            self.store.register(self.worker.pid)
        except SessionStoreError:
            # Without a record nobody can stop it; take the worker down with us
            self.worker.shutdown(self.stop_timeout)
            self._set_state(SessionState.TERMINATED)
            raise

        self._set_state(SessionState.RUNNING)
        self.console.print(f"[green]✅ Recording started (PID={self.worker.pid}).[/green]")
        self.console.print("[yellow]Press Ctrl+C or run `screenrec stop` to end.[/yellow]")

        signaler = ShutdownSignaler(self.store, self._send_quit, poll_interval=self.poll_interval)
        try:
            with signaler:
                return self.worker.wait()
        finally:
            self._set_state(SessionState.TERMINATED)
            try:
                if self.settle_delay > 0:
                    time.sleep(self.settle_delay)
            finally:
                self.store.clear()
