"""Shutdown signaler: deliver one stop request to a running session.

Two observers race to stop the worker: OS signals (Ctrl+C, SIGTERM) and a
thread polling the session directory for the kill file. Whichever fires first
passes a one-shot gate; later firings are ignored.
"""

import logging
import signal
import threading
from typing import Callable, Optional

from .session import SessionStore

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 1.0
DEFAULT_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class ShutdownSignaler:
    """Watches for stop requests while used as a context manager."""

    def __init__(
        self,
        store: SessionStore,
        on_shutdown: Callable[[str], None],
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        signals=DEFAULT_SIGNALS,
    ):
        self.store = store
        self.on_shutdown = on_shutdown
        self.poll_interval = poll_interval
        self.signals = tuple(signals)
        # Acquired once by the first firing and never released
        self._gate = threading.Lock()
        self._fired_by: Optional[str] = None
        self._closing = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._previous_handlers = {}

    @property
    def fired(self) -> bool:
        return self._fired_by is not None

    @property
    def fired_by(self) -> Optional[str]:
        return self._fired_by

    def fire(self, source: str) -> bool:
        """Deliver the shutdown once. Returns False if it was already delivered."""
        if not self._gate.acquire(blocking=False):
            logger.debug(f"Shutdown already requested; ignoring {source}")
            return False
        self._fired_by = source
        logger.info(f"Shutdown requested by {source}")
        self.on_shutdown(source)
        return True

    def _handle_signal(self, signum, frame):
        self.fire(signal.Signals(signum).name)

    def _poll(self):
        while not self._closing.wait(self.poll_interval):
            if self.store.poll_shutdown():
                self.fire("kill file")
                return
            if self.fired:
                return

    def _install_handlers(self):
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not on the main thread; signal handlers not installed")
            return
        for signum in self.signals:
            self._previous_handlers[signum] = signal.signal(signum, self._handle_signal)

    def _restore_handlers(self):
        for signum, handler in self._previous_handlers.items():
            signal.signal(signum, handler)
        self._previous_handlers.clear()

    def start(self):
        self._install_handlers()
        self._thread = threading.Thread(target=self._poll, name="screenrec-poll", daemon=True)
        self._thread.start()
        return self

    def close(self):
        """Stop the poll thread and put the previous signal handlers back."""
        self._closing.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        self._restore_handlers()

    def __enter__(self):
        return self.start()

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
