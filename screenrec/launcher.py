"""Session launcher: foreground runs, detached background runs, and stop requests."""

import logging
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from rich.console import Console

from .capture import build_capture_command, new_group_kwargs
from .config import DEFAULTS
from .errors import SessionNotFoundError, SpawnError
from .recording import RecordingSession
from .session import SessionStore, pid_is_alive

logger = logging.getLogger(__name__)

BACKGROUND_LOG_NAME = "screenrec.log"


@dataclass
class StartOptions:
    """Options of the `start` command."""
    output: str = DEFAULTS["output"]
    fps: int = DEFAULTS["fps"]
    duration: int = 0
    background: bool = False
    path: str = DEFAULTS["path"]


def foreground_args(options: StartOptions, log_level: Optional[str] = None) -> List[str]:
    """CLI arguments that re-run `options` in the foreground (no background flag)."""
    args = []
    if log_level:
        args += ["--log-level", log_level]
    args += [
        "start",
        "-fps", str(options.fps),
        "-duration", str(options.duration),
        "-output", str(options.output),
        "--path", str(options.path),
    ]
    return args


def self_command() -> List[str]:
    """Command that runs this CLI again with the current interpreter."""
    return [sys.executable, "-m", "screenrec"]


class SessionLauncher:
    """Entry-point logic behind the `start`, `stop` and `status` commands."""

    def __init__(self, directory, settings=None, console=None, log_level=None):
        self.directory = Path(directory)
        self.settings = dict(DEFAULTS, **(settings or {}))
        self.console = console or Console()
        self.log_level = log_level
        self.store = SessionStore(self.directory)

    def worker_command(self, options: StartOptions):
        return build_capture_command(
            options.output,
            fps=options.fps,
            duration=options.duration,
            ffmpeg=self.settings["ffmpeg"],
        )

    def start(self, options: StartOptions) -> int:
        """Run a session here, or hand it to a detached copy of this CLI."""
        if options.background:
            self.start_background(options)
            return 0
        session = RecordingSession(
            self.worker_command(options),
            self.directory,
            poll_interval=self.settings["poll_interval"],
            settle_delay=self.settings["settle_delay"],
            console=self.console,
        )
        return session.run()

    def start_background(self, options: StartOptions) -> int:
        """Spawn a detached foreground run of `options` and return its PID."""
        cmd = self_command() + foreground_args(options, self.log_level)
        log_path = self.directory / BACKGROUND_LOG_NAME
        logger.debug(f"Launching background session: {' '.join(cmd)}")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            with open(log_path, "ab") as log_file:
                proc = subprocess.Popen(
                    cmd,
                    stdin=subprocess.DEVNULL,
                    stdout=log_file,
                    stderr=subprocess.STDOUT,
                    close_fds=True,
                    **new_group_kwargs(detached=True),
                )
        except OSError as e:
            raise SpawnError(f"Failed to start background process: {e}") from e

        self.console.print(f"[green]✅ Recording started in background (PID={proc.pid}). Parent exiting.[/green]")
        self.console.print(f"[dim]Output log: {log_path}[/dim]")
        return proc.pid

    def stop(self, force=False) -> bool:
        """Ask the active session to stop. Returns False if a stale record was cleared instead."""
        pid = self.store.lookup()
        if force and not pid_is_alive(pid):
            logger.info(f"Recorded PID {pid} is not running; clearing record")
            self.store.clear()
            self.store.discard_shutdown_request()
            return False
        self.store.request_shutdown()
        return True

    def status(self):
        """Return (pid, alive) for the recorded session, or None if there is none."""
        try:
            pid = self.store.lookup()
        except SessionNotFoundError:
            return None
        return pid, pid_is_alive(pid)
