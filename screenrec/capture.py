"""Capture engine: spawn the recorder process and talk to it over stdin.

The worker is treated as a black box with one convention: a ``q`` on its
standard input means "finish the file and exit".
"""

import logging
import os
import subprocess
import sys
import threading
from dataclasses import dataclass
from typing import Optional, Tuple

from .errors import SpawnError, WaitError

logger = logging.getLogger(__name__)

QUIT_COMMAND = b"q"

# Windows process creation flags
CREATE_NEW_PROCESS_GROUP = 0x00000200
DETACHED_PROCESS = 0x00000008


@dataclass(frozen=True)
class WorkerCommandSpec:
    """Program and arguments for one worker run."""
    program: str
    arguments: Tuple[str, ...] = ()

    @property
    def argv(self):
        return [self.program, *self.arguments]


def _grab_input(platform, fps):
    """Desktop grabber input arguments for ffmpeg on this platform."""
    if platform == "win32":
        return ["-f", "gdigrab", "-framerate", str(fps), "-i", "desktop"]
    if platform == "darwin":
        return ["-f", "avfoundation", "-framerate", str(fps), "-i", "1:none"]
    display = os.environ.get("DISPLAY", ":0.0")
    return ["-f", "x11grab", "-framerate", str(fps), "-i", display]


def build_capture_command(output, fps=15, duration=0, ffmpeg="ffmpeg", platform=None):
    """Build the ffmpeg command line for a desktop recording to `output`."""
    platform = platform or sys.platform
    args = ["-y"]
    if duration > 0:
        args += ["-t", str(duration)]
    args += _grab_input(platform, fps)
    args += [
        "-f", "lavfi", "-i", "anullsrc=channel_layout=stereo:sample_rate=44100",
        "-c:v", "libx264", "-preset", "ultrafast", "-pix_fmt", "yuv420p",
        "-profile:v", "baseline", "-level", "4.1",
        "-c:a", "aac", "-b:a", "128k",
        "-movflags", "+faststart", "-shortest",
        str(output),
    ]
    return WorkerCommandSpec(ffmpeg, tuple(args))


def new_group_kwargs(detached=False):
    """Popen keyword arguments that start a child in its own process group.

    On POSIX the child gets a new session, which also detaches it from the
    controlling terminal. On Windows `detached` additionally drops the console.
    """
    if sys.platform == "win32":
        flags = CREATE_NEW_PROCESS_GROUP
        if detached:
            flags |= DETACHED_PROCESS
        return {"creationflags": flags}
    return {"start_new_session": True}


class WorkerProcess:
    """A running worker with a writable control stream on its stdin."""

    def __init__(self, spec: WorkerCommandSpec):
        self.spec = spec
        self.proc: Optional[subprocess.Popen] = None
        self._write_lock = threading.Lock()

    @property
    def pid(self):
        return self.proc.pid if self.proc else None

    def spawn(self):
        """Start the worker. stdout/stderr are inherited, stdin is a pipe."""
        logger.debug(f"Spawning worker: {' '.join(self.spec.argv)}")
        try:
            self.proc = subprocess.Popen(
                self.spec.argv,
                stdin=subprocess.PIPE,
                stdout=None,
                stderr=None,
                **new_group_kwargs(),
            )
        except (OSError, ValueError) as e:
            raise SpawnError(f"failed to start {self.spec.program}: {e}") from e
        logger.info(f"Worker started (PID={self.proc.pid})")
        return self

    def write_control(self, data: bytes) -> bool:
        """Write to the worker's stdin. Failures are logged, not raised."""
        if self.proc is None or self.proc.stdin is None:
            logger.warning("Worker not started; control write skipped")
            return False
        with self._write_lock:
            try:
                self.proc.stdin.write(data)
                self.proc.stdin.flush()
            except (OSError, ValueError) as e:
                # Broken pipe or closed stream: the worker is already exiting
                logger.warning(f"Control write to worker {self.proc.pid} failed: {e}")
                return False
        logger.debug(f"Sent {data!r} to worker {self.proc.pid}")
        return True

    def request_stop(self) -> bool:
        return self.write_control(QUIT_COMMAND)

    def shutdown(self, timeout: float) -> None:
        """Send the quit command and reap the worker, killing it after `timeout` seconds."""
        if self.proc is None:
            return
        self.request_stop()
        try:
            self.proc.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            logger.warning(f"Worker {self.proc.pid} ignored quit for {timeout}s; killing it")
            self.proc.kill()
            self.proc.wait()

    def wait(self) -> int:
        """Block until the worker exits. Non-zero or signalled exits raise WaitError."""
        if self.proc is None:
            raise WaitError("worker was never started")
        returncode = self.proc.wait()
        if self.proc.stdin:
            try:
                self.proc.stdin.close()
            except OSError:
                pass
        if returncode < 0:
            raise WaitError(f"{self.spec.program} killed by signal {-returncode}", returncode)
        if returncode != 0:
            raise WaitError(f"{self.spec.program} exit error: exit status {returncode}", returncode)
        logger.info(f"Worker {self.proc.pid} exited cleanly")
        return returncode
