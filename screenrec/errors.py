"Error types raised by the session lifecycle."


class ScreenrecError(RuntimeError):
    """Base class for every failure the CLI reports to the operator."""


class SpawnError(ScreenrecError):
    """The worker executable could not be found or launched."""


class WaitError(ScreenrecError):
    """The worker exited with a non-zero status or was killed."""

    def __init__(self, message, returncode=None):
        super().__init__(message)
        self.returncode = returncode


class SessionNotFoundError(ScreenrecError):
    """No readable session record exists in the session directory."""


class SessionStoreError(ScreenrecError):
    """Writing the session record or the shutdown sentinel failed."""
