"""Exception types raised by rowcue."""

from __future__ import annotations


class RowcueError(Exception):
    """Base class for all rowcue errors."""


class InvalidInput(RowcueError, ValueError):
    """Bad command line arguments or image dimensions."""


class ProtocolError(RowcueError, RuntimeError):
    """The coordinator/worker message protocol was violated.

    This is a logic error, never a user-facing condition. It is raised
    when a result arrives without a matching outstanding assignment, when
    a worker is addressed after it was terminated, or when a row is
    delivered twice.
    """


class WorkerCrashed(ProtocolError):
    """A worker process exited while it still held a row."""
