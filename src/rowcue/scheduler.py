"""Dynamic row scheduler: the coordinator's bookkeeping, without transport."""

from __future__ import annotations

import logging
from typing import Iterable

from rowcue.errors import ProtocolError
from rowcue.models import Assignment, Message, Terminate, WorkerState

logger = logging.getLogger(__name__)


class RowScheduler:
    """
    Hands out rows one at a time to whichever worker is free.

    Rows are granted on demand rather than partitioned up front, because
    row cost depends on the data: rows crossing the set boundary use the
    full iteration budget while rows outside escape almost at once.

    The scheduler only decides. Sending messages and receiving results is
    up to the caller, which keeps the protocol testable on its own.

    Example:
        sched = RowScheduler(height=3)
        sched.prime([1, 2])          # [(1, Assignment(0)), (2, Assignment(1))]
        sched.complete(2, 1)         # Assignment(2)
        sched.complete(1, 0)         # Terminate()
        sched.complete(2, 2)         # Terminate()
        assert sched.finished
    """

    def __init__(self, height: int) -> None:
        self.height = max(height, 0)
        self.next_row = 0
        self.in_flight = 0

        self.outstanding: dict[int, int] = {}   # worker -> row it holds
        self.terminated: set[int] = set()
        self.assignments: list[tuple[int, int]] = []  # (row, worker), in order

    # --- Queries ---

    @property
    def remaining(self) -> int:
        """Rows not assigned yet."""
        return self.height - self.next_row

    @property
    def finished(self) -> bool:
        return self.in_flight == 0 and self.next_row == self.height

    def state(self, worker: int) -> WorkerState:
        if worker in self.terminated:
            return WorkerState.TERMINATED
        if worker in self.outstanding:
            return WorkerState.BUSY
        return WorkerState.IDLE

    # --- Transitions ---

    def prime(self, workers: Iterable[int]) -> list[tuple[int, Message]]:
        """Initial messages: one row per worker, in pool order.

        Workers beyond the number of rows get ``Terminate`` straight away
        so they never wait for work that will not come.
        """
        messages: list[tuple[int, Message]] = []
        for worker in workers:
            messages.append((worker, self._next_message(worker)))
        logger.debug(
            "Primed %d workers, %d rows in flight, %d left",
            len(messages), self.in_flight, self.remaining,
        )
        return messages

    def complete(self, worker: int, row: int) -> Message:
        """Record a finished row and return that worker's next message."""
        held = self.outstanding.get(worker)
        if held is None:
            raise ProtocolError(
                f"Worker {worker} returned row {row} without an outstanding assignment"
            )
        if held != row:
            raise ProtocolError(
                f"Worker {worker} returned row {row} but was assigned row {held}"
            )

        del self.outstanding[worker]
        self.in_flight -= 1
        return self._next_message(worker)

    def _next_message(self, worker: int) -> Message:
        if worker in self.terminated:
            raise ProtocolError(f"Worker {worker} was already terminated")
        if worker in self.outstanding:
            raise ProtocolError(
                f"Worker {worker} still holds row {self.outstanding[worker]}"
            )

        if self.next_row < self.height:
            row = self.next_row
            self.next_row += 1
            self.in_flight += 1
            self.outstanding[worker] = row
            self.assignments.append((row, worker))
            return Assignment(row)

        self.terminated.add(worker)
        return Terminate()
