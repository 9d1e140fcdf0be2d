"""Worker loops: wait for a row, compute it, send it back, repeat."""

from __future__ import annotations

import asyncio
import logging
from multiprocessing.connection import Connection

from rowcue.kernel import compute_row
from rowcue.models import Assignment, Message, RowResult, Terminate

logger = logging.getLogger(__name__)


class RowWorker:
    """Turns assignments into results. Keeps no state between rows."""

    def __init__(self, worker_id: int, width: int, height: int) -> None:
        self.worker_id = worker_id
        self.width = width
        self.height = height

    def handle(self, message: Message) -> RowResult | None:
        """Compute the assigned row, or return None on ``Terminate``."""
        if isinstance(message, Terminate):
            return None
        if not isinstance(message, Assignment):
            raise TypeError(f"Unexpected message for worker {self.worker_id}: {message!r}")
        pixels = compute_row(message.row, self.width, self.height)
        return RowResult(worker=self.worker_id, row=message.row, pixels=pixels)


def run_worker(worker_id: int, conn: Connection, width: int, height: int) -> None:
    """Process entry point. Only ever replies to the coordinator."""
    worker = RowWorker(worker_id, width, height)
    rows = 0
    try:
        while True:
            result = worker.handle(conn.recv())
            if result is None:
                break
            conn.send(result)
            rows += 1
    finally:
        conn.close()
    logger.debug("Worker %d exiting after %d rows", worker_id, rows)


async def worker_task(
    worker_id: int,
    inbox: asyncio.Queue,
    outbox: asyncio.Queue,
    width: int,
    height: int,
) -> int:
    """In-process variant of ``run_worker`` over asyncio queues.

    Returns the number of rows computed.
    """
    worker = RowWorker(worker_id, width, height)
    rows = 0
    while True:
        message = await inbox.get()
        if isinstance(message, Terminate):
            break
        # Row math runs off the event loop
        result = await asyncio.to_thread(worker.handle, message)
        await outbox.put(result)
        rows += 1
    logger.debug("Worker %d exiting after %d rows", worker_id, rows)
    return rows
