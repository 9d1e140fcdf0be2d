"""Point-to-point message passing between the coordinator and its workers."""

from __future__ import annotations

import asyncio
import logging
import multiprocessing
from abc import ABC, abstractmethod
from multiprocessing.connection import Connection, wait

from rowcue.errors import ProtocolError, WorkerCrashed
from rowcue.models import Message, RowResult, Terminate
from rowcue.worker import run_worker, worker_task

logger = logging.getLogger(__name__)

TRANSPORTS = ("process", "local")


class Transport(ABC):
    """Channels from the coordinator to each worker and back.

    The coordinator addresses one worker at a time and receives from
    whichever worker answers first. Workers never talk to each other.
    """

    def __init__(self, width: int, height: int, workers: int) -> None:
        if workers < 0:
            raise ValueError(f"Worker count must be >= 0, got {workers}")
        self.width = width
        self.height = height
        self._workers = list(range(1, workers + 1))
        self._terminated: set[int] = set()

    @property
    def workers(self) -> list[int]:
        """Worker ids in pool order."""
        return list(self._workers)

    @abstractmethod
    async def start(self) -> None:
        """Launch the workers."""
        ...

    @abstractmethod
    async def send(self, worker: int, message: Message) -> None:
        """Deliver ``message`` to one worker."""
        ...

    @abstractmethod
    async def recv_any(self) -> RowResult:
        """Block until any worker returns a row."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Wait for every worker to exit.

        Workers that were never sent ``Terminate`` (the run failed) are
        stopped forcibly.
        """
        ...

    def _mark_sent(self, worker: int, message: Message) -> None:
        if worker not in self._workers:
            raise ProtocolError(f"Unknown worker: {worker}")
        if worker in self._terminated:
            raise ProtocolError(f"Worker {worker} was already terminated")
        if isinstance(message, Terminate):
            self._terminated.add(worker)

    @property
    def _live(self) -> list[int]:
        return [w for w in self._workers if w not in self._terminated]


class ProcessTransport(Transport):
    """
    One OS process per worker, each with its own duplex pipe.

    Example:
        transport = ProcessTransport(800, 600, workers=4)
        await transport.start()
        await transport.send(1, Assignment(0))
        result = await transport.recv_any()
        ...
        await transport.close()
    """

    def __init__(self, width: int, height: int, workers: int, *, context=None) -> None:
        super().__init__(width, height, workers)
        self._ctx = context or multiprocessing.get_context()
        self._conns: dict[int, Connection] = {}
        self._procs: dict[int, multiprocessing.process.BaseProcess] = {}

    async def start(self) -> None:
        if self._procs:
            return

        for worker in self._workers:
            parent, child = self._ctx.Pipe()
            proc = self._ctx.Process(
                target=run_worker,
                args=(worker, child, self.width, self.height),
                name=f"rowcue-worker-{worker}",
                daemon=True,
            )
            proc.start()
            child.close()  # Only the worker keeps its end
            self._conns[worker] = parent
            self._procs[worker] = proc

        logger.debug("Started %d worker processes", len(self._procs))

    async def send(self, worker: int, message: Message) -> None:
        self._mark_sent(worker, message)
        self._conns[worker].send(message)

    async def recv_any(self) -> RowResult:
        # Terminated workers close their pipe; leave them out of the wait set
        by_conn = {self._conns[w]: w for w in self._live}
        if not by_conn:
            raise ProtocolError("No live worker to receive from")

        ready = await asyncio.to_thread(wait, list(by_conn))
        conn = ready[0]
        try:
            return conn.recv()
        except EOFError as e:
            worker = by_conn[conn]
            raise WorkerCrashed(
                f"Worker {worker} exited unexpectedly "
                f"(exit code {self._procs[worker].exitcode})"
            ) from e

    async def close(self) -> None:
        for worker in self._live:
            proc = self._procs.get(worker)
            if proc is not None and proc.is_alive():
                logger.warning("Stopping worker %d that was never terminated", worker)
                proc.terminate()

        for proc in self._procs.values():
            await asyncio.to_thread(proc.join)
        for conn in self._conns.values():
            conn.close()

        logger.debug("All %d worker processes joined", len(self._procs))
        self._procs.clear()
        self._conns.clear()


class LocalTransport(Transport):
    """
    Workers as asyncio tasks in this process.

    Each worker has its own inbox queue; results share one outbox. Row
    computation happens in threads, so this is mostly useful for tests
    and small images.
    """

    def __init__(self, width: int, height: int, workers: int) -> None:
        super().__init__(width, height, workers)
        self._inboxes: dict[int, asyncio.Queue] = {}
        self._outbox: asyncio.Queue | None = None
        self._tasks: dict[int, asyncio.Task] = {}

    async def start(self) -> None:
        if self._tasks:
            return

        self._outbox = asyncio.Queue()
        for worker in self._workers:
            inbox: asyncio.Queue = asyncio.Queue()
            self._inboxes[worker] = inbox
            self._tasks[worker] = asyncio.create_task(
                worker_task(worker, inbox, self._outbox, self.width, self.height),
                name=f"rowcue-worker-{worker}",
            )

    async def send(self, worker: int, message: Message) -> None:
        self._mark_sent(worker, message)
        self._inboxes[worker].put_nowait(message)

    async def recv_any(self) -> RowResult:
        assert self._outbox is not None, "start() not called"
        if not self._outbox.empty():
            return self._outbox.get_nowait()

        watched = {self._tasks[w]: w for w in self._live}
        if not watched:
            raise ProtocolError("No live worker to receive from")

        getter = asyncio.create_task(self._outbox.get())
        done, _ = await asyncio.wait(
            [getter, *watched],
            return_when=asyncio.FIRST_COMPLETED,
        )
        if getter in done:
            return getter.result()

        getter.cancel()
        try:
            await getter
        except asyncio.CancelledError:
            pass

        # A live worker task ended before it was told to stop
        task = next(iter(done))
        raise WorkerCrashed(f"Worker {watched[task]} stopped unexpectedly") from task.exception()

    async def close(self) -> None:
        for worker in self._live:
            task = self._tasks.get(worker)
            if task is not None and not task.done():
                logger.warning("Stopping worker %d that was never terminated", worker)
                task.cancel()

        # Barrier: every worker task has finished
        await asyncio.gather(*self._tasks.values(), return_exceptions=True)
        self._tasks.clear()
        self._inboxes.clear()


def make_transport(kind: str, width: int, height: int, workers: int) -> Transport:
    """Build a transport by name."""
    if kind == "process":
        return ProcessTransport(width, height, workers)
    if kind == "local":
        return LocalTransport(width, height, workers)
    available = ", ".join(TRANSPORTS)
    raise ValueError(f"Unknown transport: {kind}. Available: {available}")
