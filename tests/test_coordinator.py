"""Tests for the coordinator driving workers over a transport."""

import random

import pytest

import rowcue
from rowcue import (
    Coordinator,
    LocalTransport,
    ProtocolError,
    RowResult,
    Terminate,
    Transport,
    render,
    render_sequential,
)
from rowcue.models import COORDINATOR
from rowcue.worker import RowWorker


class ShuffledTransport(Transport):
    """Computes each row as soon as it is assigned, then hands results
    back in a random order chosen by ``seed``."""

    def __init__(self, width, height, workers, seed=0):
        super().__init__(width, height, workers)
        self._rng = random.Random(seed)
        self._pending: list[RowResult] = []
        self.sent = []
        self.received = []
        self.started = False
        self.closed = False

    async def start(self):
        self.started = True

    async def send(self, worker, message):
        self._mark_sent(worker, message)
        self.sent.append((worker, message))
        result = RowWorker(worker, self.width, self.height).handle(message)
        if result is not None:
            self._pending.append(result)

    async def recv_any(self):
        result = self._pending.pop(self._rng.randrange(len(self._pending)))
        self.received.append(result.row)
        return result

    async def close(self):
        self.closed = True


class WrongRowTransport(ShuffledTransport):
    """Reports every result under the wrong row index."""

    async def recv_any(self):
        result = await super().recv_any()
        return RowResult(worker=result.worker, row=result.row + 1, pixels=result.pixels)


class TestCompleteness:
    """Every row is computed and stored exactly once."""

    @pytest.mark.parametrize("width,height,workers", [
        (16, 12, 1),
        (16, 12, 3),
        (9, 31, 4),
        (1, 1, 2),
        (40, 5, 5),
    ])
    async def test_local_pool_fills_raster(self, width, height, workers):
        transport = LocalTransport(width, height, workers)
        result = await Coordinator(transport, width, height).run()

        assert result.raster.complete
        assert sorted(result.assignments) == list(range(height))
        assert sum(result.rows_per_worker.values()) == height

    async def test_matches_sequential_render(self):
        """The distributed raster is byte-identical to the baseline."""
        width, height = 30, 20
        result = await Coordinator(LocalTransport(width, height, 3), width, height).run()
        assert result.raster == render_sequential(width, height).raster

    async def test_concrete_center_pixel(self):
        """The origin of a 100x100 image is black; the corner is 35."""
        result = await Coordinator(LocalTransport(100, 100, 4), 100, 100).run()
        assert result.raster[50, 50] == 0
        assert result.raster[0, 0] == 35


class TestOrderIndependence:
    """Completion order does not change the output."""

    async def test_shuffled_completion_is_byte_identical(self):
        width, height = 24, 18
        baseline = render_sequential(width, height).raster
        orders = set()

        for seed in range(6):
            transport = ShuffledTransport(width, height, 4, seed=seed)
            result = await Coordinator(transport, width, height).run()
            assert bytes(result.raster) == bytes(baseline)
            orders.add(tuple(transport.received))

        # The harness really did permute arrivals
        assert len(orders) > 1

    async def test_one_terminate_per_worker(self):
        transport = ShuffledTransport(10, 15, 4, seed=5)
        await Coordinator(transport, 10, 15).run()

        for worker in transport.workers:
            messages = [m for w, m in transport.sent if w == worker]
            assert messages.count(Terminate()) == 1
            assert messages[-1] == Terminate()

    async def test_transport_started_and_closed(self):
        transport = ShuffledTransport(4, 4, 2)
        await Coordinator(transport, 4, 4).run()
        assert transport.started
        assert transport.closed


class TestPoolSizes:
    """Boundary pool sizes."""

    async def test_more_workers_than_rows(self):
        """Excess workers only get Terminate and the run still finishes."""
        transport = ShuffledTransport(8, 3, 6)
        result = await Coordinator(transport, 8, 3).run()

        assert result.raster.complete
        for worker in (4, 5, 6):
            assert [m for w, m in transport.sent if w == worker] == [Terminate()]

    async def test_more_local_workers_than_rows(self):
        result = await Coordinator(LocalTransport(8, 3, 6), 8, 3).run()
        assert result.raster.complete

    async def test_no_workers_computes_inline(self):
        """With an empty pool the coordinator does the rows itself."""
        width, height = 12, 7
        result = await Coordinator(LocalTransport(width, height, 0), width, height).run()

        assert result.raster == render_sequential(width, height).raster
        assert result.rows_per_worker == {COORDINATOR: height}
        assert set(result.assignments.values()) == {COORDINATOR}

    async def test_no_transport_computes_inline(self):
        result = await Coordinator(None, 5, 4).run()
        assert result.raster.complete


class TestCallbacks:
    """Tests for on_assign / on_row hooks."""

    async def test_hooks_see_every_row(self):
        coordinator = Coordinator(ShuffledTransport(6, 9, 2, seed=1), 6, 9)
        assigned = []
        done = []

        @coordinator.on_assign
        def on_assign(worker, row):
            assigned.append(row)

        @coordinator.on_row
        def on_row(result, elapsed):
            assert elapsed >= 0
            done.append(result.row)

        await coordinator.run()

        assert assigned == list(range(9))
        assert sorted(done) == list(range(9))

    async def test_callback_errors_do_not_stop_the_run(self):
        coordinator = Coordinator(ShuffledTransport(4, 4, 2), 4, 4)

        @coordinator.on_row
        def on_row(result, elapsed):
            raise RuntimeError("display broke")

        result = await coordinator.run()
        assert result.raster.complete


class TestProtocolErrors:
    """Protocol violations are fatal but still close the transport."""

    async def test_mismatched_row_raises(self):
        transport = WrongRowTransport(4, 6, 2)
        with pytest.raises(ProtocolError):
            await Coordinator(transport, 4, 6).run()
        assert transport.closed


class TestRender:
    """Tests for the render() convenience entry."""

    def test_render_local(self):
        result = render(20, 10, workers=3, transport="local")
        assert result.raster == render_sequential(20, 10).raster
        assert result.elapsed >= 0

    def test_render_inline(self):
        result = render(7, 7)
        assert result.raster.complete

    def test_unknown_transport(self):
        with pytest.raises(ValueError, match="Unknown transport"):
            render(4, 4, workers=1, transport="carrier-pigeon")

    def test_exported(self):
        assert rowcue.render is render
