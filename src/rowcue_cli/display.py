"""Rich-based display for rowcue.

This module provides visual output for a render using Rich library.
It's decoupled from the render logic - it just renders data.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from rowcue.models import WorkerState


@dataclass
class WorkerStatus:
    """Status of one worker for display."""

    worker: int
    state: WorkerState = WorkerState.IDLE
    current_row: int | None = None
    rows_done: int = 0


@dataclass
class RowEvent:
    """A recently finished row."""

    timestamp: datetime
    worker: int
    row: int
    elapsed: float


@dataclass
class RenderState:
    """Current state of a render for display.

    The runner updates this; the display renders it.
    """

    width: int = 0
    height: int = 0
    transport: str = "process"

    # Row stats
    assigned: int = 0
    completed: int = 0

    # Timing
    elapsed: float = 0.0

    workers: dict[int, WorkerStatus] = field(default_factory=dict)

    # Recent rows (most recent first)
    events: list[RowEvent] = field(default_factory=list)
    max_events: int = 6

    @property
    def in_flight(self) -> int:
        return self.assigned - self.completed

    @property
    def throughput(self) -> float:
        """Rows completed per second."""
        if self.elapsed > 0:
            return self.completed / self.elapsed
        return 0.0

    @property
    def progress(self) -> float:
        """Fraction complete (0.0 to 1.0)."""
        if self.height > 0:
            return self.completed / self.height
        return 0.0

    def worker(self, worker: int) -> WorkerStatus:
        if worker not in self.workers:
            self.workers[worker] = WorkerStatus(worker=worker)
        return self.workers[worker]

    def row_assigned(self, worker: int, row: int) -> None:
        status = self.worker(worker)
        status.state = WorkerState.BUSY
        status.current_row = row
        self.assigned += 1

    def row_completed(self, worker: int, row: int, elapsed: float) -> None:
        status = self.worker(worker)
        status.state = WorkerState.IDLE
        status.current_row = None
        status.rows_done += 1
        self.completed += 1
        self.elapsed = elapsed

        self.events.insert(0, RowEvent(datetime.now(), worker, row, elapsed))
        if len(self.events) > self.max_events:
            self.events = self.events[:self.max_events]

    def finish(self, elapsed: float) -> None:
        self.elapsed = elapsed
        for status in self.workers.values():
            status.state = WorkerState.TERMINATED
            status.current_row = None


class RenderDisplay:
    """Rich-based live display for a render.

    Shows:
    - Overall progress
    - Per-worker rows, to make the load balance visible
    - Recently finished rows
    """

    def __init__(self, state: RenderState, console: Console | None = None):
        self.state = state
        self.console = console or Console()
        self._live: Live | None = None

    def __enter__(self) -> RenderDisplay:
        self._live = Live(
            self._build_layout(),
            console=self.console,
            refresh_per_second=10,
            screen=False,
        )
        self._live.__enter__()
        return self

    def __exit__(self, *args) -> None:
        if self._live:
            self._live.__exit__(*args)
            self._live = None

    def refresh(self) -> None:
        """Update the display with current state."""
        if self._live:
            self._live.update(self._build_layout())

    def _build_layout(self) -> Panel:
        s = self.state

        layout = Layout()
        layout.split_column(
            Layout(self._build_progress_section(), name="progress", size=4),
            Layout(self._build_workers_section(), name="workers", size=3 + min(len(s.workers), 16)),
            Layout(self._build_events_section(), name="events", size=3 + s.max_events),
        )

        return Panel(
            layout,
            title=f"[bold cyan]rowcue[/bold cyan] {s.width}x{s.height}",
            border_style="cyan",
        )

    def _build_progress_section(self) -> Panel:
        s = self.state

        stats = Table.grid(expand=True, padding=(0, 2))
        for _ in range(4):
            stats.add_column(justify="left")

        stats.add_row(
            f"[dim]Rows:[/dim] [bold green]{s.completed:,}[/bold green]/{s.height:,}",
            f"[dim]In flight:[/dim] [bold yellow]{s.in_flight}[/bold yellow]",
            f"[dim]Throughput:[/dim] [bold]{s.throughput:.1f}/s[/bold]",
            f"[dim]Elapsed:[/dim] [bold]{s.elapsed:.2f}s[/bold]",
        )

        content = Table.grid(expand=True)
        content.add_row(stats)
        content.add_row(f"{self._progress_bar(s.progress, 40)} {s.progress * 100:.0f}%")

        return Panel(content, title="[bold]Progress[/bold]", border_style="blue")

    def _build_workers_section(self) -> Panel:
        s = self.state

        table = Table(box=None, expand=True, padding=(0, 1), show_header=False)
        table.add_column("Worker", width=10)
        table.add_column("State", width=12)
        table.add_column("Row", width=8, justify="right")
        table.add_column("Share", ratio=1)
        table.add_column("Done", width=8, justify="right")

        most = max((w.rows_done for w in s.workers.values()), default=0)
        state_styles = {
            WorkerState.BUSY: "yellow",
            WorkerState.IDLE: "dim",
            WorkerState.TERMINATED: "green",
        }

        for worker in sorted(s.workers)[:16]:
            status = s.workers[worker]
            style = state_styles[status.state]
            row = str(status.current_row) if status.current_row is not None else "[dim]—[/dim]"
            share = status.rows_done / most if most else 0.0
            table.add_row(
                f"[bold]W{worker}[/bold]",
                f"[{style}]{status.state.value}[/{style}]",
                row,
                self._progress_bar(share, 20),
                f"{status.rows_done:,}",
            )

        if len(s.workers) > 16:
            table.add_row("", "", "", f"[dim]... and {len(s.workers) - 16} more[/dim]", "")
        if not s.workers:
            table.add_row("[dim]No workers[/dim]", "", "", "", "")

        return Panel(table, title="[bold]Workers[/bold]", border_style="blue")

    def _build_events_section(self) -> Panel:
        s = self.state

        table = Table(box=None, expand=True, padding=(0, 1), show_header=False)
        table.add_column("Time", width=10, style="dim")
        table.add_column("Row", width=10)
        table.add_column("Worker", width=8)
        table.add_column("At", justify="right")

        for event in s.events:
            table.add_row(
                event.timestamp.strftime("%H:%M:%S"),
                f"[green]row {event.row}[/green]",
                f"W{event.worker}",
                f"{event.elapsed:.3f}s",
            )

        if not s.events:
            table.add_row("[dim]No rows yet[/dim]", "", "", "")

        return Panel(table, title="[bold]Recent Rows[/bold]", border_style="blue")

    @staticmethod
    def _progress_bar(pct: float, width: int = 10) -> str:
        """Create a mini progress bar."""
        pct = min(1.0, max(0.0, pct))
        filled = int(pct * width)
        empty = width - filled
        return f"[green]{'█' * filled}[/green][dim]{'░' * empty}[/dim]"


def print_simple_stats(state: RenderState) -> None:
    """Print a one-line progress update without the live display."""
    s = state
    pct = s.progress * 100
    print(
        f"\r[{s.completed}/{s.height}] "
        f"in flight:{s.in_flight} "
        f"({pct:.0f}%) {s.throughput:.1f} rows/s",
        end="",
        flush=True,
    )


def print_final_summary(state: RenderState, console: Console | None = None) -> None:
    """Print rows per worker after the render."""
    console = console or Console()
    console.print()

    table = Table(title="Render Results", show_header=True, border_style="green")
    table.add_column("Worker", style="dim")
    table.add_column("Rows", justify="right", style="bold")
    table.add_column("Share", justify="right")

    for worker in sorted(state.workers):
        done = state.workers[worker].rows_done
        share = done / state.height * 100 if state.height else 0.0
        name = "coordinator" if worker == 0 else f"W{worker}"
        table.add_row(name, f"{done:,}", f"{share:.1f}%")

    table.add_row("[bold]Total[/bold]", f"[green]{state.completed:,}[/green]", "")
    console.print(table)

    text = Text()
    text.append("Throughput: ", style="dim")
    text.append(f"{state.throughput:.1f} rows/s", style="bold")
    console.print(text)
