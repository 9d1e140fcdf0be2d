#!/usr/bin/env python3
"""
rowcue: render the Mandelbrot set with a dynamic row scheduler.

Usage:
    rowcue 800 600
    rowcue 4000 4000 --workers 8
    rowcue 800 600 --sequential
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from rowcue.config import MAX_DIMENSION, MIN_DIMENSION, RenderConfig, in_bounds, parse_dimension
from rowcue.errors import InvalidInput
from rowcue.models import RenderResult
from rowcue.report import report
from rowcue.transport import TRANSPORTS
from rowcue_cli.display import RenderDisplay, RenderState, print_final_summary, print_simple_stats
from rowcue_cli.runner import RenderRunner


def configure_logging(verbose: bool = False) -> None:
    """Configure logging for the command line."""
    rowcue_logger = logging.getLogger("rowcue")
    if verbose:
        rowcue_logger.setLevel(logging.DEBUG)
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
        rowcue_logger.addHandler(handler)
    else:
        # Warnings only (e.g. a failed image write); the display covers the rest
        rowcue_logger.setLevel(logging.WARNING)


class ArgumentParser(argparse.ArgumentParser):
    """argparse, but usage errors raise instead of exiting with status 2."""

    def error(self, message: str):
        raise InvalidInput(message)


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(
        prog="rowcue",
        description="Render the Mandelbrot set, handing out one row at a time to free workers",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  rowcue 800 600                     # One worker per spare CPU
  rowcue 4000 4000 --workers 8       # Bigger image, fixed pool
  rowcue 800 600 --workers 0         # No workers, compute inline
  rowcue 800 600 --sequential        # Baseline, writes sequential.pgm
        """,
    )
    parser.add_argument("width", type=str, help=f"Image width [{MIN_DIMENSION},{MAX_DIMENSION}]")
    parser.add_argument("height", type=str, help=f"Image height [{MIN_DIMENSION},{MAX_DIMENSION}]")
    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=None,
        help="Worker count, not counting the coordinator (default: CPUs - 1)",
    )
    parser.add_argument(
        "--transport", "-t",
        choices=TRANSPORTS,
        default="process",
        help="Worker pool: OS processes or in-process tasks (default: process)",
    )
    parser.add_argument(
        "--output", "-o",
        type=str,
        default=None,
        help="Image file (default: dynamic.pgm, or sequential.pgm with --sequential)",
    )
    parser.add_argument(
        "--sequential",
        action="store_true",
        help="Single-threaded baseline without the scheduler",
    )
    parser.add_argument(
        "--no-tui",
        action="store_true",
        help="Disable the live display, use simple text output",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Debug logging (implies --no-tui)",
    )
    return parser


def print_invalid_input(range_error: bool) -> None:
    """Tell the user the arguments were rejected."""
    if range_error:
        print("ERROR: Invalid image dimensions.")
        print(f"Height and width range: [{MIN_DIMENSION},{MAX_DIMENSION}]")
    print("ERROR: Invalid input.")
    print("Arguments should be <width> <height>")
    print("Shutting down...")


def parse_config(argv: list[str] | None = None) -> RenderConfig | None:
    """Parse and validate arguments. Returns None if they were rejected."""
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
        width = parse_dimension(args.width)
        height = parse_dimension(args.height)
    except InvalidInput:
        print_invalid_input(range_error=False)
        return None

    if not in_bounds(width, height):
        print_invalid_input(range_error=True)
        return None

    pool = {} if args.workers is None else {"workers": args.workers}
    try:
        config = RenderConfig(
            width=width,
            height=height,
            transport=args.transport,
            output=args.output,
            sequential=args.sequential,
            tui=not (args.no_tui or args.verbose),
            verbose=args.verbose,
            **pool,
        )
    except InvalidInput as e:
        print(f"ERROR: {e}")
        print_invalid_input(range_error=False)
        return None
    return config


async def run_with_display(config: RenderConfig, state: RenderState) -> RenderResult:
    """Run the render while refreshing the chosen display."""
    runner = RenderRunner(config, state)

    if config.tui:
        display = RenderDisplay(state)

        async def update_loop():
            while True:
                display.refresh()
                await asyncio.sleep(0.1)

        with display:
            update_task = asyncio.create_task(update_loop())
            try:
                return await runner.run()
            finally:
                update_task.cancel()
                try:
                    await update_task
                except asyncio.CancelledError:
                    pass
                display.refresh()

    if config.verbose:
        return await runner.run()

    async def print_loop():
        while True:
            print_simple_stats(state)
            await asyncio.sleep(0.5)

    update_task = asyncio.create_task(print_loop())
    try:
        return await runner.run()
    finally:
        update_task.cancel()
        try:
            await update_task
        except asyncio.CancelledError:
            pass
        print_simple_stats(state)
        print()  # Newline after progress


def main(argv: list[str] | None = None) -> int:
    config = parse_config(argv)
    if config is None:
        return 0

    configure_logging(verbose=config.verbose)
    print(f"width x height = {config.width} x {config.height}")

    state = RenderState()
    try:
        result = asyncio.run(run_with_display(config, state))
    except KeyboardInterrupt:
        print("\nInterrupted.")
        return 130

    report(result, config.output_path)
    if config.tui:
        print_final_summary(state)
    return 0


if __name__ == "__main__":
    sys.exit(main())
