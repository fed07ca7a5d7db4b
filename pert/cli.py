"""
Command line entry point: read task rows as CSV, print the scheduled network.

    $ printf '1,2,1,task1\n2,3,3,task2\n1,3,5,task3\n' | pert-dot
    $ pert-dot tasks.csv --format table
"""
from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from .dot import PertDot
from .engine import STRATEGIES, PertScheduler
from .errors import PertError
from .loader import DataLoader

logger = logging.getLogger("pert.cli")

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(level: str = "WARNING") -> logging.Logger:
    """
    Configure logging for the ``pert`` package.

    Args:
        level: Logging level name

    Returns:
        The configured package logger
    """
    package_logger = logging.getLogger("pert")
    package_logger.setLevel(level.upper())

    if not package_logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        package_logger.addHandler(handler)
    return package_logger


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="pert-dot",
        description="Compute a PERT/CPM schedule and render it as a Graphviz digraph.",
    )
    ap.add_argument("input", nargs="?", default="-",
                    help="CSV file with rows from,to,duration,name ('-' for standard input)")
    ap.add_argument("-o", "--output", default="-", help="Output file ('-' for standard output)")
    ap.add_argument("-f", "--format", choices=("dot", "debug", "table"), default="dot",
                    help="dot: Graphviz text; debug: dot with full field dump; table: results table")
    ap.add_argument("--strategy", choices=STRATEGIES, default="relaxation",
                    help="Propagation strategy (paths enumerates every simple path)")
    ap.add_argument("--project-start", type=int, default=0, help="Time of the start event")
    ap.add_argument("--explain", action="store_true",
                    help="Print the calculation log to standard error")
    ap.add_argument("--log-level", default="WARNING",
                    choices=("DEBUG", "INFO", "WARNING", "ERROR"))
    return ap


def render(scheduler: PertScheduler, fmt: str) -> str:
    network = scheduler.network
    if fmt == "table":
        events = network.get_events_dataframe().to_string(index=False)
        tasks = network.get_results_dataframe().to_string(index=False)
        return f"{events}\n\n{tasks}\n"
    return PertDot(network, verbose=fmt == "debug").render()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        if args.input == "-":
            loader = DataLoader.from_stdin()
        else:
            loader = DataLoader.from_path(args.input)
        scheduler = PertScheduler(strategy=args.strategy, project_start=args.project_start)
        scheduler.schedule(loader.rows)
    except PertError as exc:
        logger.error("%s", exc)
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        logger.error("Cannot read %s: %s", args.input, exc)
        print(f"error: {exc}", file=sys.stderr)
        return 1

    if args.explain:
        print("\n".join(scheduler.calculation_log), file=sys.stderr)

    output = render(scheduler, args.format)
    if args.output == "-":
        sys.stdout.write(output)
    else:
        with open(args.output, "w", encoding="utf-8") as handle:
            handle.write(output)
        logger.info("Wrote %s", args.output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
