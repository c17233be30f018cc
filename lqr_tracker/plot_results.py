#!/usr/bin/env python3
"""
Plot recorded tracking runs.

This script loads the telemetry of a run directory (plan, robot pose, lookahead
targets and tracker diagnostics) and generates the tracking and diagnostics
figures. It is also reachable as ``python -m lqr_tracker plot``.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import TERM_BLUE, TERM_RESET
from .visualization import plot_run_summary


def _run_dirs(results_dir: Path) -> List[Path]:
    """Run directories under results_dir, oldest first (names sort by timestamp)."""
    return sorted(d for d in results_dir.iterdir() if d.is_dir() and d.name.startswith("run_"))


def find_latest_run(results_dir: Path) -> Path:
    """Return the most recent run directory.

    Raises:
        FileNotFoundError: If the results directory or any run directory is missing.
    """
    if not results_dir.exists():
        raise FileNotFoundError(f"Results directory not found: {results_dir}")

    run_dirs = _run_dirs(results_dir)
    if not run_dirs:
        raise FileNotFoundError(f"No run directories found in {results_dir}")

    return run_dirs[-1]


def list_available_runs(results_dir: Path) -> List[Path]:
    """Log and return all available run directories.

    Args:
        results_dir: Path to the results directory.

    Returns:
        Sorted list of run directories (empty if none).
    """
    if not results_dir.exists():
        logging.error(f"Results directory not found: {results_dir}")
        return []

    run_dirs = _run_dirs(results_dir)
    if not run_dirs:
        logging.info(f"No run directories found in {results_dir}")
        return []

    logging.info("Available runs:")
    for i, run_dir in enumerate(run_dirs, 1):
        logging.info(f"  {i}. {run_dir.name}")
    return run_dirs


def add_plot_arguments(parser: argparse.ArgumentParser) -> None:
    """Add the plotting options to an argument parser."""
    parser.add_argument(
        "--run",
        type=str,
        default=None,
        help="Name of the run directory to plot (e.g., run_20251114_184704). "
        "If not specified, plots the most recent run.",
    )
    parser.add_argument(
        "--results-dir",
        type=str,
        default="results",
        help="Path to the results directory (default: results)",
    )
    parser.add_argument(
        "--save", action="store_true", help="Save plots as PNG files in the run directory"
    )
    parser.add_argument(
        "--no-show",
        action="store_true",
        help="Do not display plots interactively (useful with --save)",
    )
    parser.add_argument("--list", action="store_true", help="List all available runs and exit")


def run(args: argparse.Namespace) -> int:
    """Plot a run according to parsed arguments.

    Returns:
        Process exit code (0 on success, 1 on error).
    """
    results_dir = Path(args.results_dir)

    if args.list:
        list_available_runs(results_dir)
        return 0

    if args.run:
        run_dir = results_dir / args.run
        if not run_dir.exists():
            logging.error(f"Run directory not found: {run_dir}")
            list_available_runs(results_dir)
            return 1
    else:
        try:
            run_dir = find_latest_run(results_dir)
        except FileNotFoundError as e:
            logging.error(f"{e}")
            return 1
        logging.info(f"{TERM_BLUE}Plotting most recent run: {run_dir}{TERM_RESET}")

    try:
        plot_run_summary(run_dir=run_dir, save_plots=args.save, show_plots=not args.no_show)
    except FileNotFoundError as e:
        logging.error(f"{e}")
        logging.info(f"Make sure {run_dir} contains robot_pose.csv and tracker_diagnostics.csv")
        return 1

    if args.save:
        logging.info(f"{TERM_BLUE}✓ Saved plots to {run_dir}{TERM_RESET}")
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the plotting script."""
    logging.basicConfig(level=logging.INFO, format="%(message)s")

    parser = argparse.ArgumentParser(
        description="Visualize recorded LQR tracking runs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Plot the most recent run
  python -m lqr_tracker.plot_results

  # Plot a specific run and save the figures without showing them
  python -m lqr_tracker.plot_results --run run_20251114_184704 --save --no-show

  # List all available runs
  python -m lqr_tracker.plot_results --list
        """,
    )
    add_plot_arguments(parser)
    sys.exit(run(parser.parse_args(argv)))


if __name__ == "__main__":
    main()
