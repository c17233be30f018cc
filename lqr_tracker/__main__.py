"""
Main entry point when running the lqr_tracker package with python -m.

Subcommands:
    simulate  Track a built-in path with the kinematic simulator
    connect   Serve a host over WebSocket
    plot      Plot a recorded run
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from . import plot_results
from .client import main as client_main
from .client import setup_logging
from .config import (
    PATH_DT,
    PATH_DURATION,
    SIM_MAX_STEPS,
    TERM_ORANGE,
    TERM_RESET,
    WS_URI,
    TrackerConfig,
)
from .data_collector import DataCollector
from .path import lemniscate_path, straight_path
from .simulation import make_simulated_tracker, run_simulation
from .tracker import LQRTracker


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m lqr_tracker",
        description="LQR path tracker for differential-drive robots",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable verbose logging with timestamps"
    )
    parser.add_argument(
        "--config", type=str, default=None, help="JSON file overriding tracker configuration"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    simulate = subparsers.add_parser("simulate", help="Track a path with the built-in simulator")
    simulate.add_argument(
        "--path",
        choices=["straight", "lemniscate"],
        default="straight",
        help="Reference path to track (default: straight)",
    )
    simulate.add_argument(
        "--steps", type=int, default=SIM_MAX_STEPS, help=f"Step cap (default: {SIM_MAX_STEPS})"
    )
    simulate.add_argument(
        "--no-record", action="store_true", help="Do not write telemetry CSV files"
    )
    simulate.add_argument(
        "--output-dir", type=str, default=".", help="Base directory for recorded runs"
    )

    connect = subparsers.add_parser("connect", help="Serve a host over WebSocket")
    connect.add_argument("--uri", type=str, default=WS_URI, help=f"Host URI (default: {WS_URI})")
    connect.add_argument(
        "--no-record", action="store_true", help="Do not write telemetry CSV files"
    )

    plot = subparsers.add_parser("plot", help="Plot a recorded run")
    plot_results.add_plot_arguments(plot)

    return parser


def simulate(config: TrackerConfig, path_name: str, steps: int, record: bool, output_dir: str) -> int:
    """Run the tracker against the simulator.

    Returns:
        Process exit code (0 if the goal was reached).
    """
    if path_name == "lemniscate":
        # Stop short of the full loop so the goal differs from the start
        poses = lemniscate_path(PATH_DURATION, PATH_DT, t_max=0.9 * PATH_DURATION)
    else:
        poses = straight_path()

    tracker = LQRTracker(config)
    collector = DataCollector(output_dir=output_dir) if record else None
    simulator = make_simulated_tracker(tracker, initial_pose=poses[0], telemetry=collector)
    tracker.set_plan(poses)

    if collector is not None:
        with collector:
            collector.log_plan(poses)
            result = run_simulation(tracker, simulator, max_steps=steps)
    else:
        result = run_simulation(tracker, simulator, max_steps=steps)

    max_linear, max_angular = result.max_command()
    logging.info(
        f"{TERM_ORANGE}Steps: {result.steps}  goal reached: {result.goal_reached}  "
        f"final pose: ({simulator.pose.x:.3f}, {simulator.pose.y:.3f}, {simulator.pose.theta:.3f})  "
        f"max |v|: {max_linear:.3f}  max |omega|: {max_angular:.3f}{TERM_RESET}"
    )
    return 0 if result.goal_reached else 1


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    try:
        config = TrackerConfig.from_json(args.config) if args.config else TrackerConfig()
    except (OSError, ValueError) as e:
        logging.error(f"Invalid configuration: {e}")
        return 2

    if args.command == "simulate":
        return simulate(config, args.path, args.steps, not args.no_record, args.output_dir)

    if args.command == "connect":
        try:
            asyncio.run(client_main(args.uri, config, record=not args.no_record))
        except ValueError as e:
            logging.error(f"{e}")
            return 2
        return 0

    return plot_results.run(args)


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        logging.info("\nExiting...")
        sys.exit(0)
