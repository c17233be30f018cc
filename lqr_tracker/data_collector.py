"""Telemetry collection and CSV logging for tracking runs.

This module provides CSV data logging for:
- The reference plan handed to the tracker
- The lookahead target selected each tick
- The robot pose each tick
- Tracker diagnostics (error vector, command, Riccati solver status)

The collector is a one-way telemetry sink: the tracker writes to it and
never reads it back.
"""

import csv
import logging
import os
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, TextIO

from .config import TERM_BLUE, TERM_RESET
from .geometry import Pose

DIAGNOSTIC_FIELDS = [
    "e_forward",
    "e_lateral",
    "e_heading",
    "v_cmd",
    "omega_cmd",
    "mode",
    "solver_status",
    "iterations",
    "residual",
    "lookahead_distance",
    "goal_reached",
]


class DataCollector:
    """Manages CSV file creation and logging for tracker telemetry.

    This class handles all telemetry logging responsibilities:
    - Creates timestamped output directories
    - Initializes CSV files with headers
    - Writes target, pose, and diagnostics rows each tick
    - Ensures proper cleanup on shutdown

    Attributes:
        run_dir: Directory path for this run's output files.
        target_csv_file: File handle for lookahead target CSV.
        pose_csv_file: File handle for robot pose CSV.
        diagnostics_csv_file: File handle for tracker diagnostics CSV.
        plan_output_path: Path of the reference plan CSV.
    """

    def __init__(self, output_dir: str = ".", run_dir: Optional[str] = None) -> None:
        """Initialize the data collector.

        Args:
            output_dir: Base directory for output files (default: current directory).
            run_dir: Optional specific run directory. If None, creates timestamped
                directory. Can also be set via RUN_DIR environment variable.

        Raises:
            ValueError: If output_dir is not a valid directory.
        """
        output_path = Path(output_dir)
        if output_path.exists() and not output_path.is_dir():
            raise ValueError(f"Output path exists but is not a directory: {output_dir}")

        # CSV file handles
        self.target_csv_file: Optional[TextIO] = None
        self.target_csv_writer: Any = None
        self.pose_csv_file: Optional[TextIO] = None
        self.pose_csv_writer: Any = None
        self.diagnostics_csv_file: Optional[TextIO] = None
        self.diagnostics_csv_writer: Any = None

        # Determine run directory
        if run_dir:
            self.run_dir: Path = Path(run_dir)
        elif env_run_dir := os.environ.get("RUN_DIR"):
            self.run_dir = Path(env_run_dir)
        else:
            # Create timestamped directory: results/run_YYYYMMDD_HHMMSS/
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            self.run_dir = output_path / "results" / f"run_{timestamp}"

        self.run_dir.mkdir(parents=True, exist_ok=True)

        # Define output file paths
        self.plan_output_path: Path = self.run_dir / "plan.csv"
        self.target_output_path: Path = self.run_dir / "target_point.csv"
        self.pose_output_path: Path = self.run_dir / "robot_pose.csv"
        self.diagnostics_output_path: Path = self.run_dir / "tracker_diagnostics.csv"

    def setup(self) -> None:
        """Initialize CSV files with headers.

        Creates and opens all CSV files with appropriate column headers.
        Must be called before writing data.
        """
        self.target_csv_file = open(self.target_output_path, "w", newline="")
        self.target_csv_writer = csv.writer(self.target_csv_file)
        self.target_csv_writer.writerow(["timestamp", "x", "y", "theta"])
        self.target_csv_file.flush()

        self.pose_csv_file = open(self.pose_output_path, "w", newline="")
        self.pose_csv_writer = csv.writer(self.pose_csv_file)
        self.pose_csv_writer.writerow(["timestamp", "x", "y", "theta"])
        self.pose_csv_file.flush()

        self.diagnostics_csv_file = open(self.diagnostics_output_path, "w", newline="")
        self.diagnostics_csv_writer = csv.writer(self.diagnostics_csv_file)
        self.diagnostics_csv_writer.writerow(["timestamp"] + DIAGNOSTIC_FIELDS)
        self.diagnostics_csv_file.flush()

        logging.info(
            f"{TERM_BLUE}✓ Initialized telemetry collection to {self.run_dir}{TERM_RESET}"
        )

    def log_plan(self, poses: Sequence[Pose]) -> None:
        """Write the reference plan to plan.csv (overwrites a previous plan).

        Args:
            poses: Plan waypoints
        """
        with open(self.plan_output_path, "w", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(["index", "x", "y", "theta"])
            for i, pose in enumerate(poses):
                writer.writerow([i, pose.x, pose.y, pose.theta])

    def publish(
        self,
        target: Pose,
        robot: Pose,
        diagnostics: Dict[str, Any],
        timestamp: Optional[float] = None,
    ) -> None:
        """Log one tick of telemetry.

        Args:
            target: Lookahead target (or goal) of this tick.
            robot: Robot pose of this tick.
            diagnostics: Tracker diagnostics; missing fields are left empty.
            timestamp: Time of the tick (seconds). Defaults to now.
        """
        if self.target_csv_writer is None:
            raise RuntimeError("DataCollector.setup() must be called before publishing")

        if timestamp is None:
            timestamp = time.time()

        self.target_csv_writer.writerow([timestamp, target.x, target.y, target.theta])
        self.pose_csv_writer.writerow([timestamp, robot.x, robot.y, robot.theta])
        self.diagnostics_csv_writer.writerow(
            [timestamp] + [diagnostics.get(name, "") for name in DIAGNOSTIC_FIELDS]
        )

        for handle in (self.target_csv_file, self.pose_csv_file, self.diagnostics_csv_file):
            if handle:
                handle.flush()

    def cleanup(self) -> None:
        """Close all CSV files and log final output location."""
        for handle in (self.target_csv_file, self.pose_csv_file, self.diagnostics_csv_file):
            if handle:
                handle.close()
        self.target_csv_file = None
        self.pose_csv_file = None
        self.diagnostics_csv_file = None
        self.target_csv_writer = None
        self.pose_csv_writer = None
        self.diagnostics_csv_writer = None

        logging.info(f"{TERM_BLUE}✓ Saved telemetry to {self.run_dir}{TERM_RESET}")

    def __enter__(self) -> "DataCollector":
        """Context manager entry point.

        Returns:
            Self reference for use in with statement.
        """
        self.setup()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Context manager exit point - ensures cleanup is called.

        Args:
            exc_type: Exception type if an exception occurred.
            exc_val: Exception value if an exception occurred.
            exc_tb: Exception traceback if an exception occurred.
        """
        self.cleanup()
