"""
Visualization utilities for recorded tracking runs.

This module loads the CSV files written by :class:`~lqr_tracker.data_collector.DataCollector`
and plots:
- The reference plan, the driven trajectory and the lookahead targets
- The state error, velocity commands and Riccati solver diagnostics over time
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.figure import Figure

from .plot_styles import (
    PLOT_BLUE,
    PLOT_DARK_BLUE,
    PLOT_ORANGE,
    PLOT_TAUPE,
    PLOT_YELLOW_ORANGE,
    TIME_CMAP,
    add_branded_legend,
    load_csv_data,
    load_csv_to_dict,
    save_figure,
    style_axis,
)


def load_solver_status(filepath: Path) -> List[str]:
    """Read the solver_status column of a diagnostics CSV.

    Args:
        filepath: Path to tracker_diagnostics.csv.

    Returns:
        Status strings per row ("" where the row has none)
    """
    headers, rows = load_csv_data(filepath)
    if "solver_status" not in headers:
        return []
    column = headers.index("solver_status")
    return [row[column] if column < len(row) else "" for row in rows]


def plot_tracking_run(
    plan: Dict[str, np.ndarray],
    robot: Dict[str, np.ndarray],
    targets: Optional[Dict[str, np.ndarray]] = None,
    title: str = "Path Tracking",
    save_path: Optional[Path] = None,
) -> Figure:
    """Plot the plan, driven trajectory and lookahead targets (x vs y).

    Args:
        plan: Dictionary containing 'x' and 'y' arrays of the reference plan.
        robot: Dictionary containing 'timestamp', 'x' and 'y' arrays of the robot pose.
        targets: Optional dictionary containing 'x' and 'y' arrays of lookahead targets.
        title: Plot title.
        save_path: Optional path to save the figure.

    Returns:
        Matplotlib figure object.
    """
    fig, ax = plt.subplots(figsize=(10, 8), facecolor=PLOT_DARK_BLUE)
    style_axis(ax, title=title, xlabel="X Position (m)", ylabel="Y Position (m)", dark_mode=True)

    if len(plan.get("x", [])) > 0:
        ax.plot(
            plan["x"],
            plan["y"],
            "--",
            color=PLOT_YELLOW_ORANGE,
            linewidth=2.0,
            alpha=0.9,
            label="Plan",
            zorder=2,
        )
        ax.plot(
            plan["x"][-1],
            plan["y"][-1],
            "*",
            color=PLOT_YELLOW_ORANGE,
            markersize=14,
            markeredgecolor="black",
            label="Goal",
            zorder=6,
        )

    x = robot.get("x", np.array([]))
    y = robot.get("y", np.array([]))
    valid_mask = ~(np.isnan(x) | np.isnan(y))
    x = x[valid_mask]
    y = y[valid_mask]

    if len(x) > 0:
        timestamps = robot["timestamp"][valid_mask]
        ax.plot(x, y, "-", color=PLOT_ORANGE, linewidth=1.5, alpha=0.6, label="Robot", zorder=1)

        scatter = ax.scatter(
            x,
            y,
            c=timestamps - timestamps[0],
            cmap=TIME_CMAP,
            s=20,
            alpha=0.8,
            edgecolors="black",
            linewidths=0.5,
            zorder=3,
        )
        plt.colorbar(scatter, ax=ax, label="Time (s)")

        ax.plot(
            x[0],
            y[0],
            "o",
            color=PLOT_BLUE,
            markersize=8,
            label="Start",
            zorder=5,
            markeredgecolor="black",
            markeredgewidth=1.0,
        )

    if targets is not None and len(targets.get("x", [])) > 0:
        ax.scatter(
            targets["x"],
            targets["y"],
            marker="x",
            s=15,
            color=PLOT_TAUPE,
            alpha=0.7,
            label="Lookahead target",
            zorder=4,
        )

    ax.set_aspect("equal", adjustable="datalim")
    add_branded_legend(ax, dark_mode=True)
    plt.tight_layout()

    if save_path:
        save_figure(fig, save_path)

    return fig


def plot_command_history(
    diagnostics: Dict[str, np.ndarray],
    solver_status: Optional[List[str]] = None,
    title: str = "Tracker Diagnostics",
    save_path: Optional[Path] = None,
) -> Figure:
    """Plot state error, velocity commands and solver iterations over time.

    Ticks whose Riccati solve did not converge are shaded.

    Args:
        diagnostics: Dictionary loaded from tracker_diagnostics.csv.
        solver_status: Optional per-row solver status strings.
        title: Plot title prefix.
        save_path: Optional path to save the figure.

    Returns:
        Matplotlib figure object.
    """
    fig, (ax1, ax2, ax3) = plt.subplots(
        3, 1, figsize=(12, 10), sharex=True, facecolor=PLOT_DARK_BLUE
    )

    timestamps = diagnostics.get("timestamp", np.array([]))
    t = timestamps - timestamps[0] if len(timestamps) > 0 else timestamps

    style_axis(ax1, title=f"{title} - State Error", ylabel="Error", dark_mode=True)
    ax1.plot(t, diagnostics.get("e_forward", []), label="Forward (m)", color=PLOT_ORANGE)
    ax1.plot(t, diagnostics.get("e_lateral", []), label="Lateral (m)", color=PLOT_BLUE)
    ax1.plot(t, diagnostics.get("e_heading", []), label="Heading (rad)", color=PLOT_YELLOW_ORANGE)
    add_branded_legend(ax1, loc="upper right", dark_mode=True)

    style_axis(ax2, title=f"{title} - Commands", ylabel="Velocity", dark_mode=True)
    ax2.plot(t, diagnostics.get("v_cmd", []), label="Linear (m/s)", color=PLOT_ORANGE)
    ax2.plot(t, diagnostics.get("omega_cmd", []), label="Angular (rad/s)", color=PLOT_BLUE)
    add_branded_legend(ax2, loc="upper right", dark_mode=True)

    style_axis(
        ax3,
        title=f"{title} - Riccati Solver",
        xlabel="Time (s)",
        ylabel="Iterations",
        dark_mode=True,
    )
    ax3.plot(t, diagnostics.get("iterations", []), color=PLOT_ORANGE, label="Iterations")

    if solver_status and len(solver_status) == len(t):
        for ti, status in zip(t, solver_status):
            if status and status != "converged":
                for ax in (ax1, ax2, ax3):
                    ax.axvline(ti, color=PLOT_TAUPE, alpha=0.3, linewidth=1.0)
    add_branded_legend(ax3, loc="upper right", dark_mode=True)

    plt.tight_layout()

    if save_path:
        save_figure(fig, save_path)

    return fig


def plot_run_summary(run_dir: Path, save_plots: bool = False, show_plots: bool = True) -> None:
    """Generate summary plots for a complete run.

    Args:
        run_dir: Directory containing plan.csv, robot_pose.csv, target_point.csv
            and tracker_diagnostics.csv.
        save_plots: If True, save plots to run directory.
        show_plots: If True, display plots interactively.

    Raises:
        FileNotFoundError: If robot_pose.csv or tracker_diagnostics.csv is missing.
    """
    run_dir = Path(run_dir)
    robot = load_csv_to_dict(run_dir / "robot_pose.csv")
    diagnostics_path = run_dir / "tracker_diagnostics.csv"
    diagnostics = load_csv_to_dict(diagnostics_path)

    plan_path = run_dir / "plan.csv"
    if plan_path.exists():
        plan = load_csv_to_dict(plan_path)
    else:
        logging.warning(f"No plan.csv in {run_dir}, plotting trajectory only")
        plan = {}

    target_path = run_dir / "target_point.csv"
    targets = load_csv_to_dict(target_path) if target_path.exists() else None

    run_name = run_dir.name
    plot_tracking_run(
        plan,
        robot,
        targets,
        title=f"Path Tracking - {run_name}",
        save_path=run_dir / "tracking.png" if save_plots else None,
    )
    plot_command_history(
        diagnostics,
        load_solver_status(diagnostics_path),
        title=run_name,
        save_path=run_dir / "diagnostics.png" if save_plots else None,
    )

    if show_plots:
        plt.show()
    else:
        plt.close("all")
