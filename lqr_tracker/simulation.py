"""Kinematic simulation for offline tracking runs.

The simulator stands in for the host robot: it integrates unicycle
kinematics and implements the pose, odometry and costmap provider contracts,
so an :class:`~lqr_tracker.tracker.LQRTracker` can be exercised without a
robot or a network connection.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np

from .errors import TransformUnavailable
from .geometry import Pose, normalize_angle
from .synthesizer import ControlCommand
from .tracker import LQRTracker


class UnicycleSimulator:
    """Unicycle robot integrated with forward Euler.

    State update over one step of length dt:
        x += v * cos(theta) * dt
        y += v * sin(theta) * dt
        theta += omega * dt

    Attributes:
        pose: Current simulated pose
        speed: Linear velocity applied during the last step (m/s)
        dt: Integration step (s)
        costmap_size: Extent of the simulated local costmap (m, m)
        pose_available: If False, get_robot_pose() raises TransformUnavailable
    """

    def __init__(
        self,
        initial_pose: Pose = Pose(0.0, 0.0, 0.0),
        dt: float = 0.1,
        costmap_size: Tuple[float, float] = (6.0, 6.0),
    ):
        if dt <= 0.0:
            raise ValueError(f"dt must be positive: {dt}")
        self.pose = initial_pose
        self.speed: float = 0.0
        self.dt = dt
        self.costmap_size = costmap_size
        self.pose_available: bool = True

    def get_robot_pose(self) -> Pose:
        if not self.pose_available:
            raise TransformUnavailable("Simulated pose source is offline")
        return self.pose

    def get_linear_speed(self) -> float:
        return self.speed

    def get_size_in_meters(self) -> Tuple[float, float]:
        return self.costmap_size

    def step(self, command: ControlCommand) -> Pose:
        """Apply a velocity command for one step.

        Args:
            command: Velocity command to apply

        Returns:
            Pose after the step
        """
        theta = self.pose.theta
        x = self.pose.x + command.linear * math.cos(theta) * self.dt
        y = self.pose.y + command.linear * math.sin(theta) * self.dt
        theta = normalize_angle(theta + command.angular * self.dt)
        self.pose = Pose(x, y, theta)
        self.speed = command.linear
        return self.pose


@dataclass
class SimulationResult:
    """Outcome of :func:`run_simulation`."""

    goal_reached: bool
    steps: int
    poses: List[Pose] = field(default_factory=list)
    commands: List[ControlCommand] = field(default_factory=list)
    failed_ticks: int = 0

    def trajectory(self) -> np.ndarray:
        """Visited positions as an (N, 2) array."""
        return np.array([[p.x, p.y] for p in self.poses]).reshape(-1, 2)

    def max_command(self) -> Tuple[float, float]:
        """Largest absolute (linear, angular) command issued."""
        if not self.commands:
            return 0.0, 0.0
        return (
            max(abs(c.linear) for c in self.commands),
            max(abs(c.angular) for c in self.commands),
        )


def run_simulation(
    tracker: LQRTracker,
    simulator: UnicycleSimulator,
    max_steps: int = 600,
    stop_on_goal: bool = True,
) -> SimulationResult:
    """Run the tracker against the simulator in closed loop.

    The tracker must already be initialized (typically with the simulator as
    pose, odometry and costmap provider) and have a plan.

    Args:
        tracker: Tracker to run
        simulator: Simulated robot
        max_steps: Step cap
        stop_on_goal: Stop as soon as the tracker reports the goal reached

    Returns:
        SimulationResult with the visited poses and issued commands
    """
    result = SimulationResult(goal_reached=False, steps=0, poses=[simulator.pose])

    for step in range(1, max_steps + 1):
        command, success = tracker.compute_velocity_commands()
        result.steps = step

        if not success:
            result.failed_ticks += 1
            command = ControlCommand.zero()

        result.commands.append(command)
        result.poses.append(simulator.step(command))

        if tracker.is_goal_reached():
            result.goal_reached = True
            if stop_on_goal:
                break

    if result.goal_reached:
        logging.info(f"Goal reached after {result.steps} steps")
    else:
        logging.warning(f"Goal not reached within {max_steps} steps")
    return result


def make_simulated_tracker(
    tracker: LQRTracker,
    initial_pose: Optional[Pose] = None,
    telemetry=None,
    name: str = "simulated",
) -> UnicycleSimulator:
    """Create a simulator and initialize ``tracker`` against it.

    Args:
        tracker: Uninitialized tracker
        initial_pose: Start pose of the robot (default: origin)
        telemetry: Optional telemetry sink
        name: Tracker name

    Returns:
        The simulator wired as the tracker's pose, odometry and costmap provider
    """
    simulator = UnicycleSimulator(
        initial_pose=initial_pose if initial_pose is not None else Pose(0.0, 0.0, 0.0),
        dt=tracker.config.control_period,
    )
    tracker.initialize(
        name,
        simulator,
        costmap_provider=simulator,
        odometry_provider=simulator,
        telemetry=telemetry,
    )
    return simulator
