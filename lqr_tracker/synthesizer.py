"""Control synthesis and goal check.

This module turns the LQR gain and the state error into a bounded velocity
command, and decides when the robot has reached the goal.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, Optional

import numpy as np

from .geometry import Pose, distance, normalize_angle
from .riccati import RiccatiResult, SolverStatus


@dataclass(frozen=True)
class ControlCommand:
    """Velocity command for the robot base.

    Attributes:
        linear: Linear velocity (m/s)
        angular: Angular velocity (rad/s), positive counter-clockwise
    """

    linear: float = 0.0
    angular: float = 0.0

    @classmethod
    def zero(cls) -> "ControlCommand":
        return cls(0.0, 0.0)

    def is_zero(self) -> bool:
        return self.linear == 0.0 and self.angular == 0.0


class ControlSynthesizer:
    """LQR state-feedback control law with saturation.

    Control law:
        u = -K · e
        v_cmd = clamp(u[0], min_linear, max_linear)
        omega_cmd = clamp(u[1], min_angular, max_angular)

    A SINGULAR solver result or a reached goal yields an exact zero command.
    rotate_in_place() covers the cases the linear law does not: a reference
    beside or behind the robot, and the final turn onto the goal heading.

    Attributes:
        min_linear, max_linear: Linear velocity bounds (m/s)
        min_angular, max_angular: Angular velocity bounds (rad/s)
        goal_dist_tolerance: Position tolerance for goal-reached (m)
        goal_heading_tolerance: Heading tolerance for goal-reached (rad)
        rotation_gain: Proportional gain of in-place rotation (1/s)
    """

    def __init__(
        self,
        min_linear: float = 0.0,
        max_linear: float = 0.5,
        min_angular: float = -1.57,
        max_angular: float = 1.57,
        goal_dist_tolerance: float = 0.2,
        goal_heading_tolerance: float = 0.5,
        rotation_gain: float = 10.0,
    ):
        """Initialize the synthesizer.

        Args:
            min_linear: Minimum linear velocity command (m/s).
            max_linear: Maximum linear velocity command (m/s).
            min_angular: Minimum angular velocity command (rad/s).
            max_angular: Maximum angular velocity command (rad/s).
            goal_dist_tolerance: Distance to goal below which the position is reached (m).
            goal_heading_tolerance: Heading error below which the orientation is reached (rad).
            rotation_gain: Angular velocity per radian of remaining turn (1/s).
                The tracker uses 1 / control_period, so a turn is completed in
                one period unless the angular bound is hit.
        """
        self.min_linear = min_linear
        self.max_linear = max_linear
        self.min_angular = min_angular
        self.max_angular = max_angular
        self.goal_dist_tolerance = goal_dist_tolerance
        self.goal_heading_tolerance = goal_heading_tolerance
        self.rotation_gain = rotation_gain

    def is_goal_reached(self, robot: Pose, goal: Pose) -> bool:
        """Check position and heading against the goal tolerances.

        Args:
            robot: Current robot pose
            goal: Goal pose (final waypoint and target orientation)

        Returns:
            True if both position and heading errors are within tolerance
        """
        position_error = distance(robot, goal)
        heading_error = abs(normalize_angle(robot.theta - goal.theta))
        return (
            position_error < self.goal_dist_tolerance
            and heading_error < self.goal_heading_tolerance
        )

    def compute_control(
        self, state_error: np.ndarray, solution: RiccatiResult, goal_reached: bool = False
    ) -> ControlCommand:
        """Apply the feedback gain to the state error.

        Args:
            state_error: Error vector [forward, lateral, heading]
            solution: Riccati solve for the current operating point
            goal_reached: If True the robot is stopped regardless of the gain

        Returns:
            Saturated velocity command
        """
        if goal_reached or solution.status is SolverStatus.SINGULAR:
            return ControlCommand.zero()

        u = -solution.K @ np.asarray(state_error, dtype=float)
        v_cmd = float(u[0])
        omega_cmd = float(u[1])

        if not (math.isfinite(v_cmd) and math.isfinite(omega_cmd)):
            return ControlCommand.zero()

        v_cmd = max(self.min_linear, min(self.max_linear, v_cmd))
        omega_cmd = max(self.min_angular, min(self.max_angular, omega_cmd))
        return ControlCommand(v_cmd, omega_cmd)

    def rotate_in_place(self, angle: float) -> ControlCommand:
        """Turn on the spot through ``angle``.

        Args:
            angle: Signed angle still to turn (rad), positive counter-clockwise

        Returns:
            Command with the linear velocity at the bound nearest zero and a
            proportional, saturated angular velocity
        """
        if not math.isfinite(angle):
            return ControlCommand.zero()

        v_cmd = max(self.min_linear, min(self.max_linear, 0.0))
        omega_cmd = max(self.min_angular, min(self.max_angular, self.rotation_gain * angle))
        return ControlCommand(v_cmd, omega_cmd)

    def get_diagnostics(
        self,
        state_error: np.ndarray,
        solution: Optional[RiccatiResult],
        command: ControlCommand,
        lookahead_distance: float,
        mode: str = "lqr",
    ) -> Dict[str, Any]:
        """Get diagnostic information for logging and debugging.

        Args:
            state_error: Error vector used for this tick
            solution: Riccati solve used for this tick, or None if the tick
                rotated in place without solving
            command: Output velocity command
            lookahead_distance: Lookahead distance used for target selection (m)
            mode: Control mode of the tick ("lqr", "rotate_to_path" or "rotate_to_goal")

        Returns:
            Dictionary containing all diagnostic values
        """
        return {
            "e_forward": float(state_error[0]),
            "e_lateral": float(state_error[1]),
            "e_heading": float(state_error[2]),
            "v_cmd": command.linear,
            "omega_cmd": command.angular,
            "mode": mode,
            "solver_status": solution.status.value if solution is not None else "",
            "iterations": solution.iterations if solution is not None else 0,
            "residual": solution.residual if solution is not None else "",
            "lookahead_distance": lookahead_distance,
        }
