"""LQR trajectory tracker.

This module sequences one control tick:
- Read the robot pose from the pose provider
- Prune passed waypoints from the plan
- Check the goal
- Select the lookahead target from a speed-scaled distance
- Build the robot-frame state error (against the goal when close to it)
- Rotate in place if the reference is beside or behind the robot, or if the
  goal position is reached but not its heading
- Otherwise linearize the error dynamics and solve the Riccati equation for K
- Synthesize a bounded velocity command and publish telemetry

State machine:
    UNINITIALIZED -> READY          on a successful set_plan()
    READY/TRACKING -> TRACKING      on each tick while the goal is not reached
    TRACKING -> GOAL_REACHED        when the goal check succeeds
    any -> READY                    on a new set_plan()
"""

import logging
import math
from enum import Enum
from typing import Optional, Sequence, Tuple

from .config import TrackerConfig
from .errors import InputError, TransformUnavailable
from .geometry import Pose, distance, normalize_angle
from .interfaces import (
    CostmapProvider,
    OdometryProvider,
    PoseProvider,
    TelemetrySink,
    TrajectoryTracker,
)
from .lookahead import LookaheadSelector, LookaheadTarget
from .model import linearize_error_dynamics
from .plan import PathBuffer, prune_plan
from .riccati import RiccatiResult, SolverStatus, solve_dare
from .state_error import StateError, build_state_error
from .synthesizer import ControlCommand, ControlSynthesizer


class TrackerState(Enum):
    """Lifecycle of a tracking session."""

    UNINITIALIZED = "uninitialized"
    READY = "ready"
    TRACKING = "tracking"
    GOAL_REACHED = "goal_reached"


class LQRTracker(TrajectoryTracker):
    """Path tracker using a per-tick LQR gain.

    One instance owns one tracking session: its configuration is fixed at
    construction, its plan is replaced by set_plan(), and the host calls
    compute_velocity_commands() once per control period. The tracker is not
    reentrant; the caller serializes set_plan() and compute calls.

    Attributes:
        config: Tracker configuration
        name: Name given at initialization
        initialized: True once initialize() has run
        lookahead: Lookahead target selector
        synthesizer: Control law and goal check
        last_command: Command produced by the latest tick (diagnostics only)
        last_solution: Riccati result of the latest solving tick, if any
        last_target: Lookahead target of the latest tick, if any
        last_error: State error of the latest tick, if any
    """

    def __init__(self, config: Optional[TrackerConfig] = None) -> None:
        """Initialize the tracker.

        Args:
            config: Tracker configuration. Defaults to TrackerConfig().
        """
        self.config = config if config is not None else TrackerConfig()

        self.name: str = ""
        self.initialized: bool = False
        self._state = TrackerState.UNINITIALIZED
        self._goal_reached: bool = False
        self._plan = PathBuffer()

        # Collaborators (attached by initialize)
        self.pose_provider: Optional[PoseProvider] = None
        self.costmap_provider: Optional[CostmapProvider] = None
        self.odometry_provider: Optional[OdometryProvider] = None
        self.telemetry: Optional[TelemetrySink] = None

        self.lookahead = LookaheadSelector(
            lookahead_time=self.config.lookahead_time,
            min_lookahead=self.config.min_lookahead_dist,
            max_lookahead=self.config.max_lookahead_dist,
        )
        self.synthesizer = ControlSynthesizer(
            min_linear=self.config.min_linear_velocity,
            max_linear=self.config.max_linear_velocity,
            min_angular=self.config.min_angular_velocity,
            max_angular=self.config.max_angular_velocity,
            goal_dist_tolerance=self.config.goal_dist_tolerance,
            goal_heading_tolerance=self.config.goal_heading_tolerance,
            rotation_gain=1.0 / self.config.control_period,
        )
        self._Q = self.config.q_matrix()
        self._R = self.config.r_matrix()

        # Diagnostics of the latest tick
        self.last_command = ControlCommand.zero()
        self.last_solution: Optional[RiccatiResult] = None
        self.last_target: Optional[LookaheadTarget] = None
        self.last_error: Optional[StateError] = None

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def initialize(
        self,
        name: str,
        pose_provider: PoseProvider,
        costmap_provider: Optional[CostmapProvider] = None,
        odometry_provider: Optional[OdometryProvider] = None,
        telemetry: Optional[TelemetrySink] = None,
    ) -> None:
        """Attach collaborators. Only the first call has an effect.

        Args:
            name: Name of this tracker instance (used in log messages)
            pose_provider: Source of the robot pose in the planning frame
            costmap_provider: Optional costmap bounding plan relevance
            odometry_provider: Optional source of the current linear speed.
                Without it the previous command's linear velocity is used.
            telemetry: Optional sink receiving target and pose each tick
        """
        if self.initialized:
            logging.warning(
                f"Tracker '{self.name}' has already been initialized, ignoring initialize('{name}')"
            )
            return

        self.name = name
        self.pose_provider = pose_provider
        self.costmap_provider = costmap_provider
        self.odometry_provider = odometry_provider
        self.telemetry = telemetry
        self.initialized = True

        logging.info(f"LQR tracker '{name}' initialized")
        logging.debug(f"Tracker configuration: {self.config.to_dict()}")

    def set_plan(self, poses: Sequence[Pose]) -> bool:
        """Replace the plan being tracked.

        Args:
            poses: Ordered waypoints, the last one being the goal

        Returns:
            True if the plan was accepted. An empty or malformed plan is
            rejected and the previous plan and state are kept.
        """
        try:
            self._plan.replace(poses)
        except InputError as e:
            logging.warning(f"Rejected plan: {e}")
            return False

        self._goal_reached = False
        self._state = TrackerState.READY
        self.last_target = None
        self.last_error = None
        logging.info(f"Received new plan with {len(self._plan)} poses")
        return True

    def is_goal_reached(self) -> bool:
        """Report whether the goal has been reached (no side effects)."""
        return self._goal_reached

    def compute_velocity_commands(self) -> Tuple[ControlCommand, bool]:
        """Run one control tick.

        Returns:
            Tuple of (command, success). success is False, with a zero
            command, when the tracker is not initialized, has no plan, or the
            robot pose is unavailable. Otherwise the command may still be
            zero (goal reached or singular solve).
        """
        if not self.initialized:
            logging.error("Tracker has not been initialized, call initialize() first")
            return ControlCommand.zero(), False

        if not self._plan:
            logging.warning("No plan set, cannot compute velocity commands")
            return ControlCommand.zero(), False

        try:
            robot = self.pose_provider.get_robot_pose()
        except TransformUnavailable as e:
            logging.warning(f"Robot pose unavailable: {e}")
            return ControlCommand.zero(), False

        if self._state is TrackerState.GOAL_REACHED:
            self.last_command = ControlCommand.zero()
            return self.last_command, True

        plan = prune_plan(robot, self._plan, self._relevance_distance())
        goal = plan[-1]

        if self.synthesizer.is_goal_reached(robot, goal):
            self._goal_reached = True
            self._state = TrackerState.GOAL_REACHED
            self.last_command = ControlCommand.zero()
            logging.info(f"Goal reached at ({robot.x:.3f}, {robot.y:.3f}, {robot.theta:.3f})")
            self._publish(goal, robot, {"v_cmd": 0.0, "omega_cmd": 0.0, "goal_reached": True})
            return self.last_command, True

        speed = self._current_speed()
        lookahead_distance = self.lookahead.compute_lookahead_distance(speed)
        target = self.lookahead.find_lookahead_point(robot, plan, lookahead_distance)
        error = build_state_error(robot, target.as_pose(), goal, self.config.goal_proximity)

        solution: Optional[RiccatiResult] = None
        if distance(robot, goal) < self.config.goal_dist_tolerance:
            # Position reached, heading not: turn onto the goal heading
            mode = "rotate_to_goal"
            command = self.synthesizer.rotate_in_place(-error.heading)
        elif abs(error.bearing) > self.config.rotate_bearing_tolerance:
            mode = "rotate_to_path"
            command = self.synthesizer.rotate_in_place(error.bearing)
        else:
            mode = "lqr"
            solution = self._solve(robot, error, speed)
            command = self.synthesizer.compute_control(error.vector, solution)
            self.last_solution = solution

        self._state = TrackerState.TRACKING
        self.last_command = command
        self.last_target = target
        self.last_error = error

        diagnostics = self.synthesizer.get_diagnostics(
            error.vector, solution, command, lookahead_distance, mode
        )
        diagnostics["goal_reached"] = False
        self._publish(target.as_pose(), robot, diagnostics)

        logging.debug(
            f"Tick ({mode}): target[{target.index}]=({target.x:.3f}, {target.y:.3f}) "
            f"e=({error.forward:.3f}, {error.lateral:.3f}, {error.heading:.3f}) "
            f"cmd=({command.linear:.3f}, {command.angular:.3f})"
        )
        return command, True

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    @property
    def state(self) -> TrackerState:
        return self._state

    @property
    def plan(self) -> Tuple[Pose, ...]:
        """Snapshot of the remaining (pruned) plan."""
        return self._plan.view()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _relevance_distance(self) -> float:
        """Arc length of plan searched when pruning.

        Half of the larger costmap side when a costmap is attached, since
        waypoints outside the local costmap cannot be the robot's current
        position on the plan.
        """
        if self.costmap_provider is not None:
            width, height = self.costmap_provider.get_size_in_meters()
            size = max(width, height)
            if math.isfinite(size) and size > 0.0:
                return 0.5 * size
        return self.config.max_relevance_dist

    def _current_speed(self) -> float:
        if self.odometry_provider is not None:
            speed = self.odometry_provider.get_linear_speed()
            if math.isfinite(speed):
                return speed
        return self.last_command.linear

    def _solve(self, robot: Pose, error: StateError, speed: float) -> RiccatiResult:
        """Linearize around the current operating point and solve for the gain."""
        relative_heading = normalize_angle(error.reference.theta - robot.theta)
        operating_speed = max(abs(speed), self.config.min_linearization_speed)
        A, B = linearize_error_dynamics(relative_heading, operating_speed, self.config.control_period)
        solution = solve_dare(
            A,
            B,
            self._Q,
            self._R,
            max_iterations=self.config.max_iterations,
            tolerance=self.config.convergence_tolerance,
            singular_tolerance=self.config.singular_tolerance,
        )
        self._report_solver_status(solution)
        return solution

    def _report_solver_status(self, solution: RiccatiResult) -> None:
        """Log solver degradation when the status changes between ticks."""
        previous = self.last_solution.status if self.last_solution is not None else None
        if solution.status is previous:
            return

        if solution.status is SolverStatus.DEGRADED:
            logging.warning(
                f"Riccati iteration did not converge in {solution.iterations} iterations "
                f"(residual {solution.residual:.3e}), using final iterate"
            )
        elif solution.status is SolverStatus.SINGULAR:
            logging.warning("Riccati solve is numerically singular, commanding zero velocity")
        elif previous is not None:
            logging.info(f"Riccati iteration converged again in {solution.iterations} iterations")

    def _publish(self, target: Pose, robot: Pose, diagnostics: dict) -> None:
        if self.telemetry is None:
            return
        try:
            self.telemetry.publish(target, robot, diagnostics)
        except Exception as e:
            logging.error(f"Telemetry publish failed: {e}", exc_info=True)
