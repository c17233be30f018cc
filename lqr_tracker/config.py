"""Configuration parameters for the LQR trajectory tracker.

This module centralizes all configuration parameters including:
- Lookahead selection
- LQR weights and Riccati solver limits
- Goal tolerances
- Platform velocity bounds
- Telemetry, visualization and WebSocket settings

All parameters are documented with their purpose, valid ranges, and tuning rationale.
The module-level constants are the defaults of :class:`TrackerConfig`, which is
what a tracker instance is actually constructed with.
"""

import json
import math
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Union

import numpy as np

# ============================================================================
# Lookahead Parameters
# ============================================================================

LOOKAHEAD_TIME = 1.5
"""Time gain for speed-scaled lookahead (seconds).

Lookahead distance = clamp(LOOKAHEAD_TIME * |v|, MIN_LOOKAHEAD_DIST, MAX_LOOKAHEAD_DIST)

Tuning rationale:
- 1.5s places the target about one and a half control horizons ahead
- At the default top speed (0.5 m/s) this already saturates at 0.75m
"""

MIN_LOOKAHEAD_DIST = 0.3
"""Minimum lookahead distance (meters).

Safety bound applied at low speed and at standstill.

Tuning rationale:
- 0.3m keeps tracking tight when starting from rest
- Smaller values make the target jump between adjacent waypoints
"""

MAX_LOOKAHEAD_DIST = 0.9
"""Maximum lookahead distance (meters).

Tuning rationale:
- 0.9m prevents cutting corners on curved paths at high speed
"""


# ============================================================================
# LQR Parameters
# ============================================================================

CONTROL_PERIOD = 0.1
"""Control period used to discretize the error dynamics (seconds).

Must match the rate at which the host calls compute_velocity_commands (10 Hz).
"""

LQR_Q_DIAG = [1.0, 1.0, 1.0]
"""State-cost weights [longitudinal, lateral, heading].

Higher weight = error in that component is corrected more aggressively.
All entries must be non-negative (Q is positive semi-definite).
"""

LQR_R_DIAG = [1.0, 1.0]
"""Control-cost weights [linear velocity, angular velocity].

Higher weight = smoother, less aggressive commands.
All entries must be strictly positive (R is positive definite).
"""

LQR_MAX_ITERATIONS = 1000
"""Iteration cap for the Riccati fixed-point recursion.

Bounds the work done per tick. When the cap is hit the solver returns the
final iterate and reports degraded convergence instead of failing the tick.

Tuning rationale:
- With Q = R = I and a 0.1s period the slow lateral mode needs about 540
  iterations at the 0.1 m/s linearization floor and about 110 at 0.5 m/s
- 1000 converges with margin when the robot is roughly aligned with the reference
- Only reference headings close to perpendicular to the robot, where the
  lateral error is barely controllable, run into the cap
"""

LQR_CONVERGENCE_TOLERANCE = 1e-4
"""Convergence threshold on max |P_{k+1} - P_k| for the Riccati recursion."""

LQR_SINGULAR_TOLERANCE = 1e-9
"""Smallest admissible singular value of (R + B^T P B).

Below this the inverse is treated as numerically singular and the tick falls
back to a zero command.
"""

MIN_LINEARIZATION_SPEED = 0.1
"""Floor on the operating speed used to linearize the error dynamics (m/s).

At exactly zero speed the lateral error is not controllable through the
heading, which makes the Riccati recursion grow without bound. Linearizing
around a small forward speed keeps the (A, B) pair controllable at standstill.
"""


# ============================================================================
# Goal Parameters
# ============================================================================

GOAL_DIST_TOLERANCE = 0.2
"""Position tolerance for goal-reached detection (meters)."""

GOAL_HEADING_TOLERANCE = 0.5
"""Heading tolerance for goal-reached detection (radians, about 29°)."""

GOAL_PROXIMITY = 0.5
"""Distance to goal below which the error is built against the goal pose (meters).

Inside this radius the controller converges onto the final pose and
orientation instead of chasing a lookahead target. Must be at least
GOAL_DIST_TOLERANCE.
"""

ROTATE_BEARING_TOLERANCE = math.pi / 4.0
"""Bearing to the reference beyond which the robot turns in place (radians, 45°).

The linearized model only holds while the reference lies ahead of the robot.
When it is further to the side or behind, the robot stops and rotates toward
it, then hands back to the LQR law. Inside GOAL_DIST_TOLERANCE the robot
likewise rotates in place onto the goal heading.
"""

MAX_RELEVANCE_DIST = 3.0
"""Arc length of plan searched when pruning, if no costmap is available (meters).

With a costmap provider this becomes half of the larger costmap side.
"""


# ============================================================================
# Platform Velocity Bounds
# ============================================================================

MIN_LINEAR_VELOCITY = 0.0
"""Minimum linear velocity command (m/s). 0.0 disables reversing."""

MAX_LINEAR_VELOCITY = 0.5
"""Maximum linear velocity command (m/s)."""

MIN_ANGULAR_VELOCITY = -1.57
"""Minimum angular velocity command (rad/s)."""

MAX_ANGULAR_VELOCITY = 1.57
"""Maximum angular velocity command (rad/s)."""

WHEELBASE = 0.5
"""Distance between left and right wheels (meters).
Used by the differential-drive inverse kinematics in the host adapter."""


# ============================================================================
# Visualization Colors
# ============================================================================

PLOT_ORANGE = "#f74823"
"""Primary color - used for the actual trajectory."""

PLOT_BLUE = "#2374f7"
"""Secondary color - used for the reference path."""

PLOT_CREAM = "#fffdee"
"""Light color for text and labels on dark backgrounds."""

PLOT_TAUPE = "#686a5f"
"""Neutral color for guides, grids, and secondary elements."""

PLOT_YELLOW_ORANGE = "#ffa726"
"""Accent color for lookahead targets and warnings."""

PLOT_DARK_BLUE = "#0d1b2a"
"""Dark background color for plots."""

# Terminal color codes (ANSI escape sequences)
TERM_ORANGE = "\033[38;2;247;72;35m"
"""Terminal color code for orange (RGB: 247, 72, 35)."""

TERM_BLUE = "\033[38;2;35;116;247m"
"""Terminal color code for blue (RGB: 35, 116, 247)."""

TERM_RESET = "\033[0m"
"""Terminal color reset code."""


# ============================================================================
# WebSocket Configuration
# ============================================================================

WS_URI = "ws://localhost:8765"
"""WebSocket URI of the host that streams poses and plans."""

WS_RETRY_DELAY_SECONDS = 1
"""Initial retry delay for failed WebSocket connections (seconds)."""

WS_MAX_RETRY_DELAY_SECONDS = 60
"""Maximum retry delay with exponential backoff (seconds)."""

WS_TIMEOUT_SECONDS = 5.0
"""Timeout for WebSocket message reception (seconds)."""

POSE_TIMEOUT_SECONDS = 0.5
"""Age after which a received pose is considered stale (seconds).

A stale pose is reported as transform-unavailable and the tick fails.
"""


# ============================================================================
# Simulation Configuration
# ============================================================================

SIM_MAX_STEPS = 600
"""Default step cap for offline simulation runs (60s at 10 Hz)."""

PATH_DURATION = 20.0
"""Duration used to sample the Lemniscate reference path (seconds)."""

PATH_DT = 0.1
"""Sampling step for the Lemniscate reference path (seconds).
Results in 201 waypoints for a 20-second trajectory."""


@dataclass
class TrackerConfig:
    """Runtime configuration of one tracker instance.

    Defaults come from the module-level constants above. The instance is
    validated on construction and treated as constant afterwards.
    """

    lookahead_time: float = LOOKAHEAD_TIME
    min_lookahead_dist: float = MIN_LOOKAHEAD_DIST
    max_lookahead_dist: float = MAX_LOOKAHEAD_DIST
    control_period: float = CONTROL_PERIOD
    Q: List[float] = field(default_factory=lambda: list(LQR_Q_DIAG))
    R: List[float] = field(default_factory=lambda: list(LQR_R_DIAG))
    max_iterations: int = LQR_MAX_ITERATIONS
    convergence_tolerance: float = LQR_CONVERGENCE_TOLERANCE
    singular_tolerance: float = LQR_SINGULAR_TOLERANCE
    min_linearization_speed: float = MIN_LINEARIZATION_SPEED
    goal_dist_tolerance: float = GOAL_DIST_TOLERANCE
    goal_heading_tolerance: float = GOAL_HEADING_TOLERANCE
    goal_proximity: float = GOAL_PROXIMITY
    rotate_bearing_tolerance: float = ROTATE_BEARING_TOLERANCE
    max_relevance_dist: float = MAX_RELEVANCE_DIST
    min_linear_velocity: float = MIN_LINEAR_VELOCITY
    max_linear_velocity: float = MAX_LINEAR_VELOCITY
    min_angular_velocity: float = MIN_ANGULAR_VELOCITY
    max_angular_velocity: float = MAX_ANGULAR_VELOCITY
    wheelbase: float = WHEELBASE

    def __post_init__(self) -> None:
        self.Q = [float(q) for q in self.Q]
        self.R = [float(r) for r in self.R]
        self.validate()

    def validate(self) -> None:
        """Check parameter consistency.

        Raises:
            ValueError: If any parameter is out of range or inconsistent.
        """
        if len(self.Q) != 3:
            raise ValueError(f"Q must have 3 diagonal weights, got {len(self.Q)}")
        if len(self.R) != 2:
            raise ValueError(f"R must have 2 diagonal weights, got {len(self.R)}")
        if any(not math.isfinite(q) or q < 0.0 for q in self.Q):
            raise ValueError(f"Q weights must be finite and non-negative: {self.Q}")
        if any(not math.isfinite(r) or r <= 0.0 for r in self.R):
            raise ValueError(f"R weights must be finite and positive: {self.R}")

        if self.control_period <= 0.0:
            raise ValueError(f"control_period must be positive: {self.control_period}")
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be at least 1: {self.max_iterations}")
        if self.convergence_tolerance <= 0.0:
            raise ValueError(
                f"convergence_tolerance must be positive: {self.convergence_tolerance}"
            )
        if self.singular_tolerance < 0.0:
            raise ValueError(f"singular_tolerance must be non-negative: {self.singular_tolerance}")
        if self.min_linearization_speed < 0.0:
            raise ValueError(
                f"min_linearization_speed must be non-negative: {self.min_linearization_speed}"
            )

        if self.lookahead_time < 0.0:
            raise ValueError(f"lookahead_time must be non-negative: {self.lookahead_time}")
        if not 0.0 <= self.min_lookahead_dist <= self.max_lookahead_dist:
            raise ValueError(
                "Lookahead bounds must satisfy 0 <= min_lookahead_dist <= max_lookahead_dist, "
                f"got [{self.min_lookahead_dist}, {self.max_lookahead_dist}]"
            )

        if self.goal_dist_tolerance <= 0.0 or self.goal_heading_tolerance <= 0.0:
            raise ValueError("Goal tolerances must be positive")
        if self.goal_proximity < self.goal_dist_tolerance:
            raise ValueError(
                f"goal_proximity ({self.goal_proximity}) must be >= "
                f"goal_dist_tolerance ({self.goal_dist_tolerance})"
            )
        if self.max_relevance_dist <= 0.0:
            raise ValueError(f"max_relevance_dist must be positive: {self.max_relevance_dist}")
        if not 0.0 < self.rotate_bearing_tolerance <= math.pi:
            raise ValueError(
                f"rotate_bearing_tolerance must be in (0, pi]: {self.rotate_bearing_tolerance}"
            )

        if self.min_linear_velocity > self.max_linear_velocity:
            raise ValueError("min_linear_velocity must not exceed max_linear_velocity")
        if self.min_angular_velocity > self.max_angular_velocity:
            raise ValueError("min_angular_velocity must not exceed max_angular_velocity")
        if self.wheelbase <= 0.0:
            raise ValueError(f"wheelbase must be positive: {self.wheelbase}")

    def q_matrix(self) -> np.ndarray:
        """State-cost matrix Q (3×3 diagonal)."""
        return np.diag(self.Q)

    def r_matrix(self) -> np.ndarray:
        """Control-cost matrix R (2×2 diagonal)."""
        return np.diag(self.R)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging."""
        return asdict(self)

    @classmethod
    def from_dict(cls, values: Mapping[str, Any]) -> "TrackerConfig":
        """Build a configuration from recognized option names.

        Args:
            values: Mapping of option name to value. Missing options keep their
                defaults.

        Returns:
            Validated TrackerConfig.

        Raises:
            ValueError: If an option name is not recognized or a value is invalid.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ValueError(f"Unrecognized configuration options: {', '.join(unknown)}")
        return cls(**dict(values))

    @classmethod
    def from_json(cls, filepath: Union[str, Path]) -> "TrackerConfig":
        """Load a configuration from a JSON object file.

        Args:
            filepath: Path to a JSON file containing a single object.

        Returns:
            Validated TrackerConfig.

        Raises:
            FileNotFoundError: If the file does not exist.
            ValueError: If the file is not a JSON object or holds invalid options.
        """
        path = Path(filepath)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path) as f:
            data = json.load(f)

        if not isinstance(data, dict):
            raise ValueError(f"Configuration file must contain a JSON object: {path}")
        return cls.from_dict(data)
