"""State error construction in the robot frame."""

import math
from dataclasses import dataclass

import numpy as np

from .geometry import Pose, distance, normalize_angle, to_local_frame


@dataclass(frozen=True)
class StateError:
    """Tracking error of the robot relative to a reference pose.

    Attributes:
        vector: [forward, lateral, heading] error, robot minus reference,
            with position expressed in the robot's local frame
        reference: Pose the error was built against
        toward_goal: True if the reference is the goal pose rather than
            the lookahead target
    """

    vector: np.ndarray
    reference: Pose
    toward_goal: bool

    @property
    def forward(self) -> float:
        return float(self.vector[0])

    @property
    def lateral(self) -> float:
        return float(self.vector[1])

    @property
    def heading(self) -> float:
        return float(self.vector[2])

    @property
    def bearing(self) -> float:
        """Direction of the reference position seen from the robot (rad).

        Zero straight ahead, positive to the left, in (-pi, pi]. A reference
        at the robot position has bearing zero.
        """
        if not (self.forward or self.lateral):
            return 0.0
        return normalize_angle(math.atan2(-self.lateral, -self.forward))


def compute_state_error(robot: Pose, reference: Pose) -> np.ndarray:
    """Error vector of ``robot`` relative to ``reference`` in the robot frame.

    The reference position is expressed in the robot frame and negated, so a
    target straight ahead yields a negative forward error. The heading error
    is normalized to (-pi, pi].

    Args:
        robot: Current robot pose
        reference: Reference pose (lookahead target or goal)

    Returns:
        Array [e_forward, e_lateral, e_heading]
    """
    forward, lateral = to_local_frame(robot, reference.x, reference.y)
    e_heading = normalize_angle(robot.theta - reference.theta)
    return np.array([-forward, -lateral, e_heading])


def build_state_error(
    robot: Pose, target: Pose, goal: Pose, goal_proximity: float
) -> StateError:
    """Build the tracking error, switching to the goal near the end of the plan.

    Inside ``goal_proximity`` of the goal the error is taken against the goal
    pose itself, so the robot settles on the final position and orientation
    instead of orbiting a moving lookahead target.

    Args:
        robot: Current robot pose
        target: Lookahead target pose
        goal: Final pose of the plan
        goal_proximity: Switching radius (m)

    Returns:
        StateError against the selected reference
    """
    toward_goal = distance(robot, goal) <= goal_proximity
    reference = goal if toward_goal else target
    return StateError(compute_state_error(robot, reference), reference, toward_goal)
