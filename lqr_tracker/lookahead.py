"""Lookahead target selection.

This module picks the short-term tracking target on the pruned plan:
- Computes a speed-scaled lookahead distance
- Walks the plan accumulating arc length from the robot's position along it
- Returns the first waypoint at or beyond the lookahead distance
"""

import math
from dataclasses import dataclass
from typing import Sequence

from .geometry import Pose, distance, heading_between


@dataclass(frozen=True)
class LookaheadTarget:
    """Selected tracking target.

    Attributes:
        x: Target x position (m)
        y: Target y position (m)
        theta: Reference heading at the target (rad)
        index: Index of the target waypoint in the pruned plan
        arc_length: Distance along the plan from the robot's position to the target (m)
    """

    x: float
    y: float
    theta: float
    index: int
    arc_length: float

    def as_pose(self) -> Pose:
        return Pose(self.x, self.y, self.theta)


class LookaheadSelector:
    """Speed-adaptive lookahead point selection.

    Higher speeds place the target further ahead for smoother tracking,
    lower speeds keep it close for tighter control.
    """

    def __init__(
        self,
        lookahead_time: float = 1.5,
        min_lookahead: float = 0.3,
        max_lookahead: float = 0.9,
    ):
        """Initialize the selector.

        Args:
            lookahead_time: Time-based lookahead gain (seconds).
                Lookahead = lookahead_time * |v|, clamped to [min, max]
            min_lookahead: Minimum lookahead distance (meters).
            max_lookahead: Maximum lookahead distance (meters).
        """
        if min_lookahead > max_lookahead:
            raise ValueError(
                f"min_lookahead ({min_lookahead}) must not exceed max_lookahead ({max_lookahead})"
            )
        self.lookahead_time = lookahead_time
        self.min_lookahead = min_lookahead
        self.max_lookahead = max_lookahead

    def compute_lookahead_distance(self, velocity: float) -> float:
        """Compute the speed-scaled lookahead distance.

        Args:
            velocity: Current linear velocity (m/s). The sign is ignored.

        Returns:
            Lookahead distance (meters), clamped to [min, max]
        """
        if not math.isfinite(velocity):
            return self.min_lookahead

        lookahead = self.lookahead_time * abs(velocity)
        return max(self.min_lookahead, min(self.max_lookahead, lookahead))

    def find_lookahead_point(
        self, robot: Pose, plan: Sequence[Pose], lookahead_distance: float
    ) -> LookaheadTarget:
        """Find the first waypoint at least ``lookahead_distance`` ahead along the plan.

        Distance is measured along the plan from the robot's position on it:
        the robot is projected onto the path direction at the first waypoint,
        and the lengths of consecutive segments are accumulated from there, so
        curved paths are not short-cut. A robot offset to the side of the
        path still gets a target ahead of it.

        Args:
            robot: Current robot pose
            plan: Pruned plan (must not be empty)
            lookahead_distance: Target distance ahead (meters)

        Returns:
            The selected target. Falls back to the final waypoint when the
            plan ends before the lookahead distance is reached.

        Raises:
            ValueError: If the plan is empty.
        """
        if not plan:
            raise ValueError("Cannot select a lookahead point on an empty plan")

        accumulated = along_track_distance(robot, plan)
        for i, waypoint in enumerate(plan):
            if i > 0:
                accumulated += distance(plan[i - 1], waypoint)
            if accumulated >= lookahead_distance:
                return LookaheadTarget(
                    waypoint.x, waypoint.y, path_heading(plan, i), i, accumulated
                )

        # End of plan reached: track the goal itself
        last = len(plan) - 1
        return LookaheadTarget(plan[last].x, plan[last].y, plan[last].theta, last, accumulated)


def along_track_distance(robot: Pose, plan: Sequence[Pose]) -> float:
    """Signed distance from the robot to the first waypoint along the path direction.

    Positive while the first waypoint is still ahead of the robot, negative
    once the robot has moved past it. Lateral offset from the path does not
    count.
    """
    direction = path_heading(plan, 0)
    return (plan[0].x - robot.x) * math.cos(direction) + (plan[0].y - robot.y) * math.sin(
        direction
    )


def path_heading(plan: Sequence[Pose], index: int) -> float:
    """Reference heading of the plan at a waypoint.

    Uses the direction of the segment arriving at the waypoint (leaving it,
    for the first waypoint), which stays well defined when waypoints carry no
    orientation. The final waypoint and single-point plans use the waypoint's
    own heading, so the goal orientation is respected.
    """
    if index >= len(plan) - 1:
        return plan[index].theta
    previous, following = (index, index + 1) if index == 0 else (index - 1, index)
    if distance(plan[previous], plan[following]) == 0.0:
        return plan[index].theta
    return heading_between(plan[previous], plan[following])
