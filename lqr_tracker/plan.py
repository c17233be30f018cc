"""Plan storage and pruning.

The plan is owned by a single :class:`PathBuffer`. External code only ever
sees immutable snapshots of it, so the pruned working view can never alias
the caller's original sequence.
"""

import math
from typing import Iterable, List, Optional, Tuple

from .errors import InputError
from .geometry import Pose, distance


class PathBuffer:
    """Single-owner buffer holding the reference path.

    The buffer supports two mutations only:
    - replace(): swap in a whole new plan
    - trim_front(): permanently drop already-passed leading waypoints

    Trimming never removes the final waypoint (the goal), so a non-empty
    buffer stays non-empty until the next replace().
    """

    def __init__(self) -> None:
        self._poses: List[Pose] = []

    def __len__(self) -> int:
        return len(self._poses)

    def __bool__(self) -> bool:
        return bool(self._poses)

    @property
    def goal(self) -> Optional[Pose]:
        """Final waypoint of the plan, or None if the buffer is empty."""
        return self._poses[-1] if self._poses else None

    def view(self) -> Tuple[Pose, ...]:
        """Immutable snapshot of the current plan."""
        return tuple(self._poses)

    def replace(self, poses: Iterable[Pose]) -> None:
        """Replace the whole plan.

        Args:
            poses: New ordered waypoints

        Raises:
            InputError: If the plan is empty or holds a non-finite pose.
                The buffer is left unchanged in that case.
        """
        new_poses = list(poses)
        if not new_poses:
            raise InputError("Plan must contain at least one pose")

        for i, pose in enumerate(new_poses):
            if not isinstance(pose, Pose):
                raise InputError(f"Plan entry {i} is not a Pose: {pose!r}")
            if not pose.is_finite():
                raise InputError(f"Plan entry {i} has non-finite values: {pose}")

        self._poses = new_poses

    def trim_front(self, count: int) -> int:
        """Drop up to ``count`` leading waypoints, always keeping the goal.

        Args:
            count: Number of leading waypoints to drop

        Returns:
            Number of waypoints actually dropped
        """
        count = max(0, min(count, len(self._poses) - 1))
        if count:
            del self._poses[:count]
        return count

    def clear(self) -> None:
        self._poses = []


def relevance_window(poses: Tuple[Pose, ...], max_relevance_dist: float) -> int:
    """Number of leading waypoints within ``max_relevance_dist`` of arc length.

    Arc length is integrated from the front of the plan. The front waypoint is
    always part of the window.
    """
    if not poses:
        return 0

    end = 1
    travelled = 0.0
    while end < len(poses):
        travelled += distance(poses[end - 1], poses[end])
        if travelled > max_relevance_dist:
            break
        end += 1
    return end


def passed_count(robot: Pose, poses: Tuple[Pose, ...], max_relevance_dist: float) -> int:
    """Count leading waypoints the robot has already passed.

    The closest waypoint inside the relevance window marks the robot's
    progress; everything before it is passed. The closest waypoint itself is
    also passed when the robot's projection onto the segment leaving it is
    already positive (the robot is past it along the path).

    Args:
        robot: Current robot pose
        poses: Current plan snapshot
        max_relevance_dist: Arc length of plan searched (m)

    Returns:
        Number of leading waypoints to drop (never includes the goal)
    """
    if len(poses) <= 1:
        return 0

    window = relevance_window(poses, max_relevance_dist)
    closest = min(range(window), key=lambda i: distance(robot, poses[i]))

    if closest < len(poses) - 1:
        current = poses[closest]
        following = poses[closest + 1]
        seg_x = following.x - current.x
        seg_y = following.y - current.y
        progress = (robot.x - current.x) * seg_x + (robot.y - current.y) * seg_y
        if progress > 0.0 and math.hypot(seg_x, seg_y) > 0.0:
            closest += 1

    return min(closest, len(poses) - 1)


def prune_plan(robot: Pose, buffer: PathBuffer, max_relevance_dist: float) -> Tuple[Pose, ...]:
    """Prune passed waypoints from the buffer and return the remaining plan.

    The dropped prefix is removed from the buffer permanently, so the plan
    length never grows between two replace() calls.

    Args:
        robot: Current robot pose
        buffer: Plan buffer to prune in place
        max_relevance_dist: Arc length of plan searched (m)

    Returns:
        Snapshot of the pruned plan (always contains the goal)
    """
    buffer.trim_front(passed_count(robot, buffer.view(), max_relevance_dist))
    return buffer.view()
