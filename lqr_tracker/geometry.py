"""Planar pose type and geometry helpers.

All angles are in radians and all positions in meters, expressed in the
planning frame unless stated otherwise.
"""

import math
from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Pose:
    """Planar robot or waypoint pose.

    Attributes:
        x: Position along the planning-frame x axis (m)
        y: Position along the planning-frame y axis (m)
        theta: Heading measured from the +x axis (rad)
    """

    x: float
    y: float
    theta: float = 0.0

    def is_finite(self) -> bool:
        """Return True if all components are finite numbers."""
        return math.isfinite(self.x) and math.isfinite(self.y) and math.isfinite(self.theta)

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.theta)


def normalize_angle(angle: float) -> float:
    """Wrap an angle to the half-open interval (-pi, pi].

    Args:
        angle: Angle in radians

    Returns:
        Equivalent angle in (-pi, pi]
    """
    wrapped = math.atan2(math.sin(angle), math.cos(angle))
    # atan2 returns -pi for angles on the negative x axis
    if wrapped <= -math.pi:
        wrapped += 2.0 * math.pi
    return wrapped


def distance(a: Pose, b: Pose) -> float:
    """Euclidean distance between the positions of two poses (m)."""
    return math.hypot(b.x - a.x, b.y - a.y)


def heading_between(a: Pose, b: Pose) -> float:
    """Direction of the segment from a to b (rad)."""
    return math.atan2(b.y - a.y, b.x - a.x)


def to_local_frame(origin: Pose, x: float, y: float) -> Tuple[float, float]:
    """Express a planning-frame point in the frame of ``origin``.

    The local frame has its x axis along the origin's heading (forward) and
    its y axis to the left.

    Args:
        origin: Pose defining the local frame
        x: Point x coordinate in the planning frame (m)
        y: Point y coordinate in the planning frame (m)

    Returns:
        Tuple of (forward, lateral) coordinates in the local frame
    """
    dx = x - origin.x
    dy = y - origin.y
    cos_theta = math.cos(origin.theta)
    sin_theta = math.sin(origin.theta)
    forward = dx * cos_theta + dy * sin_theta
    lateral = -dx * sin_theta + dy * cos_theta
    return forward, lateral


def to_global_frame(origin: Pose, forward: float, lateral: float) -> Tuple[float, float]:
    """Inverse of :func:`to_local_frame`."""
    cos_theta = math.cos(origin.theta)
    sin_theta = math.sin(origin.theta)
    x = origin.x + forward * cos_theta - lateral * sin_theta
    y = origin.y + forward * sin_theta + lateral * cos_theta
    return x, y
