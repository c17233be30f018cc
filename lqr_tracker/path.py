"""Reference path generators.

The tracker itself never plans; these helpers build the waypoint sequences
used by the simulator, the command line and the tests:
- Straight lines with evenly spaced waypoints
- The Lemniscate of Gerono (figure-eight) sampled in time
- Headings derived from an arbitrary list of points
"""

import math
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .geometry import Pose, normalize_angle


def compute_k(t: float, duration: float = 20.0) -> float:
    """Compute the path parameter k based on time t.

    The parameter k determines position along the Lemniscate of Gerono curve.
    One full figure-eight is traversed in ``duration`` seconds.

    Args:
        t: Time in seconds
        duration: Time to traverse the whole curve (seconds)

    Returns:
        Path parameter k in radians
    """
    if t >= duration:
        return 3.0 * np.pi / 2.0
    return 2.0 * np.pi * t / duration - np.pi / 2.0


def reference_position(t: float, duration: float = 20.0) -> Tuple[float, float]:
    """Compute reference position (x, y) for the Lemniscate of Gerono at time t.

    The Lemniscate of Gerono is a figure-eight curve defined by:
        x = -2 * sin(k) * cos(k)
        y = 2 * (sin(k) + 1)

    where k is the path parameter computed from time t.

    Args:
        t: Time in seconds
        duration: Time to traverse the whole curve (seconds)

    Returns:
        Tuple of (x_ref, y_ref) in meters
    """
    k = compute_k(t, duration)
    x_ref = -2.0 * np.sin(k) * np.cos(k)
    y_ref = 2.0 * (np.sin(k) + 1.0)
    return float(x_ref), float(y_ref)


def reference_heading(t: float, duration: float = 20.0) -> float:
    """Compute reference heading angle for the Lemniscate at time t.

    The heading is the direction of motion along the path, computed from
    the derivatives of the parametric equations:
        theta_ref = atan2(dy/dk, dx/dk)

    dk/dt is a positive constant, so it does not change the direction.

    Args:
        t: Time in seconds
        duration: Time to traverse the whole curve (seconds)

    Returns:
        Reference heading angle in radians, wrapped to (-pi, pi]
    """
    k = compute_k(t, duration)

    # x = -sin(2k), so dx/dk = -2*cos(2k)
    # y = 2*(sin(k) + 1), so dy/dk = 2*cos(k)
    dx_dk = -2.0 * np.cos(2.0 * k)
    dy_dk = 2.0 * np.cos(k)

    return normalize_angle(float(np.arctan2(dy_dk, dx_dk)))


def lemniscate_path(
    duration: float = 20.0, dt: float = 0.1, t_max: Optional[float] = None
) -> List[Pose]:
    """Sample the Lemniscate of Gerono as a waypoint path.

    The full curve is a closed loop that ends where it starts. Pass a t_max
    below duration to get an open path whose goal differs from the start.

    Args:
        duration: Time to traverse the whole curve (seconds)
        dt: Sampling step (seconds)
        t_max: Last sample time (seconds). Defaults to duration.

    Returns:
        List of poses from t=0 to t=t_max inclusive
    """
    if dt <= 0.0:
        raise ValueError(f"dt must be positive: {dt}")
    if t_max is None:
        t_max = duration

    t_array = np.arange(0.0, t_max + dt / 2.0, dt)
    poses = []
    for t in t_array:
        x_ref, y_ref = reference_position(float(t), duration)
        poses.append(Pose(x_ref, y_ref, reference_heading(float(t), duration)))
    return poses


def straight_path(
    length: float = 9.0,
    spacing: float = 1.0,
    start: Tuple[float, float] = (0.0, 0.0),
    heading: float = 0.0,
) -> List[Pose]:
    """Evenly spaced waypoints along a straight line.

    Args:
        length: Length of the line (m)
        spacing: Distance between consecutive waypoints (m)
        start: Start point (x, y) in meters
        heading: Direction of the line (rad)

    Returns:
        List of poses, all carrying the line heading
    """
    if spacing <= 0.0:
        raise ValueError(f"spacing must be positive: {spacing}")

    count = int(math.floor(length / spacing + 1e-9)) + 1
    cos_h = math.cos(heading)
    sin_h = math.sin(heading)
    return [
        Pose(start[0] + i * spacing * cos_h, start[1] + i * spacing * sin_h, heading)
        for i in range(count)
    ]


def path_from_points(points: Sequence[Tuple[float, float]]) -> List[Pose]:
    """Attach segment headings to a list of (x, y) points.

    Each waypoint gets the heading of the segment leaving it; the last one
    repeats the heading of the final segment.

    Args:
        points: Sequence of (x, y) positions

    Returns:
        List of poses (empty if points is empty)
    """
    poses: List[Pose] = []
    for i, (x, y) in enumerate(points):
        if i + 1 < len(points):
            nx, ny = points[i + 1]
            theta = math.atan2(ny - y, nx - x)
        elif poses:
            theta = poses[-1].theta
        else:
            theta = 0.0
        poses.append(Pose(float(x), float(y), theta))
    return poses
