"""
Unicycle / differential drive kinematic model.

This module provides:
- The discrete linearized error dynamics (A, B) used by the LQR gain
- The inverse kinematics converting (v, omega) commands into wheel velocities
"""

import math
from typing import Tuple

import numpy as np

from .config import WHEELBASE

# Wheel velocity constraints (m/s)
WHEEL_V_MIN = -2.0
WHEEL_V_MAX = 2.0


def linearize_error_dynamics(
    relative_heading: float, speed: float, dt: float
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Discrete linearized error dynamics of a unicycle around its operating point.

    The error e = [forward, lateral, heading] is the robot's offset from a
    reference pose, expressed in the robot frame. With the reference moving at
    speed v along its heading theta_r, and phi = theta_r - theta_robot, the
    error evolves as
        e_forward' = v_cmd - v * cos(phi)
        e_lateral' = -v * sin(phi)
        e_heading' = omega_cmd

    (neglecting the rotation of the frame itself). The robot always drives
    along its own x axis, so the commanded speed only enters the forward row.
    The reference motion couples the heading error into the position rows.
    Linearizing in e_heading = -phi and applying forward Euler with step dt
    gives
        A = I + [[0, 0, -v sin(phi)], [0, 0, v cos(phi)], [0, 0, 0]] * dt
        B = [[1, 0], [0, 0], [0, 1]] * dt

    Args:
        relative_heading: phi, reference heading relative to the robot (rad)
        speed: Operating linear speed v (m/s)
        dt: Discretization step (s)

    Returns:
        tuple[np.ndarray, np.ndarray]: (A, B) with shapes (3, 3) and (3, 2)
    """
    A = np.eye(3)
    A[0, 2] = -speed * math.sin(relative_heading) * dt
    A[1, 2] = speed * math.cos(relative_heading) * dt

    B = np.zeros((3, 2))
    B[0, 0] = dt
    B[2, 1] = dt

    return A, B


def inverse_kinematics(
    v_cmd: float, omega_cmd: float, wheelbase: float = WHEELBASE
) -> Tuple[float, float]:
    """
    Compute wheel velocities from desired linear and angular velocities.

    For a differential drive robot, the relationship between the robot's
    linear velocity (v), angular velocity (omega), and the individual
    wheel velocities is:
        v_left = v - (L/2) * omega
        v_right = v + (L/2) * omega

    where L is the wheelbase (distance between wheels).

    Args:
        v_cmd: Desired linear velocity of the robot center (m/s)
        omega_cmd: Desired angular velocity of the robot (rad/s)
                   Positive omega results in counter-clockwise rotation
        wheelbase: Distance between the wheels (m)

    Returns:
        tuple[float, float]: (v_left, v_right) wheel velocities in m/s,
                            clamped to the range [WHEEL_V_MIN, WHEEL_V_MAX]

    Example:
        >>> v_left, v_right = inverse_kinematics(0.5, 1.0)
        >>> # Robot moves forward at 0.5 m/s while turning left
    """
    v_left = v_cmd - (wheelbase / 2.0) * omega_cmd
    v_right = v_cmd + (wheelbase / 2.0) * omega_cmd

    # Clamp velocities to respect actuator limits
    v_left = max(WHEEL_V_MIN, min(WHEEL_V_MAX, v_left))
    v_right = max(WHEEL_V_MIN, min(WHEEL_V_MAX, v_right))

    return v_left, v_right
