"""
Small geometry helpers for reporting tag orientation
"""

import math
from typing import Tuple

import numpy as np

TWO_PI = 2.0 * math.pi

# Flips the camera y axis so yaw/pitch/roll read in a right-handed frame
Y_FLIP = np.diag([1.0, -1.0, 1.0])


def standard_rad(angle: float) -> float:
    """Normalize an angle to [-pi, pi]"""
    if angle >= 0.0:
        return math.fmod(angle + math.pi, TWO_PI) - math.pi
    return math.fmod(angle - math.pi, -TWO_PI) + math.pi


def rotation_to_euler(rotation: np.ndarray) -> Tuple[float, float, float]:
    """
    Convert a rotation matrix to yaw, pitch and roll

    Args:
        rotation: 3x3 rotation matrix

    Returns:
        (yaw, pitch, roll) in radians, each normalized to [-pi, pi]
    """
    r = np.asarray(rotation, dtype=float)
    yaw = standard_rad(math.atan2(r[1, 0], r[0, 0]))
    c = math.cos(yaw)
    s = math.sin(yaw)
    pitch = standard_rad(math.atan2(-r[2, 0], r[0, 0] * c + r[1, 0] * s))
    roll = standard_rad(
        math.atan2(r[0, 2] * s - r[1, 2] * c, -r[0, 1] * s + r[1, 1] * c)
    )
    return yaw, pitch, roll


def tag_euler(rotation: np.ndarray) -> Tuple[float, float, float]:
    """Yaw, pitch and roll of a detected tag after flipping the camera y axis"""
    return rotation_to_euler(Y_FLIP @ np.asarray(rotation, dtype=float))
