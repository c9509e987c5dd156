# -*- coding: utf-8 -*-
"""
Filename: frame_transform.py
Description: Body-frame velocity -> world-frame incremental displacement.

    d_world = Rz(yaw) @ Ry(pitch) @ Rx(roll) @ v_body * dt

Pure function of its inputs; no state is kept between calls.
"""

import logging
import numpy as np

from ..errors import require_finite, require_shape
from ..util.angles import dcm_from_euler

logger = logging.getLogger(__name__)


def body_to_world_displacement(
    velocity,
    roll: float,
    pitch: float,
    yaw: float,
    dt: float,
) -> np.ndarray:
    """
    Rotate a body-frame velocity into the world frame and integrate it over dt.

    Args:
        velocity: (vx, vy, vz) in the body frame [m/s].
        roll, pitch, yaw: Orientation of the body frame [rad].
        dt: Elapsed time [s]. Negative values are clamped to zero.

    Returns:
        (3,) displacement in world coordinates [m].

    Raises:
        DimensionMismatch: velocity is not a 3-vector.
        NonFiniteInput: any input is NaN or infinite.
    """
    v_body = require_shape("velocity", velocity, [(3,), (3, 1)]).reshape(3)
    require_finite("velocity", v_body)
    require_finite("orientation", (roll, pitch, yaw))
    dt = float(require_finite("dt", dt))

    if dt < 0.0:
        logger.warning("Negative elapsed time %.6fs clamped to zero", dt)
        dt = 0.0
    if dt == 0.0:
        return np.zeros(3)

    return dcm_from_euler(roll, pitch, yaw) @ v_body * dt
