import numpy as np

"""HELPER FUNCTIONS FOR DCM GENERATION"""

def rotation_x(roll: float) -> np.ndarray:
    """Rotation about the longitudinal (X) axis by ``roll`` (rad)."""
    c, s = np.cos(roll), np.sin(roll)
    return np.array([
        [1.0, 0.0, 0.0],
        [0.0,   c,  -s],
        [0.0,   s,   c]
    ])

def rotation_y(pitch: float) -> np.ndarray:
    """Rotation about the lateral (Y) axis by ``pitch`` (rad)."""
    c, s = np.cos(pitch), np.sin(pitch)
    return np.array([
        [  c, 0.0,   s],
        [0.0, 1.0, 0.0],
        [ -s, 0.0,   c]
    ])

def rotation_z(yaw: float) -> np.ndarray:
    """Rotation about the vertical (Z) axis by ``yaw`` (rad)."""
    c, s = np.cos(yaw), np.sin(yaw)
    return np.array([
        [  c,  -s, 0.0],
        [  s,   c, 0.0],
        [0.0, 0.0, 1.0]
    ])

def dcm_from_euler(roll: float, pitch: float, yaw: float) -> np.ndarray:
    """
    Generate the body->world DCM from Euler angles (rad).
    Rotation order: yaw (Z) -> pitch (Y) -> roll (X), i.e. Rz @ Ry @ Rx
    """
    return rotation_z(yaw) @ rotation_y(pitch) @ rotation_x(roll)

def wrap_angle(angle: float) -> float:
    """Wrap an angle (rad) into [-pi, pi)."""
    return float((angle + np.pi) % (2.0 * np.pi) - np.pi)
