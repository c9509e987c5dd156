"""Utility helpers package.

Most client code should import conveniently from here rather than diving into
individual submodules.  The rotation helpers live in ``angles.py`` and the
telemetry log reader/writer is in ``telemetry_log.py``.

Example::

    from dead_reckoning.util import dcm_from_euler, load_telemetry_log

"""

# re-export commonly used symbols from submodules
from .angles import (
    dcm_from_euler,
    rotation_x,
    rotation_y,
    rotation_z,
    wrap_angle,
)
from .telemetry_log import load_telemetry_log, save_trajectory

__all__ = [
    # angles
    "dcm_from_euler",
    "rotation_x",
    "rotation_y",
    "rotation_z",
    "wrap_angle",
    # telemetry logs
    "load_telemetry_log",
    "save_trajectory",
]
