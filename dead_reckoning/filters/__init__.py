"""Position estimation package.

Most client code should import conveniently from here rather than diving into
individual submodules. The Kalman filter and its configuration live in
``kalman.py``, the body->world transform in ``frame_transform.py`` and the
per-sample orchestration in ``fusion.py``.

Example::

    from dead_reckoning.filters import FusionCycle, TelemetrySample

    cycle = FusionCycle()
    position = cycle.step(TelemetrySample(altitude=1.0, roll=0.0, pitch=0.0, yaw=0.0))

"""

# re-export commonly used estimation classes and functions from submodules
from .kalman import (
    EstimatorConfig,
    LinearKalmanFilter,
    MeasurementModel,
    State,
    STATE_DIM,
    MEASUREMENT_DIM,
)
from .frame_transform import body_to_world_displacement
from .fusion import FusionCycle, TelemetrySample

__all__ = [
    # Filter engine and configuration
    "EstimatorConfig",
    "LinearKalmanFilter",
    "MeasurementModel",
    "State",
    "STATE_DIM",
    "MEASUREMENT_DIM",
    # Frame transform
    "body_to_world_displacement",
    # Fusion cycle
    "FusionCycle",
    "TelemetrySample",
]
