"""Dead-reckoning position estimation for small aerial vehicles.

Altitude, attitude and body-frame velocity are fused into a 6-state linear
Kalman filter (position + velocity, world frame).

Example::

    from dead_reckoning import FusionCycle, TelemetrySample

    cycle = FusionCycle()
    x, y, z = cycle.step(TelemetrySample(altitude=1.0, roll=0.0, pitch=0.0, yaw=0.0,
                                         velocity=[0.5, 0.0, 0.0], timestamp=0.0))

"""

from .errors import (
    EstimationError,
    DimensionMismatch,
    NonFiniteInput,
    SingularCovariance,
)
from .filters import (
    EstimatorConfig,
    LinearKalmanFilter,
    MeasurementModel,
    FusionCycle,
    TelemetrySample,
    body_to_world_displacement,
)

__version__ = "0.1.0"

__all__ = [
    "EstimationError",
    "DimensionMismatch",
    "NonFiniteInput",
    "SingularCovariance",
    "EstimatorConfig",
    "LinearKalmanFilter",
    "MeasurementModel",
    "FusionCycle",
    "TelemetrySample",
    "body_to_world_displacement",
]
