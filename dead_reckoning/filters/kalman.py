import logging
import numpy as np
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

from ..errors import SingularCovariance, require_finite, require_shape

"""
-------------------------------------------------------------------------------
LINEAR KALMAN FILTER (6-DOF POSITION / VELOCITY STATE)
-------------------------------------------------------------------------------
Architecture:
1. EstimatorConfig:      Noise scales + measurement-model variant. Builds the
                         constant matrices A, H, Q, R and the initial P.
2. State:                Holds the estimate (x) and its uncertainty (P).
3. LinearKalmanFilter:   predict() / correct(z) recursion.

Conventions:
- State Vector (x): 6 x 1 numpy array  [x, y, z, vx, vy, vz]
- Covariance (P):   6 x 6 numpy array
- Measurement (z):  4 x 1 numpy array
-------------------------------------------------------------------------------
"""

logger = logging.getLogger(__name__)

STATE_DIM = 6
MEASUREMENT_DIM = 4


class MeasurementModel(Enum):
    """
    How the 4-vector measurement maps onto the state.

    VELOCITY_PROXY:       (altitude, dx, dy, dz) -> (z, vx, vy, vz)
                          The displacement over dt corrects the velocity
                          components, so the velocity states end up holding
                          per-step displacement. x and y are not observed.
    INTEGRATED_POSITION:  (altitude, ox, oy, oz) -> (z, x, y, z)
                          Displacements are integrated into an odometry
                          position which corrects position directly.
    """
    VELOCITY_PROXY = "velocity_proxy"
    INTEGRATED_POSITION = "integrated_position"


# =============================================================================
# CONFIGURATION
# =============================================================================

@dataclass
class EstimatorConfig:
    """Constants fixed at estimator construction."""
    process_noise_scale: float = 1e-4       # trust in the model
    measurement_noise_scale: float = 1e-1   # trust in the sensors
    initial_covariance_scale: float = 1e-2  # initial uncertainty
    measurement_model: MeasurementModel = MeasurementModel.VELOCITY_PROXY

    def __post_init__(self):
        if isinstance(self.measurement_model, str):
            self.measurement_model = _parse_measurement_model(self.measurement_model)
        for name in ("process_noise_scale", "measurement_noise_scale", "initial_covariance_scale"):
            value = float(getattr(self, name))
            if not np.isfinite(value) or value < 0.0:
                raise ValueError(f"{name} must be a finite value >= 0, got {value!r}")
            setattr(self, name, value)

    @classmethod
    def from_dict(cls, values: Mapping[str, Any]) -> "EstimatorConfig":
        """Build a config from a plain mapping (CLI arguments, JSON, ...)."""
        known = {k: v for k, v in values.items() if k in cls.__dataclass_fields__ and v is not None}
        unknown = set(values) - set(cls.__dataclass_fields__)
        if unknown:
            raise ValueError(f"Unknown estimator settings: {sorted(unknown)}")
        return cls(**known)

    def transition_matrix(self) -> np.ndarray:
        """Position advances by velocity under a unit time step."""
        A = np.eye(STATE_DIM)
        A[0:3, 3:6] = np.eye(3)
        return A

    def measurement_matrix(self) -> np.ndarray:
        H = np.zeros((MEASUREMENT_DIM, STATE_DIM))
        H[0, 2] = 1.0  # altitude -> z
        if self.measurement_model is MeasurementModel.VELOCITY_PROXY:
            H[1:4, 3:6] = np.eye(3)
        else:
            H[1:4, 0:3] = np.eye(3)
        return H

    def process_noise(self) -> np.ndarray:
        return np.eye(STATE_DIM) * self.process_noise_scale

    def measurement_noise(self) -> np.ndarray:
        return np.eye(MEASUREMENT_DIM) * self.measurement_noise_scale

    def initial_covariance(self) -> np.ndarray:
        return np.eye(STATE_DIM) * self.initial_covariance_scale


def _parse_measurement_model(value: str) -> MeasurementModel:
    key = value.strip().lower().replace("-", "_")
    for model in MeasurementModel:
        if key in (model.value, model.name.lower()):
            return model
    raise ValueError(
        f"measurement_model must be one of {[m.value for m in MeasurementModel]}, got {value!r}"
    )


# =============================================================================
# STATE CLASS (6-DOF)
# =============================================================================

class State:
    """
    The System State (6 DOF).
    Encapsulates the state vector 'x' and the covariance matrix 'P'.

    State layout:
    0-2:   Position (x, y, z) [m], world frame
    3-5:   Velocity (vx, vy, vz) [m/s], world frame
    """
    def __init__(self, covariance_scale: float = 1e-2):
        self.dim = STATE_DIM
        self.x = np.zeros((STATE_DIM, 1))
        self.P = np.eye(STATE_DIM) * covariance_scale

    def get_position(self) -> np.ndarray:
        return self.x[0:3]

    def get_velocity(self) -> np.ndarray:
        return self.x[3:6]


# =============================================================================
# FILTER ENGINE
# =============================================================================

class LinearKalmanFilter:
    """
    Discrete linear Kalman filter over the 6-DOF position/velocity state.

    Usage contract: call predict() exactly once per tick, then correct().
    Calling correct() twice without a predict() in between is allowed by the
    math but re-uses the same prior.
    """
    def __init__(self, config: Optional[EstimatorConfig] = None):
        self.config = config if config is not None else EstimatorConfig()
        self.A = self.config.transition_matrix()
        self.H = self.config.measurement_matrix()
        self.Q = self.config.process_noise()
        self.R = self.config.measurement_noise()
        self.state = State(self.config.initial_covariance_scale)
        self.innovation: Optional[np.ndarray] = None
        self.gain: Optional[np.ndarray] = None

    @property
    def measurement_model(self) -> MeasurementModel:
        return self.config.measurement_model

    @property
    def x(self) -> np.ndarray:
        """Current state estimate, flattened copy."""
        return self.state.x.flatten()

    @property
    def P(self) -> np.ndarray:
        """Current error covariance, copy."""
        return self.state.P.copy()

    covariance = P

    @property
    def position(self) -> np.ndarray:
        return self.state.get_position().flatten()

    @property
    def velocity(self) -> np.ndarray:
        return self.state.get_velocity().flatten()

    def reset(self, state=None, covariance=None):
        """
        Start over with a fresh estimate, e.g. after SingularCovariance.

        Args:
            state: Optional initial 6-vector (defaults to zeros).
            covariance: Optional 6x6 initial covariance (defaults to the
                configured initial_covariance_scale * I).
        """
        x = np.zeros((STATE_DIM, 1))
        P = self.config.initial_covariance()
        if state is not None:
            x = require_shape("state", state, [(STATE_DIM,), (STATE_DIM, 1)]).reshape(STATE_DIM, 1)
            require_finite("state", x)
        if covariance is not None:
            P = require_shape("covariance", covariance, [(STATE_DIM, STATE_DIM)])
            require_finite("covariance", P)
            P = 0.5 * (P + P.T)
        self.state.x = x.copy()
        self.state.P = P.copy()
        self.innovation = None
        self.gain = None
        logger.debug("Filter reset, trace(P)=%.3e", np.trace(P))

    def predict(self) -> np.ndarray:
        """
        Time Update Step (A Priori).

        Returns:
            The a priori state estimate (6,).
        """
        # 1. Project the State ahead
        # x_k|k-1 = A * x_k-1|k-1
        self.state.x = self.A @ self.state.x

        # 2. Project the Error Covariance ahead
        # P_k|k-1 = A * P_k-1|k-1 * A^T + Q
        self.state.P = self.A @ self.state.P @ self.A.T + self.Q

        return self.x

    def correct(self, measurement) -> np.ndarray:
        """
        Measurement Update Step (A Posteriori).

        Args:
            measurement: 4-vector, shape (4,) or (4, 1).

        Returns:
            The a posteriori state estimate (6,).

        Raises:
            DimensionMismatch: measurement is not a 4-vector.
            NonFiniteInput: measurement contains NaN/inf.
            SingularCovariance: the innovation covariance is not invertible.
        """
        z = require_shape(
            "measurement", measurement, [(MEASUREMENT_DIM,), (MEASUREMENT_DIM, 1)]
        ).reshape(MEASUREMENT_DIM, 1)
        require_finite("measurement", z)

        x, P, H, R = self.state.x, self.state.P, self.H, self.R

        # 1. Calculate Innovation (Residual)
        # y = z - H * x
        y = z - H @ x

        # 2. Calculate Innovation Covariance
        # S = H * P * H^T + R
        S = H @ P @ H.T + R

        # 3. Calculate Optimal Kalman Gain
        # K = P * H^T * S^-1
        try:
            K = P @ H.T @ np.linalg.inv(S)
        except np.linalg.LinAlgError as e:
            raise SingularCovariance(f"Innovation covariance is singular: {e}") from e
        if not np.all(np.isfinite(K)):
            raise SingularCovariance("Kalman gain is not finite")

        # 4. Update State Estimate
        # x = x + K * y
        self.state.x = x + K @ y

        # 5. Update Covariance Estimate (Joseph form keeps P symmetric PSD)
        # P = (I - K * H) * P * (I - K * H)^T + K * R * K^T
        I_KH = np.eye(STATE_DIM) - K @ H
        P_new = I_KH @ P @ I_KH.T + K @ R @ K.T
        self.state.P = 0.5 * (P_new + P_new.T)

        self.innovation = y.flatten()
        self.gain = K
        return self.x

    def __repr__(self):
        return f"LinearKalmanFilter(model={self.measurement_model.value}, x={self.x}, trace(P)={np.trace(self.state.P):.3e})"
