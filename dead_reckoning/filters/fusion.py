# -*- coding: utf-8 -*-
"""
Filename: fusion.py
Description: One estimation step per telemetry sample.

    telemetry -> frame transform (body -> world displacement)
              -> measurement assembly
              -> predict() -> correct()
              -> position (x, y, z)

The cycle owns the last-tick timestamp, so elapsed time is explicit state
rather than a process-wide variable.
"""

import logging
import threading
import numpy as np
from dataclasses import dataclass, field
from typing import Optional

from ..errors import require_finite, require_shape
from .frame_transform import body_to_world_displacement
from .kalman import EstimatorConfig, LinearKalmanFilter, MeasurementModel

logger = logging.getLogger(__name__)


@dataclass
class TelemetrySample:
    """A mutually consistent snapshot of the vehicle's sensors."""
    altitude: float                     # [m]
    roll: float                         # [rad]
    pitch: float                        # [rad]
    yaw: float                          # [rad]
    velocity: np.ndarray = field(default_factory=lambda: np.zeros(3))  # body frame [m/s]
    timestamp: float = 0.0              # [s], any monotonic-ish clock
    battery: Optional[float] = None     # [%], display only

    def validate(self):
        """Reject malformed samples before they reach the filter."""
        self.velocity = require_shape("velocity", self.velocity, [(3,), (3, 1)]).reshape(3)
        require_finite("velocity", self.velocity)
        require_finite("altitude", self.altitude)
        require_finite("orientation", (self.roll, self.pitch, self.yaw))
        require_finite("timestamp", self.timestamp)
        return self


class FusionCycle:
    """
    Drives the Kalman filter once per telemetry sample.

    Attributes:
        kalman (LinearKalmanFilter): The estimator; its state persists across ticks.
        last_timestamp (float | None): Timestamp of the previous tick.
        odometry (np.ndarray | None): Integrated world-frame displacement, used by
            the INTEGRATED_POSITION measurement model.
        last_prediction / last_measurement / last_estimate: Diagnostics for the
            most recent tick.
        ticks (int): Completed ticks since the last reset.
    """
    def __init__(
        self,
        config: Optional[EstimatorConfig] = None,
        kalman: Optional[LinearKalmanFilter] = None,
    ):
        if kalman is None:
            kalman = LinearKalmanFilter(config)
        self.kalman = kalman
        self._lock = threading.Lock()
        self._clear()

    @property
    def config(self) -> EstimatorConfig:
        return self.kalman.config

    def _clear(self):
        self.last_timestamp: Optional[float] = None
        self.odometry: Optional[np.ndarray] = None
        self.last_prediction: Optional[np.ndarray] = None
        self.last_measurement: Optional[np.ndarray] = None
        self.last_estimate: Optional[np.ndarray] = None
        self.ticks = 0

    def reset(self):
        """Reinitialise the estimator and timing; the trajectory restarts."""
        with self._lock:
            self.kalman.reset()
            self._clear()
        logger.warning("Fusion cycle reset, trajectory will be discontinuous")

    def elapsed(self, timestamp: float) -> float:
        """
        Seconds since the previous tick. Zero on the first call; negative
        deltas (clock irregularities) are clamped to zero.
        """
        timestamp = float(timestamp)
        if self.last_timestamp is None:
            dt = 0.0
        else:
            dt = timestamp - self.last_timestamp
            if dt < 0.0:
                logger.warning("Clock went backwards by %.6fs, using dt=0", -dt)
                dt = 0.0
        self.last_timestamp = timestamp
        return dt

    def _measurement(self, altitude: float, displacement: np.ndarray) -> np.ndarray:
        if self.config.measurement_model is MeasurementModel.VELOCITY_PROXY:
            return np.array([altitude, *displacement])

        # odometry starts at (0, 0, first altitude)
        if self.odometry is None:
            self.odometry = np.array([0.0, 0.0, altitude])
        self.odometry = self.odometry + displacement
        return np.array([altitude, *self.odometry])

    def step(self, sample: TelemetrySample, dt: Optional[float] = None) -> np.ndarray:
        """
        Run predict/correct for one sample.

        Args:
            sample: Telemetry snapshot.
            dt: Elapsed time override [s]. When None it is derived from
                sample.timestamp.

        Returns:
            (3,) a posteriori position estimate [m].

        Raises:
            DimensionMismatch, NonFiniteInput: malformed sample; no state changed.
            SingularCovariance: the filter must be reset before continuing.
        """
        sample.validate()
        if dt is not None:
            dt = float(require_finite("dt", dt))
            if dt < 0.0:
                logger.warning("Negative dt %.6fs clamped to zero", dt)
                dt = 0.0

        with self._lock:
            if dt is None:
                dt = self.elapsed(sample.timestamp)
            else:
                self.last_timestamp = float(sample.timestamp)

            prediction = self.kalman.predict()
            displacement = body_to_world_displacement(
                sample.velocity, sample.roll, sample.pitch, sample.yaw, dt
            )
            measurement = self._measurement(float(sample.altitude), displacement)
            estimate = self.kalman.correct(measurement)

            self.last_prediction = prediction
            self.last_measurement = measurement
            self.last_estimate = estimate
            self.ticks += 1

        position = estimate[0:3].copy()
        logger.debug("tick %d dt=%.3fs x=%.2fm y=%.2fm z=%.2fm", self.ticks, dt, *position)
        return position
