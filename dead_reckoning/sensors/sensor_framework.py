# -*- coding: utf-8 -*-
"""
Filename: sensor_framework.py
Description: Minimal sensor channel framework used by the vehicle link.
             Supports variable-dimension channels:
             - altitude (1-axis, barometric / ultrasonic)
             - attitude (roll, pitch, yaw)
             - body-frame velocity (vx, vy, vz)

             Each channel operates in either SIMULATION or HARDWARE mode.
"""

import numpy as np
from collections import deque
from typing import Optional, Tuple, List
from enum import Enum
from dataclasses import dataclass

class SensorMode(Enum):
    SIMULATION = "SIMULATION"
    HARDWARE = "HARDWARE"

@dataclass
class SensorSpec:
    """Specification for sensor output format and interpretation."""
    dimension: int
    units: str
    description: str
    labels: List[str]  # e.g., ['x', 'y', 'z'] or ['roll', 'pitch', 'yaw']


ALTITUDE_SPEC = SensorSpec(
    dimension=1,
    units="m",
    description="Altitude above ground",
    labels=["altitude"],
)

ATTITUDE_SPEC = SensorSpec(
    dimension=3,
    units="rad",
    description="Orientation angles",
    labels=["roll", "pitch", "yaw"],
)

VELOCITY_SPEC = SensorSpec(
    dimension=3,
    units="m/s",
    description="Body-frame velocity",
    labels=["vx", "vy", "vz"],
)

# ==============================================================================
# BASE CLASSES
# ==============================================================================

class BaseSensor:
    """
    Dimension-agnostic foundation for any sensor channel.
    Handles data management, timestamping, and history buffering.

    Attributes:
        sensor_id (str): Unique identifier for logging.
        spec (SensorSpec): Output format specification.
        history (deque): A sliding window of (timestamp, value) pairs.
        current_value (np.ndarray): The most recent measurement.
    """
    def __init__(self, sensor_id: str, spec: SensorSpec, buffer_size: int = 100):
        self.sensor_id = sensor_id
        self.spec = spec
        self.buffer_size = buffer_size
        self.history = deque(maxlen=buffer_size)
        self.current_value: np.ndarray = np.zeros(spec.dimension)
        self.current_timestamp: float = 0.0

    def _store(self, data: np.ndarray, timestamp: float):
        """Update current state and append to the sliding window."""
        if data.shape[0] != self.spec.dimension:
            raise ValueError(
                f"Data dimension {data.shape[0]} doesn't match spec dimension {self.spec.dimension}"
            )
        self.current_value = data.copy()
        self.current_timestamp = timestamp
        self.history.append((timestamp, data.copy()))

    def get_latest(self) -> np.ndarray:
        """Access the most recent measurement vector."""
        return self.current_value

    def get_history_with_timestamps(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Returns separate arrays for timestamps and data.
        Returns:
            Tuple of (timestamps (N,), data (N x D))
        """
        if not self.history:
            return np.empty(0), np.empty((0, self.spec.dimension))
        timestamps = np.array([item[0] for item in self.history])
        data = np.array([item[1] for item in self.history])
        return timestamps, data


class SimulatedSensor(BaseSensor):
    """
    Sensor channel with a configurable error model.

    Error chain: Truth -> Scale -> Bias (random walk) -> Noise -> Saturation -> Quantization -> Output
    """
    def __init__(
        self,
        sensor_id: str,
        spec: SensorSpec,
        initial_bias: Optional[np.ndarray] = None,
        bias_instability_std: Optional[np.ndarray] = None,
        white_noise_std: Optional[np.ndarray] = None,
        scale_factors: Optional[np.ndarray] = None,
        saturation_limits: Optional[Tuple[np.ndarray, np.ndarray]] = None,
        quantization_step: float = 0.0,
        seed: Optional[int] = None,
        **kwargs
    ):
        super().__init__(sensor_id, spec, **kwargs)
        dim = spec.dimension

        self.bias = np.zeros(dim) if initial_bias is None else np.asarray(initial_bias, dtype=float) * np.ones(dim)
        self.bias_instability_std = (
            np.zeros(dim) if bias_instability_std is None
            else np.asarray(bias_instability_std, dtype=float) * np.ones(dim)
        )
        self.white_noise_std = (
            np.zeros(dim) if white_noise_std is None
            else np.asarray(white_noise_std, dtype=float) * np.ones(dim)
        )
        self.scale_factors = (
            np.ones(dim) if scale_factors is None
            else np.asarray(scale_factors, dtype=float) * np.ones(dim)
        )
        self.saturation_limits = saturation_limits
        self.quantization_step = float(quantization_step)
        self.rng = np.random.default_rng(seed)

    def step(self, true_signal, dt: float, timestamp: float) -> np.ndarray:
        """
        Apply the error model to a truth signal.

        Args:
            true_signal: The perfect physical measurement.
            dt: Time step for bias random walk integration.
            timestamp: Current time.
        """
        true_signal = np.atleast_1d(np.asarray(true_signal, dtype=float))

        # 1. Bias Random Walk
        if np.any(self.bias_instability_std > 0) and dt > 0:
            self.bias += self.bias_instability_std * np.sqrt(dt) * self.rng.standard_normal(self.spec.dimension)

        # 2. White Noise
        noise = np.zeros(self.spec.dimension)
        if np.any(self.white_noise_std > 0):
            noise = self.white_noise_std * self.rng.standard_normal(self.spec.dimension)

        # 3. Scale + Bias + Noise
        measured = (self.scale_factors * true_signal) + self.bias + noise

        # 4. Saturation
        if self.saturation_limits:
            min_vals, max_vals = self.saturation_limits
            measured = np.clip(measured, min_vals, max_vals)

        # 5. Quantization
        if self.quantization_step > 0:
            measured = np.round(measured / self.quantization_step) * self.quantization_step

        self._store(measured, timestamp)
        return measured
