# tests/conftest.py
"""
Root pytest configuration and fixtures for the dead-reckoning tests.

Provides shared fixtures for estimator construction, telemetry samples and
in-memory telemetry sources. matplotlib is forced onto the Agg backend so
plotting tests never open a window.
"""

import math

import matplotlib
matplotlib.use("Agg")

import numpy as np
import pytest

from dead_reckoning.filters import (
    EstimatorConfig,
    FusionCycle,
    LinearKalmanFilter,
    MeasurementModel,
    TelemetrySample,
)
from dead_reckoning.sensors import SensorMode, TelemetrySource


# =============================================================================
# Estimator Fixtures
# =============================================================================

@pytest.fixture
def default_config():
    """Reference constants: Q=1e-4, R=1e-1, P0=1e-2, velocity-proxy wiring."""
    return EstimatorConfig()


@pytest.fixture
def kalman(default_config):
    return LinearKalmanFilter(default_config)


@pytest.fixture
def fusion(default_config):
    return FusionCycle(default_config)


@pytest.fixture
def integrated_fusion():
    """Fusion cycle using the integrated-position measurement model."""
    return FusionCycle(EstimatorConfig(measurement_model=MeasurementModel.INTEGRATED_POSITION))


# =============================================================================
# Telemetry Fixtures
# =============================================================================

def make_sample(altitude=1.0, roll=0.0, pitch=0.0, yaw=0.0, velocity=(0.0, 0.0, 0.0),
                timestamp=0.0, battery=None):
    return TelemetrySample(
        altitude=altitude,
        roll=roll,
        pitch=pitch,
        yaw=yaw,
        velocity=np.array(velocity, dtype=float),
        timestamp=timestamp,
        battery=battery,
    )


@pytest.fixture
def sample_factory():
    """
    Factory for TelemetrySample test instances.

    Usage:
        def test_something(sample_factory):
            sample = sample_factory(altitude=2.0, yaw=math.pi / 2)
    """
    return make_sample


@pytest.fixture
def turned_sample():
    """Body-forward motion after a 90 deg turn to the left."""
    return make_sample(velocity=(1.0, 0.0, 0.0), yaw=math.pi / 2)


class ListSource(TelemetrySource):
    """Telemetry source backed by a list; closes when the list runs out."""

    def __init__(self, samples):
        self.mode = SensorMode.HARDWARE
        self.samples = list(samples)
        self.index = 0
        self.closed = False

    def read(self):
        if self.closed or self.index >= len(self.samples):
            return None
        sample = self.samples[self.index]
        self.index += 1
        return sample

    def close(self):
        self.closed = True


@pytest.fixture
def list_source():
    """Build a ListSource from a sequence of samples."""
    return ListSource


@pytest.fixture
def hover_samples():
    """20 identical samples at 1 Hz: altitude 1 m, no motion."""
    return [make_sample(altitude=1.0, timestamp=float(t)) for t in range(20)]
