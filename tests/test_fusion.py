# tests/test_fusion.py
"""
Unit tests for the fusion cycle (predict -> transform -> correct per sample).

Tests:
- Elapsed-time bookkeeping (first tick, negative deltas)
- Measurement assembly for both measurement models
- Convergence on a constant-altitude hover
- Rejection of malformed samples before any state changes
"""

import math

import numpy as np
import pytest

from dead_reckoning.errors import DimensionMismatch, NonFiniteInput
from dead_reckoning.filters import EstimatorConfig, FusionCycle, MeasurementModel


# =============================================================================
# Test: Timing
# =============================================================================

class TestElapsedTime:

    def test_first_tick_has_zero_dt(self, fusion):
        assert fusion.elapsed(123.4) == 0.0
        assert fusion.last_timestamp == 123.4

    def test_subsequent_ticks_use_delta(self, fusion):
        fusion.elapsed(10.0)
        assert fusion.elapsed(10.25) == pytest.approx(0.25)
        assert fusion.elapsed(11.0) == pytest.approx(0.75)

    def test_clock_going_backwards_is_clamped(self, fusion, caplog):
        fusion.elapsed(5.0)
        with caplog.at_level("WARNING"):
            assert fusion.elapsed(4.0) == 0.0
        assert "backwards" in caplog.text
        assert fusion.last_timestamp == 4.0

    def test_first_step_contributes_no_displacement(self, fusion, sample_factory):
        fusion.step(sample_factory(altitude=1.0, velocity=(3.0, 0.0, 0.0), timestamp=100.0))
        np.testing.assert_array_equal(fusion.last_measurement, [1.0, 0.0, 0.0, 0.0])
        assert fusion.last_estimate[2] > 0.0

    def test_step_derives_dt_from_timestamps(self, fusion, sample_factory):
        fusion.step(sample_factory(velocity=(2.0, 0.0, 0.0), timestamp=0.0))
        fusion.step(sample_factory(velocity=(2.0, 0.0, 0.0), timestamp=0.5))
        np.testing.assert_allclose(fusion.last_measurement, [1.0, 1.0, 0.0, 0.0])
        assert fusion.ticks == 2

    def test_explicit_dt_overrides_timestamps(self, fusion, sample_factory):
        fusion.step(sample_factory(velocity=(2.0, 0.0, 0.0), timestamp=0.0), dt=0.25)
        np.testing.assert_allclose(fusion.last_measurement, [1.0, 0.5, 0.0, 0.0])
        assert fusion.last_timestamp == 0.0

    def test_negative_explicit_dt_is_clamped(self, fusion, sample_factory):
        fusion.step(sample_factory(velocity=(2.0, 0.0, 0.0)), dt=-1.0)
        np.testing.assert_array_equal(fusion.last_measurement, [1.0, 0.0, 0.0, 0.0])


# =============================================================================
# Test: Measurement assembly
# =============================================================================

class TestMeasurement:

    def test_turned_vehicle_moves_laterally(self, fusion, turned_sample):
        for _ in range(3):
            fusion.step(turned_sample, dt=1.0)
            np.testing.assert_allclose(fusion.last_measurement[1:], [0.0, 1.0, 0.0], atol=1e-12)

    def test_prediction_is_recorded(self, fusion, sample_factory):
        fusion.step(sample_factory(), dt=1.0)
        first = fusion.last_estimate
        fusion.step(sample_factory(), dt=1.0)
        # a priori = A @ previous a posteriori
        expected = first.copy()
        expected[0:3] += first[3:6]
        np.testing.assert_allclose(fusion.last_prediction, expected, atol=1e-12)

    def test_integrated_model_accumulates_odometry(self, integrated_fusion, sample_factory):
        integrated_fusion.step(sample_factory(altitude=2.0, velocity=(1.0, 0.0, 0.0)), dt=0.0)
        np.testing.assert_allclose(integrated_fusion.last_measurement, [2.0, 0.0, 0.0, 2.0])
        integrated_fusion.step(sample_factory(altitude=2.0, velocity=(1.0, 0.0, 0.0)), dt=1.0)
        integrated_fusion.step(sample_factory(altitude=2.0, velocity=(1.0, 0.0, 0.0), yaw=math.pi / 2), dt=1.0)
        np.testing.assert_allclose(integrated_fusion.last_measurement, [2.0, 1.0, 1.0, 2.0], atol=1e-12)

    def test_integrated_model_tracks_straight_flight(self, integrated_fusion, sample_factory):
        for t in range(60):
            position = integrated_fusion.step(
                sample_factory(altitude=1.0, velocity=(0.5, 0.0, 0.0), timestamp=float(t))
            )
        # odometry says 29.5 m after 59 one-second ticks
        assert position[0] == pytest.approx(29.5, abs=1.0)
        assert position[1] == pytest.approx(0.0, abs=1e-9)
        assert position[2] == pytest.approx(1.0, abs=0.05)


# =============================================================================
# Test: Convergence
# =============================================================================

class TestConvergence:

    def test_hover_converges_to_altitude(self, fusion, sample_factory):
        errors = []
        for _ in range(80):
            position = fusion.step(sample_factory(altitude=1.0), dt=1.0)
            assert abs(position[0]) < 1e-12 and abs(position[1]) < 1e-12
            errors.append(abs(position[2] - 1.0))
        assert all(e < 0.01 for e in errors[40:])
        assert errors[-1] < 1e-3
        np.testing.assert_allclose(fusion.kalman.velocity[0:2], 0.0, atol=1e-12)

    def test_larger_initial_uncertainty_converges_faster(self, sample_factory):
        slow = FusionCycle(EstimatorConfig())
        fast = FusionCycle(EstimatorConfig(initial_covariance_scale=1.0))
        for _ in range(10):
            z_slow = slow.step(sample_factory(altitude=1.0), dt=1.0)[2]
            z_fast = fast.step(sample_factory(altitude=1.0), dt=1.0)[2]
        assert abs(z_fast - 1.0) < 0.02
        assert abs(z_fast - 1.0) < abs(z_slow - 1.0)

    def test_observed_covariance_block_is_non_increasing(self, sample_factory):
        fusion = FusionCycle(EstimatorConfig(initial_covariance_scale=1.0))
        block = np.ix_([2, 5], [2, 5])
        traces = [np.trace(fusion.kalman.P[block])]
        for _ in range(40):
            fusion.step(sample_factory(altitude=1.0), dt=1.0)
            traces.append(np.trace(fusion.kalman.P[block]))
        assert all(b <= a + 1e-12 for a, b in zip(traces, traces[1:]))

    def test_integrated_model_covariance_trace_is_non_increasing(self, sample_factory):
        fusion = FusionCycle(EstimatorConfig(
            initial_covariance_scale=1.0,
            measurement_model=MeasurementModel.INTEGRATED_POSITION,
        ))
        traces = [np.trace(fusion.kalman.P)]
        for _ in range(40):
            position = fusion.step(sample_factory(altitude=1.0), dt=1.0)
            traces.append(np.trace(fusion.kalman.P))
        assert all(b <= a + 1e-12 for a, b in zip(traces, traces[1:]))
        np.testing.assert_allclose(position, [0.0, 0.0, 1.0], atol=0.01)


# =============================================================================
# Test: Validation and reset
# =============================================================================

class TestValidation:

    @pytest.mark.parametrize("field,value", [
        ("altitude", float("nan")),
        ("roll", float("inf")),
        ("yaw", float("nan")),
        ("timestamp", float("inf")),
        ("velocity", np.array([0.0, float("nan"), 0.0])),
    ])
    def test_non_finite_sample_changes_nothing(self, fusion, sample_factory, field, value):
        fusion.step(sample_factory(timestamp=0.0))
        x_before, P_before = fusion.kalman.x, fusion.kalman.P
        sample = sample_factory(timestamp=1.0)
        setattr(sample, field, value)

        with pytest.raises(NonFiniteInput):
            fusion.step(sample)

        np.testing.assert_array_equal(fusion.kalman.x, x_before)
        np.testing.assert_array_equal(fusion.kalman.P, P_before)
        assert fusion.last_timestamp == 0.0
        assert fusion.ticks == 1

    def test_wrong_velocity_shape(self, fusion, sample_factory):
        with pytest.raises(DimensionMismatch):
            fusion.step(sample_factory(velocity=(1.0, 0.0)))
        assert fusion.ticks == 0

    def test_non_finite_dt(self, fusion, sample_factory):
        with pytest.raises(NonFiniteInput):
            fusion.step(sample_factory(), dt=float("nan"))

    def test_reset_clears_state_and_timing(self, integrated_fusion, sample_factory):
        for t in range(5):
            integrated_fusion.step(sample_factory(velocity=(1.0, 0.0, 0.0), timestamp=float(t)))
        integrated_fusion.reset()
        assert integrated_fusion.last_timestamp is None
        assert integrated_fusion.odometry is None
        assert integrated_fusion.ticks == 0
        np.testing.assert_array_equal(integrated_fusion.kalman.x, np.zeros(6))
