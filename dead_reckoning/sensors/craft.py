# -*- coding: utf-8 -*-
"""
Filename: craft.py
Description: The vehicle link as seen by the estimator: a telemetry source and
             a best-effort command sink.

             - SimulatedCraft:   kinematic quadrotor with noisy sensor channels
             - LogPlaybackCraft: replays a recorded telemetry table
"""

import logging
import numpy as np
import pandas as pd
from abc import ABC, abstractmethod
from typing import Iterator, List, Optional

from ..filters.fusion import TelemetrySample
from ..util.angles import dcm_from_euler, rotation_z, wrap_angle
from .commands import HOVER, CommandIntent
from .sensor_framework import (
    ALTITUDE_SPEC,
    ATTITUDE_SPEC,
    VELOCITY_SPEC,
    SensorMode,
    SimulatedSensor,
)

logger = logging.getLogger(__name__)

TELEMETRY_COLUMNS = ["timestamp", "altitude", "roll", "pitch", "yaw", "vx", "vy", "vz"]

# ==============================================================================
# INTERFACES
# ==============================================================================

class TelemetrySource(ABC):
    """Produces one TelemetrySample per call until the link closes."""
    mode: SensorMode

    @abstractmethod
    def read(self) -> Optional[TelemetrySample]:
        """Next sample, or None once the link is closed."""

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


class CommandSink(ABC):
    """Fire-and-forget command channel to the vehicle."""

    @abstractmethod
    def send(self, intent: CommandIntent):
        """Deliver an intent. Delivery is best-effort; nothing is returned."""


# ==============================================================================
# SIMULATED VEHICLE
# ==============================================================================

class SimulatedCraft(TelemetrySource, CommandSink):
    """
    Kinematic vehicle flown by command intents.

    Truth is integrated at a fixed rate; telemetry passes through
    SimulatedSensor error models before it is reported.

    Attributes:
        rate_hz (float): Telemetry rate.
        duration (float): The link closes after this many seconds.
        position (np.ndarray): True world-frame position [m].
        yaw (float): True heading [rad].
        on_ground (bool): True while landed.
        battery (float): Remaining battery [%].
        camera (int): Selected camera channel (0-3).
    """
    def __init__(
        self,
        rate_hz: float = 30.0,
        duration: float = 60.0,
        max_speed: float = 1.0,           # m/s at full stick
        climb_rate: float = 0.5,          # m/s
        max_yaw_rate: float = 0.5,        # rad/s
        max_tilt: float = np.radians(10.0),
        takeoff_altitude: float = 1.0,    # m
        max_altitude: float = 6.0,        # ultrasonic range
        altitude_noise_std: float = 0.02,
        attitude_noise_std: float = 0.002,
        velocity_noise_std: float = 0.05,
        seed: Optional[int] = None,
    ):
        if rate_hz <= 0:
            raise ValueError("rate_hz must be positive")
        if duration < 0:
            raise ValueError("duration must be >= 0")

        self.mode = SensorMode.SIMULATION
        self.rate_hz = float(rate_hz)
        self.dt = 1.0 / self.rate_hz
        self.duration = float(duration)
        self.max_speed = max_speed
        self.climb_rate = climb_rate
        self.max_yaw_rate = max_yaw_rate
        self.max_tilt = max_tilt
        self.takeoff_altitude = takeoff_altitude

        rng = np.random.default_rng(seed)
        self.altimeter = SimulatedSensor(
            "altimeter", ALTITUDE_SPEC,
            white_noise_std=altitude_noise_std,
            saturation_limits=(np.array([0.0]), np.array([max_altitude])),
            quantization_step=0.001,
            seed=rng.integers(2**32),
        )
        self.attitude = SimulatedSensor(
            "attitude", ATTITUDE_SPEC,
            white_noise_std=attitude_noise_std,
            seed=rng.integers(2**32),
        )
        self.velocimeter = SimulatedSensor(
            "velocity", VELOCITY_SPEC,
            white_noise_std=velocity_noise_std,
            seed=rng.integers(2**32),
        )

        self.time = 0.0
        self.position = np.zeros(3)
        self.velocity_world = np.zeros(3)
        self.roll = 0.0
        self.pitch = 0.0
        self.yaw = 0.0
        self.on_ground = True
        self.battery = 100.0
        self.camera = 0
        self._intent = HOVER
        self._target_altitude = 0.0
        self._started = False
        self._closed = False
        self.true_path: List[np.ndarray] = []

    @property
    def true_position(self) -> np.ndarray:
        return self.position.copy()

    # --- CommandSink ---------------------------------------------------------

    def send(self, intent: CommandIntent):
        if self._closed:
            logger.debug("Link closed, dropping %s", intent)
            return
        if intent.toggle_flight:
            if self.on_ground:
                logger.info("Takeoff")
                self.on_ground = False
                self._target_altitude = self.takeoff_altitude
            else:
                logger.info("Landing")
                self._target_altitude = 0.0
        if intent.camera_step:
            self.camera = (self.camera + intent.camera_step) % 4
        self._intent = intent

    # --- physics -------------------------------------------------------------

    def _advance(self, dt: float):
        intent = self._intent
        airborne = not self.on_ground

        if airborne:
            self.yaw = wrap_angle(self.yaw + np.clip(intent.yaw_rate, -1, 1) * self.max_yaw_rate * dt)
            forward = float(np.clip(intent.forward, -1, 1))
            lateral = float(np.clip(intent.lateral, -1, 1))
            horizontal = rotation_z(self.yaw) @ np.array([forward, lateral, 0.0]) * self.max_speed

            if intent.vertical:
                self._target_altitude = max(0.0, self._target_altitude + np.clip(intent.vertical, -1, 1) * self.climb_rate * dt)
            error = self._target_altitude - self.position[2]
            vz = float(np.clip(error / dt, -self.climb_rate, self.climb_rate))

            self.velocity_world = horizontal + np.array([0.0, 0.0, vz])
            # tilt follows the stick
            self.pitch = forward * self.max_tilt
            self.roll = lateral * self.max_tilt
        else:
            self.velocity_world = np.zeros(3)
            self.pitch = 0.0
            self.roll = 0.0

        self.position = self.position + self.velocity_world * dt
        if self.position[2] <= 1e-6:
            self.position[2] = 0.0
            if airborne and self._target_altitude == 0.0:
                logger.info("Touchdown")
                self.on_ground = True

        drain = 0.05 if airborne else 0.005
        self.battery = max(0.0, self.battery - drain * dt)

    # --- TelemetrySource -----------------------------------------------------

    def read(self) -> Optional[TelemetrySample]:
        if self._closed:
            return None
        if self._started:
            if self.time + self.dt > self.duration + 1e-9:
                logger.info("Simulated flight finished after %.2fs", self.time)
                self.close()
                return None
            self._advance(self.dt)
            self.time += self.dt
        self._started = True
        self.true_path.append(self.position.copy())

        # body-frame velocity is what the onboard sensors see
        v_body = dcm_from_euler(self.roll, self.pitch, self.yaw).T @ self.velocity_world
        dt = self.dt
        altitude = float(self.altimeter.step(self.position[2], dt, self.time)[0])
        roll, pitch, yaw = self.attitude.step([self.roll, self.pitch, self.yaw], dt, self.time)
        velocity = self.velocimeter.step(v_body, dt, self.time)

        return TelemetrySample(
            altitude=altitude,
            roll=float(roll),
            pitch=float(pitch),
            yaw=float(yaw),
            velocity=velocity,
            timestamp=self.time,
            battery=self.battery,
        )

    def close(self):
        self._closed = True


def flight_plan(rate_hz: float, duration: float) -> Iterator[CommandIntent]:
    """
    A scripted rectangle-ish flight: takeoff, forward, turn, forward, land.
    Yields one intent per tick for ``duration`` seconds.
    """
    ticks = int(round(duration * rate_hz))
    land_at = max(0, ticks - int(4 * rate_hz))
    phases = [
        (3.0, HOVER),
        (4.0, CommandIntent(forward=1.0)),
        (np.pi / 2 / 0.5, CommandIntent(yaw_rate=1.0)),
        (4.0, CommandIntent(forward=1.0)),
        (2.0, CommandIntent(vertical=1.0)),
    ]
    schedule = []
    for seconds, intent in phases:
        schedule.extend([intent] * int(round(seconds * rate_hz)))

    for tick in range(ticks):
        if tick == 0 or tick == land_at:
            yield CommandIntent(toggle_flight=True)
        elif tick < len(schedule) and tick < land_at:
            yield schedule[tick]
        else:
            yield HOVER


# ==============================================================================
# LOG PLAYBACK
# ==============================================================================

class LogPlaybackCraft(TelemetrySource):
    """
    Replays a telemetry table (see ``util.telemetry_log.load_telemetry_log``)
    one row per read.
    """
    def __init__(self, df: pd.DataFrame):
        missing = [c for c in TELEMETRY_COLUMNS if c not in df.columns]
        if missing:
            raise ValueError(f"Telemetry log is missing columns: {missing}")
        self.mode = SensorMode.HARDWARE
        self.df = df.reset_index(drop=True)
        self._rows = self.df.itertuples(index=False)
        self._closed = False

    def __len__(self):
        return len(self.df)

    def read(self) -> Optional[TelemetrySample]:
        if self._closed:
            return None
        row = next(self._rows, None)
        if row is None:
            self.close()
            return None
        battery = getattr(row, "battery", None)
        return TelemetrySample(
            altitude=float(row.altitude),
            roll=float(row.roll),
            pitch=float(row.pitch),
            yaw=float(row.yaw),
            velocity=np.array([row.vx, row.vy, row.vz], dtype=float),
            timestamp=float(row.timestamp),
            battery=None if battery is None or pd.isna(battery) else float(battery),
        )

    def close(self):
        self._closed = True
