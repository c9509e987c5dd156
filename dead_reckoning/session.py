# -*- coding: utf-8 -*-
"""
Filename: session.py
Description: The acquisition / command loop around the estimation core.

    source.read() -> FusionCycle.step() -> on_estimate() -> sink.send(intent)

The loop owns the failure policy: malformed samples may be skipped, a
collapsed covariance may trigger a reinitialisation. The core itself never
recovers silently.
"""

import logging
import numpy as np
import pandas as pd
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, List, Optional

from .errors import NonFiniteInput, SingularCovariance
from .filters.fusion import FusionCycle, TelemetrySample
from .sensors.commands import HOVER, CommandIntent
from .sensors.craft import CommandSink, TelemetrySource

logger = logging.getLogger(__name__)


@dataclass
class TrajectoryPoint:
    time: float
    x: float
    y: float
    z: float
    altitude: float
    battery: Optional[float]
    segment: int


class FlightSession:
    """
    Drives the fusion cycle from a telemetry source until the link closes.

    Args:
        source: Where telemetry comes from.
        fusion: The estimation core (a fresh FusionCycle by default).
        sink: Optional command channel; intents are sent after each tick.
        intents: Optional iterable of CommandIntent, consumed one per tick.
            HOVER is sent once it is exhausted.
        on_estimate: Optional callback(sample, position) after each tick.
        reinitialize_on_singular: Reset the estimator and keep going after
            SingularCovariance (a new trajectory segment starts). If False the
            error propagates.
        skip_non_finite: Drop samples with NaN/inf values. If False the error
            propagates.
    """
    def __init__(
        self,
        source: TelemetrySource,
        fusion: Optional[FusionCycle] = None,
        sink: Optional[CommandSink] = None,
        intents: Optional[Iterable[CommandIntent]] = None,
        on_estimate: Optional[Callable[[TelemetrySample, np.ndarray], None]] = None,
        reinitialize_on_singular: bool = True,
        skip_non_finite: bool = True,
    ):
        self.source = source
        self.fusion = fusion if fusion is not None else FusionCycle()
        self.sink = sink
        self._intents: Optional[Iterator[CommandIntent]] = iter(intents) if intents is not None else None
        self.on_estimate = on_estimate
        self.reinitialize_on_singular = reinitialize_on_singular
        self.skip_non_finite = skip_non_finite

        self.trajectory: List[TrajectoryPoint] = []
        self.segment = 0
        self.skipped = 0
        self.reinitializations = 0
        self.quit_requested = False

    def _next_intent(self) -> CommandIntent:
        if self._intents is None:
            return HOVER
        return next(self._intents, HOVER)

    def _send(self, intent: CommandIntent):
        if self.sink is None:
            return
        try:
            self.sink.send(intent)
        except Exception as e:
            # fire-and-forget
            logger.warning("Command %s not delivered: %s", intent, e)

    def tick(self) -> Optional[np.ndarray]:
        """
        Process one telemetry sample.

        Returns:
            The position estimate, or None when the sample was skipped or the
            estimator was reinitialised.

        Raises:
            StopIteration: the source is closed.
        """
        sample = self.source.read()
        if sample is None:
            raise StopIteration

        position = None
        try:
            position = self.fusion.step(sample)
        except NonFiniteInput as e:
            if not self.skip_non_finite:
                raise
            self.skipped += 1
            logger.warning("Skipping telemetry sample at t=%.3f: %s", sample.timestamp, e)
        except SingularCovariance as e:
            if not self.reinitialize_on_singular:
                raise
            logger.error("Estimator diverged at t=%.3f (%s), reinitialising", sample.timestamp, e)
            self.fusion.reset()
            self.segment += 1
            self.reinitializations += 1

        if position is not None:
            self.trajectory.append(TrajectoryPoint(
                time=float(sample.timestamp),
                x=float(position[0]),
                y=float(position[1]),
                z=float(position[2]),
                altitude=float(sample.altitude),
                battery=sample.battery,
                segment=self.segment,
            ))
            if self.on_estimate is not None:
                self.on_estimate(sample, position)

        intent = self._next_intent()
        if intent.quit:
            self.quit_requested = True
        else:
            self._send(intent)
        return position

    def run(self, max_ticks: Optional[int] = None) -> pd.DataFrame:
        """
        Loop until the source closes, a quit intent arrives or ``max_ticks``
        samples were read. Returns the trajectory table.
        """
        ticks = 0
        logger.info("Flight session started (%s)", self.source.mode.value)
        try:
            while max_ticks is None or ticks < max_ticks:
                try:
                    self.tick()
                except StopIteration:
                    break
                ticks += 1
                if self.quit_requested:
                    logger.info("Quit requested")
                    break
        finally:
            self.source.close()
        logger.info(
            "Flight session ended: %d ticks, %d estimates, %d skipped, %d reinitialisations",
            ticks, len(self.trajectory), self.skipped, self.reinitializations,
        )
        return self.trajectory_frame()

    def trajectory_frame(self) -> pd.DataFrame:
        columns = ["time", "x", "y", "z", "altitude", "battery", "segment"]
        return pd.DataFrame([vars(p) for p in self.trajectory], columns=columns)
