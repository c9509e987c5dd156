"""Vehicle link package.

Most client code should import conveniently from here rather than diving into
individual submodules. The sensor channel models are in ``sensor_framework.py``,
the telemetry sources / command sinks are in ``craft.py`` and the key bindings
are in ``commands.py``.

Example::

    from dead_reckoning.sensors import SimulatedCraft, intent_from_key

"""

# re-export commonly used classes from submodules

from .sensor_framework import (
    SensorMode,
    SensorSpec,
    BaseSensor,
    SimulatedSensor,
)

from .commands import (
    CommandIntent,
    HOVER,
    intent_from_key,
)

from .craft import (
    TelemetrySource,
    CommandSink,
    SimulatedCraft,
    LogPlaybackCraft,
    flight_plan,
)

__all__ = [
    # sensor channels
    "SensorMode",
    "SensorSpec",
    "BaseSensor",
    "SimulatedSensor",
    # commands
    "CommandIntent",
    "HOVER",
    "intent_from_key",
    # vehicle link
    "TelemetrySource",
    "CommandSink",
    "SimulatedCraft",
    "LogPlaybackCraft",
    "flight_plan",
]
