"""Sensor stream helpers and recorded trace I/O."""

from gasketcheck.sensors.streams import (
    MotionGate,
    MotionSample,
    downsample,
    gate_pressure,
)
from gasketcheck.sensors.trace import (
    TraceFormatError,
    load_motion,
    load_trace,
    save_trace,
)

__all__ = [
    "MotionGate",
    "MotionSample",
    "TraceFormatError",
    "downsample",
    "gate_pressure",
    "load_motion",
    "load_trace",
    "save_trace",
]
