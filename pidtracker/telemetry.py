"""
Telemetry recording for tracking runs.

A TelemetrySeries keeps one channel of values together with its running
limits, which is all a plotting layer needs to scale an axis. The
TelemetryRecorder fans a TickResult out into the standard channels.
"""

import logging
import numpy as np
from collections import deque
from typing import Dict, Iterable, Optional, Any
from .config import TELEMETRY_CONFIG

logger = logging.getLogger(__name__)

STANDARD_CHANNELS = (
    "error_x", "error_y",
    "position_x", "position_y",
    "velocity_x", "velocity_y",
    "output_x", "output_y",
    "integral_x", "integral_y",
    "scale",
)


class TelemetrySeries:
    """
    One named channel of samples with running min/max.

    The limits cover everything appended since the last reset, including
    samples already dropped by a bounded buffer.
    """

    def __init__(self, name: str, max_samples: Optional[int] = None):
        if max_samples is not None and max_samples <= 0:
            raise ValueError(f"max_samples must be positive, got {max_samples}")
        self.name = name
        self.max_samples = max_samples
        self.values = deque(maxlen=max_samples)
        self.min_value: Optional[float] = None
        self.max_value: Optional[float] = None
        self.limits_changed = False

    def append(self, value: float) -> bool:
        """Add a sample; returns True when it moved the min or max"""
        value = float(value)
        self.values.append(value)

        self.limits_changed = False
        if self.min_value is None or value < self.min_value:
            self.min_value = value
            self.limits_changed = True
        if self.max_value is None or value > self.max_value:
            self.max_value = value
            self.limits_changed = True
        return self.limits_changed

    def get_value(self, index: int) -> float:
        if 0 <= index < len(self.values):
            return self.values[index]
        return 0.0

    def value_range(self) -> float:
        """Spread between the limits, 1.0 when flat or empty so callers can divide by it"""
        if self.min_value is None or self.max_value == self.min_value:
            return 1.0
        return self.max_value - self.min_value

    def reset(self):
        self.values.clear()
        self.min_value = None
        self.max_value = None
        self.limits_changed = True

    def as_array(self) -> np.ndarray:
        return np.fromiter(self.values, dtype=float, count=len(self.values))

    def __len__(self):
        return len(self.values)

    def __repr__(self):
        return f"TelemetrySeries({self.name!r}, samples={len(self.values)})"


class TelemetryRecorder:
    """Collects TickResults into per-channel series"""

    def __init__(self, channels: Iterable[str] = STANDARD_CHANNELS,
                 config: Dict[str, Any] = None):
        self.config = config if config is not None else TELEMETRY_CONFIG
        max_samples = self.config.get("max_samples", TELEMETRY_CONFIG["max_samples"])
        channels = list(channels)
        for name in channels:
            if name not in STANDARD_CHANNELS:
                raise ValueError(f"Unknown telemetry channel: {name}")
        self.series: Dict[str, TelemetrySeries] = {
            name: TelemetrySeries(name, max_samples) for name in channels
        }

    @staticmethod
    def _extract(result) -> Dict[str, float]:
        return {
            "error_x": result.error_x,
            "error_y": result.error_y,
            "position_x": result.position.x,
            "position_y": result.position.y,
            "velocity_x": result.velocity.x,
            "velocity_y": result.velocity.y,
            "output_x": result.output_x,
            "output_y": result.output_y,
            "integral_x": result.x_pid.integral,
            "integral_y": result.y_pid.integral,
            "scale": result.scale,
        }

    def record(self, result):
        values = self._extract(result)
        for name, series in self.series.items():
            series.append(values[name])

    def __getitem__(self, name: str) -> TelemetrySeries:
        return self.series[name]

    def reset(self):
        for series in self.series.values():
            series.reset()
        logger.debug("telemetry cleared")

    def summary(self) -> Dict[str, Dict[str, float]]:
        """Min, max and last value per channel"""
        report = {}
        for name, series in self.series.items():
            if not len(series):
                continue
            report[name] = {
                "min": series.min_value,
                "max": series.max_value,
                "last": series.get_value(len(series) - 1),
            }
        return report

    def to_array(self) -> np.ndarray:
        """Stack all channels into a (samples, channels) array"""
        columns = [series.as_array() for series in self.series.values()]
        if not columns or not len(columns[0]):
            return np.empty((0, len(columns)))
        return np.column_stack(columns)
