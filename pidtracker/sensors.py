"""
Sensor System for the Sensor Array Tracker

This module provides the sensing half of the control loop:
- SensorModel: inverse-distance signal law with optional measurement jitter
- ProximitySensor: one point sensor mounted at a fixed direction from center
- SensorArray: four sensors in a cross, reduced to two signed axis errors

Key concepts:
- Differential sensing (opposite sensors cancel common-mode signal)
- Sensor noise and uncertainty
- Derived geometry (sensor positions are never stored, only computed)
"""

import math
import random
import logging
import numpy as np
from typing import Dict, Optional, Tuple, Any
from .physics import Vector2D, PointMass, require_finite_vector
from .config import SENSOR_CONFIG, SIMULATION_SETTINGS

logger = logging.getLogger(__name__)


class SensorModel:
    """
    Maps the distance between a sensor and the target to a signal strength.

    signal(d) = scale / (d + scale), so the reading is 1.0 on top of the
    target and falls off towards 0 far away, always staying in (0, 1].
    """

    def __init__(self, scale: float = 100.0, noise_amplitude: float = 0.005,
                 seed: Optional[int] = None):
        if not math.isfinite(scale) or scale <= 0:
            raise ValueError(f"signal scale must be a positive finite number, got {scale}")
        if not math.isfinite(noise_amplitude) or noise_amplitude < 0:
            raise ValueError(f"noise amplitude must be finite and >= 0, got {noise_amplitude}")
        self.scale = float(scale)
        self.noise_amplitude = float(noise_amplitude)
        self._rng = random.Random(seed)

    def signal(self, distance: float) -> float:
        """Signal strength at a raw (non-squared) distance"""
        if math.isnan(distance) or distance < 0:
            raise ValueError(f"distance must be >= 0, got {distance}")
        return self.scale / (distance + self.scale)

    def signal_squared(self, distance_sq: float) -> float:
        """Signal strength for callers that already hold a squared distance"""
        if math.isnan(distance_sq) or distance_sq < 0:
            raise ValueError(f"squared distance must be >= 0, got {distance_sq}")
        return self.signal(math.sqrt(distance_sq))

    def signal_field(self, distances: Any) -> np.ndarray:
        """Vectorized signal law over an array of raw distances"""
        distances = np.asarray(distances, dtype=float)
        if np.isnan(distances).any() or (distances < 0).any():
            raise ValueError("distances must all be >= 0")
        return self.scale / (distances + self.scale)

    def noisy(self, value: float) -> float:
        """Add bounded uniform jitter to a value"""
        if self.noise_amplitude == 0:
            return value
        return value + self._rng.uniform(-self.noise_amplitude, self.noise_amplitude)


class ProximitySensor:
    """A point sensor sitting `offset` away from the array center along `direction`"""

    def __init__(self, name: str, direction: Vector2D):
        self.name = name
        self.direction = direction.normalize()
        self.last_reading = None

    def get_absolute_position(self, array_position: Vector2D, offset: float) -> Vector2D:
        """Calculate absolute sensor position from the array pose"""
        return array_position + self.direction * offset

    def update(self, array_position: Vector2D, offset: float, target: Vector2D,
               model: SensorModel) -> float:
        """Update sensor and return reading"""
        displacement = target - self.get_absolute_position(array_position, offset)
        reading = model.signal_squared(displacement.magnitude_squared())
        self.last_reading = reading
        return reading

    def __repr__(self):
        return f"ProximitySensor({self.name!r}, direction={self.direction!r})"


# Cross layout, listed clockwise from the top. Screen coordinates: +y points down.
SENSOR_LAYOUT: Tuple[Tuple[str, Vector2D], ...] = (
    ("top", Vector2D(0.0, -1.0)),
    ("right", Vector2D(1.0, 0.0)),
    ("bottom", Vector2D(0.0, 1.0)),
    ("left", Vector2D(-1.0, 0.0)),
)


class SensorArray:
    """
    Four proximity sensors arranged in a cross around a movable center.

    Each call to sample() reads all four sensors against the target and
    reduces them into two axis errors:

        error_y =  K * (bottom - top)
        error_x = -K * (left - right)

    A target below the center gives a positive y error and a target to the
    right gives a positive x error, so both errors point the array towards
    the target in screen coordinates.

    The center lives on `body`, a PointMass, so the control loop integrates
    the same position that sample() reads from.
    """

    def __init__(self, position: Vector2D, offset: Optional[float] = None,
                 model: Optional[SensorModel] = None, config: Dict[str, Any] = None):
        self.config = config if config is not None else SENSOR_CONFIG
        self._load_config()

        self.body = PointMass(position)
        self._offset = self._validate_offset(self.default_offset if offset is None else offset)

        self.model = model if model is not None else SensorModel(
            self.signal_scale, self.noise_amplitude, self.noise_seed
        )
        self.sensors: Dict[str, ProximitySensor] = {
            name: ProximitySensor(name, direction) for name, direction in SENSOR_LAYOUT
        }
        self.readings: Dict[str, float] = {}

    def _load_config(self):
        """Load parameters from the configuration dictionary."""
        self.default_offset = self.config.get("offset", SENSOR_CONFIG["offset"])
        self.error_gain = self.config.get("error_gain", SENSOR_CONFIG["error_gain"])
        self.signal_scale = self.config.get("signal_scale", SENSOR_CONFIG["signal_scale"])
        self.noise_enabled = self.config.get("noise_enabled", SENSOR_CONFIG["noise_enabled"])
        self.noise_amplitude = self.config.get("noise_amplitude", SENSOR_CONFIG["noise_amplitude"])
        self.noise_seed = self.config.get("noise_seed", SENSOR_CONFIG["noise_seed"])

    @staticmethod
    def _validate_offset(offset: float) -> float:
        offset = float(offset)
        if not math.isfinite(offset) or offset < 0:
            raise ValueError(f"sensor offset must be a finite number >= 0, got {offset}")
        return offset

    @property
    def position(self) -> Vector2D:
        return self.body.position

    @position.setter
    def position(self, value: Vector2D):
        self.body.position = require_finite_vector("position", value)

    @property
    def offset(self) -> float:
        return self._offset

    @offset.setter
    def offset(self, value: float):
        self._offset = self._validate_offset(value)

    def sensor_positions(self) -> Dict[str, Vector2D]:
        """Absolute position of every sensor, derived from center and offset"""
        return {
            name: sensor.get_absolute_position(self.body.position, self._offset)
            for name, sensor in self.sensors.items()
        }

    def read_all(self, target: Vector2D) -> Dict[str, float]:
        """Read all four sensors against the target and store the readings"""
        require_finite_vector("target", target)
        for name, sensor in self.sensors.items():
            self.readings[name] = sensor.update(self.body.position, self._offset, target, self.model)
        return self.get_all_readings()

    def sample(self, target: Vector2D) -> Tuple[float, float]:
        """Sample the sensors and return (error_x, error_y)"""
        readings = self.read_all(target)

        vertical = readings["bottom"] - readings["top"]
        horizontal = readings["left"] - readings["right"]
        if self.noise_enabled:
            vertical = self.model.noisy(vertical)
            horizontal = self.model.noisy(horizontal)

        error_y = self.error_gain * vertical
        error_x = -self.error_gain * horizontal
        return error_x, error_y

    def get_reading(self, sensor_name: str) -> Optional[float]:
        """Get the latest reading from a specific sensor"""
        return self.readings.get(sensor_name)

    def get_all_readings(self) -> Dict[str, float]:
        """Get all sensor readings"""
        return self.readings.copy()

    def average_reading(self) -> float:
        """Mean of the most recent readings, 0.0 before the first sample"""
        if not self.readings:
            return 0.0
        return sum(self.readings.values()) / len(self.readings)

    def __repr__(self):
        return f"SensorArray(pos=({self.body.position.x:.1f}, {self.body.position.y:.1f}), offset={self._offset:.1f})"


def create_default_sensor_array(position: Optional[Vector2D] = None,
                                config: Dict[str, Any] = None) -> SensorArray:
    """Create a sensor array centered in the default world"""
    if position is None:
        position = Vector2D(SIMULATION_SETTINGS["world_width"] / 2,
                            SIMULATION_SETTINGS["world_height"] / 2)
    sensor_array = SensorArray(position, config=config)
    logger.debug("created %r", sensor_array)
    return sensor_array
