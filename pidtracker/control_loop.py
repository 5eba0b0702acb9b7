"""
Closed-Loop Tracking for the Sensor Array Tracker

This module ties the sensing and control halves together:
- ControlLoop: one tick = sample sensors, update both PIDs, integrate motion
- TickResult: read-only snapshot handed to whatever displays the run

Key concepts:
- Strictly ordered pipeline (sense -> control -> integrate)
- Signal-strength dependent response scaling
- Retuning a live loop between ticks
"""

import math
import logging
from dataclasses import dataclass, field
from typing import Dict, Any, Optional
from .physics import Vector2D, require_finite_vector
from .sensors import SensorArray, create_default_sensor_array
from .controllers import PIDController, PIDState, GainTuner, clamp_time_step, MIN_TIME_STEP
from .config import CONTROLLER_CONFIG

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TickResult:
    """Everything one tick produced, for on-screen labels and telemetry"""
    tick: int
    dt: float
    target: Vector2D
    position: Vector2D
    velocity: Vector2D
    error_x: float
    error_y: float
    output_x: float
    output_y: float
    scale: float
    x_pid: PIDState
    y_pid: PIDState
    readings: Dict[str, float] = field(default_factory=dict)


class ControlLoop:
    """
    Drives a SensorArray towards a target with one PID controller per axis.

    Each tick runs, in order:
    1. (error_x, error_y) = sensor_array.sample(target)
    2. output = pid.update(error, dt) for x and y
    3. scale from the mean sensor reading, clamped to [min, max]
    4. velocity += scale * output * dt, position += velocity * dt

    The host supplies the target and dt every frame and reads the returned
    TickResult; stopping the loop is just not calling tick() again.
    Position and velocity are read from sensor_array.body, so moving the
    array between ticks moves the loop with it.
    """

    def __init__(self, sensor_array: SensorArray, x_pid: Optional[PIDController] = None,
                 y_pid: Optional[PIDController] = None, config: Dict[str, Any] = None):
        self.sensor_array = sensor_array

        # Load configuration
        self.config = config if config is not None else CONTROLLER_CONFIG
        self._load_config()

        self.x_pid = x_pid if x_pid is not None else self._create_pid("x")
        self.y_pid = y_pid if y_pid is not None else self._create_pid("y")
        self.tuner = GainTuner((self.x_pid, self.y_pid), self.gain_step, self.allow_negative_gains)

        self.tick_count = 0
        self.last_result: Optional[TickResult] = None

    def _load_config(self):
        """Load parameters from the configuration dictionary."""
        self.kp = self.config.get("kp", CONTROLLER_CONFIG["kp"])
        self.ki = self.config.get("ki", CONTROLLER_CONFIG["ki"])
        self.kd = self.config.get("kd", CONTROLLER_CONFIG["kd"])
        self.gain_step = self.config.get("gain_step", CONTROLLER_CONFIG["gain_step"])
        self.allow_negative_gains = self.config.get("allow_negative_gains",
                                                    CONTROLLER_CONFIG["allow_negative_gains"])
        self.min_time_step = self.config.get("min_time_step", MIN_TIME_STEP)

        # Response scale
        self.use_response_scale = self.config.get("use_response_scale",
                                                  CONTROLLER_CONFIG["use_response_scale"])
        self.scale_min = self.config.get("response_scale_min", CONTROLLER_CONFIG["response_scale_min"])
        self.scale_max = self.config.get("response_scale_max", CONTROLLER_CONFIG["response_scale_max"])
        if not (math.isfinite(self.scale_min) and math.isfinite(self.scale_max)):
            raise ValueError("response scale bounds must be finite")
        if self.scale_min <= 0 or self.scale_min > self.scale_max:
            raise ValueError(
                f"response scale bounds must satisfy 0 < min <= max, got [{self.scale_min}, {self.scale_max}]"
            )

    def _create_pid(self, axis: str) -> PIDController:
        return PIDController(self.kp, self.ki, self.kd, name=f"{axis}_pid",
                             min_time_step=self.min_time_step,
                             allow_negative_gains=self.allow_negative_gains)

    @property
    def position(self) -> Vector2D:
        return self.sensor_array.position

    @property
    def velocity(self) -> Vector2D:
        return self.sensor_array.body.velocity

    def response_scale(self) -> float:
        """
        Velocity scale tied to signal strength.

        Weak readings (target far away) raise the scale, strong readings keep
        it at the lower bound. An array that has not sampled yet reports 1.
        """
        if not self.use_response_scale:
            return 1.0
        average = self.sensor_array.average_reading()
        raw_scale = 1.0 if average == 0 else 0.01 / average + 0.08
        logger.debug("scale before constraining: %.4f", raw_scale)
        return max(self.scale_min, min(self.scale_max, raw_scale))

    def tick(self, target: Vector2D, dt: float) -> TickResult:
        """Advance the loop by one frame towards `target`"""
        require_finite_vector("target", target)
        dt = clamp_time_step(dt, self.min_time_step)
        logger.debug("tick %d: dt=%.4f fps=%.1f", self.tick_count, dt, 1.0 / dt)

        error_x, error_y = self.sensor_array.sample(target)

        output_x = self.x_pid.update(error_x, dt)
        output_y = self.y_pid.update(error_y, dt)

        scale = self.response_scale()
        self.sensor_array.body.integrate(Vector2D(output_x, output_y) * scale, dt)

        self.tick_count += 1
        self.last_result = TickResult(
            tick=self.tick_count,
            dt=dt,
            target=target,
            position=self.position,
            velocity=self.velocity,
            error_x=error_x,
            error_y=error_y,
            output_x=output_x,
            output_y=output_y,
            scale=scale,
            x_pid=self.x_pid.state(),
            y_pid=self.y_pid.state(),
            readings=self.sensor_array.get_all_readings(),
        )
        return self.last_result

    def set_gains(self, p: Optional[float] = None, i: Optional[float] = None,
                  d: Optional[float] = None):
        """Retune both axes without touching their integrators"""
        self.x_pid.set_gains(p, i, d)
        self.y_pid.set_gains(p, i, d)
        logger.info("gains set to p=%.2f, i=%.2f, d=%.2f", *self.x_pid.gains())

    def reset(self, position: Optional[Vector2D] = None):
        """Stop the array, optionally move it, and clear both controllers"""
        self.sensor_array.body.teleport(self.position if position is None else position)
        self.x_pid.reset()
        self.y_pid.reset()
        self.tick_count = 0
        self.last_result = None

    def distance_to(self, target: Vector2D) -> float:
        return (target - self.position).magnitude()

    def __repr__(self):
        pos = self.position
        return f"ControlLoop(pos=({pos.x:.1f}, {pos.y:.1f}), tick={self.tick_count})"


def create_control_loop(position: Optional[Vector2D] = None,
                        sensor_config: Dict[str, Any] = None,
                        controller_config: Dict[str, Any] = None) -> ControlLoop:
    """Build a sensor array and its control loop from configuration dictionaries"""
    sensor_array = create_default_sensor_array(position, sensor_config)
    return ControlLoop(sensor_array, config=controller_config)
