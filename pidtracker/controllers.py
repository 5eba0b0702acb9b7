"""
Control Systems for the Sensor Array Tracker

This module provides the control law used by the tracking loop:
- PIDController: one-axis proportional-integral-derivative controller
- GainTuner: operator-driven gain stepping shared across both axes
- clamp_time_step: the non-positive time step guard used by every integrator

Key concepts demonstrated:
- PID control theory
- Integral accumulation and derivative estimation from sampled errors
- Retuning a running controller without resetting its state
"""

import math
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple
from .config import CONTROLLER_CONFIG, SIMULATION_SETTINGS

logger = logging.getLogger(__name__)

MIN_TIME_STEP: float = SIMULATION_SETTINGS["min_time_step"]

GAIN_ALIASES: Dict[str, str] = {
    "p": "p", "kp": "p",
    "i": "i", "ki": "i",
    "d": "d", "kd": "d",
}


def clamp_time_step(dt: float, minimum: float = MIN_TIME_STEP) -> float:
    """
    Return a time step safe to divide by.

    Zero and negative steps (a frame clock that has not advanced) are
    replaced by `minimum`; any positive step passes through unchanged, however
    small. NaN and infinite steps are caller errors.
    """
    if not math.isfinite(dt):
        raise ValueError(f"time step must be finite, got {dt}")
    if dt <= 0:
        logger.debug("clamping time step %.6g to %.6g", dt, minimum)
        return minimum
    return dt


def canonical_gain_name(gain: str) -> str:
    try:
        return GAIN_ALIASES[gain.lower()]
    except (KeyError, AttributeError):
        raise ValueError(f"Unknown gain: {gain!r} (expected one of p, i, d)") from None


@dataclass(frozen=True)
class PIDState:
    """Read-only view of a controller for display"""
    p: float
    i: float
    d: float
    integral: float
    last_error: float
    derivative: float
    output: float


class PIDController:
    """
    Single-axis PID controller.

    Every update accumulates error * dt into the integral and estimates the
    derivative from the previous error:

        integral  += error * dt
        derivative = (error - last_error) / dt
        output     = p * error + i * integral + d * derivative

    The gains are plain attributes and may be changed between updates;
    integral and last_error are only cleared by reset().
    """

    def __init__(self, p: float, i: float, d: float, name: str = "pid",
                 min_time_step: float = MIN_TIME_STEP, allow_negative_gains: bool = False):
        if not math.isfinite(min_time_step) or min_time_step <= 0:
            raise ValueError(f"min_time_step must be positive, got {min_time_step}")
        self.name = name
        self.min_time_step = min_time_step
        self.allow_negative_gains = allow_negative_gains

        self.p, self.i, self.d = self._validate_gains(p, i, d)

        # Internal state
        self.integral = 0.0
        self.last_error = 0.0
        self.last_derivative = 0.0
        self.last_output = 0.0

    def _validate_gains(self, p: float, i: float, d: float) -> Tuple[float, float, float]:
        gains = (float(p), float(i), float(d))
        for label, value in zip("pid", gains):
            if not math.isfinite(value):
                raise ValueError(f"{self.name}: gain {label} must be finite, got {value}")
            if value < 0 and not self.allow_negative_gains:
                raise ValueError(f"{self.name}: gain {label} must be >= 0, got {value}")
        return gains

    def update(self, error: float, dt: float) -> float:
        """Feed one error sample and return the control output"""
        if not math.isfinite(error):
            raise ValueError(f"{self.name}: error must be finite, got {error}")
        dt = clamp_time_step(dt, self.min_time_step)

        self.integral += error * dt
        derivative = (error - self.last_error) / dt
        self.last_error = error

        output = self.p * error + self.i * self.integral + self.d * derivative
        self.last_derivative = derivative
        self.last_output = output
        return output

    def set_gains(self, p: Optional[float] = None, i: Optional[float] = None,
                  d: Optional[float] = None):
        """Replace some or all gains in one step, keeping integral and last error"""
        new_gains = self._validate_gains(
            self.p if p is None else p,
            self.i if i is None else i,
            self.d if d is None else d,
        )
        self.p, self.i, self.d = new_gains

    def gains(self) -> Tuple[float, float, float]:
        return (self.p, self.i, self.d)

    def reset(self):
        """Clear the integral and derivative history"""
        self.integral = 0.0
        self.last_error = 0.0
        self.last_derivative = 0.0
        self.last_output = 0.0
        logger.info("%s: controller state reset", self.name)

    def state(self) -> PIDState:
        return PIDState(self.p, self.i, self.d, self.integral, self.last_error,
                        self.last_derivative, self.last_output)

    def __repr__(self):
        return f"PIDController({self.name!r}, p={self.p:.2f}, i={self.i:.2f}, d={self.d:.2f})"


class GainTuner:
    """
    Steps gains up or down on a group of controllers at once.

    Mirrors an operator panel where each click nudges one gain by a fixed
    step on both axes. Gains stop at zero unless negative gains are allowed.
    """

    def __init__(self, controllers: Iterable[PIDController], step: Optional[float] = None,
                 allow_negative: Optional[bool] = None):
        self.controllers: List[PIDController] = list(controllers)
        if not self.controllers:
            raise ValueError("GainTuner needs at least one controller")
        self.step = CONTROLLER_CONFIG["gain_step"] if step is None else step
        if not math.isfinite(self.step) or self.step <= 0:
            raise ValueError(f"gain step must be positive, got {self.step}")
        if allow_negative is None:
            allow_negative = CONTROLLER_CONFIG["allow_negative_gains"]
        self.allow_negative = allow_negative

    def adjust(self, gain: str, delta: float) -> Tuple[float, float, float]:
        """Add delta to one gain on every controller and return the first controller's gains"""
        name = canonical_gain_name(gain)
        for controller in self.controllers:
            value = round(getattr(controller, name) + delta, 10)
            if value < 0 and not (self.allow_negative and controller.allow_negative_gains):
                value = 0.0
            controller.set_gains(**{name: value})
        gains = self.gains()
        logger.info("gain %s stepped by %+.2f: p=%.2f, i=%.2f, d=%.2f", name, delta, *gains)
        return gains

    def increment(self, gain: str) -> Tuple[float, float, float]:
        return self.adjust(gain, self.step)

    def decrement(self, gain: str) -> Tuple[float, float, float]:
        return self.adjust(gain, -self.step)

    def gains(self) -> Tuple[float, float, float]:
        return self.controllers[0].gains()
