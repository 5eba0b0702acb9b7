"""
Simulation Host for the Sensor Array Tracker

This module provides everything a frame loop needs around the ControlLoop:
- FrameClock: wall-clock time steps with a first-tick guard
- Target providers: static, circular and waypoint-hopping targets
- TrackingSimulation: owns the loop, the clock, the target and telemetry

The core never looks at windows, input devices or drawing; a host (pygame
window, notebook, test) calls step() and reads the TickResult it returns.
"""

import math
import time
import logging
from typing import Callable, Dict, Any, List, Optional, Sequence
from .physics import Vector2D
from .control_loop import ControlLoop, TickResult, create_control_loop
from .controllers import canonical_gain_name, clamp_time_step, MIN_TIME_STEP
from .telemetry import TelemetryRecorder
from .config import SIMULATION_SETTINGS

logger = logging.getLogger(__name__)


class FrameClock:
    """
    Measures the time between frames.

    The first tick has no previous timestamp, so it reports the minimum time
    step instead of the time since the clock's epoch. Ticks that arrive
    before the clock has advanced are clamped the same way.
    """

    def __init__(self, time_source: Callable[[], float] = time.perf_counter,
                 min_time_step: float = MIN_TIME_STEP):
        self.time_source = time_source
        self.min_time_step = min_time_step
        self.last_update: Optional[float] = None
        self.last_dt = min_time_step

    def tick(self) -> float:
        now = self.time_source()
        if self.last_update is None:
            dt = self.min_time_step
        else:
            dt = clamp_time_step(now - self.last_update, self.min_time_step)
        self.last_update = now
        self.last_dt = dt
        return dt

    @property
    def fps(self) -> float:
        return 1.0 / self.last_dt

    def reset(self):
        self.last_update = None
        self.last_dt = self.min_time_step


# --- Target providers ---
# A target provider maps elapsed simulation time (seconds) to a target position.

class StaticTarget:
    """Target that never moves"""

    def __init__(self, position: Vector2D):
        self.position = position

    def __call__(self, elapsed: float) -> Vector2D:
        return self.position


class CircularTarget:
    """Target orbiting a center point at constant angular speed"""

    def __init__(self, center: Vector2D, radius: float, angular_speed: float = 1.0,
                 phase: float = 0.0):
        if radius < 0:
            raise ValueError(f"radius must be >= 0, got {radius}")
        self.center = center
        self.radius = radius
        self.angular_speed = angular_speed
        self.phase = phase

    def __call__(self, elapsed: float) -> Vector2D:
        angle = self.phase + self.angular_speed * elapsed
        return self.center + Vector2D(math.cos(angle), math.sin(angle)) * self.radius


class WaypointTarget:
    """Target that jumps between waypoints, holding each one for `dwell` seconds"""

    def __init__(self, waypoints: Sequence[Vector2D], dwell: float = 2.0, loop: bool = True):
        if not waypoints:
            raise ValueError("WaypointTarget needs at least one waypoint")
        if dwell <= 0:
            raise ValueError(f"dwell must be positive, got {dwell}")
        self.waypoints = list(waypoints)
        self.dwell = dwell
        self.loop = loop

    def __call__(self, elapsed: float) -> Vector2D:
        index = int(max(0.0, elapsed) // self.dwell)
        if self.loop:
            index %= len(self.waypoints)
        else:
            index = min(index, len(self.waypoints) - 1)
        return self.waypoints[index]


class TrackingSimulation:
    """
    Encapsulates one tracking session: the control loop, its time source,
    the target and the recorded telemetry.

    With `fixed_time_step` set the simulation advances by that step every
    frame (headless runs, tests); otherwise the FrameClock measures real time.
    """

    def __init__(self, loop: Optional[ControlLoop] = None,
                 target: Optional[Callable[[float], Vector2D]] = None,
                 fixed_time_step: Optional[float] = None,
                 clock: Optional[FrameClock] = None,
                 recorder: Optional[TelemetryRecorder] = None,
                 config: Dict[str, Any] = None):
        self.config = config if config is not None else SIMULATION_SETTINGS

        self.loop = loop if loop is not None else create_control_loop()
        if target is None:
            target = StaticTarget(self.loop.position)
        self.target = target
        if fixed_time_step is not None and (not math.isfinite(fixed_time_step) or fixed_time_step <= 0):
            raise ValueError(f"fixed_time_step must be positive, got {fixed_time_step}")
        self.fixed_time_step = fixed_time_step
        self.clock = clock if clock is not None else FrameClock(
            min_time_step=self.config.get("min_time_step", MIN_TIME_STEP)
        )
        self.recorder = recorder if recorder is not None else TelemetryRecorder()

        self.elapsed = 0.0
        self.running = False
        self.last_result: Optional[TickResult] = None

    def _next_time_step(self) -> float:
        if self.fixed_time_step is not None:
            return self.fixed_time_step
        return self.clock.tick()

    def step(self, target: Optional[Vector2D] = None) -> TickResult:
        """Advance one frame; uses the target provider unless a target is given"""
        dt = self._next_time_step()
        if target is None:
            target = self.target(self.elapsed)
        result = self.loop.tick(target, dt)
        self.elapsed += result.dt
        self.recorder.record(result)
        self.last_result = result
        return result

    def run(self, steps: int, on_tick: Optional[Callable[[TickResult], None]] = None) -> List[TickResult]:
        """Run a fixed number of frames and return their results"""
        if steps < 0:
            raise ValueError(f"steps must be >= 0, got {steps}")
        self.running = True
        logger.info("running %d steps from %r", steps, self.loop.position)
        results = []
        try:
            for _ in range(steps):
                if not self.running:
                    break
                result = self.step()
                results.append(result)
                if on_tick is not None:
                    on_tick(result)
        finally:
            self.running = False
        logger.info("simulation stopped after %.2fs at %r", self.elapsed, self.loop.position)
        return results

    def stop(self):
        """Ask run() to return after the current frame"""
        self.running = False

    def tune(self, gain: str, direction: int):
        """Operator gain command: direction > 0 steps up, < 0 steps down"""
        canonical_gain_name(gain)
        if direction > 0:
            return self.loop.tuner.increment(gain)
        if direction < 0:
            return self.loop.tuner.decrement(gain)
        return self.loop.tuner.gains()

    def reset(self, position: Optional[Vector2D] = None):
        self.loop.reset(position)
        self.clock.reset()
        self.recorder.reset()
        self.elapsed = 0.0
        self.last_result = None

    def debug_info(self) -> Dict[str, str]:
        """Formatted labels for an on-screen readout of the last frame"""
        result = self.last_result
        if result is None:
            return {"Status": "Not started"}
        return {
            "Target X": f"{result.target.x:.1f}",
            "Target Y": f"{result.target.y:.1f}",
            "Sensor X": f"{result.position.x:.1f}",
            "Sensor Y": f"{result.position.y:.1f}",
            "Velocity X": f"{result.velocity.x:.2f}",
            "Velocity Y": f"{result.velocity.y:.2f}",
            "Error X": f"{result.error_x:.3f}",
            "Error Y": f"{result.error_y:.3f}",
            "Integral X": f"{result.x_pid.integral:.3f}",
            "Integral Y": f"{result.y_pid.integral:.3f}",
            "Derivative X": f"{result.x_pid.derivative:.3f}",
            "Derivative Y": f"{result.y_pid.derivative:.3f}",
            "k_proportional": f"{result.x_pid.p:.2f}",
            "k_integral": f"{result.x_pid.i:.2f}",
            "k_derivative": f"{result.x_pid.d:.2f}",
            "FPS": f"{1.0 / result.dt:.1f}",
        }
