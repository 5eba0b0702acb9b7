"""
pidtracker - a four-sensor array tracking a moving target with two PID loops.
"""

from .physics import Vector2D, PointMass
from .sensors import SensorModel, ProximitySensor, SensorArray, create_default_sensor_array
from .controllers import PIDController, PIDState, GainTuner, clamp_time_step, MIN_TIME_STEP
from .control_loop import ControlLoop, TickResult, create_control_loop
from .telemetry import TelemetrySeries, TelemetryRecorder
from .simulation import FrameClock, StaticTarget, CircularTarget, WaypointTarget, TrackingSimulation
from .logger import get_logger

__version__ = "0.1.0"

__all__ = [
    "Vector2D", "PointMass",
    "SensorModel", "ProximitySensor", "SensorArray", "create_default_sensor_array",
    "PIDController", "PIDState", "GainTuner", "clamp_time_step", "MIN_TIME_STEP",
    "ControlLoop", "TickResult", "create_control_loop",
    "TelemetrySeries", "TelemetryRecorder",
    "FrameClock", "StaticTarget", "CircularTarget", "WaypointTarget", "TrackingSimulation",
    "get_logger",
]
