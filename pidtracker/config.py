"""
Centralized Configuration for the Sensor Array Tracker

This file contains all the tunable parameters for the tracking simulation,
allowing for easy adjustments to the array's behavior without modifying the
core logic.

By centralizing these settings, we can:
- Quickly experiment with different tuning profiles.
- Switch between the raw and noisy sensor models.
- Keep constants out of the control loop implementation.

Tuning constants are never persisted; edit this file or pass a dictionary to
the constructors to override them.
"""

from typing import Dict, Any

# --- Simulation-Wide Settings ---
SIMULATION_SETTINGS: Dict[str, Any] = {
    "time_step": 1.0 / 60.0,   # Frame step for headless runs (60 FPS)
    "min_time_step": 1e-3,     # Stand-in for a zero or negative dt (1 ms tick)
    "world_width": 1080.0,
    "world_height": 720.0,
}

# --- Sensor Array Geometry & Signal Model ---
SENSOR_CONFIG: Dict[str, Any] = {
    "offset": 20.0,            # Distance from array center to each sensor
    "error_gain": 200.0,       # Scales the reading differential into an axis error
    "signal_scale": 100.0,     # Reading = scale / (distance + scale)
    "noise_enabled": False,    # Perturb the axis differential with uniform jitter
    "noise_amplitude": 0.005,  # +/- bound of the jitter (0.5% of the reading range)
    "noise_seed": None,        # Seed for the jitter generator (None = system entropy)
}

# --- PID Tuning Parameters ---
# The same gains are applied to the x and y controllers at startup.
CONTROLLER_CONFIG: Dict[str, Any] = {
    "kp": 0.25,                # Proportional gain
    "ki": 0.01,                # Integral gain
    "kd": 2.0,                 # Derivative gain
    "gain_step": 0.01,         # Increment used by operator tuning
    "allow_negative_gains": False,

    # --- Response Scale (signal-strength dependent velocity scaling) ---
    "use_response_scale": True,
    "response_scale_min": 1.0,
    "response_scale_max": 10e3,
}

# --- Telemetry ---
TELEMETRY_CONFIG: Dict[str, Any] = {
    "max_samples": None,       # Samples kept per series (None = unbounded)
}
