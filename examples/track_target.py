"""
Sensor Array Tracking - Headless Demo

This example runs the tracking loop without a window and prints what an
on-screen readout would show.

Run this to see:
- The array closing in on a static target
- The array chasing a target moving in a circle
- Operator gain steps applied mid-run without resetting the controllers
"""

import logging
import sys
import os

# Add parent directory to Python path so the package imports without installing
current_dir = os.path.dirname(os.path.abspath(__file__))
parent_dir = os.path.dirname(current_dir)
sys.path.insert(0, parent_dir)

from pidtracker import (
    Vector2D, CircularTarget, StaticTarget, TrackingSimulation, create_control_loop, get_logger
)
from pidtracker.config import SIMULATION_SETTINGS

CENTER = Vector2D(540, 360)
STEPS = 600
TIME_STEP = SIMULATION_SETTINGS["time_step"]


def print_instructions():
    """Prints what the demo is about to do."""
    print("Sensor Array Tracker - Headless Demo")
    print("Phases:")
    print(f"  1: Static target 100 units below the array ({STEPS} frames)")
    print(f"  2: Circular target, radius 150 ({STEPS} frames)")
    print("  Gains are stepped up halfway through phase 2")


def print_readout(simulation: TrackingSimulation, title: str):
    print(f"\n{title}")
    for label, value in simulation.debug_info().items():
        print(f"  {label}: {value}")


def main():
    """Runs both tracking phases and prints a summary of each."""
    get_logger(level=logging.INFO)
    print_instructions()

    simulation = TrackingSimulation(
        loop=create_control_loop(CENTER),
        target=StaticTarget(CENTER + Vector2D(0, 100)),
        fixed_time_step=TIME_STEP,
    )
    simulation.run(STEPS)
    print_readout(simulation, "Static target")
    print(f"  Distance to target: {simulation.loop.distance_to(simulation.last_result.target):.2f}")

    simulation.reset(CENTER)
    simulation.target = CircularTarget(CENTER, radius=150.0, angular_speed=0.3)
    simulation.run(STEPS // 2)
    for gain in ("p", "p", "d"):
        simulation.tune(gain, +1)
    simulation.run(STEPS - STEPS // 2)
    print_readout(simulation, "Circular target")

    error_x = simulation.recorder["error_x"]
    error_y = simulation.recorder["error_y"]
    print(f"\nError X range: [{error_x.min_value:.2f}, {error_x.max_value:.2f}]")
    print(f"Error Y range: [{error_y.min_value:.2f}, {error_y.max_value:.2f}]")
    print("Simulation ended.")


if __name__ == "__main__":
    main()
