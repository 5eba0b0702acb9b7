import math

import numpy as np
import pytest

from pidtracker.physics import Vector2D
from pidtracker.simulation import (
    FrameClock, StaticTarget, CircularTarget, WaypointTarget, TrackingSimulation
)
from pidtracker.control_loop import create_control_loop
from pidtracker.controllers import MIN_TIME_STEP


def fake_time(values):
    iterator = iter(values)
    return lambda: next(iterator)


def test_frame_clock_guards_first_tick():
    clock = FrameClock(time_source=fake_time([100.0, 100.0, 100.5, 100.25]))
    assert clock.tick() == MIN_TIME_STEP
    assert clock.tick() == MIN_TIME_STEP
    assert clock.tick() == pytest.approx(0.5)
    assert clock.fps == pytest.approx(2.0)
    # clock went backwards
    assert clock.tick() == MIN_TIME_STEP


def test_frame_clock_reset():
    clock = FrameClock(time_source=fake_time([1.0, 2.0, 7.0]))
    clock.tick()
    clock.tick()
    clock.reset()
    assert clock.tick() == MIN_TIME_STEP


def test_target_providers():
    assert StaticTarget(Vector2D(1, 2))(12.0) == Vector2D(1, 2)

    circle = CircularTarget(Vector2D(0, 0), radius=10.0, angular_speed=math.pi)
    assert circle(0.0) == Vector2D(10.0, 0.0)
    half_turn = circle(1.0)
    assert half_turn.x == pytest.approx(-10.0)
    assert half_turn.y == pytest.approx(0.0, abs=1e-9)

    points = [Vector2D(0, 0), Vector2D(5, 5), Vector2D(9, 9)]
    hopping = WaypointTarget(points, dwell=2.0)
    assert hopping(0.0) == points[0]
    assert hopping(2.5) == points[1]
    assert hopping(6.1) == points[0]
    once = WaypointTarget(points, dwell=2.0, loop=False)
    assert once(100.0) == points[2]

    with pytest.raises(ValueError):
        WaypointTarget([], dwell=1.0)
    with pytest.raises(ValueError):
        CircularTarget(Vector2D(0, 0), radius=-1.0)


def test_fixed_step_run_records_telemetry():
    simulation = TrackingSimulation(
        loop=create_control_loop(Vector2D(540, 360)),
        target=StaticTarget(Vector2D(540, 460)),
        fixed_time_step=1.0 / 60.0,
    )
    seen = []
    results = simulation.run(10, on_tick=seen.append)
    assert len(results) == 10
    assert seen == results
    assert simulation.elapsed == pytest.approx(10 / 60.0)
    assert len(simulation.recorder["error_y"]) == 10
    assert results[-1].position.y > 360
    assert simulation.running is False


@pytest.mark.parametrize("target", [Vector2D(540, 460), Vector2D(440, 360), Vector2D(1000, 700)])
def test_default_tuning_settles_on_static_target(target):
    start = Vector2D(540, 360)
    simulation = TrackingSimulation(
        loop=create_control_loop(start),
        target=StaticTarget(target),
        fixed_time_step=1.0 / 60.0,
    )
    simulation.run(9000)

    xs = simulation.recorder["position_x"].as_array()
    ys = simulation.recorder["position_y"].as_array()
    distances = np.hypot(xs - target.x, ys - target.y)
    assert distances.max() <= (target - start).magnitude()
    assert distances[-1] < 0.5
    assert simulation.last_result.velocity.magnitude() < 0.5
    assert simulation.recorder["scale"].max_value == 1.0


def test_step_with_explicit_target():
    simulation = TrackingSimulation(fixed_time_step=0.1)
    result = simulation.step(Vector2D(600, 360))
    assert result.target == Vector2D(600, 360)
    assert result.error_x > 0


def test_wall_clock_run_uses_frame_clock():
    clock = FrameClock(time_source=fake_time([0.0, 0.02, 0.04]))
    simulation = TrackingSimulation(clock=clock)
    results = simulation.run(3)
    assert [r.dt for r in results] == pytest.approx([MIN_TIME_STEP, 0.02, 0.02])


def test_stop_from_callback():
    simulation = TrackingSimulation(fixed_time_step=0.1)

    def stop_after_three(result):
        if result.tick == 3:
            simulation.stop()

    assert len(simulation.run(50, on_tick=stop_after_three)) == 3


def test_tune_and_debug_info():
    simulation = TrackingSimulation(fixed_time_step=0.1)
    assert simulation.debug_info() == {"Status": "Not started"}

    simulation.tune("p", +1)
    simulation.tune("d", -1)
    assert simulation.tune("i", 0) == pytest.approx((0.26, 0.01, 1.99))
    with pytest.raises(ValueError):
        simulation.tune("z", 1)

    simulation.step(Vector2D(560, 380))
    info = simulation.debug_info()
    assert info["k_proportional"] == "0.26"
    assert info["FPS"] == "10.0"
    assert "Derivative X" in info


def test_reset_clears_session():
    simulation = TrackingSimulation(fixed_time_step=0.1)
    simulation.run(5)
    simulation.reset(Vector2D(10, 10))
    assert simulation.elapsed == 0.0
    assert simulation.loop.position == Vector2D(10, 10)
    assert len(simulation.recorder["error_x"]) == 0
    assert simulation.last_result is None


def test_invalid_arguments():
    with pytest.raises(ValueError):
        TrackingSimulation(fixed_time_step=0.0)
    with pytest.raises(ValueError):
        TrackingSimulation(fixed_time_step=0.1).run(-1)
