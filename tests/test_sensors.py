import math

import numpy as np
import pytest

from pidtracker.physics import Vector2D
from pidtracker.sensors import SensorModel, SensorArray, create_default_sensor_array


def test_signal_is_one_at_zero_distance():
    assert SensorModel().signal(0.0) == 1.0


def test_signal_range_and_monotonic():
    model = SensorModel()
    distances = np.linspace(0.0, 5000.0, 2001)
    values = np.array([model.signal(d) for d in distances])
    assert np.all(values > 0.0)
    assert np.all(values <= 1.0)
    assert np.all(np.diff(values) < 0.0)
    # the vectorized law matches the scalar one
    assert np.array_equal(model.signal_field(distances), values)


def test_signal_squared_matches_raw_distance():
    model = SensorModel()
    assert model.signal_squared(400.0) == model.signal(20.0)
    assert model.signal(100.0) == pytest.approx(0.5)


def test_signal_rejects_negative_distance():
    model = SensorModel()
    with pytest.raises(ValueError):
        model.signal(-1.0)
    with pytest.raises(ValueError):
        model.signal(math.nan)
    with pytest.raises(ValueError):
        model.signal_field([1.0, -2.0])


def test_noise_is_bounded_and_seeded():
    first = SensorModel(noise_amplitude=0.005, seed=42)
    second = SensorModel(noise_amplitude=0.005, seed=42)
    a = [first.noisy(0.3) for _ in range(200)]
    b = [second.noisy(0.3) for _ in range(200)]
    assert a == b
    assert all(abs(value - 0.3) <= 0.005 for value in a)
    assert len(set(a)) > 1


def test_sample_at_center_is_zero():
    array = SensorArray(Vector2D(540, 360), offset=20)
    assert array.sample(Vector2D(540, 360)) == (0.0, 0.0)


def test_target_below_gives_positive_y_error():
    array = SensorArray(Vector2D(540, 360), offset=20)
    error_x, error_y = array.sample(Vector2D(540, 460))
    assert error_y > 0
    assert error_x == 0
    expected = 200 * (100 / 180 - 100 / 220)
    assert error_y == pytest.approx(expected)


def test_target_right_gives_positive_x_error():
    array = SensorArray(Vector2D(540, 360), offset=20)
    error_x, error_y = array.sample(Vector2D(640, 360))
    assert error_x > 0
    assert error_y == 0


def test_target_above_and_left_give_negative_errors():
    array = SensorArray(Vector2D(540, 360), offset=20)
    assert array.sample(Vector2D(540, 300))[1] < 0
    assert array.sample(Vector2D(400, 360))[0] < 0


def test_sample_is_repeatable():
    array = SensorArray(Vector2D(100, 200), offset=15)
    target = Vector2D(173.25, 91.5)
    first = array.sample(target)
    for _ in range(10):
        assert array.sample(target) == first


def test_noise_only_perturbs_errors():
    clean = SensorArray(Vector2D(540, 360), offset=20)
    noisy = SensorArray(Vector2D(540, 360), offset=20,
                        config={"noise_enabled": True, "noise_seed": 7})
    target = Vector2D(600, 420)
    clean_errors = clean.sample(target)
    noisy_errors = noisy.sample(target)
    # raw readings are untouched
    assert noisy.get_all_readings() == clean.get_all_readings()
    # error gain 200 times the 0.005 jitter bound
    assert abs(noisy_errors[0] - clean_errors[0]) <= 1.0 + 1e-9
    assert abs(noisy_errors[1] - clean_errors[1]) <= 1.0 + 1e-9


def test_sensor_positions_follow_center_and_offset():
    array = SensorArray(Vector2D(10, 10), offset=5)
    assert array.sensor_positions() == {
        "top": Vector2D(10, 5),
        "right": Vector2D(15, 10),
        "bottom": Vector2D(10, 15),
        "left": Vector2D(5, 10),
    }
    array.position = Vector2D(0, 0)
    array.offset = 1
    assert array.sensor_positions()["left"] == Vector2D(-1, 0)


def test_readings_and_average():
    array = SensorArray(Vector2D(0, 0), offset=20)
    assert array.average_reading() == 0.0
    assert array.get_reading("top") is None
    array.sample(Vector2D(0, 0))
    assert array.get_reading("top") == pytest.approx(100 / 120)
    assert array.average_reading() == pytest.approx(100 / 120)


def test_invalid_geometry_is_rejected():
    with pytest.raises(ValueError):
        SensorArray(Vector2D(0, 0), offset=-1)
    with pytest.raises(ValueError):
        SensorArray(Vector2D(math.nan, 0), offset=20)
    array = SensorArray(Vector2D(0, 0), offset=20)
    with pytest.raises(ValueError):
        array.sample(Vector2D(math.inf, 0))
    with pytest.raises(ValueError):
        array.offset = math.nan


def test_default_sensor_array_is_centered():
    array = create_default_sensor_array()
    assert array.position == Vector2D(540, 360)
    assert array.offset == 20
