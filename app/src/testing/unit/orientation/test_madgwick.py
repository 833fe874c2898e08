import math

import numpy as np
import pytest
import quaternion as quat_mod

from orientation.madgwick import MadgwickAHRS


def _components(q):
    return (q.w, q.x, q.y, q.z)


def test_stationary_stream_stays_at_identity():
    """Level and at rest, the estimate must not wander away from identity."""
    ahrs = MadgwickAHRS()
    for _ in range(100):
        ahrs.update_imu(0.0, 0.0, 0.0, 0.0, 0.0, 1.0, 0.01)

    assert _components(ahrs.get_quaternion()) == pytest.approx((1.0, 0.0, 0.0, 0.0), abs=1e-9)
    assert tuple(ahrs.get_euler_angles()) == pytest.approx((0.0, 0.0, 0.0), abs=1e-6)


def test_unit_norm_after_every_update():
    """Includes all-zero accelerometer samples, which skip the correction step."""
    rng = np.random.default_rng(7)
    ahrs = MadgwickAHRS(beta=0.3)

    for i in range(500):
        gx, gy, gz = rng.normal(0.0, 200.0, 3)
        if i % 7 == 0:
            ax, ay, az = 0.0, 0.0, 0.0
        else:
            ax, ay, az = rng.normal(0.0, 1.0, 3)
        dt = rng.uniform(0.001, 0.05)

        ahrs.update_imu(gx, gy, gz, ax, ay, az, dt)

        assert abs(ahrs.get_quaternion()) == pytest.approx(1.0, abs=1e-9)


def test_zero_accelerometer_is_pure_gyro_integration():
    ahrs = MadgwickAHRS()
    ahrs.update_imu(90.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.01)

    # q_dot = 0.5 * (1, 0, 0, 0) * (0, pi/2, 0, 0)
    x = math.pi / 4 * 0.01
    norm = math.sqrt(1.0 + x * x)
    assert _components(ahrs.get_quaternion()) == pytest.approx((1.0 / norm, x / norm, 0.0, 0.0))


def test_missing_delta_time_uses_sample_frequency():
    implicit = MadgwickAHRS(sample_freq=50.0)
    explicit = MadgwickAHRS(sample_freq=50.0)

    implicit.update_imu(10.0, -5.0, 3.0, 0.1, 0.0, 0.9)
    explicit.update_imu(10.0, -5.0, 3.0, 0.1, 0.0, 0.9, 0.02)

    assert _components(implicit.get_quaternion()) == pytest.approx(_components(explicit.get_quaternion()))


def test_zero_magnetometer_falls_back_to_imu_update():
    with_mag = MadgwickAHRS()
    imu_only = MadgwickAHRS()

    for _ in range(20):
        with_mag.update(5.0, 10.0, -20.0, 0.2, 0.1, 0.95, 0.0, 0.0, 0.0, 0.01)
        imu_only.update_imu(5.0, 10.0, -20.0, 0.2, 0.1, 0.95, 0.01)

    assert _components(with_mag.get_quaternion()) == _components(imu_only.get_quaternion())


def test_magnetometer_update_keeps_unit_norm_and_differs_from_imu():
    with_mag = MadgwickAHRS(beta=0.5)
    imu_only = MadgwickAHRS(beta=0.5)

    for _ in range(50):
        with_mag.update(1.0, -2.0, 15.0, 0.05, -0.1, 0.99, 0.3, 0.1, -0.5, 0.02)
        imu_only.update_imu(1.0, -2.0, 15.0, 0.05, -0.1, 0.99, 0.02)
        assert abs(with_mag.get_quaternion()) == pytest.approx(1.0, abs=1e-9)

    assert _components(with_mag.get_quaternion()) != pytest.approx(
        _components(imu_only.get_quaternion())
    )


def test_set_quaternion_normalizes_and_defaults_missing_components():
    ahrs = MadgwickAHRS()

    ahrs.set_quaternion({"w": 2.0})
    assert _components(ahrs.get_quaternion()) == pytest.approx((1.0, 0.0, 0.0, 0.0))

    ahrs.set_quaternion({"qW": 0.0, "qX": 3.0, "qY": 4.0})
    assert _components(ahrs.get_quaternion()) == pytest.approx((0.0, 0.6, 0.8, 0.0))

    ahrs.set_quaternion(quat_mod.quaternion(0.0, 0.0, 0.0, 5.0))
    assert _components(ahrs.get_quaternion()) == pytest.approx((0.0, 0.0, 0.0, 1.0))


def test_set_quaternion_ignores_none_and_resets_zero_input():
    ahrs = MadgwickAHRS()
    ahrs.set_quaternion({"w": 0.0, "x": 1.0, "y": 0.0, "z": 0.0})

    ahrs.set_quaternion(None)
    assert _components(ahrs.get_quaternion()) == pytest.approx((0.0, 1.0, 0.0, 0.0))

    ahrs.set_quaternion({"w": 0.0, "x": 0.0, "y": 0.0, "z": 0.0})
    assert _components(ahrs.get_quaternion()) == (1.0, 0.0, 0.0, 0.0)


def test_get_quaternion_returns_a_copy():
    ahrs = MadgwickAHRS()
    q = ahrs.get_quaternion()
    ahrs.update_imu(100.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.1)

    assert _components(q) == (1.0, 0.0, 0.0, 0.0)


def test_euler_angles_of_heading_rotation():
    ahrs = MadgwickAHRS()
    ahrs.set_quaternion({"w": math.cos(math.pi / 4), "z": math.sin(math.pi / 4)})

    roll, pitch, yaw = ahrs.get_euler_angles()
    assert roll == pytest.approx(0.0, abs=1e-9)
    assert pitch == pytest.approx(0.0, abs=1e-9)
    assert yaw == pytest.approx(90.0)


def test_reset_and_set_beta():
    ahrs = MadgwickAHRS(beta=0.1)
    ahrs.update_imu(50.0, 20.0, 0.0, 0.3, 0.0, 0.9, 0.05)
    ahrs.set_beta(0.4)
    ahrs.reset()

    assert ahrs.beta == 0.4
    assert _components(ahrs.get_quaternion()) == (1.0, 0.0, 0.0, 0.0)
