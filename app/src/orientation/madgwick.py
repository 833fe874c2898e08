"""Madgwick gradient-descent orientation filter.

Reference: S. Madgwick, "An efficient orientation filter for inertial and
inertial/magnetic sensor arrays", 2010. The state is a single unit quaternion
updated in place by every call; there is no history.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

import quaternion as quat_mod

from orientation.conversions import EulerAngles, quaternion_to_euler
from orientation.interface import OrientationEstimator
from telemetry.models import TelemetryRecord, Vector3
from telemetry.normalizer import coerce_float

_IDENTITY = (1.0, 0.0, 0.0, 0.0)
_COMPONENT_KEYS = (("w", "qW"), ("x", "qX"), ("y", "qY"), ("z", "qZ"))


class MadgwickAHRS:
    def __init__(self, sample_freq: float = 100.0, beta: float = 0.1) -> None:
        self.sample_freq = sample_freq
        self.beta = beta
        self._q = quat_mod.quaternion(*_IDENTITY)

    def update_imu(
        self,
        gx: float,
        gy: float,
        gz: float,
        ax: float,
        ay: float,
        az: float,
        delta_time: float | None = None,
    ) -> None:
        """Advance the state by one gyroscope + accelerometer sample.

        Gyro rates are in deg/s. The accelerometer only contributes its
        direction; an all-zero reading skips the correction and the step is
        pure gyro integration.
        """
        dt = self._resolve_dt(delta_time)
        q_dot = self._rate_of_change(gx, gy, gz)

        if not (ax == 0.0 and ay == 0.0 and az == 0.0):
            ax, ay, az = _unit(ax, ay, az)
            q0, q1, q2, q3 = self._q.w, self._q.x, self._q.y, self._q.z

            _2q0, _2q1, _2q2, _2q3 = 2.0 * q0, 2.0 * q1, 2.0 * q2, 2.0 * q3
            _4q0, _4q1, _4q2 = 4.0 * q0, 4.0 * q1, 4.0 * q2
            _8q1, _8q2 = 8.0 * q1, 8.0 * q2
            q0q0, q1q1, q2q2, q3q3 = q0 * q0, q1 * q1, q2 * q2, q3 * q3

            gradient = quat_mod.quaternion(
                _4q0 * q2q2 + _2q2 * ax + _4q0 * q1q1 - _2q1 * ay,
                _4q1 * q3q3 - _2q3 * ax + 4.0 * q0q0 * q1 - _2q0 * ay - _4q1
                + _8q1 * q1q1 + _8q1 * q2q2 + _4q1 * az,
                4.0 * q0q0 * q2 + _2q0 * ax + _4q2 * q3q3 - _2q3 * ay - _4q2
                + _8q2 * q1q1 + _8q2 * q2q2 + _4q2 * az,
                4.0 * q1q1 * q3 - _2q1 * ax + 4.0 * q2q2 * q3 - _2q2 * ay,
            )
            q_dot = self._apply_feedback(q_dot, gradient)

        self._integrate(q_dot, dt)

    def update(
        self,
        gx: float,
        gy: float,
        gz: float,
        ax: float,
        ay: float,
        az: float,
        mx: float,
        my: float,
        mz: float,
        delta_time: float | None = None,
    ) -> None:
        """Like ``update_imu`` with a magnetometer reading correcting heading.

        An all-zero magnetometer reading falls back to ``update_imu``.
        """
        if mx == 0.0 and my == 0.0 and mz == 0.0:
            self.update_imu(gx, gy, gz, ax, ay, az, delta_time)
            return

        dt = self._resolve_dt(delta_time)
        q_dot = self._rate_of_change(gx, gy, gz)

        if not (ax == 0.0 and ay == 0.0 and az == 0.0):
            ax, ay, az = _unit(ax, ay, az)
            mx, my, mz = _unit(mx, my, mz)
            q0, q1, q2, q3 = self._q.w, self._q.x, self._q.y, self._q.z

            _2q0mx, _2q0my, _2q0mz = 2.0 * q0 * mx, 2.0 * q0 * my, 2.0 * q0 * mz
            _2q1mx = 2.0 * q1 * mx
            _2q0, _2q1, _2q2, _2q3 = 2.0 * q0, 2.0 * q1, 2.0 * q2, 2.0 * q3
            _2q0q2, _2q2q3 = 2.0 * q0 * q2, 2.0 * q2 * q3
            q0q0, q0q1, q0q2, q0q3 = q0 * q0, q0 * q1, q0 * q2, q0 * q3
            q1q1, q1q2, q1q3 = q1 * q1, q1 * q2, q1 * q3
            q2q2, q2q3, q3q3 = q2 * q2, q2 * q3, q3 * q3

            # Earth's magnetic field direction in the sensor frame
            hx = (mx * q0q0 - _2q0my * q3 + _2q0mz * q2 + mx * q1q1 + _2q1 * my * q2
                  + _2q1 * mz * q3 - mx * q2q2 - mx * q3q3)
            hy = (_2q0mx * q3 + my * q0q0 - _2q0mz * q1 + _2q1mx * q2 - my * q1q1
                  + my * q2q2 + _2q2 * mz * q3 - my * q3q3)
            _2bx = math.sqrt(hx * hx + hy * hy)
            _2bz = (-_2q0mx * q2 + _2q0my * q1 + mz * q0q0 + _2q1mx * q3 - mz * q1q1
                    + _2q2 * my * q3 - mz * q2q2 + mz * q3q3)
            _4bx, _4bz = 2.0 * _2bx, 2.0 * _2bz

            # Objective function residuals
            f_ax = 2.0 * q1q3 - _2q0q2 - ax
            f_ay = 2.0 * q0q1 + _2q2q3 - ay
            f_az = 1.0 - 2.0 * q1q1 - 2.0 * q2q2 - az
            f_mx = _2bx * (0.5 - q2q2 - q3q3) + _2bz * (q1q3 - q0q2) - mx
            f_my = _2bx * (q1q2 - q0q3) + _2bz * (q0q1 + q2q3) - my
            f_mz = _2bx * (q0q2 + q1q3) + _2bz * (0.5 - q1q1 - q2q2) - mz

            gradient = quat_mod.quaternion(
                -_2q2 * f_ax + _2q1 * f_ay - _2bz * q2 * f_mx
                + (-_2bx * q3 + _2bz * q1) * f_my + _2bx * q2 * f_mz,
                _2q3 * f_ax + _2q0 * f_ay - 4.0 * q1 * f_az + _2bz * q3 * f_mx
                + (_2bx * q2 + _2bz * q0) * f_my + (_2bx * q3 - _4bz * q1) * f_mz,
                -_2q0 * f_ax + _2q3 * f_ay - 4.0 * q2 * f_az + (-_4bx * q2 - _2bz * q0) * f_mx
                + (_2bx * q1 + _2bz * q3) * f_my + (_2bx * q0 - _4bz * q2) * f_mz,
                _2q1 * f_ax + _2q2 * f_ay + (-_4bx * q3 + _2bz * q1) * f_mx
                + (-_2bx * q0 + _2bz * q2) * f_my + _2bx * q1 * f_mz,
            )
            q_dot = self._apply_feedback(q_dot, gradient)

        self._integrate(q_dot, dt)

    def get_euler_angles(self) -> EulerAngles:
        return quaternion_to_euler(self._q)

    def get_quaternion(self) -> quat_mod.quaternion:
        return quat_mod.quaternion(self._q.w, self._q.x, self._q.y, self._q.z)

    def set_quaternion(self, q: quat_mod.quaternion | Mapping[str, Any] | None) -> None:
        """Overwrite the state, re-normalizing it.

        Accepts a quaternion or a mapping keyed ``w/x/y/z`` or ``qW/qX/qY/qZ``;
        missing components take the identity's value. ``None`` is ignored and a
        zero-length input resets to identity.
        """
        if q is None:
            return
        if isinstance(q, quat_mod.quaternion):
            values = [q.w, q.x, q.y, q.z]
        else:
            values = [
                coerce_float(q.get(short_key, q.get(long_key)), default)
                for (short_key, long_key), default in zip(_COMPONENT_KEYS, _IDENTITY)
            ]
        candidate = quat_mod.quaternion(*values)
        magnitude = abs(candidate)
        if magnitude > 0.0 and math.isfinite(magnitude):
            self._q = candidate / magnitude
        else:
            self._q = quat_mod.quaternion(*_IDENTITY)

    def set_beta(self, beta: float) -> None:
        self.beta = beta

    def reset(self) -> None:
        self._q = quat_mod.quaternion(*_IDENTITY)

    def _resolve_dt(self, delta_time: float | None) -> float:
        if delta_time is None:
            return 1.0 / self.sample_freq
        return delta_time

    def _rate_of_change(self, gx: float, gy: float, gz: float) -> quat_mod.quaternion:
        omega = quat_mod.quaternion(0.0, math.radians(gx), math.radians(gy), math.radians(gz))
        return 0.5 * (self._q * omega)

    def _apply_feedback(
        self, q_dot: quat_mod.quaternion, gradient: quat_mod.quaternion
    ) -> quat_mod.quaternion:
        step = abs(gradient)
        # Zero gradient: estimate already matches the measured gravity direction.
        if not step > 0.0 or not math.isfinite(step):
            return q_dot
        return q_dot - self.beta * (gradient / step)

    def _integrate(self, q_dot: quat_mod.quaternion, dt: float) -> None:
        q_next = self._q + q_dot * dt
        magnitude = abs(q_next)
        if magnitude > 0.0 and math.isfinite(magnitude):
            self._q = q_next / magnitude


class MadgwickEstimator(OrientationEstimator):
    """Runs the shared engine and reads back its Euler angles and quaternion."""

    def __init__(self, engine: MadgwickAHRS) -> None:
        self.engine = engine

    def _update(
        self, dt: float, record: TelemetryRecord, previous: TelemetryRecord | None
    ) -> None:
        gyro = record.sensors.gyro
        accel = record.sensors.accel
        self.engine.update_imu(gyro.x, gyro.y, gyro.z, accel.x, accel.y, accel.z, dt)

        roll, pitch, yaw = self.engine.get_euler_angles()
        record.orientation = Vector3(roll, pitch, yaw)
        record.calculated_quaternion = self.engine.get_quaternion()


def _unit(x: float, y: float, z: float) -> tuple[float, float, float]:
    norm = math.hypot(x, y, z)
    if not norm > 0.0:
        return x, y, z
    return x / norm, y / norm, z / norm
