import math
from typing import NamedTuple

import quaternion as quat_mod
from scipy.spatial.transform import Rotation


class EulerAngles(NamedTuple):
    """Roll, pitch and yaw in degrees."""

    roll: float
    pitch: float
    yaw: float


def normalize_angle(angle: float) -> float:
    """Wrap an angle in degrees into (-180, 180]."""
    wrapped = -((180.0 - angle) % 360.0 - 180.0)
    if wrapped <= -180.0:
        wrapped += 360.0
    return wrapped + 0.0  # no negative zero


def quaternion_to_euler(q: quat_mod.quaternion) -> EulerAngles:
    """ZYX (yaw-pitch-roll) Euler angles of ``q``.

    Pitch saturates at exactly ±90° when the asin argument leaves [-1, 1],
    which happens at gimbal lock and for slightly non-unit input.
    """
    w, x, y, z = q.w, q.x, q.y, q.z

    roll = math.degrees(math.atan2(2.0 * (w * x + y * z), 1.0 - 2.0 * (x * x + y * y)))

    sinp = 2.0 * (w * y - z * x)
    if abs(sinp) >= 1.0:
        pitch = math.copysign(90.0, sinp)
    else:
        pitch = math.degrees(math.asin(sinp))

    yaw = math.degrees(math.atan2(2.0 * (w * z + x * y), 1.0 - 2.0 * (y * y + z * z)))

    return EulerAngles(roll, pitch, yaw)


def euler_to_quaternion(roll: float, pitch: float, yaw: float) -> quat_mod.quaternion:
    w, x, y, z = Rotation.from_euler("ZYX", [yaw, pitch, roll], degrees=True).as_quat(
        scalar_first=True
    )
    return quat_mod.quaternion(w, x, y, z)


def accel_tilt(ax: float, ay: float, az: float) -> tuple[float, float]:
    """Roll and pitch in degrees implied by the gravity direction alone."""
    roll = math.degrees(math.atan2(ay, az))
    pitch = math.degrees(math.atan2(-ax, math.sqrt(ay * ay + az * az)))
    return roll, pitch
