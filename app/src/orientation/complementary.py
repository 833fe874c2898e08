from __future__ import annotations

from orientation.config import ComplementaryConfig, clamp_delta_time
from orientation.conversions import accel_tilt
from orientation.interface import OrientationEstimator, write_euler
from telemetry.models import TelemetryRecord


class ComplementaryEstimator(OrientationEstimator):
    """Fixed-weight blend of gyro integration and accelerometer tilt.

    Yaw has no absolute reference without a magnetometer and is integrated
    from the gyro alone, so it drifts.
    """

    def __init__(self, config: ComplementaryConfig | None = None) -> None:
        self.config = config or ComplementaryConfig()

    def _update(
        self, dt: float, record: TelemetryRecord, previous: TelemetryRecord | None
    ) -> None:
        accel = record.sensors.accel
        gyro = record.sensors.gyro
        accel_roll, accel_pitch = accel_tilt(accel.x, accel.y, accel.z)

        if previous is None:
            write_euler(record, accel_roll, accel_pitch, 0.0)
            return

        dt = clamp_delta_time(dt, self.config.max_delta_time)
        alpha = self.config.alpha
        prev = previous.orientation
        write_euler(
            record,
            alpha * (prev.x + gyro.x * dt) + (1.0 - alpha) * accel_roll,
            alpha * (prev.y + gyro.y * dt) + (1.0 - alpha) * accel_pitch,
            prev.z + gyro.z * dt,
        )
