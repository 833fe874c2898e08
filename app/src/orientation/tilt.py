from __future__ import annotations

from orientation.conversions import accel_tilt
from orientation.interface import OrientationEstimator, write_euler
from telemetry.models import TelemetryRecord


class TiltEstimator(OrientationEstimator):
    """Unfiltered estimate used while filtering is switched off.

    Roll and pitch come straight from the accelerometer; yaw integrates the
    gyro from the previous record, starting at 0.
    """

    def _update(
        self, dt: float, record: TelemetryRecord, previous: TelemetryRecord | None
    ) -> None:
        accel = record.sensors.accel
        roll, pitch = accel_tilt(accel.x, accel.y, accel.z)
        yaw = 0.0 if previous is None else previous.orientation.z + record.sensors.gyro.z * dt
        write_euler(record, roll, pitch, yaw)
