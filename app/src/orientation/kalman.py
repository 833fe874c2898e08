from __future__ import annotations

from orientation.config import KalmanConfig, clamp_delta_time
from orientation.conversions import accel_tilt
from orientation.interface import OrientationEstimator, write_euler
from telemetry.models import TelemetryRecord


class KalmanEstimator(OrientationEstimator):
    """Predict-correct tilt estimate with a constant scalar gain.

    The gain is ``process_noise / (process_noise + measurement_noise)`` and is
    never adapted; there is no covariance propagation. Yaw keeps the gyro
    prediction with no correction term.
    """

    def __init__(self, config: KalmanConfig | None = None) -> None:
        self.config = config or KalmanConfig()

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
        prev = previous.orientation
        predicted_roll = prev.x + gyro.x * dt
        predicted_pitch = prev.y + gyro.y * dt
        predicted_yaw = prev.z + gyro.z * dt

        k = self.config.gain
        write_euler(
            record,
            predicted_roll + k * (accel_roll - predicted_roll),
            predicted_pitch + k * (accel_pitch - predicted_pitch),
            predicted_yaw,
        )
