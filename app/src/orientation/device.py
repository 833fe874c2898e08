from __future__ import annotations

from orientation.conversions import quaternion_to_euler
from orientation.interface import OrientationEstimator, normalize_orientation
from telemetry.models import TelemetryRecord, Vector3, copy_quaternion


class DeviceQuaternionEstimator(OrientationEstimator):
    """Uses the flight computer's own quaternion verbatim.

    Needs no integration, so it applies whatever the sample interval is.
    """

    def step(
        self, dt: float, record: TelemetryRecord, previous: TelemetryRecord | None
    ) -> TelemetryRecord:
        self._update(dt, record, previous)
        normalize_orientation(record)
        return record

    def _update(
        self, dt: float, record: TelemetryRecord, previous: TelemetryRecord | None
    ) -> None:
        if record.quaternion is None:
            raise ValueError("Record carries no device quaternion")
        roll, pitch, yaw = quaternion_to_euler(record.quaternion)
        record.orientation = Vector3(roll, pitch, yaw)
        record.calculated_quaternion = copy_quaternion(record.quaternion)
