from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum

from orientation.conversions import euler_to_quaternion, normalize_angle
from telemetry.models import TelemetryRecord, Vector3, copy_quaternion


class FilterKind(str, Enum):
    COMPLEMENTARY = "complementary"
    KALMAN = "kalman"
    MADGWICK = "madgwick"
    FULL_MADGWICK = "fullmadgwick"  # same engine, full-quaternion display mode

    @property
    def uses_madgwick(self) -> bool:
        return self in (FilterKind.MADGWICK, FilterKind.FULL_MADGWICK)


class OrientationEstimator(ABC):
    def step(
        self, dt: float, record: TelemetryRecord, previous: TelemetryRecord | None
    ) -> TelemetryRecord:
        """Write this sample's orientation onto ``record``.

        Args:
            dt: Seconds since ``previous``. Non-positive (or NaN) values skip the
                update; the record then carries ``previous``'s orientation, or is
                left as it is when there is no previous record.
            record: The sample being estimated, mutated in place.
            previous: The preceding, already estimated sample, if any.

        Returns:
            ``record``.
        """
        if not dt > 0.0:
            if previous is not None:
                carry_forward(record, previous)
            return record

        self._update(dt, record, previous)
        normalize_orientation(record)
        return record

    @abstractmethod
    def _update(
        self, dt: float, record: TelemetryRecord, previous: TelemetryRecord | None
    ) -> None: ...


def carry_forward(record: TelemetryRecord, previous: TelemetryRecord) -> None:
    record.orientation = previous.orientation.copy()
    record.calculated_quaternion = copy_quaternion(previous.calculated_quaternion)


def normalize_orientation(record: TelemetryRecord) -> None:
    o = record.orientation
    o.x = normalize_angle(o.x)
    o.y = normalize_angle(o.y)
    o.z = normalize_angle(o.z)


def write_euler(record: TelemetryRecord, roll: float, pitch: float, yaw: float) -> None:
    """Store normalized angles and the quaternion synthesized from them."""
    record.orientation = Vector3(normalize_angle(roll), normalize_angle(pitch), normalize_angle(yaw))
    record.calculated_quaternion = euler_to_quaternion(*record.orientation.as_tuple())
