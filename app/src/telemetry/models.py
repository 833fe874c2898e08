from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import quaternion as quat_mod

DEFAULT_TEMPERATURE = 20.0  # °C
DEFAULT_BATTERY_VOLTAGE = 4.2  # V
DEFAULT_ROCKET_STATE = "Unknown"


@dataclass
class Vector3:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def copy(self) -> Vector3:
        return Vector3(self.x, self.y, self.z)

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)


@dataclass
class Sensors:
    accel: Vector3 = field(default_factory=Vector3)  # g
    gyro: Vector3 = field(default_factory=Vector3)  # deg/s
    altitude: float = 0.0  # m
    temperature: float = DEFAULT_TEMPERATURE


@dataclass
class SystemStatus:
    battery_voltage: float = DEFAULT_BATTERY_VOLTAGE
    rocket_state: str = DEFAULT_ROCKET_STATE
    millis: float = 0.0


@dataclass
class SimulationData:
    """Reference channels from a flight simulator, carried by some legacy logs."""

    altitude: float = 0.0
    velocity: float = 0.0


@dataclass
class TelemetryRecord:
    """One telemetry sample in canonical form.

    ``orientation`` holds roll/pitch/yaw in degrees as x/y/z. ``quaternion`` is
    the orientation reported by the flight computer itself, ``None`` when the
    source does not provide one; ``calculated_quaternion`` is whatever the
    orientation filters produced for this sample.
    """

    timestamp: float  # ms
    delta_time: float = 0.0  # s since previous record
    sensors: Sensors = field(default_factory=Sensors)
    system: SystemStatus = field(default_factory=SystemStatus)
    simulation: SimulationData = field(default_factory=SimulationData)
    orientation: Vector3 = field(default_factory=Vector3)
    quaternion: quat_mod.quaternion | None = None
    calculated_quaternion: quat_mod.quaternion | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "deltaTime": self.delta_time,
            "sensors": {
                "accel": _vector_dict(self.sensors.accel),
                "gyro": _vector_dict(self.sensors.gyro),
                "altitude": self.sensors.altitude,
                "temperature": self.sensors.temperature,
            },
            "system": {
                "battery_voltage": self.system.battery_voltage,
                "rocketState": self.system.rocket_state,
                "millis": self.system.millis,
            },
            "simulation": {
                "altitude": self.simulation.altitude,
                "velocity": self.simulation.velocity,
            },
            "orientation": _vector_dict(self.orientation),
            "quaternion": quaternion_dict(self.quaternion),
            "calculatedQuaternion": quaternion_dict(self.calculated_quaternion),
        }


@dataclass
class SamplingRates:
    """Sample interval statistics in seconds over the trailing window."""

    min: float | None = None
    max: float | None = None
    avg: float | None = None


@dataclass
class DatasetMetadata:
    start_time: float | None = None
    end_time: float | None = None
    sampling_rates: SamplingRates = field(default_factory=SamplingRates)
    total_points: int = 0
    has_quaternions: bool = False


def copy_quaternion(q: quat_mod.quaternion | None) -> quat_mod.quaternion | None:
    if q is None:
        return None
    return quat_mod.quaternion(q.w, q.x, q.y, q.z)


def quaternion_dict(q: quat_mod.quaternion | None) -> dict[str, float] | None:
    if q is None:
        return None
    return {"qW": float(q.w), "qX": float(q.x), "qY": float(q.y), "qZ": float(q.z)}


def _vector_dict(v: Vector3) -> dict[str, float]:
    return {"x": v.x, "y": v.y, "z": v.z}
