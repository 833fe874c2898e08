"""Maps the telemetry shapes seen in the field onto ``TelemetryRecord``.

Three families of input are recognised:

* live-stream JSON frames with nested ``accel``/``gyro``/``quat`` objects and a
  ``timestamp`` or ``millis`` field;
* flat rows from the ground-station CSV logs (``accelX``, ``gyroX``, ``quatW``,
  ``battery_voltage`` or raw ``analogValue``, ...) and from the older
  ``*_telemetria`` logs that count time in seconds (``Tempo``);
* records that are already canonical, either ``TelemetryRecord`` instances or
  the dict produced by ``TelemetryRecord.to_dict``.

Every field group is resolved first-match-wins across a fixed list of
candidate keys. Values that cannot be read as numbers fall back to the field's
default, so a malformed row still produces a complete record.
"""

from __future__ import annotations

import copy
import logging as log
import math
import time
from collections.abc import Mapping
from numbers import Real
from typing import Any, Callable, Optional

import quaternion as quat_mod

from telemetry.models import (
    DEFAULT_BATTERY_VOLTAGE,
    DEFAULT_ROCKET_STATE,
    DEFAULT_TEMPERATURE,
    Sensors,
    SimulationData,
    SystemStatus,
    TelemetryRecord,
    Vector3,
)

ADC_FULL_SCALE = 1023.0
ADC_REFERENCE_VOLTAGE = 5.0

_QUAT_KEYS = (("qW", "w"), ("qX", "x"), ("qY", "y"), ("qZ", "z"))


def coerce_float(value: Any, default: float | None = 0.0) -> float | None:
    """Read ``value`` as a finite float, accepting ``,`` as decimal separator."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, Real):
        result = float(value)
    elif isinstance(value, str):
        try:
            result = float(value.strip().replace(",", ".", 1))
        except ValueError:
            log.debug(f"Unparsable numeric value {value!r}, using {default}")
            return default
    else:
        return default
    if not math.isfinite(result):
        log.debug(f"Non-finite numeric value {value!r}, using {default}")
        return default
    return result


def is_canonical(raw: Any) -> bool:
    return (
        isinstance(raw, Mapping)
        and isinstance(raw.get("timestamp"), Real)
        and not isinstance(raw.get("timestamp"), bool)
        and isinstance(raw.get("sensors"), Mapping)
        and isinstance(raw.get("system"), Mapping)
    )


def normalize_record(raw: Any) -> TelemetryRecord:
    if isinstance(raw, TelemetryRecord):
        return copy.deepcopy(raw)
    if is_canonical(raw):
        return _from_canonical(raw)
    if not isinstance(raw, Mapping):
        log.debug(f"Unrecognised telemetry shape {type(raw).__name__}, using defaults")
        raw = {}
    return _from_raw(raw)


def make_quaternion(components: Mapping[str, Any]) -> quat_mod.quaternion | None:
    """Build a unit quaternion from all four components, or return ``None``.

    Components may be keyed ``qW/qX/qY/qZ`` or ``w/x/y/z``. A missing, unparsable
    or non-finite component, or a zero-length result, makes the whole quaternion
    absent.
    """
    values = []
    for long_key, short_key in _QUAT_KEYS:
        raw_value = components.get(long_key, components.get(short_key))
        value = coerce_float(raw_value, None)
        if value is None:
            return None
        values.append(value)
    q = quat_mod.quaternion(*values)
    magnitude = abs(q)
    if not magnitude > 0.0 or not math.isfinite(magnitude):
        log.debug(f"Dropping degenerate quaternion {values}")
        return None
    return q / magnitude


# ---------------------------------------------------------------------------
# Raw shapes
# ---------------------------------------------------------------------------


def _from_raw(raw: Mapping[str, Any]) -> TelemetryRecord:
    timestamp = _resolve_timestamp(raw)
    millis = coerce_float(raw["millis"], timestamp) if "millis" in raw else timestamp

    return TelemetryRecord(
        timestamp=timestamp,
        sensors=Sensors(
            accel=_resolve_vector(raw, "accel", ("accelX", "accelY", "accelZ"),
                                  ("AccelX_telemetria", "AccelY_telemetria", "AccelZ_telemetria")),
            gyro=_resolve_vector(raw, "gyro", ("gyroX", "gyroY", "gyroZ"),
                                 ("GyroX_telemetria", "GyroY_telemetria", "GyroZ_telemetria")),
            altitude=_first_match(raw, _ALTITUDE_SOURCES, 0.0),
            temperature=_first_match(raw, _TEMPERATURE_SOURCES, DEFAULT_TEMPERATURE),
        ),
        system=SystemStatus(
            battery_voltage=_first_match(raw, _BATTERY_SOURCES, DEFAULT_BATTERY_VOLTAGE),
            rocket_state=_resolve_state(raw),
            millis=millis,
        ),
        simulation=_resolve_simulation(raw),
        orientation=_resolve_orientation(raw),
        quaternion=_resolve_quaternion(raw, ("quat", "quaternion"), ("quatW", "quatX", "quatY", "quatZ")),
        calculated_quaternion=_resolve_quaternion(
            raw, ("calculatedQuaternion",), ("calcQuatW", "calcQuatX", "calcQuatY", "calcQuatZ"),
            nested_first=True,
        ),
    )


def _resolve_timestamp(raw: Mapping[str, Any]) -> float:
    if "timestamp" in raw:
        return coerce_float(raw["timestamp"])
    if "Tempo" in raw:
        return coerce_float(raw["Tempo"]) * 1000.0
    if "millis" in raw:
        return coerce_float(raw["millis"])
    return time.time() * 1000.0


def _resolve_vector(
    raw: Mapping[str, Any],
    nested_key: str,
    flat_keys: tuple[str, str, str],
    legacy_keys: tuple[str, str, str],
) -> Vector3:
    nested = raw.get(nested_key)
    if isinstance(nested, Mapping):
        return _vector_from(nested, ("x", "y", "z"))
    for keys in (flat_keys, legacy_keys):
        if keys[0] in raw:
            return _vector_from(raw, keys)
    return Vector3()


def _vector_from(source: Mapping[str, Any], keys: tuple[str, str, str]) -> Vector3:
    return Vector3(*(coerce_float(source.get(key)) for key in keys))


Source = Callable[[Mapping[str, Any], float], Optional[float]]


def _flat(key: str, scale: float = 1.0) -> Source:
    def read(raw: Mapping[str, Any], default: float) -> float | None:
        if key not in raw:
            return None
        value = coerce_float(raw[key], None)
        return default if value is None else value * scale

    return read


def _nested(section: str, key: str) -> Source:
    def read(raw: Mapping[str, Any], default: float) -> float | None:
        group = raw.get(section)
        if not isinstance(group, Mapping) or key not in group:
            return None
        return coerce_float(group[key], default)

    return read


_ALTITUDE_SOURCES = (_flat("altitude"), _flat("Altezza_telemetria"), _nested("sensors", "altitude"))
_TEMPERATURE_SOURCES = (_flat("temperature"), _nested("sensors", "temperature"))
_BATTERY_SOURCES = (
    _flat("battery_voltage"),
    _flat("battery"),
    _flat("analogValue", ADC_REFERENCE_VOLTAGE / ADC_FULL_SCALE),
    _nested("system", "battery_voltage"),
)


def _first_match(raw: Mapping[str, Any], sources: tuple[Source, ...], default: float) -> float:
    for source in sources:
        value = source(raw, default)
        if value is not None:
            return value
    return default


def _resolve_state(raw: Mapping[str, Any]) -> str:
    for key in ("state", "rocketState"):
        if key in raw:
            return _state_text(raw[key])
    system = raw.get("system")
    if isinstance(system, Mapping) and "rocketState" in system:
        return _state_text(system["rocketState"])
    return DEFAULT_ROCKET_STATE


def _state_text(value: Any) -> str:
    if value is None or value == "":
        return DEFAULT_ROCKET_STATE
    return str(value)


def _resolve_quaternion(
    raw: Mapping[str, Any],
    nested_keys: tuple[str, ...],
    flat_keys: tuple[str, str, str, str],
    nested_first: bool = False,
) -> quat_mod.quaternion | None:
    def flat() -> quat_mod.quaternion | None:
        w, x, y, z = (raw[key] for key in flat_keys)
        return make_quaternion({"w": w, "x": x, "y": y, "z": z})

    has_flat = all(key in raw for key in flat_keys)
    if has_flat and not nested_first:
        return flat()
    for key in nested_keys:
        if isinstance(raw.get(key), Mapping):
            return make_quaternion(raw[key])
    if has_flat:
        return flat()
    return None


def _resolve_orientation(raw: Mapping[str, Any]) -> Vector3:
    nested = raw.get("orientation")
    if isinstance(nested, Mapping):
        return _vector_from(nested, ("x", "y", "z"))
    if "orientationX" in raw:
        return _vector_from(raw, ("orientationX", "orientationY", "orientationZ"))
    return Vector3()


def _resolve_simulation(raw: Mapping[str, Any]) -> SimulationData:
    nested = raw.get("simulation")
    if isinstance(nested, Mapping):
        return SimulationData(
            altitude=coerce_float(nested.get("altitude")),
            velocity=coerce_float(nested.get("velocity")),
        )
    return SimulationData(
        altitude=coerce_float(raw.get("Altezza_simulazione")),
        velocity=coerce_float(raw.get("Velocita_totale_simulazione")),
    )


# ---------------------------------------------------------------------------
# Canonical dicts
# ---------------------------------------------------------------------------


def _from_canonical(raw: Mapping[str, Any]) -> TelemetryRecord:
    sensors = raw["sensors"]
    system = raw["system"]
    simulation = raw.get("simulation")
    if not isinstance(simulation, Mapping):
        simulation = {}
    timestamp = float(raw["timestamp"])

    return TelemetryRecord(
        timestamp=timestamp,
        delta_time=coerce_float(raw.get("deltaTime")),
        sensors=Sensors(
            accel=_nested_vector(sensors.get("accel")),
            gyro=_nested_vector(sensors.get("gyro")),
            altitude=coerce_float(sensors.get("altitude")),
            temperature=coerce_float(sensors.get("temperature"), DEFAULT_TEMPERATURE),
        ),
        system=SystemStatus(
            battery_voltage=coerce_float(system.get("battery_voltage"), DEFAULT_BATTERY_VOLTAGE),
            rocket_state=_state_text(system.get("rocketState")),
            millis=coerce_float(system.get("millis"), timestamp),
        ),
        simulation=SimulationData(
            altitude=coerce_float(simulation.get("altitude")),
            velocity=coerce_float(simulation.get("velocity")),
        ),
        orientation=_nested_vector(raw.get("orientation")),
        quaternion=_optional_quaternion(raw.get("quaternion")),
        calculated_quaternion=_optional_quaternion(raw.get("calculatedQuaternion")),
    )


def _nested_vector(value: Any) -> Vector3:
    if isinstance(value, Mapping):
        return _vector_from(value, ("x", "y", "z"))
    return Vector3()


def _optional_quaternion(value: Any) -> quat_mod.quaternion | None:
    if isinstance(value, quat_mod.quaternion):
        return make_quaternion({"w": value.w, "x": value.x, "y": value.y, "z": value.z})
    if isinstance(value, Mapping):
        return make_quaternion(value)
    return None
