from __future__ import annotations

import io
import logging as log
from pathlib import Path
from typing import Any, Iterable

import polars as pl

from telemetry.models import TelemetryRecord

SCHEMA = {
    "timestamp": pl.Float64,
    "deltaTime": pl.Float64,
    "accelX": pl.Float64,
    "accelY": pl.Float64,
    "accelZ": pl.Float64,
    "gyroX": pl.Float64,
    "gyroY": pl.Float64,
    "gyroZ": pl.Float64,
    "orientationX": pl.Float64,
    "orientationY": pl.Float64,
    "orientationZ": pl.Float64,
    "quatW": pl.Float64,
    "quatX": pl.Float64,
    "quatY": pl.Float64,
    "quatZ": pl.Float64,
    "calcQuatW": pl.Float64,
    "calcQuatX": pl.Float64,
    "calcQuatY": pl.Float64,
    "calcQuatZ": pl.Float64,
    "altitude": pl.Float64,
    "temperature": pl.Float64,
    "battery_voltage": pl.Float64,
    "rocketState": pl.String,
}

COLUMNS = list(SCHEMA)


def records_to_frame(records: Iterable[TelemetryRecord]) -> pl.DataFrame:
    """One row per record in the export column layout.

    Absent quaternions are nulls, which polars writes as empty CSV fields.
    """
    columns: dict[str, list[Any]] = {name: [] for name in COLUMNS}
    for record in records:
        accel = record.sensors.accel
        gyro = record.sensors.gyro
        row = (
            record.timestamp,
            record.delta_time,
            accel.x, accel.y, accel.z,
            gyro.x, gyro.y, gyro.z,
            *record.orientation.as_tuple(),
            *_components(record.quaternion),
            *_components(record.calculated_quaternion),
            record.sensors.altitude,
            record.sensors.temperature,
            record.system.battery_voltage,
            record.system.rocket_state,
        )
        for name, value in zip(COLUMNS, row):
            columns[name].append(value)
    return pl.DataFrame(columns, schema=SCHEMA)


def frame_to_csv(frame: pl.DataFrame) -> str:
    if frame.is_empty():
        return ""
    return frame.write_csv()


def read_rows(source: str | Path | bytes) -> list[dict[str, Any]]:
    """Parse CSV into one dict per row with every value kept as text.

    ``source`` is a path or raw CSV bytes. Typing is left to the normalizer so
    legacy layouts and comma decimals survive. Input with no content at all
    yields no rows.
    """
    if isinstance(source, bytes):
        source = io.BytesIO(source)
    try:
        frame = pl.read_csv(source, has_header=True, infer_schema=False)
    except pl.exceptions.NoDataError:
        log.warning("CSV input is empty")
        return []
    return frame.to_dicts()


def _components(q: Any) -> tuple[float | None, float | None, float | None, float | None]:
    if q is None:
        return (None, None, None, None)
    return (float(q.w), float(q.x), float(q.y), float(q.z))
