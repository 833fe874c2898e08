"""In-memory telemetry store shared by the live and file-driven pipelines.

Records are kept in arrival order and only ever appended; ``reset`` is the
one way to drop them. Orientation is not computed on insertion: the live
pipeline runs a filter bank per new record (``OrientationFilterBank.ingest``)
and the file pipeline calls ``recalculate_orientation`` once loading is done.
"""

from __future__ import annotations

import logging as log
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Iterable, NamedTuple, Sequence

import polars as pl

from data_loader import DataLoader, loader_for
from orientation.bank import OrientationFilterBank
from orientation.config import FilterSettings
from orientation.interface import FilterKind
from telemetry.csv_io import frame_to_csv, read_rows, records_to_frame
from telemetry.models import DatasetMetadata, SamplingRates, TelemetryRecord
from telemetry.normalizer import normalize_record

SAMPLING_WINDOW = 10  # records

_AXES = {"x": 0, "y": 1, "z": 2}


class SeriesPoint(NamedTuple):
    x: float  # timestamp, ms
    y: float


@dataclass
class AxisStats:
    min: float = 0.0
    max: float = 0.0
    avg: float = 0.0


@dataclass
class VectorStats:
    x: AxisStats = field(default_factory=AxisStats)
    y: AxisStats = field(default_factory=AxisStats)
    z: AxisStats = field(default_factory=AxisStats)


@dataclass
class DatasetStatistics:
    count: int = 0
    duration: float = 0.0  # s
    sampling_rates: SamplingRates = field(default_factory=lambda: SamplingRates(0.0, 0.0, 0.0))
    acceleration: VectorStats = field(default_factory=VectorStats)
    gyroscope: VectorStats = field(default_factory=VectorStats)
    orientation: VectorStats = field(default_factory=VectorStats)
    altitude: AxisStats = field(default_factory=AxisStats)
    has_quaternions: bool = False


_SERIES: dict[str, Callable[[TelemetryRecord], tuple[float, ...]]] = {
    "accel": lambda r: r.sensors.accel.as_tuple(),
    "gyro": lambda r: r.sensors.gyro.as_tuple(),
    "orientation": lambda r: r.orientation.as_tuple(),
    "altitude": lambda r: (r.sensors.altitude,),
    "temperature": lambda r: (r.sensors.temperature,),
}


class TelemetryDataset:
    def __init__(self) -> None:
        self._records: list[TelemetryRecord] = []
        self._cursor = 0
        self.metadata = DatasetMetadata()

    def __len__(self) -> int:
        return len(self._records)

    @property
    def records(self) -> Sequence[TelemetryRecord]:
        """Stored records in arrival order. Do not mutate the sequence."""
        return self._records

    @property
    def cursor(self) -> int:
        return self._cursor

    def add_data_point(self, raw: Any) -> TelemetryRecord:
        """Normalize ``raw``, stamp its ``delta_time`` and append it.

        ``delta_time`` is measured against the last stored record, in seconds,
        and is 0 for the first one. Out-of-order timestamps are accepted and
        produce a negative interval, which the filters treat as a no-op.
        """
        record = normalize_record(raw)

        if not self._records:
            record.delta_time = 0.0
            self.metadata.start_time = record.timestamp
        else:
            prev_timestamp = self._records[-1].timestamp
            record.delta_time = (record.timestamp - prev_timestamp) / 1000.0
            if record.delta_time < 0.0:
                log.warning(
                    f"Out-of-order timestamp {record.timestamp} after {prev_timestamp}, "
                    f"record {len(self._records)}"
                )

        if record.quaternion is not None:
            self.metadata.has_quaternions = True
        self.metadata.end_time = record.timestamp
        self.metadata.total_points += 1

        self._records.append(record)
        self._update_sampling_rates()
        return record

    def load_from_records(self, raws: Iterable[Any]) -> int:
        """Replace the contents with ``raws``; returns the number stored."""
        self.reset()
        for raw in raws:
            self.add_data_point(raw)
        log.info(f"Loaded {len(self._records)} records")
        return len(self._records)

    def load_from_csv(self, text: str | bytes) -> int:
        """Replace the contents with the rows of a CSV document.

        Any of the known column layouts is accepted. Input without data rows
        leaves the dataset untouched and returns 0.
        """
        if isinstance(text, str):
            text = text.encode()
        rows = read_rows(text)
        if not rows:
            log.warning("CSV contains no data rows, dataset left unchanged")
            return 0
        return self.load_from_records(rows)

    def load_from_file(self, path: str | Path, loader: DataLoader | None = None) -> int:
        loader = loader or loader_for(path)
        rows = loader.load_records(path)
        if not rows:
            log.warning(f"No records in {path}, dataset left unchanged")
            return 0
        return self.load_from_records(rows)

    def recalculate_orientation(
        self,
        filter_kind: FilterKind | str = FilterKind.COMPLEMENTARY,
        use_device_quaternion: bool = False,
        settings: FilterSettings | None = None,
    ) -> int:
        """Recompute every record's orientation from scratch.

        Runs on a fresh filter bank, so the result depends only on the records
        and the arguments; repeated calls give identical output.
        """
        bank = OrientationFilterBank(
            kind=filter_kind,
            use_device_quaternion=use_device_quaternion,
            settings=settings,
        )
        return bank.recalculate(self._records)

    def get_current_record(self) -> TelemetryRecord | None:
        if not self._records:
            return None
        return self._records[self._cursor]

    def set_cursor(self, index: int) -> TelemetryRecord:
        if not 0 <= index < len(self._records):
            raise IndexError(f"Cursor {index} out of range for {len(self._records)} records")
        self._cursor = index
        return self._records[index]

    def get_data_range(self, start: int, end: int) -> list[TelemetryRecord]:
        """Records ``start`` (inclusive) to ``end`` (exclusive)."""
        if not 0 <= start <= end <= len(self._records):
            raise IndexError(f"Invalid range [{start}, {end}) for {len(self._records)} records")
        return self._records[start:end]

    def filter_records(self, predicate: Callable[[TelemetryRecord], bool]) -> list[TelemetryRecord]:
        return [record for record in self._records if predicate(record)]

    def get_data_series(self, kind: str, axis: int | str = 0) -> list[SeriesPoint]:
        """``(timestamp, value)`` pairs for one scalar channel.

        ``kind`` is one of accel, gyro, orientation, altitude or temperature.
        ``axis`` picks x/y/z (or 0/1/2) for the vector channels and is ignored
        for the scalar ones.
        """
        try:
            getter = _SERIES[kind]
        except KeyError:
            raise ValueError(f"Unknown series kind {kind!r}, expected one of {sorted(_SERIES)}") from None

        index = _axis_index(axis)
        if kind in ("altitude", "temperature"):
            index = 0
        return [SeriesPoint(record.timestamp, getter(record)[index]) for record in self._records]

    def to_frame(self) -> pl.DataFrame:
        return records_to_frame(self._records)

    def export_to_csv(self) -> str:
        return frame_to_csv(self.to_frame())

    def get_statistics(self) -> DatasetStatistics:
        if not self._records:
            return DatasetStatistics()

        frame = self.to_frame()
        return DatasetStatistics(
            count=len(self._records),
            duration=(self.metadata.end_time - self.metadata.start_time) / 1000.0,
            sampling_rates=self.metadata.sampling_rates,
            acceleration=_vector_stats(frame, "accel"),
            gyroscope=_vector_stats(frame, "gyro"),
            orientation=_vector_stats(frame, "orientation"),
            altitude=_axis_stats(frame, "altitude"),
            has_quaternions=self.metadata.has_quaternions,
        )

    def reset(self) -> None:
        self._records = []
        self._cursor = 0
        self.metadata = DatasetMetadata()
        log.info("Dataset reset")

    def _update_sampling_rates(self) -> None:
        n = len(self._records)
        if n < 2:
            return

        start = max(0, n - SAMPLING_WINDOW)
        intervals = [
            r.delta_time for r in self._records[start + 1:] if r.delta_time > 0.0
        ]
        total = sum(intervals)
        # Averaged over every interval in the window, skipped ones included.
        count = n - start - 1
        if count > 0 and total > 0.0:
            self.metadata.sampling_rates = SamplingRates(
                min=min(intervals), max=max(intervals), avg=total / count
            )


def _axis_index(axis: int | str) -> int:
    if isinstance(axis, str):
        if axis.lower() not in _AXES:
            raise ValueError(f"Unknown axis {axis!r}, expected x, y or z")
        return _AXES[axis.lower()]
    if isinstance(axis, bool) or not isinstance(axis, int) or not 0 <= axis <= 2:
        raise ValueError(f"Unknown axis {axis!r}, expected 0, 1 or 2")
    return axis


def _axis_stats(frame: pl.DataFrame, column: str) -> AxisStats:
    row = frame.select(
        pl.col(column).min().alias("min"),
        pl.col(column).max().alias("max"),
        pl.col(column).mean().alias("avg"),
    ).row(0, named=True)
    return AxisStats(min=row["min"], max=row["max"], avg=row["avg"])


def _vector_stats(frame: pl.DataFrame, prefix: str) -> VectorStats:
    return VectorStats(
        x=_axis_stats(frame, f"{prefix}X"),
        y=_axis_stats(frame, f"{prefix}Y"),
        z=_axis_stats(frame, f"{prefix}Z"),
    )
