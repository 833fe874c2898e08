from __future__ import annotations

import logging as log
from dataclasses import fields
from typing import TYPE_CHECKING, Any, Sequence

import quaternion as quat_mod

from orientation.complementary import ComplementaryEstimator
from orientation.config import FilterSettings
from orientation.device import DeviceQuaternionEstimator
from orientation.interface import FilterKind, OrientationEstimator
from orientation.kalman import KalmanEstimator
from orientation.madgwick import MadgwickAHRS, MadgwickEstimator
from orientation.tilt import TiltEstimator
from telemetry.models import TelemetryRecord, Vector3

if TYPE_CHECKING:
    from telemetry.dataset import TelemetryDataset


class OrientationFilterBank:
    """Selects an orientation estimator per record and drives it over a dataset.

    Source precedence for a record is: the device quaternion (when enabled and
    present), then the unfiltered tilt estimate (when filtering is switched
    off), then the estimator registered for the current ``FilterKind``.

    The bank owns the one ``MadgwickAHRS`` engine. It is reset on every kind
    change and at the start of every batch pass, so no state leaks between
    algorithms or between passes.
    """

    def __init__(
        self,
        kind: FilterKind | str = FilterKind.COMPLEMENTARY,
        use_device_quaternion: bool = False,
        settings: FilterSettings | None = None,
        dataset: TelemetryDataset | None = None,
    ) -> None:
        self._kind = _parse_kind(kind)
        self._use_device_quaternion = use_device_quaternion
        self._filter_enabled = True
        self._settings = settings or FilterSettings()
        self.dataset = dataset

        madgwick = self._settings.madgwick
        self._engine = MadgwickAHRS(sample_freq=madgwick.sample_freq, beta=madgwick.beta)

        self._device = DeviceQuaternionEstimator()
        self._tilt = TiltEstimator()
        madgwick_estimator = MadgwickEstimator(self._engine)
        self._estimators: dict[FilterKind, OrientationEstimator] = {
            FilterKind.COMPLEMENTARY: ComplementaryEstimator(self._settings.complementary),
            FilterKind.KALMAN: KalmanEstimator(self._settings.kalman),
            FilterKind.MADGWICK: madgwick_estimator,
            FilterKind.FULL_MADGWICK: madgwick_estimator,
        }

    @property
    def kind(self) -> FilterKind:
        return self._kind

    @property
    def use_device_quaternion(self) -> bool:
        return self._use_device_quaternion

    @property
    def filter_enabled(self) -> bool:
        return self._filter_enabled

    @property
    def settings(self) -> FilterSettings:
        return self._settings

    @property
    def engine(self) -> MadgwickAHRS:
        return self._engine

    def estimator_for(self, record: TelemetryRecord) -> OrientationEstimator:
        if self._use_device_quaternion and record.quaternion is not None:
            return self._device
        if not self._filter_enabled:
            return self._tilt
        return self._estimators[self._kind]

    def seed(self, record: TelemetryRecord) -> TelemetryRecord:
        """Initialize the first record of a sequence."""
        if self._use_device_quaternion and record.quaternion is not None:
            return self._device.step(record.delta_time, record, None)
        record.orientation = Vector3()
        record.calculated_quaternion = quat_mod.quaternion(1.0, 0.0, 0.0, 0.0)
        return record

    def process(self, record: TelemetryRecord, previous: TelemetryRecord | None) -> TelemetryRecord:
        return self.estimator_for(record).step(record.delta_time, record, previous)

    def recalculate(self, records: Sequence[TelemetryRecord]) -> int:
        """Recompute orientation over ``records`` from the first one, in order.

        Each record consumes its predecessor's result, so the pass is strictly
        sequential. Returns the number of records processed.
        """
        self._engine.reset()
        if not records:
            return 0

        self.seed(records[0])
        for i in range(1, len(records)):
            self.process(records[i], records[i - 1])

        log.info(
            f"Recomputed orientation for {len(records)} records "
            f"(filter={self._kind.value}, device_quaternion={self._use_device_quaternion}, "
            f"filter_enabled={self._filter_enabled})"
        )
        return len(records)

    def ingest(self, raw: Any) -> TelemetryRecord:
        """Append one live sample to the attached dataset and estimate it."""
        if self.dataset is None:
            raise RuntimeError("No dataset attached to the filter bank")
        record = self.dataset.add_data_point(raw)
        records = self.dataset.records
        if len(records) == 1:
            return self.seed(record)
        return self.process(record, records[-2])

    def set_filter_kind(self, kind: FilterKind | str) -> None:
        """Switch algorithm; raises ``ValueError`` and keeps the current one if unknown."""
        self._kind = _parse_kind(kind)
        self._engine.reset()
        log.info(f"Filter kind set to {self._kind.value}")
        self._recompute_attached()

    def set_use_device_quaternion(self, enabled: bool) -> None:
        self._use_device_quaternion = enabled
        log.info(f"Device quaternion {'enabled' if enabled else 'disabled'}")
        self._recompute_attached()

    def enable_filter(self, enabled: bool) -> None:
        self._filter_enabled = enabled
        log.info(f"Orientation filter {'enabled' if enabled else 'disabled'}")
        self._recompute_attached()

    def configure_filter(self, kind: FilterKind | str, **params: float) -> None:
        """Patch the parameters of one algorithm.

        Parameter names are the fields of that algorithm's config dataclass. An
        unknown name raises ``ValueError`` before anything is changed. A new
        ``beta`` reaches the running Madgwick engine immediately.
        """
        kind = _parse_kind(kind)
        config = self._config_for(kind)
        known = {f.name for f in fields(config)}
        unknown = sorted(set(params) - known)
        if unknown:
            log.error(f"Unknown {kind.value} parameter(s) {unknown}, expected one of {sorted(known)}")
            raise ValueError(f"Unknown {kind.value} parameter(s): {', '.join(unknown)}")

        for name, value in params.items():
            setattr(config, name, value)
        if kind.uses_madgwick:
            self._engine.set_beta(self._settings.madgwick.beta)
            self._engine.sample_freq = self._settings.madgwick.sample_freq
        log.info(f"Configured {kind.value}: {params}")

    def reset(self) -> None:
        self._engine.reset()
        log.info("Filter state reset")

    def _config_for(self, kind: FilterKind) -> Any:
        if kind is FilterKind.COMPLEMENTARY:
            return self._settings.complementary
        if kind is FilterKind.KALMAN:
            return self._settings.kalman
        return self._settings.madgwick

    def _recompute_attached(self) -> None:
        if self.dataset is not None:
            self.recalculate(self.dataset.records)


def _parse_kind(kind: FilterKind | str) -> FilterKind:
    try:
        return FilterKind(kind)
    except ValueError:
        valid = ", ".join(k.value for k in FilterKind)
        log.error(f"Unknown filter kind {kind!r}, expected one of: {valid}")
        raise ValueError(f"Unknown filter kind {kind!r}") from None
