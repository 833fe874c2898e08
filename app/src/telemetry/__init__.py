from telemetry.models import (
    DatasetMetadata,
    SamplingRates,
    Sensors,
    SimulationData,
    SystemStatus,
    TelemetryRecord,
    Vector3,
)
from telemetry.normalizer import coerce_float, normalize_record

__all__ = [
    "DatasetMetadata",
    "SamplingRates",
    "Sensors",
    "SimulationData",
    "SystemStatus",
    "TelemetryRecord",
    "Vector3",
    "coerce_float",
    "normalize_record",
]
