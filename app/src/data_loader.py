import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from telemetry.csv_io import read_rows


class DataLoader(ABC):
    @abstractmethod
    def load_records(self, filepath: str | Path) -> list[dict[str, Any]]:
        """Raw telemetry rows from ``filepath``, in file order, not yet normalized."""
        ...


class CSVDataLoader(DataLoader):
    def load_records(self, filepath: str | Path) -> list[dict[str, Any]]:
        return read_rows(Path(filepath))


class JSONDataLoader(DataLoader):
    """Recorded live-stream frames: a JSON array of objects, or a single object."""

    def load_records(self, filepath: str | Path) -> list[dict[str, Any]]:
        with open(filepath, encoding="utf-8") as f:
            payload = json.load(f)
        if isinstance(payload, dict):
            return [payload]
        if not isinstance(payload, list):
            raise ValueError(f"{filepath}: expected a JSON array or object, got {type(payload).__name__}")
        return payload


def loader_for(filepath: str | Path) -> DataLoader:
    if Path(filepath).suffix.lower() == ".json":
        return JSONDataLoader()
    return CSVDataLoader()
