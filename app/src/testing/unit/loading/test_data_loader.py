import json

import pytest

from data_loader import CSVDataLoader, JSONDataLoader, loader_for
from telemetry.dataset import TelemetryDataset


def test_loader_is_picked_by_suffix():
    assert isinstance(loader_for("flight.json"), JSONDataLoader)
    assert isinstance(loader_for("FLIGHT.JSON"), JSONDataLoader)
    assert isinstance(loader_for("flight.csv"), CSVDataLoader)
    assert isinstance(loader_for("flight.log"), CSVDataLoader)


def test_csv_loader_returns_text_rows(tmp_path):
    path = tmp_path / "flight.csv"
    path.write_text("timestamp,accelX,quatW\n0,0.5,\n10,0.75,1\n")

    rows = CSVDataLoader().load_records(path)

    assert [row["accelX"] for row in rows] == ["0.5", "0.75"]
    assert rows[0]["quatW"] is None


def test_json_loader_accepts_array_or_single_frame(tmp_path, make_frame):
    many = tmp_path / "stream.json"
    many.write_text(json.dumps([make_frame(0), make_frame(10)]))
    single = tmp_path / "frame.json"
    single.write_text(json.dumps(make_frame(5)))

    assert len(JSONDataLoader().load_records(many)) == 2
    assert JSONDataLoader().load_records(single)[0]["timestamp"] == 5


def test_json_loader_rejects_scalars(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text("3")

    with pytest.raises(ValueError):
        JSONDataLoader().load_records(path)


def test_dataset_loads_from_file(tmp_path, make_frame):
    path = tmp_path / "stream.json"
    path.write_text(json.dumps([make_frame(0), make_frame(40, gyro=(0.0, 0.0, 5.0))]))

    dataset = TelemetryDataset()

    assert dataset.load_from_file(path) == 2
    assert dataset.records[1].delta_time == pytest.approx(0.04)
    assert dataset.records[1].sensors.gyro.z == 5.0


def test_empty_file_leaves_dataset_untouched(tmp_path, make_frame):
    path = tmp_path / "empty.json"
    path.write_text("[]")
    dataset = TelemetryDataset()
    dataset.add_data_point(make_frame(0))

    assert dataset.load_from_file(path) == 0
    assert len(dataset) == 1
