import pytest

from telemetry.csv_io import COLUMNS, read_rows
from telemetry.dataset import TelemetryDataset

LEGACY_LOG = (
    "Tempo,AccelX_telemetria,AccelY_telemetria,AccelZ_telemetria,"
    "GyroX_telemetria,GyroY_telemetria,GyroZ_telemetria,Altezza_telemetria,analogValue\n"
    '0,"0,5",0,1,0,0,0,"12,5",1023\n'
    "0.1,0.25,0,1,10,0,0,13,512\n"
)


@pytest.fixture
def flight(make_frame, yaw_90):
    dataset = TelemetryDataset()
    dataset.add_data_point(make_frame(0, altitude=1.5, temperature=18.25))
    dataset.add_data_point(
        make_frame(20, accel=(0.125, -0.5, 0.875), gyro=(3.0, -4.5, 12.0), quat=yaw_90, altitude=2.75)
    )
    dataset.add_data_point(make_frame(45, gyro=(0.0, 0.0, -7.5), rocketState="ASCENT"))
    dataset.recalculate_orientation("madgwick")
    return dataset


def test_export_layout(flight):
    lines = flight.export_to_csv().splitlines()

    assert lines[0] == ",".join(COLUMNS)
    assert len(lines) == 4

    quat_columns = slice(COLUMNS.index("quatW"), COLUMNS.index("quatZ") + 1)
    assert lines[1].split(",")[quat_columns] == ["", "", "", ""]
    assert all(value != "" for value in lines[2].split(",")[quat_columns])
    assert lines[3].split(",")[-1] == "ASCENT"


def test_csv_round_trip(flight):
    restored = TelemetryDataset()
    count = restored.load_from_csv(flight.export_to_csv())

    assert count == len(flight)
    for original, loaded in zip(flight.records, restored.records):
        assert loaded.timestamp == pytest.approx(original.timestamp)
        assert loaded.delta_time == pytest.approx(original.delta_time)
        assert loaded.sensors.accel.as_tuple() == pytest.approx(original.sensors.accel.as_tuple())
        assert loaded.sensors.gyro.as_tuple() == pytest.approx(original.sensors.gyro.as_tuple())
        assert loaded.sensors.altitude == pytest.approx(original.sensors.altitude)
        assert loaded.sensors.temperature == pytest.approx(original.sensors.temperature)
        assert loaded.orientation.as_tuple() == pytest.approx(original.orientation.as_tuple())
        assert (loaded.quaternion is None) == (original.quaternion is None)
        assert loaded.calculated_quaternion is not None
    assert restored.records[2].system.rocket_state == "ASCENT"
    assert restored.metadata.has_quaternions


def test_legacy_csv_with_comma_decimals():
    dataset = TelemetryDataset()

    assert dataset.load_from_csv(LEGACY_LOG) == 2
    first, second = dataset.records
    assert first.sensors.accel.x == 0.5
    assert first.sensors.altitude == 12.5
    assert first.system.battery_voltage == pytest.approx(5.0)
    assert second.timestamp == pytest.approx(100.0)
    assert second.delta_time == pytest.approx(0.1)
    assert second.sensors.gyro.x == 10.0
    assert second.system.battery_voltage == pytest.approx(512 / 1023 * 5)
    assert second.quaternion is None


def test_csv_without_rows_leaves_dataset_untouched(make_frame):
    dataset = TelemetryDataset()
    dataset.add_data_point(make_frame(0))

    assert dataset.load_from_csv("") == 0
    assert dataset.load_from_csv(",".join(COLUMNS) + "\n") == 0
    assert len(dataset) == 1


def test_read_rows_keeps_values_as_text():
    rows = read_rows(b"timestamp,accelX\n10,\"1,5\"\n")
    assert rows == [{"timestamp": "10", "accelX": "1,5"}]
