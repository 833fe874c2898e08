import pytest

from main import main
from telemetry.csv_io import COLUMNS

FLIGHT_CSV = (
    "timestamp,accelX,accelY,accelZ,gyroX,gyroY,gyroZ,altitude,rocketState\n"
    "0,0,0,1,0,0,0,0,IDLE\n"
    "100,0,0,3,10,0,20,5,ASCENT\n"
    "200,0,0,1,0,0,0,12,ASCENT\n"
)


@pytest.fixture
def flight_csv(tmp_path):
    path = tmp_path / "flight.csv"
    path.write_text(FLIGHT_CSV)
    return path


def test_summary_and_export(flight_csv, tmp_path, capsys):
    out = tmp_path / "out.csv"

    assert main([str(flight_csv), "--filter", "kalman", "-o", str(out)]) == 0

    printed = capsys.readouterr().out
    assert "Records 3" in printed
    assert "Duration 0.20 s" in printed
    assert "Sample Rate 10 Hz" in printed
    assert "Altitude 0.0 .. 12.0 m" in printed
    assert "Max Acceleration 3.00 g" in printed
    assert "Device Quaternion no" in printed
    assert out.read_text().splitlines()[0] == ",".join(COLUMNS)


def test_filter_parameters_are_applied(flight_csv, capsys):
    assert main([str(flight_csv)]) == 0
    default = capsys.readouterr().out
    assert main([str(flight_csv), "--alpha", "0.5"]) == 0
    tuned = capsys.readouterr().out

    assert "roll 1.0°" in default
    assert "roll 0.2°" in tuned


def test_unknown_filter_is_rejected(flight_csv):
    with pytest.raises(SystemExit):
        main([str(flight_csv), "--filter", "particle"])


def test_missing_file_fails(tmp_path):
    assert main([str(tmp_path / "missing.csv")]) == 1
