import math

import pytest

from telemetry.dataset import TelemetryDataset

YAW_90 = (math.cos(math.pi / 4), 0.0, 0.0, math.sin(math.pi / 4))


def live_frame(timestamp, accel=(0.0, 0.0, 1.0), gyro=(0.0, 0.0, 0.0), quat=None, **extra):
    """A frame shaped like the live telemetry stream."""
    frame = {
        "timestamp": timestamp,
        "accel": dict(zip("xyz", accel)),
        "gyro": dict(zip("xyz", gyro)),
    }
    if quat is not None:
        frame["quat"] = dict(zip("wxyz", quat))
    frame.update(extra)
    return frame


@pytest.fixture
def make_frame():
    return live_frame


@pytest.fixture
def roll_step_dataset():
    """Level at rest, then 100 ms of 10 deg/s roll rate."""
    dataset = TelemetryDataset()
    dataset.add_data_point(live_frame(0))
    dataset.add_data_point(live_frame(100, gyro=(10.0, 0.0, 0.0)))
    return dataset


@pytest.fixture
def tumbling_frames():
    """Irregularly sampled frames with varying rates and a noisy gravity vector."""
    frames = []
    t = 0.0
    for i in range(60):
        t += 5.0 + (i % 4) * 7.5
        frames.append(
            live_frame(
                t,
                accel=(0.1 * math.sin(i / 5), 0.2 * math.cos(i / 7), 0.98),
                gyro=(30.0 * math.sin(i / 3), -12.0, 45.0 * math.cos(i / 9)),
                altitude=2.5 * i,
            )
        )
    return frames


@pytest.fixture
def yaw_90():
    """Device quaternion for a 90 degree heading, as (w, x, y, z)."""
    return YAW_90
