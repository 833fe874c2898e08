#!/usr/bin/env python
"""
Load a recorded rocket flight, recompute its orientation and print a summary.

Accepts the ground-station CSV logs (current and legacy column layouts) and
JSON captures of the live telemetry stream. The recomputed dataset can be
written back out as CSV with the orientation and calculated quaternion columns
filled in.
"""

from __future__ import annotations

import argparse
import logging as log
import sys
from pathlib import Path

import numpy as np

from orientation.config import FilterSettings
from orientation.interface import FilterKind
from telemetry.dataset import TelemetryDataset


def summarize(dataset: TelemetryDataset) -> list[str]:
    stats = dataset.get_statistics()
    duration = stats.duration
    sample_rate = (stats.count - 1) / duration if duration > 0 else 0.0

    frame = dataset.to_frame()
    ax = frame["accelX"].to_numpy()
    ay = frame["accelY"].to_numpy()
    az = frame["accelZ"].to_numpy()
    peak_accel = float(np.max(np.sqrt(ax**2 + ay**2 + az**2)))

    final = dataset.records[-1].orientation
    return [
        f"Records {stats.count}",
        f"Duration {duration:.2f} s",
        f"Sample Rate {sample_rate:.0f} Hz",
        f"Altitude {stats.altitude.min:.1f} .. {stats.altitude.max:.1f} m",
        f"Max Acceleration {peak_accel:.2f} g",
        f"Final Orientation roll {final.x:.1f}° pitch {final.y:.1f}° yaw {final.z:.1f}°",
        f"Device Quaternion {'yes' if stats.has_quaternions else 'no'}",
    ]


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Recompute rocket orientation from recorded telemetry")
    parser.add_argument("flight", type=Path, help="Flight log (.csv or .json)")
    parser.add_argument(
        "--filter",
        choices=[kind.value for kind in FilterKind],
        default=FilterKind.COMPLEMENTARY.value,
        help="Orientation filter",
    )
    parser.add_argument(
        "--use-device-quaternion",
        action="store_true",
        help="Use the flight computer's quaternion where a record has one",
    )
    parser.add_argument("--alpha", type=float, help="Complementary filter gyro weight")
    parser.add_argument("--beta", type=float, help="Madgwick gradient-descent gain")
    parser.add_argument("-o", "--output", type=Path, help="Write the recomputed dataset as CSV")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    log.basicConfig(
        level=log.DEBUG if args.verbose else log.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    settings = FilterSettings()
    if args.alpha is not None:
        settings.complementary.alpha = args.alpha
    if args.beta is not None:
        settings.madgwick.beta = args.beta

    dataset = TelemetryDataset()
    try:
        count = dataset.load_from_file(args.flight)
    except (OSError, ValueError) as e:
        log.error(f"Failed to load {args.flight}: {e}")
        return 1
    if count == 0:
        log.error(f"No telemetry records in {args.flight}")
        return 1

    dataset.recalculate_orientation(args.filter, args.use_device_quaternion, settings)

    for line in summarize(dataset):
        print(line)

    if args.output is not None:
        args.output.write_text(dataset.export_to_csv(), encoding="utf-8")
        print(f"Wrote {count} rows to {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
