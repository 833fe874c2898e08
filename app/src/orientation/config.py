from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class ComplementaryConfig:
    alpha: float = 0.98  # weight of the gyro-integrated angle
    max_delta_time: float | None = 0.1  # s, step clamp against long gaps


@dataclass
class KalmanConfig:
    process_noise: float = 0.01
    measurement_noise: float = 0.1  # accelerometer angle noise
    max_delta_time: float | None = 0.1  # s

    @property
    def gain(self) -> float:
        # Static gain, no covariance propagation.
        return self.process_noise / (self.process_noise + self.measurement_noise)


@dataclass
class MadgwickConfig:
    beta: float = 0.1  # gradient-descent gain
    sample_freq: float = 100.0  # Hz, used only when no delta time is given


@dataclass
class FilterSettings:
    complementary: ComplementaryConfig = field(default_factory=ComplementaryConfig)
    kalman: KalmanConfig = field(default_factory=KalmanConfig)
    madgwick: MadgwickConfig = field(default_factory=MadgwickConfig)


def clamp_delta_time(dt: float, limit: float | None) -> float:
    if limit is None:
        return dt
    return min(dt, limit)
