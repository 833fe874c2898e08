from orientation.bank import OrientationFilterBank
from orientation.config import ComplementaryConfig, FilterSettings, KalmanConfig, MadgwickConfig
from orientation.conversions import EulerAngles, euler_to_quaternion, normalize_angle, quaternion_to_euler
from orientation.interface import FilterKind, OrientationEstimator
from orientation.madgwick import MadgwickAHRS

__all__ = [
    "ComplementaryConfig",
    "EulerAngles",
    "FilterKind",
    "FilterSettings",
    "KalmanConfig",
    "MadgwickAHRS",
    "MadgwickConfig",
    "OrientationEstimator",
    "OrientationFilterBank",
    "euler_to_quaternion",
    "normalize_angle",
    "quaternion_to_euler",
]
