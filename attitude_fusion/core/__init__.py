"""Core module for IMU attitude fusion."""

from .types import (
    ImuSample,
    Quaternion,
    EulerAngles,
    FusionSnapshot,
)
from .quaternion import QuaternionOps
from .config import (
    FusionConfig,
    FilterConfig,
    LinearGainConfig,
    SlerpConfig,
    SourceConfig,
    FusionSettings,
    load_config,
)

__all__ = [
    "ImuSample",
    "Quaternion",
    "EulerAngles",
    "FusionSnapshot",
    "QuaternionOps",
    "FusionConfig",
    "FilterConfig",
    "LinearGainConfig",
    "SlerpConfig",
    "SourceConfig",
    "FusionSettings",
    "load_config",
]
