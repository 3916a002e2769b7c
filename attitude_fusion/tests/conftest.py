"""Pytest fixtures for attitude fusion tests."""

from typing import Callable, Sequence
import pytest
import numpy as np

from attitude_fusion.core.config import FusionConfig, FusionSettings
from attitude_fusion.core.types import ImuSample, Quaternion
from attitude_fusion.fusion.correction import LinearCorrection, SlerpCorrection
from attitude_fusion.fusion.rtqf import RTQFFilter


@pytest.fixture
def config() -> FusionConfig:
    """Create default configuration for tests."""
    return FusionConfig()


@pytest.fixture
def settings() -> FusionSettings:
    """Zero magnetic declination."""
    return FusionSettings(compass_adj_declination=0.0)


@pytest.fixture
def make_sample() -> Callable[..., ImuSample]:
    """Factory for IMU samples.

    Defaults describe a stationary, level IMU: no rotation, +1 g on Z and
    the compass pointing north.
    """
    def _make(
        timestamp: int,
        gyro: Sequence[float] = (0.0, 0.0, 0.0),
        accel: Sequence[float] = (0.0, 0.0, 1.0),
        compass: Sequence[float] = (1.0, 0.0, 0.0),
        compass_valid: bool = True,
    ) -> ImuSample:
        return ImuSample(
            timestamp=timestamp,
            gyro=np.array(gyro, dtype=np.float64),
            accel=np.array(accel, dtype=np.float64),
            compass=np.array(compass, dtype=np.float64),
            compass_valid=compass_valid,
        )
    return _make


@pytest.fixture
def linear_filter() -> RTQFFilter:
    """Filter with the default linear gains."""
    return RTQFFilter(correction=LinearCorrection())


@pytest.fixture
def slerp_filter() -> RTQFFilter:
    """Filter with the default slerp power."""
    return RTQFFilter(correction=SlerpCorrection())


@pytest.fixture
def gyro_only_filter() -> RTQFFilter:
    """Filter integrating the gyros only."""
    return RTQFFilter(enable_accel=False, enable_compass=False)


@pytest.fixture
def identity_quaternion() -> Quaternion:
    """Create identity quaternion (no rotation)."""
    return Quaternion.identity()


@pytest.fixture
def roll_30_quaternion() -> Quaternion:
    """30 degree rotation about X."""
    angle = np.deg2rad(30)
    return Quaternion(
        w=np.cos(angle / 2),
        x=np.sin(angle / 2),
        y=0.0,
        z=0.0,
    )
