"""Real-time IMU attitude fusion.

Most client code should import conveniently from here rather than diving
into the ``core`` and ``fusion`` subpackages.

Example::

    from attitude_fusion import RTQFFilter, ImuSample, FusionSettings

    fusion = RTQFFilter()
    sample = ImuSample(timestamp=0, accel=[0.0, 0.0, 1.0])
    fusion.ingest(sample, FusionSettings())
"""

from .core import (
    ImuSample,
    Quaternion,
    EulerAngles,
    FusionSnapshot,
    QuaternionOps,
    FusionConfig,
    FusionSettings,
    load_config,
)
from .fusion import (
    RTQFFilter,
    CorrectionStrategy,
    LinearCorrection,
    SlerpCorrection,
    MeasuredPoseEstimator,
    make_correction,
)

__version__ = "0.1.0"

__all__ = [
    "ImuSample",
    "Quaternion",
    "EulerAngles",
    "FusionSnapshot",
    "QuaternionOps",
    "FusionConfig",
    "FusionSettings",
    "load_config",
    "RTQFFilter",
    "CorrectionStrategy",
    "LinearCorrection",
    "SlerpCorrection",
    "MeasuredPoseEstimator",
    "make_correction",
]
