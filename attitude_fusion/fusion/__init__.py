"""Attitude fusion filter: predict/update engine and correction laws."""

from .pose import MeasuredPoseEstimator
from .correction import (
    CorrectionStrategy,
    LinearCorrection,
    SlerpCorrection,
    make_correction,
)
from .rtqf import RTQFFilter, DeclinationProvider

__all__ = [
    "MeasuredPoseEstimator",
    "CorrectionStrategy",
    "LinearCorrection",
    "SlerpCorrection",
    "make_correction",
    "RTQFFilter",
    "DeclinationProvider",
]
