"""RTQF predict/update attitude filter.

Each sample advances a unit quaternion in two steps:

1. predict: integrate the gyro rate with the linearized quaternion
   kinematics q_dot = 0.5 * Omega(w) * q (first-order Euler step).
2. update: pull the prediction toward the accel/compass measured
   quaternion with the configured correction strategy, then renormalize.

The very first sample bootstraps the state from the measured pose.
The filter is not thread safe; feed it from a single producer.
"""

import logging
from typing import Optional, Protocol
import numpy as np
from numpy.typing import NDArray

from ..core.types import Quaternion, EulerAngles, ImuSample, FusionSnapshot
from ..core.config import FusionConfig
from ..core.quaternion import QuaternionOps
from .correction import CorrectionStrategy, LinearCorrection, make_correction
from .pose import MeasuredPoseEstimator

logger = logging.getLogger(__name__)

GRAVITY = Quaternion(w=0.0, x=0.0, y=0.0, z=1.0)


class DeclinationProvider(Protocol):
    """Anything exposing the magnetic declination correction (radians)."""

    compass_adj_declination: float


class RTQFFilter:
    """Quaternion attitude filter with gyro predict and accel/compass update.

    Attributes:
        enable_gyro: When False the gyro rate is replaced by zero.
        enable_accel: Use the accelerometer for the measured tilt.
        enable_compass: Use the compass for the measured heading.
        debug: Emit per-sample trace lines at DEBUG level.
    """

    name = "RTQF"

    def __init__(
        self,
        correction: Optional[CorrectionStrategy] = None,
        enable_gyro: bool = True,
        enable_accel: bool = True,
        enable_compass: bool = True,
        debug: bool = False,
    ):
        self._correction = correction if correction is not None else LinearCorrection()
        self._pose_estimator = MeasuredPoseEstimator()

        self.enable_gyro = enable_gyro
        self.enable_accel = enable_accel
        self.enable_compass = enable_compass
        self.debug = debug

        self.reset()

    @classmethod
    def from_config(cls, config: FusionConfig) -> "RTQFFilter":
        """Build a filter and its correction strategy from configuration."""
        return cls(
            correction=make_correction(config),
            enable_gyro=config.sources.enable_gyro,
            enable_accel=config.sources.enable_accel,
            enable_compass=config.sources.enable_compass,
            debug=config.filter.debug,
        )

    def reset(self) -> None:
        """Return to the uninitialized state with a zero pose."""
        self.first_time = True
        self.fusion_pose = EulerAngles.zero()
        self.fusion_qpose = QuaternionOps.from_euler(self.fusion_pose)
        self.gyro: NDArray[np.float64] = np.zeros(3)
        self.accel: NDArray[np.float64] = np.zeros(3)
        self.compass: NDArray[np.float64] = np.zeros(3)
        self.compass_valid = False
        self.measured_pose = EulerAngles.zero()
        self.measured_qpose = QuaternionOps.from_euler(self.measured_pose)
        self.state_q = Quaternion.identity()
        self._fk = np.zeros((4, 4))
        self.time_delta = 0.0
        self.last_fusion_time = 0
        self.sample_number = 0
        logger.info("%s filter reset (%r)", self.name, self._correction)

    @property
    def correction(self) -> CorrectionStrategy:
        """Correction strategy fixed at construction."""
        return self._correction

    @property
    def is_initialized(self) -> bool:
        """Whether the first sample has been processed."""
        return not self.first_time

    @property
    def transition_matrix(self) -> NDArray[np.float64]:
        """Copy of the last state transition matrix."""
        return self._fk.copy()

    def predict(self) -> None:
        """Integrate the gyro rate over time_delta into state_q.

        Does not renormalize; update() restores the unit norm.
        """
        x2, y2, z2 = self.gyro / 2.0

        self._fk = np.array([
            [0.0, -x2, -y2, -z2],
            [x2, 0.0, z2, -y2],
            [y2, -z2, 0.0, x2],
            [z2, y2, -x2, 0.0],
        ])

        q = self.state_q.to_array()
        q_dot = self._fk @ q
        self.state_q = Quaternion.from_array(q + q_dot * self.time_delta)

    def update(self) -> None:
        """Correct state_q toward measured_qpose and renormalize."""
        active = self.enable_compass or self.enable_accel
        self.state_q = self._correction.correct(
            self.state_q, self.measured_qpose, self.time_delta, active
        ).normalized()

    def calculate_pose(
        self,
        accel: NDArray[np.float64],
        compass: NDArray[np.float64],
        declination: float,
    ) -> None:
        """Refresh measured_pose and measured_qpose from accel and compass."""
        self.measured_pose, self.measured_qpose = self._pose_estimator.calculate(
            accel,
            compass,
            declination,
            self.fusion_pose,
            self.fusion_qpose,
            enable_accel=self.enable_accel,
            enable_compass=self.enable_compass,
            compass_valid=self.compass_valid,
        )

    def ingest(self, sample: ImuSample, settings: DeclinationProvider) -> bool:
        """Fuse one IMU sample and write the result back into it.

        Args:
            sample: IMU sample; its fusion fields are updated in place.
            settings: Provider of the magnetic declination correction.

        Returns:
            True if the sample produced a fused output, False if it was
            discarded because its timestamp did not advance.
        """
        self.sample_number += 1
        if self.debug:
            logger.debug(
                "IMU update delta time: %f, sample %d",
                self.time_delta, self.sample_number
            )

        if self.enable_gyro:
            self.gyro = np.array(sample.gyro, dtype=np.float64)
        else:
            self.gyro = np.zeros(3)
        self.accel = np.array(sample.accel, dtype=np.float64)
        self.compass = np.array(sample.compass, dtype=np.float64)
        self.compass_valid = sample.compass_valid

        declination = settings.compass_adj_declination

        if self.first_time:
            self.last_fusion_time = sample.timestamp
            self.calculate_pose(self.accel, self.compass, declination)
            self._fk = np.zeros((4, 4))

            self.state_q = QuaternionOps.from_euler(self.measured_pose)
            self.fusion_qpose = self.state_q
            self.fusion_pose = self.measured_pose
            self.first_time = False

            logger.info(
                "%s initialized: roll=%.1f, pitch=%.1f, yaw=%.1f deg",
                self.name, self.fusion_pose.roll_deg,
                self.fusion_pose.pitch_deg, self.fusion_pose.yaw_deg
            )
        else:
            time_delta = (sample.timestamp - self.last_fusion_time) / 1e6
            if time_delta <= 0:
                if self.debug:
                    logger.debug(
                        "Discarding sample %d: non-positive delta time %f",
                        self.sample_number, time_delta
                    )
                return False
            self.time_delta = time_delta
            self.last_fusion_time = sample.timestamp

            self.calculate_pose(self.accel, self.compass, declination)

            self.predict()
            self.update()
            self.fusion_pose = QuaternionOps.to_euler(self.state_q)
            self.fusion_qpose = self.state_q

            if self.debug:
                self._trace()

        sample.fusion_pose_valid = True
        sample.fusion_qpose_valid = True
        sample.fusion_pose = self.fusion_pose
        sample.fusion_qpose = self.fusion_qpose
        return True

    def accel_residuals(self) -> NDArray[np.float64]:
        """Accelerometer reading with gravity removed, in g.

        Gravity is rotated into the body frame using the fused quaternion.
        """
        fused_conj = QuaternionOps.conjugate(self.fusion_qpose)
        rotated = QuaternionOps.multiply(
            fused_conj, QuaternionOps.multiply(GRAVITY, self.fusion_qpose)
        )
        return -(self.accel - rotated.vector)

    def snapshot(self) -> FusionSnapshot:
        """Diagnostic view of the current filter state."""
        return FusionSnapshot(
            quaternion=self.fusion_qpose,
            euler=self.fusion_pose,
            measured_euler=self.measured_pose,
            time_delta=self.time_delta,
            sample_number=self.sample_number,
            is_initialized=self.is_initialized,
            quaternion_norm=self.state_q.norm,
            measurement_error=QuaternionOps.angle_between(
                self.fusion_qpose, self.measured_qpose
            ),
        )

    def _trace(self) -> None:
        m, f = self.measured_pose, self.fusion_pose
        logger.debug(
            "Measured pose: roll=%.2f pitch=%.2f yaw=%.2f deg",
            m.roll_deg, m.pitch_deg, m.yaw_deg
        )
        logger.debug(
            "RTQF pose: roll=%.2f pitch=%.2f yaw=%.2f deg",
            f.roll_deg, f.pitch_deg, f.yaw_deg
        )
        logger.debug("Measured quat: %s", self.measured_qpose.to_array())
        logger.debug("RTQF quat: %s", self.state_q.to_array())
        logger.debug("Error quat: %s", self._correction.last_error.to_array())

    def __repr__(self):
        return f"RTQFFilter(correction={self._correction!r}, q={self.state_q.to_array()})"
