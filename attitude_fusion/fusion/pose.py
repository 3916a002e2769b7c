"""Measured pose from accelerometer tilt and compass heading.

The measured pose is a direct, drift-free but noisy orientation estimate.
It is never integrated; the filter only uses it as the target of the
correction step.
"""

from typing import Tuple
import numpy as np
from numpy.typing import NDArray

from ..core.types import Quaternion, EulerAngles
from ..core.quaternion import QuaternionOps


class MeasuredPoseEstimator:
    """Computes roll/pitch from gravity and yaw from the compass."""

    def calculate(
        self,
        accel: NDArray[np.float64],
        compass: NDArray[np.float64],
        declination: float,
        fusion_pose: EulerAngles,
        fusion_qpose: Quaternion,
        enable_accel: bool = True,
        enable_compass: bool = True,
        compass_valid: bool = True,
    ) -> Tuple[EulerAngles, Quaternion]:
        """Compute the measured pose for one sample.

        Args:
            accel: Accelerometer reading [ax, ay, az].
            compass: Compass reading [mx, my, mz].
            declination: Magnetic declination correction in radians.
            fusion_pose: Current fused Euler pose, used for any axis the
                sensors cannot observe this cycle.
            fusion_qpose: Current fused quaternion, used to pick the sign of
                the measured quaternion.
            enable_accel: Use the accelerometer for roll and pitch.
            enable_compass: Use the compass for yaw.
            compass_valid: Whether this sample carries a compass reading.

        Returns:
            Tuple of (measured Euler pose, measured quaternion).
        """
        if enable_accel:
            pose = QuaternionOps.accel_to_euler(accel)
        else:
            pose = fusion_pose.with_yaw(0.0)

        if enable_compass and compass_valid:
            pose = pose.with_yaw(self._heading(pose, compass, declination))
        else:
            pose = pose.with_yaw(fusion_pose.yaw)

        qpose = QuaternionOps.from_euler(pose)
        qpose, flipped = self._match_sign(qpose, fusion_qpose)
        if flipped:
            pose = QuaternionOps.to_euler(qpose)

        return pose, qpose

    @staticmethod
    def _heading(
        tilt: EulerAngles,
        compass: NDArray[np.float64],
        declination: float,
    ) -> float:
        """Tilt-compensated heading.

        Rotates the compass vector by the tilt-only orientation so that the
        horizontal field components can be read directly.
        """
        q_tilt = QuaternionOps.from_euler(tilt.with_yaw(0.0))
        m = QuaternionOps.rotate_vector(q_tilt, compass)
        return float(-np.arctan2(m[1], m[0]) - declination)

    @staticmethod
    def _match_sign(
        measured: Quaternion,
        reference: Quaternion,
    ) -> Tuple[Quaternion, bool]:
        """Flip measured onto the same hemisphere as reference.

        q and -q are the same rotation, but the correction step blends
        components directly, so the two must agree in sign. The decision is
        taken on the largest-magnitude component of the measured quaternion.
        """
        m = measured.to_array()
        r = reference.to_array()
        idx = int(np.argmax(np.abs(m)))

        if (m[idx] < 0 < r[idx]) or (m[idx] > 0 > r[idx]):
            return QuaternionOps.negate(measured), True
        return measured, False
