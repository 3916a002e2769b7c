"""Quaternion operations and utilities."""

import numpy as np
from numpy.typing import NDArray

from .types import Quaternion, EulerAngles


class QuaternionOps:
    """Static methods for quaternion operations."""

    @staticmethod
    def from_euler(euler: EulerAngles) -> Quaternion:
        """Convert Euler angles (ZYX convention) to a unit quaternion.

        Args:
            euler: Roll, pitch and yaw in radians.

        Returns:
            Unit quaternion rotating body frame into world frame.
        """
        cr = np.cos(euler.roll / 2.0)
        sr = np.sin(euler.roll / 2.0)
        cp = np.cos(euler.pitch / 2.0)
        sp = np.sin(euler.pitch / 2.0)
        cy = np.cos(euler.yaw / 2.0)
        sy = np.sin(euler.yaw / 2.0)

        q = Quaternion(
            w=float(cr * cp * cy + sr * sp * sy),
            x=float(sr * cp * cy - cr * sp * sy),
            y=float(cr * sp * cy + sr * cp * sy),
            z=float(cr * cp * sy - sr * sp * cy),
        )
        return q.normalized()

    @staticmethod
    def to_euler(q: Quaternion) -> EulerAngles:
        """Convert quaternion to Euler angles (ZYX convention).

        Args:
            q: Unit quaternion.

        Returns:
            Euler angles in radians.
        """
        w, x, y, z = q.w, q.x, q.y, q.z

        sinr_cosp = 2.0 * (w * x + y * z)
        cosr_cosp = 1.0 - 2.0 * (x * x + y * y)
        roll = np.arctan2(sinr_cosp, cosr_cosp)

        sinp = 2.0 * (w * y - z * x)
        if abs(sinp) >= 1:
            pitch = np.copysign(np.pi / 2, sinp)
        else:
            pitch = np.arcsin(sinp)

        siny_cosp = 2.0 * (w * z + x * y)
        cosy_cosp = 1.0 - 2.0 * (y * y + z * z)
        yaw = np.arctan2(siny_cosp, cosy_cosp)

        return EulerAngles(roll=float(roll), pitch=float(pitch), yaw=float(yaw))

    @staticmethod
    def accel_to_euler(accel: NDArray[np.float64]) -> EulerAngles:
        """Compute roll and pitch from a gravity vector.

        The accelerometer is assumed to read +1 g on Z when level. Yaw is
        unobservable from gravity and is returned as zero.

        Args:
            accel: Accelerometer reading [ax, ay, az].

        Returns:
            Euler angles with yaw set to zero.
        """
        acc_norm = np.linalg.norm(accel)
        if acc_norm < 1e-10:
            return EulerAngles.zero()
        ax, ay, az = accel / acc_norm

        roll = np.arctan2(ay, az)
        pitch = -np.arctan2(ax, np.sqrt(ay * ay + az * az))
        return EulerAngles(roll=float(roll), pitch=float(pitch), yaw=0.0)

    @staticmethod
    def multiply(q1: Quaternion, q2: Quaternion) -> Quaternion:
        """Multiply two quaternions (Hamilton product).

        Args:
            q1: First quaternion.
            q2: Second quaternion.

        Returns:
            Product quaternion q1 * q2.
        """
        w = q1.w * q2.w - q1.x * q2.x - q1.y * q2.y - q1.z * q2.z
        x = q1.w * q2.x + q1.x * q2.w + q1.y * q2.z - q1.z * q2.y
        y = q1.w * q2.y - q1.x * q2.z + q1.y * q2.w + q1.z * q2.x
        z = q1.w * q2.z + q1.x * q2.y - q1.y * q2.x + q1.z * q2.w
        return Quaternion(w=w, x=x, y=y, z=z)

    @staticmethod
    def conjugate(q: Quaternion) -> Quaternion:
        """Compute quaternion conjugate.

        Args:
            q: Input quaternion.

        Returns:
            Conjugate quaternion.
        """
        return Quaternion(w=q.w, x=-q.x, y=-q.y, z=-q.z)

    @staticmethod
    def add(q1: Quaternion, q2: Quaternion) -> Quaternion:
        """Component-wise sum q1 + q2."""
        return Quaternion(w=q1.w + q2.w, x=q1.x + q2.x,
                          y=q1.y + q2.y, z=q1.z + q2.z)

    @staticmethod
    def subtract(q1: Quaternion, q2: Quaternion) -> Quaternion:
        """Component-wise difference q1 - q2.

        Only meaningful as an error proxy between nearby unit quaternions.
        """
        return Quaternion(w=q1.w - q2.w, x=q1.x - q2.x,
                          y=q1.y - q2.y, z=q1.z - q2.z)

    @staticmethod
    def scale(q: Quaternion, factor: float) -> Quaternion:
        """Multiply every component by a scalar."""
        return Quaternion(w=q.w * factor, x=q.x * factor,
                          y=q.y * factor, z=q.z * factor)

    @staticmethod
    def negate(q: Quaternion) -> Quaternion:
        """Flip the sign of every component (same rotation)."""
        return Quaternion(w=-q.w, x=-q.x, y=-q.y, z=-q.z)

    @staticmethod
    def rotate_vector(q: Quaternion, v: NDArray[np.float64]) -> NDArray[np.float64]:
        """Rotate a 3-vector by q, computing q * [0, v] * conj(q).

        Args:
            q: Unit quaternion.
            v: Vector [x, y, z].

        Returns:
            Rotated vector.
        """
        p = Quaternion(w=0.0, x=float(v[0]), y=float(v[1]), z=float(v[2]))
        r = QuaternionOps.multiply(QuaternionOps.multiply(q, p),
                                   QuaternionOps.conjugate(q))
        return r.vector

    @staticmethod
    def angle_between(q1: Quaternion, q2: Quaternion) -> float:
        """Compute rotation angle between two quaternions.

        Args:
            q1: First quaternion.
            q2: Second quaternion.

        Returns:
            Angle in radians.
        """
        q1_conj = QuaternionOps.conjugate(q1)
        q_diff = QuaternionOps.multiply(q2, q1_conj)
        angle = 2.0 * np.arccos(np.clip(abs(q_diff.w), -1.0, 1.0))
        return float(angle)
