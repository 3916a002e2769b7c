"""Data types for IMU attitude fusion."""

from dataclasses import dataclass, field
import numpy as np
from numpy.typing import NDArray


def _zero_vector() -> NDArray[np.float64]:
    return np.zeros(3, dtype=np.float64)


@dataclass(frozen=True)
class Quaternion:
    """Quaternion representing orientation.

    Convention: [w, x, y, z] where w is the scalar component. Instances
    are immutable, so one can be shared between the filter and its callers.
    """
    w: float
    x: float
    y: float
    z: float

    @classmethod
    def identity(cls) -> "Quaternion":
        """Return identity quaternion (no rotation)."""
        return cls(w=1.0, x=0.0, y=0.0, z=0.0)

    @classmethod
    def zero(cls) -> "Quaternion":
        """Return the all-zero quaternion."""
        return cls(w=0.0, x=0.0, y=0.0, z=0.0)

    @classmethod
    def from_array(cls, arr: NDArray[np.float64]) -> "Quaternion":
        """Create from numpy array [w, x, y, z]."""
        return cls(w=float(arr[0]), x=float(arr[1]),
                   y=float(arr[2]), z=float(arr[3]))

    def to_array(self) -> NDArray[np.float64]:
        """Convert to numpy array [w, x, y, z]."""
        return np.array([self.w, self.x, self.y, self.z], dtype=np.float64)

    @property
    def vector(self) -> NDArray[np.float64]:
        """Vector part [x, y, z]."""
        return np.array([self.x, self.y, self.z], dtype=np.float64)

    @property
    def norm(self) -> float:
        """Euclidean norm of quaternion."""
        return float(np.sqrt(self.w**2 + self.x**2 + self.y**2 + self.z**2))

    def normalized(self) -> "Quaternion":
        """Return normalized copy."""
        n = self.norm
        if n < 1e-10:
            return Quaternion.identity()
        return Quaternion(w=self.w/n, x=self.x/n, y=self.y/n, z=self.z/n)


@dataclass(frozen=True)
class EulerAngles:
    """Euler angles in radians.

    Convention: ZYX (yaw-pitch-roll) intrinsic rotations, body to world.
    """
    roll: float   # Rotation about X axis
    pitch: float  # Rotation about Y axis
    yaw: float    # Rotation about Z axis

    @classmethod
    def zero(cls) -> "EulerAngles":
        return cls(roll=0.0, pitch=0.0, yaw=0.0)

    @classmethod
    def from_array(cls, arr: NDArray[np.float64]) -> "EulerAngles":
        """Create from numpy array [roll, pitch, yaw]."""
        return cls(roll=float(arr[0]), pitch=float(arr[1]), yaw=float(arr[2]))

    def to_array(self) -> NDArray[np.float64]:
        """Convert to numpy array [roll, pitch, yaw]."""
        return np.array([self.roll, self.pitch, self.yaw], dtype=np.float64)

    def with_yaw(self, yaw: float) -> "EulerAngles":
        """Return a copy with the yaw angle replaced."""
        return EulerAngles(roll=self.roll, pitch=self.pitch, yaw=float(yaw))

    @property
    def roll_deg(self) -> float:
        """Roll angle in degrees."""
        return float(np.rad2deg(self.roll))

    @property
    def pitch_deg(self) -> float:
        """Pitch angle in degrees."""
        return float(np.rad2deg(self.pitch))

    @property
    def yaw_deg(self) -> float:
        """Yaw angle in degrees."""
        return float(np.rad2deg(self.yaw))


@dataclass
class ImuSample:
    """One IMU sample handed to the filter, and the fused result written back.

    Inputs:
    - timestamp: microseconds, expected non-decreasing
    - gyro: rad/s
    - accel: g (only the direction is used)
    - compass: any unit (only the direction is used)

    The fusion fields are filled in place by ``RTQFFilter.ingest``.
    """
    timestamp: int
    gyro: NDArray[np.float64] = field(default_factory=_zero_vector)
    accel: NDArray[np.float64] = field(default_factory=_zero_vector)
    compass: NDArray[np.float64] = field(default_factory=_zero_vector)
    compass_valid: bool = False

    fusion_pose: EulerAngles = field(default_factory=EulerAngles.zero)
    fusion_qpose: Quaternion = field(default_factory=Quaternion.identity)
    fusion_pose_valid: bool = False
    fusion_qpose_valid: bool = False

    def __post_init__(self) -> None:
        self.gyro = np.asarray(self.gyro, dtype=np.float64)
        self.accel = np.asarray(self.accel, dtype=np.float64)
        self.compass = np.asarray(self.compass, dtype=np.float64)


@dataclass
class FusionSnapshot:
    """Current state of the fusion filter, for diagnostics."""
    quaternion: Quaternion
    euler: EulerAngles
    measured_euler: EulerAngles
    time_delta: float
    sample_number: int
    is_initialized: bool = False
    quaternion_norm: float = 1.0
    measurement_error: float = 0.0  # radians between fused and measured pose

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "qw": self.quaternion.w,
            "qx": self.quaternion.x,
            "qy": self.quaternion.y,
            "qz": self.quaternion.z,
            "roll": self.euler.roll_deg,
            "pitch": self.euler.pitch_deg,
            "yaw": self.euler.yaw_deg,
            "measured_roll": self.measured_euler.roll_deg,
            "measured_pitch": self.measured_euler.pitch_deg,
            "measured_yaw": self.measured_euler.yaw_deg,
            "dt_ms": self.time_delta * 1000,
            "q_norm": self.quaternion_norm,
            "measurement_error_deg": float(np.rad2deg(self.measurement_error)),
            "sample_number": self.sample_number,
            "initialized": self.is_initialized,
        }
