"""Correction strategies for the update step.

Each strategy pulls the gyro-predicted quaternion toward the measured
quaternion. The strategy is chosen once, when the filter is built:

- LinearCorrection: complementary gain law on the component-wise error.
- SlerpCorrection: rotate toward the measurement by a fixed fraction of
  the angular difference.

Neither strategy renormalizes; the filter does that after every update.
"""

from abc import ABC, abstractmethod
import numpy as np

from ..core.types import Quaternion
from ..core.config import FusionConfig, CORRECTION_MODES
from ..core.quaternion import QuaternionOps


class CorrectionStrategy(ABC):
    """Base class for update-step correction laws."""

    name = "base"

    def __init__(self):
        self.last_error = Quaternion.zero()

    @abstractmethod
    def correct(
        self,
        state_q: Quaternion,
        measured_q: Quaternion,
        time_delta: float,
        active: bool,
    ) -> Quaternion:
        """Return the corrected state quaternion.

        Args:
            state_q: Predicted state quaternion.
            measured_q: Measured quaternion from accel/compass.
            time_delta: Seconds since the previous sample.
            active: False when both accel and compass are disabled, in
                which case the prediction passes through.

        Returns:
            Corrected (not yet normalized) quaternion.
        """


class LinearCorrection(CorrectionStrategy):
    """Complementary filter on the quaternion error.

    state += (measured - state) * qt / (qt + R), with qt = Q * dt.
    A small Q/R ratio trusts the gyros, a large one trusts accel/compass.
    """

    name = "linear"

    def __init__(self, q_value: float = 0.001, r_value: float = 0.0005):
        super().__init__()
        self._q = float(q_value)
        self._r = float(r_value)

    @property
    def q_value(self) -> float:
        return self._q

    @property
    def r_value(self) -> float:
        return self._r

    def gain(self, time_delta: float) -> float:
        """Blend weight applied to the error for a given time step."""
        qt = self._q * time_delta
        denom = qt + self._r
        if denom == 0.0:
            return 0.0
        return qt / denom

    def correct(self, state_q, measured_q, time_delta, active):
        if active:
            self.last_error = QuaternionOps.subtract(measured_q, state_q)
        else:
            self.last_error = Quaternion.zero()

        step = QuaternionOps.scale(self.last_error, self.gain(time_delta))
        return QuaternionOps.add(state_q, step)

    def __repr__(self):
        return f"LinearCorrection(q_value={self._q}, r_value={self._r})"


class SlerpCorrection(CorrectionStrategy):
    """Partial rotation toward the measured quaternion.

    The correction is always a proper rotation of angle theta * power,
    where theta is the angle of conj(state) * measured.
    """

    name = "slerp"

    def __init__(self, slerp_power: float = 0.02):
        super().__init__()
        self._power = float(slerp_power)

    @property
    def slerp_power(self) -> float:
        return self._power

    def correct(self, state_q, measured_q, time_delta, active):
        if not active:
            self.last_error = Quaternion.zero()
            return state_q

        delta = QuaternionOps.multiply(
            QuaternionOps.conjugate(state_q), measured_q
        ).normalized()
        self.last_error = delta

        # acos is undefined outside [-1, 1]; rounding can push w past it
        theta = float(np.arccos(np.clip(delta.w, -1.0, 1.0)))

        axis = delta.vector
        axis_norm = np.linalg.norm(axis)
        if axis_norm < 1e-12:
            return state_q
        axis = axis / axis_norm

        sin_pt = np.sin(theta * self._power)
        cos_pt = np.cos(theta * self._power)
        rotation_power = Quaternion(
            w=float(cos_pt),
            x=float(sin_pt * axis[0]),
            y=float(sin_pt * axis[1]),
            z=float(sin_pt * axis[2]),
        ).normalized()

        return QuaternionOps.multiply(state_q, rotation_power)

    def __repr__(self):
        return f"SlerpCorrection(slerp_power={self._power})"


def make_correction(config: FusionConfig) -> CorrectionStrategy:
    """Build the correction strategy selected by the configuration.

    Raises:
        ValueError: If the configured mode is unknown.
    """
    mode = config.filter.mode
    if mode == "linear":
        return LinearCorrection(config.linear.q_value, config.linear.r_value)
    if mode == "slerp":
        return SlerpCorrection(config.slerp.slerp_power)
    raise ValueError(
        f"Unknown correction mode '{mode}', expected one of {CORRECTION_MODES}"
    )
