"""Tests for update-step correction strategies."""

import pytest
import numpy as np
from numpy.testing import assert_allclose

from attitude_fusion.core.config import FusionConfig
from attitude_fusion.core.types import Quaternion
from attitude_fusion.core.quaternion import QuaternionOps
from attitude_fusion.fusion.correction import (
    LinearCorrection,
    SlerpCorrection,
    make_correction,
)


class TestLinearCorrection:
    """Tests for the complementary gain law."""

    def test_gain(self):
        """Gain is qt / (qt + R) with qt = Q * dt."""
        correction = LinearCorrection(q_value=0.001, r_value=0.0005)
        assert correction.gain(0.01) == pytest.approx(1e-5 / (1e-5 + 5e-4))

    def test_zero_q_passes_prediction_through(self, identity_quaternion, roll_30_quaternion):
        """With Q = 0 the state never moves toward the measurement."""
        correction = LinearCorrection(q_value=0.0, r_value=0.0005)
        result = correction.correct(identity_quaternion, roll_30_quaternion, 0.01, True)

        assert_allclose(result.to_array(), identity_quaternion.to_array())

    def test_zero_gains_do_not_divide_by_zero(self, identity_quaternion, roll_30_quaternion):
        """Q = R = 0 is treated as no correction."""
        correction = LinearCorrection(q_value=0.0, r_value=0.0)
        result = correction.correct(identity_quaternion, roll_30_quaternion, 0.01, True)

        assert np.all(np.isfinite(result.to_array()))
        assert_allclose(result.to_array(), identity_quaternion.to_array())

    def test_large_ratio_snaps_to_measurement(self, identity_quaternion, roll_30_quaternion):
        """As Q/R grows the state reaches the measurement in one step."""
        correction = LinearCorrection(q_value=1e9, r_value=1e-9)
        result = correction.correct(identity_quaternion, roll_30_quaternion, 0.01, True)

        assert_allclose(result.to_array(), roll_30_quaternion.to_array(), atol=1e-9)

    def test_inactive_passes_prediction_through(self, identity_quaternion, roll_30_quaternion):
        """With accel and compass disabled the error is zero."""
        correction = LinearCorrection(q_value=1e9, r_value=1e-9)
        result = correction.correct(identity_quaternion, roll_30_quaternion, 0.01, False)

        assert_allclose(result.to_array(), identity_quaternion.to_array())
        assert_allclose(correction.last_error.to_array(), np.zeros(4))

    def test_records_error(self, identity_quaternion, roll_30_quaternion):
        """The last error quaternion is kept for diagnostics."""
        correction = LinearCorrection()
        correction.correct(identity_quaternion, roll_30_quaternion, 0.01, True)

        expected = QuaternionOps.subtract(roll_30_quaternion, identity_quaternion)
        assert_allclose(correction.last_error.to_array(), expected.to_array())

    def test_gains_are_read_only(self):
        """Gains cannot be changed after construction."""
        correction = LinearCorrection(q_value=0.002, r_value=0.001)
        with pytest.raises(AttributeError):
            correction.q_value = 1.0
        assert correction.q_value == 0.002
        assert correction.r_value == 0.001


class TestSlerpCorrection:
    """Tests for the partial-rotation correction."""

    def test_power_zero_leaves_state(self, identity_quaternion, roll_30_quaternion):
        """Power 0 ignores the measurement."""
        correction = SlerpCorrection(slerp_power=0.0)
        result = correction.correct(identity_quaternion, roll_30_quaternion, 0.01, True)

        assert_allclose(result.to_array(), identity_quaternion.to_array(), atol=1e-12)

    def test_power_one_snaps_to_measurement(self, roll_30_quaternion):
        """Power 1 replaces the state with the measurement."""
        state = Quaternion(w=np.cos(0.2), x=0.0, y=0.0, z=np.sin(0.2))
        correction = SlerpCorrection(slerp_power=1.0)
        result = correction.correct(state, roll_30_quaternion, 0.01, True)

        assert QuaternionOps.angle_between(result, roll_30_quaternion) < 1e-6

    def test_partial_power_rotates_fraction(self, identity_quaternion):
        """The correction angle is theta * power."""
        target_angle = np.deg2rad(40)
        target = Quaternion(w=np.cos(target_angle / 2), x=0.0,
                            y=np.sin(target_angle / 2), z=0.0)
        correction = SlerpCorrection(slerp_power=0.25)
        result = correction.correct(identity_quaternion, target, 0.01, True)

        angle = QuaternionOps.angle_between(identity_quaternion, result)
        assert abs(angle - 0.25 * target_angle) < 1e-9

    def test_equal_quaternions_are_stable(self, roll_30_quaternion):
        """No rotation axis exists when state equals measurement."""
        correction = SlerpCorrection(slerp_power=0.5)
        result = correction.correct(roll_30_quaternion, roll_30_quaternion, 0.01, True)

        assert np.all(np.isfinite(result.to_array()))
        assert_allclose(result.to_array(), roll_30_quaternion.to_array(), atol=1e-12)

    def test_acos_argument_is_clamped(self):
        """Rounding past |w| = 1 must not produce NaN."""
        state = Quaternion(w=1.0 + 1e-12, x=0.0, y=0.0, z=0.0)
        measured = Quaternion(w=1.0, x=1e-13, y=0.0, z=0.0)
        result = SlerpCorrection(slerp_power=0.5).correct(state, measured, 0.01, True)

        assert np.all(np.isfinite(result.to_array()))

    def test_inactive_passes_prediction_through(self, identity_quaternion, roll_30_quaternion):
        """Inactive correction returns the prediction unchanged."""
        correction = SlerpCorrection(slerp_power=1.0)
        result = correction.correct(identity_quaternion, roll_30_quaternion, 0.01, False)

        assert_allclose(result.to_array(), identity_quaternion.to_array())


class TestMakeCorrection:
    """Tests for building the strategy from configuration."""

    def test_linear(self, config):
        """Default config builds the linear law with the default gains."""
        correction = make_correction(config)

        assert isinstance(correction, LinearCorrection)
        assert correction.q_value == config.linear.q_value
        assert correction.r_value == config.linear.r_value

    def test_slerp(self):
        """Slerp mode builds the slerp strategy."""
        config = FusionConfig()
        config.filter.mode = "slerp"
        config.slerp.slerp_power = 0.1
        correction = make_correction(config)

        assert isinstance(correction, SlerpCorrection)
        assert correction.slerp_power == 0.1

    def test_unknown_mode(self):
        """Unknown modes are rejected."""
        config = FusionConfig()
        config.filter.mode = "kalman"

        with pytest.raises(ValueError):
            make_correction(config)
