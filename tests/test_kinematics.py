"""Kinematic utilities — physical limits, cuts, transforms, Jacobian."""

import math

import pytest

from reskine.constants import A_SMALL_NUM, DIPOLE_MASS2, MUON_MASS, NUCLEON_MASS, PION_MASS
from reskine.core.kinematics import (
    PhysicalLimits,
    apply_cuts,
    inelastic_q2_range,
    inelastic_w_range,
    jacobian,
    q2_to_qd2,
    qd2_to_q2,
    wq2_to_xy,
)
from reskine.models.interaction import KinePhaseSpace, KineVar, Range1D

from synthetic_xsec import make_interaction


# ── Physical limits ──


class TestWRange:
    def test_bounds_at_2GeV(self):
        w = inelastic_w_range(2.0, NUCLEON_MASS, MUON_MASS)
        s = NUCLEON_MASS ** 2 + 2.0 * NUCLEON_MASS * 2.0
        assert w.min == pytest.approx(NUCLEON_MASS + PION_MASS + A_SMALL_NUM)
        assert w.max == pytest.approx(math.sqrt(s) - MUON_MASS - A_SMALL_NUM)

    def test_below_threshold_is_empty(self):
        assert inelastic_w_range(0.1, NUCLEON_MASS, MUON_MASS).is_empty

    def test_grows_with_energy(self):
        lo = inelastic_w_range(1.0, NUCLEON_MASS, MUON_MASS)
        hi = inelastic_w_range(5.0, NUCLEON_MASS, MUON_MASS)
        assert hi.max > lo.max
        assert hi.min == pytest.approx(lo.min)


class TestQ2Range:
    def test_positive_and_ordered(self):
        q2 = inelastic_q2_range(2.0, NUCLEON_MASS, MUON_MASS, 1.232)
        assert 0 < q2.min < q2.max

    def test_massless_lepton_reaches_zero(self):
        q2 = inelastic_q2_range(2.0, NUCLEON_MASS, 0.0, 1.232)
        assert q2.min == pytest.approx(A_SMALL_NUM, abs=1e-9)

    def test_massless_lepton_maximum(self):
        """Q²max = 4·E₀*·E₁* when the lepton is massless."""
        E, W = 3.0, 1.5
        s = NUCLEON_MASS ** 2 + 2 * NUCLEON_MASS * E
        e0 = (s - NUCLEON_MASS ** 2) / (2 * math.sqrt(s))
        e1 = (s - W * W) / (2 * math.sqrt(s))
        q2 = inelastic_q2_range(E, NUCLEON_MASS, 0.0, W)
        assert q2.max == pytest.approx(4 * e0 * e1 - A_SMALL_NUM)

    def test_range_shrinks_with_w(self):
        low_w = inelastic_q2_range(2.0, NUCLEON_MASS, MUON_MASS, 1.1)
        high_w = inelastic_q2_range(2.0, NUCLEON_MASS, MUON_MASS, 1.9)
        assert high_w.width < low_w.width

    def test_unreachable_w_is_empty(self):
        assert inelastic_q2_range(2.0, NUCLEON_MASS, MUON_MASS, 3.0).is_empty


class TestPhysicalLimits:
    def test_q2_uses_running_w(self):
        interaction = make_interaction(2.0)
        interaction.kinematics.set(KineVar.W, 1.232)
        q2 = PhysicalLimits().kine_range(interaction, KineVar.Q2)
        assert q2 == inelastic_q2_range(2.0, NUCLEON_MASS, MUON_MASS, 1.232)

    def test_q2_without_running_w_raises(self):
        with pytest.raises(KeyError):
            PhysicalLimits().kine_range(make_interaction(2.0), KineVar.Q2)

    def test_unsupported_variable(self):
        with pytest.raises(ValueError):
            PhysicalLimits().kine_range(make_interaction(2.0), KineVar.X)


# ── Cuts ──


class TestApplyCuts:
    physical = Range1D(1.0, 2.0)

    def test_no_cuts(self):
        assert apply_cuts(self.physical, None, None) == self.physical

    def test_cuts_inside_narrow(self):
        assert apply_cuts(self.physical, 1.2, 1.5) == Range1D(1.2, 1.5)

    def test_cuts_outside_do_not_widen(self):
        assert apply_cuts(self.physical, 0.5, 3.0) == self.physical

    def test_min_cut_above_range_empties(self):
        assert apply_cuts(self.physical, 2.5, 3.0).is_empty

    def test_max_cut_below_range_empties(self):
        assert apply_cuts(self.physical, 0.1, 0.5).is_empty

    def test_crossed_cuts_empty(self):
        assert apply_cuts(self.physical, 1.8, 1.2).is_empty

    def test_clamped_order_invariant(self):
        for lo, hi in [(0.0, 1.5), (1.3, 5.0), (1.1, 1.9), (None, 1.4)]:
            r = apply_cuts(self.physical, lo, hi)
            assert self.physical.min <= r.min <= r.max <= self.physical.max


# ── Transforms ──


class TestTransforms:
    def test_qd2_of_zero_is_one(self):
        assert q2_to_qd2(0.0) == pytest.approx(1.0)

    def test_qd2_at_dipole_mass(self):
        assert q2_to_qd2(DIPOLE_MASS2) == pytest.approx(0.5)

    def test_inverse(self):
        assert qd2_to_q2(q2_to_qd2(1.37)) == pytest.approx(1.37)

    def test_qd2_decreases_with_q2(self):
        assert q2_to_qd2(0.1) > q2_to_qd2(1.0)


class TestJacobian:
    def test_matches_numerical_derivative(self):
        q2, h = 0.8, 1e-6
        dq2_dqd2 = (qd2_to_q2(q2_to_qd2(q2) + h) - qd2_to_q2(q2_to_qd2(q2) - h)) / (2 * h)
        assert jacobian(q2) == pytest.approx(abs(dq2_dqd2), rel=1e-5)

    def test_at_zero_is_dipole_mass(self):
        assert jacobian(0.0) == pytest.approx(DIPOLE_MASS2)

    def test_reverse_is_reciprocal(self):
        fwd = jacobian(0.5, KinePhaseSpace.W_Q2, KinePhaseSpace.W_QD2)
        rev = jacobian(0.5, KinePhaseSpace.W_QD2, KinePhaseSpace.W_Q2)
        assert fwd * rev == pytest.approx(1.0)

    def test_identity(self):
        assert jacobian(0.5, KinePhaseSpace.W_Q2, KinePhaseSpace.W_Q2) == 1.0


class TestScalingVariables:
    def test_xy_formula(self):
        E, W, Q2 = 2.0, 1.232, 0.5
        x, y = wq2_to_xy(E, NUCLEON_MASS, W, Q2)
        nu2m = W * W - NUCLEON_MASS ** 2 + Q2
        assert x == pytest.approx(Q2 / nu2m)
        assert y == pytest.approx(nu2m / (2 * NUCLEON_MASS * E))

    def test_physical_point_in_unit_interval(self):
        E, W = 2.0, 1.4
        q2 = inelastic_q2_range(E, NUCLEON_MASS, MUON_MASS, W)
        x, y = wq2_to_xy(E, NUCLEON_MASS, W, 0.5 * (q2.min + q2.max))
        assert 0 < x < 1
        assert 0 < y < 1
