"""MaxCrossSectionSearch — coarse log scan with a single refinement."""

import numpy as np
import pytest

from reskine.core.phase_space import PhaseSpaceBounds
from reskine.core.xsec_search import MaxCrossSectionSearch
from reskine.models.config import KinematicsConfig
from reskine.models.interaction import KineVar

from synthetic_xsec import (
    FlatXSec,
    LogGaussianQ2Peak,
    MonotonicQ2,
    RectangularLimits,
    ResonancePeakedQ2XSec,
    make_interaction,
)


def _search(model, limits, **config_kwargs) -> MaxCrossSectionSearch:
    config = KinematicsConfig(w_cut=None, **config_kwargs)
    return MaxCrossSectionSearch(model, PhaseSpaceBounds(config, limits), config)


class TestPeakRecovery:
    def test_single_peak_within_safety_factor(self):
        """Peak at Q² = 0.3 in [0.01, 1.0]: result within the safety factor of the true peak."""
        model = LogGaussianQ2Peak(q2_peak=0.3, sigma=0.5)
        search = _search(model, RectangularLimits(w=(1.0, 2.0), q2=(0.01, 1.0)))

        result = search.search(make_interaction(2.0))

        dense = np.geomspace(0.01, 1.0, 20001)
        true_peak = max(model.value(1.232, q2) for q2 in dense)
        assert true_peak <= result <= 1.25 * true_peak * (1 + 1e-12)

    def test_ceiling_bounds_random_draws(self):
        """cached ceiling ≥ true xsec over 10,000 draws across the allowed region."""
        model = ResonancePeakedQ2XSec(mass=1.232, width=0.12, q0=0.3)
        limits = RectangularLimits(w=(1.08, 1.7), q2=(0.01, 2.0))
        ceiling = _search(model, limits).search(make_interaction(2.0, resonance="P33(1232)"))

        rng = np.random.default_rng(2024)
        ws = rng.uniform(1.08, 1.7, 10_000)
        q2s = rng.uniform(0.01, 2.0, 10_000)
        values = np.array([model.value(w, q2) for w, q2 in zip(ws, q2s)])
        assert ceiling >= values.max()

    def test_w_fixed_at_resonance_mass(self):
        model = ResonancePeakedQ2XSec(mass=1.52, width=0.115, q0=0.3)
        limits = RectangularLimits(w=(1.08, 1.7), q2=(0.01, 2.0))
        ceiling = _search(model, limits).search(make_interaction(2.0, resonance="D13(1520)"))
        assert ceiling == pytest.approx(1.25, rel=0.05)


class TestScanShape:
    def test_increasing_function_scans_full_grid(self):
        model = MonotonicQ2(slope=1.0)
        _search(model, RectangularLimits(w=(1.0, 2.0), q2=(0.01, 1.0))).search(make_interaction(2.0))
        assert model.calls == 15

    def test_refinement_happens_once(self):
        """Decreasing: two grid points, then three backward refinement steps."""
        model = MonotonicQ2(slope=-1.0)
        result = _search(model, RectangularLimits(w=(1.0, 2.0), q2=(0.01, 1.0))).search(
            make_interaction(2.0)
        )
        assert model.calls == 5
        assert result == pytest.approx(1.25 * np.exp(-0.01), rel=1e-4)

    def test_custom_resolution(self):
        model = MonotonicQ2(slope=1.0)
        search = _search(model, RectangularLimits(w=(1.0, 2.0), q2=(0.01, 1.0)), q2_scan_points=40)
        search.search(make_interaction(2.0))
        assert model.calls == 40


class TestSafetyFactor:
    limits = RectangularLimits(w=(1.0, 2.0), q2=(0.01, 1.0))

    def test_nominal(self):
        assert _search(FlatXSec(3.0), self.limits).search(make_interaction(2.0)) == pytest.approx(3.75)

    def test_low_energy(self):
        assert _search(FlatXSec(3.0), self.limits).search(make_interaction(0.5)) == pytest.approx(6.0)

    def test_configured(self):
        search = _search(FlatXSec(3.0), self.limits, safety_factor=2.5)
        assert search.search(make_interaction(2.0)) == pytest.approx(7.5)


class TestDegenerate:
    def test_point_q2_range(self):
        model = FlatXSec(1.0)
        result = _search(model, RectangularLimits(w=(1.0, 2.0), q2=(0.5, 0.5))).search(
            make_interaction(2.0)
        )
        assert result == 0.0
        assert model.calls == 0

    def test_empty_w_range(self):
        result = _search(FlatXSec(1.0), RectangularLimits(w=(1.5, 1.5), q2=(0.1, 1.0))).search(
            make_interaction(2.0)
        )
        assert result == 0.0

    def test_non_positive_q2_min(self):
        result = _search(FlatXSec(1.0), RectangularLimits(w=(1.0, 2.0), q2=(0.0, 1.0))).search(
            make_interaction(2.0)
        )
        assert result == 0.0

    def test_negative_values_floor_at_zero(self):
        result = _search(FlatXSec(-4.0), RectangularLimits(w=(1.0, 2.0), q2=(0.01, 1.0))).search(
            make_interaction(2.0)
        )
        assert result == 0.0


def test_running_values_cleared():
    interaction = make_interaction(2.0)
    _search(FlatXSec(1.0), RectangularLimits(w=(1.0, 2.0), q2=(0.01, 1.0))).search(interaction)
    assert interaction.kinematics.running == {}
    assert not interaction.kinematics.is_locked(KineVar.W)


def test_w_outside_range_uses_boundary():
    """Resonance mass above the W range: scan at the upper edge."""
    seen_w = []

    class Recorder(FlatXSec):
        def value(self, w, q2):
            seen_w.append(w)
            return 1.0

    limits = RectangularLimits(w=(1.08, 1.3), q2=(0.01, 1.0))
    _search(Recorder(1.0), limits).search(make_interaction(2.0, resonance="S11(1535)"))
    assert seen_w
    assert all(w == pytest.approx(1.3 - 1e-6) for w in seen_w)
