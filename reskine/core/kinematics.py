"""Kinematic utilities — physical limits, variable transforms, Jacobians.

Inelastic (resonance) kinematics on a struck nucleon at rest:

    s      = M² + 2·M·E
    W      ∈ [M + m_π, √s - m_l]
    Q²(W)  = -m_l² + 2·E₀*·(E₁* ∓ p₁*)      (centre-of-mass quantities)

All energies and masses in GeV, Q² in GeV² (core units).
"""

from __future__ import annotations

import math
from typing import Protocol

from reskine.constants import A_SMALL_NUM, DIPOLE_MASS2, PION_MASS
from reskine.models.interaction import (
    Interaction,
    KinePhaseSpace,
    KineVar,
    Range1D,
)

EMPTY_RANGE = Range1D(0.0, 0.0)


class KinematicLimits(Protocol):
    """Provider of physically allowed ranges for kinematic variables."""

    def kine_range(self, interaction: Interaction, var: KineVar) -> Range1D:
        ...


# ---------------------------------------------------------------------------
# Physical limits
# ---------------------------------------------------------------------------

def inelastic_w_range(energy: float, nucleon_mass: float, lepton_mass: float) -> Range1D:
    """Allowed hadronic invariant mass range.

    Args:
        energy: Probe energy in the nucleon rest frame [GeV].
        nucleon_mass: Struck nucleon mass [GeV].
        lepton_mass: Final-state lepton mass [GeV].

    Returns:
        W range [GeV]; empty if below threshold.
    """
    s = nucleon_mass * nucleon_mass + 2.0 * nucleon_mass * energy
    w_min = nucleon_mass + PION_MASS
    w_max = math.sqrt(s) - lepton_mass
    if w_max <= w_min:
        return EMPTY_RANGE
    return Range1D(w_min + A_SMALL_NUM, w_max - A_SMALL_NUM)


def inelastic_q2_range(
    energy: float,
    nucleon_mass: float,
    lepton_mass: float,
    w: float,
) -> Range1D:
    """Allowed Q² range at fixed W.

    Args:
        energy: Probe energy in the nucleon rest frame [GeV].
        nucleon_mass: Struck nucleon mass [GeV].
        lepton_mass: Final-state lepton mass [GeV].
        w: Hadronic invariant mass [GeV].

    Returns:
        Q² range [GeV²]; empty if W is not reachable.
    """
    m2 = nucleon_mass * nucleon_mass
    ml2 = lepton_mass * lepton_mass
    s = m2 + 2.0 * nucleon_mass * energy
    sqs = math.sqrt(s)
    if w <= 0 or w + lepton_mass >= sqs:
        return EMPTY_RANGE

    e1_cm = (s + ml2 - w * w) / (2.0 * sqs)
    p1_cm = math.sqrt(max(0.0, e1_cm * e1_cm - ml2))
    e0_cm = (s - m2) / (2.0 * sqs)

    q2_min = max(0.0, -ml2 + 2.0 * e0_cm * (e1_cm - p1_cm))
    q2_max = -ml2 + 2.0 * e0_cm * (e1_cm + p1_cm)
    if q2_max <= q2_min:
        return EMPTY_RANGE
    return Range1D(q2_min + A_SMALL_NUM, q2_max - A_SMALL_NUM)


class PhysicalLimits:
    """Default limits provider for resonance production.

    The Q² range is conditional on the interaction's running W.
    """

    def kine_range(self, interaction: Interaction, var: KineVar) -> Range1D:
        state = interaction.initial_state
        if var is KineVar.W:
            return inelastic_w_range(
                state.probe_energy, state.hit_nucleon_mass,
                interaction.final_lepton_mass,
            )
        if var is KineVar.Q2:
            return inelastic_q2_range(
                state.probe_energy, state.hit_nucleon_mass,
                interaction.final_lepton_mass, interaction.kinematics.w,
            )
        raise ValueError(f"No physical limits for {var.value}")


# ---------------------------------------------------------------------------
# Cuts
# ---------------------------------------------------------------------------

def apply_cuts(
    physical: Range1D,
    min_cut: float | None,
    max_cut: float | None,
) -> Range1D:
    """Narrow *physical* by user cuts.

    Cuts falling inside the range narrow it; cuts outside in the widening
    direction are ignored.  A min cut above the maximum or a max cut below
    the minimum leaves no phase space.
    """
    lo, hi = physical.min, physical.max
    if min_cut is not None and physical.contains(min_cut):
        lo = min_cut
    if max_cut is not None and physical.contains(max_cut):
        hi = max_cut
    if (min_cut is not None and min_cut > hi) or (max_cut is not None and max_cut < lo):
        return EMPTY_RANGE
    return Range1D(lo, hi)


# ---------------------------------------------------------------------------
# Transforms
# ---------------------------------------------------------------------------

def q2_to_qd2(q2: float) -> float:
    """Q² → QD2 = 1 / (1 + Q²/M²), taking out the dipole form."""
    return 1.0 / (1.0 + q2 / DIPOLE_MASS2)


def qd2_to_q2(qd2: float) -> float:
    """QD2 → Q² = M² (1/QD2 - 1)."""
    return DIPOLE_MASS2 * (1.0 / qd2 - 1.0)


def jacobian(
    q2: float,
    from_ps: KinePhaseSpace = KinePhaseSpace.W_Q2,
    to_ps: KinePhaseSpace = KinePhaseSpace.W_QD2,
) -> float:
    """Jacobian |∂(W,Q²)/∂(W,QD2)| relating densities in the two conventions.

    d²σ/dW dQD2 = J · d²σ/dW dQ²  with  J = M² (1 + Q²/M²)².
    """
    j = DIPOLE_MASS2 * (1.0 + q2 / DIPOLE_MASS2) ** 2
    if (from_ps, to_ps) == (KinePhaseSpace.W_Q2, KinePhaseSpace.W_QD2):
        return j
    if (from_ps, to_ps) == (KinePhaseSpace.W_QD2, KinePhaseSpace.W_Q2):
        return 1.0 / j
    if from_ps is to_ps:
        return 1.0
    raise ValueError(f"No Jacobian for {from_ps.value} -> {to_ps.value}")


def wq2_to_xy(energy: float, nucleon_mass: float, w: float, q2: float) -> tuple[float, float]:
    """Bjorken x and inelasticity y from (W, Q²).

    x = Q² / (W² - M² + Q²),   y = (W² - M² + Q²) / (2·M·E)
    """
    nu2m = w * w - nucleon_mass * nucleon_mass + q2
    x = q2 / nu2m
    y = nu2m / (2.0 * nucleon_mass * energy)
    return x, y
