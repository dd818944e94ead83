"""Max differential cross-section search over (W, Q²).

Fast, approximate scan used to set the rejection-method ceiling.  W is
fixed near the resonance peak and Q² is scanned on a coarse logarithmic
grid; once the cross section stops increasing the step is refined and a
few backward steps recover peaks straddled by the coarse grid.  The result
is scaled by a safety factor, larger at low energy where the coarse grid
brackets the maximum less reliably.
"""

from __future__ import annotations

import logging
import math

from reskine.constants import A_SMALL_NUM, MIN_Q2_LIMIT
from reskine.core.cross_section import CrossSectionModel
from reskine.core.phase_space import PhaseSpaceBounds
from reskine.models.config import KinematicsConfig
from reskine.models.interaction import Interaction, KinePhaseSpace, KineVar

logger = logging.getLogger(__name__)


class MaxCrossSectionSearch:
    """Estimates max d²σ/dWdQ² for an interaction.

    Args:
        xsec_model: Differential cross-section evaluator.
        bounds: Phase-space bounds (physical limits and cuts).
        config: Safety factors and scan resolution.
    """

    def __init__(
        self,
        xsec_model: CrossSectionModel,
        bounds: PhaseSpaceBounds,
        config: KinematicsConfig,
    ) -> None:
        self._xsec_model = xsec_model
        self._bounds = bounds
        self._config = config

    def safety_factor(self, energy: float) -> float:
        """Safety factor applied at probe *energy* [GeV]."""
        if energy < self._config.low_energy_threshold:
            return self._config.low_energy_safety_factor
        return self._config.safety_factor

    def search(self, interaction: Interaction) -> float:
        """Max differential cross section (safety factor included).

        Returns 0 when the W or Q² range is degenerate.  Running kinematic
        values on *interaction* are cleared on return.
        """
        try:
            max_xsec = self._scan(interaction)
        finally:
            interaction.kinematics.clear_running()

        energy = interaction.energy
        max_xsec *= self.safety_factor(energy)
        logger.debug("Max xsec in phase space = %g (E = %g GeV)", max_xsec, energy)
        return max_xsec

    def _scan(self, interaction: Interaction) -> float:
        kine = interaction.kinematics
        peak = interaction.resonance.peak_mass

        # W where d²σ/dWdQ² peaks
        rw = self._bounds.w_range(interaction)
        if rw.is_empty:
            return 0.0
        if rw.contains(peak):
            w = peak
        elif peak >= rw.max:
            w = rw.max - A_SMALL_NUM
        else:
            w = rw.min + A_SMALL_NUM
        kine.set(KineVar.W, w)

        rq2 = self._bounds.q2_range(interaction)
        if rq2.max < MIN_Q2_LIMIT or rq2.min <= 0:
            return 0.0
        q2_lo = rq2.min + A_SMALL_NUM
        q2_hi = rq2.max - A_SMALL_NUM
        if q2_hi <= q2_lo:
            return 0.0

        n_points = self._config.q2_scan_points
        n_back = self._config.q2_refine_divisor
        log_q2_min = math.log(q2_lo)
        dlog_q2 = (math.log(q2_hi) - log_q2_min) / (n_points - 1)

        max_xsec = 0.0
        xsec_last = -1.0
        for i in range(n_points):
            q2 = math.exp(log_q2_min + i * dlog_q2)
            xsec = self._evaluate(interaction, q2)
            max_xsec = max(xsec, max_xsec)
            increasing = xsec - xsec_last >= 0
            xsec_last = xsec

            if not increasing:
                # Peak passed: refine and step back to recover a straddled maximum
                dlog_q2 /= n_back
                for _ in range(n_back):
                    q2 = math.exp(math.log(q2) - dlog_q2)
                    if q2 < rq2.min:
                        continue
                    max_xsec = max(self._evaluate(interaction, q2), max_xsec)
                break

        return max_xsec

    def _evaluate(self, interaction: Interaction, q2: float) -> float:
        kine = interaction.kinematics
        kine.set(KineVar.Q2, q2)
        xsec = max(0.0, self._xsec_model.xsec(interaction, KinePhaseSpace.W_Q2))
        logger.debug("xsec(W= %g, Q2= %g) = %g", kine.w, q2, xsec)
        return xsec
