"""Phase-space bounds — physical limits narrowed by user cuts.

The physical region comes from a :class:`KinematicLimits` provider.  User
cuts may narrow it but never extend it into an unphysical region, and the
W range is further capped by ``w_cut``.
"""

from __future__ import annotations

import logging

from reskine.core.errors import NoAvailablePhaseSpace
from reskine.core.kinematics import KinematicLimits, PhysicalLimits, apply_cuts
from reskine.models.config import KinematicsConfig
from reskine.models.interaction import Interaction, KineVar, Range1D

logger = logging.getLogger(__name__)


class PhaseSpaceBounds:
    """Computes the selectable range of W and Q² for an interaction.

    Args:
        config: Cut configuration.
        limits: Physical limits provider.  Defaults to :class:`PhysicalLimits`.
    """

    def __init__(
        self,
        config: KinematicsConfig,
        limits: KinematicLimits | None = None,
    ) -> None:
        self._config = config
        self._limits = limits or PhysicalLimits()

    @property
    def limits(self) -> KinematicLimits:
        return self._limits

    def range(self, interaction: Interaction, var: KineVar) -> Range1D:
        """Allowed range of *var* including cuts; may be empty."""
        if var is KineVar.W:
            return self.w_range(interaction)
        if var is KineVar.Q2:
            return self.q2_range(interaction)
        raise ValueError(f"No phase-space bounds for {var.value}")

    def w_range(self, interaction: Interaction) -> Range1D:
        physical = self._limits.kine_range(interaction, KineVar.W)
        logger.debug("Physical W range: [%g, %g]", physical.min, physical.max)

        w = apply_cuts(physical, self._config.w_min, self._config.w_max)
        if self._config.w_cut is not None and self._config.w_cut < w.max:
            w = Range1D(w.min, self._config.w_cut)

        logger.debug("W range (including cuts): [%g, %g]", w.min, w.max)
        return w

    def q2_range(self, interaction: Interaction) -> Range1D:
        """Q² range at the interaction's running W."""
        physical = self._limits.kine_range(interaction, KineVar.Q2)
        logger.debug("Physical Q2 range: [%g, %g]", physical.min, physical.max)

        q2 = apply_cuts(physical, self._config.q2_min, self._config.q2_max)
        logger.debug("Q2 range (including cuts): [%g, %g]", q2.min, q2.max)
        return q2

    def require(self, interaction: Interaction, var: KineVar) -> Range1D:
        """Like :meth:`range` but raise on an empty range.

        Raises:
            NoAvailablePhaseSpace: If the range has non-positive width.
        """
        r = self.range(interaction, var)
        if r.is_empty:
            logger.warning("No available %s phase space for %s", var.value, interaction)
            raise NoAvailablePhaseSpace("No available phase space")
        return r
