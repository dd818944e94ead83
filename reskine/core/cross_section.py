"""Differential cross-section evaluator interface."""

from typing import Protocol

from reskine.models.interaction import Interaction, KinePhaseSpace


class CrossSectionModel(Protocol):
    """Evaluates the differential cross section at the running kinematics.

    Implementations must return a non-negative value and be deterministic
    for fixed inputs.
    """

    def xsec(self, interaction: Interaction, phase_space: KinePhaseSpace) -> float:
        ...
