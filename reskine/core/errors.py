"""Kinematics generation failures.

Each failure carries a human-readable reason, a fast-forward directive
(skip the rest of the current event's pipeline) and the event flag that
is set on the event record before raising.
"""

from reskine.models.event import EventFlag, SelectionState


class KinematicsGenerationError(Exception):
    """Base class for failures that abandon the current event."""

    flag: EventFlag = EventFlag.KINE_GEN_ERROR
    state: SelectionState = SelectionState.NO_CEILING

    def __init__(self, reason: str, fast_forward: bool = True) -> None:
        super().__init__(reason)
        self.reason = reason
        self.fast_forward = fast_forward


class NoAvailablePhaseSpace(KinematicsGenerationError):
    """Physical or cut-narrowed bounds are empty."""

    flag = EventFlag.NO_AVAILABLE_PHASE_SPACE
    state = SelectionState.NO_PHASE_SPACE


class KinematicSelectionExhausted(KinematicsGenerationError):
    """The accept/reject loop reached its iteration ceiling."""

    flag = EventFlag.NO_VALID_KINEMATICS
    state = SelectionState.EXHAUSTED


class MaxCrossSectionNotPositive(KinematicsGenerationError):
    """No positive max cross section could be found for the rejection method."""


class CrossSectionCeilingViolation(KinematicsGenerationError):
    """A sampled cross section exceeded the envelope beyond tolerance.

    Continuing would bias the generated sample; callers must stop.
    """

    flag = EventFlag.XSEC_CEILING_EXCEEDED
    state = SelectionState.CEILING_EXCEEDED
