"""Event record and selection outcome data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from reskine.models.interaction import Interaction


class EventFlag(Enum):
    """Machine-readable error flags set on an event record."""
    NO_AVAILABLE_PHASE_SPACE = "no_available_phase_space"
    NO_VALID_KINEMATICS = "no_valid_kinematics"
    KINE_GEN_ERROR = "kine_gen_error"
    XSEC_CEILING_EXCEEDED = "xsec_ceiling_exceeded"


class SelectionState(Enum):
    """Kinematics selection states.

    INIT → BOUNDS_COMPUTED → [CEILING_KNOWN] → SAMPLING, ending in ACCEPTED
    or one of the failure states.
    """
    INIT = "init"
    BOUNDS_COMPUTED = "bounds_computed"
    CEILING_KNOWN = "ceiling_known"
    SAMPLING = "sampling"
    ACCEPTED = "accepted"
    EXHAUSTED = "exhausted"
    NO_PHASE_SPACE = "no_phase_space"
    NO_CEILING = "no_ceiling"
    CEILING_EXCEEDED = "ceiling_exceeded"


@dataclass
class EventRecord:
    """Per-event record the selector reads from and writes to.

    Attributes:
        interaction: The interaction whose kinematics are selected.
        xsec: Total cross section associated with the event.
        diff_xsec: Differential cross section at the selected kinematics.
        weight: Event weight (multiplicative, strictly positive).
        flags: Error flags raised while processing the event.
    """
    interaction: Interaction
    xsec: float = 0.0
    diff_xsec: float = 0.0
    weight: float = 1.0
    flags: set[EventFlag] = field(default_factory=set)


@dataclass
class SelectionResult:
    """Outcome of one kinematics selection.

    Attributes:
        state: Terminal state (ACCEPTED or a failure state).
        iterations: Number of trials used.
        reason: Human-readable failure reason ("" on success).
        fast_forward: Whether the rest of the event pipeline should be skipped.
    """
    state: SelectionState = SelectionState.INIT
    iterations: int = 0
    reason: str = ""
    fast_forward: bool = False

    @property
    def ok(self) -> bool:
        return self.state is SelectionState.ACCEPTED
