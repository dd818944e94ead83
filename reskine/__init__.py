"""reskine — resonance (W, Q²) kinematics selection for neutrino event generation."""

from reskine.constants import PACKAGE_VERSION as __version__
from reskine.core.errors import (
    CrossSectionCeilingViolation,
    KinematicSelectionExhausted,
    KinematicsGenerationError,
    MaxCrossSectionNotPositive,
    NoAvailablePhaseSpace,
)
from reskine.core.kinematics_selector import KinematicsSelector, select_all
from reskine.models.config import KinematicsConfig
from reskine.models.event import EventRecord, SelectionResult

__all__ = [
    "__version__",
    "CrossSectionCeilingViolation",
    "EventRecord",
    "KinematicSelectionExhausted",
    "KinematicsConfig",
    "KinematicsGenerationError",
    "KinematicsSelector",
    "MaxCrossSectionNotPositive",
    "NoAvailablePhaseSpace",
    "SelectionResult",
    "select_all",
]
