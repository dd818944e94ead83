"""Kinematics selection configuration data model."""

from dataclasses import dataclass

from reskine.constants import (
    DEFAULT_CACHE_ENERGY_BIN_WIDTH,
    DEFAULT_ENVELOPE_PADDING,
    DEFAULT_MIN_ENERGY_CACHED,
    DEFAULT_SAFETY_FACTOR,
    DEFAULT_W_CUT,
    LOW_ENERGY_SAFETY_FACTOR,
    LOW_ENERGY_THRESHOLD,
    MAX_REJECTION_ITERATIONS,
    Q2_REFINE_DIVISOR,
    Q2_SCAN_POINTS,
)


@dataclass
class KinematicsConfig:
    """Kinematics selection parameters.

    Attributes:
        w_min: User cut on W minimum [GeV], or None.
        w_max: User cut on W maximum [GeV], or None.
        q2_min: User cut on Q² minimum [GeV²], or None.
        q2_max: User cut on Q² maximum [GeV²], or None.
        w_cut: Upper W ceiling from the RES/DIS transition [GeV], or None.
        safety_factor: Scale applied to the searched max cross section.
        low_energy_safety_factor: Scale used below *low_energy_threshold*.
        low_energy_threshold: Energy below which the larger scale applies [GeV].
        min_energy_cached: Energies below this bypass the max-xsec cache [GeV].
        cache_energy_bin_width: Energy discretization of cache keys [GeV].
        max_xsec_diff_tolerance: Allowed ceiling excess [percent difference].
        uniform_over_phase_space: Generate uniformly and weight events.
        max_iterations: Trial ceiling for the accept/reject loop.
        envelope_padding: Multiplier on the ceiling for the envelope height.
        q2_scan_points: Coarse log-grid size for the max search.
        q2_refine_divisor: Step divisor / backward steps after the peak.
    """
    w_min: float | None = None
    w_max: float | None = None
    q2_min: float | None = None
    q2_max: float | None = None
    w_cut: float | None = DEFAULT_W_CUT
    safety_factor: float = DEFAULT_SAFETY_FACTOR
    low_energy_safety_factor: float = LOW_ENERGY_SAFETY_FACTOR
    low_energy_threshold: float = LOW_ENERGY_THRESHOLD
    min_energy_cached: float = DEFAULT_MIN_ENERGY_CACHED
    cache_energy_bin_width: float = DEFAULT_CACHE_ENERGY_BIN_WIDTH
    max_xsec_diff_tolerance: float = 0.0
    uniform_over_phase_space: bool = False
    max_iterations: int = MAX_REJECTION_ITERATIONS
    envelope_padding: float = DEFAULT_ENVELOPE_PADDING
    q2_scan_points: int = Q2_SCAN_POINTS
    q2_refine_divisor: int = Q2_REFINE_DIVISOR

    def __post_init__(self) -> None:
        if self.max_xsec_diff_tolerance < 0:
            raise ValueError(
                f"max_xsec_diff_tolerance must be >= 0, got {self.max_xsec_diff_tolerance}"
            )
        for name in ("safety_factor", "low_energy_safety_factor",
                     "cache_energy_bin_width", "envelope_padding"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be > 0, got {getattr(self, name)}")
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be >= 1, got {self.max_iterations}")
        if self.q2_scan_points < 2:
            raise ValueError(f"q2_scan_points must be >= 2, got {self.q2_scan_points}")
        if self.q2_refine_divisor < 1:
            raise ValueError(
                f"q2_refine_divisor must be >= 1, got {self.q2_refine_divisor}"
            )
