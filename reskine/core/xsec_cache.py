"""Max differential cross-section cache.

Memoizes the ceiling used by the rejection method, keyed by a discretized
interaction signature.  Entries are append-only for the lifetime of the
cache.  Access is not synchronized: concurrent event generation must use
one cache per worker or serialize access.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from reskine.models.interaction import Interaction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheSignature:
    """Discretized interaction signature.

    Attributes:
        probe_pdg: Probe PDG code.
        target_pdg: Target PDG code.
        hit_nucleon_pdg: Struck nucleon PDG code.
        channel: Resonance / channel label.
        energy_bin: Index of the energy bin.
    """
    probe_pdg: int
    target_pdg: int
    hit_nucleon_pdg: int
    channel: str
    energy_bin: int


@dataclass(frozen=True)
class CrossSectionCacheEntry:
    """Cached ceiling.

    Attributes:
        value: Max differential cross section, safety factor included.
        safety_factor: Safety factor already applied to *value*.
        energy: Energy at which the value was computed [GeV].
    """
    value: float
    safety_factor: float
    energy: float


class MaxCrossSectionCache:
    """Append-only cache of max differential cross sections.

    Args:
        min_energy: Energies below this are never cached [GeV].
        energy_bin_width: Width of the energy bins in the signature [GeV].
    """

    def __init__(self, min_energy: float, energy_bin_width: float) -> None:
        if energy_bin_width <= 0:
            raise ValueError(f"energy_bin_width must be > 0, got {energy_bin_width}")
        self._min_energy = min_energy
        self._bin_width = energy_bin_width
        self._entries: dict[CacheSignature, CrossSectionCacheEntry] = {}

    def signature(self, interaction: Interaction) -> CacheSignature | None:
        """Signature for *interaction*, or None if its energy bypasses the cache."""
        energy = interaction.energy
        if energy < self._min_energy:
            logger.debug(
                "E = %g GeV below minimum cached energy %g GeV", energy, self._min_energy
            )
            return None
        state = interaction.initial_state
        return CacheSignature(
            probe_pdg=state.probe_pdg,
            target_pdg=state.target_pdg,
            hit_nucleon_pdg=state.hit_nucleon_pdg,
            channel=interaction.resonance.label,
            energy_bin=math.floor(energy / self._bin_width),
        )

    def get(self, signature: CacheSignature | None) -> float | None:
        if signature is None:
            return None
        entry = self._entries.get(signature)
        return entry.value if entry is not None else None

    def put(
        self,
        signature: CacheSignature,
        value: float,
        safety_factor: float,
        energy: float = float("nan"),
    ) -> CrossSectionCacheEntry:
        """Store a ceiling.  An existing entry for *signature* is kept."""
        existing = self._entries.get(signature)
        if existing is not None:
            return existing
        entry = CrossSectionCacheEntry(value, safety_factor, energy)
        self._entries[signature] = entry
        logger.info("Cached max xsec %g for %s", value, signature)
        return entry

    def entries(self) -> dict[CacheSignature, CrossSectionCacheEntry]:
        return dict(self._entries)

    def __contains__(self, signature: object) -> bool:
        return signature in self._entries

    def __len__(self) -> int:
        return len(self._entries)
