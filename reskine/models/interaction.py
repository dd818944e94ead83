"""Interaction data models — initial state, resonance tags, kinematics.

All energies and masses in GeV, Q² in GeV² (core units).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from reskine.constants import (
    GENERIC_ENVELOPE_MASS,
    GENERIC_ENVELOPE_WIDTH,
    GENERIC_PEAK_MASS,
    KNOWN_ENVELOPE_WIDTH,
    NUCLEON_MASS,
)


class KineVar(Enum):
    """Kinematic variables handled by the selector."""
    W = "W"
    Q2 = "Q2"
    X = "x"
    Y = "y"


class KinePhaseSpace(Enum):
    """Phase-space convention a differential cross section is expressed in."""
    W_Q2 = "W,Q2|E"
    W_QD2 = "W,QD2|E"


@dataclass(frozen=True)
class Range1D:
    """Closed interval [min, max].

    A non-positive width means no available phase space.
    """
    min: float = 0.0
    max: float = 0.0

    @property
    def width(self) -> float:
        return self.max - self.min

    @property
    def is_empty(self) -> bool:
        return self.width <= 0.0

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.max


# ── Resonances ──


@dataclass(frozen=True)
class Resonance:
    """Baryon resonance.

    Attributes:
        name: Spectroscopic label (e.g. "P33(1232)").
        mass: Pole mass [GeV].
        width: Full width [GeV].
    """
    name: str
    mass: float
    width: float


RESONANCES: dict[str, Resonance] = {
    r.name: r for r in (
        Resonance("P33(1232)", 1.232, 0.120),
        Resonance("S11(1535)", 1.535, 0.150),
        Resonance("D13(1520)", 1.520, 0.115),
        Resonance("S11(1650)", 1.650, 0.150),
        Resonance("D13(1700)", 1.700, 0.100),
        Resonance("D15(1675)", 1.675, 0.150),
        Resonance("S31(1620)", 1.620, 0.145),
        Resonance("D33(1700)", 1.700, 0.300),
        Resonance("P11(1440)", 1.440, 0.350),
        Resonance("P33(1600)", 1.600, 0.350),
        Resonance("P13(1720)", 1.720, 0.200),
        Resonance("F15(1680)", 1.680, 0.130),
        Resonance("P31(1910)", 1.910, 0.250),
        Resonance("P33(1920)", 1.920, 0.200),
        Resonance("F35(1905)", 1.905, 0.350),
        Resonance("F37(1950)", 1.950, 0.300),
        Resonance("P11(1710)", 1.710, 0.100),
        Resonance("F17(1970)", 1.970, 0.325),
    )
}


@dataclass(frozen=True)
class KnownResonance:
    """Tag for an interaction producing a specific resonance."""
    resonance: Resonance

    @property
    def label(self) -> str:
        return self.resonance.name

    @property
    def peak_mass(self) -> float:
        return self.resonance.mass

    @property
    def envelope_mass(self) -> float:
        return self.resonance.mass

    @property
    def envelope_width(self) -> float:
        return KNOWN_ENVELOPE_WIDTH


@dataclass(frozen=True)
class GenericResonance:
    """Tag for an interaction whose resonance is not specified.

    Carries the fallback parameters used by the maximum search and the
    sampling envelope.
    """
    peak_mass: float = GENERIC_PEAK_MASS
    envelope_mass: float = GENERIC_ENVELOPE_MASS
    envelope_width: float = GENERIC_ENVELOPE_WIDTH

    @property
    def label(self) -> str:
        return "generic"


ResonanceTag = KnownResonance | GenericResonance


def resonance_tag(name: str | None) -> ResonanceTag:
    """Build a tag from a resonance name; ``None`` gives the generic tag.

    Raises:
        KeyError: If *name* is not a known resonance.
    """
    if name is None:
        return GenericResonance()
    try:
        return KnownResonance(RESONANCES[name])
    except KeyError:
        raise KeyError(f"Unknown resonance: {name!r}")


# ── Interaction ──


@dataclass(frozen=True)
class InitialState:
    """Probe and target of an interaction.

    Attributes:
        probe_pdg: PDG code of the incident particle.
        target_pdg: PDG code of the target (nucleus or free nucleon).
        hit_nucleon_pdg: PDG code of the struck nucleon.
        probe_energy: Probe energy in the struck-nucleon rest frame [GeV].
        hit_nucleon_mass: Struck nucleon mass [GeV] (may be off-shell).
    """
    probe_pdg: int
    target_pdg: int
    hit_nucleon_pdg: int
    probe_energy: float
    hit_nucleon_mass: float = NUCLEON_MASS


@dataclass
class Kinematics:
    """Running (trial) and selected (locked) kinematic values."""
    running: dict[KineVar, float] = field(default_factory=dict)
    selected: dict[KineVar, float] = field(default_factory=dict)

    def set(self, var: KineVar, value: float, final: bool = False) -> None:
        if final:
            self.selected[var] = value
        else:
            self.running[var] = value

    def get(self, var: KineVar, selected: bool = False) -> float:
        """Return a running value, or the locked one if *selected*.

        Raises:
            KeyError: If the value has not been set.
        """
        values = self.selected if selected else self.running
        try:
            return values[var]
        except KeyError:
            kind = "selected" if selected else "running"
            raise KeyError(f"No {kind} value for {var.value}")

    def is_locked(self, var: KineVar) -> bool:
        return var in self.selected

    def clear_running(self) -> None:
        self.running.clear()

    @property
    def w(self) -> float:
        return self.get(KineVar.W)

    @property
    def q2(self) -> float:
        return self.get(KineVar.Q2)


@dataclass
class Interaction:
    """Probe/target pair with mutable kinematic state.

    Attributes:
        initial_state: Probe, target and energy.
        final_lepton_mass: Mass of the outgoing lepton [GeV].
        resonance: Resonance tag (known resonance or generic fallback).
        kinematics: Running and selected kinematic values.
    """
    initial_state: InitialState
    final_lepton_mass: float = 0.0
    resonance: ResonanceTag = field(default_factory=GenericResonance)
    kinematics: Kinematics = field(default_factory=Kinematics)

    @property
    def energy(self) -> float:
        """Probe energy in the struck-nucleon rest frame [GeV]."""
        return self.initial_state.probe_energy

    def __str__(self) -> str:
        s = self.initial_state
        return (
            f"probe={s.probe_pdg} target={s.target_pdg} "
            f"hit_nucleon={s.hit_nucleon_pdg} E={s.probe_energy:.4g} GeV "
            f"channel={self.resonance.label}"
        )
