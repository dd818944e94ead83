"""Resonance kinematics selection — (W, Q²) by rejection sampling.

Two generation modes:

- importance sampled (default): candidates are drawn from a
  :class:`SamplingEnvelope` in (QD2, W) and accepted against the true
  differential cross section, producing unweighted events;
- uniform over phase space: W and Q² are drawn uniformly, every point with
  a positive cross section is accepted and the event is weighted by
  (phase-space volume / total cross section) × differential cross section.

Failures abandon the current event: an error flag is set on the event
record and a :class:`KinematicsGenerationError` is raised (or returned as a
:class:`SelectionResult` by :meth:`KinematicsSelector.try_select`).  The
selector never retries by itself.
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable

import numpy as np

from reskine.constants import A_SMALL_NUM
from reskine.core.cross_section import CrossSectionModel
from reskine.core.envelope import EnvelopeParameters, SamplingEnvelope
from reskine.core.errors import (
    CrossSectionCeilingViolation,
    KinematicSelectionExhausted,
    KinematicsGenerationError,
    MaxCrossSectionNotPositive,
    NoAvailablePhaseSpace,
)
from reskine.core.kinematics import (
    KinematicLimits,
    jacobian,
    q2_to_qd2,
    qd2_to_q2,
    wq2_to_xy,
)
from reskine.core.phase_space import PhaseSpaceBounds
from reskine.core.xsec_cache import MaxCrossSectionCache
from reskine.core.xsec_search import MaxCrossSectionSearch
from reskine.models.config import KinematicsConfig
from reskine.models.event import EventRecord, SelectionResult, SelectionState
from reskine.models.interaction import (
    Interaction,
    KinePhaseSpace,
    KineVar,
    Range1D,
)

logger = logging.getLogger(__name__)


class KinematicsSelector:
    """Selects (W, Q²) for resonance interactions.

    Args:
        xsec_model: Differential cross-section evaluator.
        config: Selection configuration.  Defaults to ``KinematicsConfig()``.
        rng: numpy random Generator.  If None, creates an unseeded generator.
        limits: Physical limits provider passed to :class:`PhaseSpaceBounds`.
        cache: Max cross-section cache, possibly shared between selectors.
    """

    def __init__(
        self,
        xsec_model: CrossSectionModel,
        config: KinematicsConfig | None = None,
        rng: np.random.Generator | None = None,
        limits: KinematicLimits | None = None,
        cache: MaxCrossSectionCache | None = None,
    ) -> None:
        self._config = config or KinematicsConfig()
        self._rng = rng or np.random.default_rng()
        self._xsec_model = xsec_model
        self._bounds = PhaseSpaceBounds(self._config, limits)
        self._cache = cache or MaxCrossSectionCache(
            self._config.min_energy_cached, self._config.cache_energy_bin_width,
        )
        self._search = MaxCrossSectionSearch(xsec_model, self._bounds, self._config)
        self._envelope = SamplingEnvelope(self._rng, self._config.envelope_padding)
        self._transitions: list[SelectionState] = []

    @property
    def config(self) -> KinematicsConfig:
        return self._config

    @property
    def bounds(self) -> PhaseSpaceBounds:
        return self._bounds

    @property
    def cache(self) -> MaxCrossSectionCache:
        return self._cache

    @property
    def envelope(self) -> SamplingEnvelope:
        return self._envelope

    @property
    def state(self) -> SelectionState:
        """State reached by the most recent selection."""
        return self._transitions[-1] if self._transitions else SelectionState.INIT

    @property
    def transitions(self) -> tuple[SelectionState, ...]:
        """States visited by the most recent selection, in order."""
        return tuple(self._transitions)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def select(self, event: EventRecord) -> SelectionResult:
        """Select and lock kinematics for *event*.

        Returns:
            Result in the ACCEPTED state with the number of trials used.

        Raises:
            NoAvailablePhaseSpace: W range empty after cuts.
            MaxCrossSectionNotPositive: No positive ceiling (importance mode).
            KinematicSelectionExhausted: No acceptance within max_iterations.
            CrossSectionCeilingViolation: Ceiling under-estimated the cross section.
            ValueError: Uniform mode without a positive total cross section.
        """
        uniform = self._config.uniform_over_phase_space
        self._transitions = []
        self._enter(SelectionState.INIT)
        if uniform:
            logger.info("Generating kinematics uniformly over the allowed phase space")
            if not event.xsec > 0:
                raise ValueError(
                    f"Uniform generation needs a positive total cross section, got {event.xsec}"
                )

        interaction = event.interaction
        try:
            return self._select(event, interaction, uniform)
        except KinematicsGenerationError as exc:
            event.flags.add(exc.flag)
            interaction.kinematics.clear_running()
            self._enter(exc.state)
            raise

    def try_select(self, event: EventRecord) -> SelectionResult:
        """Like :meth:`select` but return recoverable failures as a result.

        :class:`CrossSectionCeilingViolation` is not recoverable and
        propagates.
        """
        try:
            return self.select(event)
        except CrossSectionCeilingViolation:
            raise
        except KinematicsGenerationError as exc:
            return SelectionResult(
                state=exc.state, reason=exc.reason, fast_forward=exc.fast_forward,
            )

    def max_xsec(self, event: EventRecord) -> float:
        """Ceiling for the rejection method, from the cache or a fresh search.

        Raises:
            MaxCrossSectionNotPositive: If no positive value is found.
        """
        interaction = event.interaction
        signature = self._cache.signature(interaction)
        cached = self._cache.get(signature)
        if cached is not None and cached > 0:
            logger.debug("Found cached max xsec %g", cached)
            return cached

        xsec_max = self._search.search(interaction)
        if xsec_max > 0:
            logger.debug("max{d2xsec/dWdQ2} = %g", xsec_max)
            if signature is not None:
                self._cache.put(
                    signature, xsec_max,
                    self._search.safety_factor(interaction.energy), interaction.energy,
                )
            return xsec_max

        logger.info("Can not generate event kinematics (max_xsec <= 0) for %s", interaction)
        event.diff_xsec = 0.0
        raise MaxCrossSectionNotPositive("kinematics generation: max_xsec <= 0")

    def assert_xsec_limits(self, interaction: Interaction, xsec: float, xsec_max: float) -> None:
        """Check a sampled cross section against the envelope value.

        Raises:
            CrossSectionCeilingViolation: If *xsec* exceeds *xsec_max* by
                more than the configured tolerance.
        """
        if xsec <= xsec_max:
            return
        diff = 200.0 * (xsec - xsec_max) / (xsec_max + xsec)
        if diff > self._config.max_xsec_diff_tolerance:
            logger.critical(
                "xsec: (curr) = %g > (max) = %g for %s", xsec, xsec_max, interaction
            )
            logger.critical("*** Exceeding estimated maximum differential cross section")
            raise CrossSectionCeilingViolation(
                f"Differential cross section {xsec:g} exceeds ceiling {xsec_max:g} "
                f"by {diff:.3g}% (tolerance {self._config.max_xsec_diff_tolerance:g}%)"
            )
        logger.warning(
            "xsec: (curr) = %g > (max) = %g; excess %.3g%% below tolerance",
            xsec, xsec_max, diff,
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _select(
        self,
        event: EventRecord,
        interaction: Interaction,
        uniform: bool,
    ) -> SelectionResult:
        kine = interaction.kinematics
        rng = self._rng

        w_range = self._bounds.require(interaction, KineVar.W)
        w_min = w_range.min + A_SMALL_NUM
        w_max = w_range.max - A_SMALL_NUM
        dw = w_max - w_min
        if w_max <= 0 or dw <= 0:
            # Narrower than the boundary margins
            logger.warning("No available phase space for %s", interaction)
            raise NoAvailablePhaseSpace("No available phase space")
        self._enter(SelectionState.BOUNDS_COMPUTED)

        # The ceiling is irrelevant when generating uniformly
        xsec_max = -1.0
        if not uniform:
            xsec_max = self.max_xsec(event)
            self._enter(SelectionState.CEILING_KNOWN)

        self._enter(SelectionState.SAMPLING)
        for iteration in range(1, self._config.max_iterations + 1):
            if uniform:
                w = w_min + dw * rng.random()
                kine.set(KineVar.W, w)
                q2_range = self._bounds.q2_range(interaction)
                if q2_range.max <= 0 or q2_range.is_empty:
                    continue
                q2 = q2_range.min + q2_range.width * rng.random()
            else:
                if iteration == 1:
                    self._configure_envelope(interaction, w_min, w_max, xsec_max)
                qd2, w = self._envelope.sample()
                q2 = qd2_to_q2(qd2)
                kine.set(KineVar.W, w)

            logger.debug("Trying: W = %g, Q2 = %g", w, q2)
            kine.set(KineVar.Q2, q2)

            if uniform:
                xsec = self._xsec_model.xsec(interaction, KinePhaseSpace.W_Q2)
                accept = xsec > 0
            else:
                xsec = self._xsec_in_physical_region(interaction, q2)
                envelope_value = self._envelope.density(qd2, w)
                t = envelope_value * rng.random()
                j = jacobian(q2, KinePhaseSpace.W_Q2, KinePhaseSpace.W_QD2)
                self.assert_xsec_limits(interaction, xsec, envelope_value)
                if j * xsec > envelope_value:
                    # Limits are checked on xsec; acceptance uses J*xsec
                    logger.warning(
                        "J*xsec = %g above envelope %g at W = %g, Q2 = %g",
                        j * xsec, envelope_value, w, q2,
                    )
                logger.debug("xsec= %g, J= %g, Rnd= %g", xsec, j, t)
                accept = t < j * xsec

            if accept:
                logger.info("Selected: W = %g, Q2 = %g", w, q2)
                volume = dw * q2_range.width if uniform else 0.0
                self._commit(event, w, q2, xsec, volume)
                self._enter(SelectionState.ACCEPTED)
                return SelectionResult(state=SelectionState.ACCEPTED, iterations=iteration)

        logger.warning(
            "*** Could not select a valid (W,Q^2) pair after %d iterations",
            self._config.max_iterations,
        )
        raise KinematicSelectionExhausted("Couldn't select kinematics")

    def _enter(self, state: SelectionState) -> None:
        logger.debug("Selection state: %s", state.value)
        self._transitions.append(state)

    def _configure_envelope(
        self,
        interaction: Interaction,
        w_min: float,
        w_max: float,
        xsec_max: float,
    ) -> None:
        # Q² reach is largest at the lowest W
        interaction.kinematics.set(KineVar.W, w_min)
        q2_range = self._bounds.q2_range(interaction)
        q2_min = A_SMALL_NUM
        q2_max = q2_range.max - A_SMALL_NUM
        if q2_max <= q2_min:
            raise NoAvailablePhaseSpace("No available phase space")

        tag = interaction.resonance
        self._envelope.configure(
            qd2_range=Range1D(q2_to_qd2(q2_max), q2_to_qd2(q2_min)),
            w_range=Range1D(w_min, w_max),
            params=EnvelopeParameters(
                resonance_mass=tag.envelope_mass,
                resonance_width=tag.envelope_width,
                xsec_ceiling=xsec_max,
                w_max=w_max,
            ),
        )

    def _xsec_in_physical_region(self, interaction: Interaction, q2: float) -> float:
        """Cross section at the running kinematics; 0 outside the allowed Q² range."""
        q2_range = self._bounds.q2_range(interaction)
        if q2_range.is_empty or not q2_range.contains(q2):
            return 0.0
        return self._xsec_model.xsec(interaction, KinePhaseSpace.W_Q2)

    def _commit(
        self,
        event: EventRecord,
        w: float,
        q2: float,
        xsec: float,
        volume: float,
    ) -> None:
        interaction = event.interaction
        state = interaction.initial_state

        # Struck nucleon may be off the mass shell
        x, y = wq2_to_xy(state.probe_energy, state.hit_nucleon_mass, w, q2)

        event.diff_xsec = xsec

        if self._config.uniform_over_phase_space:
            weight = (volume / event.xsec) * xsec
            logger.info("Kinematics wght = %g", weight)
            weight *= event.weight
            logger.info("Current event wght = %g", weight)
            event.weight = weight

        kine = interaction.kinematics
        kine.set(KineVar.Q2, q2, final=True)
        kine.set(KineVar.W, w, final=True)
        kine.set(KineVar.X, x, final=True)
        kine.set(KineVar.Y, y, final=True)
        kine.clear_running()


# ── Batch helper ─────────────────────────────────────────────────────


@dataclass
class SelectionSummary:
    """Outcome counts over a batch of events.

    Attributes:
        results: Per-event selection results, in input order.
        counts: Number of events per terminal state.
    """
    results: list[SelectionResult] = field(default_factory=list)
    counts: Counter = field(default_factory=Counter)

    @property
    def accepted(self) -> int:
        return self.counts[SelectionState.ACCEPTED]

    @property
    def failed(self) -> int:
        return len(self.results) - self.accepted

    @property
    def efficiency(self) -> float:
        """Accepted events per trial, over accepted events."""
        trials = sum(r.iterations for r in self.results if r.ok)
        return self.accepted / trials if trials else math.nan


def select_all(selector: KinematicsSelector, events: Iterable[EventRecord]) -> SelectionSummary:
    """Run :meth:`KinematicsSelector.try_select` on each event.

    Abandoned events are recorded in the summary; whether to retry them is
    left to the caller.
    """
    summary = SelectionSummary()
    for event in events:
        result = selector.try_select(event)
        summary.results.append(result)
        summary.counts[result.state] += 1
    logger.info(
        "Selected kinematics for %d/%d events (%s)",
        summary.accepted, len(summary.results),
        ", ".join(f"{s.value}={n}" for s, n in summary.counts.items()),
    )
    return summary
