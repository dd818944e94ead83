"""Importance-sampling envelope over (QD2, W).

Separable proposal density used for unweighted generation:

    f(QD2, W) = h · g(W),        h = padding × ceiling

flat in the de-dipoled coordinate QD2 = 1/(1 + Q²/M²) and resonance
shaped in W:

    g(W) = 1                                 W ≤ W_p
    g(W) = 1 / (1 + ((W - W_p)/Γ)²)          W > W_p

with W_p = min(m_R + Γ/2, W_max).  Samples are drawn exactly by inverse
CDF (a plateau segment followed by an arctan tail).
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from reskine.models.interaction import Range1D


@dataclass(frozen=True)
class EnvelopeParameters:
    """Envelope parameters, set once per accept/reject search.

    Attributes:
        resonance_mass: Resonance mass m_R [GeV].
        resonance_width: Envelope width Γ [GeV].
        xsec_ceiling: Max differential cross section (safety factor included).
        w_max: Kinematically allowed W max [GeV].
    """
    resonance_mass: float
    resonance_width: float
    xsec_ceiling: float
    w_max: float


class SamplingEnvelope:
    """Proposal density for the rejection method.

    Args:
        rng: numpy random Generator shared with the caller.
        padding: Multiplier applied to the ceiling for the envelope height.
    """

    def __init__(self, rng: np.random.Generator, padding: float = 5.0) -> None:
        self._rng = rng
        self._padding = padding
        self._params: EnvelopeParameters | None = None
        self._qd2 = Range1D()
        self._w = Range1D()
        self._height = 0.0
        self._w_plateau = 0.0
        self._flat_area = 0.0
        self._tail_lo = 0.0
        self._tail_hi = 0.0

    @property
    def configured(self) -> bool:
        return self._params is not None

    @property
    def parameters(self) -> EnvelopeParameters | None:
        return self._params

    def configure(
        self,
        qd2_range: Range1D,
        w_range: Range1D,
        params: EnvelopeParameters,
    ) -> None:
        """Set ranges and parameters.

        Raises:
            ValueError: If a range is empty, or width/ceiling is not positive.
        """
        if qd2_range.is_empty or w_range.is_empty:
            raise ValueError(
                f"Envelope needs non-empty ranges, got QD2={qd2_range}, W={w_range}"
            )
        if params.resonance_width <= 0 or params.xsec_ceiling <= 0:
            raise ValueError(f"Invalid envelope parameters: {params}")

        self._params = params
        self._qd2 = qd2_range
        self._w = w_range
        self._height = self._padding * params.xsec_ceiling
        self._w_plateau = min(params.resonance_mass + 0.5 * params.resonance_width,
                              params.w_max)

        gamma = params.resonance_width
        a, b, wp = w_range.min, w_range.max, self._w_plateau
        self._flat_area = max(0.0, min(wp, b) - a)
        self._tail_lo = math.atan((max(a, wp) - wp) / gamma)
        self._tail_hi = math.atan(max(0.0, b - wp) / gamma)

    @property
    def normalization(self) -> float:
        """Integral of the envelope over its (QD2, W) domain."""
        self._check()
        return self._height * self._qd2.width * self._w_integral()

    def lineshape(self, w: float) -> float:
        """Resonance factor g(W) ∈ (0, 1]."""
        self._check()
        if w <= self._w_plateau:
            return 1.0
        return 1.0 / (1.0 + ((w - self._w_plateau) / self._params.resonance_width) ** 2)

    def density(self, qd2: float, w: float) -> float:
        """Envelope value at (QD2, W); 0 outside the configured ranges."""
        self._check()
        if not (self._qd2.contains(qd2) and self._w.contains(w)):
            return 0.0
        return self._height * self.lineshape(w)

    def sample(self) -> tuple[float, float]:
        """Draw (QD2, W) from the envelope."""
        self._check()
        u_qd2 = self._rng.random()
        u_w = self._rng.random()
        qd2 = self._qd2.min + u_qd2 * self._qd2.width
        return qd2, self._w_from_uniform(u_w)

    def sample_batch(self, n: int) -> tuple[np.ndarray, np.ndarray]:
        """Draw *n* (QD2, W) pairs.

        Returns:
            (qd2, w) — numpy arrays of length n.
        """
        qd2 = np.empty(n)
        w = np.empty(n)
        for i in range(n):
            qd2[i], w[i] = self.sample()
        return qd2, w

    def _w_integral(self) -> float:
        gamma = self._params.resonance_width
        return self._flat_area + gamma * (self._tail_hi - self._tail_lo)

    def _w_from_uniform(self, u: float) -> float:
        gamma = self._params.resonance_width
        target = u * self._w_integral()
        if target < self._flat_area:
            return self._w.min + target
        t = self._tail_lo + (target - self._flat_area) / gamma
        w = self._w_plateau + gamma * math.tan(t)
        return min(max(w, self._w.min), self._w.max)

    def _check(self) -> None:
        if self._params is None:
            raise RuntimeError("Sampling envelope used before configure()")
