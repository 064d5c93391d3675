# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 Forecast Engine Contributors

import math
from typing import Sequence

# Probabilities headed for logit() are kept inside [PROB_EPS, 1 - PROB_EPS].
PROB_EPS = 1e-6


def clamp(x: float, lo: float, hi: float) -> float:
    """Clamp into [lo, hi]. Non-finite input raises ValueError."""
    if not math.isfinite(x):
        raise ValueError(f"Expected a finite number, got {x!r}")
    return min(hi, max(lo, x))


def clamp_prob(p: float, eps: float = PROB_EPS) -> float:
    return clamp(p, eps, 1.0 - eps)


def logit(p: float) -> float:
    """
    Convert probability to log-odds.

    Mathematical rationale:
    -----------------------
        logit(p) = log(p / (1 - p))

    In log-odds space Bayes' theorem is additive:
        Posterior(LO) = Prior(LO) + log(Likelihood Ratio)

    Domain is the open interval (0, 1). No clipping here: call sites that can
    produce 0 or 1 must go through clamp_prob() first.
    """
    return math.log(p / (1.0 - p))


def sigmoid(x: float) -> float:
    """
    Convert log-odds to probability using the logistic function.
    Handles overflow for large negative log-odds.
    """
    try:
        return 1.0 / (1.0 + math.exp(-x))
    except OverflowError:
        return 0.0 if x < 0 else 1.0


def trimmed_mean(values: Sequence[float], trim_fraction: float) -> float:
    """
    Mean after dropping floor(trim_fraction * n) values from each tail.

    Falls back to the plain mean when trimming would leave nothing.
    Empty input -> 0.0.
    """
    if not values:
        return 0.0
    ordered = sorted(values)
    n = len(ordered)
    t = max(0, math.floor(trim_fraction * n))
    kept = ordered[t:n - t]
    if not kept:
        kept = ordered
    return sum(kept) / len(kept)
