# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 Forecast Engine Contributors
"""Base-rate priors from a reference class (trials / successes)."""

from __future__ import annotations

import math

from forecast_core.scoring.log_odds import clamp_prob

UNINFORMATIVE_PRIOR = 0.5


def wilson_interval(trials: int, successes: int, z: float = 1.96) -> tuple[float, float]:
    """
    Wilson score interval for successes / trials.

    Unlike the normal approximation it stays inside [0, 1] and does not
    collapse to a point for 0/n or n/n.
    """
    if trials <= 0:
        return 0.0, 1.0
    p_hat = successes / trials
    z2 = z * z
    denom = 1.0 + z2 / trials
    center = p_hat + z2 / (2.0 * trials)
    rad = z * math.sqrt(p_hat * (1.0 - p_hat) / trials + z2 / (4.0 * trials * trials))
    return (center - rad) / denom, (center + rad) / denom


def prior_from_reference_class(trials: int, successes: int, z: float = 1.96) -> float:
    """
    Prior probability from a reference class.

    Returns the Wilson interval midpoint, which shrinks small-sample extremes
    (e.g. 0/3) toward 0.5. No trials -> UNINFORMATIVE_PRIOR.
    """
    if trials <= 0:
        return UNINFORMATIVE_PRIOR
    lo, hi = wilson_interval(trials, successes, z)
    return clamp_prob(0.5 * (lo + hi))
