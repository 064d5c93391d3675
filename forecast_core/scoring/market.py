# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 Forecast Engine Contributors

import math

from forecast_core.scoring.log_odds import clamp_prob, logit, sigmoid


def blend_market(p_neutral: float, market_prob: float, alpha: float = 0.1) -> float:
    """
    Log-odds pooling of the evidence posterior with a market price.

        p_aware = σ(logit(p_neutral) + alpha · logit(market_prob))

    alpha = 0 returns p_neutral; alpha = 1 treats the market as one more
    independent signal of equal weight. Both inputs are clamped away from
    {0, 1} first, so a market quoted at 0 or 1 cannot produce ±inf.

    Raises:
        ValueError: if any argument is NaN or infinite
    """
    for name, value in (("p_neutral", p_neutral), ("market_prob", market_prob), ("alpha", alpha)):
        if not math.isfinite(value):
            raise ValueError(f"{name} must be finite, got {value!r}")
    if alpha == 0:
        return p_neutral
    return sigmoid(logit(clamp_prob(p_neutral)) + alpha * logit(clamp_prob(market_prob)))
