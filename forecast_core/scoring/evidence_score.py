# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 Forecast Engine Contributors
"""
Evidence -> log-likelihood-ratio mapping.

Mathematical Foundation:
-----------------------
Each evidence item gets a composite quality score in [0, 1]:

    s = w_v·v + w_r·r + w_u·u + w_t·t

    v = verifiability               (clamped to [0, 1])
    r = 1 - exp(-k0·k)              (k = independent corroborations)
    u = consistency                 (clamped to [0, 1])
    t = 1 / (1 + days / half_life)  (recency, 0.5 when the date is unknown)

and is mapped into log-odds with a type-specific ceiling:

    logLR = clamp(polarity · cap(type) · s · first_report_factor, -cap, +cap)

The cap bounds what a single weak source can do to the posterior, no matter
how confident the extraction step was.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone

from forecast_core.runtime_config import ScoringParams
from forecast_core.schema.evidence import Evidence
from forecast_core.scoring.log_odds import clamp

logger = logging.getLogger(__name__)

NEUTRAL_RECENCY = 0.5
_SECONDS_PER_DAY = 86400.0

_DEFAULT_PARAMS = ScoringParams()


def _parse_timestamp(iso: str) -> datetime | None:
    s = iso.strip()
    if not s:
        return None
    if s.endswith(("Z", "z")):
        s = s[:-1] + "+00:00"
    try:
        ts = datetime.fromisoformat(s)
    except ValueError:
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def recency_score(
    published_at: str | None,
    now: datetime | None = None,
    half_life_days: float = 120.0,
) -> float:
    """
    Map publication age to [0, 1] with a hyperbolic half-life.

    Unknown or unparseable dates -> NEUTRAL_RECENCY. Future dates count as fresh.
    """
    if not published_at:
        return NEUTRAL_RECENCY
    ts = _parse_timestamp(published_at)
    if ts is None:
        return NEUTRAL_RECENCY
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    days = max(0.0, (now - ts).total_seconds() / _SECONDS_PER_DAY)
    return clamp(1.0 / (1.0 + days / half_life_days), 0.0, 1.0)


def reliability_from_corroborations(k: int, k0: float = 1.0) -> float:
    """Saturating reliability: 0 corroborations -> 0.0, many -> 1.0."""
    return 1.0 - math.exp(-k0 * max(0, k))


def _capped_hint(evidence: Evidence, cap: float) -> float:
    hint = float(evidence.log_lr_hint)
    if not math.isfinite(hint):
        raise ValueError(f"Non-finite logLR hint {hint!r} on evidence {evidence.id!r}")
    capped = clamp(hint, -cap, cap)
    if capped != hint:
        logger.warning(
            "[Scorer] logLR hint %.4f on evidence %s exceeds type %s cap %.2f; clamped to %.4f",
            hint, evidence.id, evidence.type.value, cap, capped,
        )
    return capped


def evidence_log_lr(
    evidence: Evidence,
    *,
    now: datetime | None = None,
    params: ScoringParams | None = None,
) -> float:
    """
    Signed logLR for one evidence item, always within [-cap, +cap].

    Args:
        evidence: Validated evidence item
        now: Reference time for recency (defaults to current UTC time)
        params: Scoring constants

    Returns:
        logLR in log-odds units

    Raises:
        ValueError: if a logLR hint is NaN or infinite
    """
    if params is None:
        params = _DEFAULT_PARAMS
    cap = params.cap_for(evidence.type)

    if evidence.log_lr_hint is not None:
        return _capped_hint(evidence, cap)

    v = clamp(evidence.verifiability, 0.0, 1.0)
    u = clamp(evidence.consistency, 0.0, 1.0)
    r = reliability_from_corroborations(evidence.corroborations_indep, params.k0)
    t = recency_score(evidence.published_at, now, params.half_life_days)

    score = params.weight_v * v + params.weight_r * r + params.weight_u * u + params.weight_t * t
    value = evidence.polarity * cap * score
    if evidence.first_report:
        value *= params.first_report_factor
    return clamp(value, -cap, cap)
