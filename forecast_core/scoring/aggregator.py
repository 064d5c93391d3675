# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 Forecast Engine Contributors
"""
Neutral (evidence-only) posterior with leave-one-out influence.

Mathematical Foundation:
-----------------------
    ℓ = logit(p0) + Σ_c m_eff(c) · trimmed_mean({logLR_i : i ∈ c})
    p_neutral = σ(ℓ)

Influence of item i in cluster c:

    ℓ_{-i} = ℓ - contrib(c) + m_eff(c \\ i) · trimmed_mean(c \\ i)
    delta_pp(i) = |p_neutral - σ(ℓ_{-i})|

The counterfactual is the literal leave-one-out: rho, m_eff and the trimmed
mean are all recomputed over the remaining members.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping, Sequence

from forecast_core.runtime_config import ScoringParams
from forecast_core.schema.evidence import Evidence
from forecast_core.schema.forecast import ClusterMeta, InfluenceItem
from forecast_core.scoring.clusters import cluster_positions, effective_count, resolve_rho
from forecast_core.scoring.evidence_score import evidence_log_lr
from forecast_core.scoring.log_odds import clamp_prob, logit, sigmoid, trimmed_mean

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AggregationResult:
    p_neutral: float
    log_odds: float
    influence: list[InfluenceItem] = field(default_factory=list)
    clusters: list[ClusterMeta] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "pNeutral": self.p_neutral,
            "logOdds": self.log_odds,
            "influence": [i.to_dict() for i in self.influence],
            "clusters": [c.to_dict() for c in self.clusters],
        }


def _cluster_contribution(
    cluster_id: str,
    llrs: Sequence[float],
    rho_overrides: Mapping[str, float] | None,
    trim_fraction: float,
    base_rho: float,
) -> tuple[float, float, float, float]:
    """Returns (rho, m_eff, mean_llr, contribution) for a set of member logLRs."""
    m = len(llrs)
    if m == 0:
        return 0.0, 0.0, 0.0, 0.0
    rho = resolve_rho(cluster_id, m, rho_overrides, base_rho)
    m_eff = effective_count(m, rho)
    mean_llr = trimmed_mean(llrs, trim_fraction)
    return rho, m_eff, mean_llr, m_eff * mean_llr


def aggregate_neutral(
    p0: float,
    evidence: Sequence[Evidence],
    rho_overrides: Mapping[str, float] | None = None,
    trim_fraction: float | None = None,
    *,
    now: datetime | None = None,
    params: ScoringParams | None = None,
) -> AggregationResult:
    """
    Combine evidence into an evidence-only posterior.

    Args:
        p0: Prior probability
        evidence: Evidence items (any order; duplicates by position are kept)
        rho_overrides: Optional cluster_id -> rho mapping
        trim_fraction: Per-tail trim within a cluster (defaults to params.trim_fraction, 0.2)
        now: Reference time for recency; resolved once so all items share one clock
        params: Scoring constants

    Returns:
        AggregationResult with p_neutral, per-item influence (input order)
        and per-cluster metadata (first-seen origin order)

    Raises:
        ValueError: if p0 or a rho override is NaN or infinite, or a logLR hint is non-finite
    """
    if params is None:
        params = ScoringParams()
    if trim_fraction is None:
        trim_fraction = params.trim_fraction

    if not evidence:
        return AggregationResult(p_neutral=p0, log_odds=logit(clamp_prob(p0)))

    if now is None:
        now = datetime.now(timezone.utc)

    llr_by_pos = [evidence_log_lr(ev, now=now, params=params) for ev in evidence]

    # Members are tracked by position so repeated ids never collapse into one
    positions = cluster_positions(evidence)

    l_total = logit(clamp_prob(p0))
    contrib: dict[str, float] = {}
    meta: list[ClusterMeta] = []
    for cid, members in positions.items():
        llrs = [llr_by_pos[p] for p in members]
        rho, m_eff, mean_llr, c = _cluster_contribution(
            cid, llrs, rho_overrides, trim_fraction, params.default_rho
        )
        contrib[cid] = c
        l_total += c
        meta.append(ClusterMeta(
            cluster_id=cid,
            size=len(members),
            rho=rho,
            m_eff=m_eff,
            mean_llr=mean_llr,
            contribution=c,
        ))

    # Keep the posterior strictly inside (0, 1) even for very lopsided evidence
    p_neutral = clamp_prob(sigmoid(l_total))

    influence_by_pos: dict[int, InfluenceItem] = {}
    for cid, members in positions.items():
        for pos in members:
            others = [llr_by_pos[p] for p in members if p != pos]
            _, _, _, alt = _cluster_contribution(
                cid, others, rho_overrides, trim_fraction, params.default_rho
            )
            p_without = clamp_prob(sigmoid(l_total - contrib[cid] + alt))
            influence_by_pos[pos] = InfluenceItem(
                evidence_id=evidence[pos].id,
                log_lr=llr_by_pos[pos],
                delta_pp=abs(p_neutral - p_without),
            )

    influence = [influence_by_pos[pos] for pos in range(len(evidence))]

    logger.debug(
        "[Aggregator] p0=%.4f p_neutral=%.4f evidence=%d clusters=%d max_delta=%.4f",
        p0, p_neutral, len(evidence), len(meta),
        max(i.delta_pp for i in influence),
    )

    return AggregationResult(
        p_neutral=p_neutral,
        log_odds=l_total,
        influence=influence,
        clusters=meta,
    )
