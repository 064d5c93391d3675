# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 Forecast Engine Contributors
"""
Forecast Engine entry point.

prior -> neutral aggregation -> optional market blend -> ForecastCard

Every call is independent: config and clock are explicit inputs and nothing
is cached between calls, so forecasts for different questions can run in
parallel.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Sequence

from forecast_core.runtime_config import EngineRuntimeConfig
from forecast_core.report.report_card import collect_provenance, make_forecast_card
from forecast_core.schema.evidence import Evidence
from forecast_core.schema.forecast import ForecastCard
from forecast_core.scoring.aggregator import AggregationResult, aggregate_neutral
from forecast_core.scoring.market import blend_market
from forecast_core.scoring.priors import prior_from_reference_class
from forecast_core.utils.trace import Trace, trace_enabled

logger = logging.getLogger(__name__)


def coerce_evidence(items: Iterable[Evidence | Mapping[str, Any]]) -> list[Evidence]:
    """Validate raw dicts (camelCase or snake_case keys) into Evidence."""
    out: list[Evidence] = []
    for item in items:
        if isinstance(item, Evidence):
            out.append(item)
        else:
            out.append(Evidence.from_dict(dict(item)))
    return out


def _prior_source(p0: float | None, reference_class: tuple[int, int] | None) -> str:
    if p0 is not None:
        return "explicit"
    if reference_class is not None:
        return "reference_class"
    return "default"


def _trace_aggregation(agg: AggregationResult, threshold: float) -> None:
    for meta in agg.clusters:
        Trace.event("forecast.cluster", meta)
    Trace.event("forecast.influence", {
        "threshold": threshold,
        "over": [item for item in agg.influence if item.delta_pp > threshold],
    })


def resolve_prior(
    *,
    p0: float | None,
    reference_class: tuple[int, int] | None,
    config: EngineRuntimeConfig,
) -> tuple[float, bool]:
    """
    Returns (prior, base_rate_present).

    Precedence: explicit p0 > reference class > configured default.
    """
    if p0 is not None:
        return float(p0), True
    if reference_class is not None:
        trials, successes = reference_class
        return prior_from_reference_class(trials, successes, z=config.forecast.wilson_z), True
    return config.forecast.default_prior, False


def run_forecast(
    question: str,
    evidence: Sequence[Evidence | Mapping[str, Any]],
    *,
    p0: float | None = None,
    reference_class: tuple[int, int] | None = None,
    market_prob: float | None = None,
    alpha: float | None = None,
    drivers: Sequence[str] = (),
    markdown_report: str = "",
    rho_overrides: Mapping[str, float] | None = None,
    now: datetime | None = None,
    config: EngineRuntimeConfig | None = None,
) -> ForecastCard:
    """
    Produce a ForecastCard for one yes/no question.

    Args:
        question: Proposition text (carried through)
        evidence: Evidence models or raw dicts
        p0: Explicit prior; wins over reference_class
        reference_class: (trials, successes) for a base-rate prior
        market_prob: Market-implied probability; enables p_aware
        alpha: Market blend weight (defaults to config.forecast.market_alpha)
        drivers: Caller-declared key drivers (opaque)
        markdown_report: Caller-generated narrative (opaque)
        rho_overrides: cluster_id -> intra-cluster correlation
        now: Reference time for recency (defaults to current UTC time)
        config: Runtime config (defaults to EngineRuntimeConfig())

    Returns:
        Frozen ForecastCard
    """
    if config is None:
        config = EngineRuntimeConfig()
    if alpha is None:
        alpha = config.forecast.market_alpha
    if now is None:
        now = datetime.now(timezone.utc)

    items = coerce_evidence(evidence)
    prior, base_rate_present = resolve_prior(p0=p0, reference_class=reference_class, config=config)
    if trace_enabled():
        Trace.event("forecast.prior", {
            "p0": prior,
            "source": _prior_source(p0, reference_class),
            "reference_class": reference_class,
        })

    agg = aggregate_neutral(
        prior,
        items,
        rho_overrides=rho_overrides,
        now=now,
        params=config.scoring,
    )

    p_aware = None
    if market_prob is not None:
        p_aware = blend_market(agg.p_neutral, market_prob, alpha)

    polarities = {ev.polarity for ev in items}
    card = make_forecast_card(
        question=question,
        p0=prior,
        p_neutral=agg.p_neutral,
        p_aware=p_aware,
        alpha=alpha,
        drivers=drivers,
        influence=agg.influence,
        clusters=agg.clusters,
        provenance=collect_provenance(items),
        markdown_report=markdown_report,
        caps=config.scoring.caps_table(),
        base_rate_present=base_rate_present,
        two_sided_search=polarities == {1, -1},
        independence_checked=True,
        influence_threshold=config.forecast.influence_threshold,
    )

    logger.debug(
        "[Engine] question=%r p0=%.4f p_neutral=%.4f p_aware=%s evidence=%d",
        question[:80], prior, agg.p_neutral,
        f"{p_aware:.4f}" if p_aware is not None else None, len(items),
    )
    if trace_enabled():
        _trace_aggregation(agg, config.forecast.influence_threshold)
        Trace.event("forecast.computed", {
            "question": question,
            "p0": prior,
            "p_neutral": agg.p_neutral,
            "p_aware": p_aware,
            "alpha": alpha,
            "market_prob": market_prob,
            "log_odds": agg.log_odds,
            "checklist": card.audit.checklist,
        })
    return card
