"""
Forecast Scoring Module.

Correlation-aware log-odds aggregation of evidence with leave-one-out
influence, base-rate priors and market blending.
"""

# Core math
from forecast_core.scoring.log_odds import (
    PROB_EPS,
    clamp,
    clamp_prob,
    logit,
    sigmoid,
    trimmed_mean,
)

# Evidence scorer
from forecast_core.scoring.evidence_score import (
    evidence_log_lr,
    recency_score,
    reliability_from_corroborations,
)

# Clustering
from forecast_core.scoring.clusters import (
    DEFAULT_RHO,
    cluster_by_origin,
    default_rho,
    effective_count,
)

# Aggregation
from forecast_core.scoring.aggregator import AggregationResult, aggregate_neutral

# Priors and market
from forecast_core.scoring.priors import prior_from_reference_class, wilson_interval
from forecast_core.scoring.market import blend_market

# Reporting helpers
from forecast_core.scoring.influence import RankedInfluence, rank_influence, source_label, split_by_polarity

__all__ = [
    # Functions
    "clamp",
    "clamp_prob",
    "logit",
    "sigmoid",
    "trimmed_mean",
    "evidence_log_lr",
    "recency_score",
    "reliability_from_corroborations",
    "cluster_by_origin",
    "default_rho",
    "effective_count",
    "aggregate_neutral",
    "prior_from_reference_class",
    "wilson_interval",
    "blend_market",
    "rank_influence",
    "source_label",
    "split_by_polarity",
    # Classes
    "AggregationResult",
    "RankedInfluence",
    # Constants
    "PROB_EPS",
    "DEFAULT_RHO",
]
