# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 Forecast Engine Contributors
"""
Forecast output contract.

These models are created fresh inside one aggregation call and handed back
to the caller. They are frozen: collaborators (narrative reporter, client
stream) read them, never patch them.
"""

from __future__ import annotations

from pydantic import Field

from forecast_core.schema.serialization import SchemaModel


class ClusterMeta(SchemaModel):
    """Per-origin cluster summary."""

    model_config = {"frozen": True}

    cluster_id: str
    size: int
    rho: float
    """Intra-cluster correlation actually applied (clamped to [0, 0.99])."""
    m_eff: float
    mean_llr: float
    contribution: float = 0.0
    """m_eff * mean_llr, the cluster's shift in log-odds."""


class InfluenceItem(SchemaModel):
    """Leave-one-out impact of a single evidence item."""

    model_config = {"frozen": True}

    evidence_id: str
    log_lr: float
    delta_pp: float
    """|p_neutral - p_without_item|, in probability units."""


class AuditChecklist(SchemaModel):
    model_config = {"frozen": True}

    base_rate_present: bool = True
    two_sided_search: bool = True
    independence_checked: bool = True
    influence_under_threshold: bool = True


class ForecastAudit(SchemaModel):
    model_config = {"frozen": True}

    caps: dict[str, float]
    checklist: AuditChecklist


class ForecastCard(SchemaModel):
    """
    Terminal output of the engine.

    Serialized with camelCase keys (`pNeutral`, `evidenceInfluence`, ...)
    via `to_dict()`.
    """

    model_config = {"frozen": True}

    question: str
    p0: float
    p_neutral: float
    p_aware: float | None = None
    alpha: float
    drivers: list[str] = Field(default_factory=list)
    evidence_influence: list[InfluenceItem] = Field(default_factory=list)
    clusters: list[ClusterMeta] = Field(default_factory=list)
    audit: ForecastAudit
    provenance: list[str] = Field(default_factory=list)
    markdown_report: str = ""
