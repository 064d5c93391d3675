# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 Forecast Engine Contributors
"""
ForecastCard assembly.

Pure packaging of already-computed numbers. The only derived value is the
audit flag `influence_under_threshold`: no single evidence item may swing
the forecast by more than `influence_threshold` (10pp by default). It is a
robustness indicator, not an error.
"""

from __future__ import annotations

from typing import Iterable, Mapping, Sequence

from forecast_core.schema.evidence import TYPE_CAPS, Evidence
from forecast_core.schema.forecast import (
    AuditChecklist,
    ClusterMeta,
    ForecastAudit,
    ForecastCard,
    InfluenceItem,
)

INFLUENCE_THRESHOLD = 0.10


def collect_provenance(evidence: Iterable[Evidence]) -> list[str]:
    """All evidence URLs, de-duplicated, first-seen order, blanks skipped."""
    seen: set[str] = set()
    out: list[str] = []
    for ev in evidence:
        for url in ev.urls:
            u = (url or "").strip()
            if u and u not in seen:
                seen.add(u)
                out.append(u)
    return out


def make_forecast_card(
    *,
    question: str,
    p0: float,
    p_neutral: float,
    alpha: float,
    drivers: Sequence[str],
    influence: Sequence[InfluenceItem],
    clusters: Sequence[ClusterMeta],
    provenance: Sequence[str],
    markdown_report: str,
    p_aware: float | None = None,
    caps: Mapping[str, float] | None = None,
    base_rate_present: bool = True,
    two_sided_search: bool = True,
    independence_checked: bool = True,
    influence_threshold: float = INFLUENCE_THRESHOLD,
) -> ForecastCard:
    max_delta = max((x.delta_pp or 0.0 for x in influence), default=0.0)

    if caps is None:
        caps = {t.value: c for t, c in TYPE_CAPS.items()}

    audit = ForecastAudit(
        caps=dict(caps),
        checklist=AuditChecklist(
            base_rate_present=base_rate_present,
            two_sided_search=two_sided_search,
            independence_checked=independence_checked,
            influence_under_threshold=max_delta <= influence_threshold,
        ),
    )

    return ForecastCard(
        question=question,
        p0=p0,
        p_neutral=p_neutral,
        p_aware=p_aware,
        alpha=alpha,
        drivers=list(drivers),
        evidence_influence=list(influence),
        clusters=list(clusters),
        audit=audit,
        provenance=list(provenance),
        markdown_report=markdown_report,
    )
