# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 Forecast Engine Contributors
"""
Origin clustering with correlation discounting.

Reports that trace back to the same underlying source are not independent.
A cluster of m reports with intra-cluster correlation rho counts as

    m_eff = m / (1 + (m - 1)·rho)

independent-equivalent observations: rho = 0 keeps all m, rho -> 1
collapses the cluster to roughly one.
"""

from __future__ import annotations

import math
from typing import Iterable, Mapping, Sequence

from forecast_core.schema.evidence import Evidence

DEFAULT_RHO = 0.6
MAX_RHO = 0.99


def cluster_positions(evidence: Sequence[Evidence]) -> dict[str, list[int]]:
    """origin_id -> input positions of its members, in first-seen origin order."""
    clusters: dict[str, list[int]] = {}
    for pos, ev in enumerate(evidence):
        clusters.setdefault(ev.origin_id, []).append(pos)
    return clusters


def cluster_by_origin(evidence: Iterable[Evidence]) -> dict[str, list[Evidence]]:
    """Group by origin_id. Keeps first-seen origin order and input order inside a cluster."""
    items = list(evidence)
    return {cid: [items[p] for p in pos] for cid, pos in cluster_positions(items).items()}


def default_rho(m: int, rho: float = DEFAULT_RHO) -> float:
    return rho if m > 1 else 0.0


def resolve_rho(
    cluster_id: str,
    m: int,
    rho_overrides: Mapping[str, float] | None = None,
    base_rho: float = DEFAULT_RHO,
) -> float:
    """
    Override for this cluster if given, else the default for its size.

    Clamped to [0, MAX_RHO]. A NaN or infinite rho raises ValueError.
    """
    if rho_overrides is not None and cluster_id in rho_overrides:
        rho = float(rho_overrides[cluster_id])
    else:
        rho = default_rho(m, base_rho)
    if not math.isfinite(rho):
        raise ValueError(f"rho for cluster {cluster_id!r} must be finite, got {rho!r}")
    return min(MAX_RHO, max(0.0, rho))


def effective_count(m: int, rho: float) -> float:
    if not math.isfinite(rho):
        raise ValueError(f"rho must be finite, got {rho!r}")
    r = min(MAX_RHO, max(0.0, rho))
    return m / (1.0 + (m - 1) * r)
