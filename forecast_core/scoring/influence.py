# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 Forecast Engine Contributors
"""
Influence ranking for report generation.

Joins InfluenceItems back to their evidence and orders them by impact, so
the narrative reporter gets the top supporting and opposing items without
re-deriving anything.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Sequence
from urllib.parse import urlparse

from forecast_core.schema.evidence import Evidence
from forecast_core.schema.forecast import InfluenceItem

UNKNOWN_SOURCE = "Research Database"

_BARE_HOST_RE = re.compile(r"(?:https?://)?(?:www\.)?([^/.]+)")


@dataclass(frozen=True)
class RankedInfluence:
    evidence_id: str
    delta_pp: float
    log_lr: float
    claim: str = "Evidence not found"
    polarity: int = 0
    type: str = "Unknown"
    published_at: str | None = None
    verifiability: float = 0.0
    urls: list[str] = field(default_factory=list)
    source: str = UNKNOWN_SOURCE

    def to_dict(self) -> dict[str, Any]:
        return {
            "evidenceId": self.evidence_id,
            "deltaPP": round(self.delta_pp, 4),
            "logLR": round(self.log_lr, 4),
            "claim": self.claim,
            "polarity": self.polarity,
            "type": self.type,
            "publishedAt": self.published_at,
            "verifiability": round(self.verifiability, 3),
            "urls": list(self.urls),
            "source": self.source,
        }


def source_label(url: str | None) -> str:
    """
    Short human label for a URL: "https://www.reuters.com/x" -> "Reuters".
    """
    if not url:
        return UNKNOWN_SOURCE
    try:
        host = urlparse(url).hostname if "://" in url else None
    except ValueError:
        host = None
    if host:
        host = re.sub(r"^www\.", "", host)
        host = re.sub(r"\.[^.]+$", "", host)
    else:
        m = _BARE_HOST_RE.match(url.strip())
        host = m.group(1) if m else ""
    if not host:
        return UNKNOWN_SOURCE
    return host[:1].upper() + host[1:]


def rank_influence(
    influence: Sequence[InfluenceItem],
    evidence: Sequence[Evidence],
    top_n: int = 12,
) -> list[RankedInfluence]:
    """Top-N items by delta_pp (descending, ties keep input order)."""
    by_id = {ev.id: ev for ev in evidence}
    ordered = sorted(influence, key=lambda x: x.delta_pp, reverse=True)[:max(0, top_n)]

    out: list[RankedInfluence] = []
    for item in ordered:
        ev = by_id.get(item.evidence_id)
        if ev is None:
            out.append(RankedInfluence(
                evidence_id=item.evidence_id,
                delta_pp=item.delta_pp,
                log_lr=item.log_lr,
            ))
            continue
        out.append(RankedInfluence(
            evidence_id=item.evidence_id,
            delta_pp=item.delta_pp,
            log_lr=item.log_lr,
            claim=ev.claim or "Evidence not found",
            polarity=ev.polarity,
            type=ev.type.value,
            published_at=ev.published_at,
            verifiability=ev.verifiability,
            urls=list(ev.urls),
            source=source_label(ev.urls[0] if ev.urls else None),
        ))
    return out


def split_by_polarity(
    ranked: Sequence[RankedInfluence],
    per_side: int = 6,
) -> tuple[list[RankedInfluence], list[RankedInfluence]]:
    """(supporting, opposing), each capped at per_side. Unknown polarity is dropped."""
    supporting = [r for r in ranked if r.polarity > 0][:per_side]
    opposing = [r for r in ranked if r.polarity < 0][:per_side]
    return supporting, opposing
