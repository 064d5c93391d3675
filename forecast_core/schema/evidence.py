# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 Forecast Engine Contributors
"""
Evidence Pydantic Model

Evidence is produced upstream by the research loop (LLM extraction over
retrieved documents) and consumed once per aggregation call.

Key Design Principles:
1. Evidence is immutable once validated
2. Noisy numeric fields are CLAMPED, not rejected (extraction is best-effort)
3. Structural fields (polarity, type) are strict: a wrong value is a bug upstream
4. Non-finite numbers (NaN, Infinity) are rejected: there is no sensible value to clamp them to
"""

from __future__ import annotations

import math
from enum import Enum

from pydantic import Field, field_validator

from forecast_core.schema.serialization import SchemaModel


class EvidenceType(str, Enum):
    """
    Ordinal source strength.

    Each type carries a fixed maximum |logLR| (see TYPE_CAPS).
    """
    A = "A"
    """Direct primary evidence (official filings, first-party statements)."""

    B = "B"
    """Strong secondary evidence (established outlets, verified data)."""

    C = "C"
    """Indirect evidence (commentary, partial data)."""

    D = "D"
    """Speculative or weak secondary evidence."""


# Maximum absolute logLR per evidence type.
TYPE_CAPS: dict[EvidenceType, float] = {
    EvidenceType.A: 1.0,
    EvidenceType.B: 0.6,
    EvidenceType.C: 0.3,
    EvidenceType.D: 0.2,
}


def _clamp_unit(value: float) -> float:
    value = float(value)
    if not math.isfinite(value):
        raise ValueError(f"score must be a finite number, got {value!r}")
    return max(0.0, min(1.0, value))


class Evidence(SchemaModel):
    """
    A single piece of evidence about a yes/no proposition.

    Example:
        Evidence(
            id="e1",
            claim="Regulator scheduled the vote for March 3",
            polarity=1,
            type=EvidenceType.A,
            origin_id="reuters-2025-02-11",
            verifiability=0.9,
            corroborations_indep=2,
            consistency=0.8,
        )
    """

    model_config = {"frozen": True}

    id: str
    claim: str = ""
    """Free-text claim. Opaque to the engine, carried through for reporting."""

    polarity: int
    """+1 supports the proposition, -1 opposes it."""

    type: EvidenceType

    published_at: str | None = None
    """ISO timestamp. Missing or unparseable values mean neutral recency."""

    urls: list[str] = Field(default_factory=list)

    origin_id: str
    """Evidence sharing an origin is treated as correlated."""

    first_report: bool = False

    verifiability: float = 0.0
    corroborations_indep: int = 0
    consistency: float = 0.0

    log_lr_hint: float | None = None
    """Precomputed logLR. Bypasses the scoring formula (still capped)."""

    # Adjacent/catalyst annotations, reporting only.
    pathway: str | None = None
    connection_strength: float | None = None

    @field_validator("polarity")
    @classmethod
    def _check_polarity(cls, v: int) -> int:
        if v not in (1, -1):
            raise ValueError(f"polarity must be +1 or -1, got {v!r}")
        return v

    @field_validator("verifiability", "consistency")
    @classmethod
    def _clamp_score(cls, v: float) -> float:
        return _clamp_unit(v)

    @field_validator("connection_strength")
    @classmethod
    def _clamp_connection(cls, v: float | None) -> float | None:
        return None if v is None else _clamp_unit(v)

    @field_validator("corroborations_indep", mode="before")
    @classmethod
    def _clamp_corroborations(cls, v):
        # LLM extraction sometimes emits 2.0, 1.5 or -1
        if isinstance(v, float):
            if not math.isfinite(v):
                raise ValueError(f"corroborations must be finite, got {v!r}")
            v = int(v)
        if isinstance(v, int) and v < 0:
            return 0
        return v

    @property
    def cap(self) -> float:
        return TYPE_CAPS[self.type]
