# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 Forecast Engine Contributors
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any

from forecast_core.schema.evidence import TYPE_CAPS, EvidenceType


def _parse_bool(raw: Any, *, default: bool) -> bool:
    if raw is None:
        return default
    if isinstance(raw, bool):
        return raw
    s = str(raw).strip().lower()
    if not s:
        return default
    if s in ("1", "true", "yes", "y", "on"):
        return True
    if s in ("0", "false", "no", "n", "off"):
        return False
    return default


def _parse_int(raw: Any, *, default: int, min_v: int, max_v: int) -> int:
    try:
        if raw is None:
            v = default
        elif isinstance(raw, int):
            v = raw
        else:
            v = int(str(raw).strip())
    except ValueError:
        v = default
    return max(min_v, min(max_v, v))


def _parse_float(raw: Any, *, default: float, min_v: float, max_v: float) -> float:
    try:
        if raw is None:
            v = default
        elif isinstance(raw, (int, float)):
            v = float(raw)
        else:
            v = float(str(raw).strip())
    except ValueError:
        v = default
    if v != v:  # NaN from env
        v = default
    return max(min_v, min(max_v, v))


@dataclass(frozen=True)
class ScoringParams:
    """
    Evidence scoring and aggregation constants.

    Passed explicitly into every scoring function; nothing reads env at
    call time.
    """
    type_caps: dict[EvidenceType, float] = field(default_factory=lambda: dict(TYPE_CAPS))

    # Composite weights: verifiability, corroboration reliability, consistency, recency
    weight_v: float = 0.45
    weight_r: float = 0.25
    weight_u: float = 0.15
    weight_t: float = 0.15

    k0: float = 1.0                  # corroboration saturation rate
    half_life_days: float = 120.0    # recency half-life
    first_report_factor: float = 1.0 # neutral for prediction markets
    default_rho: float = 0.6         # intra-cluster correlation for m > 1
    trim_fraction: float = 0.2       # per-tail trim inside a cluster

    def cap_for(self, evidence_type: EvidenceType) -> float:
        return self.type_caps[EvidenceType(evidence_type)]

    def caps_table(self) -> dict[str, float]:
        return {t.value: float(c) for t, c in sorted(self.type_caps.items(), key=lambda kv: kv[0].value)}


@dataclass(frozen=True)
class EngineForecastConfig:
    default_prior: float = 0.5
    market_alpha: float = 0.1
    influence_threshold: float = 0.10  # max single-item swing, probability units
    wilson_z: float = 1.96


@dataclass(frozen=True)
class EngineFeatureFlags:
    # Trace is a local-only debug feature; it is enabled by default and can be disabled via env.
    trace_enabled: bool = True


@dataclass(frozen=True)
class EngineRuntimeConfig:
    scoring: ScoringParams = field(default_factory=ScoringParams)
    forecast: EngineForecastConfig = field(default_factory=EngineForecastConfig)
    features: EngineFeatureFlags = field(default_factory=EngineFeatureFlags)

    @staticmethod
    def load_from_env() -> "EngineRuntimeConfig":
        scoring = ScoringParams(
            k0=_parse_float(os.getenv("FORECAST_K0"), default=1.0, min_v=0.05, max_v=10.0),
            half_life_days=_parse_float(
                os.getenv("FORECAST_HALF_LIFE_DAYS"), default=120.0, min_v=1.0, max_v=3650.0
            ),
            first_report_factor=_parse_float(
                os.getenv("FORECAST_FIRST_REPORT_FACTOR"), default=1.0, min_v=0.0, max_v=1.0
            ),
            default_rho=_parse_float(os.getenv("FORECAST_DEFAULT_RHO"), default=0.6, min_v=0.0, max_v=0.99),
            trim_fraction=_parse_float(os.getenv("FORECAST_TRIM_FRACTION"), default=0.2, min_v=0.0, max_v=0.49),
        )

        forecast = EngineForecastConfig(
            default_prior=_parse_float(
                os.getenv("FORECAST_DEFAULT_PRIOR"), default=0.5, min_v=0.01, max_v=0.99
            ),
            market_alpha=_parse_float(os.getenv("FORECAST_MARKET_ALPHA"), default=0.1, min_v=0.0, max_v=1.0),
            influence_threshold=_parse_float(
                os.getenv("FORECAST_INFLUENCE_THRESHOLD"), default=0.10, min_v=0.0, max_v=1.0
            ),
            wilson_z=_parse_float(os.getenv("FORECAST_WILSON_Z"), default=1.96, min_v=0.5, max_v=5.0),
        )

        features = EngineFeatureFlags(
            trace_enabled=not _parse_bool(os.getenv("FORECAST_TRACE_DISABLE"), default=False),
        )

        return EngineRuntimeConfig(scoring=scoring, forecast=forecast, features=features)

    def to_safe_log_dict(self) -> dict[str, Any]:
        return {
            "scoring": {
                "type_caps": self.scoring.caps_table(),
                "weights": {
                    "v": float(self.scoring.weight_v),
                    "r": float(self.scoring.weight_r),
                    "u": float(self.scoring.weight_u),
                    "t": float(self.scoring.weight_t),
                },
                "k0": float(self.scoring.k0),
                "half_life_days": float(self.scoring.half_life_days),
                "first_report_factor": float(self.scoring.first_report_factor),
                "default_rho": float(self.scoring.default_rho),
                "trim_fraction": float(self.scoring.trim_fraction),
            },
            "forecast": {
                "default_prior": float(self.forecast.default_prior),
                "market_alpha": float(self.forecast.market_alpha),
                "influence_threshold": float(self.forecast.influence_threshold),
                "wilson_z": float(self.forecast.wilson_z),
            },
            "features": {
                "trace_enabled": bool(self.features.trace_enabled),
            },
        }
