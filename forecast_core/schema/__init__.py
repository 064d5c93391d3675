# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 Forecast Engine Contributors
"""
Forecast Engine schema models.

Input: Evidence. Output: ForecastCard and its parts.
"""

from forecast_core.schema.evidence import Evidence, EvidenceType, TYPE_CAPS
from forecast_core.schema.forecast import (
    AuditChecklist,
    ClusterMeta,
    ForecastAudit,
    ForecastCard,
    InfluenceItem,
)
from forecast_core.schema.serialization import SchemaModel, to_camel

__all__ = [
    # Input
    "Evidence",
    "EvidenceType",
    "TYPE_CAPS",
    # Output
    "AuditChecklist",
    "ClusterMeta",
    "ForecastAudit",
    "ForecastCard",
    "InfluenceItem",
    # Serialization
    "SchemaModel",
    "to_camel",
]
