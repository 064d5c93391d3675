"""Report-card assembly."""

from forecast_core.report.report_card import (
    INFLUENCE_THRESHOLD,
    collect_provenance,
    make_forecast_card,
)

__all__ = ["INFLUENCE_THRESHOLD", "collect_provenance", "make_forecast_card"]
