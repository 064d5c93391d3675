# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 Forecast Engine Contributors
from datetime import datetime, timezone

import pytest

from forecast_core.schema.evidence import Evidence


NOW = datetime(2025, 6, 1, tzinfo=timezone.utc)


@pytest.fixture
def now():
    """Fixed reference clock so recency is deterministic."""
    return NOW


@pytest.fixture
def make_evidence():
    """Factory for Evidence with sensible defaults; override any field by keyword."""
    counter = {"n": 0}

    def _make(**overrides) -> Evidence:
        counter["n"] += 1
        data = {
            "id": f"e{counter['n']}",
            "claim": f"Claim {counter['n']}",
            "polarity": 1,
            "type": "B",
            "published_at": "2025-05-31T00:00:00Z",
            "urls": [f"https://www.example.com/{counter['n']}"],
            "origin_id": f"origin-{counter['n']}",
            "verifiability": 0.8,
            "corroborations_indep": 1,
            "consistency": 0.7,
        }
        data.update(overrides)
        return Evidence(**data)

    return _make


@pytest.fixture
def strong_yes(make_evidence):
    """Type A, fully verified, heavily corroborated, published a day before NOW."""
    return make_evidence(
        id="strong",
        type="A",
        polarity=1,
        verifiability=1.0,
        consistency=1.0,
        corroborations_indep=5,
        origin_id="wire-1",
    )
