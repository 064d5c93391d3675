import logging
import math
from datetime import datetime, timezone

import pytest

from forecast_core.runtime_config import ScoringParams
from forecast_core.schema.evidence import TYPE_CAPS, EvidenceType
from forecast_core.scoring.evidence_score import (
    NEUTRAL_RECENCY,
    evidence_log_lr,
    recency_score,
    reliability_from_corroborations,
)


NOW = datetime(2025, 6, 1, tzinfo=timezone.utc)


class TestRecencyScore:

    def test_missing_date_is_neutral(self):
        assert recency_score(None, NOW) == NEUTRAL_RECENCY
        assert recency_score("", NOW) == NEUTRAL_RECENCY

    def test_unparseable_date_is_neutral(self):
        assert recency_score("last tuesday", NOW) == NEUTRAL_RECENCY

    def test_one_half_life_ago_is_half(self):
        # 2025-02-01 -> 2025-06-01 is exactly 120 days
        assert recency_score("2025-02-01", NOW, half_life_days=120) == pytest.approx(0.5)

    def test_published_now_is_one(self):
        assert recency_score("2025-06-01T00:00:00Z", NOW) == 1.0

    def test_future_date_counts_as_fresh(self):
        assert recency_score("2026-01-01T00:00:00+00:00", NOW) == 1.0

    def test_older_is_lower(self):
        recent = recency_score("2025-05-01", NOW)
        old = recency_score("2023-05-01", NOW)
        assert 0.0 < old < recent < 1.0

    def test_naive_now_is_treated_as_utc(self):
        naive = datetime(2025, 6, 1)
        assert recency_score("2025-02-01", naive) == pytest.approx(0.5)


class TestReliability:

    def test_zero_corroborations(self):
        assert reliability_from_corroborations(0) == 0.0

    def test_negative_is_treated_as_zero(self):
        assert reliability_from_corroborations(-4) == 0.0

    def test_saturates_toward_one(self):
        assert reliability_from_corroborations(1) == pytest.approx(1 - math.exp(-1))
        assert reliability_from_corroborations(20) == pytest.approx(1.0, abs=1e-8)

    def test_strictly_increasing(self):
        values = [reliability_from_corroborations(k) for k in range(0, 8)]
        assert all(b > a for a, b in zip(values, values[1:]))


class TestEvidenceLogLR:

    def test_composite_formula(self, make_evidence):
        ev = make_evidence(
            type="B",
            verifiability=0.8,
            consistency=0.7,
            corroborations_indep=1,
            published_at=None,
        )
        r = 1 - math.exp(-1)
        expected = 0.6 * (0.45 * 0.8 + 0.25 * r + 0.15 * 0.7 + 0.15 * 0.5)
        assert evidence_log_lr(ev, now=NOW) == pytest.approx(expected)

    def test_polarity_flips_sign(self, make_evidence):
        pro = make_evidence(polarity=1)
        con = make_evidence(polarity=-1)
        assert evidence_log_lr(pro, now=NOW) == pytest.approx(-evidence_log_lr(con, now=NOW))
        assert evidence_log_lr(con, now=NOW) < 0

    def test_stronger_type_moves_more(self, make_evidence):
        kwargs = dict(verifiability=0.9, consistency=0.9, corroborations_indep=3)
        values = [evidence_log_lr(make_evidence(type=t, **kwargs), now=NOW) for t in "ABCD"]
        assert values == sorted(values, reverse=True)

    @pytest.mark.parametrize("evidence_type", ["A", "B", "C", "D"])
    def test_never_exceeds_type_cap(self, make_evidence, evidence_type):
        cap = TYPE_CAPS[EvidenceType(evidence_type)]
        for polarity in (1, -1):
            ev = make_evidence(
                type=evidence_type,
                polarity=polarity,
                verifiability=1.0,
                consistency=1.0,
                corroborations_indep=1000,
                published_at="2025-06-01T00:00:00Z",
            )
            assert abs(evidence_log_lr(ev, now=NOW)) <= cap

    def test_type_d_is_bounded_even_with_extreme_inputs(self, make_evidence):
        ev = make_evidence(type="D", verifiability=7.0, consistency=9.0, corroborations_indep=10**6)
        assert abs(evidence_log_lr(ev, now=NOW)) <= 0.2

    def test_more_corroboration_means_larger_magnitude(self, make_evidence):
        for polarity in (1, -1):
            prev = None
            for k in range(0, 6):
                ev = make_evidence(polarity=polarity, corroborations_indep=k, origin_id="same")
                mag = abs(evidence_log_lr(ev, now=NOW))
                if prev is not None:
                    assert mag > prev
                prev = mag

    def test_first_report_is_neutral_by_default(self, make_evidence):
        base = make_evidence(first_report=False)
        first = make_evidence(first_report=True)
        assert evidence_log_lr(first, now=NOW) == evidence_log_lr(base, now=NOW)

    def test_first_report_factor_applies_when_configured(self, make_evidence):
        params = ScoringParams(first_report_factor=0.5)
        base = make_evidence(first_report=False)
        first = make_evidence(first_report=True)
        assert evidence_log_lr(first, now=NOW, params=params) == pytest.approx(
            0.5 * evidence_log_lr(base, now=NOW, params=params)
        )


class TestLogLRHint:

    def test_hint_bypasses_formula(self, make_evidence):
        ev = make_evidence(type="A", log_lr_hint=0.37, verifiability=0.0)
        assert evidence_log_lr(ev, now=NOW) == 0.37

    def test_hint_is_clamped_to_cap(self, make_evidence, caplog):
        ev = make_evidence(type="C", log_lr_hint=-4.0)
        with caplog.at_level(logging.WARNING, logger="forecast_core.scoring.evidence_score"):
            assert evidence_log_lr(ev, now=NOW) == -0.3
        assert "exceeds type C cap" in caplog.text

    def test_hint_inside_cap_is_not_flagged(self, make_evidence, caplog):
        ev = make_evidence(type="A", log_lr_hint=0.5)
        with caplog.at_level(logging.WARNING, logger="forecast_core.scoring.evidence_score"):
            evidence_log_lr(ev, now=NOW)
        assert caplog.text == ""

    @pytest.mark.parametrize("bad", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_hint_raises(self, make_evidence, bad):
        ev = make_evidence(log_lr_hint=bad)
        with pytest.raises(ValueError, match="Non-finite"):
            evidence_log_lr(ev, now=NOW)
