# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 Forecast Engine Contributors
"""
Unit tests for the neutral aggregator.

Covers the posterior, cluster metadata and the literal leave-one-out
influence.
"""

import math

import pytest

from forecast_core.runtime_config import ScoringParams
from forecast_core.scoring.aggregator import AggregationResult, aggregate_neutral
from forecast_core.scoring.clusters import effective_count
from forecast_core.scoring.evidence_score import evidence_log_lr
from forecast_core.scoring.log_odds import logit, sigmoid, trimmed_mean


# ─────────────────────────────────────────────────────────────────────────────
# Empty / degenerate input
# ─────────────────────────────────────────────────────────────────────────────


class TestEmptyEvidence:

    @pytest.mark.parametrize("p0", [0.5, 0.13, 0.87])
    def test_posterior_equals_prior(self, p0, now):
        result = aggregate_neutral(p0, [], now=now)
        assert result.p_neutral == p0
        assert result.influence == []
        assert result.clusters == []

    def test_returns_aggregation_result(self, now):
        result = aggregate_neutral(0.5, [], now=now)
        assert isinstance(result, AggregationResult)
        assert result.log_odds == 0.0


# ─────────────────────────────────────────────────────────────────────────────
# Posterior
# ─────────────────────────────────────────────────────────────────────────────


class TestPosterior:

    def test_single_strong_item_moves_posterior_up(self, strong_yes, now):
        result = aggregate_neutral(0.5, [strong_yes], now=now)
        assert result.p_neutral > 0.5
        assert len(result.influence) == 1
        item = result.influence[0]
        assert item.evidence_id == "strong"
        # Removing the only item returns the posterior to the prior
        assert item.delta_pp == pytest.approx(abs(result.p_neutral - 0.5), abs=1e-12)

    def test_opposing_item_moves_posterior_down(self, make_evidence, now):
        ev = make_evidence(polarity=-1, type="A")
        result = aggregate_neutral(0.5, [ev], now=now)
        assert result.p_neutral < 0.5

    def test_independent_items_add_in_log_odds(self, make_evidence, now):
        a = make_evidence(origin_id="a")
        b = make_evidence(origin_id="b", type="C", polarity=-1)
        result = aggregate_neutral(0.3, [a, b], now=now)
        expected = sigmoid(logit(0.3) + evidence_log_lr(a, now=now) + evidence_log_lr(b, now=now))
        assert result.p_neutral == pytest.approx(expected)

    def test_posterior_strictly_inside_unit_interval(self, make_evidence, now):
        pro = [make_evidence(type="A", log_lr_hint=1.0) for _ in range(200)]
        con = [make_evidence(type="A", log_lr_hint=-1.0) for _ in range(200)]
        high = aggregate_neutral(0.999999, pro, now=now).p_neutral
        low = aggregate_neutral(1e-6, con, now=now).p_neutral
        assert 0.0 < low < 0.5 < high < 1.0

    def test_extreme_prior_is_clamped_before_logit(self, make_evidence, now):
        ev = make_evidence()
        for p0 in (0.0, 1.0):
            result = aggregate_neutral(p0, [ev], now=now)
            assert 0.0 < result.p_neutral < 1.0
            assert math.isfinite(result.log_odds)

    def test_deterministic(self, make_evidence, now):
        items = [make_evidence(origin_id="x"), make_evidence(origin_id="x"), make_evidence()]
        first = aggregate_neutral(0.4, items, now=now)
        second = aggregate_neutral(0.4, items, now=now)
        assert first == second


# ─────────────────────────────────────────────────────────────────────────────
# Correlation discount
# ─────────────────────────────────────────────────────────────────────────────


class TestCorrelationDiscount:

    def test_same_origin_counts_less_than_twice(self, make_evidence, now):
        kwargs = dict(origin_id="story", type="A", verifiability=0.9, consistency=0.9, corroborations_indep=2)
        one = make_evidence(id="x1", **kwargs)
        two = make_evidence(id="x2", **kwargs)

        alone = aggregate_neutral(0.5, [one], now=now)
        pair = aggregate_neutral(0.5, [one, two], now=now)

        single_contrib = alone.clusters[0].contribution
        pair_meta = pair.clusters[0]
        assert pair_meta.size == 2
        assert pair_meta.rho == pytest.approx(0.6)
        assert pair_meta.m_eff == pytest.approx(1.25)
        assert pair_meta.contribution < 2 * single_contrib
        assert pair_meta.contribution == pytest.approx(1.25 * single_contrib)

    def test_rho_override_of_zero_removes_discount(self, make_evidence, now):
        kwargs = dict(origin_id="story", type="B")
        items = [make_evidence(**kwargs), make_evidence(**kwargs)]
        result = aggregate_neutral(0.5, items, rho_overrides={"story": 0.0}, now=now)
        assert result.clusters[0].m_eff == 2.0

    def test_distinct_origins_are_independent(self, make_evidence, now):
        items = [make_evidence(type="B"), make_evidence(type="B")]
        result = aggregate_neutral(0.5, items, now=now)
        assert [c.m_eff for c in result.clusters] == [1.0, 1.0]
        assert [c.rho for c in result.clusters] == [0.0, 0.0]


# ─────────────────────────────────────────────────────────────────────────────
# Cluster metadata
# ─────────────────────────────────────────────────────────────────────────────


class TestClusterMeta:

    def test_metadata_in_first_seen_order(self, make_evidence, now):
        items = [
            make_evidence(origin_id="b"),
            make_evidence(origin_id="a"),
            make_evidence(origin_id="b"),
        ]
        result = aggregate_neutral(0.5, items, now=now)
        assert [c.cluster_id for c in result.clusters] == ["b", "a"]
        assert [c.size for c in result.clusters] == [2, 1]

    def test_mean_llr_is_trimmed(self, make_evidence, now):
        hints = [0.1, 0.2, 0.3, 0.4, -0.6]
        items = [make_evidence(origin_id="c", type="B", log_lr_hint=h) for h in hints]
        result = aggregate_neutral(0.5, items, now=now)
        meta = result.clusters[0]
        assert meta.mean_llr == pytest.approx(trimmed_mean(hints, 0.2))
        assert meta.mean_llr == pytest.approx(0.2)
        assert meta.contribution == pytest.approx(meta.m_eff * meta.mean_llr)

    def test_log_odds_is_sum_of_contributions(self, make_evidence, now):
        items = [
            make_evidence(origin_id="a"),
            make_evidence(origin_id="a", polarity=-1),
            make_evidence(origin_id="b", type="A"),
        ]
        result = aggregate_neutral(0.2, items, now=now)
        total = logit(0.2) + sum(c.contribution for c in result.clusters)
        assert result.log_odds == pytest.approx(total)


# ─────────────────────────────────────────────────────────────────────────────
# Leave-one-out influence
# ─────────────────────────────────────────────────────────────────────────────


class TestInfluence:

    def test_one_item_per_evidence_in_input_order(self, make_evidence, now):
        items = [
            make_evidence(id="z", origin_id="b"),
            make_evidence(id="y", origin_id="a"),
            make_evidence(id="x", origin_id="b"),
        ]
        result = aggregate_neutral(0.5, items, now=now)
        assert [i.evidence_id for i in result.influence] == ["z", "y", "x"]

    def test_influence_log_lr_matches_scorer(self, make_evidence, now):
        items = [make_evidence(), make_evidence(polarity=-1, type="D")]
        result = aggregate_neutral(0.5, items, now=now)
        for ev, item in zip(items, result.influence):
            assert item.log_lr == evidence_log_lr(ev, now=now)

    def test_counterfactual_recomputes_cluster(self, make_evidence, now):
        hints = [0.5, 0.2, -0.1]
        items = [make_evidence(origin_id="c", type="A", log_lr_hint=h) for h in hints]
        other = make_evidence(origin_id="solo", type="B", log_lr_hint=0.3)
        result = aggregate_neutral(0.4, items + [other], now=now)

        cluster_full = effective_count(3, 0.6) * trimmed_mean(hints, 0.2)
        for idx in range(3):
            rest = hints[:idx] + hints[idx + 1:]
            cluster_without = effective_count(2, 0.6) * trimmed_mean(rest, 0.2)
            l_without = logit(0.4) + 0.3 + cluster_without
            expected = abs(result.p_neutral - sigmoid(l_without))
            assert result.influence[idx].delta_pp == pytest.approx(expected)

        assert result.log_odds == pytest.approx(logit(0.4) + 0.3 + cluster_full)

    def test_counterfactual_shrinks_to_singleton_rho(self, make_evidence, now):
        """A pair loses its correlation discount when one member is removed."""
        a = make_evidence(origin_id="p", type="A", log_lr_hint=0.8)
        b = make_evidence(origin_id="p", type="A", log_lr_hint=0.4)
        result = aggregate_neutral(0.5, [a, b], now=now)
        # Without a: b alone, m_eff = 1, rho = 0
        expected_a = abs(result.p_neutral - sigmoid(0.4))
        assert result.influence[0].delta_pp == pytest.approx(expected_a)

    def test_counterfactual_uses_rho_override(self, make_evidence, now):
        hints = [0.5, 0.3, 0.1]
        items = [make_evidence(origin_id="c", type="A", log_lr_hint=h) for h in hints]
        result = aggregate_neutral(0.5, items, rho_overrides={"c": 0.2}, now=now)
        rest = [0.3, 0.1]
        expected = abs(result.p_neutral - sigmoid(effective_count(2, 0.2) * trimmed_mean(rest, 0.2)))
        assert result.influence[0].delta_pp == pytest.approx(expected)

    def test_custom_trim_fraction_applies_to_counterfactual(self, make_evidence, now):
        hints = [0.9, 0.1, 0.2, 0.3]
        items = [make_evidence(origin_id="c", type="A", log_lr_hint=h) for h in hints]
        result = aggregate_neutral(0.5, items, trim_fraction=0.34, now=now)
        assert result.clusters[0].mean_llr == pytest.approx(trimmed_mean(hints, 0.34))
        rest = [0.1, 0.2, 0.3]
        expected = abs(result.p_neutral - sigmoid(effective_count(3, 0.6) * trimmed_mean(rest, 0.34)))
        assert result.influence[0].delta_pp == pytest.approx(expected)

    def test_repeated_ids_are_removed_one_at_a_time(self, make_evidence, now):
        a = make_evidence(id="dup", origin_id="c", type="A", log_lr_hint=0.6)
        b = make_evidence(id="dup", origin_id="c", type="A", log_lr_hint=0.6)
        result = aggregate_neutral(0.5, [a, b], now=now)
        assert len(result.influence) == 2
        # Each removal leaves the other member in place
        expected = abs(result.p_neutral - sigmoid(0.6))
        for item in result.influence:
            assert item.delta_pp == pytest.approx(expected)

    def test_delta_is_non_negative(self, make_evidence, now):
        items = [make_evidence(polarity=p, origin_id=o) for p, o in [(1, "a"), (-1, "a"), (-1, "b"), (1, "c")]]
        result = aggregate_neutral(0.6, items, now=now)
        assert all(i.delta_pp >= 0.0 for i in result.influence)


class TestParams:

    def test_default_trim_comes_from_params(self, make_evidence, now):
        hints = [0.9, 0.1, 0.2, 0.3]
        items = [make_evidence(origin_id="c", type="A", log_lr_hint=h) for h in hints]
        params = ScoringParams(trim_fraction=0.25)
        result = aggregate_neutral(0.5, items, now=now, params=params)
        assert result.clusters[0].mean_llr == pytest.approx(trimmed_mean(hints, 0.25))

    def test_default_rho_comes_from_params(self, make_evidence, now):
        items = [make_evidence(origin_id="c"), make_evidence(origin_id="c")]
        params = ScoringParams(default_rho=0.2)
        result = aggregate_neutral(0.5, items, now=now, params=params)
        assert result.clusters[0].rho == pytest.approx(0.2)
        assert result.clusters[0].m_eff == pytest.approx(2 / 1.2)

    def test_non_finite_hint_propagates(self, make_evidence, now):
        items = [make_evidence(), make_evidence(log_lr_hint=float("nan"))]
        with pytest.raises(ValueError):
            aggregate_neutral(0.5, items, now=now)


class TestNonFiniteInputs:

    def test_nan_prior_raises(self, strong_yes, now):
        with pytest.raises(ValueError):
            aggregate_neutral(float("nan"), [strong_yes], now=now)

    def test_nan_prior_raises_without_evidence(self, now):
        with pytest.raises(ValueError):
            aggregate_neutral(float("nan"), [], now=now)

    def test_nan_rho_override_raises(self, make_evidence, now):
        items = [make_evidence(origin_id="c"), make_evidence(origin_id="c")]
        with pytest.raises(ValueError):
            aggregate_neutral(0.5, items, rho_overrides={"c": float("nan")}, now=now)
