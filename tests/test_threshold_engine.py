"""
Tests for the threshold engine: config parsing, operator edits, and
green/yellow/red classification.
"""

import pytest

from trackflow.core.metric_registry import MetricKind
from trackflow.models.engine_models import HealthStatus, MetricThreshold, ThresholdSet
from trackflow.models.metric_models import DailyMetricRecord
from trackflow.analyzer.threshold_engine import (
    DEFAULT_THRESHOLDS,
    classify,
    classify_record,
    new_offer,
    offer_health,
    parse_thresholds,
    update_thresholds,
)


@pytest.fixture
def thresholds():
    return ThresholdSet(
        roas=MetricThreshold(green=1.30, yellow=1.10),
        ic=MetricThreshold(green=50.0, yellow=60.0),
        cpc=MetricThreshold(green=1.50, yellow=2.00),
    )


# ============================================================================
# parse_thresholds
# ============================================================================

class TestParseThresholds:
    def test_none_returns_documented_defaults(self):
        result = parse_thresholds(None)
        assert result == DEFAULT_THRESHOLDS
        assert result.roas.green == 1.30
        assert result.roas.yellow == 1.10
        assert result.ic.green == 50
        assert result.ic.yellow == 60
        assert result.cpc.green == 1.50
        assert result.cpc.yellow == 2.00

    def test_result_is_a_copy_of_defaults(self):
        result = parse_thresholds(None)
        result.roas.green = 9.0
        assert DEFAULT_THRESHOLDS.roas.green == 1.30

    def test_partial_fills_only_missing_kinds(self):
        result = parse_thresholds({"roas": {"green": 2.0, "yellow": 1.5}})
        assert result.roas == MetricThreshold(green=2.0, yellow=1.5)
        assert result.ic == DEFAULT_THRESHOLDS.ic
        assert result.cpc == DEFAULT_THRESHOLDS.cpc

    def test_accepts_legacy_portuguese_keys(self):
        result = parse_thresholds({"ic": {"verde": 40, "amarelo": 45}})
        assert result.ic == MetricThreshold(green=40, yellow=45)

    def test_accepts_json_string(self):
        result = parse_thresholds('{"cpc": {"green": 0.8, "yellow": 1.2}}')
        assert result.cpc == MetricThreshold(green=0.8, yellow=1.2)
        assert result.roas == DEFAULT_THRESHOLDS.roas

    def test_invalid_json_string_degrades_to_defaults(self):
        assert parse_thresholds("{not json") == DEFAULT_THRESHOLDS

    @pytest.mark.parametrize("raw", [42, [1, 2], "", True])
    def test_non_mapping_degrades_to_defaults(self, raw):
        assert parse_thresholds(raw) == DEFAULT_THRESHOLDS

    def test_malformed_kind_falls_back_for_that_kind_only(self):
        result = parse_thresholds(
            {"roas": "high", "ic": {"green": 30, "yellow": 35}}
        )
        assert result.roas == DEFAULT_THRESHOLDS.roas
        assert result.ic == MetricThreshold(green=30, yellow=35)

    def test_malformed_bound_falls_back_field_by_field(self):
        result = parse_thresholds({"ic": {"green": "abc", "yellow": 70}})
        assert result.ic.green == 50
        assert result.ic.yellow == 70

    def test_booleans_are_not_numbers(self):
        result = parse_thresholds({"cpc": {"green": True, "yellow": 3}})
        assert result.cpc.green == 1.50
        assert result.cpc.yellow == 3

    def test_numeric_strings_are_accepted(self):
        result = parse_thresholds({"roas": {"green": "1.8", "yellow": "1.4"}})
        assert result.roas == MetricThreshold(green=1.8, yellow=1.4)

    def test_unknown_kinds_are_ignored(self):
        result = parse_thresholds({"ctr": {"green": 5, "yellow": 3}})
        assert result == DEFAULT_THRESHOLDS

    def test_out_of_range_integer_falls_back(self):
        raw = '{"roas": {"green": 1' + "0" * 400 + ', "yellow": 1}}'
        result = parse_thresholds(raw)
        assert result.roas.green == 1.30
        assert result.roas.yellow == 1

    def test_out_of_range_update_keeps_current(self):
        result = update_thresholds(None, {"ic_green": 10**400})
        assert result.ic.green == 50


# ============================================================================
# update_thresholds
# ============================================================================

class TestUpdateThresholds:
    def test_replaces_given_values(self):
        result = update_thresholds(
            None,
            {"roas_green": "2.5", "roas_yellow": "2", "cpc_green": 1.0, "cpc_yellow": 1.25},
        )
        assert result.roas == MetricThreshold(green=2.5, yellow=2.0)
        assert result.cpc == MetricThreshold(green=1.0, yellow=1.25)

    def test_blank_or_unparseable_keeps_current(self):
        current = {"ic": {"green": 40, "yellow": 45}}
        result = update_thresholds(current, {"ic_green": "", "ic_yellow": "abc"})
        assert result.ic == MetricThreshold(green=40, yellow=45)

    def test_zero_is_a_valid_threshold(self):
        result = update_thresholds(None, {"roas_yellow": "0"})
        assert result.roas.yellow == 0.0
        assert result.roas.green == 1.30

    def test_output_round_trips_through_storage(self):
        result = update_thresholds(None, {"ic_green": "45"})
        assert parse_thresholds(result.to_storage()) == result


# ============================================================================
# new_offer
# ============================================================================

class TestNewOffer:
    def test_new_offer_carries_default_thresholds(self):
        offer = new_offer("Keto Burn", niche="health", country="BR")
        assert offer.thresholds == DEFAULT_THRESHOLDS.to_storage()
        assert parse_thresholds(offer.thresholds) == DEFAULT_THRESHOLDS


# ============================================================================
# classify
# ============================================================================

class TestClassify:
    def test_roas_boundaries(self, thresholds):
        assert classify(1.30, "roas", thresholds) == HealthStatus.SUCCESS
        assert classify(1.29, "roas", thresholds) == HealthStatus.WARNING
        assert classify(1.10, "roas", thresholds) == HealthStatus.WARNING
        assert classify(1.09, "roas", thresholds) == HealthStatus.DANGER

    def test_ic_lower_is_better(self, thresholds):
        assert classify(50, MetricKind.IC, thresholds) == HealthStatus.SUCCESS
        assert classify(55, MetricKind.IC, thresholds) == HealthStatus.WARNING
        assert classify(60, MetricKind.IC, thresholds) == HealthStatus.WARNING
        assert classify(60.01, MetricKind.IC, thresholds) == HealthStatus.DANGER

    def test_cpc_lower_is_better(self, thresholds):
        assert classify(1.2, "cpc", thresholds) == HealthStatus.SUCCESS
        assert classify(2.0, "cpc", thresholds) == HealthStatus.WARNING
        assert classify(2.5, "cpc", thresholds) == HealthStatus.DANGER

    @pytest.mark.parametrize("kind", list(MetricKind))
    def test_green_boundary_is_success(self, kind, thresholds):
        green = thresholds.for_kind(kind).green
        assert classify(green, kind, thresholds) == HealthStatus.SUCCESS

    def test_zero_and_large_values(self, thresholds):
        assert classify(0, "roas", thresholds) == HealthStatus.DANGER
        assert classify(0, "ic", thresholds) == HealthStatus.SUCCESS
        assert classify(1e12, "roas", thresholds) == HealthStatus.SUCCESS
        assert classify(1e12, "cpc", thresholds) == HealthStatus.DANGER

    def test_never_returns_neutral(self, thresholds):
        for kind in MetricKind:
            for value in (0, 0.5, 1.2, 1.5, 55, 1000):
                assert classify(value, kind, thresholds) != HealthStatus.NEUTRAL

    def test_unknown_kind_raises(self, thresholds):
        with pytest.raises(ValueError):
            classify(1.0, "ctr", thresholds)

    def test_offer_health_uses_roas(self, thresholds):
        assert offer_health(1.5, thresholds) == HealthStatus.SUCCESS
        assert offer_health(0.9, thresholds) == HealthStatus.DANGER


# ============================================================================
# classify_record
# ============================================================================

class TestClassifyRecord:
    def test_statuses_from_derived_values(self, thresholds):
        record = DailyMetricRecord(
            subject_id="cr-1",
            date="2024-03-10",
            spend=100.0,
            revenue=150.0,
            clicks=50,
            conversions=2,
        )
        statuses = classify_record(record, thresholds)
        assert statuses[MetricKind.ROAS] == HealthStatus.SUCCESS  # 1.5
        assert statuses[MetricKind.IC] == HealthStatus.SUCCESS  # 50
        assert statuses[MetricKind.CPC] == HealthStatus.WARNING  # 2.0

    def test_zero_denominators_degrade_to_zero(self, thresholds):
        record = DailyMetricRecord(subject_id="cr-1", date="2024-03-10")
        statuses = classify_record(record, thresholds)
        assert statuses[MetricKind.ROAS] == HealthStatus.DANGER
        assert statuses[MetricKind.IC] == HealthStatus.SUCCESS
        assert statuses[MetricKind.CPC] == HealthStatus.SUCCESS
