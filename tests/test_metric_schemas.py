"""지표 요청 스키마 테스트 — scoring_mode 판별 유니온과 이름 검증."""

import pytest
from pydantic import TypeAdapter, ValidationError

from app.schemas.metric import AtLeastMetric, BetweenMetric, MetricConfig, MetricEntryUpsert, YesNoMetric

adapter = TypeAdapter(MetricConfig)


class TestMetricConfig:
    """모드별 목표 필드 검증."""

    def test_at_least_variant(self):
        metric = adapter.validate_python({"name": "Revenue", "scoring_mode": "at_least", "target_value": 100})
        assert isinstance(metric, AtLeastMetric)
        assert metric.cadence == "weekly"

    def test_at_least_requires_target_value(self):
        with pytest.raises(ValidationError):
            adapter.validate_python({"name": "Revenue", "scoring_mode": "at_least"})

    def test_between_requires_both_bounds(self):
        with pytest.raises(ValidationError):
            adapter.validate_python({"name": "Churn", "scoring_mode": "between", "target_min": 1})

    def test_between_min_below_max(self):
        with pytest.raises(ValidationError):
            adapter.validate_python(
                {"name": "Churn", "scoring_mode": "between", "target_min": 5, "target_max": 5}
            )

    def test_yes_no_variant(self):
        metric = adapter.validate_python({"name": "Shipped", "scoring_mode": "yes_no", "target_boolean": False})
        assert isinstance(metric, YesNoMetric)
        assert metric.target_boolean is False

    def test_unknown_mode_rejected(self):
        with pytest.raises(ValidationError):
            adapter.validate_python({"name": "Revenue", "scoring_mode": "exactly", "target_value": 1})

    def test_other_mode_targets_written_as_null(self):
        """다른 모드의 목표 필드는 저장 시 None."""
        metric = adapter.validate_python(
            {"name": "Revenue", "scoring_mode": "at_least", "target_value": 100, "target_min": 1}
        )
        columns = metric.to_columns()
        assert columns["target_value"] == 100
        assert columns["target_min"] is None
        assert columns["target_max"] is None
        assert columns["target_boolean"] is None

    def test_between_columns(self):
        metric = BetweenMetric(name="Churn", scoring_mode="between", target_min=1, target_max=3)
        columns = metric.to_columns()
        assert (columns["target_min"], columns["target_max"], columns["target_value"]) == (1, 3, None)


class TestMetricName:
    """이름 규칙."""

    def test_name_trimmed(self):
        metric = adapter.validate_python({"name": "  Revenue  ", "scoring_mode": "at_most", "target_value": 1})
        assert metric.name == "Revenue"

    @pytest.mark.parametrize("name", ["", "ab", "   ab   "])
    def test_name_too_short(self, name):
        with pytest.raises(ValidationError):
            adapter.validate_python({"name": name, "scoring_mode": "at_most", "target_value": 1})

    def test_blank_unit_becomes_none(self):
        metric = adapter.validate_python(
            {"name": "Revenue", "scoring_mode": "at_least", "target_value": 1, "unit": "  "}
        )
        assert metric.unit is None


class TestEntryUpsert:
    """값 입력 요청."""

    def test_period_optional(self):
        entry = MetricEntryUpsert(value="12.5")
        assert entry.period_start is None

    def test_boolean_value_kept(self):
        assert MetricEntryUpsert(value=True).value is True
