"""스코어 계산 유틸리티 테스트.

Scoring utility tests — score per mode, status thresholds, trend,
goal distance and display formatting.
"""

from types import SimpleNamespace

import pytest

from app.utils.scoring import (
    calculate_score,
    calculate_vs_goal,
    calculate_wow_change,
    format_goal,
    format_score,
    format_value,
    get_average,
    get_score_status,
    get_status,
    get_status_color,
    get_status_label,
    get_trend,
)


def metric(mode: str, **targets) -> SimpleNamespace:
    base = {"target_value": None, "target_min": None, "target_max": None, "target_boolean": None, "unit": None}
    base.update(targets)
    return SimpleNamespace(scoring_mode=mode, **base)


class TestCalculateScore:
    """모드별 달성률 계산."""

    @pytest.mark.parametrize("target", [1, 40, 250.5])
    def test_at_least(self, target):
        """목표값이면 100, 절반이면 50, 0이면 0."""
        m = metric("at_least", target_value=target)
        assert calculate_score(target, m) == pytest.approx(100)
        assert calculate_score(target / 2, m) == pytest.approx(50)
        assert calculate_score(0, m) == 0

    def test_at_least_is_unbounded(self):
        """at_least는 목표 초과 시 100을 넘는다."""
        assert calculate_score(150, metric("at_least", target_value=100)) == pytest.approx(150)

    def test_at_most(self):
        """목표 이하는 모두 100, 두 배면 50."""
        m = metric("at_most", target_value=10)
        for value in (0, 5, 10):
            assert calculate_score(value, m) == 100
        assert calculate_score(20, m) == pytest.approx(50)

    def test_between(self):
        """범위 안 100, 아래/위는 가까운 경계 비율."""
        m = metric("between", target_min=10, target_max=20)
        assert calculate_score(15, m) == 100
        assert calculate_score(10, m) == 100
        assert calculate_score(20, m) == 100
        assert calculate_score(5, m) == pytest.approx(50)
        assert calculate_score(40, m) == pytest.approx(50)

    def test_yes_no(self):
        """목표와 일치하면 100, 아니면 0."""
        yes = metric("yes_no", target_boolean=True)
        assert calculate_score(1, yes) == 100
        assert calculate_score(0, yes) == 0
        no = metric("yes_no", target_boolean=False)
        assert calculate_score(0, no) == 100
        assert calculate_score(1, no) == 0

    def test_missing_targets_score_zero(self):
        """목표가 없거나 0이면 예외 없이 0."""
        assert calculate_score(5, metric("at_least")) == 0
        assert calculate_score(5, metric("at_least", target_value=0)) == 0
        assert calculate_score(5, metric("at_most")) == 0
        assert calculate_score(5, metric("between", target_min=1)) == 0
        assert calculate_score(1, metric("yes_no")) == 0

    def test_zero_bounds_do_not_divide_by_zero(self):
        """between 하한 0, at_most 값 0에서도 예외 없음."""
        assert calculate_score(-1, metric("between", target_min=0, target_max=5)) == 0
        assert calculate_score(0, metric("at_most", target_value=-1)) == 0


class TestStatus:
    """상태 임계값."""

    def test_thresholds(self):
        assert get_score_status(100) == "on-target"
        assert get_score_status(130) == "on-target"
        assert get_score_status(75) == "near-target"
        assert get_score_status(74.9) == "below-target"
        assert get_score_status(0) == "below-target"

    def test_status_from_value(self):
        assert get_status(80, metric("at_least", target_value=100)) == "near-target"

    def test_labels_and_colors(self):
        assert get_status_label("on-target") == "On Target"
        assert get_status_color("near-target") == "yellow"
        assert get_status_color("below-target") == "red"


class TestTrend:
    """최근 3개 대 이전 3개 평균 비교."""

    def test_up(self):
        assert get_trend([10, 10, 10, 15, 15, 15]) == "up"

    def test_down(self):
        assert get_trend([15, 15, 15, 10, 10, 10]) == "down"

    def test_flat(self):
        assert get_trend([10, 10, 10, 10, 10, 10]) == "flat"

    def test_within_noise_band_is_flat(self):
        """±5% 이내 변화는 flat."""
        assert get_trend([100, 100, 100, 104, 104, 104]) == "flat"

    def test_fewer_than_two_values(self):
        assert get_trend([]) == "flat"
        assert get_trend([42]) == "flat"

    def test_short_history_uses_available_values(self):
        """값이 4개면 이전 구간은 첫 번째 값 하나."""
        assert get_trend([10, 20, 20, 20]) == "up"


class TestVsGoal:
    """목표 대비 편차."""

    def test_at_least_met_is_zero(self):
        m = metric("at_least", target_value=100)
        assert calculate_vs_goal(120, m) == 0
        assert calculate_vs_goal(80, m) == pytest.approx(-20)

    def test_at_most_over_is_positive(self):
        m = metric("at_most", target_value=50)
        assert calculate_vs_goal(40, m) == 0
        assert calculate_vs_goal(60, m) == pytest.approx(20)

    def test_between(self):
        m = metric("between", target_min=10, target_max=20)
        assert calculate_vs_goal(15, m) == 0
        assert calculate_vs_goal(5, m) == pytest.approx(-50)
        assert calculate_vs_goal(30, m) == pytest.approx(50)

    def test_yes_no(self):
        m = metric("yes_no", target_boolean=True)
        assert calculate_vs_goal(1, m) == 0
        assert calculate_vs_goal(0, m) == -100


class TestHelpers:
    """변화율, 평균, 표시 형식."""

    def test_wow_change(self):
        assert calculate_wow_change(110, 100) == pytest.approx(10)
        assert calculate_wow_change(5, None) is None
        assert calculate_wow_change(5, 0) is None

    def test_average(self):
        assert get_average([1, 2, 3]) == 2
        assert get_average([]) == 0

    def test_format_score(self):
        assert format_score(87.4) == "87%"

    def test_format_value(self):
        assert format_value(1, None, "yes_no") == "Yes"
        assert format_value(0, None, "yes_no") == "No"
        assert format_value(1500, "$") == "$1,500"
        assert format_value(12.5, "%") == "12.5%"
        assert format_value(7, None) == "7"

    def test_format_goal(self):
        assert format_goal(metric("at_least", target_value=100, unit="$")) == ">= $100"
        assert format_goal(metric("at_most", target_value=3)) == "<= 3"
        assert format_goal(metric("between", target_min=10, target_max=20, unit="%")) == "10% to 20%"
        assert format_goal(metric("yes_no", target_boolean=True)) == "Target: Yes"
