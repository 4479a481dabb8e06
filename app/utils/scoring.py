"""스코어 계산 유틸리티 — 목표 대비 달성률, 상태, 추세 계산.

Scoring utilities — achievement percentage, tri-state status, trend and
goal-distance for metric values.

모든 함수는 예외를 발생시키지 않습니다. 목표 누락, 0 나눗셈, 빈 이력은
문서화된 기본값(0, "flat", None)으로 처리됩니다.
No function here raises: missing targets, zero division and empty history
degrade to documented defaults (0, "flat", None).

Scoring modes:
    - at_least: 높을수록 좋음 (Higher is better), value / target * 100
    - at_most: 낮을수록 좋음 (Lower is better), 100 at or under target
    - between: 범위 내 100 (100 inside [min, max]), ratio toward the nearest bound outside
    - yes_no: 1 = yes, 그 외 = no (1 = yes, anything else = no), 100 on match else 0
"""

from collections.abc import Sequence
from typing import Literal, Protocol

ScoreStatus = Literal["on-target", "near-target", "below-target"]
StatusColor = Literal["green", "yellow", "red"]
Trend = Literal["up", "down", "flat"]

# 상태 임계값 — 고정 설계 상수 (Fixed status thresholds, not configurable)
ON_TARGET_THRESHOLD: float = 100.0
NEAR_TARGET_THRESHOLD: float = 75.0

# 추세 노이즈 밴드 ±5% — Trend noise band
TREND_UP_FACTOR: float = 1.05
TREND_DOWN_FACTOR: float = 0.95
TREND_WINDOW: int = 3

_STATUS_LABELS: dict[str, str] = {
    "on-target": "On Target",
    "near-target": "Near Target",
    "below-target": "Below Target",
}

_STATUS_COLORS: dict[str, StatusColor] = {
    "on-target": "green",
    "near-target": "yellow",
    "below-target": "red",
}


class ScoringTarget(Protocol):
    """스코어 계산에 필요한 지표 속성 (ORM 모델과 스키마 모두 만족).

    Metric attributes needed for scoring; satisfied by both the ORM model
    and the pydantic record schemas.
    """

    scoring_mode: str
    target_value: float | None
    target_min: float | None
    target_max: float | None
    target_boolean: bool | None
    unit: str | None


def _ratio(numerator: float, denominator: float | None) -> float:
    """분모가 없거나 0이면 0을 반환하는 백분율 비율."""
    if not denominator:
        return 0.0
    return numerator / denominator * 100


def calculate_score(value: float, metric: ScoringTarget) -> float:
    """지표 값과 목표로 달성률(%)을 계산합니다.

    Calculate the achievement percentage of a value against the metric's target.
    The result is unbounded above for at_least; at_most and between cap at 100
    when the goal is met.

    Args:
        value: 입력된 지표 값 (Raw metric value; yes_no uses 1/0)
        metric: 스코어링 설정을 가진 지표 (Metric with its scoring configuration)

    Returns:
        float: 달성률, 목표가 없으면 0 (Achievement percentage, 0 when targets are missing)
    """
    mode: str = metric.scoring_mode

    if mode == "at_least":
        return _ratio(value, metric.target_value)

    if mode == "at_most":
        target = metric.target_value
        if target is None:
            return 0.0
        if value <= target:
            return 100.0
        return _ratio(target, value)

    if mode == "between":
        low, high = metric.target_min, metric.target_max
        if low is None or high is None:
            return 0.0
        if low <= value <= high:
            return 100.0
        if value < low:
            return _ratio(value, low)
        return _ratio(high, value)

    if mode == "yes_no":
        if metric.target_boolean is None:
            return 0.0
        return 100.0 if (value == 1) == metric.target_boolean else 0.0

    return 0.0


def get_score_status(score: float) -> ScoreStatus:
    """달성률을 3단계 상태로 변환합니다 (>=100 on, >=75 near, 그 외 below)."""
    if score >= ON_TARGET_THRESHOLD:
        return "on-target"
    if score >= NEAR_TARGET_THRESHOLD:
        return "near-target"
    return "below-target"


def get_status(value: float, metric: ScoringTarget) -> ScoreStatus:
    """값을 바로 상태로 변환 — calculate_score + get_score_status."""
    return get_score_status(calculate_score(value, metric))


def get_status_label(status: ScoreStatus) -> str:
    return _STATUS_LABELS[status]


def get_status_color(status: ScoreStatus) -> StatusColor:
    return _STATUS_COLORS[status]


def calculate_vs_goal(value: float, metric: ScoringTarget) -> float:
    """목표 대비 부호 있는 편차(%)를 계산합니다.

    Signed percentage deviation from the goal. Returns 0 whenever the value
    already satisfies the goal (at or above an at_least target, at or under an
    at_most target, inside a between range). yes_no returns 0 on match and
    -100 on mismatch.
    """
    mode: str = metric.scoring_mode

    if mode == "at_least":
        target = metric.target_value
        if not target or value >= target:
            return 0.0
        return (value / target - 1) * 100

    if mode == "at_most":
        target = metric.target_value
        if not target or value <= target:
            return 0.0
        return (value / target - 1) * 100

    if mode == "between":
        low, high = metric.target_min, metric.target_max
        if low is None or high is None or low <= value <= high:
            return 0.0
        if value < low:
            return (value / low - 1) * 100 if low else 0.0
        return (value / high - 1) * 100 if high else 0.0

    if mode == "yes_no":
        if metric.target_boolean is None:
            return 0.0
        return 0.0 if (value == 1) == metric.target_boolean else -100.0

    return 0.0


def get_trend(values: Sequence[float]) -> Trend:
    """최근 3개와 그 이전 3개 값의 평균을 비교해 추세를 반환합니다.

    Compare the mean of the last three values with the mean of the three
    before them. Values must be ordered oldest to newest.

    Returns:
        Trend: ±5% 밴드를 벗어나면 "up"/"down", 아니면 "flat"
               ("up"/"down" outside the ±5% band, otherwise "flat")
    """
    if len(values) < 2:
        return "flat"

    recent = list(values[-TREND_WINDOW:])
    previous = list(values[-2 * TREND_WINDOW:-TREND_WINDOW])
    if not previous:
        return "flat"

    recent_avg: float = sum(recent) / len(recent)
    previous_avg: float = sum(previous) / len(previous)

    if recent_avg > previous_avg * TREND_UP_FACTOR:
        return "up"
    if recent_avg < previous_avg * TREND_DOWN_FACTOR:
        return "down"
    return "flat"


def calculate_wow_change(current: float, previous: float | None) -> float | None:
    """직전 기간 대비 변화율(%) — 직전 값이 없거나 0이면 None."""
    if previous is None or previous == 0:
        return None
    return (current - previous) / previous * 100


def get_average(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)


def format_score(score: float) -> str:
    """달성률 표시 문자열 (e.g. "87%")."""
    return f"{round(score)}%"


def _format_number(value: float) -> str:
    # 정수 값은 소수점 없이 표시 (Whole numbers render without a decimal part)
    if float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,}"


def format_value(value: float, unit: str | None, scoring_mode: str | None = None) -> str:
    """단위를 포함한 값 표시 문자열.

    yes_no 지표는 Yes/No, "$"는 접두사, 그 외 단위는 접미사로 표시합니다.
    """
    if scoring_mode == "yes_no":
        return "Yes" if value == 1 else "No"
    if unit == "$":
        return f"${_format_number(value)}"
    if unit:
        return f"{_format_number(value)}{unit}"
    return _format_number(value)


def format_goal(metric: ScoringTarget) -> str:
    """스코어링 모드별 목표 표시 문자열."""
    mode: str = metric.scoring_mode
    if mode == "at_least":
        if metric.target_value == 0:
            return "= 0"
        return f">= {format_value(metric.target_value or 0, metric.unit, mode)}"
    if mode == "at_most":
        return f"<= {format_value(metric.target_value or 0, metric.unit, mode)}"
    if mode == "between":
        low = format_value(metric.target_min or 0, metric.unit, mode)
        high = format_value(metric.target_max or 0, metric.unit, mode)
        return f"{low} to {high}"
    if mode == "yes_no":
        return f"Target: {'Yes' if metric.target_boolean else 'No'}"
    return "N/A"
