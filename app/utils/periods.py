"""기간 유틸리티 — 주기(cadence)별 기간 시작일 계산 및 표시 포맷.

Period utilities — canonical period-start boundaries per cadence and their
display formats.

Cadences:
    - weekly: 가장 최근 월요일 (Most recent Monday)
    - monthly: 이번 달 1일 (First day of the current month)
    - quarterly: 이번 분기 첫날 (First day of Jan/Apr/Jul/Oct block)

날짜 포맷은 로케일과 무관하게 en-US 형식으로 고정합니다.
Formatting is fixed to en-US regardless of the process locale.
"""

from datetime import date, timedelta
from typing import Literal

Cadence = Literal["weekly", "monthly", "quarterly"]

# 스코어카드 시계열 x축 기간 수 — Number of periods on the scorecard x-axis
DEFAULT_PERIOD_COUNT: int = 8

_MONTH_NAMES: tuple[str, ...] = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

# 월 단위 이동 간격 — Months stepped back per period
_MONTH_STEPS: dict[str, int] = {"monthly": 1, "quarterly": 3}


def _short_month(d: date) -> str:
    return _MONTH_NAMES[d.month - 1][:3]


def _shift_months(d: date, months: int) -> date:
    """월초 날짜를 months만큼 이동합니다 (음수는 과거)."""
    index: int = d.year * 12 + (d.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def get_current_period_start(cadence: Cadence, today: date | None = None) -> date:
    """현재 기간의 시작일을 반환합니다.

    Return the start of the period containing ``today`` for the cadence.

    Args:
        cadence: 주기 (weekly/monthly/quarterly)
        today: 기준 날짜, 기본값은 로컬 오늘 (Reference date, defaults to local today)

    Returns:
        date: 기간 시작일 (Period start boundary)

    Raises:
        ValueError: 알 수 없는 주기 (Unknown cadence)
    """
    today = today or date.today()

    if cadence == "weekly":
        return today - timedelta(days=today.weekday())
    if cadence == "monthly":
        return today.replace(day=1)
    if cadence == "quarterly":
        quarter_start_month: int = (today.month - 1) // 3 * 3 + 1
        return date(today.year, quarter_start_month, 1)

    raise ValueError(f"Unknown cadence: {cadence}")


def get_last_n_periods(
    cadence: Cadence,
    count: int | None = None,
    today: date | None = None,
) -> list[date]:
    """현재 기간을 포함한 최근 N개 기간 시작일을 최신순으로 반환합니다.

    Return the most recent period starts (current included), newest first,
    walking back 7 days, 1 month or 3 months at a time. The result does not
    depend on which periods actually have entries.
    """
    period_count: int = DEFAULT_PERIOD_COUNT if count is None else count
    current: date = get_current_period_start(cadence, today)

    if cadence == "weekly":
        return [current - timedelta(weeks=i) for i in range(period_count)]

    step: int = _MONTH_STEPS[cadence]
    return [_shift_months(current, -i * step) for i in range(period_count)]


def to_iso_date(d: date) -> str:
    """저장용 ISO 날짜 문자열 (YYYY-MM-DD)."""
    return d.isoformat()


def parse_iso_date(value: str | date) -> date:
    """ISO 날짜 문자열을 date로 변환 — 시간대 변환 없이 날짜 부분만 사용."""
    if isinstance(value, date):
        return value
    return date.fromisoformat(value[:10])


def quarter_of(d: date) -> int:
    return (d.month - 1) // 3 + 1


def format_week_range(value: str | date) -> str:
    """주간 범위 표시 (e.g. "Sep 2 - Sep 8")."""
    start: date = parse_iso_date(value)
    end: date = start + timedelta(days=6)
    return f"{_short_month(start)} {start.day} - {_short_month(end)} {end.day}"


def format_month(value: str | date) -> str:
    """월 표시 (e.g. "January 2025")."""
    d: date = parse_iso_date(value)
    return f"{_MONTH_NAMES[d.month - 1]} {d.year}"


def format_quarter(value: str | date) -> str:
    """분기 표시 (e.g. "Q3 2025")."""
    d: date = parse_iso_date(value)
    return f"Q{quarter_of(d)} {d.year}"


def format_period(value: str | date, cadence: Cadence) -> str:
    """스코어카드 표의 기간 열 머리글 포맷.

    Column header format: weekly as a start-to-start+6 range, monthly as
    "Month Year", quarterly as "Qn Year".
    """
    if cadence == "weekly":
        return format_week_range(value)
    if cadence == "monthly":
        return format_month(value)
    if cadence == "quarterly":
        return format_quarter(value)
    raise ValueError(f"Unknown cadence: {cadence}")


def format_period_date(value: str | date, cadence: Cadence) -> str:
    """입력 화면용 기간 라벨 (e.g. "Week of Jan 20, 2025")."""
    if cadence == "weekly":
        d: date = parse_iso_date(value)
        return f"Week of {_short_month(d)} {d.day}, {d.year}"
    return format_period(value, cadence)
