"""지표 요약 서비스 — 집계의 각 지표에 점수/상태/추세 스냅샷 계산.

Metric summary service — derives a read-only snapshot per metric of an
aggregate: latest value, score, status, trend, distance to goal,
week-over-week change, average and one cell per canonical period.
"""

from datetime import date

from app.schemas.scorecard import (
    MetricEntryRecord,
    MetricSummary,
    MetricWithEntries,
    PeriodCell,
    ScorecardAggregate,
    ScorecardSummary,
)
from app.utils.periods import format_period, format_period_date, get_current_period_start, get_last_n_periods
from app.utils.scoring import (
    calculate_score,
    calculate_vs_goal,
    calculate_wow_change,
    format_goal,
    format_score,
    format_value,
    get_average,
    get_score_status,
    get_status_color,
    get_status_label,
    get_trend,
)


class MetricSummaryService:
    """지표 스냅샷 계산 서비스 (순수 계산, 조회 없음)."""

    def _period_cells(
        self,
        metric: MetricWithEntries,
        by_period: dict[date, MetricEntryRecord],
        today: date | None,
    ) -> list[PeriodCell]:
        cells: list[PeriodCell] = []
        for period_start in get_last_n_periods(metric.cadence, today=today):
            entry = by_period.get(period_start)
            cell = PeriodCell(period_start=period_start, label=format_period(period_start, metric.cadence))
            if entry is not None:
                score = calculate_score(entry.value, metric)
                cell.value = entry.value
                cell.display_value = format_value(entry.value, metric.unit, metric.scoring_mode)
                cell.score = score
                cell.status = get_score_status(score)
                cell.note = entry.note
            cells.append(cell)
        return cells

    def summarize_metric(self, metric: MetricWithEntries, today: date | None = None) -> MetricSummary:
        """지표 하나의 스냅샷을 계산합니다.

        Args:
            metric: 값이 최신순으로 정렬된 지표 (Metric with entries newest first)
            today: 기준 날짜, 테스트용 (Reference date for the period axis)
        """
        entries: list[MetricEntryRecord] = metric.entries
        by_period: dict[date, MetricEntryRecord] = {}
        for entry in entries:
            # 같은 기간에 여러 값이 있으면 첫 번째(최신 정렬 기준)를 사용
            by_period.setdefault(entry.period_start, entry)

        summary = MetricSummary(
            metric_id=metric.id,
            name=metric.name,
            cadence=metric.cadence,
            scoring_mode=metric.scoring_mode,
            goal=format_goal(metric),
            owner=metric.owner,
            periods=self._period_cells(metric, by_period, today),
        )
        if not entries:
            return summary

        latest: MetricEntryRecord = entries[0]
        previous: float | None = entries[1].value if len(entries) > 1 else None
        score: float = calculate_score(latest.value, metric)
        status = get_score_status(score)
        values: list[float] = [entry.value for entry in entries]

        summary.latest_value = latest.value
        summary.latest_display_value = format_value(latest.value, metric.unit, metric.scoring_mode)
        summary.latest_period_start = latest.period_start
        summary.score = score
        summary.score_display = format_score(score)
        summary.status = status
        summary.status_label = get_status_label(status)
        summary.status_color = get_status_color(status)
        summary.trend = get_trend(list(reversed(values)))
        summary.vs_goal = calculate_vs_goal(latest.value, metric)
        summary.wow_change = calculate_wow_change(latest.value, previous)
        summary.average = get_average(values)
        return summary

    def summarize_aggregate(self, aggregate: ScorecardAggregate, today: date | None = None) -> ScorecardSummary:
        """집계의 모든 활성 지표를 요약합니다."""
        labels: dict[str, str] = {
            cadence: format_period_date(get_current_period_start(cadence, today), cadence)
            for cadence in ("weekly", "monthly", "quarterly")
        }
        return ScorecardSummary(
            scorecard=aggregate.scorecard,
            current_period_labels=labels,
            metrics=[self.summarize_metric(metric, today) for metric in aggregate.metrics],
        )


# 싱글턴 인스턴스 — Singleton instance
metric_summary_service: MetricSummaryService = MetricSummaryService()
