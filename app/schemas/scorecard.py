"""스코어카드 읽기 모델 Pydantic 스키마 정의.

Scorecard read-model Pydantic schema definitions.
Covers raw records, the joined scorecard aggregate, the "yours/company"
listing partition and the per-metric snapshot derived for display.

The aggregate accepts both snake_case and the camelCase keys produced by
the ``get_scorecard_aggregate`` database function (``archivedMetrics``,
``archivedCount``), so both construction strategies validate into the same
shape.
"""

from datetime import date, datetime
from typing import Literal
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from app.schemas.people import EmployeeWithProfile, ProfileSummary

ScorecardType = Literal["personal", "team", "role"]
Cadence = Literal["weekly", "monthly", "quarterly"]
ScoringMode = Literal["at_least", "at_most", "between", "yes_no"]
MemberRole = Literal["owner", "editor", "viewer"]


# === 레코드 (Records) ===

class ScorecardRecord(BaseModel):
    """스코어카드 레코드 (Scorecard row)."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str | None = None
    type: ScorecardType = "personal"
    owner_user_id: UUID
    team_id: UUID | None = None
    role_id: UUID | None = None
    is_active: bool = True
    created_by: UUID | None = None
    created_at: datetime | None = None


class ScorecardWithDetails(ScorecardRecord):
    """목록 표시용 스코어카드 — 소유자 정보와 활성 지표 수 포함.

    Listing row with the owner identity and the count of active metrics.
    """

    owner: ProfileSummary | None = None
    metric_count: int = 0


class MetricRecord(BaseModel):
    """지표 레코드 (Metric row, all target columns included)."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    scorecard_id: UUID
    name: str
    description: str | None = None
    cadence: Cadence = "weekly"
    scoring_mode: ScoringMode = "at_least"
    target_value: float | None = None
    target_min: float | None = None
    target_max: float | None = None
    target_boolean: bool | None = None
    unit: str | None = None
    owner_user_id: UUID | None = None
    display_order: int = 0
    is_active: bool = True
    is_archived: bool = False
    archived_at: datetime | None = None
    archived_by: UUID | None = None
    archive_reason: str | None = None
    created_at: datetime | None = None


class MetricEntryRecord(BaseModel):
    """지표 값 레코드 (One value for one metric period)."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    metric_id: UUID
    period_start: date
    value: float
    note: str | None = None
    created_by: UUID | None = None
    created_at: datetime | None = None


class MetricWithEntries(MetricRecord):
    """값 목록(최신순)과 소유자 정보가 결합된 지표.

    Metric joined with its entries (newest period first) and the resolved
    owner identity.
    """

    entries: list[MetricEntryRecord] = Field(default_factory=list)
    owner: ProfileSummary | None = None


# === 집계 (Aggregate) ===

class ScorecardAggregate(BaseModel):
    """스코어카드 상세 화면용 집계 — 요청마다 새로 생성.

    Request-scoped read model: scorecard, active metrics with entries,
    archived metrics (placeholder or hydrated), authoritative archived
    count and the employee roster.
    """

    model_config = ConfigDict(populate_by_name=True)

    scorecard: ScorecardRecord
    metrics: list[MetricWithEntries] = Field(default_factory=list)
    archived_metrics: list[MetricWithEntries] = Field(
        default_factory=list,
        validation_alias=AliasChoices("archived_metrics", "archivedMetrics"),
    )
    archived_count: int = Field(
        default=0,
        validation_alias=AliasChoices("archived_count", "archivedCount"),
    )
    employees: list[EmployeeWithProfile] = Field(default_factory=list)


class ScorecardLoaderResult(BaseModel):
    """집계 로더 결과 — 예외 대신 {data, error} 형태로 실패를 전달.

    Loader result; a missing scorecard is reported through ``error``
    rather than raised.
    """

    data: ScorecardAggregate | None = None
    error: str | None = None


class ScorecardListings(BaseModel):
    """스코어카드 목록 분할 결과 — "내 스코어카드" / "회사 스코어카드"."""

    your_scorecards: list[ScorecardWithDetails] = Field(default_factory=list)
    company_scorecards: list[ScorecardWithDetails] = Field(default_factory=list)
    error: str | None = None


# === 지표 스냅샷 (Metric snapshot) ===

class PeriodCell(BaseModel):
    """기간별 셀 — 값이 없으면 value/status는 None."""

    period_start: date
    label: str
    value: float | None = None
    display_value: str | None = None
    score: float | None = None
    status: str | None = None
    note: str | None = None


class MetricSummary(BaseModel):
    """지표 요약 — 최신 값, 점수, 상태, 추세, 목표 대비, 기간별 셀.

    Read-only per-metric snapshot derived from a ``MetricWithEntries``.
    """

    metric_id: UUID
    name: str
    cadence: Cadence
    scoring_mode: ScoringMode
    goal: str
    owner: ProfileSummary | None = None
    latest_value: float | None = None
    latest_display_value: str | None = None
    latest_period_start: date | None = None
    score: float | None = None
    score_display: str | None = None
    status: str | None = None
    status_label: str | None = None
    status_color: str | None = None
    trend: str = "flat"
    vs_goal: float | None = None
    wow_change: float | None = None
    average: float | None = None
    periods: list[PeriodCell] = Field(default_factory=list)


class ScorecardSummary(BaseModel):
    """스코어카드 요약 응답 (Scorecard plus per-metric snapshots)."""

    scorecard: ScorecardRecord
    current_period_labels: dict[str, str] = Field(default_factory=dict)
    metrics: list[MetricSummary] = Field(default_factory=list)


# === 쓰기 요청 (Writes) ===

class ScorecardCreate(BaseModel):
    """스코어카드 생성 요청 스키마.

    Team scorecards need ``team_id``; role scorecards need ``role_id``.
    The owner becomes an ``owner`` member of the new scorecard.

    Attributes:
        type: 스코어카드 유형 (team / role)
        owner_user_id: 소유자 프로필 ID (Owner profile)
        team_id: 팀 ID (Required for team scorecards)
        role_id: 역할 ID (Required for role scorecards)
        name: 표시 이름 (Optional display name)
    """

    type: Literal["team", "role"]
    owner_user_id: UUID
    team_id: UUID | None = None
    role_id: UUID | None = None
    name: str | None = None

    @field_validator("name")
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value.strip()

    @model_validator(mode="after")
    def _check_target(self) -> "ScorecardCreate":
        if self.type == "team" and self.team_id is None:
            raise ValueError("Team ID is required for team scorecards")
        if self.type == "role" and self.role_id is None:
            raise ValueError("Role ID is required for role scorecards")
        return self


class ScorecardUpdate(BaseModel):
    """스코어카드 활성 상태 변경 (Admin only)."""

    is_active: bool


class ScorecardMemberCreate(BaseModel):
    user_id: UUID
    role: MemberRole = "viewer"


class ScorecardMemberUpdate(BaseModel):
    role: MemberRole


class ScorecardMemberRecord(BaseModel):
    """스코어카드 구성원 — 프로필 정보 포함.

    Team scorecards list the team's members with owner mapped to owner and
    every other team role mapped to viewer.
    """

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    scorecard_id: UUID
    user_id: UUID
    role: MemberRole
    created_at: datetime | None = None
    profile: ProfileSummary | None = None
