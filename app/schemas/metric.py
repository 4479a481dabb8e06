"""지표 및 지표 값 요청 Pydantic 스키마 정의.

Metric and metric-entry request schema definitions.

지표 생성/수정은 scoring_mode를 판별자로 하는 태그드 유니온입니다.
모드별 필수 목표 필드가 스키마에서 검증되며, 모드에 속하지 않는
목표 필드는 저장 시 NULL이 됩니다.
Metric create/update is a tagged union discriminated by ``scoring_mode``:
each variant requires exactly its own target fields, and ``to_columns()``
writes NULL for the target fields of other modes.
"""

from datetime import date
from typing import Annotated, Any, Literal, Union
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

Cadence = Literal["weekly", "monthly", "quarterly"]

# 모든 목표 컬럼 — All target columns
TARGET_FIELDS: tuple[str, ...] = ("target_value", "target_min", "target_max", "target_boolean")


class _MetricConfigBase(BaseModel):
    """모드와 무관한 공통 지표 필드.

    Attributes:
        name: 지표 이름 (Trimmed, at least 3 characters)
        description: 설명 (Optional description)
        cadence: 측정 주기 (weekly / monthly / quarterly)
        unit: 단위 (e.g. "$", "%", "calls")
        owner_user_id: 지표 담당자 프로필 ID (Metric owner)
    """

    name: str
    description: str | None = None
    cadence: Cadence = "weekly"
    unit: str | None = None
    owner_user_id: UUID | None = None

    @field_validator("name")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        value = value.strip()
        if len(value) < 3:
            raise ValueError("Metric name must be at least 3 characters")
        return value

    @field_validator("description", "unit")
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value.strip()

    def to_columns(self) -> dict[str, Any]:
        """저장용 컬럼 딕셔너리 — 다른 모드의 목표 필드는 None.

        Column values for persistence; target fields that do not belong to
        this mode are set to None.
        """
        data: dict[str, Any] = self.model_dump()
        for field in TARGET_FIELDS:
            data.setdefault(field, None)
        return data


class AtLeastMetric(_MetricConfigBase):
    """높을수록 좋은 지표 — target_value 필수."""

    scoring_mode: Literal["at_least"]
    target_value: float


class AtMostMetric(_MetricConfigBase):
    """낮을수록 좋은 지표 — target_value 필수."""

    scoring_mode: Literal["at_most"]
    target_value: float


class BetweenMetric(_MetricConfigBase):
    """범위 지표 — target_min < target_max 필수."""

    scoring_mode: Literal["between"]
    target_min: float
    target_max: float

    @model_validator(mode="after")
    def _check_range(self) -> "BetweenMetric":
        if self.target_min >= self.target_max:
            raise ValueError("Target min must be less than target max")
        return self


class YesNoMetric(_MetricConfigBase):
    """예/아니오 지표 — target_boolean 필수."""

    scoring_mode: Literal["yes_no"]
    target_boolean: bool


# 판별 유니온 — Discriminated union on scoring_mode
MetricConfig = Annotated[
    Union[AtLeastMetric, AtMostMetric, BetweenMetric, YesNoMetric],
    Field(discriminator="scoring_mode"),
]


class MetricArchive(BaseModel):
    """지표 보관 요청 (Archive request with an optional reason)."""

    reason: str | None = None


class MetricOrderItem(BaseModel):
    """표시 순서 변경 항목 (One row of a reorder batch)."""

    id: UUID
    display_order: int = Field(ge=0)


class MetricReorder(BaseModel):
    """지표 순서 일괄 변경 요청 — 한 트랜잭션으로 적용."""

    items: list[MetricOrderItem] = Field(min_length=1)


# === 지표 값 (Metric entry) 스키마 ===

class MetricEntryUpsert(BaseModel):
    """지표 값 입력/수정 요청.

    Entry upsert request. ``value`` is the raw user input: yes_no metrics
    accept true/1/yes and false/0/no, other modes a number.
    ``period_start`` defaults to the current period of the metric's cadence.
    """

    value: str | float | bool
    period_start: date | None = None
    note: str | None = None


class MetricEntryNote(BaseModel):
    """지표 값 메모 수정 요청."""

    period_start: date
    note: str | None = None


class CopyMetricsRequest(BaseModel):
    """다른 스코어카드의 지표 복사 요청 (Copy metrics by id into this scorecard)."""

    metric_ids: list[UUID] = Field(min_length=1)
