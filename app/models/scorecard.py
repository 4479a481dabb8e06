"""스코어카드 관련 SQLAlchemy ORM 모델 정의.

Scorecard-related SQLAlchemy ORM model definitions.

Tables:
    - scorecards: 스코어카드 (Personal, team or role scorecards)
    - scorecard_members: 공유 구성원 (Users granted access to a scorecard)
    - metrics: 지표 (Tracked quantities with cadence and scoring mode)
    - metric_entries: 지표 기간별 값 (One value per metric per period start)
"""

import uuid
from datetime import date, datetime, timezone

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class Scorecard(Base):
    """스코어카드 모델.

    Scorecard model. ``type`` decides which optional reference is set:
    team scorecards carry ``team_id``, role scorecards carry ``role_id``.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        name: 이름 (Display name, optional)
        type: personal / team / role
        owner_user_id: 소유자 프로필 FK (Owner profile)
        team_id: 소속 팀 FK (Team, team scorecards only)
        role_id: 대상 역할 FK (Role, role scorecards only)
        is_active: 활성 상태 (Inactive scorecards are treated as not found)
    """

    __tablename__ = "scorecards"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    type: Mapped[str] = mapped_column(String(20), default="personal", server_default="personal", nullable=False)
    owner_user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("profiles.id"), nullable=False)
    team_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("teams.id", ondelete="SET NULL"), nullable=True)
    role_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("roles.id", ondelete="SET NULL"), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default="true", nullable=False)
    created_by: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("profiles.id"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    # 관계 — Relationships
    owner = relationship("Profile", foreign_keys=[owner_user_id])
    metrics = relationship("Metric", back_populates="scorecard", cascade="all, delete-orphan", passive_deletes=True)
    members = relationship("ScorecardMember", back_populates="scorecard", cascade="all, delete-orphan", passive_deletes=True)


class ScorecardMember(Base):
    """스코어카드 공유 구성원 — owner / editor / viewer."""

    __tablename__ = "scorecard_members"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    scorecard_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("scorecards.id", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    role: Mapped[str] = mapped_column(String(20), default="viewer", server_default="viewer", nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("scorecard_id", "user_id", name="uq_scorecard_member"),
    )

    scorecard = relationship("Scorecard", back_populates="members")


class Metric(Base):
    """지표 모델 — 주기와 스코어링 모드를 가진 추적 대상.

    Metric model. The target columns that are non-null are fully determined by
    ``scoring_mode``: at_least/at_most use ``target_value``, between uses
    ``target_min``/``target_max``, yes_no uses ``target_boolean``.
    Archiving keeps the entries.
    """

    __tablename__ = "metrics"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    scorecard_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("scorecards.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    # 주기 — weekly / monthly / quarterly
    cadence: Mapped[str] = mapped_column(String(20), default="weekly", server_default="weekly", nullable=False)
    # 스코어링 모드 — at_least / at_most / between / yes_no
    scoring_mode: Mapped[str] = mapped_column(String(20), default="at_least", server_default="at_least", nullable=False)
    target_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    target_min: Mapped[float | None] = mapped_column(Float, nullable=True)
    target_max: Mapped[float | None] = mapped_column(Float, nullable=True)
    target_boolean: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    unit: Mapped[str | None] = mapped_column(String(20), nullable=True)
    owner_user_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    # 표시 순서 — 스코어카드 내 정렬 키 (Ordering key within the scorecard)
    display_order: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default="true", nullable=False)
    # 보관 메타데이터 — Archival metadata
    is_archived: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false", nullable=False)
    archived_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    archived_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    archive_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    # 관계 — Relationships (영구 삭제 시 값도 함께 삭제, hard delete cascades entries)
    scorecard = relationship("Scorecard", back_populates="metrics")
    entries = relationship("MetricEntry", back_populates="metric", cascade="all, delete-orphan", passive_deletes=True)


class MetricEntry(Base):
    """지표 값 모델 — (metric_id, period_start)당 하나.

    Metric entry. ``period_start`` is the canonical period boundary for the
    metric's cadence; yes_no values are stored as 1/0.
    """

    __tablename__ = "metric_entries"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    metric_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("metrics.id", ondelete="CASCADE"), nullable=False)
    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    value: Mapped[float] = mapped_column(Float, nullable=False)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("metric_id", "period_start", name="uq_metric_entry_period"),
    )

    metric = relationship("Metric", back_populates="entries")
