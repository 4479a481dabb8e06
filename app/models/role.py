"""역할 관련 SQLAlchemy ORM 모델 정의.

Role-related SQLAlchemy ORM model definitions.
Roles form an accountability forest that is independent of the
reporting (manager) forest on profiles.

Tables:
    - roles: 조직 내 직무 역할 (Organizational positions)
    - employee_roles: 프로필-역할 배정 (Profile to role assignments)
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class Role(Base):
    """역할 모델 — 책임 관계 포레스트의 노드.

    Role model. ``accountable_to_role_id`` is the parent reference. A role
    can never be saved as accountable to itself, but longer cycles can still
    appear through concurrent writes.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        name: 역할 이름 (Role name, unique)
        description: 설명 (Optional description)
        accountable_to_role_id: 상위 역할 FK (Parent role, self-reference)
        display_order: 표시 순서 (Ordering key for lists)
    """

    __tablename__ = "roles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 역할 이름 — Role display name (전역 고유, globally unique)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    # 상위 역할 — Parent role (상위 역할 삭제 시 NULL, set NULL on delete)
    accountable_to_role_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("roles.id", ondelete="SET NULL"), nullable=True)
    display_order: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    # 관계 — Relationships (역할 삭제 시 배정도 삭제, assignments cascade)
    assignments = relationship("EmployeeRole", back_populates="role", cascade="all, delete-orphan", passive_deletes=True)


class EmployeeRole(Base):
    """프로필-역할 배정 — 한 프로필은 같은 역할에 한 번만 배정."""

    __tablename__ = "employee_roles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    profile_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    role_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("roles.id", ondelete="CASCADE"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("profile_id", "role_id", name="uq_employee_role"),
    )

    role = relationship("Role", back_populates="assignments")
    profile = relationship("Profile")
