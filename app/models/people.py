"""사람 관련 SQLAlchemy ORM 모델 정의.

People-related SQLAlchemy ORM model definitions.
Profiles are the application's identities; employees are an externally
synced roster joined to profiles by e-mail address.

Tables:
    - profiles: 사용자 프로필 (Application identities with a manager reference)
    - employees: 외부 인사 명부 (External HR roster, synced, joined by e-mail)
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class Profile(Base):
    """프로필 모델 — 시스템 사용자 식별 정보.

    Profile model — identity of a system user.
    ``manager_id`` forms the reporting forest; it is nullable and may
    point at a missing or cyclic record, which read-side traversal tolerates.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier, issued by the auth service)
        email: 이메일 (Email address, join key to the employee roster)
        full_name: 실명 (Display name)
        avatar_url: 아바타 이미지 URL (Avatar image URL)
        manager_id: 직속 관리자 FK (Direct manager, self-reference)
        is_active: 활성 상태 (Active status)
        is_system_admin: 시스템 관리자 여부 (System administrator flag)
    """

    __tablename__ = "profiles"

    # 프로필 고유 식별자 — Profile unique identifier
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 이메일 — Email address (employees.company_email과 대소문자 무시 매칭)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    # 실명 — Full display name
    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    # 아바타 — Avatar URL
    avatar_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    # 직속 관리자 — Direct manager (관리자 삭제 시 NULL, set NULL on delete)
    manager_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    # 활성 상태 — Whether the profile is active
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default="true", nullable=False)
    # 시스템 관리자 — Full visibility over all scorecards and role administration
    is_system_admin: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false", nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    # 관계 — Relationships
    manager = relationship("Profile", remote_side=[id], foreign_keys=[manager_id])


class Employee(Base):
    """직원 명부 모델 — 외부 인사 시스템에서 동기화된 레코드.

    Employee roster model — records synced from the external HR system.
    Not linked by foreign key: an employee matches a profile when
    ``company_email`` equals ``profiles.email`` case-insensitively, and
    ``manager_email`` is the denormalized manager reference.
    """

    __tablename__ = "employees"

    # 외부 시스템 ID — External system identifier
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    company_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    department: Mapped[str | None] = mapped_column(String(255), nullable=True)
    position: Mapped[str | None] = mapped_column(String(255), nullable=True)
    # 관리자 이름/이메일 — Denormalized manager name and e-mail
    manager: Mapped[str | None] = mapped_column(String(255), nullable=True)
    manager_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    status: Mapped[str | None] = mapped_column(String(50), nullable=True)
    synced_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
