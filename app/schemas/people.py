"""사람(프로필, 직원 명부) 관련 Pydantic 스키마 정의.

Profile and employee-roster Pydantic schema definitions.
Records are built from ORM rows (``from_attributes``) or from the JSON
document returned by the aggregate database function.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class ProfileSummary(BaseModel):
    """프로필 식별 정보 — 이름/이메일/아바타만 포함.

    Person-identity lookup shape: ``{id, full_name, email, avatar_url}``.
    Used as the resolved metric owner and scorecard owner.
    """

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    full_name: str | None = None
    email: str | None = None
    avatar_url: str | None = None


class ProfileRecord(ProfileSummary):
    """프로필 전체 레코드 — 계층 탐색에 필요한 관리자 참조 포함.

    Full profile record including the manager reference used by
    hierarchy traversal.
    """

    manager_id: UUID | None = None
    is_active: bool = True
    is_system_admin: bool = False


class EmployeeRecord(BaseModel):
    """직원 명부 레코드 (Synced HR roster row)."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    company_email: str | None = None
    full_name: str | None = None
    department: str | None = None
    position: str | None = None
    manager: str | None = None  # 관리자 이름 (Denormalized manager name)
    manager_email: str | None = None  # 관리자 이메일 (Denormalized manager e-mail)
    status: str | None = None
    synced_at: datetime | None = None


class EmployeeWithProfile(EmployeeRecord):
    """프로필과 이메일로 매칭된 직원 레코드.

    Roster row merged with the profile whose e-mail matches
    ``company_email`` case-insensitively.

    Attributes:
        profile_id: 매칭된 프로필 ID (Matched profile id)
        profile: 매칭된 프로필 식별 정보 (Matched profile identity)
    """

    profile_id: UUID
    profile: ProfileSummary


class PersonResponse(ProfileSummary):
    """사람 조회 응답 — 관리자/부하 직원 조회 API에서 사용."""

    manager_id: UUID | None = None
    is_active: bool = True


class ManagerCheckResponse(BaseModel):
    """관리자 관계 확인 응답 (Single-hop manager relation check)."""

    manager_id: UUID
    report_id: UUID
    is_manager: bool
