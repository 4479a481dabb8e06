"""사람 레포지토리 — 프로필, 직원 명부, 팀 구성원 쿼리.

People Repository — queries for profiles, the employee roster and
team memberships.
"""

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.people import Employee, Profile
from app.models.team import TeamMember
from app.repositories.base import BaseRepository


class ProfileRepository(BaseRepository[Profile]):
    """프로필 테이블 쿼리 레포지토리."""

    def __init__(self) -> None:
        super().__init__(Profile)

    async def list_all(self, db: AsyncSession, active_only: bool = False) -> Sequence[Profile]:
        """전체 프로필을 이름순으로 조회합니다."""
        query: Select = select(Profile).order_by(Profile.full_name)
        if active_only:
            query = query.where(Profile.is_active.is_(True))
        result = await db.execute(query)
        return result.scalars().all()


class EmployeeRepository(BaseRepository[Employee]):
    """직원 명부 테이블 쿼리 레포지토리."""

    def __init__(self) -> None:
        super().__init__(Employee)

    async def list_all(self, db: AsyncSession) -> Sequence[Employee]:
        """직원 명부 전체를 이름순으로 조회합니다."""
        result = await db.execute(select(Employee).order_by(Employee.full_name))
        return result.scalars().all()


class TeamMemberRepository(BaseRepository[TeamMember]):
    """팀 구성원 테이블 쿼리 레포지토리."""

    def __init__(self) -> None:
        super().__init__(TeamMember)

    async def list_user_ids(self, db: AsyncSession, team_id: UUID) -> list[UUID]:
        """팀 구성원 사용자 ID 목록."""
        result = await db.execute(select(TeamMember.user_id).where(TeamMember.team_id == team_id))
        return list(result.scalars().all())

    async def list_members(self, db: AsyncSession, team_id: UUID) -> Sequence[TeamMember]:
        """팀 구성원 행 목록 (가입순)."""
        result = await db.execute(
            select(TeamMember).where(TeamMember.team_id == team_id).order_by(TeamMember.created_at)
        )
        return result.scalars().all()

    async def list_team_ids(self, db: AsyncSession, user_id: UUID) -> list[UUID]:
        """사용자가 속한 팀 ID 목록 (역할 무관)."""
        result = await db.execute(select(TeamMember.team_id).where(TeamMember.user_id == user_id))
        return list(result.scalars().all())

    async def list_team_ids_managed_by(self, db: AsyncSession, manager_id: UUID) -> list[UUID]:
        """팀 소유자의 직속 관리자가 manager_id인 팀 ID 목록.

        Teams whose owner member reports directly to ``manager_id``.
        """
        query: Select = (
            select(TeamMember.team_id)
            .join(Profile, Profile.id == TeamMember.user_id)
            .where(TeamMember.role == "owner", Profile.manager_id == manager_id)
        )
        result = await db.execute(query)
        return list(dict.fromkeys(result.scalars().all()))


# 싱글턴 인스턴스 — Singleton instances
profile_repository: ProfileRepository = ProfileRepository()
employee_repository: EmployeeRepository = EmployeeRepository()
team_member_repository: TeamMemberRepository = TeamMemberRepository()
