"""역할 레포지토리 — 역할 CRUD, 중복 검사, 배정 쿼리.

Role Repository — CRUD, duplicate-check and assignment queries for roles.
Extends BaseRepository with Role-specific database operations.
"""

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.role import EmployeeRole, Role
from app.repositories.base import BaseRepository


class RoleRepository(BaseRepository[Role]):
    """역할 테이블에 대한 데이터베이스 쿼리를 담당하는 레포지토리.

    Repository handling database queries for the roles table.
    """

    def __init__(self) -> None:
        super().__init__(Role)

    async def list_ordered(self, db: AsyncSession) -> Sequence[Role]:
        """전체 역할을 표시 순서대로 조회합니다.

        Retrieve all roles ordered by display_order, then name.
        """
        query: Select = select(Role).order_by(Role.display_order, Role.name)
        result = await db.execute(query)
        return result.scalars().all()

    async def check_duplicate(
        self,
        db: AsyncSession,
        name: str,
        exclude_id: UUID | None = None,
    ) -> bool:
        """역할 이름 중복을 확인합니다 (대소문자 구분)."""
        query: Select = select(func.count()).select_from(Role).where(Role.name == name)
        if exclude_id is not None:
            query = query.where(Role.id != exclude_id)

        count: int = (await db.execute(query)).scalar() or 0
        return count > 0

    async def has_children(self, db: AsyncSession, role_id: UUID) -> bool:
        """이 역할에 책임을 지는 하위 역할이 있는지 확인합니다."""
        return await self.exists(db, {"accountable_to_role_id": role_id})


class EmployeeRoleRepository(BaseRepository[EmployeeRole]):
    """역할 배정 테이블 쿼리 레포지토리."""

    def __init__(self) -> None:
        super().__init__(EmployeeRole)

    async def list_all(
        self,
        db: AsyncSession,
        role_id: UUID | None = None,
    ) -> Sequence[EmployeeRole]:
        """역할 배정 목록 (프로필 포함) — role_id가 주어지면 해당 역할만."""
        query: Select = select(EmployeeRole).options(selectinload(EmployeeRole.profile))
        if role_id is not None:
            query = query.where(EmployeeRole.role_id == role_id)
        result = await db.execute(query.order_by(EmployeeRole.created_at))
        return result.scalars().all()

    async def get_assignment(
        self,
        db: AsyncSession,
        profile_id: UUID,
        role_id: UUID,
    ) -> EmployeeRole | None:
        result = await db.execute(
            select(EmployeeRole).where(
                EmployeeRole.profile_id == profile_id,
                EmployeeRole.role_id == role_id,
            )
        )
        return result.scalar_one_or_none()


# 싱글턴 인스턴스 — Singleton instances
role_repository: RoleRepository = RoleRepository()
employee_role_repository: EmployeeRoleRepository = EmployeeRoleRepository()
