"""스코어카드 레포지토리 — 스코어카드 및 공유 구성원 쿼리.

Scorecard Repository — queries for scorecards and scorecard members.
"""

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.scorecard import Scorecard, ScorecardMember
from app.repositories.base import BaseRepository


class ScorecardRepository(BaseRepository[Scorecard]):
    """스코어카드 테이블 쿼리 레포지토리."""

    def __init__(self) -> None:
        super().__init__(Scorecard)

    async def get_active(
        self,
        db: AsyncSession,
        scorecard_id: UUID,
    ) -> Scorecard | None:
        """활성 스코어카드를 조회합니다 — 비활성은 존재하지 않는 것으로 취급.

        Retrieve an active scorecard; inactive scorecards read as missing.
        """
        query: Select = select(Scorecard).where(
            Scorecard.id == scorecard_id,
            Scorecard.is_active.is_(True),
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def list_active(
        self,
        db: AsyncSession,
        role_id: UUID | None = None,
        exclude_id: UUID | None = None,
    ) -> Sequence[Scorecard]:
        """활성 스코어카드를 최신 생성순으로 조회합니다 (소유자 프로필 포함).

        List active scorecards, newest first, with the owner profile loaded.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            role_id: 역할 필터 (Only scorecards for this role)
            exclude_id: 제외할 스코어카드 ID (Scorecard to leave out)
        """
        query: Select = (
            select(Scorecard)
            .options(selectinload(Scorecard.owner))
            .where(Scorecard.is_active.is_(True))
            .order_by(Scorecard.created_at.desc())
        )
        if role_id is not None:
            query = query.where(Scorecard.role_id == role_id)
        if exclude_id is not None:
            query = query.where(Scorecard.id != exclude_id)

        result = await db.execute(query)
        return result.scalars().all()

    async def list_member_user_ids(
        self,
        db: AsyncSession,
        scorecard_id: UUID,
    ) -> list[UUID]:
        """스코어카드에 공유된 사용자 ID 목록."""
        result = await db.execute(
            select(ScorecardMember.user_id).where(ScorecardMember.scorecard_id == scorecard_id)
        )
        return list(result.scalars().all())

    async def list_scorecard_ids_for_member(
        self,
        db: AsyncSession,
        user_id: UUID,
    ) -> list[UUID]:
        """사용자가 공유 구성원으로 속한 스코어카드 ID 목록."""
        result = await db.execute(
            select(ScorecardMember.scorecard_id).where(ScorecardMember.user_id == user_id)
        )
        return list(result.scalars().all())

    async def get_member(
        self,
        db: AsyncSession,
        scorecard_id: UUID,
        user_id: UUID,
    ) -> ScorecardMember | None:
        result = await db.execute(
            select(ScorecardMember).where(
                ScorecardMember.scorecard_id == scorecard_id,
                ScorecardMember.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def add_member(
        self,
        db: AsyncSession,
        scorecard_id: UUID,
        user_id: UUID,
        role: str,
    ) -> ScorecardMember:
        """공유 구성원을 추가합니다 (Add a scorecard member with the given role)."""
        member = ScorecardMember(scorecard_id=scorecard_id, user_id=user_id, role=role)
        db.add(member)
        await db.flush()
        return member

    async def list_members(
        self,
        db: AsyncSession,
        scorecard_id: UUID,
    ) -> Sequence[ScorecardMember]:
        """공유 구성원 목록 (가입순)."""
        result = await db.execute(
            select(ScorecardMember)
            .where(ScorecardMember.scorecard_id == scorecard_id)
            .order_by(ScorecardMember.created_at)
        )
        return result.scalars().all()

    async def get_member_by_id(
        self,
        db: AsyncSession,
        scorecard_id: UUID,
        member_id: UUID,
    ) -> ScorecardMember | None:
        result = await db.execute(
            select(ScorecardMember).where(
                ScorecardMember.id == member_id,
                ScorecardMember.scorecard_id == scorecard_id,
            )
        )
        return result.scalar_one_or_none()

    async def remove_member(self, db: AsyncSession, member: ScorecardMember) -> None:
        await db.delete(member)
        await db.flush()


# 싱글턴 인스턴스 — Singleton instance
scorecard_repository: ScorecardRepository = ScorecardRepository()
