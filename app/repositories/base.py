"""기본 레포지토리 — 스코어카드 도메인 레포지토리의 공통 쿼리.

Base repository shared by the scorecard-domain repositories: primary-key
lookups (single and batched), create/update/delete on the caller's
session, existence checks and the append position for ordered rows
(metrics within a scorecard, roles in the org chart).

Usage:
    class RoleRepository(BaseRepository[Role]):
        def __init__(self) -> None:
            super().__init__(Role)
"""

from collections.abc import Iterable
from typing import Any, Generic, Sequence, TypeVar
from uuid import UUID

from sqlalchemy import ColumnElement, Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import Base

# SQLAlchemy 모델 타입 변수 (Model type bound to the declarative base)
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """UUID 기본 키를 가진 모델용 레포지토리.

    Repository for models keyed by a UUID ``id`` column. Methods never
    commit: writes are flushed on the session they are given and the
    router owns the commit.

    Attributes:
        model: SQLAlchemy 모델 클래스 (Mapped model class)
    """

    def __init__(self, model: type[ModelType]) -> None:
        self.model: type[ModelType] = model

    async def get_by_id(self, db: AsyncSession, record_id: UUID) -> ModelType | None:
        """기본 키로 한 행을 조회합니다 (없으면 None)."""
        result = await db.execute(select(self.model).where(self.model.id == record_id))
        return result.scalar_one_or_none()

    async def get_by_ids(self, db: AsyncSession, record_ids: Iterable[UUID]) -> Sequence[ModelType]:
        """여러 기본 키를 단일 IN 쿼리로 조회합니다.

        Batched lookup used by reorder and copy batches; duplicates in
        ``record_ids`` are collapsed and an empty batch skips the round trip.
        Missing ids are simply absent from the result.
        """
        ids: list[UUID] = list(dict.fromkeys(record_ids))
        if not ids:
            return []
        result = await db.execute(select(self.model).where(self.model.id.in_(ids)))
        return result.scalars().all()

    async def create(self, db: AsyncSession, values: dict[str, Any]) -> ModelType:
        """행을 추가하고 서버 기본값(id, created_at)을 다시 읽습니다.

        Args:
            db: 요청 세션 (Request session)
            values: 컬럼 값 딕셔너리 (Column values)

        Returns:
            ModelType: 플러시 후 새로 고친 행 (Flushed and refreshed row)
        """
        row: ModelType = self.model(**values)
        db.add(row)
        await db.flush()
        await db.refresh(row)
        return row

    async def update(
        self,
        db: AsyncSession,
        record_id: UUID,
        values: dict[str, Any],
    ) -> ModelType | None:
        """전달된 컬럼을 덮어씁니다 — None도 그대로 저장.

        Overwrite the given columns, None included, so a full metric
        configuration replaces the target columns of other scoring modes.
        Keys that are not mapped attributes are ignored.

        Returns:
            ModelType | None: 수정된 행, 없으면 None (Updated row or None)
        """
        row: ModelType | None = await self.get_by_id(db, record_id)
        if row is None:
            return None

        for column, value in values.items():
            if hasattr(row, column):
                setattr(row, column, value)

        await db.flush()
        await db.refresh(row)
        return row

    async def delete(self, db: AsyncSession, record_id: UUID) -> bool:
        """행을 삭제합니다 — 자식 행은 DB의 ON DELETE CASCADE로 정리."""
        row: ModelType | None = await self.get_by_id(db, record_id)
        if row is None:
            return False

        await db.delete(row)
        await db.flush()
        return True

    async def exists(self, db: AsyncSession, criteria: dict[str, Any]) -> bool:
        """컬럼 동등 조건에 맞는 행이 있는지 확인합니다."""
        query: Select = select(self.model.id)
        for column, value in criteria.items():
            query = query.where(getattr(self.model, column) == value)
        result = await db.execute(query.limit(1))
        return result.first() is not None

    async def next_display_order(self, db: AsyncSession, *criteria: ColumnElement[bool]) -> int:
        """목록 끝에 추가할 표시 순서 — 현재 최댓값 + 1, 행이 없으면 0.

        ``criteria`` narrows the ordered set (e.g. metrics of one scorecard).
        """
        query: Select = select(func.max(self.model.display_order))
        if criteria:
            query = query.where(*criteria)
        current: int | None = (await db.execute(query)).scalar()
        return 0 if current is None else current + 1
