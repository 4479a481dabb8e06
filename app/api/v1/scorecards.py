"""스코어카드 라우터 — 조회, 생성/활성 상태, 공유 구성원.

Scorecard Router — listings, aggregate, summary, archived metrics,
eligible metric owners and copyable metrics, plus the scorecard write
surface (create, activation, shared members). Every write commits the
request session.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_store
from app.database import get_db
from app.models.people import Profile
from app.repositories.record_store import ScorecardStore
from app.schemas.people import EmployeeWithProfile
from app.schemas.scorecard import (
    MetricWithEntries,
    ScorecardAggregate,
    ScorecardCreate,
    ScorecardListings,
    ScorecardMemberCreate,
    ScorecardMemberRecord,
    ScorecardMemberUpdate,
    ScorecardRecord,
    ScorecardSummary,
    ScorecardUpdate,
)
from app.services.scorecard_service import scorecard_service

router: APIRouter = APIRouter()


@router.get("", response_model=ScorecardListings)
async def list_scorecards(
    store: Annotated[ScorecardStore, Depends(get_store)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> ScorecardListings:
    """스코어카드 목록을 "내 것"과 "회사"로 나눠 조회합니다.

    Active scorecards split into "yours" and, for admins, "company".
    """
    return await scorecard_service.list_scorecards(store, current_user)


@router.get("/{scorecard_id}", response_model=ScorecardAggregate)
async def get_scorecard(
    scorecard_id: UUID,
    store: Annotated[ScorecardStore, Depends(get_store)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> ScorecardAggregate:
    """스코어카드 집계를 조회합니다.

    Scorecard aggregate: metrics with entries and owners, archived count
    and the employee roster.
    """
    return await scorecard_service.get_aggregate(store, scorecard_id, current_user)


@router.get("/{scorecard_id}/summary", response_model=ScorecardSummary)
async def get_scorecard_summary(
    scorecard_id: UUID,
    store: Annotated[ScorecardStore, Depends(get_store)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> ScorecardSummary:
    """지표별 점수/상태/추세 스냅샷을 조회합니다."""
    return await scorecard_service.get_summary(store, scorecard_id, current_user)


@router.get("/{scorecard_id}/archived-metrics", response_model=list[MetricWithEntries])
async def list_archived_metrics(
    scorecard_id: UUID,
    store: Annotated[ScorecardStore, Depends(get_store)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> list[MetricWithEntries]:
    """보관된 지표를 최근 보관순으로 조회합니다."""
    return await scorecard_service.get_archived_metrics(store, scorecard_id, current_user)


@router.get("/{scorecard_id}/eligible-owners", response_model=list[EmployeeWithProfile])
async def list_eligible_owners(
    scorecard_id: UUID,
    store: Annotated[ScorecardStore, Depends(get_store)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> list[EmployeeWithProfile]:
    """지표 담당자로 지정 가능한 직원 목록."""
    return await scorecard_service.get_eligible_owners(store, scorecard_id, current_user)


@router.get("/{scorecard_id}/copyable-metrics", response_model=list[MetricWithEntries])
async def list_copyable_metrics(
    scorecard_id: UUID,
    store: Annotated[ScorecardStore, Depends(get_store)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> list[MetricWithEntries]:
    """같은 역할의 다른 스코어카드에서 복사할 수 있는 지표."""
    return await scorecard_service.get_copyable_metrics(store, scorecard_id, current_user)


@router.post("", response_model=ScorecardRecord, status_code=201)
async def create_scorecard(
    data: ScorecardCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> ScorecardRecord:
    """팀/역할 스코어카드를 생성합니다.

    Team scorecards are admin-only; role scorecards may be created by an
    admin, the employee or their direct manager.
    """
    result: ScorecardRecord = await scorecard_service.create_scorecard(db, data, current_user)
    await db.commit()
    return result


@router.patch("/{scorecard_id}", response_model=ScorecardRecord)
async def update_scorecard(
    scorecard_id: UUID,
    data: ScorecardUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> ScorecardRecord:
    """스코어카드 활성 상태를 변경합니다 (관리자 전용)."""
    result: ScorecardRecord = await scorecard_service.update_scorecard(db, scorecard_id, data, current_user)
    await db.commit()
    return result


@router.delete("/{scorecard_id}", status_code=204)
async def deactivate_scorecard(
    scorecard_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> None:
    """스코어카드를 비활성화합니다 — 행은 삭제하지 않음."""
    await scorecard_service.deactivate_scorecard(db, scorecard_id, current_user)
    await db.commit()


@router.get("/{scorecard_id}/members", response_model=list[ScorecardMemberRecord])
async def list_members(
    scorecard_id: UUID,
    store: Annotated[ScorecardStore, Depends(get_store)],
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> list[ScorecardMemberRecord]:
    """구성원 목록 — 팀 스코어카드는 팀 구성원을 반환."""
    return await scorecard_service.list_members(store, db, scorecard_id, current_user)


@router.post("/{scorecard_id}/members", response_model=ScorecardMemberRecord, status_code=201)
async def add_member(
    scorecard_id: UUID,
    data: ScorecardMemberCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> ScorecardMemberRecord:
    result: ScorecardMemberRecord = await scorecard_service.add_member(db, scorecard_id, data, current_user)
    await db.commit()
    return result


@router.patch("/{scorecard_id}/members/{member_id}", response_model=ScorecardMemberRecord)
async def update_member_role(
    scorecard_id: UUID,
    member_id: UUID,
    data: ScorecardMemberUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> ScorecardMemberRecord:
    """구성원 역할을 변경합니다."""
    result: ScorecardMemberRecord = await scorecard_service.update_member_role(
        db, scorecard_id, member_id, data, current_user
    )
    await db.commit()
    return result


@router.delete("/{scorecard_id}/members/{member_id}", status_code=204)
async def remove_member(
    scorecard_id: UUID,
    member_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> None:
    """구성원을 제거합니다 — 소유자와 지표 담당자는 제거할 수 없음."""
    await scorecard_service.remove_member(db, scorecard_id, member_id, current_user)
    await db.commit()
