"""사람 라우터 — 관리자, 부하 직원, 관리자 체인, 관리자 관계 확인.

People Router — reporting-line queries over the profile forest.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_current_user, get_store
from app.models.people import Profile
from app.repositories.record_store import ScorecardStore
from app.schemas.people import ManagerCheckResponse, PersonResponse
from app.services.hierarchy_service import hierarchy_service

router: APIRouter = APIRouter()


@router.get("/{user_id}/manager", response_model=PersonResponse | None)
async def get_manager(
    user_id: UUID,
    store: Annotated[ScorecardStore, Depends(get_store)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> PersonResponse | None:
    """직속 관리자를 조회합니다 (없으면 null)."""
    manager = await hierarchy_service.get_manager(store, user_id)
    return PersonResponse.model_validate(manager.model_dump()) if manager is not None else None


@router.get("/{user_id}/direct-reports", response_model=list[PersonResponse])
async def get_direct_reports(
    user_id: UUID,
    store: Annotated[ScorecardStore, Depends(get_store)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> list[PersonResponse]:
    """직속 부하 직원을 조회합니다 (활성 프로필, 이름순)."""
    reports = await hierarchy_service.get_direct_reports(store, user_id)
    return [PersonResponse.model_validate(person.model_dump()) for person in reports]


@router.get("/{user_id}/manager-chain", response_model=list[PersonResponse])
async def get_manager_chain(
    user_id: UUID,
    store: Annotated[ScorecardStore, Depends(get_store)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> list[PersonResponse]:
    """관리자 체인을 조회합니다 (직속 관리자부터 최상위 순)."""
    chain = await hierarchy_service.get_manager_chain(store, user_id)
    return [PersonResponse.model_validate(person.model_dump()) for person in chain]


@router.get("/{user_id}/reports", response_model=list[PersonResponse])
async def get_all_reports(
    user_id: UUID,
    store: Annotated[ScorecardStore, Depends(get_store)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> list[PersonResponse]:
    """모든 하위 직원을 재귀적으로 조회합니다."""
    reports = await hierarchy_service.get_all_reports_recursive(store, user_id)
    return [PersonResponse.model_validate(person.model_dump()) for person in reports]


@router.get("/{manager_id}/is-manager-of/{report_id}", response_model=ManagerCheckResponse)
async def check_manager(
    manager_id: UUID,
    report_id: UUID,
    store: Annotated[ScorecardStore, Depends(get_store)],
    current_user: Annotated[Profile, Depends(get_current_user)],
    source: Annotated[str, Query(pattern="^(profiles|roster)$")] = "profiles",
) -> ManagerCheckResponse:
    """관리자 관계를 확인합니다 (단일 단계).

    ``source=roster`` resolves the relation through the HR roster's
    manager e-mail instead of the profile's manager reference.
    """
    if source == "roster":
        is_manager = await hierarchy_service.is_user_manager_by_roster(store, manager_id, report_id)
    else:
        is_manager = await hierarchy_service.is_user_manager(store, manager_id, report_id)
    return ManagerCheckResponse(manager_id=manager_id, report_id=report_id, is_manager=is_manager)
