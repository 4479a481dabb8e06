"""역할 라우터 — 역할 조회/CRUD/배정/정렬 및 조직도.

Role Router — role listing and detail, org chart, and admin-only writes
(CRUD, profile assignment, reordering).
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_store, require_admin
from app.database import get_db
from app.models.people import Profile
from app.repositories.record_store import ScorecardStore
from app.schemas.common import MessageResponse
from app.schemas.role import (
    FlowData,
    RoleAssignmentCreate,
    RoleAssignmentResponse,
    RoleCreate,
    RoleDetail,
    RoleRecord,
    RoleReorder,
    RoleUpdate,
    RoleWithDetails,
)
from app.services.role_service import role_service

router: APIRouter = APIRouter()


@router.get("", response_model=list[RoleWithDetails])
async def list_roles(
    store: Annotated[ScorecardStore, Depends(get_store)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> list[RoleWithDetails]:
    """역할 목록을 조회합니다 (상위 역할, 배정 인원 수 포함)."""
    return await role_service.list_roles(store)


@router.get("/org-chart", response_model=FlowData)
async def get_org_chart(
    store: Annotated[ScorecardStore, Depends(get_store)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> FlowData:
    """조직도 노드/간선과 좌표를 조회합니다."""
    return await role_service.get_org_chart(store)


@router.patch("/order", response_model=MessageResponse)
async def reorder_roles(
    data: RoleReorder,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(require_admin)],
) -> MessageResponse:
    """역할 표시 순서를 일괄 변경합니다."""
    await role_service.reorder_roles(db, data.items)
    await db.commit()
    return MessageResponse(message="Roles reordered")


@router.get("/{role_id}", response_model=RoleDetail)
async def get_role(
    role_id: UUID,
    store: Annotated[ScorecardStore, Depends(get_store)],
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> RoleDetail:
    """역할 상세를 조회합니다 (상위 체인, 하위 역할, 구성원)."""
    return await role_service.get_role_detail(store, role_id)


@router.post("", response_model=RoleRecord, status_code=201)
async def create_role(
    data: RoleCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(require_admin)],
) -> RoleRecord:
    """새 역할을 생성합니다."""
    result: RoleRecord = await role_service.create_role(db, data)
    await db.commit()
    return result


@router.put("/{role_id}", response_model=RoleRecord)
async def update_role(
    role_id: UUID,
    data: RoleUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(require_admin)],
) -> RoleRecord:
    """역할 정보를 수정합니다."""
    result: RoleRecord = await role_service.update_role(db, role_id, data)
    await db.commit()
    return result


@router.delete("/{role_id}", status_code=204)
async def delete_role(
    role_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(require_admin)],
) -> None:
    """역할을 삭제합니다."""
    await role_service.delete_role(db, role_id)
    await db.commit()


@router.post("/{role_id}/assignments", response_model=RoleAssignmentResponse, status_code=201)
async def assign_profile(
    role_id: UUID,
    data: RoleAssignmentCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(require_admin)],
) -> RoleAssignmentResponse:
    """프로필을 역할에 배정합니다."""
    result: RoleAssignmentResponse = await role_service.assign_profile(db, role_id, data.profile_id)
    await db.commit()
    return result


@router.delete("/{role_id}/assignments/{profile_id}", status_code=204)
async def unassign_profile(
    role_id: UUID,
    profile_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Profile, Depends(require_admin)],
) -> None:
    """역할 배정을 해제합니다."""
    await role_service.unassign_profile(db, role_id, profile_id)
    await db.commit()
