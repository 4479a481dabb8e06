"""역할 서비스 — 역할 조회/CRUD/배정 및 조직도 변환.

Role Service — role listing and detail, CRUD with accountability checks,
profile assignment, reordering and the org-chart flow graph.
Reads go through the record store; writes go through the repositories
on the request session.
"""

import asyncio
import logging
from collections.abc import Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.role import EmployeeRole, Role
from app.repositories.record_store import RoleAssignmentRow, ScorecardStore
from app.repositories.role_repository import employee_role_repository, role_repository
from app.schemas.role import (
    FlowData,
    FlowEdge,
    FlowNode,
    FlowNodeData,
    FlowPosition,
    RoleAssignmentResponse,
    RoleCreate,
    RoleDetail,
    RoleMember,
    RoleOrderItem,
    RoleRecord,
    RoleUpdate,
    RoleWithDetails,
)
from app.utils.exceptions import BadRequestError, DataLoadError, DuplicateError, NotFoundError
from app.utils.hierarchy import Hierarchy
from app.utils.org_chart import layout_tree

logger = logging.getLogger(__name__)


def _by_display_order(role: RoleRecord) -> tuple[int, str]:
    return role.display_order, role.name.lower()


def roles_to_flow_data(roles: Sequence[RoleWithDetails]) -> FlowData:
    """역할 목록을 조직도 노드/간선으로 변환하고 좌표를 계산합니다.

    One node per role and one edge per role whose parent is present.
    Edge ids are ``"{parent}-{child}"``. Positions are top-left corners.
    """
    node_ids: list[str] = [str(role.id) for role in roles]
    known: set[str] = set(node_ids)

    edges: list[FlowEdge] = []
    for role in roles:
        if role.accountable_to_role_id is None:
            continue
        source = str(role.accountable_to_role_id)
        target = str(role.id)
        if source not in known:
            continue
        edges.append(FlowEdge(id=f"{source}-{target}", source=source, target=target))

    positions = layout_tree(node_ids, [(edge.source, edge.target) for edge in edges])
    nodes: list[FlowNode] = [
        FlowNode(
            id=str(role.id),
            position=FlowPosition(x=positions[str(role.id)][0], y=positions[str(role.id)][1]),
            data=FlowNodeData(role=role),
        )
        for role in roles
    ]
    return FlowData(nodes=nodes, edges=edges)


class RoleService:
    """역할 관련 비즈니스 로직을 처리하는 서비스.

    Service handling role business logic. Role names are unique, and a
    role can never be accountable to itself.
    """

    async def _load_roles(self, store: ScorecardStore) -> list[RoleRecord]:
        result = await store.list_roles()
        if not result.ok:
            logger.error("Error fetching roles: %s", result.error)
            raise DataLoadError("Failed to load roles")
        return result.data or []

    async def list_roles(self, store: ScorecardStore) -> list[RoleWithDetails]:
        """역할 목록 — 상위 역할과 배정 인원 수 포함, 표시 순서대로.

        List roles with their parent role and assignment count. A failed
        assignment fetch leaves every count at 0.

        Raises:
            DataLoadError: 역할 조회 실패 (Role fetch failed)
        """
        roles, assignments_result = await asyncio.gather(
            self._load_roles(store),
            store.list_role_assignments(),
        )
        if not assignments_result.ok:
            logger.error("Error fetching role assignments: %s", assignments_result.error)

        counts: dict[UUID, int] = {}
        for row in assignments_result.data or []:
            counts[row.role_id] = counts.get(row.role_id, 0) + 1

        by_id: dict[UUID, RoleRecord] = {role.id: role for role in roles}
        return [
            RoleWithDetails(
                **role.model_dump(),
                accountable_to_role=by_id.get(role.accountable_to_role_id) if role.accountable_to_role_id else None,
                employee_count=counts.get(role.id, 0),
            )
            for role in sorted(roles, key=_by_display_order)
        ]

    async def get_role_detail(self, store: ScorecardStore, role_id: UUID) -> RoleDetail:
        """역할 상세 — 상위 체인, 하위 역할, 배정 구성원.

        Raises:
            NotFoundError: 역할 없음 (Role not found)
        """
        roles, assignments_result = await asyncio.gather(
            self._load_roles(store),
            store.list_role_assignments(role_id),
        )
        hierarchy: Hierarchy[RoleRecord] = Hierarchy(roles, parent_field="accountable_to_role_id")
        role = hierarchy.get(role_id)
        if role is None:
            raise NotFoundError("Role not found")

        if not assignments_result.ok:
            logger.error("Error fetching members of role %s: %s", role_id, assignments_result.error)
        rows: list[RoleAssignmentRow] = assignments_result.data or []
        members: list[RoleMember] = [
            RoleMember(assignment_id=row.id, profile=row.profile) for row in rows if row.profile is not None
        ]
        members.sort(key=lambda member: (member.profile.full_name or "").lower())

        return RoleDetail(
            **role.model_dump(),
            accountable_to_role=hierarchy.parent(role_id),
            chain=hierarchy.ancestors(role_id),
            children=hierarchy.children(role_id),
            members=members,
        )

    async def get_org_chart(self, store: ScorecardStore) -> FlowData:
        """조직도 그래프를 생성합니다."""
        return roles_to_flow_data(await self.list_roles(store))

    async def _validate_parent(
        self,
        db: AsyncSession,
        parent_id: UUID | None,
        role_id: UUID | None = None,
    ) -> None:
        if parent_id is None:
            return
        if role_id is not None and parent_id == role_id:
            raise BadRequestError("A role cannot be accountable to itself")
        if await role_repository.get_by_id(db, parent_id) is None:
            raise BadRequestError("Accountable-to role does not exist")

    async def create_role(self, db: AsyncSession, data: RoleCreate) -> RoleRecord:
        """새 역할을 표시 순서 끝에 생성합니다.

        Raises:
            DuplicateError: 같은 이름의 역할이 이미 존재 (Duplicate role name)
            BadRequestError: 존재하지 않는 상위 역할 (Unknown parent role)
        """
        if await role_repository.check_duplicate(db, data.name):
            raise DuplicateError("A role with this name already exists")
        await self._validate_parent(db, data.accountable_to_role_id)

        role: Role = await role_repository.create(
            db,
            {
                "name": data.name,
                "description": data.description,
                "accountable_to_role_id": data.accountable_to_role_id,
                "display_order": await role_repository.next_display_order(db),
            },
        )
        logger.info("Role %s created", role.id)
        return RoleRecord.model_validate(role)

    async def update_role(self, db: AsyncSession, role_id: UUID, data: RoleUpdate) -> RoleRecord:
        """역할 정보를 수정합니다.

        Raises:
            NotFoundError: 역할 없음 (Role not found)
            BadRequestError: 자기 자신에게 책임 지정 (Self-accountability)
            DuplicateError: 같은 이름의 다른 역할 존재 (Duplicate role name)
        """
        existing: Role | None = await role_repository.get_by_id(db, role_id)
        if existing is None:
            raise NotFoundError("Role not found")

        await self._validate_parent(db, data.accountable_to_role_id, role_id)
        if await role_repository.check_duplicate(db, data.name, exclude_id=role_id):
            raise DuplicateError("A role with this name already exists")

        role: Role | None = await role_repository.update(db, role_id, data.model_dump())
        if role is None:
            raise NotFoundError("Role not found")
        return RoleRecord.model_validate(role)

    async def delete_role(self, db: AsyncSession, role_id: UUID) -> None:
        """역할을 삭제합니다 — 하위 역할이 있으면 거부.

        Raises:
            NotFoundError: 역할 없음 (Role not found)
            BadRequestError: 이 역할에 책임을 지는 역할 존재 (Role has child roles)
        """
        if await role_repository.get_by_id(db, role_id) is None:
            raise NotFoundError("Role not found")
        if await role_repository.has_children(db, role_id):
            raise BadRequestError("Cannot delete role with other roles accountable to it")

        deleted: bool = await role_repository.delete(db, role_id)
        if not deleted:
            raise NotFoundError("Role not found")

    async def assign_profile(self, db: AsyncSession, role_id: UUID, profile_id: UUID) -> RoleAssignmentResponse:
        """프로필을 역할에 배정합니다.

        Raises:
            NotFoundError: 역할 없음 (Role not found)
            DuplicateError: 이미 배정됨 (Already assigned)
        """
        if await role_repository.get_by_id(db, role_id) is None:
            raise NotFoundError("Role not found")
        if await employee_role_repository.get_assignment(db, profile_id, role_id) is not None:
            raise DuplicateError("User is already assigned to this role")

        assignment: EmployeeRole = await employee_role_repository.create(
            db, {"profile_id": profile_id, "role_id": role_id}
        )
        return RoleAssignmentResponse.model_validate(assignment)

    async def unassign_profile(self, db: AsyncSession, role_id: UUID, profile_id: UUID) -> None:
        """역할 배정을 해제합니다."""
        assignment = await employee_role_repository.get_assignment(db, profile_id, role_id)
        if assignment is None:
            raise NotFoundError("Role assignment not found")
        await db.delete(assignment)
        await db.flush()

    async def reorder_roles(self, db: AsyncSession, items: list[RoleOrderItem]) -> None:
        """표시 순서를 일괄 변경합니다 — 없는 역할이 있으면 전체 거부."""
        ids: list[UUID] = [item.id for item in items]
        roles = {role.id: role for role in await role_repository.get_by_ids(db, ids)}
        missing = [str(role_id) for role_id in ids if role_id not in roles]
        if missing:
            raise BadRequestError(f"Unknown roles in reorder batch: {', '.join(missing)}")

        for item in items:
            roles[item.id].display_order = item.display_order
        await db.flush()


# 싱글턴 인스턴스 — Singleton instance
role_service: RoleService = RoleService()
