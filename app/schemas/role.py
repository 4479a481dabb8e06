"""역할 및 조직도 관련 Pydantic 요청/응답 스키마 정의.

Role and org-chart Pydantic request/response schema definitions.
"""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.schemas.people import ProfileSummary


# === 역할 (Role) 스키마 ===

class RoleRecord(BaseModel):
    """역할 레코드 (Role row)."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str | None = None
    accountable_to_role_id: UUID | None = None
    display_order: int = 0
    created_at: datetime | None = None


class RoleCreate(BaseModel):
    """역할 생성 요청 스키마.

    Attributes:
        name: 역할 이름 (Role name, trimmed, unique)
        description: 설명 (Optional description)
        accountable_to_role_id: 상위 역할 ID (Parent role, optional)
    """

    name: str
    description: str | None = None
    accountable_to_role_id: UUID | None = None

    @field_validator("name")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Role name is required")
        return value

    @field_validator("description")
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value.strip()


class RoleUpdate(RoleCreate):
    """역할 수정 요청 스키마 — 전체 필드 교체."""


class RoleWithDetails(RoleRecord):
    """역할 목록 항목 — 상위 역할과 배정 인원 수 포함."""

    accountable_to_role: RoleRecord | None = None
    employee_count: int = 0


class RoleMember(BaseModel):
    """역할 배정 구성원 (Assigned profile with assignment id)."""

    assignment_id: UUID
    profile: ProfileSummary


class RoleDetail(RoleRecord):
    """역할 상세 — 상위 역할, 상위 체인, 하위 역할, 구성원."""

    accountable_to_role: RoleRecord | None = None
    chain: list[RoleRecord] = Field(default_factory=list)
    children: list[RoleRecord] = Field(default_factory=list)
    members: list[RoleMember] = Field(default_factory=list)


class RoleAssignmentCreate(BaseModel):
    """역할 배정 요청 (Assign a profile to the role)."""

    profile_id: UUID


class RoleAssignmentResponse(BaseModel):
    """역할 배정 응답."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    profile_id: UUID
    role_id: UUID
    created_at: datetime | None = None


class RoleOrderItem(BaseModel):
    """역할 순서 변경 항목."""

    id: UUID
    display_order: int = Field(ge=0)


class RoleReorder(BaseModel):
    """역할 순서 일괄 변경 요청 — 한 트랜잭션으로 적용."""

    items: list[RoleOrderItem] = Field(min_length=1)


# === 조직도 (Org chart) 스키마 ===

class FlowPosition(BaseModel):
    """노드 좌상단 좌표 (Top-left position)."""

    x: float
    y: float


class FlowNodeData(BaseModel):
    """조직도 노드 표시 데이터."""

    role: RoleWithDetails


class FlowNode(BaseModel):
    """조직도 노드 (One node per role)."""

    id: str
    type: Literal["orgChartNode"] = "orgChartNode"
    position: FlowPosition
    data: FlowNodeData


class FlowEdge(BaseModel):
    """조직도 간선 (Parent role → child role)."""

    id: str
    source: str
    target: str
    type: Literal["smoothstep"] = "smoothstep"


class FlowData(BaseModel):
    """조직도 그래프 (Nodes with resolved positions plus edges)."""

    nodes: list[FlowNode] = Field(default_factory=list)
    edges: list[FlowEdge] = Field(default_factory=list)
