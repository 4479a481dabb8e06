"""인메모리 레코드 저장소와 테스트 레코드 팩토리.

In-memory ``ScorecardStore`` with failure injection, plus factories for
the record schemas. Mirrors the filters and orderings of ``SqlRecordStore``.
"""

import uuid
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any
from uuid import UUID

from app.repositories.metric_repository import MetricOrder
from app.repositories.record_store import FetchResult, MetricOwnerRow, RoleAssignmentRow, ScorecardStore
from app.schemas.people import EmployeeRecord, ProfileRecord, ProfileSummary
from app.schemas.role import RoleRecord
from app.schemas.scorecard import MetricEntryRecord, MetricRecord, ScorecardRecord, ScorecardWithDetails

_BASE_TIME = datetime(2025, 1, 1, tzinfo=timezone.utc)
_counter = 0


def _next_time() -> datetime:
    # 생성 순서대로 증가하는 created_at
    global _counter
    _counter += 1
    return _BASE_TIME + timedelta(minutes=_counter)


def make_profile(full_name: str, email: str | None = None, **fields: Any) -> ProfileRecord:
    fields.setdefault("id", uuid.uuid4())
    return ProfileRecord(full_name=full_name, email=email, **fields)


def make_employee(full_name: str, company_email: str | None, **fields: Any) -> EmployeeRecord:
    fields.setdefault("id", f"emp-{uuid.uuid4().hex[:8]}")
    return EmployeeRecord(full_name=full_name, company_email=company_email, **fields)


def make_scorecard(owner_user_id: UUID, **fields: Any) -> ScorecardRecord:
    fields.setdefault("id", uuid.uuid4())
    fields.setdefault("created_at", _next_time())
    return ScorecardRecord(owner_user_id=owner_user_id, **fields)


def make_metric(scorecard_id: UUID, name: str, **fields: Any) -> MetricRecord:
    fields.setdefault("id", uuid.uuid4())
    fields.setdefault("created_at", _next_time())
    fields.setdefault("scoring_mode", "at_least")
    return MetricRecord(scorecard_id=scorecard_id, name=name, **fields)


def make_entry(metric_id: UUID, period_start: date, value: float, **fields: Any) -> MetricEntryRecord:
    fields.setdefault("id", uuid.uuid4())
    return MetricEntryRecord(metric_id=metric_id, period_start=period_start, value=value, **fields)


def make_role(name: str, accountable_to_role_id: UUID | None = None, **fields: Any) -> RoleRecord:
    fields.setdefault("id", uuid.uuid4())
    return RoleRecord(name=name, accountable_to_role_id=accountable_to_role_id, **fields)


@dataclass
class TeamMemberRow:
    team_id: UUID
    user_id: UUID
    role: str = "member"


@dataclass
class ScorecardMemberRow:
    scorecard_id: UUID
    user_id: UUID
    role: str = "viewer"


class InMemoryStore(ScorecardStore):
    """리스트 기반 레코드 저장소.

    ``fail`` holds method names that report an error instead of data;
    ``calls`` records every method invocation in order.
    """

    def __init__(self) -> None:
        self.profiles: list[ProfileRecord] = []
        self.employees: list[EmployeeRecord] = []
        self.scorecards: list[ScorecardRecord] = []
        self.scorecard_members: list[ScorecardMemberRow] = []
        self.team_members: list[TeamMemberRow] = []
        self.metrics: list[MetricRecord] = []
        self.entries: list[MetricEntryRecord] = []
        self.roles: list[RoleRecord] = []
        self.role_assignments: list[RoleAssignmentRow] = []
        self.rpc_document: dict[str, Any] | None = None
        self.fail: set[str] = set()
        self.calls: list[str] = []

    def _result(self, method: str, data: Any) -> FetchResult:
        self.calls.append(method)
        if method in self.fail:
            return FetchResult(error=f"{method} failed")
        return FetchResult(data=data)

    def _summary(self, profile_id: UUID | None) -> ProfileSummary | None:
        for profile in self.profiles:
            if profile.id == profile_id:
                return ProfileSummary(**profile.model_dump(include={"id", "full_name", "email", "avatar_url"}))
        return None

    async def get_scorecard(self, scorecard_id: UUID) -> FetchResult[ScorecardRecord]:
        found = next((sc for sc in self.scorecards if sc.id == scorecard_id and sc.is_active), None)
        return self._result("get_scorecard", found)

    async def list_scorecards(
        self,
        role_id: UUID | None = None,
        exclude_id: UUID | None = None,
    ) -> FetchResult[list[ScorecardWithDetails]]:
        rows = [
            ScorecardWithDetails(**sc.model_dump(), owner=self._summary(sc.owner_user_id))
            for sc in self.scorecards
            if sc.is_active
            and (role_id is None or sc.role_id == role_id)
            and (exclude_id is None or sc.id != exclude_id)
        ]
        rows.sort(key=lambda sc: sc.created_at, reverse=True)
        return self._result("list_scorecards", rows)

    async def list_metrics(
        self,
        scorecard_ids: Iterable[UUID],
        archived: bool = False,
        order_by: MetricOrder = "display_order",
    ) -> FetchResult[list[MetricRecord]]:
        ids = set(scorecard_ids)
        if archived:
            rows = [m for m in self.metrics if m.scorecard_id in ids and m.is_archived]
        else:
            rows = [m for m in self.metrics if m.scorecard_id in ids and m.is_active and not m.is_archived]

        if order_by == "display_order":
            rows.sort(key=lambda m: m.display_order)
        elif order_by == "archived_at":
            rows.sort(key=lambda m: m.archived_at or _BASE_TIME, reverse=True)
        else:
            rows.sort(key=lambda m: m.created_at or _BASE_TIME, reverse=True)
        return self._result("list_metrics", rows)

    async def count_archived_metrics(self, scorecard_id: UUID) -> FetchResult[int]:
        count = sum(1 for m in self.metrics if m.scorecard_id == scorecard_id and m.is_archived)
        return self._result("count_archived_metrics", count)

    async def list_metric_owner_rows(self) -> FetchResult[list[MetricOwnerRow]]:
        rows = [
            MetricOwnerRow(scorecard_id=m.scorecard_id, owner_user_id=m.owner_user_id)
            for m in self.metrics
            if m.is_active
        ]
        return self._result("list_metric_owner_rows", rows)

    async def list_entries(self, metric_ids: Iterable[UUID]) -> FetchResult[list[MetricEntryRecord]]:
        ids = set(metric_ids)
        rows = sorted((e for e in self.entries if e.metric_id in ids), key=lambda e: e.period_start, reverse=True)
        return self._result("list_entries", rows)

    async def get_profiles(self, profile_ids: Iterable[UUID]) -> FetchResult[list[ProfileSummary]]:
        ids = set(profile_ids)
        rows = [self._summary(p.id) for p in self.profiles if p.id in ids]
        return self._result("get_profiles", rows)

    async def list_profiles(self, active_only: bool = False) -> FetchResult[list[ProfileRecord]]:
        rows = [p for p in self.profiles if p.is_active or not active_only]
        return self._result("list_profiles", rows)

    async def list_employees(self) -> FetchResult[list[EmployeeRecord]]:
        rows = sorted(self.employees, key=lambda e: (e.full_name or "").lower())
        return self._result("list_employees", rows)

    async def list_team_member_ids(self, team_id: UUID) -> FetchResult[list[UUID]]:
        return self._result("list_team_member_ids", [m.user_id for m in self.team_members if m.team_id == team_id])

    async def list_user_team_ids(self, user_id: UUID) -> FetchResult[list[UUID]]:
        return self._result("list_user_team_ids", [m.team_id for m in self.team_members if m.user_id == user_id])

    async def list_managed_team_ids(self, manager_id: UUID) -> FetchResult[list[UUID]]:
        reports = {p.id for p in self.profiles if p.manager_id == manager_id}
        teams = [m.team_id for m in self.team_members if m.role == "owner" and m.user_id in reports]
        return self._result("list_managed_team_ids", list(dict.fromkeys(teams)))

    async def list_scorecard_member_ids(self, scorecard_id: UUID) -> FetchResult[list[UUID]]:
        rows = [m.user_id for m in self.scorecard_members if m.scorecard_id == scorecard_id]
        return self._result("list_scorecard_member_ids", rows)

    async def list_member_scorecard_ids(self, user_id: UUID) -> FetchResult[list[UUID]]:
        rows = [m.scorecard_id for m in self.scorecard_members if m.user_id == user_id]
        return self._result("list_member_scorecard_ids", rows)

    async def list_roles(self) -> FetchResult[list[RoleRecord]]:
        rows = sorted(self.roles, key=lambda r: (r.display_order, r.name))
        return self._result("list_roles", rows)

    async def list_role_assignments(self, role_id: UUID | None = None) -> FetchResult[list[RoleAssignmentRow]]:
        rows = [a for a in self.role_assignments if role_id is None or a.role_id == role_id]
        return self._result("list_role_assignments", rows)

    async def call_scorecard_aggregate(self, scorecard_id: UUID, user_id: UUID) -> FetchResult[dict[str, Any]]:
        return self._result("call_scorecard_aggregate", self.rpc_document)
