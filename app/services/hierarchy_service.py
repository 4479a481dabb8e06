"""보고 라인 서비스 — 프로필 관리자 포레스트 조회.

Reporting-line service — manager, direct reports, manager chain, recursive
reports and the manager relation test over the profile forest.

프로필은 요청마다 평면 목록으로 다시 조회해 Hierarchy 인덱스를 만듭니다.
조회 실패나 끊어진 참조는 오류가 아니라 빈 결과로 처리됩니다.
Profiles are fetched flat per request and indexed with ``Hierarchy``. A
failed fetch or a dangling reference degrades to an empty result.
"""

import asyncio
import logging
from uuid import UUID

from app.repositories.record_store import ScorecardStore
from app.schemas.people import EmployeeRecord, ProfileRecord
from app.utils.hierarchy import Hierarchy

logger = logging.getLogger(__name__)


def _email_key(email: str | None) -> str | None:
    if email is None or not email.strip():
        return None
    return email.strip().lower()


class HierarchyService:
    """프로필 보고 라인 조회 서비스."""

    async def _profile_hierarchy(self, store: ScorecardStore) -> Hierarchy[ProfileRecord]:
        result = await store.list_profiles()
        if not result.ok:
            logger.error("Error fetching profiles: %s", result.error)
        return Hierarchy(result.data or [], parent_field="manager_id")

    async def get_manager(self, store: ScorecardStore, user_id: UUID) -> ProfileRecord | None:
        """직속 관리자 — 없거나 참조가 끊어졌으면 None."""
        hierarchy = await self._profile_hierarchy(store)
        return hierarchy.parent(user_id)

    async def get_direct_reports(self, store: ScorecardStore, user_id: UUID) -> list[ProfileRecord]:
        """직속 부하 직원 — 활성 프로필만, 이름순."""
        hierarchy = await self._profile_hierarchy(store)
        return hierarchy.children(user_id)

    async def get_manager_chain(self, store: ScorecardStore, user_id: UUID) -> list[ProfileRecord]:
        """관리자 체인 (직속 관리자부터 최상위까지).

        Manager chain in root-ward order, excluding the user. Terminates on a
        corrupt cycle; each profile appears at most once.
        """
        hierarchy = await self._profile_hierarchy(store)
        return hierarchy.ancestors(user_id)

    async def get_all_reports_recursive(self, store: ScorecardStore, user_id: UUID) -> list[ProfileRecord]:
        """모든 하위 직원 (깊이 우선) — 순환이 있어도 각 프로필은 한 번만 포함."""
        hierarchy = await self._profile_hierarchy(store)
        return hierarchy.descendants(user_id)

    async def is_user_manager(self, store: ScorecardStore, manager_id: UUID, report_id: UUID) -> bool:
        """report의 직속 관리자가 manager인지 확인 (단일 단계, 비전이적)."""
        hierarchy = await self._profile_hierarchy(store)
        return hierarchy.is_parent(manager_id, report_id)

    async def is_user_manager_by_roster(
        self,
        store: ScorecardStore,
        manager_id: UUID,
        report_id: UUID,
    ) -> bool:
        """직원 명부의 관리자 이메일로 관계를 확인합니다.

        Resolve the relation through the HR roster: the report's roster row
        (matched by e-mail) must name the manager's profile e-mail as
        ``manager_email``. Both joins compare e-mails case-insensitively.
        """
        profiles_result, employees_result = await asyncio.gather(
            store.list_profiles(),
            store.list_employees(),
        )
        if not profiles_result.ok:
            logger.error("Error fetching profiles: %s", profiles_result.error)
            return False
        if not employees_result.ok:
            logger.error("Error fetching employees: %s", employees_result.error)
            return False

        profiles: dict[UUID, ProfileRecord] = {profile.id: profile for profile in profiles_result.data or []}
        manager = profiles.get(manager_id)
        report = profiles.get(report_id)
        if manager is None or report is None:
            return False

        manager_email = _email_key(manager.email)
        report_email = _email_key(report.email)
        if manager_email is None or report_email is None:
            return False

        employees: list[EmployeeRecord] = employees_result.data or []
        roster_row = next(
            (employee for employee in employees if _email_key(employee.company_email) == report_email),
            None,
        )
        if roster_row is None:
            return False
        return _email_key(roster_row.manager_email) == manager_email


# 싱글턴 인스턴스 — Singleton instance
hierarchy_service: HierarchyService = HierarchyService()
