"""스코어카드 서비스 — 로더 결과를 HTTP 예외로 변환하고 조회/편집 권한을 검사.

Scorecard service — the HTTP-facing layer over the loaders. Converts
``{data, error}`` loader results into exceptions and enforces view access.
Also owns the scorecard write surface: create, activation changes and
shared membership.
"""

import logging
from datetime import date, datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.people import Profile
from app.models.scorecard import Scorecard, ScorecardMember
from app.repositories.metric_repository import metric_repository
from app.repositories.people_repository import profile_repository, team_member_repository
from app.repositories.record_store import ScorecardStore
from app.repositories.role_repository import employee_role_repository
from app.repositories.scorecard_repository import scorecard_repository
from app.schemas.people import EmployeeWithProfile, ProfileSummary
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
from app.services.metric_summary_service import metric_summary_service
from app.services.scorecard_listing_service import scorecard_listing_service
from app.services.scorecard_loader import SCORECARD_NOT_FOUND, scorecard_loader
from app.utils.exceptions import BadRequestError, DataLoadError, DuplicateError, ForbiddenError, NotFoundError

logger = logging.getLogger(__name__)

# get_scorecard_aggregate 함수가 보고하는 권한 오류
PERMISSION_DENIED: str = "Permission denied"

# 편집 가능한 공유 구성원 역할 — Member roles allowed to edit
_EDITOR_ROLES: frozenset[str] = frozenset({"owner", "editor"})


class ScorecardService:
    """스코어카드 조회 및 쓰기 서비스."""

    def _raise_for_error(self, error: str) -> None:
        if error == SCORECARD_NOT_FOUND:
            raise NotFoundError(error)
        if error == PERMISSION_DENIED:
            raise ForbiddenError(error)
        raise DataLoadError(error)

    async def _check_view(self, store: ScorecardStore, scorecard: ScorecardRecord, user: Profile) -> None:
        allowed: bool = await scorecard_listing_service.can_view(
            store, scorecard, user.id, is_admin=user.is_system_admin
        )
        if not allowed:
            raise ForbiddenError("You do not have access to this scorecard")

    async def get_viewable_scorecard(
        self,
        store: ScorecardStore,
        scorecard_id: UUID,
        user: Profile,
    ) -> ScorecardRecord:
        """조회 가능한 활성 스코어카드를 반환합니다.

        Raises:
            NotFoundError: 스코어카드 없음 또는 비활성 (Missing or inactive)
            ForbiddenError: 조회 권한 없음 (Caller cannot view it)
        """
        result = await store.get_scorecard(scorecard_id)
        if not result.ok:
            logger.error("Error fetching scorecard %s: %s", scorecard_id, result.error)
            raise DataLoadError("Failed to load scorecard data")
        if result.data is None:
            raise NotFoundError(SCORECARD_NOT_FOUND)

        await self._check_view(store, result.data, user)
        return result.data

    async def list_scorecards(self, store: ScorecardStore, user: Profile) -> ScorecardListings:
        """내 스코어카드와 회사 스코어카드 목록."""
        listings = await scorecard_listing_service.load_scorecard_listings(
            store, user.id, is_admin=user.is_system_admin
        )
        if listings.error:
            raise DataLoadError(listings.error)
        return listings

    async def get_aggregate(self, store: ScorecardStore, scorecard_id: UUID, user: Profile) -> ScorecardAggregate:
        """스코어카드 집계를 로드합니다 (설정된 전략 사용).

        Load the aggregate with the configured strategy. Access is checked on
        the loaded scorecard for both strategies, so a transport fallback
        from the rpc path never skips it.
        """
        result = await scorecard_loader.load_scorecard_aggregate(store, scorecard_id, user_id=user.id)
        if result.error or result.data is None:
            self._raise_for_error(result.error or SCORECARD_NOT_FOUND)

        await self._check_view(store, result.data.scorecard, user)
        return result.data

    async def get_summary(
        self,
        store: ScorecardStore,
        scorecard_id: UUID,
        user: Profile,
        today: date | None = None,
    ) -> ScorecardSummary:
        """지표별 스냅샷을 포함한 스코어카드 요약."""
        aggregate = await self.get_aggregate(store, scorecard_id, user)
        return metric_summary_service.summarize_aggregate(aggregate, today)

    async def get_archived_metrics(
        self,
        store: ScorecardStore,
        scorecard_id: UUID,
        user: Profile,
    ) -> list[MetricWithEntries]:
        await self.get_viewable_scorecard(store, scorecard_id, user)
        return await scorecard_loader.load_archived_metrics(store, scorecard_id)

    async def get_eligible_owners(
        self,
        store: ScorecardStore,
        scorecard_id: UUID,
        user: Profile,
    ) -> list[EmployeeWithProfile]:
        scorecard = await self.get_viewable_scorecard(store, scorecard_id, user)
        return await scorecard_loader.load_eligible_owners(store, scorecard)

    async def get_copyable_metrics(
        self,
        store: ScorecardStore,
        scorecard_id: UUID,
        user: Profile,
    ) -> list[MetricWithEntries]:
        """같은 역할의 다른 스코어카드에서 복사 가능한 지표.

        Only role scorecards have copy sources; any other scorecard yields
        an empty list.
        """
        scorecard = await self.get_viewable_scorecard(store, scorecard_id, user)
        if scorecard.type != "role" or scorecard.role_id is None:
            return []

        current_result = await store.list_metrics([scorecard_id])
        if not current_result.ok:
            logger.error("Error loading current scorecard metrics: %s", current_result.error)
            raise DataLoadError("Failed to load scorecard data")

        return await scorecard_loader.load_copyable_metrics_for_role(
            store, scorecard.role_id, scorecard_id, current_result.data or []
        )


    # === 쓰기 (Writes) ===

    async def get_editable_scorecard(
        self,
        db: AsyncSession,
        scorecard_id: UUID,
        user: Profile,
    ) -> Scorecard:
        """편집 가능한 활성 스코어카드를 조회합니다.

        Admins and the owner may edit; shared members need an owner or
        editor membership.

        Raises:
            NotFoundError: 스코어카드 없음 (Scorecard missing or inactive)
            ForbiddenError: 편집 권한 없음 (Caller cannot edit it)
        """
        scorecard: Scorecard | None = await scorecard_repository.get_active(db, scorecard_id)
        if scorecard is None:
            raise NotFoundError(SCORECARD_NOT_FOUND)

        if user.is_system_admin or scorecard.owner_user_id == user.id:
            return scorecard

        member = await scorecard_repository.get_member(db, scorecard_id, user.id)
        if member is None or member.role not in _EDITOR_ROLES:
            raise ForbiddenError("You do not have permission to edit this scorecard")
        return scorecard

    async def _check_create_permission(self, db: AsyncSession, data: ScorecardCreate, user: Profile) -> None:
        if user.is_system_admin:
            return
        if data.type == "team":
            raise ForbiddenError("Only system administrators can create team scorecards")
        # 역할 스코어카드: 본인 또는 직속 관리자
        if data.owner_user_id == user.id:
            return
        owner: Profile | None = await profile_repository.get_by_id(db, data.owner_user_id)
        if owner is None or owner.manager_id != user.id:
            raise ForbiddenError("You can only create role scorecards for yourself or your direct reports")

    async def create_scorecard(self, db: AsyncSession, data: ScorecardCreate, user: Profile) -> ScorecardRecord:
        """새 스코어카드를 생성합니다.

        Create a team or role scorecard and add its owner as an ``owner``
        member.

        - team: 시스템 관리자만, 팀당 활성 스코어카드 하나
        - role: 관리자, 본인 또는 직속 관리자. 직원이 해당 역할에 배정되어 있어야 하며
          직원/역할 조합당 활성 스코어카드 하나

        Raises:
            ForbiddenError: 생성 권한 없음 (Caller cannot create it)
            NotFoundError: 소유자 프로필 없음 (Owner profile missing)
            DuplicateError: 이미 활성 스코어카드가 있음 (Active duplicate exists)
            BadRequestError: 역할 미배정 (Owner not assigned to the role)
        """
        await self._check_create_permission(db, data, user)

        if await profile_repository.get_by_id(db, data.owner_user_id) is None:
            raise NotFoundError("Owner profile not found")

        if data.type == "team":
            if await scorecard_repository.exists(
                db, {"type": "team", "team_id": data.team_id, "is_active": True}
            ):
                raise DuplicateError("This team already has a scorecard")
        else:
            if await scorecard_repository.exists(
                db, {"type": "role", "role_id": data.role_id, "owner_user_id": data.owner_user_id, "is_active": True}
            ):
                raise DuplicateError("This employee already has a scorecard for this role")
            if await employee_role_repository.get_assignment(db, data.owner_user_id, data.role_id) is None:
                raise BadRequestError("Employee must be assigned to the role before creating a role scorecard")

        scorecard: Scorecard = await scorecard_repository.create(db, {
            "name": data.name,
            "type": data.type,
            "owner_user_id": data.owner_user_id,
            "team_id": data.team_id if data.type == "team" else None,
            "role_id": data.role_id if data.type == "role" else None,
            "created_by": user.id,
        })
        await scorecard_repository.add_member(db, scorecard.id, data.owner_user_id, role="owner")
        logger.info("Scorecard %s (%s) created by %s", scorecard.id, data.type, user.id)
        return ScorecardRecord.model_validate(scorecard)

    async def update_scorecard(
        self,
        db: AsyncSession,
        scorecard_id: UUID,
        data: ScorecardUpdate,
        user: Profile,
    ) -> ScorecardRecord:
        """스코어카드 활성 상태를 변경합니다 (시스템 관리자 전용).

        Inactive scorecards are reachable here so they can be reactivated.
        """
        if not user.is_system_admin:
            raise ForbiddenError("Only system administrators can update scorecards")

        scorecard: Scorecard | None = await scorecard_repository.update(
            db, scorecard_id, {"is_active": data.is_active}
        )
        if scorecard is None:
            raise NotFoundError(SCORECARD_NOT_FOUND)
        return ScorecardRecord.model_validate(scorecard)

    async def deactivate_scorecard(self, db: AsyncSession, scorecard_id: UUID, user: Profile) -> None:
        await self.update_scorecard(db, scorecard_id, ScorecardUpdate(is_active=False), user)

    # === 구성원 (Members) ===

    async def _member_records(
        self,
        db: AsyncSession,
        scorecard_id: UUID,
        rows: list[tuple[UUID, UUID, str, datetime | None]],
        require_profile: bool,
    ) -> list[ScorecardMemberRecord]:
        profiles = {
            profile.id: profile
            for profile in await profile_repository.get_by_ids(db, {user_id for _, user_id, _, _ in rows})
        }
        records: list[ScorecardMemberRecord] = []
        for member_id, user_id, role, created_at in rows:
            profile = profiles.get(user_id)
            if profile is None and require_profile:
                continue
            records.append(ScorecardMemberRecord(
                id=member_id,
                scorecard_id=scorecard_id,
                user_id=user_id,
                role=role,
                created_at=created_at,
                profile=ProfileSummary.model_validate(profile) if profile is not None else None,
            ))
        return records

    async def list_members(
        self,
        store: ScorecardStore,
        db: AsyncSession,
        scorecard_id: UUID,
        user: Profile,
    ) -> list[ScorecardMemberRecord]:
        """스코어카드 구성원 목록 (가입순).

        Team scorecards list their team's members instead: the team owner
        reads as ``owner`` and every other team role as ``viewer``. Team
        members without a profile are left out.
        """
        scorecard = await self.get_viewable_scorecard(store, scorecard_id, user)

        if scorecard.type == "team" and scorecard.team_id is not None:
            team_rows = await team_member_repository.list_members(db, scorecard.team_id)
            rows = [
                (row.id, row.user_id, "owner" if row.role == "owner" else "viewer", row.created_at)
                for row in team_rows
            ]
            return await self._member_records(db, scorecard_id, rows, require_profile=True)

        members = await scorecard_repository.list_members(db, scorecard_id)
        rows = [(m.id, m.user_id, m.role, m.created_at) for m in members]
        return await self._member_records(db, scorecard_id, rows, require_profile=False)

    async def add_member(
        self,
        db: AsyncSession,
        scorecard_id: UUID,
        data: ScorecardMemberCreate,
        user: Profile,
    ) -> ScorecardMemberRecord:
        """구성원을 추가합니다.

        Raises:
            NotFoundError: 프로필 없음 (Profile missing)
            DuplicateError: 이미 구성원 ("User is already a member")
        """
        await self.get_editable_scorecard(db, scorecard_id, user)

        profile: Profile | None = await profile_repository.get_by_id(db, data.user_id)
        if profile is None:
            raise NotFoundError("Profile not found")
        if await scorecard_repository.get_member(db, scorecard_id, data.user_id) is not None:
            raise DuplicateError("User is already a member")

        member: ScorecardMember = await scorecard_repository.add_member(db, scorecard_id, data.user_id, role=data.role)
        record = ScorecardMemberRecord.model_validate(member)
        record.profile = ProfileSummary.model_validate(profile)
        return record

    async def _get_member(self, db: AsyncSession, scorecard_id: UUID, member_id: UUID) -> ScorecardMember:
        member: ScorecardMember | None = await scorecard_repository.get_member_by_id(db, scorecard_id, member_id)
        if member is None:
            raise NotFoundError("Member not found")
        return member

    async def update_member_role(
        self,
        db: AsyncSession,
        scorecard_id: UUID,
        member_id: UUID,
        data: ScorecardMemberUpdate,
        user: Profile,
    ) -> ScorecardMemberRecord:
        await self.get_editable_scorecard(db, scorecard_id, user)
        member = await self._get_member(db, scorecard_id, member_id)
        member.role = data.role
        await db.flush()
        return ScorecardMemberRecord.model_validate(member)

    async def remove_member(
        self,
        db: AsyncSession,
        scorecard_id: UUID,
        member_id: UUID,
        user: Profile,
    ) -> None:
        """구성원을 제거합니다.

        The owner membership cannot be removed, nor can a member who still
        owns active metrics on the scorecard.
        """
        await self.get_editable_scorecard(db, scorecard_id, user)
        member = await self._get_member(db, scorecard_id, member_id)
        if member.role == "owner":
            raise BadRequestError("Cannot remove the scorecard owner")

        owned: int = await metric_repository.count_owned(db, scorecard_id, member.user_id)
        if owned > 0:
            raise BadRequestError(f"Cannot remove member who owns {owned} metric{'s' if owned > 1 else ''}")

        await scorecard_repository.remove_member(db, member)


# 싱글턴 인스턴스 — Singleton instance
scorecard_service: ScorecardService = ScorecardService()
