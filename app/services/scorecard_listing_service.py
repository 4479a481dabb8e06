"""스코어카드 목록 서비스 — "내 스코어카드"/"회사 스코어카드" 분할 및 조회 권한.

Scorecard listing service — partitions active scorecards into "yours" and
"company" and answers whether a user may view one scorecard.

"내 스코어카드" 판정은 관계 술어(predicate)들의 OR입니다. 기본 집합은
DEFAULT_LISTING_RELATIONS이며 호출자가 더 좁은 집합을 넘길 수 있습니다.
A scorecard is "yours" when any predicate in the relation set holds.
``DEFAULT_LISTING_RELATIONS`` is the documented policy; callers may pass a
narrower tuple.
"""

import asyncio
import logging
from collections.abc import Callable, Sequence
from uuid import UUID

from pydantic import BaseModel, Field

from app.repositories.record_store import ScorecardStore
from app.schemas.people import ProfileRecord
from app.schemas.scorecard import ScorecardListings, ScorecardRecord, ScorecardWithDetails

logger = logging.getLogger(__name__)


class ListingContext(BaseModel):
    """요청 사용자와 스코어카드 사이의 관계 데이터 (요청 범위).

    Per-request facts about the user used by the relation predicates.
    """

    user_id: UUID
    member_scorecard_ids: set[UUID] = Field(default_factory=set)
    metric_owner_scorecard_ids: set[UUID] = Field(default_factory=set)
    team_ids: set[UUID] = Field(default_factory=set)
    managed_team_ids: set[UUID] = Field(default_factory=set)
    report_ids: set[UUID] = Field(default_factory=set)


ListingRelation = Callable[[ScorecardRecord, ListingContext], bool]


def owns_scorecard(scorecard: ScorecardRecord, ctx: ListingContext) -> bool:
    return scorecard.owner_user_id == ctx.user_id


def owns_metric(scorecard: ScorecardRecord, ctx: ListingContext) -> bool:
    return scorecard.id in ctx.metric_owner_scorecard_ids


def is_scorecard_member(scorecard: ScorecardRecord, ctx: ListingContext) -> bool:
    return scorecard.id in ctx.member_scorecard_ids


def is_team_member(scorecard: ScorecardRecord, ctx: ListingContext) -> bool:
    return scorecard.type == "team" and scorecard.team_id is not None and scorecard.team_id in ctx.team_ids


def manages_team_owner(scorecard: ScorecardRecord, ctx: ListingContext) -> bool:
    """팀 소유자의 직속 관리자 (Direct manager of the owning team's owner)."""
    return scorecard.type == "team" and scorecard.team_id is not None and scorecard.team_id in ctx.managed_team_ids


def manages_role_owner(scorecard: ScorecardRecord, ctx: ListingContext) -> bool:
    """역할 스코어카드 소유자의 직속 관리자 — 조회 권한에만 사용."""
    return scorecard.type == "role" and scorecard.owner_user_id in ctx.report_ids


DEFAULT_LISTING_RELATIONS: tuple[ListingRelation, ...] = (
    owns_scorecard,
    owns_metric,
    is_scorecard_member,
    is_team_member,
    manages_team_owner,
)

# 조회 권한 — "내 스코어카드" 관계 + 역할 스코어카드 소유자의 관리자
VIEW_RELATIONS: tuple[ListingRelation, ...] = DEFAULT_LISTING_RELATIONS + (manages_role_owner,)


def is_yours(
    scorecard: ScorecardRecord,
    ctx: ListingContext,
    relations: Sequence[ListingRelation] = DEFAULT_LISTING_RELATIONS,
) -> bool:
    return any(relation(scorecard, ctx) for relation in relations)


class ScorecardListingService:
    """스코어카드 목록 분할 및 조회 권한 서비스."""

    async def _build_context(
        self,
        store: ScorecardStore,
        user_id: UUID,
        include_reports: bool = False,
    ) -> tuple[ListingContext, dict[UUID, int]]:
        """관계 데이터를 병렬로 조회합니다 — 실패한 조회는 빈 집합으로 처리.

        Fetch relation facts concurrently. Returns the context plus the
        active-metric count per scorecard.
        """
        fetches = [
            store.list_member_scorecard_ids(user_id),
            store.list_metric_owner_rows(),
            store.list_user_team_ids(user_id),
            store.list_managed_team_ids(user_id),
        ]
        if include_reports:
            fetches.append(store.list_profiles())
        results = await asyncio.gather(*fetches)
        members_result, metric_rows_result, teams_result, managed_result = results[:4]

        if not members_result.ok:
            logger.error("Error fetching scorecard memberships: %s", members_result.error)
        if not metric_rows_result.ok:
            logger.error("Error fetching scorecard metrics: %s", metric_rows_result.error)
        if not teams_result.ok:
            logger.error("Error fetching user team memberships: %s", teams_result.error)
        if not managed_result.ok:
            logger.error("Error fetching managed teams: %s", managed_result.error)

        metric_counts: dict[UUID, int] = {}
        metric_owner_ids: set[UUID] = set()
        for row in metric_rows_result.data or []:
            metric_counts[row.scorecard_id] = metric_counts.get(row.scorecard_id, 0) + 1
            if row.owner_user_id == user_id:
                metric_owner_ids.add(row.scorecard_id)

        report_ids: set[UUID] = set()
        if include_reports:
            profiles_result = results[4]
            if not profiles_result.ok:
                logger.error("Error fetching profiles for manager relation: %s", profiles_result.error)
            profiles: list[ProfileRecord] = profiles_result.data or []
            report_ids = {profile.id for profile in profiles if profile.manager_id == user_id}

        ctx = ListingContext(
            user_id=user_id,
            member_scorecard_ids=set(members_result.data or []),
            metric_owner_scorecard_ids=metric_owner_ids,
            team_ids=set(teams_result.data or []),
            managed_team_ids=set(managed_result.data or []),
            report_ids=report_ids,
        )
        return ctx, metric_counts

    async def load_scorecard_listings(
        self,
        store: ScorecardStore,
        user_id: UUID,
        is_admin: bool = False,
        relations: Sequence[ListingRelation] = DEFAULT_LISTING_RELATIONS,
    ) -> ScorecardListings:
        """활성 스코어카드를 "내 것"과 "회사"로 분할합니다.

        Partition active scorecards (newest first). Scorecards that are not
        yours go to ``company_scorecards`` only for admins; non-admins never
        see them. A failed scorecard fetch is reported through ``error``.

        Args:
            store: 레코드 저장소 (Record store)
            user_id: 요청 사용자 ID (Requesting user)
            is_admin: 시스템 관리자 여부 (System administrator flag)
            relations: "내 스코어카드" 관계 술어 집합 (Qualifying relation set)
        """
        scorecards_result, (ctx, metric_counts) = await asyncio.gather(
            store.list_scorecards(),
            self._build_context(store, user_id),
        )
        if not scorecards_result.ok:
            logger.error("Error fetching scorecards: %s", scorecards_result.error)
            return ScorecardListings(error=scorecards_result.error)

        yours: list[ScorecardWithDetails] = []
        company: list[ScorecardWithDetails] = []
        for scorecard in scorecards_result.data or []:
            enhanced = scorecard.model_copy(update={"metric_count": metric_counts.get(scorecard.id, 0)})
            if is_yours(enhanced, ctx, relations):
                yours.append(enhanced)
            elif is_admin:
                company.append(enhanced)

        return ScorecardListings(your_scorecards=yours, company_scorecards=company)

    async def can_view(
        self,
        store: ScorecardStore,
        scorecard: ScorecardRecord,
        user_id: UUID,
        is_admin: bool = False,
    ) -> bool:
        """스코어카드 조회 권한 — 관리자, "내 것" 관계, 역할 소유자의 관리자.

        View permission: admins, any "yours" relation, or the direct manager
        of a role scorecard's owner.
        """
        if is_admin or scorecard.owner_user_id == user_id:
            return True
        ctx, _ = await self._build_context(store, user_id, include_reports=True)
        return is_yours(scorecard, ctx, VIEW_RELATIONS)


# 싱글턴 인스턴스 — Singleton instance
scorecard_listing_service: ScorecardListingService = ScorecardListingService()
