"""스코어카드 목록 분할 및 조회 권한 테스트."""

import uuid

import pytest

from app.services.scorecard_listing_service import (
    DEFAULT_LISTING_RELATIONS,
    owns_scorecard,
    scorecard_listing_service,
)
from tests.fakes import (
    InMemoryStore,
    ScorecardMemberRow,
    TeamMemberRow,
    make_metric,
    make_profile,
    make_scorecard,
)


@pytest.fixture
def org():
    """사용자 한 명과 관계가 서로 다른 스코어카드들."""
    store = InMemoryStore()
    boss = make_profile("Boss", "boss@example.com")
    me = make_profile("Me", "me@example.com", manager_id=boss.id)
    report = make_profile("Report", "report@example.com", manager_id=me.id)
    stranger = make_profile("Stranger", "stranger@example.com")
    store.profiles.extend([boss, me, report, stranger])

    team_id = uuid.uuid4()
    managed_team_id = uuid.uuid4()
    cards = {
        "owned": make_scorecard(me.id, name="Owned"),
        "metric_owner": make_scorecard(stranger.id, name="Metric owner"),
        "member": make_scorecard(stranger.id, name="Shared"),
        "team": make_scorecard(stranger.id, name="Team", type="team", team_id=team_id),
        "managed_team": make_scorecard(stranger.id, name="Managed", type="team", team_id=managed_team_id),
        "report_role": make_scorecard(report.id, name="Report role", type="role", role_id=uuid.uuid4()),
        "unrelated": make_scorecard(stranger.id, name="Unrelated"),
        "inactive": make_scorecard(me.id, name="Inactive", is_active=False),
    }
    store.scorecards.extend(cards.values())

    store.metrics.append(make_metric(cards["metric_owner"].id, "Pipeline", owner_user_id=me.id))
    store.metrics.append(make_metric(cards["owned"].id, "Revenue"))
    store.metrics.append(make_metric(cards["owned"].id, "Calls"))
    store.scorecard_members.append(ScorecardMemberRow(scorecard_id=cards["member"].id, user_id=me.id))
    store.team_members.append(TeamMemberRow(team_id=team_id, user_id=me.id))
    store.team_members.append(TeamMemberRow(team_id=managed_team_id, user_id=report.id, role="owner"))
    return store, me, cards


def _names(rows):
    return {row.name for row in rows}


class TestListingPartition:
    """"내 스코어카드"/"회사 스코어카드" 분할."""

    async def test_yours_by_relation(self, org):
        store, me, cards = org
        listings = await scorecard_listing_service.load_scorecard_listings(store, me.id)
        assert _names(listings.your_scorecards) == {"Owned", "Metric owner", "Shared", "Team", "Managed"}

    async def test_non_admin_never_sees_company(self, org):
        store, me, _ = org
        listings = await scorecard_listing_service.load_scorecard_listings(store, me.id)
        assert listings.company_scorecards == []

    async def test_admin_partition_covers_all_active(self, org):
        """관리자: 두 목록은 서로소이며 합치면 활성 스코어카드 전체."""
        store, me, cards = org
        listings = await scorecard_listing_service.load_scorecard_listings(store, me.id, is_admin=True)
        yours = {row.id for row in listings.your_scorecards}
        company = {row.id for row in listings.company_scorecards}
        active = {card.id for card in cards.values() if card.is_active}
        assert yours.isdisjoint(company)
        assert yours | company == active

    async def test_newest_first(self, org):
        store, me, _ = org
        listings = await scorecard_listing_service.load_scorecard_listings(store, me.id, is_admin=True)
        rows = listings.your_scorecards + listings.company_scorecards
        created = [row.created_at for row in listings.your_scorecards]
        assert created == sorted(created, reverse=True)
        assert len(rows) == 7

    async def test_metric_count(self, org):
        store, me, _ = org
        listings = await scorecard_listing_service.load_scorecard_listings(store, me.id)
        counts = {row.name: row.metric_count for row in listings.your_scorecards}
        assert counts["Owned"] == 2
        assert counts["Shared"] == 0

    async def test_narrower_relation_set(self, org):
        store, me, _ = org
        listings = await scorecard_listing_service.load_scorecard_listings(store, me.id, relations=(owns_scorecard,))
        assert _names(listings.your_scorecards) == {"Owned"}

    async def test_relation_failures_degrade(self, org):
        """관계 조회 실패는 그 관계만 빠진다."""
        store, me, _ = org
        store.fail.update({"list_member_scorecard_ids", "list_user_team_ids"})
        listings = await scorecard_listing_service.load_scorecard_listings(store, me.id)
        assert listings.error is None
        assert "Shared" not in _names(listings.your_scorecards)
        assert "Team" not in _names(listings.your_scorecards)
        assert "Owned" in _names(listings.your_scorecards)

    async def test_scorecard_failure_reported(self, org):
        store, me, _ = org
        store.fail.add("list_scorecards")
        listings = await scorecard_listing_service.load_scorecard_listings(store, me.id)
        assert listings.error
        assert listings.your_scorecards == []

    def test_default_relations_exclude_role_manager(self):
        assert owns_scorecard in DEFAULT_LISTING_RELATIONS
        assert len(DEFAULT_LISTING_RELATIONS) == 5


class TestCanView:
    """조회 권한."""

    async def test_manager_of_role_owner_can_view(self, org):
        """역할 스코어카드 소유자의 관리자는 목록에는 없지만 조회 가능."""
        store, me, cards = org
        assert await scorecard_listing_service.can_view(store, cards["report_role"], me.id)

    async def test_unrelated_denied(self, org):
        store, me, cards = org
        assert not await scorecard_listing_service.can_view(store, cards["unrelated"], me.id)

    async def test_admin_allowed(self, org):
        store, me, cards = org
        assert await scorecard_listing_service.can_view(store, cards["unrelated"], me.id, is_admin=True)

    async def test_member_allowed(self, org):
        store, me, cards = org
        assert await scorecard_listing_service.can_view(store, cards["member"], me.id)
