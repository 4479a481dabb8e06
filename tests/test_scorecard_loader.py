"""스코어카드 집계 로더 테스트 — 다중 쿼리/RPC 경로, 부분 실패, 담당자 후보, 복사 가능 지표.

Scorecard loader tests over the in-memory store.
"""

import uuid
from datetime import date, datetime, timezone

import pytest

from app.config import settings
from app.schemas.scorecard import ScorecardAggregate
from app.services.scorecard_loader import RPC_EMPTY, RPC_FAILED, SCORECARD_NOT_FOUND, scorecard_loader
from tests.fakes import (
    ScorecardMemberRow,
    TeamMemberRow,
    make_employee,
    make_entry,
    make_metric,
    make_scorecard,
)


def _sales(store):
    return store.scorecards[0]


def _metric(store, name):
    return next(metric for metric in store.metrics if metric.name == name)


class TestQueriesStrategy:
    """다중 쿼리 경로."""

    async def test_entries_joined_per_metric(self, store):
        """각 지표는 자기 값만, 최신 기간순으로 가진다."""
        result = await scorecard_loader.load_scorecard_aggregate_via_queries(store, _sales(store).id)
        assert result.error is None
        metrics = {m.name: m for m in result.data.metrics}

        assert [m.name for m in result.data.metrics] == ["Revenue", "Calls"]
        assert [e.value for e in metrics["Revenue"].entries] == [120, 80]
        assert [e.value for e in metrics["Calls"].entries] == [25]
        for metric in result.data.metrics:
            assert all(entry.metric_id == metric.id for entry in metric.entries)

    async def test_owner_resolved(self, store, owner_user):
        result = await scorecard_loader.load_scorecard_aggregate_via_queries(store, _sales(store).id)
        metrics = {m.name: m for m in result.data.metrics}
        assert metrics["Revenue"].owner.id == owner_user.id
        assert metrics["Calls"].owner is None

    async def test_batched_fetches(self, store):
        """값과 소유자는 각각 한 번의 배치 조회."""
        await scorecard_loader.load_scorecard_aggregate_via_queries(store, _sales(store).id)
        assert store.calls.count("list_entries") == 1
        assert store.calls.count("get_profiles") == 1

    async def test_idempotent(self, store):
        first = await scorecard_loader.load_scorecard_aggregate_via_queries(store, _sales(store).id)
        second = await scorecard_loader.load_scorecard_aggregate_via_queries(store, _sales(store).id)
        assert first.model_dump() == second.model_dump()

    async def test_not_found(self, store):
        result = await scorecard_loader.load_scorecard_aggregate_via_queries(store, uuid.uuid4())
        assert result.data is None
        assert result.error == SCORECARD_NOT_FOUND

    async def test_inactive_is_not_found(self, store):
        store.scorecards[0] = _sales(store).model_copy(update={"is_active": False})
        result = await scorecard_loader.load_scorecard_aggregate_via_queries(store, store.scorecards[0].id)
        assert result.error == SCORECARD_NOT_FOUND

    async def test_scorecard_fetch_failure_is_not_found(self, store):
        store.fail.add("get_scorecard")
        result = await scorecard_loader.load_scorecard_aggregate_via_queries(store, _sales(store).id)
        assert result.error == SCORECARD_NOT_FOUND

    @pytest.mark.parametrize(
        "failing", ["list_metrics", "list_entries", "get_profiles", "count_archived_metrics", "list_employees"]
    )
    async def test_optional_fetch_failures_degrade(self, store, failing):
        """선택 조회 실패는 빈 값으로 처리하고 결과는 성공."""
        store.fail.add(failing)
        result = await scorecard_loader.load_scorecard_aggregate_via_queries(store, _sales(store).id)
        assert result.error is None
        assert result.data.scorecard.id == _sales(store).id

    async def test_entry_failure_keeps_metrics(self, store):
        store.fail.add("list_entries")
        result = await scorecard_loader.load_scorecard_aggregate_via_queries(store, _sales(store).id)
        assert len(result.data.metrics) == 2
        assert all(m.entries == [] for m in result.data.metrics)

    async def test_archived_placeholder_with_count(self, store):
        """보관 지표는 빈 목록, 보관 수는 실제 값."""
        store.metrics.append(
            make_metric(_sales(store).id, "Old", is_active=False, is_archived=True,
                        archived_at=datetime(2025, 1, 2, tzinfo=timezone.utc))
        )
        result = await scorecard_loader.load_scorecard_aggregate_via_queries(store, _sales(store).id)
        assert result.data.archived_metrics == []
        assert result.data.archived_count == 1
        assert [m.name for m in result.data.metrics] == ["Revenue", "Calls"]

    async def test_employees_merged_case_insensitive(self, store, owner_user):
        store.employees.append(make_employee("Olive Owner", "OLIVE@example.com"))
        store.employees.append(make_employee("Nobody", "nobody@example.com"))
        store.employees.append(make_employee("No Mail", None))
        result = await scorecard_loader.load_scorecard_aggregate_via_queries(store, _sales(store).id)
        assert [e.profile_id for e in result.data.employees] == [owner_user.id]


class TestRpcStrategy:
    """단일 RPC 경로."""

    def _document(self, store, **overrides):
        sales = _sales(store)
        revenue = _metric(store, "Revenue")
        data = {
            "scorecard": sales.model_dump(mode="json"),
            "metrics": [
                {
                    **revenue.model_dump(mode="json"),
                    "entries": [
                        make_entry(revenue.id, date(2025, 1, 6), 80).model_dump(mode="json"),
                        make_entry(revenue.id, date(2025, 1, 13), 120).model_dump(mode="json"),
                    ],
                }
            ],
            "employees": [],
            "archivedCount": 99,
        }
        data.update(overrides)
        return {"error": None, "data": data}

    async def test_document_validated(self, store, owner_user):
        store.rpc_document = self._document(store)
        result = await scorecard_loader.load_scorecard_aggregate(
            store, _sales(store).id, user_id=owner_user.id, strategy="rpc"
        )
        assert result.error is None
        assert [e.value for e in result.data.metrics[0].entries] == [120, 80]

    async def test_archived_hydrated_and_count_recomputed(self, store, owner_user):
        store.metrics.append(make_metric(_sales(store).id, "Old", is_active=False, is_archived=True))
        store.rpc_document = self._document(store)
        result = await scorecard_loader.load_scorecard_aggregate_via_rpc(store, _sales(store).id, owner_user.id)
        assert [m.name for m in result.data.archived_metrics] == ["Old"]
        assert result.data.archived_count == 1

    async def test_archived_count_survives_failed_hydration(self, store, owner_user):
        """보관 지표 로드가 실패해도 보관 수는 개수 조회 결과를 유지."""
        store.metrics.append(make_metric(_sales(store).id, "Old", is_active=False, is_archived=True))
        store.rpc_document = self._document(store)
        store.fail.add("list_metrics")
        result = await scorecard_loader.load_scorecard_aggregate_via_rpc(store, _sales(store).id, owner_user.id)
        assert result.data.archived_metrics == []
        assert result.data.archived_count == 1

    async def test_archived_count_falls_back_to_hydrated(self, store, owner_user):
        store.metrics.append(make_metric(_sales(store).id, "Old", is_active=False, is_archived=True))
        store.rpc_document = self._document(store)
        store.fail.add("count_archived_metrics")
        result = await scorecard_loader.load_scorecard_aggregate_via_rpc(store, _sales(store).id, owner_user.id)
        assert result.data.archived_count == 1

    @pytest.mark.parametrize("error", ["Scorecard not found", "Permission denied"])
    async def test_function_error_passthrough(self, store, owner_user, error):
        store.rpc_document = {"error": error, "data": None}
        result = await scorecard_loader.load_scorecard_aggregate_via_rpc(store, _sales(store).id, owner_user.id)
        assert result.error == error
        assert "get_scorecard" not in store.calls

    async def test_empty_document(self, store, owner_user):
        result = await scorecard_loader.load_scorecard_aggregate_via_rpc(store, _sales(store).id, owner_user.id)
        assert result.error == RPC_EMPTY

    async def test_missing_data(self, store, owner_user):
        store.rpc_document = {"error": None, "data": None}
        result = await scorecard_loader.load_scorecard_aggregate_via_rpc(store, _sales(store).id, owner_user.id)
        assert result.error == SCORECARD_NOT_FOUND

    async def test_transport_failure_falls_back(self, store, owner_user, monkeypatch):
        monkeypatch.setattr(settings, "SCORECARD_RPC_FALLBACK", True)
        store.fail.add("call_scorecard_aggregate")
        result = await scorecard_loader.load_scorecard_aggregate_via_rpc(store, _sales(store).id, owner_user.id)
        assert result.error is None
        assert "get_scorecard" in store.calls
        assert len(result.data.metrics) == 2

    async def test_transport_failure_without_fallback(self, store, owner_user, monkeypatch):
        monkeypatch.setattr(settings, "SCORECARD_RPC_FALLBACK", False)
        store.fail.add("call_scorecard_aggregate")
        result = await scorecard_loader.load_scorecard_aggregate_via_rpc(store, _sales(store).id, owner_user.id)
        assert result.error == RPC_FAILED

    async def test_rpc_without_user_uses_queries(self, store):
        await scorecard_loader.load_scorecard_aggregate(store, _sales(store).id, strategy="rpc")
        assert "call_scorecard_aggregate" not in store.calls

    def test_aggregate_accepts_camel_case_keys(self, store):
        aggregate = ScorecardAggregate.model_validate(
            {"scorecard": _sales(store).model_dump(), "archivedMetrics": [], "archivedCount": 4}
        )
        assert aggregate.archived_count == 4


class TestArchivedMetrics:
    """보관 지표 로드."""

    async def test_most_recent_first_with_entries(self, store):
        sales = _sales(store)
        older = make_metric(sales.id, "Older", is_active=False, is_archived=True,
                            archived_at=datetime(2025, 1, 2, tzinfo=timezone.utc))
        newer = make_metric(sales.id, "Newer", is_active=False, is_archived=True,
                            archived_at=datetime(2025, 1, 5, tzinfo=timezone.utc))
        store.metrics.extend([older, newer])
        store.entries.append(make_entry(older.id, date(2024, 12, 30), 3))

        archived = await scorecard_loader.load_archived_metrics(store, sales.id)
        assert [m.name for m in archived] == ["Newer", "Older"]
        assert [e.value for e in archived[1].entries] == [3]

    async def test_failure_is_empty(self, store):
        store.fail.add("list_metrics")
        assert await scorecard_loader.load_archived_metrics(store, _sales(store).id) == []


class TestEligibleOwners:
    """지표 담당자 후보."""

    def _roster(self, store):
        for profile in store.profiles:
            store.employees.append(make_employee(profile.full_name, profile.email))

    async def test_personal_gets_whole_roster(self, store):
        self._roster(store)
        owners = await scorecard_loader.load_eligible_owners(store, _sales(store))
        assert len(owners) == 3

    async def test_role_only_owner(self, store, owner_user):
        self._roster(store)
        scorecard = _sales(store).model_copy(update={"type": "role", "role_id": uuid.uuid4()})
        owners = await scorecard_loader.load_eligible_owners(store, scorecard)
        assert [o.profile_id for o in owners] == [owner_user.id]

    async def test_team_union(self, store, owner_user, other_user, admin_user):
        self._roster(store)
        team_id = uuid.uuid4()
        scorecard = _sales(store).model_copy(update={"type": "team", "team_id": team_id})
        store.team_members.append(TeamMemberRow(team_id=team_id, user_id=other_user.id))

        owners = await scorecard_loader.load_eligible_owners(store, scorecard)
        assert {o.profile_id for o in owners} == {owner_user.id, other_user.id}

        store.scorecard_members.append(ScorecardMemberRow(scorecard_id=scorecard.id, user_id=admin_user.id))
        owners = await scorecard_loader.load_eligible_owners(store, scorecard)
        assert {o.profile_id for o in owners} == {owner_user.id, other_user.id, admin_user.id}


class TestCopyableMetrics:
    """같은 역할의 다른 스코어카드 지표."""

    async def test_signature_excludes_existing(self, store, owner_user):
        role_id = uuid.uuid4()
        current = make_scorecard(owner_user.id, type="role", role_id=role_id)
        sibling = make_scorecard(owner_user.id, type="role", role_id=role_id)
        inactive = make_scorecard(owner_user.id, type="role", role_id=role_id, is_active=False)
        store.scorecards.extend([current, sibling, inactive])

        current_metric = make_metric(current.id, "Revenue")
        store.metrics.extend([
            current_metric,
            make_metric(sibling.id, "revenue"),
            make_metric(sibling.id, "Revenue", scoring_mode="at_most", target_value=5, owner_user_id=owner_user.id),
            make_metric(sibling.id, "NPS"),
            make_metric(inactive.id, "Hidden"),
        ])

        copyable = await scorecard_loader.load_copyable_metrics_for_role(
            store, role_id, current.id, [current_metric]
        )
        assert [(m.name, m.scoring_mode) for m in copyable] == [("NPS", "at_least"), ("Revenue", "at_most")]
        assert all(m.entries == [] for m in copyable)
        assert copyable[1].owner.id == owner_user.id

    async def test_no_siblings(self, store):
        assert await scorecard_loader.load_copyable_metrics_for_role(store, uuid.uuid4(), uuid.uuid4(), []) == []
