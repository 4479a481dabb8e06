"""스코어카드 집계 로더 — 여러 레코드 집합을 조회해 프로세스 내에서 조인.

Scorecard aggregate loader — fetches independent record sets concurrently
and joins them in process into a ``ScorecardAggregate``.

Two construction strategies share the same result shape:
    - queries: 스코어카드 조회 후 지표/보관 수/명부를 병렬 조회하고,
      값과 소유자를 각각 단일 배치 쿼리로 가져와 병합
      (Batched fan-out fetches joined in process)
    - rpc: get_scorecard_aggregate 데이터베이스 함수가 미리 조인한 문서를
      받은 뒤 보관 지표를 같은 방식으로 추가 로드
      (Pre-joined document from the database function, then archived
      metrics hydrated the same way)

실패 처리: 스코어카드 조회 실패만 치명적("Scorecard not found")이며,
나머지 조회 실패는 로그 후 빈 값으로 처리합니다.
Failure policy: only the scorecard fetch is required; every other fetch
failure is logged and treated as empty.
"""

import asyncio
import logging
from collections import defaultdict
from collections.abc import Iterable, Sequence
from typing import Any
from uuid import UUID

from pydantic import ValidationError

from app.config import settings
from app.repositories.record_store import FetchResult, ScorecardStore
from app.schemas.people import EmployeeRecord, EmployeeWithProfile, ProfileRecord, ProfileSummary
from app.schemas.scorecard import (
    MetricEntryRecord,
    MetricRecord,
    MetricWithEntries,
    ScorecardAggregate,
    ScorecardLoaderResult,
    ScorecardRecord,
)

logger = logging.getLogger(__name__)

SCORECARD_NOT_FOUND: str = "Scorecard not found"
RPC_FAILED: str = "Failed to load scorecard data"
RPC_EMPTY: str = "No data returned from RPC"


def merge_employee_profiles(
    employees: Iterable[EmployeeRecord],
    profiles: Iterable[ProfileSummary],
) -> list[EmployeeWithProfile]:
    """직원 명부와 프로필을 이메일(대소문자 무시)로 병합합니다.

    Join roster rows to profiles on lower-cased e-mail. Employees without a
    company e-mail or without a matching profile are dropped; roster order
    is preserved.
    """
    profile_by_email: dict[str, ProfileSummary] = {
        profile.email.lower(): profile for profile in profiles if profile.email
    }

    merged: list[EmployeeWithProfile] = []
    for employee in employees:
        if not employee.company_email:
            continue
        profile = profile_by_email.get(employee.company_email.lower())
        if profile is None:
            continue
        merged.append(
            EmployeeWithProfile(
                **employee.model_dump(),
                profile_id=profile.id,
                profile=ProfileSummary(
                    id=profile.id,
                    email=profile.email,
                    full_name=profile.full_name,
                    avatar_url=profile.avatar_url,
                ),
            )
        )
    return merged


def _newest_first(entries: Iterable[MetricEntryRecord]) -> list[MetricEntryRecord]:
    return sorted(entries, key=lambda entry: entry.period_start, reverse=True)


def metric_signature(metric: Any) -> tuple[str, str]:
    """구조적 동등성 키: (소문자 이름, 스코어링 모드).

    Works on schema records and ORM rows alike; used to dedup copies.
    """
    return metric.name.strip().lower(), metric.scoring_mode


async def _empty() -> FetchResult:
    return FetchResult(data=[])


class ScorecardLoader:
    """스코어카드 집계 및 관련 읽기 모델을 만드는 로더.

    Loader for the scorecard aggregate and its companion read models.
    Holds no state between calls; every call builds fresh maps and sets.
    """

    async def load_all_employees(self, store: ScorecardStore) -> list[EmployeeWithProfile]:
        """전체 직원 명부를 프로필과 병합해 반환합니다 (실패 시 빈 목록).

        Load the full roster merged with profiles; any fetch failure yields
        an empty roster.
        """
        employees_result, profiles_result = await asyncio.gather(
            store.list_employees(),
            store.list_profiles(),
        )
        if not employees_result.ok:
            logger.error("Error loading employees for scorecard: %s", employees_result.error)
            return []
        if not profiles_result.ok:
            logger.error("Error loading profiles for employee merge: %s", profiles_result.error)
            return []

        profiles: list[ProfileRecord] = profiles_result.data or []
        return merge_employee_profiles(employees_result.data or [], profiles)

    async def _join_metrics(
        self,
        store: ScorecardStore,
        metrics: Sequence[MetricRecord],
        dataset: str,
    ) -> list[MetricWithEntries]:
        """지표에 값과 소유자를 병합합니다 — 각각 단일 배치 조회.

        Merge entries and owner identities onto metrics. Entries and owners
        are each fetched with one batched query, concurrently.
        """
        metric_ids: list[UUID] = [metric.id for metric in metrics]
        owner_ids: list[UUID] = list(
            dict.fromkeys(metric.owner_user_id for metric in metrics if metric.owner_user_id)
        )

        entries_result, owners_result = await asyncio.gather(
            store.list_entries(metric_ids) if metric_ids else _empty(),
            store.get_profiles(owner_ids) if owner_ids else _empty(),
        )

        entries: list[MetricEntryRecord] = []
        if entries_result.ok:
            entries = entries_result.data or []
        else:
            logger.error("Error loading %s metric entries: %s", dataset, entries_result.error)

        owners: dict[UUID, ProfileSummary] = {}
        if owners_result.ok:
            owners = {profile.id: profile for profile in owners_result.data or []}
        else:
            logger.error("Error loading %s metric owner profiles: %s", dataset, owners_result.error)

        entries_by_metric: dict[UUID, list[MetricEntryRecord]] = defaultdict(list)
        for entry in entries:
            entries_by_metric[entry.metric_id].append(entry)

        return [
            MetricWithEntries(
                **metric.model_dump(),
                entries=_newest_first(entries_by_metric.get(metric.id, [])),
                owner=owners.get(metric.owner_user_id) if metric.owner_user_id else None,
            )
            for metric in metrics
        ]

    async def load_scorecard_aggregate(
        self,
        store: ScorecardStore,
        scorecard_id: UUID,
        user_id: UUID | None = None,
        strategy: str | None = None,
    ) -> ScorecardLoaderResult:
        """설정된 전략으로 스코어카드 집계를 로드합니다.

        Load the aggregate with the configured strategy. The rpc strategy
        needs the caller's id for its permission check; without one the
        multi-query path is used.

        Args:
            store: 레코드 저장소 (Record store)
            scorecard_id: 스코어카드 ID (Scorecard id)
            user_id: 요청 사용자 ID (Requesting user, rpc permission check)
            strategy: "queries" 또는 "rpc", None이면 설정값 사용
                      ("queries" or "rpc"; defaults to SCORECARD_LOADER_STRATEGY)

        Returns:
            ScorecardLoaderResult: {data, error} 결과 (Result object, never raises)
        """
        selected: str = strategy or settings.SCORECARD_LOADER_STRATEGY
        if selected == "rpc" and user_id is not None:
            return await self.load_scorecard_aggregate_via_rpc(store, scorecard_id, user_id)
        return await self.load_scorecard_aggregate_via_queries(store, scorecard_id)

    async def load_scorecard_aggregate_via_queries(
        self,
        store: ScorecardStore,
        scorecard_id: UUID,
    ) -> ScorecardLoaderResult:
        """다중 쿼리 경로 — 조회 후 프로세스 내 조인.

        Multi-query path. Archived metrics are returned as an empty
        placeholder together with the authoritative archived count.
        """
        scorecard_result = await store.get_scorecard(scorecard_id)
        if not scorecard_result.ok or scorecard_result.data is None:
            logger.warning("Scorecard %s not loaded: %s", scorecard_id, scorecard_result.error or "missing or inactive")
            return ScorecardLoaderResult(error=SCORECARD_NOT_FOUND)
        scorecard: ScorecardRecord = scorecard_result.data

        metrics_result, archived_count_result, employees = await asyncio.gather(
            store.list_metrics([scorecard_id], archived=False, order_by="display_order"),
            store.count_archived_metrics(scorecard_id),
            self.load_all_employees(store),
        )

        if not metrics_result.ok:
            logger.error("Error loading scorecard metrics: %s", metrics_result.error)
        if not archived_count_result.ok:
            logger.error("Error loading archived metrics count: %s", archived_count_result.error)

        metrics: list[MetricRecord] = metrics_result.data or []
        metrics_with_entries = await self._join_metrics(store, metrics, "scorecard")

        return ScorecardLoaderResult(
            data=ScorecardAggregate(
                scorecard=scorecard,
                metrics=metrics_with_entries,
                archived_metrics=[],
                archived_count=archived_count_result.data or 0,
                employees=employees,
            )
        )

    async def load_scorecard_aggregate_via_rpc(
        self,
        store: ScorecardStore,
        scorecard_id: UUID,
        user_id: UUID,
    ) -> ScorecardLoaderResult:
        """단일 RPC 경로 — 데이터베이스 함수가 권한 검사와 조인을 수행.

        Single-RPC path. The function's own reported error ("Scorecard not
        found", "Permission denied") is surfaced as is. A transport failure
        falls back to the multi-query path when SCORECARD_RPC_FALLBACK is set.
        Archived metrics are hydrated afterwards because the function does
        not return them.
        """
        rpc_result = await store.call_scorecard_aggregate(scorecard_id, user_id)
        if not rpc_result.ok:
            logger.error("Error calling get_scorecard_aggregate RPC: %s", rpc_result.error)
            if settings.SCORECARD_RPC_FALLBACK:
                return await self.load_scorecard_aggregate_via_queries(store, scorecard_id)
            return ScorecardLoaderResult(error=RPC_FAILED)

        document = rpc_result.data
        if not document:
            return ScorecardLoaderResult(error=RPC_EMPTY)
        if document.get("error"):
            return ScorecardLoaderResult(error=document["error"])
        if not document.get("data"):
            return ScorecardLoaderResult(error=SCORECARD_NOT_FOUND)

        try:
            aggregate = ScorecardAggregate.model_validate(document["data"])
        except ValidationError as exc:
            logger.error("Malformed get_scorecard_aggregate document: %s", exc)
            return ScorecardLoaderResult(error=RPC_FAILED)

        for metric in aggregate.metrics:
            metric.entries = _newest_first(metric.entries)

        archived_metrics, archived_count_result = await asyncio.gather(
            self.load_archived_metrics(store, scorecard_id),
            store.count_archived_metrics(scorecard_id),
        )
        aggregate.archived_metrics = archived_metrics
        if archived_count_result.ok:
            aggregate.archived_count = archived_count_result.data or 0
        else:
            # 개수 조회 실패 시 로드된 보관 지표 수로 대체
            logger.error("Error loading archived metrics count: %s", archived_count_result.error)
            aggregate.archived_count = len(archived_metrics)
        return ScorecardLoaderResult(data=aggregate)

    async def load_archived_metrics(
        self,
        store: ScorecardStore,
        scorecard_id: UUID,
    ) -> list[MetricWithEntries]:
        """보관된 지표를 값/소유자와 함께 로드합니다 (최근 보관순).

        Hydrate archived metrics on demand with the same join strategy,
        most recently archived first.
        """
        metrics_result = await store.list_metrics([scorecard_id], archived=True, order_by="archived_at")
        if not metrics_result.ok:
            logger.error("Error loading archived metrics: %s", metrics_result.error)
            return []

        metrics: list[MetricRecord] = metrics_result.data or []
        if not metrics:
            return []
        return await self._join_metrics(store, metrics, "archived")

    async def load_eligible_owners(
        self,
        store: ScorecardStore,
        scorecard: ScorecardRecord,
    ) -> list[EmployeeWithProfile]:
        """지표 담당자로 지정 가능한 직원 목록.

        Eligible metric owners:
            - role: 스코어카드 소유자만 (only the scorecard owner)
            - team: 소유자 ∪ 팀 구성원 ∪ 공유 구성원 (union of the three sources)
            - 그 외: 전체 명부 (the whole roster)
        """
        if scorecard.type == "role":
            employees = await self.load_all_employees(store)
            return [employee for employee in employees if employee.profile_id == scorecard.owner_user_id][:1]

        if scorecard.type == "team" and scorecard.team_id is not None:
            team_result, shared_result, employees = await asyncio.gather(
                store.list_team_member_ids(scorecard.team_id),
                store.list_scorecard_member_ids(scorecard.id),
                self.load_all_employees(store),
            )
            if not team_result.ok:
                logger.error("Error loading team members for eligible owners: %s", team_result.error)
            if not shared_result.ok:
                logger.error("Error loading scorecard members for eligible owners: %s", shared_result.error)

            eligible: set[UUID] = {scorecard.owner_user_id}
            eligible.update(team_result.data or [])
            eligible.update(shared_result.data or [])
            return [employee for employee in employees if employee.profile_id in eligible]

        return await self.load_all_employees(store)

    async def load_copyable_metrics_for_role(
        self,
        store: ScorecardStore,
        role_id: UUID,
        current_scorecard_id: UUID,
        current_metrics: Sequence[MetricRecord],
    ) -> list[MetricWithEntries]:
        """같은 역할의 다른 스코어카드에서 복사 가능한 지표를 찾습니다.

        Metrics from other active scorecards of the same role, excluding any
        whose (lower-cased name, scoring_mode) signature already exists on
        the current scorecard. Entries are not loaded; owners are.
        """
        scorecards_result = await store.list_scorecards(role_id=role_id, exclude_id=current_scorecard_id)
        if not scorecards_result.ok:
            logger.error("Error loading scorecards for role %s: %s", role_id, scorecards_result.error)
            return []

        related_ids: list[UUID] = [scorecard.id for scorecard in scorecards_result.data or []]
        if not related_ids:
            return []

        metrics_result = await store.list_metrics(related_ids, archived=False, order_by="created_at")
        if not metrics_result.ok:
            logger.error("Error loading copyable metrics: %s", metrics_result.error)
            return []

        existing: set[tuple[str, str]] = {metric_signature(metric) for metric in current_metrics}
        copyable: list[MetricRecord] = [
            metric for metric in metrics_result.data or [] if metric_signature(metric) not in existing
        ]
        if not copyable:
            return []

        owner_ids: list[UUID] = list(
            dict.fromkeys(metric.owner_user_id for metric in copyable if metric.owner_user_id)
        )
        owners: dict[UUID, ProfileSummary] = {}
        if owner_ids:
            owners_result = await store.get_profiles(owner_ids)
            if owners_result.ok:
                owners = {profile.id: profile for profile in owners_result.data or []}
            else:
                logger.error("Error loading copyable metric owners: %s", owners_result.error)

        return [
            MetricWithEntries(
                **metric.model_dump(),
                entries=[],
                owner=owners.get(metric.owner_user_id) if metric.owner_user_id else None,
            )
            for metric in copyable
        ]


# 싱글턴 인스턴스 — Singleton instance
scorecard_loader: ScorecardLoader = ScorecardLoader()
