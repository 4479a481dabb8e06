"""자기참조 계층 탐색 유틸리티 — 순환에 안전한 조상/자손 조회.

Self-referencing hierarchy traversal — cycle-safe ancestor and descendant
queries over a flat record set.

두 개의 독립된 포레스트에 사용됩니다.
Used for two independent forests:
    - Profile.manager_id → Profile (보고 라인, reporting line)
    - Role.accountable_to_role_id → Role (역할 책임 라인, role accountability)

쓰기 측 검증은 자기 자신 참조만 막기 때문에 동시 수정으로 더 긴 순환이
생길 수 있습니다. 모든 탐색은 방문 집합을 사용해 종료를 보장하며,
끊어진 참조(존재하지 않는 ID)는 오류 없이 그 지점에서 탐색을 멈춥니다.
The write side only rejects direct self-references, so longer cycles can
appear under concurrent updates. Every traversal carries a visited set, and
a dangling reference silently truncates the walk at that point.
"""

from collections.abc import Callable, Hashable, Iterable
from typing import Any, Generic, TypeVar

RecordType = TypeVar("RecordType")


def _sort_name(record: Any) -> str:
    # 프로필은 full_name, 역할은 name으로 정렬 (Profiles sort by full_name, roles by name)
    name = getattr(record, "full_name", None) or getattr(record, "name", None) or ""
    return str(name).lower()


class Hierarchy(Generic[RecordType]):
    """평면 레코드 목록에서 만든 요청 범위 계층 인덱스.

    Request-scoped index over flat records that point at their parent.
    The records themselves are never mutated.

    Attributes:
        parent_field: 부모 ID 속성 이름 (Name of the parent-reference attribute)
    """

    def __init__(
        self,
        records: Iterable[RecordType],
        parent_field: str,
        id_field: str = "id",
        sort_key: Callable[[RecordType], Any] = _sort_name,
    ) -> None:
        self.parent_field: str = parent_field
        self._id_field: str = id_field
        self._sort_key: Callable[[RecordType], Any] = sort_key
        self._by_id: dict[Hashable, RecordType] = {}
        self._children: dict[Hashable, list[RecordType]] = {}

        for record in records:
            self._by_id[self._id(record)] = record

        # 역방향 인덱스 — Reverse lookup parent_id → children
        for record in self._by_id.values():
            parent_id = self._parent_id(record)
            if parent_id is not None:
                self._children.setdefault(parent_id, []).append(record)

    def _id(self, record: RecordType) -> Hashable:
        return getattr(record, self._id_field)

    def _parent_id(self, record: RecordType) -> Hashable | None:
        return getattr(record, self.parent_field, None)

    def __contains__(self, record_id: Hashable) -> bool:
        return record_id in self._by_id

    def __len__(self) -> int:
        return len(self._by_id)

    def get(self, record_id: Hashable) -> RecordType | None:
        return self._by_id.get(record_id)

    def parent(self, record_id: Hashable) -> RecordType | None:
        """직속 부모 레코드 — 참조가 없거나 끊어졌으면 None."""
        record = self._by_id.get(record_id)
        if record is None:
            return None
        parent_id = self._parent_id(record)
        if parent_id is None:
            return None
        return self._by_id.get(parent_id)

    def ancestors(self, record_id: Hashable) -> list[RecordType]:
        """루트 방향 조상 체인 (시작 레코드 제외).

        Walk the parent reference upward, root-ward order, excluding the start
        record. Stops at a null reference, a missing record, or an id that was
        already visited.
        """
        chain: list[RecordType] = []
        visited: set[Hashable] = {record_id}
        current = self._by_id.get(record_id)

        while current is not None:
            parent_id = self._parent_id(current)
            if parent_id is None or parent_id in visited:
                break
            parent = self._by_id.get(parent_id)
            if parent is None:
                break
            visited.add(parent_id)
            chain.append(parent)
            current = parent

        return chain

    def children(self, record_id: Hashable, active_only: bool = True) -> list[RecordType]:
        """한 단계 하위 레코드 — 활성 레코드만, 표시 이름순.

        Records whose parent reference equals ``record_id``. Records without an
        ``is_active`` attribute (roles) are always treated as active.
        """
        found: list[RecordType] = [
            child
            for child in self._children.get(record_id, [])
            if not active_only or getattr(child, "is_active", True)
        ]
        return sorted(found, key=self._sort_key)

    def descendants(self, record_id: Hashable, active_only: bool = True) -> list[RecordType]:
        """재귀적 하위 레코드 (깊이 우선, 전위 순서).

        Depth-first expansion of :meth:`children`. A global visited set keyed by
        id guarantees each record is expanded and returned at most once, and the
        start record is never part of its own result even inside a cycle.
        """
        result: list[RecordType] = []
        visited: set[Hashable] = {record_id}
        # 명시적 스택 — 재귀 한계 없이 전위 순서 유지 (Explicit stack keeps pre-order)
        stack: list[RecordType] = list(reversed(self.children(record_id, active_only)))

        while stack:
            record = stack.pop()
            node_id = self._id(record)
            if node_id in visited:
                continue
            visited.add(node_id)
            result.append(record)
            stack.extend(reversed(self.children(node_id, active_only)))

        return result

    def is_parent(self, parent_id: Hashable, child_id: Hashable) -> bool:
        """단일 단계 관계 검사 — 비전이적 (Single hop, not transitive)."""
        record = self._by_id.get(child_id)
        if record is None:
            return False
        return self._parent_id(record) == parent_id

    def roots(self) -> list[RecordType]:
        """부모가 없거나 부모가 존재하지 않는 레코드 (입력 순서 유지)."""
        return [
            record
            for record in self._by_id.values()
            if self._parent_id(record) is None or self._parent_id(record) not in self._by_id
        ]
