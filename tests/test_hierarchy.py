"""계층 탐색 테스트 — 순환에 안전한 조상/자손 조회와 보고 라인 서비스.

Hierarchy tests — cycle-safe traversal over roles and profiles, and the
reporting-line service over the in-memory store.
"""

import uuid

from app.services.hierarchy_service import hierarchy_service
from app.utils.hierarchy import Hierarchy
from tests.fakes import InMemoryStore, make_employee, make_profile, make_role


def _role_hierarchy(roles) -> Hierarchy:
    return Hierarchy(roles, parent_field="accountable_to_role_id")


class TestHierarchyAncestors:
    """상위 체인."""

    def test_chain_is_root_ward_and_excludes_start(self):
        ceo = make_role("CEO")
        vp = make_role("VP", ceo.id)
        lead = make_role("Lead", vp.id)
        chain = _role_hierarchy([ceo, vp, lead]).ancestors(lead.id)
        assert [r.name for r in chain] == ["VP", "CEO"]

    def test_cycle_terminates(self):
        """A→B→C→A 순환에서도 종료하고 각 노드는 한 번만."""
        a_id, b_id, c_id = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
        a = make_role("A", b_id, id=a_id)
        b = make_role("B", c_id, id=b_id)
        c = make_role("C", a_id, id=c_id)
        chain = _role_hierarchy([a, b, c]).ancestors(a_id)
        assert [r.name for r in chain] == ["B", "C"]

    def test_dangling_reference_truncates(self):
        orphan = make_role("Orphan", uuid.uuid4())
        assert _role_hierarchy([orphan]).ancestors(orphan.id) == []

    def test_unknown_start(self):
        assert _role_hierarchy([]).ancestors(uuid.uuid4()) == []


class TestHierarchyDescendants:
    """하위 레코드."""

    def test_children_active_only_sorted_by_name(self):
        boss = make_profile("Boss")
        zed = make_profile("Zed", manager_id=boss.id)
        amy = make_profile("amy", manager_id=boss.id)
        gone = make_profile("Gone", manager_id=boss.id, is_active=False)
        h = Hierarchy([boss, zed, amy, gone], parent_field="manager_id")
        assert [p.full_name for p in h.children(boss.id)] == ["amy", "Zed"]
        assert len(h.children(boss.id, active_only=False)) == 3

    def test_recursive_reports_depth_first(self):
        boss = make_profile("Boss")
        a = make_profile("A", manager_id=boss.id)
        b = make_profile("B", manager_id=boss.id)
        a1 = make_profile("A1", manager_id=a.id)
        h = Hierarchy([boss, a, b, a1], parent_field="manager_id")
        assert [p.full_name for p in h.descendants(boss.id)] == ["A", "A1", "B"]

    def test_recursive_reports_with_cycle(self):
        """순환에서도 각 레코드는 한 번만, 시작 레코드는 제외."""
        x_id, y_id = uuid.uuid4(), uuid.uuid4()
        x = make_profile("X", id=x_id, manager_id=y_id)
        y = make_profile("Y", id=y_id, manager_id=x_id)
        h = Hierarchy([x, y], parent_field="manager_id")
        assert [p.full_name for p in h.descendants(x_id)] == ["Y"]

    def test_is_parent_single_hop(self):
        top = make_profile("Top")
        mid = make_profile("Mid", manager_id=top.id)
        low = make_profile("Low", manager_id=mid.id)
        h = Hierarchy([top, mid, low], parent_field="manager_id")
        assert h.is_parent(mid.id, low.id)
        assert not h.is_parent(top.id, low.id)

    def test_roots(self):
        root = make_role("Root")
        child = make_role("Child", root.id)
        dangling = make_role("Dangling", uuid.uuid4())
        assert [r.name for r in _role_hierarchy([root, child, dangling]).roots()] == ["Root", "Dangling"]


class TestHierarchyService:
    """보고 라인 서비스."""

    def _store(self):
        store = InMemoryStore()
        ceo = make_profile("Cara CEO", "cara@example.com")
        vp = make_profile("Vik VP", "vik@example.com", manager_id=ceo.id)
        rep = make_profile("Rae Rep", "rae@example.com", manager_id=vp.id)
        store.profiles.extend([ceo, vp, rep])
        return store, ceo, vp, rep

    async def test_manager_and_chain(self):
        store, ceo, vp, rep = self._store()
        manager = await hierarchy_service.get_manager(store, rep.id)
        assert manager.id == vp.id
        chain = await hierarchy_service.get_manager_chain(store, rep.id)
        assert [p.id for p in chain] == [vp.id, ceo.id]

    async def test_reports(self):
        store, ceo, vp, rep = self._store()
        assert [p.id for p in await hierarchy_service.get_direct_reports(store, ceo.id)] == [vp.id]
        assert [p.id for p in await hierarchy_service.get_all_reports_recursive(store, ceo.id)] == [vp.id, rep.id]

    async def test_is_user_manager(self):
        store, ceo, vp, rep = self._store()
        assert await hierarchy_service.is_user_manager(store, vp.id, rep.id)
        assert not await hierarchy_service.is_user_manager(store, ceo.id, rep.id)

    async def test_profile_failure_degrades_to_empty(self):
        store, ceo, vp, rep = self._store()
        store.fail.add("list_profiles")
        assert await hierarchy_service.get_manager_chain(store, rep.id) == []
        assert await hierarchy_service.get_manager(store, rep.id) is None

    async def test_roster_relation_is_case_insensitive(self):
        """명부의 manager_email과 관리자 프로필 이메일을 대소문자 무시 비교."""
        store, ceo, vp, rep = self._store()
        store.employees.append(make_employee("Rae Rep", "RAE@example.com", manager_email="Cara@Example.com"))
        assert await hierarchy_service.is_user_manager_by_roster(store, ceo.id, rep.id)
        assert not await hierarchy_service.is_user_manager_by_roster(store, vp.id, rep.id)

    async def test_roster_relation_without_roster_row(self):
        store, ceo, vp, rep = self._store()
        assert not await hierarchy_service.is_user_manager_by_roster(store, vp.id, rep.id)
