"""조직도 레이아웃 및 노드/간선 변환 테스트."""

import uuid

import pytest

from app.schemas.role import RoleWithDetails
from app.services.role_service import roles_to_flow_data
from app.utils.org_chart import layout_tree


def role(name: str, parent=None, **fields) -> RoleWithDetails:
    return RoleWithDetails(id=fields.pop("id", uuid.uuid4()), name=name, accountable_to_role_id=parent, **fields)


class TestLayoutTree:
    """좌표 계산."""

    def test_parent_centred_over_children(self):
        positions = layout_tree(["root", "a", "b"], [("root", "a"), ("root", "b")])
        assert positions["a"] == (40, 300)
        assert positions["b"] == (380, 300)
        assert positions["root"] == (210, 40)

    def test_separate_roots_side_by_side(self):
        positions = layout_tree(["x", "y"], [])
        assert positions["x"] == (40, 40)
        assert positions["y"] == (380, 40)

    def test_deterministic(self):
        args = (["r", "c1", "c2", "g"], [("r", "c1"), ("r", "c2"), ("c1", "g")])
        assert layout_tree(*args) == layout_tree(*args)

    def test_cycle_still_places_every_node(self):
        """순환만으로 이루어진 노드도 좌표를 받는다."""
        positions = layout_tree(["a", "b"], [("a", "b"), ("b", "a")])
        assert set(positions) == {"a", "b"}

    def test_unknown_edges_ignored(self):
        positions = layout_tree(["a"], [("ghost", "a")])
        assert positions["a"] == (40, 40)


class TestRolesToFlowData:
    """역할 → 노드/간선."""

    def test_nodes_and_edges(self):
        ceo = role("CEO")
        cto = role("CTO", ceo.id)
        flow = roles_to_flow_data([ceo, cto])

        assert [node.id for node in flow.nodes] == [str(ceo.id), str(cto.id)]
        assert all(node.type == "orgChartNode" for node in flow.nodes)
        assert len(flow.edges) == 1
        edge = flow.edges[0]
        assert edge.id == f"{ceo.id}-{cto.id}"
        assert (edge.source, edge.target) == (str(ceo.id), str(cto.id))
        assert edge.type == "smoothstep"

    def test_child_below_parent(self):
        ceo = role("CEO")
        cto = role("CTO", ceo.id)
        flow = roles_to_flow_data([ceo, cto])
        by_id = {node.id: node.position for node in flow.nodes}
        assert by_id[str(cto.id)].y > by_id[str(ceo.id)].y
        assert by_id[str(cto.id)].x == pytest.approx(by_id[str(ceo.id)].x)

    def test_dangling_parent_has_no_edge(self):
        """상위 역할이 목록에 없으면 간선 없이 루트로 배치."""
        lonely = role("Lonely", uuid.uuid4())
        flow = roles_to_flow_data([lonely])
        assert flow.edges == []
        assert flow.nodes[0].position.y == 40

    def test_node_carries_role_details(self):
        ceo = role("CEO", employee_count=3)
        flow = roles_to_flow_data([ceo])
        assert flow.nodes[0].data.role.employee_count == 3
