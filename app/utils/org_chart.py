"""조직도 레이아웃 — 역할 포레스트를 계층형 트리 좌표로 배치.

Org chart layout — places the role forest as a layered top-to-bottom tree.

깊이별 랭크(위→아래), 고정 노드 크기, 고정 간격을 사용하는 순수 함수입니다.
같은 입력 포레스트에 대해 항상 같은 좌표를 반환합니다.
Pure and deterministic: rank by depth, fixed node size, fixed separations.
Children are clustered under their parent; a parent is centred over the span
of its children. Positions are returned as top-left corners (the layout works
in centre coordinates and is offset by half the node size).
"""

from collections.abc import Hashable, Iterable, Sequence

# 노드 크기 및 간격 상수 — Node dimensions and separation constants
NODE_WIDTH: int = 280
NODE_HEIGHT: int = 140
NODE_SEPARATION: int = 60  # 같은 랭크 내 노드 간 가로 간격 (Horizontal spacing within a rank)
RANK_SEPARATION: int = 120  # 랭크 간 세로 간격 (Vertical spacing between ranks)
MARGIN_X: int = 40
MARGIN_Y: int = 40


def layout_tree(
    node_ids: Sequence[Hashable],
    edges: Iterable[tuple[Hashable, Hashable]],
) -> dict[Hashable, tuple[float, float]]:
    """노드와 (부모, 자식) 간선으로 좌상단 좌표를 계산합니다.

    Compute top-left positions for a forest given as nodes plus
    (source=parent, target=child) edges.

    Edges whose endpoints are unknown are ignored. A node reachable from no
    root (every member of a corrupt cycle) becomes an extra root in input
    order, which breaks the cycle at that node.

    Args:
        node_ids: 노드 ID 목록, 순서가 형제 순서를 결정 (Node ids; order decides sibling order)
        edges: (부모 ID, 자식 ID) 간선 (Parent → child edges)

    Returns:
        dict: 노드 ID → (x, y) 좌상단 좌표 (Node id → top-left position)
    """
    known: set[Hashable] = set(node_ids)
    order: dict[Hashable, int] = {node_id: index for index, node_id in enumerate(node_ids)}
    children: dict[Hashable, list[Hashable]] = {node_id: [] for node_id in node_ids}
    has_parent: set[Hashable] = set()

    for source, target in edges:
        if source not in known or target not in known or source == target:
            continue
        # 부모가 여럿이면 첫 번째 간선만 트리 간선으로 사용 (First parent wins)
        if target in has_parent:
            continue
        children[source].append(target)
        has_parent.add(target)

    for siblings in children.values():
        siblings.sort(key=order.__getitem__)

    centers: dict[Hashable, tuple[float, float]] = {}
    visited: set[Hashable] = set()
    cursor: float = MARGIN_X

    def place(node_id: Hashable, depth: int) -> float:
        nonlocal cursor
        visited.add(node_id)
        child_xs: list[float] = [
            place(child, depth + 1) for child in children[node_id] if child not in visited
        ]

        if child_xs:
            x: float = (child_xs[0] + child_xs[-1]) / 2
        else:
            x = cursor + NODE_WIDTH / 2
            cursor += NODE_WIDTH + NODE_SEPARATION

        y: float = MARGIN_Y + depth * (NODE_HEIGHT + RANK_SEPARATION) + NODE_HEIGHT / 2
        centers[node_id] = (x, y)
        return x

    roots: list[Hashable] = [node_id for node_id in node_ids if node_id not in has_parent]
    for root in roots:
        if root not in visited:
            place(root, 0)

    # 순환에만 속한 노드 — Nodes only reachable through a cycle
    for node_id in node_ids:
        if node_id not in visited:
            place(node_id, 0)

    return {
        node_id: (x - NODE_WIDTH / 2, y - NODE_HEIGHT / 2)
        for node_id, (x, y) in centers.items()
    }
