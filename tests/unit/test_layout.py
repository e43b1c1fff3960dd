"""Unit tests for the layout module."""

import random

import pytest

from mindlayout.layout import LayoutResult, MindMapLayout, NodeLayout
from mindlayout.measure import FixedMeasurer, NodeSize
from mindlayout.models import Side
from mindlayout.overlap import OverlapResolver
from mindlayout.tree import TreeStore


def _random_tree(seed, max_depth=5, max_nodes=150):
    """
    Random tree up to max_depth levels below the root.

    Up to 8 children per node on the first two levels, up to 3 below.
    """
    rng = random.Random(seed)
    tree = TreeStore()
    queue = [tree.create_root()]
    while queue:
        node = queue.pop(0)
        if node.level >= max_depth:
            continue
        fan_out = 8 if node.level < 2 else 3
        for _ in range(rng.randint(0, fan_out)):
            if len(tree) >= max_nodes:
                return tree
            queue.append(tree.add_child(node.id))
    return tree


class TestNodeLayout:
    """Tests for NodeLayout dataclass."""

    def test_node_layout_defaults(self):
        node = NodeLayout(node_id=1)
        assert node.level == 0
        assert node.side is None
        assert (node.x, node.y) == (0.0, 0.0)


class TestLayoutResult:
    """Tests for LayoutResult dataclass."""

    def test_layout_result_defaults(self):
        result = LayoutResult()
        assert result.nodes == {}
        assert result.levels == []
        assert result.positions == {}
        assert result.trace.resolutions == []


class TestDirectionalPlacement:
    """Tests for the placement phase."""

    def test_empty_tree(self, layout_engine, tree):
        result = layout_engine.layout(tree)
        assert result.nodes == {}

    def test_root_only(self, layout_engine, tree):
        root = tree.create_root()
        root.x, root.y = 55.0, -12.0

        result = layout_engine.layout(tree)

        assert result.positions == {root.id: (0.0, 0.0)}
        assert result.nodes[root.id].side is None
        assert result.trace.resolutions == []

    def test_scenario_positions(self, layout_engine, scenario_tree):
        result = layout_engine.layout(scenario_tree)

        assert result.positions == {
            1: (0.0, 0.0),
            2: (320.0, 0.0),
            3: (-320.0, 0.0),
            4: (570.0, 0.0),
        }
        assert result.levels == [[1], [2, 3], [4]]

    def test_coordinates_written_to_nodes(self, layout_engine, scenario_tree):
        layout_engine.layout(scenario_tree)
        node = scenario_tree.get(4)
        assert (node.x, node.y) == (570.0, 0.0)

    def test_root_children_alternate(self, layout_engine, tree):
        root = tree.create_root()
        ids = [tree.add_child(root.id, str(i)).id for i in range(4)]

        result = layout_engine.layout(tree)

        # 1st and 3rd go right, 2nd and 4th go left, each side centered
        assert result.positions[ids[0]] == (320.0, -60.0)
        assert result.positions[ids[2]] == (320.0, 60.0)
        assert result.positions[ids[1]] == (-320.0, -60.0)
        assert result.positions[ids[3]] == (-320.0, 60.0)
        assert result.nodes[ids[0]].side is Side.RIGHT
        assert result.nodes[ids[1]].side is Side.LEFT

    def test_single_child_centered_on_parent(self, layout_engine, tree):
        root = tree.create_root()
        first = tree.add_child(root.id)
        second = tree.add_child(root.id)
        third = tree.add_child(root.id)
        child = tree.add_child(third.id)

        layout_engine.layout(tree)

        assert third.y == 60.0
        assert child.y == third.y
        assert child.x == third.x + 250
        assert first.y == -60.0
        assert second.x == -320.0

    def test_left_branch_grows_left(self, layout_engine, scenario_tree):
        grandchild = scenario_tree.add_child(3, "B1")
        great = scenario_tree.add_child(grandchild.id, "B1a")

        layout_engine.layout(scenario_tree)

        assert grandchild.x == -570.0
        assert great.x == -820.0

    def test_spacing_widens_with_subtree_fan_out(self, layout_engine, tree):
        root = tree.create_root()
        a = tree.add_child(root.id, "A")
        p = tree.add_child(a.id, "P")
        q = tree.add_child(a.id, "Q")
        p_children = [tree.add_child(p.id, f"P{i}") for i in range(3)]
        q_child = tree.add_child(q.id, "Q0")

        layout_engine.layout(tree)

        # P has three children, so A's children are three steps apart
        assert (p.x, p.y) == (570.0, -150.0)
        assert (q.x, q.y) == (570.0, 150.0)
        assert [(n.x, n.y) for n in p_children] == [
            (820.0, -250.0),
            (820.0, -150.0),
            (820.0, -50.0),
        ]
        assert (q_child.x, q_child.y) == (820.0, 150.0)

    def test_spacing_linear_in_fan_out(self, layout_engine, tree):
        root = tree.create_root()
        a = tree.add_child(root.id, "A")
        b0 = tree.add_child(a.id, "B0")
        b1 = tree.add_child(a.id, "B1")
        for i in range(8):
            child = tree.add_child(b0.id, f"C{i}")
            for j in range(8):
                tree.add_child(child.id, f"C{i}.{j}")

        layout_engine.layout(tree)

        # B0 has eight children; the fan-out further down does not count
        assert b1.y - b0.y == 100 * 8
        assert (b0.y, b1.y) == (-400.0, 400.0)

    def test_subtrees_pushed_apart(self, layout_engine, tree):
        root = tree.create_root()
        a = tree.add_child(root.id, "A")
        p = tree.add_child(a.id, "P")
        q = tree.add_child(a.id, "Q")
        p0 = tree.add_child(p.id, "P0")
        q0 = tree.add_child(q.id, "Q0")
        p_leaves = [tree.add_child(p0.id) for _ in range(3)]
        q_leaves = [tree.add_child(q0.id) for _ in range(3)]

        layout_engine.layout(tree)

        # One step would do for P and Q, but their grandchildren need room
        assert (p.y, q.y) == (-150.0, 150.0)
        assert [n.y for n in p_leaves + q_leaves] == [
            -250.0,
            -150.0,
            -50.0,
            50.0,
            150.0,
            250.0,
        ]

    def test_root_children_make_room_for_subtrees(self, layout_engine, tree):
        root = tree.create_root()
        first = tree.add_child(root.id)
        tree.add_child(root.id)
        third = tree.add_child(root.id)
        leaves = [tree.add_child(parent.id) for parent in (first, first, third, third)]

        layout_engine.layout(tree)

        assert (first.y, third.y) == (-100.0, 100.0)
        assert [n.y for n in leaves] == [-150.0, -50.0, 50.0, 150.0]

    def test_custom_distances(self, scenario_tree):
        engine = MindMapLayout(root_distance=400, branch_distance=200)
        positions = engine.positions_for(scenario_tree)
        assert positions[2] == (400.0, 0.0)
        assert positions[3] == (-400.0, 0.0)
        assert positions[4] == (600.0, 0.0)


class TestLayoutProperties:
    """Tests for properties every layout must satisfy."""

    def test_deterministic(self, layout_engine, two_branch_tree):
        first = layout_engine.layout(two_branch_tree).positions
        second = layout_engine.layout(two_branch_tree).positions
        assert first == second

    def test_deterministic_across_copies(self, layout_engine, two_branch_tree):
        copy = TreeStore.deserialize(two_branch_tree.serialize())
        # Stale coordinates must not influence the result
        for node in copy:
            node.x, node.y = 999.0, -999.0
        assert (
            layout_engine.positions_for(copy)
            == layout_engine.positions_for(two_branch_tree)
        )

    def test_branch_side_inherited(self, layout_engine, deep_tree):
        result = layout_engine.layout(deep_tree)
        root = deep_tree.root

        for node in deep_tree:
            if node.id == root.id:
                continue
            branch = node
            while branch.parent != root.id:
                branch = deep_tree.get(branch.parent)
            side = result.nodes[node.id].side
            assert side is result.nodes[branch.id].side
            assert (node.x > 0) == (side is Side.RIGHT)

    def test_resolution_can_be_disabled(self, two_branch_tree):
        tall = OverlapResolver(measurer=FixedMeasurer(NodeSize(180, 150)))
        engine = MindMapLayout(resolver=tall, resolve_overlaps=False)
        result = engine.layout(two_branch_tree)

        assert result.trace.resolutions == []
        assert [two_branch_tree.get(i).y for i in (5, 6, 7, 8)] == [
            -150.0,
            -50.0,
            50.0,
            150.0,
        ]

    def test_tall_nodes_need_resolution(self, two_branch_tree):
        tall = OverlapResolver(measurer=FixedMeasurer(NodeSize(180, 150)))
        result = MindMapLayout(resolver=tall).layout(two_branch_tree)
        assert result.trace.resolutions

    @pytest.mark.parametrize("seed", range(30))
    def test_random_trees_have_no_overlaps(self, layout_engine, seed):
        tree = _random_tree(seed)

        result = layout_engine.layout(tree)

        resolver = layout_engine.resolver
        size = resolver.sample_size(tree)
        assert result.trace.converged
        assert result.trace.resolutions == []
        assert resolver.find_overlaps(list(tree), size) == []

    def test_trace_records_placement(self, layout_engine, scenario_tree):
        trace = layout_engine.layout(scenario_tree).trace
        placement = trace.stages[0]
        assert placement.name == "placement"
        assert placement.data["right"] == 2
        assert placement.data["left"] == 1
