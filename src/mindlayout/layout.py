"""
Layout module computing mind map node positions.

Layout runs in two phases:
- Directional placement: root children alternate right/left, every branch
  keeps growing towards the side its first ancestor below the root took,
  children stack vertically centered on their parent. Sibling spacing
  grows linearly with the largest fan-out among the siblings, and sibling
  subtrees are pushed apart wherever they would share a row.
- Overlap resolution: see overlap.OverlapResolver.

Uses networkx for:
- Pre-order traversal (a parent is always placed before its children)
- Post-order traversal when measuring subtree contours
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import networkx as nx

from .models import Node, Side
from .overlap import OverlapResolver
from .tracer import LayoutTrace
from .tree import TreeStore

logger = logging.getLogger(__name__)

# Placement of the root's direct children
ROOT_DISTANCE = 320
ROOT_MIN_SPACING = 120
ROOT_MARGIN = 40

# Placement of deeper branches
BRANCH_DISTANCE = 250
BRANCH_MIN_SPACING = 100
BRANCH_MARGIN = 30

ESTIMATED_NODE_HEIGHT = 60


@dataclass
class NodeLayout:
    """Represents a node's layout information."""

    node_id: int
    level: int = 0
    side: Optional[Side] = None  # None only for the root
    x: float = 0.0
    y: float = 0.0


@dataclass
class LayoutResult:
    """Result of the layout algorithm."""

    nodes: Dict[int, NodeLayout] = field(default_factory=dict)
    levels: List[List[int]] = field(default_factory=list)
    trace: LayoutTrace = field(default_factory=LayoutTrace)

    @property
    def positions(self) -> Dict[int, Tuple[float, float]]:
        return {node_id: (n.x, n.y) for node_id, n in self.nodes.items()}


class MindMapLayout:
    """
    Automatic mind map layout.

    Positions are a function of the tree shape and insertion order alone,
    so laying out the same tree twice yields identical coordinates.
    """

    def __init__(
        self,
        root_distance: float = ROOT_DISTANCE,
        root_spacing: float = ROOT_MIN_SPACING,
        root_margin: float = ROOT_MARGIN,
        branch_distance: float = BRANCH_DISTANCE,
        branch_spacing: float = BRANCH_MIN_SPACING,
        branch_margin: float = BRANCH_MARGIN,
        node_height: float = ESTIMATED_NODE_HEIGHT,
        resolver: Optional[OverlapResolver] = None,
        resolve_overlaps: bool = True,
    ):
        """
        Initialize the layout engine.

        Args:
            root_distance: Horizontal offset of the root's children.
            root_spacing: Minimum vertical spacing between root children.
            root_margin: Margin added to the node height for root children.
            branch_distance: Horizontal step for every deeper level.
            branch_spacing: Minimum vertical spacing between branch children.
            branch_margin: Margin added to the node height for branch children.
            node_height: Estimated node height used for spacing.
            resolver: Overlap resolver (a default one is created if omitted).
            resolve_overlaps: Whether to run overlap resolution at all.
        """
        self.root_distance = root_distance
        self.branch_distance = branch_distance
        self.root_step = max(root_spacing, node_height + root_margin)
        self.branch_step = max(branch_spacing, node_height + branch_margin)
        self.resolver = resolver or OverlapResolver()
        self.resolve_overlaps = resolve_overlaps

    def layout(self, tree: TreeStore) -> LayoutResult:
        """
        Compute and store positions for every node of the tree.

        Node x/y attributes are updated in place.

        Args:
            tree: The tree to lay out.

        Returns:
            LayoutResult with per-node positions, sides and the trace.
        """
        result = LayoutResult()
        root = tree.root
        if root is None:
            return result

        root.x, root.y = 0.0, 0.0
        graph = tree.to_networkx()
        offsets = self._subtree_offsets(tree, graph, root)

        # Root children alternate right/left by creation order
        sides: Dict[int, Optional[Side]] = {root.id: None}
        for index, child_id in enumerate(root.children):
            sides[child_id] = Side.RIGHT if index % 2 == 0 else Side.LEFT

        for node_id in nx.dfs_preorder_nodes(graph, root.id):
            if node_id == root.id:
                continue
            node = tree.get(node_id)
            parent = tree.get(node.parent)
            if parent.id == root.id:
                distance = self.root_distance
            else:
                distance = self.branch_distance
                sides[node_id] = sides[parent.id]
            node.x = parent.x + distance * sides[node_id].value
            node.y = parent.y + offsets[node_id]

        result.trace.add_stage(
            "placement",
            nodes=len(tree),
            right=sum(1 for s in sides.values() if s is Side.RIGHT),
            left=sum(1 for s in sides.values() if s is Side.LEFT),
        )

        if self.resolve_overlaps and len(tree) > 1:
            self.resolver.resolve(tree, result.trace)

        for node in tree:
            result.nodes[node.id] = NodeLayout(
                node_id=node.id,
                level=node.level,
                side=sides.get(node.id),
                x=node.x,
                y=node.y,
            )
            while len(result.levels) <= node.level:
                result.levels.append([])
            result.levels[node.level].append(node.id)

        logger.debug("Laid out %d nodes", len(tree))
        return result

    def positions_for(self, tree: TreeStore) -> Dict[int, Tuple[float, float]]:
        """Lay out the tree and return id -> (x, y)."""
        return self.layout(tree).positions

    def _subtree_offsets(
        self, tree: TreeStore, graph: nx.DiGraph, root: Node
    ) -> Dict[int, float]:
        """
        Compute every node's vertical offset from its parent.

        Subtrees are sized bottom-up: each node gets a contour, the (top,
        bottom) extent of its subtree at every level below it, relative to
        the node itself. Siblings are then stacked using those contours, so
        neighbouring subtrees never share a row in any column.
        """
        offsets: Dict[int, float] = {root.id: 0.0}
        contours: Dict[int, List[Tuple[float, float]]] = {}

        for node_id in nx.dfs_postorder_nodes(graph, root.id):
            node = tree.get(node_id)
            children = [tree.get(child_id) for child_id in node.children]
            if node_id == root.id:
                # Each side of the root is stacked on its own
                for group in (children[0::2], children[1::2]):
                    self._stack(group, self.root_step, contours, offsets)
                continue

            contour = [(0.0, 0.0)]
            if children:
                spacing = self._branch_spacing(children)
                contour.extend(self._stack(children, spacing, contours, offsets))
            contours[node_id] = contour

        return offsets

    def _branch_spacing(self, children: List[Node]) -> float:
        """Child spacing grows linearly with the largest fan-out among them."""
        widest = max(len(child.children) for child in children) or 1
        return self.branch_step * widest

    def _stack(
        self,
        children: List[Node],
        spacing: float,
        contours: Dict[int, List[Tuple[float, float]]],
        offsets: Dict[int, float],
    ) -> List[Tuple[float, float]]:
        """
        Stack child subtrees top to bottom and center them on zero.

        Consecutive children are at least spacing apart. A child moves
        further down when any level of its subtree would come closer than
        one branch step to the subtrees already stacked above it.

        Returns:
            The merged (top, bottom) extent of the children per level.
        """
        merged: List[Tuple[float, float]] = []
        placed: List[float] = []
        for child in children:
            contour = contours[child.id]
            offset = placed[-1] + spacing if placed else 0.0
            for (_, bottom), (top, _) in zip(merged, contour):
                offset = max(offset, bottom - top + self.branch_step)
            placed.append(offset)

            for depth, (top, bottom) in enumerate(contour):
                if depth < len(merged):
                    merged[depth] = (merged[depth][0], offset + bottom)
                else:
                    merged.append((offset + top, offset + bottom))

        if not placed:
            return merged
        shift = (placed[0] + placed[-1]) / 2
        for child, offset in zip(children, placed):
            offsets[child.id] = offset - shift
        return [(top - shift, bottom - shift) for top, bottom in merged]
