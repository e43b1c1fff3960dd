"""
Overlap resolution for mind map layout.

Directional placement is a local heuristic: boxes from unrelated branches
that share a column can still land on top of each other. The resolver
treats every pair of nodes as a candidate collision and separates
colliding pairs vertically, choosing a strategy from how the two nodes are
related:

1. parent and child: push the child away from its parent
2. siblings: spread both around their shared midpoint
3. more than one level apart: nudge the deeper node outward
4. anything else: push both apart symmetrically

Nodes only ever move along y, so the left/right side assigned during
placement is never changed here.

Resolution runs per level first (deepest level first), then across all
nodes, each phase bounded by an iteration cap. A final validation scan
reports any overlaps left; convergence is best effort, not guaranteed.
"""

import logging
from collections import defaultdict
from typing import Dict, List, Optional, Sequence, Tuple

from .measure import (
    DEFAULT_NODE_SIZE,
    MIN_NODE_SIZE,
    FixedMeasurer,
    Measurer,
    NodeSize,
    floor_size,
)
from .models import Node
from .tracer import (
    DISTANT_LEVELS,
    GENERAL,
    PARENT_CHILD,
    SIBLINGS,
    LayoutTrace,
    Resolution,
)
from .tree import TreeStore

logger = logging.getLogger(__name__)

HORIZONTAL_GAP = 20
VERTICAL_GAP = 20
PUSH_SLACK = 10
PARENT_PUSH_FACTOR = 1.5
LEVEL_ITERATIONS = 15
GLOBAL_ITERATIONS = 20


def _sign(value: float) -> int:
    if value > 0:
        return 1
    if value < 0:
        return -1
    return 0


def classify(a: Node, b: Node) -> str:
    """Return the relationship class of two nodes."""
    if a.parent == b.id or b.parent == a.id:
        return PARENT_CHILD
    if a.parent is not None and a.parent == b.parent:
        return SIBLINGS
    if abs(a.level - b.level) > 1:
        return DISTANT_LEVELS
    return GENERAL


class OverlapResolver:
    """
    Separates colliding node boxes after placement.

    Attributes:
        measurer: Source of the sample node size.
        horizontal_gap: Extra horizontal clearance beyond half a node width.
        vertical_gap: Extra vertical clearance beyond a node height.
        slack: Additional distance added by pushes so pairs settle clear.
        level_iterations: Iteration cap for each per-level pass.
        global_iterations: Iteration cap for the all-nodes pass.
    """

    def __init__(
        self,
        measurer: Optional[Measurer] = None,
        horizontal_gap: float = HORIZONTAL_GAP,
        vertical_gap: float = VERTICAL_GAP,
        slack: float = PUSH_SLACK,
        level_iterations: int = LEVEL_ITERATIONS,
        global_iterations: int = GLOBAL_ITERATIONS,
        min_size: NodeSize = MIN_NODE_SIZE,
    ):
        """
        Initialize the resolver.

        Args:
            measurer: Measurer used to size the sample node. Defaults to a
                fixed estimate of DEFAULT_NODE_SIZE.
            horizontal_gap: Extra horizontal clearance between boxes.
            vertical_gap: Extra vertical clearance between boxes.
            slack: Extra distance added on top of the required clearance.
            level_iterations: Iteration cap for each level group.
            global_iterations: Iteration cap for the global pass.
            min_size: Floor applied to the measured size.
        """
        self.measurer = measurer or FixedMeasurer(DEFAULT_NODE_SIZE)
        self.horizontal_gap = horizontal_gap
        self.vertical_gap = vertical_gap
        self.slack = slack
        self.level_iterations = level_iterations
        self.global_iterations = global_iterations
        self.min_size = min_size

    def sample_size(self, tree: TreeStore) -> NodeSize:
        """Measure one node of the tree and clamp it to the floor."""
        sample = tree.root
        if sample is None:
            return self.min_size
        return floor_size(self.measurer.measure(sample.text), self.min_size)

    def clearances(self, size: NodeSize) -> Tuple[float, float]:
        """Return the (horizontal, vertical) distances two centers need."""
        return size.width / 2 + self.horizontal_gap, size.height + self.vertical_gap

    def collides(self, a: Node, b: Node, size: NodeSize) -> bool:
        x_clear, y_clear = self.clearances(size)
        return abs(a.x - b.x) < x_clear and abs(a.y - b.y) < y_clear

    def find_overlaps(
        self, nodes: Sequence[Node], size: NodeSize
    ) -> List[Tuple[int, int]]:
        """Return id pairs of every colliding pair, in iteration order."""
        overlaps = []
        for i, a in enumerate(nodes):
            for b in nodes[i + 1 :]:
                if self.collides(a, b, size):
                    overlaps.append((a.id, b.id))
        return overlaps

    def resolve(
        self, tree: TreeStore, trace: Optional[LayoutTrace] = None
    ) -> LayoutTrace:
        """
        Separate overlapping nodes of an already placed tree in place.

        Args:
            tree: Tree whose node coordinates are adjusted.
            trace: Trace to record into (a new one is created if omitted).

        Returns:
            The trace, with per-phase iteration counts and residual overlaps.
        """
        if trace is None:
            trace = LayoutTrace()

        nodes = list(tree)
        if len(nodes) < 2:
            return trace

        size = self.sample_size(tree)
        by_level: Dict[int, List[Node]] = defaultdict(list)
        for node in nodes:
            by_level[node.level].append(node)

        for level in sorted(by_level, reverse=True):
            trace.level_iterations[level] = self._resolve_group(
                by_level[level], size, "level", self.level_iterations, trace
            )
        trace.add_stage("level_resolution", iterations=dict(trace.level_iterations))

        trace.global_iterations = self._resolve_group(
            nodes, size, "global", self.global_iterations, trace
        )
        trace.add_stage("global_resolution", iterations=trace.global_iterations)

        trace.residual_overlaps = self.find_overlaps(nodes, size)
        trace.add_stage("validation", residual=len(trace.residual_overlaps))
        if trace.residual_overlaps:
            logger.warning(
                "Layout left %d overlapping node pairs after %d global iterations",
                len(trace.residual_overlaps),
                trace.global_iterations,
            )
        return trace

    def _resolve_group(
        self,
        nodes: List[Node],
        size: NodeSize,
        phase: str,
        max_iterations: int,
        trace: LayoutTrace,
    ) -> int:
        """
        Run pairwise passes over a group until a pass finds no collision.

        Returns:
            Number of passes run.
        """
        if len(nodes) < 2:
            return 0

        for iteration in range(max_iterations):
            found = False
            for i, a in enumerate(nodes):
                for b in nodes[i + 1 :]:
                    if self.collides(a, b, size):
                        found = True
                        trace.record(self.resolve_pair(a, b, size, phase, iteration))
            if not found:
                return iteration + 1

        logger.debug("%s pass hit the %d iteration cap", phase, max_iterations)
        return max_iterations

    def resolve_pair(
        self,
        a: Node,
        b: Node,
        size: NodeSize,
        phase: str = "global",
        iteration: int = 0,
    ) -> Resolution:
        """
        Move one or both nodes of a colliding pair apart along y.

        When both nodes share a y coordinate, a is treated as the upper one.

        Returns:
            A Resolution describing the shifts applied.
        """
        _, y_clear = self.clearances(size)
        remaining = y_clear - abs(a.y - b.y)
        kind = classify(a, b)
        shifts: Dict[int, float] = {}

        if kind == PARENT_CHILD:
            parent, child = (a, b) if b.parent == a.id else (b, a)
            direction = _sign(child.y - parent.y) or _sign(child.y) or 1
            shifts[child.id] = direction * remaining * PARENT_PUSH_FACTOR

        elif kind == DISTANT_LEVELS:
            deeper, other = (a, b) if a.level > b.level else (b, a)
            direction = _sign(deeper.y) or _sign(deeper.y - other.y) or 1
            shifts[deeper.id] = direction * (remaining + self.slack)

        else:
            upper, lower = (a, b) if a.y <= b.y else (b, a)
            if kind == SIBLINGS:
                middle = (a.y + b.y) / 2
                half = (y_clear + self.slack) / 2
                shifts[upper.id] = (middle - half) - upper.y
                shifts[lower.id] = (middle + half) - lower.y
            else:
                push = (remaining + self.slack) / 2
                shifts[upper.id] = -push
                shifts[lower.id] = push

        for node in (a, b):
            if node.id in shifts:
                node.y += shifts[node.id]

        return Resolution(
            kind=kind,
            first=a.id,
            second=b.id,
            phase=phase,
            iteration=iteration,
            shifts=shifts,
        )
