"""
Layout tracing for mindlayout.

This module provides data structures for capturing what the layout engine
did during one pass. Every layout run produces a LayoutTrace; it records
the pipeline stages, every overlap resolution applied by the resolver, and
the overlaps still present after the iteration budget ran out.

This is primarily useful for:
1. Debugging layout issues (understanding why a node ended up where it did)
2. Reporting residual overlaps without failing the pass
3. Writing targeted tests (verifying specific resolution decisions)

Usage:
    >>> result = MindMapLayout().layout(tree)
    >>> print(result.trace.summary())
    >>> result.trace.resolutions_for(4)
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

# Relationship classes, in resolution precedence order
PARENT_CHILD = "parent_child"
SIBLINGS = "siblings"
DISTANT_LEVELS = "distant_levels"
GENERAL = "general"


@dataclass
class Resolution:
    """
    Record of a single overlap resolution.

    Attributes:
        kind: Relationship class that selected the strategy.
        first: Id of the first node of the colliding pair.
        second: Id of the second node of the colliding pair.
        phase: "level" or "global".
        iteration: Iteration index inside the phase (0-based).
        shifts: Vertical shift applied per moved node id.
    """

    kind: str
    first: int
    second: int
    phase: str
    iteration: int
    shifts: Dict[int, float] = field(default_factory=dict)

    def __str__(self) -> str:
        moves = ", ".join(f"{nid}:{dy:+.1f}" for nid, dy in self.shifts.items())
        return (
            f"[{self.phase}#{self.iteration}] {self.kind} "
            f"({self.first}, {self.second}) -> {moves}"
        )


@dataclass
class LayoutStage:
    """
    Snapshot of data at a layout stage.

    Attributes:
        name: Stage name (e.g. "placement", "level_resolution").
        data: Dictionary of relevant data at this stage.
    """

    name: str
    data: Dict[str, Any]

    def __str__(self) -> str:
        lines = [f"=== Stage: {self.name} ==="]
        for key, value in self.data.items():
            str_val = str(value)
            if len(str_val) > 100:
                str_val = str_val[:100] + "..."
            lines.append(f"  {key}: {str_val}")
        return "\n".join(lines)


@dataclass
class LayoutTrace:
    """
    Complete trace of one layout pass.

    Attributes:
        stages: Pipeline stages with their data.
        resolutions: Every resolution applied, in order.
        level_iterations: Iterations used per level during the level phase.
        global_iterations: Iterations used by the global phase.
        residual_overlaps: Pairs still colliding after validation.
    """

    stages: List[LayoutStage] = field(default_factory=list)
    resolutions: List[Resolution] = field(default_factory=list)
    level_iterations: Dict[int, int] = field(default_factory=dict)
    global_iterations: int = 0
    residual_overlaps: List[Tuple[int, int]] = field(default_factory=list)

    @property
    def converged(self) -> bool:
        return not self.residual_overlaps

    def add_stage(self, name: str, **data: Any) -> None:
        self.stages.append(LayoutStage(name=name, data=data))

    def record(self, resolution: Resolution) -> None:
        self.resolutions.append(resolution)

    def resolutions_for(self, node_id: int) -> List[Resolution]:
        """Return resolutions that involved node_id."""
        return [r for r in self.resolutions if node_id in (r.first, r.second)]

    def count_by_kind(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for resolution in self.resolutions:
            counts[resolution.kind] = counts.get(resolution.kind, 0) + 1
        return counts

    def summary(self) -> str:
        lines = ["Layout trace:"]
        lines.append(f"  stages: {', '.join(s.name for s in self.stages)}")
        lines.append(f"  resolutions: {len(self.resolutions)}")
        for kind, count in sorted(self.count_by_kind().items()):
            lines.append(f"    {kind}: {count}")
        levels = ", ".join(
            f"L{level}={n}" for level, n in sorted(self.level_iterations.items())
        )
        lines.append(f"  level iterations: {levels or '-'}")
        lines.append(f"  global iterations: {self.global_iterations}")
        if self.residual_overlaps:
            lines.append(f"  residual overlaps: {len(self.residual_overlaps)}")
            for a, b in self.residual_overlaps[:10]:
                lines.append(f"    {a} <-> {b}")
        else:
            lines.append("  residual overlaps: none")
        return "\n".join(lines)
