"""
Data models for the mind map core.

This module contains the dataclasses shared by the tree store, the layout
engine, the history manager and the persistence layer. They carry only
structural and geometric data; nothing here knows how a node is drawn.

Classes:
    NodeColor: Named color tags a non-root node can carry.
    Side: Horizontal side of the root a branch is laid out on.
    Node: A single labeled box of the mind map.
    Viewport: Pan offset and zoom factor mapping model to screen space.
    HistoryEntry: A frozen snapshot of tree state captured for undo.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

# Zoom limits for Viewport.scale
MIN_SCALE = 0.1
MAX_SCALE = 3.0

ROOT_TEXT = "Main Idea"
PLACEHOLDER_TEXT = "Node"


class NodeColor(Enum):
    """Color tags available from the node color menu."""

    WHITE = "white"
    RED = "red"
    PINK = "pink"
    PURPLE = "purple"
    BLUE = "blue"
    CYAN = "cyan"
    GREEN = "green"
    YELLOW = "yellow"
    ORANGE = "orange"
    BROWN = "brown"


DEFAULT_COLOR = NodeColor.WHITE


class Side(Enum):
    """Side of the root a branch grows towards (value is the x sign)."""

    RIGHT = 1
    LEFT = -1


@dataclass
class Node:
    """
    A labeled node of the mind map.

    Attributes:
        id: Unique integer id, never reused within a session.
        text: Display label.
        level: Depth from the root (root = 0).
        parent: Id of the parent node, None only for the root.
        children: Child ids in insertion (display) order.
        x: Model-space x coordinate of the node center.
        y: Model-space y coordinate of the node center.
        color: Color tag, None only for the root.
    """

    id: int
    text: str = PLACEHOLDER_TEXT
    level: int = 0
    parent: Optional[int] = None
    children: List[int] = field(default_factory=list)
    x: float = 0.0
    y: float = 0.0
    color: Optional[NodeColor] = None

    @property
    def is_root(self) -> bool:
        return self.parent is None and self.level == 0

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-compatible representation."""
        return {
            "id": self.id,
            "text": self.text,
            "level": self.level,
            "parent": self.parent,
            "children": list(self.children),
            "x": self.x,
            "y": self.y,
            "color": self.color.value if self.color is not None else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Node":
        """
        Build a node from its dict form.

        Raises:
            KeyError, TypeError, ValueError: If a field is missing or malformed.
        """
        color = data.get("color")
        parent = data.get("parent")
        return cls(
            id=int(data["id"]),
            text=str(data["text"]),
            level=int(data["level"]),
            parent=int(parent) if parent is not None else None,
            children=[int(c) for c in data.get("children", [])],
            x=float(data.get("x", 0.0)),
            y=float(data.get("y", 0.0)),
            color=NodeColor(color) if color is not None else None,
        )


@dataclass
class Viewport:
    """Pan offset (model units) and zoom factor."""

    x: float = 0.0
    y: float = 0.0
    scale: float = 1.0

    def __post_init__(self):
        self.scale = max(MIN_SCALE, min(MAX_SCALE, self.scale))

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "scale": self.scale}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Viewport":
        if not data:
            return cls()
        return cls(
            x=float(data.get("x", 0.0)),
            y=float(data.get("y", 0.0)),
            scale=float(data.get("scale", 1.0)),
        )


@dataclass(frozen=True)
class HistoryEntry:
    """
    Snapshot of tree state taken before a mutating command.

    The node table is a deep copy owned by the entry; callers restoring
    from it must copy again rather than adopt the dict.

    Attributes:
        nodes: Deep copy of the id -> Node table, insertion order preserved.
        node_counter: Value of the id counter at snapshot time.
        selected_id: Node selected when the snapshot was taken.
        timestamp: Wall-clock time of the snapshot (seconds since epoch).
    """

    nodes: Dict[int, Node]
    node_counter: int
    selected_id: Optional[int] = None
    timestamp: float = 0.0
