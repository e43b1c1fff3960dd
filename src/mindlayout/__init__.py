"""
mindlayout - Automatic Mind Map Layout

A Python library for editing mind map trees and laying them out
automatically: branches radiate left and right from the root, sibling
subtrees are kept apart and overlapping boxes are separated.

Example:
    >>> from mindlayout import MindMapSession
    >>> session = MindMapSession()
    >>> root = session.tree.root
    >>> a = session.add_child(root.id, "A")
    >>> b = session.add_child(root.id, "B")
    >>> session.positions()[a.id], session.positions()[b.id]
    ((320.0, 0.0), (-320.0, 0.0))

Outline Example:
    >>> from mindlayout import MindMapLayout, parse_outline
    >>> tree = parse_outline('''
    ... Main Idea
    ...   A
    ...     C
    ...   B
    ... ''')
    >>> result = MindMapLayout().layout(tree)
    >>> print(result.trace.summary())
"""

from .autosave import AutosaveTask
from .errors import (
    CorruptData,
    InvalidOperation,
    MindMapError,
    NodeNotFound,
    WriteError,
)
from .history import HistoryManager
from .layout import LayoutResult, MindMapLayout, NodeLayout
from .measure import FixedMeasurer, NodeSize, TextMeasurer
from .models import HistoryEntry, Node, NodeColor, Side, Viewport
from .overlap import OverlapResolver
from .parser import OutlineParser, ParseError, parse_outline, to_outline
from .session import MindMapSession
from .storage import JsonFileStorage, MemoryStorage, SqliteStorage
from .tracer import LayoutTrace, Resolution
from .tree import TreeStore

__version__ = "0.1.0"

__all__ = [
    # Main API
    "MindMapSession",
    # Tree
    "TreeStore",
    "Node",
    "NodeColor",
    "Side",
    # Layout
    "MindMapLayout",
    "LayoutResult",
    "NodeLayout",
    "OverlapResolver",
    "NodeSize",
    "FixedMeasurer",
    "TextMeasurer",
    # History
    "HistoryManager",
    "HistoryEntry",
    # Viewport
    "Viewport",
    # Persistence
    "MemoryStorage",
    "JsonFileStorage",
    "SqliteStorage",
    "AutosaveTask",
    # Outline
    "OutlineParser",
    "ParseError",
    "parse_outline",
    "to_outline",
    # Errors
    "MindMapError",
    "NodeNotFound",
    "InvalidOperation",
    "CorruptData",
    "WriteError",
    # Debug/Tracing
    "LayoutTrace",
    "Resolution",
]
