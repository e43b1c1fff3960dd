"""Undo history of full-tree snapshots."""

import logging
import time
from typing import Callable, List, Optional

from .models import HistoryEntry
from .tree import TreeStore

logger = logging.getLogger(__name__)

MAX_HISTORY = 50


class HistoryManager:
    """
    Bounded stack of snapshots taken before each mutating command.

    Snapshots are whole-tree deep copies, not diffs. When the stack is full
    the oldest entry is dropped, so the most recent max_size states are
    always recoverable. There is no redo.
    """

    def __init__(self, max_size: int = MAX_HISTORY):
        self.max_size = max_size
        self._stack: List[HistoryEntry] = []

        # Callbacks
        self.on_state_changed: Optional[Callable[[], None]] = None

    def __len__(self) -> int:
        return len(self._stack)

    @property
    def can_undo(self) -> bool:
        """Check if undo is available."""
        return len(self._stack) > 0

    @property
    def entries(self) -> List[HistoryEntry]:
        """Entries from oldest to newest."""
        return list(self._stack)

    @staticmethod
    def capture(tree: TreeStore, selected_id: Optional[int] = None) -> HistoryEntry:
        """Deep-copy the current tree state into an entry without storing it."""
        return HistoryEntry(
            nodes=tree.copy_nodes(),
            node_counter=tree.node_counter,
            selected_id=selected_id,
            timestamp=time.time(),
        )

    def push(self, entry: HistoryEntry) -> None:
        """Store an entry, evicting the oldest one when full."""
        while len(self._stack) >= self.max_size:
            self._stack.pop(0)
        self._stack.append(entry)
        self._notify_changed()

    def snapshot(
        self, tree: TreeStore, selected_id: Optional[int] = None
    ) -> HistoryEntry:
        """Capture the tree and push the entry."""
        entry = self.capture(tree, selected_id)
        self.push(entry)
        return entry

    def undo(self) -> Optional[HistoryEntry]:
        """Pop and return the most recent entry, or None if there is none."""
        if not self._stack:
            logger.debug("Nothing to undo")
            return None
        entry = self._stack.pop()
        self._notify_changed()
        return entry

    def clear(self) -> None:
        """Clear all history."""
        self._stack.clear()
        self._notify_changed()

    def _notify_changed(self) -> None:
        """Notify that undo state changed."""
        if self.on_state_changed:
            self.on_state_changed()
