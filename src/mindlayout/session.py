"""
Mind map editing session.

MindMapSession is the context object the view and input layers talk to.
It owns one tree, its undo history, the viewport and a storage backend,
and runs every command through the same sequence:

    snapshot -> mutate -> layout -> notify -> persist

Commands referencing a missing node or breaking a tree invariant are
logged and ignored; they leave no history entry behind. Persistence is
best effort: a failed write is logged and retried on the next save.

Example:
    >>> session = MindMapSession()
    >>> child = session.add_child(session.tree.root.id, "Idea")
    >>> session.positions()[child.id]
    (320.0, 0.0)
    >>> session.undo()
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple, TypeVar, Union

from .autosave import AUTOSAVE_INTERVAL_SECONDS, AutosaveTask
from .errors import CorruptData, InvalidOperation, NodeNotFound, WriteError
from .history import MAX_HISTORY, HistoryManager
from .layout import LayoutResult, MindMapLayout
from .models import Node, NodeColor, Viewport
from .storage import MemoryStorage, Storage, build_blob, parse_blob
from .tree import TreeStore
from . import viewport as vp

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class DragState:
    """Node position when the active drag started."""

    node_id: int
    start_x: float
    start_y: float


class MindMapSession:
    """
    One editable mind map with undo, layout and persistence.

    Attributes:
        tree: The live tree store.
        viewport: Current pan/zoom state.
        history: Undo snapshots.
        selected_id: Currently selected node, if any.
        last_layout: Result of the most recent layout pass.
        on_mutation_applied: Called with the tree after every applied change.
        on_viewport_changed: Called with the viewport after pan/zoom/reset.
    """

    def __init__(
        self,
        storage: Optional[Storage] = None,
        layout: Optional[MindMapLayout] = None,
        history_size: int = MAX_HISTORY,
        autosave_interval: float = AUTOSAVE_INTERVAL_SECONDS,
        load: bool = True,
    ):
        """
        Initialize the session.

        Args:
            storage: State store (an in-memory one is used if omitted).
            layout: Layout engine (a default MindMapLayout if omitted).
            history_size: Maximum number of undo snapshots.
            autosave_interval: Seconds between autosave ticks.
            load: Restore saved state now; otherwise start from a fresh root.
        """
        self.storage = storage if storage is not None else MemoryStorage()
        self.layout_engine = layout or MindMapLayout()
        self.history = HistoryManager(history_size)
        self.autosave_interval = autosave_interval
        self.tree = TreeStore()
        self.viewport = Viewport()
        self.selected_id: Optional[int] = None
        self.last_layout = LayoutResult()
        self._drag: Optional[DragState] = None
        self._autosave: Optional[AutosaveTask] = None

        # Callbacks
        self.on_mutation_applied: Optional[Callable[[TreeStore], None]] = None
        self.on_viewport_changed: Optional[Callable[[Viewport], None]] = None

        if load:
            self.load()
        else:
            self._bootstrap()
            self.relayout()

    # ==================== State lifecycle ====================

    def _bootstrap(self) -> None:
        self.tree = TreeStore()
        self.selected_id = self.tree.create_root().id

    def load(self) -> bool:
        """
        Replace the session state with the stored record.

        Returns:
            True if saved state was restored, False if a fresh root was
            created because nothing usable was stored.
        """
        restored = False
        blob = self.storage.load()
        if blob is None:
            logger.info("No saved state, starting a new mind map")
            self._bootstrap()
        else:
            try:
                self.tree, self.viewport = parse_blob(blob)
            except CorruptData as e:
                logger.warning("Discarding saved state: %s", e)
                self._bootstrap()
            else:
                self.selected_id = self.tree.root.id
                restored = True
                logger.info("Loaded mind map with %d nodes", len(self.tree))

        self.history.clear()
        self.relayout()
        self._notify()
        return restored

    def save(self) -> bool:
        """Persist the current state; returns False if the write failed."""
        try:
            self.storage.save(build_blob(self.tree, self.viewport))
        except WriteError as e:
            logger.warning("Could not save mind map: %s", e)
            return False
        return True

    def reset(self) -> None:
        """Clear storage and history and start over with a fresh root."""
        try:
            self.storage.clear()
        except WriteError as e:
            logger.warning("Could not clear saved mind map: %s", e)
        self.history.clear()
        self.viewport = vp.reset()
        self._bootstrap()
        self.relayout()
        self._notify()
        self.save()

    def start_autosave(self) -> AutosaveTask:
        """Start periodic saving on the running event loop."""
        if self._autosave is None:
            self._autosave = AutosaveTask(self.save, self.autosave_interval)
        self._autosave.start()
        return self._autosave

    async def shutdown(self) -> None:
        """Stop autosave and write the final state."""
        if self._autosave is not None:
            await self._autosave.stop()
            self._autosave = None
        self.save()

    # ==================== Layout ====================

    def relayout(self) -> LayoutResult:
        """Recompute every node position."""
        self.last_layout = self.layout_engine.layout(self.tree)
        return self.last_layout

    def positions(self) -> Dict[int, Tuple[float, float]]:
        """Model-space positions of every node."""
        return {node.id: (node.x, node.y) for node in self.tree}

    def screen_positions(
        self, screen_center: Tuple[float, float]
    ) -> Dict[int, Tuple[float, float]]:
        """Screen-space positions of every node under the current viewport."""
        return {
            node.id: vp.to_screen(node.x, node.y, self.viewport, screen_center)
            for node in self.tree
        }

    def _notify(self) -> None:
        if self.on_mutation_applied:
            self.on_mutation_applied(self.tree)

    # ==================== Commands ====================

    def _execute(self, description: str, mutate: Callable[[], T]) -> Optional[T]:
        """Snapshot, run a mutation, then lay out, notify and persist."""
        entry = self.history.capture(self.tree, self.selected_id)
        try:
            result = mutate()
        except (NodeNotFound, InvalidOperation) as e:
            logger.warning("%s ignored: %s", description, e)
            return None

        self.history.push(entry)
        self.relayout()
        self._notify()
        self.save()
        return result

    def _target(self, node_id: Optional[int]) -> Optional[int]:
        return self.selected_id if node_id is None else node_id

    def select(self, node_id: Optional[int]) -> bool:
        """Select a node (None clears the selection)."""
        if node_id is not None and node_id not in self.tree:
            logger.warning("Cannot select missing node %s", node_id)
            return False
        self.selected_id = node_id
        return True

    def add_child(
        self, parent_id: Optional[int] = None, text: Optional[str] = None
    ) -> Optional[Node]:
        """Add a child under parent_id (default: the selection) and select it."""

        def mutate():
            node = self.tree.add_child(self._target(parent_id), text)
            self.selected_id = node.id
            return node

        return self._execute("add child", mutate)

    def add_sibling(
        self, node_id: Optional[int] = None, text: Optional[str] = None
    ) -> Optional[Node]:
        """Add a sibling after node_id's last sibling and select it."""

        def mutate():
            node = self.tree.add_sibling(self._target(node_id), text)
            self.selected_id = node.id
            return node

        return self._execute("add sibling", mutate)

    def delete(self, node_id: Optional[int] = None) -> Optional[int]:
        """Delete a subtree; the former parent becomes selected and is returned."""

        def mutate():
            target = self._target(node_id)
            removed = set([target] + self.tree.descendants(target))
            parent_id = self.tree.delete_subtree(target)
            if self.selected_id is None or self.selected_id in removed:
                self.selected_id = parent_id
            return parent_id

        return self._execute("delete", mutate)

    def set_text(self, node_id: int, text: Optional[str]) -> Optional[Node]:
        return self._execute("edit text", lambda: self.tree.set_text(node_id, text))

    def set_color(
        self, node_id: int, color: Union[NodeColor, str]
    ) -> Optional[Node]:
        return self._execute("recolor", lambda: self.tree.set_color(node_id, color))

    def move(self, node_id: int, new_parent_id: int) -> Optional[Node]:
        """Re-parent a subtree under new_parent_id."""
        return self._execute(
            "move", lambda: self.tree.move_node(node_id, new_parent_id)
        )

    def undo(self) -> Optional[TreeStore]:
        """
        Restore the most recent snapshot.

        Returns:
            The restored tree, or None if there was nothing to undo.
        """
        entry = self.history.undo()
        if entry is None:
            return None

        self._drag = None
        self.tree.replace(entry.nodes, entry.node_counter)
        if entry.selected_id is not None and entry.selected_id in self.tree:
            self.selected_id = entry.selected_id
        else:
            self.selected_id = None

        self.relayout()
        self._notify()
        self.save()
        logger.info("Undo restored %d nodes", len(self.tree))
        return self.tree

    # ==================== Dragging ====================

    @property
    def dragging(self) -> Optional[int]:
        """Id of the node being dragged, if any."""
        return self._drag.node_id if self._drag else None

    def begin_drag(self, node_id: int) -> bool:
        """Start dragging a node; only one drag may be active."""
        if self._drag is not None:
            logger.warning("Drag of %s already active", self._drag.node_id)
            return False
        try:
            node = self.tree.get(node_id)
        except NodeNotFound as e:
            logger.warning("Cannot drag: %s", e)
            return False
        self._drag = DragState(node_id, node.x, node.y)
        return True

    def drag_to(self, dx: float, dy: float) -> bool:
        """
        Move the dragged node by a screen delta measured from drag start.

        Dragging is not undoable and the next layout pass re-places the node.
        """
        if self._drag is None:
            return False
        node = self.tree.get(self._drag.node_id)
        node.x = self._drag.start_x + dx / self.viewport.scale
        node.y = self._drag.start_y + dy / self.viewport.scale
        self._notify()
        return True

    def end_drag(self) -> None:
        self._drag = None

    def drag(self, node_id: int, dx: float, dy: float) -> bool:
        """Press, move by (dx, dy) and release in one call."""
        if not self.begin_drag(node_id):
            return False
        try:
            return self.drag_to(dx, dy)
        finally:
            self.end_drag()

    # ==================== Viewport ====================

    def _set_viewport(self, viewport: Viewport) -> Viewport:
        self.viewport = viewport
        if self.on_viewport_changed:
            self.on_viewport_changed(viewport)
        return viewport

    def pan(self, dx: float, dy: float) -> Viewport:
        return self._set_viewport(vp.pan(self.viewport, dx, dy))

    def pan_key(self, key: str) -> Viewport:
        return self._set_viewport(vp.pan_key(self.viewport, key))

    def zoom(
        self, factor: float, anchor: Tuple[float, float] = (0.0, 0.0)
    ) -> Viewport:
        return self._set_viewport(vp.zoom(self.viewport, factor, anchor))

    def zoom_step(
        self, delta: float, anchor: Tuple[float, float] = (0.0, 0.0)
    ) -> Viewport:
        return self._set_viewport(vp.zoom_step(self.viewport, delta, anchor))

    def reset_view(self) -> Viewport:
        return self._set_viewport(vp.reset())
