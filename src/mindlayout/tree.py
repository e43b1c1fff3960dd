"""
Tree store for the mind map.

Owns the node table and the parent/child relationships. It holds no layout
logic: coordinates stored on nodes are written by the layout engine and are
only carried through here.

Uses networkx for:
- Subtree traversal (post-order deletion, descendant queries)
- Arborescence validation when restoring persisted data
"""

import copy
import logging
from typing import Any, Dict, Iterator, List, Optional, Union

import networkx as nx

from .errors import CorruptData, InvalidOperation, NodeNotFound
from .models import DEFAULT_COLOR, PLACEHOLDER_TEXT, ROOT_TEXT, Node, NodeColor

logger = logging.getLogger(__name__)


def normalize_text(text: Optional[str], default: str = PLACEHOLDER_TEXT) -> str:
    """Trim a label, falling back to the placeholder when it ends up empty."""
    stripped = (text or "").strip()
    return stripped or default


class TreeStore:
    """
    Node table forming a single rooted tree.

    Nodes are kept in a dict so iteration follows insertion order, which is
    the order the layout engine relies on for deterministic output.
    """

    def __init__(self):
        self.nodes: Dict[int, Node] = {}
        self.node_counter = 0

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, node_id) -> bool:
        return node_id in self.nodes

    def __iter__(self) -> Iterator[Node]:
        return iter(self.nodes.values())

    @property
    def root(self) -> Optional[Node]:
        """The root node, or None while the store is empty."""
        for node in self.nodes.values():
            if node.parent is None:
                return node
        return None

    def get(self, node_id: int) -> Node:
        """
        Look up a node.

        Raises:
            NodeNotFound: If the id is not in the store.
        """
        try:
            return self.nodes[node_id]
        except KeyError:
            raise NodeNotFound(node_id) from None

    def _next_id(self) -> int:
        self.node_counter += 1
        return self.node_counter

    def create_root(self, text: Optional[str] = ROOT_TEXT) -> Node:
        """
        Create the root node of an empty store.

        Raises:
            InvalidOperation: If the store already has nodes.
        """
        if self.nodes:
            raise InvalidOperation("Root can only be created in an empty tree")
        root = Node(id=self._next_id(), text=normalize_text(text, ROOT_TEXT), level=0)
        self.nodes[root.id] = root
        return root

    def add_child(self, parent_id: int, text: Optional[str] = PLACEHOLDER_TEXT) -> Node:
        """
        Append a new child under parent_id.

        The child starts at its parent's coordinates; the next layout pass
        moves it into place.
        """
        parent = self.get(parent_id)
        node = Node(
            id=self._next_id(),
            text=normalize_text(text),
            level=parent.level + 1,
            parent=parent.id,
            x=parent.x,
            y=parent.y,
            color=DEFAULT_COLOR,
        )
        self.nodes[node.id] = node
        parent.children.append(node.id)
        return node

    def add_sibling(self, node_id: int, text: Optional[str] = PLACEHOLDER_TEXT) -> Node:
        """
        Append a new node after the last child of node_id's parent.

        Raises:
            NodeNotFound: If node_id is absent.
            InvalidOperation: If node_id is the root.
        """
        node = self.get(node_id)
        if node.parent is None:
            raise InvalidOperation("The root node cannot have siblings")
        sibling = self.add_child(node.parent, text)
        sibling.x, sibling.y = node.x, node.y
        return sibling

    def delete_subtree(self, node_id: int) -> Optional[int]:
        """
        Remove a node together with all of its descendants.

        Descendants are removed depth-first (children before their parent),
        so no remaining node ever points at a removed parent.

        Returns:
            The id of the deleted node's former parent, which should become
            the selection.

        Raises:
            NodeNotFound: If node_id is absent.
            InvalidOperation: If node_id is the root.
        """
        node = self.get(node_id)
        if node.parent is None:
            raise InvalidOperation("The root node cannot be deleted")

        parent_id = node.parent
        for doomed_id in nx.dfs_postorder_nodes(self.to_networkx(), node_id):
            doomed = self.nodes.pop(doomed_id)
            owner = self.nodes.get(doomed.parent)
            if owner is not None and doomed_id in owner.children:
                owner.children.remove(doomed_id)

        logger.debug("Deleted subtree rooted at %s", node_id)
        return parent_id

    def move_node(self, node_id: int, new_parent_id: int) -> Node:
        """
        Re-parent a subtree, appending it to new_parent_id's children.

        Raises:
            NodeNotFound: If either id is absent.
            InvalidOperation: If node_id is the root or new_parent_id lies
                inside the moved subtree.
        """
        node = self.get(node_id)
        new_parent = self.get(new_parent_id)
        if node.parent is None:
            raise InvalidOperation("The root node cannot be moved")
        if new_parent_id == node_id or new_parent_id in self.descendants(node_id):
            raise InvalidOperation("A node cannot be moved under its own subtree")
        if node.parent == new_parent_id:
            return node

        self.nodes[node.parent].children.remove(node_id)
        new_parent.children.append(node_id)
        node.parent = new_parent_id

        offset = new_parent.level + 1 - node.level
        for moved_id in [node_id] + self.descendants(node_id):
            self.nodes[moved_id].level += offset
        return node

    def set_text(self, node_id: int, text: Optional[str]) -> Node:
        """Set a node label (trimmed, empty becomes the placeholder)."""
        node = self.get(node_id)
        node.text = normalize_text(text)
        return node

    def set_color(self, node_id: int, color: Union[NodeColor, str]) -> Node:
        """
        Set the color tag of a non-root node.

        Raises:
            NodeNotFound: If node_id is absent.
            InvalidOperation: If node_id is the root or the color is unknown.
        """
        node = self.get(node_id)
        if node.parent is None:
            raise InvalidOperation("The root node has no color")
        try:
            node.color = NodeColor(color)
        except ValueError:
            raise InvalidOperation(f"Unknown color: {color!r}") from None
        return node

    def descendants(self, node_id: int) -> List[int]:
        """Return ids below node_id in pre-order (node_id excluded)."""
        self.get(node_id)
        order = list(nx.dfs_preorder_nodes(self.to_networkx(), node_id))
        return order[1:]

    def to_networkx(self) -> nx.DiGraph:
        """
        Build a directed parent -> child graph.

        Nodes are added in store order and edges in child order, so networkx
        traversals visit siblings in display order.
        """
        graph = nx.DiGraph()
        graph.add_nodes_from(self.nodes)
        for node in self.nodes.values():
            for child_id in node.children:
                graph.add_edge(node.id, child_id)
        return graph

    def copy_nodes(self) -> Dict[int, Node]:
        """Deep copy of the node table."""
        return copy.deepcopy(self.nodes)

    def replace(self, nodes: Dict[int, Node], node_counter: int) -> None:
        """Replace the whole table (used by undo); the dict is copied."""
        self.nodes = copy.deepcopy(nodes)
        self.node_counter = node_counter

    def validate(self) -> None:
        """
        Check every structural invariant of the tree.

        Raises:
            CorruptData: Describing the first violated invariant.
        """
        if not self.nodes:
            raise CorruptData("Tree has no nodes")

        roots = [n for n in self.nodes.values() if n.parent is None]
        if len(roots) != 1:
            raise CorruptData(f"Expected exactly one root, found {len(roots)}")
        if roots[0].level != 0:
            raise CorruptData("Root node must have level 0")

        for node in self.nodes.values():
            if node.parent is not None and node.parent not in self.nodes:
                raise CorruptData(
                    f"Node {node.id} references missing parent {node.parent}"
                )
            expected = [
                n.id for n in self.nodes.values() if n.parent == node.id
            ]
            if sorted(node.children) != sorted(expected) or len(
                set(node.children)
            ) != len(node.children):
                raise CorruptData(f"Children of node {node.id} are inconsistent")
            if node.parent is not None:
                parent_level = self.nodes[node.parent].level
                if node.level != parent_level + 1:
                    raise CorruptData(f"Node {node.id} has wrong level {node.level}")

        if not nx.is_arborescence(self.to_networkx()):
            raise CorruptData("Nodes do not form a single rooted tree")

    def serialize(self) -> Dict[str, Any]:
        """Return the node table and counter in blob form."""
        return {
            "nodes": [[node_id, node.to_dict()] for node_id, node in self.nodes.items()],
            "nodeCounter": self.node_counter,
        }

    @classmethod
    def deserialize(cls, blob: Dict[str, Any]) -> "TreeStore":
        """
        Rebuild a store from serialize() output.

        Non-root nodes saved without a color get the default one.

        Raises:
            CorruptData: If the blob is malformed or violates tree invariants.
        """
        store = cls()
        try:
            entries = blob["nodes"]
            for node_id, data in entries:
                if not isinstance(data, dict):
                    raise CorruptData(f"Node {node_id!r} is not an object")
                node = Node.from_dict(data)
                if node.id != int(node_id):
                    raise CorruptData(f"Node key {node_id} does not match id {node.id}")
                if node.id in store.nodes:
                    raise CorruptData(f"Duplicate node id {node.id}")
                store.nodes[node.id] = node
            counter = int(blob.get("nodeCounter") or 0)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise CorruptData(f"Malformed tree data: {e}") from e

        store.validate()
        for node in store.nodes.values():
            if node.parent is not None and node.color is None:
                node.color = DEFAULT_COLOR
        # Keep ids unique even if the saved counter lagged behind
        store.node_counter = max([counter] + list(store.nodes))
        return store
