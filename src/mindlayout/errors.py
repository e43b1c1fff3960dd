"""
Error types raised by the mind map core.

None of these are fatal: the session layer recovers from each of them and
leaves the tree in a structurally valid state.

Classes:
    MindMapError: Base class for every error raised by mindlayout.
    NodeNotFound: An operation referenced a node id that does not exist.
    InvalidOperation: The operation is not allowed on this node (e.g. the root).
    CorruptData: A persisted blob failed structural validation on load.
    WriteError: A storage backend failed to write the state blob.
"""


class MindMapError(Exception):
    """Base class for mind map errors."""

    pass


class NodeNotFound(MindMapError):
    """Raised when a node id is not present in the tree."""

    def __init__(self, node_id):
        super().__init__(f"Node {node_id!r} not found")
        self.node_id = node_id


class InvalidOperation(MindMapError):
    """Raised when an operation would break a tree invariant."""

    pass


class CorruptData(MindMapError):
    """Raised when a serialized tree cannot be restored."""

    pass


class WriteError(MindMapError):
    """Raised when persisting state fails."""

    pass
