"""Pytest configuration and shared fixtures for mindlayout tests."""

import pytest

from mindlayout import (
    MemoryStorage,
    MindMapLayout,
    MindMapSession,
    OverlapResolver,
    TreeStore,
)


@pytest.fixture
def tree():
    """Empty tree store."""
    return TreeStore()


@pytest.fixture
def scenario_tree():
    """
    Root "Main Idea" (1) with A (2) and B (3); C (4) under A.
    """
    store = TreeStore()
    root = store.create_root("Main Idea")
    a = store.add_child(root.id, "A")
    store.add_child(root.id, "B")
    store.add_child(a.id, "C")
    return store


@pytest.fixture
def two_branch_tree():
    """
    Two right-side branches whose children share the same column.

    Ids: root 1, A 2 (right), B 3 (left), C 4 (right),
    A1 5, A2 6 under A, C1 7, C2 8 under C.
    """
    store = TreeStore()
    root = store.create_root("Main Idea")
    a = store.add_child(root.id, "A")
    store.add_child(root.id, "B")
    c = store.add_child(root.id, "C")
    store.add_child(a.id, "A1")
    store.add_child(a.id, "A2")
    store.add_child(c.id, "C1")
    store.add_child(c.id, "C2")
    return store


@pytest.fixture
def deep_tree():
    """
    One deep branch per side.

    Right: R with 8 children, each with 3 children, each with 2 leaves.
    Left: L with 5 leaves.
    """
    store = TreeStore()
    root = store.create_root("Main Idea")
    right = store.add_child(root.id, "R")
    left = store.add_child(root.id, "L")
    for i in range(8):
        child = store.add_child(right.id, f"R{i}")
        for j in range(3):
            grandchild = store.add_child(child.id, f"R{i}.{j}")
            for k in range(2):
                store.add_child(grandchild.id, f"R{i}.{j}.{k}")
    for i in range(5):
        store.add_child(left.id, f"L{i}")
    return store


@pytest.fixture
def layout_engine():
    """Default MindMapLayout instance."""
    return MindMapLayout()


@pytest.fixture
def resolver():
    """Default OverlapResolver instance."""
    return OverlapResolver()


@pytest.fixture
def storage():
    """Empty in-memory storage."""
    return MemoryStorage()


@pytest.fixture
def session(storage):
    """Fresh session backed by in-memory storage."""
    return MindMapSession(storage=storage)
