"""Unit tests for the undo history."""

from mindlayout.history import MAX_HISTORY, HistoryManager


class TestHistoryManager:
    def test_default_bound(self):
        assert HistoryManager().max_size == MAX_HISTORY == 50

    def test_empty_undo_returns_none(self):
        history = HistoryManager()
        assert not history.can_undo
        assert history.undo() is None

    def test_snapshot_is_deep_copy(self, scenario_tree):
        history = HistoryManager()
        entry = history.snapshot(scenario_tree, selected_id=2)

        scenario_tree.set_text(2, "changed")
        scenario_tree.get(1).children.append(99)

        assert entry.nodes[2].text == "A"
        assert entry.nodes[1].children == [2, 3]
        assert entry.node_counter == 4
        assert entry.selected_id == 2

    def test_undo_is_lifo(self, tree):
        history = HistoryManager()
        root = tree.create_root()
        history.snapshot(tree, selected_id=root.id)
        tree.add_child(root.id)
        history.snapshot(tree)

        assert len(history.undo().nodes) == 2
        assert len(history.undo().nodes) == 1
        assert history.undo() is None

    def test_oldest_entry_evicted(self, tree):
        history = HistoryManager(max_size=3)
        tree.create_root()
        for text in ["a", "b", "c", "d", "e"]:
            tree.set_text(1, text)
            history.snapshot(tree)

        assert len(history) == 3
        assert [e.nodes[1].text for e in history.entries] == ["c", "d", "e"]

    def test_capture_does_not_store(self, scenario_tree):
        history = HistoryManager()
        entry = history.capture(scenario_tree)
        assert len(history) == 0
        history.push(entry)
        assert history.entries == [entry]

    def test_clear(self, scenario_tree):
        history = HistoryManager()
        history.snapshot(scenario_tree)
        history.clear()
        assert not history.can_undo

    def test_state_changed_callback(self, scenario_tree):
        history = HistoryManager()
        calls = []
        history.on_state_changed = lambda: calls.append(history.can_undo)

        history.snapshot(scenario_tree)
        history.undo()
        history.undo()
        history.clear()

        # The empty undo does not notify
        assert calls == [True, False, False]
