"""Unit tests for node size measurement."""

import pytest

from mindlayout.measure import (
    DEFAULT_NODE_SIZE,
    MIN_NODE_SIZE,
    FixedMeasurer,
    NodeSize,
    TextMeasurer,
    floor_size,
)


class TestFloorSize:
    def test_small_sizes_raised(self):
        assert floor_size(NodeSize(0, 0)) == MIN_NODE_SIZE

    def test_large_sizes_kept(self):
        assert floor_size(NodeSize(300, 50)) == NodeSize(300, 50)

    def test_each_dimension_independent(self):
        assert floor_size(NodeSize(50, 90)) == NodeSize(120, 90)


class TestFixedMeasurer:
    def test_default(self):
        assert FixedMeasurer().measure("anything") == DEFAULT_NODE_SIZE

    def test_ignores_text(self):
        measurer = FixedMeasurer(NodeSize(200, 80))
        assert measurer.measure("") == measurer.measure("long " * 20)


class TestTextMeasurer:
    @pytest.fixture
    def measurer(self):
        return TextMeasurer(font_size=16)

    def test_longer_text_is_wider(self, measurer):
        assert measurer.measure("Main Idea").width > measurer.measure("A").width

    def test_padding_included(self, measurer):
        size = measurer.measure("")
        assert size.width == 2 * measurer.padding_x
        assert size.height == pytest.approx(
            measurer.line_height + 2 * measurer.padding_y
        )

    def test_multiline_is_taller(self, measurer):
        one = measurer.measure("Node")
        two = measurer.measure("Node\nNode")
        assert two.height == pytest.approx(one.height + measurer.line_height)
        assert two.width == one.width
