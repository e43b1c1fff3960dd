"""
Parser module for indented mind map outlines.

Handles building a tree from outline text and writing a tree back out:

    Main Idea
      Goals {green}
        Ship v1
      Risks {red}

Each line is a node; a line indented deeper than the one above it is that
node's child. An optional "- " or "* " bullet is ignored and an optional
trailing "{color}" sets the node color.
"""

import re
from typing import List, Tuple

from .models import DEFAULT_COLOR, NodeColor
from .tree import TreeStore

TAB_WIDTH = 4


class ParseError(Exception):
    """Raised when outline parsing fails."""

    pass


class OutlineParser:
    """Parses outline text into a TreeStore."""

    BULLET_PATTERN = re.compile(r"^[-*]\s+")
    COLOR_PATTERN = re.compile(r"\s*\{([a-z]+)\}\s*$")

    def parse(self, input_text: str) -> TreeStore:
        """
        Parse outline text.

        Args:
            input_text: Multi-line outline, one node per line.

        Returns:
            A TreeStore whose insertion order follows the outline.

        Raises:
            ParseError: If the outline is empty, has more than one root,
                        or names an unknown color.
        """
        tree = TreeStore()
        stack: List[Tuple[int, int]] = []  # (indent, node id)

        for line_num, line in enumerate(input_text.split("\n"), 1):
            stripped = line.strip()

            # Skip empty lines and comments
            if not stripped or stripped.startswith("#"):
                continue

            indent = len(line.expandtabs(TAB_WIDTH)) - len(
                line.expandtabs(TAB_WIDTH).lstrip()
            )
            text, color = self._parse_label(stripped, line_num)

            while stack and stack[-1][0] >= indent:
                stack.pop()

            if not stack:
                if tree.root is not None:
                    raise ParseError(
                        f"Line {line_num}: Outline must have a single root: {stripped}"
                    )
                if color is not None:
                    raise ParseError(f"Line {line_num}: The root cannot have a color")
                node = tree.create_root(text)
            else:
                node = tree.add_child(stack[-1][1], text)
                if color is not None:
                    node.color = color

            stack.append((indent, node.id))

        if tree.root is None:
            raise ParseError("No nodes found in input")
        return tree

    def _parse_label(self, stripped: str, line_num: int):
        text = self.BULLET_PATTERN.sub("", stripped)
        color = None
        match = self.COLOR_PATTERN.search(text)
        if match:
            try:
                color = NodeColor(match.group(1))
            except ValueError:
                raise ParseError(
                    f"Line {line_num}: Unknown color '{match.group(1)}'"
                ) from None
            text = text[: match.start()]
        return text, color


def parse_outline(input_text: str) -> TreeStore:
    """
    Convenience function to parse an outline.

    Args:
        input_text: Multi-line outline text

    Returns:
        TreeStore built from the outline
    """
    return OutlineParser().parse(input_text)


def to_outline(tree: TreeStore, indent: str = "  ") -> str:
    """Write a tree as outline text (colors other than the default are kept)."""
    root = tree.root
    if root is None:
        return ""

    lines: List[str] = []
    stack = [(root.id, 0)]
    while stack:
        node_id, depth = stack.pop()
        node = tree.get(node_id)
        label = node.text.replace("\n", " ")
        if node.color is not None and node.color is not DEFAULT_COLOR:
            label += f" {{{node.color.value}}}"
        lines.append(indent * depth + label)
        for child_id in reversed(node.children):
            stack.append((child_id, depth + 1))
    return "\n".join(lines) + "\n"
