"""
Node size sampling for collision tests.

The overlap resolver needs a width and height for the boxes it separates.
Sizes come from a measurer: either a fixed estimate or real font metrics
from Pillow. Whatever the source, sizes are clamped to a floor so an
unmeasured or empty label never produces a zero-sized box.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from PIL import ImageFont

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NodeSize:
    """Width and height of a node box in model units."""

    width: float
    height: float


# Estimated box used when nothing better is known
DEFAULT_NODE_SIZE = NodeSize(width=180, height=70)

# Smallest box a measurement may report
MIN_NODE_SIZE = NodeSize(width=120, height=40)


def floor_size(size: NodeSize, floor: NodeSize = MIN_NODE_SIZE) -> NodeSize:
    """Clamp a measured size to at least the floor in both dimensions."""
    return NodeSize(
        width=max(size.width, floor.width), height=max(size.height, floor.height)
    )


class Measurer(Protocol):
    """Protocol for objects that size a node from its label."""

    def measure(self, text: str) -> NodeSize:
        """Return the box size for a label."""
        ...


class FixedMeasurer:
    """Reports the same size for every label."""

    def __init__(self, size: NodeSize = DEFAULT_NODE_SIZE):
        self.size = size

    def measure(self, text: str) -> NodeSize:
        return self.size


def load_font(font_size: int, font_name: Optional[str] = None):
    """
    Load a font for text metrics.

    Tries the following in order:
    1. User-specified font name if provided
    2. Common system sans-serif fonts
    3. Pillow's default font

    Args:
        font_size: Font size in points.
        font_name: Optional font name or path.

    Returns:
        A PIL ImageFont object.
    """
    fonts_to_try = []
    if font_name:
        fonts_to_try.append(font_name)
    fonts_to_try.extend(
        [
            # Linux
            "DejaVuSans",
            "DejaVu Sans",
            "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
            # macOS
            "Helvetica",
            "/System/Library/Fonts/Helvetica.ttc",
            # Windows
            "Arial",
            "Segoe UI",
            "C:/Windows/Fonts/arial.ttf",
        ]
    )

    for font in fonts_to_try:
        try:
            return ImageFont.truetype(font, font_size)
        except OSError:
            continue

    logger.debug("No TrueType font found, using Pillow default font")
    try:
        return ImageFont.load_default(size=font_size)
    except TypeError:
        # Older Pillow versions don't support size parameter
        return ImageFont.load_default()


class TextMeasurer:
    """
    Sizes node boxes from rendered text extents.

    Attributes:
        padding_x: Horizontal padding added on each side of the text.
        padding_y: Vertical padding added above and below the text.
        line_spacing: Multiplier applied to the height of one text line.
    """

    def __init__(
        self,
        font_size: int = 16,
        font: Optional[str] = None,
        padding_x: int = 20,
        padding_y: int = 12,
        line_spacing: float = 1.2,
    ):
        """
        Initialize the measurer.

        Args:
            font_size: Font size in points.
            font: Font name or path (system fonts are tried when omitted).
            padding_x: Horizontal padding on each side of the text.
            padding_y: Vertical padding above and below the text.
            line_spacing: Line height multiplier for multi-line labels.
        """
        self.font = load_font(font_size, font)
        self.padding_x = padding_x
        self.padding_y = padding_y
        self.line_spacing = line_spacing

        # Reference glyphs with ascender and descender
        bbox = self.font.getbbox("Mg")
        self.line_height = (bbox[3] - bbox[1]) * line_spacing

    def measure(self, text: str) -> NodeSize:
        lines = text.split("\n") or [""]
        text_width = 0
        for line in lines:
            left, _, right, _ = self.font.getbbox(line)
            text_width = max(text_width, right - left)
        return NodeSize(
            width=text_width + 2 * self.padding_x,
            height=self.line_height * len(lines) + 2 * self.padding_y,
        )
