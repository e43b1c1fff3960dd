"""
Viewport transform between model and screen space.

All functions are pure: they take a Viewport and return coordinates or a
new Viewport, never mutating their input.

Screen coordinates are measured from the top-left corner of the drawing
surface; zoom anchors are offsets from the surface center.
"""

from typing import Tuple

from .models import MAX_SCALE, MIN_SCALE, Viewport

ZOOM_FACTOR = 1.05
PAN_STEP = 50

# Key name -> (dx, dy) screen direction of the content movement
PAN_KEYS = {
    "up": (0, 1),
    "down": (0, -1),
    "left": (1, 0),
    "right": (-1, 0),
}

Point = Tuple[float, float]


def to_screen(
    model_x: float, model_y: float, viewport: Viewport, screen_center: Point
) -> Point:
    """Map a model coordinate to screen space."""
    return (
        (model_x + viewport.x) * viewport.scale + screen_center[0],
        (model_y + viewport.y) * viewport.scale + screen_center[1],
    )


def to_model(
    screen_x: float, screen_y: float, viewport: Viewport, screen_center: Point
) -> Point:
    """Map a screen coordinate back to model space."""
    return (
        (screen_x - screen_center[0]) / viewport.scale - viewport.x,
        (screen_y - screen_center[1]) / viewport.scale - viewport.y,
    )


def clamp_scale(scale: float) -> float:
    return max(MIN_SCALE, min(MAX_SCALE, scale))


def zoom(viewport: Viewport, factor: float, anchor: Point = (0.0, 0.0)) -> Viewport:
    """
    Multiply the scale by factor, keeping the point under anchor fixed.

    Args:
        viewport: Current viewport.
        factor: Scale multiplier (> 1 zooms in, < 1 zooms out).
        anchor: Pointer position as an offset from the screen center.

    Returns:
        The new viewport; scale is clamped to [MIN_SCALE, MAX_SCALE].
    """
    old_scale = viewport.scale
    new_scale = clamp_scale(old_scale * factor)
    # Solve (m + x') * s' == anchor for the model point m under the anchor
    return Viewport(
        x=viewport.x + anchor[0] / new_scale - anchor[0] / old_scale,
        y=viewport.y + anchor[1] / new_scale - anchor[1] / old_scale,
        scale=new_scale,
    )


def zoom_step(
    viewport: Viewport, delta: float, anchor: Point = (0.0, 0.0)
) -> Viewport:
    """Zoom one wheel notch: negative delta zooms in, positive zooms out."""
    factor = ZOOM_FACTOR if delta < 0 else 1 / ZOOM_FACTOR
    return zoom(viewport, factor, anchor)


def pan(viewport: Viewport, dx: float, dy: float) -> Viewport:
    """Move the content by a screen-space delta regardless of zoom."""
    return Viewport(
        x=viewport.x + dx / viewport.scale,
        y=viewport.y + dy / viewport.scale,
        scale=viewport.scale,
    )


def pan_key(viewport: Viewport, key: str, step: float = PAN_STEP) -> Viewport:
    """
    Pan one keyboard step.

    Raises:
        ValueError: If key is not one of PAN_KEYS.
    """
    try:
        sx, sy = PAN_KEYS[key]
    except KeyError:
        raise ValueError(f"Unknown pan key: {key!r}") from None
    return pan(viewport, sx * step, sy * step)


def reset() -> Viewport:
    """Viewport centered on the root at scale 1."""
    return Viewport(0.0, 0.0, 1.0)
