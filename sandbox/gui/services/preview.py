from sandbox.gui.constants import PREVIEW_OFFSET
from sandbox.gui.services.hittest import Point


def preview_position(
    pointer: Point,
    preview_size: tuple[float, float],
    viewport_size: tuple[float, float],
    offset: float = PREVIEW_OFFSET,
) -> Point:
    """
    Top-left corner for a card preview that follows the pointer.

    The preview sits below and to the right of the pointer. It flips to the
    left or above when it would overflow the viewport, and never goes
    negative.

    Parameters
    ----------
    pointer : tuple of float
        Pointer position
    preview_size : tuple of float
        Width and height of the preview
    viewport_size : tuple of float
        Width and height of the visible area
    offset : float
        Gap between pointer and preview

    Returns
    -------
    origin : tuple of float
        Where to draw the preview
    """
    px, py = pointer
    w, h = preview_size
    vw, vh = viewport_size

    x = px + offset
    y = py + offset
    if x + w > vw:
        x = px - w - offset
    if y + h > vh:
        y = py - h - offset
    return max(0, x), max(0, y)
