from enum import Enum

from sandbox.gui.constants import CARD_H, CARD_W

EDGE_THRESHOLD = 50

# x0, y0, x1, y1
BBox = tuple[float, float, float, float]
Point = tuple[float, float]


class DropZone(Enum):
    PLAYFIELD = "playfield"
    HAND = "hand"
    OUTSIDE = "outside"


def bounds_contains(bbox: BBox | None, x: float, y: float, threshold: float = 0) -> bool:
    """Return True if point (x,y) lies within bbox grown by threshold on every side."""
    if bbox is None:
        return False
    x0, y0, x1, y1 = bbox
    return x0 - threshold <= x <= x1 + threshold and y0 - threshold <= y <= y1 + threshold


def classify_drop_zone(
    x: float,
    y: float,
    hand_bbox: BBox | None,
    playfield_bbox: BBox | None,
    edge_threshold: float = EDGE_THRESHOLD,
) -> DropZone:
    """Resolve the zone under a pointer.

    The hand is checked first with exact bounds, then the playfield with a
    forgiving margin; anything else is outside.
    """
    if bounds_contains(hand_bbox, x, y):
        return DropZone.HAND
    if bounds_contains(playfield_bbox, x, y, edge_threshold):
        return DropZone.PLAYFIELD
    return DropZone.OUTSIDE


def card_extent(rotation: int, card_size: tuple[float, float] = (CARD_W, CARD_H)) -> tuple[float, float]:
    """Width and height a card covers at the given rotation."""
    w, h = card_size
    return (h, w) if rotation in (90, 270) else (w, h)


def to_playfield_local(x: float, y: float, playfield_bbox: BBox) -> Point:
    return x - playfield_bbox[0], y - playfield_bbox[1]


def clamp_to_playfield(x: float, y: float, playfield_bbox: BBox, card_w: float, card_h: float) -> Point:
    """Clamp a playfield-local card origin so the whole card stays on the playfield."""
    x0, y0, x1, y1 = playfield_bbox
    max_x = max(0.0, (x1 - x0) - card_w)
    max_y = max(0.0, (y1 - y0) - card_h)
    return min(max(x, 0.0), max_x), min(max(y, 0.0), max_y)
