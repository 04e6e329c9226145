import logging
import math
from dataclasses import dataclass
from enum import Enum, auto

from sandbox.engine.game_state import GameStateStore
from sandbox.engine.zones import CardPosition
from sandbox.game_pieces.constants import CardLocation
from sandbox.gui.constants import CARD_H, CARD_W
from sandbox.gui.services.hittest import (
    EDGE_THRESHOLD,
    BBox,
    DropZone,
    Point,
    card_extent,
    clamp_to_playfield,
    classify_drop_zone,
    to_playfield_local,
)

logger = logging.getLogger(__name__)

DRAG_THRESHOLD = 5


class DragSource(Enum):
    HAND = "hand"
    PLAYFIELD = "playfield"


class DragState(Enum):
    IDLE = auto()
    DRAGGING = auto()
    DROPPED_ON_PLAYFIELD = auto()
    DROPPED_ON_HAND = auto()
    DROPPED_OUTSIDE = auto()
    CANCELLED = auto()


_SOURCE_LOCATION = {
    DragSource.HAND: CardLocation.HAND,
    DragSource.PLAYFIELD: CardLocation.PLAYFIELD,
}


@dataclass
class Drag:
    card_id: str
    source: DragSource
    grab_offset: Point
    start_pointer: Point
    current_pointer: Point
    pending_pointer: Point | None = None
    original_position: CardPosition | None = None
    # Set once the pointer has travelled past the drag threshold
    activated: bool = False

    @property
    def card_origin(self) -> Point:
        """Top-left of the card as it follows the pointer."""
        return (
            self.current_pointer[0] - self.grab_offset[0],
            self.current_pointer[1] - self.grab_offset[1],
        )


@dataclass(frozen=True)
class DropResult:
    state: DragState
    card_id: str
    source: DragSource
    position: CardPosition | None = None
    original_position: CardPosition | None = None


class DragController:
    """
    Pointer-driven drag state machine for hand and playfield cards.

    Pointer coordinates share one space with the zone bounds (the canvas).
    Nothing is written to the store until the pointer is released, so a
    cancelled drag leaves the game exactly as it was.
    """

    def __init__(
        self,
        store: GameStateStore,
        hand_bbox: BBox | None = None,
        playfield_bbox: BBox | None = None,
        card_size: tuple[float, float] = (CARD_W, CARD_H),
        edge_threshold: float = EDGE_THRESHOLD,
        drag_threshold: float = DRAG_THRESHOLD,
    ):
        self.store = store
        self.hand_bbox = hand_bbox
        self.playfield_bbox = playfield_bbox
        self.card_size = card_size
        self.edge_threshold = edge_threshold
        self.drag_threshold = drag_threshold
        self.drag: Drag | None = None

    @property
    def state(self) -> DragState:
        return DragState.DRAGGING if self.drag is not None else DragState.IDLE

    @property
    def is_dragging(self) -> bool:
        return self.drag is not None

    def set_drop_zones(self, hand_bbox: BBox | None = None, playfield_bbox: BBox | None = None) -> None:
        if hand_bbox is not None:
            self.hand_bbox = hand_bbox
        if playfield_bbox is not None:
            self.playfield_bbox = playfield_bbox

    def pointer_down(self, card_id: str, source: DragSource, pointer: Point, card_origin: Point) -> bool:
        """
        Start dragging a card.

        Parameters
        ----------
        card_id : str
            Card under the pointer
        source : DragSource
            Zone the card is being dragged out of
        pointer : tuple of float
            Pointer position
        card_origin : tuple of float
            Top-left of the card's visual at the moment of the press

        Returns
        -------
        started : bool
            False when a drag is already running or the card is not in ``source``
        """
        if self.drag is not None:
            return False
        if self.store.location_of(card_id) is not _SOURCE_LOCATION[source]:
            logger.debug("Ignoring drag of %s; not in %s", card_id, source.value)
            return False

        original = self.store.position_of(card_id) if source is DragSource.PLAYFIELD else None
        self.drag = Drag(
            card_id=card_id,
            source=source,
            grab_offset=(pointer[0] - card_origin[0], pointer[1] - card_origin[1]),
            start_pointer=pointer,
            current_pointer=pointer,
            original_position=original,
        )
        return True

    def pointer_move(self, pointer: Point) -> None:
        # Only the latest pointer survives until the next frame
        drag = self.drag
        if drag is not None:
            drag.pending_pointer = pointer
            if not drag.activated and self._travelled(drag, pointer) > self.drag_threshold:
                drag.activated = True

    def animation_frame(self) -> Point | None:
        """Apply the latest pointer; returns the new card origin, or None if nothing moved."""
        drag = self.drag
        if drag is None or drag.pending_pointer is None:
            return None
        drag.current_pointer = drag.pending_pointer
        drag.pending_pointer = None
        return drag.card_origin

    @staticmethod
    def _travelled(drag: Drag, pointer: Point) -> float:
        return math.hypot(pointer[0] - drag.start_pointer[0], pointer[1] - drag.start_pointer[1])

    def is_drag_valid(self) -> bool:
        """True once the pointer has moved more than the drag threshold from the press."""
        drag = self.drag
        if drag is None:
            return False
        pointer = drag.pending_pointer or drag.current_pointer
        return drag.activated or self._travelled(drag, pointer) > self.drag_threshold

    def cancel(self) -> DropResult | None:
        drag = self.drag
        if drag is None:
            return None
        self.drag = None
        logger.debug("Drag of %s cancelled", drag.card_id)
        return DropResult(
            DragState.CANCELLED, drag.card_id, drag.source, original_position=drag.original_position
        )

    def pointer_up(self, pointer: Point) -> DropResult | None:
        drag = self.drag
        if drag is None:
            return None
        self.drag = None
        if self._travelled(drag, pointer) > self.drag_threshold:
            drag.activated = True
        drag.current_pointer = pointer
        drag.pending_pointer = None

        if not drag.activated:
            logger.debug("Release of %s within the drag threshold; treated as a click", drag.card_id)
            return DropResult(
                DragState.CANCELLED, drag.card_id, drag.source, original_position=drag.original_position
            )

        zone = classify_drop_zone(
            pointer[0], pointer[1], self.hand_bbox, self.playfield_bbox, self.edge_threshold
        )
        logger.debug("Drop of %s from %s onto %s", drag.card_id, drag.source.value, zone.value)

        if zone is DropZone.PLAYFIELD:
            return self._drop_on_playfield(drag)
        if zone is DropZone.HAND and drag.source is DragSource.PLAYFIELD:
            if self.store.move_card_to_hand(drag.card_id) is not None:
                return DropResult(DragState.DROPPED_ON_HAND, drag.card_id, drag.source)
        elif zone is DropZone.OUTSIDE and drag.source is DragSource.PLAYFIELD:
            if self.store.discard_card(drag.card_id) is not None:
                return DropResult(DragState.DROPPED_OUTSIDE, drag.card_id, drag.source)
        return DropResult(
            DragState.CANCELLED, drag.card_id, drag.source, original_position=drag.original_position
        )

    def _drop_on_playfield(self, drag: Drag) -> DropResult:
        origin_x, origin_y = drag.card_origin
        local_x, local_y = to_playfield_local(origin_x, origin_y, self.playfield_bbox)
        # A rotated card covers its swapped extent
        extent = card_extent(self.store.rotation_of(drag.card_id), self.card_size)
        x, y = clamp_to_playfield(local_x, local_y, self.playfield_bbox, *extent)

        if drag.source is DragSource.HAND:
            placed = self.store.move_card_to_playfield(drag.card_id, (x, y))
        else:
            placed = self.store.update_card_position(drag.card_id, (x, y))
        if placed is None:
            return DropResult(
                DragState.CANCELLED, drag.card_id, drag.source, original_position=drag.original_position
            )
        return DropResult(
            DragState.DROPPED_ON_PLAYFIELD,
            drag.card_id,
            drag.source,
            position=placed,
            original_position=drag.original_position,
        )
