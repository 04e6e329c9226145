import logging
import tkinter as tk
from pathlib import Path

from sandbox.config import DEFAULT_HOTKEYS, DEFAULT_SETTINGS, Hotkeys, SandboxSettings
from sandbox.engine.game_state import GameStateStore
from sandbox.game_pieces.cards import Card
from sandbox.gui.constants import (
    CANVAS_BG,
    CARD_H,
    CARD_TAG,
    CARD_W,
    DECK_BG,
    DECK_TAG,
    FALLBACK_CARD_BG,
    FALLBACK_CARD_TEXT,
    FRAME_MS,
    HAND_BG,
    HAND_GAP,
    HAND_H,
    HAND_PADDING,
    HAND_TAG,
    LABEL_TEXT,
    PADDING,
    PLAYFIELD_BG,
    PLAYFIELD_TAG,
    PREVIEW_BG,
    PREVIEW_CARD_H,
    PREVIEW_CARD_W,
    PREVIEW_TAG,
    STATUS_TAG,
    WARNING_TEXT,
    ZONE_OUTLINE,
)
from sandbox.gui.images import load_image, local_image_path
from sandbox.gui.services.drag import DragController, DragSource, DropResult
from sandbox.gui.services.hittest import BBox, Point, bounds_contains, card_extent
from sandbox.gui.services.preview import preview_position

logger = logging.getLogger(__name__)


def card_tag(card_id: str) -> str:
    return f"{CARD_TAG}:{card_id}"


class FieldView(tk.Canvas):
    """
    Tkinter canvas view of one game session.

    Draws the deck pile, the playfield and the hand strip from the store and
    translates pointer and key events into drag controller or store calls.
    All layout is computed here so hit testing never depends on canvas items.
    """

    def __init__(
        self,
        master: tk.Misc,
        store: GameStateStore,
        width: int = DEFAULT_SETTINGS.playfield_width,
        height: int = DEFAULT_SETTINGS.playfield_height,
        settings: SandboxSettings = DEFAULT_SETTINGS,
        image_dir: Path | None = None,
    ):
        super().__init__(master, width=width, height=height, bg=CANVAS_BG, highlightthickness=0)
        self.store = store
        self._width = width
        self._height = height
        self._image_dir = image_dir
        self._hotkeys: Hotkeys = DEFAULT_HOTKEYS
        self._frame_job: str | None = None
        self._last_pointer: Point = (0, 0)
        self.status_message: str | None = None
        self._preview_key_down = False
        self.preview_card_id: str | None = None
        self.preview_origin: Point | None = None

        self.controller = DragController(
            store,
            edge_threshold=settings.edge_threshold,
            drag_threshold=settings.drag_threshold,
        )
        self._update_layout()

        self.bind("<ButtonPress-1>", self._on_press)
        self.bind("<B1-Motion>", self._on_drag_motion)
        self.bind("<ButtonRelease-1>", self._on_release)
        self.bind("<Double-Button-1>", self._on_double_click)
        self.bind("<KeyPress-Escape>", self._on_escape)
        self.bind("<Motion>", self._on_motion)
        self.bind("<Configure>", self._on_configure)
        for key in ("Alt_L", "Alt_R"):
            self.bind(f"<KeyPress-{key}>", lambda e: self._on_preview_key(True))
            self.bind(f"<KeyRelease-{key}>", lambda e: self._on_preview_key(False))
        self.bind("<FocusOut>", lambda e: self._on_preview_key(False))
        # Keep focus behavior
        self.bind("<Enter>", lambda e: self.focus_set())
        self.configure_hotkeys(DEFAULT_HOTKEYS)

        self._unsubscribe = store.subscribe(lambda _store: self.redraw())
        self.redraw()

    # Layout

    def _update_layout(self) -> None:
        w, h = self._width, self._height
        self.deck_bbox: BBox = (PADDING, PADDING, PADDING + CARD_W, PADDING + CARD_H)
        self.hand_bbox: BBox = (PADDING, h - PADDING - HAND_H, w - PADDING, h - PADDING)
        self.playfield_bbox: BBox = (
            self.deck_bbox[2] + PADDING,
            PADDING,
            w - PADDING,
            self.hand_bbox[1] - PADDING,
        )
        self.controller.set_drop_zones(hand_bbox=self.hand_bbox, playfield_bbox=self.playfield_bbox)

    def hand_slots(self, count: int) -> list[Point]:
        """Top-left corners for ``count`` hand cards, overlapping when space runs out."""
        if count == 0:
            return []
        x0, y0, x1, _ = self.hand_bbox
        available = (x1 - x0) - 2 * HAND_PADDING
        step = CARD_W + HAND_GAP
        if count > 1 and CARD_W + (count - 1) * step > available:
            step = max(1.0, (available - CARD_W) / (count - 1))
        return [(x0 + HAND_PADDING + i * step, y0 + HAND_PADDING) for i in range(count)]

    def playfield_origin(self, card_id: str) -> Point | None:
        position = self.store.position_of(card_id)
        if position is None:
            return None
        return self.playfield_bbox[0] + position.x, self.playfield_bbox[1] + position.y

    def card_at(self, x: float, y: float) -> tuple[str, DragSource, Point] | None:
        """Topmost card under (x, y) with its zone and top-left corner."""
        for card in reversed(self.store.playfield_in_stacking_order()):
            origin = self.playfield_origin(card.id)
            if origin is None:
                continue
            w, h = card_extent(self.store.rotation_of(card.id))
            if bounds_contains((origin[0], origin[1], origin[0] + w, origin[1] + h), x, y):
                return card.id, DragSource.PLAYFIELD, origin
        hand = self.store.hand_cards
        slots = self.hand_slots(len(hand))
        for card, (sx, sy) in reversed(list(zip(hand, slots))):
            if bounds_contains((sx, sy, sx + CARD_W, sy + CARD_H), x, y):
                return card.id, DragSource.HAND, (sx, sy)
        return None

    # Drawing

    def redraw(self) -> None:
        self.delete("all")
        self._draw_zones()
        self._draw_deck()
        for card in self.store.playfield_in_stacking_order():
            origin = self.playfield_origin(card.id)
            if origin is not None:
                self._draw_card(card, origin[0], origin[1], self.store.rotation_of(card.id))
        for card, (sx, sy) in zip(self.store.hand_cards, self.hand_slots(len(self.store.hand_cards))):
            self._draw_card(card, sx, sy)
        self._draw_status()

        drag = self.controller.drag
        if drag is not None:
            self.tag_raise(card_tag(drag.card_id))
            self.moveto(card_tag(drag.card_id), *drag.card_origin)
        self._draw_preview()

    def _draw_zones(self) -> None:
        self.create_rectangle(
            *self.playfield_bbox, fill=PLAYFIELD_BG, outline=ZONE_OUTLINE, tags=(PLAYFIELD_TAG,)
        )
        self.create_rectangle(*self.hand_bbox, fill=HAND_BG, outline=ZONE_OUTLINE, tags=(HAND_TAG,))

    def _draw_deck(self) -> None:
        x0, y0, x1, y1 = self.deck_bbox
        if self.store.deck_cards:
            self.create_rectangle(x0, y0, x1, y1, fill=DECK_BG, outline=ZONE_OUTLINE, tags=(DECK_TAG,))
        else:
            self.create_rectangle(x0, y0, x1, y1, outline=ZONE_OUTLINE, dash=(4, 2), tags=(DECK_TAG,))
        self.create_text(
            (x0 + x1) / 2,
            y1 + 10,
            text=self.store.deck_count_label,
            fill=LABEL_TEXT,
            tags=(DECK_TAG,),
        )
        if self.store.deck_name:
            self.create_text(
                (x0 + x1) / 2,
                y1 + 26,
                text=self.store.deck_name,
                fill=LABEL_TEXT,
                width=x1 - x0 + PADDING,
                tags=(DECK_TAG,),
            )

    def _draw_card(self, card: Card, x: float, y: float, rotation: int = 0) -> None:
        tags = (CARD_TAG, card_tag(card.id))
        path = local_image_path(card.image_url, self._image_dir)
        photo = load_image(path, rotation, master=self) if path else None
        if photo is not None:
            self.create_image(x, y, image=photo, anchor="nw", tags=tags)
            return
        w, h = card_extent(rotation)
        self.create_rectangle(x, y, x + w, y + h, fill=FALLBACK_CARD_BG, outline=ZONE_OUTLINE, tags=tags)
        self.create_text(
            x + w / 2, y + h / 2, text=card.name, width=w - 8, fill=FALLBACK_CARD_TEXT, tags=tags
        )

    def _draw_status(self) -> None:
        self.delete(STATUS_TAG)
        message = self.store.persistence_warning or self.store.error or self.status_message
        if not message:
            return
        self.create_text(
            self._width - PADDING,
            PADDING,
            text=message,
            anchor="ne",
            fill=WARNING_TEXT,
            tags=(STATUS_TAG,),
        )

    def show_warning(self, message: str) -> None:
        self.status_message = message
        self._draw_status()

    # Pointer events

    def _on_motion(self, event: tk.Event) -> None:
        self._last_pointer = (event.x, event.y)
        if self._preview_key_down:
            self._update_preview()

    def _on_press(self, event: tk.Event) -> None:
        self._last_pointer = (event.x, event.y)
        hit = self.card_at(event.x, event.y)
        if hit is None:
            return
        card_id, source, origin = hit
        if self.controller.pointer_down(card_id, source, (event.x, event.y), origin):
            self.tag_raise(card_tag(card_id))
            self._schedule_frame()
            self._update_preview()

    def _on_drag_motion(self, event: tk.Event) -> None:
        self._last_pointer = (event.x, event.y)
        self.controller.pointer_move((event.x, event.y))

    def _schedule_frame(self) -> None:
        if self._frame_job is None:
            self._frame_job = self.after(FRAME_MS, self._on_frame)

    def _cancel_frame(self) -> None:
        if self._frame_job is not None:
            self.after_cancel(self._frame_job)
            self._frame_job = None

    def _on_frame(self) -> None:
        self._frame_job = None
        drag = self.controller.drag
        origin = self.controller.animation_frame()
        if drag is not None and origin is not None:
            self.moveto(card_tag(drag.card_id), *origin)
        if self.controller.is_dragging:
            self._schedule_frame()

    def _on_release(self, event: tk.Event) -> DropResult | None:
        self._cancel_frame()
        result = self.controller.pointer_up((event.x, event.y))
        if result is not None:
            logger.debug("Drag resolved: %s", result.state.name)
            self.redraw()
        return result

    def _on_escape(self, _event: tk.Event | None = None) -> DropResult | None:
        self._cancel_frame()
        result = self.controller.cancel()
        if result is not None:
            self.redraw()
        return result

    def _on_double_click(self, event: tk.Event) -> None:
        if bounds_contains(self.deck_bbox, event.x, event.y):
            self.store.draw_card()

    def _on_configure(self, event: tk.Event) -> None:
        if (event.width, event.height) == (self._width, self._height):
            return
        self._width, self._height = event.width, event.height
        self._update_layout()
        self.redraw()

    # Hotkeys

    def configure_hotkeys(self, hotkeys: Hotkeys) -> None:
        for key in (self._hotkeys.draw, self._hotkeys.reset, self._hotkeys.rotate, self._hotkeys.front):
            self.unbind(f"<KeyPress-{key}>")
        self._hotkeys = hotkeys
        self.bind(f"<KeyPress-{hotkeys.draw}>", lambda e: self.store.draw_card())
        self.bind(f"<KeyPress-{hotkeys.reset}>", lambda e: self.store.reset_game())
        self.bind(f"<KeyPress-{hotkeys.rotate}>", lambda e: self._rotate_hovered())
        self.bind(f"<KeyPress-{hotkeys.front}>", lambda e: self._front_hovered())

    def _hovered_playfield_card(self) -> str | None:
        hit = self.card_at(*self._last_pointer)
        if hit is None or hit[1] is not DragSource.PLAYFIELD:
            return None
        return hit[0]

    def _rotate_hovered(self) -> None:
        card_id = self._hovered_playfield_card()
        if card_id is not None:
            self.store.rotate_card(card_id, 90)

    def _front_hovered(self) -> None:
        card_id = self._hovered_playfield_card()
        if card_id is not None:
            self.store.bring_to_front(card_id)

    def destroy(self) -> None:
        self._unsubscribe()
        self._cancel_frame()
        super().destroy()

    # Card preview

    def _on_preview_key(self, pressed: bool) -> None:
        self._preview_key_down = pressed
        self._update_preview()

    def _find_card(self, card_id: str) -> Card | None:
        for card in self.store.hand_cards + self.store.playfield_cards:
            if card.id == card_id:
                return card
        return None

    def _update_preview(self) -> None:
        """Show an enlarged copy of the hovered card while the preview key is held."""
        card_id = None
        if self._preview_key_down and not self.controller.is_dragging:
            hit = self.card_at(*self._last_pointer)
            if hit is not None:
                card_id = hit[0]
        self.preview_card_id = card_id
        self._draw_preview()

    def _draw_preview(self) -> None:
        self.delete(PREVIEW_TAG)
        self.preview_origin = None
        card = self._find_card(self.preview_card_id) if self.preview_card_id else None
        if card is None:
            self.preview_card_id = None
            return

        x, y = preview_position(
            self._last_pointer, (PREVIEW_CARD_W, PREVIEW_CARD_H), (self._width, self._height)
        )
        self.preview_origin = (x, y)
        tags = (PREVIEW_TAG,)
        path = local_image_path(card.image_url, self._image_dir)
        photo = (
            load_image(path, 0, master=self, size=(PREVIEW_CARD_W, PREVIEW_CARD_H)) if path else None
        )
        if photo is not None:
            self.create_image(x, y, image=photo, anchor="nw", tags=tags)
            return

        self.create_rectangle(
            x, y, x + PREVIEW_CARD_W, y + PREVIEW_CARD_H, fill=PREVIEW_BG, outline=ZONE_OUTLINE, tags=tags
        )
        details = [card.name]
        if card.metadata:
            details.extend(f"{key}: {value}" for key, value in card.metadata.items())
        self.create_text(
            x + PADDING,
            y + PADDING,
            text="\n".join(details),
            anchor="nw",
            width=PREVIEW_CARD_W - 2 * PADDING,
            fill=FALLBACK_CARD_TEXT,
            tags=tags,
        )
