import logging
import threading
from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel

from sandbox.game_pieces.cards import Card
from sandbox.game_pieces.constants import DEFAULT_DECK_NAME, DEFAULT_TEST_DECK_SIZE, CardLocation
from sandbox.game_pieces.deck import Deck, generate_test_deck
from sandbox.engine.persistence import (
    AUTO_SAVE_DEBOUNCE_MS,
    Debouncer,
    PersistenceError,
    Scheduler,
    SessionStore,
    ThreadingScheduler,
)
from sandbox.engine.zones import CardPosition, HandZone, PlayfieldZone
from sandbox.imports.constants import ImportFormat, Severity
from sandbox.imports.deck_validation import DeckImportError, validate_deck_import
from sandbox.imports.transformer import extract_deck_name, transform_json_to_cards, transform_to_cards
from sandbox.imports.validator import ImportValidationResult, validate_import
from sandbox.schemas import (
    CardModel,
    CardPositionModel,
    DeckImport,
    DeckMetadataModel,
    DeckStateModel,
    HandStateModel,
    PlayfieldStateModel,
    SessionSnapshot,
)

logger = logging.getLogger(__name__)

Point = tuple[float, float]
Listener = Callable[["GameStateStore"], None]

NO_CARDS_REMAINING = "No cards remaining in deck"


class GameStateStore:
    """
    Owns the deck, hand and playfield of one session.

    Every mutation goes through a method here. Each one notifies subscribers
    and schedules a debounced save through the injected session store;
    operations aimed at a card that is not where the caller expects are
    ignored.
    """

    def __init__(
        self,
        session_id: str,
        repository: SessionStore,
        scheduler: Scheduler | None = None,
        debounce_ms: int = AUTO_SAVE_DEBOUNCE_MS,
        test_deck_size: int = DEFAULT_TEST_DECK_SIZE,
        on_warning: Callable[[str], None] | None = None,
    ):
        self.session_id = session_id
        self._repository = repository
        self._test_deck_size = test_deck_size
        self.on_warning = on_warning
        self._debouncer = Debouncer(scheduler or ThreadingScheduler(), debounce_ms, self._autosave)
        self._lock = threading.RLock()
        self._listeners: list[Listener] = []

        self._deck = Deck()
        self._hand = HandZone()
        self._playfield = PlayfieldZone()
        self._deck_metadata: DeckMetadataModel | None = None
        self._created_at: datetime | None = None

        self.error: str | None = None
        self.persistence_warning: str | None = None
        self.is_loading = True
        self.dirty = False

    # Read access

    @property
    def deck_cards(self) -> tuple[Card, ...]:
        with self._lock:
            return tuple(self._deck.cards)

    @property
    def deck_name(self) -> str | None:
        return self._deck.name

    @property
    def deck_count_label(self) -> str:
        with self._lock:
            return self._deck.count_label

    @property
    def deck_metadata(self) -> DeckMetadataModel | None:
        return self._deck_metadata

    @property
    def hand_cards(self) -> tuple[Card, ...]:
        with self._lock:
            return tuple(self._hand.cards)

    @property
    def playfield_cards(self) -> tuple[Card, ...]:
        with self._lock:
            return tuple(self._playfield.cards)

    @property
    def positions(self) -> dict[str, CardPosition]:
        with self._lock:
            return dict(self._playfield.positions)

    @property
    def next_z_index(self) -> int:
        return self._playfield.next_z_index

    def position_of(self, card_id: str) -> CardPosition | None:
        with self._lock:
            return self._playfield.positions.get(card_id)

    def rotation_of(self, card_id: str) -> int:
        with self._lock:
            return self._playfield.rotation(card_id)

    def playfield_in_stacking_order(self) -> list[Card]:
        with self._lock:
            return self._playfield.stacking_order()

    def location_of(self, card_id: str) -> CardLocation | None:
        with self._lock:
            if card_id in self._hand:
                return CardLocation.HAND
            if card_id in self._playfield:
                return CardLocation.PLAYFIELD
            if any(card.id == card_id for card in self._deck.cards):
                return CardLocation.DECK
        return None

    def total_cards(self) -> int:
        with self._lock:
            return len(self._deck) + len(self._hand) + len(self._playfield)

    # Subscriptions

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def _mutated(self) -> None:
        with self._lock:
            self.dirty = True
        self._debouncer.trigger()
        self._notify()

    # Deck operations

    def draw_card(self) -> Card | None:
        with self._lock:
            card = self._deck.draw_one()
            if card is None:
                self.error = NO_CARDS_REMAINING
            else:
                self._hand.add(card)
                self.error = None
        if card is None:
            logger.info("Draw requested on an empty deck")
            self._notify()
            return None
        logger.debug("Drew %s", card.name)
        self._mutated()
        return card

    def _replace_deck(self, cards: list[Card], name: str) -> None:
        with self._lock:
            self._deck = Deck.build(cards, name=name)
            self._deck_metadata = DeckMetadataModel(
                name=name,
                original_card_count=len(cards),
                imported_at=datetime.now(timezone.utc),
            )
            self._hand.clear()
            self._playfield.clear()
            self.error = None

    def import_deck(self, deck_import: DeckImport | Mapping[str, Any]) -> Deck:
        """
        Replace the deck with an imported one and clear hand and playfield.

        Parameters
        ----------
        deck_import : DeckImport or mapping
            Typed deck import or the decoded JSON document

        Returns
        -------
        deck : Deck
            The new deck

        Raises
        ------
        DeckImportError
            If the import fails validation; the current state is left untouched
        """
        if isinstance(deck_import, BaseModel):
            deck_import = deck_import.model_dump(by_alias=True, exclude_none=True)

        validation = validate_deck_import(deck_import)
        if not validation.valid:
            logger.warning("Deck import rejected: %s", "; ".join(validation.errors))
            raise DeckImportError(validation.errors)
        for warning in validation.warnings:
            logger.warning(warning)

        parsed = DeckImport.model_validate(deck_import)
        self._replace_deck(transform_json_to_cards(parsed), parsed.name)
        logger.info("Imported deck %r with %d cards", parsed.name, len(parsed.cards))
        self._mutated()
        return self._deck

    def import_text(self, text: str, fmt: ImportFormat | str) -> ImportValidationResult:
        """Import TTS codes or a JSON document; raises DeckImportError when invalid."""
        result = validate_import(text, fmt)
        if not result.valid or result.data is None:
            errors = [m.message for m in result.messages if m.severity is Severity.ERROR]
            logger.warning("%s import rejected: %s", result.format.value, "; ".join(errors))
            raise DeckImportError(errors)

        cards = transform_to_cards(result.data)
        name = extract_deck_name(result.data)
        self._replace_deck(cards, name)
        logger.info("Imported %s deck %r with %d cards", result.format.value, name, len(cards))
        self._mutated()
        return result

    def reset_game(self) -> None:
        with self._lock:
            self._initialise_defaults()
        logger.info("Game reset to the default test deck")
        self._mutated()

    def _initialise_defaults(self) -> None:
        self._replace_deck(generate_test_deck(self._test_deck_size), DEFAULT_DECK_NAME)

    # Hand and playfield operations

    def move_card_to_playfield(self, card_id: str, position: Point) -> CardPosition | None:
        with self._lock:
            card = self._hand.take(card_id)
            if card is None:
                logger.debug("move_card_to_playfield ignored; %s not in hand", card_id)
                return None
            placed = self._playfield.place(card, position[0], position[1])
        self._mutated()
        return placed

    def update_card_position(self, card_id: str, position: Point) -> CardPosition | None:
        with self._lock:
            moved = self._playfield.move(card_id, position[0], position[1])
        if moved is None:
            logger.debug("update_card_position ignored; %s not on playfield", card_id)
            return None
        self._mutated()
        return moved

    def bring_to_front(self, card_id: str) -> CardPosition | None:
        with self._lock:
            moved = self._playfield.bring_to_front(card_id)
        if moved is None:
            logger.debug("bring_to_front ignored; %s not on playfield", card_id)
            return None
        self._mutated()
        return moved

    def move_card_to_hand(self, card_id: str) -> Card | None:
        with self._lock:
            card = self._playfield.take(card_id)
            if card is not None:
                self._hand.add(card)
        if card is None:
            logger.debug("move_card_to_hand ignored; %s not on playfield", card_id)
            return None
        self._mutated()
        return card

    def discard_card(self, card_id: str) -> Card | None:
        with self._lock:
            card = self._hand.take(card_id) or self._playfield.take(card_id)
        if card is None:
            logger.debug("discard_card ignored; %s not in hand or on playfield", card_id)
            return None
        logger.debug("Discarded %s", card.name)
        self._mutated()
        return card

    def rotate_card(self, card_id: str, delta: int = 90) -> int | None:
        with self._lock:
            rotation = self._playfield.rotate(card_id, delta)
        if rotation is None:
            return None
        self._mutated()
        return rotation

    def set_card_rotation(self, card_id: str, degrees: int) -> int | None:
        with self._lock:
            rotation = self._playfield.set_rotation(card_id, degrees)
        if rotation is None:
            return None
        self._mutated()
        return rotation

    def normalize_z_indexes(self) -> None:
        with self._lock:
            self._playfield.normalize_z_indexes()
        self._mutated()

    # Persistence

    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            return SessionSnapshot(
                deck=DeckStateModel(
                    cards=[CardModel.from_card(c) for c in self._deck.cards],
                    original_count=self._deck.original_count,
                    name=self._deck.name,
                ),
                hand=HandStateModel(cards=[CardModel.from_card(c) for c in self._hand.cards]),
                playfield=PlayfieldStateModel(
                    cards=[CardModel.from_card(c) for c in self._playfield.cards],
                    positions={
                        cid: CardPositionModel(card_id=p.card_id, x=p.x, y=p.y, z_index=p.z_index)
                        for cid, p in self._playfield.positions.items()
                    },
                    next_z_index=self._playfield.next_z_index,
                    rotations=dict(self._playfield.rotations),
                ),
                deck_metadata=self._deck_metadata,
                created_at=self._created_at,
                updated_at=datetime.now(timezone.utc),
            )

    def restore(self, snapshot: SessionSnapshot) -> None:
        with self._lock:
            self._deck = Deck(
                cards=[c.to_card() for c in snapshot.deck.cards],
                name=snapshot.deck.name,
                original_count=snapshot.deck.original_count,
            )
            self._hand = HandZone(cards=[c.to_card() for c in snapshot.hand.cards])
            self._playfield = PlayfieldZone.restore(
                [c.to_card() for c in snapshot.playfield.cards],
                {
                    cid: CardPosition(cid, p.x, p.y, p.z_index)
                    for cid, p in snapshot.playfield.positions.items()
                },
                snapshot.playfield.next_z_index,
                snapshot.playfield.rotations,
            )
            self._deck_metadata = snapshot.deck_metadata
            self._created_at = snapshot.created_at

    def load(self) -> bool:
        """
        Restore the stored session, or start a fresh one from the test deck.

        Returns
        -------
        restored : bool
            True if a stored snapshot was applied
        """
        self.is_loading = True
        restored = False
        try:
            snapshot = self._repository.load(self.session_id)
        except PersistenceError as exc:
            logger.exception("Error loading session %s", self.session_id)
            with self._lock:
                self._initialise_defaults()
                self.error = str(exc) or "Failed to load game state"
        else:
            if snapshot is not None:
                self.restore(snapshot)
                restored = True
                logger.info("Restored session %s", self.session_id)
            else:
                with self._lock:
                    self._initialise_defaults()
                    self._created_at = datetime.now(timezone.utc)
                logger.info("No stored state for session %s; starting fresh", self.session_id)
                self._save_now()
        finally:
            self.is_loading = False
        self._notify()
        return restored

    def flush(self) -> bool:
        """Cancel any pending autosave and write immediately."""
        self._debouncer.cancel()
        return self._save_now()

    def close(self) -> None:
        if self.dirty or self._debouncer.pending:
            self.flush()

    def _autosave(self) -> None:
        self._save_now()

    def _save_now(self) -> bool:
        snapshot = self.snapshot()
        with self._lock:
            self.dirty = False
        try:
            self._repository.save(self.session_id, snapshot)
        except PersistenceError as exc:
            message = f"Auto-save failed: {exc}"
            logger.warning("Saving session %s failed: %s", self.session_id, exc)
            with self._lock:
                self.dirty = True
                self.persistence_warning = message
            if self.on_warning is not None:
                self.on_warning(message)
            return False
        self.persistence_warning = None
        logger.debug("Saved session %s", self.session_id)
        return True
