from dataclasses import dataclass, field
from collections.abc import Iterable

from sandbox.game_pieces.cards import Card

MAX_Z_INDEX = 10000


def normalize_rotation(degrees: int) -> int:
    """Fold any angle into 0..359."""
    return degrees % 360


@dataclass(frozen=True, slots=True)
class CardPosition:
    card_id: str
    x: float
    y: float
    z_index: int


@dataclass(slots=True)
class Zone:
    name: str
    cards: list[Card] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.cards)

    def __contains__(self, card_id: object) -> bool:
        return any(card.id == card_id for card in self.cards)

    def add(self, card: Card) -> None:
        self.cards.append(card)

    def take(self, card_id: str) -> Card | None:
        for i, card in enumerate(self.cards):
            if card.id == card_id:
                return self.cards.pop(i)
        return None

    def clear(self) -> None:
        self.cards.clear()


@dataclass(slots=True)
class HandZone(Zone):
    name: str = "Hand"


@dataclass(slots=True)
class PlayfieldZone(Zone):
    """
    Placed cards plus their positions, stacking counter and rotations.

    Every placed card has exactly one position and every position belongs to
    a placed card. ``next_z_index`` stays above every stored z-index.
    """

    name: str = "Playfield"
    positions: dict[str, CardPosition] = field(default_factory=dict)
    next_z_index: int = 1
    rotations: dict[str, int] = field(default_factory=dict)

    def _take_z_index(self) -> int:
        if self.next_z_index > MAX_Z_INDEX:
            self.normalize_z_indexes()
        z_index = self.next_z_index
        self.next_z_index += 1
        return z_index

    def place(self, card: Card, x: float, y: float) -> CardPosition:
        self.cards.append(card)
        position = CardPosition(card.id, x, y, self._take_z_index())
        self.positions[card.id] = position
        return position

    def move(self, card_id: str, x: float, y: float) -> CardPosition | None:
        if card_id not in self.positions:
            return None
        position = CardPosition(card_id, x, y, self._take_z_index())
        self.positions[card_id] = position
        return position

    def bring_to_front(self, card_id: str) -> CardPosition | None:
        current = self.positions.get(card_id)
        if current is None:
            return None
        return self.move(card_id, current.x, current.y)

    def take(self, card_id: str) -> Card | None:
        card = Zone.take(self, card_id)
        if card is not None:
            self.positions.pop(card_id, None)
            self.rotations.pop(card_id, None)
        return card

    def clear(self) -> None:
        self.cards.clear()
        self.positions.clear()
        self.rotations.clear()
        self.next_z_index = 1

    def normalize_z_indexes(self) -> None:
        """Renumber the stack 1..N keeping its order."""
        ordered = sorted(self.positions.values(), key=lambda p: p.z_index)
        self.positions = {
            p.card_id: CardPosition(p.card_id, p.x, p.y, i) for i, p in enumerate(ordered, start=1)
        }
        self.next_z_index = len(ordered) + 1

    def rotation(self, card_id: str) -> int:
        return self.rotations.get(card_id, 0)

    def set_rotation(self, card_id: str, degrees: int) -> int | None:
        if card_id not in self.positions:
            return None
        rotation = normalize_rotation(degrees)
        if rotation:
            self.rotations[card_id] = rotation
        else:
            self.rotations.pop(card_id, None)
        return rotation

    def rotate(self, card_id: str, delta: int) -> int | None:
        return self.set_rotation(card_id, self.rotation(card_id) + delta)

    def stacking_order(self) -> list[Card]:
        """Placed cards from bottom to top."""
        return sorted(self.cards, key=lambda c: self.positions[c.id].z_index)

    def orphaned_positions(self) -> list[str]:
        placed = {card.id for card in self.cards}
        return [card_id for card_id in self.positions if card_id not in placed]

    def orphaned_rotations(self) -> list[str]:
        placed = {card.id for card in self.cards}
        return [card_id for card_id in self.rotations if card_id not in placed]

    @classmethod
    def restore(
        cls,
        cards: Iterable[Card],
        positions: dict[str, CardPosition],
        next_z_index: int = 1,
        rotations: dict[str, int] | None = None,
    ) -> "PlayfieldZone":
        """
        Rebuild a playfield from stored state, repairing anything that would
        break the position invariant.

        Positions and rotations without a placed card are dropped; placed
        cards without a position are stacked on top at the origin.
        """
        zone = cls()
        zone.cards = list(cards)
        placed = {card.id for card in zone.cards}
        # The map key wins over the card_id stored in each entry
        zone.positions = {
            cid: CardPosition(cid, pos.x, pos.y, pos.z_index)
            for cid, pos in positions.items()
            if cid in placed
        }
        max_z = max((p.z_index for p in zone.positions.values()), default=0)
        zone.next_z_index = max(next_z_index, max_z + 1)
        for card in zone.cards:
            if card.id not in zone.positions:
                zone.positions[card.id] = CardPosition(card.id, 0, 0, zone._take_z_index())
        zone.rotations = {
            cid: normalize_rotation(deg)
            for cid, deg in (rotations or {}).items()
            if cid in placed and normalize_rotation(deg)
        }
        return zone
