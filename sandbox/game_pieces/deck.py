from collections.abc import Iterable
from dataclasses import dataclass, field

from sandbox.game_pieces.cards import Card, new_card_id
from sandbox.game_pieces.constants import DEFAULT_TEST_DECK_SIZE, Provenance


@dataclass
class Deck:
    """An ordered deck where the "top" is the start of the list."""

    cards: list[Card] = field(default_factory=list)
    name: str | None = None
    original_count: int = 0

    def __len__(self) -> int:
        return len(self.cards)

    @classmethod
    def build(cls, cards: Iterable[Card], name: str | None = None) -> "Deck":
        cards = list(cards)
        return cls(cards, name=name, original_count=len(cards))

    def draw_one(self) -> Card | None:
        if not self.cards:
            return None
        return self.cards.pop(0)

    @property
    def count_label(self) -> str:
        return f"{len(self.cards)}/{self.original_count}"


def generate_test_deck(count: int = DEFAULT_TEST_DECK_SIZE) -> list[Card]:
    """
    Generate the default deck used on first load and on reset.

    Parameters
    ----------
    count : int
        Number of cards to generate

    Returns
    -------
    cards : list of Card
        Cards named "Card 1" to "Card N", each with a fresh identifier
    """
    return [
        Card(
            id=new_card_id(),
            name=f"Card {i}",
            metadata={"testCard": True, "index": i},
            provenance=Provenance.DEFAULT,
        )
        for i in range(1, count + 1)
    ]

