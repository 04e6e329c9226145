from sandbox.game_pieces.cards import Card
from sandbox.game_pieces.constants import Provenance
from sandbox.game_pieces.deck import Deck, generate_test_deck


def mk(i: int) -> Card:
    return Card(id=f"c{i}", name=f"Card {i}")


def test_deck_draws_from_the_front():
    deck = Deck.build([mk(i) for i in range(3)], name="Three")
    assert len(deck) == 3
    assert deck.original_count == 3
    assert deck.name == "Three"

    assert deck.draw_one().id == "c0"
    assert deck.draw_one().id == "c1"
    assert deck.count_label == "1/3"

    deck.draw_one()
    assert deck.draw_one() is None
    assert deck.count_label == "0/3"


def test_generate_test_deck():
    cards = generate_test_deck()
    assert len(cards) == 20
    assert [c.name for c in cards[:3]] == ["Card 1", "Card 2", "Card 3"]
    assert cards[4].metadata == {"testCard": True, "index": 5}
    assert all(c.provenance is Provenance.DEFAULT for c in cards)
    assert len({c.id for c in cards}) == 20
    assert len(generate_test_deck(3)) == 3
