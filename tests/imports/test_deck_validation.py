import json

import pytest

from sandbox.imports.constants import MAX_CARD_NAME_LENGTH, MAX_CARDS
from sandbox.imports.deck_validation import (
    DeckImportError,
    estimate_deck_size,
    is_valid_file_size,
    parse_deck_import,
    validate_deck_import,
)
from sandbox.schemas import DeckImport


def mk_cards(n: int) -> list[dict]:
    return [{"id": f"c{i}", "name": f"Card {i}"} for i in range(n)]


def test_valid_import(json_deck):
    validation = validate_deck_import(json_deck)
    assert validation.valid
    assert validation.errors == []
    assert validation.warnings == []


def test_accepts_typed_model(json_deck):
    assert validate_deck_import(DeckImport.model_validate(json_deck)).valid


@pytest.mark.parametrize("raw", [None, [], "deck", 3])
def test_non_object_is_single_fatal_error(raw):
    validation = validate_deck_import(raw)
    assert not validation.valid
    assert validation.errors == ["Deck import must be a valid JSON object"]
    assert validation.warnings == []


def test_empty_cards_list_reports_minimum():
    validation = validate_deck_import({"name": "Test", "cards": []})
    assert not validation.valid
    assert any("must contain at least 1 card" in e for e in validation.errors)


def test_non_list_cards_short_circuits():
    validation = validate_deck_import({"name": "", "cards": {"id": "x"}})
    assert validation.errors == ["Deck name cannot be empty", "Cards must be an array"]


def test_duplicate_ids_are_named():
    validation = validate_deck_import(
        {"name": "Dupes", "cards": [{"id": "x", "name": "A"}, {"id": "x", "name": "B"}]}
    )
    assert not validation.valid
    assert "Duplicate card ID found: x" in validation.errors


def test_all_card_errors_are_collected():
    cards = [
        "not a card",
        {"id": 1, "name": "A"},
        {"id": "ok", "name": "   "},
        {"id": "long", "name": "x" * (MAX_CARD_NAME_LENGTH + 1)},
        {"id": "img", "name": "B", "imageUrl": 5},
        {"id": "meta", "name": "C", "metadata": [1, 2]},
    ]
    validation = validate_deck_import({"name": "Broken", "cards": cards})

    assert validation.errors == [
        "Card at index 0 must be an object",
        "Card at index 1 must have an 'id' (string)",
        "Card at index 2 has an empty 'name'",
        f"Card at index 3 name exceeds maximum length of {MAX_CARD_NAME_LENGTH} characters",
        "Card at index 4 'imageUrl' must be a string if provided",
        "Card at index 5 'metadata' must be an object if provided",
    ]


def test_name_at_max_length_is_allowed():
    cards = [{"id": "a", "name": "x" * MAX_CARD_NAME_LENGTH}]
    assert validate_deck_import({"name": "Edge", "cards": cards}).valid


def test_card_count_bounds():
    assert validate_deck_import({"name": "Max", "cards": mk_cards(MAX_CARDS)}).valid

    too_many = validate_deck_import({"name": "Over", "cards": mk_cards(MAX_CARDS + 1)})
    assert not too_many.valid
    assert f"Deck cannot contain more than {MAX_CARDS} cards" in too_many.errors


def test_large_deck_warns_but_stays_valid():
    validation = validate_deck_import({"name": "Big", "cards": mk_cards(101)})
    assert validation.valid
    assert len(validation.warnings) == 1
    assert "Performance may be affected" in validation.warnings[0]

    assert validate_deck_import({"name": "Hundred", "cards": mk_cards(100)}).warnings == []


def test_parse_deck_import_raises_with_every_error():
    with pytest.raises(DeckImportError) as excinfo:
        parse_deck_import(json.dumps({"name": "", "cards": []}))
    assert len(excinfo.value.errors) == 2
    assert "Deck name cannot be empty" in str(excinfo.value)

    with pytest.raises(DeckImportError):
        parse_deck_import("{broken")


def test_parse_deck_import_and_size_helpers(json_deck):
    deck = parse_deck_import(json.dumps(json_deck))
    assert deck.name == "Imported"
    assert estimate_deck_size(deck) > 0
    assert is_valid_file_size(5 * 1024 * 1024)
    assert not is_valid_file_size(5 * 1024 * 1024 + 1)
