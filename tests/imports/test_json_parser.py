import json

from sandbox.imports.constants import MAX_IMPORT_SIZE_BYTES
from sandbox.imports.json_parser import (
    count_json_cards,
    extract_deck_name,
    parse_json_deck,
    sanitize_json_input,
    validate_json_structure,
)
from sandbox.schemas import DeckImport


def test_valid_document_parses_to_typed_deck(json_deck):
    result = parse_json_deck(json.dumps(json_deck))

    assert result.errors == []
    assert isinstance(result.deck, DeckImport)
    assert result.deck.name == "Imported"
    assert [c.id for c in result.deck.cards] == ["a", "b", "c"]
    assert result.deck.cards[0].image_url == "https://example.com/a.jpg"
    assert result.deck.cards[1].metadata == {"cost": 2}
    assert result.input_size_bytes == len(json.dumps(json_deck).encode("utf-8"))


def test_syntax_error_is_reported():
    result = parse_json_deck('{"name": "x", "cards": [')

    assert result.deck is None
    assert len(result.errors) == 1
    assert result.errors[0].startswith("Invalid JSON:")


def test_structural_errors_are_all_reported():
    doc = {"name": "", "cards": [{"id": "", "name": "A"}, {"id": "x", "name": 5}]}
    result = parse_json_deck(json.dumps(doc))

    assert result.deck is None
    assert "Deck name cannot be empty" in result.errors
    assert "Card at index 0 has an empty 'id'" in result.errors
    assert "Card at index 1 must have a 'name' (string)" in result.errors


def test_oversize_input_is_rejected():
    text = " " * (MAX_IMPORT_SIZE_BYTES + 1)
    result = parse_json_deck(text)

    assert result.deck is None
    assert "exceeds maximum allowed" in result.errors[0]


def test_quick_helpers():
    text = '{"name": "Deck", "cards": [{"id": "1", "name": "A"}, {"id": "2", "name": "B"}]}'
    assert validate_json_structure(text)
    assert not validate_json_structure('{"name": "Deck"}')
    assert not validate_json_structure("nope")
    assert extract_deck_name(text) == "Deck"
    assert extract_deck_name("[]") is None
    assert count_json_cards(text) == 2
    assert count_json_cards("{") == 0


def test_sanitize_compacts_or_strips():
    assert sanitize_json_input('{ "a" : [1, 2] }') == '{"a":[1,2]}'
    assert sanitize_json_input("  not json  ") == "not json"
