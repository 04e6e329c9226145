from collections.abc import Iterable
from datetime import datetime, timezone

from unidecode import unidecode_expect_ascii

from sandbox.game_pieces.cards import Card, new_card_id
from sandbox.game_pieces.constants import Provenance
from sandbox.imports.constants import DEFAULT_TTS_DECK_NAME
from sandbox.imports.tts_parser import TTSCardCode, TTSParseResult
from sandbox.schemas import DeckImport, JsonCardData


def tts_code_to_card(code: TTSCardCode, imported_at: datetime) -> Card:
    return Card(
        id=new_card_id(),
        name=code.image_code,
        image_url=code.image_url,
        metadata={"set": code.set, "number": code.number, "imageCode": code.image_code},
        provenance=Provenance.TTS_IMPORT,
        tts_code=code.raw,
        imported_at=imported_at,
    )


def json_card_to_card(card_data: JsonCardData, imported_at: datetime) -> Card:
    # The descriptor id is kept as json_id only; live ids are always fresh
    return Card(
        id=new_card_id(),
        name=card_data.name,
        image_url=card_data.image_url,
        metadata=card_data.metadata,
        provenance=Provenance.JSON_IMPORT,
        json_id=card_data.id,
        imported_at=imported_at,
    )


def transform_tts_to_cards(parse_result: TTSParseResult) -> list[Card]:
    now = datetime.now(timezone.utc)
    return [tts_code_to_card(code, now) for code in parse_result.codes]


def transform_json_to_cards(deck_import: DeckImport) -> list[Card]:
    now = datetime.now(timezone.utc)
    return [json_card_to_card(card_data, now) for card_data in deck_import.cards]


def transform_to_cards(data: TTSParseResult | DeckImport) -> list[Card]:
    """Route parsed import data to the matching transformer."""
    if isinstance(data, TTSParseResult):
        return transform_tts_to_cards(data)
    return transform_json_to_cards(data)


def extract_deck_name(data: TTSParseResult | DeckImport) -> str:
    if isinstance(data, DeckImport):
        return data.name
    if data.codes:
        return f"TTS Deck ({data.codes[0].set})"
    return DEFAULT_TTS_DECK_NAME


def count_cards(data: TTSParseResult | DeckImport) -> int:
    if isinstance(data, DeckImport):
        return len(data.cards)
    return len(data.codes)


def validate_transformed_cards(cards: Iterable[Card]) -> bool:
    return all(card.id and card.name and card.provenance and card.imported_at for card in cards)


def deduplicate_cards(cards: Iterable[Card]) -> list[Card]:
    """
    Drop cards whose name was already seen, keeping the first occurrence.

    Cards that share a name but differ in metadata are still collapsed.
    """
    seen: set[str] = set()
    unique: list[Card] = []
    for card in cards:
        if card.name in seen:
            continue
        seen.add(card.name)
        unique.append(card)
    return unique


def _collation_key(card: Card) -> str:
    return unidecode_expect_ascii(card.name).lower()


def sort_cards_by_name(cards: Iterable[Card]) -> list[Card]:
    """Stable, accent and case insensitive sort; returns a new list."""
    return sorted(cards, key=_collation_key)
