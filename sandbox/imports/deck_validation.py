import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel

from sandbox.imports.constants import (
    LARGE_DECK_WARNING_THRESHOLD,
    MAX_CARD_NAME_LENGTH,
    MAX_CARDS,
    MAX_FILE_SIZE_MB,
    MIN_CARDS,
    input_size_bytes,
)
from sandbox.schemas import DeckImport


class DeckImportError(ValueError):
    """Raised when a deck import is rejected; carries every violation found."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__(f"Invalid deck import: {', '.join(self.errors)}")


@dataclass
class DeckImportValidation:
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def _validate_card(card: Any, index: int, seen_ids: set[str], errors: list[str]) -> None:
    if not isinstance(card, Mapping):
        errors.append(f"Card at index {index} must be an object")
        return

    card_id = card.get("id")
    if not isinstance(card_id, str):
        errors.append(f"Card at index {index} must have an 'id' (string)")
    elif not card_id.strip():
        errors.append(f"Card at index {index} has an empty 'id'")
    elif card_id in seen_ids:
        errors.append(f"Duplicate card ID found: {card_id}")
    else:
        seen_ids.add(card_id)

    name = card.get("name")
    if not isinstance(name, str):
        errors.append(f"Card at index {index} must have a 'name' (string)")
    elif not name.strip():
        errors.append(f"Card at index {index} has an empty 'name'")
    elif len(name) > MAX_CARD_NAME_LENGTH:
        errors.append(
            f"Card at index {index} name exceeds maximum length of "
            f"{MAX_CARD_NAME_LENGTH} characters"
        )

    if "imageUrl" in card and not isinstance(card["imageUrl"], str):
        errors.append(f"Card at index {index} 'imageUrl' must be a string if provided")

    metadata = card.get("metadata")
    if metadata is not None and not isinstance(metadata, Mapping):
        errors.append(f"Card at index {index} 'metadata' must be an object if provided")


def validate_deck_import(deck_import: Any) -> DeckImportValidation:
    """
    Validate a deck import structure.

    Every per-card problem is collected so the caller can show the complete
    list in one pass. Only a missing ``cards`` array stops validation early.

    Parameters
    ----------
    deck_import : Any
        Decoded JSON document (or a DeckImport model)

    Returns
    -------
    validation : DeckImportValidation
        Validity flag, errors, and non-blocking warnings
    """
    if isinstance(deck_import, BaseModel):
        deck_import = deck_import.model_dump(by_alias=True, exclude_none=True)

    if not isinstance(deck_import, Mapping):
        return DeckImportValidation(
            valid=False, errors=["Deck import must be a valid JSON object"], warnings=[]
        )

    errors: list[str] = []
    warnings: list[str] = []

    name = deck_import.get("name")
    if not isinstance(name, str):
        errors.append("Deck name is required and must be a string")
    elif not name.strip():
        errors.append("Deck name cannot be empty")

    cards = deck_import.get("cards")
    if not isinstance(cards, list):
        errors.append("Cards must be an array")
        return DeckImportValidation(valid=False, errors=errors, warnings=warnings)

    if len(cards) < MIN_CARDS:
        errors.append(f"Deck must contain at least {MIN_CARDS} card(s)")
    if len(cards) > MAX_CARDS:
        errors.append(f"Deck cannot contain more than {MAX_CARDS} cards")

    seen_ids: set[str] = set()
    for index, card in enumerate(cards):
        _validate_card(card, index, seen_ids, errors)

    if len(cards) > LARGE_DECK_WARNING_THRESHOLD:
        warnings.append(
            f"Large deck detected (>{LARGE_DECK_WARNING_THRESHOLD} cards). "
            "Performance may be affected."
        )

    return DeckImportValidation(valid=not errors, errors=errors, warnings=warnings)


def parse_deck_import(text: str) -> DeckImport:
    """
    Decode and validate a deck import file.

    Raises
    ------
    DeckImportError
        If the text is not valid JSON or the structure fails validation
    """
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        raise DeckImportError([f"Invalid JSON: {exc}"]) from exc

    validation = validate_deck_import(parsed)
    if not validation.valid:
        raise DeckImportError(validation.errors)
    return DeckImport.model_validate(parsed)


def estimate_deck_size(deck_import: DeckImport) -> int:
    """Serialized size of the deck in bytes."""
    return input_size_bytes(deck_import.model_dump_json(by_alias=True, exclude_none=True))


def is_valid_file_size(size_bytes: int) -> bool:
    return size_bytes <= MAX_FILE_SIZE_MB * 1024 * 1024
