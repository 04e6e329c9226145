"""Parser for JSON deck files of the form ``{"name": ..., "cards": [...]}``."""

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from sandbox.imports.constants import MAX_IMPORT_SIZE_BYTES, input_size_bytes, oversize_message
from sandbox.imports.deck_validation import validate_deck_import
from sandbox.schemas import DeckImport

logger = logging.getLogger(__name__)


@dataclass
class JsonParseResult:
    deck: DeckImport | None = None
    errors: list[str] = field(default_factory=list)
    input_size_bytes: int = 0


def _format_validation_error(exc: ValidationError) -> list[str]:
    return [
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
    ]


def parse_json_deck(text: str) -> JsonParseResult:
    """
    Parse a JSON deck string into a typed deck import.

    Parameters
    ----------
    text : str
        Raw JSON document

    Returns
    -------
    result : JsonParseResult
        The parsed deck, or None and every error found
    """
    size = input_size_bytes(text)
    if size > MAX_IMPORT_SIZE_BYTES:
        logger.warning("Rejected JSON input of %d bytes", size)
        return JsonParseResult(deck=None, errors=[oversize_message(size)], input_size_bytes=size)

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        return JsonParseResult(deck=None, errors=[f"Invalid JSON: {exc}"], input_size_bytes=size)

    validation = validate_deck_import(parsed)
    if not validation.valid:
        logger.debug("JSON deck rejected with %d errors", len(validation.errors))
        return JsonParseResult(deck=None, errors=validation.errors, input_size_bytes=size)

    try:
        deck = DeckImport.model_validate(parsed)
    except ValidationError as exc:
        return JsonParseResult(
            deck=None, errors=_format_validation_error(exc), input_size_bytes=size
        )
    return JsonParseResult(deck=deck, errors=[], input_size_bytes=size)


def _try_load(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return None


def validate_json_structure(text: str) -> bool:
    """Quick shape check: an object with a name and a list of cards."""
    parsed = _try_load(text)
    return isinstance(parsed, dict) and "name" in parsed and isinstance(parsed.get("cards"), list)


def extract_deck_name(text: str) -> str | None:
    parsed = _try_load(text)
    if isinstance(parsed, dict) and "name" in parsed:
        return str(parsed["name"])
    return None


def count_json_cards(text: str) -> int:
    parsed = _try_load(text)
    if isinstance(parsed, dict) and isinstance(parsed.get("cards"), list):
        return len(parsed["cards"])
    return 0


def sanitize_json_input(text: str) -> str:
    """Compact re-serialisation of the document, or the stripped text if it does not parse."""
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        return text.strip()
    return json.dumps(parsed, separators=(",", ":"), ensure_ascii=False)
