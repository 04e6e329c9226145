"""Unified validation for TTS and JSON imports.

Routes raw input to the format parser and folds its output into a single
result carrying severity tagged messages, ready for display.
"""

from dataclasses import dataclass, field

from sandbox.imports.constants import MAX_CARDS, ImportFormat, Severity
from sandbox.imports.json_parser import parse_json_deck
from sandbox.imports.tts_parser import TTSParseResult, parse_tts_deck
from sandbox.schemas import DeckImport


@dataclass(frozen=True)
class ValidationMessage:
    severity: Severity
    message: str


@dataclass
class ImportValidationResult:
    valid: bool
    format: ImportFormat
    card_count: int = 0
    messages: list[ValidationMessage] = field(default_factory=list)
    data: TTSParseResult | DeckImport | None = None


def validate_import(text: str | None, fmt: ImportFormat | str) -> ImportValidationResult:
    """
    Validate raw import input for the given format.

    Parameters
    ----------
    text : str
        TTS codes or a JSON document
    fmt : ImportFormat or str
        "tts" or "json"

    Returns
    -------
    result : ImportValidationResult
        Validity, card count, messages, and the parsed data when valid
    """
    fmt = ImportFormat(fmt)
    if not text or not text.strip():
        return ImportValidationResult(
            valid=False,
            format=fmt,
            messages=[ValidationMessage(Severity.ERROR, "Import input cannot be empty")],
        )
    if fmt is ImportFormat.TTS:
        return _validate_tts_import(text)
    return _validate_json_import(text)


def _validate_tts_import(text: str) -> ImportValidationResult:
    parsed = parse_tts_deck(text)
    messages = [ValidationMessage(Severity.WARNING, warning) for warning in parsed.warnings]

    has_valid_cards = bool(parsed.codes)
    too_many = len(parsed.codes) > MAX_CARDS
    if parsed.total_found > 0 and not has_valid_cards:
        messages.append(
            ValidationMessage(
                Severity.ERROR, "No valid TTS codes found. All lines failed validation."
            )
        )
    if too_many:
        messages.append(
            ValidationMessage(Severity.ERROR, f"Deck cannot contain more than {MAX_CARDS} cards")
        )
    elif has_valid_cards:
        messages.append(
            ValidationMessage(
                Severity.INFO,
                f"Successfully parsed {len(parsed.codes)} of {parsed.total_found} cards",
            )
        )

    return ImportValidationResult(
        valid=has_valid_cards and not too_many,
        format=ImportFormat.TTS,
        card_count=len(parsed.codes),
        messages=messages,
        data=parsed,
    )


def _validate_json_import(text: str) -> ImportValidationResult:
    parsed = parse_json_deck(text)
    messages = [ValidationMessage(Severity.ERROR, error) for error in parsed.errors]

    if parsed.deck is not None:
        messages.append(
            ValidationMessage(
                Severity.INFO,
                f'Successfully parsed deck "{parsed.deck.name}" with {len(parsed.deck.cards)} cards',
            )
        )

    return ImportValidationResult(
        valid=parsed.deck is not None,
        format=ImportFormat.JSON,
        card_count=len(parsed.deck.cards) if parsed.deck is not None else 0,
        messages=messages,
        data=parsed.deck,
    )


def has_errors(result: ImportValidationResult) -> bool:
    return any(msg.severity is Severity.ERROR for msg in result.messages)


def has_warnings(result: ImportValidationResult) -> bool:
    return any(msg.severity is Severity.WARNING for msg in result.messages)


def get_messages_by_severity(
    result: ImportValidationResult, severity: Severity | str
) -> list[ValidationMessage]:
    severity = Severity(severity)
    return [msg for msg in result.messages if msg.severity is severity]


def format_validation_messages(messages: list[ValidationMessage]) -> str:
    return "\n".join(f"[{msg.severity.value.upper()}] {msg.message}" for msg in messages)
