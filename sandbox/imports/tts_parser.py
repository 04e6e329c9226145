"""Parser for Tabletop Simulator style deck codes.

Input is free-form text holding whitespace separated tokens of the form
``SET-NUMBER-QUANTITY`` (``OGN-253-1``). Invalid tokens are reported as
warnings and skipped so a mostly valid paste still imports.
"""

import logging
from dataclasses import dataclass, field

from sandbox.imports.constants import (
    MAX_IMPORT_SIZE_BYTES,
    TTS_CODE_PATTERN,
    TTS_IMAGE_BASE_URL,
    input_size_bytes,
    oversize_message,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TTSCardCode:
    raw: str
    set: str
    number: str
    quantity: str
    image_code: str
    image_url: str


@dataclass
class TTSParseResult:
    codes: list[TTSCardCode] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    total_found: int = 0


def _build_code(token: str) -> TTSCardCode:
    set_code, number, quantity = token.split("-")
    image_code = f"{set_code}-{number}"
    return TTSCardCode(
        raw=token,
        set=set_code,
        number=number,
        quantity=quantity,
        image_code=image_code,
        image_url=f"{TTS_IMAGE_BASE_URL}{image_code}.jpg",
    )


def parse_tts_deck(text: str) -> TTSParseResult:
    """
    Parse a TTS deck string into structured card codes.

    Parameters
    ----------
    text : str
        Raw deck text, codes separated by spaces and/or newlines

    Returns
    -------
    result : TTSParseResult
        Valid codes, one warning per rejected token, and the number of
        non-empty tokens seen (valid and invalid)
    """
    size = input_size_bytes(text)
    if size > MAX_IMPORT_SIZE_BYTES:
        logger.warning("Rejected TTS input of %d bytes", size)
        return TTSParseResult(codes=[], warnings=[oversize_message(size)], total_found=0)

    tokens = [token.strip() for token in text.split()]
    tokens = [token for token in tokens if token]

    result = TTSParseResult(total_found=len(tokens))
    for index, token in enumerate(tokens, start=1):
        if not TTS_CODE_PATTERN.match(token):
            result.warnings.append(
                f'Token {index}: Invalid TTS code format "{token}". '
                "Expected format: SET-NUMBER-QUANTITY (e.g., OGN-253-1)"
            )
            continue
        result.codes.append(_build_code(token))

    logger.debug(
        "Parsed %d of %d TTS tokens (%d warnings)",
        len(result.codes),
        result.total_found,
        len(result.warnings),
    )
    return result


def validate_tts_code(code: str) -> bool:
    return TTS_CODE_PATTERN.match(code.strip()) is not None


def extract_tts_components(code: str) -> dict[str, str] | None:
    """Split a valid code into set, number, quantity and image code; None if invalid."""
    if not validate_tts_code(code):
        return None
    parsed = _build_code(code.strip())
    return {
        "set": parsed.set,
        "number": parsed.number,
        "quantity": parsed.quantity,
        "imageCode": parsed.image_code,
    }


def construct_tts_image_url(code: str) -> str:
    components = extract_tts_components(code)
    if components is None:
        return ""
    return f"{TTS_IMAGE_BASE_URL}{components['imageCode']}.jpg"


def count_tts_cards(text: str) -> int:
    """Count non-empty lines, including ones that would fail validation."""
    return len([line for line in text.split("\n") if line.strip()])
