import re
from enum import Enum


class ImportFormat(str, Enum):
    TTS = "tts"
    JSON = "json"


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


TTS_IMAGE_BASE_URL = "https://riftmana.com/wp-content/uploads/Cards/"
# SET-NUMBER-QUANTITY, e.g. OGN-253-1
TTS_CODE_PATTERN = re.compile(r"^[A-Z0-9]+-[0-9]+-[0-9]+$")

MAX_IMPORT_SIZE_BYTES = 5 * 1024 * 1024

MIN_CARDS = 1
MAX_CARDS = 200
MAX_FILE_SIZE_MB = 5
MAX_CARD_NAME_LENGTH = 100
LARGE_DECK_WARNING_THRESHOLD = 100

DEFAULT_TTS_DECK_NAME = "Imported TTS Deck"


def input_size_bytes(text: str) -> int:
    return len(text.encode("utf-8"))


def oversize_message(size_bytes: int) -> str:
    return (
        f"Input size ({size_bytes / 1024 / 1024:.2f}MB) exceeds maximum allowed "
        f"({MAX_IMPORT_SIZE_BYTES / 1024 / 1024:g}MB)"
    )
