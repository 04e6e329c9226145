from enum import Enum


class Provenance(str, Enum):
    DEFAULT = "default"
    JSON_IMPORT = "json-import"
    TTS_IMPORT = "tts-import"


class CardLocation(str, Enum):
    DECK = "deck"
    HAND = "hand"
    PLAYFIELD = "playfield"


DEFAULT_TEST_DECK_SIZE = 20
DEFAULT_DECK_NAME = "Test Deck"
