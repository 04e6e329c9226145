from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from sandbox.game_pieces.cards import Card
from sandbox.game_pieces.constants import Provenance


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Deck import payloads


class JsonCardData(CamelModel):
    id: str
    name: str
    image_url: str | None = None
    metadata: dict[str, Any] | None = None


class DeckImport(CamelModel):
    name: str
    cards: list[JsonCardData] = Field(default_factory=list)


# Persisted session snapshot


class CardModel(CamelModel):
    id: str
    name: str
    image_url: str | None = None
    metadata: dict[str, Any] | None = None
    provenance: Provenance = Provenance.DEFAULT
    json_id: str | None = None
    tts_code: str | None = None
    imported_at: datetime | None = None

    @classmethod
    def from_card(cls, card: Card) -> "CardModel":
        return cls(
            id=card.id,
            name=card.name,
            image_url=card.image_url,
            metadata=card.metadata,
            provenance=card.provenance,
            json_id=card.json_id,
            tts_code=card.tts_code,
            imported_at=card.imported_at,
        )

    def to_card(self) -> Card:
        extra = {"imported_at": self.imported_at} if self.imported_at is not None else {}
        return Card(
            id=self.id,
            name=self.name,
            image_url=self.image_url,
            metadata=self.metadata,
            provenance=self.provenance,
            json_id=self.json_id,
            tts_code=self.tts_code,
            **extra,
        )


class CardPositionModel(CamelModel):
    card_id: str
    x: float
    y: float
    z_index: int


class DeckStateModel(CamelModel):
    cards: list[CardModel] = Field(default_factory=list)
    original_count: int = 0
    name: str | None = None


class HandStateModel(CamelModel):
    cards: list[CardModel] = Field(default_factory=list)
    max_size: int | None = None


class PlayfieldStateModel(CamelModel):
    cards: list[CardModel] = Field(default_factory=list)
    positions: dict[str, CardPositionModel] = Field(default_factory=dict)
    next_z_index: int = 1
    rotations: dict[str, int] = Field(default_factory=dict)


class DeckMetadataModel(CamelModel):
    name: str
    original_card_count: int
    imported_at: datetime


class SessionSnapshot(CamelModel):
    deck: DeckStateModel = Field(default_factory=DeckStateModel)
    hand: HandStateModel = Field(default_factory=HandStateModel)
    playfield: PlayfieldStateModel = Field(default_factory=PlayfieldStateModel)
    deck_metadata: DeckMetadataModel | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
