from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
import uuid

from sandbox.game_pieces.constants import Provenance


def new_card_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class Card:
    id: str
    name: str
    image_url: str | None = None
    metadata: dict[str, Any] | None = None
    provenance: Provenance = Provenance.DEFAULT
    json_id: str | None = None
    tts_code: str | None = None
    imported_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self):
        # Own a private copy so callers cannot mutate the card through their dict
        if self.metadata is not None:
            object.__setattr__(self, "metadata", dict(self.metadata))
        if not isinstance(self.provenance, Provenance):
            object.__setattr__(self, "provenance", Provenance(self.provenance))

    def __hash__(self) -> int:
        return hash(self.id)
