"""
Note model and blob codec.

The persisted blob is a JSON array of objects with the keys
id, title, content and isCompleted, in collection order.
"""

from typing import Iterable
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class Note(BaseModel):
    """A single note. Frozen: the store replaces notes rather than mutating them."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: UUID = Field(default_factory=uuid4, description="Unique, immutable identifier")
    title: str = Field(description="Short title")
    content: str = Field(description="Note body")
    is_completed: bool = Field(default=False, alias="isCompleted")


_NOTE_LIST = TypeAdapter(list[Note])


def encode_notes(notes: Iterable[Note]) -> bytes:
    """Serialize notes to the JSON blob format."""
    return _NOTE_LIST.dump_json(list(notes), by_alias=True)


def decode_notes(data: bytes) -> list[Note]:
    """
    Deserialize a JSON blob into notes.

    Raises pydantic.ValidationError on malformed JSON or records, and
    ValueError if two records share an id.
    """
    notes = _NOTE_LIST.validate_json(data)

    seen: set[UUID] = set()
    for note in notes:
        if note.id in seen:
            raise ValueError(f"Duplicate note id in stored data: {note.id}")
        seen.add(note.id)

    return notes
