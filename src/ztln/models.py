"""Core data models for the note graph.

Uses Pydantic v2 for validation and UUIDs for note identity.
"""

import string
import uuid

from pydantic import BaseModel, Field

from .constants import HEAD
from .errors import MetadataParseError
from .ids import is_full_id, is_short_id, parse_id, short_id


class NoteMetadata(BaseModel):
    """Structured record stored next to each note's content.

    The note id is not part of the serialized record; it is the file name.
    """

    note_id: uuid.UUID
    parent_id: uuid.UUID | None = None
    topic: str
    path: str
    references: list[uuid.UUID] = Field(default_factory=list)

    @property
    def short_id(self) -> str:
        return short_id(self.note_id)

    def with_reference(self, note_id: uuid.UUID) -> "NoteMetadata":
        """Return a copy with one more reference appended."""
        return self.model_copy(update={"references": [*self.references, note_id]})

    def to_text(self) -> str:
        """Serialize to the line-oriented on-disk format.

        Line 1 is the parent id (empty for a root note), then topic, path,
        and one reference id per line.
        """
        lines = [
            str(self.parent_id) if self.parent_id else "",
            self.topic,
            self.path,
            *(str(ref) for ref in self.references),
        ]
        return "\n".join(lines) + "\n"

    @classmethod
    def from_text(cls, note_id: uuid.UUID, text: str) -> "NoteMetadata":
        """Deserialize a record written by to_text().

        Raises:
            MetadataParseError: If topic or path is missing or empty, or
                any identifier line is malformed
        """
        lines = text.split("\n")
        while lines and lines[-1].strip() == "":
            lines.pop()

        if len(lines) < 2 or not lines[1]:
            raise MetadataParseError("topic", "missing or empty topic line")
        if len(lines) < 3 or not lines[2]:
            raise MetadataParseError("path", "missing or empty path line")

        return cls(
            note_id=note_id,
            parent_id=_parse_field("parent_id", lines[0]) if lines[0] else None,
            topic=lines[1],
            path=lines[2],
            references=[_parse_field("references", line) for line in lines[3:]],
        )

    def to_summary(self) -> dict:
        """Return a compact summary of this note."""
        return {
            "id": str(self.note_id),
            "short_id": self.short_id,
            "parent_id": str(self.parent_id) if self.parent_id else None,
            "topic": self.topic,
            "path": self.path,
            "references": [str(ref) for ref in self.references],
        }


def _parse_field(field: str, text: str) -> uuid.UUID:
    try:
        return parse_id(text)
    except ValueError as e:
        raise MetadataParseError(field, str(e)) from e


class CreationReport(BaseModel):
    """What addNote did: the new note, its parent, and where it landed."""

    note_id: uuid.UUID
    parent_id: uuid.UUID | None = None
    topic: str
    path: str


# ─────────────────────────────────────────────────────────────────────────────
# Naming rules
# ─────────────────────────────────────────────────────────────────────────────

_NAME_FIRST = frozenset(string.ascii_letters)
_NAME_REST = frozenset(string.ascii_letters + string.digits + "_-.")


def validate_name(name: str) -> tuple[bool, str | None]:
    """Validate a topic or path name.

    Names must stay addressable in location expressions, so they share
    the relative-location token grammar.

    Returns:
        (is_valid, message); message describes the problem if invalid
    """
    if name == "":
        return False, "name is empty"
    if name == HEAD:
        return False, f"'{HEAD}' is a reserved name"
    if name[0] not in _NAME_FIRST:
        return False, "name must start with an ASCII letter"
    if any(c not in _NAME_REST for c in name[1:]):
        return False, "use only letters, digits, '_', '-' and '.'"
    if is_short_id(name) or is_full_id(name):
        return False, "name would be read as a note id"
    return True, None
