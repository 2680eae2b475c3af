"""Tests for note metadata serialization and naming rules."""

import uuid

import pytest

from ztln.errors import MetadataParseError
from ztln.models import NoteMetadata, validate_name


NOTE_ID = uuid.UUID("44a0f45f-1c2d-4e5f-8a9b-0c1d2e3f4a5b")
PARENT_ID = uuid.UUID("0b7e2d1c-3a4f-4b5e-9c8d-7f6e5d4c3b2a")


# ─────────────────────────────────────────────────────────────────────────────
# Metadata codec
# ─────────────────────────────────────────────────────────────────────────────


class TestMetadataSerialization:
    """Tests for NoteMetadata.to_text / from_text."""

    def test_root_note_layout(self):
        """A root note writes an empty parent line and no reference lines."""
        meta = NoteMetadata(note_id=NOTE_ID, topic="T1", path="main")
        assert meta.to_text() == "\nT1\nmain\n"

    def test_references_one_per_line(self):
        refs = [uuid.uuid4(), uuid.uuid4()]
        meta = NoteMetadata(
            note_id=NOTE_ID, parent_id=PARENT_ID, topic="T1", path="main", references=refs
        )
        assert meta.to_text().splitlines() == [
            str(PARENT_ID), "T1", "main", str(refs[0]), str(refs[1])
        ]

    @pytest.mark.parametrize("parent_id", [None, PARENT_ID])
    @pytest.mark.parametrize("ref_count", [0, 1, 3])
    def test_roundtrip(self, parent_id, ref_count):
        """Serialization should be lossless."""
        original = NoteMetadata(
            note_id=NOTE_ID,
            parent_id=parent_id,
            topic="T1",
            path="feature",
            references=[uuid.uuid4() for _ in range(ref_count)],
        )
        restored = NoteMetadata.from_text(NOTE_ID, original.to_text())
        assert restored == original

    def test_trailing_blank_lines_ignored(self):
        meta = NoteMetadata.from_text(NOTE_ID, f"{PARENT_ID}\nT1\nmain\n\n\n")
        assert meta.parent_id == PARENT_ID
        assert meta.references == []

    def test_note_id_comes_from_caller(self):
        meta = NoteMetadata.from_text(NOTE_ID, "\nT1\nmain\n")
        assert meta.note_id == NOTE_ID


class TestMetadataParseErrors:
    def test_empty_topic_rejected(self):
        with pytest.raises(MetadataParseError) as exc:
            NoteMetadata.from_text(NOTE_ID, "\n\nmain\n")
        assert exc.value.field == "topic"

    def test_empty_path_rejected(self):
        with pytest.raises(MetadataParseError) as exc:
            NoteMetadata.from_text(NOTE_ID, f"{PARENT_ID}\nT1\n\n{uuid.uuid4()}\n")
        assert exc.value.field == "path"

    def test_missing_path_line_rejected(self):
        with pytest.raises(MetadataParseError) as exc:
            NoteMetadata.from_text(NOTE_ID, "\nT1\n")
        assert exc.value.field == "path"

    def test_empty_record_rejected(self):
        with pytest.raises(MetadataParseError):
            NoteMetadata.from_text(NOTE_ID, "")

    def test_bad_parent_id(self):
        with pytest.raises(MetadataParseError) as exc:
            NoteMetadata.from_text(NOTE_ID, "nope\nT1\nmain\n")
        assert exc.value.field == "parent_id"

    def test_bad_reference(self):
        with pytest.raises(MetadataParseError) as exc:
            NoteMetadata.from_text(NOTE_ID, f"\nT1\nmain\n{uuid.uuid4()}\n44a0f45f\n")
        assert exc.value.field == "references"

    def test_blank_line_between_references(self):
        """Only trailing blank lines are trimmed."""
        with pytest.raises(MetadataParseError):
            NoteMetadata.from_text(NOTE_ID, f"\nT1\nmain\n\n{uuid.uuid4()}\n")


class TestWithReference:
    def test_appends_without_mutating(self):
        meta = NoteMetadata(note_id=NOTE_ID, topic="T1", path="main")
        target = uuid.uuid4()
        updated = meta.with_reference(target)
        assert updated.references == [target]
        assert meta.references == []

    def test_summary(self):
        meta = NoteMetadata(note_id=NOTE_ID, parent_id=PARENT_ID, topic="T1", path="main")
        summary = meta.to_summary()
        assert summary["short_id"] == "44a0f45f"
        assert summary["parent_id"] == str(PARENT_ID)


# ─────────────────────────────────────────────────────────────────────────────
# Naming rules
# ─────────────────────────────────────────────────────────────────────────────


class TestValidateName:
    @pytest.mark.parametrize("name", ["T1", "main", "main2", "work-log", "a.b_c", "cafe"])
    def test_valid(self, name):
        valid, msg = validate_name(name)
        assert valid is True
        assert msg is None

    def test_head_reserved(self):
        valid, msg = validate_name("HEAD")
        assert valid is False
        assert "reserved" in msg

    def test_empty(self):
        valid, _ = validate_name("")
        assert valid is False

    @pytest.mark.parametrize("name", ["2024", "_x", "-x", ".hidden"])
    def test_must_start_with_letter(self, name):
        valid, msg = validate_name(name)
        assert valid is False
        assert "letter" in msg

    @pytest.mark.parametrize("name", ["a/b", "a b", "a:-1", "naïve"])
    def test_bad_characters(self, name):
        valid, _ = validate_name(name)
        assert valid is False

    @pytest.mark.parametrize("name", ["deadbeef", "abcdef01-2345-4678-9abc-def012345678"])
    def test_id_lookalikes_rejected(self, name):
        valid, msg = validate_name(name)
        assert valid is False
        assert "id" in msg
