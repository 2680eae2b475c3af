"""Tests for note identifiers."""

import uuid

import pytest

from ztln.ids import generate_id, is_full_id, is_short_id, parse_id, short_id


class TestGenerateId:
    def test_is_random_v4(self):
        assert generate_id().version == 4

    def test_never_repeats(self):
        ids = {generate_id() for _ in range(1000)}
        assert len(ids) == 1000


class TestParseId:
    def test_canonical_text(self):
        note_id = uuid.uuid4()
        assert parse_id(str(note_id)) == note_id

    def test_rejects_short_form(self):
        with pytest.raises(ValueError):
            parse_id("44a0f45f")

    def test_rejects_unhyphenated_hex(self):
        """32 hex digits without hyphens is not the canonical form."""
        with pytest.raises(ValueError):
            parse_id(uuid.uuid4().hex)

    def test_rejects_garbage(self):
        with pytest.raises(ValueError):
            parse_id("not-an-id")


class TestShortForms:
    def test_short_id_is_first_eight_chars(self):
        note_id = uuid.UUID("44a0f45f-1c2d-4e5f-8a9b-0c1d2e3f4a5b")
        assert short_id(note_id) == "44a0f45f"

    @pytest.mark.parametrize("text", ["44a0f45f", "DEADBEEF", "00000000"])
    def test_is_short_id(self, text):
        assert is_short_id(text)

    @pytest.mark.parametrize("text", ["", "44a0f45", "44a0f45f0", "44a0f45g"])
    def test_is_not_short_id(self, text):
        assert not is_short_id(text)

    def test_is_full_id(self):
        assert is_full_id("44a0f45f-1c2d-4e5f-8a9b-0c1d2e3f4a5b")
        assert not is_full_id("44a0f45f_1c2d_4e5f_8a9b_0c1d2e3f4a5b")
        assert not is_full_id("44a0f45f-1c2d-4e5f-8a9b-0c1d2e3f4a5")
