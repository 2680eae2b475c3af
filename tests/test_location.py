"""Tests for location expression parsing."""

import pytest

from ztln.errors import InvalidLocationExpression
from ztln.location import (
    AbsoluteLocation,
    RelativeLocation,
    parse_absolute,
    parse_location,
    parse_relative,
)


class TestRelativeForm:
    def test_head(self):
        assert parse_location("HEAD") == RelativeLocation(topic=None, name="HEAD", steps=0)

    def test_path_name(self):
        loc = parse_location("main")
        assert loc == RelativeLocation(topic=None, name="main")
        assert loc.is_head is False

    def test_topic_prefix(self):
        assert parse_location("T1/main") == RelativeLocation(topic="T1", name="main")

    def test_history_modifier(self):
        assert parse_location("HEAD:-3") == RelativeLocation(topic=None, name="HEAD", steps=3)

    def test_zero_steps(self):
        assert parse_location("main:-0").steps == 0

    def test_everything(self):
        assert parse_location("T1/HEAD:-12") == RelativeLocation(topic="T1", name="HEAD", steps=12)

    @pytest.mark.parametrize(
        "expression",
        ["main:-", "main:3", "main:-x", "main:--1", "main:-1:-2", "a/b/c", "/main", "T1/", "HEAD/main"],
    )
    def test_malformed(self, expression):
        assert parse_relative(expression) is None

    def test_hex_like_names_are_not_relative(self):
        """Eight hex digits always mean a note id."""
        assert parse_relative("deadbeef") is None
        assert parse_location("deadbeef") == AbsoluteLocation(short_id="deadbeef")


class TestAbsoluteForm:
    def test_short_id(self):
        assert parse_location("44a0f45f") == AbsoluteLocation(short_id="44a0f45f")

    def test_full_id_keeps_first_eight(self):
        loc = parse_location("44a0f45f-1c2d-4e5f-8a9b-0c1d2e3f4a5b")
        assert loc == AbsoluteLocation(short_id="44a0f45f")

    def test_uppercase_normalized(self):
        assert parse_absolute("44A0F45F") == AbsoluteLocation(short_id="44a0f45f")

    @pytest.mark.parametrize("expression", ["44a0f45", "44a0f45f1", "44a0f45f-1c2d"])
    def test_wrong_length(self, expression):
        assert parse_absolute(expression) is None


class TestRejection:
    def test_empty_string(self):
        with pytest.raises(InvalidLocationExpression):
            parse_location("")

    def test_thirteen_hex_digits(self):
        """Neither a short id nor a full id nor a path name."""
        with pytest.raises(InvalidLocationExpression) as exc:
            parse_location("44a0f45f1c2d4")
        assert exc.value.expression == "44a0f45f1c2d4"

    @pytest.mark.parametrize("expression", ["HEAD:-", "has space", "../etc", "main:-1x"])
    def test_garbage(self, expression):
        with pytest.raises(InvalidLocationExpression):
            parse_location(expression)
