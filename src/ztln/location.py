"""Location expressions.

Two forms, tried in order:

    [topic/]name[:-N]     relative: a path (or HEAD) with an optional
                          history walk of N parent steps
    xxxxxxxx[-xxxx-...]   absolute: 8 hex digits, optionally extended to a
                          full hyphenated UUID; only the first 8 count

Anything else is rejected.
"""

from dataclasses import dataclass

from .constants import HEAD, SHORT_ID_LENGTH
from .errors import InvalidLocationExpression
from .ids import is_full_id, is_short_id
from .models import validate_name

HISTORY_MARKER = ":-"


@dataclass(frozen=True)
class RelativeLocation:
    """A path (or HEAD) in a topic, walked back `steps` parents."""

    topic: str | None
    name: str
    steps: int = 0

    @property
    def is_head(self) -> bool:
        return self.name == HEAD


@dataclass(frozen=True)
class AbsoluteLocation:
    """A note addressed by the first 8 hex digits of its id."""

    short_id: str


Location = RelativeLocation | AbsoluteLocation


def parse_relative(expression: str) -> RelativeLocation | None:
    """Parse `[topic/]name[:-N]`, or return None if it doesn't match."""
    body, steps = expression, 0

    if HISTORY_MARKER in expression:
        body, _, digits = expression.partition(HISTORY_MARKER)
        if not digits or not digits.isascii() or not digits.isdigit():
            return None
        steps = int(digits)

    topic = None
    if "/" in body:
        topic, _, body = body.partition("/")
        if not validate_name(topic)[0]:
            return None

    if body != HEAD and not validate_name(body)[0]:
        return None

    return RelativeLocation(topic=topic, name=body, steps=steps)


def parse_absolute(expression: str) -> AbsoluteLocation | None:
    """Parse a short or full note id, or return None if it doesn't match."""
    if is_short_id(expression) or is_full_id(expression):
        return AbsoluteLocation(short_id=expression[:SHORT_ID_LENGTH].lower())
    return None


def parse_location(expression: str) -> Location:
    """Classify and parse a location expression.

    Raises:
        InvalidLocationExpression: If neither form matches
    """
    location = parse_relative(expression) or parse_absolute(expression)
    if location is None:
        raise InvalidLocationExpression(expression)
    return location
