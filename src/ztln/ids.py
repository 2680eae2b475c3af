"""Note identifiers.

Notes are keyed by random UUIDs. The first eight hex characters of the
canonical text form act as a short id for lookups typed by hand.
"""

import string
import uuid

from .constants import SHORT_ID_LENGTH

_HEX = frozenset(string.hexdigits)
_HYPHEN_POSITIONS = (8, 13, 18, 23)


def generate_id() -> uuid.UUID:
    """Mint a new random (v4) note identifier."""
    return uuid.uuid4()


def parse_id(text: str) -> uuid.UUID:
    """Parse a canonical identifier string.

    Raises:
        ValueError: If text is not a hyphenated UUID
    """
    if not is_full_id(text):
        raise ValueError(f"badly formed identifier: {text!r}")
    return uuid.UUID(text)


def short_id(note_id: uuid.UUID) -> str:
    """Return the short form (first 8 hex digits) of an identifier."""
    return str(note_id)[:SHORT_ID_LENGTH]


def is_short_id(text: str) -> bool:
    """True if text is exactly eight hex digits."""
    return len(text) == SHORT_ID_LENGTH and all(c in _HEX for c in text)


def is_full_id(text: str) -> bool:
    """True if text is a hyphenated 8-4-4-4-12 UUID."""
    if len(text) != 36:
        return False
    for i, c in enumerate(text):
        if i in _HYPHEN_POSITIONS:
            if c != "-":
                return False
        elif c not in _HEX:
            return False
    return True
