"""Keyword index: keyword -> list of note ids.

The whole mapping lives in a single JSON file that is loaded on first use
and rewritten in full on every change. Fine for a personal store; there is
no incremental persistence.
"""

from __future__ import annotations

import json
import logging
import uuid
from pathlib import Path
from typing import Callable

from .errors import IOFailure, StorageIntegrityError

logger = logging.getLogger(__name__)


class KeywordIndex:
    """Persistent keyword -> note id mapping.

    Entries are never deduplicated: indexing the same note twice under one
    keyword records it twice.
    """

    def __init__(self, index_file: Path, write_fn: Callable[[Path, bytes], None]):
        """Initialize the index.

        Args:
            index_file: Path to the repository's index file
            write_fn: Crash-consistent file writer supplied by the store
        """
        self.index_file = index_file
        self._write = write_fn
        self._entries: dict[str, list[str]] | None = None

    def _load(self) -> dict[str, list[str]]:
        if self._entries is None:
            try:
                raw = self.index_file.read_text(encoding="utf-8")
            except FileNotFoundError as e:
                raise StorageIntegrityError(f"missing keyword index {self.index_file}") from e
            except UnicodeDecodeError as e:
                raise StorageIntegrityError(f"keyword index is not UTF-8: {e}") from e
            except OSError as e:
                raise IOFailure(f"read {self.index_file}: {e}") from e

            if not raw.strip():
                self._entries = {}
            else:
                try:
                    data = json.loads(raw)
                except json.JSONDecodeError as e:
                    raise StorageIntegrityError(f"malformed keyword index: {e}") from e
                if not isinstance(data, dict) or not all(
                    isinstance(v, list) for v in data.values()
                ):
                    raise StorageIntegrityError("keyword index is not a keyword -> id list mapping")
                self._entries = data
        return self._entries

    def _save(self, entries: dict[str, list[str]]) -> None:
        self._write(self.index_file, json.dumps(entries, indent=2).encode())
        self._entries = entries
        logger.debug(f"Rewrote keyword index ({len(entries)} keywords)")

    def add(self, keyword: str, note_id: uuid.UUID) -> None:
        """Index a note under a keyword and persist the whole mapping."""
        entries = {kw: list(ids) for kw, ids in self._load().items()}
        entries.setdefault(keyword, []).append(str(note_id))
        self._save(entries)

    def notes_for(self, keyword: str) -> list[uuid.UUID]:
        """Note ids indexed under keyword, in insertion order."""
        try:
            return [uuid.UUID(nid) for nid in self._load().get(keyword, [])]
        except ValueError as e:
            raise StorageIntegrityError(f"bad id under keyword '{keyword}': {e}") from e

    def counts(self) -> list[tuple[str, int]]:
        """Each keyword with the number of entries under it."""
        return [(kw, len(ids)) for kw, ids in self._load().items()]
