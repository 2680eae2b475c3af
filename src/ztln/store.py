"""On-disk repository store.

Owns every file of a repository and exposes atomic primitives with no
business rules on top. Layout:

    <base>/meta/<id>                 note metadata record
    <base>/notes/<id>                note content bytes
    <base>/topics/<topic>/paths/<p>  head note id of path p
    <base>/topics/<topic>/_HEAD      current path of the topic (optional)
    <base>/index                     keyword index (JSON)
    <base>/_CURRENT                  current topic (optional)

Single writer only. Mutations can be wrapped in an external lock via the
``lock`` argument; nothing is locked by default.
"""

from __future__ import annotations

import logging
import os
import tempfile
import uuid
from contextlib import contextmanager, nullcontext
from pathlib import Path
from typing import IO, Callable, ContextManager, Iterator, Union

from .constants import (
    CURRENT_PATH_FILE,
    CURRENT_TOPIC_FILE,
    INDEX_FILE,
    META_DIR,
    NOTES_DIR,
    PATHS_DIR,
    SHORT_ID_LENGTH,
    TOPICS_DIR,
)
from .errors import IOFailure, StorageIntegrityError, ZtlnError
from .ids import generate_id, is_full_id, parse_id
from .keywords import KeywordIndex
from .models import NoteMetadata

logger = logging.getLogger(__name__)

ContentSource = Union[bytes, str, IO[bytes]]


@contextmanager
def _io_errors(action: str) -> Iterator[None]:
    """Translate filesystem errors into the ztln taxonomy.

    A missing or undecodable file means the repository is not in the shape
    the operation expected; anything else is a failure of the medium.
    """
    try:
        yield
    except ZtlnError:
        raise
    except FileNotFoundError as e:
        raise StorageIntegrityError(f"{action}: {e}") from e
    except UnicodeDecodeError as e:
        raise StorageIntegrityError(f"{action}: not UTF-8 text ({e})") from e
    except OSError as e:
        raise IOFailure(f"{action}: {e}") from e


def _read_content(source: ContentSource) -> bytes:
    if isinstance(source, bytes):
        return source
    if isinstance(source, str):
        return source.encode("utf-8")
    data = source.read()
    return data.encode("utf-8") if isinstance(data, str) else data


class RepositoryStore:
    """Filesystem persistence for topics, paths, notes and keywords."""

    def __init__(
        self,
        base_dir: Path,
        lock: Callable[[], ContextManager] | None = None,
    ):
        """Bind to a repository directory without checking it.

        Use initialize() or attach() instead of calling this directly.

        Args:
            base_dir: Repository root
            lock: Factory for a context manager held around every mutation
        """
        self._base_dir = Path(base_dir)
        self._lock = lock or nullcontext
        self.keywords = KeywordIndex(self._base_dir / INDEX_FILE, self._write_atomic)

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    # ─────────────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────────────

    @classmethod
    def initialize(
        cls, base_dir: Path, lock: Callable[[], ContextManager] | None = None
    ) -> "RepositoryStore":
        """Create a fresh, empty repository.

        Raises:
            StorageIntegrityError: If anything already exists at base_dir
        """
        base_dir = Path(base_dir)
        if base_dir.exists():
            raise StorageIntegrityError(f"Given directory '{base_dir}' already exists")

        with _io_errors(f"initialize {base_dir}"):
            base_dir.mkdir(parents=True)
            for name in (META_DIR, NOTES_DIR, TOPICS_DIR):
                (base_dir / name).mkdir()
            (base_dir / INDEX_FILE).write_bytes(b"")

        logger.info(f"Initialized repository at {base_dir}")
        return cls(base_dir, lock)

    @classmethod
    def attach(
        cls, base_dir: Path, lock: Callable[[], ContextManager] | None = None
    ) -> "RepositoryStore":
        """Open an existing repository after checking its structure.

        Raises:
            StorageIntegrityError: If base_dir is not a ztln repository
        """
        base_dir = Path(base_dir)
        if not base_dir.is_dir():
            raise StorageIntegrityError(f"Given path '{base_dir}' is not a directory")

        if not (
            (base_dir / META_DIR).is_dir()
            and (base_dir / NOTES_DIR).is_dir()
            and (base_dir / TOPICS_DIR).is_dir()
            and (base_dir / INDEX_FILE).is_file()
        ):
            raise StorageIntegrityError(f"Invalid ztln structure in dir '{base_dir}'")

        return cls(base_dir, lock)

    # ─────────────────────────────────────────────────────────────────────────
    # File primitives
    # ─────────────────────────────────────────────────────────────────────────

    def _write_atomic(self, path: Path, data: bytes) -> None:
        """Replace path with data via a temporary sibling and os.replace()."""
        with _io_errors(f"write {path}"):
            fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=".", suffix=".tmp")
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(data)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp, path)
            except BaseException:
                if os.path.exists(tmp):
                    os.unlink(tmp)
                raise

    def _create_exclusive(self, path: Path, data: bytes) -> None:
        """Create a file that must not exist yet."""
        with _io_errors(f"create {path}"):
            try:
                with open(path, "xb") as f:
                    f.write(data)
                    f.flush()
                    os.fsync(f.fileno())
            except FileExistsError as e:
                raise StorageIntegrityError(f"identifier collision on {path.name}") from e

    def _read_marker(self, path: Path) -> str | None:
        """Read a name marker file; absent or empty means unset."""
        if not path.exists():
            return None
        with _io_errors(f"read {path}"):
            value = path.read_text(encoding="utf-8").strip()
        return value or None

    # ─────────────────────────────────────────────────────────────────────────
    # Topics
    # ─────────────────────────────────────────────────────────────────────────

    def _topic_dir(self, topic: str) -> Path:
        return self._base_dir / TOPICS_DIR / topic

    def topic_exists(self, name: str) -> bool:
        return self._topic_dir(name).is_dir()

    def create_topic(self, name: str) -> None:
        with self._lock(), _io_errors(f"create topic {name}"):
            topic_dir = self._topic_dir(name)
            topic_dir.mkdir()
            (topic_dir / PATHS_DIR).mkdir()
        logger.debug(f"Created topic {name}")

    def list_topics(self) -> list[str]:
        with _io_errors("list topics"):
            return sorted(
                p.name
                for p in (self._base_dir / TOPICS_DIR).iterdir()
                if p.is_dir() and not p.name.startswith(".")
            )

    def get_current_topic(self) -> str | None:
        return self._read_marker(self._base_dir / CURRENT_TOPIC_FILE)

    def set_current_topic(self, name: str) -> None:
        with self._lock():
            self._write_atomic(self._base_dir / CURRENT_TOPIC_FILE, name.encode())
        logger.debug(f"Current topic marker set to {name}")

    # ─────────────────────────────────────────────────────────────────────────
    # Paths
    # ─────────────────────────────────────────────────────────────────────────

    def _path_file(self, topic: str, name: str) -> Path:
        return self._topic_dir(topic) / PATHS_DIR / name

    def path_exists(self, topic: str, name: str) -> bool:
        return self._path_file(topic, name).is_file()

    def get_path_head(self, topic: str, name: str) -> uuid.UUID:
        """Read the id at the head of a path.

        Raises:
            StorageIntegrityError: If the path file is missing or malformed
        """
        path_file = self._path_file(topic, name)
        with _io_errors(f"read path {topic}/{name}"):
            text = path_file.read_text(encoding="utf-8").strip()
        try:
            return parse_id(text)
        except ValueError as e:
            raise StorageIntegrityError(f"path {topic}/{name} holds a bad id: {e}") from e

    def write_path_head(self, topic: str, name: str, note_id: uuid.UUID) -> None:
        """Create or overwrite a path so its head is note_id."""
        with self._lock():
            self._write_atomic(self._path_file(topic, name), str(note_id).encode())
        logger.debug(f"Path {topic}/{name} -> {note_id}")

    def remove_path(self, topic: str, name: str) -> None:
        """Delete a path pointer. Notes are untouched.

        Raises:
            StorageIntegrityError: If the path does not exist
        """
        with self._lock(), _io_errors(f"remove path {topic}/{name}"):
            self._path_file(topic, name).unlink()
        logger.debug(f"Removed path {topic}/{name}")

    def list_paths(self, topic: str) -> list[str]:
        with _io_errors(f"list paths of {topic}"):
            return sorted(
                p.name
                for p in (self._topic_dir(topic) / PATHS_DIR).iterdir()
                if p.is_file() and not p.name.startswith(".")
            )

    def get_current_path(self, topic: str) -> str | None:
        return self._read_marker(self._topic_dir(topic) / CURRENT_PATH_FILE)

    def set_current_path(self, topic: str, name: str) -> None:
        with self._lock():
            self._write_atomic(self._topic_dir(topic) / CURRENT_PATH_FILE, name.encode())
        logger.debug(f"Current path of {topic} set to {name}")

    # ─────────────────────────────────────────────────────────────────────────
    # Notes
    # ─────────────────────────────────────────────────────────────────────────

    def _meta_file(self, note_id: uuid.UUID) -> Path:
        return self._base_dir / META_DIR / str(note_id)

    def _note_file(self, note_id: uuid.UUID) -> Path:
        return self._base_dir / NOTES_DIR / str(note_id)

    def note_exists(self, note_id: uuid.UUID) -> bool:
        return self._meta_file(note_id).is_file()

    def add_note(self, topic: str, path: str, content: ContentSource) -> NoteMetadata:
        """Insert a note at the head of topic/path.

        The current head (if any) becomes the parent. Content and metadata
        are written before the head moves, so a crash can orphan a blob but
        never leaves a path pointing at a missing note.

        Raises:
            StorageIntegrityError: On an identifier collision
        """
        data = _read_content(content)

        with self._lock():
            note_id = generate_id()
            if self._note_file(note_id).exists() or self._meta_file(note_id).exists():
                raise StorageIntegrityError(f"identifier collision on {note_id}")

            parent_id = self.get_path_head(topic, path) if self.path_exists(topic, path) else None
            metadata = NoteMetadata(note_id=note_id, parent_id=parent_id, topic=topic, path=path)

            self._create_exclusive(self._note_file(note_id), data)
            self._create_exclusive(self._meta_file(note_id), metadata.to_text().encode())
            self._write_atomic(self._path_file(topic, path), str(note_id).encode())

        logger.debug(f"Added note {note_id} at {topic}/{path} (parent {parent_id})")
        return metadata

    def get_note_content(self, note_id: uuid.UUID) -> bytes:
        with _io_errors(f"read note {note_id}"):
            return self._note_file(note_id).read_bytes()

    def get_note_metadata(self, note_id: uuid.UUID) -> NoteMetadata | None:
        """Load a note's metadata, or None if no such note is stored.

        Raises:
            MetadataParseError: If the stored record is malformed
        """
        meta_file = self._meta_file(note_id)
        if not meta_file.exists():
            return None
        with _io_errors(f"read metadata {note_id}"):
            text = meta_file.read_text(encoding="utf-8")
        return NoteMetadata.from_text(note_id, text)

    def write_note_metadata(self, metadata: NoteMetadata) -> None:
        with self._lock():
            self._write_atomic(self._meta_file(metadata.note_id), metadata.to_text().encode())
        logger.debug(f"Rewrote metadata of {metadata.note_id}")

    def find_by_short_id(self, prefix: str) -> NoteMetadata | None:
        """Find a note whose id starts with the given 8 hex digits.

        Linear scan of the metadata directory. When several ids share the
        prefix the first one in directory order wins; that order is
        filesystem dependent.
        """
        prefix = prefix[:SHORT_ID_LENGTH].lower()
        with _io_errors("scan metadata"):
            with os.scandir(self._base_dir / META_DIR) as entries:
                for entry in entries:
                    if entry.name.startswith(".") or entry.name[:SHORT_ID_LENGTH] != prefix:
                        continue
                    if not is_full_id(entry.name):
                        raise StorageIntegrityError(f"stray file in metadata dir: {entry.name}")
                    return self.get_note_metadata(parse_id(entry.name))
        return None

    # ─────────────────────────────────────────────────────────────────────────
    # Keyword index
    # ─────────────────────────────────────────────────────────────────────────

    def add_keyword_index_entry(self, keyword: str, note_id: uuid.UUID) -> None:
        with self._lock():
            self.keywords.add(keyword, note_id)

    def get_notes_for_keyword(self, keyword: str) -> list[uuid.UUID]:
        return self.keywords.notes_for(keyword)

    def list_keywords_with_counts(self) -> list[tuple[str, int]]:
        return self.keywords.counts()
