"""Organization - the domain engine over a repository store.

Enforces topic/path naming rules, tracks the current topic and per-topic
current path, inserts notes with automatic parent linking, and resolves
location expressions to notes.
"""

from __future__ import annotations

import logging
import uuid
from pathlib import Path

from .constants import DEFAULT_PATH, HEAD
from .errors import (
    InvalidName,
    LocationUnresolved,
    NoDefaultPath,
    NoDefaultTopic,
    PathAlreadyExists,
    PathDoesNotExist,
    StorageIntegrityError,
    TopicAlreadyExists,
    TopicDoesNotExist,
)
from .location import AbsoluteLocation, RelativeLocation, parse_location
from .models import CreationReport, NoteMetadata, validate_name
from .store import ContentSource, RepositoryStore

logger = logging.getLogger(__name__)

_UNLOADED = object()


class Organization:
    """Main entry point for note operations.

    The current topic is read from the store once, on first access, and
    kept in memory afterwards. Every topic switch must go through this
    object; two Organizations on the same repository do not see each
    other's switches.
    """

    def __init__(self, store: RepositoryStore):
        self.store = store
        self._current_topic: object | str | None = _UNLOADED

    # ─────────────────────────────────────────────────────────────────────────
    # Topics
    # ─────────────────────────────────────────────────────────────────────────

    def current_topic(self) -> str | None:
        """Name of the current topic, or None before any topic exists."""
        if self._current_topic is _UNLOADED:
            self._current_topic = self.store.get_current_topic()
        return self._current_topic  # type: ignore[return-value]

    def list_topics(self) -> list[str]:
        return self.store.list_topics()

    def create_topic(self, name: str) -> None:
        """Create a topic. The first topic ever created becomes current.

        Raises:
            InvalidName: If name is not a valid topic name
            TopicAlreadyExists: If the topic exists
        """
        _check_name(name)
        if self.store.topic_exists(name):
            raise TopicAlreadyExists(name)

        self.store.create_topic(name)
        logger.info(f"Created topic '{name}'")

        if self.current_topic() is None:
            self._switch_topic(name)

    def set_current_topic(self, name: str) -> None:
        """Switch the current topic.

        Raises:
            TopicDoesNotExist: If the topic is unknown
        """
        if not self.store.topic_exists(name):
            raise TopicDoesNotExist(name)
        self._switch_topic(name)

    def _switch_topic(self, name: str) -> None:
        self.store.set_current_topic(name)
        self._current_topic = name
        logger.info(f"Current topic is now '{name}'")

    def _resolve_topic(self, topic: str | None) -> str:
        """Explicit topic (must exist) or the current one."""
        if topic is None:
            topic = self.current_topic()
            if topic is None:
                raise NoDefaultTopic()
            return topic
        if not self.store.topic_exists(topic):
            raise TopicDoesNotExist(topic)
        return topic

    # ─────────────────────────────────────────────────────────────────────────
    # Paths
    # ─────────────────────────────────────────────────────────────────────────

    def current_path(self, topic: str | None = None) -> str | None:
        return self.store.get_current_path(self._resolve_topic(topic))

    def list_paths(self, topic: str | None = None) -> list[str]:
        return self.store.list_paths(self._resolve_topic(topic))

    def set_current_path(self, path: str, topic: str | None = None) -> None:
        """Make an existing path the default of its topic.

        Raises:
            PathDoesNotExist: If the path is unknown
        """
        topic = self._resolve_topic(topic)
        if not self.store.path_exists(topic, path):
            raise PathDoesNotExist(topic, path)
        self.store.set_current_path(topic, path)

    def create_path(
        self, new_path: str, topic: str | None = None, source: str | None = None
    ) -> uuid.UUID:
        """Branch a new path off an existing one.

        The new path's head is a copy of the source path's head; no note is
        duplicated and later notes on the source do not move the new path.

        Args:
            new_path: Name of the path to create
            topic: Topic to branch in (default: current topic)
            source: Path to branch from (default: topic's current path)

        Returns:
            The id now at the head of both paths

        Raises:
            NoDefaultTopic, TopicDoesNotExist, NoDefaultPath, InvalidName,
            PathAlreadyExists, PathDoesNotExist
        """
        topic = self._resolve_topic(topic)
        if source is None:
            source = self.store.get_current_path(topic)
            if source is None:
                raise NoDefaultPath(topic)

        _check_name(new_path)
        if self.store.path_exists(topic, new_path):
            raise PathAlreadyExists(topic, new_path)
        if not self.store.path_exists(topic, source):
            raise PathDoesNotExist(topic, source)

        head = self.store.get_path_head(topic, source)
        self.store.write_path_head(topic, new_path, head)
        logger.info(f"Branched {topic}/{new_path} from {topic}/{source} at {head}")
        return head

    def remove_path(self, path: str, topic: str | None = None) -> NoteMetadata:
        """Delete a path pointer and return the note that was at its head.

        Raises:
            PathDoesNotExist: If the path is unknown
        """
        topic = self._resolve_topic(topic)
        if not self.store.path_exists(topic, path):
            raise PathDoesNotExist(topic, path)

        head = self._load_note(self.store.get_path_head(topic, path))
        self.store.remove_path(topic, path)
        logger.info(f"Removed path {topic}/{path} (was at {head.note_id})")
        return head

    def reset_path(
        self, path: str, location: str, topic: str | None = None
    ) -> tuple[NoteMetadata, NoteMetadata]:
        """Point an existing path at the note a location resolves to.

        Returns:
            (previous head, new head)

        Raises:
            PathDoesNotExist: If the path is unknown
            LocationUnresolved: If location points to no note
        """
        topic = self._resolve_topic(topic)
        if not self.store.path_exists(topic, path):
            raise PathDoesNotExist(topic, path)

        previous = self._load_note(self.store.get_path_head(topic, path))
        target = self.resolve_location(location)
        self.store.write_path_head(topic, path, target.note_id)
        logger.info(f"Reset {topic}/{path} from {previous.note_id} to {target.note_id}")
        return previous, target

    # ─────────────────────────────────────────────────────────────────────────
    # Notes
    # ─────────────────────────────────────────────────────────────────────────

    def add_note(
        self,
        content: ContentSource,
        topic: str | None = None,
        path: str | None = None,
    ) -> CreationReport:
        """Insert a note, linking it to the previous head of its path.

        Path policy:
        - An explicit topic becomes the current topic.
        - An explicit path that exists becomes the current path. A new
          explicit path branches from the current path if there is one,
          otherwise it starts empty; either way it becomes current.
        - Without a path, the current path is used, defaulting to "main".

        Raises:
            NoDefaultTopic, TopicDoesNotExist, InvalidName
        """
        explicit_topic = topic is not None
        topic = self._resolve_topic(topic)
        new_path = path is not None and not self.store.path_exists(topic, path)
        if new_path:
            _check_name(path)
        if explicit_topic:
            self._switch_topic(topic)

        if path is not None:
            if new_path:
                current = self.store.get_current_path(topic)
                if current is not None and self.store.path_exists(topic, current):
                    self.store.write_path_head(
                        topic, path, self.store.get_path_head(topic, current)
                    )
                    logger.info(f"Branched {topic}/{path} from {topic}/{current}")
                elif current is not None and current != path:
                    logger.warning(
                        f"Current path {topic}/{current} has no head; starting {path} empty"
                    )
            self.store.set_current_path(topic, path)
        else:
            path = self.store.get_current_path(topic)
            if path is None:
                path = DEFAULT_PATH
                self.store.set_current_path(topic, path)

        metadata = self.store.add_note(topic, path, content)
        return CreationReport(
            note_id=metadata.note_id,
            parent_id=metadata.parent_id,
            topic=topic,
            path=path,
        )

    def get_note(self, location: str) -> tuple[NoteMetadata, bytes]:
        """Metadata and content of the note a location resolves to."""
        metadata = self.resolve_location(location)
        return metadata, self.store.get_note_content(metadata.note_id)

    def add_note_reference(self, from_location: str, to_location: str) -> NoteMetadata:
        """Append a reference from one note to another.

        Returns:
            The updated metadata of the referencing note
        """
        source = self.resolve_location(from_location)
        target = self.resolve_location(to_location)
        updated = source.with_reference(target.note_id)
        self.store.write_note_metadata(updated)
        logger.info(f"Note {source.short_id} now references {target.short_id}")
        return updated

    def history(self, location: str = HEAD, limit: int | None = None) -> list[NoteMetadata]:
        """The resolved note followed by its ancestors, newest first."""
        note: NoteMetadata | None = self.resolve_location(location)
        notes = []
        while note is not None and (limit is None or len(notes) < limit):
            notes.append(note)
            note = self._parent_of(note)
        return notes

    def _load_note(self, note_id: uuid.UUID) -> NoteMetadata:
        """Metadata for an id the repository claims to hold."""
        metadata = self.store.get_note_metadata(note_id)
        if metadata is None:
            raise StorageIntegrityError(f"note {note_id} is referenced but not stored")
        return metadata

    def _parent_of(self, note: NoteMetadata) -> NoteMetadata | None:
        if note.parent_id is None:
            return None
        return self._load_note(note.parent_id)

    # ─────────────────────────────────────────────────────────────────────────
    # Location resolution
    # ─────────────────────────────────────────────────────────────────────────

    def solve_location(self, expression: str) -> NoteMetadata | None:
        """Resolve a location expression to a note, or None.

        Raises:
            InvalidLocationExpression: If expression matches neither form
            NoDefaultTopic: If a relative location needs the current topic
                and none is set
            TopicDoesNotExist: If a relative location names an unknown topic
        """
        location = parse_location(expression)
        if isinstance(location, AbsoluteLocation):
            return self.store.find_by_short_id(location.short_id)
        return self._solve_relative(location)

    def resolve_location(self, expression: str) -> NoteMetadata:
        """Like solve_location(), but a missing note is an error.

        Raises:
            LocationUnresolved: If the expression resolves to no note
        """
        note = self.solve_location(expression)
        if note is None:
            raise LocationUnresolved(expression)
        return note

    def _solve_relative(self, location: RelativeLocation) -> NoteMetadata | None:
        topic = self._resolve_topic(location.topic)

        name = location.name
        if location.is_head:
            name = self.store.get_current_path(topic) or DEFAULT_PATH

        if not self.store.path_exists(topic, name):
            return None

        note: NoteMetadata | None = self._load_note(self.store.get_path_head(topic, name))
        remaining = location.steps
        while remaining > 0 and note is not None:
            note = self._parent_of(note)
            remaining -= 1
        return note

    # ─────────────────────────────────────────────────────────────────────────
    # Keywords
    # ─────────────────────────────────────────────────────────────────────────

    def add_keyword(self, keyword: str, location: str = HEAD) -> NoteMetadata:
        """Index the note at location under keyword."""
        note = self.resolve_location(location)
        self.store.add_keyword_index_entry(keyword, note.note_id)
        logger.info(f"Indexed {note.short_id} under '{keyword}'")
        return note

    def notes_for_keyword(self, keyword: str) -> list[NoteMetadata]:
        return [self._load_note(nid) for nid in self.store.get_notes_for_keyword(keyword)]

    def list_keywords(self) -> list[tuple[str, int]]:
        return self.store.list_keywords_with_counts()

    # ─────────────────────────────────────────────────────────────────────────
    # Status
    # ─────────────────────────────────────────────────────────────────────────

    def info(self) -> dict:
        """Repository location plus current topic and path."""
        topic = self.current_topic()
        return {
            "base_dir": str(self.store.base_dir),
            "topic": topic,
            "path": self.store.get_current_path(topic) if topic else None,
        }

    @property
    def base_dir(self) -> Path:
        return self.store.base_dir


def _check_name(name: str) -> None:
    valid, message = validate_name(name)
    if not valid:
        raise InvalidName(name, message or "invalid name")
