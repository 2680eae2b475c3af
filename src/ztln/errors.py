"""Error taxonomy for the ztln engine.

Every failure the engine reports derives from ZtlnError so callers can
catch a single type at their boundary.
"""

from __future__ import annotations


class ZtlnError(Exception):
    """Base class for all ztln failures."""


class TopicAlreadyExists(ZtlnError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Topic '{name}' already exists")


class TopicDoesNotExist(ZtlnError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Topic '{name}' does not exist")


class PathAlreadyExists(ZtlnError):
    def __init__(self, topic: str, name: str):
        self.topic = topic
        self.name = name
        super().__init__(f"Path '{name}' already exists in topic '{topic}'")


class PathDoesNotExist(ZtlnError):
    def __init__(self, topic: str, name: str):
        self.topic = topic
        self.name = name
        super().__init__(f"Path '{name}' does not exist in topic '{topic}'")


class InvalidName(ZtlnError):
    """A topic or path name that could not be addressed by a location."""

    def __init__(self, name: str, detail: str):
        self.name = name
        self.detail = detail
        super().__init__(f"Invalid name '{name}': {detail}")


class LocationUnresolved(ZtlnError):
    def __init__(self, expression: str):
        self.expression = expression
        super().__init__(f"Location '{expression}' does not point to any note")


class InvalidLocationExpression(ZtlnError):
    def __init__(self, expression: str):
        self.expression = expression
        super().__init__(f"'{expression}' is not a valid location")


class MetadataParseError(ZtlnError):
    def __init__(self, field: str, detail: str):
        self.field = field
        self.detail = detail
        super().__init__(f"Cannot parse note metadata ({field}): {detail}")


class NoDefaultTopic(ZtlnError):
    def __init__(self):
        super().__init__("No current topic. Use `ztln topic create` to create one.")


class NoDefaultPath(ZtlnError):
    def __init__(self, topic: str):
        self.topic = topic
        super().__init__(f"Topic '{topic}' has no current path")


class StorageIntegrityError(ZtlnError):
    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Invalid ztln structure: {detail}")


class IOFailure(ZtlnError):
    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"I/O error: {detail}")
