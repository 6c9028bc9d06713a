"""Events produced by a directory walk."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from treewalk.attributes import FileAttributes
from treewalk.errors import WalkError


class EventType(Enum):
    START_DIRECTORY = "start_directory"  # the root, once
    DIRECTORY = "directory"
    ENTRY = "entry"
    LINK = "link"


@dataclass(frozen=True, slots=True)
class Event:
    """One step of a walk.

    Exactly one of ``attributes`` and ``error`` is set.

    Attributes:
        type: Kind of event.
        path: Path of the entry as found in the tree.
        attributes: Attributes on success. For a followed link these are the
            attributes of its target.
        error: The failure that prevented classification.
        target: Canonical target when the event comes from a followed link.
    """

    type: EventType
    path: Path
    attributes: FileAttributes | None = None
    error: WalkError | None = None
    target: Path | None = None

    def __post_init__(self) -> None:
        if (self.attributes is None) == (self.error is None):
            raise ValueError("an event carries either attributes or an error")

    @property
    def failed(self) -> bool:
        return self.error is not None

    @classmethod
    def success(
        cls,
        type: EventType,
        path: Path,
        attributes: FileAttributes,
        target: Path | None = None,
    ) -> Event:
        return cls(type, path, attributes=attributes, target=target)

    @classmethod
    def failure(cls, type: EventType, path: Path, error: WalkError) -> Event:
        return cls(type, path, error=error)
