"""Error taxonomy for directory walks.

Only :class:`AccessDenied` is allowed to escape a walk (and only when the
walk is not configured to ignore it). Every other failure is captured into
an :class:`~treewalk.events.Event` and surfaced through the event stream.
"""

from __future__ import annotations

from pathlib import Path


class WalkError(Exception):
    """Base class for errors raised by the traversal engine."""


class AttributeLookupError(WalkError):
    """Metadata for a path could not be read.

    Covers the ordinary reasons: the entry vanished, a broken link, an
    OS-level permission error, or an I/O error. The originating
    ``OSError`` is chained as ``__cause__`` when there is one.

    Attributes:
        path: Path whose lookup failed.
    """

    def __init__(self, path: Path, message: str) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path


class SymlinkTargetUnreadable(AttributeLookupError):
    """A followed link's target could not be resolved or read."""


class AccessDenied(WalkError):
    """An access policy refused an operation on a path.

    Attributes:
        path: Path the operation was attempted on.
        operation: ``stat``, ``list`` or ``resolve``.
    """

    def __init__(self, path: Path, operation: str) -> None:
        super().__init__(f"access denied: {operation} {path}")
        self.path = path
        self.operation = operation


class UnclassifiableEntry(WalkError):
    """Attributes resolved but describe neither file, directory nor link."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"{path}: failed to resolve to a type")
        self.path = path


class WalkCancelled(WalkError):
    """The walk was stopped through its cancellation token."""
