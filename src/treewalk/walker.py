"""Depth-first directory walker driven by an explicit stack of open directories."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path

from treewalk.attributes import AttributeResolver
from treewalk.cancel import CancelToken
from treewalk.classifier import EntryClassifier
from treewalk.depth import path_depth
from treewalk.errors import (
    AccessDenied,
    AttributeLookupError,
    WalkCancelled,
)
from treewalk.events import Event, EventType
from treewalk.provider import Child, DirectoryHandle, FileSystem, OsFileSystem

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class WalkConfig:
    """Policy flags for a walk.

    Attributes:
        max_depth: Directories are expanded only while their depth below the
            root is less than this. ``None`` means unlimited. The root itself
            is always expanded.
        follow_links: Report and expand link targets instead of links.
        ignore_access_errors: Skip whatever an access policy refuses instead
            of aborting the walk.
        use_attribute_cache: Use attributes cached by the enumeration.
    """

    max_depth: int | None = None
    follow_links: bool = False
    ignore_access_errors: bool = False
    use_attribute_cache: bool = False

    def __post_init__(self) -> None:
        if self.max_depth is not None and self.max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {self.max_depth}")


class DirectoryNode:
    """An open directory enumeration waiting on the stack.

    The node owns its handle and closes it exactly once.

    Args:
        path: Directory path as found in the tree.
        identity_key: Identity of the directory, if known.
        handle: Open enumeration of the directory's children.
        target: Canonical target when the directory was reached via a link.
    """

    __slots__ = ("path", "identity_key", "target", "skipped", "_handle", "_closed")

    def __init__(
        self,
        path: Path,
        identity_key: object | None,
        handle: DirectoryHandle,
        target: Path | None = None,
    ) -> None:
        self.path = path
        self.identity_key = identity_key
        self.target = target
        self.skipped = False
        self._handle = handle
        self._closed = False

    def __repr__(self) -> str:
        return f"DirectoryNode({str(self.path)!r})"

    @property
    def closed(self) -> bool:
        return self._closed

    def children(self) -> Iterator[Child]:
        return iter(self._handle)

    def skip(self) -> None:
        """Mark the remaining children as abandoned."""
        self.skipped = True

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._handle.close()


@dataclass(slots=True)
class WalkStats:
    """Counters for one walk.

    ``directories``, ``files`` and ``links`` count successful classification
    events, so every entry is counted once even though directories are also
    announced when their expansion starts. ``abandoned`` counts directories
    whose children were not fully listed.
    """

    directories: int = 0
    files: int = 0
    links: int = 0
    errors: int = 0
    skipped: int = 0
    abandoned: int = 0
    pushed: int = 0
    popped: int = 0

    def record(self, event: Event) -> None:
        if event.failed:
            self.errors += 1
        elif event.type is EventType.DIRECTORY:
            self.directories += 1
        elif event.type is EventType.ENTRY:
            self.files += 1
        elif event.type is EventType.LINK:
            self.links += 1


@dataclass(slots=True)
class WalkState:
    """Everything one walk mutates: the root and the stack of open directories."""

    root: Path
    stack: list[DirectoryNode] = field(default_factory=list)

    def push(self, node: DirectoryNode) -> None:
        self.stack.append(node)

    def pop(self) -> DirectoryNode:
        return self.stack.pop()

    def close_all(self) -> None:
        while self.stack:
            self.stack.pop().close()


class FileTreeWalker:
    """Walk a directory tree depth-first without recursion.

    Events are yielded as they happen. Within a directory, children come in
    provider order; subdirectories are pushed as they are discovered, so the
    one discovered last is expanded first.

    A walker may run any number of walks one after another; it keeps no
    traversal state between them apart from ``stats`` of the latest walk.

    Args:
        config: Walk policy. Defaults to ``WalkConfig()``.
        filesystem: Metadata and enumeration provider. Defaults to
            ``OsFileSystem()``.
    """

    def __init__(
        self,
        config: WalkConfig | None = None,
        filesystem: FileSystem | None = None,
    ) -> None:
        self.config = config or WalkConfig()
        self._fs = filesystem or OsFileSystem()
        self._resolver = AttributeResolver(
            self._fs,
            follow_links=self.config.follow_links,
            use_cache=self.config.use_attribute_cache,
        )
        self._classifier = EntryClassifier(
            self._resolver,
            self._fs,
            follow_links=self.config.follow_links,
            ignore_access_errors=self.config.ignore_access_errors,
        )
        self.stats = WalkStats()

    def walk(
        self,
        root: str | os.PathLike[str],
        cancel: CancelToken | None = None,
    ) -> Iterator[Event]:
        """Walk the tree under *root*.

        Every directory still open is closed when the walk ends, including
        when the caller stops iterating early or an error propagates.

        Args:
            root: Directory to start from.
            cancel: Optional token checked before each directory is expanded.

        Yields:
            Event: ``START_DIRECTORY`` for the root, then events in traversal
            order.

        Raises:
            AccessDenied: If the access policy refuses an operation and
                ``ignore_access_errors`` is off.
            WalkCancelled: If *cancel* was cancelled.
        """
        state = WalkState(root=Path(root))
        self.stats = WalkStats()
        logger.debug("Walking %s", state.root)
        try:
            yield from self._start(state)
            while state.stack:
                if cancel is not None and cancel.is_cancelled():
                    raise WalkCancelled(cancel.reason)
                yield from self._step(state)
        finally:
            state.close_all()
        logger.debug("Finished %s: %s", state.root, self.stats)

    def _start(self, state: WalkState) -> Iterator[Event]:
        root = state.root
        try:
            attrs = self._resolver.resolve(root)
        except AccessDenied as exc:
            self._on_denied(exc)
            return
        except AttributeLookupError as exc:
            attrs = None
            self.stats.errors += 1
            yield Event.failure(EventType.DIRECTORY, root, exc)
        else:
            yield Event.success(EventType.START_DIRECTORY, root, attrs)

        try:
            handle = self._fs.open_directory(root)
        except AccessDenied as exc:
            self._on_denied(exc)
            return
        except AttributeLookupError as exc:
            # a failed lookup above has already reported the root
            if attrs is not None:
                self.stats.errors += 1
                yield Event.failure(EventType.DIRECTORY, root, exc)
            return

        key = attrs.identity_key if attrs is not None else None
        self._push(state, DirectoryNode(root, key, handle))

    def _step(self, state: WalkState) -> Iterator[Event]:
        node = state.pop()
        self.stats.popped += 1
        try:
            event = self._expansion_event(node)
            if event is None:
                node.skip()
                return
            yield event
            for child in node.children():
                event = self._classifier.classify(child.path, child.cache)
                if event is None:
                    self.stats.skipped += 1
                    continue
                self.stats.record(event)
                yield event
                if event.type is EventType.DIRECTORY and not event.failed:
                    if self._expands(state.root, event.path):
                        yield from self._open_child(state, event)
        except AttributeLookupError as exc:
            node.skip()
            logger.warning("Listing of %s broke off: %s", node.path, exc)
            self.stats.errors += 1
            yield Event.failure(EventType.DIRECTORY, node.path, exc)
        finally:
            if node.skipped:
                self.stats.abandoned += 1
            node.close()

    def _expansion_event(self, node: DirectoryNode) -> Event | None:
        """Announce that *node* is about to be expanded."""
        try:
            attrs = self._resolver.resolve(node.target or node.path)
        except AccessDenied as exc:
            self._on_denied(exc)
            return None
        except AttributeLookupError as exc:
            self.stats.errors += 1
            return Event.failure(EventType.DIRECTORY, node.path, exc)
        return Event.success(EventType.DIRECTORY, node.path, attrs, node.target)

    def _expands(self, root: Path, path: Path) -> bool:
        max_depth = self.config.max_depth
        return max_depth is None or path_depth(root, path) < max_depth

    def _open_child(self, state: WalkState, event: Event) -> Iterator[Event]:
        try:
            handle = self._fs.open_directory(event.path)
        except AccessDenied as exc:
            self._on_denied(exc)
            return
        except AttributeLookupError as exc:
            logger.warning("Directory %s cannot be listed: %s", event.path, exc)
            self.stats.errors += 1
            yield Event.failure(EventType.DIRECTORY, event.path, exc)
            return
        key = event.attributes.identity_key if event.attributes is not None else None
        self._push(state, DirectoryNode(event.path, key, handle, event.target))

    def _push(self, state: WalkState, node: DirectoryNode) -> None:
        state.push(node)
        self.stats.pushed += 1

    def _on_denied(self, exc: AccessDenied) -> None:
        if not self.config.ignore_access_errors:
            raise exc
        self.stats.skipped += 1
        logger.debug("Skipping %s", exc)
