"""Metadata and directory enumeration providers.

The traversal engine never touches the filesystem directly. It talks to a
:class:`MetadataProvider` and a :class:`DirectoryProvider`; :class:`OsFileSystem`
implements both on top of ``os.lstat`` and ``os.scandir``.

Sandboxing is explicit: an :class:`AccessPolicy` handed to the provider is
consulted before every operation and raises :class:`AccessDenied`. The
engine only reacts to that error kind.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from treewalk.attributes import AttributeCache, FileAttributes
from treewalk.errors import AccessDenied, AttributeLookupError, SymlinkTargetUnreadable

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Child:
    """One entry produced by a directory enumeration.

    Attributes:
        path: Path of the entry (the enumerated directory joined with its name).
        cache: Attributes already known for the entry, if the provider has any.
    """

    path: Path
    cache: AttributeCache | None = None


class DirectoryHandle(Protocol):
    """An open, single-pass directory enumeration.

    ``close()`` releases the underlying resource and must be safe to call
    whether or not iteration finished.
    """

    def __iter__(self) -> Iterator[Child]: ...

    def close(self) -> None: ...


class MetadataProvider(Protocol):
    def stat(self, path: Path) -> FileAttributes: ...

    def resolve_link(self, path: Path) -> Path: ...


class DirectoryProvider(Protocol):
    def open_directory(self, path: Path) -> DirectoryHandle: ...


class FileSystem(MetadataProvider, DirectoryProvider, Protocol):
    """Both provider roles, as needed by the walker."""


class AccessPolicy(Protocol):
    """Sandboxing policy consulted before each filesystem operation.

    ``operation`` is one of ``stat``, ``list`` or ``resolve``.
    """

    def check(self, operation: str, path: Path) -> None: ...


class ConfinedPolicy:
    """Deny every operation on a path outside the given roots.

    Paths are compared lexically after ``os.path.abspath``, so a link that
    lives inside a root is allowed while its resolved target may not be.
    """

    def __init__(self, roots: Iterable[str | os.PathLike[str]]) -> None:
        self._roots = tuple(Path(os.path.abspath(root)) for root in roots)
        if not self._roots:
            raise ValueError("ConfinedPolicy needs at least one root")

    @property
    def roots(self) -> tuple[Path, ...]:
        return self._roots

    def check(self, operation: str, path: Path) -> None:
        candidate = Path(os.path.abspath(path))
        if any(candidate.is_relative_to(root) for root in self._roots):
            return
        raise AccessDenied(path, operation)


def _describe(exc: OSError) -> str:
    return exc.strerror or str(exc)


class DirEntryCache:
    """Attribute cache backed by an ``os.DirEntry``.

    ``os.scandir`` keeps the result of ``DirEntry.stat()`` on the entry, and
    on some platforms fills it without any extra system call.
    """

    __slots__ = ("_entry", "_attributes")

    def __init__(self, entry: os.DirEntry[str]) -> None:
        self._entry: os.DirEntry[str] | None = entry
        self._attributes: FileAttributes | None = None

    def get(self) -> FileAttributes | None:
        if self._attributes is None and self._entry is not None:
            try:
                result = self._entry.stat(follow_symlinks=False)
            except OSError:
                return None
            self._attributes = FileAttributes.from_stat(result)
        return self._attributes

    def invalidate(self) -> None:
        self._entry = None
        self._attributes = None


class ScandirHandle:
    """Directory handle over a finished ``os.scandir`` listing.

    The entries are read up front and the directory descriptor is released
    before the handle is returned, so handles waiting on the walk stack hold
    no open file descriptors.

    Args:
        path: Directory being enumerated.
        entries: Entries read from ``os.scandir``.
        sort: Whether to yield children sorted by name.
        with_cache: Whether to attach a :class:`DirEntryCache` to children.
    """

    def __init__(
        self,
        path: Path,
        entries: Iterable[os.DirEntry[str]],
        *,
        sort: bool = False,
        with_cache: bool = True,
    ) -> None:
        self._path = path
        self._entries: list[os.DirEntry[str]] = list(entries)
        if sort:
            self._entries.sort(key=lambda e: e.name)
        self._with_cache = with_cache
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def __iter__(self) -> Iterator[Child]:
        for entry in self._entries:
            if self._closed:
                return
            cache = DirEntryCache(entry) if self._with_cache else None
            yield Child(self._path / entry.name, cache)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._entries = []


class OsFileSystem:
    """Providers backed by the operating system.

    ``OSError`` is translated into :class:`AttributeLookupError`. When an
    access policy is installed, enumerated children carry no attribute cache
    so that every metadata read goes through the policy.

    Args:
        policy: Optional access policy checked before every operation.
        sort: Whether enumerations yield children sorted by name instead of
            in ``os.scandir`` order.
    """

    def __init__(
        self, policy: AccessPolicy | None = None, *, sort: bool = False
    ) -> None:
        self._policy = policy
        self._sort = sort

    def _check(self, operation: str, path: Path) -> None:
        if self._policy is not None:
            self._policy.check(operation, path)

    def stat(self, path: Path) -> FileAttributes:
        self._check("stat", path)
        try:
            result = os.lstat(path)
        except OSError as exc:
            raise AttributeLookupError(path, _describe(exc)) from exc
        return FileAttributes.from_stat(result)

    def resolve_link(self, path: Path) -> Path:
        """Return the canonical absolute target of *path*.

        Raises:
            SymlinkTargetUnreadable: If the target is missing, part of a
                link loop, or not readable.
            AccessDenied: If the policy refuses the link or its target.
        """
        self._check("resolve", path)
        try:
            target = Path(os.path.realpath(path, strict=True))
        except OSError as exc:
            raise SymlinkTargetUnreadable(path, _describe(exc)) from exc
        self._check("resolve", target)
        if not os.access(target, os.R_OK):
            raise SymlinkTargetUnreadable(path, f"target {target} is not readable")
        logger.debug("Resolved link %s -> %s", path, target)
        return target

    def open_directory(self, path: Path) -> ScandirHandle:
        self._check("list", path)
        try:
            with os.scandir(path) as iterator:
                entries = list(iterator)
        except OSError as exc:
            raise AttributeLookupError(path, _describe(exc)) from exc
        return ScandirHandle(
            path, entries, sort=self._sort, with_cache=self._policy is None
        )
