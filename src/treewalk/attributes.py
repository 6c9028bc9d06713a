"""File attributes and the attribute resolver."""

from __future__ import annotations

import logging
import os
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from treewalk.provider import MetadataProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FileAttributes:
    """Type metadata for one filesystem object.

    Attributes:
        is_regular_file: Whether the object is a regular file.
        is_directory: Whether the object is a directory.
        is_symbolic_link: Whether the object is a symbolic link. Attributes
            are always those of the link itself, never of its target.
        identity_key: Opaque identity of the object (``(st_dev, st_ino)``
            for the OS provider), or ``None`` when unknown.
    """

    is_regular_file: bool = False
    is_directory: bool = False
    is_symbolic_link: bool = False
    identity_key: object | None = None

    @property
    def is_other(self) -> bool:
        """True for devices, FIFOs, sockets and anything else untyped."""
        return not (self.is_regular_file or self.is_directory or self.is_symbolic_link)

    @classmethod
    def from_stat(cls, result: os.stat_result) -> FileAttributes:
        """Build attributes from an ``lstat``-style result."""
        mode = result.st_mode
        return cls(
            is_regular_file=stat.S_ISREG(mode),
            is_directory=stat.S_ISDIR(mode),
            is_symbolic_link=stat.S_ISLNK(mode),
            identity_key=(result.st_dev, result.st_ino),
        )


class AttributeCache(Protocol):
    """Previously fetched attributes attached to one path.

    Cached attributes of a symbolic link describe the link, not its target.
    """

    def get(self) -> FileAttributes | None: ...

    def invalidate(self) -> None: ...


class AttributeResolver:
    """Fetch attributes for a path, from a cache when allowed.

    The cache is a pure shortcut: whenever it is consulted the answer is the
    same one a fresh lookup would give for classification purposes. A cached
    link is ignored while following links so that the explicit resolution
    step always sees fresh data.

    Args:
        provider: Metadata provider used for fresh lookups.
        follow_links: Whether the walk follows symbolic links.
        use_cache: Whether cache objects handed in may be consulted.
    """

    def __init__(
        self,
        provider: MetadataProvider,
        *,
        follow_links: bool = False,
        use_cache: bool = False,
    ) -> None:
        self._provider = provider
        self._follow_links = follow_links
        self._use_cache = use_cache

    def resolve(
        self, path: Path, cache: AttributeCache | None = None
    ) -> FileAttributes:
        """Return the attributes of *path* without following links.

        Args:
            path: Path to look up.
            cache: Optional cache object attached to *path*.

        Returns:
            FileAttributes: Cached or freshly read attributes.

        Raises:
            AttributeLookupError: If the path cannot be stat-ed.
            AccessDenied: If an access policy refuses the read.
        """
        if self._use_cache and cache is not None:
            cached = cache.get()
            stale_link = (
                self._follow_links and cached is not None and cached.is_symbolic_link
            )
            if cached is not None and not stale_link:
                return cached
            logger.debug("Cache miss: %s", path)
        return self._provider.stat(path)
