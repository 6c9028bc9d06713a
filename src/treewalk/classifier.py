"""Turn a path into a typed event."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Final

from treewalk.attributes import AttributeCache, AttributeResolver, FileAttributes
from treewalk.errors import (
    AccessDenied,
    AttributeLookupError,
    SymlinkTargetUnreadable,
    UnclassifiableEntry,
)
from treewalk.events import Event, EventType
from treewalk.provider import MetadataProvider

logger = logging.getLogger(__name__)

# Same bound the Linux kernel applies to a single path lookup.
MAX_LINK_HOPS: Final[int] = 40


def _event_for(
    path: Path, attrs: FileAttributes, target: Path | None = None
) -> Event | None:
    if attrs.is_regular_file:
        return Event.success(EventType.ENTRY, path, attrs, target)
    if attrs.is_directory:
        return Event.success(EventType.DIRECTORY, path, attrs, target)
    logger.debug("%s", UnclassifiableEntry(path))
    return None


class EntryClassifier:
    """Classify entries into events, resolving links when asked to.

    Args:
        resolver: Attribute resolver for the walk.
        metadata: Provider used to resolve link targets.
        follow_links: Report link targets instead of links.
        ignore_access_errors: Skip entries an access policy refuses instead
            of propagating :class:`AccessDenied`.
    """

    def __init__(
        self,
        resolver: AttributeResolver,
        metadata: MetadataProvider,
        *,
        follow_links: bool = False,
        ignore_access_errors: bool = False,
    ) -> None:
        self._resolver = resolver
        self._metadata = metadata
        self._follow_links = follow_links
        self._ignore_access_errors = ignore_access_errors

    def classify(self, path: Path, cache: AttributeCache | None = None) -> Event | None:
        """Return the event for *path*.

        Args:
            path: Entry to classify.
            cache: Optional attribute cache attached to *path*.

        Returns:
            Event | None: ``None`` when the entry is neither file, directory
            nor link, or when it was refused by the access policy and access
            errors are ignored.

        Raises:
            AccessDenied: If the policy refuses a lookup and access errors
                are not ignored.
        """
        try:
            attrs = self._resolver.resolve(path, cache)
        except AccessDenied as exc:
            return self._denied(exc)
        except AttributeLookupError as exc:
            return Event.failure(EventType.ENTRY, path, exc)

        if not attrs.is_symbolic_link:
            return _event_for(path, attrs)
        if not self._follow_links:
            return Event.success(EventType.LINK, path, attrs)
        return self._follow(path)

    def _denied(self, exc: AccessDenied) -> None:
        if not self._ignore_access_errors:
            raise exc
        logger.debug("Skipping %s", exc)
        return None

    def _follow(self, link: Path) -> Event | None:
        """Resolve *link* until a non-link target is reached.

        Each round resolves the current path to its canonical target and
        looks the target up afresh. A target seen earlier in the same chain,
        or a chain longer than ``MAX_LINK_HOPS``, ends with a failed
        ``LINK`` event.
        """
        seen: set[Path] = set()
        current = link
        while len(seen) < MAX_LINK_HOPS:
            try:
                target = self._metadata.resolve_link(current)
            except AccessDenied as exc:
                return self._denied(exc)
            except AttributeLookupError as exc:
                return Event.failure(EventType.LINK, link, _unreadable(link, exc))

            if target in seen:
                error = SymlinkTargetUnreadable(link, f"link chain revisits {target}")
                return Event.failure(EventType.LINK, link, error)
            seen.add(target)

            try:
                attrs = self._resolver.resolve(target)
            except AccessDenied as exc:
                return self._denied(exc)
            except AttributeLookupError as exc:
                return Event.failure(EventType.LINK, link, _unreadable(link, exc))

            if not attrs.is_symbolic_link:
                return _event_for(link, attrs, target)
            current = target

        error = SymlinkTargetUnreadable(
            link, f"more than {MAX_LINK_HOPS} links in chain"
        )
        return Event.failure(EventType.LINK, link, error)


def _unreadable(link: Path, exc: AttributeLookupError) -> SymlinkTargetUnreadable:
    if isinstance(exc, SymlinkTargetUnreadable):
        return exc
    error = SymlinkTargetUnreadable(link, str(exc))
    error.__cause__ = exc
    return error
