"""CSV output formatter for walk events.

Columns are described by ``CsvColumn`` values so callers can add, drop or
reorder them by passing their own list to ``format_csv``.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from treewalk.depth import path_depth
from treewalk.events import Event


@dataclass(frozen=True, slots=True)
class CsvColumn:
    """A single CSV output column.

    Attributes:
        name: Header name for this column.
        extract: Callable that takes ``(event, root)`` and returns a string
            value. ``root`` is the walk root, used for depth computation.
    """

    name: str
    extract: Callable[[Event, Path], str]


def _extract_type(event: Event, root: Path) -> str:  # noqa: ARG001
    return event.type.value


def _extract_path(event: Event, root: Path) -> str:  # noqa: ARG001
    return str(event.path)


def _extract_depth(event: Event, root: Path) -> str:
    return str(path_depth(root, event.path))


def _extract_target(event: Event, root: Path) -> str:  # noqa: ARG001
    return "" if event.target is None else str(event.target)


def _extract_error(event: Event, root: Path) -> str:  # noqa: ARG001
    return "" if event.error is None else str(event.error)


DEFAULT_COLUMNS: list[CsvColumn] = [
    CsvColumn(name="type", extract=_extract_type),
    CsvColumn(name="path", extract=_extract_path),
    CsvColumn(name="depth", extract=_extract_depth),
    CsvColumn(name="error", extract=_extract_error),
]

TARGET_COLUMN = CsvColumn(name="target", extract=_extract_target)


@dataclass(frozen=True, slots=True)
class CsvOptions:
    """Options controlling CSV output.

    Attributes:
        root_path: Walk root, used for the ``depth`` column. Defaults to the
            path of the first event.
        columns: Column definitions to use. Defaults to ``DEFAULT_COLUMNS``.
    """

    root_path: Path | None = None
    columns: list[CsvColumn] = field(default_factory=lambda: list(DEFAULT_COLUMNS))


def format_csv(events: Iterable[Event], options: CsvOptions | None = None) -> str:
    """Render events as CSV text.

    Output starts with a header row; each following row is one event in
    traversal order. ``error`` is empty for successful events.

    Args:
        events: Walk events to render.
        options: Rendering options. Defaults to ``CsvOptions()``.

    Returns:
        str: CSV text with header, using LF line endings (no trailing newline).
    """
    opts = options or CsvOptions()
    collected = list(events)
    root = opts.root_path or (collected[0].path if collected else Path("."))
    columns = opts.columns

    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow([col.name for col in columns])
    for event in collected:
        writer.writerow([col.extract(event, root) for col in columns])

    # Remove trailing newline that csv.writer appends after the last row
    return buf.getvalue().rstrip("\n")
