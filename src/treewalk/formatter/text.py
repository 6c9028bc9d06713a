"""Line-per-event text output with an optional summary report."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from treewalk.events import Event, EventType

LABELS: dict[EventType, str] = {
    EventType.START_DIRECTORY: "Start Directory",
    EventType.DIRECTORY: "Directory",
    EventType.ENTRY: "Entry",
    EventType.LINK: "Link",
}


@dataclass(frozen=True, slots=True)
class TextOptions:
    """Options for text output.

    Attributes:
        no_report: Whether to omit the summary report line.
        root_path: When set, paths are printed relative to this root.
    """

    no_report: bool = False
    root_path: Path | None = None


def _display_path(path: Path, root: Path | None) -> str:
    if root is None:
        return str(path)
    try:
        rel = path.relative_to(root)
    except ValueError:
        return str(path)
    return str(rel)


def format_event(event: Event, options: TextOptions | None = None) -> str:
    """Render one event as ``"<Label>:  <path>"``.

    Followed links show their target after ``->``; failures append the
    error in brackets.
    """
    opts = options or TextOptions()
    line = f"{LABELS[event.type]}:  {_display_path(event.path, opts.root_path)}"
    if event.target is not None:
        line += f" -> {event.target}"
    if event.error is not None:
        line += f"  [error: {event.error}]"
    return line


def _plural(count: int, singular: str, plural: str) -> str:
    return f"{count} {singular if count == 1 else plural}"


def _report_line(events: list[Event]) -> str:
    """Summarise successful events by kind.

    Directories are counted by distinct path, excluding the root, since each
    expanded directory is announced twice.
    """
    root = next((e.path for e in events if e.type is EventType.START_DIRECTORY), None)
    directories = {
        e.path
        for e in events
        if e.type is EventType.DIRECTORY and not e.failed and e.path != root
    }
    files = sum(1 for e in events if e.type is EventType.ENTRY and not e.failed)
    links = sum(1 for e in events if e.type is EventType.LINK and not e.failed)
    errors = sum(1 for e in events if e.failed)

    parts = [
        _plural(len(directories), "directory", "directories"),
        _plural(files, "file", "files"),
        _plural(links, "link", "links"),
    ]
    if errors:
        parts.append(_plural(errors, "error", "errors"))
    return ", ".join(parts)


def format_events(events: Iterable[Event], options: TextOptions | None = None) -> str:
    """Render events one per line, followed by the summary report.

    Args:
        events: Walk events in traversal order.
        options: Text rendering options.

    Returns:
        str: Rendered output without a trailing newline.
    """
    opts = options or TextOptions()
    collected = list(events)
    lines = [format_event(event, opts) for event in collected]
    if not opts.no_report:
        lines.append("")
        lines.append(_report_line(collected))
    return "\n".join(lines)
