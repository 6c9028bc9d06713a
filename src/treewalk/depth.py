"""Path depth relative to a walk root."""

from __future__ import annotations

import os
from pathlib import PurePath


def _as_pure(value: str | os.PathLike[str]) -> PurePath:
    if isinstance(value, PurePath):
        return value
    return PurePath(value)


def path_depth(root: str | os.PathLike[str], path: str | os.PathLike[str]) -> int:
    """Count the components of *path* that lie beyond *root*.

    Components come from ``pathlib`` parsing, so the separator convention
    is that of the path flavour (pass ``PureWindowsPath`` values to measure
    Windows paths anywhere). A trailing separator on *root* makes no
    difference.

    Args:
        root: Walk root.
        path: Path to measure.

    Returns:
        int: ``0`` for the root itself or any path not below it, otherwise
        the number of components below the root.

    Examples:
        >>> path_depth("/data/", "/data/a/b")
        2
        >>> path_depth("/data", "/other")
        0
    """
    try:
        relative = _as_pure(path).relative_to(_as_pure(root))
    except ValueError:
        return 0
    return len(relative.parts)
