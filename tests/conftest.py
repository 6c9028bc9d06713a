"""Shared fixtures for treewalk tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from tests.fakefs import FakeFileSystem


@pytest.fixture
def scenario_tree(tmp_path: Path) -> Path:
    """Create the smallest interesting tree.

    Structure::

        root/
        ├── a
        └── b/
            └── c
    """
    root = tmp_path / "root"
    root.mkdir()
    (root / "a").write_text("a")
    (root / "b").mkdir()
    (root / "b" / "c").write_text("c")
    return root


@pytest.fixture
def sample_tree(tmp_path: Path) -> Path:
    """Create a standard test directory tree.

    Structure::

        root/
        ├── docs/
        │   └── guide.md
        ├── src/
        │   ├── api/
        │   │   ├── auth.py
        │   │   └── user.py
        │   └── models/
        │       └── user.py
        ├── tests/
        │   └── test_user.py
        └── README.md
    """
    (tmp_path / "docs").mkdir()
    (tmp_path / "docs" / "guide.md").write_text("guide")
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "api").mkdir()
    (tmp_path / "src" / "api" / "auth.py").write_text("auth")
    (tmp_path / "src" / "api" / "user.py").write_text("user")
    (tmp_path / "src" / "models").mkdir()
    (tmp_path / "src" / "models" / "user.py").write_text("user")
    (tmp_path / "tests").mkdir()
    (tmp_path / "tests" / "test_user.py").write_text("test")
    (tmp_path / "README.md").write_text("readme")
    return tmp_path


@pytest.fixture
def fake_fs() -> FakeFileSystem:
    """In-memory tree with files, nested directories, links and a device.

    Structure::

        /r/
        ├── a                 file
        ├── d/
        │   ├── e             file
        │   └── f/
        │       └── g         file
        ├── dev               other
        ├── ldir -> /t        link to a directory outside the tree
        ├── lfile -> /r/a     link to a file
        └── lnone -> /r/zz    broken link
        /t/
        └── x                 file
    """
    return FakeFileSystem(
        {
            "/r": "dir",
            "/r/a": "file",
            "/r/d": "dir",
            "/r/d/e": "file",
            "/r/d/f": "dir",
            "/r/d/f/g": "file",
            "/r/dev": "other",
            "/r/ldir": "link:/t",
            "/r/lfile": "link:/r/a",
            "/r/lnone": "link:/r/zz",
            "/t": "dir",
            "/t/x": "file",
        }
    )
