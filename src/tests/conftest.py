"""Shared fixtures: on-disk source trees and storage with pinned file times."""

from datetime import datetime
from pathlib import Path

import pytest

from swifty.core.models import FileTimes
from swifty.core.storage import FileStorage

FIXED_CREATED = datetime(2024, 1, 2, 9, 30)
FIXED_MODIFIED = datetime(2024, 3, 4, 18, 0)


class PinnedStorage(FileStorage):
    """FileStorage reporting fixed file times so output is reproducible.

    ``times`` overrides the times of individual files by name.
    """

    def __init__(self, times: dict[str, FileTimes] | None = None):
        super().__init__()
        self.times = times or {}

    async def stat(self, path: Path) -> FileTimes:
        return self.times.get(
            path.name, FileTimes(created=FIXED_CREATED, modified=FIXED_MODIFIED)
        )


@pytest.fixture
def storage():
    return PinnedStorage()


@pytest.fixture
def make_tree(tmp_path):
    """Write a mapping of relative path -> content under a root directory.

    Keys ending in "/" create empty directories.
    """

    def _make(files: dict[str, str], root: Path | None = None) -> Path:
        root = root or tmp_path
        root.mkdir(parents=True, exist_ok=True)
        for rel, content in files.items():
            path = root / rel
            if rel.endswith("/"):
                path.mkdir(parents=True, exist_ok=True)
                continue
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return root

    return _make
