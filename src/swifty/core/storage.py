"""Storage abstraction for site sources and build output."""

import asyncio
import shutil
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path

from swifty.core.models import DirEntry, FileTimes


class Storage(ABC):
    """Abstract base class for filesystem access during a build."""

    @abstractmethod
    async def list_dir(self, path: Path) -> list[DirEntry]:
        """List the entries of a directory. Raises OSError if unreadable."""
        ...

    @abstractmethod
    async def exists(self, path: Path) -> bool:
        """Check if a file or directory exists."""
        ...

    @abstractmethod
    async def is_dir(self, path: Path) -> bool:
        """Check if a path is a directory."""
        ...

    @abstractmethod
    async def read_text(self, path: Path) -> str:
        """Read a text file."""
        ...

    @abstractmethod
    async def write_text(self, path: Path, text: str) -> None:
        """Write a text file, replacing any previous content."""
        ...

    @abstractmethod
    async def make_dir(self, path: Path) -> None:
        """Create a directory and any missing parents."""
        ...

    @abstractmethod
    async def stat(self, path: Path) -> FileTimes:
        """Get creation and modification times of a path."""
        ...

    @abstractmethod
    async def copy_file(self, source: Path, destination: Path) -> None:
        """Copy a file, creating the destination directory if needed."""
        ...


class FileStorage(Storage):
    """Local filesystem storage.

    Listings are sorted by name so builds are reproducible regardless of
    the order the operating system returns entries in.
    """

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding

    async def list_dir(self, path: Path) -> list[DirEntry]:
        """List directory entries sorted by name."""
        entries = []
        for child in sorted(path.iterdir(), key=lambda p: p.name):
            entries.append(DirEntry(name=child.name, path=child, is_dir=child.is_dir()))
        return entries

    async def exists(self, path: Path) -> bool:
        return path.exists()

    async def is_dir(self, path: Path) -> bool:
        return path.is_dir()

    async def read_text(self, path: Path) -> str:
        return path.read_text(encoding=self.encoding)

    async def write_text(self, path: Path, text: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding=self.encoding)

    async def make_dir(self, path: Path) -> None:
        path.mkdir(parents=True, exist_ok=True)

    async def stat(self, path: Path) -> FileTimes:
        """Get file times.

        Uses the birth time where the platform records one and falls back
        to the inode change time otherwise.
        """
        st = path.stat()
        created = getattr(st, "st_birthtime", None) or st.st_ctime
        return FileTimes(
            created=datetime.fromtimestamp(created),
            modified=datetime.fromtimestamp(st.st_mtime),
        )

    async def copy_file(self, source: Path, destination: Path) -> None:
        destination.parent.mkdir(parents=True, exist_ok=True)
        await asyncio.to_thread(shutil.copy2, source, destination)
