"""Data models for Swifty."""

from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class PageRef(BaseModel):
    """A by-value reference to another page."""

    model_config = ConfigDict(frozen=True)

    title: str
    url: str


class DirEntry(BaseModel):
    """One entry of a directory listing."""

    model_config = ConfigDict(frozen=True)

    name: str
    path: Path
    is_dir: bool = False

    @property
    def stem(self) -> str:
        return self.path.stem if not self.is_dir else self.name

    @property
    def suffix(self) -> str:
        return "" if self.is_dir else self.path.suffix.lower()


class FileTimes(BaseModel):
    """Creation and modification timestamps of a file."""

    model_config = ConfigDict(frozen=True)

    created: datetime
    modified: datetime


class Page(BaseModel):
    """Represents one generated artifact: a document or a folder listing."""

    name: str
    path: str
    url: str
    title: str
    source: Path | None = None
    is_folder: bool = False
    is_index: bool = False
    nav: bool = False
    created: datetime | None = None
    modified: datetime | None = None
    created_at: str = ""
    updated_at: str = ""
    raw_body: str = ""
    rendered_content: str | None = None
    parent: PageRef | None = None
    children: list[PageRef] = Field(default_factory=list)
    siblings: list[PageRef] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    config: dict[str, Any] = Field(default_factory=dict)
    derived: dict[str, str] = Field(default_factory=dict)
    pages: list["Page"] = Field(default_factory=list)

    @property
    def ref(self) -> PageRef:
        """Return the by-value reference other pages hold to this one."""
        return PageRef(title=self.title, url=self.url)

    @property
    def output_path(self) -> str:
        """Artifact path relative to the output root."""
        if self.is_index:
            return f"{self.url.strip('/')}/index.html".lstrip("/")
        return self.url.lstrip("/")

    @property
    def layout(self) -> str | None:
        return self.config.get("layout") or None

    def values(self) -> dict[str, Any]:
        """Template namespace for this page."""
        return {
            **self.config,
            "name": self.name,
            "path": self.path,
            "url": self.url,
            "title": self.title,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            **self.derived,
        }
