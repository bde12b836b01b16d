"""Front matter parsing for documents."""

import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

import yaml

from swifty.core.errors import FrontMatterError


class FrontMatterParser(ABC):
    """Splits a document into a metadata mapping and a body."""

    @abstractmethod
    def parse(self, text: str, source: Path | str = "<string>") -> tuple[dict[str, Any], str]:
        """Return (metadata, body). Documents without front matter get {}."""
        ...


class YamlFrontMatterParser(FrontMatterParser):
    """Parses a ``---`` delimited YAML block at the top of a document."""

    FRONTMATTER_PATTERN = re.compile(
        r"\A---[ \t]*\n(.*?)^---[ \t]*(?:\n|\Z)",
        re.DOTALL | re.MULTILINE,
    )

    def parse(self, text: str, source: Path | str = "<string>") -> tuple[dict[str, Any], str]:
        """Parse YAML frontmatter from content.

        Raises:
            FrontMatterError: If the block is not valid YAML or not a mapping.
        """
        text = text.lstrip("\ufeff")
        match = self.FRONTMATTER_PATTERN.match(text)
        if not match:
            return {}, text

        try:
            data = yaml.safe_load(match.group(1))
        except yaml.YAMLError as e:
            raise FrontMatterError(source, str(e)) from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise FrontMatterError(source, f"expected a mapping, got {type(data).__name__}")

        metadata = {str(key): value for key, value in data.items()}
        tags = metadata.get("tags")
        if isinstance(tags, str):
            metadata["tags"] = [tags]
        elif tags is None and "tags" in metadata:
            metadata["tags"] = []
        return metadata, text[match.end() :]
