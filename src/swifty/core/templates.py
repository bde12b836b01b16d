"""Placeholder, partial and layout expansion.

Templates use two kinds of tokens:

    {{partial: name}}   replaced by partials/name.md, itself expanded and
                        converted to HTML
    {{ key }}           replaced by values[key], left as-is when unknown

Neither kind is expanded inside fenced code blocks or inline code spans,
so documentation can show the template syntax literally.
"""

import asyncio
import logging
import re
from pathlib import Path
from typing import Any, Callable

from swifty.core.parser import render_markdown
from swifty.core.storage import Storage

logger = logging.getLogger(__name__)

PARTIAL_PATTERN = re.compile(r"{{\s*partial:\s*([\w-]+)\s*}}")
PLACEHOLDER_PATTERN = re.compile(r"{{\s*([^}\s]+)\s*}}")
CONTENT_MARKER = re.compile(r"{{\s*content\s*}}")
CODE_PATTERN = re.compile(r"(```.*?```|~~~.*?~~~|`[^`\n]+`)", re.DOTALL)
STASH_PATTERN = re.compile("\x00STASH(\\d+)\x00")


def stringify(value: Any) -> str:
    """Render a settings value the way templates expect to see it."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ", ".join(stringify(v) for v in value)
    return str(value)


class TemplateEngine:
    """Expands templates against a page's values.

    Args:
        storage: Storage used to read partials and layouts.
        partials_dir: Directory holding ``<name>.md`` partials.
        layouts_dir: Directory holding ``<name>.html`` layouts.
        markdown: Markdown-to-HTML transform applied to partial bodies.
    """

    def __init__(
        self,
        storage: Storage,
        partials_dir: Path,
        layouts_dir: Path,
        markdown: Callable[[str], str] = render_markdown,
    ):
        self.storage = storage
        self.partials_dir = partials_dir
        self.layouts_dir = layouts_dir
        self.markdown = markdown
        self._layouts: dict[str, str | None] = {}

    def render_markdown(self, text: str) -> str:
        return self.markdown(text)

    async def expand(
        self,
        template: str,
        values: dict[str, Any],
        _including: tuple[str, ...] = (),
    ) -> str:
        """Resolve partials, then placeholders, outside of code.

        Args:
            template: Template text.
            values: Placeholder values.

        Returns:
            Expanded text. Unknown placeholders are left untouched.
        """
        stash: list[str] = []

        def store(text: str) -> str:
            stash.append(text)
            return f"\x00STASH{len(stash) - 1}\x00"

        text = CODE_PATTERN.sub(lambda m: store(m.group(0)), template)

        # Partial output is already expanded, so it is stashed rather than
        # scanned again for placeholders.
        matches = list(PARTIAL_PATTERN.finditer(text))
        if matches:
            included = await asyncio.gather(
                *(self._include(m.group(1), values, _including) for m in matches)
            )
            rendered = iter(included)
            text = PARTIAL_PATTERN.sub(lambda m: store(next(rendered)), text)

        def substitute(m: re.Match) -> str:
            key = m.group(1)
            if key in values:
                return stringify(values[key])
            logger.debug("Unresolved placeholder %r", key)
            return m.group(0)

        text = PLACEHOLDER_PATTERN.sub(substitute, text)
        return STASH_PATTERN.sub(lambda m: stash[int(m.group(1))], text)

    async def _include(self, name: str, values: dict[str, Any], including: tuple[str, ...]) -> str:
        """Render one partial, guarding against include cycles."""
        if name in including:
            logger.warning("Include %r is recursive (%s)", name, " -> ".join((*including, name)))
            return f'<p>Include "{name}" is recursive.</p>'

        path = self.partials_dir / f"{name}.md"
        if not await self.storage.exists(path):
            logger.warning("Include %r not found at %s", name, path)
            return f'<p>Include "{name}" not found.</p>'

        body = await self.storage.read_text(path)
        expanded = await self.expand(body, values, (*including, name))
        return self.markdown(expanded)

    async def load_layout(self, name: str) -> str | None:
        """Load a layout by name, caching the result for the engine's lifetime."""
        if name not in self._layouts:
            path = self.layouts_dir / f"{name}.html"
            if await self.storage.exists(path):
                self._layouts[name] = await self.storage.read_text(path)
            else:
                logger.warning("Layout %r not found at %s", name, path)
                self._layouts[name] = None
        return self._layouts[name]

    async def apply_layout(self, name: str | None, values: dict[str, Any]) -> tuple[str, str]:
        """Split a layout at its content marker and expand both halves.

        Returns:
            (before, after) fragments; ("", "") when there is no layout.
        """
        if not name:
            return "", ""
        layout = await self.load_layout(name)
        if layout is None:
            return "", ""
        parts = CONTENT_MARKER.split(layout, maxsplit=1)
        before = parts[0]
        after = parts[1] if len(parts) > 1 else ""
        return await self.expand(before, values), await self.expand(after, values)
