"""Page-tree construction.

A build runs in two passes over the source tree:

1. A depth-first walk that creates one Page per document or folder,
   resolves its settings, parses front matter and collects tags. Sibling
   entries are built concurrently and joined by position.
2. A top-down pass that fills in relationships (parent, siblings) and the
   derived link HTML, which need the parent's final state.

Nothing is written during a build; see swifty.core.renderer for output.
"""

import asyncio
import logging
import posixpath
from datetime import datetime
from pathlib import Path

from swifty.core.cascade import ConfigResolver, LayeredConfig
from swifty.core.errors import SiteError
from swifty.core.frontmatter import FrontMatterParser, YamlFrontMatterParser
from swifty.core.links import (
    HOME,
    capitalize_words,
    link,
    render_listing,
    slugify,
    tag_links,
    tag_url,
    title_from_name,
)
from swifty.core.models import DirEntry, FileTimes, Page
from swifty.core.storage import Storage
from swifty.core.tree import SiteTree, TagIndex, walk

logger = logging.getLogger(__name__)

BREADCRUMB_SEPARATOR = " &raquo; "
TAGS_FOLDER = "tags"


def format_date(value: datetime | None, date_format: str | None) -> str:
    if value is None:
        return ""
    return value.strftime(date_format or "%Y-%m-%d")


class PageTreeBuilder:
    """Builds the page forest for a source directory.

    Args:
        storage: Storage to read the source tree through.
        resolver: Resolver for per-directory settings.
        parser: Front matter parser for documents.
        document_extensions: File extensions treated as documents.
        index_name: Stem of documents that stand for their folder's root.
    """

    def __init__(
        self,
        storage: Storage,
        resolver: ConfigResolver,
        parser: FrontMatterParser | None = None,
        document_extensions: tuple[str, ...] | list[str] = (".md",),
        index_name: str = "index",
    ):
        self.storage = storage
        self.resolver = resolver
        self.parser = parser or YamlFrontMatterParser()
        self.document_extensions = tuple(ext.lower() for ext in document_extensions)
        self.index_name = index_name

    async def build(
        self,
        source_dir: Path,
        base_dir: Path | None = None,
        defaults: LayeredConfig | None = None,
    ) -> SiteTree:
        """Build every page under ``source_dir``.

        Args:
            source_dir: Directory to walk.
            base_dir: Directory routes are computed relative to. Defaults to
                ``source_dir``.
            defaults: Settings the cascade starts from. Defaults to the
                resolver's site defaults.

        Raises:
            SiteError: If ``source_dir`` cannot be listed.
            ConfigError: If a settings file is malformed.
            FrontMatterError: If a document's front matter is malformed.
            DuplicatePageError: If two pages map to the same url.
        """
        base_dir = base_dir or source_dir
        if defaults is None:
            defaults = LayeredConfig().push("defaults", self.resolver.defaults)
        config = await self.resolver.resolve(source_dir, defaults)

        try:
            entries = await self.storage.list_dir(source_dir)
        except OSError as e:
            raise SiteError(f"Cannot read pages directory {source_dir}: {e}") from e

        pages, tags = await self._build_entries(entries, base_dir, config, top_level=True)
        if tags:
            pages.append(self._tags_folder(pages, tags, config))

        self._link(pages, parent=None)
        tree = SiteTree(pages, tags, config)
        logger.info("Built %d pages (%d tags) from %s", len(tree), len(tags), source_dir)
        return tree

    def is_valid(self, entry: DirEntry) -> bool:
        """Folders and recognised documents become pages; anything else is skipped."""
        return entry.is_dir or entry.suffix in self.document_extensions

    async def _build_directory(
        self, directory: Path, base_dir: Path, config: LayeredConfig
    ) -> tuple[list[Page], TagIndex]:
        try:
            entries = await self.storage.list_dir(directory)
        except OSError:
            logger.warning("Error reading directory %s, skipping it", directory, exc_info=True)
            return [], TagIndex()
        return await self._build_entries(entries, base_dir, config, top_level=False)

    async def _build_entries(
        self,
        entries: list[DirEntry],
        base_dir: Path,
        config: LayeredConfig,
        top_level: bool,
    ) -> tuple[list[Page], TagIndex]:
        valid = []
        for entry in entries:
            if self.is_valid(entry):
                valid.append(entry)
            else:
                logger.debug("Skipping %s", entry.path)

        results = await asyncio.gather(
            *(self._build_entry(entry, base_dir, config, top_level) for entry in valid)
        )

        pages: list[Page] = []
        tags = TagIndex()
        for page, page_tags in results:
            pages.append(page)
            tags.merge(page_tags)
        return pages, tags

    def _identity(self, entry: DirEntry, base_dir: Path) -> tuple[str, str, bool]:
        """Compute (path, url, is_index) for an entry."""
        relative = entry.path.relative_to(base_dir)
        route = relative.as_posix() if entry.is_dir else relative.with_suffix("").as_posix()
        is_index = not entry.is_dir and entry.stem == self.index_name
        if is_index:
            folder = posixpath.dirname(route)
            path = f"/{folder}/" if folder else "/"
            return path, path, True
        return f"/{route}", f"/{route}.html", False

    async def _build_entry(
        self,
        entry: DirEntry,
        base_dir: Path,
        config: LayeredConfig,
        top_level: bool,
    ) -> tuple[Page, TagIndex]:
        path, url, is_index = self._identity(entry, base_dir)
        times = await self.storage.stat(entry.path)
        logger.debug("Building %s -> %s", entry.path, url)
        if entry.is_dir:
            return await self._build_folder(entry, base_dir, path, url, times, config, top_level)
        return await self._build_document(entry, path, url, is_index, times, config, top_level)

    async def _build_folder(
        self,
        entry: DirEntry,
        base_dir: Path,
        path: str,
        url: str,
        times: FileTimes,
        parent_config: LayeredConfig,
        top_level: bool,
    ) -> tuple[Page, TagIndex]:
        config = await self.resolver.resolve(entry.path, parent_config)
        children, tags = await self._build_directory(entry.path, base_dir, config)

        values = config.resolved()
        title = title_from_name(entry.name)
        page = self._new_page(entry, path, url, title, times, values, top_level, is_index=False)
        page.is_folder = True
        page.pages = children
        page.children = [child.ref for child in children]
        page.raw_body = render_listing(children)
        return page, tags

    async def _build_document(
        self,
        entry: DirEntry,
        path: str,
        url: str,
        is_index: bool,
        times: FileTimes,
        config: LayeredConfig,
        top_level: bool,
    ) -> tuple[Page, TagIndex]:
        text = await self.storage.read_text(entry.path)
        metadata, body = self.parser.parse(text, entry.path)
        if metadata:
            config = config.push(f"front-matter:{entry.path}", metadata)

        values = config.resolved()
        title = str(metadata["title"]) if metadata.get("title") else title_from_name(entry.stem)
        page = self._new_page(entry, path, url, title, times, values, top_level, is_index)
        page.raw_body = body
        page.tags = _tag_list(values.get("tags"))

        tags = TagIndex()
        for tag in page.tags:
            tags.add(tag, page.ref)
        return page, tags

    def _new_page(
        self,
        entry: DirEntry,
        path: str,
        url: str,
        title: str,
        times: FileTimes,
        values: dict,
        top_level: bool,
        is_index: bool,
    ) -> Page:
        date_format = values.get("dateFormat")
        updated_at = format_date(times.modified, date_format)
        if "nav" in values and isinstance(values["nav"], bool):
            nav = values["nav"]
        else:
            nav = top_level and not is_index
        return Page(
            name=entry.stem,
            path=path,
            url=url,
            title=title,
            source=entry.path,
            is_index=is_index,
            nav=nav,
            created=times.created,
            modified=times.modified,
            created_at=format_date(times.created, date_format),
            updated_at=updated_at,
            config={**values, "title": title, "date": updated_at},
        )

    def _tags_folder(self, pages: list[Page], tags: TagIndex, config: LayeredConfig) -> Page:
        """Synthesize the top-level folder listing every tag."""
        values = config.resolved()
        date_format = values.get("dateFormat")
        by_url = {page.url: page for page in walk(pages)}

        tag_pages = []
        for tag, refs in tags.items():
            tagged = [by_url[ref.url] for ref in refs if ref.url in by_url]
            modified = max((p.modified for p in tagged if p.modified), default=None)
            title = f"Pages tagged with {capitalize_words(tag)}"
            slug = slugify(tag)
            tag_pages.append(
                Page(
                    name=slug,
                    path=f"/{TAGS_FOLDER}/{slug}",
                    url=tag_url(tag),
                    title=title,
                    modified=modified,
                    updated_at=format_date(modified, date_format),
                    raw_body=render_listing(tagged),
                    config={**values, "title": title, "date": format_date(modified, date_format)},
                )
            )

        modified = max((p.modified for p in tag_pages if p.modified), default=None)
        title = "All Tags"
        return Page(
            name=TAGS_FOLDER,
            path=f"/{TAGS_FOLDER}",
            url=f"/{TAGS_FOLDER}.html",
            title=title,
            is_folder=True,
            nav=bool(values.get("tagsNav", False)),
            modified=modified,
            updated_at=format_date(modified, date_format),
            raw_body=render_listing(tag_pages),
            pages=tag_pages,
            children=[p.ref for p in tag_pages],
            config={**values, "title": title, "date": format_date(modified, date_format)},
        )

    def _link(self, pages: list[Page], parent: Page | None) -> None:
        """Fill relationships and derived HTML, parents before children."""
        home_crumb = link(HOME, "breadcrumb")
        for page in pages:
            if parent is not None:
                page.parent = parent.ref
                page.siblings = [ref for ref in parent.children if ref.url != page.url]

            if page.is_index and parent is None:
                breadcrumbs = home_crumb
            else:
                trail = parent.derived["breadcrumbs"] if parent is not None else home_crumb
                breadcrumbs = f"{trail}{BREADCRUMB_SEPARATOR}{link(page.ref, 'breadcrumb')}"

            page.derived = {
                "breadcrumbs": breadcrumbs,
                "link_to_parent": link(page.parent) if page.parent else "",
                "links_to_children": "".join(link(ref) for ref in page.children),
                "links_to_siblings": "".join(link(ref) for ref in page.siblings),
                "links_to_self_and_siblings": (
                    "".join(link(ref) for ref in parent.children) if parent is not None else ""
                ),
                "links_to_tags": tag_links(page.tags),
            }
            if page.pages:
                self._link(page.pages, page)


def _tag_list(value: object) -> list[str]:
    """Normalize a ``tags`` setting to a list of strings with distinct slugs."""
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    elif not isinstance(value, (list, tuple, set)):
        value = [value]
    tags: list[str] = []
    seen: set[str] = set()
    for item in value:
        tag = str(item).strip()
        if tag and slugify(tag) not in seen:
            seen.add(slugify(tag))
            tags.append(tag)
    return tags
