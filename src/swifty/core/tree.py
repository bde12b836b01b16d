"""Page forest, url arena and tag accumulator."""

from collections.abc import Iterable, Iterator

from swifty.core.cascade import LayeredConfig
from swifty.core.errors import DuplicatePageError
from swifty.core.links import slugify
from swifty.core.models import Page, PageRef


class TagIndex:
    """Ordered mapping of tag to the pages declaring it.

    Tags are keyed by their url slug, so spellings that share a tag page
    (``Go`` and ``go``) share an entry. The first spelling seen names it.
    Each subtree of a build fills its own index; callers merge them in
    entry order so the result does not depend on task completion order.
    """

    def __init__(self) -> None:
        self._names: dict[str, str] = {}
        self._entries: dict[str, list[PageRef]] = {}

    def add(self, tag: str, ref: PageRef) -> None:
        self._extend(slugify(tag), tag, [ref])

    def merge(self, other: "TagIndex") -> None:
        """Append every entry of ``other`` after this index's entries."""
        for slug, refs in other._entries.items():
            self._extend(slug, other._names[slug], refs)

    def _extend(self, slug: str, name: str, refs: list[PageRef]) -> None:
        self._names.setdefault(slug, name)
        entry = self._entries.setdefault(slug, [])
        for ref in refs:
            if ref not in entry:
                entry.append(ref)

    def get(self, tag: str) -> list[PageRef]:
        return list(self._entries.get(slugify(tag), []))

    def items(self) -> Iterator[tuple[str, list[PageRef]]]:
        for slug, refs in self._entries.items():
            yield self._names[slug], list(refs)

    def __contains__(self, tag: str) -> bool:
        return slugify(tag) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"TagIndex({self._entries!r})"


def walk(pages: Iterable[Page]) -> Iterator[Page]:
    """Yield pages depth-first, parents before their children."""
    for page in pages:
        yield page
        yield from walk(page.pages)


class SiteTree:
    """The result of a build: the page forest plus a url index over it.

    Relationships between pages are stored as PageRef values; the tree
    turns them back into pages.

    Raises:
        DuplicatePageError: If two pages share a url or an output file.
    """

    def __init__(self, pages: list[Page], tags: TagIndex, config: LayeredConfig):
        self.pages = pages
        self.tags = tags
        self.config = config
        self._by_url: dict[str, Page] = {}
        by_output: dict[str, Page] = {}
        for page in walk(pages):
            existing = self._by_url.get(page.url)
            if existing is not None:
                raise DuplicatePageError(page.url, _describe(existing), _describe(page))
            # "/" and a folder named "index" differ by url but share index.html
            existing = by_output.get(page.output_path)
            if existing is not None:
                raise DuplicatePageError(page.output_path, _describe(existing), _describe(page))
            self._by_url[page.url] = page
            by_output[page.output_path] = page

    def walk(self) -> Iterator[Page]:
        return walk(self.pages)

    def get(self, url: str) -> Page | None:
        return self._by_url.get(url)

    def resolve(self, ref: PageRef | None) -> Page | None:
        """Look up the page a reference points to."""
        if ref is None:
            return None
        return self._by_url.get(ref.url)

    def parent_of(self, page: Page) -> Page | None:
        return self.resolve(page.parent)

    @property
    def landing_page(self) -> Page | None:
        """The top-level index document, if the source tree has one."""
        for page in self.pages:
            if page.is_index:
                return page
        return None

    def __len__(self) -> int:
        return len(self._by_url)

    def __contains__(self, url: str) -> bool:
        return url in self._by_url


def _describe(page: Page) -> str:
    return str(page.source) if page.source is not None else page.path
