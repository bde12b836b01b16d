"""Markdown conversion with frame-aware links."""

from xml.etree.ElementTree import Element

from markdown import Markdown
from markdown.extensions import Extension
from markdown.inlinepatterns import SimpleTagInlineProcessor
from markdown.treeprocessors import Treeprocessor

# Pattern for strikethrough: ~~text~~
# Group 2 must contain the text (SimpleTagInlineProcessor expectation)
STRIKETHROUGH_PATTERN = r"(~~)(.*?)~~"

FRAME_ID = "content"
EXTERNAL_PREFIXES = ("http://", "https://", "mailto:", "tel:", "#", "//")


def frame_attrs() -> str:
    """Attributes the client router needs on every internal link."""
    return f'data-turbo-frame="{FRAME_ID}" data-turbo-action="advance"'


class StrikethroughExtension(Extension):
    """Markdown extension for ~~strikethrough~~ text."""

    def extendMarkdown(self, md: Markdown) -> None:
        """Add strikethrough pattern to markdown parser."""
        md.inlinePatterns.register(
            SimpleTagInlineProcessor(STRIKETHROUGH_PATTERN, "del"),
            "strikethrough",
            50,
        )


class FrameLinkTreeprocessor(Treeprocessor):
    """Marks internal links so the client loads them into the content frame."""

    def run(self, root: Element) -> None:
        for el in root.iter("a"):
            href = el.get("href", "")
            if not href or href.startswith(EXTERNAL_PREFIXES):
                continue
            el.set("data-turbo-frame", FRAME_ID)
            el.set("data-turbo-action", "advance")


class FrameLinkExtension(Extension):
    """Markdown extension adding frame navigation hints to internal links."""

    def extendMarkdown(self, md: Markdown) -> None:
        md.treeprocessors.register(FrameLinkTreeprocessor(md), "frame_links", 5)


def create_parser() -> Markdown:
    """Create a Markdown parser with the site's extensions.

    Returns:
        Configured Markdown parser instance.
    """
    return Markdown(
        extensions=[
            "extra",  # Includes: abbreviations, attr_list, def_list, fenced_code, footnotes, md_in_html, tables
            "sane_lists",
            "pymdownx.tasklist",
            StrikethroughExtension(),
            FrameLinkExtension(),
        ]
    )


def render_markdown(content: str) -> str:
    """Convert Markdown content to HTML.

    Raw HTML blocks (such as generated listings and rendered partials)
    pass through unchanged.
    """
    parser = create_parser()
    return parser.convert(content)
