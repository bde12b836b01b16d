"""HTML snippets shared by the builder and the renderer."""

import html
import re

from swifty.core.models import Page, PageRef
from swifty.core.parser import frame_attrs

HOME = PageRef(title="Home", url="/")


def slugify(text: str) -> str:
    text = text.lower()
    text = re.sub(r"[^\w]+", "-", text, flags=re.UNICODE)
    text = text.strip("-_").replace("_", "-")
    return text or "tag"


def capitalize_words(text: str) -> str:
    """Upper-case the first letter of every word, leaving the rest alone."""
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), text)


def title_from_name(name: str) -> str:
    """Derive a title from a file stem: ``post-one`` -> ``Post One``."""
    return capitalize_words(name.replace("-", " "))


def tag_url(tag: str) -> str:
    return f"/tags/{slugify(tag)}.html"


def link(ref: PageRef, css_class: str | None = None) -> str:
    """Anchor to ``ref`` that the client loads into the content frame."""
    class_attr = f' class="{css_class}"' if css_class else ""
    return (
        f'<a{class_attr} href="{html.escape(ref.url)}" {frame_attrs()}>'
        f"{html.escape(ref.title, quote=False)}</a>"
    )


def tag_links(tags: list[str]) -> str:
    if not tags:
        return ""
    anchors = "".join(link(PageRef(title=tag, url=tag_url(tag)), "tag") for tag in tags)
    return f'<div class="tags">{anchors}</div>'


def render_listing(pages: list[Page]) -> str:
    """HTML list of ``date: link`` lines for ``pages`` in the given order."""
    lines = ["<ul>"]
    for page in pages:
        lines.append(f"<li>{page.updated_at}: {link(page.ref)}</li>")
    lines.append("</ul>")
    return "\n".join(lines)
