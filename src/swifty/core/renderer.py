"""Rendering pages to HTML and writing the output tree."""

import html
import logging
from pathlib import Path

from swifty.core.links import link
from swifty.core.models import Page
from swifty.core.storage import Storage
from swifty.core.templates import TemplateEngine
from swifty.core.tree import SiteTree

logger = logging.getLogger(__name__)

TURBO_META = '<meta name="turbo-refresh-method" content="morph">'

DEFAULT_DOCUMENT = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <link rel="stylesheet" href="https://cdn.simplecss.org/simple.min.css">
  <title>{{ sitename }}</title>
</head>
<body>
  <header>
    {{ nav }}
    <h1>{{ sitename }}</h1>
  </header>
  <main>
    {{ content }}
  </main>
</body>
</html>
"""

# Keeps the address bar in sync with the content frame and routes internal
# links through it.
ROUTER_SCRIPT = """<script type="module">
  import * as Turbo from 'https://esm.sh/@hotwired/turbo';

  (function() {
    const frame = document.querySelector("turbo-frame#content");
    const path = window.location.pathname;
    if (frame && path !== "/" && !path.endsWith("/index.html")) {
      frame.setAttribute("src", path.endsWith(".html") ? path : path + ".html");
    }
  })();

  document.addEventListener("turbo:frame-load", event => {
    const frameSrc = event.target.getAttribute("src");
    if (frameSrc && frameSrc.endsWith("/index.html")) {
      window.history.pushState({}, "", frameSrc.replace(/index\\.html$/, ""));
    } else if (frameSrc && frameSrc.endsWith(".html")) {
      window.history.pushState({}, "", frameSrc.replace(/\\.html$/, ""));
    }

    document.querySelectorAll("#content a[href]").forEach(link => {
      const href = link.getAttribute("href");
      if (href.startsWith("#") || href.startsWith("http") || href === "/") {
        return;
      }
      link.setAttribute("data-turbo-frame", "content");
      link.setAttribute("data-turbo-action", "advance");
      if (!href.endsWith(".html") && !href.endsWith("/")) {
        link.setAttribute("href", href + ".html");
      }
    });
  });
</script>
"""


class Renderer:
    """Turns pages into HTML and writes them out.

    Args:
        storage: Storage the output is written through.
        engine: Template engine for placeholders, partials and layouts.
        document_template: Path of the site document template used for the
            root index page. A built-in template is used if it is missing.
        asset_imports: ``<link>``/``<script>`` tags added to the site document.
    """

    def __init__(
        self,
        storage: Storage,
        engine: TemplateEngine,
        document_template: Path | None = None,
        asset_imports: str = "",
    ):
        self.storage = storage
        self.engine = engine
        self.document_template = document_template
        self.asset_imports = asset_imports

    async def render_body(self, page: Page) -> str:
        """Expand, convert and lay out a page's content."""
        values = page.values()
        expanded = await self.engine.expand(page.raw_body, values)
        content = self.engine.render_markdown(expanded)
        before, after = await self.engine.apply_layout(page.layout, values)
        return "\n".join(part for part in (before, content, after) if part)

    async def render(self, page: Page) -> str:
        """Render a page as a fragment for the client content frame."""
        body = await self.render_body(page)
        sitename = page.config.get("sitename")
        title = f"{page.title} || {sitename}" if sitename else page.title
        page.rendered_content = (
            '<turbo-frame id="content">\n'
            f"<title>{html.escape(title, quote=False)}</title>\n"
            f"{body}\n"
            "</turbo-frame>\n"
        )
        return page.rendered_content

    def navigation(self, pages: list[Page]) -> str:
        """Build the site navigation from the top-level pages."""
        links = [link(page.ref) for page in pages if page.nav]
        return "<nav>\n" + "\n".join(links) + "\n</nav>"

    async def load_document_template(self) -> str:
        if self.document_template is not None and await self.storage.exists(self.document_template):
            return await self.storage.read_text(self.document_template)
        logger.info("No site template at %s, using the built-in one", self.document_template)
        return DEFAULT_DOCUMENT

    async def render_document(self, page: Page, navigation: str) -> str:
        """Render the root index page as the full site document."""
        body = await self.render_body(page)
        template = await self.load_document_template()

        head = "\n".join(part for part in (TURBO_META, self.asset_imports) if part)
        template = template.replace("</head>", f"{head}\n</head>", 1)

        values = {
            **page.values(),
            "content": f'<turbo-frame id="content">\n{body}\n</turbo-frame>',
            "nav": navigation,
            "navigation": navigation,
        }
        document = await self.engine.expand(template, values)

        end = document.rfind("</body>")
        if end == -1:
            document = f"{document}{ROUTER_SCRIPT}"
        else:
            document = f"{document[:end]}{ROUTER_SCRIPT}{document[end:]}"
        page.rendered_content = document
        return document

    async def emit(self, tree: SiteTree, output_root: Path) -> list[Path]:
        """Write every page of ``tree`` under ``output_root``.

        A folder's own listing is written and its output directory created
        before any of its children are emitted.

        Returns:
            Paths written, in emission order.
        """
        await self.storage.make_dir(output_root)
        navigation = self.navigation(tree.pages)
        written: list[Path] = []
        await self._emit(tree.pages, output_root, navigation, written, top_level=True)
        return written

    async def _emit(
        self,
        pages: list[Page],
        output_root: Path,
        navigation: str,
        written: list[Path],
        top_level: bool,
    ) -> None:
        for page in pages:
            if top_level and page.is_index:
                document = await self.render_document(page, navigation)
            else:
                document = await self.render(page)

            target = output_root / page.output_path
            await self.storage.write_text(target, document)
            logger.info("Created file: %s", target)
            written.append(target)

            if page.is_folder:
                await self.storage.make_dir(output_root / page.path.strip("/"))
                await self._emit(page.pages, output_root, navigation, written, top_level=False)
