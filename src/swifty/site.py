"""Whole-site build orchestration."""

import asyncio
import logging
from pathlib import Path

from pydantic import BaseModel, Field

from swifty.config import Settings
from swifty.core.assets import asset_imports, copy_assets
from swifty.core.builder import PageTreeBuilder
from swifty.core.cascade import ConfigResolver
from swifty.core.errors import MissingLandingPageError, SiteError
from swifty.core.renderer import Renderer
from swifty.core.storage import FileStorage, Storage
from swifty.core.templates import TemplateEngine
from swifty.core.tree import SiteTree

logger = logging.getLogger(__name__)


class BuildResult(BaseModel):
    """Summary of a finished build."""

    output_dir: Path
    written: list[Path] = Field(default_factory=list)
    assets: list[Path] = Field(default_factory=list)
    page_count: int = 0
    tag_count: int = 0


async def build_tree(settings: Settings, storage: Storage) -> SiteTree:
    """Build the page tree without writing anything.

    Raises:
        SiteError: If the pages directory is missing or unreadable.
        MissingLandingPageError: If the pages directory has no landing page.
    """
    pages_dir = settings.path("pages_dir")
    if not await storage.is_dir(pages_dir):
        raise SiteError(f"Pages directory not found: {pages_dir}")

    resolver = ConfigResolver(storage, settings.settings_files)
    defaults = await resolver.load_defaults(settings.base_dir)
    builder = PageTreeBuilder(
        storage,
        resolver,
        document_extensions=settings.document_extensions,
        index_name=settings.landing_page,
    )
    tree = await builder.build(pages_dir, defaults=defaults)

    if tree.landing_page is None:
        raise MissingLandingPageError(pages_dir / f"{settings.landing_page}{settings.document_extensions[0]}")
    return tree


async def generate_site(settings: Settings | None = None, storage: Storage | None = None) -> BuildResult:
    """Build the site described by ``settings`` and write it out.

    The page tree is built completely before anything is written, so a
    fatal error leaves the output directory untouched.
    """
    settings = settings or Settings()
    storage = storage or FileStorage()
    dist_dir = settings.path("dist_dir")

    logger.info("Starting build process in %s", settings.base_dir)
    tree = await build_tree(settings, storage)

    assets = await copy_assets(
        storage,
        {
            "css": settings.path("css_dir"),
            "js": settings.path("js_dir"),
            "images": settings.path("images_dir"),
        },
        dist_dir,
    )

    engine = TemplateEngine(storage, settings.path("partials_dir"), settings.path("layouts_dir"))
    imports = await asset_imports(storage, settings.path("css_dir"), settings.path("js_dir"))
    renderer = Renderer(
        storage,
        engine,
        document_template=settings.path("index_template"),
        asset_imports=imports,
    )
    written = await renderer.emit(tree, dist_dir)
    logger.info("Site generated successfully: %d files in %s", len(written), dist_dir)

    return BuildResult(
        output_dir=dist_dir,
        written=written,
        assets=assets,
        page_count=len(tree),
        tag_count=len(tree.tags),
    )


def build_site(settings: Settings | None = None, storage: Storage | None = None) -> BuildResult:
    """Synchronous entry point around generate_site()."""
    return asyncio.run(generate_site(settings, storage))
