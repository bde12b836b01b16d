"""Command-line interface for building a site."""

import logging
from pathlib import Path
from typing import Optional

import typer

from swifty.config import Settings
from swifty.core.errors import SwiftyError
from swifty.site import build_site

app = typer.Typer(
    name="swifty",
    help="Build a static site from a tree of Markdown pages.",
    add_completion=False,
    no_args_is_help=True,
)

logger = logging.getLogger(__name__)


def _configure_logging(verbosity: int) -> None:
    """Configure logging based on verbosity level (0=WARNING, 1=INFO, 2=DEBUG)."""
    if verbosity <= 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


@app.callback()
def main() -> None:
    """Swifty static site generator."""


@app.command()
def build(
    base_dir: Optional[Path] = typer.Option(
        None, "--base-dir", "-C", help="Project directory (defaults to SWIFTY_BASE_DIR or '.')"
    ),
    pages: Optional[Path] = typer.Option(None, "--pages", help="Source pages directory"),
    dist: Optional[Path] = typer.Option(None, "--dist", help="Output directory"),
    verbose: int = typer.Option(0, "--verbose", "-v", count=True, help="-v for info, -vv for debug"),
) -> None:
    """Build the site into the output directory."""
    overrides = {}
    if base_dir is not None:
        overrides["base_dir"] = base_dir
    if pages is not None:
        overrides["pages_dir"] = pages
    if dist is not None:
        overrides["dist_dir"] = dist
    settings = Settings(**overrides)
    _configure_logging(2 if settings.debug else verbose)

    try:
        result = build_site(settings)
    except (SwiftyError, OSError) as e:
        logger.error("Error generating site: %s", e)
        raise typer.Exit(code=1)

    typer.echo(f"Built {result.page_count} pages ({result.tag_count} tags) into {result.output_dir}")
