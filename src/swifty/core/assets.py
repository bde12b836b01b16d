"""Passthrough assets: stylesheets, scripts and images."""

import asyncio
import logging
from pathlib import Path

from swifty.core.storage import Storage

logger = logging.getLogger(__name__)

VALID_EXTENSIONS: dict[str, tuple[str, ...]] = {
    "css": (".css",),
    "js": (".js",),
    "images": (".png", ".jpg", ".jpeg", ".gif", ".svg", ".webp"),
}


async def _valid_files(storage: Storage, source: Path, extensions: tuple[str, ...]) -> list[Path]:
    if not await storage.is_dir(source):
        return []
    entries = await storage.list_dir(source)
    return [entry.path for entry in entries if not entry.is_dir and entry.suffix in extensions]


async def copy_valid_files(
    storage: Storage, source: Path, destination: Path, extensions: tuple[str, ...]
) -> list[Path]:
    """Copy files with a valid extension from ``source`` into ``destination``."""
    if not await storage.is_dir(source):
        logger.info("No %s found in %s", source.name, source)
        return []

    await storage.make_dir(destination)
    files = await _valid_files(storage, source, extensions)
    targets = [destination / path.name for path in files]
    await asyncio.gather(*(storage.copy_file(src, dst) for src, dst in zip(files, targets)))
    logger.info("Copied %d files from %s to %s", len(targets), source, destination)
    return targets


async def copy_assets(storage: Storage, sources: dict[str, Path], output_root: Path) -> list[Path]:
    """Copy each asset group into ``output_root/<group>`` concurrently.

    Args:
        storage: Storage to copy through.
        sources: Source directory per group (``css``, ``js``, ``images``).
        output_root: Build output directory.
    """
    groups = [group for group in sources if group in VALID_EXTENSIONS]
    results = await asyncio.gather(
        *(
            copy_valid_files(storage, sources[group], output_root / group, VALID_EXTENSIONS[group])
            for group in groups
        )
    )
    return [path for copied in results for path in copied]


async def asset_imports(storage: Storage, css_dir: Path, js_dir: Path) -> str:
    """Tags importing every stylesheet and script into the site document."""
    css = await _valid_files(storage, css_dir, VALID_EXTENSIONS["css"])
    js = await _valid_files(storage, js_dir, VALID_EXTENSIONS["js"])
    tags = [f'<link rel="stylesheet" href="/css/{path.name}" />' for path in css]
    tags += [f'<script src="/js/{path.name}"></script>' for path in js]
    return "\n".join(tags)
