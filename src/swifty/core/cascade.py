"""Layered settings resolution.

Settings cascade from the built-in site defaults, through the project's
global settings file, through every ancestor directory, to the current
directory and finally to a document's own front matter. Merging is
shallow: a key set by a later layer replaces the earlier value outright.
"""

import json
import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field

from swifty.core.errors import ConfigError
from swifty.core.storage import Storage

logger = logging.getLogger(__name__)

SITE_DEFAULTS: dict[str, Any] = {
    "sitename": "My Swifty Site",
    "author": None,
    "dates": False,
    "dateFormat": "%Y-%m-%d",
}

DEFAULT_SETTINGS_FILES = ("config.yaml", "config.yml", "config.json")


class ConfigLayer(BaseModel):
    """One source of settings and the keys it sets."""

    model_config = ConfigDict(frozen=True)

    source: str
    values: dict[str, Any] = Field(default_factory=dict)


class LayeredConfig(BaseModel):
    """An ordered stack of settings layers, lowest precedence first."""

    model_config = ConfigDict(frozen=True)

    layers: tuple[ConfigLayer, ...] = ()

    def push(self, source: str, values: dict[str, Any]) -> "LayeredConfig":
        """Return a new config with ``values`` layered on top."""
        return LayeredConfig(layers=(*self.layers, ConfigLayer(source=source, values=dict(values))))

    def resolved(self) -> dict[str, Any]:
        merged: dict[str, Any] = {}
        for layer in self.layers:
            merged.update(layer.values)
        return merged

    def get(self, key: str, default: Any = None) -> Any:
        for layer in reversed(self.layers):
            if key in layer.values:
                return layer.values[key]
        return default

    def origin(self, key: str) -> str | None:
        """Name the layer that last set ``key``."""
        for layer in reversed(self.layers):
            if key in layer.values:
                return layer.source
        return None


class ConfigResolver:
    """Loads per-directory settings files and cascades them."""

    def __init__(
        self,
        storage: Storage,
        settings_files: tuple[str, ...] | list[str] = DEFAULT_SETTINGS_FILES,
        defaults: dict[str, Any] | None = None,
    ):
        self.storage = storage
        self.settings_files = tuple(settings_files)
        self.defaults = dict(SITE_DEFAULTS if defaults is None else defaults)

    async def load(self, directory: Path) -> tuple[Path, dict[str, Any]] | None:
        """Load the first settings file found in ``directory``.

        Returns (path, values), or None when the directory has no settings.

        Raises:
            ConfigError: If the file is not valid YAML/JSON or not a mapping.
        """
        for filename in self.settings_files:
            path = directory / filename
            if not await self.storage.exists(path):
                continue
            text = await self.storage.read_text(path)
            try:
                if path.suffix == ".json":
                    data = json.loads(text) if text.strip() else {}
                else:
                    data = yaml.safe_load(text)
            except (json.JSONDecodeError, yaml.YAMLError) as e:
                raise ConfigError(path, str(e)) from e
            if data is None:
                data = {}
            if not isinstance(data, dict):
                raise ConfigError(path, f"expected a mapping, got {type(data).__name__}")
            return path, {str(key): value for key, value in data.items()}
        return None

    async def load_defaults(self, base_dir: Path | None = None) -> LayeredConfig:
        """Build the root of the cascade.

        Args:
            base_dir: Project directory whose settings file, if any, overrides
                the built-in site defaults.
        """
        config = LayeredConfig().push("defaults", self.defaults)
        if base_dir is not None:
            found = await self.load(base_dir)
            if found is not None:
                path, values = found
                logger.debug("Loaded global settings from %s", path)
                config = config.push(str(path), values)
        return config

    async def resolve(self, directory: Path, parent: LayeredConfig | None = None) -> LayeredConfig:
        """Resolve the settings that apply inside ``directory``.

        Args:
            directory: Directory to look for a settings file in.
            parent: Resolved settings of the enclosing directory. The site
                defaults are used when omitted.

        Returns:
            ``parent`` itself when the directory has no settings file,
            otherwise ``parent`` with the directory's settings on top.
        """
        base = parent if parent is not None else LayeredConfig().push("defaults", self.defaults)
        found = await self.load(directory)
        if found is None:
            return base
        path, values = found
        logger.debug("Loaded settings from %s", path)
        return base.push(str(path), values)
