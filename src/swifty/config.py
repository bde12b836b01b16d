"""Application configuration."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Build settings loaded from environment variables.

    Directory fields are relative to ``base_dir`` unless absolute.
    """

    base_dir: Path = Path(".")
    pages_dir: Path = Path("pages")
    dist_dir: Path = Path("dist")
    layouts_dir: Path = Path("layouts")
    partials_dir: Path = Path("partials")
    css_dir: Path = Path("css")
    js_dir: Path = Path("js")
    images_dir: Path = Path("images")
    index_template: Path = Path("index.html")
    landing_page: str = "index"
    document_extensions: list[str] = [".md"]
    settings_files: list[str] = ["config.yaml", "config.yml", "config.json"]
    debug: bool = False

    model_config = SettingsConfigDict(
        env_prefix="SWIFTY_",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    def path(self, name: str) -> Path:
        """Resolve a directory field against ``base_dir``."""
        value: Path = getattr(self, name)
        return value if value.is_absolute() else self.base_dir / value
