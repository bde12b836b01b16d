"""Exception hierarchy for site builds.

Every error that aborts a build derives from SwiftyError so the CLI can
report it uniformly. Recoverable conditions (missing partials, layouts,
unreadable subdirectories) are logged instead of raised.
"""

from pathlib import Path


class SwiftyError(Exception):
    """Base exception for all build errors."""


class SiteError(SwiftyError):
    """Raised when top-level setup of a build fails."""


class ConfigError(SwiftyError):
    """Raised when a settings file cannot be parsed."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Invalid settings file {path}: {reason}")
        self.path = path
        self.reason = reason


class FrontMatterError(SwiftyError):
    """Raised when a document's front matter cannot be parsed."""

    def __init__(self, path: Path | str, reason: str):
        super().__init__(f"Front matter error in {path}: {reason}")
        self.path = path
        self.reason = reason


class DuplicatePageError(SwiftyError):
    """Raised when two pages resolve to the same url or output file."""

    def __init__(self, url: str, first: str, second: str):
        super().__init__(f"Pages {first!r} and {second!r} both map to {url!r}")
        self.url = url
        self.first = first
        self.second = second


class MissingLandingPageError(SwiftyError):
    """Raised when the root landing document does not exist."""

    def __init__(self, path: Path):
        super().__init__(f"Landing page not found: {path}")
        self.path = path
