"""Error taxonomy for the wiki generation pipeline."""

from __future__ import annotations


class QuickWikiError(RuntimeError):
    """Base error; renders as ``"<stage>: <message>"``."""

    stage = "pipeline"

    def __init__(self, message: str, *, stage: str | None = None) -> None:
        if stage is not None:
            self.stage = stage
        self.detail = message
        super().__init__(f"{self.stage}: {message}")


class ConfigError(QuickWikiError):
    """Raised when .quickwiki.yml cannot be parsed."""

    stage = "config"


class ScanFailure(QuickWikiError):
    """Raised when the repository tree cannot be listed."""

    stage = "scan"


class OracleError(QuickWikiError):
    """Transport-level failure talking to the model endpoint."""

    stage = "oracle"


class OracleUnavailable(QuickWikiError):
    """Raised when the connectivity probe at start-up fails."""

    stage = "initialize"


class SchemaError(QuickWikiError):
    """Structured output did not match the requested shape."""

    stage = "schema"


class SelectionFailed(QuickWikiError):
    stage = "selection"


class StructurePlanningFailed(QuickWikiError):
    stage = "planning"


class PageGenerationFailed(QuickWikiError):
    """Generation of a single page failed. Never escapes the page compiler."""

    stage = "compile"

    def __init__(self, page_id: str, message: str) -> None:
        self.page_id = page_id
        super().__init__(f"page {page_id}: {message}")


class PersistenceFailure(QuickWikiError):
    stage = "persist"


__all__ = [
    "ConfigError",
    "OracleError",
    "OracleUnavailable",
    "PageGenerationFailed",
    "PersistenceFailure",
    "QuickWikiError",
    "ScanFailure",
    "SchemaError",
    "SelectionFailed",
    "StructurePlanningFailed",
]
