"""Configuration loading for quickwiki (.quickwiki.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .errors import ConfigError

CONFIG_FILENAME = ".quickwiki.yml"

DEFAULT_MAX_FILE_BYTES = 1024 * 1024
DEFAULT_FILE_COUNT = 50
DEFAULT_DIGEST_CHARS = 200
DEFAULT_EXCERPT_CHARS = 300
DEFAULT_OUTPUT_DIRECTORY = "wiki"


@dataclass
class LLMConfig:
    """Model endpoint settings."""

    model: Optional[str] = None
    base_url: Optional[str] = None
    api_key: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    request_timeout: Optional[float] = None
    allow_remote: bool = False
    max_retries: int = 3
    retry_initial_delay: float = 1.0


@dataclass
class ScanConfig:
    """Content store guards and exclusions."""

    max_file_bytes: int = DEFAULT_MAX_FILE_BYTES
    exclude_paths: List[str] = field(default_factory=list)


@dataclass
class SelectionConfig:
    file_count: int = DEFAULT_FILE_COUNT
    digest_chars: int = DEFAULT_DIGEST_CHARS


@dataclass
class PlanningConfig:
    excerpt_chars: int = DEFAULT_EXCERPT_CHARS


@dataclass
class CompileConfig:
    concurrency: int = 1


@dataclass
class QuickWikiConfig:
    """Represents the settings defined in .quickwiki.yml."""

    root: Path
    llm: LLMConfig = field(default_factory=LLMConfig)
    scan: ScanConfig = field(default_factory=ScanConfig)
    selection: SelectionConfig = field(default_factory=SelectionConfig)
    planning: PlanningConfig = field(default_factory=PlanningConfig)
    compile: CompileConfig = field(default_factory=CompileConfig)
    output_directory: Optional[Path] = None
    templates_dir: Optional[Path] = None

    def resolve_output_dir(self, override: Path | str | None = None) -> Path:
        if override is not None:
            return Path(override).expanduser().resolve()
        if self.output_directory is not None:
            return self.output_directory
        return self.root / DEFAULT_OUTPUT_DIRECTORY


def load_config(config_path: Path) -> QuickWikiConfig:
    """Load configuration from a repository directory or a config file path."""
    config_file = _resolve_config_path(Path(config_path))
    root = config_file.parent.resolve()

    if not config_file.exists():
        return QuickWikiConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    llm = LLMConfig()
    llm_data = _as_dict(data.get("llm"))
    if llm_data:
        llm.model = _as_str(llm_data.get("model"))
        llm.base_url = _as_str(llm_data.get("base_url"))
        llm.api_key = _as_str(llm_data.get("api_key"))
        llm.temperature = _as_float(llm_data.get("temperature"))
        llm.max_tokens = _as_int(llm_data.get("max_tokens"))
        llm.request_timeout = _as_float(llm_data.get("request_timeout"))
        llm.allow_remote = _as_bool(llm_data.get("allow_remote")) or False
        retries = _as_int(llm_data.get("max_retries"))
        if retries is not None and retries >= 0:
            llm.max_retries = retries
        delay = _as_float(llm_data.get("retry_initial_delay"))
        if delay is not None and delay >= 0:
            llm.retry_initial_delay = delay

    scan = ScanConfig()
    scan_data = _as_dict(data.get("scan"))
    if scan_data:
        scan.max_file_bytes = _positive(_as_int(scan_data.get("max_file_bytes")), DEFAULT_MAX_FILE_BYTES)
        scan.exclude_paths = _as_str_list(scan_data.get("exclude_paths"))

    selection = SelectionConfig()
    selection_data = _as_dict(data.get("selection"))
    if selection_data:
        selection.file_count = _positive(_as_int(selection_data.get("file_count")), DEFAULT_FILE_COUNT)
        selection.digest_chars = _positive(
            _as_int(selection_data.get("digest_chars")), DEFAULT_DIGEST_CHARS
        )

    planning = PlanningConfig()
    planning_data = _as_dict(data.get("planning"))
    if planning_data:
        planning.excerpt_chars = _positive(
            _as_int(planning_data.get("excerpt_chars")), DEFAULT_EXCERPT_CHARS
        )

    compile_config = CompileConfig()
    compile_data = _as_dict(data.get("compile"))
    if compile_data:
        compile_config.concurrency = _positive(_as_int(compile_data.get("concurrency")), 1)

    output_data = _as_dict(data.get("output"))
    output_dir_str = _as_str(output_data.get("directory")) if output_data else None
    output_directory = (root / output_dir_str).resolve() if output_dir_str else None

    prompts_data = _as_dict(data.get("prompts"))
    templates_dir_str = _as_str(prompts_data.get("templates_dir")) if prompts_data else None
    templates_dir = root / templates_dir_str if templates_dir_str else None

    return QuickWikiConfig(
        root=root,
        llm=llm,
        scan=scan,
        selection=selection,
        planning=planning,
        compile=compile_config,
        output_directory=output_directory,
        templates_dir=templates_dir,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read {path.name}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _positive(value: Optional[int], default: int) -> int:
    if value is None or value <= 0:
        return default
    return value


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return str(value).lower()
    return str(value) if isinstance(value, (str, int, float)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "CompileConfig",
    "ConfigError",
    "LLMConfig",
    "PlanningConfig",
    "QuickWikiConfig",
    "ScanConfig",
    "SelectionConfig",
    "load_config",
]
