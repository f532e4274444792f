"""Repository tree listing and guarded file reads."""

from __future__ import annotations

import asyncio
import os
import stat
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import List, Sequence

from .config import DEFAULT_MAX_FILE_BYTES
from .errors import ScanFailure
from .logging import get_logger
from .models import FileContent, TreeNode

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".venv",
    "venv",
    "node_modules",
    "__pycache__",
    ".pytest_cache",
    ".mypy_cache",
    ".ruff_cache",
    ".idea",
    ".tox",
}

_EXCLUDED_FILES = {
    ".DS_Store",
    "Thumbs.db",
}

SKIPPED_TOO_LARGE = "[File skipped: Too large]"
SKIPPED_NOT_A_FILE = "[File skipped: Not a file]"
SKIPPED_OUTSIDE_REPOSITORY = "[File skipped: Outside repository]"


@dataclass
class IgnoreRule:
    """Represents an ignore rule parsed from .gitignore or .quickwiki.yml."""

    pattern: str
    directory_only: bool
    anchored: bool
    negate: bool
    has_slash: bool

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if not self.pattern:
            return False
        if self.directory_only and not is_dir:
            return False

        if self.anchored or self.has_slash:
            if fnmatchcase(rel_path, self.pattern):
                return True
            if self.directory_only and rel_path.startswith(f"{self.pattern}/"):
                return True
            return False

        for part in rel_path.split("/"):
            if fnmatchcase(part, self.pattern):
                return True
        return False


def build_ignore_rule(pattern: str, negate: bool = False) -> IgnoreRule | None:
    pattern = pattern.strip()
    if not pattern:
        return None

    directory_only = pattern.endswith("/")
    if directory_only:
        pattern = pattern[:-1]

    anchored = pattern.startswith("/")
    if anchored:
        pattern = pattern[1:]

    return IgnoreRule(
        pattern=pattern,
        directory_only=directory_only,
        anchored=anchored,
        negate=negate,
        has_slash="/" in pattern,
    )


def _parse_gitignore(path: Path) -> List[IgnoreRule]:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return []
    except (OSError, UnicodeDecodeError):
        return []

    rules: List[IgnoreRule] = []
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        negate = line.startswith("!")
        if negate:
            line = line[1:]
        rule = build_ignore_rule(line, negate=negate)
        if rule is not None:
            rules.append(rule)
    return rules


def _should_ignore(rel_path: str, is_dir: bool, rules: Sequence[IgnoreRule]) -> bool:
    ignored = False
    for rule in rules:
        if rule.matches(rel_path, is_dir):
            ignored = not rule.negate
    return ignored


def render_tree(nodes: Sequence[TreeNode]) -> str:
    """Render the tree as indented relative paths with a closing summary line.

    Directories carry a trailing ``/``. The full relative path is printed on
    every line so a model can copy paths verbatim.
    """
    lines: List[str] = []
    counts = {"dirs": 0, "files": 0}

    def _walk(items: Sequence[TreeNode], depth: int) -> None:
        for node in items:
            indent = "  " * depth
            if node.is_directory:
                counts["dirs"] += 1
                lines.append(f"{indent}{node.path}/")
                _walk(node.children, depth + 1)
            else:
                counts["files"] += 1
                lines.append(f"{indent}{node.path}")

    _walk(nodes, 0)
    dir_label = "directory" if counts["dirs"] == 1 else "directories"
    file_label = "file" if counts["files"] == 1 else "files"
    if lines:
        lines.append("")
    lines.append(f"{counts['dirs']} {dir_label}, {counts['files']} {file_label}")
    return "\n".join(lines)


class ContentStore:
    """Lists a repository as a tree and reads files with size/type guards.

    ``read_one`` never raises: files that are skipped or unreadable come back
    as sentinel placeholder strings.
    """

    def __init__(
        self,
        root: str | Path,
        *,
        max_file_bytes: int = DEFAULT_MAX_FILE_BYTES,
        exclude_paths: Sequence[str] = (),
    ) -> None:
        self.root = Path(root).expanduser().resolve()
        self.max_file_bytes = max_file_bytes
        self._extra_rules = [
            rule for rule in (build_ignore_rule(pattern) for pattern in exclude_paths) if rule
        ]
        self.logger = get_logger("content_store")

    def list_tree(self) -> List[TreeNode]:
        """Return the top-level nodes of the repository tree."""
        if not self.root.exists():
            raise ScanFailure(f"Repository path not found: {self.root}")
        if not self.root.is_dir():
            raise ScanFailure(f"Repository path is not a directory: {self.root}")

        rules = _parse_gitignore(self.root / ".gitignore")
        rules.extend(self._extra_rules)
        try:
            return self._list_directory(self.root, "", rules, top_level=True)
        except OSError as exc:
            raise ScanFailure(f"Failed to scan repository: {exc}") from exc

    def _list_directory(
        self,
        directory: Path,
        rel_dir: str,
        rules: Sequence[IgnoreRule],
        *,
        top_level: bool = False,
    ) -> List[TreeNode]:
        try:
            with os.scandir(directory) as iterator:
                entries = sorted(iterator, key=lambda entry: entry.name)
        except PermissionError:
            if top_level:
                raise
            self.logger.debug("Skipping unreadable directory %s", directory)
            return []

        nodes: List[TreeNode] = []
        for entry in entries:
            rel_path = f"{rel_dir}/{entry.name}" if rel_dir else entry.name
            is_dir = entry.is_dir(follow_symlinks=False)
            if is_dir:
                if entry.name in _EXCLUDED_DIRS or _should_ignore(rel_path, True, rules):
                    continue
                children = self._list_directory(Path(entry.path), rel_path, rules)
                nodes.append(
                    TreeNode(path=rel_path, name=entry.name, is_directory=True, children=children)
                )
                continue
            if entry.name in _EXCLUDED_FILES or _should_ignore(rel_path, False, rules):
                continue
            nodes.append(TreeNode(path=rel_path, name=entry.name, is_directory=False))
        return nodes

    async def read_one(self, path: str) -> str:
        """Return the file's text, or a sentinel string when it is skipped or unreadable."""
        return await asyncio.to_thread(self._read_sync, path)

    async def read_many(self, paths: Sequence[str]) -> List[FileContent]:
        """Read every path concurrently; results follow the input order."""
        contents = await asyncio.gather(*(self.read_one(path) for path in paths))
        return [FileContent(path=path, content=content) for path, content in zip(paths, contents)]

    def _read_sync(self, path: str) -> str:
        try:
            target = self._resolve(path)
            if target is None:
                return SKIPPED_OUTSIDE_REPOSITORY
            stat_result = target.stat()
            if not stat.S_ISREG(stat_result.st_mode):
                return SKIPPED_NOT_A_FILE
            if stat_result.st_size > self.max_file_bytes:
                return SKIPPED_TOO_LARGE
            return target.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError, ValueError) as exc:
            self.logger.debug("Failed to read %s: %s", path, exc)
            return f"[Error reading file: {exc}]"

    def _resolve(self, path: str) -> Path | None:
        candidate = Path(path).expanduser()
        if not candidate.is_absolute():
            candidate = self.root / candidate
        resolved = candidate.resolve()
        if resolved != self.root and not resolved.is_relative_to(self.root):
            return None
        return resolved


__all__ = [
    "ContentStore",
    "IgnoreRule",
    "SKIPPED_NOT_A_FILE",
    "SKIPPED_OUTSIDE_REPOSITORY",
    "SKIPPED_TOO_LARGE",
    "build_ignore_rule",
    "render_tree",
]
