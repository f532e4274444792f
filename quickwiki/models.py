"""Core data models shared across quickwiki components."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from .schemas import DocStructure


@dataclass(frozen=True)
class FileContent:
    """A resolved file reference. ``content`` may be a sentinel placeholder."""

    path: str
    content: str


@dataclass
class TreeNode:
    """One entry of the repository tree."""

    path: str
    name: str
    is_directory: bool
    children: List["TreeNode"] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "path": self.path,
            "name": self.name,
            "isDirectory": self.is_directory,
        }
        if self.is_directory:
            payload["children"] = [child.to_dict() for child in self.children]
        return payload


@dataclass(frozen=True)
class PageFailure:
    """A page that could not be generated or written."""

    page_id: str
    title: str
    reason: str


@dataclass
class CompileReport:
    """Tally of a compile-all pass."""

    succeeded: int
    failed: List[PageFailure]
    index_path: Optional[Path] = None

    @property
    def attempted(self) -> int:
        return self.succeeded + len(self.failed)


@dataclass
class RunOutcome:
    """Result of a full pipeline run."""

    repo_path: Path
    output_dir: Path
    structure: DocStructure
    report: CompileReport
