"""Builds oracle prompts from Jinja2 templates."""

from __future__ import annotations

from pathlib import Path
from typing import List, Sequence

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from ..models import FileContent
from ..schemas import DocPage
from .constants import MAX_PAGES, MAX_PAGE_LINES, MIN_PAGES, MIN_PAGE_LINES

_DEFAULT_TEMPLATES_DIR = Path(__file__).with_name("templates")


def excerpt(content: str, limit: int) -> str:
    """Return the first ``limit`` characters of ``content`` followed by ``...``."""
    return f"{content[:limit]}..."


class PromptBuilder:
    """Renders the four prompts used by the pipeline.

    A user-supplied ``templates_dir`` is searched before the packaged
    templates, so individual prompts can be overridden by file name.
    """

    def __init__(self, templates_dir: Path | None = None) -> None:
        self.templates_dir = templates_dir
        self._env = self._create_env(templates_dir)

    def initial_selection(self, tree_text: str, *, count: int) -> str:
        return self._render("select_initial.j2", tree=tree_text, count=count)

    def additional_selection(
        self,
        tree_text: str,
        already_read: Sequence[FileContent],
        *,
        count: int,
        digest_chars: int,
    ) -> str:
        digest = [
            {"path": item.path, "excerpt": excerpt(item.content, digest_chars)}
            for item in already_read
        ]
        return self._render(
            "select_additional.j2",
            tree=tree_text,
            count=count,
            reviewed_paths=[item.path for item in already_read],
            digest=digest,
        )

    def structure(self, file_contents: Sequence[FileContent], *, excerpt_chars: int) -> str:
        files = [
            {"path": item.path, "excerpt": excerpt(item.content, excerpt_chars)}
            for item in file_contents
        ]
        return self._render(
            "structure.j2",
            files=files,
            min_pages=MIN_PAGES,
            max_pages=MAX_PAGES,
        )

    def page(self, page: DocPage, files: Sequence[FileContent]) -> str:
        return self._render(
            "page.j2",
            page=page,
            files=list(files),
            min_lines=MIN_PAGE_LINES,
            max_lines=MAX_PAGE_LINES,
        )

    def _render(self, template_name: str, **context: object) -> str:
        template = self._env.get_template(template_name)
        return template.render(**context).strip() + "\n"

    @staticmethod
    def _create_env(templates_dir: Path | None) -> Environment:
        directories: List[str] = []
        if templates_dir is not None:
            directories.append(str(templates_dir))
        directories.append(str(_DEFAULT_TEMPLATES_DIR))
        loader = FileSystemLoader(list(dict.fromkeys(directories)))
        return Environment(
            loader=loader,
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )


__all__ = ["PromptBuilder", "excerpt"]
