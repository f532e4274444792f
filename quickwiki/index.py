"""Table-of-contents composition for the generated wiki."""

from __future__ import annotations

import re
from typing import List

from .schemas import DocPage, DocStructure

INDEX_FILENAME = "index.md"
INDEX_HEADING = "# Documentation Index"

# A leading numeral immediately followed by "-<digit>" marks a sub-page id ("1-1_setup").
_SUB_PAGE_PATTERN = re.compile(r"^\s*\d+-\d")
_UNSAFE_FILENAME_CHARS = re.compile(r"[\\/]")


def is_top_level(page_id: str) -> bool:
    """Return True when ``page_id`` addresses a top-level page.

    >>> is_top_level("1_intro")
    True
    >>> is_top_level("1-1_sub1")
    False
    """
    return _SUB_PAGE_PATTERN.match(page_id) is None


def page_filename(page_id: str) -> str:
    """Return the artifact file name for a page id."""
    return f"{_UNSAFE_FILENAME_CHARS.sub('_', page_id)}.md"


class IndexComposer:
    """Builds the index page from a :class:`DocStructure`.

    Composition is pure: it reads only the structure, never the outcome of
    page generation, so the same structure always yields the same text.
    """

    def __init__(self, heading: str = INDEX_HEADING) -> None:
        self.heading = heading

    def compose(self, structure: DocStructure) -> str:
        entries: List[str] = []
        top_index = 1
        for page in structure.pages:
            if not is_top_level(page.id):
                continue
            entries.append(f"{top_index}. {_link(page)}")
            sub_index = 1
            for sub_id in page.sub_pages or ():
                sub_page = structure.get(sub_id)
                if sub_page is None:
                    continue
                entries.append(f"    {top_index}.{sub_index} {_link(sub_page)}")
                sub_index += 1
            top_index += 1

        lines = [self.heading, "", *entries]
        return "\n".join(lines).rstrip() + "\n"


def _link(page: DocPage) -> str:
    return f"[{page.title}](./{page_filename(page.id)}): {page.description}"


def compose(structure: DocStructure) -> str:
    """Compose the index text with the default heading."""
    return IndexComposer().compose(structure)


__all__ = [
    "INDEX_FILENAME",
    "INDEX_HEADING",
    "IndexComposer",
    "compose",
    "is_top_level",
    "page_filename",
]
