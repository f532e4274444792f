"""Tests for index composition and page id classification."""

from __future__ import annotations

import pytest

from quickwiki.index import INDEX_HEADING, IndexComposer, compose, is_top_level, page_filename
from quickwiki.schemas import DocStructure


def _page(page_id: str, title: str | None = None, sub_pages: list[str] | None = None) -> dict:
    return {
        "id": page_id,
        "title": title or page_id,
        "description": f"About {page_id}",
        "relevantFilePaths": [],
        "subPages": sub_pages,
    }


def _structure(*pages: dict) -> DocStructure:
    return DocStructure.model_validate({"pages": list(pages)})


@pytest.mark.parametrize(
    ("page_id", "expected"),
    [
        ("1_intro", True),
        ("10_deployment", True),
        ("overview", True),
        ("1-1_sub1", False),
        ("2-3_storage-layer", False),
        ("1-a_letters", True),
    ],
)
def test_is_top_level_classification(page_id: str, expected: bool) -> None:
    assert is_top_level(page_id) is expected


def test_compose_nests_sub_pages_under_parent() -> None:
    structure = _structure(
        _page("1_main", "Main", ["1-1_sub1"]),
        _page("1-1_sub1", "Sub one"),
        _page("2_next", "Next"),
    )

    text = compose(structure)

    assert text == (
        "# Documentation Index\n"
        "\n"
        "1. [Main](./1_main.md): About 1_main\n"
        "    1.1 [Sub one](./1-1_sub1.md): About 1-1_sub1\n"
        "2. [Next](./2_next.md): About 2_next\n"
    )


def test_compose_sub_page_is_not_numbered_at_top_level() -> None:
    structure = _structure(_page("1-1_sub1"), _page("1_intro"))

    lines = compose(structure).splitlines()

    assert lines[2] == "1. [1_intro](./1_intro.md): About 1_intro"
    assert len(lines) == 3


def test_compose_skips_dangling_sub_pages_without_gaps() -> None:
    structure = _structure(
        _page("1_intro", "Intro", ["1-1_a", "1-1_missing", "1-2_b"]),
        _page("1-1_a", "A"),
        _page("1-2_b", "B"),
    )

    text = compose(structure)

    assert "    1.1 [A](./1-1_a.md): About 1-1_a" in text
    assert "    1.2 [B](./1-2_b.md): About 1-2_b" in text
    assert "1-1_missing" not in text


def test_compose_dangling_scenario_from_intro() -> None:
    structure = _structure(
        _page("1_intro", "Intro", ["1-1_a", "1-1_missing"]),
        _page("1-1_a", "A"),
    )

    lines = compose(structure).splitlines()

    assert lines == [
        INDEX_HEADING,
        "",
        "1. [Intro](./1_intro.md): About 1_intro",
        "    1.1 [A](./1-1_a.md): About 1-1_a",
    ]


def test_compose_is_idempotent() -> None:
    structure = _structure(
        _page("1_main", "Main", ["1-1_sub1"]),
        _page("1-1_sub1", "Sub"),
    )

    assert compose(structure) == compose(structure)


def test_compose_empty_structure_is_heading_only() -> None:
    assert compose(_structure()) == "# Documentation Index\n"


def test_compose_follows_page_order_not_id_order() -> None:
    structure = _structure(_page("3_last", "Last"), _page("1_first", "First"))

    lines = compose(structure).splitlines()

    assert lines[2].startswith("1. [Last]")
    assert lines[3].startswith("2. [First]")


def test_sub_index_restarts_for_each_parent() -> None:
    structure = _structure(
        _page("1_a", "A", ["1-1_x"]),
        _page("1-1_x", "X"),
        _page("2_b", "B", ["2-1_y"]),
        _page("2-1_y", "Y"),
    )

    text = compose(structure)

    assert "    1.1 [X]" in text
    assert "    2.1 [Y]" in text


def test_custom_heading() -> None:
    composer = IndexComposer(heading="# Wiki")

    assert composer.compose(_structure()) == "# Wiki\n"


def test_page_filename_replaces_path_separators() -> None:
    assert page_filename("1_intro") == "1_intro.md"
    assert page_filename("2_api/routes") == "2_api_routes.md"
    assert page_filename("3_win\\path") == "3_win_path.md"
