"""Tests for structured output shapes and validation."""

from __future__ import annotations

import pytest

from quickwiki.errors import SchemaError
from quickwiki.schemas import (
    DocPage,
    DocStructure,
    FileSelection,
    PageBody,
    json_schema_for,
    parse_structured,
)


def test_doc_page_schema_requires_core_fields() -> None:
    schema = json_schema_for(DocPage)

    assert set(schema["required"]) == {"id", "title", "description", "relevantFilePaths"}
    assert "subPages" in schema["properties"]


def test_every_shape_has_object_root() -> None:
    for shape in (FileSelection, DocStructure, PageBody):
        assert json_schema_for(shape)["type"] == "object"


def test_file_selection_schema_wraps_paths() -> None:
    schema = json_schema_for(FileSelection)

    assert schema["required"] == ["files"]
    assert schema["properties"]["files"]["type"] == "array"
    assert schema["properties"]["files"]["items"] == {"type": "string"}


def test_page_body_uses_wire_name() -> None:
    schema = json_schema_for(PageBody)

    assert schema["required"] == ["rawMarkdownContent"]


def test_parse_structured_accepts_json_text() -> None:
    body = parse_structured(PageBody, '{"rawMarkdownContent": "# Title\\n"}')

    assert body.raw_markdown_content == "# Title\n"


def test_parse_structured_strips_json_fence() -> None:
    selected = parse_structured(FileSelection, '```json\n{"files": ["a.py", "b.py"]}\n```')

    assert selected.files == ["a.py", "b.py"]


def test_parse_structured_rejects_wrong_shape() -> None:
    with pytest.raises(SchemaError) as excinfo:
        parse_structured(FileSelection, '["a.py"]')

    assert str(excinfo.value).startswith("schema: ")


def test_parse_structured_rejects_invalid_json() -> None:
    with pytest.raises(SchemaError):
        parse_structured(PageBody, "not json at all")


def test_doc_page_drops_self_reference() -> None:
    page = DocPage.model_validate(
        {
            "id": "1_intro",
            "title": "Intro",
            "description": "d",
            "relevantFilePaths": ["README.md"],
            "subPages": ["1_intro", "1-1_setup"],
        }
    )

    assert page.sub_pages == ["1-1_setup"]


def test_doc_page_sub_pages_may_be_null() -> None:
    page = DocPage.model_validate(
        {"id": "1_intro", "title": "Intro", "description": "d", "relevantFilePaths": [], "subPages": None}
    )

    assert page.sub_pages is None


def test_doc_structure_rejects_blank_id() -> None:
    with pytest.raises(SchemaError):
        parse_structured(
            DocStructure,
            {"pages": [{"id": "  ", "title": "t", "description": "d", "relevantFilePaths": []}]},
        )


def test_doc_structure_rejects_duplicate_ids() -> None:
    page = {"id": "1_intro", "title": "t", "description": "d", "relevantFilePaths": []}

    with pytest.raises(SchemaError) as excinfo:
        parse_structured(DocStructure, {"pages": [page, page]})

    assert "duplicate page ids: 1_intro" in str(excinfo.value)


def test_doc_structure_get() -> None:
    structure = parse_structured(
        DocStructure,
        {"pages": [{"id": "1_intro", "title": "t", "description": "d", "relevantFilePaths": []}]},
    )

    assert structure.get("1_intro") is structure.pages[0]
    assert structure.get("2_missing") is None
