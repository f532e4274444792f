"""Tests for documentation structure planning."""

from __future__ import annotations

import asyncio
import json

import pytest

from quickwiki.errors import OracleError, StructurePlanningFailed
from quickwiki.models import FileContent
from quickwiki.planner import StructurePlanner
from quickwiki.schemas import DocStructure
from tests._fixtures.fake_oracle import ScriptedOracle

_PLAN = {
    "pages": [
        {
            "id": "1_overview",
            "title": "Overview",
            "description": "What the project does",
            "relevantFilePaths": ["README.md", "does/not/exist.py"],
            "subPages": ["1-1_setup", "1_overview"],
        },
        {
            "id": "1-1_setup",
            "title": "Setup",
            "description": "How to install it",
            "relevantFilePaths": ["pyproject.toml"],
        },
    ]
}


def test_plan_returns_validated_structure(oracle: ScriptedOracle) -> None:
    oracle.queue(json.dumps(_PLAN))
    files = [FileContent(path="README.md", content="r" * 400)]

    structure = asyncio.run(StructurePlanner(oracle, excerpt_chars=300).plan(files))

    assert [page.id for page in structure.pages] == ["1_overview", "1-1_setup"]
    assert structure.pages[0].relevant_file_paths == ["README.md", "does/not/exist.py"]
    assert structure.pages[0].sub_pages == ["1-1_setup"]
    assert structure.pages[1].sub_pages is None

    prompt, shape = oracle.prompts[0]
    assert shape is DocStructure
    assert "File: README.md" in prompt
    assert "r" * 300 + "..." in prompt
    assert "r" * 301 not in prompt


def test_plan_missing_required_field_fails(oracle: ScriptedOracle) -> None:
    oracle.queue({"pages": [{"id": "1_overview", "title": "Overview"}]})

    with pytest.raises(StructurePlanningFailed) as excinfo:
        asyncio.run(StructurePlanner(oracle).plan([]))

    assert str(excinfo.value).startswith("planning: ")


def test_plan_duplicate_ids_fail(oracle: ScriptedOracle) -> None:
    page = {"id": "1_a", "title": "A", "description": "d", "relevantFilePaths": []}
    oracle.queue({"pages": [page, page]})

    with pytest.raises(StructurePlanningFailed):
        asyncio.run(StructurePlanner(oracle).plan([]))


def test_plan_oracle_error_is_planning_failure(oracle: ScriptedOracle) -> None:
    oracle.queue(OracleError("timed out"))

    with pytest.raises(StructurePlanningFailed) as excinfo:
        asyncio.run(StructurePlanner(oracle).plan([]))

    assert "Failed to generate doc structure" in str(excinfo.value)


def test_plan_accepts_prebuilt_model_from_custom_oracle() -> None:
    prebuilt = DocStructure.model_validate(_PLAN)

    class _ModelOracle:
        async def respond(self, prompt, context=None):
            return ""

        async def respond_structured(self, prompt, shape, context=None):
            return prebuilt

    structure = asyncio.run(StructurePlanner(_ModelOracle()).plan([]))

    assert structure == prebuilt


def test_plan_malformed_json_from_custom_oracle() -> None:
    class _TextOracle:
        async def respond(self, prompt, context=None):
            return ""

        async def respond_structured(self, prompt, shape, context=None):
            return "{not json"

    with pytest.raises(StructurePlanningFailed) as excinfo:
        asyncio.run(StructurePlanner(_TextOracle()).plan([]))

    assert "Malformed doc structure" in str(excinfo.value)
