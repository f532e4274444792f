"""Turns collected file contents into a validated page plan."""

from __future__ import annotations

from typing import Any, Sequence

from .config import DEFAULT_EXCERPT_CHARS
from .errors import SchemaError, StructurePlanningFailed
from .logging import get_logger
from .models import FileContent
from .oracle.client import Oracle
from .prompting import PromptBuilder
from .schemas import DocStructure, parse_structured


class StructurePlanner:
    """Requests a documentation outline and validates it as a :class:`DocStructure`.

    A malformed outline is rejected as a whole; there is no partial recovery.
    Whether the listed files exist is left to the content store.
    """

    def __init__(
        self,
        oracle: Oracle,
        prompts: PromptBuilder | None = None,
        *,
        excerpt_chars: int = DEFAULT_EXCERPT_CHARS,
    ) -> None:
        self.oracle = oracle
        self.prompts = prompts or PromptBuilder()
        self.excerpt_chars = excerpt_chars
        self.logger = get_logger("planner")

    async def plan(self, all_file_contents: Sequence[FileContent]) -> DocStructure:
        prompt = self.prompts.structure(all_file_contents, excerpt_chars=self.excerpt_chars)
        try:
            raw = await self.oracle.respond_structured(prompt, DocStructure)
        except Exception as exc:
            raise StructurePlanningFailed(f"Failed to generate doc structure: {exc}") from exc

        structure = self._validate(raw)
        self.logger.debug("Planned page ids: %s", [page.id for page in structure.pages])
        return structure

    @staticmethod
    def _validate(raw: Any) -> DocStructure:
        # Oracles may hand back an already-built model, a mapping or JSON text.
        if isinstance(raw, DocStructure):
            raw = raw.model_dump(by_alias=True)
        try:
            return parse_structured(DocStructure, raw)
        except SchemaError as exc:
            raise StructurePlanningFailed(f"Malformed doc structure: {exc.detail}") from exc


__all__ = ["StructurePlanner"]
