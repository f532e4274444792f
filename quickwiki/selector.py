"""Two-round relevant file selection."""

from __future__ import annotations

from typing import List, Sequence

from .config import DEFAULT_DIGEST_CHARS, DEFAULT_FILE_COUNT
from .content_store import render_tree
from .errors import SelectionFailed
from .logging import get_logger
from .models import FileContent, TreeNode
from .oracle.client import Oracle
from .prompting import PromptBuilder
from .schemas import FileSelection, parse_structured


class RelevanceSelector:
    """Asks the oracle which files best explain the repository.

    Round one sees only the tree. Round two also sees a short digest of every
    file read in round one and asks for files that fill the gaps. Paths are
    returned in the oracle's order and are not deduplicated across rounds.
    """

    def __init__(
        self,
        oracle: Oracle,
        prompts: PromptBuilder | None = None,
        *,
        file_count: int = DEFAULT_FILE_COUNT,
        digest_chars: int = DEFAULT_DIGEST_CHARS,
    ) -> None:
        self.oracle = oracle
        self.prompts = prompts or PromptBuilder()
        self.file_count = file_count
        self.digest_chars = digest_chars
        self.logger = get_logger("selector")

    async def select_initial(self, tree: Sequence[TreeNode]) -> List[str]:
        prompt = self.prompts.initial_selection(render_tree(tree), count=self.file_count)
        return await self._select(prompt, "initial")

    async def select_additional(
        self, tree: Sequence[TreeNode], already_read: Sequence[FileContent]
    ) -> List[str]:
        prompt = self.prompts.additional_selection(
            render_tree(tree),
            already_read,
            count=self.file_count,
            digest_chars=self.digest_chars,
        )
        return await self._select(prompt, "additional")

    async def _select(self, prompt: str, round_name: str) -> List[str]:
        try:
            raw = await self.oracle.respond_structured(prompt, FileSelection)
            if not isinstance(raw, FileSelection):
                raw = parse_structured(FileSelection, raw)
        except Exception as exc:
            raise SelectionFailed(f"{round_name} file selection failed: {exc}") from exc
        selected = list(raw.files)
        self.logger.debug("%s selection: %s", round_name.capitalize(), selected)
        return selected


__all__ = ["RelevanceSelector"]
