"""Declarative shapes for structured oracle output and their validation.

Every shape here is a pydantic model, so its JSON schema has an object root as
OpenAI-compatible structured output requires. The same shape object drives
two things: the JSON schema sent along with a structured
request (:func:`json_schema_for`) and the parse-and-validate step applied to
the reply (:func:`parse_structured`). Prompt wording lives elsewhere.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, TypeVar

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    ValidationInfo,
    field_validator,
    model_validator,
)

from .errors import SchemaError

T = TypeVar("T")

_FENCE_PATTERN = re.compile(r"^```[A-Za-z0-9_-]*\s*\n(?P<body>.*)\n```\s*$", re.DOTALL)


class DocPage(BaseModel):
    """A planned documentation page."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(
        description='Numbered id with a kebab-case slug, e.g. "1_project-overview" or "1-1_system-design"',
    )
    title: str = Field(description="Human-readable title for the page")
    description: str = Field(description="One-line summary of what the page covers")
    relevant_file_paths: List[str] = Field(
        alias="relevantFilePaths",
        description="Every repository file the page writer may read. Prefer including more files over fewer.",
    )
    sub_pages: Optional[List[str]] = Field(
        default=None,
        alias="subPages",
        description='Ids of second-level pages nested under this page, e.g. "1-1_architecture"',
    )

    @field_validator("id")
    @classmethod
    def _id_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("page id must not be empty")
        return value

    @field_validator("sub_pages")
    @classmethod
    def _drop_self_reference(
        cls, value: Optional[List[str]], info: ValidationInfo
    ) -> Optional[List[str]]:
        if value is None:
            return None
        own_id = info.data.get("id")
        return [ref for ref in value if ref != own_id]


class DocStructure(BaseModel):
    """The full planned set of pages, kept as a flat ordered list."""

    model_config = ConfigDict(frozen=True)

    pages: List[DocPage]

    @model_validator(mode="after")
    def _ids_unique(self) -> "DocStructure":
        seen: set[str] = set()
        duplicates: List[str] = []
        for page in self.pages:
            if page.id in seen and page.id not in duplicates:
                duplicates.append(page.id)
            seen.add(page.id)
        if duplicates:
            raise ValueError(f"duplicate page ids: {', '.join(duplicates)}")
        return self

    def get(self, page_id: str) -> Optional[DocPage]:
        for page in self.pages:
            if page.id == page_id:
                return page
        return None


class FileSelection(BaseModel):
    """Repository paths picked by the model, most informative first."""

    files: List[str] = Field(
        description="File paths copied exactly as they appear in the tree. No directories.",
    )


class PageBody(BaseModel):
    """Raw markdown body of one generated page."""

    model_config = ConfigDict(populate_by_name=True)

    raw_markdown_content: str = Field(
        alias="rawMarkdownContent",
        description="Markdown starting with a '# ' heading, with no preamble and no code fence around it. Saved as-is.",
    )


def json_schema_for(shape: Any) -> Dict[str, Any]:
    """Return the JSON schema describing ``shape`` using wire (alias) names."""
    return TypeAdapter(shape).json_schema(by_alias=True)


def parse_structured(shape: type[T] | Any, payload: Any) -> T:
    """Validate ``payload`` (JSON text or decoded data) against ``shape``.

    Raises :class:`SchemaError` when the payload is not valid JSON or does not
    conform.
    """
    adapter: TypeAdapter[Any] = TypeAdapter(shape)
    try:
        if isinstance(payload, (str, bytes)):
            text = payload.decode("utf-8") if isinstance(payload, bytes) else payload
            return adapter.validate_json(_strip_fence(text))
        return adapter.validate_python(payload)
    except ValidationError as exc:
        raise SchemaError(_summarise(exc)) from exc
    except UnicodeDecodeError as exc:
        raise SchemaError(f"response is not valid UTF-8: {exc}") from exc


def _strip_fence(text: str) -> str:
    stripped = text.strip()
    match = _FENCE_PATTERN.match(stripped)
    if match:
        return match.group("body")
    return stripped


def _summarise(exc: ValidationError) -> str:
    errors = exc.errors()
    parts = []
    for error in errors[:5]:
        location = ".".join(str(item) for item in error.get("loc", ())) or "<root>"
        parts.append(f"{location}: {error.get('msg', 'invalid value')}")
    if len(errors) > 5:
        parts.append(f"... {len(errors) - 5} more")
    return "; ".join(parts)


__all__ = [
    "DocPage",
    "DocStructure",
    "FileSelection",
    "PageBody",
    "json_schema_for",
    "parse_structured",
]
