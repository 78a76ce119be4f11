"""Publishing configuration and output models."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from quire.errors import ConfigError, PipelineError
from quire.render.models import RenderedDocument


class SortOrder(StrEnum):
    """Direction of the date ordering in published output."""

    NEWEST_FIRST = "newest-first"
    OLDEST_FIRST = "oldest-first"


class OutputFormat(StrEnum):
    """Available site output formats."""

    HTML = "html"
    JSON = "json"


class PublishConfig(BaseModel):
    """Options controlling which documents are published and in what order."""

    model_config = ConfigDict(extra="forbid")

    include_drafts: bool = False
    sort_order: SortOrder = SortOrder.NEWEST_FIRST
    dedupe: bool = True

    @classmethod
    def from_options(cls, options: dict[str, Any] | None = None) -> PublishConfig:
        """Validate raw options, raising ConfigError instead of ValidationError."""
        try:
            return cls.model_validate(options or {})
        except ValidationError as exc:
            raise ConfigError(f"invalid publish options: {exc}") from exc


class IndexEntry(BaseModel):
    """One line of the published index."""

    id: str
    title: str | None = None
    date: datetime | None = None
    categories: list[str] = Field(default_factory=list)


class PublishedSet(BaseModel):
    """Ordered rendered documents, the matching index, and render failures."""

    documents: list[RenderedDocument] = Field(default_factory=list)
    index: list[IndexEntry] = Field(default_factory=list)
    errors: list[PipelineError] = Field(default_factory=list)

    @property
    def ids(self) -> list[str]:
        return [d.id for d in self.documents]
