"""Content domain models — pure Pydantic v2 data types.

A ``SourceUnit`` is one raw file handed over by file discovery. Parsing
turns it into ``FrontMatter`` plus a body, and the store wraps both in an
immutable ``Document`` whose status comes from the collection it was
loaded from.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class DocumentStatus(StrEnum):
    """Which collection a document was loaded from."""

    PUBLISHED = "published"
    DRAFT = "draft"


class SourceUnit(BaseModel):
    """A raw content file: its collection-relative name and text."""

    name: str
    text: str


class FrontMatter(BaseModel):
    """Structured metadata parsed from a document header block."""

    title: str | None = None
    date: datetime | None = None
    date_raw: str | None = None
    categories: list[str] = Field(default_factory=list)
    layout: str | None = None
    slug: str | None = None
    extra: dict[str, str | list[str]] = Field(default_factory=dict)

    @property
    def date_missing(self) -> bool:
        """True when the document falls back to undated ordering."""
        return self.date is None


class Document(BaseModel):
    """One parsed content unit.

    Frozen once created. The revision stage produces copies carrying
    ``revision_group_id`` and ``canonical`` instead of mutating.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    source: str
    status: DocumentStatus
    title: str | None = None
    date: datetime | None = None
    categories: list[str] = Field(default_factory=list)
    layout: str | None = None
    extra: dict[str, str | list[str]] = Field(default_factory=dict)
    body: str = ""
    revision_group_id: str | None = None
    canonical: bool = True

    @property
    def is_draft(self) -> bool:
        return self.status == DocumentStatus.DRAFT
