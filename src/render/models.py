"""Rendered output models."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from quire.content.models import DocumentStatus


class CodeBlock(BaseModel):
    """A fenced code region, captured exactly as written."""

    language: str = ""
    content: str
    offset: int = 0


class RenderedDocument(BaseModel):
    """A document body converted to HTML, plus the metadata the index needs."""

    id: str
    title: str | None = None
    date: datetime | None = None
    categories: list[str] = Field(default_factory=list)
    status: DocumentStatus
    html: str
    code_blocks: list[CodeBlock] = Field(default_factory=list)
    math_spans: list[str] = Field(default_factory=list)
