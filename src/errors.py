"""Error taxonomy and end-of-run error reporting.

Two kinds of failure exist in a build. Structural errors (id collisions,
invalid configuration) abort the whole run and propagate as exceptions.
Per-document errors (malformed front matter, unbalanced code fences)
exclude only the offending document and are collected in a
``PipelineReport`` that is printed at the end of the run.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class QuireError(Exception):
    """Base class for every error raised by the pipeline."""


class ConfigError(QuireError):
    """Invalid detector threshold, publisher option, or output setting."""


class MalformedFrontMatterError(QuireError):
    """A front-matter block was opened but never closed."""

    def __init__(self, source: str, message: str = "front matter block is never closed") -> None:
        self.source = source
        super().__init__(f"{source}: {message}" if source else message)


class IdCollisionError(QuireError):
    """Two documents resolve to the same identifier."""

    def __init__(self, doc_id: str, first_source: str, second_source: str) -> None:
        self.doc_id = doc_id
        self.first_source = first_source
        self.second_source = second_source
        super().__init__(
            f"duplicate document id {doc_id!r}: {second_source} collides with {first_source}"
        )


class RenderError(QuireError):
    """A fenced code block was opened but never closed."""

    def __init__(self, doc_id: str, offset: int, message: str = "unclosed code fence") -> None:
        self.doc_id = doc_id
        self.offset = offset
        super().__init__(f"{doc_id}: {message} at byte {offset}")


class PipelineError(BaseModel):
    """A single per-document failure recorded during a run."""

    stage: str
    message: str
    source: str = ""
    error_type: str = ""


class PipelineReport(BaseModel):
    """Errors gathered across pipeline stages for the end-of-run summary."""

    errors: list[PipelineError] = Field(default_factory=list)

    def add_error(
        self,
        stage: str,
        message: str,
        *,
        source: str = "",
        error_type: str = "",
    ) -> None:
        self.errors.append(
            PipelineError(stage=stage, message=message, source=source, error_type=error_type)
        )

    def extend(self, errors: list[PipelineError]) -> None:
        self.errors.extend(errors)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def by_stage(self, stage: str) -> list[PipelineError]:
        return [e for e in self.errors if e.stage == stage]

    def summary(self) -> str:
        """One line per error, prefixed by stage; empty string when clean."""
        return "\n".join(
            f"[{e.stage}] {e.source}: {e.message}" if e.source else f"[{e.stage}] {e.message}"
            for e in self.errors
        )
