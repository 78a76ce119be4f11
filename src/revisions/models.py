"""Revision cluster models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class RevisionCluster(BaseModel):
    """Documents judged to be revisions of the same essay.

    ``group_id`` is the id of the canonical member, so a singleton
    cluster's group id is simply the document's own id.
    """

    group_id: str
    canonical_id: str
    member_ids: list[str] = Field(default_factory=list)
    max_similarity: float = 0.0

    @property
    def size(self) -> int:
        return len(self.member_ids)

    @property
    def non_canonical_ids(self) -> list[str]:
        return [m for m in self.member_ids if m != self.canonical_id]
