"""In-memory content store built once per load pass.

The store is a value: loading produces it, the revision stage derives a
new one from it, and every later stage only reads it.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator
from concurrent.futures import ThreadPoolExecutor
from pathlib import PurePosixPath
from typing import TYPE_CHECKING

from quire.content.frontmatter import parse_front_matter
from quire.content.models import Document, DocumentStatus, SourceUnit
from quire.errors import IdCollisionError, MalformedFrontMatterError, PipelineError

if TYPE_CHECKING:
    from quire.revisions.models import RevisionCluster

logger = logging.getLogger(__name__)

_SLUG_RE = re.compile(r"[^a-z0-9-]+")

# Ids the site writers claim for their own pages.
RESERVED_IDS = frozenset({"index"})

# Alias to avoid shadowing by ContentStore.list method
_list = list


def slugify(value: str) -> str:
    """Lowercase and collapse anything outside ``[a-z0-9-]`` into dashes."""
    return _SLUG_RE.sub("-", value.strip().lower()).strip("-")


def make_document_id(source: str, slug: str | None = None) -> str:
    """Derive a stable id from a front-matter slug or the source file stem."""
    if slug:
        candidate = slugify(slug)
        if candidate:
            return candidate
    return slugify(PurePosixPath(source).stem) or "untitled"


def _origin(doc: Document) -> str:
    return f"{doc.source} ({doc.status})"


def _parse_unit(
    unit: SourceUnit, status: DocumentStatus
) -> Document | MalformedFrontMatterError:
    try:
        fm, body = parse_front_matter(unit.text, source=unit.name)
    except MalformedFrontMatterError as exc:
        return exc
    return Document(
        id=make_document_id(unit.name, fm.slug),
        source=unit.name,
        status=status,
        title=fm.title,
        date=fm.date,
        categories=fm.categories,
        layout=fm.layout,
        extra=fm.extra,
        body=body,
    )


class ContentStore:
    """Read-only collection of documents keyed by id."""

    def __init__(
        self,
        documents: Iterable[Document] = (),
        load_errors: Iterable[PipelineError] = (),
    ) -> None:
        self._documents: dict[str, Document] = {}
        for doc in documents:
            if doc.id in RESERVED_IDS:
                raise IdCollisionError(doc.id, "the site index", _origin(doc))
            existing = self._documents.get(doc.id)
            if existing is not None:
                raise IdCollisionError(doc.id, _origin(existing), _origin(doc))
            self._documents[doc.id] = doc
        self.load_errors: _list[PipelineError] = _list(load_errors)

    @classmethod
    def load(
        cls,
        published: Iterable[SourceUnit],
        drafts: Iterable[SourceUnit],
        *,
        workers: int | None = None,
    ) -> ContentStore:
        """Parse both collections into a store.

        Units are parsed concurrently; ids are checked in input order,
        published units first.

        Raises:
            IdCollisionError: If two units resolve to the same id.
        """
        jobs = [(u, DocumentStatus.PUBLISHED) for u in published]
        jobs += [(u, DocumentStatus.DRAFT) for u in drafts]

        with ThreadPoolExecutor(max_workers=workers) as executor:
            results = _list(executor.map(lambda job: _parse_unit(*job), jobs))

        documents: _list[Document] = []
        errors: _list[PipelineError] = []
        for (unit, _status), result in zip(jobs, results, strict=True):
            if isinstance(result, MalformedFrontMatterError):
                logger.warning("Excluding %s: %s", unit.name, result)
                errors.append(
                    PipelineError(
                        stage="parse",
                        message=str(result),
                        source=unit.name,
                        error_type="malformed_front_matter",
                    )
                )
                continue
            documents.append(result)

        store = cls(documents, errors)
        logger.info(
            "Loaded %d document(s), %d excluded", len(store), len(errors)
        )
        return store

    # ── Derived stores ───────────────────────────────────────────

    def with_revisions(self, clusters: Iterable[RevisionCluster]) -> ContentStore:
        """Return a new store whose documents carry their revision group."""
        assigned: dict[str, Document] = {}
        for cluster in clusters:
            for member_id in cluster.member_ids:
                assigned[member_id] = self._documents[member_id].model_copy(
                    update={
                        "revision_group_id": cluster.group_id,
                        "canonical": member_id == cluster.canonical_id,
                    }
                )
        return ContentStore(
            (assigned.get(doc_id, doc) for doc_id, doc in self._documents.items()),
            self.load_errors,
        )

    # ── Read operations ──────────────────────────────────────────

    def get(self, doc_id: str) -> Document | None:
        """Return a document by id, or None if not found."""
        return self._documents.get(doc_id)

    def exists(self, doc_id: str) -> bool:
        return doc_id in self._documents

    def list(self, status: DocumentStatus | None = None) -> _list[Document]:
        """Return documents in load order, optionally filtered by status."""
        docs = self._documents.values()
        if status is not None:
            return [d for d in docs if d.status == status]
        return _list(docs)

    def canonical(self) -> _list[Document]:
        return [d for d in self._documents.values() if d.canonical]

    def __len__(self) -> int:
        return len(self._documents)

    def __iter__(self) -> Iterator[Document]:
        return iter(self._documents.values())

    def __contains__(self, doc_id: object) -> bool:
        return doc_id in self._documents
