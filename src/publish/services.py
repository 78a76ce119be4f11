"""Selects, renders and orders documents for publication."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from quire.content.models import Document
from quire.content.store import ContentStore
from quire.errors import PipelineError, RenderError
from quire.publish.models import IndexEntry, PublishConfig, PublishedSet, SortOrder
from quire.render.models import RenderedDocument
from quire.render.services import Renderer

logger = logging.getLogger(__name__)


def select_documents(store: ContentStore, config: PublishConfig) -> list[Document]:
    """Apply draft exclusion and revision dedupe, independently of each other."""
    selected: list[Document] = []
    for doc in store:
        if doc.is_draft and not config.include_drafts:
            continue
        if config.dedupe and not doc.canonical:
            logger.debug("Skipping non-canonical revision %s of %s", doc.id, doc.revision_group_id)
            continue
        selected.append(doc)
    return selected


def order_documents(
    documents: Iterable[RenderedDocument], sort_order: SortOrder
) -> list[RenderedDocument]:
    """Order by date in the requested direction; undated documents always last.

    Equal dates fall back to id order.
    """
    by_id = sorted(documents, key=lambda d: d.id)
    dated = [d for d in by_id if d.date is not None]
    undated = [d for d in by_id if d.date is None]
    dated.sort(key=lambda d: d.date, reverse=sort_order == SortOrder.NEWEST_FIRST)  # type: ignore[arg-type, return-value]
    return dated + undated


def _render_one(renderer: Renderer, doc: Document) -> RenderedDocument | RenderError:
    try:
        return renderer.render(doc)
    except RenderError as exc:
        return exc


def publish(
    store: ContentStore,
    config: PublishConfig | dict[str, Any] | None = None,
    *,
    renderer: Renderer | None = None,
    workers: int | None = None,
) -> PublishedSet:
    """Render and order every publishable document in the store.

    Args:
        store: Store whose revision fields have been assigned.
        config: Publish options; a plain dict is validated first.
        renderer: Renderer to use, a default one if omitted.
        workers: Thread pool size for rendering.

    Returns:
        The ordered documents, their index, and any render failures.

    Raises:
        ConfigError: If the options are invalid.
    """
    if not isinstance(config, PublishConfig):
        config = PublishConfig.from_options(config)
    renderer = renderer or Renderer()

    selected = select_documents(store, config)
    with ThreadPoolExecutor(max_workers=workers) as executor:
        results = list(executor.map(lambda d: _render_one(renderer, d), selected))

    rendered: list[RenderedDocument] = []
    errors: list[PipelineError] = []
    for doc, result in zip(selected, results, strict=True):
        if isinstance(result, RenderError):
            logger.warning("Excluding %s: %s", doc.id, result)
            errors.append(
                PipelineError(
                    stage="render",
                    message=str(result),
                    source=doc.source,
                    error_type="unbalanced_fence",
                )
            )
            continue
        rendered.append(result)

    ordered = order_documents(rendered, config.sort_order)
    index = [
        IndexEntry(id=d.id, title=d.title, date=d.date, categories=list(d.categories))
        for d in ordered
    ]
    logger.info("Published %d document(s), %d render failure(s)", len(ordered), len(errors))
    return PublishedSet(documents=ordered, index=index, errors=errors)
