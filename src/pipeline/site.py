"""Site pipeline — source collections → content store → revisions → published site."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from quire.config import QuireConfig
from quire.content import ContentStore, SourceUnit, read_sources
from quire.errors import PipelineReport
from quire.publish import PublishedSet, create_writer, publish, write_site
from quire.render import Renderer
from quire.revisions import RevisionCluster

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Everything a run produced, for reporting and writing."""

    store: ContentStore
    clusters: list[RevisionCluster]
    published: PublishedSet
    report: PipelineReport


@dataclass
class BuildResult:
    pipeline: PipelineResult
    written: list[Path] = field(default_factory=list)


def run_pipeline(
    published: Iterable[SourceUnit],
    drafts: Iterable[SourceUnit],
    config: QuireConfig | None = None,
    *,
    renderer: Renderer | None = None,
    report: PipelineReport | None = None,
) -> PipelineResult:
    """Run load, revision detection, rendering and publishing in memory.

    The detector is built before anything is loaded, so an invalid
    threshold fails the run before any processing. Errors are added to
    ``report`` when one is passed in, e.g. carrying file read errors.

    Raises:
        ConfigError: If the detector configuration is invalid.
        IdCollisionError: If two documents resolve to the same id.
    """
    config = config or QuireConfig()
    detector = config.detector.build()
    workers = config.pipeline.workers
    report = report if report is not None else PipelineReport()

    store = ContentStore.load(published, drafts, workers=workers)
    report.extend(store.load_errors)

    clusters = detector.detect(store)
    store = store.with_revisions(clusters)
    merged = sum(1 for c in clusters if c.size > 1)
    if merged:
        logger.info("Found %d revision cluster(s) with more than one member", merged)

    result = publish(store, config.publish, renderer=renderer, workers=workers)
    report.extend(result.errors)

    return PipelineResult(store=store, clusters=clusters, published=result, report=report)


def load_collections(
    root: Path, config: QuireConfig, report: PipelineReport | None = None
) -> tuple[list[SourceUnit], list[SourceUnit]]:
    """Read the published and draft collections under a site root.

    Source names are relative to ``root``, so they keep their collection
    directory (``_posts/x.md``, ``_drafts/x.md``).
    """
    published = read_sources(root / config.sources.published_dir, root=root, report=report)
    drafts = read_sources(root / config.sources.drafts_dir, root=root, report=report)
    logger.info("Found %d published and %d draft source(s)", len(published), len(drafts))
    return published, drafts


def build_site(
    root: Path,
    config: QuireConfig | None = None,
    *,
    output_dir: Path | None = None,
    dry_run: bool = False,
) -> BuildResult:
    """Build the site under ``root`` and write it to the output directory.

    Args:
        root: Site root containing the published and draft collections.
        config: Build configuration; defaults when omitted.
        output_dir: Overrides ``config.output.directory`` (relative paths
            resolve against ``root``).
        dry_run: Run the whole pipeline but write nothing.

    Returns:
        The pipeline result and the paths written.
    """
    config = config or QuireConfig()
    writer = create_writer(config.output.format)
    report = PipelineReport()
    published, drafts = load_collections(root, config, report)
    result = run_pipeline(published, drafts, config, report=report)

    if dry_run:
        return BuildResult(pipeline=result)

    target = output_dir if output_dir is not None else Path(config.output.directory)
    if not target.is_absolute():
        target = root / target
    written = write_site(result.published, target, writer)
    return BuildResult(pipeline=result, written=written)
