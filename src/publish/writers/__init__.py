"""Site writer factory and registry."""

from __future__ import annotations

import logging
from pathlib import Path

from quire.errors import ConfigError, IdCollisionError
from quire.publish.models import OutputFormat, PublishedSet
from quire.publish.writers.base import SiteWriter, atomic_write
from quire.render.models import RenderedDocument

logger = logging.getLogger(__name__)


def create_writer(output_format: OutputFormat | str) -> SiteWriter:
    """Create a writer for the given output format.

    Raises:
        ConfigError: If the format is unknown.
    """
    try:
        output_format = OutputFormat(output_format)
    except ValueError as exc:
        raise ConfigError(f"Unknown output format: {output_format!r}") from exc

    from quire.publish.writers.html import HtmlWriter
    from quire.publish.writers.json import JsonWriter

    writers: dict[OutputFormat, SiteWriter] = {
        OutputFormat.HTML: HtmlWriter(),
        OutputFormat.JSON: JsonWriter(),
    }
    return writers[output_format]


def write_site(published: PublishedSet, output_dir: Path, writer: SiteWriter) -> list[Path]:
    """Write every published document and the index.

    Every target path is checked before anything is written, so a page
    can never overwrite the index or another page.

    Returns:
        Written paths, documents first (in publish order), index last.

    Raises:
        IdCollisionError: If two outputs resolve to the same path.
    """
    index = writer.index_path(output_dir)
    owners: dict[Path, str] = {index: "the site index"}
    targets: list[tuple[RenderedDocument, Path]] = []
    for document in published.documents:
        path = writer.document_path(output_dir, document)
        if path in owners:
            raise IdCollisionError(document.id, owners[path], document.id)
        owners[path] = document.id
        targets.append((document, path))

    written: list[Path] = []
    for document, path in targets:
        atomic_write(path, writer.format_document(document))
        written.append(path)

    atomic_write(index, writer.format_index(published))
    written.append(index)
    logger.info("Wrote %d file(s) to %s", len(written), output_dir)
    return written


__all__ = ["SiteWriter", "atomic_write", "create_writer", "write_site"]
