"""Discovers Markdown source files in a content collection directory."""

from __future__ import annotations

import logging
from pathlib import Path

from quire.content.models import SourceUnit
from quire.errors import PipelineReport

logger = logging.getLogger(__name__)

SOURCE_SUFFIXES = (".md", ".markdown")


def read_sources(
    directory: Path,
    *,
    root: Path | None = None,
    report: PipelineReport | None = None,
) -> list[SourceUnit]:
    """Read every Markdown file under a collection directory.

    Args:
        directory: Collection root, e.g. ``_posts`` or ``_drafts``.
        root: Names are made relative to this path when given (typically
            the site root, so names keep their collection directory).
            Defaults to ``directory``.
        report: Receives a ``parse`` error for each file that is not
            valid UTF-8. Such files are skipped either way.

    Returns:
        Source units sorted by name. A missing directory yields an empty list.
    """
    if not directory.exists():
        logger.info("Collection directory %s does not exist, skipping", directory)
        return []

    base = root if root is not None and directory.is_relative_to(root) else directory
    units: list[SourceUnit] = []
    for path in sorted(directory.rglob("*")):
        if not path.is_file() or path.suffix.lower() not in SOURCE_SUFFIXES:
            continue
        name = path.relative_to(base).as_posix()
        try:
            text = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            logger.warning("Excluding %s: not valid UTF-8 (%s)", name, exc.reason)
            if report is not None:
                report.add_error(
                    "parse",
                    f"not valid UTF-8 at byte {exc.start}: {exc.reason}",
                    source=name,
                    error_type="undecodable_source",
                )
            continue
        units.append(SourceUnit(name=name, text=text))

    return sorted(units, key=lambda u: u.name)
