"""Base class for site output formats."""

from __future__ import annotations

import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

from quire.publish.models import PublishedSet
from quire.render.models import RenderedDocument


def atomic_write(path: Path, content: str) -> None:
    """Write via a temp file in the same directory, then replace."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise


class SiteWriter(ABC):
    """Lays rendered documents and the index out as files."""

    @abstractmethod
    def format_document(self, document: RenderedDocument) -> str:
        """Serialize one rendered document."""

    @abstractmethod
    def document_path(self, output_dir: Path, document: RenderedDocument) -> Path:
        """Compute the output file path for a document."""

    @abstractmethod
    def format_index(self, published: PublishedSet) -> str:
        """Serialize the index of published documents."""

    @abstractmethod
    def index_path(self, output_dir: Path) -> Path:
        """Compute the output file path for the index."""
