"""JSON output: one file per document plus index.json."""

from __future__ import annotations

import json
from pathlib import Path

from quire.publish.models import PublishedSet
from quire.publish.writers.base import SiteWriter
from quire.render.models import RenderedDocument


class JsonWriter(SiteWriter):
    """Writes documents as JSON for consumption by another front end."""

    def format_document(self, document: RenderedDocument) -> str:
        return document.model_dump_json(indent=2) + "\n"

    def document_path(self, output_dir: Path, document: RenderedDocument) -> Path:
        return output_dir / f"{document.id}.json"

    def format_index(self, published: PublishedSet) -> str:
        entries = [entry.model_dump(mode="json") for entry in published.index]
        return json.dumps(entries, indent=2) + "\n"

    def index_path(self, output_dir: Path) -> Path:
        return output_dir / "index.json"
