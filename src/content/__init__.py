"""Content domain — source units, parsed documents and the content store.

Raw Markdown files enter as ``SourceUnit`` values, are split into front
matter and body, and become immutable ``Document`` records held in a
``ContentStore`` that later stages only read.
"""

from quire.content.frontmatter import parse_date, parse_front_matter
from quire.content.models import Document, DocumentStatus, FrontMatter, SourceUnit
from quire.content.reader import read_sources
from quire.content.store import ContentStore, make_document_id, slugify

__all__ = [
    "ContentStore",
    "Document",
    "DocumentStatus",
    "FrontMatter",
    "SourceUnit",
    "make_document_id",
    "parse_date",
    "parse_front_matter",
    "read_sources",
    "slugify",
]
