"""Publishing — selection, ordering and on-disk layout of rendered documents."""

from quire.publish.models import (
    IndexEntry,
    OutputFormat,
    PublishConfig,
    PublishedSet,
    SortOrder,
)
from quire.publish.services import order_documents, publish, select_documents
from quire.publish.writers import create_writer, write_site

__all__ = [
    "IndexEntry",
    "OutputFormat",
    "PublishConfig",
    "PublishedSet",
    "SortOrder",
    "create_writer",
    "order_documents",
    "publish",
    "select_documents",
    "write_site",
]
