"""Revision detection — groups near-duplicate essays and picks a canonical copy."""

from quire.revisions.models import RevisionCluster
from quire.revisions.services import (
    DEFAULT_SHINGLE_SIZE,
    DEFAULT_THRESHOLD,
    RevisionDetector,
    canonical_sort_key,
    choose_canonical,
    normalize_title,
    similarity,
    titles_related,
)

__all__ = [
    "DEFAULT_SHINGLE_SIZE",
    "DEFAULT_THRESHOLD",
    "RevisionCluster",
    "RevisionDetector",
    "canonical_sort_key",
    "choose_canonical",
    "normalize_title",
    "similarity",
    "titles_related",
]
