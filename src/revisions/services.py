"""Near-duplicate detection and canonical selection.

Documents are first grouped by related titles, then each group is kept
together as one revision cluster only if some pair of bodies is similar
enough. Every document ends up in exactly one cluster, and each cluster
has exactly one canonical member.
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Iterable
from itertools import combinations

from quire.content.models import Document, DocumentStatus
from quire.errors import ConfigError
from quire.revisions.models import RevisionCluster

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.6
DEFAULT_SHINGLE_SIZE = 3

_TOKEN_RE = re.compile(r"\w+")
_PUNCT_RE = re.compile(r"[^\w\s]")
_APOSTROPHES = str.maketrans("", "", "'’")


# ---------------------------------------------------------------------------
# Titles
# ---------------------------------------------------------------------------


def normalize_title(title: str) -> str:
    """Case-fold, drop apostrophes, turn punctuation into spaces, collapse whitespace."""
    folded = title.casefold().translate(_APOSTROPHES)
    return " ".join(_PUNCT_RE.sub(" ", folded).split())


def titles_related(a: str, b: str) -> bool:
    """Whether two normalized titles name the same essay.

    Equal titles match, as does a title that appears as a whole-word run
    inside the other ("x y" inside "why x y").
    """
    if not a or not b:
        return False
    if a == b:
        return True
    return f" {a} " in f" {b} " or f" {b} " in f" {a} "


# ---------------------------------------------------------------------------
# Body similarity
# ---------------------------------------------------------------------------


def _tokens(text: str) -> list[str]:
    return _TOKEN_RE.findall(text.casefold())


def shingles(tokens: list[str], size: int) -> set[tuple[str, ...]]:
    return {tuple(tokens[i : i + size]) for i in range(len(tokens) - size + 1)}


def similarity(a: str, b: str, shingle_size: int = DEFAULT_SHINGLE_SIZE) -> float:
    """Jaccard overlap of word shingles, in ``[0, 1]``.

    Texts too short to form a shingle are compared by their token sets.
    Two texts without any words are identical for this purpose.
    """
    ta, tb = _tokens(a), _tokens(b)
    if not ta and not tb:
        return 1.0
    if len(ta) < shingle_size or len(tb) < shingle_size:
        sa: set[object] = set(ta)
        sb: set[object] = set(tb)
    else:
        sa = set(shingles(ta, shingle_size))
        sb = set(shingles(tb, shingle_size))
    return len(sa & sb) / len(sa | sb)


# ---------------------------------------------------------------------------
# Canonical selection
# ---------------------------------------------------------------------------


def canonical_sort_key(doc: Document) -> tuple[bool, bool, float, int, str]:
    """Sort key whose minimum is the canonical member.

    Published beats draft, then the later date (dated beats undated),
    then the longer body, then the lexically smallest id.
    """
    timestamp = doc.date.timestamp() if doc.date is not None else 0.0
    return (
        doc.status != DocumentStatus.PUBLISHED,
        doc.date is None,
        -timestamp,
        -len(doc.body),
        doc.id,
    )


def choose_canonical(documents: Iterable[Document]) -> Document:
    return min(documents, key=canonical_sort_key)


class _DisjointSet:
    def __init__(self, items: Iterable[str]) -> None:
        self._parent = {item: item for item in items}

    def find(self, item: str) -> str:
        root = item
        while self._parent[root] != root:
            root = self._parent[root]
        while self._parent[item] != root:
            self._parent[item], item = root, self._parent[item]
        return root

    def union(self, a: str, b: str) -> None:
        ra, rb = self.find(a), self.find(b)
        if ra != rb:
            # Smaller root wins so grouping never depends on input order.
            if rb < ra:
                ra, rb = rb, ra
            self._parent[rb] = ra

    def groups(self) -> list[list[str]]:
        out: dict[str, list[str]] = {}
        for item in sorted(self._parent):
            out.setdefault(self.find(item), []).append(item)
        return list(out.values())


class RevisionDetector:
    """Clusters near-duplicate documents and picks one canonical per cluster."""

    def __init__(
        self,
        threshold: float = DEFAULT_THRESHOLD,
        shingle_size: int = DEFAULT_SHINGLE_SIZE,
    ) -> None:
        if not isinstance(threshold, (int, float)) or math.isnan(threshold):
            raise ConfigError(f"detector threshold must be a number, got {threshold!r}")
        if not 0.0 <= threshold <= 1.0:
            raise ConfigError(f"detector threshold must be within [0, 1], got {threshold}")
        if shingle_size < 1:
            raise ConfigError(f"shingle size must be at least 1, got {shingle_size}")
        self.threshold = float(threshold)
        self.shingle_size = shingle_size

    def title_groups(self, documents: list[Document]) -> list[list[Document]]:
        """Group documents whose normalized titles are related."""
        by_id = {d.id: d for d in documents}
        normalized = {d.id: normalize_title(d.title) if d.title else "" for d in documents}
        dsu = _DisjointSet(by_id)

        by_title: dict[str, list[str]] = {}
        for doc_id in sorted(by_id):
            if normalized[doc_id]:
                by_title.setdefault(normalized[doc_id], []).append(doc_id)

        for ids in by_title.values():
            for other in ids[1:]:
                dsu.union(ids[0], other)
        for ta, tb in combinations(sorted(by_title), 2):
            if titles_related(ta, tb):
                dsu.union(by_title[ta][0], by_title[tb][0])

        return [[by_id[i] for i in group] for group in dsu.groups()]

    def detect(self, documents: Iterable[Document]) -> list[RevisionCluster]:
        """Partition documents into revision clusters.

        Returns:
            One cluster per group of revisions, sorted by group id. Every
            input document belongs to exactly one cluster.
        """
        clusters: list[RevisionCluster] = []
        for group in self.title_groups(list(documents)):
            if len(group) == 1:
                clusters.append(_cluster(group, 0.0))
                continue

            best = max(
                similarity(a.body, b.body, self.shingle_size)
                for a, b in combinations(group, 2)
            )
            if best > self.threshold:
                logger.info(
                    "Revision cluster %s (similarity %.2f)",
                    ", ".join(d.id for d in group),
                    best,
                )
                clusters.append(_cluster(group, best))
            else:
                logger.debug(
                    "Shared title but independent bodies: %s (similarity %.2f)",
                    ", ".join(d.id for d in group),
                    best,
                )
                clusters.extend(_cluster([d], 0.0) for d in group)

        return sorted(clusters, key=lambda c: c.group_id)


def _cluster(members: list[Document], max_similarity: float) -> RevisionCluster:
    canonical = choose_canonical(members)
    return RevisionCluster(
        group_id=canonical.id,
        canonical_id=canonical.id,
        member_ids=sorted(d.id for d in members),
        max_similarity=max_similarity,
    )
