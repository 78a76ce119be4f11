"""Front-matter parsing for Markdown content files.

Simple key-value parser -- handles scalar values, YAML block lists and
inline ``[a, b]`` lists without requiring a heavy YAML dependency.
"""

from __future__ import annotations

import logging
import re
from datetime import UTC, datetime

from quire.content.models import FrontMatter
from quire.errors import MalformedFrontMatterError

logger = logging.getLogger(__name__)

OPEN_DELIMITER = "---"
CLOSE_DELIMITERS = ("---", "...")

_DATE_RE = re.compile(
    r"^(?P<date>\d{4}-\d{2}-\d{2})"
    r"(?:[T ](?P<time>\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?))?"
    r"\s*(?P<tz>Z|[+-]\d{2}:?\d{2})?$"
)
_LIST_SPLIT_RE = re.compile(r"[,\s]+")


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def _parse_inline_list(value: str) -> list[str]:
    return [_unquote(v.strip()) for v in value.strip("[]").split(",") if v.strip()]


def parse_date(value: str) -> datetime | None:
    """Parse an ISO-8601-like timestamp as Jekyll writes them.

    Naive timestamps are taken as UTC. Returns None when the value
    cannot be understood.
    """
    match = _DATE_RE.match(value.strip())
    if match is None:
        return None
    iso = f"{match.group('date')}T{match.group('time') or '00:00:00'}"
    tz = match.group("tz")
    if tz == "Z":
        iso += "+00:00"
    elif tz:
        iso += tz if ":" in tz else f"{tz[:3]}:{tz[3:]}"
    try:
        parsed = datetime.fromisoformat(iso)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def split_list(value: str | list[str]) -> list[str]:
    """Normalize a list-ish value: YAML list, or comma/whitespace separated string."""
    items = value if isinstance(value, list) else _LIST_SPLIT_RE.split(value)
    seen: dict[str, None] = {}
    for item in items:
        item = item.strip()
        if item:
            seen.setdefault(item, None)
    return list(seen)


def _split_block(text: str, source: str) -> tuple[list[str] | None, str]:
    """Separate the raw header lines from the body.

    Returns ``(None, text)`` when there is no header block. The body is
    returned exactly as it appears after the closing delimiter line.
    """
    if text.startswith("\ufeff"):
        text = text[1:]
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].strip() != OPEN_DELIMITER:
        return None, text

    for idx in range(1, len(lines)):
        if lines[idx].strip() in CLOSE_DELIMITERS:
            header = [line.rstrip("\r\n") for line in lines[1:idx]]
            return header, "".join(lines[idx + 1 :])

    raise MalformedFrontMatterError(source)


def _parse_pairs(header: list[str], source: str) -> dict[str, str | list[str]]:
    result: dict[str, str | list[str]] = {}
    current_key: str | None = None

    for line in header:
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue

        # List item under a key
        if stripped.startswith("- ") or stripped == "-":
            if current_key is None:
                logger.debug("%s: list item without a key: %r", source, line)
                continue
            existing = result.get(current_key)
            items = existing if isinstance(existing, list) else []
            items.append(_unquote(stripped[1:].strip()))
            result[current_key] = items
            continue

        if ":" not in stripped:
            logger.debug("%s: ignoring front matter line %r", source, line)
            current_key = None
            continue

        key, _, value = stripped.partition(":")
        key = key.strip()
        value = value.strip()
        if value.startswith("[") and value.endswith("]"):
            result[key] = _parse_inline_list(value)
            current_key = None
        elif value:
            result[key] = _unquote(value)
            current_key = None
        else:
            # Might be a list header
            result[key] = []
            current_key = key

    return result


def parse_front_matter(text: str, source: str = "") -> tuple[FrontMatter, str]:
    """Split a leading ``---`` metadata block from the body.

    Args:
        text: Raw file contents.
        source: Name used in error and log messages.

    Returns:
        The parsed front matter and the untouched body text.

    Raises:
        MalformedFrontMatterError: If the block is opened but never closed.
    """
    header, body = _split_block(text, source)
    if header is None:
        return FrontMatter(), body

    fields = _parse_pairs(header, source)

    title: str | None = None
    raw_title = fields.pop("title", None)
    if isinstance(raw_title, str) and raw_title.strip():
        title = raw_title.strip()

    categories: list[str] = []
    for key in ("categories", "category"):
        raw = fields.pop(key, None)
        if raw:
            categories.extend(split_list(raw))
    categories = split_list(categories)

    date_raw: str | None = None
    entry_date: datetime | None = None
    raw_date = fields.pop("date", None)
    if isinstance(raw_date, str) and raw_date:
        date_raw = raw_date
        entry_date = parse_date(raw_date)
        if entry_date is None:
            logger.warning("Could not parse date %r in %s", raw_date, source or "<input>")

    layout = fields.pop("layout", None)
    slug = fields.pop("slug", None)

    return (
        FrontMatter(
            title=title,
            date=entry_date,
            date_raw=date_raw,
            categories=categories,
            layout=layout if isinstance(layout, str) else None,
            slug=slug if isinstance(slug, str) and slug else None,
            extra=fields,
        ),
        body,
    )
