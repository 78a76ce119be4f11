"""Static HTML output: one page per document plus index.html."""

from __future__ import annotations

from datetime import datetime
from html import escape
from pathlib import Path

from quire.publish.models import PublishedSet
from quire.publish.writers.base import SiteWriter
from quire.render.models import RenderedDocument

UNTITLED = "Untitled"


def _date_label(value: datetime | None) -> str:
    return value.strftime("%Y-%m-%d") if value is not None else ""


class HtmlWriter(SiteWriter):
    """Formats documents as standalone HTML pages."""

    def format_document(self, document: RenderedDocument) -> str:
        title = escape(document.title or UNTITLED)
        lines: list[str] = [
            "<!DOCTYPE html>",
            "<html>",
            "<head>",
            '<meta charset="utf-8">',
            f"<title>{title}</title>",
            "</head>",
            "<body>",
            "<article>",
            "<header>",
            f"<h1>{title}</h1>",
        ]
        if document.date is not None:
            lines.append(
                f'<time datetime="{document.date.isoformat()}">{_date_label(document.date)}</time>'
            )
        if document.categories:
            cats = ", ".join(escape(c) for c in document.categories)
            lines.append(f'<p class="categories">{cats}</p>')
        lines.extend(["</header>", document.html, "</article>", "</body>", "</html>", ""])
        return "\n".join(lines)

    def document_path(self, output_dir: Path, document: RenderedDocument) -> Path:
        return output_dir / f"{document.id}.html"

    def format_index(self, published: PublishedSet) -> str:
        lines: list[str] = [
            "<!DOCTYPE html>",
            "<html>",
            "<head>",
            '<meta charset="utf-8">',
            "<title>Index</title>",
            "</head>",
            "<body>",
            "<ul>",
        ]
        for entry in published.index:
            label = escape(entry.title or UNTITLED)
            date_str = _date_label(entry.date)
            suffix = f" <time>{date_str}</time>" if date_str else ""
            if entry.categories:
                cats = ", ".join(escape(c) for c in entry.categories)
                suffix += f' <span class="categories">{cats}</span>'
            lines.append(f'<li><a href="{escape(entry.id)}.html">{label}</a>{suffix}</li>')
        lines.extend(["</ul>", "</body>", "</html>", ""])
        return "\n".join(lines)

    def index_path(self, output_dir: Path) -> Path:
        return output_dir / "index.html"
