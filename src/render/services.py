"""Markdown to HTML rendering that leaves code and math untouched.

Fenced code regions and math spans are lifted out of the body before
Markdown processing and substituted back afterwards, so the Markdown
engine never sees (and never rewrites) them.
"""

from __future__ import annotations

import logging
import re
import secrets
from html import escape

import markdown

from quire.content.models import Document
from quire.errors import RenderError
from quire.render.models import CodeBlock, RenderedDocument

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = ["footnotes", "tables", "sane_lists"]

_FENCE_OPEN_RE = re.compile(r"^ {0,3}(?P<fence>`{3,}|~{3,})(?P<info>[^\r\n]*)$")
_FENCE_CLOSE_RE = re.compile(r"^ {0,3}(?P<fence>`{3,}|~{3,})[ \t]*$")

_MATH_RE = re.compile(
    r"(?P<code>(?P<ticks>`+)(?:(?!\n[ \t]*\n).)+?(?P=ticks))"
    r"|(?P<display>\$\$.+?\$\$)"
    r"|(?P<bracket>\\\[.+?\\\])"
    r"|(?P<paren>\\\(.+?\\\))"
    r"|(?P<inline>(?<![\\$])\$(?=\S)[^$\n]+?(?<=\S)\$(?!\$))",
    re.DOTALL,
)

# Placeholders carry a per-render nonce so body text can never forge one.
_CODE_TOKEN = "QUIRE{nonce}CODE{n}END"
_MATH_TOKEN = "QUIRE{nonce}MATH{n}END"


def _token_re(kind: str, nonce: str) -> re.Pattern[str]:
    token = rf"QUIRE{re.escape(nonce)}{kind}(\d+)END"
    if kind == "CODE":
        return re.compile(rf"(?:<p>)?{token}(?:</p>)?")
    return re.compile(token)


def _closes(line: str, fence: str) -> bool:
    match = _FENCE_CLOSE_RE.match(line.rstrip("\r\n"))
    if match is None:
        return False
    closing = match.group("fence")
    return closing[0] == fence[0] and len(closing) >= len(fence)


def extract_code_blocks(
    body: str, doc_id: str = "", nonce: str = ""
) -> tuple[str, list[CodeBlock]]:
    """Replace fenced code regions with placeholder paragraphs.

    Returns:
        The body with placeholders, and the captured blocks in order.

    Raises:
        RenderError: If a fence is opened but never closed.
    """
    lines = body.splitlines(keepends=True)
    out: list[str] = []
    blocks: list[CodeBlock] = []
    offset = 0
    i = 0

    while i < len(lines):
        line = lines[i]
        match = _FENCE_OPEN_RE.match(line.rstrip("\r\n"))
        if match is None:
            out.append(line)
            offset += len(line.encode("utf-8"))
            i += 1
            continue

        fence = match.group("fence")
        end = i + 1
        while end < len(lines) and not _closes(lines[end], fence):
            end += 1
        if end >= len(lines):
            raise RenderError(doc_id, offset)

        info = match.group("info").strip()
        blocks.append(
            CodeBlock(
                language=info.split()[0] if info else "",
                content="".join(lines[i + 1 : end]),
                offset=offset,
            )
        )
        out.append(f"\n{_CODE_TOKEN.format(nonce=nonce, n=len(blocks) - 1)}\n\n")
        offset += sum(len(part.encode("utf-8")) for part in lines[i : end + 1])
        i = end + 1

    return "".join(out), blocks


def protect_math(text: str, nonce: str = "") -> tuple[str, list[str]]:
    """Swap math spans for placeholders, skipping inline code spans."""
    spans: list[str] = []

    def _replace(match: re.Match[str]) -> str:
        if match.group("code") is not None:
            return match.group(0)
        spans.append(match.group(0))
        return _MATH_TOKEN.format(nonce=nonce, n=len(spans) - 1)

    return _MATH_RE.sub(_replace, text), spans


def format_code_block(block: CodeBlock) -> str:
    content = escape(block.content, quote=False)
    if block.language:
        return f'<pre><code class="language-{escape(block.language)}">{content}</code></pre>'
    return f"<pre><code>{content}</code></pre>"


class Renderer:
    """Converts document bodies to HTML."""

    def __init__(self, extensions: list[str] | None = None) -> None:
        self.extensions = list(DEFAULT_EXTENSIONS if extensions is None else extensions)

    def render_body(self, body: str, doc_id: str = "") -> tuple[str, list[CodeBlock], list[str]]:
        nonce = secrets.token_hex(8)
        text, blocks = extract_code_blocks(body, doc_id, nonce)
        text, math_spans = protect_math(text, nonce)

        html = markdown.markdown(text, extensions=self.extensions)

        html = _token_re("MATH", nonce).sub(
            lambda m: escape(math_spans[int(m.group(1))], quote=False), html
        )
        html = _token_re("CODE", nonce).sub(
            lambda m: format_code_block(blocks[int(m.group(1))]), html
        )
        return html, blocks, math_spans

    def render(self, document: Document) -> RenderedDocument:
        """Render one document.

        Raises:
            RenderError: If the body has an unclosed code fence.
        """
        html, blocks, math_spans = self.render_body(document.body, document.id)
        logger.debug(
            "Rendered %s (%d code block(s), %d math span(s))",
            document.id,
            len(blocks),
            len(math_spans),
        )
        return RenderedDocument(
            id=document.id,
            title=document.title,
            date=document.date,
            categories=list(document.categories),
            status=document.status,
            html=html,
            code_blocks=blocks,
            math_spans=math_spans,
        )


def render_document(document: Document) -> RenderedDocument:
    return Renderer().render(document)
