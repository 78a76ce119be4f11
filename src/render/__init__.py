"""Rendering — Markdown bodies to HTML with code and math preserved."""

from quire.render.models import CodeBlock, RenderedDocument
from quire.render.services import (
    DEFAULT_EXTENSIONS,
    Renderer,
    extract_code_blocks,
    format_code_block,
    protect_math,
    render_document,
)

__all__ = [
    "DEFAULT_EXTENSIONS",
    "CodeBlock",
    "RenderedDocument",
    "Renderer",
    "extract_code_blocks",
    "format_code_block",
    "protect_math",
    "render_document",
]
