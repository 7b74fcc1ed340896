from __future__ import annotations

import html
from typing import Sequence

from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import TextLexer, get_lexer_by_name
from pygments.util import ClassNotFound

from ...domain.models import Block, RenderedPage
from ..metadata import slugify
from .inline_markup import render_block_html, render_inline_html

LABEL_ALIASES = {
    "js": "javascript",
    "ts": "typescript",
    "sh": "bash",
    "shell": "bash",
    "vue": "html",
}


def _attr(value: str) -> str:
    return html.escape(value, quote=True)


class HtmlRendererService:
    """Projects parsed blocks into HTML fragments.

    Output depends only on the blocks and on the static theme/CSS class the
    service is built with. Inline Markdown inside a block goes through
    Python-Markdown; fenced examples are highlighted with Pygments and never
    evaluated.
    """

    def __init__(self, *, theme: str = "default", css_class: str = "highlight") -> None:
        self.theme = theme
        self.css_class = css_class
        try:
            self._formatter = HtmlFormatter(style=theme, cssclass=css_class)
        except ClassNotFound as exc:
            raise ValueError(f"Unknown highlight theme: {theme}") from exc

    def stylesheet(self) -> str:
        return self._formatter.get_style_defs(f".{self.css_class}")

    def render(
        self,
        blocks: Sequence[Block],
        *,
        document_id: str | None = None,
        locale: str | None = None,
    ) -> RenderedPage:
        anchors: dict[str, int] = {}
        fragments = tuple(self.render_block(block, anchors) for block in blocks)
        return RenderedPage(document_id=document_id, locale=locale, fragments=fragments)

    def render_block(self, block: Block, anchors: dict[str, int]) -> str:
        references = dict(block.references)
        if block.block_type == "heading":
            fragment = self._render_heading(block, anchors, references)
        elif block.block_type == "fenced_example":
            fragment = self._render_fence(block)
        elif block.block_type == "table":
            fragment = self._render_table(block, references)
        elif block.block_type == "list":
            fragment = self._render_list(block, anchors)
        elif block.block_type == "link":
            fragment = f'<p class="link-block">{self.render_inline(block.source, references)}</p>'
        else:
            fragment = render_block_html(block.source, references)
        if block.quoted:
            return f"<blockquote>{fragment}</blockquote>"
        return fragment

    def _anchor(self, text: str, anchors: dict[str, int]) -> str:
        base = slugify(text) or "section"
        seen = anchors.get(base, 0)
        anchors[base] = seen + 1
        return base if seen == 0 else f"{base}-{seen}"

    def _render_heading(self, block: Block, anchors: dict[str, int], references: dict[str, str]) -> str:
        level = block.heading_level or 1
        anchor = self._anchor(block.text, anchors)
        inner = self.render_inline(block.source, references)
        return f'<h{level} id="{_attr(anchor)}">{inner}</h{level}>'

    def _lexer(self, label: str | None):
        if not label:
            return TextLexer(stripnl=False)
        name = LABEL_ALIASES.get(label.lower(), label.lower())
        try:
            return get_lexer_by_name(name, stripnl=False)
        except ClassNotFound:
            return TextLexer(stripnl=False)

    def _render_fence(self, block: Block) -> str:
        highlighted = highlight(block.text, self._lexer(block.label), self._formatter)
        label_attr = f' data-label="{_attr(block.label)}"' if block.label else ""
        return f'<div class="fenced-example"{label_attr}>{highlighted.rstrip()}</div>'

    def _render_table(self, block: Block, references: dict[str, str]) -> str:
        def cell(tag: str, value: str, idx: int) -> str:
            align = block.alignments[idx] if idx < len(block.alignments) else None
            style = f' style="text-align: {align}"' if align else ""
            return f"<{tag}{style}>{self.render_inline(value, references)}</{tag}>"

        head = "".join(cell("th", value, idx) for idx, value in enumerate(block.columns))
        body = "".join(
            "<tr>" + "".join(cell("td", value, idx) for idx, value in enumerate(row)) + "</tr>"
            for row in block.rows
        )
        tbody = f"<tbody>{body}</tbody>" if body else ""
        return f"<table><thead><tr>{head}</tr></thead>{tbody}</table>"

    def _render_list(self, block: Block, anchors: dict[str, int]) -> str:
        items: list[str] = []
        for children in block.children:
            parts: list[str] = []
            for idx, child in enumerate(children):
                if idx == 0 and child.block_type in {"paragraph", "link"} and not child.quoted:
                    parts.append(self.render_inline(child.source, dict(child.references)))
                else:
                    parts.append(self.render_block(child, anchors))
            items.append(f"<li>{''.join(parts)}</li>")
        if block.ordered:
            start = f' start="{block.start}"' if block.start not in (None, 1) else ""
            return f"<ol{start}>{''.join(items)}</ol>"
        return f"<ul>{''.join(items)}</ul>"

    @staticmethod
    def render_inline(source: str, references: dict[str, str] | None = None) -> str:
        return render_inline_html(source, references)
