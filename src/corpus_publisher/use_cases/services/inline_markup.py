"""Inline Markdown through Python-Markdown.

Block structure is parsed locally; the inline content of a block (emphasis,
code spans, links, images, autolinks, escapes) is rendered by Python-Markdown,
and visible text and links are read back from that HTML.
"""

from __future__ import annotations

import html
import re
from functools import lru_cache
from typing import Mapping

import markdown

from ...domain.models import Link

ESCAPABLE = set("\\`*_{}[]()#+-.!|<>~\"'")
# Line starts Python-Markdown would read as block syntax inside an inline run.
BLOCK_SYNTAX_RE = re.compile(r"^(?:[#>]|[-+*](?=[ \t])|\d+(?=\.[ \t]))", re.MULTILINE)
PARAGRAPH_RE = re.compile(r"<p>(.*)</p>", re.DOTALL)
ANCHOR_RE = re.compile(r"<a\b([^>]*)>(.*?)</a>", re.DOTALL)
STANDALONE_ANCHOR_RE = re.compile(r"\s*<a\b[^>]*>(?:(?!<a\b).)*?</a>\s*", re.DOTALL)
ATTR_RE = re.compile(r'([\w-]+)="([^"]*)"')
IMG_ALT_RE = re.compile(r'<img\b[^>]*?\balt="([^"]*)"[^>]*>')
TAG_RE = re.compile(r"<[^>]+>")

_MARKDOWN = markdown.Markdown(output_format="html")


def _protect_block_syntax(source: str) -> str:
    def escape(match: re.Match) -> str:
        marker = match.group(0)
        return marker + "\\" if marker[0].isdigit() else "\\" + marker

    return BLOCK_SYNTAX_RE.sub(escape, source)


@lru_cache(maxsize=4096)
def _convert(source: str, references: tuple[tuple[str, str], ...]) -> str:
    _MARKDOWN.reset()
    _MARKDOWN.references.update({label: (target, None) for label, target in references})
    return _MARKDOWN.convert(_protect_block_syntax(source))


def _reference_items(references: Mapping[str, str] | None) -> tuple[tuple[str, str], ...]:
    return tuple(sorted((references or {}).items()))


def unescape(text: str) -> str:
    return re.sub(r"\\(.)", lambda m: m.group(1) if m.group(1) in ESCAPABLE else m.group(0), text)


def normalize_reference(label: str) -> str:
    return re.sub(r"\s+", " ", label.strip()).lower()


def render_block_html(source: str, references: Mapping[str, str] | None = None) -> str:
    """Render one block's Markdown source, paragraph wrapper included."""
    return _convert(source, _reference_items(references))


def render_inline_html(source: str, references: Mapping[str, str] | None = None) -> str:
    rendered = render_block_html(source, references)
    match = PARAGRAPH_RE.fullmatch(rendered)
    if match and "<p>" not in match.group(1):
        return match.group(1)
    return rendered


def html_to_text(fragment: str) -> str:
    fragment = IMG_ALT_RE.sub(lambda m: m.group(1), fragment)
    return html.unescape(TAG_RE.sub("", fragment))


def visible_text(source: str, references: Mapping[str, str] | None = None) -> str:
    return html_to_text(render_inline_html(source, references))


def extract_links(source: str, references: Mapping[str, str] | None = None) -> list[Link]:
    links: list[Link] = []
    for match in ANCHOR_RE.finditer(render_inline_html(source, references)):
        attrs = {name: html.unescape(value) for name, value in ATTR_RE.findall(match.group(1))}
        if "href" not in attrs:
            continue
        links.append(Link(text=html_to_text(match.group(2)), target=attrs["href"], title=attrs.get("title")))
    return links


def is_standalone_link(source: str, references: Mapping[str, str] | None = None) -> bool:
    return STANDALONE_ANCHOR_RE.fullmatch(render_inline_html(source, references)) is not None
