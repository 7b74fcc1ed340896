from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

BLOCK_TYPES = ("heading", "paragraph", "list", "table", "fenced_example", "link")
RESOLVED = "resolved"
DANGLING = "dangling"


@dataclass(frozen=True)
class Document:
    id: str
    locale: str
    title: str
    description: str
    slug: str
    body: str
    source_path: Path | None = None
    extra: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)


@dataclass(frozen=True)
class Link:
    text: str
    target: str
    title: str | None = None


@dataclass(frozen=True)
class Block:
    """One structural element of a parsed body.

    ``text`` is the visible text with inline markup removed, ``source`` keeps
    the raw Markdown so the renderer can project inline formatting. For
    fenced examples both carry the literal content between the fences.
    """

    block_type: str
    text: str
    source: str = ""
    heading_level: int | None = None
    label: str | None = None
    columns: tuple[str, ...] = ()
    rows: tuple[tuple[str, ...], ...] = ()
    alignments: tuple[str | None, ...] = ()
    items: tuple[str, ...] = ()
    ordered: bool = False
    start: int | None = None
    links: tuple[Link, ...] = ()
    target: str | None = None
    children: tuple[tuple[Block, ...], ...] = ()
    references: tuple[tuple[str, str], ...] = ()
    quoted: bool = False
    line: int | None = None


@dataclass(frozen=True)
class CrossReference:
    source_id: str
    target_slug: str
    status: str
    locales: tuple[str, ...] = ()

    @property
    def is_dangling(self) -> bool:
        return self.status == DANGLING


@dataclass(frozen=True)
class ResolutionReport:
    references: tuple[CrossReference, ...] = ()

    @property
    def dangling(self) -> list[CrossReference]:
        return [ref for ref in self.references if ref.is_dangling]

    @property
    def resolved(self) -> list[CrossReference]:
        return [ref for ref in self.references if not ref.is_dangling]

    def to_rows(self) -> list[dict[str, Any]]:
        return [
            {
                "sourceId": ref.source_id,
                "targetSlug": ref.target_slug,
                "status": ref.status,
                "locales": list(ref.locales),
            }
            for ref in self.references
        ]


@dataclass(frozen=True)
class RenderedPage:
    document_id: str | None
    locale: str | None
    fragments: tuple[str, ...]

    @property
    def html(self) -> str:
        return "\n".join(self.fragments)
