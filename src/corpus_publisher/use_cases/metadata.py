from __future__ import annotations

import re
import unicodedata
from functools import lru_cache
from typing import Sequence

import tiktoken

from ..domain.models import Block

CJK_RE = re.compile(r"[\u3400-\u4dbf\u4e00-\u9fff\uf900-\ufaff]")
LATIN_WORD_RE = re.compile(r"[A-Za-z]{2,}")
SLUG_STRIP_RE = re.compile(r"[^\w\s\-]", re.UNICODE)
SLUG_DASH_RE = re.compile(r"[\s_\-]+")

DESCRIPTION_MAX_CHARS = 320


def slugify(value: str) -> str:
    """Lowercase, dash-separated form of ``value``; CJK characters are kept."""
    text = unicodedata.normalize("NFKC", value).strip().lower()
    text = SLUG_STRIP_RE.sub("", text)
    return SLUG_DASH_RE.sub("-", text).strip("-")


def extract_title(blocks: Sequence[Block], fallback: str) -> str:
    for block in blocks:
        if block.block_type == "heading" and block.text.strip():
            return block.text.strip()
    return fallback


def extract_description(blocks: Sequence[Block], title: str) -> str:
    candidates: list[str] = []
    for block in blocks:
        if block.block_type != "paragraph":
            continue
        text = block.text.strip()
        if not text or text == title:
            continue
        candidates.append(text)
        if sum(len(candidate) for candidate in candidates) >= DESCRIPTION_MAX_CHARS:
            break
    if not candidates:
        return title
    merged = re.sub(r"\s+", " ", " ".join(candidates)).strip()
    if len(merged) <= DESCRIPTION_MAX_CHARS:
        return merged
    return merged[: DESCRIPTION_MAX_CHARS - 3].rstrip() + "..."


def detect_language_hint(text: str) -> str | None:
    cjk = len(CJK_RE.findall(text))
    latin = len(LATIN_WORD_RE.findall(text))
    if cjk == 0 and latin == 0:
        return None
    # Chinese prose routinely embeds English identifiers.
    if cjk >= 20 and cjk >= latin:
        return "zh"
    if latin >= 20 and cjk < 20:
        return "en"
    return None


def locale_language(locale: str) -> str:
    return locale.replace("_", "-").split("-")[0].lower()


def prose_text(blocks: Sequence[Block]) -> str:
    """Visible text excluding fenced examples, for the language hint."""
    return "\n".join(block.text for block in blocks if block.block_type != "fenced_example")


@lru_cache(maxsize=4)
def _encoding(name: str) -> tiktoken.Encoding:
    return tiktoken.get_encoding(name)


def count_tokens(text: str, encoding_name: str = "cl100k_base") -> int:
    if not text:
        return 0
    return len(_encoding(encoding_name).encode(text, disallowed_special=()))


def block_stats(blocks: Sequence[Block], *, encoding_name: str = "cl100k_base") -> dict[str, int]:
    counts = {block_type: 0 for block_type in ("heading", "paragraph", "list", "table", "fenced_example", "link")}
    links = 0
    for block in blocks:
        counts[block.block_type] = counts.get(block.block_type, 0) + 1
        links += len(block.links)
    return {
        "blocks": len(blocks),
        "headings": counts["heading"],
        "tables": counts["table"],
        "fenced_examples": counts["fenced_example"],
        "links": links,
        "tokens": count_tokens("\n".join(block.text for block in blocks), encoding_name),
    }


def fenced_labels(blocks: Sequence[Block]) -> list[str]:
    labels: list[str] = []
    for block in blocks:
        if block.block_type == "fenced_example" and block.label and block.label not in labels:
            labels.append(block.label)
        for children in block.children:
            for label in fenced_labels(children):
                if label not in labels:
                    labels.append(label)
    return labels
