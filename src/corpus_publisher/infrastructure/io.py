from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

import yaml

from ..domain.errors import FrontMatterError
from ..domain.models import Document

FRONT_MATTER_OPEN = "---"
FRONT_MATTER_CLOSE = {"---", "..."}
SLUG_RE = re.compile(r"^/[^\s?#]*$")


def discover_content_files(input_dir: Path, extensions: tuple[str, ...] = (".md", ".mdx")) -> list[tuple[str, Path]]:
    """Return ``(locale, path)`` pairs for every content file under ``input_dir/<locale>/``."""
    if not input_dir.exists():
        return []
    found: list[tuple[str, Path]] = []
    locale_dirs = sorted([path for path in input_dir.iterdir() if path.is_dir()], key=lambda p: p.name.lower())
    for locale_dir in locale_dirs:
        files = sorted(
            [path for path in locale_dir.rglob("*") if path.is_file() and path.suffix.lower() in extensions],
            key=lambda p: str(p.relative_to(locale_dir)).lower(),
        )
        found.extend((locale_dir.name, path) for path in files)
    return found


def split_front_matter(text: str) -> tuple[dict[str, Any], str]:
    text = text.lstrip("\ufeff")
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].rstrip("\r\n").strip() != FRONT_MATTER_OPEN:
        return {}, text

    for idx in range(1, len(lines)):
        if lines[idx].rstrip("\r\n").strip() in FRONT_MATTER_CLOSE:
            raw = "".join(lines[1:idx])
            body = "".join(lines[idx + 1 :])
            break
    else:
        raise FrontMatterError("Front-matter block is not closed")

    try:
        payload = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise FrontMatterError(f"Invalid front-matter YAML: {exc}") from exc
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise FrontMatterError("Front-matter must be a mapping")
    return payload, body


def _string_field(front_matter: dict[str, Any], key: str) -> str | None:
    value = front_matter.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise FrontMatterError(f"Front-matter field {key!r} must be a string")
    return value.strip()


def normalize_slug(value: str) -> str:
    slug = value.strip()
    if not slug.startswith("/"):
        slug = "/" + slug
    if len(slug) > 1:
        slug = slug.rstrip("/")
    if not SLUG_RE.match(slug):
        raise FrontMatterError(f"Slug is not URL-safe: {value!r}")
    return slug


def document_id_for(path: Path, locale_dir: Path) -> str:
    relative = path.relative_to(locale_dir).with_suffix("")
    return relative.as_posix()


def parse_content_unit(text: str, *, document_id: str, locale: str, source_path: Path | None = None) -> Document:
    front_matter, body = split_front_matter(text)
    doc_id = _string_field(front_matter, "id") or document_id
    slug = normalize_slug(_string_field(front_matter, "slug") or doc_id)
    extra = {key: value for key, value in front_matter.items() if key not in {"id", "slug", "title", "description"}}
    return Document(
        id=doc_id,
        locale=locale,
        title=_string_field(front_matter, "title") or "",
        description=_string_field(front_matter, "description") or "",
        slug=slug,
        body=body,
        source_path=source_path,
        extra=extra,
    )


def load_document(path: Path, *, locale: str, locale_dir: Path) -> Document:
    return parse_content_unit(
        read_text(path),
        document_id=document_id_for(path, locale_dir),
        locale=locale,
        source_path=path,
    )


def read_json(path: Path) -> dict | list:
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def read_jsonl(path: Path) -> list[dict[str, Any]]:
    rows: list[dict[str, Any]] = []
    if not path.exists():
        return rows
    with path.open("r", encoding="utf-8") as handle:
        for line in handle:
            line = line.strip()
            if line:
                rows.append(json.loads(line))
    return rows


def read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="replace")


def write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def write_json(path: Path, payload: dict | list) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, ensure_ascii=False, indent=2)


def write_jsonl(path: Path, rows: list[dict]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        for row in rows:
            handle.write(json.dumps(row, ensure_ascii=False) + "\n")
