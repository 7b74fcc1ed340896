from __future__ import annotations

import html
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .config import PipelineConfig
from .domain.models import Block, Document, RenderedPage
from .infrastructure.io import discover_content_files, load_document, write_json, write_jsonl, write_text
from .use_cases.metadata import (
    block_stats,
    detect_language_hint,
    extract_description,
    extract_title,
    fenced_labels,
    locale_language,
    prose_text,
)
from .use_cases.routing import LocaleRouter
from .use_cases.services.html_renderer_service import HtmlRendererService
from .use_cases.services.markdown_parser_service import MarkdownParserService
from .use_cases.services.reference_resolver_service import ReferenceResolverService
from .use_cases.store import DocumentStore

LOG_PREFIX = "[corpus-publisher]"

PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="{lang}">
<head>
<meta charset="utf-8">
<title>{title}</title>
<meta name="description" content="{description}">
<link rel="stylesheet" href="{stylesheet}">
</head>
<body>
<article>
{body}
</article>
</body>
</html>
"""


def _log(message: str) -> None:
    print(f"{LOG_PREFIX} {message}", file=sys.stderr)


def page_path(output_dir: Path, document: Document) -> Path:
    relative = document.slug.strip("/") or "index"
    return output_dir / "pages" / document.locale / f"{relative}.html"


def _page_html(document: Document, *, title: str, description: str, page: RenderedPage, stylesheet: str) -> str:
    return PAGE_TEMPLATE.format(
        lang=html.escape(document.locale, quote=True),
        title=html.escape(title, quote=False),
        description=html.escape(description, quote=True),
        stylesheet=html.escape(stylesheet, quote=True),
        body=page.html,
    )


def load_store(config: PipelineConfig) -> tuple[DocumentStore, list[dict[str, Any]]]:
    """Ingest every content unit under ``config.input_dir``.

    Units that cannot be loaded are reported and skipped so that the rest of
    the corpus still builds.
    """
    store = DocumentStore()
    errors: list[dict[str, Any]] = []
    for locale, path in discover_content_files(config.input_dir, config.extensions):
        try:
            store.add(load_document(path, locale=locale, locale_dir=config.input_dir / locale))
        except Exception as exc:  # pylint: disable=broad-exception-caught
            errors.append({"stage": "load", "source_path": str(path.resolve()), "locale": locale, "error": str(exc)})
            _log(f"Failed to load {path.name} ({locale}): {exc}")
            if config.fail_fast:
                raise
    return store, errors


def _process_document(
    document: Document,
    config: PipelineConfig,
    *,
    parser: MarkdownParserService,
    renderer: HtmlRendererService,
) -> tuple[dict[str, Any], list[Block], RenderedPage, dict[str, Any]]:
    blocks = parser.parse(document.body)
    doc_warnings: list[str] = []

    title = document.title
    if not title:
        title = extract_title(blocks, fallback=document.id)
        doc_warnings.append("title missing from front-matter")
    description = document.description
    if not description:
        description = extract_description(blocks, title=title)
        doc_warnings.append("description missing from front-matter")

    language_hint = detect_language_hint(prose_text(blocks))
    if language_hint is not None and language_hint != locale_language(document.locale):
        doc_warnings.append(f"content looks like {language_hint!r} but locale is {document.locale!r}")

    page = renderer.render(blocks, document_id=document.id, locale=document.locale)
    document_row = {
        "doc_id": document.id,
        "locale": document.locale,
        "slug": document.slug,
        "title": title,
        "description": description,
        "description_from_front_matter": bool(document.description),
        "language_hint": language_hint,
        "source_path": str(document.source_path.resolve()) if document.source_path is not None else None,
        "stats": block_stats(blocks, encoding_name=config.tokenizer_encoding),
        "fenced_labels": fenced_labels(blocks),
    }
    result_manifest = {
        "doc_id": document.id,
        "locale": document.locale,
        "slug": document.slug,
        "warnings": doc_warnings,
    }
    return document_row, blocks, page, result_manifest


def _slug_conflicts(documents: list[Document]) -> list[dict[str, Any]]:
    owners: dict[str, set[str]] = {}
    for document in documents:
        owners.setdefault(document.slug, set()).add(document.id)
    return [{"slug": slug, "ids": sorted(ids)} for slug, ids in sorted(owners.items()) if len(ids) > 1]


def run_pipeline(config: PipelineConfig) -> dict:
    store, errors = load_store(config)
    parser = MarkdownParserService()
    renderer = HtmlRendererService(theme=config.theme, css_class=config.css_class)
    resolver = ReferenceResolverService(internal_prefix=config.internal_link_prefix)

    output_dir = config.output_dir
    stylesheet_path = output_dir / "assets" / "highlight.css"
    documents: list[dict[str, Any]] = []
    doc_results: list[dict[str, Any]] = []
    parsed: list[tuple[Document, list[Block]]] = []
    pages: list[tuple[Document, dict[str, Any], RenderedPage]] = []

    for document in store.documents():
        try:
            document_row, blocks, page, doc_manifest = _process_document(
                document, config, parser=parser, renderer=renderer
            )
        except Exception as exc:  # pylint: disable=broad-exception-caught
            errors.append(
                {
                    "stage": "parse",
                    "doc_id": document.id,
                    "locale": document.locale,
                    "error_type": type(exc).__name__,
                    "error": str(exc),
                }
            )
            _log(f"Failed to process {document.id} ({document.locale}): {exc}")
            if config.fail_fast:
                raise
            continue
        documents.append(document_row)
        doc_results.append(doc_manifest)
        parsed.append((document, blocks))
        pages.append((document, document_row, page))

    published = [document for document, _ in parsed]
    slug_index = resolver.build_slug_index(published)
    report = resolver.resolve(parsed, slug_index)
    dangling_count = resolver.emit_warnings(report)
    if dangling_count:
        _log(f"{dangling_count} dangling reference(s) found")

    for document, document_row, page in pages:
        target = page_path(output_dir, document)
        stylesheet = os.path.relpath(stylesheet_path, target.parent).replace(os.sep, "/")
        write_text(
            target,
            _page_html(
                document,
                title=document_row["title"],
                description=document_row["description"],
                page=page,
                stylesheet=stylesheet,
            ),
        )
        document_row["page_path"] = str(target.relative_to(output_dir)).replace(os.sep, "/")

    write_text(stylesheet_path, renderer.stylesheet())
    write_jsonl(output_dir / "documents.jsonl", documents)
    write_jsonl(output_dir / "references.jsonl", report.to_rows())

    locale_counts: dict[str, int] = {}
    for row in documents:
        locale_counts[row["locale"]] = locale_counts.get(row["locale"], 0) + 1

    manifest = {
        "input_dir": str(config.input_dir.resolve()),
        "output_dir": str(output_dir.resolve()),
        "processed_at_utc": datetime.now(timezone.utc).isoformat(),
        "default_locale": config.default_locale,
        "theme": config.theme,
        "ids": len(store.ids()),
        "variants": len(store),
        "documents": len(documents),
        "pages": len(pages),
        "locales": locale_counts,
        "references": {
            "total": len(report.references),
            "resolved": len(report.resolved),
            "dangling": dangling_count,
            "fail_on_dangling": config.fail_on_dangling,
        },
        "slug_conflicts": _slug_conflicts(published),
        "document_results": doc_results,
        "errors": errors,
    }
    write_json(output_dir / "run_manifest.json", manifest)

    if config.fail_on_dangling:
        resolver.raise_for_dangling(report)
    return manifest


def render_page(store: DocumentStore, document_id: str, locale: str, config: PipelineConfig) -> RenderedPage:
    """Route, parse and render a single page on request."""
    document = LocaleRouter(store, fallback_locale=config.default_locale).route(document_id, locale)
    blocks = MarkdownParserService().parse(document.body)
    renderer = HtmlRendererService(theme=config.theme, css_class=config.css_class)
    return renderer.render(blocks, document_id=document.id, locale=document.locale)
