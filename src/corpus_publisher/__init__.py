"""Deterministic build pipeline for a localized Markdown/MDX article corpus."""

from .pipeline import render_page, run_pipeline
from .config import EvalConfig, PipelineConfig, PublishGateConfig
from .domain.errors import (
    DanglingReferenceError,
    DanglingReferenceWarning,
    DuplicateDocumentError,
    FrontMatterError,
    MalformedBlockError,
    NoVariantError,
    PublishError,
)
from .domain.models import Block, CrossReference, Document, Link, RenderedPage, ResolutionReport
from .use_cases.evaluator import run_evaluation
from .use_cases.metadata import count_tokens, detect_language_hint, extract_description, extract_title, slugify
from .use_cases.parsing import parse_body, plain_text
from .use_cases.references import build_slug_index, emit_warnings, raise_for_dangling, resolve_references
from .use_cases.rendering import render_blocks
from .use_cases.routing import LocaleRouter
from .use_cases.store import DocumentStore, canonical_locale

__all__ = [
    "run_pipeline",
    "render_page",
    "run_evaluation",
    "EvalConfig",
    "PipelineConfig",
    "PublishGateConfig",
    "Block",
    "CrossReference",
    "Document",
    "Link",
    "RenderedPage",
    "ResolutionReport",
    "DanglingReferenceError",
    "DanglingReferenceWarning",
    "DuplicateDocumentError",
    "FrontMatterError",
    "MalformedBlockError",
    "NoVariantError",
    "PublishError",
    "count_tokens",
    "detect_language_hint",
    "extract_description",
    "extract_title",
    "slugify",
    "parse_body",
    "plain_text",
    "build_slug_index",
    "emit_warnings",
    "raise_for_dangling",
    "resolve_references",
    "render_blocks",
    "LocaleRouter",
    "DocumentStore",
    "canonical_locale",
]
