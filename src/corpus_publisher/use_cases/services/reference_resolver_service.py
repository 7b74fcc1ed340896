from __future__ import annotations

import re
import warnings
from typing import Iterable, Sequence
from urllib.parse import unquote

from ...domain.errors import DanglingReferenceError, DanglingReferenceWarning
from ...domain.models import DANGLING, RESOLVED, Block, CrossReference, Document, ResolutionReport

FRAGMENT_RE = re.compile(r"[?#]")


def canonical_slug(path: str) -> str:
    """Percent-decoded slug without a trailing slash, as used for index lookups."""
    path = unquote(path)
    if not path:
        return "/"
    if len(path) > 1:
        path = path.rstrip("/") or "/"
    return path


class ReferenceResolverService:
    """Classifies intra-corpus links as resolved or dangling against a slug index."""

    def __init__(self, *, internal_prefix: str = "/") -> None:
        self.internal_prefix = internal_prefix

    @staticmethod
    def build_slug_index(documents: Iterable[Document]) -> dict[str, str]:
        index: dict[str, str] = {}
        for document in sorted(documents, key=lambda doc: (doc.id, doc.locale)):
            index.setdefault(canonical_slug(document.slug), document.id)
        return index

    def internal_target(self, target: str) -> str | None:
        target = target.strip()
        if not target.startswith(self.internal_prefix) or target.startswith("//"):
            return None
        return canonical_slug(FRAGMENT_RE.split(target, maxsplit=1)[0])

    def iter_targets(self, blocks: Sequence[Block]) -> list[str]:
        targets: list[str] = []
        for block in blocks:
            for link in block.links:
                slug = self.internal_target(link.target)
                if slug is not None:
                    targets.append(slug)
        return targets

    def resolve(
        self,
        parsed: Iterable[tuple[Document, Sequence[Block]]],
        slug_index: dict[str, str],
    ) -> ResolutionReport:
        order: list[tuple[str, str]] = []
        locales: dict[tuple[str, str], list[str]] = {}
        for document, blocks in sorted(parsed, key=lambda item: (item[0].id, item[0].locale)):
            for slug in self.iter_targets(blocks):
                key = (document.id, slug)
                if key not in locales:
                    order.append(key)
                    locales[key] = []
                if document.locale not in locales[key]:
                    locales[key].append(document.locale)

        references = tuple(
            CrossReference(
                source_id=source_id,
                target_slug=slug,
                status=RESOLVED if slug in slug_index else DANGLING,
                locales=tuple(locales[(source_id, slug)]),
            )
            for source_id, slug in order
        )
        return ResolutionReport(references=references)

    @staticmethod
    def emit_warnings(report: ResolutionReport) -> int:
        dangling = report.dangling
        # Each call reports all of its pairs, including ones already warned about in this process.
        with warnings.catch_warnings():
            warnings.simplefilter("always", DanglingReferenceWarning)
            for ref in dangling:
                warnings.warn(
                    f"{ref.source_id} links to missing slug {ref.target_slug}",
                    DanglingReferenceWarning,
                    stacklevel=2,
                )
        return len(dangling)

    @staticmethod
    def raise_for_dangling(report: ResolutionReport) -> None:
        dangling = report.dangling
        if dangling:
            raise DanglingReferenceError([(ref.source_id, ref.target_slug) for ref in dangling])
