from __future__ import annotations

from typing import Iterable, Sequence

from ..domain.models import Block, Document, ResolutionReport
from .services.reference_resolver_service import ReferenceResolverService

_DEFAULT_SERVICE = ReferenceResolverService()


def build_slug_index(documents: Iterable[Document]) -> dict[str, str]:
    return _DEFAULT_SERVICE.build_slug_index(documents)


def resolve_references(
    parsed: Iterable[tuple[Document, Sequence[Block]]],
    slug_index: dict[str, str],
    *,
    internal_prefix: str = "/",
) -> ResolutionReport:
    service = _DEFAULT_SERVICE if internal_prefix == "/" else ReferenceResolverService(internal_prefix=internal_prefix)
    return service.resolve(parsed, slug_index)


def emit_warnings(report: ResolutionReport) -> int:
    return _DEFAULT_SERVICE.emit_warnings(report)


def raise_for_dangling(report: ResolutionReport) -> None:
    _DEFAULT_SERVICE.raise_for_dangling(report)
