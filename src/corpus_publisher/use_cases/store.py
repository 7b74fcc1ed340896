from __future__ import annotations

from typing import Iterable, Iterator

from ..domain.errors import DuplicateDocumentError
from ..domain.models import Document


def canonical_locale(locale: str) -> str:
    """Normalize a locale tag to ``ll-RR`` casing (``zh_cn`` -> ``zh-CN``)."""
    parts = [part for part in locale.strip().replace("_", "-").split("-") if part]
    if not parts:
        return ""
    out = [parts[0].lower()]
    for part in parts[1:]:
        if len(part) == 2:
            out.append(part.upper())
        elif len(part) == 4:
            out.append(part.title())
        else:
            out.append(part.lower())
    return "-".join(out)


class DocumentStore:
    """Read-only collection of document variants keyed by ``(id, locale)``."""

    def __init__(self, documents: Iterable[Document] = ()) -> None:
        self._variants: dict[str, dict[str, Document]] = {}
        for document in documents:
            self.add(document)

    def add(self, document: Document) -> None:
        locale = canonical_locale(document.locale)
        variants = self._variants.setdefault(document.id, {})
        if locale in variants:
            raise DuplicateDocumentError(document.id, document.locale)
        variants[locale] = document

    def get(self, document_id: str, locale: str) -> Document | None:
        return self._variants.get(document_id, {}).get(canonical_locale(locale))

    def variants(self, document_id: str) -> list[Document]:
        variants = self._variants.get(document_id, {})
        return [variants[locale] for locale in sorted(variants)]

    def locales(self, document_id: str | None = None) -> list[str]:
        if document_id is not None:
            return sorted(self._variants.get(document_id, {}))
        return sorted({locale for variants in self._variants.values() for locale in variants})

    def ids(self) -> list[str]:
        return sorted(self._variants)

    def documents(self) -> list[Document]:
        return [document for document_id in self.ids() for document in self.variants(document_id)]

    def slug_index(self) -> dict[str, str]:
        index: dict[str, str] = {}
        for document in self.documents():
            index.setdefault(document.slug, document.id)
        return index

    def __contains__(self, document_id: object) -> bool:
        return document_id in self._variants

    def __iter__(self) -> Iterator[Document]:
        return iter(self.documents())

    def __len__(self) -> int:
        return sum(len(variants) for variants in self._variants.values())
