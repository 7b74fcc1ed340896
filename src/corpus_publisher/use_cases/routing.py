from __future__ import annotations

from ..domain.errors import NoVariantError
from ..domain.models import Document
from .store import DocumentStore, canonical_locale


class LocaleRouter:
    """Selects the document variant to serve for a requested locale.

    The exact variant wins; otherwise the fallback locale's variant is used.
    Variants are never merged across locales.
    """

    def __init__(self, store: DocumentStore, fallback_locale: str | None = "en-US") -> None:
        self.store = store
        self.fallback_locale = canonical_locale(fallback_locale) if fallback_locale else None

    def route(self, document_id: str, locale: str) -> Document:
        document = self.store.get(document_id, locale)
        if document is not None:
            return document
        if self.fallback_locale is not None:
            document = self.store.get(document_id, self.fallback_locale)
            if document is not None:
                return document
        raise NoVariantError(document_id, locale, self.fallback_locale)

    def available_locales(self, document_id: str) -> list[str]:
        return self.store.locales(document_id)

    def is_fallback(self, document_id: str, locale: str) -> bool:
        self.route(document_id, locale)
        return self.store.get(document_id, locale) is None
