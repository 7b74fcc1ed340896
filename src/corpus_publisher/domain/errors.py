from __future__ import annotations


class PublishError(Exception):
    """Base class for per-document and per-request publishing failures."""


class FrontMatterError(PublishError, ValueError):
    pass


class DuplicateDocumentError(PublishError, ValueError):
    def __init__(self, document_id: str, locale: str) -> None:
        super().__init__(f"Duplicate document variant: id={document_id!r} locale={locale!r}")
        self.document_id = document_id
        self.locale = locale


class MalformedBlockError(PublishError, ValueError):
    """Raised when a fenced region is still open at end of input."""

    def __init__(self, message: str, *, line: int | None = None) -> None:
        super().__init__(message if line is None else f"{message} (line {line})")
        self.line = line


class NoVariantError(PublishError, LookupError):
    def __init__(self, document_id: str, locale: str, fallback_locale: str | None) -> None:
        super().__init__(
            f"No variant of {document_id!r} for locale {locale!r} (fallback: {fallback_locale!r})"
        )
        self.document_id = document_id
        self.locale = locale
        self.fallback_locale = fallback_locale


class DanglingReferenceWarning(UserWarning):
    pass


class DanglingReferenceError(PublishError):
    def __init__(self, pairs: list[tuple[str, str]]) -> None:
        listed = ", ".join(f"{source} -> {target}" for source, target in pairs)
        super().__init__(f"{len(pairs)} dangling reference(s): {listed}")
        self.pairs = pairs
