from .errors import (
    DanglingReferenceError,
    DanglingReferenceWarning,
    DuplicateDocumentError,
    FrontMatterError,
    MalformedBlockError,
    NoVariantError,
    PublishError,
)
from .models import Block, CrossReference, Document, Link, RenderedPage, ResolutionReport

__all__ = [
    "Block",
    "CrossReference",
    "DanglingReferenceError",
    "DanglingReferenceWarning",
    "Document",
    "DuplicateDocumentError",
    "FrontMatterError",
    "Link",
    "MalformedBlockError",
    "NoVariantError",
    "PublishError",
    "RenderedPage",
    "ResolutionReport",
]
