from __future__ import annotations

from ..domain.models import Block
from .services.markdown_parser_service import MarkdownParserService, plain_text

# Module facade over the parser service so callers can keep a function API.
_DEFAULT_SERVICE = MarkdownParserService()


def parse_body(body: str) -> list[Block]:
    return _DEFAULT_SERVICE.parse(body)


__all__ = ["parse_body", "plain_text"]
