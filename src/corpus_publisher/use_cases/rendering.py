from __future__ import annotations

from typing import Sequence

from ..domain.models import Block, RenderedPage
from .services.html_renderer_service import HtmlRendererService

_DEFAULT_SERVICE = HtmlRendererService()


def render_blocks(
    blocks: Sequence[Block],
    *,
    theme: str = "default",
    document_id: str | None = None,
    locale: str | None = None,
) -> RenderedPage:
    service = _DEFAULT_SERVICE if theme == _DEFAULT_SERVICE.theme else HtmlRendererService(theme=theme)
    return service.render(blocks, document_id=document_id, locale=locale)
