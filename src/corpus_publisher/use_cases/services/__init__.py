"""Service layer: one class per pipeline stage.

The DeepEval-backed publish gate service is imported from its own module so
that building a corpus does not import DeepEval.
"""

from .corpus_evaluation_service import CorpusEvaluationService
from .html_renderer_service import HtmlRendererService
from .markdown_parser_service import MarkdownParserService
from .reference_resolver_service import ReferenceResolverService

__all__ = [
    "CorpusEvaluationService",
    "HtmlRendererService",
    "MarkdownParserService",
    "ReferenceResolverService",
]
