from __future__ import annotations

from ..config.eval_config import EvalConfig
from .services.corpus_evaluation_service import CorpusEvaluationService

_DEFAULT_SERVICE = CorpusEvaluationService()


def evaluate_artifacts(config: EvalConfig) -> dict:
    return _DEFAULT_SERVICE.evaluate_artifacts(config)


def render_markdown_report(report: dict) -> str:
    return _DEFAULT_SERVICE.render_markdown_report(report)


def run_evaluation(config: EvalConfig) -> dict:
    return _DEFAULT_SERVICE.run(config)
