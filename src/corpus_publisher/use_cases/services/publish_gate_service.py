from __future__ import annotations

import json
from typing import Any

from deepeval import assert_test
from deepeval.metrics import BaseMetric
from deepeval.test_case import LLMTestCase

from ...config.publish_gate_config import PublishGateConfig
from ...infrastructure.io import read_json, read_jsonl, write_json


class ThresholdMetric(BaseMetric):
    def __init__(
        self,
        name: str,
        actual: float,
        *,
        max_allowed: float | None = None,
        min_required: float | None = None,
    ) -> None:
        self._metric_name = name
        self.actual = float(actual)
        self.max_allowed = max_allowed
        self.min_required = min_required
        self.threshold = 1.0
        self.score: float | None = None
        self.success: bool | None = None
        self.reason: str | None = None
        self.error = None
        self.async_mode = False
        self.evaluation_model = "deterministic"
        self.verbose_mode = False

    def measure(self, test_case: LLMTestCase, *args, **kwargs) -> float:  # noqa: ARG002
        self.success = True
        if self.max_allowed is not None and self.actual > self.max_allowed:
            self.success = False
        if self.min_required is not None and self.actual < self.min_required:
            self.success = False
        self.score = 1.0 if self.success else 0.0
        self.reason = f"actual={self.actual} max_allowed={self.max_allowed} min_required={self.min_required}"
        return self.score

    async def a_measure(self, test_case: LLMTestCase, *args, **kwargs) -> float:  # noqa: ARG002
        return self.measure(test_case)

    def is_successful(self) -> bool:
        return bool(self.success)

    @property
    def __name__(self) -> str:
        return self._metric_name


class PublishGateService:
    """Runs deterministic publish checks and reports them through DeepEval."""

    def run(self, config: PublishGateConfig) -> dict[str, Any]:
        eval_report = read_json(config.eval_report_path)
        documents = read_jsonl(config.artifacts_dir / "documents.jsonl")
        references = read_jsonl(config.artifacts_dir / "references.jsonl")

        dangling = sum(1 for row in references if row.get("status") == "dangling")
        dangling_pct = self._pct(dangling, len(references))
        missing_description = sum(1 for row in documents if not row.get("description_from_front_matter"))
        missing_description_pct = self._pct(missing_description, len(documents))
        failed_document_pct = float(eval_report["build_metrics"]["failed_document_pct"])
        locale_coverage_pct = float(eval_report["locale_metrics"]["full_coverage_pct"])

        checks = [
            {
                "name": "dangling_reference_pct",
                "actual": dangling_pct,
                "expected_max": config.max_dangling_pct,
                "passed": dangling_pct <= config.max_dangling_pct,
            },
            {
                "name": "failed_document_pct",
                "actual": failed_document_pct,
                "expected_max": config.max_failed_document_pct,
                "passed": failed_document_pct <= config.max_failed_document_pct,
            },
            {
                "name": "missing_description_pct",
                "actual": missing_description_pct,
                "expected_max": config.max_missing_description_pct,
                "passed": missing_description_pct <= config.max_missing_description_pct,
            },
            {
                "name": "locale_coverage_pct",
                "actual": locale_coverage_pct,
                "expected_min": config.min_locale_coverage_pct,
                "passed": locale_coverage_pct >= config.min_locale_coverage_pct,
            },
        ]

        report = {
            "summary": {
                "documents": len(documents),
                "references": len(references),
                "eval_report_overall_status": eval_report.get("summary", {}).get("overall_status"),
                "gates_passed": all(check["passed"] for check in checks),
            },
            "metrics": {
                "dangling_reference_pct": dangling_pct,
                "failed_document_pct": failed_document_pct,
                "missing_description_pct": missing_description_pct,
                "locale_coverage_pct": locale_coverage_pct,
            },
            "checks": checks,
        }
        write_json(config.output_json, report)

        test_case = LLMTestCase(
            input="corpus publish gates",
            actual_output=json.dumps({"checks": checks}),
            expected_output="all checks must pass",
        )
        metrics = [
            ThresholdMetric(
                check["name"],
                check["actual"],
                max_allowed=check.get("expected_max"),
                min_required=check.get("expected_min"),
            )
            for check in checks
        ]
        assert_test(test_case, metrics, run_async=False)
        return report

    @staticmethod
    def _pct(part: int, total: int) -> float:
        if total <= 0:
            return 0.0
        return round((part / total) * 100.0, 2)
