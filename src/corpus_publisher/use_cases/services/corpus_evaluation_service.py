from __future__ import annotations

import json
import statistics
from collections import Counter
from typing import Any

from ...config.eval_config import EvalConfig
from ...infrastructure.io import read_jsonl, write_json, write_text


class CorpusEvaluationService:
    """Builds a quality report from the artifacts of a corpus build."""

    @staticmethod
    def _pct(part: int, total: int) -> float:
        if total <= 0:
            return 0.0
        return round((part / total) * 100.0, 2)

    @staticmethod
    def _p95(values: list[int]) -> float:
        if not values:
            return 0.0
        ordered = sorted(values)
        idx = max(0, int(0.95 * len(ordered)) - 1)
        return float(ordered[idx])

    @staticmethod
    def _safe_median(values: list[int]) -> float:
        if not values:
            return 0.0
        return float(statistics.median(values))

    @staticmethod
    def _dimension_status(score: float) -> str:
        if score >= 90:
            return "excellent"
        if score >= 75:
            return "good"
        if score >= 60:
            return "warning"
        return "critical"

    def evaluate_artifacts(self, config: EvalConfig) -> dict[str, Any]:
        documents = read_jsonl(config.artifacts_dir / "documents.jsonl")
        references = read_jsonl(config.artifacts_dir / "references.jsonl")
        manifest_path = config.artifacts_dir / "run_manifest.json"
        manifest = json.loads(manifest_path.read_text(encoding="utf-8")) if manifest_path.exists() else {}

        locales_by_id: dict[str, set[str]] = {}
        for row in documents:
            locales_by_id.setdefault(str(row.get("doc_id")), set()).add(str(row.get("locale")))
        all_locales = sorted({locale for locales in locales_by_id.values() for locale in locales})
        total_ids = len(locales_by_id)

        per_locale: dict[str, dict[str, Any]] = {}
        for locale in all_locales:
            missing = sorted(doc_id for doc_id, locales in locales_by_id.items() if locale not in locales)
            per_locale[locale] = {
                "documents": total_ids - len(missing),
                "coverage_pct": self._pct(total_ids - len(missing), total_ids),
                "missing_ids": missing[: config.sample_size],
            }
        fully_covered = sum(1 for locales in locales_by_id.values() if len(locales) == len(all_locales))
        full_coverage_pct = self._pct(fully_covered, total_ids)

        dangling = [row for row in references if row.get("status") == "dangling"]
        dangling_pct = self._pct(len(dangling), len(references))

        errors = manifest.get("errors", [])
        failed_document_pct = self._pct(len(errors), len(documents) + len(errors))

        missing_description = [row for row in documents if not row.get("description_from_front_matter")]
        missing_description_pct = self._pct(len(missing_description), len(documents))

        language_mismatches = [
            result
            for result in manifest.get("document_results", [])
            if any("content looks like" in warning for warning in result.get("warnings", []))
        ]

        tokens = [int(row.get("stats", {}).get("tokens", 0)) for row in documents]
        label_counts: Counter[str] = Counter()
        for row in documents:
            label_counts.update(row.get("fenced_labels", []))

        score = statistics.mean(
            [
                100.0 - dangling_pct,
                100.0 - failed_document_pct,
                full_coverage_pct if total_ids else 100.0,
                100.0 - missing_description_pct,
            ]
        )

        return {
            "summary": {
                "documents": len(documents),
                "ids": total_ids,
                "locales": all_locales,
                "score": round(score, 2),
                "overall_status": self._dimension_status(score),
                "passes_dangling_threshold": dangling_pct <= config.max_dangling_pct,
                "passes_coverage_threshold": full_coverage_pct >= config.min_locale_coverage_pct,
            },
            "locale_metrics": {
                "per_locale": per_locale,
                "full_coverage_pct": full_coverage_pct,
            },
            "reference_metrics": {
                "total": len(references),
                "dangling": len(dangling),
                "dangling_pct": dangling_pct,
                "dangling_samples": dangling[: config.sample_size],
            },
            "build_metrics": {
                "errors": len(errors),
                "failed_document_pct": failed_document_pct,
                "error_samples": errors[: config.sample_size],
                "missing_description_pct": missing_description_pct,
                "language_mismatches": len(language_mismatches),
            },
            "content_metrics": {
                "token_stats": {
                    "total": sum(tokens),
                    "median": self._safe_median(tokens),
                    "p95": self._p95(tokens),
                },
                "fenced_labels": dict(sorted(label_counts.items())),
            },
        }

    def render_markdown_report(self, report: dict[str, Any]) -> str:
        summary = report["summary"]
        lines = [
            "# Corpus evaluation report",
            "",
            f"- Status: **{summary['overall_status']}** (score {summary['score']})",
            f"- Documents: {summary['documents']} across {summary['ids']} ids",
            f"- Locales: {', '.join(summary['locales']) or 'none'}",
            "",
            "## Locale coverage",
            "",
            "| Locale | Documents | Coverage % |",
            "| --- | ---: | ---: |",
        ]
        for locale, metrics in report["locale_metrics"]["per_locale"].items():
            lines.append(f"| {locale} | {metrics['documents']} | {metrics['coverage_pct']} |")
        refs = report["reference_metrics"]
        lines.extend(
            [
                "",
                "## References",
                "",
                f"- Total: {refs['total']}",
                f"- Dangling: {refs['dangling']} ({refs['dangling_pct']}%)",
            ]
        )
        for row in refs["dangling_samples"]:
            lines.append(f"  - `{row.get('sourceId')}` -> `{row.get('targetSlug')}`")
        build = report["build_metrics"]
        lines.extend(
            [
                "",
                "## Build",
                "",
                f"- Errors: {build['errors']} ({build['failed_document_pct']}%)",
                f"- Missing front-matter description: {build['missing_description_pct']}%",
                f"- Locale/content mismatches: {build['language_mismatches']}",
                "",
            ]
        )
        return "\n".join(lines)

    def run(self, config: EvalConfig) -> dict[str, Any]:
        report = self.evaluate_artifacts(config)
        write_json(config.output_json, report)
        write_text(config.output_md, self.render_markdown_report(report))
        return report
