from __future__ import annotations

import argparse
import sys
from pathlib import Path

from ..config import PublishGateConfig
from ..use_cases.publish_gates import run_publish_gates


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run deterministic DeepEval publish gates for a corpus build.")
    parser.add_argument("--artifacts-dir", type=Path, default=Path("site"))
    parser.add_argument("--eval-report", type=Path, default=Path("site/eval_report.json"))
    parser.add_argument("--output-json", type=Path, default=Path("site/publish_gate_report.json"))
    parser.add_argument("--max-dangling-pct", type=float, default=0.0)
    parser.add_argument("--max-failed-document-pct", type=float, default=0.0)
    parser.add_argument("--max-missing-description-pct", type=float, default=0.0)
    parser.add_argument("--min-locale-coverage-pct", type=float, default=50.0)
    parser.add_argument("--fail-on-threshold", action="store_true")
    return parser


def main() -> None:
    args = build_parser().parse_args()
    config = PublishGateConfig(
        artifacts_dir=args.artifacts_dir,
        eval_report_path=args.eval_report,
        output_json=args.output_json,
        max_dangling_pct=args.max_dangling_pct,
        max_failed_document_pct=args.max_failed_document_pct,
        max_missing_description_pct=args.max_missing_description_pct,
        min_locale_coverage_pct=args.min_locale_coverage_pct,
    )
    try:
        report = run_publish_gates(config)
    except AssertionError as exc:
        print(f"Publish gates failed: {exc}")
        if args.fail_on_threshold:
            sys.exit(2)
        return

    print(f"Publish gates passed: {report['summary']['gates_passed']}")
    print(f"Dangling reference pct: {report['metrics']['dangling_reference_pct']}")
    print(f"Failed document pct: {report['metrics']['failed_document_pct']}")
    print(f"Missing description pct: {report['metrics']['missing_description_pct']}")
    print(f"Locale coverage pct: {report['metrics']['locale_coverage_pct']}")
    print(f"JSON report: {config.output_json}")


if __name__ == "__main__":
    main()
