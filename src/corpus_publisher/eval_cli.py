from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import EvalConfig
from .use_cases.evaluator import run_evaluation


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Evaluate locale coverage and link integrity from build artifacts.")
    parser.add_argument(
        "--artifacts-dir",
        type=Path,
        default=Path("site"),
        help="Directory containing documents.jsonl, references.jsonl, and run_manifest.json",
    )
    parser.add_argument(
        "--output-json",
        type=Path,
        default=Path("site/eval_report.json"),
        help="Output JSON report path",
    )
    parser.add_argument(
        "--output-md",
        type=Path,
        default=Path("site/eval_report.md"),
        help="Output Markdown report path",
    )
    parser.add_argument("--max-dangling-pct", type=float, default=5.0)
    parser.add_argument("--min-locale-coverage-pct", type=float, default=80.0)
    parser.add_argument("--sample-size", type=int, default=8)
    parser.add_argument(
        "--fail-on-threshold",
        action="store_true",
        help="Exit with code 2 when a threshold is not met",
    )
    return parser


def main() -> None:
    args = build_parser().parse_args()
    config = EvalConfig(
        artifacts_dir=args.artifacts_dir,
        output_json=args.output_json,
        output_md=args.output_md,
        sample_size=args.sample_size,
        max_dangling_pct=args.max_dangling_pct,
        min_locale_coverage_pct=args.min_locale_coverage_pct,
    )
    report = run_evaluation(config)
    summary = report["summary"]
    passed = summary["passes_dangling_threshold"] and summary["passes_coverage_threshold"]
    print(f"Overall score: {summary['score']} ({summary['overall_status']})")
    print(f"Documents: {summary['documents']}")
    print(f"Dangling references: {report['reference_metrics']['dangling']}")
    print(f"Full locale coverage: {report['locale_metrics']['full_coverage_pct']}%")
    print(f"JSON report: {config.output_json}")
    print(f"Markdown report: {config.output_md}")
    if args.fail_on_threshold and not passed:
        sys.exit(2)


if __name__ == "__main__":
    main()
