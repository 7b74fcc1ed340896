from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import PipelineConfig
from .domain.errors import DanglingReferenceError
from .pipeline import run_pipeline


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Build a localized Markdown/MDX article corpus into HTML pages")
    parser.add_argument("--input-dir", type=Path, required=True, help="Content root with one directory per locale")
    parser.add_argument("--output-dir", type=Path, required=True, help="Path to output artifacts directory")
    parser.add_argument("--default-locale", type=str, default="en-US", help="Fallback locale for routing")
    parser.add_argument("--theme", type=str, default="default", help="Pygments style used for fenced examples")
    parser.add_argument("--internal-link-prefix", type=str, default="/")
    parser.add_argument(
        "--fail-on-dangling",
        action="store_true",
        help="Exit with an error when any internal link does not resolve",
    )
    parser.add_argument("--fail-fast", action="store_true", help="Stop immediately if a document fails processing")
    return parser


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()
    config = PipelineConfig(
        input_dir=args.input_dir,
        output_dir=args.output_dir,
        default_locale=args.default_locale,
        theme=args.theme,
        internal_link_prefix=args.internal_link_prefix,
        fail_on_dangling=args.fail_on_dangling,
        fail_fast=args.fail_fast,
    )
    try:
        manifest = run_pipeline(config)
    except DanglingReferenceError as exc:
        print(f"Build failed: {exc}")
        sys.exit(2)
    print(f"Processed documents: {manifest['documents']}")
    print(f"Rendered pages: {manifest['pages']}")
    print(f"Dangling references: {manifest['references']['dangling']}")
    if manifest["errors"]:
        print(f"Errors: {len(manifest['errors'])}")


if __name__ == "__main__":
    main()
