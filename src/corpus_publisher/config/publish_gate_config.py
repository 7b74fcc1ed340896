from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass
class PublishGateConfig:
    """Configuration for deterministic DeepEval publish gates."""

    artifacts_dir: Path
    eval_report_path: Path
    output_json: Path
    max_dangling_pct: float = 0.0
    max_failed_document_pct: float = 0.0
    max_missing_description_pct: float = 0.0
    min_locale_coverage_pct: float = 50.0
