from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass
class EvalConfig:
    """Configuration for corpus evaluation report generation."""

    artifacts_dir: Path
    output_json: Path
    output_md: Path
    sample_size: int = 8
    max_dangling_pct: float = 5.0
    min_locale_coverage_pct: float = 80.0
