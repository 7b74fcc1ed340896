from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass
class PipelineConfig:
    """Runtime configuration for a corpus build.

    Only primitive and path fields are kept here so that the same object can
    be echoed into the run manifest without custom serialization.
    """

    input_dir: Path
    output_dir: Path
    default_locale: str | None = "en-US"
    theme: str = "default"
    css_class: str = "highlight"
    internal_link_prefix: str = "/"
    fail_on_dangling: bool = False
    fail_fast: bool = False
    extensions: tuple[str, ...] = (".md", ".mdx")
    tokenizer_encoding: str = "cl100k_base"
