from .io import (
    discover_content_files,
    load_document,
    parse_content_unit,
    read_json,
    read_jsonl,
    read_text,
    split_front_matter,
    write_json,
    write_jsonl,
    write_text,
)

__all__ = [
    "discover_content_files",
    "load_document",
    "parse_content_unit",
    "read_json",
    "read_jsonl",
    "read_text",
    "split_front_matter",
    "write_json",
    "write_jsonl",
    "write_text",
]
