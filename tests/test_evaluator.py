import json

from corpus_publisher import EvalConfig, run_evaluation


def _write_jsonl(path, rows):
    path.write_text("".join(json.dumps(row) + "\n" for row in rows), encoding="utf-8")


def _document(doc_id, locale, *, described=True, tokens=10, labels=()):
    return {
        "doc_id": doc_id,
        "locale": locale,
        "slug": f"/{doc_id}",
        "title": doc_id,
        "description": "Desc",
        "description_from_front_matter": described,
        "stats": {"tokens": tokens},
        "fenced_labels": list(labels),
    }


def _write_artifacts(artifacts):
    artifacts.mkdir()
    _write_jsonl(
        artifacts / "documents.jsonl",
        [
            _document("d1", "en-US", tokens=10, labels=["js"]),
            _document("d1", "zh-CN", tokens=20, labels=["js", "tsx"]),
            _document("d2", "en-US", described=False, tokens=30),
        ],
    )
    _write_jsonl(
        artifacts / "references.jsonl",
        [
            {"sourceId": "d1", "targetSlug": "/d2", "status": "resolved", "locales": ["en-US"]},
            {"sourceId": "d1", "targetSlug": "/missing", "status": "dangling", "locales": ["en-US", "zh-CN"]},
            {"sourceId": "d2", "targetSlug": "/d1", "status": "resolved", "locales": ["en-US"]},
            {"sourceId": "d2", "targetSlug": "/d2", "status": "resolved", "locales": ["en-US"]},
        ],
    )
    manifest = {
        "errors": [{"stage": "parse", "doc_id": "d3", "locale": "en-US", "error": "boom"}],
        "document_results": [
            {"doc_id": "d1", "locale": "zh-CN", "warnings": ["content looks like 'en' but locale is 'zh-CN'"]},
            {"doc_id": "d2", "locale": "en-US", "warnings": ["description missing from front-matter"]},
        ],
    }
    (artifacts / "run_manifest.json").write_text(json.dumps(manifest), encoding="utf-8")


def test_evaluator_generates_reports(tmp_path):
    artifacts = tmp_path / "artifacts"
    _write_artifacts(artifacts)
    config = EvalConfig(
        artifacts_dir=artifacts,
        output_json=artifacts / "eval_report.json",
        output_md=artifacts / "eval_report.md",
    )

    report = run_evaluation(config)

    assert config.output_json.exists()
    assert config.output_md.exists()

    summary = report["summary"]
    assert summary["documents"] == 3
    assert summary["ids"] == 2
    assert summary["locales"] == ["en-US", "zh-CN"]
    assert summary["overall_status"] == "warning"
    assert 60 <= summary["score"] < 75
    assert summary["passes_dangling_threshold"] is False
    assert summary["passes_coverage_threshold"] is False

    per_locale = report["locale_metrics"]["per_locale"]
    assert per_locale["en-US"] == {"documents": 2, "coverage_pct": 100.0, "missing_ids": []}
    assert per_locale["zh-CN"] == {"documents": 1, "coverage_pct": 50.0, "missing_ids": ["d2"]}
    assert report["locale_metrics"]["full_coverage_pct"] == 50.0

    assert report["reference_metrics"]["dangling"] == 1
    assert report["reference_metrics"]["dangling_pct"] == 25.0
    assert report["build_metrics"]["errors"] == 1
    assert report["build_metrics"]["failed_document_pct"] == 25.0
    assert report["build_metrics"]["missing_description_pct"] == 33.33
    assert report["build_metrics"]["language_mismatches"] == 1
    assert report["content_metrics"]["token_stats"] == {"total": 60, "median": 20.0, "p95": 20.0}
    assert report["content_metrics"]["fenced_labels"] == {"js": 2, "tsx": 1}

    markdown = config.output_md.read_text(encoding="utf-8")
    assert "| zh-CN | 1 | 50.0 |" in markdown
    assert "`d1` -> `/missing`" in markdown


def test_evaluator_handles_empty_artifacts(tmp_path):
    artifacts = tmp_path / "artifacts"
    artifacts.mkdir()
    config = EvalConfig(
        artifacts_dir=artifacts,
        output_json=artifacts / "eval_report.json",
        output_md=artifacts / "eval_report.md",
    )
    report = run_evaluation(config)
    assert report["summary"]["documents"] == 0
    assert report["summary"]["score"] == 100.0
    assert report["summary"]["overall_status"] == "excellent"
    assert report["summary"]["passes_dangling_threshold"] is True
