import json
import sys

import pytest

from corpus_publisher import (
    DanglingReferenceError,
    DanglingReferenceWarning,
    MalformedBlockError,
    PipelineConfig,
    render_page,
    run_pipeline,
)
from corpus_publisher.pipeline import load_store

ZH_PROSE = "受控组件把输入框的值保存在状态中并在每次变化时更新它这样表单数据始终与界面保持一致。"


def _read_jsonl(path):
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines() if line.strip()]


def _write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


@pytest.fixture(autouse=True)
def _word_tokens(monkeypatch):
    monkeypatch.setattr(
        "corpus_publisher.use_cases.metadata.count_tokens",
        lambda text, _name="cl100k_base": len(text.split()),
    )


def _build_corpus(root):
    _write(
        root / "en-US" / "questions" / "react-forms.md",
        "---\n"
        "title: React forms\n"
        "description: Controlled and uncontrolled inputs\n"
        "---\n"
        "# React forms\n\n"
        "Prefer controlled inputs. See [hooks](/questions/hooks) and [old](/questions/does-not-exist).\n\n"
        "```jsx\n<input value={value} onChange={onChange} />\n```\n",
    )
    _write(
        root / "zh-CN" / "questions" / "react-forms.md",
        "---\ntitle: React 表单\ndescription: 受控与非受控组件\n---\n"
        f"# React 表单\n\n{ZH_PROSE}\n\n[钩子](/questions/hooks)\n",
    )
    _write(
        root / "en-US" / "questions" / "hooks.mdx",
        "---\ntitle: Hooks\n---\nHooks intro. Related: [broken](/questions/broken).\n",
    )
    _write(
        root / "en-US" / "questions" / "broken.md",
        "---\ntitle: Broken\ndescription: Has an unterminated fence\n---\n# Broken\n\n```js\nconst a = 1;\n",
    )


def test_pipeline_builds_pages_and_artifacts(tmp_path):
    content = tmp_path / "content"
    output = tmp_path / "site"
    _build_corpus(content)

    with pytest.warns(DanglingReferenceWarning):
        manifest = run_pipeline(PipelineConfig(input_dir=content, output_dir=output))

    assert manifest["ids"] == 3
    assert manifest["variants"] == 4
    assert manifest["documents"] == 3
    assert manifest["pages"] == 3
    assert manifest["locales"] == {"en-US": 2, "zh-CN": 1}
    assert manifest["references"] == {"total": 3, "resolved": 1, "dangling": 2, "fail_on_dangling": False}
    assert manifest["slug_conflicts"] == []

    assert len(manifest["errors"]) == 1
    error = manifest["errors"][0]
    assert error["stage"] == "parse"
    assert error["doc_id"] == "questions/broken"
    assert error["error_type"] == "MalformedBlockError"
    assert "line 3" in error["error"]

    en_page = output / "pages" / "en-US" / "questions" / "react-forms.html"
    zh_page = output / "pages" / "zh-CN" / "questions" / "react-forms.html"
    assert en_page.exists()
    assert zh_page.exists()
    assert not (output / "pages" / "en-US" / "questions" / "broken.html").exists()
    en_html = en_page.read_text(encoding="utf-8")
    assert '<html lang="en-US">' in en_html
    assert "<title>React forms</title>" in en_html
    assert 'href="../../../assets/highlight.css"' in en_html
    assert '<h1 id="react-forms">React forms</h1>' in en_html
    assert "&lt;" in en_html
    assert "<input" not in en_html
    assert "React 表单" in zh_page.read_text(encoding="utf-8")
    assert ".highlight" in (output / "assets" / "highlight.css").read_text(encoding="utf-8")

    references = _read_jsonl(output / "references.jsonl")
    assert references == [
        {"sourceId": "questions/hooks", "targetSlug": "/questions/broken", "status": "dangling", "locales": ["en-US"]},
        {
            "sourceId": "questions/react-forms",
            "targetSlug": "/questions/hooks",
            "status": "resolved",
            "locales": ["en-US", "zh-CN"],
        },
        {
            "sourceId": "questions/react-forms",
            "targetSlug": "/questions/does-not-exist",
            "status": "dangling",
            "locales": ["en-US"],
        },
    ]

    documents = {(row["doc_id"], row["locale"]): row for row in _read_jsonl(output / "documents.jsonl")}
    hooks = documents[("questions/hooks", "en-US")]
    assert hooks["title"] == "Hooks"
    assert hooks["description"] == "Hooks intro. Related: broken."
    assert hooks["description_from_front_matter"] is False
    assert hooks["page_path"] == "pages/en-US/questions/hooks.html"
    forms = documents[("questions/react-forms", "en-US")]
    assert forms["fenced_labels"] == ["jsx"]
    assert forms["stats"]["fenced_examples"] == 1
    assert forms["stats"]["links"] == 2
    assert documents[("questions/react-forms", "zh-CN")]["language_hint"] == "zh"

    results = {(row["doc_id"], row["locale"]): row for row in manifest["document_results"]}
    assert results[("questions/hooks", "en-US")]["warnings"] == ["description missing from front-matter"]

    on_disk = json.loads((output / "run_manifest.json").read_text(encoding="utf-8"))
    assert on_disk["errors"] == manifest["errors"]


def test_pipeline_flags_locale_content_mismatch(tmp_path):
    content = tmp_path / "content"
    _write(content / "en-US" / "guide.md", f"---\ntitle: Guide\ndescription: d\n---\n{ZH_PROSE}\n")
    manifest = run_pipeline(PipelineConfig(input_dir=content, output_dir=tmp_path / "site"))
    assert manifest["document_results"][0]["warnings"] == ["content looks like 'zh' but locale is 'en-US'"]


def test_pipeline_fail_on_dangling_raises_after_writing_artifacts(tmp_path):
    content = tmp_path / "content"
    output = tmp_path / "site"
    _build_corpus(content)

    with pytest.warns(DanglingReferenceWarning), pytest.raises(DanglingReferenceError) as excinfo:
        run_pipeline(PipelineConfig(input_dir=content, output_dir=output, fail_on_dangling=True))

    assert ("questions/react-forms", "/questions/does-not-exist") in excinfo.value.pairs
    manifest = json.loads((output / "run_manifest.json").read_text(encoding="utf-8"))
    assert manifest["references"]["fail_on_dangling"] is True
    assert (output / "references.jsonl").exists()


def test_pipeline_fail_fast_propagates_first_error(tmp_path):
    content = tmp_path / "content"
    _write(content / "en-US" / "broken.md", "```js\nno close\n")
    with pytest.raises(MalformedBlockError):
        run_pipeline(PipelineConfig(input_dir=content, output_dir=tmp_path / "site", fail_fast=True))


def test_load_errors_are_isolated(tmp_path):
    content = tmp_path / "content"
    _write(content / "en-US" / "ok.md", "---\ntitle: Ok\ndescription: fine\n---\nBody.\n")
    _write(content / "en-US" / "bad.md", "---\ntitle: [unclosed\n---\nBody.\n")
    _write(content / "EN-us" / "ok.md", "Duplicate variant of ok.\n")

    store, errors = load_store(PipelineConfig(input_dir=content, output_dir=tmp_path / "site"))
    assert store.ids() == ["ok"]
    assert sorted(error["source_path"].rsplit("/", 1)[-1] for error in errors) == ["bad.md", "ok.md"]
    assert all(error["stage"] == "load" for error in errors)


def test_render_page_routes_to_fallback_variant(tmp_path):
    content = tmp_path / "content"
    _build_corpus(content)
    config = PipelineConfig(input_dir=content, output_dir=tmp_path / "site")
    store, _ = load_store(config)

    page = render_page(store, "questions/react-forms", "fr-FR", config)
    assert page.locale == "en-US"
    assert page.fragments[0] == '<h1 id="react-forms">React forms</h1>'

    zh = render_page(store, "questions/react-forms", "zh-cn", config)
    assert zh.locale == "zh-CN"
    assert zh.fragments[-1] == '<p class="link-block"><a href="/questions/hooks">钩子</a></p>'


def test_cli_exits_with_code_two_on_dangling(tmp_path, monkeypatch, capsys):
    from corpus_publisher import cli

    content = tmp_path / "content"
    _build_corpus(content)
    monkeypatch.setattr(
        sys,
        "argv",
        ["corpus-publisher", "--input-dir", str(content), "--output-dir", str(tmp_path / "site"), "--fail-on-dangling"],
    )
    with pytest.warns(DanglingReferenceWarning), pytest.raises(SystemExit) as excinfo:
        cli.main()
    assert excinfo.value.code == 2
    assert "Build failed" in capsys.readouterr().out
