import warnings

import pytest

from corpus_publisher import (
    DanglingReferenceError,
    DanglingReferenceWarning,
    Document,
    build_slug_index,
    emit_warnings,
    parse_body,
    raise_for_dangling,
    resolve_references,
)
from corpus_publisher.infrastructure.io import parse_content_unit


def _doc(doc_id, body, locale="en-US", slug=None):
    return Document(
        id=doc_id,
        locale=locale,
        title=doc_id,
        description="",
        slug=slug or f"/{doc_id}",
        body=body,
    )


def _parsed(*documents):
    return [(document, parse_body(document.body)) for document in documents]


def test_dangling_link_reported_once_per_source_target_pair():
    source = _doc(
        "questions/react-forms",
        "See [missing](/questions/does-not-exist) and [again](/questions/does-not-exist#top).",
    )
    parsed = _parsed(source)
    report = resolve_references(parsed, build_slug_index([source]))
    dangling = report.dangling
    assert len(dangling) == 1
    assert dangling[0].source_id == "questions/react-forms"
    assert dangling[0].target_slug == "/questions/does-not-exist"
    assert report.to_rows() == [
        {
            "sourceId": "questions/react-forms",
            "targetSlug": "/questions/does-not-exist",
            "status": "dangling",
            "locales": ["en-US"],
        }
    ]


def test_resolved_links_and_external_links():
    forms = _doc("questions/react-forms", "Go to [hooks](/questions/hooks/?tab=1) or [MDN](https://developer.mozilla.org).")
    hooks = _doc("questions/hooks", "Back to [forms](/questions/react-forms).")
    report = resolve_references(_parsed(forms, hooks), build_slug_index([forms, hooks]))
    assert [(ref.source_id, ref.target_slug, ref.status) for ref in report.references] == [
        ("questions/hooks", "/questions/react-forms", "resolved"),
        ("questions/react-forms", "/questions/hooks", "resolved"),
    ]
    assert report.dangling == []


def test_protocol_relative_and_relative_links_are_not_internal():
    document = _doc("a", "[cdn](//cdn.example.com/x.js) [rel](../b) [anchor](#c)")
    report = resolve_references(_parsed(document), build_slug_index([document]))
    assert report.references == ()


def test_locale_variants_of_one_id_share_a_single_entry():
    en = _doc("guide", "[x](/missing)", locale="en-US", slug="/guide")
    zh = _doc("guide", "[x](/missing)", locale="zh-CN", slug="/guide")
    report = resolve_references(_parsed(en, zh), build_slug_index([en, zh]))
    assert len(report.references) == 1
    assert report.references[0].locales == ("en-US", "zh-CN")


def test_resolution_is_monotonic_under_slug_index_growth():
    source = _doc("a", "[b](/b) [c](/c) [d](/d)")
    parsed = _parsed(source)
    index = build_slug_index([source])
    before = {ref.target_slug: ref.status for ref in resolve_references(parsed, index).references}
    grown = dict(index)
    grown["/c"] = "c"
    after = {ref.target_slug: ref.status for ref in resolve_references(parsed, grown).references}
    for slug, status in before.items():
        if status == "resolved":
            assert after[slug] == "resolved"
    assert before["/c"] == "dangling"
    assert after["/c"] == "resolved"


def test_links_inside_tables_lists_and_percent_encoding():
    body = (
        "| Topic | Link |\n"
        "| --- | --- |\n"
        "| Forms | [go](/questions/%E8%A1%A8%E5%8D%95) |\n"
        "\n"
        "- item with [hooks](/questions/hooks)\n"
    )
    source = _doc("index", body)
    target = _doc("questions/表单", "", slug="/questions/表单")
    report = resolve_references(_parsed(source, target), build_slug_index([source, target]))
    statuses = {ref.target_slug: ref.status for ref in report.references}
    assert statuses == {"/questions/表单": "resolved", "/questions/hooks": "dangling"}


def test_emit_warnings_issues_one_warning_per_dangling_pair():
    source = _doc("a", "[x](/x) [x again](/x) [y](/y)")
    report = resolve_references(_parsed(source), build_slug_index([source]))
    with pytest.warns(DanglingReferenceWarning) as record:
        count = emit_warnings(report)
    assert count == 2
    assert len(record) == 2


def test_emit_warnings_is_silent_without_dangling_links():
    source = _doc("a", "[self](/a)")
    report = resolve_references(_parsed(source), build_slug_index([source]))
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        assert emit_warnings(report) == 0
    raise_for_dangling(report)


def test_raise_for_dangling_escalates():
    source = _doc("a", "[x](/questions/does-not-exist)")
    report = resolve_references(_parsed(source), build_slug_index([source]))
    with pytest.raises(DanglingReferenceError) as excinfo:
        raise_for_dangling(report)
    assert excinfo.value.pairs == [("a", "/questions/does-not-exist")]


def test_custom_internal_prefix():
    source = _doc("a", "[x](/questions/x) [y](/other/y)")
    report = resolve_references(_parsed(source), build_slug_index([source]), internal_prefix="/questions/")
    assert [ref.target_slug for ref in report.references] == ["/questions/x"]


def test_percent_encoded_front_matter_slug_matches_encoded_link():
    target = parse_content_unit(
        "---\nslug: /questions/%E8%A1%A8%E5%8D%95/\n---\n# 表单\n",
        document_id="questions/forms-zh",
        locale="zh-CN",
    )
    source = _doc("index", "[go](/questions/%E8%A1%A8%E5%8D%95) [raw](/questions/表单)")
    report = resolve_references(_parsed(source, target), build_slug_index([source, target]))
    assert report.to_rows() == [
        {"sourceId": "index", "targetSlug": "/questions/表单", "status": "resolved", "locales": ["en-US"]}
    ]


def test_repeated_builds_each_emit_their_warnings():
    source = _doc("a", "[x](/x)")
    report = resolve_references(_parsed(source), build_slug_index([source]))
    with warnings.catch_warnings(record=True) as record:
        warnings.simplefilter("default")
        emit_warnings(report)
        emit_warnings(report)
    assert [warning.category for warning in record] == [DanglingReferenceWarning, DanglingReferenceWarning]
