from __future__ import annotations

import json
from pathlib import Path

from harvester.output_writer import (
    merge_identifiers,
    parse_js_listing,
    read_identifiers,
    render_js_listing,
    write_identifiers,
    write_single,
)


def test_js_listing_format() -> None:
    assert render_js_listing(["a", "b"]) == 'const users = [\n    "a",\n    "b"\n];\n\nmodule.exports = users;'


def test_js_listing_escapes_quotes() -> None:
    text = render_js_listing(['say "hi"'])

    assert '"say \\"hi\\""' in text
    assert parse_js_listing(text) == ['say "hi"']


def test_merge_is_union_and_reports_added(tmp_path: Path) -> None:
    target = tmp_path / "users.js"
    write_identifiers(target, ["a", "b"])

    report = merge_identifiers(target, ["b", "c"])

    assert read_identifiers(target) == ["a", "b", "c"]
    assert report.total == 3
    assert report.added == 1


def test_merge_twice_is_a_no_op(tmp_path: Path) -> None:
    target = tmp_path / "users.json"
    merge_identifiers(target, ["a", "b"])
    before = target.read_text()

    report = merge_identifiers(target, ["b", "a"])

    assert report.added == 0
    assert target.read_text() == before


def test_json_target_uses_two_space_indent(tmp_path: Path) -> None:
    target = tmp_path / "out.json"
    write_identifiers(target, ["a"])

    assert target.read_text() == '[\n  "a"\n]'


def test_unreadable_file_is_treated_as_empty(tmp_path: Path) -> None:
    target = tmp_path / "users.js"
    target.write_text("this is not a listing")

    report = merge_identifiers(target, ["x"])

    assert report.added == 1
    assert read_identifiers(target) == ["x"]


def test_missing_file_reads_empty(tmp_path: Path) -> None:
    assert read_identifiers(tmp_path / "nope.json") == []


def test_write_single(tmp_path: Path) -> None:
    target = write_single(tmp_path / "one.json", "hello")

    assert json.loads(target.read_text()) == {"content": "hello"}
