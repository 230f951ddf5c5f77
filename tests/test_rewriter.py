"""Tests for localegen.rewriter."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List

import pytest

from localegen.extractor import line_start
from localegen.formatting import FormatterError, NullFormatter, SourceFormatter
from localegen.models import EditDescriptor
from localegen.rewriter import (
    SourceRewriter,
    annotation_top,
    find_doc_block,
    render_doc_block,
    sanitize_doc_lines,
)


def _edit(path: Path, source: str, literal: str, key: str, start: int = 0) -> EditDescriptor:
    offset = source.index(literal, start)
    return EditDescriptor(
        path=path,
        offset=offset,
        length=len(literal),
        replacement=key,
        anchor_offset=line_start(source, offset),
    )


def _rewrite(
    tmp_path: Path,
    source: str,
    literals: Dict[str, str],
    catalog: Dict[str, str],
    formatter: SourceFormatter | None = None,
) -> str:
    path = tmp_path / "strings.dart"
    path.write_bytes(source.encode("utf-8"))
    edits = [_edit(path, source, literal, key) for literal, key in literals.items()]
    report = SourceRewriter(formatter or NullFormatter()).rewrite(edits, catalog)
    assert report.errors == []
    return path.read_bytes().decode("utf-8")


class _BrokenFormatter(SourceFormatter):
    def format(self, path: Path, source: str) -> str:
        raise FormatterError("unexpected token")


class _RecordingFormatter(SourceFormatter):
    def __init__(self) -> None:
        self.calls: List[Path] = []

    def format(self, path: Path, source: str) -> str:
        self.calls.append(path)
        return source


def test_literal_replaced_and_doc_inserted(tmp_path: Path) -> None:
    source = 'class S extends LocaleBase {\n  String title = "Welcome";\n}\n'
    result = _rewrite(tmp_path, source, {'"Welcome"': "S_title"}, {"S_title": "Welcome"})
    assert result == 'class S extends LocaleBase {\n  /// Welcome\n  String title = "S_title";\n}\n'


@pytest.mark.parametrize(
    ("literal", "expected"),
    [
        ("'Welcome'", "'S_title'"),
        ("'''Welcome'''", "'''S_title'''"),
        ('"""Welcome"""', '"""S_title"""'),
        ("r'Welcome'", "r'S_title'"),
        ("r'''Welcome'''", "r'''S_title'''"),
    ],
)
def test_quote_style_is_preserved(tmp_path: Path, literal: str, expected: str) -> None:
    source = f"class S {{\n  String title = {literal};\n}}\n"
    result = _rewrite(tmp_path, source, {literal: "S_title"}, {"S_title": "Welcome"})
    assert f"String title = {expected};" in result


def test_doc_goes_above_annotations(tmp_path: Path) -> None:
    source = "class S {\n  @override\n  @visibleForTesting\n  String title = 'Hi';\n}\n"
    result = _rewrite(tmp_path, source, {"'Hi'": "S_title"}, {"S_title": "Hi"})
    assert result == (
        "class S {\n  /// Hi\n  @override\n  @visibleForTesting\n  String title = 'S_title';\n}\n"
    )


def test_doc_goes_above_multiline_annotation(tmp_path: Path) -> None:
    source = (
        "class S {\n"
        "  @Deprecated(\n"
        "    'use other',\n"
        "  )\n"
        "  String title = 'Hi';\n"
        "}\n"
    )
    result = _rewrite(tmp_path, source, {"'Hi'": "S_title"}, {"S_title": "Hi"})
    assert result.startswith("class S {\n  /// Hi\n  @Deprecated(\n")
    assert "String title = 'S_title';" in result


def test_existing_doc_block_is_replaced(tmp_path: Path) -> None:
    source = "class S {\n  /// Old text\n  /// second line\n  String title = 'S_title';\n}\n"
    result = _rewrite(tmp_path, source, {"'S_title'": "S_title"}, {"S_title": "欢迎"})
    assert result == "class S {\n  /// 欢迎\n  String title = 'S_title';\n}\n"


def test_doc_block_above_annotation_is_replaced(tmp_path: Path) -> None:
    source = "class S {\n  /// Old\n  @override\n  String title = 'S_title';\n}\n"
    result = _rewrite(tmp_path, source, {"'S_title'": "S_title"}, {"S_title": "New"})
    assert result == "class S {\n  /// New\n  @override\n  String title = 'S_title';\n}\n"


def test_empty_value_removes_doc_block(tmp_path: Path) -> None:
    source = "class S {\n  /// Stale\n  String title = 'S_title';\n}\n"
    result = _rewrite(tmp_path, source, {"'S_title'": "S_title"}, {"S_title": ""})
    assert result == "class S {\n  String title = 'S_title';\n}\n"


def test_empty_value_without_doc_only_replaces_literal(tmp_path: Path) -> None:
    source = "class S {\n  String title = '';\n}\n"
    result = _rewrite(tmp_path, source, {"''": "S_title"}, {"S_title": ""})
    assert result == "class S {\n  String title = 'S_title';\n}\n"


def test_previous_member_is_not_mistaken_for_doc(tmp_path: Path) -> None:
    source = "class S {\n  int x = 1;\n  String title = 'Hi';\n}\n"
    result = _rewrite(tmp_path, source, {"'Hi'": "S_title"}, {"S_title": "Hi"})
    assert "  int x = 1;\n  /// Hi\n  String title" in result


def test_crlf_line_endings_are_preserved(tmp_path: Path) -> None:
    source = "class S {\r\n  String title = 'Hi';\r\n}\r\n"
    result = _rewrite(tmp_path, source, {"'Hi'": "S_title"}, {"S_title": "Line one\nLine two"})
    assert result == "class S {\r\n  /// Line one\r\n  /// Line two\r\n  String title = 'S_title';\r\n}\r\n"


def test_variables_on_one_line_share_doc_block(tmp_path: Path) -> None:
    source = "class S {\n  String a = 'A', b = 'B';\n}\n"
    result = _rewrite(
        tmp_path,
        source,
        {"'A'": "S_a", "'B'": "S_b"},
        {"S_a": "A", "S_b": "B"},
    )
    assert result == "class S {\n  /// A\n  /// B\n  String a = 'S_a', b = 'S_b';\n}\n"


def test_second_pass_changes_nothing(tmp_path: Path) -> None:
    source = "class S {\n  /// Hi\n  String title = 'S_title';\n}\n"
    path = tmp_path / "strings.dart"
    path.write_text(source, encoding="utf-8")
    formatter = _RecordingFormatter()
    report = SourceRewriter(formatter).rewrite(
        [_edit(path, source, "'S_title'", "S_title")], {"S_title": "Hi"}
    )
    assert report.rewritten == []
    assert formatter.calls == []
    assert path.read_text(encoding="utf-8") == source


def test_formatter_failure_leaves_file_untouched(tmp_path: Path) -> None:
    source = "class S {\n  String title = 'Hi';\n}\n"
    path = tmp_path / "strings.dart"
    path.write_text(source, encoding="utf-8")
    report = SourceRewriter(_BrokenFormatter()).rewrite(
        [_edit(path, source, "'Hi'", "S_title")], {"S_title": "Hi"}
    )
    assert report.rewritten == []
    assert [(error.path, error.stage) for error in report.errors] == [(path, "format")]
    assert path.read_text(encoding="utf-8") == source


def test_dry_run_reports_without_writing(tmp_path: Path) -> None:
    source = "class S {\n  String title = 'Hi';\n}\n"
    path = tmp_path / "strings.dart"
    path.write_text(source, encoding="utf-8")
    report = SourceRewriter(NullFormatter(), dry_run=True).rewrite(
        [_edit(path, source, "'Hi'", "S_title")], {"S_title": "Hi"}
    )
    assert report.rewritten == [path]
    assert path.read_text(encoding="utf-8") == source


def test_sources_mapping_is_used_instead_of_disk(tmp_path: Path) -> None:
    source = "class S {\n  String title = 'Hi';\n}\n"
    path = tmp_path / "strings.dart"
    report = SourceRewriter(NullFormatter()).rewrite(
        [_edit(path, source, "'Hi'", "S_title")], {"S_title": "Hi"}, sources={path: source}
    )
    assert report.rewritten == [path]
    assert path.read_text(encoding="utf-8") == "class S {\n  /// Hi\n  String title = 'S_title';\n}\n"


def test_unreadable_file_is_reported(tmp_path: Path) -> None:
    path = tmp_path / "missing.dart"
    edit = EditDescriptor(path=path, offset=0, length=4, replacement="S_x", anchor_offset=0)
    report = SourceRewriter(NullFormatter()).rewrite([edit], {"S_x": "x"})
    assert [error.stage for error in report.errors] == ["read"]


def test_sanitize_doc_lines_escapes_control_characters() -> None:
    assert sanitize_doc_lines("a\tb\x07c") == ["a  b\\u0007c"]
    assert sanitize_doc_lines("one\r\ntwo\rthree\u2028four") == ["one", "two", "three", "four"]
    assert sanitize_doc_lines("bell\bform\f") == ["bell\\bform\\f"]


def test_render_doc_block_uses_bare_marker_for_blank_lines() -> None:
    assert render_doc_block("a\n\nb ", "  ", "\n") == "  /// a\n  ///\n  /// b\n"


def test_find_doc_block_and_annotation_top() -> None:
    source = "class S {\n  /// Doc\n  @override\n  String x = 'x';\n}\n"
    anchor = source.index("  String")
    top = annotation_top(source, anchor, "  ")
    assert top == source.index("  @override")
    assert find_doc_block(source, top, "  ") == (source.index("  /// Doc"), top)
    assert find_doc_block(source, anchor, "  ") is None


def test_inline_annotated_member_is_not_climbed_over(tmp_path: Path) -> None:
    source = (
        "class S extends Base {\n"
        "  @override String title = 'Welcome';\n"
        "  @override String body = 'Body';\n"
        "}\n"
    )
    result = _rewrite(
        tmp_path,
        source,
        {"'Welcome'": "S_title", "'Body'": "S_body"},
        {"S_title": "Welcome", "S_body": "Body"},
    )
    assert result == (
        "class S extends Base {\n"
        "  /// Welcome\n"
        "  @override String title = 'S_title';\n"
        "  /// Body\n"
        "  @override String body = 'S_body';\n"
        "}\n"
    )


def test_doc_of_inline_annotated_member_is_left_alone(tmp_path: Path) -> None:
    source = (
        "class En extends Base {\n"
        "  /// Welcome\n"
        "  @override String title = 'En_title';\n"
        "  String body = 'En_body';\n"
        "}\n"
    )
    result = _rewrite(
        tmp_path,
        source,
        {"'En_title'": "En_title", "'En_body'": "En_body"},
        {"En_title": "Welcome", "En_body": "Body"},
    )
    assert result == (
        "class En extends Base {\n"
        "  /// Welcome\n"
        "  @override String title = 'En_title';\n"
        "  /// Body\n"
        "  String body = 'En_body';\n"
        "}\n"
    )


@pytest.mark.parametrize(
    "annotation",
    [
        "  @JsonKey(\n    defaultValue: {'a': 1},\n  )\n",
        "  @Meta({\n    'a': 1,\n  })\n",
        "  @Tags([\n    'ui',\n  ])  // grouping\n",
        "  @JsonKey(name: 'title') @override\n",
    ],
)
def test_doc_goes_above_every_annotation_form(tmp_path: Path, annotation: str) -> None:
    source = f"class S {{\n{annotation}  String title = 'Hi';\n}}\n"
    result = _rewrite(tmp_path, source, {"'Hi'": "S_title"}, {"S_title": "Hi"})
    assert result == f"class S {{\n  /// Hi\n{annotation}  String title = 'S_title';\n}}\n"
