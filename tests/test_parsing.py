"""Tests for the tree-sitter backed Dart parser."""

from __future__ import annotations

from pathlib import Path

import pytest

from localegen.parsing import DartParser, ParsedDeclaration, ParsedUnit


@pytest.fixture(scope="module")
def parser() -> DartParser:
    return DartParser()


def _parse(parser: DartParser, source: str) -> ParsedUnit:
    return parser.parse(Path("lib/strings.dart"), source)


def _declaration(unit: ParsedUnit, name: str) -> ParsedDeclaration:
    return next(d for d in unit.declarations if d.name == name)


def test_collects_classes_mixins_and_parents(parser: DartParser) -> None:
    unit = _parse(
        parser,
        "abstract class LocaleBase {}\n"
        "mixin Greetings on LocaleBase {}\n"
        "class S extends Base with Greetings implements Other<int> {}\n"
        "void main() {}\n",
    )

    assert not unit.has_errors
    assert [d.name for d in unit.declarations] == ["LocaleBase", "Greetings", "S"]
    assert _declaration(unit, "LocaleBase").parents == []
    greetings = _declaration(unit, "Greetings")
    assert greetings.kind == "mixin"
    assert greetings.parents == ["LocaleBase"]
    s = _declaration(unit, "S")
    assert s.kind == "class"
    assert s.parents == ["Base", "Greetings", "Other"]


def test_collects_fields_with_types_and_initializers(parser: DartParser) -> None:
    source = (
        "class S extends LocaleBase {\n"
        "  String title = 'Welcome';\n"
        "  static String shared = 'x';\n"
        "  int count = 1;\n"
        "  String? maybe = 'm';\n"
        "  String a = 'A', b = 'B';\n"
        "  void greet() {}\n"
        "}\n"
    )
    unit = _parse(parser, source)
    fields = {f.name: f for f in _declaration(unit, "S").fields}

    assert set(fields) == {"title", "shared", "count", "maybe", "a", "b"}

    title = fields["title"]
    assert title.type_text == "String"
    assert not title.is_static
    assert title.initializer is not None
    assert title.initializer.text == "'Welcome'"
    assert title.initializer.offset == source.index("'Welcome'")
    assert title.initializer.length == len("'Welcome'")
    assert title.declaration_offset == source.index("String title")

    assert fields["shared"].is_static
    assert fields["count"].type_text == "int"
    assert fields["maybe"].type_text == "String?"
    assert fields["a"].declaration_offset == fields["b"].declaration_offset
    assert fields["b"].initializer is not None
    assert fields["b"].initializer.text == "'B'"


def test_offsets_are_character_indices_for_non_ascii_sources(parser: DartParser) -> None:
    source = (
        "// 中文注释\n"
        "class S extends LocaleBase {\n"
        "  String title = '欢迎光临';\n"
        "  String body = 'Body';\n"
        "}\n"
    )
    unit = _parse(parser, source)
    fields = {f.name: f for f in _declaration(unit, "S").fields}

    body = fields["body"].initializer
    assert body is not None
    assert source[body.offset : body.offset + body.length] == "'Body'"
    title = fields["title"].initializer
    assert title is not None
    assert source[title.offset : title.offset + title.length] == "'欢迎光临'"


def test_annotated_field_declaration_offset_skips_annotation(parser: DartParser) -> None:
    source = "class S {\n  @override\n  String title = 'Hi';\n}\n"
    unit = _parse(parser, source)
    (title,) = _declaration(unit, "S").fields
    assert source.rfind("\n", 0, title.declaration_offset) + 1 == source.index("  String")


def test_syntax_errors_are_flagged(parser: DartParser) -> None:
    unit = _parse(parser, "class Broken extends LocaleBase {\n  String x = \n")
    assert unit.has_errors


def test_import_prefixes_are_not_parents(parser: DartParser) -> None:
    unit = _parse(
        parser,
        "import 'base.dart' as b;\n"
        "mixin M on b.LocaleBase {}\n"
        "class S extends b.LocaleBase with M implements b.Strings {}\n",
    )
    assert _declaration(unit, "M").parents == ["LocaleBase"]
    assert _declaration(unit, "S").parents == ["LocaleBase", "M", "Strings"]
