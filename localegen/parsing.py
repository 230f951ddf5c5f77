"""Tree-sitter powered Dart declaration parser."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from tree_sitter import Node, Parser
from tree_sitter_language_pack import get_language

_LANGUAGE_KEY = "dart"

# Clause nodes whose direct type names are parents of the declaration.
_PARENT_CLAUSES = {
    "superclass",
    "mixins",
    "interfaces",
    "mixin_application",
}

_TYPE_NODES = {
    "type_identifier",
    "type_arguments",
    "nullable_type",
    "function_type",
    "void_type",
    "inferred_type",
    "record_type",
}

_VARIABLE_LISTS = {
    "initialized_identifier_list": False,
    "static_final_declaration_list": True,
}

_VARIABLE_NODES = {"initialized_identifier", "static_final_declaration"}

_LEADING_TRIVIA = {"comment", "documentation_comment", "annotation", "marker_annotation"}

_STATIC_PREFIX = re.compile(r"^(?:(?:external|abstract)\s+)*static\b")


@dataclass
class ParsedInitializer:
    """The expression assigned to a field, as it appears in the source."""

    node_type: str
    offset: int
    length: int
    text: str


@dataclass
class ParsedField:
    """One variable of a field declaration inside a class or mixin body."""

    name: str
    type_text: Optional[str]
    is_static: bool
    declaration_offset: int
    initializer: Optional[ParsedInitializer]


@dataclass
class ParsedDeclaration:
    """A class or mixin declared at the top level of a library."""

    name: str
    kind: str
    parents: List[str]
    fields: List[ParsedField] = field(default_factory=list)


@dataclass
class ParsedUnit:
    """Declarations found in a single Dart file."""

    path: Path
    source: str
    declarations: List[ParsedDeclaration]
    has_errors: bool = False


class _OffsetMap:
    """Translates tree-sitter byte offsets into ``str`` indices."""

    def __init__(self, source: str) -> None:
        self._identity = source.isascii()
        self._chars: List[int] = []
        if not self._identity:
            chars = self._chars
            for index, char in enumerate(source):
                chars.extend([index] * len(char.encode("utf-8")))
            chars.append(len(source))

    def char(self, byte_offset: int) -> int:
        if self._identity:
            return byte_offset
        return self._chars[byte_offset]


class DartParser:
    """Extracts class/mixin declarations and their fields from Dart source."""

    def __init__(self) -> None:
        self._parsers: Dict[str, Parser] = {}

    def parse(self, path: Path, source: str) -> ParsedUnit:
        source_bytes = source.encode("utf-8")
        tree = self._get_parser().parse(source_bytes)
        offsets = _OffsetMap(source)
        root = tree.root_node
        declarations = list(self._collect_declarations(root, source_bytes, offsets))
        return ParsedUnit(
            path=path,
            source=source,
            declarations=declarations,
            has_errors=root.has_error,
        )

    def _get_parser(self) -> Parser:
        parser = self._parsers.get(_LANGUAGE_KEY)
        if parser is not None:
            return parser
        parser = Parser(get_language(_LANGUAGE_KEY))
        self._parsers[_LANGUAGE_KEY] = parser
        return parser

    @staticmethod
    def _node_text(node: Node, source_bytes: bytes) -> str:
        return source_bytes[node.start_byte : node.end_byte].decode("utf-8", errors="replace")

    def _collect_declarations(
        self, root: Node, source_bytes: bytes, offsets: _OffsetMap
    ) -> Iterable[ParsedDeclaration]:
        for child in root.named_children:
            if child.type == "class_definition":
                kind = "class"
            elif child.type == "mixin_declaration":
                kind = "mixin"
            else:
                continue
            name_node = child.child_by_field_name("name") or _first_child(child, "identifier")
            if name_node is None:
                continue
            declaration = ParsedDeclaration(
                name=self._node_text(name_node, source_bytes),
                kind=kind,
                parents=self._collect_parents(child, source_bytes),
            )
            body = child.child_by_field_name("body") or _first_child(child, "class_body")
            if body is not None:
                declaration.fields = list(self._collect_fields(body, source_bytes, offsets))
            yield declaration

    def _collect_parents(self, node: Node, source_bytes: bytes) -> List[str]:
        parents: List[str] = []
        for child in node.named_children:
            if child.type == "type_identifier":
                # mixin `on` constraints sit directly on the declaration
                if _is_import_prefix(child, source_bytes):
                    continue
                parents.append(self._node_text(child, source_bytes))
            elif child.type in _PARENT_CLAUSES:
                parents.extend(self._collect_parents(child, source_bytes))
        return parents

    def _collect_fields(
        self, body: Node, source_bytes: bytes, offsets: _OffsetMap
    ) -> Iterable[ParsedField]:
        for member in body.named_children:
            if member.type != "declaration":
                continue
            variable_list = None
            static_list = False
            for child in member.named_children:
                if child.type in _VARIABLE_LISTS:
                    variable_list = child
                    static_list = _VARIABLE_LISTS[child.type]
                    break
            if variable_list is None:
                continue

            first_token = next(
                (c for c in member.children if c.type not in _LEADING_TRIVIA), member
            )
            declaration_offset = offsets.char(first_token.start_byte)
            is_static = static_list or self._is_static(member, source_bytes)
            type_text = self._type_text(member, variable_list, source_bytes)

            for variable in variable_list.named_children:
                if variable.type not in _VARIABLE_NODES:
                    continue
                name_node = _first_child(variable, "identifier")
                if name_node is None:
                    continue
                yield ParsedField(
                    name=self._node_text(name_node, source_bytes),
                    type_text=type_text,
                    is_static=is_static,
                    declaration_offset=declaration_offset,
                    initializer=self._initializer(variable, source_bytes, offsets),
                )

    def _is_static(self, member: Node, source_bytes: bytes) -> bool:
        if any(child.type == "static" for child in member.children):
            return True
        return bool(_STATIC_PREFIX.match(self._node_text(member, source_bytes)))

    def _type_text(
        self, member: Node, variable_list: Node, source_bytes: bytes
    ) -> Optional[str]:
        # The span up to the variables keeps markers such as `?` that may be anonymous.
        first = next((c for c in member.named_children if c.type in _TYPE_NODES), None)
        if first is None or first.start_byte >= variable_list.start_byte:
            return None
        text = source_bytes[first.start_byte : variable_list.start_byte].decode("utf-8", errors="replace")
        return text.strip()

    def _initializer(
        self, variable: Node, source_bytes: bytes, offsets: _OffsetMap
    ) -> Optional[ParsedInitializer]:
        # name [= expression]
        operands = [c for c in variable.named_children if c.type not in _LEADING_TRIVIA]
        if len(operands) < 2:
            return None
        expression = operands[-1]
        start = offsets.char(expression.start_byte)
        end = offsets.char(expression.end_byte)
        return ParsedInitializer(
            node_type=expression.type,
            offset=start,
            length=end - start,
            text=self._node_text(expression, source_bytes),
        )


def _is_import_prefix(node: Node, source_bytes: bytes) -> bool:
    # `b.LocaleBase`: only the last identifier of a qualified type names it.
    rest = source_bytes[node.end_byte :].lstrip()
    return rest.startswith(b".")


def _first_child(node: Node, node_type: str) -> Optional[Node]:
    for child in node.named_children:
        if child.type == node_type:
            return child
    return None


__all__ = [
    "DartParser",
    "ParsedDeclaration",
    "ParsedField",
    "ParsedInitializer",
    "ParsedUnit",
]
