"""Dart string literal lexing, decoding and quote-style reconstruction."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

_QUOTE_CHARS = "'\""
_RAW_MARKERS = "rR"

_SIMPLE_ESCAPES = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "b": "\b",
    "f": "\f",
    "v": "\v",
}

_LEADING_BLANK_LINE = re.compile(r"^[ \t]*(?:\r\n|\n|\r)")
_HEX_DIGITS = set("0123456789abcdefABCDEF")


class LiteralSyntaxError(ValueError):
    """Raised when text does not form a Dart string literal."""


@dataclass(frozen=True)
class LiteralPart:
    """One quoted piece of a (possibly adjacent) string literal."""

    prefix: str
    quote: str
    body: str

    @property
    def raw(self) -> bool:
        return bool(self.prefix)

    @property
    def multiline(self) -> bool:
        return len(self.quote) == 3


@dataclass(frozen=True)
class QuoteStyle:
    """Opening/closing quote sequence of a literal, including any raw marker."""

    quote: str
    raw: bool = False
    prefix_in_span: bool = True

    @classmethod
    def detect(cls, source: str, offset: int) -> "QuoteStyle":
        """Inspect the characters at and next to ``offset`` to recover the quoting."""
        index = offset
        raw = False
        prefix_in_span = True
        if index < len(source) and source[index] in _RAW_MARKERS:
            raw = True
            index += 1
        elif (
            index > 0
            and source[index - 1] in _RAW_MARKERS
            and not _is_identifier_char(source, index - 2)
        ):
            # The marker sits just before the span and is left untouched.
            raw = True
            prefix_in_span = False

        if index >= len(source) or source[index] not in _QUOTE_CHARS:
            raise LiteralSyntaxError(f"No string literal starts at offset {offset}")
        char = source[index]
        quote = char * 3 if source.startswith(char * 3, index) else char
        return cls(quote=quote, raw=raw, prefix_in_span=prefix_in_span)

    @property
    def opening(self) -> str:
        if self.raw and self.prefix_in_span:
            return "r" + self.quote
        return self.quote

    def wrap(self, content: str) -> str:
        """Return ``content`` quoted the same way as the original literal."""
        return f"{self.opening}{content}{self.quote}"


def split_literal(text: str) -> List[LiteralPart]:
    """Lex ``text`` into its quoted parts; adjacent literals yield several parts."""
    parts: List[LiteralPart] = []
    length = len(text)
    index = 0
    while True:
        index = _skip_trivia(text, index)
        if index >= length:
            break
        prefix = ""
        if text[index] in _RAW_MARKERS:
            prefix = text[index]
            index += 1
        if index >= length or text[index] not in _QUOTE_CHARS:
            raise LiteralSyntaxError(f"Expected a quote at offset {index} in {text!r}")
        char = text[index]
        quote = char * 3 if text.startswith(char * 3, index) else char
        index += len(quote)
        body_start = index
        while True:
            if index >= length:
                raise LiteralSyntaxError(f"Unterminated string literal: {text!r}")
            if not prefix and text[index] == "\\":
                index += 2
                continue
            if text.startswith(quote, index):
                break
            if len(quote) == 1 and text[index] in "\r\n":
                raise LiteralSyntaxError(f"Line break inside single-line literal: {text!r}")
            index += 1
        parts.append(LiteralPart(prefix=prefix, quote=quote, body=text[body_start:index]))
        index += len(quote)
    if not parts:
        raise LiteralSyntaxError("Empty string literal")
    return parts


def decode_literal(text: str) -> Optional[str]:
    """Return the logical value of a literal, or None if it interpolates values."""
    pieces: List[str] = []
    for part in split_literal(text):
        body = part.body
        if part.multiline:
            body = _LEADING_BLANK_LINE.sub("", body, count=1)
        if part.raw:
            pieces.append(body)
            continue
        decoded = _decode_escapes(body)
        if decoded is None:
            return None
        pieces.append(decoded)
    return "".join(pieces)


def _decode_escapes(body: str) -> Optional[str]:
    out: List[str] = []
    index = 0
    length = len(body)
    while index < length:
        char = body[index]
        if char == "$":
            return None
        if char != "\\":
            out.append(char)
            index += 1
            continue
        if index + 1 >= length:
            raise LiteralSyntaxError("Dangling escape at end of literal")
        escape = body[index + 1]
        index += 2
        if escape in _SIMPLE_ESCAPES:
            out.append(_SIMPLE_ESCAPES[escape])
        elif escape == "x":
            digits = body[index : index + 2]
            out.append(chr(_parse_hex(digits, exact=2)))
            index += 2
        elif escape == "u":
            value, index = _read_unicode_escape(body, index)
            if 0xD800 <= value <= 0xDBFF and body.startswith("\\u", index):
                low, after = _read_unicode_escape(body, index + 2)
                if 0xDC00 <= low <= 0xDFFF:
                    # UTF-16 pair written as two escapes.
                    value = 0x10000 + ((value - 0xD800) << 10) + (low - 0xDC00)
                    index = after
            if 0xD800 <= value <= 0xDFFF:
                raise LiteralSyntaxError(f"Unpaired surrogate escape U+{value:04X}")
            out.append(chr(value))
        else:
            out.append(escape)
    return "".join(out)


def _read_unicode_escape(body: str, index: int) -> Tuple[int, int]:
    """Read the digits of a `\\u` escape starting at ``index``; return (code point, next index)."""
    if body.startswith("{", index):
        close = body.find("}", index)
        if close == -1:
            raise LiteralSyntaxError("Unterminated \\u{...} escape")
        return _parse_hex(body[index + 1 : close]), close + 1
    return _parse_hex(body[index : index + 4], exact=4), index + 4


def _parse_hex(digits: str, exact: int | None = None) -> int:
    if not digits or any(d not in _HEX_DIGITS for d in digits):
        raise LiteralSyntaxError(f"Invalid hex escape digits: {digits!r}")
    if exact is not None and len(digits) != exact:
        raise LiteralSyntaxError(f"Expected {exact} hex digits, got {digits!r}")
    value = int(digits, 16)
    if value > 0x10FFFF:
        raise LiteralSyntaxError(f"Code point out of range: {digits!r}")
    return value


def _skip_trivia(text: str, index: int) -> int:
    length = len(text)
    while index < length:
        if text[index].isspace():
            index += 1
        elif text.startswith("//", index):
            newline = text.find("\n", index)
            index = length if newline == -1 else newline + 1
        elif text.startswith("/*", index):
            close = text.find("*/", index + 2)
            index = length if close == -1 else close + 2
        else:
            break
    return index


def _is_identifier_char(source: str, index: int) -> bool:
    if index < 0:
        return False
    char = source[index]
    return char.isalnum() or char in "_$"


__all__ = [
    "LiteralPart",
    "LiteralSyntaxError",
    "QuoteStyle",
    "decode_literal",
    "split_literal",
]
