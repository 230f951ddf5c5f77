"""Rewrites Dart sources: literal keys and the doc comments that mirror catalog values."""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .extractor import line_start
from .formatting import FormatterError, SourceFormatter
from .literals import LiteralSyntaxError, QuoteStyle
from .logging import get_logger
from .models import EditDescriptor, FileError
from .patches import OverlappingPatchError, TextPatch, apply_patches

logger = get_logger("rewriter")

DOC_MARKER = "///"

_LINE_BREAKS = re.compile(r"\r\n|\r|\n|\u2028|\u2029|\x85")
_ANNOTATION_NAME = re.compile(r"@[A-Za-z_\$][\w\$]*(?:\.[A-Za-z_\$][\w\$]*)*")
# Closing line of a multi-line annotation: `)`, `})`, `])`, optionally with a trailing comment.
_CLOSING_LINE = re.compile(r"^[)\]}]*\)[ \t]*(?://.*)?$")
_VISIBLE_ESCAPES = {
    "\t": "  ",
    "\b": "\\b",
    "\f": "\\f",
    "\v": "\\v",
}


def sanitize_doc_lines(value: str) -> List[str]:
    """Split a catalog value into printable documentation lines."""
    return [_sanitize_line(line) for line in _LINE_BREAKS.split(value)]


def _sanitize_line(line: str) -> str:
    out: List[str] = []
    for char in line:
        if char in _VISIBLE_ESCAPES:
            out.append(_VISIBLE_ESCAPES[char])
        elif unicodedata.category(char) == "Cc":
            out.append(f"\\u{ord(char):04X}")
        else:
            out.append(char)
    return "".join(out)


def render_doc_block(value: str, indent: str, eol: str) -> str:
    """Render ``value`` as consecutive ``///`` lines at ``indent``."""
    rendered = []
    for line in sanitize_doc_lines(value):
        text = f"{indent}{DOC_MARKER} {line}" if line else f"{indent}{DOC_MARKER}"
        rendered.append(text.rstrip() + eol)
    return "".join(rendered)


def leading_whitespace(line: str) -> str:
    return line[: len(line) - len(line.lstrip(" \t"))]


def _previous_line(source: str, cursor: int) -> Optional[Tuple[int, str]]:
    """Return (start, text without line break) of the line ending right before ``cursor``."""
    if cursor <= 0:
        return None
    start = line_start(source, cursor - 1)
    return start, source[start:cursor].rstrip("\r\n")


def annotation_top(source: str, anchor: int, indent: str) -> int:
    """Move ``anchor`` above the annotations that sit on their own lines."""
    top = anchor
    while True:
        previous = _previous_line(source, top)
        if previous is None:
            return top
        start, text = previous
        if leading_whitespace(text) != indent:
            return top
        body = text[len(indent) :]
        if _open_annotation_depth(body) == 0:
            top = start
            continue
        if _CLOSING_LINE.match(body):
            opener = _annotation_opener(source, start, indent)
            if opener is None:
                return top
            top = opener
            continue
        return top


def _annotation_opener(source: str, closing_start: int, indent: str) -> Optional[int]:
    # Arguments of a multi-line annotation are indented deeper than the annotation.
    cursor = closing_start
    while True:
        previous = _previous_line(source, cursor)
        if previous is None:
            return None
        start, text = previous
        if not text.strip():
            return None
        line_indent = leading_whitespace(text)
        if line_indent == indent:
            depth = _open_annotation_depth(text[len(indent) :])
            return start if depth else None
        if not line_indent.startswith(indent):
            return None
        cursor = start


def _open_annotation_depth(body: str) -> Optional[int]:
    """Brackets left open by a line made only of annotations, or None for any other line.

    ``@override`` and ``@JsonKey(name: 'x')`` give 0, ``@Deprecated(`` gives 1,
    and ``@override String title = 'x';`` gives None because a declaration
    follows the annotation.
    """
    index = 0
    length = len(body)
    seen = False
    while True:
        while index < length and body[index] in " \t":
            index += 1
        if index >= length or body.startswith("//", index):
            return 0 if seen else None
        match = _ANNOTATION_NAME.match(body, index)
        if match is None:
            return None
        seen = True
        index = match.end()
        if not body.startswith("(", index):
            continue
        depth = 0
        quote = ""
        while index < length:
            char = body[index]
            if quote:
                if char == "\\":
                    index += 1
                elif char == quote:
                    quote = ""
            elif char in "'\"":
                quote = char
            elif char in "([{":
                depth += 1
            elif char in ")]}":
                depth -= 1
                if depth == 0:
                    index += 1
                    break
            index += 1
        if depth > 0:
            return depth


def find_doc_block(source: str, anchor: int, indent: str) -> Optional[Tuple[int, int]]:
    """Locate the contiguous ``///`` lines at ``indent`` directly above ``anchor``."""
    start = anchor
    while True:
        previous = _previous_line(source, start)
        if previous is None:
            break
        line_begin, text = previous
        if not text.startswith(indent + DOC_MARKER):
            break
        start = line_begin
    if start == anchor:
        return None
    return start, anchor


def detect_eol(source: str) -> str:
    return "\r\n" if "\r\n" in source else "\n"


def _restore_line_endings(text: str, eol: str) -> str:
    normalised = text.replace("\r\n", "\n")
    if eol == "\n":
        return normalised
    return normalised.replace("\n", eol)


@dataclass
class RewriteReport:
    """Files changed by a rewrite pass and files that could not be processed."""

    rewritten: List[Path] = field(default_factory=list)
    errors: List[FileError] = field(default_factory=list)


class SourceRewriter:
    """Turns edit descriptors and catalog values into per-file text patches."""

    def __init__(self, formatter: SourceFormatter, *, dry_run: bool = False) -> None:
        self.formatter = formatter
        self.dry_run = dry_run

    def rewrite(
        self,
        edits: Sequence[EditDescriptor],
        catalog: Mapping[str, str],
        sources: Optional[Mapping[Path, str]] = None,
    ) -> RewriteReport:
        report = RewriteReport()
        by_file: Dict[Path, List[EditDescriptor]] = {}
        for edit in edits:
            by_file.setdefault(edit.path, []).append(edit)

        for path, file_edits in by_file.items():
            source = sources.get(path) if sources is not None else None
            try:
                changed = self.rewrite_file(path, file_edits, catalog, source=source)
            except _RewriteFailure as failure:
                logger.error("Skipping %s (%s): %s", path, failure.stage, failure)
                report.errors.append(FileError(path=path, stage=failure.stage, message=str(failure)))
                continue
            if changed:
                report.rewritten.append(path)
        return report

    def rewrite_file(
        self,
        path: Path,
        edits: Sequence[EditDescriptor],
        catalog: Mapping[str, str],
        *,
        source: Optional[str] = None,
    ) -> bool:
        """Rewrite one file; return True when its contents changed."""
        if source is None:
            try:
                with path.open("r", encoding="utf-8", newline="") as handle:
                    source = handle.read()
            except (OSError, UnicodeDecodeError) as exc:
                raise _RewriteFailure("read", str(exc)) from exc

        try:
            updated = apply_patches(source, self.plan(source, edits, catalog))
        except (LiteralSyntaxError, OverlappingPatchError) as exc:
            raise _RewriteFailure("rewrite", str(exc)) from exc
        if updated == source:
            return False

        eol = detect_eol(source)
        try:
            formatted = self.formatter.format(path, updated)
        except FormatterError as exc:
            raise _RewriteFailure("format", str(exc)) from exc
        formatted = _restore_line_endings(formatted, eol)
        if formatted == source:
            return False

        if self.dry_run:
            logger.info("Would rewrite %s", path)
            return True
        try:
            with path.open("w", encoding="utf-8", newline="") as handle:
                handle.write(formatted)
        except OSError as exc:
            raise _RewriteFailure("write", str(exc)) from exc
        logger.debug("Rewrote %s", path)
        return True

    def plan(
        self,
        source: str,
        edits: Sequence[EditDescriptor],
        catalog: Mapping[str, str],
    ) -> List[TextPatch]:
        """Collect literal and documentation patches for one file."""
        patches: List[TextPatch] = []
        for edit in edits:
            style = QuoteStyle.detect(source, edit.offset)
            patches.append(TextPatch(edit.offset, edit.length, style.wrap(edit.replacement)))

        eol = detect_eol(source)
        by_anchor: Dict[int, List[str]] = {}
        for edit in edits:
            keys = by_anchor.setdefault(edit.anchor_offset, [])
            if edit.replacement not in keys:
                keys.append(edit.replacement)

        for anchor, keys in by_anchor.items():
            # Variables declared on one line share a single documentation block.
            value = "\n".join(catalog[key] for key in keys if catalog.get(key))
            patch = self._doc_patch(source, anchor, value, eol)
            if patch is not None:
                patches.append(patch)
        return patches

    @staticmethod
    def _doc_patch(source: str, anchor: int, value: str, eol: str) -> Optional[TextPatch]:
        line_end = source.find("\n", anchor)
        line = source[anchor : line_end if line_end != -1 else len(source)]
        indent = leading_whitespace(line)
        top = annotation_top(source, anchor, indent)
        block = find_doc_block(source, top, indent)

        if not value:
            if block is None:
                return None
            return TextPatch(block[0], block[1] - block[0], "")

        rendered = render_doc_block(value, indent, eol)
        if block is None:
            return TextPatch(top, 0, rendered)
        if source[block[0] : block[1]] == rendered:
            return None
        return TextPatch(block[0], block[1] - block[0], rendered)


class _RewriteFailure(RuntimeError):
    def __init__(self, stage: str, message: str) -> None:
        super().__init__(message)
        self.stage = stage


__all__ = [
    "RewriteReport",
    "SourceRewriter",
    "annotation_top",
    "find_doc_block",
    "render_doc_block",
    "sanitize_doc_lines",
]
