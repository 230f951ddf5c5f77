"""Selects translatable String fields and records how to rewrite them."""

from __future__ import annotations

from typing import Iterable, Optional, Set

from .constants import STRING_TYPE
from .literals import LiteralSyntaxError, decode_literal
from .logging import get_logger
from .models import EditDescriptor, ExtractionResult, LiteralField
from .parsing import ParsedField, ParsedUnit

logger = get_logger("extractor")


def line_start(source: str, offset: int) -> int:
    """Return the offset of the first character on the line containing ``offset``."""
    return source.rfind("\n", 0, offset) + 1


class FieldExtractor:
    """Walks family declarations and emits one literal field per qualifying variable."""

    def __init__(self, family: Set[str]) -> None:
        self.family = family

    def extract(self, units: Iterable[ParsedUnit]) -> ExtractionResult:
        result = ExtractionResult()
        seen_keys: Set[str] = set()
        for unit in units:
            for declaration in unit.declarations:
                if declaration.name not in self.family:
                    continue
                for parsed_field in declaration.fields:
                    seed = self._seed_value(parsed_field)
                    if seed is None:
                        continue
                    initializer = parsed_field.initializer
                    assert initializer is not None
                    literal = LiteralField(
                        owner=declaration.name,
                        field_name=parsed_field.name,
                        seed_value=seed,
                        path=unit.path,
                        literal_offset=initializer.offset,
                        literal_length=initializer.length,
                        anchor_offset=line_start(unit.source, parsed_field.declaration_offset),
                    )
                    if literal.key in seen_keys:
                        logger.warning(
                            "Field %s is declared more than once; the last declaration wins",
                            literal.key,
                        )
                    seen_keys.add(literal.key)
                    result.fields.append(literal)
                    result.edits.append(
                        EditDescriptor(
                            path=unit.path,
                            offset=literal.literal_offset,
                            length=literal.literal_length,
                            replacement=literal.key,
                            anchor_offset=literal.anchor_offset,
                        )
                    )
        logger.debug("Extracted %d translatable field(s)", len(result.fields))
        return result

    @staticmethod
    def _seed_value(parsed_field: ParsedField) -> Optional[str]:
        if parsed_field.is_static or parsed_field.type_text != STRING_TYPE:
            return None
        initializer = parsed_field.initializer
        if initializer is None:
            return None
        try:
            return decode_literal(initializer.text)
        except LiteralSyntaxError:
            # Not a plain literal (concatenation, call, identifier, ...).
            return None


__all__ = ["FieldExtractor", "line_start"]
