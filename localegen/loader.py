"""Reads every locale catalog in a directory."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping

from .catalog import CatalogError
from .constants import CATALOG_SUFFIX


@dataclass(frozen=True)
class LocaleStats:
    """Entry counts for one locale catalog."""

    locale: str
    entries: int
    untranslated: int


def load_locales_from_directory(
    directory: Path, suffix: str = CATALOG_SUFFIX
) -> Dict[str, Dict[str, str]]:
    """Return ``{locale: {key: value}}`` for each ``<locale><suffix>`` under ``directory``.

    A missing directory yields an empty mapping. Values are converted to
    strings so nested or numeric values do not break callers.
    """
    result: Dict[str, Dict[str, str]] = {}
    if not directory.is_dir():
        return result

    for path in sorted(directory.rglob(f"*{suffix}")):
        if not path.is_file():
            continue
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise CatalogError(f"Failed to parse {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise CatalogError(f"{path} must contain a JSON object")
        result[path.stem] = {str(key): _as_text(value) for key, value in data.items()}
    return result


def catalog_stats(catalogs: Mapping[str, Mapping[str, str]]) -> List[LocaleStats]:
    return [
        LocaleStats(
            locale=locale,
            entries=len(entries),
            untranslated=sum(1 for value in entries.values() if not value),
        )
        for locale, entries in sorted(catalogs.items())
    ]


def _as_text(value: object) -> str:
    if isinstance(value, str):
        return value
    if value is None:
        return ""
    return json.dumps(value, ensure_ascii=False) if isinstance(value, (dict, list)) else str(value)


__all__ = ["LocaleStats", "catalog_stats", "load_locales_from_directory"]
