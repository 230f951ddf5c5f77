"""Persistent key/value translation catalog and its synchronisation rules."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional

from .logging import get_logger

logger = get_logger("catalog")


class CatalogError(RuntimeError):
    """Raised when a catalog file is not a JSON object of strings."""


def encode_catalog(entries: Mapping[str, str]) -> str:
    """Serialise entries the way catalogs are stored on disk."""
    return json.dumps(dict(entries), indent=2, ensure_ascii=False) + "\n"


def decode_catalog(text: str, *, source: str = "catalog") -> Dict[str, str]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise CatalogError(f"Failed to parse {source}: {exc}") from exc
    if not isinstance(data, dict):
        raise CatalogError(f"{source} must contain a JSON object")
    entries: Dict[str, str] = {}
    for key, value in data.items():
        if not isinstance(value, str):
            raise CatalogError(f"{source}: value for '{key}' must be a string")
        entries[key] = value
    return entries


class CatalogSynchronizer:
    """Merges extracted keys into the catalog stored at ``path``."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._original_text: Optional[str] = None
        self.entries: Dict[str, str] = {}
        self._load()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def first_run(self) -> bool:
        return not self._loaded_entries

    def synchronize(
        self,
        keys: Iterable[str],
        seed_values: Mapping[str, str],
        *,
        prune: bool = True,
    ) -> Dict[str, str]:
        """Apply insert/reset, prune and self-reference rules in that order."""
        key_list = list(keys)
        for key in key_list:
            seed = seed_values.get(key, key)
            current = self.entries.get(key)
            if current is None or current == "":
                self.entries[key] = seed

        if prune:
            wanted = set(key_list)
            stale = [key for key in self.entries if key not in wanted]
            for key in stale:
                del self.entries[key]
            if stale:
                logger.info("Removed %d stale key(s) from %s", len(stale), self._path.name)
        else:
            logger.warning("Stale key pruning skipped for %s", self._path.name)

        # A value equal to its own key was never translated.
        for key, value in self.entries.items():
            if value == key:
                self.entries[key] = ""
        return dict(self.entries)

    @property
    def dirty(self) -> bool:
        return encode_catalog(self.entries) != self._original_text

    def persist(self) -> bool:
        """Write the catalog if its serialised form changed; return whether it did."""
        if not self.dirty:
            return False
        payload = encode_catalog(self.entries)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        handle, temp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.", dir=str(self._path.parent)
        )
        try:
            with os.fdopen(handle, "w", encoding="utf-8", newline="") as stream:
                stream.write(payload)
                stream.flush()
                os.fsync(stream.fileno())
            os.replace(temp_name, self._path)
        except BaseException:
            Path(temp_name).unlink(missing_ok=True)
            raise
        self._original_text = payload
        return True

    # ------------------------------------------------------------------
    # Internal helpers

    def _load(self) -> None:
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            self._loaded_entries: Dict[str, str] = {}
            return
        self._original_text = text
        self._loaded_entries = decode_catalog(text, source=str(self._path))
        self.entries = dict(self._loaded_entries)


__all__ = ["CatalogError", "CatalogSynchronizer", "decode_catalog", "encode_catalog"]
