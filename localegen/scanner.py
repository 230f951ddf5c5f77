"""Source tree enumeration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterator, List, Sequence

from .constants import SOURCE_SUFFIX

_EXCLUDED_DIRS = {
    ".git",
    ".dart_tool",
    ".idea",
    ".pub-cache",
    "build",
    "node_modules",
}


@dataclass
class ExcludeRule:
    """An fnmatch-style exclusion from locale_gen.yaml."""

    pattern: str
    directory_only: bool
    anchored: bool

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if self.directory_only and not is_dir:
            return False
        if self.anchored:
            return fnmatchcase(rel_path, self.pattern)
        return any(fnmatchcase(part, self.pattern) for part in rel_path.split("/"))


def _build_rule(pattern: str) -> ExcludeRule | None:
    pattern = pattern.strip()
    if not pattern:
        return None
    directory_only = pattern.endswith("/")
    pattern = pattern.rstrip("/")
    anchored = pattern.startswith("/") or "/" in pattern
    return ExcludeRule(
        pattern=pattern.lstrip("/"),
        directory_only=directory_only,
        anchored=anchored,
    )


class SourceScanner:
    """Lists the Dart files under a source root in a stable order."""

    def __init__(self, exclude_paths: Sequence[str] = (), suffix: str = SOURCE_SUFFIX) -> None:
        self._rules = [rule for rule in map(_build_rule, exclude_paths) if rule is not None]
        self._suffix = suffix

    def scan(self, root: Path) -> List[Path]:
        """Return the source files under ``root`` sorted by relative POSIX path."""
        root_path = root.expanduser().resolve()
        if not root_path.exists():
            raise FileNotFoundError(f"Source directory not found: {root}")
        if not root_path.is_dir():
            raise NotADirectoryError(f"Source path is not a directory: {root}")
        files = list(self._iter_files(root_path))
        return sorted(files, key=lambda path: path.relative_to(root_path).as_posix())

    def _iter_files(self, root: Path) -> Iterator[Path]:
        for dirpath, dirnames, filenames in os.walk(root):
            current_dir = Path(dirpath)
            rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""

            kept = []
            for name in dirnames:
                rel_path = f"{rel_dir}/{name}" if rel_dir else name
                if name in _EXCLUDED_DIRS or self._excluded(rel_path, True):
                    continue
                kept.append(name)
            dirnames[:] = kept

            for filename in filenames:
                if not filename.endswith(self._suffix):
                    continue
                rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
                if self._excluded(rel_path, False):
                    continue
                yield current_dir / filename

    def _excluded(self, rel_path: str, is_dir: bool) -> bool:
        return any(rule.matches(rel_path, is_dir) for rule in self._rules)


__all__ = ["SourceScanner"]
