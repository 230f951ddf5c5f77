"""Source formatters applied to rewritten Dart files."""

from __future__ import annotations

import shutil
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Sequence

from .logging import get_logger

logger = get_logger("formatting")

CommandRunner = Callable[[Sequence[str], str], "subprocess.CompletedProcess[str]"]


class FormatterError(RuntimeError):
    """Raised when the formatter rejects a file."""


class SourceFormatter(ABC):
    """Contract for canonicalising rewritten source text."""

    @abstractmethod
    def format(self, path: Path, source: str) -> str:
        """Return the formatted text for ``path``."""


class NullFormatter(SourceFormatter):
    """Leaves the text exactly as the rewriter produced it."""

    def format(self, path: Path, source: str) -> str:
        return source


class DartFormatCli(SourceFormatter):
    """Pipes text through ``dart format`` on standard input."""

    def __init__(self, executable: str = "dart", runner: CommandRunner | None = None) -> None:
        self._executable = executable
        self._runner = runner or self._default_runner

    def format(self, path: Path, source: str) -> str:
        args = [self._executable, "format", "--stdin-name", str(path)]
        try:
            completed = self._runner(args, source)
        except OSError as exc:
            raise FormatterError(f"Unable to run {self._executable}: {exc}") from exc
        if completed.returncode != 0:
            detail = (completed.stderr or completed.stdout or "").strip()
            raise FormatterError(f"dart format failed for {path}: {detail}")
        return completed.stdout

    @staticmethod
    def _default_runner(args: Sequence[str], source: str) -> "subprocess.CompletedProcess[str]":
        return subprocess.run(
            list(args),
            input=source,
            check=False,
            text=True,
            encoding="utf-8",
            capture_output=True,
        )


def build_formatter(mode: str) -> SourceFormatter:
    """Create the process-wide formatter for ``mode`` (auto, dart or none)."""
    if mode == "none":
        return NullFormatter()
    if mode == "dart":
        return DartFormatCli()
    executable = shutil.which("dart")
    if executable is None:
        logger.debug("dart executable not found; rewritten files will not be formatted")
        return NullFormatter()
    return DartFormatCli(executable)


__all__ = [
    "DartFormatCli",
    "FormatterError",
    "NullFormatter",
    "SourceFormatter",
    "build_formatter",
]
