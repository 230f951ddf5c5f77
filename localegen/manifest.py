"""Registers the catalog directory as a Flutter asset in pubspec.yaml."""

from __future__ import annotations

import re
import subprocess
from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence

import yaml

from .constants import MANIFEST_FILENAME
from .logging import get_logger

logger = get_logger("manifest")

CommandRunner = Callable[..., "subprocess.CompletedProcess[str]"]

_FLUTTER_LINE = re.compile(r"^flutter:[ \t]*(?:#.*)?$", re.MULTILINE)
_ASSETS_LINE = re.compile(r"^(?P<indent>[ \t]+)assets:[ \t]*(?P<value>[^#\n]*?)[ \t]*(?:#.*)?$")
_FLOW_LIST = re.compile(r"^\[(?P<items>.*)\]$")


class ManifestError(RuntimeError):
    """Raised when pubspec.yaml cannot be parsed."""


def ensure_manifest_assets(root: Path, directory: str) -> bool:
    """Make sure ``flutter.assets`` lists ``directory``; return True if the file changed."""
    manifest = root / MANIFEST_FILENAME
    if not manifest.exists():
        logger.warning("%s not found in %s", MANIFEST_FILENAME, root)
        return False

    text = manifest.read_text(encoding="utf-8")
    document = _load(text)
    if document is None:
        document = {}
    if not isinstance(document, dict):
        logger.warning("%s does not contain a mapping; leaving it untouched", MANIFEST_FILENAME)
        return False

    if directory in _asset_entries(document):
        logger.info("%s already lists %s", MANIFEST_FILENAME, directory)
        return False

    updated = _insert_asset(text, document, directory)
    if updated is None or directory not in _asset_entries(_load(updated)):
        logger.warning(
            "Could not add %s to %s automatically; add it under flutter.assets",
            directory,
            MANIFEST_FILENAME,
        )
        return False

    manifest.write_text(updated, encoding="utf-8")
    logger.info("Added asset directory %s to %s", directory, MANIFEST_FILENAME)
    return True


def fetch_dependencies(root: Path, runner: CommandRunner | None = None) -> bool:
    """Run ``dart pub get`` in ``root``; failures are logged and reported as False."""
    run = runner or subprocess.run
    logger.info("Running dart pub get")
    try:
        completed = run(
            ["dart", "pub", "get"],
            cwd=str(root),
            check=False,
            text=True,
            capture_output=True,
        )
    except OSError as exc:
        logger.warning("Unable to run dart pub get: %s", exc)
        return False
    if completed.stdout:
        logger.debug("%s", completed.stdout.rstrip())
    if completed.returncode != 0:
        logger.warning("dart pub get failed: %s", (completed.stderr or "").strip())
        return False
    return True


def _load(text: str) -> Any:
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ManifestError(f"Failed to parse {MANIFEST_FILENAME}: {exc}") from exc


def _asset_entries(document: Any) -> List[str]:
    if not isinstance(document, dict):
        return []
    flutter = document.get("flutter")
    if not isinstance(flutter, dict):
        return []
    assets = flutter.get("assets")
    if not isinstance(assets, list):
        return []
    return [str(item) for item in assets]


def _insert_asset(text: str, document: dict, directory: str) -> Optional[str]:
    lines = _split_lines(text)
    eol = "\r\n" if "\r\n" in text else "\n"
    flutter = document.get("flutter")
    flutter_index = next(
        (i for i, line in enumerate(lines) if _FLUTTER_LINE.match(line.rstrip("\r\n"))),
        None,
    )

    if flutter_index is None:
        if "flutter" in document:
            return None
        prefix = text if not text or text.endswith("\n") else text + eol
        return f"{prefix}{eol}flutter:{eol}  assets:{eol}    - {directory}{eol}"
    if flutter is not None and not isinstance(flutter, dict):
        return None

    block = _block_range(lines, flutter_index)
    child_indent = "  "
    for index in block:
        stripped = lines[index].strip()
        if stripped and not stripped.startswith("#"):
            child_indent = lines[index][: _indent_of(lines[index])]
            break

    for index in block:
        assets_match = _ASSETS_LINE.match(lines[index].rstrip("\r\n"))
        if assets_match is None or assets_match.group("indent") != child_indent:
            continue
        value = assets_match.group("value")
        if value:
            flow = _FLOW_LIST.match(value)
            if flow is None:
                return None
            items = flow.group("items").strip()
            joined = f"{items}, {directory}" if items else directory
            lines[index] = f"{child_indent}assets: [{joined}]{eol}"
            return "".join(lines)
        item_indent = child_indent + "  "
        insert_at = index + 1
        for follower in range(index + 1, len(lines)):
            stripped = lines[follower].strip()
            if not stripped or stripped.startswith("#"):
                continue
            if stripped.startswith("- ") and _indent_of(lines[follower]) > len(child_indent):
                item_indent = lines[follower][: _indent_of(lines[follower])]
                insert_at = follower + 1
                continue
            break
        lines.insert(insert_at, f"{item_indent}- {directory}{eol}")
        return "".join(lines)

    if not lines[flutter_index].endswith("\n"):
        lines[flutter_index] += eol
    lines.insert(
        flutter_index + 1,
        f"{child_indent}assets:{eol}{child_indent}  - {directory}{eol}",
    )
    return "".join(lines)


def _split_lines(text: str) -> List[str]:
    pieces = text.split("\n")
    lines = [piece + "\n" for piece in pieces[:-1]]
    if pieces[-1]:
        lines.append(pieces[-1])
    return lines


def _block_range(lines: Sequence[str], header_index: int) -> range:
    """Indices of the indented lines that belong to the top-level key at ``header_index``."""
    end = header_index + 1
    for index in range(header_index + 1, len(lines)):
        stripped = lines[index].strip()
        if not stripped or stripped.startswith("#"):
            continue
        if _indent_of(lines[index]) == 0:
            break
        end = index + 1
    return range(header_index + 1, end)


def _indent_of(line: str) -> int:
    return len(line) - len(line.lstrip(" \t"))


__all__ = ["ManifestError", "ensure_manifest_assets", "fetch_dependencies"]
