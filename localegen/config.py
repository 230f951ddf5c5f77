"""Configuration loading for localegen (locale_gen.yaml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .constants import (
    BASE_CLASS_NAME,
    CATALOG_SUFFIX,
    CONFIG_FILENAME,
    DEFAULT_FORMATTER,
    DEFAULT_LANG,
    DEFAULT_SOURCE_DIR,
    DEFAULT_TRANSLATIONS_DIR,
    TRANSLATIONS_DIR_KEY,
)
from .logging import get_logger

_FORMATTER_MODES = {"auto", "dart", "none"}

logger = get_logger("config")


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class LocaleGenConfig:
    """Represents the settings defined in locale_gen.yaml."""

    root: Path
    translations_dir: str = DEFAULT_TRANSLATIONS_DIR
    source_dir: str = DEFAULT_SOURCE_DIR
    base_class: str = BASE_CLASS_NAME
    default_lang: str = DEFAULT_LANG
    formatter: str = DEFAULT_FORMATTER
    exclude_paths: List[str] = field(default_factory=list)

    @property
    def source_root(self) -> Path:
        return self.root / self.source_dir

    @property
    def catalog_dir(self) -> Path:
        return self.root / self.translations_dir

    def catalog_path(self, lang: str) -> Path:
        return self.catalog_dir / f"{lang}{CATALOG_SUFFIX}"


def load_config(config_path: Path) -> LocaleGenConfig:
    """Load configuration from disk, falling back to defaults when absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return LocaleGenConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    formatter = (_as_str(data.get("formatter")) or DEFAULT_FORMATTER).lower()
    if formatter not in _FORMATTER_MODES:
        choices = ", ".join(sorted(_FORMATTER_MODES))
        raise ConfigError(f"Unknown formatter '{formatter}' (expected one of: {choices})")

    return LocaleGenConfig(
        root=root,
        translations_dir=normalise_dir(
            _as_str(data.get(TRANSLATIONS_DIR_KEY)) or DEFAULT_TRANSLATIONS_DIR
        ),
        source_dir=_as_str(data.get("source_dir")) or DEFAULT_SOURCE_DIR,
        base_class=_as_str(data.get("base_class")) or BASE_CLASS_NAME,
        default_lang=_as_str(data.get("default_lang")) or DEFAULT_LANG,
        formatter=formatter,
        exclude_paths=_as_str_list(data.get("exclude_paths")),
    )


def ensure_config_file(root: Path) -> Path:
    """Create locale_gen.yaml with the default catalog directory when it is missing."""
    config_file = root / CONFIG_FILENAME
    if not config_file.exists():
        config_file.write_text(
            f"{TRANSLATIONS_DIR_KEY}: {DEFAULT_TRANSLATIONS_DIR}\n", encoding="utf-8"
        )
        logger.info("Created %s (translations in %s)", CONFIG_FILENAME, DEFAULT_TRANSLATIONS_DIR)
    return config_file


def normalise_dir(value: str) -> str:
    """Return a POSIX-style directory path with a trailing slash."""
    cleaned = value.strip().replace("\\", "/")
    if not cleaned.endswith("/"):
        cleaned += "/"
    return cleaned


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "ConfigError",
    "LocaleGenConfig",
    "ensure_config_file",
    "load_config",
    "normalise_dir",
]
