"""Pipeline orchestration for the generate flow."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from .catalog import CatalogSynchronizer
from .config import LocaleGenConfig, ensure_config_file, load_config
from .extractor import FieldExtractor
from .formatting import SourceFormatter, build_formatter
from .graph import family_of
from .logging import get_logger
from .manifest import CommandRunner, ManifestError, ensure_manifest_assets, fetch_dependencies
from .models import FileError, GenerateOutcome
from .parsing import DartParser, ParsedUnit
from .rewriter import SourceRewriter
from .scanner import SourceScanner


class Orchestrator:
    """Coordinates scan, resolve, extract, synchronise and rewrite."""

    def __init__(
        self,
        parser: DartParser | None = None,
        formatter: SourceFormatter | None = None,
        command_runner: CommandRunner | None = None,
    ) -> None:
        self.parser = parser or DartParser()
        self._formatter = formatter
        self._command_runner = command_runner
        self.logger = get_logger("orchestrator")

    def run_generate(
        self,
        path: str | Path = ".",
        *,
        lang: Optional[str] = None,
        dry_run: bool = False,
        bootstrap: bool = False,
    ) -> GenerateOutcome:
        """Synchronise the ``lang`` catalog with the project at ``path``."""
        project_root = Path(path).expanduser().resolve()
        if not project_root.is_dir():
            raise NotADirectoryError(f"Project path is not a directory: {path}")
        self.logger.info("Starting generate run for %s", project_root)

        if bootstrap and not dry_run:
            ensure_config_file(project_root)
        config = load_config(project_root)
        lang = lang or config.default_lang
        if bootstrap and not dry_run:
            self._bootstrap(config)

        files = SourceScanner(config.exclude_paths).scan(config.source_root)
        self.logger.debug("Scanner discovered %d source file(s)", len(files))
        units, errors = self._parse_files(files)

        family = family_of(units, config.base_class)
        if not family:
            self.logger.info("No declarations build on %s", config.base_class)
        extraction = FieldExtractor(family).extract(units)

        catalog = CatalogSynchronizer(config.catalog_path(lang))
        first_run = catalog.first_run
        prune = not errors
        if not prune:
            self.logger.warning(
                "%d file(s) could not be read or parsed; keeping catalog keys that are no longer found",
                len(errors),
            )
        translations = catalog.synchronize(extraction.keys, extraction.seed_values(), prune=prune)

        catalog_changed = catalog.dirty
        if dry_run:
            self.logger.info("Dry-run: catalog %s not written", catalog.path)
        else:
            catalog.persist()

        rewriter = SourceRewriter(self._resolve_formatter(config), dry_run=dry_run)
        report = rewriter.rewrite(
            extraction.edits,
            translations,
            sources={unit.path: unit.source for unit in units},
        )
        errors.extend(report.errors)

        self.logger.info(
            "Catalog %s: %d entries%s",
            catalog.path,
            len(translations),
            " - first run" if first_run else "",
        )
        if report.rewritten:
            self.logger.info("Rewrote %d source file(s)", len(report.rewritten))

        return GenerateOutcome(
            catalog_path=catalog.path,
            entries=len(translations),
            first_run=first_run,
            catalog_changed=catalog_changed,
            rewritten=report.rewritten,
            errors=errors,
            dry_run=dry_run,
            pruning_skipped=not prune,
            keys=list(translations),
        )

    def _parse_files(self, files: Sequence[Path]) -> Tuple[List[ParsedUnit], List[FileError]]:
        units: List[ParsedUnit] = []
        errors: List[FileError] = []
        for path in files:
            try:
                with path.open("r", encoding="utf-8", newline="") as handle:
                    source = handle.read()
            except (OSError, UnicodeDecodeError) as exc:
                self.logger.error("Unable to read %s: %s", path, exc)
                errors.append(FileError(path=path, stage="read", message=str(exc)))
                continue
            unit = self.parser.parse(path, source)
            if unit.has_errors:
                self.logger.error("Syntax errors in %s; skipping it", path)
                errors.append(FileError(path=path, stage="parse", message="syntax errors"))
                continue
            units.append(unit)
        return units, errors

    def _resolve_formatter(self, config: LocaleGenConfig) -> SourceFormatter:
        if self._formatter is None:
            self._formatter = build_formatter(config.formatter)
        return self._formatter

    def _bootstrap(self, config: LocaleGenConfig) -> None:
        try:
            modified = ensure_manifest_assets(config.root, config.translations_dir)
        except ManifestError as exc:
            self.logger.error("%s", exc)
            return
        if modified:
            fetch_dependencies(config.root, self._command_runner)


__all__ = ["Orchestrator"]
