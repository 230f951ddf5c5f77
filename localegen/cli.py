"""CLI entrypoints for localegen commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .catalog import CatalogError
from .config import ConfigError, load_config
from .loader import catalog_stats, load_locales_from_directory
from .logging import configure_logging
from .orchestrator import Orchestrator

EXIT_PARTIAL = 2


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_path_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the Flutter project root (defaults to current directory).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="localegen",
        description="Sync LocaleBase String fields with JSON translation catalogs.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate_parser = subparsers.add_parser(
        "generate",
        help="Extract translatable fields, update the catalog and rewrite sources.",
    )
    _add_verbose_option(generate_parser, suppress_default=True)
    _add_path_argument(generate_parser)
    generate_parser.add_argument(
        "-l",
        "--lang",
        default=None,
        help="Language code, e.g. zh_CN / en_US (defaults to default_lang in locale_gen.yaml).",
    )
    generate_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report what would change without writing the catalog or sources.",
    )
    generate_parser.add_argument(
        "--skip-bootstrap",
        action="store_true",
        help="Do not create locale_gen.yaml or register the catalog directory in pubspec.yaml.",
    )

    locales_parser = subparsers.add_parser(
        "locales",
        help="List the catalogs in the translations directory.",
    )
    _add_verbose_option(locales_parser, suppress_default=True)
    _add_path_argument(locales_parser)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for localegen commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose))

    if args.command == "generate":
        _run_generate(parser, args)
    elif args.command == "locales":
        _run_locales(parser, args)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _run_generate(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    dry_run = bool(getattr(args, "dry_run", False))
    try:
        outcome = Orchestrator().run_generate(
            args.path,
            lang=args.lang,
            dry_run=dry_run,
            bootstrap=not bool(getattr(args, "skip_bootstrap", False)),
        )
    except (FileNotFoundError, NotADirectoryError) as exc:
        parser.exit(1, f"{exc}\n")
    except (ConfigError, CatalogError) as exc:
        parser.exit(1, f"localegen generate failed: {exc}\n")
    except OSError as exc:
        parser.exit(1, f"localegen generate failed: {exc}\nRun with --verbose for more details.\n")

    suffix = " (dry-run)" if dry_run else ""
    first = " - first run" if outcome.first_run else ""
    print(f"Catalog {_relativize(outcome.catalog_path)}: {outcome.entries} entries{first}{suffix}")
    for path in outcome.rewritten:
        print(f"  rewrote {_relativize(path)}{suffix}")
    if outcome.partial:
        lines = [f"  {_relativize(error.path)} [{error.stage}]: {error.message}" for error in outcome.errors]
        parser.exit(
            EXIT_PARTIAL,
            "Some files could not be processed:\n" + "\n".join(lines) + "\n",
        )


def _run_locales(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    try:
        config = load_config(Path(args.path))
        catalogs = load_locales_from_directory(config.catalog_dir)
    except (ConfigError, CatalogError) as exc:
        parser.exit(1, f"localegen locales failed: {exc}\n")
    if not catalogs:
        print(f"No catalogs found in {_relativize(config.catalog_dir)}")
        return
    for stats in catalog_stats(catalogs):
        print(f"{stats.locale}: {stats.entries} entries, {stats.untranslated} untranslated")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
