"""Keep Dart string fields and JSON translation catalogs in sync."""

__version__ = "0.3.0"
