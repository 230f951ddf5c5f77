"""Project-wide defaults shared by the CLI and the pipeline."""

CONFIG_FILENAME = "locale_gen.yaml"

# Key inside the config file that points at the catalog directory.
TRANSLATIONS_DIR_KEY = "translations_dir"

DEFAULT_TRANSLATIONS_DIR = "assets/translations/"
DEFAULT_SOURCE_DIR = "lib"
DEFAULT_LANG = "zh_CN"
DEFAULT_FORMATTER = "auto"

# Root of the translatable family.
BASE_CLASS_NAME = "LocaleBase"

STRING_TYPE = "String"
SOURCE_SUFFIX = ".dart"
CATALOG_SUFFIX = ".json"

MANIFEST_FILENAME = "pubspec.yaml"
