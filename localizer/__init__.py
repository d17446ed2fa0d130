"""Localizer — multi-language JSON translation workbench."""

__version__ = "1.0.0"

# Uploads above this size are rejected before parsing
MAX_FILE_SIZE = 5 * 1024 * 1024

# Language assumed for files whose name is not a known language code
DEFAULT_LANGUAGE = "en"

# Separator between path segments in a dotted key
KEY_SEPARATOR = "."


def is_translated(value) -> bool:
    """True if a translation value counts as present.

    Missing, None and the empty string all mean "untranslated".
    """
    return value is not None and value != ""
