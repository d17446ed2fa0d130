"""Language catalog, filename detection and translation-service tags."""

import os
from dataclasses import replace
from typing import Optional

from . import DEFAULT_LANGUAGE
from .project_model import Language

# (code, native name, flag).  Catalog order is the canonical language order.
SUPPORTED_LANGUAGES = [
    Language("tr", "Türkçe", "\U0001f1f9\U0001f1f7"),
    Language("en", "English", "\U0001f1fa\U0001f1f8"),
    Language("de", "Deutsch", "\U0001f1e9\U0001f1ea"),
    Language("fr", "Français", "\U0001f1eb\U0001f1f7"),
    Language("es", "Español", "\U0001f1ea\U0001f1f8"),
    Language("it", "Italiano", "\U0001f1ee\U0001f1f9"),
    Language("pt", "Português", "\U0001f1f5\U0001f1f9"),
    Language("ru", "Русский", "\U0001f1f7\U0001f1fa"),
    Language("ja", "日本語", "\U0001f1ef\U0001f1f5"),
    Language("ko", "한국어", "\U0001f1f0\U0001f1f7"),
    Language("zh", "中文", "\U0001f1e8\U0001f1f3"),
    Language("ar", "العربية", "\U0001f1f8\U0001f1e6"),
    Language("hi", "हिन्दी", "\U0001f1ee\U0001f1f3"),
    Language("th", "ไทย", "\U0001f1f9\U0001f1ed"),
    Language("vi", "Tiếng Việt", "\U0001f1fb\U0001f1f3"),
    Language("pl", "Polski", "\U0001f1f5\U0001f1f1"),
    Language("nl", "Nederlands", "\U0001f1f3\U0001f1f1"),
    Language("sv", "Svenska", "\U0001f1f8\U0001f1ea"),
    Language("da", "Dansk", "\U0001f1e9\U0001f1f0"),
    Language("no", "Norsk", "\U0001f1f3\U0001f1f4"),
    Language("fi", "Suomi", "\U0001f1eb\U0001f1ee"),
    Language("cs", "Čeština", "\U0001f1e8\U0001f1ff"),
    Language("sk", "Slovenčina", "\U0001f1f8\U0001f1f0"),
    Language("hu", "Magyar", "\U0001f1ed\U0001f1fa"),
    Language("ro", "Română", "\U0001f1f7\U0001f1f4"),
    Language("bg", "Български", "\U0001f1e7\U0001f1ec"),
    Language("hr", "Hrvatski", "\U0001f1ed\U0001f1f7"),
    Language("sr", "Српски", "\U0001f1f7\U0001f1f8"),
    Language("sl", "Slovenščina", "\U0001f1f8\U0001f1ee"),
    Language("et", "Eesti", "\U0001f1ea\U0001f1ea"),
    Language("lv", "Latviešu", "\U0001f1f1\U0001f1fb"),
    Language("lt", "Lietuvių", "\U0001f1f1\U0001f1f9"),
    Language("el", "Ελληνικά", "\U0001f1ec\U0001f1f7"),
    Language("he", "עברית", "\U0001f1ee\U0001f1f1"),
    Language("fa", "فارسی", "\U0001f1ee\U0001f1f7"),
    Language("ur", "اردو", "\U0001f1f5\U0001f1f0"),
    Language("bn", "বাংলা", "\U0001f1e7\U0001f1e9"),
    Language("ta", "தமிழ்", "\U0001f1f1\U0001f1f0"),
    Language("ml", "മലയാളം", "\U0001f1ee\U0001f1f3"),
    Language("te", "తెలుగు", "\U0001f1ee\U0001f1f3"),
]

_BY_CODE = {lang.code: lang for lang in SUPPORTED_LANGUAGES}

# Codes the translation service spells differently from the catalog.
# Anything not listed is sent as-is.
_ORACLE_TAGS = {
    "he": "iw",
}


def get_language_by_code(code: str) -> Optional[Language]:
    """Return a fresh catalog Language for ``code``, or None if unknown."""
    lang = _BY_CODE.get(code.lower())
    return replace(lang, completion_rate=0.0) if lang else None


def is_supported(code: str) -> bool:
    return code.lower() in _BY_CODE


def detect_language_from_filename(filename: str) -> str:
    """Guess a language code from a file name like ``"locales/de.json"``.

    Falls back to DEFAULT_LANGUAGE when the stem is not a catalog code.
    """
    stem = os.path.basename(filename)
    if stem.lower().endswith(".json"):
        stem = stem[:-len(".json")]
    code = stem.lower()
    return code if code in _BY_CODE else DEFAULT_LANGUAGE


def oracle_tag(code: str) -> str:
    """Map a project language code to the translation service's tag."""
    code = code.lower()
    return _ORACLE_TAGS.get(code, code)

