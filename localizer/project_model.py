"""Data model for languages, translation keys and project state."""

import json
import os
from dataclasses import dataclass, field, replace
from typing import Optional

from . import is_translated
from .value_types import ValueType


@dataclass
class Language:
    """A language column of the project."""
    code: str                    # Lowercase tag, unique in the project e.g. "en", "tr"
    name: str                    # Native display name e.g. "Deutsch"
    flag: str = ""               # Flag glyph for display
    completion_rate: float = 0.0  # Derived: % of keys translated, 0-100

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "name": self.name,
            "flag": self.flag,
            "completion_rate": self.completion_rate,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Language":
        return cls(
            code=data["code"],
            name=data.get("name", data["code"]),
            flag=data.get("flag", ""),
            completion_rate=float(data.get("completion_rate", 0.0)),
        )


@dataclass
class TranslationKey:
    """One dotted key and its value in every language."""
    key: str                                          # Dotted path e.g. "nav.home"
    translations: dict = field(default_factory=dict)  # language code -> value
    value_type: ValueType = ValueType.STRING

    def copy(self) -> "TranslationKey":
        """Return an equal key that shares no mutable state with this one."""
        return replace(self, translations=dict(self.translations))

    def value(self, code: str):
        return self.translations.get(code)

    def has_translation(self, code: str) -> bool:
        return is_translated(self.translations.get(code))

    def missing_languages(self, codes) -> list:
        """Return the codes this key has no usable value for."""
        return [c for c in codes if not self.has_translation(c)]

    def completed_languages(self, codes) -> list:
        return [c for c in codes if self.has_translation(c)]

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "translations": dict(self.translations),
            "value_type": self.value_type.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TranslationKey":
        try:
            value_type = ValueType(data.get("value_type", "string"))
        except ValueError:
            value_type = ValueType.STRING
        return cls(
            key=data["key"],
            translations=dict(data.get("translations") or {}),
            value_type=value_type,
        )


@dataclass
class UploadedFile:
    """A parsed upload waiting to be merged.  Never persisted."""
    filename: str
    language_code: str
    data: dict      # dotted key -> value, already flattened
    size: int = 0   # Payload size in bytes


@dataclass
class ProjectStatistics:
    total_keys: int
    total_languages: int
    total_translations: int
    average_completion: float


@dataclass
class LanguageStats:
    code: str
    completed: int
    total: int
    completion_rate: float


def completion_rate(code: str, keys: list) -> float:
    """Percentage of keys that have a non-empty value for ``code``."""
    if not keys:
        return 0.0
    done = sum(1 for k in keys if k.has_translation(code))
    return done / len(keys) * 100


def with_completion_rates(languages: list, keys: list) -> list:
    """Return copies of ``languages`` with completion rates recomputed."""
    return [replace(lang, completion_rate=completion_rate(lang.code, keys))
            for lang in languages]


@dataclass
class ProjectData:
    """The whole project: language columns and key rows.

    Instances are treated as immutable snapshots.  Every store operation
    builds a new ProjectData instead of editing one in place.
    """
    languages: list = field(default_factory=list)  # list[Language]
    keys: list = field(default_factory=list)       # list[TranslationKey]

    @property
    def language_codes(self) -> list:
        return [lang.code for lang in self.languages]

    @property
    def is_empty(self) -> bool:
        return not self.languages and not self.keys

    def get_language(self, code: str) -> Optional[Language]:
        for lang in self.languages:
            if lang.code == code:
                return lang
        return None

    def get_key(self, key: str) -> Optional[TranslationKey]:
        for k in self.keys:
            if k.key == key:
                return k
        return None

    def has_key(self, key: str) -> bool:
        return self.get_key(key) is not None

    def search(self, query: str) -> list:
        """Return keys whose dotted path contains ``query`` (case-insensitive)."""
        q = query.lower()
        return [k for k in self.keys if q in k.key.lower()]

    # ── Statistics ───────────────────────────────────────────────

    def statistics(self) -> ProjectStatistics:
        codes = self.language_codes
        total_translations = sum(
            1 for k in self.keys for c in codes if k.has_translation(c))
        possible = len(self.keys) * len(codes)
        average = total_translations / possible * 100 if possible else 0.0
        return ProjectStatistics(
            total_keys=len(self.keys),
            total_languages=len(codes),
            total_translations=total_translations,
            average_completion=average,
        )

    def language_stats(self) -> list:
        """Return a LanguageStats per language, in project order."""
        stats = []
        for code in self.language_codes:
            done = sum(1 for k in self.keys if k.has_translation(code))
            stats.append(LanguageStats(
                code=code,
                completed=done,
                total=len(self.keys),
                completion_rate=completion_rate(code, self.keys),
            ))
        return stats

    def missing_by_key(self) -> list:
        """Return ``(key, [missing codes])`` pairs, most-missing first.

        Keys that are complete in every language are left out.
        """
        codes = self.language_codes
        missing = [(k.key, k.missing_languages(codes)) for k in self.keys]
        missing = [item for item in missing if item[1]]
        missing.sort(key=lambda item: len(item[1]), reverse=True)
        return missing

    # ── Serialization ────────────────────────────────────────────

    def to_dict(self) -> dict:
        return {
            "languages": [lang.to_dict() for lang in self.languages],
            "keys": [k.to_dict() for k in self.keys],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ProjectData":
        return cls(
            languages=[Language.from_dict(l) for l in data.get("languages", [])],
            keys=[TranslationKey.from_dict(k) for k in data.get("keys", [])],
        )

    def save_state(self, path: str):
        """Write the project to a JSON file."""
        os.makedirs(os.path.dirname(path) if os.path.dirname(path) else ".", exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, ensure_ascii=False, indent=2)

    @classmethod
    def load_state(cls, path: str) -> "ProjectData":
        """Read a project previously written by save_state()."""
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{path}: project file must hold a JSON object")
        return cls.from_dict(data)
