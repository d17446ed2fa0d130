"""Project store — merge, edit and persist the translation table.

The module-level functions are pure: each takes the current ProjectData
and returns a new one, never touching its input.  ProjectStore wraps them
around a live snapshot and writes every change through to a ProjectShelf.
"""

import json
import logging
import os

from . import is_translated
from .batch import apply_batch
from .errors import DuplicateKeyError, UnknownKeyError
from .languages import get_language_by_code
from .project_model import ProjectData, TranslationKey, with_completion_rates
from .value_types import ValueType, classify, infer_type

log = logging.getLogger(__name__)


def _rebuild(languages: list, keys: list) -> ProjectData:
    """Assemble a snapshot with completion rates recomputed."""
    return ProjectData(languages=with_completion_rates(languages, keys), keys=keys)


def merge_uploaded_files(current: ProjectData, files: list) -> ProjectData:
    """Merge parsed uploads into the project without losing existing data.

    Files are applied in order, so a later file wins over an earlier one
    for the same (key, language).  Existing keys keep their position and
    their values for languages the upload does not touch; new keys are
    appended in the order they first appear.  Files whose language is not
    in the project are resolved against the catalog; an unknown code adds
    no language and its values are dropped.
    """
    if not files:
        return current

    languages = list(current.languages)
    known = {lang.code for lang in languages}
    for f in files:
        if f.language_code in known:
            continue
        lang = get_language_by_code(f.language_code)
        if lang is None:
            log.warning("Skipping %s: unknown language code %r", f.filename, f.language_code)
            continue
        languages.append(lang)
        known.add(lang.code)

    uploaded = {}
    for f in files:
        if f.language_code not in known:
            continue
        for key, value in f.data.items():
            uploaded.setdefault(key, {})[f.language_code] = value

    order = [lang.code for lang in languages]
    keys = []
    for existing in current.keys:
        translations = dict(existing.translations)
        translations.update(uploaded.pop(existing.key, {}))
        keys.append(TranslationKey(
            key=existing.key,
            translations=translations,
            value_type=infer_type(translations, order, default=existing.value_type),
        ))
    for key, translations in uploaded.items():
        keys.append(TranslationKey(
            key=key,
            translations=translations,
            value_type=infer_type(translations, order),
        ))

    log.info("Merged %d file(s): %d keys, %d languages", len(files), len(keys), len(languages))
    return _rebuild(languages, keys)


def add_language(current: ProjectData, language) -> ProjectData:
    """Append a language column.  Adding a code twice changes nothing."""
    if current.get_language(language.code) is not None:
        return current
    keys = [k.copy() for k in current.keys]
    return _rebuild(list(current.languages) + [language], keys)


def remove_language(current: ProjectData, code: str) -> ProjectData:
    """Drop a language and its value from every key."""
    languages = [lang for lang in current.languages if lang.code != code]
    keys = []
    for k in current.keys:
        translations = {c: v for c, v in k.translations.items() if c != code}
        keys.append(TranslationKey(key=k.key, translations=translations,
                                   value_type=k.value_type))
    return _rebuild(languages, keys)


def add_key(current: ProjectData, key: str) -> ProjectData:
    if current.has_key(key):
        raise DuplicateKeyError(key)
    keys = [k.copy() for k in current.keys]
    keys.append(TranslationKey(key=key, translations={}, value_type=ValueType.STRING))
    return _rebuild(list(current.languages), keys)


def remove_key(current: ProjectData, key: str) -> ProjectData:
    if not current.has_key(key):
        return current
    keys = [k.copy() for k in current.keys if k.key != key]
    return _rebuild(list(current.languages), keys)


def rename_key(current: ProjectData, old_key: str, new_key: str) -> ProjectData:
    """Rename a key in place, keeping its translations and type."""
    if old_key == new_key:
        return current
    if current.has_key(new_key):
        raise DuplicateKeyError(new_key)
    if not current.has_key(old_key):
        raise UnknownKeyError(old_key)
    keys = []
    for k in current.keys:
        k = k.copy()
        if k.key == old_key:
            k.key = new_key
        keys.append(k)
    return _rebuild(list(current.languages), keys)


def set_translation(current: ProjectData, key: str, code: str, value) -> ProjectData:
    """Write one cell.  Unknown keys and languages are ignored.

    An empty write keeps the key's current type; a non-empty one
    reclassifies it from the written value.
    """
    if not current.has_key(key):
        log.debug("set_translation: unknown key %r", key)
        return current
    if current.get_language(code) is None:
        log.debug("set_translation: unknown language %r", code)
        return current
    keys = []
    for k in current.keys:
        k = k.copy()
        if k.key == key:
            k.translations[code] = value
            if is_translated(value):
                k.value_type = classify(value)
        keys.append(k)
    return _rebuild(list(current.languages), keys)


class ProjectShelf:
    """Whole-project JSON persistence.  One file, read and written as a unit."""

    def __init__(self, path: str):
        self.path = path

    def load(self) -> ProjectData:
        """Return the saved project, or an empty one if there is none."""
        if not os.path.exists(self.path):
            return ProjectData()
        try:
            return ProjectData.load_state(self.path)
        except (json.JSONDecodeError, AttributeError, KeyError, TypeError, ValueError, OSError) as e:
            log.error("Could not read project file %s, starting empty: %s", self.path, e)
            return ProjectData()

    def save(self, data: ProjectData):
        data.save_state(self.path)

    def clear(self):
        try:
            os.remove(self.path)
        except FileNotFoundError:
            pass


class ProjectStore:
    """Holds the live project snapshot and persists every change.

    Operations replace the snapshot, they never edit it, so a reference
    taken from ``data`` stays valid after later calls.  Errors raised by
    an operation leave both the snapshot and the shelf untouched.
    """

    def __init__(self, shelf=None, data: ProjectData = None):
        self.shelf = shelf
        if data is not None:
            self._data = data
        else:
            self._data = shelf.load() if shelf is not None else ProjectData()

    @property
    def data(self) -> ProjectData:
        return self._data

    def _commit(self, data: ProjectData) -> ProjectData:
        if data is self._data:
            return data
        self._data = data
        if self.shelf is not None:
            try:
                self.shelf.save(data)
            except OSError as e:
                # Best effort: the in-memory snapshot stays authoritative
                log.error("Failed to save project: %s", e)
        return data

    def merge_uploaded_files(self, files: list) -> ProjectData:
        return self._commit(merge_uploaded_files(self._data, files))

    def add_language(self, language) -> ProjectData:
        return self._commit(add_language(self._data, language))

    def remove_language(self, code: str) -> ProjectData:
        return self._commit(remove_language(self._data, code))

    def add_key(self, key: str) -> ProjectData:
        return self._commit(add_key(self._data, key))

    def remove_key(self, key: str) -> ProjectData:
        return self._commit(remove_key(self._data, key))

    def rename_key(self, old_key: str, new_key: str) -> ProjectData:
        return self._commit(rename_key(self._data, old_key, new_key))

    def set_translation(self, key: str, code: str, value) -> ProjectData:
        return self._commit(set_translation(self._data, key, code, value))

    def apply_batch(self, updates: list) -> ProjectData:
        return self._commit(apply_batch(self._data, updates))

    def clear(self) -> ProjectData:
        """Forget every language and key."""
        self._data = ProjectData()
        if self.shelf is not None:
            self.shelf.clear()
        return self._data

