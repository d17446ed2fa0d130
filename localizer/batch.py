"""Batch reconciliation of translation results into a project snapshot."""

import logging
from collections import OrderedDict
from typing import Any, NamedTuple

from .project_model import ProjectData, TranslationKey, with_completion_rates
from .value_types import infer_type

log = logging.getLogger(__name__)


class TranslationUpdate(NamedTuple):
    key: str
    language_code: str
    value: Any


def group_updates(updates) -> "OrderedDict[str, OrderedDict[str, Any]]":
    """Group updates as key -> language -> value.

    A later update for the same (key, language) replaces an earlier one.
    """
    grouped = OrderedDict()
    for key, code, value in updates:
        grouped.setdefault(key, OrderedDict())[code] = value
    return grouped


def apply_batch(current: ProjectData, updates) -> ProjectData:
    """Fold many (key, language, value) updates into one new snapshot.

    Each touched key becomes a single new TranslationKey with all of its
    updates applied and its type re-inferred once.  Untouched keys are
    copied unchanged.  Completion rates are recomputed once for the whole
    batch.  Updates naming a key or language the project does not have
    are dropped.
    """
    updates = list(updates)
    grouped = group_updates(updates)
    codes = current.language_codes
    known = set(codes)

    keys = []
    touched = 0
    for k in current.keys:
        key_updates = grouped.pop(k.key, None)
        if not key_updates:
            keys.append(k.copy())
            continue
        translations = dict(k.translations)
        for code, value in key_updates.items():
            if code not in known:
                log.debug("Dropping update for %s: unknown language %r", k.key, code)
                continue
            translations[code] = value
        keys.append(TranslationKey(
            key=k.key,
            translations=translations,
            value_type=infer_type(translations, codes, default=k.value_type),
        ))
        touched += 1

    if grouped:
        log.debug("Dropping updates for %d unknown key(s): %s",
                  len(grouped), ", ".join(grouped))
    log.info("Applied batch: %d update(s) across %d key(s)", len(updates), touched)
    return ProjectData(languages=with_completion_rates(current.languages, keys), keys=keys)
