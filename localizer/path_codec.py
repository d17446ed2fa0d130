"""Conversion between nested JSON documents and dotted-key tables."""

import copy
import logging

from . import KEY_SEPARATOR

log = logging.getLogger(__name__)


def flatten(obj: dict, prefix: str = "") -> dict:
    """Flatten nested dicts into ``{"a.b.c": value}``.

    Only dicts are descended into; lists, scalars and empty dicts are
    leaf values.  Keys that collide after joining (a literal ``"a.b"`` next
    to a nested ``{"a": {"b": ...}}``) collapse into one entry, the later
    one in document order winning.
    """
    flat = {}
    for key, value in obj.items():
        path = f"{prefix}{KEY_SEPARATOR}{key}" if prefix else str(key)
        if isinstance(value, dict) and value:
            flat.update(flatten(value, path))
        else:
            flat[path] = value
    return flat


def unflatten(flat: dict) -> dict:
    """Rebuild a nested document from a dotted-key mapping.

    Keys are processed in mapping order.  When two keys disagree on the
    shape of a path (``"a"`` is a string, ``"a.b"`` needs ``"a"`` to be an
    object) the later key overwrites the earlier one without raising.
    """
    result = {}
    for dotted, value in flat.items():
        parts = dotted.split(KEY_SEPARATOR)
        current = result
        for part in parts[:-1]:
            node = current.get(part)
            if not isinstance(node, dict):
                if part in current:
                    log.debug("Path conflict at %r in %r: replacing %r with an object",
                              part, dotted, node)
                node = current[part] = {}
            current = node
        leaf = parts[-1]
        if isinstance(current.get(leaf), dict) and not isinstance(value, dict):
            log.debug("Path conflict at %r: replacing an object with a value", dotted)
        # Copy containers so the result never aliases the input table
        current[leaf] = copy.deepcopy(value) if isinstance(value, (dict, list)) else value
    return result
