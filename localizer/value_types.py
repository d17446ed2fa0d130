"""Value type inference for translation entries."""

import re
from enum import Enum

from . import is_translated


# A JSON number literal: no leading zeros, underscores or surrounding space
_NUMBER_RE = re.compile(r"-?(?:0|[1-9][0-9]*)(\.[0-9]+)?([eE][+-]?[0-9]+)?")


class ValueType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OBJECT = "object"


def classify(value) -> ValueType:
    """Return the JSON type class of a value.

    Strings, numbers and booleans map to themselves; lists, dicts and
    None all fall into OBJECT.
    """
    # bool is a subclass of int, so it has to be checked first
    if isinstance(value, bool):
        return ValueType.BOOLEAN
    if isinstance(value, str):
        return ValueType.STRING
    if isinstance(value, (int, float)):
        return ValueType.NUMBER
    return ValueType.OBJECT


def infer_type(translations: dict, order=None,
               default: ValueType = ValueType.STRING) -> ValueType:
    """Classify the first non-empty value of a translation map.

    Args:
        translations: language code -> value.
        order: Language codes to scan first, in order.  Codes not listed
            are scanned afterwards in the map's own order.
        default: Returned when every value is empty.
    """
    codes = list(order or [])
    seen = set(codes)
    codes.extend(c for c in translations if c not in seen)
    for code in codes:
        value = translations.get(code)
        if is_translated(value):
            return classify(value)
    return default


def parse_value(text: str):
    """Interpret text typed into an editor cell.

    ``"true"``/``"false"`` become booleans and text written exactly as a
    JSON number becomes a number; anything else stays a string.
    """
    if text == "true":
        return True
    if text == "false":
        return False
    match = _NUMBER_RE.fullmatch(text)
    if match is None:
        return text
    if not match.group(1) and not match.group(2):
        return int(text)
    number = float(text)
    if number in (float("inf"), float("-inf")):
        return text  # out of range, e.g. "1e999"
    return number
