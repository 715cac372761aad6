# /classifier/facts.py

import json
from typing import Any, Optional


class _Missing:
    """Marks a fact path that does not resolve. Distinct from a JSON null."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self):
        return False

    def __repr__(self):
        return "MISSING"

MISSING = _Missing()


def resolve(facts: Any, path: str) -> Any:
    """
    Reads a dotted path (e.g., 'os.release.major') out of a nested fact document.
    Objects are descended by key and lists by numeric index. A missing key, an
    out of range index or descending into a scalar yields MISSING.
    """
    if not isinstance(path, str) or not path:
        return MISSING

    current = facts
    for part in path.split("."):
        if isinstance(current, dict):
            if part not in current:
                return MISSING
            current = current[part]
        elif isinstance(current, list):
            if not part.isdigit() or int(part) >= len(current):
                return MISSING
            current = current[int(part)]
        else:
            return MISSING
    return current


# --- Value coercion shared by the rule operators ---

def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)

def to_number(value: Any) -> Optional[float]:
    """Numbers and numeric strings coerce to float; everything else, and ints beyond float range, to None."""
    try:
        if is_number(value):
            return float(value)
        if isinstance(value, str):
            return float(value.strip())
    except (ValueError, OverflowError):
        return None
    return None

def to_text(value: Any) -> str:
    """Strings pass through; other values use their JSON spelling ('true', 'null', '[1, 2]')."""
    if isinstance(value, str):
        return value
    try:
        return json.dumps(value, sort_keys=True, default=str)
    except ValueError:
        # Ints past the interpreter's digit limit have no decimal spelling.
        return hex(value) if isinstance(value, int) else object.__repr__(value)

def values_equal(left: Any, right: Any) -> bool:
    """
    Equality used by '=', '!=', 'in' and 'not_in'. Two numbers compare
    numerically, as does a number against a numeric string ("8" == 8).
    Anything else compares by text form.
    """
    if is_number(left) and is_number(right):
        return left == right
    if is_number(left) or is_number(right):
        left_number, right_number = to_number(left), to_number(right)
        if left_number is not None and right_number is not None:
            return left_number == right_number
    return to_text(left) == to_text(right)
