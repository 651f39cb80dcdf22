"""Turn arbitrary header and table names into SQL identifiers."""

import re
from typing import Dict, Iterable, List

MAX_IDENTIFIER_LENGTH = 64

_INVALID_CHARS = re.compile(r"[^a-z0-9_]")


def sanitize(name: str) -> str:
    """
    Sanitize a column or table name for SQL.

    Trims, lowercases, replaces anything outside ``[a-z0-9_]`` with an
    underscore, prefixes a leading digit with ``_`` and truncates to 64
    characters. Distinct names may map to the same identifier.

    Args:
        name: Raw header or table name

    Returns:
        SQL-safe identifier
    """
    sanitized = _INVALID_CHARS.sub("_", name.strip().lower())
    if sanitized[:1].isdigit():
        sanitized = f"_{sanitized}"
    return sanitized[:MAX_IDENTIFIER_LENGTH]


def find_collisions(names: Iterable[str]) -> Dict[str, List[str]]:
    """
    Find distinct names that sanitize to the same identifier.

    Args:
        names: Original names, in order

    Returns:
        Mapping of identifier to the original names sharing it
    """
    groups: Dict[str, List[str]] = {}
    for name in names:
        originals = groups.setdefault(sanitize(name), [])
        if name not in originals:
            originals.append(name)
    return {ident: originals for ident, originals in groups.items() if len(originals) > 1}
