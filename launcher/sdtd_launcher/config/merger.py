from __future__ import annotations
from typing import Dict, Mapping, Optional


def resolve(base: Mapping[str, str], override: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """
    Merge the base settings table with an optional override table.

    For every key of either table the override value wins when present.
    Values are treated as opaque strings; nothing is validated here.
    Returns a new dict, the inputs are not mutated.
    """
    result = dict(base)
    if override:
        result.update(override)
    return result
