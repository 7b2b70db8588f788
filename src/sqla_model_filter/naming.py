"""Input-key to filter-method naming convention."""

from __future__ import annotations

import re

_ID_SUFFIX = re.compile(r"^(.*)_id$")
_CASE_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_SEPARATORS = re.compile(r"[^0-9A-Za-z]+")


def strip_id_suffix(key: str) -> str:
    """``customer_id`` -> ``customer``; keys without the suffix are unchanged."""
    return _ID_SUFFIX.sub(r"\1", key)


def to_method_case(name: str) -> str:
    """Normalise ``createdAt`` / ``created-at`` / ``Created At`` to ``created_at``."""
    name = _CASE_BOUNDARY.sub("_", name)
    return _SEPARATORS.sub("_", name).strip("_").lower()


def method_name_for(key: str) -> str:
    """Return the filter method name an input key dispatches to."""
    return to_method_case(strip_id_suffix(key))
