"""Internal/external identifier helpers.

A resource is addressed either by its integer primary key (internal) or by its
uuid column in canonical 8-4-4-4-12 hex form (external). Callers classify raw
input once at the boundary with `classify_identifier` and pass the tagged value
down.
"""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass
from typing import Any, Iterable, Union


UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def generate_uuid() -> str:
    """Fresh random (version 4) uuid in canonical lowercase string form."""
    return str(uuid.uuid4())


def is_uuid(value: Any) -> bool:
    if isinstance(value, uuid.UUID):
        return True
    if not isinstance(value, str):
        return False
    return UUID_PATTERN.fullmatch(value) is not None


@dataclass(frozen=True)
class ByInternalId:
    """Primary key lookup. `value` is whatever the caller supplied when it is not an int."""

    value: Any


@dataclass(frozen=True)
class ByExternalId:
    value: str


Identifier = Union[ByInternalId, ByExternalId]


def classify_identifier(value: Any) -> Identifier:
    """Tag a raw identifier.

    Canonical uuid strings become ByExternalId. Everything else, including
    malformed uuid-looking strings, is treated as a primary key; strings of
    ASCII digits are converted to int.
    """
    if isinstance(value, (ByInternalId, ByExternalId)):
        return value
    if isinstance(value, uuid.UUID):
        return ByExternalId(str(value))
    if is_uuid(value):
        return ByExternalId(value.lower())
    # str.isdigit() also accepts non-ASCII digits such as "²", which int() rejects.
    if isinstance(value, str) and value.isascii() and value.isdigit():
        return ByInternalId(int(value))
    return ByInternalId(value)


def classify_identifiers(values: Any) -> list[Identifier]:
    """Classify a single identifier or a collection, element by element."""
    if isinstance(values, (str, bytes, int, uuid.UUID, ByInternalId, ByExternalId)):
        return [classify_identifier(values)]
    if isinstance(values, Iterable):
        return [classify_identifier(v) for v in values]
    return [classify_identifier(values)]


def split_identifiers(values: Any) -> tuple[list[Any], list[str]]:
    """Return (internal values, external values) for a mixed input."""
    internal: list[Any] = []
    external: list[str] = []
    for ident in classify_identifiers(values):
        if isinstance(ident, ByExternalId):
            external.append(ident.value)
        else:
            internal.append(ident.value)
    return internal, external
