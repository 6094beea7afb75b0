"""Canonical text form of 128-bit identifiers."""

import uuid
from typing import Union

IdLike = Union[str, uuid.UUID]


def canonical_id(value: IdLike) -> str:
    """Return the lowercase, hyphenated, 36-character form of an identifier.

    Accepts a ``uuid.UUID`` or any string ``uuid.UUID`` can parse (upper case,
    braces, no hyphens). Raises ``ValueError`` for anything else.
    """
    if isinstance(value, uuid.UUID):
        return str(value)
    if not isinstance(value, str):
        raise ValueError(f"identifier must be a str or UUID, got {type(value).__name__}")
    return str(uuid.UUID(value.strip()))


def new_id() -> str:
    """Generate a fresh random identifier in canonical text form."""
    return str(uuid.uuid4())
