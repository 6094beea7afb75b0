"""Report owner: a user or an organization, never both.

A report row has two nullable owner columns. Callers never touch them
directly; they pass a ``UserOwner`` or ``OrgOwner`` and the storage layer maps
it to the right column.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Optional, Union

from exposure_store.exceptions import InvalidOwnerError
from exposure_store.utils.identifiers import IdLike, canonical_id


class OwnerKind(StrEnum):
    USER = "user"
    ORGANIZATION = "organization"


def _canonical_owner_id(value: object, kind: OwnerKind) -> str:
    if value is None:
        raise InvalidOwnerError(f"{kind} id is missing", kind=str(kind))
    try:
        return canonical_id(value)  # type: ignore[arg-type]
    except ValueError:
        raise InvalidOwnerError(
            f"{kind} id is not a valid UUID", kind=str(kind), id=repr(value)
        ) from None


@dataclass(frozen=True, slots=True)
class UserOwner:
    id: str

    kind = OwnerKind.USER
    column = "owner_user"
    other_column = "owner_org"

    def __post_init__(self):
        object.__setattr__(self, "id", _canonical_owner_id(self.id, self.kind))

    def __str__(self):
        return f"user:{self.id}"


@dataclass(frozen=True, slots=True)
class OrgOwner:
    id: str

    kind = OwnerKind.ORGANIZATION
    column = "owner_org"
    other_column = "owner_user"

    def __post_init__(self):
        object.__setattr__(self, "id", _canonical_owner_id(self.id, self.kind))

    def __str__(self):
        return f"organization:{self.id}"


Owner = Union[UserOwner, OrgOwner]


def require_owner(owner: object) -> Owner:
    """Return ``owner`` if it is a tagged owner, else raise ``InvalidOwnerError``."""
    if isinstance(owner, (UserOwner, OrgOwner)):
        return owner
    if owner is None:
        raise InvalidOwnerError("owner is missing")
    raise InvalidOwnerError(
        "expected UserOwner or OrgOwner", received=type(owner).__name__
    )


def owner_from_columns(
    owner_user: Optional[IdLike], owner_org: Optional[IdLike]
) -> Owner:
    """Build an owner from the pair of nullable owner columns.

    Exactly one of the two must be set.
    """
    if owner_user is not None and owner_org is not None:
        raise InvalidOwnerError(
            "both owner_user and owner_org are set",
            owner_user=str(owner_user),
            owner_org=str(owner_org),
        )
    if owner_user is not None:
        return UserOwner(owner_user)  # type: ignore[arg-type]
    if owner_org is not None:
        return OrgOwner(owner_org)  # type: ignore[arg-type]
    raise InvalidOwnerError("neither owner_user nor owner_org is set")


def owner_columns(owner: Owner) -> dict[str, Optional[str]]:
    """Map an owner to ``{"owner_user": ..., "owner_org": ...}``."""
    owner = require_owner(owner)
    return {owner.column: owner.id, owner.other_column: None}
