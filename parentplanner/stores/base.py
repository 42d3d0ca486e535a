from __future__ import annotations

import secrets
import time
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from parentplanner.core.errors import ConflictError


class Collections:
    USERS = "users"
    ACTIVITIES = "activities"
    INVITATIONS = "invitations"
    CREDENTIALS = "credentials"


# Server-assigned fields; never written from a record payload.
CREATED_AT = "createdAt"
UPDATED_AT = "updatedAt"
META_FIELDS = frozenset({CREATED_AT, UPDATED_AT})

Record = dict[str, Any]

_ID_SUFFIX_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"

_last_millis = 0


def now_millis() -> int:
    """Epoch milliseconds, strictly increasing within this process.

    Ids built as ``"{millis}-{owner}"`` stay unique when one owner creates
    several records inside the same millisecond.
    """
    global _last_millis
    _last_millis = max(int(time.time() * 1000), _last_millis + 1)
    return _last_millis


def new_document_id() -> str:
    suffix = "".join(secrets.choice(_ID_SUFFIX_ALPHABET) for _ in range(7))
    return f"{now_millis()}-{suffix}"


def strip_meta(record: Mapping[str, Any]) -> Record:
    return {k: v for k, v in record.items() if k not in META_FIELDS}


def union_values(current: object, values: Sequence[Any]) -> list[Any]:
    out = list(current) if isinstance(current, list) else []
    for value in values:
        if value not in out:
            out.append(value)
    return out


def remove_values(current: object, values: Sequence[Any]) -> list[Any]:
    if not isinstance(current, list):
        return []
    return [item for item in current if item not in values]


@dataclass(frozen=True)
class FieldFilter:
    field: str
    value: Any


@dataclass(frozen=True)
class OrderBy:
    field: str
    descending: bool = False


class DocumentStore(ABC):
    """Generic CRUD over named collections of JSON-like records keyed by ``id``.

    Missing records raise ``NotFoundError``; every other backend error
    propagates as raised by the backend client.
    """

    async def init(self) -> None:
        return None

    async def close(self) -> None:
        return None

    @abstractmethod
    async def create(self, collection: str, record: Mapping[str, Any]) -> Record:
        ...

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Record:
        ...

    @abstractmethod
    async def update(
        self,
        collection: str,
        doc_id: str,
        partial: Mapping[str, Any],
        *,
        expected: Mapping[str, Any] | None = None,
    ) -> Record:
        """Merge ``partial`` into the record.

        With ``expected``, the current values are checked and the write made
        in one transaction; any mismatch raises ``ConflictError`` and nothing
        is written.
        """
        ...

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> None:
        ...

    @abstractmethod
    async def query(
        self,
        collection: str,
        filters: Sequence[FieldFilter] = (),
        order_by: Sequence[OrderBy] = (),
    ) -> list[Record]:
        ...

    @abstractmethod
    async def modify_arrays(
        self,
        collection: str,
        doc_id: str,
        *,
        add: Mapping[str, Sequence[Any]] | None = None,
        remove: Mapping[str, Sequence[Any]] | None = None,
    ) -> Record:
        """Atomically union ``add`` into and drop ``remove`` from list fields."""
        ...


def check_array_fields(
    add: Mapping[str, Sequence[Any]] | None,
    remove: Mapping[str, Sequence[Any]] | None,
) -> tuple[dict[str, list[Any]], dict[str, list[Any]]]:
    add_fields = {k: list(v) for k, v in (add or {}).items()}
    remove_fields = {k: list(v) for k, v in (remove or {}).items()}
    overlap = set(add_fields) & set(remove_fields)
    if overlap:
        raise ValueError(f"Cannot add to and remove from the same field: {sorted(overlap)}")
    return add_fields, remove_fields


def check_expected(
    collection: str,
    doc_id: str,
    data: Mapping[str, Any],
    expected: Mapping[str, Any] | None,
) -> None:
    for field, value in (expected or {}).items():
        if data.get(field) != value:
            raise ConflictError(collection, doc_id, field)
