from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from typing import Any

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from parentplanner.core.errors import NotFoundError
from parentplanner.db.base_class import Base
from parentplanner.db.session import build_engine, build_sessionmaker
from parentplanner.models.document import StoredDocument
from parentplanner.stores.base import (
    CREATED_AT,
    UPDATED_AT,
    DocumentStore,
    FieldFilter,
    OrderBy,
    Record,
    check_array_fields,
    check_expected,
    new_document_id,
    remove_values,
    strip_meta,
    union_values,
)

logger = logging.getLogger(__name__)


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _to_record(row: StoredDocument) -> Record:
    return {
        "id": row.id,
        **(row.data or {}),
        CREATED_AT: row.created_at,
        UPDATED_AT: row.updated_at,
    }


def _json_field(field: str, value: Any):
    element = StoredDocument.data[field]
    # bool first: it is also an int
    if isinstance(value, bool):
        return element.as_boolean()
    if isinstance(value, int):
        return element.as_integer()
    if isinstance(value, float):
        return element.as_float()
    return element.as_string()


def _filter_value(value: Any) -> Any:
    if isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


class SqlDocumentStore(DocumentStore):
    """Document store over a single SQLAlchemy ``documents`` table.

    Records live in a JSON column keyed by ``(collection, id)``; equality
    filters and ordering are JSON path expressions, so Postgres and SQLite
    both work.
    """

    def __init__(self, database_url: str, *, env: str = "local") -> None:
        self._database_url = database_url
        self._env = env
        self._engine: AsyncEngine | None = None
        self._sessionmaker: async_sessionmaker[AsyncSession] | None = None

    async def init(self) -> None:
        if self._engine is not None:
            return
        self._engine = build_engine(self._database_url, env=self._env)
        self._sessionmaker = build_sessionmaker(self._engine)
        logger.info("SQL document store initialized (%s)", self._engine.url.get_backend_name())

    async def close(self) -> None:
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._sessionmaker = None
        logger.info("SQL document store closed")

    async def create_schema(self) -> None:
        """Create the documents table directly; production uses Alembic."""
        async with self._require_engine().begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_schema(self) -> None:
        async with self._require_engine().begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    def _require_engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("SqlDocumentStore.init() has not been called")
        return self._engine

    def _session(self):
        if self._sessionmaker is None:
            raise RuntimeError("SqlDocumentStore.init() has not been called")
        return self._sessionmaker.begin()

    async def _load_row(
        self,
        session: AsyncSession,
        collection: str,
        doc_id: str,
        *,
        for_update: bool = False,
    ) -> StoredDocument:
        q = sa.select(StoredDocument).where(
            StoredDocument.collection == collection,
            StoredDocument.id == doc_id,
        )
        if for_update:
            q = q.with_for_update()
        row = (await session.execute(q)).scalar_one_or_none()
        if row is None:
            raise NotFoundError(collection, "id", doc_id)
        return row

    async def create(self, collection: str, record: Mapping[str, Any]) -> Record:
        doc_id = record.get("id") or new_document_id()
        data = {**strip_meta(record), "id": doc_id}
        now = _now_utc()

        async with self._session() as session:
            row = await session.get(StoredDocument, (collection, doc_id))
            if row is None:
                row = StoredDocument(
                    collection=collection,
                    id=doc_id,
                    data=data,
                    created_at=now,
                    updated_at=now,
                )
                session.add(row)
            else:
                # same id: overwrite, like a document "set"
                row.data = data
                row.created_at = now
                row.updated_at = now
            await session.flush()
            return _to_record(row)

    async def get(self, collection: str, doc_id: str) -> Record:
        async with self._session() as session:
            row = await self._load_row(session, collection, doc_id)
            return _to_record(row)

    async def update(
        self,
        collection: str,
        doc_id: str,
        partial: Mapping[str, Any],
        *,
        expected: Mapping[str, Any] | None = None,
    ) -> Record:
        async with self._session() as session:
            row = await self._load_row(session, collection, doc_id, for_update=True)
            check_expected(collection, doc_id, row.data or {}, expected)
            # assign a new dict so the JSON column is flagged dirty
            row.data = {**(row.data or {}), **strip_meta(partial), "id": doc_id}
            row.updated_at = _now_utc()
            await session.flush()
            return _to_record(row)

    async def delete(self, collection: str, doc_id: str) -> None:
        async with self._session() as session:
            await session.execute(
                sa.delete(StoredDocument).where(
                    StoredDocument.collection == collection,
                    StoredDocument.id == doc_id,
                )
            )

    async def query(
        self,
        collection: str,
        filters: Sequence[FieldFilter] = (),
        order_by: Sequence[OrderBy] = (),
    ) -> list[Record]:
        q = sa.select(StoredDocument).where(StoredDocument.collection == collection)
        for f in filters:
            q = q.where(_json_field(f.field, f.value) == _filter_value(f.value))

        ordering = []
        for o in order_by:
            expr = StoredDocument.data[o.field].as_string()
            ordering.append(expr.desc() if o.descending else expr.asc())
        ordering.append(StoredDocument.id.asc())
        q = q.order_by(*ordering)

        async with self._session() as session:
            rows = (await session.execute(q)).scalars().all()
            return [_to_record(r) for r in rows]

    async def modify_arrays(
        self,
        collection: str,
        doc_id: str,
        *,
        add: Mapping[str, Sequence[Any]] | None = None,
        remove: Mapping[str, Sequence[Any]] | None = None,
    ) -> Record:
        add_fields, remove_fields = check_array_fields(add, remove)

        async with self._session() as session:
            # row lock keeps concurrent membership edits from clobbering each other
            row = await self._load_row(session, collection, doc_id, for_update=True)
            data = dict(row.data or {})
            for field, values in add_fields.items():
                data[field] = union_values(data.get(field), values)
            for field, values in remove_fields.items():
                data[field] = remove_values(data.get(field), values)
            row.data = data
            row.updated_at = _now_utc()
            await session.flush()
            return _to_record(row)
