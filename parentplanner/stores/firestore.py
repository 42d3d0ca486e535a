from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

import firebase_admin
from firebase_admin import firestore_async
from google.api_core.exceptions import NotFound
from google.cloud.firestore import SERVER_TIMESTAMP, ArrayRemove, ArrayUnion, Query, async_transactional
from google.cloud.firestore_v1.base_query import FieldFilter as FirestoreFieldFilter

from parentplanner.core.errors import NotFoundError
from parentplanner.services.firebase import initialize_firebase_app
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
    strip_meta,
)

logger = logging.getLogger(__name__)


def _to_record(snapshot) -> Record:
    data = snapshot.to_dict() or {}
    return {"id": snapshot.id, **data}


class FirestoreDocumentStore(DocumentStore):
    """Document store over Cloud Firestore through the firebase-admin async client.

    A ``client`` or an initialized Firebase ``app`` can be passed in;
    otherwise ``init()`` initializes the default app itself and deletes it
    again on ``close()``.
    """

    def __init__(
        self,
        *,
        credentials_file: str | None = None,
        project_id: str | None = None,
        app: firebase_admin.App | None = None,
        client: Any = None,
    ) -> None:
        self._credentials_file = credentials_file
        self._project_id = project_id
        self._app = app
        self._owns_app = False
        self._client = client

    async def init(self) -> None:
        if self._client is not None:
            return
        if self._app is None:
            self._app = initialize_firebase_app(self._credentials_file, self._project_id)
            self._owns_app = True
        self._client = firestore_async.client(app=self._app)
        logger.info("Firestore document store initialized (project=%s)", self._app.project_id)

    async def close(self) -> None:
        self._client = None
        if self._owns_app and self._app is not None:
            firebase_admin.delete_app(self._app)
            self._app = None
            self._owns_app = False
        logger.info("Firestore document store closed")

    def _doc(self, collection: str, doc_id: str):
        if self._client is None:
            raise RuntimeError("FirestoreDocumentStore.init() has not been called")
        return self._client.collection(collection).document(doc_id)

    async def _read(self, collection: str, doc_id: str) -> Record:
        snapshot = await self._doc(collection, doc_id).get()
        if not snapshot.exists:
            raise NotFoundError(collection, "id", doc_id)
        return _to_record(snapshot)

    async def create(self, collection: str, record: Mapping[str, Any]) -> Record:
        doc_id = record.get("id") or new_document_id()
        data = {
            **strip_meta(record),
            "id": doc_id,
            CREATED_AT: SERVER_TIMESTAMP,
            UPDATED_AT: SERVER_TIMESTAMP,
        }
        await self._doc(collection, doc_id).set(data)
        return await self._read(collection, doc_id)

    async def get(self, collection: str, doc_id: str) -> Record:
        return await self._read(collection, doc_id)

    async def update(
        self,
        collection: str,
        doc_id: str,
        partial: Mapping[str, Any],
        *,
        expected: Mapping[str, Any] | None = None,
    ) -> Record:
        data = {**strip_meta(partial), UPDATED_AT: SERVER_TIMESTAMP}
        if expected:
            await self._update_if_matches(collection, doc_id, data, expected)
            return await self._read(collection, doc_id)

        try:
            await self._doc(collection, doc_id).update(data)
        except NotFound as e:
            raise NotFoundError(collection, "id", doc_id) from e
        return await self._read(collection, doc_id)

    async def _update_if_matches(
        self,
        collection: str,
        doc_id: str,
        data: Mapping[str, Any],
        expected: Mapping[str, Any],
    ) -> None:
        ref = self._doc(collection, doc_id)

        # retried by the client when another transaction touches the document
        @async_transactional
        async def _apply(transaction) -> None:
            snapshot = await ref.get(transaction=transaction)
            if not snapshot.exists:
                raise NotFoundError(collection, "id", doc_id)
            check_expected(collection, doc_id, snapshot.to_dict() or {}, expected)
            transaction.update(ref, dict(data))

        await _apply(self._client.transaction())

    async def delete(self, collection: str, doc_id: str) -> None:
        await self._doc(collection, doc_id).delete()

    async def query(
        self,
        collection: str,
        filters: Sequence[FieldFilter] = (),
        order_by: Sequence[OrderBy] = (),
    ) -> list[Record]:
        if self._client is None:
            raise RuntimeError("FirestoreDocumentStore.init() has not been called")

        q = self._client.collection(collection)
        for f in filters:
            q = q.where(filter=FirestoreFieldFilter(f.field, "==", f.value))
        for o in order_by:
            q = q.order_by(o.field, direction=Query.DESCENDING if o.descending else Query.ASCENDING)

        return [_to_record(snapshot) async for snapshot in q.stream()]

    async def modify_arrays(
        self,
        collection: str,
        doc_id: str,
        *,
        add: Mapping[str, Sequence[Any]] | None = None,
        remove: Mapping[str, Sequence[Any]] | None = None,
    ) -> Record:
        add_fields, remove_fields = check_array_fields(add, remove)

        data: dict[str, Any] = {UPDATED_AT: SERVER_TIMESTAMP}
        for field, values in add_fields.items():
            data[field] = ArrayUnion(values)
        for field, values in remove_fields.items():
            data[field] = ArrayRemove(values)

        try:
            await self._doc(collection, doc_id).update(data)
        except NotFound as e:
            raise NotFoundError(collection, "id", doc_id) from e
        return await self._read(collection, doc_id)
