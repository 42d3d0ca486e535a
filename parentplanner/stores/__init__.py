from __future__ import annotations

import firebase_admin

from parentplanner.core.config import Settings
from parentplanner.stores.base import Collections, DocumentStore, FieldFilter, OrderBy


def build_store(settings: Settings, *, firebase_app: firebase_admin.App | None = None) -> DocumentStore:
    if settings.store_backend == "firestore":
        from parentplanner.stores.firestore import FirestoreDocumentStore

        return FirestoreDocumentStore(
            credentials_file=settings.firebase_credentials_file,
            project_id=settings.firebase_project_id,
            app=firebase_app,
        )

    from parentplanner.stores.sql import SqlDocumentStore

    return SqlDocumentStore(settings.database_url, env=settings.env)


__all__ = ["Collections", "DocumentStore", "FieldFilter", "OrderBy", "build_store"]
