from __future__ import annotations

import firebase_admin
from fastapi import Cookie, Depends, HTTPException, Request, status

from parentplanner.core.errors import NotFoundError
from parentplanner.core.security import decode_access_token
from parentplanner.models.user import User
from parentplanner.services.users import get_user_by_id
from parentplanner.stores.base import DocumentStore

COOKIE_NAME = "access_token"


def get_store(request: Request) -> DocumentStore:
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Store not initialized")
    return store


def get_firebase_app(request: Request) -> firebase_admin.App:
    app = getattr(request.app.state, "firebase_app", None)
    if app is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Firebase sign-in is not configured",
        )
    return app


async def get_current_user(
    store: DocumentStore = Depends(get_store),
    access_token: str | None = Cookie(default=None, alias=COOKIE_NAME),
) -> User:
    if not access_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    user_id = decode_access_token(access_token)
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid token")

    lookup = await get_user_by_id(store, user_id)
    if isinstance(lookup.error, NotFoundError):
        # This is the “stale cookie / DB reset” case
        raise HTTPException(status_code=401, detail="User not found")

    return lookup.unwrap()
