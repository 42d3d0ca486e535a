from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

import firebase_admin
from firebase_admin import auth as firebase_auth

from parentplanner.core.errors import NotFoundError
from parentplanner.core.security import hash_password, verify_password
from parentplanner.models.credential import Credential
from parentplanner.models.user import User
from parentplanner.services.results import Lookup
from parentplanner.services.users import create_user, get_user_by_email, get_user_by_id
from parentplanner.stores.base import Collections, DocumentStore, FieldFilter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthIdentity:
    uid: str
    email: str


def _clean_email(value: str) -> str:
    return value.strip().lower()


async def _find_credential(store: DocumentStore, email: str) -> Credential | None:
    records = await store.query(Collections.CREDENTIALS, [FieldFilter("email", email)])
    if not records:
        return None
    return Credential.model_validate(records[0])


async def register_credentials(store: DocumentStore, email: str, password: str) -> AuthIdentity:
    email = _clean_email(email)
    if await _find_credential(store, email) is not None:
        raise ValueError("email_in_use")

    credential = Credential(
        id=uuid.uuid4().hex,
        email=email,
        password_hash=hash_password(password),
    )
    await store.create(Collections.CREDENTIALS, credential.to_document())
    return AuthIdentity(uid=credential.id, email=email)


async def verify_credentials(store: DocumentStore, email: str, password: str) -> AuthIdentity:
    email = _clean_email(email)
    credential = await _find_credential(store, email)
    if credential is None or not verify_password(password, credential.password_hash):
        raise ValueError("invalid_credentials")
    return AuthIdentity(uid=credential.id, email=credential.email)


def verify_firebase_token(id_token: str, app: firebase_admin.App) -> AuthIdentity:
    try:
        decoded = firebase_auth.verify_id_token(id_token, app=app)
    except (ValueError, firebase_auth.InvalidIdTokenError, firebase_auth.ExpiredIdTokenError) as e:
        raise ValueError("invalid_token") from e

    uid = decoded.get("uid")
    if not isinstance(uid, str) or not uid:
        raise ValueError("invalid_token")
    email = decoded.get("email")
    return AuthIdentity(uid=uid, email=_clean_email(email) if isinstance(email, str) else "")


async def sign_up(store: DocumentStore, *, email: str, password: str, child_nickname: str) -> User:
    identity = await register_credentials(store, email, password)
    return await create_user(
        store,
        User(id=identity.uid, email=identity.email, child_nickname=child_nickname, friends=[]),
    )


async def resolve_session_user(store: DocumentStore, identity: AuthIdentity) -> Lookup[User]:
    """Map an authenticated identity to its directory user.

    Email first, then the auth uid. When neither finds a record the value is
    a minimal user built from the identity and ``error`` is set.
    """
    if identity.email:
        try:
            return Lookup(await get_user_by_email(store, identity.email))
        except NotFoundError as e:
            logger.warning("Failed to get user by email, trying by ID: %s", e)

    lookup = await get_user_by_id(store, identity.uid)
    if lookup.ok:
        return lookup

    return Lookup(User(id=identity.uid, email=identity.email), error=lookup.error)
