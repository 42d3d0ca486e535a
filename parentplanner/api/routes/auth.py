from __future__ import annotations

import logging

import firebase_admin
from fastapi import APIRouter, Depends, HTTPException, Response, status

from parentplanner.api.deps import COOKIE_NAME, get_firebase_app, get_store
from parentplanner.api.http_errors import value_error
from parentplanner.core.config import settings
from parentplanner.core.errors import InvalidTransitionError, NotFoundError
from parentplanner.core.security import create_access_token
from parentplanner.models.user import User
from parentplanner.schemas.auth import (
    FirebaseLoginRequest,
    FirebaseLoginResponse,
    LoginRequest,
    LoginResponse,
    LogoutResponse,
    RegisterRequest,
    RegisterResponse,
)
from parentplanner.services.auth import resolve_session_user, sign_up, verify_credentials, verify_firebase_token
from parentplanner.services.users import accept_invitation, create_user
from parentplanner.stores.base import DocumentStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _auth_cookie_options() -> dict[str, object]:
    return {
        "httponly": True,
        "secure": settings.auth_cookie_secure_value(),
        "samesite": settings.auth_cookie_samesite,
        "path": "/",
    }


def _set_auth_cookie(response: Response, user_id: str) -> None:
    token = create_access_token(subject=user_id)
    response.set_cookie(
        key=COOKIE_NAME,
        value=token,
        max_age=settings.access_token_expire_minutes * 60,
        **_auth_cookie_options(),
    )


def _clear_auth_cookie(response: Response) -> None:
    response.set_cookie(
        key=COOKIE_NAME,
        value="",
        max_age=0,
        expires=0,
        **_auth_cookie_options(),
    )


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    payload: RegisterRequest,
    response: Response,
    store: DocumentStore = Depends(get_store),
):
    try:
        user = await sign_up(
            store,
            email=payload.email,
            password=payload.password,
            child_nickname=payload.child_nickname,
        )
    except ValueError as e:
        raise value_error(
            e,
            code_statuses={"email_in_use": 409},
            detail_overrides={"email_in_use": "Email already in use"},
        ) from e

    _set_auth_cookie(response, user.id)

    # Sign-up links carry the inviter's code; redeem it once the account exists.
    invitation_accepted: bool | None = None
    if payload.invite_code:
        try:
            await accept_invitation(store, payload.invite_code.strip().upper(), user.id)
            invitation_accepted = True
        except (NotFoundError, InvalidTransitionError) as e:
            logger.warning("Could not redeem invite code at sign-up for %s: %s", user.id, e)
            invitation_accepted = False

    return RegisterResponse(id=user.id, invitation_accepted=invitation_accepted)


@router.post("/login", response_model=LoginResponse)
async def login(
    payload: LoginRequest,
    response: Response,
    store: DocumentStore = Depends(get_store),
):
    try:
        identity = await verify_credentials(store, payload.email, payload.password)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    lookup = await resolve_session_user(store, identity)
    _set_auth_cookie(response, lookup.value.id)
    return LoginResponse(ok=True)


@router.post("/firebase", response_model=FirebaseLoginResponse)
async def firebase_login(
    payload: FirebaseLoginRequest,
    response: Response,
    store: DocumentStore = Depends(get_store),
    firebase_app: firebase_admin.App = Depends(get_firebase_app),
):
    try:
        identity = verify_firebase_token(payload.id_token, firebase_app)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    lookup = await resolve_session_user(store, identity)
    created = False
    user = lookup.value
    if not lookup.ok:
        if not isinstance(lookup.error, NotFoundError):
            raise lookup.error
        user = await create_user(
            store,
            User(
                id=identity.uid,
                email=identity.email,
                child_nickname=(payload.child_nickname or "").strip(),
                friends=[],
            ),
        )
        created = True

    _set_auth_cookie(response, user.id)
    return FirebaseLoginResponse(id=user.id, created=created)


@router.post("/logout", response_model=LogoutResponse)
async def logout(response: Response):
    _clear_auth_cookie(response)
    return LogoutResponse(ok=True)
