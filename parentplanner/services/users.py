from __future__ import annotations

import logging
import secrets

from parentplanner.core.errors import ConflictError, InvalidTransitionError, NotFoundError
from parentplanner.models.invitation import FriendInvitation, InvitationStatus
from parentplanner.models.user import User
from parentplanner.services.results import Lookup
from parentplanner.stores.base import Collections, DocumentStore, FieldFilter, now_millis

logger = logging.getLogger(__name__)

# No 0/O or 1/I, so codes survive being read aloud or retyped.
INVITE_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
INVITE_CODE_LENGTH = 6


def generate_random_code(length: int = INVITE_CODE_LENGTH) -> str:
    return "".join(secrets.choice(INVITE_CODE_ALPHABET) for _ in range(length))


async def create_user(store: DocumentStore, user: User) -> User:
    record = await store.create(Collections.USERS, user.to_document())
    return User.model_validate(record)


async def get_user_by_id(store: DocumentStore, user_id: str) -> Lookup[User]:
    try:
        record = await store.get(Collections.USERS, user_id)
    except Exception as e:
        logger.warning("Error fetching user with ID %s: %s", user_id, e)
        return Lookup(User(id=user_id), error=e)

    return Lookup(User.model_validate({**record, "id": user_id}))


async def get_user_by_email(store: DocumentStore, email: str) -> User:
    records = await store.query(Collections.USERS, [FieldFilter("email", email)])
    if not records:
        raise NotFoundError(Collections.USERS, "email", email)
    return User.model_validate(records[0])


async def update_user(store: DocumentStore, user: User) -> User:
    record = await store.update(Collections.USERS, user.id, user.to_document())
    return User.model_validate(record)


async def set_child_nickname(store: DocumentStore, user_id: str, child_nickname: str) -> User:
    # Writes the one field, so friend-list updates made meanwhile are kept.
    record = await store.update(Collections.USERS, user_id, {"childNickname": child_nickname})
    return User.model_validate(record)


async def _code_in_use(store: DocumentStore, code: str) -> bool:
    return bool(await store.query(Collections.INVITATIONS, [FieldFilter("code", code)]))


async def create_invitation(store: DocumentStore, from_user_id: str, email: str) -> FriendInvitation:
    # Try a few times to avoid rare code collisions
    for _ in range(10):
        code = generate_random_code()
        if await _code_in_use(store, code):
            continue

        invitation = FriendInvitation(
            id=f"{now_millis()}-{from_user_id}",
            from_user_id=from_user_id,
            code=code,
            email=email,
            status=InvitationStatus.PENDING,
        )
        record = await store.create(Collections.INVITATIONS, invitation.to_document())
        return FriendInvitation.model_validate(record)

    raise RuntimeError("Failed to generate unique invite code")


async def get_invitation_by_code(store: DocumentStore, code: str) -> FriendInvitation:
    records = await store.query(Collections.INVITATIONS, [FieldFilter("code", code)])
    if not records:
        raise NotFoundError(Collections.INVITATIONS, "code", code)
    return FriendInvitation.model_validate(records[0])


async def accept_invitation(store: DocumentStore, code: str, accepting_user_id: str) -> FriendInvitation:
    """Redeem a pending invitation and befriend both users.

    The status change and the two friend-list updates are separate writes;
    a failure in between leaves the invitation accepted with the friend lists
    only partly updated.
    """
    invitation = await get_invitation_by_code(store, code)

    if invitation.status != InvitationStatus.PENDING:
        raise InvalidTransitionError("already_processed")

    if invitation.from_user_id == accepting_user_id:
        raise InvalidTransitionError("cannot_friend_self")

    try:
        # only one redemption can move the invitation out of pending
        record = await store.update(
            Collections.INVITATIONS,
            invitation.id,
            {"status": InvitationStatus.ACCEPTED.value},
            expected={"status": InvitationStatus.PENDING.value},
        )
    except ConflictError as e:
        raise InvalidTransitionError("already_processed") from e
    accepted = FriendInvitation.model_validate(record)

    await store.modify_arrays(
        Collections.USERS,
        invitation.from_user_id,
        add={"friends": [accepting_user_id]},
    )
    await store.modify_arrays(
        Collections.USERS,
        accepting_user_id,
        add={"friends": [invitation.from_user_id]},
    )

    logger.info("User %s accepted invitation %s from %s", accepting_user_id, invitation.id, invitation.from_user_id)
    return accepted


async def get_user_friends(store: DocumentStore, user_id: str) -> list[User]:
    user = (await get_user_by_id(store, user_id)).value

    friends: list[User] = []
    for friend_id in user.friends:
        lookup = await get_user_by_id(store, friend_id)
        if not lookup.ok:
            logger.error("Error fetching friend with ID %s: %s", friend_id, lookup.error)
            continue
        friends.append(lookup.value)

    return friends
