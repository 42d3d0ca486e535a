from parentplanner.models.activity import Activity
from parentplanner.models.credential import Credential
from parentplanner.models.document import StoredDocument
from parentplanner.models.invitation import FriendInvitation, InvitationStatus
from parentplanner.models.user import User

__all__ = [
    "Activity",
    "Credential",
    "FriendInvitation",
    "InvitationStatus",
    "StoredDocument",
    "User",
]
