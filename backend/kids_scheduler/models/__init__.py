from kids_scheduler.models.user import User
from kids_scheduler.models.child import Child
from kids_scheduler.models.invitation import Invitation, InvitationStatus
from kids_scheduler.models.approval_request import (
    ApprovalRequest,
    ApprovalRequestType,
    ApprovalStatus,
)
from kids_scheduler.models.friendship import Friendship, FriendshipStatus
from kids_scheduler.models.delivery_log import DeliveryLog

__all__ = [
    "User",
    "Child",
    "Invitation",
    "InvitationStatus",
    "ApprovalRequest",
    "ApprovalRequestType",
    "ApprovalStatus",
    "Friendship",
    "FriendshipStatus",
    "DeliveryLog",
]
