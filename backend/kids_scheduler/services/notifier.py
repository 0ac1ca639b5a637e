"""Outbound notifications fired after workflow transitions.

Implementations raise ``DeliveryError`` when a message cannot be delivered.
The workflow engine catches it; the transition that triggered the
notification is already committed by then.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from fastapi import Depends
from sqlalchemy.exc import SQLAlchemyError

from kids_scheduler.database import get_store
from kids_scheduler.errors import DeliveryError
from kids_scheduler.models.approval_request import ApprovalRequestType
from kids_scheduler.models.delivery_log import DeliveryLog
from kids_scheduler.models.friendship import Friendship
from kids_scheduler.models.invitation import Invitation
from kids_scheduler.models.user import User
from kids_scheduler.services.email import send_invitation_email
from kids_scheduler.services.push import send_push
from kids_scheduler.services.record_store import RecordStore

logger = logging.getLogger(__name__)


class Notifier(ABC):
    @abstractmethod
    async def notify_approval_needed(
        self,
        parent_id: str,
        request_type: str,
        child_name: str,
        other_child_name: str,
        request_id: str,
    ) -> None:
        """Tell a parent that an approval request is waiting."""

    @abstractmethod
    async def notify_email_invitation(self, invitation: Invitation) -> None:
        """E-mail the invited family once the sender's parent approved."""

    @abstractmethod
    async def notify_friendship_created(self, friendship: Friendship) -> None:
        """Tell both parents that their children are now friends."""


def approval_message(request_type: str, child_name: str, other_child_name: str) -> tuple[str, str]:
    if request_type == ApprovalRequestType.OUTGOING:
        return "Approval Needed", f"{child_name} wants to invite {other_child_name} to be friends"
    return "New Friend Request", f"{other_child_name} wants to be friends with {child_name}"


class DefaultNotifier(Notifier):
    """Sends push via the gateway and e-mail via SMTP, logging every attempt."""

    def __init__(self, store: RecordStore):
        self.store = store

    async def notify_approval_needed(
        self,
        parent_id: str,
        request_type: str,
        child_name: str,
        other_child_name: str,
        request_id: str,
    ) -> None:
        title, body = approval_message(request_type, child_name, other_child_name)
        await self._push_to_parent(
            parent_id,
            title,
            body,
            {
                "type": "parent_approval",
                "requestId": request_id,
                "requestType": str(request_type),
                "childName": child_name,
                "otherChildName": other_child_name,
            },
            request_id=request_id,
        )

    async def notify_email_invitation(self, invitation: Invitation) -> None:
        try:
            await send_invitation_email(invitation)
        except DeliveryError as e:
            await self._log(
                "email", "friend_invitation", invitation.to_email,
                invitation_id=invitation.id, error=str(e),
            )
            raise
        await self._log("email", "friend_invitation", invitation.to_email, invitation_id=invitation.id)

    async def notify_friendship_created(self, friendship: Friendship) -> None:
        first_error = None
        sides = [
            (friendship.parent1_id, friendship.child2_name),
            (friendship.parent2_id, friendship.child1_name),
        ]
        for parent_id, friend_name in sides:
            try:
                await self._push_to_parent(
                    parent_id,
                    "New Friend! 🎉",
                    f"You're now friends with {friend_name}! 🎉",
                    {
                        "type": "friendship_approved",
                        "invitationId": friendship.invitation_id,
                        "friendshipId": friendship.id,
                    },
                    invitation_id=friendship.invitation_id,
                )
            except DeliveryError as e:
                logger.error(f"Friendship notification for parent {parent_id} failed: {e}")
                first_error = first_error or e
        if first_error is not None:
            raise first_error

    async def _push_to_parent(
        self,
        parent_id: str,
        title: str,
        body: str,
        data: dict[str, str],
        request_id: str | None = None,
        invitation_id: str | None = None,
    ) -> None:
        kind = data["type"]
        parent = await self.store.find(User, parent_id)
        if parent is None:
            logger.warning(f"Parent {parent_id} not found, skipping {kind} push")
            return
        if not parent.fcm_token:
            logger.info(f"No push token for parent {parent_id}, skipping {kind} push")
            return

        try:
            sent = await send_push(parent.fcm_token, title, body, data)
        except DeliveryError as e:
            await self._log(
                "push", kind, parent_id,
                request_id=request_id, invitation_id=invitation_id, error=str(e),
            )
            raise
        if sent:
            logger.info(f"Push notification '{kind}' sent to parent {parent_id}")
            await self._log("push", kind, parent_id, request_id=request_id, invitation_id=invitation_id)

    async def _log(
        self,
        channel: str,
        kind: str,
        recipient: str,
        request_id: str | None = None,
        invitation_id: str | None = None,
        error: str | None = None,
    ) -> None:
        try:
            await self.store.create(
                DeliveryLog(
                    channel=channel,
                    kind=kind,
                    recipient=recipient,
                    request_id=request_id,
                    invitation_id=invitation_id,
                    status="failed" if error else "sent",
                    error=error,
                )
            )
        except SQLAlchemyError as e:
            logger.error(f"Could not record {channel} delivery to {recipient}: {e}")


def get_notifier(store: RecordStore = Depends(get_store)) -> Notifier:
    return DefaultNotifier(store)
