"""Friend invitation and friendship approval workflow.

An invitation needs two parental approvals before a friendship exists:

    pending_sender_approval --sender parent approves--> pending_recipient
    pending_recipient --invited child accepts--> pending_recipient_approval
    pending_recipient_approval --recipient parent approves--> accepted

Every step that needs a parent's decision materializes an ApprovalRequest.
Notifications and badge counts are post-commit hooks: they run after the
transition is written and their failures never undo it.
"""
from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta

from email_validator import EmailNotValidError, validate_email
from fastapi import Depends

from kids_scheduler.config import settings
from kids_scheduler.database import get_store
from kids_scheduler.errors import (
    DeliveryError,
    InvalidStateError,
    UnauthorizedError,
    ValidationError,
)
from kids_scheduler.models.approval_request import (
    ApprovalRequest,
    ApprovalRequestType,
    ApprovalStatus,
)
from kids_scheduler.models.base import utcnow
from kids_scheduler.models.child import Child
from kids_scheduler.models.friendship import Friendship, FriendshipStatus
from kids_scheduler.models.invitation import Invitation, InvitationStatus
from kids_scheduler.models.user import User
from kids_scheduler.schemas.invitation import RecipientInfo, SenderInfo
from kids_scheduler.services.notifier import Notifier, get_notifier
from kids_scheduler.services.record_store import RecordStore

logger = logging.getLogger(__name__)

# Placeholder counterpart shown to the sender's parent before anyone accepted
UNKNOWN_CHILD_NAME = "New Friend"
UNKNOWN_PARENT_NAME = "Parent"


def normalize_email(value: str) -> str:
    """Syntax check only; private domains such as ``.local`` are accepted."""
    try:
        validated = validate_email(
            value.strip(), check_deliverability=False, globally_deliverable=False
        )
    except EmailNotValidError:
        raise ValidationError(f"'{value}' is not a valid e-mail address")
    return validated.normalized.lower()


async def refresh_badge_count(store: RecordStore, parent_id: str) -> int | None:
    """Recount a parent's pending approval requests into their badge."""
    parent = await store.find(User, parent_id)
    if parent is None:
        logger.debug(f"No user record for parent {parent_id}, badge not updated")
        return None
    pending = await store.select_where(
        ApprovalRequest,
        ApprovalRequest.parent_id == parent_id,
        ApprovalRequest.status == ApprovalStatus.PENDING,
    )
    parent.pending_approval_count = len(pending)
    await store.update(parent)
    return parent.pending_approval_count


class FriendWorkflow:
    def __init__(
        self,
        store: RecordStore,
        notifier: Notifier,
        clock: Callable[[], datetime] = utcnow,
        enforce_ownership: bool = True,
        invitation_ttl: timedelta | None = None,
        request_ttl: timedelta | None = None,
    ):
        self.store = store
        self.notifier = notifier
        self.clock = clock
        self.enforce_ownership = enforce_ownership
        self.invitation_ttl = invitation_ttl or timedelta(days=settings.invitation_expiry_days)
        self.request_ttl = request_ttl or timedelta(days=settings.approval_request_expiry_days)

    # ------------------------------------------------------------------
    # Child actions
    # ------------------------------------------------------------------

    async def create_invitation(
        self,
        sender: SenderInfo,
        to_email: str,
        to_phone_number: str | None = None,
        message: str | None = None,
    ) -> Invitation:
        to_email = normalize_email(to_email)
        now = self.clock()

        invitation = await self.store.create(
            Invitation(
                from_child_id=sender.child_id,
                from_child_name=sender.child_name,
                from_parent_id=sender.parent_id,
                from_parent_name=sender.parent_name,
                from_parent_email=sender.parent_email,
                to_email=to_email,
                to_phone_number=to_phone_number,
                status=InvitationStatus.PENDING_SENDER_APPROVAL,
                message=message,
                from_parent_approved=False,
                to_parent_approved=False,
                created_at=now,
                updated_at=now,
                expires_at=now + self.invitation_ttl,
            )
        )
        request = await self._create_approval_request(
            invitation,
            ApprovalRequestType.OUTGOING,
            parent_id=sender.parent_id,
            child_id=sender.child_id,
            child_name=sender.child_name,
            other_child_name=UNKNOWN_CHILD_NAME,
            other_parent_name=UNKNOWN_PARENT_NAME,
            other_parent_email=to_email,
            now=now,
        )
        logger.info(
            f"Invitation {invitation.id} from child {sender.child_id} to {to_email} "
            f"awaits approval by parent {sender.parent_id}"
        )
        await self._after_request_created(request)
        return invitation

    async def accept_as_recipient(self, invitation_id: str, recipient: RecipientInfo) -> Invitation:
        invitation = await self.store.get(Invitation, invitation_id)
        now = self.clock()
        self._require_status(invitation, InvitationStatus.PENDING_RECIPIENT, "accept")
        self._require_unexpired(invitation, now)

        invitation.to_child_id = recipient.child_id
        invitation.to_child_name = recipient.child_name
        invitation.to_parent_id = recipient.parent_id
        invitation.to_parent_name = recipient.parent_name
        invitation.status = InvitationStatus.PENDING_RECIPIENT_APPROVAL
        invitation.responded_at = now
        invitation.updated_at = now
        invitation = await self.store.update(invitation)

        request = await self._create_approval_request(
            invitation,
            ApprovalRequestType.INCOMING,
            parent_id=recipient.parent_id,
            child_id=recipient.child_id,
            child_name=recipient.child_name,
            other_child_name=invitation.from_child_name,
            other_parent_name=invitation.from_parent_name,
            other_parent_email=invitation.from_parent_email,
            now=now,
        )
        logger.info(
            f"Invitation {invitation.id} accepted by child {recipient.child_id}, "
            f"awaits approval by parent {recipient.parent_id}"
        )
        await self._after_request_created(request)
        return invitation

    async def decline_as_recipient(self, invitation_id: str) -> Invitation:
        invitation = await self.store.get(Invitation, invitation_id)
        now = self.clock()
        self._require_status(invitation, InvitationStatus.PENDING_RECIPIENT, "decline")
        self._require_unexpired(invitation, now)

        invitation.status = InvitationStatus.DECLINED
        invitation.responded_at = now
        invitation.updated_at = now
        logger.info(f"Invitation {invitation.id} declined by recipient")
        return await self.store.update(invitation)

    async def cancel_invitation(self, invitation_id: str, parent_id: str) -> Invitation:
        invitation = await self.store.get(Invitation, invitation_id)
        if invitation.from_parent_id != parent_id:
            raise UnauthorizedError("Only the sender's parent can cancel an invitation")
        if not invitation.is_pending:
            raise InvalidStateError(f"Cannot cancel invitation in status '{invitation.status}'")

        now = self.clock()
        invitation.status = InvitationStatus.CANCELLED
        invitation.updated_at = now
        invitation = await self.store.update(invitation)

        closed = await self.store.update_where(
            ApprovalRequest,
            ApprovalRequest.invitation_id == invitation.id,
            ApprovalRequest.status == ApprovalStatus.PENDING,
            values={"status": ApprovalStatus.EXPIRED, "responded_at": now},
        )
        logger.info(f"Invitation {invitation.id} cancelled, closed {closed} open approval requests")
        for affected in {invitation.from_parent_id, invitation.to_parent_id} - {None}:
            await refresh_badge_count(self.store, affected)
        return invitation

    # ------------------------------------------------------------------
    # Parent actions
    # ------------------------------------------------------------------

    async def respond_to_approval_request(
        self,
        request_id: str,
        approved: bool,
        parent_id: str | None = None,
    ) -> ApprovalRequest:
        request = await self.store.get(ApprovalRequest, request_id)
        if parent_id is not None and parent_id != request.parent_id:
            raise UnauthorizedError("Approval request belongs to another parent")
        if request.status != ApprovalStatus.PENDING:
            raise InvalidStateError(f"Approval request {request.id} is already {request.status}")
        now = self.clock()
        if request.expires_at <= now:
            raise InvalidStateError(f"Approval request {request.id} has expired")

        invitation = await self.store.get(Invitation, request.invitation_id)
        outgoing = request.request_type == ApprovalRequestType.OUTGOING
        if outgoing:
            self._require_status(invitation, InvitationStatus.PENDING_SENDER_APPROVAL, "respond to")
        else:
            self._require_status(invitation, InvitationStatus.PENDING_RECIPIENT_APPROVAL, "respond to")
            if not invitation.has_recipient:
                raise InvalidStateError(f"Invitation {invitation.id} has no recipient attached")
        self._require_unexpired(invitation, now)

        request.status = ApprovalStatus.APPROVED if approved else ApprovalStatus.DENIED
        request.responded_at = now
        request = await self.store.update(request)

        friendship = None
        if outgoing:
            if approved:
                invitation.from_parent_approved = True
                invitation.from_parent_approved_at = now
                invitation.status = InvitationStatus.PENDING_RECIPIENT
            else:
                invitation.status = InvitationStatus.DENIED_BY_SENDER_PARENT
        else:
            if approved:
                invitation.to_parent_approved = True
                invitation.to_parent_approved_at = now
                if invitation.from_parent_approved:
                    invitation.status = InvitationStatus.ACCEPTED
                    friendship = await self._create_friendship(invitation, now)
            else:
                invitation.status = InvitationStatus.DENIED_BY_RECIPIENT_PARENT
        invitation.updated_at = now
        invitation = await self.store.update(invitation)
        logger.info(
            f"Parent {request.parent_id} {request.status} {request.request_type} request "
            f"{request.id}; invitation {invitation.id} is now {invitation.status}"
        )

        await refresh_badge_count(self.store, request.parent_id)
        if outgoing and approved:
            await self._deliver(
                self.notifier.notify_email_invitation(invitation),
                f"Invitation e-mail for {invitation.id}",
            )
        if friendship is not None:
            await self._deliver(
                self.notifier.notify_friendship_created(friendship),
                f"Friendship notification for {friendship.id}",
            )
        return request

    async def pause_friendship(self, friendship_id: str, parent_id: str) -> Friendship:
        return await self._set_paused(friendship_id, parent_id, True)

    async def resume_friendship(self, friendship_id: str, parent_id: str) -> Friendship:
        return await self._set_paused(friendship_id, parent_id, False)

    async def block_friendship(self, friendship_id: str, parent_id: str) -> Friendship:
        friendship = await self.store.get(Friendship, friendship_id)
        if parent_id not in (friendship.parent1_id, friendship.parent2_id):
            if self.enforce_ownership:
                raise UnauthorizedError(f"Parent {parent_id} is not a party to this friendship")
            logger.warning(f"Parent {parent_id} blocks friendship {friendship.id} without being a party")
        friendship.status = FriendshipStatus.BLOCKED
        friendship.updated_at = self.clock()
        logger.info(f"Friendship {friendship.id} blocked by parent {parent_id}")
        return await self.store.update(friendship)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def fetch_pending_approval_requests(self, parent_id: str) -> list[ApprovalRequest]:
        requests = await self.store.query(ApprovalRequest, "parent_id", parent_id)
        now = self.clock()
        pending = [
            r for r in requests
            if r.status == ApprovalStatus.PENDING and r.expires_at > now
        ]
        return sorted(pending, key=lambda r: r.created_at, reverse=True)

    async def fetch_friendships(self, child_id: str) -> list[Friendship]:
        as_child1 = await self.store.query(Friendship, "child1_id", child_id)
        as_child2 = await self.store.query(Friendship, "child2_id", child_id)
        return sorted(as_child1 + as_child2, key=lambda f: f.created_at, reverse=True)

    async def fetch_friends(self, child_id: str) -> list[Child]:
        friends = []
        for friendship in await self.fetch_friendships(child_id):
            if not friendship.is_active:
                continue
            friends.append(await self.store.get(Child, friendship.other_child_id(child_id)))
        return friends

    async def fetch_sent_invitations(self, child_id: str) -> list[Invitation]:
        invitations = await self.store.query(Invitation, "from_child_id", child_id)
        now = self.clock()
        return [
            inv for inv in invitations
            if inv.status not in (InvitationStatus.ACCEPTED, InvitationStatus.DECLINED)
            and inv.expires_at > now
        ]

    async def fetch_pending_invitations_by_email(self, email: str) -> list[Invitation]:
        invitations = await self.store.query(Invitation, "to_email", email.strip().lower())
        now = self.clock()
        return [
            inv for inv in invitations
            if inv.status == InvitationStatus.PENDING_RECIPIENT and inv.expires_at > now
        ]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _require_status(invitation: Invitation, expected: InvitationStatus, action: str) -> None:
        if invitation.status != expected:
            raise InvalidStateError(
                f"Cannot {action} invitation {invitation.id} in status '{invitation.status}'"
            )

    @staticmethod
    def _require_unexpired(invitation: Invitation, now: datetime) -> None:
        if invitation.expires_at <= now:
            raise InvalidStateError(f"Invitation {invitation.id} has expired")

    async def _create_approval_request(
        self,
        invitation: Invitation,
        request_type: ApprovalRequestType,
        parent_id: str,
        child_id: str,
        child_name: str,
        other_child_name: str,
        other_parent_name: str,
        other_parent_email: str,
        now: datetime,
    ) -> ApprovalRequest:
        return await self.store.create(
            ApprovalRequest(
                parent_id=parent_id,
                child_id=child_id,
                child_name=child_name,
                request_type=request_type,
                invitation_id=invitation.id,
                other_child_name=other_child_name,
                other_parent_name=other_parent_name,
                other_parent_email=other_parent_email,
                message=invitation.message,
                status=ApprovalStatus.PENDING,
                created_at=now,
                expires_at=now + self.request_ttl,
            )
        )

    async def _create_friendship(self, invitation: Invitation, now: datetime) -> Friendship:
        friendship = await self.store.create(
            Friendship(
                invitation_id=invitation.id,
                child1_id=invitation.from_child_id,
                child1_name=invitation.from_child_name,
                child2_id=invitation.to_child_id,
                child2_name=invitation.to_child_name,
                parent1_id=invitation.from_parent_id,
                parent2_id=invitation.to_parent_id,
                status=FriendshipStatus.ACTIVE,
                is_paused_by_parent1=False,
                is_paused_by_parent2=False,
                created_at=now,
                updated_at=now,
            )
        )
        logger.info(
            f"Friendship {friendship.id} created between "
            f"{friendship.child1_id} and {friendship.child2_id}"
        )
        return friendship

    async def _set_paused(self, friendship_id: str, parent_id: str, paused: bool) -> Friendship:
        friendship = await self.store.get(Friendship, friendship_id)
        if friendship.parent1_id == parent_id:
            friendship.is_paused_by_parent1 = paused
        elif friendship.parent2_id == parent_id:
            friendship.is_paused_by_parent2 = paused
        elif self.enforce_ownership:
            raise UnauthorizedError(f"Parent {parent_id} is not a party to this friendship")
        else:
            logger.warning(f"Parent {parent_id} is not a party to friendship {friendship.id}, pause flags unchanged")
        friendship.updated_at = self.clock()
        return await self.store.update(friendship)

    async def _after_request_created(self, request: ApprovalRequest) -> None:
        await refresh_badge_count(self.store, request.parent_id)
        await self._deliver(
            self.notifier.notify_approval_needed(
                request.parent_id,
                request.request_type,
                request.child_name,
                request.other_child_name,
                request.id,
            ),
            f"Approval notification for request {request.id}",
        )

    async def _deliver(self, notification: Awaitable[None], what: str) -> None:
        try:
            await notification
        except DeliveryError as e:
            logger.warning(f"{what} failed, transition kept: {e}")


def get_workflow(
    store: RecordStore = Depends(get_store),
    notifier: Notifier = Depends(get_notifier),
) -> FriendWorkflow:
    return FriendWorkflow(store, notifier, enforce_ownership=settings.enforce_friendship_ownership)
