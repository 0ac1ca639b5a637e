"""Tests for the friend invitation approval workflow."""
from datetime import timedelta

import pytest

from kids_scheduler.errors import (
    InvalidStateError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from kids_scheduler.models import (
    ApprovalRequest,
    ApprovalStatus,
    Friendship,
    Invitation,
    InvitationStatus,
    User,
)


async def request_for(store, invitation_id, request_type):
    rows = await store.select_where(
        ApprovalRequest,
        ApprovalRequest.invitation_id == invitation_id,
        ApprovalRequest.request_type == request_type,
    )
    assert len(rows) == 1
    return rows[0]


async def invite_and_approve(workflow, store, sender, email="b-parent@example.com"):
    invitation = await workflow.create_invitation(sender, email, message="Hi!")
    outgoing = await request_for(store, invitation.id, "outgoing")
    await workflow.respond_to_approval_request(outgoing.id, True)
    return invitation


@pytest.mark.asyncio
async def test_create_invitation_awaits_sender_parent(workflow, store, notifier, clock, sender):
    invitation = await workflow.create_invitation(
        sender, " B-Parent@Example.com ", to_phone_number="+15550100", message="Hi!"
    )

    stored = await store.get(Invitation, invitation.id)
    assert stored.status == InvitationStatus.PENDING_SENDER_APPROVAL
    assert stored.to_email == "b-parent@example.com"
    assert stored.to_phone_number == "+15550100"
    assert stored.from_parent_approved is False
    assert stored.to_parent_approved is False
    assert stored.to_child_id is None
    assert stored.created_at == clock.now
    assert stored.expires_at == clock.now + timedelta(days=30)

    outgoing = await request_for(store, invitation.id, "outgoing")
    assert outgoing.parent_id == "parent-a"
    assert outgoing.child_name == "Alex"
    assert outgoing.other_child_name == "New Friend"
    assert outgoing.other_parent_email == "b-parent@example.com"
    assert outgoing.message == "Hi!"
    assert outgoing.status == ApprovalStatus.PENDING
    assert outgoing.expires_at == clock.now + timedelta(days=30)

    assert len(notifier.approvals) == 1
    assert notifier.approvals[0]["parent_id"] == "parent-a"
    assert notifier.approvals[0]["request_type"] == "outgoing"
    assert notifier.approvals[0]["request_id"] == outgoing.id


@pytest.mark.asyncio
async def test_create_invitation_rejects_invalid_email(workflow, store, notifier, sender):
    with pytest.raises(ValidationError):
        await workflow.create_invitation(sender, "not-an-email")

    assert await store.query(Invitation, "from_child_id", "child-a") == []
    assert notifier.approvals == []


@pytest.mark.asyncio
async def test_create_invitation_accepts_private_domains(workflow, sender):
    family = await workflow.create_invitation(sender, " Mom@Family.local ")
    assert family.to_email == "mom@family.local"

    local = await workflow.create_invitation(sender, "dad@localhost")
    assert local.to_email == "dad@localhost"

    for bad in ("mom@", "@family.local", "mom@@family.local", "mom family@example.com"):
        with pytest.raises(ValidationError):
            await workflow.create_invitation(sender, bad)


@pytest.mark.asyncio
async def test_full_approval_flow_creates_one_friendship(
    workflow, store, notifier, sender, recipient
):
    invitation = await workflow.create_invitation(sender, "b-parent@example.com", message="Hi!")
    assert invitation.status == InvitationStatus.PENDING_SENDER_APPROVAL

    outgoing = await request_for(store, invitation.id, "outgoing")
    await workflow.respond_to_approval_request(outgoing.id, True)
    stored = await store.get(Invitation, invitation.id)
    assert stored.status == InvitationStatus.PENDING_RECIPIENT
    assert stored.from_parent_approved is True
    assert stored.from_parent_approved_at is not None
    assert notifier.emails == [invitation.id]

    accepted = await workflow.accept_as_recipient(invitation.id, recipient)
    assert accepted.status == InvitationStatus.PENDING_RECIPIENT_APPROVAL
    assert accepted.to_child_id == "child-b"
    assert accepted.to_parent_name == "Robin Baker"
    assert accepted.responded_at is not None

    incoming = await request_for(store, invitation.id, "incoming")
    assert incoming.parent_id == "parent-b"
    assert incoming.other_child_name == "Alex"
    assert incoming.other_parent_name == "Pat Adams"
    assert incoming.other_parent_email == "pat.adams@example.com"
    assert notifier.approvals[-1]["request_type"] == "incoming"

    await workflow.respond_to_approval_request(incoming.id, True)
    final = await store.get(Invitation, invitation.id)
    assert final.status == InvitationStatus.ACCEPTED
    assert final.from_parent_approved and final.to_parent_approved

    friendships = await store.query(Friendship, "invitation_id", invitation.id)
    assert len(friendships) == 1
    friendship = friendships[0]
    assert friendship.child1_id == "child-a"
    assert friendship.child2_id == "child-b"
    assert friendship.parent1_id == "parent-a"
    assert friendship.parent2_id == "parent-b"
    assert friendship.status == "active"
    assert friendship.is_paused_by_parent1 is False
    assert friendship.is_paused_by_parent2 is False
    assert friendship.is_active
    assert notifier.friendships == [friendship.id]
    assert notifier.emails == [invitation.id]


@pytest.mark.asyncio
async def test_sender_parent_denial_is_terminal(workflow, store, notifier, sender, recipient):
    invitation = await workflow.create_invitation(sender, "b-parent@example.com")
    outgoing = await request_for(store, invitation.id, "outgoing")

    result = await workflow.respond_to_approval_request(outgoing.id, False)
    assert result.status == ApprovalStatus.DENIED
    assert result.responded_at is not None

    stored = await store.get(Invitation, invitation.id)
    assert stored.status == InvitationStatus.DENIED_BY_SENDER_PARENT
    assert stored.from_parent_approved is False
    assert notifier.emails == []

    with pytest.raises(InvalidStateError):
        await workflow.accept_as_recipient(invitation.id, recipient)
    assert await store.query(Friendship, "invitation_id", invitation.id) == []


@pytest.mark.asyncio
async def test_recipient_parent_denial_creates_no_friendship(
    workflow, store, notifier, sender, recipient
):
    invitation = await invite_and_approve(workflow, store, sender)
    await workflow.accept_as_recipient(invitation.id, recipient)
    incoming = await request_for(store, invitation.id, "incoming")

    await workflow.respond_to_approval_request(incoming.id, False)

    stored = await store.get(Invitation, invitation.id)
    assert stored.status == InvitationStatus.DENIED_BY_RECIPIENT_PARENT
    assert stored.to_parent_approved is False
    assert await store.query(Friendship, "invitation_id", invitation.id) == []
    assert notifier.friendships == []


@pytest.mark.asyncio
async def test_responding_twice_fails_without_side_effects(
    workflow, store, notifier, sender, recipient
):
    invitation = await workflow.create_invitation(sender, "b-parent@example.com")
    outgoing = await request_for(store, invitation.id, "outgoing")
    await workflow.respond_to_approval_request(outgoing.id, True)

    with pytest.raises(InvalidStateError):
        await workflow.respond_to_approval_request(outgoing.id, True)
    assert notifier.emails == [invitation.id]

    await workflow.accept_as_recipient(invitation.id, recipient)
    incoming = await request_for(store, invitation.id, "incoming")
    await workflow.respond_to_approval_request(incoming.id, True)

    with pytest.raises(InvalidStateError):
        await workflow.respond_to_approval_request(incoming.id, True)
    with pytest.raises(InvalidStateError):
        await workflow.respond_to_approval_request(incoming.id, False)

    assert len(await store.query(Friendship, "invitation_id", invitation.id)) == 1
    assert len(notifier.friendships) == 1
    stored = await store.get(Invitation, invitation.id)
    assert stored.status == InvitationStatus.ACCEPTED


@pytest.mark.asyncio
async def test_accept_requires_pending_recipient(workflow, store, sender, recipient):
    invitation = await workflow.create_invitation(sender, "b-parent@example.com")

    # Sender's parent has not approved yet
    with pytest.raises(InvalidStateError):
        await workflow.accept_as_recipient(invitation.id, recipient)

    stored = await store.get(Invitation, invitation.id)
    assert stored.to_child_id is None


@pytest.mark.asyncio
async def test_accept_after_expiry_fails_before_sweep(workflow, store, clock, sender, recipient):
    invitation = await invite_and_approve(workflow, store, sender)
    clock.advance(days=30, seconds=1)

    with pytest.raises(InvalidStateError):
        await workflow.accept_as_recipient(invitation.id, recipient)

    stored = await store.get(Invitation, invitation.id)
    assert stored.status == InvitationStatus.PENDING_RECIPIENT


@pytest.mark.asyncio
async def test_accept_unknown_invitation(workflow, recipient):
    with pytest.raises(NotFoundError):
        await workflow.accept_as_recipient("missing", recipient)


@pytest.mark.asyncio
async def test_respond_unknown_request(workflow):
    with pytest.raises(NotFoundError):
        await workflow.respond_to_approval_request("missing", True)


@pytest.mark.asyncio
async def test_respond_with_missing_invitation(workflow, store, clock):
    orphan = await store.create(
        ApprovalRequest(
            parent_id="parent-a",
            child_id="child-a",
            child_name="Alex",
            request_type="outgoing",
            invitation_id="gone",
            other_child_name="New Friend",
            other_parent_name="Parent",
            other_parent_email="b-parent@example.com",
            status="pending",
            created_at=clock.now,
            expires_at=clock.now + timedelta(days=30),
        )
    )

    with pytest.raises(NotFoundError):
        await workflow.respond_to_approval_request(orphan.id, True)

    unchanged = await store.get(ApprovalRequest, orphan.id)
    assert unchanged.status == ApprovalStatus.PENDING


@pytest.mark.asyncio
async def test_respond_by_other_parent_is_unauthorized(workflow, store, sender):
    invitation = await workflow.create_invitation(sender, "b-parent@example.com")
    outgoing = await request_for(store, invitation.id, "outgoing")

    with pytest.raises(UnauthorizedError):
        await workflow.respond_to_approval_request(outgoing.id, True, parent_id="parent-z")

    await workflow.respond_to_approval_request(outgoing.id, True, parent_id="parent-a")
    stored = await store.get(Invitation, invitation.id)
    assert stored.status == InvitationStatus.PENDING_RECIPIENT


@pytest.mark.asyncio
async def test_delivery_failures_do_not_undo_transitions(
    workflow, store, notifier, sender, recipient
):
    notifier.fail = True

    invitation = await invite_and_approve(workflow, store, sender)
    assert (await store.get(Invitation, invitation.id)).status == InvitationStatus.PENDING_RECIPIENT
    assert notifier.emails == [invitation.id]

    await workflow.accept_as_recipient(invitation.id, recipient)
    incoming = await request_for(store, invitation.id, "incoming")
    await workflow.respond_to_approval_request(incoming.id, True)

    assert (await store.get(Invitation, invitation.id)).status == InvitationStatus.ACCEPTED
    assert len(await store.query(Friendship, "invitation_id", invitation.id)) == 1


@pytest.mark.asyncio
async def test_decline_as_recipient(workflow, store, sender, recipient):
    invitation = await invite_and_approve(workflow, store, sender)

    declined = await workflow.decline_as_recipient(invitation.id)
    assert declined.status == InvitationStatus.DECLINED
    assert declined.responded_at is not None

    with pytest.raises(InvalidStateError):
        await workflow.accept_as_recipient(invitation.id, recipient)
    with pytest.raises(InvalidStateError):
        await workflow.decline_as_recipient(invitation.id)


@pytest.mark.asyncio
async def test_cancel_invitation_closes_open_requests(workflow, store, sender):
    invitation = await workflow.create_invitation(sender, "b-parent@example.com")
    outgoing = await request_for(store, invitation.id, "outgoing")

    with pytest.raises(UnauthorizedError):
        await workflow.cancel_invitation(invitation.id, "parent-z")

    cancelled = await workflow.cancel_invitation(invitation.id, "parent-a")
    assert cancelled.status == InvitationStatus.CANCELLED

    closed = await store.get(ApprovalRequest, outgoing.id)
    assert closed.status == ApprovalStatus.EXPIRED
    with pytest.raises(InvalidStateError):
        await workflow.respond_to_approval_request(outgoing.id, True)
    with pytest.raises(InvalidStateError):
        await workflow.cancel_invitation(invitation.id, "parent-a")


@pytest.mark.asyncio
async def test_fetch_pending_approval_requests(workflow, store, clock, sender):
    first = await workflow.create_invitation(sender, "one@example.com")
    clock.advance(hours=1)
    second = await workflow.create_invitation(sender, "two@example.com")
    clock.advance(hours=1)
    third = await workflow.create_invitation(sender, "three@example.com")

    pending = await workflow.fetch_pending_approval_requests("parent-a")
    assert [r.invitation_id for r in pending] == [third.id, second.id, first.id]

    answered = await request_for(store, second.id, "outgoing")
    await workflow.respond_to_approval_request(answered.id, False)
    pending = await workflow.fetch_pending_approval_requests("parent-a")
    assert [r.invitation_id for r in pending] == [third.id, first.id]

    assert await workflow.fetch_pending_approval_requests("parent-b") == []

    # first expires one hour before third
    clock.advance(days=30, minutes=-30)
    pending = await workflow.fetch_pending_approval_requests("parent-a")
    assert [r.invitation_id for r in pending] == [third.id]


@pytest.mark.asyncio
async def test_badge_count_tracks_pending_requests(workflow, store, sender, recipient):
    await store.create(User(id="parent-a", email="pat.adams@example.com", parent_name="Pat Adams"))
    await store.create(User(id="parent-b", email="robin@example.com", parent_name="Robin Baker"))

    invitation = await workflow.create_invitation(sender, "robin@example.com")
    assert (await store.get(User, "parent-a")).pending_approval_count == 1

    outgoing = await request_for(store, invitation.id, "outgoing")
    await workflow.respond_to_approval_request(outgoing.id, True)
    assert (await store.get(User, "parent-a")).pending_approval_count == 0

    await workflow.accept_as_recipient(invitation.id, recipient)
    assert (await store.get(User, "parent-b")).pending_approval_count == 1


@pytest.mark.asyncio
async def test_fetch_sent_and_email_invitations(workflow, store, clock, sender):
    waiting = await invite_and_approve(workflow, store, sender, email="robin@example.com")
    unapproved = await workflow.create_invitation(sender, "robin@example.com")
    declined = await invite_and_approve(workflow, store, sender, email="other@example.com")
    await workflow.decline_as_recipient(declined.id)

    sent = {inv.id for inv in await workflow.fetch_sent_invitations("child-a")}
    assert sent == {waiting.id, unapproved.id}

    by_email = await workflow.fetch_pending_invitations_by_email("Robin@Example.com")
    assert [inv.id for inv in by_email] == [waiting.id]

    clock.advance(days=31)
    assert await workflow.fetch_sent_invitations("child-a") == []
    assert await workflow.fetch_pending_invitations_by_email("robin@example.com") == []


@pytest.mark.asyncio
async def test_concurrent_writes_lose_updates(workflow, store, sender):
    """No compare-and-swap guards read-modify-write: the last writer wins."""
    invitation = await workflow.create_invitation(sender, "b-parent@example.com")
    outgoing = await request_for(store, invitation.id, "outgoing")
    stale = await store.get(ApprovalRequest, outgoing.id)

    await workflow.respond_to_approval_request(outgoing.id, True)
    assert (await store.get(ApprovalRequest, outgoing.id)).status == ApprovalStatus.APPROVED

    # A writer holding the earlier snapshot overwrites the approval
    stale.message = "edited elsewhere"
    await store.update(stale)
    reverted = await store.get(ApprovalRequest, outgoing.id)
    assert reverted.status == ApprovalStatus.PENDING
    assert reverted.message == "edited elsewhere"


@pytest.mark.asyncio
async def test_cancel_after_recipient_accepted_creates_no_friendship(
    workflow, store, notifier, sender, recipient
):
    invitation = await invite_and_approve(workflow, store, sender)
    await workflow.accept_as_recipient(invitation.id, recipient)
    incoming = await request_for(store, invitation.id, "incoming")

    await workflow.cancel_invitation(invitation.id, "parent-a")

    assert (await store.get(ApprovalRequest, incoming.id)).status == ApprovalStatus.EXPIRED
    assert await workflow.fetch_pending_approval_requests("parent-b") == []
    with pytest.raises(InvalidStateError):
        await workflow.respond_to_approval_request(incoming.id, True, parent_id="parent-b")

    assert (await store.get(Invitation, invitation.id)).status == InvitationStatus.CANCELLED
    assert await store.query(Friendship, "invitation_id", invitation.id) == []
    assert notifier.friendships == []
