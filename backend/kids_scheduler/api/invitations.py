"""API endpoints for friend invitations between children."""
from fastapi import APIRouter, Depends, status

from kids_scheduler.database import get_store
from kids_scheduler.models.invitation import Invitation
from kids_scheduler.schemas.invitation import (
    InvitationCancel,
    InvitationCreate,
    InvitationOut,
    RecipientInfo,
)
from kids_scheduler.services.record_store import RecordStore
from kids_scheduler.services.workflow import FriendWorkflow, get_workflow

router = APIRouter(prefix="/api/invitations", tags=["invitations"])


@router.post("/", response_model=InvitationOut, status_code=status.HTTP_201_CREATED)
async def create_invitation(
    data: InvitationCreate,
    workflow: FriendWorkflow = Depends(get_workflow),
):
    """Child asks to befriend someone; the child's parent must approve first."""
    invitation = await workflow.create_invitation(
        data.sender,
        data.to_email,
        to_phone_number=data.to_phone_number,
        message=data.message,
    )
    return InvitationOut.model_validate(invitation)


@router.get("/", response_model=list[InvitationOut])
async def list_invitations_for_email(
    email: str,
    workflow: FriendWorkflow = Depends(get_workflow),
):
    """Open invitations waiting for the family behind ``email``."""
    invitations = await workflow.fetch_pending_invitations_by_email(email)
    return [InvitationOut.model_validate(i) for i in invitations]


@router.get("/{invitation_id}", response_model=InvitationOut)
async def get_invitation(
    invitation_id: str,
    store: RecordStore = Depends(get_store),
):
    return InvitationOut.model_validate(await store.get(Invitation, invitation_id))


@router.post("/{invitation_id}/accept", response_model=InvitationOut)
async def accept_invitation(
    invitation_id: str,
    data: RecipientInfo,
    workflow: FriendWorkflow = Depends(get_workflow),
):
    invitation = await workflow.accept_as_recipient(invitation_id, data)
    return InvitationOut.model_validate(invitation)


@router.post("/{invitation_id}/decline", response_model=InvitationOut)
async def decline_invitation(
    invitation_id: str,
    workflow: FriendWorkflow = Depends(get_workflow),
):
    invitation = await workflow.decline_as_recipient(invitation_id)
    return InvitationOut.model_validate(invitation)


@router.post("/{invitation_id}/cancel", response_model=InvitationOut)
async def cancel_invitation(
    invitation_id: str,
    data: InvitationCancel,
    workflow: FriendWorkflow = Depends(get_workflow),
):
    invitation = await workflow.cancel_invitation(invitation_id, data.parent_id)
    return InvitationOut.model_validate(invitation)
