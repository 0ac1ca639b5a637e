from fastapi import APIRouter, Depends, status

from kids_scheduler.database import get_store
from kids_scheduler.models.child import Child
from kids_scheduler.models.user import User
from kids_scheduler.schemas.friendship import FriendshipOut
from kids_scheduler.schemas.invitation import InvitationOut
from kids_scheduler.schemas.user import ChildCreate, ChildOut
from kids_scheduler.services.record_store import RecordStore
from kids_scheduler.services.workflow import FriendWorkflow, get_workflow

router = APIRouter(prefix="/api/children", tags=["children"])


@router.post("/", response_model=ChildOut, status_code=status.HTTP_201_CREATED)
async def create_child(
    data: ChildCreate,
    store: RecordStore = Depends(get_store),
):
    await store.get(User, data.parent_id)
    child = await store.create(
        Child(
            parent_id=data.parent_id,
            child_name=data.child_name,
            age=data.age,
            avatar_url=data.avatar_url,
            avatar_emoji=data.avatar_emoji,
        )
    )
    return ChildOut.model_validate(child)


@router.get("/{child_id}", response_model=ChildOut)
async def get_child(
    child_id: str,
    store: RecordStore = Depends(get_store),
):
    return ChildOut.model_validate(await store.get(Child, child_id))


@router.get("/{child_id}/friends", response_model=list[ChildOut])
async def list_friends(
    child_id: str,
    workflow: FriendWorkflow = Depends(get_workflow),
):
    """Friends through active friendships only."""
    friends = await workflow.fetch_friends(child_id)
    return [ChildOut.model_validate(c) for c in friends]


@router.get("/{child_id}/friendships", response_model=list[FriendshipOut])
async def list_friendships(
    child_id: str,
    workflow: FriendWorkflow = Depends(get_workflow),
):
    friendships = await workflow.fetch_friendships(child_id)
    return [FriendshipOut.model_validate(f) for f in friendships]


@router.get("/{child_id}/invitations", response_model=list[InvitationOut])
async def list_sent_invitations(
    child_id: str,
    workflow: FriendWorkflow = Depends(get_workflow),
):
    invitations = await workflow.fetch_sent_invitations(child_id)
    return [InvitationOut.model_validate(i) for i in invitations]
