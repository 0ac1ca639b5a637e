from fastapi import APIRouter, Depends

from kids_scheduler.database import get_store
from kids_scheduler.models.friendship import Friendship
from kids_scheduler.schemas.friendship import FriendshipAction, FriendshipOut
from kids_scheduler.services.record_store import RecordStore
from kids_scheduler.services.workflow import FriendWorkflow, get_workflow

router = APIRouter(prefix="/api/friendships", tags=["friendships"])


@router.get("/{friendship_id}", response_model=FriendshipOut)
async def get_friendship(
    friendship_id: str,
    store: RecordStore = Depends(get_store),
):
    return FriendshipOut.model_validate(await store.get(Friendship, friendship_id))


@router.post("/{friendship_id}/pause", response_model=FriendshipOut)
async def pause_friendship(
    friendship_id: str,
    data: FriendshipAction,
    workflow: FriendWorkflow = Depends(get_workflow),
):
    friendship = await workflow.pause_friendship(friendship_id, data.parent_id)
    return FriendshipOut.model_validate(friendship)


@router.post("/{friendship_id}/resume", response_model=FriendshipOut)
async def resume_friendship(
    friendship_id: str,
    data: FriendshipAction,
    workflow: FriendWorkflow = Depends(get_workflow),
):
    friendship = await workflow.resume_friendship(friendship_id, data.parent_id)
    return FriendshipOut.model_validate(friendship)


@router.post("/{friendship_id}/block", response_model=FriendshipOut)
async def block_friendship(
    friendship_id: str,
    data: FriendshipAction,
    workflow: FriendWorkflow = Depends(get_workflow),
):
    friendship = await workflow.block_friendship(friendship_id, data.parent_id)
    return FriendshipOut.model_validate(friendship)
