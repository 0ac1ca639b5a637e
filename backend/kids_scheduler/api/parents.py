from fastapi import APIRouter, Depends, HTTPException, status

from kids_scheduler.database import get_store
from kids_scheduler.models.user import User
from kids_scheduler.schemas.user import ParentCreate, ParentOut, PushTokenUpdate
from kids_scheduler.services.record_store import RecordStore

router = APIRouter(prefix="/api/parents", tags=["parents"])


@router.post("/", response_model=ParentOut, status_code=status.HTTP_201_CREATED)
async def create_parent(
    data: ParentCreate,
    store: RecordStore = Depends(get_store),
):
    email = data.email.lower()
    if await store.query(User, "email", email):
        raise HTTPException(status_code=409, detail="A parent with this e-mail already exists")

    parent = await store.create(
        User(email=email, parent_name=data.parent_name, fcm_token=data.fcm_token)
    )
    return ParentOut.model_validate(parent)


@router.get("/{parent_id}", response_model=ParentOut)
async def get_parent(
    parent_id: str,
    store: RecordStore = Depends(get_store),
):
    return ParentOut.model_validate(await store.get(User, parent_id))


@router.put("/{parent_id}/push-token", response_model=ParentOut)
async def update_push_token(
    parent_id: str,
    data: PushTokenUpdate,
    store: RecordStore = Depends(get_store),
):
    parent = await store.get(User, parent_id)
    parent.fcm_token = data.fcm_token
    return ParentOut.model_validate(await store.update(parent))
