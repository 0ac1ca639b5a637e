from datetime import datetime

from pydantic import BaseModel


class FriendshipAction(BaseModel):
    parent_id: str


class FriendshipOut(BaseModel):
    id: str
    invitation_id: str
    child1_id: str
    child1_name: str
    child2_id: str
    child2_name: str
    parent1_id: str
    parent2_id: str
    status: str
    is_paused_by_parent1: bool
    is_paused_by_parent2: bool
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
