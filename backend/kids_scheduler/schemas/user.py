from datetime import datetime

from pydantic import BaseModel, EmailStr, Field


class ParentCreate(BaseModel):
    email: EmailStr
    parent_name: str = Field(min_length=1, max_length=100)
    fcm_token: str | None = None


class PushTokenUpdate(BaseModel):
    fcm_token: str | None = None


class ParentOut(BaseModel):
    id: str
    email: str
    parent_name: str
    pending_approval_count: int
    created_at: datetime

    model_config = {"from_attributes": True}


class ChildCreate(BaseModel):
    parent_id: str
    child_name: str = Field(min_length=1, max_length=100)
    age: int = Field(ge=0, le=18)
    avatar_url: str | None = None
    avatar_emoji: str = "🙂"


class ChildOut(BaseModel):
    id: str
    parent_id: str
    child_name: str
    age: int
    avatar_url: str | None = None
    avatar_emoji: str
    created_at: datetime

    model_config = {"from_attributes": True}
