from datetime import datetime

from pydantic import BaseModel


class SenderInfo(BaseModel):
    child_id: str
    child_name: str
    parent_id: str
    parent_name: str
    parent_email: str


class RecipientInfo(BaseModel):
    child_id: str
    child_name: str
    parent_id: str
    parent_name: str


class InvitationCreate(BaseModel):
    sender: SenderInfo
    # Validated by the workflow so malformed addresses surface as ValidationError
    to_email: str
    to_phone_number: str | None = None
    message: str | None = None


class InvitationCancel(BaseModel):
    parent_id: str


class InvitationOut(BaseModel):
    id: str
    from_child_id: str
    from_child_name: str
    from_parent_id: str
    from_parent_name: str
    from_parent_email: str
    to_email: str
    to_phone_number: str | None = None
    to_child_id: str | None = None
    to_child_name: str | None = None
    to_parent_id: str | None = None
    to_parent_name: str | None = None
    status: str
    message: str | None = None
    from_parent_approved: bool
    from_parent_approved_at: datetime | None = None
    to_parent_approved: bool
    to_parent_approved_at: datetime | None = None
    created_at: datetime
    expires_at: datetime
    responded_at: datetime | None = None

    model_config = {"from_attributes": True}
