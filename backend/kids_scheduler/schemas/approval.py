from datetime import datetime

from pydantic import BaseModel


class ApprovalResponse(BaseModel):
    approved: bool
    parent_id: str | None = None


class ApprovalRequestOut(BaseModel):
    id: str
    parent_id: str
    child_id: str
    child_name: str
    request_type: str
    invitation_id: str
    other_child_name: str
    other_parent_name: str
    other_parent_email: str
    message: str | None = None
    status: str
    created_at: datetime
    responded_at: datetime | None = None
    expires_at: datetime

    model_config = {"from_attributes": True}
