from fastapi import APIRouter, Depends

from kids_scheduler.schemas.approval import ApprovalRequestOut, ApprovalResponse
from kids_scheduler.services.workflow import FriendWorkflow, get_workflow

router = APIRouter(prefix="/api/approvals", tags=["approvals"])


@router.get("/", response_model=list[ApprovalRequestOut])
async def list_pending_approvals(
    parent_id: str,
    workflow: FriendWorkflow = Depends(get_workflow),
):
    requests = await workflow.fetch_pending_approval_requests(parent_id)
    return [ApprovalRequestOut.model_validate(r) for r in requests]


@router.post("/{request_id}/respond", response_model=ApprovalRequestOut)
async def respond_to_approval(
    request_id: str,
    data: ApprovalResponse,
    workflow: FriendWorkflow = Depends(get_workflow),
):
    request = await workflow.respond_to_approval_request(
        request_id, data.approved, parent_id=data.parent_id
    )
    return ApprovalRequestOut.model_validate(request)
