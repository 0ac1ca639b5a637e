"""Daily job that expires stale invitations and approval requests."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import or_, select

from kids_scheduler.models.approval_request import ApprovalRequest, ApprovalStatus
from kids_scheduler.models.invitation import PENDING_INVITATION_STATUSES, Invitation, InvitationStatus
from kids_scheduler.services.record_store import RecordStore
from kids_scheduler.services.workflow import refresh_badge_count

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    invitations: int = 0
    approval_requests: int = 0


async def sweep_expired(store: RecordStore, now: datetime) -> SweepResult:
    """Move every pending record whose ``expires_at`` lies before ``now`` to expired.

    Pending approval requests of an expired invitation are closed in the
    same run, whatever their own deadline.

    Each collection is updated in one atomic batch.  The status predicate is
    part of the UPDATE itself, so records that reached a terminal state in
    the meantime are left alone and a repeated run is a no-op.
    """
    result = SweepResult()

    result.invitations = await store.update_where(
        Invitation,
        Invitation.expires_at < now,
        Invitation.status.in_(PENDING_INVITATION_STATUSES),
        values={"status": InvitationStatus.EXPIRED, "updated_at": now},
    )
    logger.info(f"Expired {result.invitations} old invitations")

    # Requests outlive their invitation when the recipient accepted late
    stale = (
        ApprovalRequest.status == ApprovalStatus.PENDING,
        or_(
            ApprovalRequest.expires_at < now,
            ApprovalRequest.invitation_id.in_(
                select(Invitation.id).where(Invitation.status == InvitationStatus.EXPIRED)
            ),
        ),
    )
    stale_requests = await store.select_where(ApprovalRequest, *stale)
    result.approval_requests = await store.update_where(
        ApprovalRequest,
        *stale,
        values={"status": ApprovalStatus.EXPIRED},
    )
    logger.info(f"Expired {result.approval_requests} old approval requests")

    for parent_id in sorted({r.parent_id for r in stale_requests}):
        await refresh_badge_count(store, parent_id)
    return result
