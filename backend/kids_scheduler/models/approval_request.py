from datetime import datetime
from enum import StrEnum

from sqlalchemy import String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from kids_scheduler.models.base import Base, StringPrimaryKey, UTCDateTime, utcnow


class ApprovalRequestType(StrEnum):
    OUTGOING = "outgoing"  # Own child wants to send a friend request
    INCOMING = "incoming"  # Own child received a friend request


class ApprovalStatus(StrEnum):
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"
    EXPIRED = "expired"


class ApprovalRequest(Base, StringPrimaryKey):
    """Parent-facing decision task derived from an invitation."""

    __tablename__ = "approval_requests"
    __table_args__ = (UniqueConstraint("invitation_id", "request_type"),)

    parent_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    child_id: Mapped[str] = mapped_column(String(36), nullable=False)
    child_name: Mapped[str] = mapped_column(String(100), nullable=False)

    request_type: Mapped[str] = mapped_column(String(20), nullable=False)
    invitation_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)

    other_child_name: Mapped[str] = mapped_column(String(100), nullable=False)
    other_parent_name: Mapped[str] = mapped_column(String(100), nullable=False)
    other_parent_email: Mapped[str] = mapped_column(String(255), nullable=False)

    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ApprovalStatus.PENDING
    )

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, nullable=False)
    responded_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
