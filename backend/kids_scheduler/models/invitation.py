from datetime import datetime
from enum import StrEnum

from sqlalchemy import Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from kids_scheduler.models.base import Base, StringPrimaryKey, TimestampMixin, UTCDateTime


class InvitationStatus(StrEnum):
    PENDING_SENDER_APPROVAL = "pending_sender_approval"  # Waiting for sender's parent
    PENDING_RECIPIENT = "pending_recipient"  # E-mailed, waiting for the other child
    PENDING_RECIPIENT_APPROVAL = "pending_recipient_approval"  # Waiting for recipient's parent
    ACCEPTED = "accepted"
    DECLINED = "declined"
    DENIED_BY_SENDER_PARENT = "denied_by_sender_parent"
    DENIED_BY_RECIPIENT_PARENT = "denied_by_recipient_parent"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


PENDING_INVITATION_STATUSES = (
    InvitationStatus.PENDING_SENDER_APPROVAL,
    InvitationStatus.PENDING_RECIPIENT,
    InvitationStatus.PENDING_RECIPIENT_APPROVAL,
)


class Invitation(Base, StringPrimaryKey, TimestampMixin):
    """One child's request to befriend another, addressed by e-mail."""

    __tablename__ = "invitations"

    from_child_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    from_child_name: Mapped[str] = mapped_column(String(100), nullable=False)
    from_parent_id: Mapped[str] = mapped_column(String(36), nullable=False)
    from_parent_name: Mapped[str] = mapped_column(String(100), nullable=False)
    from_parent_email: Mapped[str] = mapped_column(String(255), nullable=False)

    to_email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    to_phone_number: Mapped[str | None] = mapped_column(String(32), nullable=True)

    # Populated when the recipient accepts
    to_child_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    to_child_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    to_parent_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    to_parent_name: Mapped[str | None] = mapped_column(String(100), nullable=True)

    status: Mapped[str] = mapped_column(
        String(40), nullable=False, default=InvitationStatus.PENDING_SENDER_APPROVAL
    )
    message: Mapped[str | None] = mapped_column(Text, nullable=True)

    from_parent_approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    from_parent_approved_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    to_parent_approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    to_parent_approved_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    expires_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    responded_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    @property
    def is_pending(self) -> bool:
        return self.status in PENDING_INVITATION_STATUSES

    @property
    def has_recipient(self) -> bool:
        return self.to_child_id is not None
