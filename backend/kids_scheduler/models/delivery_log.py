from datetime import datetime

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from kids_scheduler.models.base import Base, StringPrimaryKey, UTCDateTime, utcnow


class DeliveryLog(Base, StringPrimaryKey):
    """Audit row for every e-mail or push delivery attempt."""

    __tablename__ = "delivery_logs"

    channel: Mapped[str] = mapped_column(String(10), nullable=False)  # 'email' or 'push'
    kind: Mapped[str] = mapped_column(
        String(40), nullable=False
    )  # 'friend_invitation', 'parent_approval', 'friendship_approved'
    invitation_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    request_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    recipient: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(String(10), nullable=False)  # 'sent' or 'failed'
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    sent_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, nullable=False)
