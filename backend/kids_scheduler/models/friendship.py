from enum import StrEnum

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from kids_scheduler.models.base import Base, StringPrimaryKey, TimestampMixin


class FriendshipStatus(StrEnum):
    ACTIVE = "active"
    SUSPENDED = "suspended"  # Temporarily suspended by a parent
    BLOCKED = "blocked"


class Friendship(Base, StringPrimaryKey, TimestampMixin):
    __tablename__ = "friendships"

    # One friendship per accepted invitation
    invitation_id: Mapped[str] = mapped_column(String(36), unique=True, nullable=False)

    # Side 1 is the inviting child, side 2 the invited one
    child1_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    child1_name: Mapped[str] = mapped_column(String(100), nullable=False)
    child2_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    child2_name: Mapped[str] = mapped_column(String(100), nullable=False)
    parent1_id: Mapped[str] = mapped_column(String(36), nullable=False)
    parent2_id: Mapped[str] = mapped_column(String(36), nullable=False)

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=FriendshipStatus.ACTIVE
    )
    is_paused_by_parent1: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_paused_by_parent2: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    @property
    def is_active(self) -> bool:
        return (
            self.status == FriendshipStatus.ACTIVE
            and not self.is_paused_by_parent1
            and not self.is_paused_by_parent2
        )

    def other_child_id(self, child_id: str) -> str:
        return self.child2_id if self.child1_id == child_id else self.child1_id
