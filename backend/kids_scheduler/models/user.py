from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from kids_scheduler.models.base import Base, StringPrimaryKey, TimestampMixin


class User(Base, StringPrimaryKey, TimestampMixin):
    """A parent account."""

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    parent_name: Mapped[str] = mapped_column(String(100), nullable=False)
    fcm_token: Mapped[str | None] = mapped_column(String(512), nullable=True)
    pending_approval_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
