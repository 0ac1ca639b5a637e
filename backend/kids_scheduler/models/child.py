from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from kids_scheduler.models.base import Base, StringPrimaryKey, TimestampMixin


class Child(Base, StringPrimaryKey, TimestampMixin):
    __tablename__ = "children"

    parent_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=False, index=True
    )
    child_name: Mapped[str] = mapped_column(String(100), nullable=False)
    age: Mapped[int] = mapped_column(Integer, nullable=False)
    avatar_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    avatar_emoji: Mapped[str] = mapped_column(String(16), nullable=False, default="🙂")
