"""
Activity completion records.

A user may complete each catalog activity at most once.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base
from db.types import UTCDateTime, utc_now

if TYPE_CHECKING:
    from models.user import User


class UserActivity(Base):
    """A completed activity and the rewards credited for it."""

    __tablename__ = "user_activities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
    )
    activity_id: Mapped[str] = mapped_column(String(50))

    tokens_earned: Mapped[int] = mapped_column(Integer, default=0)
    xp_earned: Mapped[int] = mapped_column(Integer, default=0)

    completed_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utc_now)

    user: Mapped["User"] = relationship("User", back_populates="activities")

    __table_args__ = (UniqueConstraint("user_id", "activity_id", name="uq_user_activity"),)
