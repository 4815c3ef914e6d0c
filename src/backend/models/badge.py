"""
Earned badge records.

Badge metadata is copied onto the record at award time; a badge id can be
earned once per user.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base
from db.types import UTCDateTime, utc_now

if TYPE_CHECKING:
    from models.user import User


class UserBadge(Base):
    """A badge earned by a user."""

    __tablename__ = "user_badges"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
    )
    badge_id: Mapped[str] = mapped_column(String(50))

    # Display metadata
    badge_name: Mapped[str] = mapped_column(String(100))
    badge_description: Mapped[str] = mapped_column(Text, default="")
    badge_icon: Mapped[str] = mapped_column(String(10), default="")  # Emoji
    badge_rarity: Mapped[str] = mapped_column(String(20), default="common")  # common, rare, epic, legendary

    token_bonus: Mapped[int] = mapped_column(Integer, default=0)

    earned_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utc_now)

    user: Mapped["User"] = relationship("User", back_populates="badges")

    __table_args__ = (UniqueConstraint("user_id", "badge_id", name="uq_user_badge"),)
