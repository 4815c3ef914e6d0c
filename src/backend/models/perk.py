"""
Perk redemption log.

Append-only. The cost is captured at redemption time so later catalog
price changes do not rewrite history.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base
from db.types import UTCDateTime, utc_now

if TYPE_CHECKING:
    from models.user import User


class PerkRedemption(Base):
    """One redemption of a perk."""

    __tablename__ = "user_perks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
    )
    perk_id: Mapped[str] = mapped_column(String(50))
    perk_name: Mapped[str] = mapped_column(String(100))
    cost: Mapped[int] = mapped_column(Integer)

    redeemed_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utc_now)

    user: Mapped["User"] = relationship("User", back_populates="perks")

    __table_args__ = (CheckConstraint("cost >= 1", name="cost_positive"),)
