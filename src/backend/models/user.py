"""
User model.

Holds identity, profile and the progression balances (tokens, xp, level,
streak). Progression columns are written only through the event processor;
`version` backs the optimistic concurrency check on every ledger write.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Optional
from uuid import uuid4

from sqlalchemy import Boolean, CheckConstraint, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base
from db.types import UTCDateTime, utc_now

if TYPE_CHECKING:
    from models.activity import UserActivity
    from models.badge import UserBadge
    from models.perk import PerkRedemption
    from models.session import UserSession


class User(Base):
    """User account and progression record."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )

    # Authentication
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), default="")

    # Profile
    name: Mapped[str] = mapped_column(String(50))
    avatar: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    language: Mapped[str] = mapped_column(String(5), default="en")  # en, hi
    tts_enabled: Mapped[bool] = mapped_column(Boolean, default=False)

    # Progression
    tokens: Mapped[int] = mapped_column(Integer, default=0)
    xp: Mapped[int] = mapped_column(Integer, default=0)
    level: Mapped[int] = mapped_column(Integer, default=1)  # Always derived from xp
    streak: Mapped[int] = mapped_column(Integer, default=1)
    last_login: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)

    # Optimistic concurrency counter, bumped on every ledger write
    version: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utc_now, onupdate=utc_now)

    # Relationships
    activities: Mapped[list["UserActivity"]] = relationship(
        "UserActivity", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    badges: Mapped[list["UserBadge"]] = relationship(
        "UserBadge", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    perks: Mapped[list["PerkRedemption"]] = relationship(
        "PerkRedemption", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    sessions: Mapped[list["UserSession"]] = relationship(
        "UserSession", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )

    __table_args__ = (
        CheckConstraint("tokens >= 0", name="tokens_non_negative"),
        CheckConstraint("xp >= 0", name="xp_non_negative"),
        CheckConstraint("streak >= 1", name="streak_positive"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, tokens={self.tokens}, xp={self.xp}, level={self.level})>"
