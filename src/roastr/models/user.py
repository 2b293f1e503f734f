"""SQLAlchemy models for user profiles and roles."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from sqlalchemy import Enum, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from roastr.db.session import Base
from roastr.db.time import UTCDateTime, utcnow


class UserRole(StrEnum):
    """Privilege levels, lowest first."""

    USER = "user"
    MODERATOR = "moderator"
    ADMIN = "admin"
    SUPERADMIN = "superadmin"

    @property
    def rank(self) -> int:
        return list(UserRole).index(self)

    def at_least(self, other: UserRole) -> bool:
        """Return True if this role carries ``other``'s privileges."""
        return self.rank >= other.rank


class UserProfile(Base):
    """Public profile of a signed-in user; the identity provider owns credentials."""

    __tablename__ = "user_profile"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, native_enum=False, length=16, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=UserRole.USER,
    )
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)

    @property
    def is_moderator(self) -> bool:
        return self.role.at_least(UserRole.MODERATOR)
