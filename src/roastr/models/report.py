"""Models tracking user reports against posts."""

from datetime import datetime

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from roastr.db.session import Base
from roastr.db.time import UTCDateTime, utcnow


class Report(Base):
    """One report filed against a post; repeats from the same reporter are kept."""

    __tablename__ = "report"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    post_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("post.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # Null for anonymous reporters.
    reporter_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("user_profile.id"),
        nullable=True,
    )
    # Hashed client address of an anonymous reporter, kept for audit.
    reporter_key: Mapped[str | None] = mapped_column(String(80), nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)
