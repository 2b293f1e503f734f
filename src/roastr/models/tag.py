"""SQLAlchemy model for the tag catalog."""

from sqlalchemy import Boolean, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from roastr.db.session import Base


class Tag(Base):
    """Label attached to posts; sensitive tags mark a post NSFW."""

    __tablename__ = "tag"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    emoji: Mapped[str] = mapped_column(String(16), nullable=False, default="")
    is_sensitive: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
