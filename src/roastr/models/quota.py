# models/quota.py
"""Lock rows serialising anonymous submissions per submitter."""

from datetime import datetime

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from roastr.db.session import Base
from roastr.db.time import UTCDateTime


class AnonymousQuota(Base):
    __tablename__ = "anonymous_quota"
    # "user:<id>" for signed-in submitters, "client:<sha256>" otherwise.
    submitter_key: Mapped[str] = mapped_column(String(80), primary_key=True)
    last_post_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
