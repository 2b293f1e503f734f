"""Report ledger: the raw records behind report-driven moderation."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from roastr.models import Report

__all__ = ["ReportLedger"]


class ReportLedger:
    """Insert, count and clear reports for a post.

    The ledger does not lock or commit; callers run it inside the unit of work
    that holds the post row.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def add(
        self,
        post_id: int,
        *,
        reporter_id: int | None,
        reporter_key: str | None = None,
        created_at: datetime | None = None,
    ) -> Report:
        report = Report(
            post_id=post_id,
            reporter_id=reporter_id,
            reporter_key=reporter_key,
        )
        if created_at is not None:
            report.created_at = created_at
        self.db.add(report)
        self.db.flush()
        return report

    def count(self, post_id: int) -> int:
        return int(
            self.db.execute(
                select(func.count()).select_from(Report).where(Report.post_id == post_id)
            ).scalar()
            or 0
        )

    def clear(self, post_id: int) -> int:
        """Delete every report for the post and return how many were removed."""
        result = self.db.execute(delete(Report).where(Report.post_id == post_id))
        return int(result.rowcount or 0)
