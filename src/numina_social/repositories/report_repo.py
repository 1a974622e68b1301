"""Data access helpers for message reports."""
from __future__ import annotations

from sqlalchemy.orm import Session

from numina_social.db.time import utcnow
from numina_social.models.message_report import MessageReport, ReportStatus

__all__ = ["MessageReportRepository"]


class MessageReportRepository:
    """Persistence for reports filed against messages."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def create(self, *, message_id: str, reporter_id: int, reason: str) -> MessageReport:
        """Insert a PENDING report and return it."""
        report = MessageReport(
            message_id=message_id,
            reporter_id=reporter_id,
            reason=reason,
            status=ReportStatus.PENDING,
            created_at=utcnow(),
        )
        self.session.add(report)
        self.session.flush()
        return report

    def get_by_id(self, report_id: str) -> MessageReport | None:
        return self.session.get(MessageReport, report_id)
