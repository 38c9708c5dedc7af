"""
Report Dispatcher - Emails the weekly report to the elder's guardian.

One attempt per call. On success the send is recorded as a
ReportSendReceipt keyed by the week end, so only the latest send per week
is retained.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .aggregator import ReportService, WeeklyReport
from .errors import DeliveryFailed, MissingRecipient, StoreUnavailable
from .renderer import email_subject, identity_for, render_email_html
from ..channels import EmailClient, EmailDeliveryError
from ..config import settings
from ..models import ReportSendReceipt
from ..storage import RecordStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DispatchResult:
    report: WeeklyReport
    email_id: Optional[str]
    message: str

    def to_response(self) -> Dict[str, Any]:
        body = {
            "success": True,
            "message": self.message,
            "reportData": self.report.to_response(),
        }
        if self.email_id:
            body["emailId"] = self.email_id
        return body


class ReportDispatcher:
    """Computes, renders and delivers the weekly report."""

    def __init__(
        self,
        records: RecordStore,
        email_client: Optional[EmailClient],
        sender: Optional[str] = None,
    ):
        """
        Args:
            records: Record store for stats, profile and receipts
            email_client: Outbound email client; None when email is not configured
            sender: From address (defaults to settings.email_from)
        """
        self.records = records
        self.email_client = email_client
        self.sender = sender or settings.email_from
        self.reports = ReportService(records)

    async def send_weekly_report(self, user_id: str, today: Optional[str] = None) -> DispatchResult:
        """
        Send this week's report to the guardian.

        Args:
            user_id: Elder user ID
            today: Override for the week end (YYYY-MM-DD), defaults to today

        Returns:
            DispatchResult: The report that was sent and the provider message id

        Raises:
            MissingRecipient: No guardian email on the profile; nothing is sent
            DeliveryFailed: Email not configured, provider unreachable or rejected
            StoreUnavailable: Records could not be read
        """
        report = await self.reports.build_weekly_report(user_id, today=today)

        if not report.guardian_email:
            logger.info(f"Weekly report for user {user_id} not sent: no guardian email")
            raise MissingRecipient(report_data=report.to_response())

        if self.email_client is None:
            logger.error("Weekly report not sent: no email provider configured (RESEND_API_KEY)")
            raise DeliveryFailed(
                "Email service not configured",
                report_data=report.to_response(),
            )

        identity = identity_for(report)
        try:
            response = await self.email_client.send(
                sender=self.sender,
                to=[report.guardian_email],
                subject=email_subject(identity),
                html=render_email_html(report.statistics, identity),
            )
        except EmailDeliveryError as e:
            raise DeliveryFailed(
                f"Failed to send email: {e.message}",
                report_data=report.to_response(),
                provider_message=e.message,
            ) from e

        email_id = response.get("id")
        logger.info(
            "Weekly report sent",
            extra={"extra_fields": {
                "user_id": user_id,
                "week_end": report.week_end,
                "email_id": email_id,
            }},
        )

        receipt = ReportSendReceipt(
            guardian_email=report.guardian_email,
            week_start=report.week_start,
            week_end=report.week_end,
            statistics=report.statistics,
            email_id=email_id,
        )
        try:
            await self.records.save_report_receipt(user_id, receipt)
        except StoreUnavailable as e:
            logger.error(f"Report for user {user_id} was sent but the receipt was not saved: {e.message}")

        return DispatchResult(
            report=report,
            email_id=email_id,
            message=f"Weekly report sent successfully to {report.guardian_email}",
        )

    async def last_receipt(self, user_id: str, week_end: str) -> Optional[ReportSendReceipt]:
        """Most recent send recorded for the week ending on week_end."""
        return await self.records.get_report_receipt(user_id, week_end)
