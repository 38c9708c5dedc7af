"""
Weekly report API endpoints - report data, exports and guardian delivery.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse, Response

from ..channels import EmailClient, get_email_client
from ..core import dates
from ..core.aggregator import ReportService
from ..core.dispatcher import ReportDispatcher
from ..core.errors import NotFound
from ..core.renderer import csv_filename, identity_for, render_csv, render_printable_document
from ..storage import RecordStore, get_record_store
from ..utils.auth import get_current_user_id

logger = logging.getLogger(__name__)

router = APIRouter(tags=["reports"])


def get_report_service(records: RecordStore = Depends(get_record_store)) -> ReportService:
    return ReportService(records)


def get_report_dispatcher(
    records: RecordStore = Depends(get_record_store),
    email_client: Optional[EmailClient] = Depends(get_email_client),
) -> ReportDispatcher:
    return ReportDispatcher(records, email_client)


@router.get("/weekly-report")
async def get_weekly_report(
    user_id: str = Depends(get_current_user_id),
    reports: ReportService = Depends(get_report_service),
):
    """Statistics and records for the current week (Monday to today)."""
    report = await reports.build_weekly_report(user_id)
    return {"success": True, "reportData": report.to_response()}


@router.get("/weekly-report/csv")
async def download_weekly_report_csv(
    user_id: str = Depends(get_current_user_id),
    reports: ReportService = Depends(get_report_service),
):
    """The current week's report as a CSV attachment."""
    today = dates.today()
    report = await reports.build_weekly_report(user_id, today=today)
    identity = identity_for(report)
    content = render_csv(report.statistics, identity, report.surveys, report.camera_moods, today=today)
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{csv_filename(identity)}"'},
    )


@router.get("/weekly-report/printable", response_class=HTMLResponse)
async def get_printable_weekly_report(
    user_id: str = Depends(get_current_user_id),
    reports: ReportService = Depends(get_report_service),
):
    """The current week's report as a standalone printable HTML page."""
    today = dates.today()
    report = await reports.build_weekly_report(user_id, today=today)
    html = render_printable_document(
        report.statistics,
        identity_for(report),
        report.surveys,
        report.camera_moods,
        today=today,
    )
    return HTMLResponse(content=html)


@router.post("/send-weekly-report")
async def send_weekly_report(
    user_id: str = Depends(get_current_user_id),
    dispatcher: ReportDispatcher = Depends(get_report_dispatcher),
):
    """
    Email the current week's report to the guardian.

    Returns 400 when no guardian email is set and 500 when delivery fails;
    both error bodies still carry the computed reportData.
    """
    result = await dispatcher.send_weekly_report(user_id)
    return result.to_response()


@router.get("/report-receipts/{week_end}")
async def get_report_receipt(
    week_end: str,
    user_id: str = Depends(get_current_user_id),
    dispatcher: ReportDispatcher = Depends(get_report_dispatcher),
):
    """Most recent delivery recorded for the week ending on week_end."""
    week_end = dates.parse_date(week_end).isoformat()
    receipt = await dispatcher.last_receipt(user_id, week_end)
    if receipt is None:
        raise NotFound(f"No report has been sent for the week ending {week_end}")
    return {"success": True, "receipt": receipt.to_store()}
