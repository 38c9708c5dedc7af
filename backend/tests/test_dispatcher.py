"""
Unit tests for weekly report delivery and guardian messaging.
"""

import asyncio
import pytest
from unittest.mock import AsyncMock

from moodmirror.channels import EmailClient, EmailDeliveryError
from moodmirror.core import dates
from moodmirror.core.completion import KeyedLocks
from moodmirror.core.dispatcher import ReportDispatcher
from moodmirror.core.errors import DeliveryFailed, MissingRecipient, NotFound, StoreUnavailable
from moodmirror.core.messaging import GuardianMessenger
from moodmirror.models import BasicInfo, DoctorProfile, ElderProfile, GuardianMessage
from moodmirror.storage import LocalKVStore, RecordStore

from conftest import make_survey

TODAY = "2024-03-07"


def _email_client(result=None, error=None) -> EmailClient:
    client = AsyncMock(spec=EmailClient)
    if error is not None:
        client.send.side_effect = error
    else:
        client.send.return_value = result or {"id": "email-123"}
    return client


async def _with_guardian(records, email="sam@example.com"):
    await records.save_profile("u1", ElderProfile(guardian_name="Sam", guardian_email=email))


class TestReportDispatcher:

    @pytest.mark.asyncio
    async def test_missing_guardian_email_sends_nothing(self, records):
        await records.save_basic_info("u1", BasicInfo(email="ana@example.com", name="Ana"))
        await records.save_profile("u1", ElderProfile(guardian_name="Sam"))
        client = _email_client()

        with pytest.raises(MissingRecipient) as exc_info:
            await ReportDispatcher(records, client).send_weekly_report("u1", today=TODAY)

        body = exc_info.value.to_response()
        assert body["success"] is False
        assert body["error"].startswith("Guardian email not set")
        assert exc_info.value.status_code == 400
        client.send.assert_not_called()
        assert await records.get_report_receipt("u1", TODAY) is None

    @pytest.mark.asyncio
    async def test_success_sends_and_writes_receipt(self, records):
        await records.save_basic_info("u1", BasicInfo(email="ana@example.com", name="Ana"))
        await records.save_survey("u1", make_survey("2024-03-05", "calm", energy=6))
        await _with_guardian(records)
        client = _email_client({"id": "email-123"})

        result = await ReportDispatcher(records, client, sender="EMM <noreply@example.com>") \
            .send_weekly_report("u1", today=TODAY)

        kwargs = client.send.call_args.kwargs
        assert kwargs["to"] == ["sam@example.com"]
        assert kwargs["sender"] == "EMM <noreply@example.com>"
        assert kwargs["subject"] == "Weekly Wellness Report for Ana (2024-03-04 to 2024-03-07)"
        assert "Hello Sam," in kwargs["html"]

        assert result.email_id == "email-123"
        body = result.to_response()
        assert body["success"] is True
        assert body["emailId"] == "email-123"
        assert body["reportData"]["statistics"]["surveysCompleted"] == 1

        receipt = await records.get_report_receipt("u1", TODAY)
        assert receipt.guardian_email == "sam@example.com"
        assert receipt.week_start == "2024-03-04"
        assert receipt.email_id == "email-123"
        assert receipt.statistics == result.report.statistics

    @pytest.mark.asyncio
    async def test_repeat_send_overwrites_receipt(self, records):
        await _with_guardian(records)
        dispatcher = ReportDispatcher(records, _email_client({"id": "first"}))
        await dispatcher.send_weekly_report("u1", today=TODAY)
        dispatcher.email_client = _email_client({"id": "second"})
        await dispatcher.send_weekly_report("u1", today=TODAY)

        receipt = await dispatcher.last_receipt("u1", TODAY)
        assert receipt.email_id == "second"

    @pytest.mark.asyncio
    async def test_provider_error_is_delivery_failed(self, records):
        await _with_guardian(records)
        client = _email_client(error=EmailDeliveryError("Domain not verified", status_code=403))

        with pytest.raises(DeliveryFailed) as exc_info:
            await ReportDispatcher(records, client).send_weekly_report("u1", today=TODAY)

        error = exc_info.value
        assert error.status_code == 500
        assert error.provider_message == "Domain not verified"
        assert "Domain not verified" in error.message
        assert error.to_response()["reportData"]["weekEnd"] == TODAY
        assert await records.get_report_receipt("u1", TODAY) is None

    @pytest.mark.asyncio
    async def test_unconfigured_email_is_delivery_failed(self, records):
        await _with_guardian(records)
        with pytest.raises(DeliveryFailed, match="not configured"):
            await ReportDispatcher(records, None).send_weekly_report("u1", today=TODAY)
        assert await records.get_report_receipt("u1", TODAY) is None

    @pytest.mark.asyncio
    async def test_receipt_write_failure_does_not_fail_send(self, records, monkeypatch):
        await _with_guardian(records)
        monkeypatch.setattr(
            records, "save_report_receipt",
            AsyncMock(side_effect=StoreUnavailable("Record store unavailable: disk full")),
        )

        result = await ReportDispatcher(records, _email_client()).send_weekly_report("u1", today=TODAY)
        assert result.email_id == "email-123"

    @pytest.mark.asyncio
    async def test_defaults_to_current_week(self, records):
        await _with_guardian(records)
        result = await ReportDispatcher(records, _email_client()).send_weekly_report("u1")
        assert result.report.week_end == dates.today()
        assert result.report.week_start == dates.week_start(dates.today())


class TestGuardianMessenger:

    @pytest.mark.asyncio
    async def test_requires_guardian_email(self, records):
        with pytest.raises(NotFound):
            await GuardianMessenger(records).send_message("d1", "p1", "Hello")

    @pytest.mark.asyncio
    async def test_stores_and_notifies(self, records):
        await records.save_profile("p1", ElderProfile(guardian_email="sam@example.com"))
        await records.save_basic_info("p1", BasicInfo(email="ana@example.com", name="Ana"))
        await records.save_profile("d1", DoctorProfile(specialty="Geriatrics"))
        client = _email_client()

        message = await GuardianMessenger(records, client).send_message("d1", "p1", "Ana did <great>")

        kwargs = client.send.call_args.kwargs
        assert kwargs["to"] == ["sam@example.com"]
        assert kwargs["subject"] == "New message from Dr. Geriatrics"
        assert "Regarding patient: Ana" in kwargs["html"]
        assert "Ana did &lt;great&gt;" in kwargs["html"]

        stored = await records.list_messages("p1")
        assert [m.id for m in stored] == [message.id]
        assert stored[0].sender_id == "d1"
        assert stored[0].read is False

    @pytest.mark.asyncio
    async def test_notification_failure_is_not_fatal(self, records):
        await records.save_profile("p1", ElderProfile(guardian_email="sam@example.com"))
        client = _email_client(error=EmailDeliveryError("rate limited", status_code=429))

        message = await GuardianMessenger(records, client).send_message("d1", "p1", "Hello")
        assert message.content == "Hello"
        assert len(await records.list_messages("p1")) == 1

    @pytest.mark.asyncio
    async def test_concurrent_sends_keep_every_message(self, tmp_path):
        records = RecordStore(LocalKVStore(str(tmp_path)))
        await records.save_profile("p1", ElderProfile(guardian_email="sam@example.com"))
        messenger = GuardianMessenger(records, locks=KeyedLocks())

        sent = await asyncio.gather(*(
            messenger.send_message("d1", "p1", f"Note {n}") for n in range(5)
        ))

        stored = await records.list_messages("p1")
        assert sorted(m.id for m in stored) == sorted(m.id for m in sent)

    @pytest.mark.asyncio
    async def test_list_is_ordered_by_created_at(self, records):
        await records.save_message(GuardianMessage(
            id="late", patient_id="p1", sender_id="d1", content="b", created_at="2024-03-06T10:00:00+00:00",
        ))
        await records.save_message(GuardianMessage(
            id="early", patient_id="p1", sender_id="d1", content="a", created_at="2024-03-05T10:00:00+00:00",
        ))

        messages = await GuardianMessenger(records).list_messages("p1")
        assert [m.id for m in messages] == ["early", "late"]
