"""
Guardian Messenger - Doctor-to-guardian messages about a patient.
"""

import logging
import time
import uuid
from html import escape
from typing import List, Optional

from .completion import KeyedLocks
from .errors import NotFound
from ..channels import EmailClient, EmailDeliveryError
from ..config import settings
from ..models import GuardianMessage
from ..storage import RecordStore

logger = logging.getLogger(__name__)


def _new_message_id() -> str:
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}"


def render_message_html(doctor_name: str, patient_name: str, content: str) -> str:
    return (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
        f'<h2 style="color: #2563eb;">New Message from {escape(doctor_name)}</h2>'
        f'<p>Regarding patient: {escape(patient_name)}</p>'
        '<div style="background: #f3f4f6; padding: 20px; border-radius: 8px; margin: 20px 0;">'
        f'<p style="margin: 0;">{escape(content)}</p>'
        '</div>'
        '<p style="color: #6b7280; font-size: 14px;">'
        'This message was sent through the Elder Mood Mirror doctor portal.'
        '</p>'
        '</div>'
    )


class GuardianMessenger:
    """Stores doctor messages and notifies the patient's guardian by email."""

    def __init__(
        self,
        records: RecordStore,
        email_client: Optional[EmailClient] = None,
        locks: Optional[KeyedLocks] = None,
    ):
        self.records = records
        self.email_client = email_client
        self.locks = locks or KeyedLocks()

    async def send_message(self, sender_id: str, patient_id: str, content: str) -> GuardianMessage:
        """
        Store a message for a patient and email the guardian.

        The notification email is best-effort: a delivery failure is logged
        and the stored message still counts as sent.

        Raises:
            NotFound: The patient has no elder profile with a guardian email
            StoreUnavailable: The message could not be stored
        """
        profile = await self.records.get_elder_profile(patient_id)
        if profile is None or not profile.guardian_email:
            raise NotFound("Guardian email not found for this patient")

        message = GuardianMessage(
            id=_new_message_id(),
            patient_id=patient_id,
            sender_id=sender_id,
            content=content,
        )
        async with self.locks.get(self.records.conversation_key(patient_id)):
            await self.records.save_message(message)
        logger.info(f"Stored guardian message {message.id} for patient {patient_id}")

        await self._notify(sender_id, patient_id, profile.guardian_email, content)
        return message

    async def _notify(self, sender_id: str, patient_id: str, guardian_email: str, content: str) -> None:
        if self.email_client is None:
            logger.debug("Email not configured; skipping guardian notification")
            return

        doctor = await self.records.get_doctor_profile(sender_id)
        doctor_name = f"Dr. {doctor.specialty}" if doctor and doctor.specialty else "Your Doctor"
        basic = await self.records.get_basic_info(patient_id)
        patient_name = basic.name if basic else "Your loved one"

        try:
            await self.email_client.send(
                sender=settings.email_from,
                to=[guardian_email],
                subject=f"New message from {doctor_name}",
                html=render_message_html(doctor_name, patient_name, content),
            )
        except EmailDeliveryError as e:
            logger.warning(f"Guardian notification for patient {patient_id} failed: {e.message}")

    async def list_messages(self, patient_id: str) -> List[GuardianMessage]:
        """Messages for a patient, oldest first."""
        messages = await self.records.list_messages(patient_id)
        return sorted(messages, key=lambda m: m.created_at)
