"""
Guardian Message Models - Doctor-to-guardian messages about a patient.
"""

from datetime import datetime, timezone
from typing import Literal
from pydantic import Field

from .records import RecordModel


class GuardianMessageIn(RecordModel):
    patient_id: str = Field(alias="patientId", min_length=1)
    message: str = Field(min_length=1)


class GuardianMessage(RecordModel):
    id: str
    patient_id: str = Field(alias="patientId")
    sender_id: str = Field(alias="senderId")
    sender_type: Literal["doctor"] = Field(default="doctor", alias="senderType")
    content: str
    created_at: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(),
        alias="createdAt",
    )
    read: bool = False
